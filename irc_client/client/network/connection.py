"""
TCP/TLS Transport

Owns the byte-stream socket to one IRC server and exposes blocking
line-read and line-write primitives. Every operation returns a
TransportResult instead of raising; every line read or written is
traced on the wire logger.
"""

import logging
import socket
import ssl
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Any, BinaryIO, Dict, Optional

from irc_client.shared.constants import (
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_ENCODING,
    DEFAULT_ENCODING_ERRORS,
    DEFAULT_READ_TIMEOUT,
    WIRE_IN_MARKER,
    WIRE_OUT_MARKER,
)
from irc_client.shared.exceptions import CloseFailure, ConnectFailure, ReadFailure, WriteFailure
from irc_client.shared.framing import frame_line, strip_line_ending
from irc_client.shared.logging_config import get_wire_logger
from irc_client.shared.models import ConnectionStatus, Server, TransportResult

from .trust import build_tls_config


logger = logging.getLogger(__name__)


@dataclass
class TransportConfig:
    """Configuration for the server socket."""
    connect_timeout: Optional[float] = DEFAULT_CONNECT_TIMEOUT
    read_timeout: Optional[float] = DEFAULT_READ_TIMEOUT
    encoding: str = DEFAULT_ENCODING
    encoding_errors: str = DEFAULT_ENCODING_ERRORS
    enable_keepalive: bool = True


class Transport:
    """
    Line-oriented socket to a single server.

    Writes are serialised so lines from different threads never
    interleave. Closing the transport from another thread wakes a
    blocked read, which then reports end-of-stream.
    """

    def __init__(self,
                 server: Server,
                 config: Optional[TransportConfig] = None,
                 tls_context: Optional[ssl.SSLContext] = None) -> None:
        """
        Initialize the transport.

        Args:
            server: The server to connect to.
            config: Socket configuration.
            tls_context: Context used when server.ssl is set. The strict
                platform default is used when omitted.
        """
        self.server = server
        self.config = config or TransportConfig()
        self._tls_context = tls_context
        self._socket: Optional[socket.socket] = None
        self._reader: Optional[BinaryIO] = None
        self._status = ConnectionStatus.DISCONNECTED
        self._write_lock = threading.Lock()
        self._closed = False
        self._last_error: Optional[str] = None
        self._connection_time: Optional[datetime] = None
        self._wire = get_wire_logger()

    def open(self) -> TransportResult:
        """
        Connect to the server, wrapping the socket in TLS when required.

        Returns:
            Success carrying the socket, or a ConnectFailure.

        Raises:
            TrustPolicyError: If a default TLS context cannot be built.
        """
        address = self.server.address
        context = None
        if self.server.ssl:
            context = self._tls_context or build_tls_config(lenient=False)

        self._status = ConnectionStatus.CONNECTING
        sock: Optional[socket.socket] = None
        try:
            sock = socket.create_connection(
                (self.server.host, self.server.port),
                timeout=self.config.connect_timeout
            )
            if self.config.enable_keepalive:
                sock.setsockopt(socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1)
            if context is not None:
                sock = context.wrap_socket(sock, server_hostname=self.server.host)
            sock.settimeout(self.config.read_timeout)
        except OSError as e:
            # socket.gaierror, socket.timeout and ssl.SSLError all land here
            if sock is not None:
                sock.close()
            self._status = ConnectionStatus.ERROR
            self._last_error = str(e)
            logger.error("Connection to %s failed: %s", address, e)
            error = ConnectFailure(f"Failed to connect to {address}: {e}", address=address)
            error.__cause__ = e
            return TransportResult.failure(error)

        self._socket = sock
        self._reader = sock.makefile("rb")
        self._closed = False
        self._status = ConnectionStatus.CONNECTED
        self._connection_time = datetime.now()
        self._last_error = None
        logger.info("Connected to %s (TLS: %s)", address, self.server.ssl)
        return TransportResult.success(sock)

    def read_line(self) -> TransportResult:
        """
        Block until the next line arrives.

        Returns:
            Success carrying the line without CR/LF, success carrying None
            at end-of-stream, or a ReadFailure.
        """
        reader = self._reader
        if reader is None:
            return TransportResult.success(None)

        try:
            data = reader.readline()
        except (OSError, ValueError) as e:
            self._release_reader()
            if self._closed:
                # the local side closed the socket under a blocked read
                logger.debug("Read on %s ended by local close: %s", self.server.address, e)
                return TransportResult.success(None)
            self._status = ConnectionStatus.ERROR
            self._last_error = str(e)
            error = ReadFailure(f"Failed to read from {self.server.address}: {e}",
                                address=self.server.address)
            error.__cause__ = e
            return TransportResult.failure(error)

        if not data:
            self._release_reader()
            logger.info("Connection to %s reached end of stream", self.server.address)
            if not self._closed:
                self._status = ConnectionStatus.DISCONNECTED
            return TransportResult.success(None)

        line = strip_line_ending(data, self.config.encoding, self.config.encoding_errors)
        self._wire.debug("%s %s", WIRE_IN_MARKER, line)
        return TransportResult.success(line)

    def write_line(self, text: str) -> TransportResult:
        """
        Send one line, appending CRLF, and flush it before returning.

        Args:
            text: The line to send, without line ending.

        Returns:
            Success carrying the number of bytes sent, or a WriteFailure.
        """
        address = self.server.address
        sock = self._socket
        if sock is None or self._closed:
            return TransportResult.failure(WriteFailure("Not connected to server", address=address))

        try:
            data = frame_line(text, self.config.encoding)
            with self._write_lock:
                sock.sendall(data)
                self._wire.debug("%s %s", WIRE_OUT_MARKER, text)
        except (OSError, UnicodeEncodeError) as e:
            self._last_error = str(e)
            error = WriteFailure(f"Failed to write to {address}: {e}", address=address)
            error.__cause__ = e
            return TransportResult.failure(error)

        return TransportResult.success(len(data))

    def close(self) -> TransportResult:
        """
        Close the socket.

        The transport counts as closed afterwards even if the close
        itself reported a failure.

        Returns:
            Success, or a CloseFailure.
        """
        sock = self._socket
        self._closed = True
        self._status = ConnectionStatus.DISCONNECTED
        if sock is None:
            return TransportResult.success()

        self._socket = None
        try:
            sock.shutdown(socket.SHUT_RDWR)
        except OSError as e:
            # ENOTCONN once the peer has already gone away
            logger.debug("Shutdown of %s skipped: %s", self.server.address, e)

        try:
            sock.close()
        except OSError as e:
            self._last_error = str(e)
            error = CloseFailure(f"Failed to close connection to {self.server.address}: {e}",
                                 address=self.server.address)
            error.__cause__ = e
            return TransportResult.failure(error)

        logger.info("Closed connection to %s", self.server.address)
        return TransportResult.success()

    def is_connected(self) -> bool:
        return self._status == ConnectionStatus.CONNECTED and self._socket is not None

    @property
    def closed(self) -> bool:
        return self._closed

    def get_status(self) -> ConnectionStatus:
        return self._status

    def get_last_error(self) -> Optional[str]:
        return self._last_error

    def get_connection_info(self) -> Dict[str, Any]:
        """
        Get connection information.

        Returns:
            Dictionary with connection details.
        """
        return {
            "host": self.server.host,
            "port": self.server.port,
            "ssl": self.server.ssl,
            "status": self._status.value,
            "connected_at": self._connection_time,
            "last_error": self._last_error,
        }

    def _release_reader(self) -> None:
        """Close the buffered reader once no further reads will happen."""
        reader, self._reader = self._reader, None
        if reader is not None:
            reader.close()
