"""
IRC Connection

The object callers hold for one server. Composes the transport, the
TLS trust policy, the line dispatcher and the handler registry.

The client is server-authoritative: join_channel() and register_as()
only send requests. Nothing local changes until the server confirms
with a line that a registered handler acts on.
"""

import logging
import threading
from typing import Any, Dict, Optional

from irc_client.shared.config import ClientConfig
from irc_client.shared.exceptions import ConnectionStateError, WriteFailure
from irc_client.shared.framing import join_command, nick_command, user_command
from irc_client.shared.models import ConnectionStatus, DispatcherState, Server, TransportResult, User
from irc_client.shared.protocols import ExceptionHandler

from .handlers import HandlerRegistry
from .network.connection import Transport, TransportConfig
from .network.dispatcher import LineDispatcher
from .network.trust import build_tls_config


logger = logging.getLogger(__name__)


class IrcConnection:
    """
    A single connection to a single IRC server.

    Connection, read and write failures never propagate to the caller;
    they go to the exception handler set with set_exception_handler().
    Without one they are logged and dropped.
    """

    def __init__(self,
                 server: Server,
                 registry: Optional[HandlerRegistry] = None,
                 config: Optional[ClientConfig] = None) -> None:
        """
        Initialize the connection.

        Args:
            server: The server to connect to.
            registry: Handlers for lines from this server. An empty
                registry is created when omitted.
            config: Timeouts, encoding and dispatch policy. Host, port
                and ssl are taken from server, not from config.
        """
        self.server = server
        self.registry = registry if registry is not None else HandlerRegistry()
        self.config = config or ClientConfig(host=server.host, port=server.port, ssl=server.ssl)

        self._accept_all_certs = self.config.accept_all_certs
        self._exception_handler: Optional[ExceptionHandler] = None
        self._transport: Optional[Transport] = None
        self._dispatcher: Optional[LineDispatcher] = None
        self._disconnect_called = False
        self._lock = threading.Lock()

    def get_server(self) -> Server:
        return self.server

    def set_exception_handler(self, handler: Optional[ExceptionHandler]) -> None:
        """Replace the single exception callback. None removes it."""
        self._exception_handler = handler

    def set_accept_all_ssl_certs(self, accept: bool) -> None:
        """
        Accept any TLS certificate from the server.

        Only takes effect for the next connect(); an open transport keeps
        the trust policy it was opened with.
        """
        self._accept_all_certs = accept

    def connect(self) -> None:
        """
        Open the transport and start the read loop in the background.

        Returns immediately. A connection failure goes to the exception
        handler and leaves the connection not running.

        Raises:
            ConnectionStateError: If connect() was already called.
            TrustPolicyError: If the TLS context cannot be built.
        """
        with self._lock:
            if self._transport is not None:
                raise ConnectionStateError(f"Connection to {self.server.address} was already started")

            tls_context = None
            if self.server.ssl:
                tls_context = build_tls_config(lenient=self._accept_all_certs)

            transport = Transport(
                self.server,
                TransportConfig(
                    connect_timeout=self.config.connect_timeout,
                    read_timeout=self.config.read_timeout,
                    encoding=self.config.encoding,
                ),
                tls_context=tls_context,
            )
            self._transport = transport

        logger.info("Connecting to %s", self.server.address)
        result = transport.open()
        if not self._handle_result(result):
            return

        self.registry.freeze()
        self._dispatcher = LineDispatcher(
            read_line=self._read_line,
            registry=self.registry,
            connection=self,
            report_error=self._report,
            isolate_handler_errors=self.config.isolate_handler_errors,
            name=f"irc-dispatcher-{self.server.address}",
            on_stopped=self._release_transport,
        )
        self._dispatcher.start()

    def disconnect(self) -> None:
        """
        Close the transport.

        A read loop blocked on the socket wakes up, sees end-of-stream
        and stops. Use wait_until_stopped() to wait for that. After the
        server has ended the stream the transport is already closed and
        this only records the disconnect.

        Raises:
            ConnectionStateError: If connect() was never called or
                disconnect() was already called.
        """
        with self._lock:
            if self._transport is None or self._disconnect_called:
                raise ConnectionStateError(f"Connection to {self.server.address} is not open")
            self._disconnect_called = True

        logger.info("Disconnecting from %s", self.server.address)
        self._close_transport()

    def write_line(self, text: str) -> None:
        """
        Send a raw protocol line. CRLF is appended; nothing is validated.

        Args:
            text: The line to send.
        """
        transport = self._transport
        if transport is None:
            self._report(WriteFailure("Not connected to server", address=self.server.address))
            return
        self._handle_result(transport.write_line(text))

    def join_channel(self, channel: str) -> None:
        """Ask the server to join a channel. Membership is recorded by handlers on confirmation."""
        self.write_line(join_command(channel))

    def register_as(self, user: User) -> None:
        """Ask the server for an identity with NICK followed by USER."""
        self.write_line(nick_command(user.nick))
        self.write_line(user_command(user))

    @property
    def status(self) -> ConnectionStatus:
        if self._transport is None:
            return ConnectionStatus.DISCONNECTED
        return self._transport.get_status()

    @property
    def dispatcher_state(self) -> DispatcherState:
        if self._dispatcher is None:
            return DispatcherState.IDLE
        return self._dispatcher.state

    def is_running(self) -> bool:
        return self._dispatcher is not None and self._dispatcher.is_running()

    def is_open(self) -> bool:
        """Check whether a transport exists and has not been closed yet."""
        return self._transport is not None and not self._transport.closed

    def wait_until_stopped(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for the read loop to stop.

        Args:
            timeout: Seconds to wait, or None to wait forever.

        Returns:
            True if the read loop has stopped or was never started.
        """
        if self._dispatcher is None:
            return True
        return self._dispatcher.join(timeout)

    def get_connection_info(self) -> Dict[str, Any]:
        """
        Get connection information.

        Returns:
            Dictionary with connection and dispatcher details.
        """
        info: Dict[str, Any] = {
            "host": self.server.host,
            "port": self.server.port,
            "ssl": self.server.ssl,
            "accept_all_certs": self._accept_all_certs,
            "status": self.status.value,
            "dispatcher": self.dispatcher_state.value,
            "lines_dispatched": self._dispatcher.lines_dispatched if self._dispatcher else 0,
        }
        if self._transport is not None:
            info["connected_at"] = self._transport.get_connection_info()["connected_at"]
            info["last_error"] = self._transport.get_last_error()
        return info

    def _read_line(self) -> Optional[str]:
        transport = self._transport
        if transport is None:
            return None
        result = transport.read_line()
        if not self._handle_result(result):
            return None
        return result.value

    def _release_transport(self) -> None:
        if self._close_transport():
            logger.debug("Released transport to %s after the read loop stopped", self.server.address)

    def _close_transport(self) -> bool:
        with self._lock:
            transport = self._transport
            if transport is None or transport.closed:
                return False
            result = transport.close()
        self._handle_result(result)
        return True

    def _handle_result(self, result: TransportResult) -> bool:
        if result.error is not None:
            self._report(result.error)
        return result.ok

    def _report(self, error: Exception) -> None:
        handler = self._exception_handler
        if handler is None:
            logger.warning("Unhandled connection error on %s: %s", self.server.address, error)
            return
        handler(error)
