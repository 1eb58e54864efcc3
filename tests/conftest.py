"""
Pytest Configuration and Shared Fixtures

Provides common test fixtures and configuration for the test suite.
"""

import logging
import socket
import ssl
import threading
from pathlib import Path
from typing import Iterable, List, Optional, Sequence
from unittest.mock import Mock

import pytest

from irc_client.client.handlers import HandlerRegistry
from irc_client.shared.constants import WIRE_LOGGER_NAME
from irc_client.shared.models import Server, TransportResult, User


FIXTURES_DIR = Path(__file__).parent / "fixtures"


class RecordingNumericHandler:
    """Numeric handler that records every line it processes."""

    def __init__(self, codes: Iterable[int] = (), log: Optional[list] = None, name: str = "numeric"):
        self.codes = set(codes)
        self.calls: List[tuple] = []
        self.log = log if log is not None else []
        self.name = name

    def applies_to(self, numeric: int) -> bool:
        return not self.codes or numeric in self.codes

    def process(self, line: str, parts: Sequence[str], connection) -> None:
        self.calls.append((line, list(parts), connection))
        self.log.append(self.name)


class RecordingCommandHandler:
    """Command handler that records every line it processes."""

    def __init__(self, names: Iterable[str] = (), log: Optional[list] = None, name: str = "command"):
        self.names = set(names)
        self.calls: List[tuple] = []
        self.log = log if log is not None else []
        self.name = name

    def applies_to(self, command: str, line: str) -> bool:
        return not self.names or command in self.names

    def process(self, line: str, parts: Sequence[str], connection) -> None:
        self.calls.append((line, list(parts), connection))
        self.log.append(self.name)


class ScriptedServer:
    """
    Loopback server for one client.

    Sends the scripted lines, then either closes at once or keeps the
    connection open and records everything the client sends until the
    client closes its side.
    """

    def __init__(self, lines: Sequence[str] = (), close_after_send: bool = True,
                 tls_context: Optional[ssl.SSLContext] = None) -> None:
        self.lines = list(lines)
        self.close_after_send = close_after_send
        self.tls_context = tls_context
        self.received = b""
        self.handshake_failed = False
        self.accepted = threading.Event()
        self.done = threading.Event()

        self._listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._listener.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self._listener.bind(("127.0.0.1", 0))
        self._listener.listen(1)
        self.port = self._listener.getsockname()[1]
        self._thread = threading.Thread(target=self._serve, daemon=True)

    @property
    def server(self) -> Server:
        return Server("127.0.0.1", self.port, ssl=self.tls_context is not None)

    def start(self) -> "ScriptedServer":
        self._thread.start()
        return self

    def stop(self) -> None:
        self._listener.close()
        self._thread.join(timeout=5.0)

    def _serve(self) -> None:
        try:
            conn, _ = self._listener.accept()
        except OSError:
            self.done.set()
            return

        if self.tls_context is not None:
            try:
                conn = self.tls_context.wrap_socket(conn, server_side=True)
            except (ssl.SSLError, OSError):
                self.handshake_failed = True
                conn.close()
                self.done.set()
                return

        self.accepted.set()
        try:
            for line in self.lines:
                conn.sendall(line.encode("utf-8"))
            if not self.close_after_send:
                while True:
                    data = conn.recv(4096)
                    if not data:
                        break
                    self.received += data
        except OSError:
            pass  # client went away; whatever arrived is already recorded
        finally:
            conn.close()
            self.done.set()


@pytest.fixture
def server() -> Server:
    """Provide a plain-text server descriptor."""
    return Server(host="irc.example.org", port=6667)


@pytest.fixture
def tls_server() -> Server:
    """Provide a TLS server descriptor."""
    return Server(host="irc.example.org", port=6697, ssl=True)


@pytest.fixture
def sample_user() -> User:
    """Provide a sample identity."""
    return User(nick="tester", user="testuser", real_name="Test User")


@pytest.fixture
def registry() -> HandlerRegistry:
    """Provide an empty handler registry."""
    return HandlerRegistry()


@pytest.fixture
def mock_transport() -> Mock:
    """Provide a transport mock that opens, writes and reports end-of-stream at once."""
    transport = Mock()
    transport.open.return_value = TransportResult.success(Mock())
    transport.read_line.return_value = TransportResult.success(None)
    transport.write_line.return_value = TransportResult.success(0)
    transport.closed = False

    def close():
        transport.closed = True
        return TransportResult.success()

    transport.close.side_effect = close
    return transport


@pytest.fixture
def scripted_server():
    """Factory for loopback servers; every server is stopped after the test."""
    servers: List[ScriptedServer] = []

    def factory(lines: Sequence[str] = (), close_after_send: bool = True,
                tls_context: Optional[ssl.SSLContext] = None) -> ScriptedServer:
        instance = ScriptedServer(lines, close_after_send, tls_context).start()
        servers.append(instance)
        return instance

    yield factory

    for instance in servers:
        instance.stop()


@pytest.fixture
def server_tls_context() -> ssl.SSLContext:
    """Server-side TLS context using the self-signed test certificate."""
    context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
    context.load_cert_chain(FIXTURES_DIR / "selfsigned.pem", FIXTURES_DIR / "selfsigned.key")
    return context


@pytest.fixture
def available_port() -> int:
    """Get a port that nothing listens on."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


@pytest.fixture
def temp_log_file(tmp_path) -> str:
    """Provide a temporary log file path."""
    return str(tmp_path / "test.log")


@pytest.fixture(autouse=True)
def reset_logging():
    """Reset logging configuration between tests."""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    yield

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    logging.getLogger(WIRE_LOGGER_NAME).setLevel(logging.NOTSET)


@pytest.fixture(autouse=True)
def clear_irc_env(monkeypatch):
    """Keep IRC_* variables from the developer's shell out of the tests."""
    import os
    for name in list(os.environ):
        if name.startswith("IRC_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def numeric_recorder():
    """Factory for numeric handlers that record their calls."""
    return RecordingNumericHandler


@pytest.fixture
def command_recorder():
    """Factory for command handlers that record their calls."""
    return RecordingCommandHandler
