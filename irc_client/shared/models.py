"""
Data Models

Defines data classes and models used throughout the IRC client core.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Tuple

from .exceptions import IrcClientError


class LineKind(Enum):
    """Enumeration of line classifications."""
    NUMERIC = "numeric"
    COMMAND = "command"


class ConnectionStatus(Enum):
    """Enumeration of connection statuses."""
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERROR = "error"


class DispatcherState(Enum):
    """Enumeration of read loop states."""
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


@dataclass(frozen=True)
class Server:
    """The server a connection talks to. Never mutated by the connection."""
    host: str
    port: int
    ssl: bool = False

    @property
    def address(self) -> str:
        """Get the server address as host:port."""
        return f"{self.host}:{self.port}"


@dataclass(frozen=True)
class User:
    """The identity requested from the server by register_as()."""
    nick: str
    user: str = ""
    real_name: str = ""

    def __post_init__(self) -> None:
        # frozen dataclass, so defaults are filled through object.__setattr__
        if not self.user:
            object.__setattr__(self, "user", self.nick)
        if not self.real_name:
            object.__setattr__(self, "real_name", self.nick)


@dataclass(frozen=True)
class Classification:
    """Result of classifying a protocol line."""
    kind: LineKind
    command: str
    numeric: Optional[int] = None

    @property
    def is_numeric(self) -> bool:
        return self.kind is LineKind.NUMERIC

    @classmethod
    def for_numeric(cls, token: str) -> "Classification":
        return cls(kind=LineKind.NUMERIC, command=token, numeric=int(token))

    @classmethod
    def for_command(cls, token: str) -> "Classification":
        return cls(kind=LineKind.COMMAND, command=token)


@dataclass(frozen=True)
class ProtocolLine:
    """One received line with its tokens. Not retained after dispatch."""
    raw: str
    parts: Tuple[str, ...]
    classification: Classification


@dataclass(frozen=True)
class TransportResult:
    """Explicit outcome of a transport operation."""
    value: Any = None
    error: Optional[IrcClientError] = field(default=None)

    @property
    def ok(self) -> bool:
        """True when the operation did not fail."""
        return self.error is None

    @classmethod
    def success(cls, value: Any = None) -> "TransportResult":
        return cls(value=value)

    @classmethod
    def failure(cls, error: IrcClientError) -> "TransportResult":
        return cls(error=error)
