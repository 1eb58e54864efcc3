"""
Custom Exceptions

Defines custom exception classes for the IRC client core.
"""

from typing import Any, Optional


class IrcClientError(Exception):
    """Base exception class for all IRC client errors."""
    pass


class NetworkError(IrcClientError):
    """Raised when network-related errors occur."""

    def __init__(self, message: str, operation: Optional[str] = None, address: Optional[str] = None):
        super().__init__(message)
        self.operation = operation
        self.address = address


class ConnectFailure(NetworkError):
    """Raised when DNS resolution, the TCP connect or the TLS handshake fails."""

    def __init__(self, message: str, address: Optional[str] = None):
        super().__init__(message, operation="connect", address=address)


class ReadFailure(NetworkError):
    """Raised when reading from an open stream fails."""

    def __init__(self, message: str, address: Optional[str] = None):
        super().__init__(message, operation="read", address=address)


class WriteFailure(NetworkError):
    """Raised when writing a line to the stream fails."""

    def __init__(self, message: str, address: Optional[str] = None):
        super().__init__(message, operation="write", address=address)


class CloseFailure(NetworkError):
    """Raised when closing the socket fails."""

    def __init__(self, message: str, address: Optional[str] = None):
        super().__init__(message, operation="close", address=address)


class TrustPolicyError(IrcClientError):
    """Raised when a TLS context cannot be built (environment or programming error)."""

    def __init__(self, message: str, lenient: Optional[bool] = None):
        super().__init__(message)
        self.lenient = lenient


class ConnectionStateError(IrcClientError):
    """Raised when a connection operation is called in the wrong lifecycle state."""
    pass


class HandlerError(IrcClientError):
    """Raised when a registered handler fails while processing a line."""

    def __init__(self, message: str, line: Optional[str] = None, handler: Any = None):
        super().__init__(message)
        self.line = line
        self.handler = handler


class HandlerRegistryError(IrcClientError):
    """Raised when a frozen handler registry is modified."""
    pass


class ConfigurationError(IrcClientError):
    """Raised when configuration-related errors occur."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.details = details

