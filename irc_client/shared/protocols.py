"""
Type Protocols and Interfaces

Defines the handler interfaces the dispatcher consumes. Concrete
handlers are supplied by the code that owns the domain model.
"""

from abc import abstractmethod
from typing import Any, Callable, Protocol, Sequence, runtime_checkable


ExceptionHandler = Callable[[Exception], None]


@runtime_checkable
class NumericHandler(Protocol):
    """Protocol for handlers of numeric replies."""

    @abstractmethod
    def applies_to(self, numeric: int) -> bool:
        """
        Check whether this handler wants a numeric reply.

        Args:
            numeric: The reply code.

        Returns:
            True if process() should be called for this line.
        """
        ...

    @abstractmethod
    def process(self, line: str, parts: Sequence[str], connection: Any) -> None:
        """
        Process a matching line.

        Args:
            line: The raw line without its line ending.
            parts: The whitespace-split tokens of the line.
            connection: The connection that received the line.
        """
        ...


@runtime_checkable
class CommandHandler(Protocol):
    """Protocol for handlers of textual commands."""

    @abstractmethod
    def applies_to(self, command: str, line: str) -> bool:
        """
        Check whether this handler wants a command line.

        Args:
            command: The command verb as sent by the server.
            line: The raw line.

        Returns:
            True if process() should be called for this line.
        """
        ...

    @abstractmethod
    def process(self, line: str, parts: Sequence[str], connection: Any) -> None:
        """
        Process a matching line.

        Args:
            line: The raw line without its line ending.
            parts: The whitespace-split tokens of the line.
            connection: The connection that received the line.
        """
        ...
