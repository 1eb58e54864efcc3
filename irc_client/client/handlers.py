"""
Handler Registry

Ordered collections of numeric and command handlers consulted by the
line dispatcher, plus adapters that turn plain callables into handlers.
"""

import threading
from typing import Any, Callable, Iterable, List, Optional, Sequence, Tuple

from irc_client.shared.exceptions import HandlerRegistryError
from irc_client.shared.protocols import CommandHandler, NumericHandler


LineCallback = Callable[[str, Sequence[str], Any], None]


class FunctionNumericHandler(NumericHandler):
    """Numeric handler backed by a callable. No codes means every numeric."""

    def __init__(self, codes: Iterable[int], callback: LineCallback) -> None:
        self.codes = frozenset(codes)
        self.callback = callback

    def applies_to(self, numeric: int) -> bool:
        return not self.codes or numeric in self.codes

    def process(self, line: str, parts: Sequence[str], connection: Any) -> None:
        self.callback(line, parts, connection)

    def __repr__(self) -> str:
        return f"FunctionNumericHandler(codes={sorted(self.codes)}, callback={self.callback!r})"


class FunctionCommandHandler(CommandHandler):
    """Command handler backed by a callable. No names means every command."""

    def __init__(self, names: Iterable[str], callback: LineCallback) -> None:
        self.names = frozenset(name.upper() for name in names)
        self.callback = callback

    def applies_to(self, command: str, line: str) -> bool:
        return not self.names or command.upper() in self.names

    def process(self, line: str, parts: Sequence[str], connection: Any) -> None:
        self.callback(line, parts, connection)

    def __repr__(self) -> str:
        return f"FunctionCommandHandler(names={sorted(self.names)}, callback={self.callback!r})"


class HandlerRegistry:
    """
    Ordered numeric and command handler lists for one connection.

    Handlers run in registration order and every matching handler runs.
    The registry is frozen when its connection starts dispatching;
    after that it is read-only and safe to iterate from the read loop.
    """

    def __init__(self,
                 numeric_handlers: Optional[Iterable[NumericHandler]] = None,
                 command_handlers: Optional[Iterable[CommandHandler]] = None) -> None:
        self._numeric: List[NumericHandler] = []
        self._command: List[CommandHandler] = []
        self._lock = threading.Lock()
        self._frozen = False

        for numeric_handler in numeric_handlers or ():
            self.add_numeric_handler(numeric_handler)
        for command_handler in command_handlers or ():
            self.add_command_handler(command_handler)

    def add_numeric_handler(self, handler: NumericHandler) -> NumericHandler:
        """
        Append a numeric handler.

        Args:
            handler: Object implementing applies_to(numeric) and process().

        Returns:
            The handler.

        Raises:
            HandlerRegistryError: If the registry is frozen.
            TypeError: If the handler does not implement the interface.
        """
        if not isinstance(handler, NumericHandler):
            raise TypeError(f"{handler!r} is not a NumericHandler")
        with self._lock:
            self._check_mutable()
            self._numeric.append(handler)
        return handler

    def add_command_handler(self, handler: CommandHandler) -> CommandHandler:
        """
        Append a command handler.

        Args:
            handler: Object implementing applies_to(command, line) and process().

        Returns:
            The handler.

        Raises:
            HandlerRegistryError: If the registry is frozen.
            TypeError: If the handler does not implement the interface.
        """
        if not isinstance(handler, CommandHandler):
            raise TypeError(f"{handler!r} is not a CommandHandler")
        with self._lock:
            self._check_mutable()
            self._command.append(handler)
        return handler

    def on_numeric(self, *codes: int) -> Callable[[LineCallback], LineCallback]:
        """Decorator registering a function for the given numerics."""
        def decorator(callback: LineCallback) -> LineCallback:
            self.add_numeric_handler(FunctionNumericHandler(codes, callback))
            return callback
        return decorator

    def on_command(self, *names: str) -> Callable[[LineCallback], LineCallback]:
        """Decorator registering a function for the given commands."""
        def decorator(callback: LineCallback) -> LineCallback:
            self.add_command_handler(FunctionCommandHandler(names, callback))
            return callback
        return decorator

    def remove_numeric_handler(self, handler: NumericHandler) -> None:
        with self._lock:
            self._check_mutable()
            self._numeric.remove(handler)

    def remove_command_handler(self, handler: CommandHandler) -> None:
        with self._lock:
            self._check_mutable()
            self._command.remove(handler)

    def freeze(self) -> None:
        """Make the registry read-only."""
        with self._lock:
            self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def numeric_handlers(self) -> Tuple[NumericHandler, ...]:
        return tuple(self._numeric)

    def command_handlers(self) -> Tuple[CommandHandler, ...]:
        return tuple(self._command)

    def __len__(self) -> int:
        return len(self._numeric) + len(self._command)

    def _check_mutable(self) -> None:
        if self._frozen:
            raise HandlerRegistryError("Handler registry is frozen once dispatch has started")
