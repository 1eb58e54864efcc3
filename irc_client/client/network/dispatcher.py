"""
Line Dispatcher

The read loop of a connection: reads one line at a time, classifies it
as a numeric reply or a command and invokes every matching handler in
registry order on the loop's own thread.
"""

import logging
import threading
from typing import Any, Callable, Optional

from irc_client.shared.exceptions import ConnectionStateError, HandlerError
from irc_client.shared.framing import classify, tokenize
from irc_client.shared.models import DispatcherState, ProtocolLine

from ..handlers import HandlerRegistry


logger = logging.getLogger(__name__)


class LineDispatcher:
    """
    Reads lines and routes them to handlers until the stream ends.

    Lifecycle is IDLE -> RUNNING -> STOPPED; STOPPED is terminal.
    Handlers for one line run synchronously and in order, so they see
    server lines in exactly the order the server sent them. A handler
    that blocks, blocks the loop.
    """

    def __init__(self,
                 read_line: Callable[[], Optional[str]],
                 registry: HandlerRegistry,
                 connection: Any,
                 report_error: Callable[[Exception], None],
                 isolate_handler_errors: bool = True,
                 name: str = "irc-dispatcher",
                 on_stopped: Optional[Callable[[], None]] = None) -> None:
        """
        Initialize the dispatcher.

        Args:
            read_line: Returns the next line, or None once no more input
                will arrive. Read failures are reported by the callee.
            registry: Handlers to consult for each line.
            connection: Passed to every handler as the back-reference.
            report_error: Receives HandlerError instances.
            isolate_handler_errors: Keep dispatching after a handler fails
                instead of stopping the loop.
            name: Name of the background thread.
            on_stopped: Called on the loop thread once the loop has ended,
                before join() returns.
        """
        self._read_line = read_line
        self.registry = registry
        self.connection = connection
        self._report_error = report_error
        self.isolate_handler_errors = isolate_handler_errors
        self.name = name
        self._on_stopped = on_stopped
        self.lines_dispatched = 0

        self._state = DispatcherState.IDLE
        self._lock = threading.Lock()
        self._stopped = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def state(self) -> DispatcherState:
        return self._state

    def is_running(self) -> bool:
        return self._state is DispatcherState.RUNNING

    def start(self) -> threading.Thread:
        """
        Run the read loop on a new daemon thread and return immediately.

        Returns:
            The started thread.

        Raises:
            ConnectionStateError: If the dispatcher was already started.
        """
        self._enter_running()
        self._thread = threading.Thread(target=self._loop, name=self.name, daemon=True)
        self._thread.start()
        return self._thread

    def run(self) -> None:
        """Run the read loop on the calling thread until it stops."""
        self._enter_running()
        self._loop()

    def join(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for the loop to reach STOPPED.

        Args:
            timeout: Seconds to wait, or None to wait forever.

        Returns:
            True if the loop has stopped.
        """
        return self._stopped.wait(timeout)

    def dispatch(self, line: str) -> bool:
        """
        Classify one line and invoke the handlers that apply to it.

        Args:
            line: Raw line without its line ending.

        Returns:
            False if a handler failed and failures are not isolated.
        """
        parts = tokenize(line)
        if not parts:
            logger.debug("Skipping blank line")
            return True

        received = ProtocolLine(raw=line, parts=tuple(parts), classification=classify(parts))
        self.lines_dispatched += 1

        classification = received.classification
        if classification.is_numeric:
            for numeric_handler in self.registry.numeric_handlers():
                if not self._invoke(numeric_handler, received,
                                    lambda h: h.applies_to(classification.numeric)):
                    return False
        else:
            for command_handler in self.registry.command_handlers():
                if not self._invoke(command_handler, received,
                                    lambda h: h.applies_to(classification.command, line)):
                    return False
        return True

    def _invoke(self, handler: Any, received: ProtocolLine,
                applies: Callable[[Any], bool]) -> bool:
        line = received.raw
        try:
            if applies(handler):
                handler.process(line, list(received.parts), self.connection)
        except Exception as e:
            logger.exception("Handler %r failed on line %r", handler, line)
            error = HandlerError(f"Handler {handler!r} failed: {e}", line=line, handler=handler)
            error.__cause__ = e
            self._report_error(error)
            return self.isolate_handler_errors
        return True

    def _enter_running(self) -> None:
        with self._lock:
            if self._state is not DispatcherState.IDLE:
                raise ConnectionStateError(f"Line dispatcher is {self._state.value}; it can only be started once")
            self._state = DispatcherState.RUNNING

    def _loop(self) -> None:
        logger.debug("Line dispatcher %s running", self.name)
        try:
            while True:
                line = self._read_line()
                if line is None:
                    break
                if not self.dispatch(line):
                    logger.error("Line dispatcher %s stopping after handler failure", self.name)
                    break
        finally:
            self._state = DispatcherState.STOPPED
            try:
                if self._on_stopped is not None:
                    self._on_stopped()
            finally:
                self._stopped.set()
            logger.info("Line dispatcher %s stopped after %d lines", self.name, self.lines_dispatched)
