"""
Unit tests for the LineDispatcher class.
"""

import threading
from unittest.mock import Mock

import pytest

from irc_client.client.handlers import FunctionCommandHandler, HandlerRegistry
from irc_client.client.network.dispatcher import LineDispatcher
from irc_client.shared.exceptions import ConnectionStateError, HandlerError
from irc_client.shared.models import DispatcherState


def line_source(*lines):
    """Return a read_line callable that yields the lines, then None."""
    iterator = iter(lines)
    return lambda: next(iterator, None)


class TestDispatch:
    """Test routing of single lines."""

    def setup_method(self):
        """Set up test fixtures."""
        self.registry = HandlerRegistry()
        self.connection = Mock()
        self.report_error = Mock()

    def make_dispatcher(self, *lines, **kwargs):
        return LineDispatcher(line_source(*lines), self.registry, self.connection,
                              self.report_error, **kwargs)

    def test_numeric_goes_to_numeric_handlers(self, numeric_recorder, command_recorder):
        """Test that numerics reach only numeric handlers."""
        numeric = numeric_recorder([1])
        command = command_recorder()
        self.registry.add_numeric_handler(numeric)
        self.registry.add_command_handler(command)

        self.make_dispatcher().dispatch(":test.server 001 nick :Welcome")

        assert numeric.calls == [(":test.server 001 nick :Welcome",
                                  [":test.server", "001", "nick", ":Welcome"],
                                  self.connection)]
        assert command.calls == []

    def test_command_goes_to_command_handlers(self, numeric_recorder, command_recorder):
        """Test that commands reach only command handlers."""
        numeric = numeric_recorder()
        command = command_recorder(["PING"])
        self.registry.add_numeric_handler(numeric)
        self.registry.add_command_handler(command)

        self.make_dispatcher().dispatch("PING :irc.example.org")

        assert command.calls[0][1] == ["PING", ":irc.example.org"]
        assert numeric.calls == []

    def test_command_handlers_see_raw_line(self):
        """Test that command handlers match on name and raw line."""
        handler = Mock()
        handler.applies_to.return_value = False
        self.registry.add_command_handler(handler)

        self.make_dispatcher().dispatch(":nick!u@h PRIVMSG #chan :hello")

        handler.applies_to.assert_called_once_with("PRIVMSG", ":nick!u@h PRIVMSG #chan :hello")
        handler.process.assert_not_called()

    def test_numeric_handlers_see_parsed_code(self):
        """Test that numeric handlers match on the integer code."""
        handler = Mock()
        handler.applies_to.return_value = False
        self.registry.add_numeric_handler(handler)

        self.make_dispatcher().dispatch(":srv 005 me CHANTYPES=# :are supported")

        handler.applies_to.assert_called_once_with(5)

    def test_all_matching_handlers_run_in_order(self, numeric_recorder):
        """Test that every matching handler runs, in registry order."""
        log = []
        self.registry.add_numeric_handler(numeric_recorder([1], log, "H1"))
        self.registry.add_numeric_handler(numeric_recorder([2], log, "skipped"))
        self.registry.add_numeric_handler(numeric_recorder([1], log, "H2"))

        self.make_dispatcher().dispatch(":srv 001 me :hi")

        assert log == ["H1", "H2"]

    def test_handlers_run_on_dispatching_thread(self):
        """Test that handlers run synchronously, never concurrently."""
        threads = []
        self.registry.add_command_handler(FunctionCommandHandler(
            [], lambda line, parts, conn: threads.append(threading.current_thread())))
        self.registry.add_command_handler(FunctionCommandHandler(
            [], lambda line, parts, conn: threads.append(threading.current_thread())))

        self.make_dispatcher().dispatch("NOTICE * :hi")

        assert threads == [threading.current_thread()] * 2

    def test_each_handler_gets_its_own_parts(self):
        """Test that a handler mutating its tokens does not affect the next."""
        seen = []

        def mutate(line, parts, conn):
            parts.clear()

        self.registry.add_command_handler(FunctionCommandHandler([], mutate))
        self.registry.add_command_handler(FunctionCommandHandler([], lambda line, parts, conn: seen.append(parts)))

        self.make_dispatcher().dispatch("PING :x")

        assert seen == [["PING", ":x"]]

    def test_blank_lines_are_skipped(self, command_recorder):
        """Test that empty lines are not dispatched."""
        command = command_recorder()
        self.registry.add_command_handler(command)
        dispatcher = self.make_dispatcher()

        assert dispatcher.dispatch("   ") is True
        assert command.calls == []
        assert dispatcher.lines_dispatched == 0

    def test_handler_connection_back_reference(self):
        """Test that handlers can write through the connection they receive."""
        self.registry.add_command_handler(FunctionCommandHandler(
            ["PING"], lambda line, parts, conn: conn.write_line("PONG " + parts[1])))

        self.make_dispatcher().dispatch("PING :abc")

        self.connection.write_line.assert_called_once_with("PONG :abc")


class TestHandlerFailures:
    """Test handler failure policy."""

    def setup_method(self):
        """Set up test fixtures."""
        self.registry = HandlerRegistry()
        self.report_error = Mock()
        self.after = []

        def explode(line, parts, conn):
            raise RuntimeError("handler bug")

        self.registry.add_command_handler(FunctionCommandHandler(["BOOM"], explode))
        self.registry.add_command_handler(FunctionCommandHandler(
            [], lambda line, parts, conn: self.after.append(line)))

    def test_isolated_failure_continues(self):
        """Test that by default a failing handler is reported and dispatch continues."""
        dispatcher = LineDispatcher(line_source("BOOM now", "PING :x"), self.registry,
                                    Mock(), self.report_error)

        dispatcher.run()

        assert self.after == ["BOOM now", "PING :x"]
        self.report_error.assert_called_once()
        error = self.report_error.call_args[0][0]
        assert isinstance(error, HandlerError)
        assert error.line == "BOOM now"
        assert isinstance(error.__cause__, RuntimeError)
        assert dispatcher.state is DispatcherState.STOPPED

    def test_fail_fast_stops_the_loop(self):
        """Test that without isolation a failing handler stops the read loop."""
        dispatcher = LineDispatcher(line_source("BOOM now", "PING :x"), self.registry,
                                    Mock(), self.report_error, isolate_handler_errors=False)

        dispatcher.run()

        assert self.after == []
        self.report_error.assert_called_once()
        assert dispatcher.state is DispatcherState.STOPPED
        assert dispatcher.lines_dispatched == 1


class TestLifecycle:
    """Test the IDLE -> RUNNING -> STOPPED state machine."""

    def test_initial_state(self):
        """Test that a new dispatcher is idle."""
        dispatcher = LineDispatcher(line_source(), HandlerRegistry(), Mock(), Mock())

        assert dispatcher.state is DispatcherState.IDLE
        assert not dispatcher.is_running()

    def test_stops_at_end_of_stream(self, numeric_recorder):
        """Test that the loop processes every line and stops at end-of-stream."""
        registry = HandlerRegistry()
        numeric = numeric_recorder()
        registry.add_numeric_handler(numeric)
        dispatcher = LineDispatcher(line_source(":s 001 a :b", ":s 002 a :c"), registry, Mock(), Mock())

        dispatcher.start()

        assert dispatcher.join(timeout=5.0)
        assert dispatcher.state is DispatcherState.STOPPED
        assert [call[0] for call in numeric.calls] == [":s 001 a :b", ":s 002 a :c"]
        assert dispatcher.lines_dispatched == 2

    def test_start_runs_in_background(self):
        """Test that start() returns while the loop blocks on a read."""
        release = threading.Event()

        def blocking_read():
            release.wait(5.0)
            return None

        dispatcher = LineDispatcher(blocking_read, HandlerRegistry(), Mock(), Mock(), name="bg-test")
        thread = dispatcher.start()

        assert thread.name == "bg-test"
        assert thread.daemon
        assert dispatcher.is_running()
        release.set()
        assert dispatcher.join(timeout=5.0)

    def test_stopped_is_terminal(self):
        """Test that a stopped dispatcher cannot be restarted."""
        dispatcher = LineDispatcher(line_source(), HandlerRegistry(), Mock(), Mock())
        dispatcher.run()

        with pytest.raises(ConnectionStateError):
            dispatcher.start()
        with pytest.raises(ConnectionStateError):
            dispatcher.run()

    def test_no_handler_calls_after_stop(self, command_recorder):
        """Test that nothing is dispatched once the stream has ended."""
        registry = HandlerRegistry()
        command = command_recorder()
        registry.add_command_handler(command)
        reads = Mock(side_effect=["PING :1", None, "PING :2"])

        dispatcher = LineDispatcher(reads, registry, Mock(), Mock())
        dispatcher.run()

        assert [call[0] for call in command.calls] == ["PING :1"]
        assert reads.call_count == 2

    def test_on_stopped_runs_before_join_returns(self):
        """Test that the stop hook has run by the time join() reports STOPPED."""
        stopped_states = []
        dispatcher = LineDispatcher(line_source("PING :1"), HandlerRegistry(), Mock(), Mock(),
                                    on_stopped=lambda: stopped_states.append(dispatcher.state))

        dispatcher.start()

        assert dispatcher.join(timeout=5.0)
        assert stopped_states == [DispatcherState.STOPPED]

    def test_on_stopped_after_fail_fast(self):
        """Test that the stop hook also runs when a handler failure ends the loop."""
        registry = HandlerRegistry()

        @registry.on_command("BOOM")
        def explode(line, parts, conn):
            raise RuntimeError("handler bug")

        on_stopped = Mock()
        dispatcher = LineDispatcher(line_source("BOOM", "PING :x"), registry, Mock(), Mock(),
                                    isolate_handler_errors=False, on_stopped=on_stopped)

        dispatcher.run()

        on_stopped.assert_called_once_with()
