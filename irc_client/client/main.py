"""
IRC Client Main Entry Point

Command-line client built on IrcConnection: registers, joins the
configured channels once the server has welcomed it, answers PING and
prints every server line. Lines typed on stdin are sent raw.
"""

import argparse
import sys
from typing import Callable, List, Optional, Sequence

from rich.console import Console
from rich.text import Text

from irc_client.client.handlers import FunctionCommandHandler, FunctionNumericHandler, HandlerRegistry
from irc_client.client.irc_connection import IrcConnection
from irc_client.shared.config import ClientConfig, ConfigurationLoader
from irc_client.shared.constants import (
    Commands,
    DEFAULT_JOIN_TIMEOUT,
    DEFAULT_SERVER_PORT,
    DEFAULT_SSL_PORT,
    QUIT_COMMAND,
    RPL_WELCOME,
)
from irc_client.shared.exceptions import ConfigurationError, TrustPolicyError
from irc_client.shared.framing import pong_command
from irc_client.shared.logging_config import get_logger, setup_logging
from irc_client.shared.models import ConnectionStatus


class LinePrinter:
    """Renders server lines on a Rich console."""

    COMMAND_STYLES = {
        "PRIVMSG": "white",
        "NOTICE": "yellow",
        "JOIN": "green",
        "PART": "green",
        "QUIT": "green",
        "NICK": "magenta",
        "ERROR": "bold red",
    }

    def __init__(self, console: Console) -> None:
        self.console = console

    def print_numeric(self, line: str, parts: Sequence[str], connection: IrcConnection) -> None:
        # 4xx and 5xx numerics are error replies
        code = parts[1] if line.startswith(":") and len(parts) > 1 else parts[0]
        style = "red" if code[:1] in ("4", "5") else "cyan"
        self.console.print(Text(line, style=style))

    def print_command(self, line: str, parts: Sequence[str], connection: IrcConnection) -> None:
        command = parts[1] if line.startswith(":") and len(parts) > 1 else parts[0]
        self.console.print(Text(line, style=self.COMMAND_STYLES.get(command.upper(), "dim")))


def build_registry(config: ClientConfig, console: Console) -> HandlerRegistry:
    """
    Build the handlers used by the command-line client.

    Args:
        config: Client configuration (channels to join).
        console: Console the printer writes to.

    Returns:
        A registry ready to hand to IrcConnection.
    """
    registry = HandlerRegistry()

    @registry.on_command(Commands.PING)
    def reply_to_ping(line: str, parts: Sequence[str], connection: IrcConnection) -> None:
        connection.write_line(pong_command(parts))

    @registry.on_numeric(RPL_WELCOME)
    def join_configured_channels(line: str, parts: Sequence[str], connection: IrcConnection) -> None:
        for channel in config.channels:
            connection.join_channel(channel)

    printer = LinePrinter(console)
    registry.add_numeric_handler(FunctionNumericHandler((), printer.print_numeric))
    registry.add_command_handler(FunctionCommandHandler((), printer.print_command))
    return registry


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="irc-client", description="Minimal IRC client")
    parser.add_argument("--config", help="Path to a JSON or YAML configuration file")
    parser.add_argument("--host", help="Server host name")
    parser.add_argument("--port", type=int, help="Server port")
    parser.add_argument("--ssl", action="store_true", default=None, help="Connect with TLS")
    parser.add_argument("--accept-all-certs", action="store_true", default=None,
                        help="Accept any TLS certificate (self-signed or test servers only)")
    parser.add_argument("--nick", help="Nickname to register")
    parser.add_argument("--username", help="User name sent with USER")
    parser.add_argument("--real-name", dest="real_name", help="Real name sent with USER")
    parser.add_argument("--channel", dest="channels", action="append",
                        help="Channel to join after the server welcomes us (repeatable)")
    parser.add_argument("--log-level", dest="log_level", help="Logging level")
    parser.add_argument("--log-file", dest="log_file", help="Write logs to this file as well")
    parser.add_argument("--no-trace", dest="trace_wire", action="store_false", default=None,
                        help="Do not log every line sent and received")
    return parser.parse_args(argv)


def load_config(args: argparse.Namespace) -> ClientConfig:
    """
    Load configuration from file and environment, then apply command line overrides.

    Raises:
        ConfigurationError: If the resulting configuration is invalid.
    """
    config = ConfigurationLoader.load_client_config(args.config)
    for name in ("host", "port", "ssl", "accept_all_certs", "nick", "username",
                 "real_name", "channels", "log_level", "trace_wire"):
        value = getattr(args, name, None)
        if value is not None:
            setattr(config, name, value)
    if args.ssl and args.port is None and config.port == DEFAULT_SERVER_PORT:
        config.port = DEFAULT_SSL_PORT
    config.validate()
    return config


def run_input_loop(connection: IrcConnection,
                   read_input: Callable[[], str],
                   console: Console) -> None:
    """
    Send typed lines until the user quits or input ends.

    ``/quit [message]`` sends QUIT and disconnects, ``/join <channel>``
    joins a channel; anything else is sent verbatim.
    """
    while connection.is_running():
        try:
            text = read_input()
        except EOFError:
            text = QUIT_COMMAND

        text = text.strip()
        if not text:
            continue

        if text.split()[0].lower() == QUIT_COMMAND:
            reason = text[len(QUIT_COMMAND):].strip()
            connection.write_line(f"{Commands.QUIT} :{reason}" if reason else Commands.QUIT)
            break
        if text.lower().startswith("/join "):
            connection.join_channel(text.split(None, 1)[1])
            continue
        connection.write_line(text)

    if not connection.wait_until_stopped(DEFAULT_JOIN_TIMEOUT):
        connection.disconnect()
        connection.wait_until_stopped(DEFAULT_JOIN_TIMEOUT)
    console.print("[bold blue]Disconnected.[/bold blue]")


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the IRC client.

    Returns:
        Exit code (0 success, 1 unexpected error, 2 configuration error,
        3 connection failure).
    """
    console = Console()
    args = parse_args(argv)

    try:
        config = load_config(args)
    except ConfigurationError as e:
        console.print(f"[bold red]Configuration error: {e}[/bold red]")
        return 2

    setup_logging(level=config.log_level, log_file=args.log_file, trace_wire=config.trace_wire)
    logger = get_logger(__name__)

    connection = IrcConnection(config.to_server(), build_registry(config, console), config)
    connection.set_accept_all_ssl_certs(config.accept_all_certs)

    def on_exception(error: Exception) -> None:
        console.print(f"[bold red]{error}[/bold red]")

    connection.set_exception_handler(on_exception)

    try:
        connection.connect()
        if connection.status is ConnectionStatus.ERROR:
            return 3

        connection.register_as(config.to_user())
        run_input_loop(connection, console.input, console)
        return 0

    except KeyboardInterrupt:
        logger.info("Client interrupted by user")
        if connection.is_running():
            connection.write_line(Commands.QUIT)
        return 0

    except TrustPolicyError as e:
        logger.critical("TLS setup failed: %s", e)
        return 1

    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        return 1

    finally:
        if connection.is_open():
            connection.disconnect()


if __name__ == "__main__":
    sys.exit(main())
