"""
Application Constants

Defines constants used throughout the IRC client core.
"""

# Protocol constants
LINE_TERMINATOR = "\r\n"
LINE_ENDING_CHARS = "\r\n"
ORIGIN_PREFIX = ":"
DEFAULT_ENCODING = "utf-8"
DEFAULT_ENCODING_ERRORS = "replace"

# Outgoing command verbs
class Commands:
    """Command verbs produced by the client core."""
    JOIN = "JOIN"
    NICK = "NICK"
    USER = "USER"
    PING = "PING"
    PONG = "PONG"
    QUIT = "QUIT"

# Numeric replies referenced by the bundled command-line client
RPL_WELCOME = 1

# Default network settings
DEFAULT_SERVER_HOST = "127.0.0.1"
DEFAULT_SERVER_PORT = 6667
DEFAULT_SSL_PORT = 6697

# Timing constants (None means block without a deadline)
DEFAULT_CONNECT_TIMEOUT = None
DEFAULT_READ_TIMEOUT = None
DEFAULT_JOIN_TIMEOUT = 2.0

# Logging
WIRE_LOGGER_NAME = "irc_client.wire"
WIRE_IN_MARKER = " (in)"
WIRE_OUT_MARKER = "(out)"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Command-line client
QUIT_COMMAND = "/quit"
