"""
IRC Client Core

Transport and dispatch core of an IRC client: one connection to one
server, line framing, numeric/command classification and handler
dispatch. Local state is only changed by handlers reacting to server
lines, never by outgoing requests.
"""

from .client.handlers import (
    FunctionCommandHandler,
    FunctionNumericHandler,
    HandlerRegistry,
)
from .client.irc_connection import IrcConnection
from .shared.models import Server, User

__version__ = "1.0.0"

__all__ = [
    "IrcConnection",
    "HandlerRegistry",
    "FunctionNumericHandler",
    "FunctionCommandHandler",
    "Server",
    "User",
]
