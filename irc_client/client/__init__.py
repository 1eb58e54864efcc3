"""
Client Package

Provides the connection facade and the handler registry.
"""

from .handlers import FunctionCommandHandler, FunctionNumericHandler, HandlerRegistry
from .irc_connection import IrcConnection

__all__ = ["IrcConnection", "HandlerRegistry", "FunctionNumericHandler", "FunctionCommandHandler"]
