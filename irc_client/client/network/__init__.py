"""
Client Network Layer

Provides the transport, TLS trust policy and line dispatcher used by
IrcConnection.
"""

from .connection import Transport, TransportConfig
from .dispatcher import LineDispatcher
from .trust import build_tls_config

__all__ = ["Transport", "TransportConfig", "LineDispatcher", "build_tls_config"]
