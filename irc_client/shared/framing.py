"""
Line Framing and Classification

Tokenizes and classifies protocol lines and builds the outgoing
command lines produced by the client core.
"""

from typing import List, Sequence, Union

from .constants import (
    Commands,
    DEFAULT_ENCODING,
    DEFAULT_ENCODING_ERRORS,
    LINE_ENDING_CHARS,
    LINE_TERMINATOR,
    ORIGIN_PREFIX,
)
from .models import Classification, User


def tokenize(line: str) -> List[str]:
    """
    Split a line on whitespace.

    Runs of separators produce no empty tokens.

    Args:
        line: The raw protocol line.

    Returns:
        List of tokens.
    """
    return line.split()


def is_numeric_token(token: str) -> bool:
    """Check whether a token is a numeric reply code."""
    return token.isascii() and token.isdigit()


def classify(line: Union[str, Sequence[str]]) -> Classification:
    """
    Classify a line as a numeric reply or a command.

    An optional leading ``:origin`` token is skipped; the next token is
    the classifying token. A line made of an origin prefix only
    classifies as an empty command.

    Args:
        line: The raw line, or its already tokenized parts.

    Returns:
        The classification of the line.
    """
    parts = tokenize(line) if isinstance(line, str) else list(line)

    index = 1 if parts and parts[0].startswith(ORIGIN_PREFIX) else 0
    token = parts[index] if index < len(parts) else ""

    if is_numeric_token(token):
        return Classification.for_numeric(token)
    return Classification.for_command(token)


def frame_line(text: str, encoding: str = DEFAULT_ENCODING) -> bytes:
    """Append CRLF to a line and encode it for the wire."""
    return (text + LINE_TERMINATOR).encode(encoding)


def strip_line_ending(data: bytes,
                      encoding: str = DEFAULT_ENCODING,
                      errors: str = DEFAULT_ENCODING_ERRORS) -> str:
    """Decode a received line and strip its trailing CR/LF."""
    return data.decode(encoding, errors).rstrip(LINE_ENDING_CHARS)


def join_command(channel: str) -> str:
    return f"{Commands.JOIN} {channel}"


def nick_command(nick: str) -> str:
    return f"{Commands.NICK} {nick}"


def user_command(user: User) -> str:
    return f"{Commands.USER} {user.user} * * :{user.real_name}"


def pong_command(parts: Sequence[str]) -> str:
    """Build the PONG reply for a tokenized PING line."""
    index = 1 if parts and parts[0].startswith(ORIGIN_PREFIX) else 0
    payload = " ".join(parts[index + 1:])
    return f"{Commands.PONG} {payload}" if payload else Commands.PONG
