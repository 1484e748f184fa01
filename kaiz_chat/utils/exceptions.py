"""
Error taxonomy for the streaming chat client.

Usage:
    from kaiz_chat.utils.exceptions import TransportError

    raise TransportError("HTTP 500: Internal Server Error", status_code=500)

Only AuthError, FallbackError and mid-stream TransportError ever reach a
caller's on_error callback. ParseError is absorbed by the accumulator and
CancellationError never leaves the session.
"""

from typing import Optional


class ChatStreamError(Exception):
    """Base class for all streaming chat errors."""


class AuthError(ChatStreamError):
    """No credential is available for the request."""

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message)


class TransportError(ChatStreamError):
    """The stream could not be opened or broke while reading."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ParseError(ChatStreamError):
    """A single wire line could not be parsed."""

    def __init__(self, message: str, line: str = ""):
        super().__init__(message)
        self.line = line


class FallbackError(ChatStreamError):
    """The non-streaming request failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class CancellationError(ChatStreamError):
    """Raised at a cancellation checkpoint after the user cancelled."""

    def __init__(self, message: str = "Stream cancelled"):
        super().__init__(message)
