"""
Wire and application event types for the streaming chat client.

SSEEvent is what the accumulator produces from the text/event-stream wire
format. AppEvent is the closed set of domain events the dispatcher maps
SSEEvents onto: Token, Done and Error.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Union

from pydantic import BaseModel, ConfigDict


DEFAULT_EVENT_TYPE = "message"


class SSEEvent(BaseModel):
    """A completed SSE record"""

    model_config = ConfigDict(frozen=True)

    type: str = DEFAULT_EVENT_TYPE
    data: str


class EventType(str, Enum):
    """SSE event names the smart-input stream sends"""

    TOKEN = "token"
    DONE = "done"
    ERROR = "error"


@dataclass(frozen=True)
class Token:
    """Incremental piece of generated text"""

    text: str


@dataclass(frozen=True)
class Done:
    """Stream finished; carries the complete response"""

    full_text: str


@dataclass(frozen=True)
class Error:
    """Server-reported failure"""

    message: str


AppEvent = Union[Token, Done, Error]


@dataclass(frozen=True)
class StreamCallbacks:
    """Callbacks a caller registers for one stream"""

    on_token: Callable[[str], None]
    on_complete: Callable[[str], None]
    on_error: Callable[[str], None]
