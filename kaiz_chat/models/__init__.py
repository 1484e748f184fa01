from kaiz_chat.models.events import (
    AppEvent,
    Done,
    Error,
    EventType,
    SSEEvent,
    StreamCallbacks,
    Token,
)
from kaiz_chat.models.request import Attachment, ChatRequest

__all__ = [
    "AppEvent",
    "Attachment",
    "ChatRequest",
    "Done",
    "Error",
    "EventType",
    "SSEEvent",
    "StreamCallbacks",
    "Token",
]
