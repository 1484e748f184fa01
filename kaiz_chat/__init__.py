from kaiz_chat.client import StreamingChat
from kaiz_chat.models import ChatRequest, StreamCallbacks
from kaiz_chat.streaming import SessionState, StreamSession
from kaiz_chat.utils.auth import StaticTokenProvider

__all__ = [
    "ChatRequest",
    "SessionState",
    "StaticTokenProvider",
    "StreamCallbacks",
    "StreamSession",
    "StreamingChat",
]
