from kaiz_chat.streaming.accumulator import EventAccumulator
from kaiz_chat.streaming.dispatcher import EventDispatcher
from kaiz_chat.streaming.fallback import FallbackClient
from kaiz_chat.streaming.framer import LineFramer
from kaiz_chat.streaming.reader import ChunkReader, ChunkStream
from kaiz_chat.streaming.session import CancellationToken, SessionState, StreamSession

__all__ = [
    "CancellationToken",
    "ChunkReader",
    "ChunkStream",
    "EventAccumulator",
    "EventDispatcher",
    "FallbackClient",
    "LineFramer",
    "SessionState",
    "StreamSession",
]
