"""Shared fixtures for streaming chat tests."""

import asyncio
from typing import AsyncIterator, Iterable, Union

import httpx
import pytest

from kaiz_chat.client import StreamingChat
from kaiz_chat.config import Settings
from kaiz_chat.models.events import StreamCallbacks
from kaiz_chat.utils.auth import StaticTokenProvider

BASE_URL = "http://kaiz.test"


class CallbackRecorder:
    """Records callback invocations in order."""

    def __init__(self):
        self.calls = []

    def on_token(self, text):
        self.calls.append(("token", text))

    def on_complete(self, full_text):
        self.calls.append(("complete", full_text))

    def on_error(self, message):
        self.calls.append(("error", message))

    @property
    def callbacks(self) -> StreamCallbacks:
        return StreamCallbacks(
            on_token=self.on_token,
            on_complete=self.on_complete,
            on_error=self.on_error,
        )

    @property
    def tokens(self):
        return [value for kind, value in self.calls if kind == "token"]

    @property
    def terminal_calls(self):
        return [call for call in self.calls if call[0] in ("complete", "error")]


@pytest.fixture
def recorder():
    return CallbackRecorder()


@pytest.fixture
def recorder_factory():
    return CallbackRecorder


async def _chunked(chunks: Iterable[Union[str, bytes]], hang: bool = False) -> AsyncIterator[bytes]:
    for chunk in chunks:
        yield chunk.encode() if isinstance(chunk, str) else chunk
        await asyncio.sleep(0)
    if hang:
        await asyncio.Event().wait()


@pytest.fixture
def sse_response():
    """Build a text/event-stream response delivering the given chunks."""

    def _build(chunks, status_code=200, hang=False, content_type="text/event-stream"):
        return httpx.Response(
            status_code,
            headers={"content-type": content_type},
            content=_chunked(chunks, hang=hang),
        )

    return _build


@pytest.fixture
def make_chat():
    """Build a StreamingChat wired to an httpx.MockTransport handler."""

    def _make(handler, token="test-token", **overrides):
        test_settings = Settings(api_url=BASE_URL, **overrides)
        client = httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(handler))
        return StreamingChat(
            credentials=StaticTokenProvider(token),
            settings=test_settings,
            client=client,
        )

    return _make
