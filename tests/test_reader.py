"""Tests for opening and reading the event stream."""

import asyncio

import httpx
import orjson
import pytest

from kaiz_chat.streaming.reader import ChunkReader
from kaiz_chat.utils.exceptions import TransportError

BASE_URL = "http://kaiz.test"
STREAM_PATH = "/api/v1/command-center/smart-input/stream"


def make_reader(handler, read_timeout=None) -> ChunkReader:
    client = httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(handler))
    return ChunkReader(client, STREAM_PATH, read_timeout=read_timeout)


async def read_all(stream) -> list[str]:
    return [text async for text in stream]


@pytest.mark.asyncio
async def test_open_sends_stream_headers_and_body(sse_response):
    seen = {}

    def handler(request: httpx.Request):
        seen["accept"] = request.headers["accept"]
        seen["authorization"] = request.headers["authorization"]
        seen["body"] = orjson.loads(request.content)
        return sse_response(["data: x\n\n"])

    reader = make_reader(handler)
    async with await reader.open({"text": "hi"}, {"Authorization": "Bearer abc"}) as stream:
        assert await read_all(stream) == ["data: x\n\n"]

    assert seen == {
        "accept": "text/event-stream",
        "authorization": "Bearer abc",
        "body": {"text": "hi"},
    }


@pytest.mark.asyncio
async def test_multibyte_character_split_across_chunks(sse_response):
    encoded = "data: café ☕\n\n".encode()
    split = encoded.index("é".encode()) + 1
    cup = encoded.index("☕".encode()) + 2
    chunks = [encoded[:split], encoded[split:cup], encoded[cup:]]

    reader = make_reader(lambda request: sse_response(chunks))
    stream = await reader.open({})
    text = "".join(await read_all(stream))

    assert text == "data: café ☕\n\n"
    assert "\ufffd" not in text


@pytest.mark.asyncio
async def test_next_returns_none_at_end_of_stream(sse_response):
    reader = make_reader(lambda request: sse_response(["data: a\n"]))
    stream = await reader.open({})
    assert await stream.next() == "data: a\n"
    assert await stream.next() is None
    assert await stream.next() is None


@pytest.mark.asyncio
async def test_error_status_raises_transport_error():
    def handler(request):
        return httpx.Response(500, json={"success": False, "message": "AI unavailable"})

    reader = make_reader(handler)
    with pytest.raises(TransportError) as exc_info:
        await reader.open({})

    assert exc_info.value.status_code == 500
    assert "AI unavailable" in str(exc_info.value)


@pytest.mark.asyncio
async def test_non_event_stream_response_raises_transport_error():
    reader = make_reader(lambda request: httpx.Response(200, json={"data": "Hello"}))
    with pytest.raises(TransportError, match="Streaming not supported"):
        await reader.open({})


@pytest.mark.asyncio
async def test_connection_failure_raises_transport_error():
    def handler(request):
        raise httpx.ConnectError("Connection refused", request=request)

    reader = make_reader(handler)
    with pytest.raises(TransportError, match="Connection failed"):
        await reader.open({})


@pytest.mark.asyncio
async def test_read_deadline_raises_transport_error(sse_response):
    reader = make_reader(lambda request: sse_response(["data: a\n"], hang=True), read_timeout=0.05)
    stream = await reader.open({})

    assert await stream.next() == "data: a\n"
    with pytest.raises(TransportError, match="Timed out") as exc_info:
        await stream.next()
    assert isinstance(exc_info.value.__cause__, asyncio.TimeoutError)
    await stream.aclose()


@pytest.mark.asyncio
async def test_open_deadline_raises_transport_error(sse_response):
    async def handler(request):
        await asyncio.sleep(1)
        return sse_response([])

    reader = make_reader(handler, read_timeout=0.05)
    with pytest.raises(TransportError, match="Timed out"):
        await reader.open({})
