import asyncio
import codecs
import logging
from typing import AsyncIterator, Awaitable, Optional, TypeVar

import httpx
import orjson

from kaiz_chat.utils.exceptions import TransportError
from kaiz_chat.utils.normalize import extract_error_message

logger = logging.getLogger(__name__)

# Constants
EVENT_STREAM_MEDIA_TYPE = "text/event-stream"
STREAM_HEADERS = {
    "Accept": EVENT_STREAM_MEDIA_TYPE,
    "Content-Type": "application/json",
}

T = TypeVar("T")


async def _with_deadline(awaitable: Awaitable[T], timeout: Optional[float], what: str) -> T:
    """Await with an optional deadline, turning expiry into a TransportError."""
    if timeout is None:
        return await awaitable
    try:
        return await asyncio.wait_for(awaitable, timeout)
    except asyncio.TimeoutError as e:
        raise TransportError(f"Timed out after {timeout}s waiting for {what}") from e


class ChunkStream:
    """
    An open event stream, read one decoded text delta at a time.

    Decoding goes through an incremental UTF-8 decoder owned by this stream,
    so a multi-byte character split across two network chunks comes out
    whole once its second half arrives.
    """

    def __init__(self, response: httpx.Response, read_timeout: Optional[float] = None):
        self._response = response
        self._chunks = response.aiter_bytes()
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._read_timeout = read_timeout
        self._finished = False

    @property
    def response(self) -> httpx.Response:
        return self._response

    async def next(self) -> Optional[str]:
        """Return the next text delta, or None at end of stream."""
        while not self._finished:
            raw = await _with_deadline(self._next_raw(), self._read_timeout, "stream data")
            if raw is None:
                self._finished = True
                tail = self._decoder.decode(b"", final=True)
                return tail or None
            text = self._decoder.decode(raw)
            if text:
                return text
        return None

    async def _next_raw(self) -> Optional[bytes]:
        try:
            return await self._chunks.__anext__()
        except StopAsyncIteration:
            return None
        except httpx.HTTPError as e:
            raise TransportError(f"Stream read failed: {e}") from e

    async def aclose(self):
        """Abort the underlying HTTP response."""
        self._finished = True
        await self._response.aclose()

    def __aiter__(self) -> AsyncIterator[str]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[str]:
        while True:
            text = await self.next()
            if text is None:
                return
            yield text

    async def __aenter__(self) -> "ChunkStream":
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()


class ChunkReader:
    """Opens the smart-input event stream over an httpx client."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        path: str,
        read_timeout: Optional[float] = None,
    ):
        self._client = client
        self.path = path
        self.read_timeout = read_timeout

    async def open(self, payload: dict, headers: Optional[dict] = None) -> ChunkStream:
        """
        POST the request and return the open stream.

        Raises:
            TransportError: connection failure, non-success status, a
                response that is not an event stream, or a missed deadline
        """
        request = self._client.build_request(
            "POST",
            self.path,
            content=orjson.dumps(payload),
            headers={**STREAM_HEADERS, **(headers or {})},
        )

        try:
            response = await _with_deadline(
                self._client.send(request, stream=True), self.read_timeout, "response headers"
            )
        except httpx.HTTPError as e:
            logger.warning(f"Stream connection to {request.url} failed: {e}")
            raise TransportError(f"Connection failed: {e}") from e

        if not response.is_success:
            # Read error response body for better debugging
            try:
                error_body = await response.aread()
            except httpx.HTTPError:
                error_body = b""
            finally:
                await response.aclose()
            error_msg = extract_error_message(error_body, default=response.reason_phrase)
            logger.warning(
                f"Stream request rejected: status={response.status_code}, error={error_msg}"
            )
            raise TransportError(
                f"HTTP {response.status_code}: {error_msg}", status_code=response.status_code
            )

        content_type = response.headers.get("content-type")
        if content_type and not content_type.lower().startswith(EVENT_STREAM_MEDIA_TYPE):
            await response.aclose()
            logger.warning(f"Streaming not supported: got content-type '{content_type}'")
            raise TransportError(f"Streaming not supported (content-type '{content_type}')")

        logger.debug(f"Opened event stream {request.url}")
        return ChunkStream(response, self.read_timeout)
