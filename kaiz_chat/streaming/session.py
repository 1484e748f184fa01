"""
Stream session lifecycle for the smart-input chat stream.

A session opens the event stream, pumps chunks through
LineFramer -> EventAccumulator -> EventDispatcher, and ends in exactly one
terminal state:

    IDLE -> CONNECTING -> STREAMING -> COMPLETED | ERRORED | CANCELLED
    IDLE -> CONNECTING -> FALLBACK_PENDING -> COMPLETED | ERRORED | CANCELLED

If the stream cannot be opened the session falls back to the non-streaming
endpoint. Cancellation is cooperative: a CancellationToken is checked before
every read and before every dispatch, and the pump task is cancelled so a
pending read or fallback request is aborted as well.
"""

import asyncio
import logging
import uuid
from enum import Enum
from typing import Callable, Dict, FrozenSet, List, Optional

from kaiz_chat.models.events import SSEEvent, StreamCallbacks
from kaiz_chat.models.request import ChatRequest
from kaiz_chat.streaming.accumulator import EventAccumulator
from kaiz_chat.streaming.dispatcher import EventDispatcher
from kaiz_chat.streaming.fallback import FallbackClient
from kaiz_chat.streaming.framer import LineFramer
from kaiz_chat.streaming.reader import ChunkReader, ChunkStream
from kaiz_chat.utils.auth import bearer_headers
from kaiz_chat.utils.exceptions import CancellationError, FallbackError, TransportError

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    STREAMING = "streaming"
    FALLBACK_PENDING = "fallback_pending"
    COMPLETED = "completed"
    ERRORED = "errored"
    CANCELLED = "cancelled"


TERMINAL_STATES: FrozenSet[SessionState] = frozenset(
    {SessionState.COMPLETED, SessionState.ERRORED, SessionState.CANCELLED}
)

LIVE_STATES: FrozenSet[SessionState] = frozenset(
    {SessionState.CONNECTING, SessionState.STREAMING, SessionState.FALLBACK_PENDING}
)

ALLOWED_TRANSITIONS: Dict[SessionState, FrozenSet[SessionState]] = {
    SessionState.IDLE: frozenset(
        {SessionState.CONNECTING, SessionState.ERRORED, SessionState.CANCELLED}
    ),
    SessionState.CONNECTING: frozenset(
        {
            SessionState.STREAMING,
            SessionState.FALLBACK_PENDING,
            SessionState.ERRORED,
            SessionState.CANCELLED,
        }
    ),
    SessionState.STREAMING: TERMINAL_STATES,
    SessionState.FALLBACK_PENDING: TERMINAL_STATES,
    SessionState.COMPLETED: frozenset(),
    SessionState.ERRORED: frozenset(),
    SessionState.CANCELLED: frozenset(),
}


class CancellationToken:
    """Shared flag checked by the pump at its cancellation points."""

    def __init__(self):
        self._cancelled = False

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise CancellationError()


class StreamSession:
    """One streaming request/response exchange and its callbacks."""

    def __init__(
        self,
        reader: ChunkReader,
        fallback: FallbackClient,
        request: ChatRequest,
        callbacks: StreamCallbacks,
        session_id: Optional[str] = None,
    ):
        self.id = session_id or uuid.uuid4().hex[:8]
        self.request = request
        self.callbacks = callbacks
        self._reader = reader
        self._fallback = fallback

        self._state = SessionState.IDLE
        self._cancel_token = CancellationToken()
        self._framer = LineFramer()
        self._accumulator = EventAccumulator()
        self._dispatcher = EventDispatcher()
        self._tokens: List[str] = []
        self._task: Optional[asyncio.Task] = None

        # Callbacks handed to the dispatcher; they enforce the terminal rules
        self._guarded = StreamCallbacks(
            on_token=self._on_token,
            on_complete=self._on_complete,
            on_error=self._on_error,
        )

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_terminal(self) -> bool:
        return self._state in TERMINAL_STATES

    @property
    def is_live(self) -> bool:
        return self._state in LIVE_STATES

    @property
    def text(self) -> str:
        """Cumulative text delivered through on_token so far."""
        return "".join(self._tokens)

    # ------------------------------------------------------------------
    # Public lifecycle
    # ------------------------------------------------------------------

    def start(self, token: str) -> None:
        """
        Begin streaming on the running event loop.

        Raises:
            RuntimeError: if no event loop is running; the session stays IDLE
        """
        loop = asyncio.get_running_loop()
        self._transition(SessionState.CONNECTING)
        logger.info(f"[{self.id}] Opening stream to {self._reader.path}")
        self._task = loop.create_task(
            self._run(bearer_headers(token)), name=f"stream-session-{self.id}"
        )

    def reject(self, message: str) -> None:
        """End the session before any network activity (e.g. no credential)."""
        logger.warning(f"[{self.id}] Stream rejected: {message}")
        self._on_error(message)

    def cancel(self) -> None:
        """Stop the session silently; no further callbacks fire."""
        if self.is_terminal:
            return
        self._cancel_token.cancel()
        self._transition(SessionState.CANCELLED)
        logger.info(f"[{self.id}] Streaming cancelled by user")

        # From inside a callback the pump stops at its next checkpoint and
        # closes the stream itself
        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        if self._task is not None and not self._task.done() and self._task is not current:
            self._task.cancel()

    async def wait(self) -> SessionState:
        """Wait for the pump to finish and return the final state."""
        if self._task is not None:
            await asyncio.wait({self._task})
        return self._state

    # ------------------------------------------------------------------
    # Pump
    # ------------------------------------------------------------------

    async def _run(self, headers: dict) -> None:
        payload = self.request.to_payload()
        try:
            try:
                stream = await self._reader.open(payload, headers)
            except TransportError as e:
                self._cancel_token.raise_if_cancelled()
                logger.warning(f"[{self.id}] Streaming unavailable ({e}), using non-streaming request")
                await self._run_fallback(payload, headers)
                return

            try:
                self._cancel_token.raise_if_cancelled()
                self._transition(SessionState.STREAMING)
                await self._pump(stream)
            finally:
                await stream.aclose()

        except CancellationError:
            logger.debug(f"[{self.id}] Pump stopped after cancellation")
        except TransportError as e:
            logger.warning(f"[{self.id}] Stream failed: {e}")
            self._on_error(str(e))
        except Exception as e:
            logger.exception(f"[{self.id}] Unexpected streaming failure")
            self._on_error(f"Streaming failed: {e}")

    async def _pump(self, stream: ChunkStream) -> None:
        while True:
            self._cancel_token.raise_if_cancelled()
            chunk = await stream.next()
            if chunk is None:
                break
            for line in self._framer.feed(chunk):
                self._deliver(self._accumulator.process(line))
            if self.is_terminal:
                return

        for line in self._framer.flush():
            self._deliver(self._accumulator.process(line))
        self._deliver(self._accumulator.finish())

        if not self.is_terminal:
            logger.info(f"[{self.id}] Stream ended without done event, completing with streamed text")
            self._on_complete(self.text)

    def _deliver(self, event: Optional[SSEEvent]) -> None:
        if event is None:
            return
        self._cancel_token.raise_if_cancelled()
        self._dispatcher.dispatch(event, self._guarded)

    async def _run_fallback(self, payload: dict, headers: dict) -> None:
        self._transition(SessionState.FALLBACK_PENDING)
        try:
            full_text = await self._fallback.send(payload, headers)
        except FallbackError as e:
            self._on_error(str(e))
            return
        self._on_complete(full_text)

    # ------------------------------------------------------------------
    # Guarded callbacks
    # ------------------------------------------------------------------

    def _on_token(self, text: str) -> None:
        if self._cancel_token.is_cancelled or self.is_terminal:
            return
        self._tokens.append(text)
        self._invoke(self.callbacks.on_token, text)

    def _on_complete(self, full_text: str) -> None:
        if self._finish(SessionState.COMPLETED):
            logger.info(f"[{self.id}] Stream completed, length={len(full_text)}")
            self._invoke(self.callbacks.on_complete, full_text)

    def _on_error(self, message: str) -> None:
        if self._finish(SessionState.ERRORED):
            self._invoke(self.callbacks.on_error, message)

    def _finish(self, state: SessionState) -> bool:
        if self._cancel_token.is_cancelled or self.is_terminal:
            return False
        self._transition(state)
        return True

    def _invoke(self, callback: Callable[[str], None], value: str) -> None:
        try:
            callback(value)
        except Exception:
            name = getattr(callback, "__name__", repr(callback))
            logger.exception(f"[{self.id}] Callback {name} raised")

    def _transition(self, new_state: SessionState) -> None:
        if new_state not in ALLOWED_TRANSITIONS[self._state]:
            raise RuntimeError(
                f"Invalid session transition {self._state.value} -> {new_state.value}"
            )
        logger.debug(f"[{self.id}] {self._state.value} -> {new_state.value}")
        self._state = new_state
