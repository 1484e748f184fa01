import logging
from typing import Any, Mapping, Optional, Union

import httpx

from kaiz_chat.config import Settings, settings as default_settings
from kaiz_chat.models.events import StreamCallbacks
from kaiz_chat.models.request import ChatRequest, coerce_request
from kaiz_chat.streaming.fallback import FallbackClient
from kaiz_chat.streaming.reader import ChunkReader
from kaiz_chat.streaming.session import StreamSession
from kaiz_chat.utils.auth import CredentialProvider, SettingsTokenProvider, resolve_token
from kaiz_chat.utils.exceptions import AuthError

logger = logging.getLogger(__name__)


class StreamingChat:
    """
    Streaming AI chat for one conversation, with non-streaming fallback.

    At most one stream is live at a time: starting a new one cancels the
    previous one first.

    Usage:
        async with StreamingChat(credentials=StaticTokenProvider(token)) as chat:
            handle = chat.start_stream({"text": "Plan my week"}, callbacks)
            await handle.wait()
    """

    def __init__(
        self,
        credentials: Optional[CredentialProvider] = None,
        settings: Optional[Settings] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.settings = settings or default_settings
        self.credentials = credentials or SettingsTokenProvider()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=self.settings.api_url,
            timeout=httpx.Timeout(
                self.settings.request_timeout, connect=self.settings.connect_timeout
            ),
        )
        self._reader = ChunkReader(
            self._client, self.settings.stream_path, read_timeout=self.settings.read_timeout
        )
        self._fallback = FallbackClient(
            self._client, self.settings.fallback_path, timeout=self.settings.request_timeout
        )
        self._current: Optional[StreamSession] = None

    @property
    def is_streaming(self) -> bool:
        """Whether a session is still live (connecting, streaming or falling back)."""
        return self._current is not None and self._current.is_live

    @property
    def current_session(self) -> Optional[StreamSession]:
        return self._current

    def start_stream(
        self,
        request: Union[ChatRequest, Mapping[str, Any]],
        callbacks: StreamCallbacks,
    ) -> StreamSession:
        """
        Send a message and stream the AI response.

        Must be called from a running event loop. Without a credential,
        on_error("Not authenticated") fires before this returns and no
        request is made.

        Returns:
            The session, which doubles as the handle: cancel(), state, wait()
        """
        self.cancel_stream()

        session = StreamSession(
            reader=self._reader,
            fallback=self._fallback,
            request=coerce_request(request),
            callbacks=callbacks,
        )
        self._current = session

        token = resolve_token(self.credentials)
        if not token:
            session.reject(str(AuthError()))
            return session

        session.start(token)
        return session

    def cancel_stream(self) -> None:
        """Cancel the live session, if any."""
        if self._current is not None and not self._current.is_terminal:
            logger.info(f"Cancelling previous stream session {self._current.id}")
            self._current.cancel()

    async def cleanup(self):
        """Cancel any live stream and close HTTP client resources."""
        self.cancel_stream()
        if self._current is not None:
            await self._current.wait()
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "StreamingChat":
        return self

    async def __aexit__(self, *exc_info):
        await self.cleanup()
