import logging
from typing import Optional

import httpx
import orjson

from kaiz_chat.utils.exceptions import FallbackError
from kaiz_chat.utils.normalize import extract_error_message, normalize_response_text

logger = logging.getLogger(__name__)

FALLBACK_HEADERS = {
    "Accept": "application/json",
    "Content-Type": "application/json",
}


class FallbackClient:
    """Non-streaming twin of the smart-input stream: one POST, one JSON body."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        path: str,
        timeout: Optional[float] = None,
    ):
        self._client = client
        self.path = path
        self.timeout = timeout

    async def send(self, payload: dict, headers: Optional[dict] = None) -> str:
        """
        Send the request and return the full response text.

        Raises:
            FallbackError: transport failure, non-success status, or a body
                that is not valid JSON
        """
        request_kwargs = {}
        if self.timeout is not None:
            request_kwargs["timeout"] = self.timeout

        try:
            response = await self._client.post(
                self.path,
                content=orjson.dumps(payload),
                headers={**FALLBACK_HEADERS, **(headers or {})},
                **request_kwargs,
            )
        except httpx.HTTPError as e:
            logger.error(f"Fallback request failed: {e}")
            raise FallbackError(f"Request failed: {e}") from e

        if not response.is_success:
            error_msg = extract_error_message(response.content, default=response.reason_phrase)
            logger.error(
                f"Fallback request rejected: status={response.status_code}, error={error_msg}"
            )
            raise FallbackError(
                f"HTTP {response.status_code}: {error_msg}", status_code=response.status_code
            )

        try:
            body = orjson.loads(response.content)
        except orjson.JSONDecodeError as e:
            logger.error(f"Fallback response is not JSON: {e}")
            raise FallbackError("Invalid response from server") from e

        full_text = normalize_response_text(body)
        logger.debug(f"Fallback response received, length={len(full_text)}")
        return full_text
