"""
Response normalization utilities.

The backend wraps non-streaming results in an ApiResponse envelope
({"success", "data", "message"}) and reports errors as JSON bodies with a
"message" or "error" field. These helpers turn either into plain strings.
"""

import logging
from typing import Any, Optional

import orjson

logger = logging.getLogger(__name__)

# Priority order for extracting text from a response object
TEXT_KEYS = (
    "response",
    "text",
    "content",
    "fullText",
)

# Priority order for extracting an error description
ERROR_KEYS = (
    "message",
    "error",
    "detail",
)


def unwrap_envelope(payload: Any) -> Any:
    """Return the "data" member of an ApiResponse envelope, else the payload."""
    if isinstance(payload, dict) and "data" in payload and (
        "success" in payload or len(payload) == 1
    ):
        return payload["data"]
    return payload


def normalize_response_text(payload: Any) -> str:
    """
    Turn a decoded non-streaming response into the full response text.

    Examples:
        >>> normalize_response_text({"success": True, "data": "Hello"})
        'Hello'

        >>> normalize_response_text({"data": {"status": "READY"}})
        '{"status":"READY"}'
    """
    payload = unwrap_envelope(payload)

    if payload is None:
        return ""
    if isinstance(payload, str):
        return payload

    # {"response": "..."} style single-field bodies
    if isinstance(payload, dict) and len(payload) == 1:
        (key, value), = payload.items()
        if key in TEXT_KEYS and isinstance(value, str):
            return value

    # Structured result: hand back the JSON text, the same shape the
    # stream's "done" event carries
    return orjson.dumps(payload).decode()


def extract_error_message(body: bytes, default: Optional[str] = None) -> str:
    """Extract a human readable error from an HTTP error body."""
    if not body:
        return default or ""

    try:
        data = orjson.loads(body)
    except orjson.JSONDecodeError:
        return body.decode("utf-8", errors="replace").strip() or (default or "")

    if isinstance(data, dict):
        for key in ERROR_KEYS:
            value = data.get(key)
            if isinstance(value, str) and value:
                return value
            # {"error": {"message": "..."}}
            if isinstance(value, dict) and isinstance(value.get("message"), str):
                return value["message"]

    if isinstance(data, str) and data:
        return data

    logger.debug(f"Unrecognized error body shape: {type(data).__name__}")
    return default or body.decode("utf-8", errors="replace")
