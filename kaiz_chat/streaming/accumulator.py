import logging
from typing import List, Optional, Tuple

from kaiz_chat.models.events import DEFAULT_EVENT_TYPE, SSEEvent
from kaiz_chat.utils.exceptions import ParseError

logger = logging.getLogger(__name__)

# Constants
COMMENT_PREFIX = ":"
EVENT_FIELD = "event"
DATA_FIELD = "data"


def parse_line(line: str) -> Optional[Tuple[str, str]]:
    """
    Split a non-empty, non-comment SSE line into (field, value).

    Returns None for a line without a colon; such a line carries no field
    value and is ignored. The single space after the colon is not part of
    the value.

    Raises:
        ParseError: if the field name contains whitespace or the line a NUL
    """
    if "\x00" in line:
        raise ParseError("NUL character in line", line)

    field, sep, value = line.partition(":")
    if not sep:
        return None
    if not field or any(c.isspace() for c in field):
        raise ParseError(f"Invalid field name {field!r}", line)

    if value.startswith(" "):
        value = value[1:]
    return field, value


class EventAccumulator:
    """
    Groups framed lines into complete SSE events.

    State is the pending event type plus its data lines. A blank line
    terminates the record; it only emits when at least one data line was
    collected, so bare blank lines act as keep-alives.
    """

    def __init__(self):
        self._type: Optional[str] = None
        self._data_lines: List[str] = []
        self.skipped_lines = 0

    @property
    def has_pending(self) -> bool:
        return bool(self._data_lines)

    def process(self, line: str) -> Optional[SSEEvent]:
        if not line:
            return self._emit()

        if line.startswith(COMMENT_PREFIX):
            return None

        try:
            parsed = parse_line(line)
        except ParseError as e:
            self.skipped_lines += 1
            logger.debug(f"Skipping malformed SSE line: {e} ({e.line!r})")
            return None

        if parsed is None:
            return None

        field, value = parsed
        if field == EVENT_FIELD:
            self._type = value.strip()
        elif field == DATA_FIELD:
            self._data_lines.append(value)
        # id, retry and unknown fields are ignored
        return None

    def finish(self) -> Optional[SSEEvent]:
        """End of stream terminates a record that never saw its blank line."""
        return self._emit()

    def _emit(self) -> Optional[SSEEvent]:
        event = None
        if self._data_lines:
            event = SSEEvent(
                type=self._type or DEFAULT_EVENT_TYPE,
                data="\n".join(self._data_lines),
            )
        self._type = None
        self._data_lines = []
        return event
