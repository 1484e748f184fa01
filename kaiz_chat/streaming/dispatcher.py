import logging
from typing import Callable, Dict, Optional, Set

from kaiz_chat.models.events import (
    AppEvent,
    Done,
    Error,
    EventType,
    SSEEvent,
    StreamCallbacks,
    Token,
)

logger = logging.getLogger(__name__)


# Mapping of SSE event names to their application event classes
APP_EVENT_CLASSES: Dict[EventType, Callable[[str], AppEvent]] = {
    EventType.TOKEN: Token,
    EventType.DONE: Done,
    EventType.ERROR: Error,
}

TERMINAL_EVENTS = (Done, Error)


def to_app_event(event: SSEEvent) -> Optional[AppEvent]:
    """Project a wire event onto the closed AppEvent set (None if unknown)."""
    try:
        event_type = EventType(event.type)
    except ValueError:
        return None
    return APP_EVENT_CLASSES[event_type](event.data)


class EventDispatcher:
    """
    Routes completed SSE events to the caller's callbacks.

    Once a terminal event (done/error) has been dispatched, everything after
    it is dropped: a server that keeps talking after done cannot produce a
    second completion.
    """

    def __init__(self):
        self._terminated = False
        self._unknown_types: Set[str] = set()

    @property
    def terminated(self) -> bool:
        return self._terminated

    def dispatch(self, event: SSEEvent, callbacks: StreamCallbacks) -> Optional[AppEvent]:
        if self._terminated:
            logger.debug(f"Dropping '{event.type}' event received after terminal event")
            return None

        app_event = to_app_event(event)
        if app_event is None:
            if event.type not in self._unknown_types:
                self._unknown_types.add(event.type)
                logger.warning(f"Ignoring unknown SSE event type '{event.type}'")
            return None

        if isinstance(app_event, TERMINAL_EVENTS):
            self._terminated = True

        if isinstance(app_event, Token):
            callbacks.on_token(app_event.text)
        elif isinstance(app_event, Done):
            callbacks.on_complete(app_event.full_text)
        elif isinstance(app_event, Error):
            callbacks.on_error(app_event.message)

        return app_event
