from __future__ import annotations

import json
import logging
from datetime import UTC, datetime

from eventflow.schema.documents import LIBRARY_VERSION, EventDocument, EventLibrary, find_event
from eventflow.schema.mood import MoodConfig


logger = logging.getLogger(__name__)


class EventWorkspace:
    """In-memory Event collection with a current selection."""

    def __init__(
        self,
        events: list[EventDocument] | None = None,
        *,
        mood_config: MoodConfig | None = None,
    ):
        self._events: list[EventDocument] = list(events or [])
        self.mood_config = mood_config
        self.current_event_id: str | None = self._events[0].id if self._events else None

    @classmethod
    def from_library(cls, library: EventLibrary) -> "EventWorkspace":
        return cls(list(library.events), mood_config=library.mood_config)

    def to_library(self) -> EventLibrary:
        return EventLibrary(events=tuple(self._events), version=LIBRARY_VERSION, mood_config=self.mood_config)

    @property
    def events(self) -> tuple[EventDocument, ...]:
        return tuple(self._events)

    @property
    def current_event(self) -> EventDocument | None:
        return find_event(self._events, self.current_event_id)

    def select_event(self, event_id: str) -> EventDocument | None:
        event = find_event(self._events, event_id)
        if event is not None:
            self.current_event_id = event.id
        return event

    def upsert_event(self, event: EventDocument) -> None:
        """Replace the Event with the same id, or append it and select it."""
        for i, existing in enumerate(self._events):
            if existing.id == event.id:
                self._events[i] = event
                return
        self._events.append(event)
        self.current_event_id = event.id

    def delete_event(self, event_id: str) -> bool:
        remaining = [e for e in self._events if e.id != event_id]
        if len(remaining) == len(self._events):
            return False
        self._events = remaining
        if self.current_event_id == event_id:
            self.current_event_id = remaining[0].id if remaining else None
        return True

    def import_json(self, text: str) -> bool:
        """Replace the collection from an exported document. Invalid input leaves state untouched."""
        try:
            data = json.loads(text)
            if not isinstance(data, dict) or not isinstance(data.get("events"), list):
                logger.debug("Import rejected: payload has no 'events' array")
                return False
            events = [EventDocument.from_dict(e) for e in data["events"]]
        except Exception:
            logger.debug("Import rejected: payload failed to parse", exc_info=True)
            return False

        self._events = events
        self.current_event_id = events[0].id if events else None
        logger.info("Imported %d event(s)", len(events))
        return True

    def export_json(self) -> str:
        payload = {
            "events": [e.to_dict() for e in self._events],
            "version": LIBRARY_VERSION,
            "exportedAt": datetime.now(UTC).isoformat(),
        }
        return json.dumps(payload, ensure_ascii=False, indent=2)
