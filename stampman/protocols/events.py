"""Event catalog protocol."""

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class EventInfo:
    """What the ledger needs to know about an event."""

    id: int
    name: str
    end_date: datetime


@runtime_checkable
class EventCatalog(Protocol):
    """
    Protocol for looking up events.

    Used to label stamp entries and to default claim code expiry.
    Implemented by adapters/events.py.

    Configuration in settings.py:
        STAMPMAN = {
            "EVENT_CATALOG_BACKEND": "stampman.adapters.events.ModelEventCatalog",
        }
    """

    def get_event(self, event_id: int) -> EventInfo | None:
        """Return event info, or None if the event does not exist."""
        ...
