"""Stampman protocols."""

from stampman.protocols.events import (
    EventCatalog,
    EventInfo,
)
from stampman.protocols.notifications import (
    NotificationBackend,
)

__all__ = [
    # Events
    "EventCatalog",
    "EventInfo",
    # Notifications
    "NotificationBackend",
]
