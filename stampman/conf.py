"""
Stampman configuration.

Usage in settings.py:
    STAMPMAN = {
        "COUPON_VALID_DAYS": 365,
        "COUPON_CODE_PREFIX": "STAMP",
        "NOTIFICATION_BACKEND": "myproject.alimtalk.AlimtalkBackend",
    }
"""

from dataclasses import dataclass
from typing import Any

from django.conf import settings


@dataclass
class StampmanSettings:
    """Stampman configuration settings."""

    # Coupon issuance
    COUPON_VALID_DAYS: int = 365
    COUPON_CODE_PREFIX: str = "STAMP"
    COUPON_CODE_ATTEMPTS: int = 5
    COUPON_DESCRIPTION: str = "{year} stamp event reward"

    # Generated claim codes
    CLAIM_CODE_LENGTH: int = 8

    # External collaborators
    NOTIFICATION_BACKEND: str = "stampman.adapters.notifications.LoggingNotificationBackend"
    EVENT_CATALOG_BACKEND: str = "stampman.adapters.events.ModelEventCatalog"


def get_stampman_settings() -> StampmanSettings:
    """Load settings from Django settings."""
    user_settings: dict[str, Any] = getattr(settings, "STAMPMAN", {})
    return StampmanSettings(**user_settings)


class _LazySettings:
    """Lazy proxy that re-reads settings on every attribute access."""

    def __getattr__(self, name):
        return getattr(get_stampman_settings(), name)


stampman_settings = _LazySettings()
