"""Notification sink protocol."""

from datetime import datetime
from typing import Protocol, runtime_checkable


@runtime_checkable
class NotificationBackend(Protocol):
    """
    Protocol for member notifications (SMS, messenger, push).

    Called after the ledger transaction commits. Implementations may raise;
    stampman.notifications logs the failure and never propagates it.

    Configuration in settings.py:
        STAMPMAN = {
            "NOTIFICATION_BACKEND": "myproject.alimtalk.AlimtalkBackend",
        }
    """

    def notify_stamp_acquired(
        self,
        member_id: int,
        event_name: str,
        current_count: int,
        remaining: int,
    ) -> None:
        """A stamp landed on the member's card."""
        ...

    def notify_coupon_issued(
        self,
        member_id: int,
        description: str,
        expires_at: datetime,
    ) -> None:
        """A coupon was issued for the member's full card."""
        ...
