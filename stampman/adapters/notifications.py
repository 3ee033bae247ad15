"""Logging NotificationBackend adapter."""

import logging

logger = logging.getLogger(__name__)


class LoggingNotificationBackend:
    """
    Default backend: writes notifications to the log.

    Swap for a real delivery channel in settings.py:
        STAMPMAN = {
            "NOTIFICATION_BACKEND": "myproject.alimtalk.AlimtalkBackend",
        }
    """

    def notify_stamp_acquired(self, member_id, event_name, current_count, remaining):
        logger.info(
            "Stamp acquired: member=%s event=%r count=%s remaining=%s",
            member_id,
            event_name,
            current_count,
            remaining,
        )

    def notify_coupon_issued(self, member_id, description, expires_at):
        logger.info(
            "Coupon issued: member=%s description=%r expires_at=%s",
            member_id,
            description,
            expires_at.isoformat(),
        )
