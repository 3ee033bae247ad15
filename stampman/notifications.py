"""
Post-commit dispatch of ledger events.

Services register these with transaction.on_commit(), so nothing here ever
runs for a rolled-back transaction. Delivery is best-effort: receiver and
backend failures are logged and swallowed, a committed stamp or coupon is
never undone by a notification problem.
"""

import logging

from django.utils.module_loading import import_string

from stampman.conf import stampman_settings
from stampman.models import CARD_CAPACITY
from stampman.protocols.notifications import NotificationBackend
from stampman.signals import coupon_issued, coupon_status_changed, stamp_acquired

logger = logging.getLogger(__name__)


def get_backend() -> NotificationBackend:
    """Instantiate the configured NotificationBackend."""
    return import_string(stampman_settings.NOTIFICATION_BACKEND)()


def stamp_acquired_committed(entry, current_count: int) -> None:
    remaining = max(0, CARD_CAPACITY - current_count)
    _send_signal(
        stamp_acquired,
        sender=type(entry),
        entry=entry,
        current_count=current_count,
        remaining=remaining,
    )
    try:
        get_backend().notify_stamp_acquired(
            member_id=entry.member_id,
            event_name=entry.label,
            current_count=current_count,
            remaining=remaining,
        )
    except Exception:
        logger.exception("Stamp notification failed for member %s", entry.member_id)


def coupon_issued_committed(coupon, member_id: int) -> None:
    _send_signal(coupon_issued, sender=type(coupon), coupon=coupon)
    try:
        get_backend().notify_coupon_issued(
            member_id=member_id,
            description=coupon.description,
            expires_at=coupon.expires_at,
        )
    except Exception:
        logger.exception("Coupon notification failed for member %s", member_id)


def coupon_status_committed(coupon) -> None:
    _send_signal(
        coupon_status_changed,
        sender=type(coupon),
        coupon=coupon,
        is_used=coupon.is_used,
    )


def _send_signal(signal, **kwargs) -> None:
    for receiver, response in signal.send_robust(**kwargs):
        if isinstance(response, Exception):
            logger.error(
                "Signal receiver %r failed: %s",
                receiver,
                response,
                exc_info=response,
            )
