"""Coupon service - turning full cards into coupons."""

import logging
import secrets
import string
from datetime import datetime, timedelta
from functools import partial

from django.db import transaction
from django.utils import timezone

from stampman import notifications, store
from stampman.conf import stampman_settings
from stampman.exceptions import StampmanError
from stampman.gates import Gates
from stampman.models import Coupon, StampCard

logger = logging.getLogger(__name__)

COUPON_CODE_ALPHABET = string.ascii_uppercase + string.digits


class CouponService:
    """
    Service for coupon operations.

    Uses @classmethod for extensibility (consistent with other stampman services).
    Issuance and the used toggle run in store.ledger_atomic().
    """

    @classmethod
    def issue_coupon(cls, member_id: int) -> Coupon:
        """
        Close the member's full active card and attach its coupon.

        Args:
            member_id: Authenticated member ID

        Returns:
            Created Coupon

        Raises:
            StampmanError: NO_ACTIVE_CARD, CARD_NOT_FULL, ALREADY_ISSUED,
                TRANSIENT_STORE_ERROR
        """
        with store.ledger_errors():
            cls._check_issuable(store.find_active_card(member_id), member_id)
        now = timezone.now()

        with store.ledger_atomic():
            card = store.find_active_card(member_id, lock=True)
            cls._check_issuable(card, member_id)

            store.mark_card_redeemed(card.pk)
            coupon = cls._create_coupon(card, now)

            transaction.on_commit(
                partial(notifications.coupon_issued_committed, coupon, member_id)
            )

        logger.info("Coupon %s issued: member=%s card=%s", coupon.code, member_id, card.pk)
        return coupon

    @classmethod
    def set_coupon_used(cls, coupon_id: int, used: bool) -> Coupon:
        """
        Mark a coupon used or unused (administrative reconciliation).

        The card stays redeemed in both directions: un-using a coupon makes it
        spendable again but never reopens the card for stamps. Setting the
        state the coupon already has is a no-op and sends no signal.

        Raises:
            StampmanError: COUPON_NOT_FOUND
        """
        with store.ledger_atomic():
            try:
                coupon = Coupon.objects.select_for_update().get(pk=coupon_id)
            except Coupon.DoesNotExist:
                raise StampmanError("COUPON_NOT_FOUND", coupon_id=coupon_id)

            if coupon.is_used == used:
                return coupon

            coupon.is_used = used
            coupon.used_at = timezone.now() if used else None
            coupon.save(update_fields=["is_used", "used_at"])
            transaction.on_commit(partial(notifications.coupon_status_committed, coupon))

        logger.info("Coupon %s marked %s", coupon.code, "used" if used else "unused")
        return coupon

    @classmethod
    def get_coupons(cls, member_id: int) -> list[Coupon]:
        """Coupons of a member, most recent first."""
        return list(
            Coupon.objects.filter(stamp_card__member_id=member_id).select_related(
                "stamp_card"
            )
        )

    @classmethod
    def generate_code(cls) -> str:
        """PREFIX-XXXX-XXXX-XXXX with an uppercase alphanumeric body."""
        body = "".join(secrets.choice(COUPON_CODE_ALPHABET) for _ in range(12))
        prefix = stampman_settings.COUPON_CODE_PREFIX
        return f"{prefix}-{body[0:4]}-{body[4:8]}-{body[8:12]}"

    @classmethod
    def _check_issuable(cls, card: StampCard | None, member_id: int) -> None:
        if card is None:
            raise StampmanError("NO_ACTIVE_CARD", member_id=member_id)
        Gates.card_complete(card)
        Gates.coupon_not_attached(card)

    @classmethod
    def _create_coupon(cls, card: StampCard, now: datetime) -> Coupon:
        """Insert the coupon, drawing a fresh code on collision."""
        description = stampman_settings.COUPON_DESCRIPTION.format(year=now.year)
        expires_at = now + timedelta(days=stampman_settings.COUPON_VALID_DAYS)

        attempts = stampman_settings.COUPON_CODE_ATTEMPTS
        for _attempt in range(attempts):
            try:
                return store.create_coupon(
                    card.pk,
                    cls.generate_code(),
                    description,
                    expires_at,
                )
            except StampmanError as e:
                if e.code != "COUPON_CODE_COLLISION":
                    raise
                logger.warning("Coupon code collision for card %s, retrying", card.pk)

        raise StampmanError("TRANSIENT_STORE_ERROR", reason="coupon code collisions", attempts=attempts)
