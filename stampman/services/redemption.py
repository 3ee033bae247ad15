"""
Redemption service - claim code creation and redemption.

A redemption is one transaction:
    lock claim row -> re-check G1..G3 -> lock/create active card -> re-check
    G4, G5 -> insert entry -> consume one use -> insert redemption -> commit
    -> notify (post-commit, best-effort)

Any failure rolls the whole thing back; a code use is never consumed without
its stamp, and a stamp never lands without its redemption record.
"""

import logging
import secrets
import string
from dataclasses import dataclass
from datetime import datetime, timedelta
from functools import partial

from django.db import IntegrityError, transaction
from django.utils import timezone

from stampman import notifications, store
from stampman.adapters.events import get_event_catalog
from stampman.conf import stampman_settings
from stampman.exceptions import StampmanError
from stampman.gates import Gates
from stampman.models import ClaimableStamp, StampEntry
from stampman.services.cards import CardService

logger = logging.getLogger(__name__)

CLAIM_CODE_ALPHABET = string.ascii_uppercase + string.digits

# Expiry options offered when creating a code, as offsets from the event end
EXPIRY_OFFSETS = {
    "event_end": timedelta(0),
    "one_day": timedelta(days=1),
    "three_days": timedelta(days=3),
}


@dataclass(frozen=True)
class RedemptionResult:
    """Successful redemption."""

    card_id: int
    entry_count: int
    entry: StampEntry


class RedemptionService:
    """
    Service for claim code operations.

    Uses @classmethod for extensibility (consistent with other stampman services).
    """

    @classmethod
    def redeem(cls, claim_code: str, member_id: int) -> RedemptionResult:
        """
        Redeem a claim code for a member.

        Rejections are checked in this order: CODE_NOT_FOUND, CODE_EXPIRED,
        ALREADY_REDEEMED, CODE_EXHAUSTED, DUPLICATE_STAMP_FOR_EVENT, CARD_FULL.

        Args:
            claim_code: Code scanned or typed by the member
            member_id: Authenticated member ID

        Returns:
            RedemptionResult with the card and its new entry count

        Raises:
            StampmanError: One of the rejection codes above, MEMBER_NOT_FOUND,
                or TRANSIENT_STORE_ERROR (safe to retry with the same inputs)
        """
        now = timezone.now()

        # Fast path: reject without opening a write transaction.
        with store.ledger_errors():
            cls._check_preconditions(
                store.find_claim_code(claim_code), claim_code, member_id, now
            )

        with store.ledger_atomic():
            claimable = store.find_claim_code(claim_code, lock=True)
            if claimable is None:
                raise StampmanError("CODE_NOT_FOUND", claim_code=claim_code)
            Gates.claim_code_active(claimable, now)
            Gates.single_redemption(claimable, member_id)
            Gates.usage_ceiling(claimable)

            card = CardService.get_or_create_active_card(member_id, lock=True)
            Gates.one_stamp_per_event(card, claimable.event_id)
            Gates.card_capacity(card)

            entry = store.create_entry(card.pk, member_id, event_id=claimable.event_id)
            store.increment_usage(claimable.pk)
            store.create_redemption(claimable.pk, member_id)

            count = store.count_entries(card.pk)
            transaction.on_commit(
                partial(notifications.stamp_acquired_committed, entry, count)
            )

        logger.info(
            "Code %s redeemed: member=%s card=%s count=%s",
            claim_code,
            member_id,
            card.pk,
            count,
        )
        return RedemptionResult(card_id=card.pk, entry_count=count, entry=entry)

    @classmethod
    def check_redeem(cls, claim_code: str, member_id: int) -> bool:
        """Advisory check for UI (returns bool). redeem() re-validates everything."""
        try:
            with store.ledger_errors():
                cls._check_preconditions(
                    store.find_claim_code(claim_code), claim_code, member_id, timezone.now()
                )
            return True
        except StampmanError:
            return False

    @classmethod
    def _check_preconditions(
        cls,
        claimable: ClaimableStamp | None,
        claim_code: str,
        member_id: int,
        now: datetime,
    ) -> None:
        if claimable is None:
            raise StampmanError("CODE_NOT_FOUND", claim_code=claim_code)
        Gates.claim_code_active(claimable, now)
        Gates.single_redemption(claimable, member_id)
        Gates.usage_ceiling(claimable)

        card = store.find_active_card(member_id)
        Gates.one_stamp_per_event(card, claimable.event_id)
        Gates.card_capacity(card)

    # ======================================================================
    # Code management
    # ======================================================================

    @classmethod
    def create_claim_code(
        cls,
        event_id: int,
        claim_code: str | None = None,
        max_uses: int | None = 1,
        expiry: str = "event_end",
        expires_at: datetime | None = None,
    ) -> ClaimableStamp:
        """
        Create a claim code for an event.

        Args:
            event_id: Event the code stamps
            claim_code: Code text (generated when omitted)
            max_uses: Total uses across all members (None = unlimited)
            expiry: "event_end", "one_day", "three_days" (after event end) or "custom"
            expires_at: Expiry instant, required with expiry="custom"

        Raises:
            StampmanError: INVALID_MAX_USES, INVALID_EXPIRY, EVENT_NOT_FOUND,
                DUPLICATE_CLAIM_CODE
        """
        if max_uses is not None and max_uses < 1:
            raise StampmanError("INVALID_MAX_USES", max_uses=max_uses)

        event = get_event_catalog().get_event(event_id)
        if event is None:
            raise StampmanError("EVENT_NOT_FOUND", event_id=event_id)

        if expiry == "custom":
            if expires_at is None:
                raise StampmanError("INVALID_EXPIRY", expiry=expiry)
        elif expiry in EXPIRY_OFFSETS:
            expires_at = event.end_date + EXPIRY_OFFSETS[expiry]
        else:
            raise StampmanError("INVALID_EXPIRY", expiry=expiry)

        code = claim_code.strip() if claim_code else cls.generate_claim_code()
        try:
            with transaction.atomic():
                claimable = ClaimableStamp.objects.create(
                    claim_code=code,
                    event_id=event.id,
                    expires_at=expires_at,
                    max_uses=max_uses,
                )
        except IntegrityError:
            if ClaimableStamp.objects.filter(claim_code=code).exists():
                raise StampmanError("DUPLICATE_CLAIM_CODE", claim_code=code) from None
            raise

        logger.info("Claim code %s created for event %s", code, event.id)
        return claimable

    @classmethod
    def generate_claim_code(cls) -> str:
        length = stampman_settings.CLAIM_CODE_LENGTH
        return "".join(secrets.choice(CLAIM_CODE_ALPHABET) for _ in range(length))

    @classmethod
    def get_redemptions(cls, claim_code: str) -> list:
        """Redemptions of a code, most recent first."""
        claimable = store.find_claim_code(claim_code)
        if claimable is None:
            return []
        return list(claimable.redemptions.select_related("member"))
