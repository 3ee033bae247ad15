"""
Ledger store - single-step reads and writes on the stamp ledger.

No business policy lives here. Every insert guarded by a unique constraint
runs in its own savepoint, and a violation is translated into the typed
rejection it stands for. The constraint is the arbiter; callers' pre-checks
only make the common rejection fast.

All functions expect to run inside ledger_atomic() when they are part of a
multi-step operation.
"""

import logging
from contextlib import contextmanager

from django.db import IntegrityError, OperationalError, transaction
from django.db.models import F, Q

from stampman.exceptions import StampmanError
from stampman.models import (
    CARD_CAPACITY,
    ClaimableStamp,
    Coupon,
    Redemption,
    StampCard,
    StampEntry,
)

logger = logging.getLogger(__name__)


@contextmanager
def ledger_errors():
    """
    Report lost connections, deadlocks and lock timeouts as a retryable
    TRANSIENT_STORE_ERROR. Used directly around reads outside a transaction.
    """
    try:
        yield
    except OperationalError as exc:
        logger.warning("Ledger operation failed: %s", exc)
        raise StampmanError("TRANSIENT_STORE_ERROR", reason=str(exc)) from exc


@contextmanager
def ledger_atomic():
    """transaction.atomic() with ledger_errors(); errors surface after full rollback."""
    with ledger_errors(), transaction.atomic():
        yield


# =============================================================================
# Cards
# =============================================================================


def find_active_card(member_id: int, lock: bool = False) -> StampCard | None:
    qs = StampCard.objects.filter(member_id=member_id, is_redeemed=False)
    if lock:
        qs = qs.select_for_update()
    return qs.first()


def create_card(member_id: int) -> StampCard:
    """
    Create the member's active card.

    If a concurrent request created one first, the partial unique constraint
    rejects this insert and the existing card is returned instead.
    """
    try:
        with transaction.atomic():
            return StampCard.objects.create(member_id=member_id)
    except IntegrityError:
        existing = find_active_card(member_id)
        if existing is None:
            raise
        logger.warning(
            "Active card for member %s created concurrently, using card %s",
            member_id,
            existing.pk,
        )
        return existing


def mark_card_redeemed(card_id: int) -> None:
    updated = StampCard.objects.filter(pk=card_id, is_redeemed=False).update(
        is_redeemed=True
    )
    if not updated:
        raise StampmanError("ALREADY_ISSUED", card_id=card_id)


# =============================================================================
# Entries
# =============================================================================


def count_entries(card_id: int) -> int:
    return StampEntry.objects.filter(stamp_card_id=card_id).count()


def free_slot(card_id: int) -> int | None:
    """Lowest unused slot on the card, or None when the card is full."""
    used = set(
        StampEntry.objects.filter(stamp_card_id=card_id).values_list("slot", flat=True)
    )
    for slot in range(1, CARD_CAPACITY + 1):
        if slot not in used:
            return slot
    return None


def has_entry_for_event(card_id: int, event_id: int) -> bool:
    return StampEntry.objects.filter(stamp_card_id=card_id, event_id=event_id).exists()


def create_entry(
    card_id: int,
    member_id: int,
    event_id: int | None = None,
    admin_note: str = "",
    created_by: str = "",
) -> StampEntry:
    """
    Append an entry in the lowest free slot.

    Raises:
        StampmanError: DUPLICATE_STAMP_FOR_EVENT if the card already holds
            this event, CARD_FULL if no slot is left.
    """
    for _attempt in range(CARD_CAPACITY):
        slot = free_slot(card_id)
        if slot is None:
            raise StampmanError("CARD_FULL", card_id=card_id)

        try:
            with transaction.atomic():
                return StampEntry.objects.create(
                    stamp_card_id=card_id,
                    member_id=member_id,
                    event_id=event_id,
                    admin_note=admin_note,
                    slot=slot,
                    created_by=created_by,
                )
        except IntegrityError:
            if event_id is not None and has_entry_for_event(card_id, event_id):
                raise StampmanError(
                    "DUPLICATE_STAMP_FOR_EVENT",
                    card_id=card_id,
                    event_id=event_id,
                ) from None
            if not StampEntry.objects.filter(stamp_card_id=card_id, slot=slot).exists():
                raise
            logger.warning("Slot %s on card %s taken concurrently", slot, card_id)

    raise StampmanError("CARD_FULL", card_id=card_id)


# =============================================================================
# Claim codes
# =============================================================================


def find_claim_code(code: str, lock: bool = False) -> ClaimableStamp | None:
    qs = ClaimableStamp.objects.select_related("event").filter(claim_code=code)
    if lock:
        qs = qs.select_for_update(of=("self",))
    return qs.first()


def increment_usage(claim_id: int) -> int:
    """
    Consume one use of the code and return the new counter.

    The ceiling is part of the UPDATE itself, so two writers can never push
    current_uses past max_uses.
    """
    updated = (
        ClaimableStamp.objects.filter(pk=claim_id)
        .filter(Q(max_uses__isnull=True) | Q(current_uses__lt=F("max_uses")))
        .update(current_uses=F("current_uses") + 1)
    )
    if not updated:
        raise StampmanError("CODE_EXHAUSTED", claim_id=claim_id)
    return ClaimableStamp.objects.values_list("current_uses", flat=True).get(pk=claim_id)


def has_redemption(claim_id: int, member_id: int) -> bool:
    return Redemption.objects.filter(
        claimable_stamp_id=claim_id, member_id=member_id
    ).exists()


def create_redemption(claim_id: int, member_id: int) -> Redemption:
    try:
        with transaction.atomic():
            return Redemption.objects.create(
                claimable_stamp_id=claim_id,
                member_id=member_id,
            )
    except IntegrityError:
        if has_redemption(claim_id, member_id):
            raise StampmanError(
                "ALREADY_REDEEMED",
                claim_id=claim_id,
                member_id=member_id,
            ) from None
        raise


# =============================================================================
# Coupons
# =============================================================================


def has_coupon(card_id: int) -> bool:
    return Coupon.objects.filter(stamp_card_id=card_id).exists()


def create_coupon(card_id: int, code: str, description: str, expires_at) -> Coupon:
    """
    Insert the card's coupon.

    Raises:
        StampmanError: ALREADY_ISSUED if the card has a coupon,
            COUPON_CODE_COLLISION if the code is taken.
    """
    try:
        with transaction.atomic():
            return Coupon.objects.create(
                stamp_card_id=card_id,
                code=code,
                description=description,
                expires_at=expires_at,
            )
    except IntegrityError:
        if has_coupon(card_id):
            raise StampmanError("ALREADY_ISSUED", card_id=card_id) from None
        if Coupon.objects.filter(code=code).exists():
            raise StampmanError("COUPON_CODE_COLLISION", coupon_code=code) from None
        raise
