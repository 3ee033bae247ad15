"""
Stampman Gates - Ledger validation rules.

G1: ClaimCodeActive - Code is not past its expiry
G2: SingleRedemption - A member redeems a code at most once
G3: UsageCeiling - Code has uses left (max_uses NULL = unlimited)
G4: OneStampPerEvent - A card holds at most one stamp per event
G5: CardCapacity - A card has a free slot
G6: CardComplete - A card is full before it can become a coupon
G7: CouponNotAttached - Cards with a coupon are immutable

Gates are the fast rejection path and the in-transaction re-check. The
database constraints behind G2, G3, G4, G5 and G7 remain the final arbiter.
"""

from dataclasses import dataclass
from datetime import datetime

from stampman import store
from stampman.exceptions import StampmanError
from stampman.models import CARD_CAPACITY, ClaimableStamp, StampCard


@dataclass
class GateResult:
    """Result of a gate check."""

    passed: bool
    gate_name: str
    message: str = ""


# =============================================================================
# Gates
# =============================================================================


class Gates:
    """Stampman validation gates."""

    # =========================================================================
    # G1: Claim Code Active
    # =========================================================================

    @classmethod
    def claim_code_active(
        cls,
        claimable: ClaimableStamp,
        now: datetime | None = None,
    ) -> GateResult:
        """
        G1: now <= expires_at. A code is still valid at its exact expiry instant.

        Raises:
            StampmanError: CODE_EXPIRED
        """
        if claimable.is_expired(now):
            raise StampmanError(
                "CODE_EXPIRED",
                claim_code=claimable.claim_code,
                expires_at=claimable.expires_at.isoformat(),
            )
        return GateResult(True, "G1_ClaimCodeActive")

    @classmethod
    def check_claim_code_active(cls, *args, **kwargs) -> bool:
        """Check without raising (returns bool)."""
        try:
            cls.claim_code_active(*args, **kwargs)
            return True
        except StampmanError:
            return False

    # =========================================================================
    # G2: Single Redemption
    # =========================================================================

    @classmethod
    def single_redemption(cls, claimable: ClaimableStamp, member_id: int) -> GateResult:
        """
        G2: No Redemption exists for (code, member), independent of max_uses.

        Raises:
            StampmanError: ALREADY_REDEEMED
        """
        if store.has_redemption(claimable.pk, member_id):
            raise StampmanError(
                "ALREADY_REDEEMED",
                claim_code=claimable.claim_code,
                member_id=member_id,
            )
        return GateResult(True, "G2_SingleRedemption")

    @classmethod
    def check_single_redemption(cls, *args, **kwargs) -> bool:
        """Check without raising (returns bool)."""
        try:
            cls.single_redemption(*args, **kwargs)
            return True
        except StampmanError:
            return False

    # =========================================================================
    # G3: Usage Ceiling
    # =========================================================================

    @classmethod
    def usage_ceiling(cls, claimable: ClaimableStamp) -> GateResult:
        """
        G3: max_uses is NULL or current_uses < max_uses.

        Raises:
            StampmanError: CODE_EXHAUSTED
        """
        if claimable.is_exhausted:
            raise StampmanError(
                "CODE_EXHAUSTED",
                claim_code=claimable.claim_code,
                max_uses=claimable.max_uses,
            )
        return GateResult(True, "G3_UsageCeiling")

    @classmethod
    def check_usage_ceiling(cls, claimable: ClaimableStamp) -> bool:
        """Check without raising (returns bool)."""
        try:
            cls.usage_ceiling(claimable)
            return True
        except StampmanError:
            return False

    # =========================================================================
    # G4: One Stamp Per Event
    # =========================================================================

    @classmethod
    def one_stamp_per_event(
        cls,
        card: StampCard | None,
        event_id: int | None,
    ) -> GateResult:
        """
        G4: The card has no entry for this event.

        A missing card (not created yet) or an entry without event passes.

        Raises:
            StampmanError: DUPLICATE_STAMP_FOR_EVENT
        """
        if card is not None and event_id is not None:
            if store.has_entry_for_event(card.pk, event_id):
                raise StampmanError(
                    "DUPLICATE_STAMP_FOR_EVENT",
                    card_id=card.pk,
                    event_id=event_id,
                )
        return GateResult(True, "G4_OneStampPerEvent")

    @classmethod
    def check_one_stamp_per_event(cls, *args, **kwargs) -> bool:
        """Check without raising (returns bool)."""
        try:
            cls.one_stamp_per_event(*args, **kwargs)
            return True
        except StampmanError:
            return False

    # =========================================================================
    # G5: Card Capacity
    # =========================================================================

    @classmethod
    def card_capacity(cls, card: StampCard | None) -> GateResult:
        """
        G5: The card holds fewer than CARD_CAPACITY entries.

        Raises:
            StampmanError: CARD_FULL
        """
        if card is not None:
            count = store.count_entries(card.pk)
            if count >= CARD_CAPACITY:
                raise StampmanError("CARD_FULL", card_id=card.pk, count=count)
        return GateResult(True, "G5_CardCapacity")

    @classmethod
    def check_card_capacity(cls, card: StampCard | None) -> bool:
        """Check without raising (returns bool)."""
        try:
            cls.card_capacity(card)
            return True
        except StampmanError:
            return False

    # =========================================================================
    # G6: Card Complete
    # =========================================================================

    @classmethod
    def card_complete(cls, card: StampCard) -> GateResult:
        """
        G6: The card holds CARD_CAPACITY entries.

        Raises:
            StampmanError: CARD_NOT_FULL
        """
        count = store.count_entries(card.pk)
        if count < CARD_CAPACITY:
            raise StampmanError(
                "CARD_NOT_FULL",
                card_id=card.pk,
                count=count,
                required=CARD_CAPACITY,
            )
        return GateResult(True, "G6_CardComplete")

    @classmethod
    def check_card_complete(cls, card: StampCard) -> bool:
        """Check without raising (returns bool)."""
        try:
            cls.card_complete(card)
            return True
        except StampmanError:
            return False

    # =========================================================================
    # G7: Coupon Not Attached
    # =========================================================================

    @classmethod
    def coupon_not_attached(cls, card: StampCard) -> GateResult:
        """
        G7: The card has no coupon.

        Guards coupon issuance and every admin path that deletes cards or
        entries, so a rewarded card can never lose its stamps.

        Raises:
            StampmanError: ALREADY_ISSUED
        """
        if store.has_coupon(card.pk):
            raise StampmanError("ALREADY_ISSUED", card_id=card.pk)
        return GateResult(True, "G7_CouponNotAttached")

    @classmethod
    def check_coupon_not_attached(cls, card: StampCard) -> bool:
        """Check without raising (returns bool)."""
        try:
            cls.coupon_not_attached(card)
            return True
        except StampmanError:
            return False
