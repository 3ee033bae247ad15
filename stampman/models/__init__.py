"""Stampman models (the ledger schema)."""

from stampman.models.member import Member, MemberStatus
from stampman.models.event import Event
from stampman.models.stamp_card import CARD_CAPACITY, StampCard, StampEntry
from stampman.models.claim import ClaimableStamp, Redemption
from stampman.models.coupon import Coupon

__all__ = [
    # Identity
    "Member",
    "MemberStatus",
    "Event",
    # Cards
    "CARD_CAPACITY",
    "StampCard",
    "StampEntry",
    # Claim codes
    "ClaimableStamp",
    "Redemption",
    # Rewards
    "Coupon",
]
