"""Stampman services.

- cards: CardService (active card, grants, enrollment, admin corrections)
- redemption: RedemptionService (claim codes)
- coupons: CouponService (issuance, used toggle)
- members: MemberService (lookups, temporary members)
"""

from stampman.services.cards import CardService
from stampman.services.coupons import CouponService
from stampman.services.members import MemberService
from stampman.services.redemption import RedemptionService

__all__ = ["CardService", "CouponService", "MemberService", "RedemptionService"]
