"""
Django Stampman - Stamp cards, claim codes and coupons.

Usage:
    from stampman import RedemptionService, CardService, CouponService
    from stampman.exceptions import StampmanError

    result = RedemptionService.redeem("SUMMER-7F2K", member_id=42)
    card = CardService.get_or_create_active_card(42)
    coupon = CouponService.issue_coupon(42)
"""


def __getattr__(name):
    if name == "RedemptionService":
        from stampman.services.redemption import RedemptionService

        return RedemptionService
    if name == "CardService":
        from stampman.services.cards import CardService

        return CardService
    if name == "CouponService":
        from stampman.services.coupons import CouponService

        return CouponService
    if name == "StampmanError":
        from stampman.exceptions import StampmanError

        return StampmanError
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = ["RedemptionService", "CardService", "CouponService", "StampmanError"]
__version__ = "0.1.0"
