"""
Stampman signals - public event API.

Emitted signals (always after the ledger transaction commits):
- stamp_acquired: Emitted by RedemptionService.redeem() and CardService grants
- coupon_issued: Emitted by CouponService.issue_coupon()
- coupon_status_changed: Emitted by CouponService.set_coupon_used()
"""

from django.dispatch import Signal

# Ledger signals (emitted by services)
stamp_acquired = Signal()  # sender=StampEntry, entry=StampEntry, current_count=int, remaining=int
coupon_issued = Signal()  # sender=Coupon, coupon=Coupon
coupon_status_changed = Signal()  # sender=Coupon, coupon=Coupon, is_used=bool
