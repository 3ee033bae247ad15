"""
Stampman Admin with Unfold theme.

This module provides Unfold-styled admin classes for Stampman models.
To use, add 'unfold' before 'django.contrib.admin' and
'stampman.contrib.admin_unfold' after 'stampman' in INSTALLED_APPS.

The admins will automatically unregister the basic admins and register
the Unfold versions. Deletes and coupon actions keep the service guards of
the basic admins (see stampman.admin).
"""

from django.contrib import admin
from django.utils.html import format_html
from unfold.decorators import display

from stampman.admin import (
    ClaimableStampAdminMixin,
    CouponAdminMixin,
    StampCardAdminMixin,
    StampEntryAdminMixin,
)
from stampman.contrib.admin_unfold.base import BaseModelAdmin, BaseTabularInline
from stampman.models import (
    CARD_CAPACITY,
    ClaimableStamp,
    Coupon,
    Event,
    Member,
    MemberStatus,
    Redemption,
    StampCard,
    StampEntry,
)


def _unfold_badge(text, color="base"):
    """Create Unfold badge with colored background."""
    base_classes = (
        "inline-block font-semibold h-6 leading-6 px-2 "
        "rounded-default whitespace-nowrap text-xs uppercase"
    )

    color_classes = {
        "base": "bg-base-100 text-base-700 dark:bg-base-500/20 dark:text-base-200",
        "red": "bg-red-100 text-red-700 dark:bg-red-500/20 dark:text-red-400",
        "green": "bg-green-100 text-green-700 dark:bg-green-500/20 dark:text-green-400",
        "yellow": "bg-yellow-100 text-yellow-700 dark:bg-yellow-500/20 dark:text-yellow-400",
    }

    classes = f"{base_classes} {color_classes.get(color, color_classes['base'])}"
    return format_html('<span class="{}">{}</span>', classes, text)


# Unregister basic admins
for model in [Member, Event, StampCard, StampEntry, ClaimableStamp, Coupon]:
    try:
        admin.site.unregister(model)
    except admin.sites.NotRegistered:
        pass


# =============================================================================
# MEMBER / EVENT ADMIN
# =============================================================================


@admin.register(Member)
class MemberAdmin(BaseModelAdmin):
    list_display = ["name", "phone", "status_badge", "card_count", "created_at"]
    list_filter = ["status"]
    search_fields = ["name", "phone"]

    @display(description="Status")
    def status_badge(self, obj):
        color = "green" if obj.status == MemberStatus.ACTIVE else "yellow"
        return _unfold_badge(obj.get_status_display(), color)

    @display(description="Cards")
    def card_count(self, obj):
        return obj.stamp_cards.count()


@admin.register(Event)
class EventAdmin(BaseModelAdmin):
    list_display = ["name", "end_date"]
    search_fields = ["name"]


# =============================================================================
# STAMP CARD ADMIN
# =============================================================================


class StampEntryInline(BaseTabularInline):
    model = StampEntry
    fields = ["slot", "event", "admin_note", "is_viewed", "created_at", "created_by"]
    readonly_fields = fields
    ordering = ["slot"]

    def has_add_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(StampCard)
class StampCardAdmin(StampCardAdminMixin, BaseModelAdmin):
    list_display = ["id", "member", "progress", "is_redeemed_badge", "created_at"]
    raw_id_fields = ["member"]
    inlines = [StampEntryInline]

    @display(description="Stamps")
    def progress(self, obj):
        count = obj.entries.count()
        color = "green" if count >= CARD_CAPACITY else "base"
        return _unfold_badge(f"{count}/{CARD_CAPACITY}", color)

    @display(description="Redeemed", boolean=True)
    def is_redeemed_badge(self, obj):
        return obj.is_redeemed


@admin.register(StampEntry)
class StampEntryAdmin(StampEntryAdminMixin, BaseModelAdmin):
    list_display = ["id", "member", "stamp_card", "slot", "source_badge", "created_at"]

    @display(description="Source")
    def source_badge(self, obj):
        if obj.event_id:
            return _unfold_badge(obj.event.name, "green")
        return _unfold_badge(obj.admin_note, "yellow")


# =============================================================================
# CLAIM CODE ADMIN
# =============================================================================


class RedemptionInline(BaseTabularInline):
    model = Redemption
    fields = ["member", "redeemed_at"]
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(ClaimableStamp)
class ClaimableStampAdmin(ClaimableStampAdminMixin, BaseModelAdmin):
    list_display = ["claim_code", "event", "usage", "expiry_badge"]
    inlines = [RedemptionInline]

    @display(description="Expires")
    def expiry_badge(self, obj):
        if obj.is_expired():
            return _unfold_badge("Expired", "red")
        return _unfold_badge(obj.expires_at.strftime("%Y-%m-%d %H:%M"), "base")


# =============================================================================
# COUPON ADMIN
# =============================================================================


@admin.register(Coupon)
class CouponAdmin(CouponAdminMixin, BaseModelAdmin):
    list_display = ["code", "member", "description", "expires_at", "status_badge"]

    @display(description="Status")
    def status_badge(self, obj):
        if obj.is_used:
            return _unfold_badge("Used", "base")
        if obj.is_expired:
            return _unfold_badge("Expired", "red")
        return _unfold_badge("Open", "green")
