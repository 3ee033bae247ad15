"""Stampman admin.

Delete actions on cards and entries go through CardService so the
coupon-attached guard (G7) applies here too; coupon used/unused goes through
CouponService.set_coupon_used. Claim codes are validated like
RedemptionService.create_claim_code and frozen once saved.

The *AdminMixin classes carry that behavior and are shared with
stampman.contrib.admin_unfold.
"""

from django import forms
from django.contrib import admin, messages
from django.utils.html import format_html

from stampman.exceptions import StampmanError
from stampman.models import (
    CARD_CAPACITY,
    ClaimableStamp,
    Coupon,
    Event,
    Member,
    Redemption,
    StampCard,
    StampEntry,
)
from stampman.services.cards import CardService
from stampman.services.coupons import CouponService


def _guarded(request, operation, *args):
    """Run a service call, turning rejections into admin messages."""
    try:
        operation(*args)
    except StampmanError as e:
        messages.error(request, e.message)


# ===========================================
# Shared behavior
# ===========================================


class StampCardAdminMixin:
    list_display = ["id", "member", "progress", "is_redeemed", "created_at"]
    list_filter = ["is_redeemed"]
    search_fields = ["member__name", "member__phone"]
    readonly_fields = ["member", "is_redeemed", "created_at"]

    def progress(self, obj):
        return format_html("{}/{}", obj.entries.count(), CARD_CAPACITY)

    progress.short_description = "Stamps"

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        if obj is not None and obj.has_coupon:
            return False
        return super().has_delete_permission(request, obj)

    def delete_model(self, request, obj):
        _guarded(request, CardService.delete_card, obj.pk)

    def delete_queryset(self, request, queryset):
        for card_id in queryset.values_list("pk", flat=True):
            _guarded(request, CardService.delete_card, card_id)


class StampEntryAdminMixin:
    list_display = ["id", "member", "stamp_card", "slot", "label", "created_at"]
    search_fields = ["member__name", "event__name", "admin_note"]
    readonly_fields = [
        "stamp_card",
        "member",
        "event",
        "admin_note",
        "slot",
        "is_viewed",
        "created_at",
        "created_by",
    ]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        if obj is not None and obj.stamp_card.has_coupon:
            return False
        return super().has_delete_permission(request, obj)

    def delete_model(self, request, obj):
        _guarded(request, CardService.delete_entry, obj.pk)

    def delete_queryset(self, request, queryset):
        for entry_id in queryset.values_list("pk", flat=True):
            _guarded(request, CardService.delete_entry, entry_id)


class ClaimableStampForm(forms.ModelForm):
    """Claim code form enforcing the same usage ceiling rules as the service."""

    class Meta:
        model = ClaimableStamp
        fields = ["claim_code", "event", "expires_at", "max_uses"]

    def clean_max_uses(self):
        max_uses = self.cleaned_data.get("max_uses")
        if max_uses is None:
            return max_uses
        floor = max(1, self.instance.current_uses or 0)
        if max_uses < floor:
            raise forms.ValidationError(
                f"Maximum uses must be at least {floor}.",
                code="INVALID_MAX_USES",
            )
        return max_uses


class ClaimableStampAdminMixin:
    form = ClaimableStampForm
    list_display = ["claim_code", "event", "usage", "expires_at"]
    search_fields = ["claim_code", "event__name"]
    readonly_fields = ["current_uses", "created_at"]

    def get_readonly_fields(self, request, obj=None):
        # Redemptions already reference the code, event and ceiling.
        fields = list(super().get_readonly_fields(request, obj))
        if obj is not None:
            fields += ["claim_code", "event", "max_uses"]
        return fields

    def usage(self, obj):
        limit = "∞" if obj.max_uses is None else obj.max_uses
        return format_html("{}/{}", obj.current_uses, limit)

    usage.short_description = "Uses"


class CouponAdminMixin:
    list_filter = ["is_used"]
    search_fields = ["code", "stamp_card__member__name"]
    readonly_fields = [
        "stamp_card",
        "code",
        "description",
        "expires_at",
        "is_used",
        "used_at",
        "created_at",
    ]
    actions = ["mark_used", "mark_unused"]

    def member(self, obj):
        return obj.stamp_card.member

    member.short_description = "Member"

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    def mark_used(self, request, queryset):
        for coupon_id in queryset.values_list("pk", flat=True):
            _guarded(request, CouponService.set_coupon_used, coupon_id, True)

    mark_used.short_description = "Mark selected coupons as used"

    def mark_unused(self, request, queryset):
        for coupon_id in queryset.values_list("pk", flat=True):
            _guarded(request, CouponService.set_coupon_used, coupon_id, False)

    mark_unused.short_description = "Mark selected coupons as unused"


# ===========================================
# Member / Event Admin
# ===========================================


@admin.register(Member)
class MemberAdmin(admin.ModelAdmin):
    list_display = ["name", "phone", "status", "created_at"]
    list_filter = ["status"]
    search_fields = ["name", "phone"]


@admin.register(Event)
class EventAdmin(admin.ModelAdmin):
    list_display = ["name", "end_date"]
    search_fields = ["name"]


# ===========================================
# StampCard Admin
# ===========================================


class StampEntryInline(admin.TabularInline):
    model = StampEntry
    extra = 0
    fields = ["slot", "event", "admin_note", "is_viewed", "created_at", "created_by"]
    readonly_fields = fields
    ordering = ["slot"]

    def has_add_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(StampCard)
class StampCardAdmin(StampCardAdminMixin, admin.ModelAdmin):
    raw_id_fields = ["member"]
    inlines = [StampEntryInline]


@admin.register(StampEntry)
class StampEntryAdmin(StampEntryAdminMixin, admin.ModelAdmin):
    pass


# ===========================================
# Claim code Admin
# ===========================================


class RedemptionInline(admin.TabularInline):
    model = Redemption
    extra = 0
    fields = ["member", "redeemed_at"]
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(ClaimableStamp)
class ClaimableStampAdmin(ClaimableStampAdminMixin, admin.ModelAdmin):
    inlines = [RedemptionInline]


# ===========================================
# Coupon Admin
# ===========================================


@admin.register(Coupon)
class CouponAdmin(CouponAdminMixin, admin.ModelAdmin):
    list_display = ["code", "member", "description", "expires_at", "status_badge"]

    def status_badge(self, obj):
        color = "#6c757d" if obj.is_used else "#28a745"
        label = "Used" if obj.is_used else "Open"
        return format_html(
            '<span style="background:{}; color:#fff; padding:2px 8px; '
            'border-radius:3px; font-size:11px;">{}</span>',
            color,
            label,
        )

    status_badge.short_description = "Status"
