"""Coupon model - the reward for a full stamp card."""

from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _


class Coupon(models.Model):
    """
    Reward issued once per full card.

    The one-to-one link is the store-level guarantee that a card never gets
    two coupons. is_used is an administrative flag toggled at the counter.
    """

    stamp_card = models.OneToOneField(
        "stampman.StampCard",
        on_delete=models.PROTECT,
        related_name="coupon",
        verbose_name=_("stamp card"),
    )
    code = models.CharField(_("code"), max_length=40, unique=True)
    description = models.CharField(_("description"), max_length=200)
    expires_at = models.DateTimeField(_("expires at"))
    is_used = models.BooleanField(_("used"), default=False)
    used_at = models.DateTimeField(_("used at"), null=True, blank=True)
    created_at = models.DateTimeField(_("created at"), auto_now_add=True, db_index=True)

    class Meta:
        db_table = "stampman_coupon"
        verbose_name = _("coupon")
        verbose_name_plural = _("coupons")
        ordering = ["-created_at"]

    def __str__(self):
        status = "used" if self.is_used else "open"
        return f"{self.code} ({status})"

    @property
    def is_expired(self) -> bool:
        return timezone.now() > self.expires_at
