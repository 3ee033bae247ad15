"""ClaimableStamp and Redemption models."""

from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _


class ClaimableStamp(models.Model):
    """
    Shareable code that grants one stamp per redeeming member.

    current_uses only grows, and only inside a successful redemption
    transaction. The check constraint keeps it under max_uses when set.
    """

    claim_code = models.CharField(_("claim code"), max_length=64, unique=True)
    event = models.ForeignKey(
        "stampman.Event",
        on_delete=models.CASCADE,
        related_name="claimable_stamps",
        verbose_name=_("event"),
    )
    expires_at = models.DateTimeField(_("expires at"))
    max_uses = models.PositiveIntegerField(
        _("max uses"),
        null=True,
        blank=True,
        default=1,
        help_text=_("Empty means unlimited"),
    )
    current_uses = models.PositiveIntegerField(_("current uses"), default=0)
    created_at = models.DateTimeField(_("created at"), auto_now_add=True)

    class Meta:
        db_table = "stampman_claimable_stamp"
        verbose_name = _("claimable stamp")
        verbose_name_plural = _("claimable stamps")
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=(
                    models.Q(max_uses__isnull=True)
                    | models.Q(current_uses__lte=models.F("max_uses"))
                ),
                name="stampman_uses_within_limit",
            ),
        ]

    def __str__(self):
        limit = "∞" if self.max_uses is None else self.max_uses
        return f"{self.claim_code} ({self.current_uses}/{limit})"

    def is_expired(self, now=None) -> bool:
        return (now or timezone.now()) > self.expires_at

    @property
    def is_exhausted(self) -> bool:
        return self.max_uses is not None and self.current_uses >= self.max_uses


class Redemption(models.Model):
    """Record of one member consuming one claim code. Append-only."""

    claimable_stamp = models.ForeignKey(
        ClaimableStamp,
        on_delete=models.CASCADE,
        related_name="redemptions",
        verbose_name=_("claimable stamp"),
    )
    member = models.ForeignKey(
        "stampman.Member",
        on_delete=models.CASCADE,
        related_name="redemptions",
        verbose_name=_("member"),
    )
    redeemed_at = models.DateTimeField(_("redeemed at"), auto_now_add=True)

    class Meta:
        db_table = "stampman_redemption"
        verbose_name = _("redemption")
        verbose_name_plural = _("redemptions")
        ordering = ["-redeemed_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["claimable_stamp", "member"],
                name="stampman_one_redemption_per_member",
            ),
        ]

    def __str__(self):
        return f"{self.claimable_stamp.claim_code} → member {self.member_id}"
