"""
StampCard and StampEntry models.

Data architecture:
    StampCard
        One per completed/ongoing cycle. A member has at most one card with
        is_redeemed=False (the active card), enforced by a partial unique
        constraint. Once redeemed the card never accepts entries again.

    StampEntry
        One unit of credit on a card. Occupies a slot 1..CARD_CAPACITY; the
        (card, slot) unique constraint plus the slot range check make capacity
        a database rule. (card, event) is unique: one stamp per event per card.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _

CARD_CAPACITY = 10


class StampCard(models.Model):
    member = models.ForeignKey(
        "stampman.Member",
        on_delete=models.CASCADE,
        related_name="stamp_cards",
        verbose_name=_("member"),
    )
    is_redeemed = models.BooleanField(_("redeemed"), default=False)
    created_at = models.DateTimeField(_("created at"), auto_now_add=True, db_index=True)

    class Meta:
        db_table = "stampman_stamp_card"
        verbose_name = _("stamp card")
        verbose_name_plural = _("stamp cards")
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["member"],
                condition=models.Q(is_redeemed=False),
                name="stampman_one_active_card_per_member",
            ),
        ]

    def __str__(self):
        state = "redeemed" if self.is_redeemed else "active"
        return f"Card #{self.pk} ({state})"

    @property
    def has_coupon(self) -> bool:
        return hasattr(self, "coupon")


class StampEntry(models.Model):
    stamp_card = models.ForeignKey(
        StampCard,
        on_delete=models.CASCADE,
        related_name="entries",
        verbose_name=_("stamp card"),
    )
    member = models.ForeignKey(
        "stampman.Member",
        on_delete=models.CASCADE,
        related_name="stamp_entries",
        verbose_name=_("member"),
    )
    event = models.ForeignKey(
        "stampman.Event",
        on_delete=models.PROTECT,
        related_name="stamp_entries",
        null=True,
        blank=True,
        verbose_name=_("event"),
    )
    admin_note = models.CharField(
        _("admin note"),
        max_length=200,
        blank=True,
        help_text=_("Reason for a manual grant (used when there is no event)"),
    )
    slot = models.PositiveSmallIntegerField(_("slot"))

    # Read state for the card UI
    is_viewed = models.BooleanField(_("viewed"), default=False)

    created_at = models.DateTimeField(_("created at"), auto_now_add=True)
    created_by = models.CharField(_("created by"), max_length=100, blank=True)

    class Meta:
        db_table = "stampman_stamp_entry"
        verbose_name = _("stamp entry")
        verbose_name_plural = _("stamp entries")
        ordering = ["stamp_card", "slot"]
        constraints = [
            models.UniqueConstraint(
                fields=["stamp_card", "event"],
                name="stampman_one_stamp_per_event",
            ),
            models.UniqueConstraint(
                fields=["stamp_card", "slot"],
                name="stampman_unique_card_slot",
            ),
            models.CheckConstraint(
                condition=models.Q(slot__gte=1, slot__lte=CARD_CAPACITY),
                name="stampman_slot_within_capacity",
            ),
            models.CheckConstraint(
                condition=models.Q(event__isnull=False) | ~models.Q(admin_note=""),
                name="stampman_entry_has_source",
            ),
        ]

    def __str__(self):
        return f"{self.label} (slot {self.slot})"

    @property
    def label(self) -> str:
        if self.event_id:
            return self.event.name
        return self.admin_note
