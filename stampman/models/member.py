"""Member model - the identity that owns stamp cards."""

from django.db import models
from django.utils.translation import gettext_lazy as _


class MemberStatus(models.TextChoices):
    ACTIVE = "active", _("Active")
    TEMPORARY = "temporary", _("Temporary")


class Member(models.Model):
    """
    Stamp program member.

    Authentication lives outside stampman; callers pass the authenticated
    member id. TEMPORARY members are created by phone during batch event
    enrollment and become ACTIVE when they sign up.
    """

    name = models.CharField(_("name"), max_length=100)
    phone = models.CharField(
        _("phone"),
        max_length=20,
        unique=True,
        help_text=_("Digits only (e.g. 01012345678)"),
    )
    status = models.CharField(
        _("status"),
        max_length=20,
        choices=MemberStatus.choices,
        default=MemberStatus.ACTIVE,
        db_index=True,
    )
    created_at = models.DateTimeField(_("created at"), auto_now_add=True)

    class Meta:
        verbose_name = _("member")
        verbose_name_plural = _("members")
        ordering = ["name"]
        constraints = [
            models.CheckConstraint(
                condition=~models.Q(phone=""),
                name="stampman_member_phone_not_empty",
            ),
        ]

    def __str__(self):
        return f"{self.name} (***{self.phone[-4:]})"

    def save(self, *args, **kwargs):
        self.phone = self.normalize_phone(self.phone)
        super().save(*args, **kwargs)

    @staticmethod
    def normalize_phone(phone: str) -> str:
        """Keep digits only."""
        return "".join(filter(str.isdigit, phone or ""))
