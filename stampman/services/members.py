"""Member service - lookups and temporary members for batch enrollment."""

import logging

from django.db import IntegrityError, transaction

from stampman.exceptions import StampmanError
from stampman.models import Member, MemberStatus

logger = logging.getLogger(__name__)


class MemberService:
    """
    Service for member operations.

    Uses @classmethod for extensibility (consistent with other stampman services).
    """

    @classmethod
    def get(cls, member_id: int) -> Member | None:
        try:
            return Member.objects.get(pk=member_id)
        except Member.DoesNotExist:
            return None

    @classmethod
    def get_by_phone(cls, phone: str) -> Member | None:
        """Get member by phone (any formatting, matched on digits)."""
        normalized = Member.normalize_phone(phone)
        if not normalized:
            return None
        try:
            return Member.objects.get(phone=normalized)
        except Member.DoesNotExist:
            return None

    @classmethod
    def require(cls, member_id: int) -> Member:
        """Get member or raise MEMBER_NOT_FOUND."""
        member = cls.get(member_id)
        if member is None:
            raise StampmanError("MEMBER_NOT_FOUND", member_id=member_id)
        return member

    @classmethod
    def find_or_create_temporary(cls, phone: str, name: str) -> tuple[Member, bool]:
        """
        Find member by phone or create a TEMPORARY one.

        Event organizers enroll participants by phone before they sign up.
        Two enrollments racing on the same phone both end up with the row
        the unique constraint let through.

        Returns:
            Tuple of (Member, created: bool)

        Raises:
            StampmanError: INVALID_PHONE (no digits to match on)
        """
        if not Member.normalize_phone(phone):
            raise StampmanError("INVALID_PHONE", phone=phone)

        member = cls.get_by_phone(phone)
        if member:
            return member, False

        try:
            with transaction.atomic():
                member = Member.objects.create(
                    name=name,
                    phone=phone,
                    status=MemberStatus.TEMPORARY,
                )
        except IntegrityError:
            member = cls.get_by_phone(phone)
            if member is None:
                raise
            return member, False

        logger.info("Temporary member %s created for enrollment", member.pk)
        return member, True

    @classmethod
    def activate(cls, member_id: int, name: str | None = None) -> Member:
        """Promote a TEMPORARY member to ACTIVE (on sign-up)."""
        member = cls.require(member_id)
        member.status = MemberStatus.ACTIVE
        update_fields = ["status"]
        if name:
            member.name = name
            update_fields.append("name")
        member.save(update_fields=update_fields)
        return member
