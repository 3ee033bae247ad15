"""Card service - active cards, stamp grants and admin corrections."""

import logging
from dataclasses import dataclass, field
from functools import partial

from django.db import transaction

from stampman import notifications, store
from stampman.adapters.events import get_event_catalog
from stampman.exceptions import StampmanError
from stampman.gates import Gates
from stampman.models import CARD_CAPACITY, StampCard, StampEntry
from stampman.services.members import MemberService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CardSummary:
    """Display snapshot of a member's active card. Advisory only."""

    card_id: int | None
    count: int
    capacity: int = CARD_CAPACITY

    @property
    def remaining(self) -> int:
        return max(0, self.capacity - self.count)

    @property
    def is_full(self) -> bool:
        return self.count >= self.capacity


@dataclass
class EnrollmentResult:
    """Outcome of a batch enrollment: who got a stamp, who was skipped and why."""

    event_id: int
    stamped: list[int] = field(default_factory=list)
    skipped: dict[int | str, str] = field(default_factory=dict)


class CardService:
    """
    Service for stamp card operations.

    Uses @classmethod for extensibility (consistent with other stampman services).
    Every mutation runs in store.ledger_atomic() and re-checks its gates under
    a row lock on the card.
    """

    @classmethod
    def get_or_create_active_card(cls, member_id: int, lock: bool = False) -> StampCard:
        """
        Return the member's active card, creating it on first use.

        Args:
            member_id: Member ID
            lock: Lock the card row (caller must be inside a transaction)

        Raises:
            StampmanError: MEMBER_NOT_FOUND
        """
        card = store.find_active_card(member_id, lock=lock)
        if card is not None:
            return card

        MemberService.require(member_id)
        card = store.create_card(member_id)
        if not lock:
            return card

        locked = store.find_active_card(member_id, lock=True)
        if locked is None:
            # The card was redeemed between creation and locking.
            raise StampmanError("TRANSIENT_STORE_ERROR", member_id=member_id)
        return locked

    @classmethod
    def count_entries(cls, card_id: int) -> int:
        return store.count_entries(card_id)

    @classmethod
    def is_full(cls, card_id: int) -> bool:
        return store.count_entries(card_id) >= CARD_CAPACITY

    @classmethod
    def get_card_summary(cls, member_id: int) -> CardSummary:
        """Entry count of the active card (0 if the member has none yet)."""
        card = store.find_active_card(member_id)
        if card is None:
            return CardSummary(card_id=None, count=0)
        return CardSummary(card_id=card.pk, count=store.count_entries(card.pk))

    @classmethod
    def get_entries(cls, member_id: int) -> list[StampEntry]:
        """Entries on the member's active card, in slot order."""
        return list(
            StampEntry.objects.filter(
                stamp_card__member_id=member_id,
                stamp_card__is_redeemed=False,
            ).select_related("event")
        )

    # ======================================================================
    # Grants
    # ======================================================================

    @classmethod
    def grant_stamp(
        cls,
        member_id: int,
        event_id: int | None = None,
        admin_note: str = "",
        created_by: str = "",
    ) -> StampEntry:
        """
        Grant a stamp directly (admin action).

        Exactly one of event_id / admin_note must be given.

        Raises:
            StampmanError: INVALID_STAMP_SOURCE, EVENT_NOT_FOUND, MEMBER_NOT_FOUND,
                DUPLICATE_STAMP_FOR_EVENT, CARD_FULL
        """
        admin_note = admin_note.strip()
        if (event_id is not None) == bool(admin_note):
            raise StampmanError("INVALID_STAMP_SOURCE")
        with store.ledger_atomic():
            if event_id is not None:
                cls._require_event(event_id)
            entry = cls._stamp(member_id, event_id, admin_note, created_by)

        logger.info("Stamp granted: member=%s entry=%s by=%s", member_id, entry.pk, created_by)
        return entry

    @classmethod
    def enroll_participants(
        cls,
        event_id: int,
        member_ids: list[int] | None = None,
        phones: list[tuple[str, str]] | None = None,
        created_by: str = "",
    ) -> EnrollmentResult:
        """
        Stamp every participant of an event (batch enrollment).

        Each participant is resolved and stamped in its own savepoint. Members
        that already hold the event's stamp, have a full card, or do not exist
        are reported in `skipped` with the rejection code, keyed by member id.
        Phones that cannot be resolved (INVALID_PHONE) are keyed by the phone
        as given. The rest of the batch proceeds.

        Args:
            event_id: Event the participants attended
            member_ids: Existing member IDs
            phones: (name, phone) pairs; unknown phones become TEMPORARY members
            created_by: Who ran the enrollment

        Raises:
            StampmanError: EVENT_NOT_FOUND
        """
        result = EnrollmentResult(event_id=event_id)
        participants = [(member_id, None) for member_id in member_ids or []]
        participants += [(None, pair) for pair in phones or []]
        seen = set()

        with store.ledger_atomic():
            cls._require_event(event_id)

            for member_id, pair in participants:
                key = member_id if pair is None else pair[1]
                try:
                    with transaction.atomic():
                        if pair is not None:
                            member, _ = MemberService.find_or_create_temporary(
                                pair[1], pair[0]
                            )
                            member_id = key = member.pk
                        if member_id in seen:
                            continue
                        seen.add(member_id)
                        cls._stamp(member_id, event_id, "", created_by)
                except StampmanError as e:
                    if e.retryable:
                        raise
                    result.skipped[key] = e.code
                else:
                    result.stamped.append(member_id)

        logger.info(
            "Event %s enrollment: %d stamped, %d skipped",
            event_id,
            len(result.stamped),
            len(result.skipped),
        )
        return result

    @classmethod
    def _stamp(
        cls,
        member_id: int,
        event_id: int | None,
        admin_note: str,
        created_by: str,
    ) -> StampEntry:
        """Append one entry to the locked active card. MUST run inside a transaction."""
        card = cls.get_or_create_active_card(member_id, lock=True)
        Gates.one_stamp_per_event(card, event_id)
        Gates.card_capacity(card)

        entry = store.create_entry(
            card.pk,
            member_id,
            event_id=event_id,
            admin_note=admin_note,
            created_by=created_by,
        )
        count = store.count_entries(card.pk)
        transaction.on_commit(
            partial(notifications.stamp_acquired_committed, entry, count)
        )
        return entry

    # ======================================================================
    # Admin corrections
    # ======================================================================

    @classmethod
    def delete_entry(cls, entry_id: int) -> None:
        """
        Remove a stamp from a card.

        Raises:
            StampmanError: ENTRY_NOT_FOUND, ALREADY_ISSUED (card has a coupon)
        """
        with store.ledger_atomic():
            try:
                entry = StampEntry.objects.select_for_update().get(pk=entry_id)
            except StampEntry.DoesNotExist:
                raise StampmanError("ENTRY_NOT_FOUND", entry_id=entry_id)

            card = cls._lock_card(entry.stamp_card_id)
            Gates.coupon_not_attached(card)
            entry.delete()

        logger.info("Stamp entry %s deleted from card %s", entry_id, card.pk)

    @classmethod
    def delete_card(cls, card_id: int) -> None:
        """
        Remove a card and all its entries.

        Raises:
            StampmanError: CARD_NOT_FOUND, ALREADY_ISSUED (card has a coupon)
        """
        with store.ledger_atomic():
            card = cls._lock_card(card_id)
            Gates.coupon_not_attached(card)
            StampEntry.objects.filter(stamp_card=card).delete()
            card.delete()

        logger.info("Stamp card %s deleted", card_id)

    @classmethod
    def mark_entry_viewed(cls, entry_id: int, member_id: int) -> None:
        """
        Flag an entry as seen by its owner (card UI read state).

        Raises:
            StampmanError: ENTRY_NOT_FOUND (missing or owned by someone else)
        """
        updated = StampEntry.objects.filter(pk=entry_id, member_id=member_id).update(
            is_viewed=True
        )
        if not updated:
            raise StampmanError("ENTRY_NOT_FOUND", entry_id=entry_id)

    @classmethod
    def _lock_card(cls, card_id: int) -> StampCard:
        try:
            return StampCard.objects.select_for_update().get(pk=card_id)
        except StampCard.DoesNotExist:
            raise StampmanError("CARD_NOT_FOUND", card_id=card_id)

    @classmethod
    def _require_event(cls, event_id: int):
        event = get_event_catalog().get_event(event_id)
        if event is None:
            raise StampmanError("EVENT_NOT_FOUND", event_id=event_id)
        return event
