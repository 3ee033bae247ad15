"""Tests for CardService."""

from unittest.mock import patch

import pytest

from stampman.exceptions import StampmanError
from stampman.models import CARD_CAPACITY, Member, MemberStatus, StampCard, StampEntry
from stampman.services import CardService, CouponService


pytestmark = pytest.mark.django_db


class TestActiveCard:
    """Tests for active card lookup and creation."""

    def test_created_on_first_use(self, member):
        card = CardService.get_or_create_active_card(member.pk)

        assert card.member_id == member.pk
        assert card.is_redeemed is False
        assert CardService.get_or_create_active_card(member.pk) == card

    def test_unknown_member(self, db):
        with pytest.raises(StampmanError, match="MEMBER_NOT_FOUND"):
            CardService.get_or_create_active_card(999_999)

    def test_summary_without_card(self, member):
        summary = CardService.get_card_summary(member.pk)

        assert summary.card_id is None
        assert summary.count == 0
        assert summary.remaining == CARD_CAPACITY
        assert summary.is_full is False

    def test_summary_of_full_card(self, member, full_card):
        summary = CardService.get_card_summary(member.pk)

        assert summary.card_id == full_card.pk
        assert summary.remaining == 0
        assert summary.is_full
        assert CardService.is_full(full_card.pk)
        assert CardService.count_entries(full_card.pk) == CARD_CAPACITY

    def test_entries_of_active_card_only(self, member, fill_card):
        old = fill_card(member, 2)
        old.is_redeemed = True
        old.save()
        fill_card(member, 3)

        entries = CardService.get_entries(member.pk)
        assert [e.slot for e in entries] == [1, 2, 3]


class TestGrantStamp:
    """Tests for CardService.grant_stamp."""

    def test_grant_for_event(self, member, event):
        entry = CardService.grant_stamp(member.pk, event_id=event.pk, created_by="staff")

        assert entry.event_id == event.pk
        assert entry.created_by == "staff"
        assert entry.slot == 1

    def test_grant_with_admin_note(self, member):
        entry = CardService.grant_stamp(member.pk, admin_note="  Volunteer day ")
        assert entry.admin_note == "Volunteer day"
        assert entry.event_id is None

    @pytest.mark.parametrize("kwargs", [{}, {"admin_note": "   "}, {"event_id": 1, "admin_note": "x"}])
    def test_needs_exactly_one_source(self, member, kwargs):
        with pytest.raises(StampmanError, match="INVALID_STAMP_SOURCE"):
            CardService.grant_stamp(member.pk, **kwargs)

    def test_unknown_event(self, member):
        with pytest.raises(StampmanError, match="EVENT_NOT_FOUND"):
            CardService.grant_stamp(member.pk, event_id=999_999)

    def test_duplicate_event(self, member, event):
        CardService.grant_stamp(member.pk, event_id=event.pk)

        with pytest.raises(StampmanError, match="DUPLICATE_STAMP_FOR_EVENT"):
            CardService.grant_stamp(member.pk, event_id=event.pk)

    def test_full_card(self, member, full_card):
        with pytest.raises(StampmanError, match="CARD_FULL"):
            CardService.grant_stamp(member.pk, admin_note="One more")

        assert full_card.entries.count() == CARD_CAPACITY

    def test_notifies_after_commit(self, member, event, django_capture_on_commit_callbacks):
        with patch("stampman.notifications.stamp_acquired_committed") as notify:
            with django_capture_on_commit_callbacks(execute=True):
                entry = CardService.grant_stamp(member.pk, event_id=event.pk)

        notify.assert_called_once_with(entry, 1)


class TestEnrollParticipants:
    """Tests for CardService.enroll_participants."""

    def test_existing_and_new_members(self, member, event):
        result = CardService.enroll_participants(
            event.pk,
            member_ids=[member.pk],
            phones=[("Park Sora", "010-5555-0001")],
            created_by="organizer",
        )

        newcomer = Member.objects.get(phone="01055550001")
        assert newcomer.status == MemberStatus.TEMPORARY
        assert result.stamped == [member.pk, newcomer.pk]
        assert result.skipped == {}
        assert StampEntry.objects.filter(event=event).count() == 2

    def test_phone_of_existing_member_reuses_it(self, member, event):
        result = CardService.enroll_participants(event.pk, phones=[("Kim", "01012345678")])

        assert result.stamped == [member.pk]
        assert Member.objects.count() == 1

    def test_rejections_are_skipped_not_fatal(self, member, member_b, fill_card, event):
        CardService.grant_stamp(member.pk, event_id=event.pk)
        fill_card(member_b)
        third = Member.objects.create(name="Choi", phone="01077770000")

        result = CardService.enroll_participants(
            event.pk, member_ids=[member.pk, member_b.pk, third.pk, 999_999]
        )

        assert result.stamped == [third.pk]
        assert result.skipped == {
            member.pk: "DUPLICATE_STAMP_FOR_EVENT",
            member_b.pk: "CARD_FULL",
            999_999: "MEMBER_NOT_FOUND",
        }

    def test_phone_without_digits_is_skipped(self, member, event):
        result = CardService.enroll_participants(
            event.pk,
            member_ids=[member.pk],
            phones=[("Other", "--"), ("Nobody", "n/a")],
        )

        assert result.stamped == [member.pk]
        assert result.skipped == {"--": "INVALID_PHONE", "n/a": "INVALID_PHONE"}
        assert not Member.objects.filter(phone="").exists()
        assert Member.objects.count() == 1

    def test_duplicates_in_batch_counted_once(self, member, event):
        result = CardService.enroll_participants(event.pk, member_ids=[member.pk, member.pk])

        assert result.stamped == [member.pk]
        assert StampEntry.objects.filter(member=member).count() == 1

    def test_unknown_event(self, member):
        with pytest.raises(StampmanError, match="EVENT_NOT_FOUND"):
            CardService.enroll_participants(999_999, member_ids=[member.pk])


class TestAdminCorrections:
    """Tests for entry/card deletion and the read flag."""

    def test_delete_entry_frees_its_slot(self, member, event, event_b):
        first = CardService.grant_stamp(member.pk, event_id=event.pk)
        CardService.grant_stamp(member.pk, event_id=event_b.pk)

        CardService.delete_entry(first.pk)

        assert not StampEntry.objects.filter(pk=first.pk).exists()
        assert CardService.grant_stamp(member.pk, admin_note="Replacement").slot == 1

    def test_delete_entry_of_rewarded_card(self, member, full_card):
        CouponService.issue_coupon(member.pk)
        entry = full_card.entries.first()

        with pytest.raises(StampmanError, match="ALREADY_ISSUED"):
            CardService.delete_entry(entry.pk)

        assert full_card.entries.count() == CARD_CAPACITY

    def test_delete_missing_entry(self, db):
        with pytest.raises(StampmanError, match="ENTRY_NOT_FOUND"):
            CardService.delete_entry(999_999)

    def test_delete_card(self, member, fill_card):
        card = fill_card(member, 4)

        CardService.delete_card(card.pk)

        assert not StampCard.objects.filter(pk=card.pk).exists()
        assert not StampEntry.objects.filter(member=member).exists()

    def test_delete_rewarded_card(self, member, full_card):
        CouponService.issue_coupon(member.pk)

        with pytest.raises(StampmanError, match="ALREADY_ISSUED"):
            CardService.delete_card(full_card.pk)

    def test_delete_missing_card(self, db):
        with pytest.raises(StampmanError, match="CARD_NOT_FOUND"):
            CardService.delete_card(999_999)

    def test_mark_entry_viewed(self, member, member_b, event):
        entry = CardService.grant_stamp(member.pk, event_id=event.pk)

        with pytest.raises(StampmanError, match="ENTRY_NOT_FOUND"):
            CardService.mark_entry_viewed(entry.pk, member_b.pk)

        CardService.mark_entry_viewed(entry.pk, member.pk)
        entry.refresh_from_db()
        assert entry.is_viewed is True
