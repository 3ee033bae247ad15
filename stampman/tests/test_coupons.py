"""Tests for CouponService."""

import re
from datetime import timedelta
from unittest.mock import patch

import pytest
from django.db import OperationalError
from django.test import override_settings
from django.utils import timezone

from stampman.exceptions import StampmanError
from stampman.gates import GateResult, Gates
from stampman.models import Coupon, StampCard
from stampman.services import CouponService
from stampman.signals import coupon_issued, coupon_status_changed


pytestmark = pytest.mark.django_db


class TestIssueCoupon:
    """Tests for CouponService.issue_coupon."""

    def test_full_card_becomes_coupon(self, member, full_card):
        coupon = CouponService.issue_coupon(member.pk)

        full_card.refresh_from_db()
        assert full_card.is_redeemed is True
        assert coupon.stamp_card_id == full_card.pk
        assert coupon.is_used is False
        assert Coupon.objects.filter(stamp_card=full_card).count() == 1

    def test_code_format(self, member, full_card):
        coupon = CouponService.issue_coupon(member.pk)
        assert re.fullmatch(r"TEST-[A-Z0-9]{4}-[A-Z0-9]{4}-[A-Z0-9]{4}", coupon.code)

    def test_description_and_validity(self, member, full_card):
        before = timezone.now()
        coupon = CouponService.issue_coupon(member.pk)

        assert coupon.description == f"{before.year} stamp event reward"
        assert coupon.expires_at - before >= timedelta(days=365)
        assert coupon.expires_at - before < timedelta(days=365, minutes=1)

    @override_settings(STAMPMAN={"COUPON_VALID_DAYS": 30, "COUPON_DESCRIPTION": "Free drink"})
    def test_configurable(self, member, full_card):
        coupon = CouponService.issue_coupon(member.pk)

        assert coupon.description == "Free drink"
        assert coupon.code.startswith("STAMP-")
        assert coupon.expires_at - coupon.created_at < timedelta(days=31)

    def test_second_call_has_no_active_card(self, member, full_card):
        CouponService.issue_coupon(member.pk)

        with pytest.raises(StampmanError, match="NO_ACTIVE_CARD"):
            CouponService.issue_coupon(member.pk)

        assert Coupon.objects.count() == 1

    def test_no_card(self, member):
        with pytest.raises(StampmanError, match="NO_ACTIVE_CARD"):
            CouponService.issue_coupon(member.pk)

    def test_card_not_full(self, member, fill_card):
        card = fill_card(member, 9)

        with pytest.raises(StampmanError, match="CARD_NOT_FULL"):
            CouponService.issue_coupon(member.pk)

        card.refresh_from_db()
        assert card.is_redeemed is False

    def test_lost_issue_race_is_already_issued(self, member, full_card):
        """A coupon attached between pre-check and insert is caught by the store."""
        Coupon.objects.create(
            stamp_card=full_card,
            code="TEST-RACE-0000-0000",
            description="reward",
            expires_at=timezone.now() + timedelta(days=365),
        )

        passed = GateResult(True, "G7_CouponNotAttached")
        with patch.object(Gates, "coupon_not_attached", return_value=passed):
            with pytest.raises(StampmanError, match="ALREADY_ISSUED"):
                CouponService.issue_coupon(member.pk)

        full_card.refresh_from_db()
        assert full_card.is_redeemed is False
        assert Coupon.objects.count() == 1

    def test_code_collision_retries(self, member, member_b, fill_card):
        fill_card(member)
        fill_card(member_b)
        first = CouponService.issue_coupon(member.pk)

        codes = [first.code, "TEST-NEW0-NEW0-NEW0"]
        with patch.object(CouponService, "generate_code", side_effect=codes):
            second = CouponService.issue_coupon(member_b.pk)

        assert second.code == "TEST-NEW0-NEW0-NEW0"

    @override_settings(STAMPMAN={"COUPON_CODE_ATTEMPTS": 2})
    def test_code_collision_gives_up(self, member, member_b, fill_card):
        fill_card(member)
        card_b = fill_card(member_b)
        first = CouponService.issue_coupon(member.pk)

        with patch.object(CouponService, "generate_code", return_value=first.code):
            with pytest.raises(StampmanError) as exc:
                CouponService.issue_coupon(member_b.pk)

        assert exc.value.code == "TRANSIENT_STORE_ERROR"
        card_b.refresh_from_db()
        assert card_b.is_redeemed is False

    def test_lost_connection_is_transient(self, member, full_card):
        with patch(
            "stampman.store.find_active_card",
            side_effect=OperationalError("server closed the connection"),
        ):
            with pytest.raises(StampmanError) as exc:
                CouponService.issue_coupon(member.pk)

        assert exc.value.code == "TRANSIENT_STORE_ERROR"
        assert exc.value.retryable
        assert not Coupon.objects.exists()

    def test_signal_after_commit(self, member, full_card, django_capture_on_commit_callbacks):
        received = []

        def receiver(sender, coupon, **kwargs):
            received.append(coupon.pk)

        coupon_issued.connect(receiver)
        try:
            with django_capture_on_commit_callbacks(execute=True):
                coupon = CouponService.issue_coupon(member.pk)
        finally:
            coupon_issued.disconnect(receiver)

        assert received == [coupon.pk]


class TestSetCouponUsed:
    """Tests for CouponService.set_coupon_used."""

    def test_mark_used_and_back(self, member, full_card):
        coupon = CouponService.issue_coupon(member.pk)

        used = CouponService.set_coupon_used(coupon.pk, True)
        assert used.is_used is True
        assert used.used_at is not None

        reopened = CouponService.set_coupon_used(coupon.pk, False)
        assert reopened.is_used is False
        assert reopened.used_at is None

    def test_card_stays_redeemed(self, member, full_card):
        """Un-using a coupon never reopens its card for stamps."""
        coupon = CouponService.issue_coupon(member.pk)
        CouponService.set_coupon_used(coupon.pk, True)
        CouponService.set_coupon_used(coupon.pk, False)

        assert StampCard.objects.get(pk=full_card.pk).is_redeemed is True
        assert not StampCard.objects.filter(member=member, is_redeemed=False).exists()

    def test_repeat_keeps_first_used_at(self, member, full_card):
        coupon = CouponService.issue_coupon(member.pk)
        first = CouponService.set_coupon_used(coupon.pk, True).used_at

        assert CouponService.set_coupon_used(coupon.pk, True).used_at == first

    def test_missing_coupon(self, db):
        with pytest.raises(StampmanError, match="COUPON_NOT_FOUND"):
            CouponService.set_coupon_used(999_999, True)

    def test_status_signal(self, member, full_card, django_capture_on_commit_callbacks):
        coupon = CouponService.issue_coupon(member.pk)
        received = []

        def receiver(sender, coupon, is_used, **kwargs):
            received.append(is_used)

        coupon_status_changed.connect(receiver)
        try:
            with django_capture_on_commit_callbacks(execute=True):
                CouponService.set_coupon_used(coupon.pk, True)
        finally:
            coupon_status_changed.disconnect(receiver)

        assert received == [True]

    def test_unchanged_state_sends_no_signal(
        self, member, full_card, django_capture_on_commit_callbacks
    ):
        coupon = CouponService.issue_coupon(member.pk)
        received = []

        def receiver(sender, coupon, is_used, **kwargs):
            received.append(is_used)

        coupon_status_changed.connect(receiver)
        try:
            with django_capture_on_commit_callbacks(execute=True):
                CouponService.set_coupon_used(coupon.pk, True)
                CouponService.set_coupon_used(coupon.pk, True)
            with django_capture_on_commit_callbacks(execute=True) as callbacks:
                CouponService.set_coupon_used(coupon.pk, True)
        finally:
            coupon_status_changed.disconnect(receiver)

        assert received == [True]
        assert callbacks == []

    def test_unchanged_state_leaves_card_untouched(self, member, full_card):
        coupon = CouponService.issue_coupon(member.pk)

        with patch.object(StampCard.objects, "filter") as card_filter:
            CouponService.set_coupon_used(coupon.pk, False)

        card_filter.assert_not_called()

    def test_get_coupons(self, member, member_b, fill_card):
        fill_card(member)
        mine = CouponService.issue_coupon(member.pk)
        fill_card(member)
        newer = CouponService.issue_coupon(member.pk)
        fill_card(member_b)
        CouponService.issue_coupon(member_b.pk)

        assert CouponService.get_coupons(member.pk) == [newer, mine]
