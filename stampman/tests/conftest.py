"""Pytest fixtures for Stampman tests."""

from datetime import timedelta

import pytest
from django.utils import timezone

from stampman.models import (
    CARD_CAPACITY,
    ClaimableStamp,
    Event,
    Member,
    StampCard,
    StampEntry,
)


@pytest.fixture
def member(db):
    """Create a test member."""
    return Member.objects.create(name="Kim Minji", phone="010-1234-5678")


@pytest.fixture
def member_b(db):
    """Create a second member."""
    return Member.objects.create(name="Lee Jun", phone="010-8765-4321")


@pytest.fixture
def event(db):
    """Create an event ending tomorrow."""
    return Event.objects.create(
        name="Spring Concert",
        end_date=timezone.now() + timedelta(days=1),
    )


@pytest.fixture
def event_b(db):
    """Create a second event."""
    return Event.objects.create(
        name="Book Fair",
        end_date=timezone.now() + timedelta(days=2),
    )


@pytest.fixture
def claim_code(db, event):
    """Single-use claim code for `event`, valid for a week."""
    return ClaimableStamp.objects.create(
        claim_code="SPRING-01",
        event=event,
        expires_at=timezone.now() + timedelta(days=7),
        max_uses=1,
    )


@pytest.fixture
def open_code(db, event):
    """Unlimited claim code for `event`."""
    return ClaimableStamp.objects.create(
        claim_code="SPRING-ALL",
        event=event,
        expires_at=timezone.now() + timedelta(days=7),
        max_uses=None,
    )


@pytest.fixture
def make_events(db):
    """Factory: create n events with distinct names."""

    def _make(n, prefix="Event"):
        end = timezone.now() + timedelta(days=1)
        return [Event.objects.create(name=f"{prefix} {i}", end_date=end) for i in range(n)]

    return _make


@pytest.fixture
def fill_card(db, make_events):
    """Factory: give a member `count` event stamps on their active card."""

    def _fill(member, count=CARD_CAPACITY):
        card = StampCard.objects.filter(member=member, is_redeemed=False).first()
        if card is None:
            card = StampCard.objects.create(member=member)
        start = card.entries.count()
        for i, ev in enumerate(make_events(count, prefix=f"Fill {member.pk}"), start=1):
            StampEntry.objects.create(
                stamp_card=card,
                member=member,
                event=ev,
                slot=start + i,
            )
        return card

    return _fill


@pytest.fixture
def full_card(member, fill_card):
    """Active card of `member` with every slot filled."""
    return fill_card(member)
