"""Visibility rule, list derivations and stats."""

import itertools
from datetime import datetime, timedelta

import pytest

from relief_tracker.models import ReliefPin
from relief_tracker.models.enums import PinStatus, ReliefType, StatusFilter, UserRole
from relief_tracker.services.repository import PinRepository
from relief_tracker.services.visibility import (
    Viewer,
    compute_stats,
    derive_view,
    filter_visible,
    is_visible,
    matches_status,
)

OWNER = Viewer(user_id="owner")
STRANGER = Viewer(user_id="stranger")
ADMIN = Viewer(user_id="admin", role=UserRole.ADMIN)


def pin(status=PinStatus.APPROVED, is_active=True, user_id="owner", minutes_ago=0):
    return ReliefPin(
        user_id=user_id,
        latitude=10.5,
        longitude=123.9,
        location_name="Evacuation Center",
        relief_type=ReliefType.WATER,
        description="Drinking water",
        status=status,
        is_active=is_active,
        created_at=datetime(2026, 1, 1) - timedelta(minutes=minutes_ago),
    )


ALL_PINS = [
    pin(status=status, is_active=active, user_id=owner)
    for status, active, owner in itertools.product(
        list(PinStatus), [True, False], ["owner", "stranger"]
    )
]


@pytest.mark.parametrize("viewer", [OWNER, STRANGER, ADMIN])
def test_hidden_pins_are_never_visible(viewer):
    for p in ALL_PINS:
        if not p.is_active:
            assert not is_visible(p, viewer)


@pytest.mark.parametrize("viewer", [OWNER, STRANGER])
def test_non_admin_sees_approved_or_own(viewer):
    for p in ALL_PINS:
        if not p.is_active:
            continue
        expected = p.status == PinStatus.APPROVED or p.user_id == viewer.user_id
        assert is_visible(p, viewer) == expected


def test_admin_sees_every_active_pin():
    visible = filter_visible(ALL_PINS, ADMIN)
    assert visible == [p for p in ALL_PINS if p.is_active]


def test_owner_sees_own_pending_but_stranger_does_not():
    pending = pin(status=PinStatus.PENDING)
    assert is_visible(pending, OWNER)
    assert not is_visible(pending, STRANGER)


def test_matches_status_covers_every_filter():
    approved = pin(status=PinStatus.APPROVED)
    assert matches_status(approved, StatusFilter.ALL)
    assert matches_status(approved, StatusFilter.APPROVED)
    for status_filter in (StatusFilter.PENDING, StatusFilter.REJECTED, StatusFilter.COMPLETED):
        assert not matches_status(approved, status_filter)


def test_derive_view_keeps_order_and_applies_filters():
    pins = [
        pin(status=PinStatus.APPROVED, minutes_ago=1),
        pin(status=PinStatus.COMPLETED, minutes_ago=2),
        pin(status=PinStatus.APPROVED, user_id="stranger", minutes_ago=3),
        pin(status=PinStatus.PENDING, user_id="stranger", minutes_ago=4),
    ]

    assert derive_view(pins, OWNER) == pins[:3]
    assert derive_view(pins, OWNER, exclude_completed=True) == [pins[0], pins[2]]
    assert derive_view(pins, OWNER, mine=True) == pins[:2]
    assert derive_view(pins, OWNER, status_filter=StatusFilter.COMPLETED) == [pins[1]]
    assert derive_view(pins, ADMIN, status_filter=StatusFilter.PENDING) == [pins[3]]


def test_compute_stats_counts_hidden_separately():
    pins = [
        pin(status=PinStatus.PENDING),
        pin(status=PinStatus.APPROVED, user_id="stranger"),
        pin(status=PinStatus.APPROVED, is_active=False),
        pin(status=PinStatus.REJECTED, user_id="stranger"),
        pin(status=PinStatus.COMPLETED),
    ]

    stats = compute_stats(pins, OWNER)

    assert stats.total == 4
    assert stats.pending == 1
    assert stats.approved == 1
    assert stats.rejected == 1
    assert stats.completed == 1
    assert stats.hidden == 1
    assert stats.mine == 2


async def test_sql_clause_matches_predicate(make_profile, make_pin, db):
    await make_profile("owner")
    await make_profile("stranger")
    for status, active, owner in itertools.product(
        list(PinStatus), [True, False], ["owner", "stranger"]
    ):
        await make_pin(owner, status=status, is_active=active)

    repo = PinRepository(db)
    everything = await repo.list_all()
    assert len(everything) == len(PinStatus) * 4

    for viewer in (OWNER, STRANGER, ADMIN):
        from_sql = {p.id for p in await repo.list_visible(viewer)}
        from_predicate = {p.id for p in filter_visible(everything, viewer)}
        assert from_sql == from_predicate


async def test_list_visible_is_newest_first(make_profile, make_pin, db):
    await make_profile("owner")
    now = datetime.utcnow()
    older = await make_pin("owner", created_at=now - timedelta(hours=2))
    newer = await make_pin("owner", created_at=now)

    pins = await PinRepository(db).list_visible(OWNER)

    assert [p.id for p in pins] == [newer.id, older.id]
