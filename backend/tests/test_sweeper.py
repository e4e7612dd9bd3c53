"""Auto-completion sweep."""

from datetime import datetime, timedelta

import pytest_asyncio
from sqlalchemy.exc import OperationalError

from relief_tracker.models import ReliefPin
from relief_tracker.models.enums import PinStatus
from relief_tracker.services.repository import PinRepository
from relief_tracker.services.sweeper import auto_complete_expired_pins

NOW = datetime(2026, 3, 1, 12, 0, 0)


@pytest_asyncio.fixture
async def pins(make_profile, make_pin):
    await make_profile("owner")
    return {
        "expired": await make_pin("owner", status=PinStatus.APPROVED, end_datetime=NOW - timedelta(hours=1)),
        "future": await make_pin("owner", status=PinStatus.APPROVED, end_datetime=NOW + timedelta(hours=1)),
        "open_ended": await make_pin("owner", status=PinStatus.APPROVED),
        "pending_expired": await make_pin("owner", status=PinStatus.PENDING, end_datetime=NOW - timedelta(hours=1)),
    }


async def test_only_expired_approved_pins_complete(pins, fetch_pin, db):
    result = await auto_complete_expired_pins(db, now=NOW)

    assert result.ok is True
    assert result.completed == 1
    assert result.pin_ids == [pins["expired"].id]

    assert (await fetch_pin(pins["expired"].id)).status == PinStatus.COMPLETED
    assert (await fetch_pin(pins["future"].id)).status == PinStatus.APPROVED
    assert (await fetch_pin(pins["open_ended"].id)).status == PinStatus.APPROVED
    assert (await fetch_pin(pins["pending_expired"].id)).status == PinStatus.PENDING


async def test_second_sweep_completes_nothing(pins, db):
    first = await auto_complete_expired_pins(db, now=NOW)
    second = await auto_complete_expired_pins(db, now=NOW)

    assert first.completed == 1
    assert second.ok is True
    assert second.completed == 0
    assert second.pin_ids == []


async def test_end_exactly_now_is_not_expired(make_profile, make_pin, fetch_pin, db):
    await make_profile("owner")
    pin = await make_pin("owner", status=PinStatus.APPROVED, end_datetime=NOW)

    result = await auto_complete_expired_pins(db, now=NOW)

    assert result.completed == 0
    assert (await fetch_pin(pin.id)).status == PinStatus.APPROVED


async def test_sweep_leaves_visibility_flag_alone(make_profile, make_pin, fetch_pin, db):
    await make_profile("owner")
    pin = await make_pin(
        "owner", status=PinStatus.APPROVED, is_active=False, end_datetime=NOW - timedelta(days=1)
    )

    result = await auto_complete_expired_pins(db, now=NOW)

    stored = await fetch_pin(pin.id)
    assert result.completed == 1
    assert stored.status == PinStatus.COMPLETED
    assert stored.is_active is False


async def test_database_failure_is_reported_not_raised(pins, fetch_pin, db, monkeypatch):
    async def broken(self, pin_ids, now):
        raise OperationalError("UPDATE relief_pins", {}, Exception("database is locked"))

    monkeypatch.setattr(PinRepository, "complete_expired", broken)

    result = await auto_complete_expired_pins(db, now=NOW)

    assert result.ok is False
    assert result.completed == 0
    assert "database is locked" in result.error
    assert (await fetch_pin(pins["expired"].id)).status == PinStatus.APPROVED


async def test_pin_edited_after_selection_is_not_completed(
    pins, session_factory, fetch_pin, db, monkeypatch
):
    select_expired = PinRepository.expired_approved_ids

    async def select_then_edit(self, now):
        pin_ids = await select_expired(self, now)
        # The owner edits the pin, sending it back to moderation
        async with session_factory() as other:
            pin = await other.get(ReliefPin, pins["expired"].id)
            pin.status = PinStatus.PENDING
            await other.commit()
        return pin_ids

    monkeypatch.setattr(PinRepository, "expired_approved_ids", select_then_edit)

    result = await auto_complete_expired_pins(db, now=NOW)

    assert result.ok is True
    assert result.completed == 0
    assert result.pin_ids == []
    assert (await fetch_pin(pins["expired"].id)).status == PinStatus.PENDING
