"""Pin visibility rules and list derivations.

A pin is visible to a viewer when:

- it is active (hidden pins are never visible, not even to their owner), and
- the viewer is an admin, or the pin is approved, or the viewer owns it.

The same rule is exposed as a Python predicate (for already-fetched pins)
and as a SQL clause (for queries), and the two must stay equivalent.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from sqlalchemy import and_, or_
from sqlalchemy.sql.elements import ColumnElement

from relief_tracker.models.enums import PinStatus, StatusFilter, UserRole
from relief_tracker.models.pin import ReliefPin
from relief_tracker.schemas.pin import PinStats


@dataclass(frozen=True)
class Viewer:
    """Identity on whose behalf pins are queried."""

    user_id: str
    role: UserRole = UserRole.PUBLIC

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


def is_visible(pin: ReliefPin, viewer: Viewer) -> bool:
    if not pin.is_active:
        return False
    if viewer.is_admin:
        return True
    return pin.status == PinStatus.APPROVED or pin.user_id == viewer.user_id


def filter_visible(pins: Iterable[ReliefPin], viewer: Viewer) -> list[ReliefPin]:
    return [pin for pin in pins if is_visible(pin, viewer)]


def visibility_clause(viewer: Viewer) -> ColumnElement[bool]:
    """SQL equivalent of :func:`is_visible`."""
    if viewer.is_admin:
        return ReliefPin.is_active == True
    return and_(
        ReliefPin.is_active == True,
        or_(
            ReliefPin.status == PinStatus.APPROVED,
            ReliefPin.user_id == viewer.user_id,
        ),
    )


def matches_status(pin: ReliefPin, status_filter: StatusFilter) -> bool:
    if status_filter == StatusFilter.ALL:
        return True
    if status_filter == StatusFilter.PENDING:
        return pin.status == PinStatus.PENDING
    if status_filter == StatusFilter.APPROVED:
        return pin.status == PinStatus.APPROVED
    if status_filter == StatusFilter.REJECTED:
        return pin.status == PinStatus.REJECTED
    if status_filter == StatusFilter.COMPLETED:
        return pin.status == PinStatus.COMPLETED
    raise ValueError(f"Unknown status filter: {status_filter}")


def filter_by_status(pins: Iterable[ReliefPin], status_filter: StatusFilter) -> list[ReliefPin]:
    return [pin for pin in pins if matches_status(pin, status_filter)]


def derive_view(
    pins: Iterable[ReliefPin],
    viewer: Viewer,
    status_filter: StatusFilter = StatusFilter.ALL,
    exclude_completed: bool = False,
    mine: bool = False,
) -> list[ReliefPin]:
    """Narrow a visible pin set down to one list view.

    Input order is preserved, so a newest-first fetch stays newest-first.
    """
    view = filter_by_status(filter_visible(pins, viewer), status_filter)
    if exclude_completed:
        view = [pin for pin in view if pin.status != PinStatus.COMPLETED]
    if mine:
        view = [pin for pin in view if pin.user_id == viewer.user_id]
    return view


def compute_stats(pins: Iterable[ReliefPin], viewer: Optional[Viewer] = None) -> PinStats:
    """Count pins per status.

    Hidden pins are only counted under ``hidden``; callers pass either a
    visibility-filtered set or, for the admin console, every pin.
    """
    stats = PinStats()
    for pin in pins:
        if not pin.is_active:
            stats.hidden += 1
            continue
        stats.total += 1
        if pin.status == PinStatus.PENDING:
            stats.pending += 1
        elif pin.status == PinStatus.APPROVED:
            stats.approved += 1
        elif pin.status == PinStatus.REJECTED:
            stats.rejected += 1
        elif pin.status == PinStatus.COMPLETED:
            stats.completed += 1
        if viewer is not None and pin.user_id == viewer.user_id:
            stats.mine += 1
    return stats
