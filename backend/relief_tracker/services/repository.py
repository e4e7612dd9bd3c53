"""Persistence gateway over the relief pin and user profile tables.

All reads join the owner profile eagerly (async sessions cannot lazy-load),
and every list is ordered newest first.
"""

from datetime import datetime
from typing import Any, Optional, Sequence
from uuid import UUID

from sqlalchemy import select, update, delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from relief_tracker.models.enums import PinStatus
from relief_tracker.models.pin import ReliefPin
from relief_tracker.models.user import UserProfile
from relief_tracker.services.visibility import Viewer, visibility_clause


class PinRepository:
    """Queries and mutations on relief pins."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _select(self):
        return (
            select(ReliefPin)
            .options(selectinload(ReliefPin.user_profile))
            .order_by(ReliefPin.created_at.desc())
        )

    async def list_visible(self, viewer: Viewer) -> list[ReliefPin]:
        """Pins the viewer is allowed to see."""
        result = await self.db.execute(self._select().where(visibility_clause(viewer)))
        return list(result.scalars().all())

    async def list_all(self, include_hidden: bool = True) -> list[ReliefPin]:
        """Every pin, for the moderation console."""
        query = self._select()
        if not include_hidden:
            query = query.where(ReliefPin.is_active == True)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get(self, pin_id: UUID) -> Optional[ReliefPin]:
        result = await self.db.execute(
            self._select()
            .where(ReliefPin.id == pin_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def insert(self, **values: Any) -> ReliefPin:
        pin = ReliefPin(**values)
        self.db.add(pin)
        await self.db.flush()
        return pin

    async def update_fields(self, pin: ReliefPin, values: dict[str, Any]) -> ReliefPin:
        """Apply a field subset to a loaded pin."""
        for field, value in values.items():
            setattr(pin, field, value)
        await self.db.flush()
        return pin

    async def delete(self, pin_id: UUID) -> bool:
        result = await self.db.execute(delete(ReliefPin).where(ReliefPin.id == pin_id))
        return result.rowcount > 0

    async def expired_approved_ids(self, now: datetime) -> list[UUID]:
        """Ids of approved pins whose relief window has ended."""
        result = await self.db.execute(
            select(ReliefPin.id).where(
                ReliefPin.status == PinStatus.APPROVED,
                ReliefPin.end_datetime.is_not(None),
                ReliefPin.end_datetime < now,
            )
        )
        return list(result.scalars().all())

    async def complete_expired(self, pin_ids: Sequence[UUID], now: datetime) -> list[UUID]:
        """Complete the given pins in one statement.

        The approved and expired conditions are checked again by the UPDATE,
        so a pin edited back to pending since it was selected is skipped.
        Returns the ids that were actually completed.
        """
        if not pin_ids:
            return []
        result = await self.db.execute(
            update(ReliefPin)
            .where(
                ReliefPin.id.in_(list(pin_ids)),
                ReliefPin.status == PinStatus.APPROVED,
                ReliefPin.end_datetime < now,
            )
            .values(status=PinStatus.COMPLETED, updated_at=datetime.utcnow())
            .returning(ReliefPin.id)
            .execution_options(synchronize_session="fetch")
        )
        return list(result.scalars().all())


class ProfileRepository:
    """Queries and mutations on user profiles."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, user_id: str) -> Optional[UserProfile]:
        result = await self.db.execute(
            select(UserProfile).where(UserProfile.id == user_id)
        )
        return result.scalar_one_or_none()

    async def list_all(self) -> list[UserProfile]:
        result = await self.db.execute(
            select(UserProfile).order_by(UserProfile.created_at.desc())
        )
        return list(result.scalars().all())

    async def insert(self, **values: Any) -> UserProfile:
        profile = UserProfile(**values)
        self.db.add(profile)
        await self.db.flush()
        return profile

    async def update_fields(self, profile: UserProfile, values: dict[str, Any]) -> UserProfile:
        for field, value in values.items():
            setattr(profile, field, value)
        await self.db.flush()
        return profile
