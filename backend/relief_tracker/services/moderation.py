"""Moderation of relief pins and user profiles.

Pin status transitions (admin only, enforced by the router dependency):

    pending   --approve-->  approved
    pending   --reject--->  rejected
    approved  --complete->  completed   (also done by the sweeper)

Hide and unhide flip ``is_active`` and never touch ``status``. Rejected and
completed are terminal. Delete is the only irreversible removal.
"""

import logging
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from relief_tracker.models.enums import PinAction, PinStatus, UserRole
from relief_tracker.models.pin import ReliefPin
from relief_tracker.models.user import UserProfile
from relief_tracker.services.repository import PinRepository, ProfileRepository
from relief_tracker.services.visibility import Viewer

logger = logging.getLogger(__name__)

# action -> (required current status, new status)
STATUS_TRANSITIONS: dict[PinAction, tuple[PinStatus, PinStatus]] = {
    PinAction.APPROVE: (PinStatus.PENDING, PinStatus.APPROVED),
    PinAction.REJECT: (PinStatus.PENDING, PinStatus.REJECTED),
    PinAction.COMPLETE: (PinStatus.APPROVED, PinStatus.COMPLETED),
}


class PinNotFoundError(ValueError):
    """No pin with the given id."""


class ProfileNotFoundError(ValueError):
    """No user profile with the given id."""


class InvalidTransitionError(ValueError):
    """The action is not allowed from the pin's current state."""


class SelfModerationError(ValueError):
    """An admin tried to change their own role or active flag."""


def plan_transition(pin: ReliefPin, action: PinAction) -> dict[str, Any]:
    """Return the field changes ``action`` makes to ``pin``.

    Raises InvalidTransitionError when the action is illegal for the pin's
    current state. The pin itself is not modified.
    """
    if action in STATUS_TRANSITIONS:
        required, target = STATUS_TRANSITIONS[action]
        if pin.status != required:
            raise InvalidTransitionError(
                f"Cannot {action.value} a pin that is {pin.status.value}"
            )
        return {"status": target}
    if action == PinAction.HIDE:
        if not pin.is_active:
            raise InvalidTransitionError("Pin is already hidden")
        return {"is_active": False}
    if action == PinAction.UNHIDE:
        if pin.is_active:
            raise InvalidTransitionError("Pin is not hidden")
        return {"is_active": True}
    raise InvalidTransitionError(f"Unknown action: {action}")


class ModerationService:
    """Admin actions on pins and profiles.

    Changes are flushed, not committed; the caller commits and then
    publishes the change notification.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.pins = PinRepository(db)
        self.profiles = ProfileRepository(db)

    async def apply(self, pin_id: UUID, action: PinAction, actor: Viewer) -> ReliefPin:
        pin = await self.pins.get(pin_id)
        if not pin:
            raise PinNotFoundError("Pin not found")

        changes = plan_transition(pin, action)
        await self.pins.update_fields(pin, changes)
        logger.info(f"[MODERATION] {actor.user_id} {action.value} pin {pin_id}: {changes}")
        return pin

    async def delete(self, pin_id: UUID, actor: Viewer) -> None:
        deleted = await self.pins.delete(pin_id)
        if not deleted:
            raise PinNotFoundError("Pin not found")
        logger.info(f"[MODERATION] {actor.user_id} deleted pin {pin_id}")

    async def _load_other_profile(self, target_id: str, actor: Viewer) -> UserProfile:
        if target_id == actor.user_id:
            raise SelfModerationError("You cannot change your own account")
        profile = await self.profiles.get(target_id)
        if not profile:
            raise ProfileNotFoundError("User not found")
        return profile

    async def toggle_role(self, target_id: str, actor: Viewer) -> UserProfile:
        """Flip a user between public and admin."""
        profile = await self._load_other_profile(target_id, actor)
        new_role = UserRole.PUBLIC if profile.role == UserRole.ADMIN else UserRole.ADMIN
        await self.profiles.update_fields(profile, {"role": new_role})
        logger.info(f"[MODERATION] {actor.user_id} set role of {target_id} to {new_role.value}")
        return profile

    async def toggle_active(self, target_id: str, actor: Viewer) -> UserProfile:
        """Activate or deactivate a user."""
        profile = await self._load_other_profile(target_id, actor)
        await self.profiles.update_fields(profile, {"is_active": not profile.is_active})
        logger.info(
            f"[MODERATION] {actor.user_id} set is_active of {target_id} to {profile.is_active}"
        )
        return profile
