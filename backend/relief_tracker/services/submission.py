"""Pin submission: policy checks for create and owner edits."""

import logging
from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from relief_tracker.core.config import ModerationPolicy
from relief_tracker.models.enums import PinStatus
from relief_tracker.models.pin import ReliefPin
from relief_tracker.schemas.pin import PinCreate, PinUpdate
from relief_tracker.services.moderation import InvalidTransitionError, PinNotFoundError
from relief_tracker.services.repository import PinRepository
from relief_tracker.services.storage import StorageService, UploadFailedError

logger = logging.getLogger(__name__)

# Statuses an edit cannot leave
TERMINAL_STATUSES = (PinStatus.REJECTED, PinStatus.COMPLETED)

# Fields an edit may not clear
REQUIRED_FIELDS = ("latitude", "longitude", "location_name", "relief_type", "description")


class SubmissionError(ValueError):
    """The pin payload violates the submission rules."""


class NotPinOwnerError(ValueError):
    """Only the owner may edit a pin."""


def initial_status(policy: ModerationPolicy) -> PinStatus:
    """Status a new or edited pin enters moderation with."""
    if policy == ModerationPolicy.STRICT:
        return PinStatus.PENDING
    if policy == ModerationPolicy.TRUSTED:
        return PinStatus.APPROVED
    raise ValueError(f"Unknown moderation policy: {policy}")


def validate_window(
    policy: ModerationPolicy,
    start: Optional[datetime],
    end: Optional[datetime],
) -> None:
    """Check the relief window against the policy.

    Trusted pins skip review, so they need a window for the sweeper to
    close them. An end that is not after the start is always rejected.
    """
    if policy == ModerationPolicy.TRUSTED and (start is None or end is None):
        raise SubmissionError("Start and end date/time are required")
    if start is not None and end is not None and end <= start:
        raise SubmissionError("End date/time must be after start date/time")


class SubmissionService:
    """Creates pins and applies owner edits under one moderation policy."""

    def __init__(
        self,
        db: AsyncSession,
        policy: ModerationPolicy,
        storage: Optional[StorageService] = None,
    ):
        self.db = db
        self.policy = policy
        self.storage = storage
        self.pins = PinRepository(db)

    async def _check_photo(self, photo_url: Optional[str]) -> None:
        """A photo hosted by us must already be staged."""
        if not photo_url or self.storage is None:
            return
        object_path = self.storage.object_path_for(photo_url)
        if not object_path:
            return
        try:
            exists = await self.storage.verify_upload(object_path)
        except Exception as e:
            raise UploadFailedError("Could not verify photo upload") from e
        if not exists:
            raise SubmissionError("Photo has not been uploaded")

    async def create(self, user_id: str, data: PinCreate) -> ReliefPin:
        validate_window(self.policy, data.start_datetime, data.end_datetime)
        await self._check_photo(data.photo_url)

        pin = await self.pins.insert(
            **data.model_dump(),
            user_id=user_id,
            status=initial_status(self.policy),
            is_active=True,
        )
        logger.info(f"[SUBMISSION] {user_id} created pin {pin.id} as {pin.status.value}")
        return pin

    async def update(self, pin_id: UUID, user_id: str, data: PinUpdate) -> ReliefPin:
        """Apply an owner edit and send the pin back through moderation."""
        pin = await self.pins.get(pin_id)
        if not pin or not pin.is_active:
            raise PinNotFoundError("Pin not found")
        if pin.user_id != user_id:
            raise NotPinOwnerError("Only the owner can edit this pin")
        if pin.status in TERMINAL_STATUSES:
            raise InvalidTransitionError(f"A {pin.status.value} pin cannot be edited")

        changes: dict[str, Any] = data.model_dump(exclude_unset=True)
        for field in REQUIRED_FIELDS:
            if field in changes and changes[field] is None:
                raise SubmissionError(f"{field} cannot be empty")

        validate_window(
            self.policy,
            changes.get("start_datetime", pin.start_datetime),
            changes.get("end_datetime", pin.end_datetime),
        )
        if "photo_url" in changes and changes["photo_url"] != pin.photo_url:
            await self._check_photo(changes["photo_url"])

        changes["status"] = initial_status(self.policy)
        await self.pins.update_fields(pin, changes)
        logger.info(f"[SUBMISSION] {user_id} edited pin {pin_id}, now {pin.status.value}")
        return pin
