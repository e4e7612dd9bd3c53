"""Relief pin schemas."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import Field

from relief_tracker.schemas.base import BaseSchema, TimestampMixin, UTCDateTime
from relief_tracker.schemas.user import UserProfileSummary, UserStats
from relief_tracker.models.enums import PinChangeKind, PinStatus, ReliefType


class PinCreate(BaseSchema):
    """Submit a new relief pin."""

    latitude: float = Field(..., ge=-90, le=90, allow_inf_nan=False)
    longitude: float = Field(..., ge=-180, le=180, allow_inf_nan=False)
    location_name: str = Field(..., min_length=1, max_length=255)
    relief_type: ReliefType
    description: str = Field(..., min_length=1)
    photo_url: Optional[str] = Field(None, max_length=1024)
    start_datetime: Optional[UTCDateTime] = None
    end_datetime: Optional[UTCDateTime] = None


class PinUpdate(BaseSchema):
    """Owner edit of a pin. Unset fields are left as they are."""

    latitude: Optional[float] = Field(None, ge=-90, le=90, allow_inf_nan=False)
    longitude: Optional[float] = Field(None, ge=-180, le=180, allow_inf_nan=False)
    location_name: Optional[str] = Field(None, min_length=1, max_length=255)
    relief_type: Optional[ReliefType] = None
    description: Optional[str] = Field(None, min_length=1)
    photo_url: Optional[str] = Field(None, max_length=1024)
    start_datetime: Optional[UTCDateTime] = None
    end_datetime: Optional[UTCDateTime] = None


class PinResponse(BaseSchema, TimestampMixin):
    """Relief pin response."""

    id: UUID
    user_id: str
    latitude: float
    longitude: float
    location_name: str
    relief_type: ReliefType
    description: str
    photo_url: Optional[str] = None
    status: PinStatus
    is_active: bool
    start_datetime: Optional[datetime] = None
    end_datetime: Optional[datetime] = None
    user_profile: Optional[UserProfileSummary] = None


class PinStats(BaseSchema):
    """Counts over a list of pins."""

    total: int = 0
    pending: int = 0
    approved: int = 0
    rejected: int = 0
    completed: int = 0
    hidden: int = 0
    mine: int = 0


class AdminStats(BaseSchema):
    """Admin console counts."""

    pins: PinStats
    users: UserStats


class PhotoUploadResponse(BaseSchema):
    """A staged photo ready to be referenced by a pin."""

    photo_url: str
    object_path: str


class SweepResponse(BaseSchema):
    """Outcome of an auto-completion sweep."""

    ok: bool
    completed: int
    pin_ids: list[UUID] = []
    error: Optional[str] = None


class PinChangeEvent(BaseSchema):
    """Message pushed to change-feed subscribers."""

    kind: PinChangeKind
    pin_id: Optional[UUID] = None
