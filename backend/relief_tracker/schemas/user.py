"""User profile schemas."""

from typing import Optional

from relief_tracker.schemas.base import BaseSchema, TimestampMixin
from relief_tracker.models.enums import UserRole


class UserProfileSummary(BaseSchema):
    """Owner details embedded in pin responses."""

    id: str
    email: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None


class UserProfileResponse(UserProfileSummary, TimestampMixin):
    """Full user profile."""

    role: UserRole
    is_active: bool


class UserStats(BaseSchema):
    """User counts for the admin console."""

    total: int = 0
    active: int = 0
    admins: int = 0
