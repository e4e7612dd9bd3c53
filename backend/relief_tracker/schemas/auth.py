"""Auth schemas."""

from typing import Optional

from relief_tracker.schemas.base import BaseSchema
from relief_tracker.schemas.pin import SweepResponse
from relief_tracker.schemas.user import UserProfileResponse


class CurrentUserResponse(BaseSchema):
    """Current authenticated user info."""

    uid: str
    email: str | None = None
    email_verified: bool = False
    is_admin: bool = False
    profile: Optional[UserProfileResponse] = None


class SessionStartResponse(BaseSchema):
    """Returned once per session after sign-in."""

    user: CurrentUserResponse
    sweep: SweepResponse
