"""Auth router - session start and current user."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from relief_tracker.core.database import get_db
from relief_tracker.core.security import get_current_user, AuthenticatedUser
from relief_tracker.models.enums import PinChangeKind
from relief_tracker.schemas.auth import CurrentUserResponse, SessionStartResponse
from relief_tracker.schemas.pin import SweepResponse
from relief_tracker.schemas.user import UserProfileResponse
from relief_tracker.services.notifications import PinChangeBroker, get_change_broker
from relief_tracker.services.sweeper import auto_complete_expired_pins

router = APIRouter(prefix="/auth", tags=["auth"])


def current_user_response(current_user: AuthenticatedUser) -> CurrentUserResponse:
    return CurrentUserResponse(
        uid=current_user.uid,
        email=current_user.email,
        email_verified=current_user.email_verified,
        is_admin=current_user.is_admin,
        profile=UserProfileResponse.model_validate(current_user.profile)
        if current_user.profile
        else None,
    )


@router.post("/session", response_model=SessionStartResponse)
async def start_session(
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
    broker: PinChangeBroker = Depends(get_change_broker),
):
    """Start an authenticated session.

    Called once by the client right after sign-in, before its first pin
    fetch. Ensures the profile exists (done by get_current_user) and runs
    the auto-completion sweep so expired pins are not shown as active.
    A failed sweep is reported but does not fail the request.
    """
    # A failed sweep rolls the session back and expires the loaded profile
    user = current_user_response(current_user)
    result = await auto_complete_expired_pins(db)
    for pin_id in result.pin_ids:
        broker.publish(PinChangeKind.UPDATE, pin_id)

    return SessionStartResponse(
        user=user,
        sweep=SweepResponse(
            ok=result.ok,
            completed=result.completed,
            pin_ids=result.pin_ids,
            error=result.error,
        ),
    )


@router.get("/me", response_model=CurrentUserResponse)
async def get_current_user_info(
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    """Get current authenticated user info."""
    return current_user_response(current_user)
