"""Admin router - pin moderation and user management."""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from relief_tracker.core.database import get_db
from relief_tracker.core.security import require_admin, AuthenticatedUser
from relief_tracker.models.enums import PinAction, PinChangeKind
from relief_tracker.schemas.pin import AdminStats, PinResponse, SweepResponse
from relief_tracker.schemas.user import UserProfileResponse, UserStats
from relief_tracker.services.moderation import (
    InvalidTransitionError,
    ModerationService,
    PinNotFoundError,
    ProfileNotFoundError,
    SelfModerationError,
)
from relief_tracker.services.notifications import PinChangeBroker, get_change_broker
from relief_tracker.services.repository import PinRepository, ProfileRepository
from relief_tracker.services.sweeper import auto_complete_expired_pins
from relief_tracker.services.visibility import compute_stats

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/pins", response_model=List[PinResponse])
async def list_all_pins(
    include_hidden: bool = True,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Moderation listing. Hidden pins are included so they can be restored."""
    pins = await PinRepository(db).list_all(include_hidden=include_hidden)
    return [PinResponse.model_validate(p) for p in pins]


@router.get("/stats", response_model=AdminStats)
async def get_admin_stats(
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Pin and user counts for the admin console."""
    pins = await PinRepository(db).list_all()
    profiles = await ProfileRepository(db).list_all()
    return AdminStats(
        pins=compute_stats(pins, current_user.viewer),
        users=UserStats(
            total=len(profiles),
            active=sum(1 for p in profiles if p.is_active),
            admins=sum(1 for p in profiles if p.is_admin),
        ),
    )


@router.post("/pins/sweep", response_model=SweepResponse)
async def run_sweep(
    db: AsyncSession = Depends(get_db),
    broker: PinChangeBroker = Depends(get_change_broker),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Complete approved pins whose end time has passed."""
    result = await auto_complete_expired_pins(db)
    for pin_id in result.pin_ids:
        broker.publish(PinChangeKind.UPDATE, pin_id)
    return SweepResponse(
        ok=result.ok,
        completed=result.completed,
        pin_ids=result.pin_ids,
        error=result.error,
    )


@router.post("/pins/{pin_id}/{action}", response_model=PinResponse)
async def moderate_pin(
    pin_id: UUID,
    action: PinAction,
    db: AsyncSession = Depends(get_db),
    broker: PinChangeBroker = Depends(get_change_broker),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Approve, reject, complete, hide or unhide a pin."""
    moderation = ModerationService(db)
    try:
        pin = await moderation.apply(pin_id, action, current_user.viewer)
    except PinNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InvalidTransitionError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    await db.commit()
    broker.publish(PinChangeKind.UPDATE, pin_id)

    pin = await PinRepository(db).get(pin_id)
    return PinResponse.model_validate(pin)


@router.delete("/pins/{pin_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_pin(
    pin_id: UUID,
    db: AsyncSession = Depends(get_db),
    broker: PinChangeBroker = Depends(get_change_broker),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Permanently delete a pin."""
    moderation = ModerationService(db)
    try:
        await moderation.delete(pin_id, current_user.viewer)
    except PinNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    await db.commit()
    broker.publish(PinChangeKind.DELETE, pin_id)


@router.get("/users", response_model=List[UserProfileResponse])
async def list_users(
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """List all user profiles, newest first."""
    profiles = await ProfileRepository(db).list_all()
    return [UserProfileResponse.model_validate(p) for p in profiles]


async def _toggle_user(db: AsyncSession, user_id: str, current_user: AuthenticatedUser, field: str):
    moderation = ModerationService(db)
    toggle = moderation.toggle_role if field == "role" else moderation.toggle_active
    try:
        profile = await toggle(user_id, current_user.viewer)
    except SelfModerationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except ProfileNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    await db.commit()
    return UserProfileResponse.model_validate(profile)


@router.post("/users/{user_id}/toggle-role", response_model=UserProfileResponse)
async def toggle_user_role(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Switch a user between public and admin. Not allowed on yourself."""
    return await _toggle_user(db, user_id, current_user, "role")


@router.post("/users/{user_id}/toggle-active", response_model=UserProfileResponse)
async def toggle_user_active(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Activate or deactivate a user. Not allowed on yourself."""
    return await _toggle_user(db, user_id, current_user, "active")
