"""Relief pins router - map, dashboard and submission form."""

import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from relief_tracker.core.config import get_settings
from relief_tracker.core.database import get_db
from relief_tracker.core.security import get_current_user, AuthenticatedUser
from relief_tracker.models.enums import PinChangeKind, StatusFilter
from relief_tracker.schemas.pin import (
    PinCreate,
    PinUpdate,
    PinResponse,
    PinStats,
    PhotoUploadResponse,
)
from relief_tracker.services.moderation import InvalidTransitionError, PinNotFoundError
from relief_tracker.services.notifications import PinChangeBroker, get_change_broker
from relief_tracker.services.repository import PinRepository
from relief_tracker.services.storage import (
    StorageService,
    UploadFailedError,
    UploadTimeoutError,
    get_storage_service,
)
from relief_tracker.services.submission import (
    NotPinOwnerError,
    SubmissionError,
    SubmissionService,
)
from relief_tracker.services.visibility import compute_stats, derive_view, is_visible

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/pins", tags=["pins"])


def get_submission_service(
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage_service),
) -> SubmissionService:
    return SubmissionService(db, policy=get_settings().moderation_policy, storage=storage)


@router.get("", response_model=List[PinResponse])
async def list_pins(
    status_filter: StatusFilter = Query(StatusFilter.ALL, alias="status"),
    exclude_completed: bool = False,
    mine: bool = False,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    """List pins visible to the current user, newest first.

    Admins see every active pin; everyone else sees approved pins plus
    their own. Hidden pins are never listed.
    """
    viewer = current_user.viewer
    pins = await PinRepository(db).list_visible(viewer)
    view = derive_view(
        pins,
        viewer,
        status_filter=status_filter,
        exclude_completed=exclude_completed,
        mine=mine,
    )
    return [PinResponse.model_validate(p) for p in view]


@router.get("/stats", response_model=PinStats)
async def get_pin_stats(
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    """Counts over the pins visible to the current user."""
    viewer = current_user.viewer
    pins = await PinRepository(db).list_visible(viewer)
    return compute_stats(pins, viewer)


@router.post("/photos", response_model=PhotoUploadResponse, status_code=status.HTTP_201_CREATED)
async def upload_pin_photo(
    photo: UploadFile = File(...),
    storage: StorageService = Depends(get_storage_service),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    """Stage a photo in object storage before the pin that uses it is saved."""
    if photo.size is not None and photo.size > storage.max_upload_bytes:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Photo must be less than {storage.max_upload_size_mb}MB",
        )
    # One byte past the limit is enough for the size check to reject it
    content = await photo.read(storage.max_upload_bytes + 1)
    try:
        photo_url, object_path = await storage.upload_photo(
            user_id=current_user.uid,
            mime_type=photo.content_type or "",
            content=content,
        )
    except UploadTimeoutError as e:
        raise HTTPException(status_code=status.HTTP_504_GATEWAY_TIMEOUT, detail=str(e))
    except UploadFailedError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return PhotoUploadResponse(photo_url=photo_url, object_path=object_path)


@router.get("/{pin_id}", response_model=PinResponse)
async def get_pin(
    pin_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    """Get a pin by ID."""
    pin = await PinRepository(db).get(pin_id)
    if not pin or not is_visible(pin, current_user.viewer):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Pin not found")

    return PinResponse.model_validate(pin)


@router.post("", response_model=PinResponse, status_code=status.HTTP_201_CREATED)
async def create_pin(
    data: PinCreate,
    db: AsyncSession = Depends(get_db),
    submissions: SubmissionService = Depends(get_submission_service),
    broker: PinChangeBroker = Depends(get_change_broker),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    """Submit a relief pin.

    Under the strict policy it waits for admin approval; under the trusted
    policy it is approved straight away.
    """
    try:
        pin = await submissions.create(current_user.uid, data)
        await db.commit()
    except SubmissionError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except UploadFailedError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    except SQLAlchemyError:
        await db.rollback()
        # The pin was not saved, so a photo staged for it is orphaned
        if data.photo_url and submissions.storage:
            object_path = submissions.storage.object_path_for(data.photo_url)
            if object_path:
                await submissions.storage.discard(object_path)
        raise

    broker.publish(PinChangeKind.INSERT, pin.id)
    pin = await PinRepository(db).get(pin.id)
    return PinResponse.model_validate(pin)


@router.patch("/{pin_id}", response_model=PinResponse)
async def update_pin(
    pin_id: UUID,
    data: PinUpdate,
    db: AsyncSession = Depends(get_db),
    submissions: SubmissionService = Depends(get_submission_service),
    broker: PinChangeBroker = Depends(get_change_broker),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    """Edit your own pin. The edit goes back through moderation."""
    try:
        pin = await submissions.update(pin_id, current_user.uid, data)
        await db.commit()
    except PinNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except NotPinOwnerError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except InvalidTransitionError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except SubmissionError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except UploadFailedError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))

    broker.publish(PinChangeKind.UPDATE, pin.id)
    pin = await PinRepository(db).get(pin.id)
    return PinResponse.model_validate(pin)
