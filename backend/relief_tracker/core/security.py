"""Firebase JWT verification and session context."""

import logging
from typing import Any, Optional

import firebase_admin
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from firebase_admin import auth, credentials, exceptions as firebase_exceptions
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from relief_tracker.core.config import get_settings
from relief_tracker.core.database import get_db
from relief_tracker.models.enums import UserRole
from relief_tracker.models.user import UserProfile
from relief_tracker.services.repository import ProfileRepository
from relief_tracker.services.visibility import Viewer

logger = logging.getLogger(__name__)

security = HTTPBearer()


def init_firebase() -> None:
    """Initialize the Firebase Admin SDK once per process."""
    if firebase_admin._apps:
        return
    settings = get_settings()
    options = {"projectId": settings.firebase_project_id}
    if settings.google_application_credentials:
        cred = credentials.Certificate(settings.google_application_credentials)
        firebase_admin.initialize_app(cred, options)
    else:
        firebase_admin.initialize_app(options=options)


class AuthenticatedUser:
    """Represents an authenticated user from Firebase JWT, plus their profile."""

    def __init__(
        self,
        uid: str,
        email: Optional[str] = None,
        email_verified: bool = False,
        name: Optional[str] = None,
        picture: Optional[str] = None,
        claims: Optional[dict[str, Any]] = None,
    ):
        self.uid = uid
        self.email = email
        self.email_verified = email_verified
        self.name = name
        self.picture = picture
        self.claims = claims or {}
        self.profile: Optional[UserProfile] = None

    @property
    def role(self) -> UserRole:
        return self.profile.role if self.profile else UserRole.PUBLIC

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def viewer(self) -> Viewer:
        """Session context handed to the visibility engine and services."""
        return Viewer(user_id=self.uid, role=self.role)


def verify_id_token(token: str) -> AuthenticatedUser:
    """Verify a Firebase ID token.

    This NEVER mints JWTs - it only verifies tokens issued by Firebase.
    """
    init_firebase()
    try:
        decoded_token = auth.verify_id_token(token)
    except auth.ExpiredIdTokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except auth.InvalidIdTokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except (ValueError, firebase_exceptions.FirebaseError) as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Token verification failed: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return AuthenticatedUser(
        uid=decoded_token["uid"],
        email=decoded_token.get("email"),
        email_verified=decoded_token.get("email_verified", False),
        name=decoded_token.get("name"),
        picture=decoded_token.get("picture"),
        claims=decoded_token,
    )


async def verify_firebase_token(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> AuthenticatedUser:
    """Verify the bearer token of the request."""
    return verify_id_token(credentials.credentials)


async def load_profile(db: AsyncSession, auth_user: AuthenticatedUser) -> UserProfile:
    """Load the user's profile, creating it on first sign-in."""
    profiles = ProfileRepository(db)
    profile = await profiles.get(auth_user.uid)
    if profile:
        return profile

    email = auth_user.email or ""
    role = UserRole.ADMIN if email.lower() in get_settings().admin_emails else UserRole.PUBLIC
    try:
        profile = await profiles.insert(
            id=auth_user.uid,
            email=email,
            full_name=auth_user.name,
            avatar_url=auth_user.picture,
            role=role,
            is_active=True,
        )
        await db.commit()
    except IntegrityError:
        # Created by a concurrent first request
        await db.rollback()
        return await profiles.get(auth_user.uid)
    logger.info(f"[AUTH] Created {role.value} profile for {auth_user.uid}")
    return profile


async def get_current_user(
    auth_user: AuthenticatedUser = Depends(verify_firebase_token),
    db: AsyncSession = Depends(get_db),
) -> AuthenticatedUser:
    """Get current user with their profile. Deactivated users are refused."""
    auth_user.profile = await load_profile(db, auth_user)
    if not auth_user.profile.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account deactivated",
        )
    return auth_user


def require_admin(
    current_user: AuthenticatedUser = Depends(get_current_user),
) -> AuthenticatedUser:
    """Require the current user to be an admin."""
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required",
        )
    return current_user
