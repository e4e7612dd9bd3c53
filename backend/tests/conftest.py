"""Shared fixtures: in-memory database, fake identity and fake photo storage."""

import os

# Settings are read at import time, so the environment is prepared first
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["DEBUG"] = "true"
os.environ["FIREBASE_PROJECT_ID"] = "relief-tracker-test"
os.environ["STORAGE_PROVIDER"] = "s3"
os.environ["S3_BUCKET_NAME"] = "relief-test"
os.environ["AWS_ACCESS_KEY_ID"] = "test"
os.environ["AWS_SECRET_ACCESS_KEY"] = "test"
os.environ["ALLOWED_ORIGINS"] = "http://localhost:3000"
os.environ["MODERATION_POLICY"] = "strict"

from datetime import datetime, timedelta
from typing import Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from relief_tracker.core.database import Base, get_db
from relief_tracker.core.security import AuthenticatedUser, verify_firebase_token
from relief_tracker.main import app
from relief_tracker.models import ReliefPin, UserProfile
from relief_tracker.models.enums import PinStatus, ReliefType, UserRole
from relief_tracker.services.notifications import PinChangeBroker, get_change_broker
from relief_tracker.services.storage import (
    StorageProviderInterface,
    StorageService,
    get_storage_service,
)


class InMemoryStorageProvider(StorageProviderInterface):
    """Object store kept in a dict."""

    def __init__(self):
        self.objects: dict[str, tuple[bytes, str]] = {}
        self.fail_uploads = False

    def upload_object(self, object_path: str, content: bytes, mime_type: str) -> None:
        if self.fail_uploads:
            raise RuntimeError("bucket unavailable")
        self.objects[object_path] = (content, mime_type)

    def public_url(self, object_path: str) -> str:
        return f"https://storage.test/{object_path}"

    def verify_object_exists(self, object_path: str) -> bool:
        return object_path in self.objects

    def delete_object(self, object_path: str) -> bool:
        return self.objects.pop(object_path, None) is not None


class Identity:
    """The Firebase user the next request is signed in as."""

    def __init__(self):
        self.uid = "user-1"
        self.email = "user1@example.com"

    def sign_in(self, uid: str, email: Optional[str] = None) -> None:
        self.uid = uid
        self.email = email or f"{uid}@example.com"

    def token(self) -> AuthenticatedUser:
        return AuthenticatedUser(
            uid=self.uid,
            email=self.email,
            email_verified=True,
            name=self.uid.title(),
        )


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def make_profile(session_factory):
    async def _make_profile(
        uid: str,
        role: UserRole = UserRole.PUBLIC,
        is_active: bool = True,
    ) -> UserProfile:
        async with session_factory() as session:
            profile = UserProfile(
                id=uid,
                email=f"{uid}@example.com",
                full_name=uid.title(),
                role=role,
                is_active=is_active,
            )
            session.add(profile)
            await session.commit()
            return profile

    return _make_profile


@pytest.fixture
def make_pin(session_factory):
    async def _make_pin(
        user_id: str,
        status: PinStatus = PinStatus.APPROVED,
        is_active: bool = True,
        end_datetime: Optional[datetime] = None,
        created_at: Optional[datetime] = None,
        **fields,
    ) -> ReliefPin:
        values = {
            "latitude": 10.5,
            "longitude": 123.9,
            "location_name": "Barangay Hall",
            "relief_type": ReliefType.FOOD,
            "description": "Rice and canned goods",
        }
        values.update(fields)
        if end_datetime is not None and "start_datetime" not in values:
            values["start_datetime"] = end_datetime - timedelta(hours=4)
        async with session_factory() as session:
            pin = ReliefPin(
                user_id=user_id,
                status=status,
                is_active=is_active,
                end_datetime=end_datetime,
                created_at=created_at or datetime.utcnow(),
                **values,
            )
            session.add(pin)
            await session.commit()
            return pin

    return _make_pin


@pytest.fixture
def fetch_pin(session_factory):
    """Read a pin back in a fresh session."""

    async def _fetch_pin(pin_id) -> Optional[ReliefPin]:
        async with session_factory() as session:
            return await session.get(ReliefPin, pin_id)

    return _fetch_pin


@pytest.fixture
def fetch_profile(session_factory):
    async def _fetch_profile(uid: str) -> Optional[UserProfile]:
        async with session_factory() as session:
            return await session.get(UserProfile, uid)

    return _fetch_profile


@pytest.fixture
def identity():
    return Identity()


@pytest.fixture
def storage_provider():
    return InMemoryStorageProvider()


@pytest.fixture
def storage_service(storage_provider):
    return StorageService(storage_provider, prefix="relief-photos", max_upload_size_mb=5, timeout_seconds=5)


@pytest.fixture
def broker():
    return PinChangeBroker()


@pytest_asyncio.fixture
async def client(session_factory, identity, storage_service, broker):
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    def override_verify_firebase_token():
        return identity.token()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[verify_firebase_token] = override_verify_firebase_token
    app.dependency_overrides[get_storage_service] = lambda: storage_service
    app.dependency_overrides[get_change_broker] = lambda: broker

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
