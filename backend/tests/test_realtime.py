"""Pin change feed over WebSocket."""

import uuid

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from starlette.websockets import WebSocketDisconnect

from relief_tracker.core.database import Base, get_db
from relief_tracker.core.security import AuthenticatedUser
from relief_tracker.main import app
from relief_tracker.models import UserProfile
from relief_tracker.models.enums import PinChangeKind
from relief_tracker.routers import realtime
from relief_tracker.services.notifications import PinChangeBroker, get_change_broker


class SocketDatabase:
    """In-memory database used from the TestClient's event loop.

    The engine connects lazily, so every call that touches it goes through
    ``client.portal.call``.
    """

    def __init__(self):
        self.engine = create_async_engine(
            "sqlite+aiosqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        self.sessions = async_sessionmaker(self.engine, expire_on_commit=False)

    async def get_db(self):
        async with self.sessions() as session:
            yield session

    async def seed(self, *profiles: UserProfile) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        async with self.sessions() as session:
            session.add_all(profiles)
            await session.commit()


@pytest.fixture
def feed():
    broker = PinChangeBroker()
    app.dependency_overrides[get_change_broker] = lambda: broker
    yield broker
    app.dependency_overrides.pop(get_change_broker, None)


@pytest.fixture
def socket_db():
    database = SocketDatabase()
    app.dependency_overrides[get_db] = database.get_db
    yield database
    app.dependency_overrides.pop(get_db, None)


def sign_in_as(monkeypatch, uid):
    monkeypatch.setattr(realtime, "verify_id_token", lambda token: AuthenticatedUser(uid=uid))


def test_events_are_pushed_to_subscribers(feed, socket_db, monkeypatch):
    sign_in_as(monkeypatch, "viewer")
    pin_id = uuid.uuid4()

    with TestClient(app) as client:
        client.portal.call(socket_db.seed, UserProfile(id="viewer", email="viewer@example.com"))
        with client.websocket_connect("/v1/realtime/pins?token=valid") as ws:
            client.portal.call(feed.publish, PinChangeKind.UPDATE, pin_id)
            message = ws.receive_json()
        client.portal.call(socket_db.engine.dispose)

    assert message == {"kind": "update", "pin_id": str(pin_id)}


def test_invalid_token_closes_with_policy_violation(feed, socket_db, monkeypatch):
    def reject(token):
        raise HTTPException(status_code=401, detail="Invalid authentication token")

    monkeypatch.setattr(realtime, "verify_id_token", reject)

    with TestClient(app) as client:
        with pytest.raises(WebSocketDisconnect) as exc:
            with client.websocket_connect("/v1/realtime/pins?token=forged"):
                pass

    assert exc.value.code == 1008
    assert feed.subscriber_count == 0


def test_deactivated_account_closes_with_policy_violation(feed, socket_db, monkeypatch):
    sign_in_as(monkeypatch, "deactivated-user")

    with TestClient(app) as client:
        client.portal.call(
            socket_db.seed,
            UserProfile(id="deactivated-user", email="gone@example.com", is_active=False),
        )
        with pytest.raises(WebSocketDisconnect) as exc:
            with client.websocket_connect("/v1/realtime/pins?token=valid"):
                pass
        client.portal.call(socket_db.engine.dispose)

    assert exc.value.code == 1008
    assert feed.subscriber_count == 0
