from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from roombooking import redis_client as redis_module
from roombooking.config import settings
from roombooking.database import get_db, make_engine
from roombooking.main import app
from roombooking.models import Base, Branches, Reservations, Rooms
from roombooking.services.admin_session import COOKIE_NAME, create_session_token
from roombooking.services.slots import BookingConfig

TZ = timezone(timedelta(hours=8))
ADMIN_PASSWORD = "test-admin-password"


def local(year, month, day, hour=0, minute=0):
    """Business-timezone (UTC+8) instant."""
    return datetime(year, month, day, hour, minute, tzinfo=TZ)


class FakeRedis:
    """In-memory stand-in for the few redis commands the app uses."""

    def __init__(self):
        self.data = {}
        self.lists = {}

    def ping(self):
        return True

    def set(self, key, value, nx=False, ex=None):
        if nx and key in self.data:
            return None
        self.data[key] = value
        return True

    def get(self, key):
        return self.data.get(key)

    def delete(self, *keys):
        removed = 0
        for key in keys:
            removed += self.data.pop(key, None) is not None
        return removed

    def rpush(self, key, *values):
        self.lists.setdefault(key, []).extend(values)
        return len(self.lists[key])



class FailingQuery:
    def filter(self, *args, **kwargs):
        return self

    def order_by(self, *args, **kwargs):
        return self

    def first(self):
        raise OperationalError("SELECT 1", {}, Exception("connection lost"))

    def all(self):
        raise OperationalError("SELECT 1", {}, Exception("connection lost"))


class BrokenSession:
    """Session whose every query fails like a dropped connection."""

    def query(self, *args, **kwargs):
        return FailingQuery()


@pytest.fixture
def config():
    return BookingConfig()


@pytest.fixture
def engine():
    engine = make_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def fake_redis(monkeypatch):
    fake = FakeRedis()
    monkeypatch.setattr(redis_module, "redis_client", fake)
    return fake


@pytest.fixture
def admin_password(monkeypatch):
    monkeypatch.setattr(settings, "admin_password", ADMIN_PASSWORD)
    return ADMIN_PASSWORD


@pytest.fixture
def client(session_factory, fake_redis, admin_password):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def admin_client(client, admin_password):
    client.cookies.set(COOKIE_NAME, create_session_token(admin_password, 3600))
    return client


@pytest.fixture
def branch(db):
    obj = Branches(name="Xinyi", address="1 Test Rd", open_time="09:00", close_time="21:00")
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


@pytest.fixture
def room(db, branch):
    obj = Rooms(
        branch_id=branch.id,
        name="Room A",
        capacity=6,
        price_weekday=200,
        price_weekend=300,
    )
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


@pytest.fixture
def other_room(db, branch):
    obj = Rooms(
        branch_id=branch.id,
        name="Room B",
        capacity=10,
        price_weekday=400,
        price_weekend=500,
    )
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


@pytest.fixture
def make_reservation(db):
    counter = iter(range(1, 10_000))

    def _make(room, start, end, status="confirmed", phone="0912345678", **fields):
        n = next(counter)
        obj = Reservations(
            room_id=room.id,
            customer_name=fields.pop("customer_name", f"Customer {n}"),
            phone=phone,
            start_time=start,
            end_time=end,
            status=status,
            booking_code=fields.pop("booking_code", f"TEST{n:04d}"),
            is_notified=fields.pop("is_notified", False),
            **fields,
        )
        db.add(obj)
        db.commit()
        db.refresh(obj)
        return obj

    return _make


def parse_instant(value: str) -> datetime:
    """ISO timestamp from a JSON response ("Z" suffix included)."""
    return datetime.fromisoformat(value.replace("Z", "+00:00"))
