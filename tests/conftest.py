# Imports for testing tools
import os

# Settings are read at import time, so the environment must be ready first
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("ALGORITHM", "HS256")
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_hotel_booking.db")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import datetime
from decimal import Decimal
from unittest.mock import MagicMock, AsyncMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# Import your application code
from app.main import app
from app.database import Base, get_db, get_redis_client
from app.discount_scheduler import DiscountExpiryScheduler
from app import models


# --- Test Database Setup ---
# Every test gets its own SQLite file so commits inside the code under
# test are real and nothing leaks between tests.
@pytest.fixture(scope="function")
def engine(tmp_path):
    test_engine = create_engine(
        f"sqlite:///{tmp_path / 'test_booking.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session(session_factory):
    """Provides a database session for each test."""
    session = session_factory()
    yield session
    session.close()


# --- Seed data helpers ---
@pytest.fixture
def hotel(db_session):
    db_hotel = models.Hotel(name="Hotel Test", location="Lisbon")
    db_session.add(db_hotel)
    db_session.commit()
    return db_hotel


@pytest.fixture
def room(db_session, hotel):
    db_room = models.Room(hotel_id=hotel.id, room_type="Double", room_number="101", price=Decimal("100.00"))
    db_session.add(db_room)
    db_session.commit()
    return db_room


@pytest.fixture
def make_discount(db_session):
    """Factory creating discounts valid from yesterday for 30 days by default."""
    def _make_discount(code="SAVE20", percentage=20, max_use=10, used_count=0,
                       status=models.DiscountStatus.ACTIVE, end_date=None):
        now = models.utcnow()
        db_discount = models.Discount(
            code=code,
            percentage=Decimal(str(percentage)),
            start_date=now - datetime.timedelta(days=1),
            end_date=end_date or now + datetime.timedelta(days=30),
            status=status,
            max_use=max_use,
            used_count=used_count,
        )
        db_session.add(db_discount)
        db_session.commit()
        return db_discount

    return _make_discount


# --- Mocking External Services ---
@pytest.fixture(scope="function", autouse=True)
def mock_background_tasks(mocker):
    """
    Keeps the discount scheduler from starting when the app lifespan runs.
    """
    mocker.patch.object(DiscountExpiryScheduler, "start")
    mocker.patch.object(DiscountExpiryScheduler, "stop", new_callable=AsyncMock)


@pytest.fixture(scope="function")
def redis_mock():
    """A Redis stand-in that always misses."""
    client = MagicMock()
    client.get.return_value = None
    return client


# --- API Test Client Fixture ---
@pytest.fixture(scope="function")
def client(db_session, redis_mock):
    """Provides a TestClient for the booking service."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis_client] = lambda: redis_mock

    with TestClient(app) as c:
        yield c

    # Clean up overrides
    app.dependency_overrides.clear()
