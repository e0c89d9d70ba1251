import os
import uuid
from datetime import datetime, timedelta, timezone

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["HOLD_SWEEP_SECONDS"] = "0"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.security import create_access_token
from app.db.base import Base
from app.db.session import get_db
from app.main import app
from app.models.catalog import MovieSession, Promotion, Room

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_session(db):
    """Create a room plus a scheduled session in it."""
    def _make(rows=5, seats_per_row=8, starts_at=None, movie_id=None, cinema_id=None):
        cinema_id = cinema_id or uuid.uuid4()
        room = Room(cinema_id=cinema_id, name="Room 1", row_count=rows, seats_per_row=seats_per_row)
        db.add(room)
        db.flush()
        session = MovieSession(
            movie_id=movie_id or uuid.uuid4(),
            cinema_id=cinema_id,
            room_id=room.id,
            starts_at=starts_at or NOW + timedelta(days=3),
            is_active=True,
        )
        db.add(session)
        db.commit()
        return session

    return _make


@pytest.fixture
def movie_session(make_session):
    return make_session()


@pytest.fixture
def make_promotion(db):
    def _make(code="HALF", discount=50, **kwargs):
        promotion = Promotion(
            code=code,
            title=f"{code} promo",
            discount=discount,
            valid_from=kwargs.pop("valid_from", NOW - timedelta(days=1)),
            valid_until=kwargs.pop("valid_until", NOW + timedelta(days=30)),
            is_active=kwargs.pop("is_active", True),
            **kwargs,
        )
        db.add(promotion)
        db.commit()
        return promotion

    return _make


@pytest.fixture
def user_id():
    return uuid.uuid4()


@pytest.fixture
def other_user_id():
    return uuid.uuid4()


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    def _headers(user_id):
        return {"Authorization": f"Bearer {create_access_token(str(user_id))}"}

    return _headers


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def card():
    return {
        "card_number": "4111111111111111",
        "card_name": "Ana Souza",
        "expiry_date": "12/29",
        "cvv": "123",
    }
