import os
import tempfile
from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

# Keep the app's on-disk state out of the working tree before main is imported
_scratch_dir = tempfile.mkdtemp(prefix="trip-ledger-tests-")
os.environ.setdefault("DATA_DIR", _scratch_dir)
os.environ.setdefault("DATABASE_PATH", os.path.join(_scratch_dir, "app.sqlite3"))
os.environ["ALLOWED_ORIGINS"] = "http://localhost:3000"
os.environ.pop("GOOGLE_AI_API_KEY", None)

from main import app

import models
from database import Base, get_db
from utils.rate_limiter import receipt_parse_rate_limiter

# Setup in-memory SQLite database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database session for each test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """Create a FastAPI TestClient with overridden database dependency."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.pop(get_db, None)


@pytest.fixture(autouse=True)
def disable_rate_limits():
    """Disable the receipt parse rate limit during testing using dependency overrides."""
    async def mock_rate_limit():
        return True

    app.dependency_overrides[receipt_parse_rate_limiter] = mock_rate_limit
    yield
    app.dependency_overrides.pop(receipt_parse_rate_limiter, None)


@pytest.fixture
def receipt_dir(tmp_path, monkeypatch):
    """Point receipt storage at a per-test directory."""
    directory = tmp_path / "receipts"
    directory.mkdir()
    monkeypatch.setattr("routers.uploads.RECEIPT_DIR", str(directory))
    return directory


@pytest.fixture
def test_trip(db_session):
    trip = models.Trip(
        name="Summer Road Trip",
        destination="Yellowstone",
        start_date=date(2025, 7, 1),
        type="road_trip",
    )
    db_session.add(trip)
    db_session.commit()
    db_session.refresh(trip)
    return trip


@pytest.fixture
def test_card(db_session):
    card = models.CreditCard(
        name="Sapphire Preferred",
        network="Visa",
        last_four="1234",
        annual_fee=95,
        points_name="Ultimate Rewards",
        points_cpp_value=1.25,
    )
    db_session.add(card)
    db_session.commit()
    db_session.refresh(card)
    return card


@pytest.fixture
def make_participant(db_session):
    def _make(trip, name):
        participant = models.TripParticipant(trip_id=trip.id, name=name)
        db_session.add(participant)
        db_session.commit()
        db_session.refresh(participant)
        return participant
    return _make
