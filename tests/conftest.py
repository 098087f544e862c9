"""
Shared pytest fixtures.

Uses a file-backed SQLite database so no Postgres is required for tests.
Engine tests run under a frozen clock: 2025-03-24 12:00 local time, a Monday.
"""
import pytest
from fastapi.testclient import TestClient
from freezegun import freeze_time
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from timey.core.config import ProgressionConfig
from timey.db.base import Base, get_db
from timey.main import app
from timey.schemas.profile import ChoreDefinition, PlayerProfile

SQLITE_URL = "sqlite:///./test_timey.db"

TODAY = "2025-03-24"
YESTERDAY = "2025-03-23"
NOW = "2025-03-24T12:00:00.000"

engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(scope="session", autouse=True)
def create_tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def client(db):
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def frozen_clock():
    with freeze_time(f"{TODAY} 12:00:00") as frozen:
        yield frozen


@pytest.fixture()
def config():
    return ProgressionConfig(
        xp_per_level=(840, 960, 1080, 1200),
        default_xp_per_level=1200,
        xp_for_chore=10,
        xp_penalty_for_chore=10,
    )


@pytest.fixture()
def chores():
    return [
        ChoreDefinition(id=1, text="Make bed"),
        ChoreDefinition(id=2, text="Feed the cat"),
        ChoreDefinition(id=3, text="Piano practice", days_of_week={1, 3, 5}),
        ChoreDefinition(id=4, text="Take out recycling", days_of_week={0}),
    ]


@pytest.fixture()
def profile(chores):
    """Profile with a custom schedule and no history."""
    return PlayerProfile(chores=chores)
