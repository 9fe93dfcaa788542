"""Global test fixtures for achievements API tests"""
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base
import app.models  # noqa: F401  (registers tables on Base.metadata)
from app.schemas.achievement import UnlockRecord
from factories import NOW, USER_ID, FakeAchievementStore


# ============================================================================
# Engine Input Fixtures
# ============================================================================

@pytest.fixture
def now():
    return NOW


@pytest.fixture
def fake_store():
    return FakeAchievementStore()


@pytest.fixture
def unlock_record():
    """Factory for the test user's unlock records"""
    def _make(achievement_id: str, **fields) -> UnlockRecord:
        return UnlockRecord(user_id=USER_ID, achievement_id=achievement_id, **fields)
    return _make


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture
def sqlite_engine():
    """In-memory SQLite engine with every table created"""
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
def db_session(sqlite_engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=sqlite_engine)()
    try:
        yield session
    finally:
        session.close()
