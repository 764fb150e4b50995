"""Tests for the database layer."""

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from tasketa.database import Base, EstimateRecord, get_estimate_payload, set_estimate_payload


@pytest.fixture
def session_factory():
    """Create an in-memory SQLite database for testing."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _set_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    yield sessionmaker(bind=engine, autoflush=False)
    engine.dispose()


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


class TestEstimatePayloads:
    def test_missing_key(self, db_session):
        assert get_estimate_payload(db_session, "PROJ-1") is None

    def test_insert_and_read(self, db_session):
        payload = {"updatedAt": "2024-01-01T00:00:00.000Z", "remainingHours": 5}
        set_estimate_payload(db_session, "PROJ-1", payload)
        assert get_estimate_payload(db_session, "PROJ-1") == payload

    def test_save_replaces_whole_payload(self, db_session):
        set_estimate_payload(db_session, "PROJ-1", {"updatedAt": "a", "remainingHours": 5})
        set_estimate_payload(db_session, "PROJ-1", {"updatedAt": "b", "etaISO": "2024-01-02T00:00:00.000Z"})
        db_session.expire_all()
        stored = get_estimate_payload(db_session, "PROJ-1")
        assert stored == {"updatedAt": "b", "etaISO": "2024-01-02T00:00:00.000Z"}
        assert db_session.query(EstimateRecord).count() == 1

    def test_keys_are_independent(self, db_session):
        set_estimate_payload(db_session, "A-1", {"remainingHours": 1})
        set_estimate_payload(db_session, "B-1", {"remainingHours": 2})
        assert get_estimate_payload(db_session, "A-1") == {"remainingHours": 1}
        assert get_estimate_payload(db_session, "B-1") == {"remainingHours": 2}

    def test_updated_at_set(self, db_session):
        set_estimate_payload(db_session, "PROJ-1", {"remainingHours": 1})
        row = db_session.get(EstimateRecord, "PROJ-1")
        assert row.updated_at is not None
