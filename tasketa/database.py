"""
SQL Database Layer for Task ETA Risk
Stores the latest estimate per issue when ESTIMATE_STORE=sql.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON, Column, DateTime, String, create_engine, event
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from tasketa import config


def _make_engine(url: str):
    if url.startswith("sqlite"):
        eng = create_engine(
            url,
            echo=config.DATABASE_ECHO,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

        @event.listens_for(eng, "connect")
        def _set_sqlite_pragma(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA busy_timeout=5000")
            cursor.close()

        return eng
    return create_engine(url, echo=config.DATABASE_ECHO, pool_pre_ping=True)


engine = _make_engine(config.DATABASE_URL)
SessionLocal = sessionmaker(bind=engine, autoflush=False)
Base = declarative_base()


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------

class EstimateRecord(Base):
    """Latest estimate for one issue.  Each save replaces the payload."""
    __tablename__ = "estimates"

    issue_key = Column(String(64), primary_key=True)
    payload = Column(JSON, nullable=False)  # {"updatedAt", "etaISO"?, "remainingHours"?}
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


# ---------------------------------------------------------------------------
# Database initialization
# ---------------------------------------------------------------------------

def init_db():
    """Create all tables if they don't exist."""
    Base.metadata.create_all(bind=engine)


def get_db() -> Session:
    """Get a database session. Caller must close it."""
    return SessionLocal()


# ---------------------------------------------------------------------------
# Helper queries
# ---------------------------------------------------------------------------

def get_estimate_payload(db: Session, issue_key: str) -> Optional[Dict[str, Any]]:
    """Return the stored payload for ``issue_key``, or None."""
    row = db.get(EstimateRecord, issue_key)
    return row.payload if row else None


def set_estimate_payload(db: Session, issue_key: str, payload: Dict[str, Any]):
    """Insert or fully replace the payload for ``issue_key``."""
    row = db.get(EstimateRecord, issue_key)
    if row:
        row.payload = payload
        row.updated_at = datetime.utcnow()
    else:
        db.add(EstimateRecord(issue_key=issue_key, payload=payload))
    db.commit()
