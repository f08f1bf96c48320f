"""
SQLAlchemy-backed store for calculation records.

Records are immutable: they are created, listed, and deleted (one by id,
or all at once), never updated.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Dict, List

from sqlalchemy import Column, DateTime, Integer, String, Text, create_engine, delete, select
from sqlalchemy.engine import make_url
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

Base = declarative_base()

RECENT_LIMIT = 10


class RecordValidationError(ValueError):
    """A record is missing its equation or result."""


class RecordNotFoundError(LookupError):
    """No record with the requested id."""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Calculation(Base):
    __tablename__ = "calculations"

    # seq keeps insertion order for records created within the same clock tick
    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(32), unique=True, nullable=False, default=lambda: uuid.uuid4().hex)
    equation = Column(Text, nullable=False)
    result = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    def to_dict(self) -> Dict[str, str]:
        created_at = self.created_at
        if created_at.tzinfo is None:
            # SQLite hands back naive datetimes
            created_at = created_at.replace(tzinfo=timezone.utc)
        return {
            "id": self.id,
            "equation": self.equation,
            "result": self.result,
            "createdAt": created_at.isoformat(),
        }


def _engine_for(database_url: str):
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:"):
        # one shared connection, otherwise every checkout gets an empty database
        return create_engine(
            url, poolclass=StaticPool, connect_args={"check_same_thread": False}
        )
    return create_engine(url, pool_pre_ping=True)


class HistoryStore:
    """Calculation history persisted through a single engine (connection pool)."""

    def __init__(self, database_url: str):
        """
        Connect to the database and create the schema if needed.

        Args:
            database_url: SQLAlchemy URL, e.g. sqlite:///calculator_history.db
        """
        self.engine = _engine_for(database_url)
        self._session = sessionmaker(self.engine, expire_on_commit=False)
        Base.metadata.create_all(self.engine)
        logger.info("Connected to history database %s", self.engine.url.render_as_string(hide_password=True))

    def close(self) -> None:
        self.engine.dispose()

    def list_recent(self, limit: int = RECENT_LIMIT) -> List[Calculation]:
        """Return the most recently created records, newest first."""
        stmt = (
            select(Calculation)
            .order_by(Calculation.created_at.desc(), Calculation.seq.desc())
            .limit(limit)
        )
        with self._session() as session:
            return list(session.scalars(stmt))

    def create(self, equation: str, result: str) -> Calculation:
        """
        Persist a new calculation.

        Raises:
            RecordValidationError: If equation or result is missing or blank
        """
        for name, value in (("equation", equation), ("result", result)):
            if not isinstance(value, str) or not value.strip():
                raise RecordValidationError(f"Calculation validation failed: {name} is required")

        record = Calculation(
            id=uuid.uuid4().hex, equation=equation, result=result, created_at=_utcnow()
        )
        with self._session.begin() as session:
            session.add(record)
        return record

    def delete(self, record_id: str) -> None:
        """
        Remove one record.

        Raises:
            RecordNotFoundError: If no record has this id
        """
        with self._session.begin() as session:
            deleted = session.execute(delete(Calculation).where(Calculation.id == record_id))
            if deleted.rowcount == 0:
                raise RecordNotFoundError(record_id)

    def clear(self) -> int:
        """Remove every record. Returns how many were deleted."""
        with self._session.begin() as session:
            return session.execute(delete(Calculation)).rowcount
