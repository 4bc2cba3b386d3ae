"""Database connection and session management.

One schema holds the athlete data the engine reads and writes: `sessions`,
`fitness_history`, `workout_outcomes` (append-only) and `athlete_memory`.
"""

import logging
from typing import Dict, Generator, Optional
from contextlib import contextmanager
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from ..config import config
from .models import AthleteMemory, Base, FitnessRecord, TrainingSession, WorkoutOutcomeRecord

logger = logging.getLogger(__name__)


class Database:
    """Database connection manager."""

    def __init__(self, database_url: Optional[str] = None):
        """Initialize database connection."""
        self.database_url = database_url or config.DATABASE_URL

        # SQLite connections are shared across the analyzer's fetch threads
        if "sqlite" in self.database_url:
            self.engine = create_engine(
                self.database_url,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
                echo=False,
            )
        else:
            self.engine = create_engine(self.database_url, echo=False)

        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def create_tables(self):
        """Create all database tables."""
        Base.metadata.create_all(bind=self.engine)

    def drop_tables(self):
        """Drop all database tables."""
        Base.metadata.drop_all(bind=self.engine)

    def reset(self):
        """Drop and recreate every table."""
        self.drop_tables()
        self.create_tables()

    def purge_athlete(self, athlete_id: str) -> Dict[str, int]:
        """Delete all rows belonging to one athlete.

        Returns:
            Rows deleted per table name
        """
        deleted = {}
        with self.get_session() as session:
            for model in (TrainingSession, FitnessRecord, WorkoutOutcomeRecord, AthleteMemory):
                count = session.query(model).filter(model.athlete_id == athlete_id).delete(synchronize_session=False)
                deleted[model.__tablename__] = count
        logger.info("Purged athlete %s: %s", athlete_id, deleted)
        return deleted

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        """Get a database session context manager."""
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def close(self):
        """Close database connection."""
        self.engine.dispose()


# Global database instance
_db: Optional[Database] = None


def get_db() -> Database:
    """Get or create the global database instance."""
    global _db
    if _db is None:
        _db = Database()
        _db.create_tables()
        logger.debug("Database initialised at %s", _db.database_url)
    return _db


def close_db():
    """Close the global database connection."""
    global _db
    if _db is not None:
        _db.close()
        _db = None
