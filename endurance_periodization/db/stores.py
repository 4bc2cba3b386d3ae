"""Store contracts consumed by the analysis layer and their SQLAlchemy implementations."""

import json
import logging
from abc import ABC, abstractmethod
from datetime import date, datetime, timezone
from typing import Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from .database import Database, get_db
from .models import AthleteMemory, FitnessRecord, TrainingSession, WorkoutOutcomeRecord
from .records import FitnessDay, MemoryFact, SessionRecord, WorkoutOutcome

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Raised when an upstream store cannot be read or written."""


class SessionStore(ABC):
    """Date-ranged access to completed training sessions."""

    @abstractmethod
    def get_sessions(
        self,
        athlete_id: str,
        start_date: date,
        end_date: date,
        name_filter: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[SessionRecord]:
        """Return sessions in [start_date, end_date], oldest first.

        `limit` keeps the most recent sessions.
        """


class FitnessStore(ABC):
    """One CTL/ATL/TSB record per athlete per date."""

    @abstractmethod
    def get_fitness_history(self, athlete_id: str, start_date: date, end_date: date) -> List[FitnessDay]:
        """Return fitness days in [start_date, end_date], oldest first."""

    @abstractmethod
    def get_current_fitness(self, athlete_id: str) -> Optional[FitnessDay]:
        """Return the most recent fitness day, if any."""


class OutcomeStore(ABC):
    """Write-once log of workout outcomes."""

    @abstractmethod
    def get_outcomes(self, athlete_id: str, since: datetime, limit: Optional[int] = None) -> List[WorkoutOutcome]:
        """Return outcomes created at or after `since`, newest first."""

    @abstractmethod
    def log_outcome(self, athlete_id: str, **fields) -> WorkoutOutcome:
        """Append an outcome. Logged outcomes are never modified."""


class MemoryStore(ABC):
    """Persisted athlete facts keyed by (athlete, type, key)."""

    @abstractmethod
    def upsert(self, fact: MemoryFact) -> None:
        """Insert the fact or replace the existing one with the same key."""


def _session_record(row: TrainingSession) -> SessionRecord:
    return SessionRecord(
        id=row.id,
        date=row.date,
        name=row.name or "",
        sport=row.sport,
        workout_type=row.workout_type,
        duration_seconds=row.duration_seconds,
        distance_m=row.distance_m,
        load=row.load,
        intensity_factor=row.intensity_factor,
        avg_power=row.avg_power,
        normalized_power=row.normalized_power,
        avg_hr=row.avg_hr,
        max_hr=row.max_hr,
    )


def _fitness_day(row: FitnessRecord) -> FitnessDay:
    return FitnessDay(
        date=row.date,
        ctl=row.ctl,
        atl=row.atl,
        tsb=row.tsb,
        daily_load=row.daily_load or 0.0,
        hrv=row.hrv,
        resting_hr=row.resting_hr,
        sleep_score=row.sleep_score,
        readiness=row.readiness,
    )


def _outcome(row: WorkoutOutcomeRecord) -> WorkoutOutcome:
    return WorkoutOutcome(
        id=row.id,
        created_at=row.created_at,
        session_id=row.session_id,
        suggested_workout=row.suggested_workout,
        suggested_type=row.suggested_type,
        actual_type=row.actual_type,
        followed_suggestion=row.followed_suggestion,
        rpe=row.rpe,
        feedback=row.feedback,
    )


class _SqlStore:
    """Shared database handle for the SQL-backed stores."""

    def __init__(self, db: Optional[Database] = None):
        self.db = db or get_db()


class SqlSessionStore(_SqlStore, SessionStore):
    """Session store backed by the `sessions` table."""

    def get_sessions(self, athlete_id, start_date, end_date, name_filter=None, limit=None):
        try:
            with self.db.get_session() as session:
                query = session.query(TrainingSession).filter(
                    TrainingSession.athlete_id == athlete_id,
                    TrainingSession.date >= start_date,
                    TrainingSession.date <= end_date,
                )
                if name_filter:
                    query = query.filter(TrainingSession.name.ilike(f"%{name_filter}%"))
                # Newest first so a limit drops the oldest sessions
                query = query.order_by(TrainingSession.date.desc(), TrainingSession.id.desc())
                if limit:
                    query = query.limit(limit)
                return [_session_record(row) for row in reversed(query.all())]
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to load sessions for {athlete_id}: {e}") from e

    def add_session(self, athlete_id: str, record: SessionRecord) -> SessionRecord:
        """Persist a session and return it with its assigned id."""
        try:
            with self.db.get_session() as session:
                row = TrainingSession(
                    athlete_id=athlete_id,
                    date=record.date,
                    name=record.name,
                    sport=record.sport,
                    workout_type=record.workout_type,
                    duration_seconds=record.duration_seconds,
                    distance_m=record.distance_m,
                    load=record.load,
                    intensity_factor=record.intensity_factor,
                    avg_power=record.avg_power,
                    normalized_power=record.normalized_power,
                    avg_hr=record.avg_hr,
                    max_hr=record.max_hr,
                )
                session.add(row)
                session.flush()
                return _session_record(row)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to save session for {athlete_id}: {e}") from e


class SqlFitnessStore(_SqlStore, FitnessStore):
    """Fitness store backed by the `fitness_history` table."""

    def get_fitness_history(self, athlete_id, start_date, end_date):
        try:
            with self.db.get_session() as session:
                rows = (
                    session.query(FitnessRecord)
                    .filter(
                        FitnessRecord.athlete_id == athlete_id,
                        FitnessRecord.date >= start_date,
                        FitnessRecord.date <= end_date,
                    )
                    .order_by(FitnessRecord.date.asc())
                    .all()
                )
                return [_fitness_day(row) for row in rows]
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to load fitness history for {athlete_id}: {e}") from e

    def get_current_fitness(self, athlete_id):
        try:
            with self.db.get_session() as session:
                row = (
                    session.query(FitnessRecord)
                    .filter(FitnessRecord.athlete_id == athlete_id)
                    .order_by(FitnessRecord.date.desc())
                    .first()
                )
                return _fitness_day(row) if row else None
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to load current fitness for {athlete_id}: {e}") from e

    def save_fitness(self, athlete_id: str, days: Iterable[FitnessDay]) -> int:
        """Insert or update fitness days by date. Returns the number written."""
        written = 0
        try:
            with self.db.get_session() as session:
                for day in days:
                    row = (
                        session.query(FitnessRecord)
                        .filter_by(athlete_id=athlete_id, date=day.date)
                        .first()
                    )
                    if row is None:
                        row = FitnessRecord(athlete_id=athlete_id, date=day.date)
                        session.add(row)
                    row.ctl = day.ctl
                    row.atl = day.atl
                    row.tsb = day.tsb
                    row.daily_load = day.daily_load
                    # Wellness readings come from a different feed; keep existing values
                    if day.hrv is not None:
                        row.hrv = day.hrv
                    if day.resting_hr is not None:
                        row.resting_hr = day.resting_hr
                    if day.sleep_score is not None:
                        row.sleep_score = day.sleep_score
                    if day.readiness is not None:
                        row.readiness = day.readiness
                    written += 1
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to save fitness history for {athlete_id}: {e}") from e
        return written


class SqlOutcomeStore(_SqlStore, OutcomeStore):
    """Outcome log backed by the `workout_outcomes` table."""

    def get_outcomes(self, athlete_id, since, limit=None):
        try:
            with self.db.get_session() as session:
                query = (
                    session.query(WorkoutOutcomeRecord)
                    .filter(
                        WorkoutOutcomeRecord.athlete_id == athlete_id,
                        WorkoutOutcomeRecord.created_at >= since,
                    )
                    .order_by(WorkoutOutcomeRecord.created_at.desc())
                )
                if limit:
                    query = query.limit(limit)
                return [_outcome(row) for row in query.all()]
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to load outcomes for {athlete_id}: {e}") from e

    def log_outcome(
        self,
        athlete_id: str,
        suggested_type: Optional[str] = None,
        actual_type: Optional[str] = None,
        followed_suggestion: Optional[bool] = None,
        rpe: Optional[int] = None,
        feedback: Optional[str] = None,
        suggested_workout: Optional[str] = None,
        session_id: Optional[int] = None,
        created_at: Optional[datetime] = None,
    ) -> WorkoutOutcome:
        """Append an outcome to the log.

        Args:
            athlete_id: Athlete the outcome belongs to
            suggested_type: Category that was prescribed
            actual_type: Category that was actually ridden
            followed_suggestion: Whether the prescription was followed
            rpe: Reported effort, 1-10
            feedback: Free-text comment
            suggested_workout: Template id that was prescribed
            session_id: Matching session id, if known
            created_at: Timestamp override, defaults to now

        Returns:
            The stored outcome
        """
        if rpe is not None and not 1 <= rpe <= 10:
            raise ValueError(f"rpe must be between 1 and 10, got {rpe}")

        try:
            with self.db.get_session() as session:
                row = WorkoutOutcomeRecord(
                    athlete_id=athlete_id,
                    session_id=session_id,
                    suggested_workout=suggested_workout,
                    suggested_type=suggested_type,
                    actual_type=actual_type,
                    followed_suggestion=followed_suggestion,
                    rpe=rpe,
                    feedback=feedback,
                    created_at=created_at or datetime.now(timezone.utc),
                )
                session.add(row)
                session.flush()
                return _outcome(row)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to log outcome for {athlete_id}: {e}") from e


class SqlMemoryStore(_SqlStore, MemoryStore):
    """Athlete memory backed by the `athlete_memory` table."""

    def upsert(self, fact):
        try:
            with self.db.get_session() as session:
                row = (
                    session.query(AthleteMemory)
                    .filter_by(athlete_id=fact.athlete_id, memory_type=fact.memory_type, key=fact.key)
                    .first()
                )
                if row is None:
                    row = AthleteMemory(athlete_id=fact.athlete_id, memory_type=fact.memory_type, key=fact.key)
                    session.add(row)
                row.content = fact.content
                row.confidence = fact.confidence
                row.source = fact.source
                row.metadata_json = json.dumps(fact.metadata, default=str)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to save memory {fact.key} for {fact.athlete_id}: {e}") from e

    def get_facts(self, athlete_id: str, memory_type: Optional[str] = None) -> List[MemoryFact]:
        """Return stored facts for an athlete, optionally filtered by type."""
        try:
            with self.db.get_session() as session:
                query = session.query(AthleteMemory).filter(AthleteMemory.athlete_id == athlete_id)
                if memory_type:
                    query = query.filter(AthleteMemory.memory_type == memory_type)
                return [
                    MemoryFact(
                        athlete_id=row.athlete_id,
                        memory_type=row.memory_type,
                        key=row.key,
                        content=row.content,
                        confidence=row.confidence,
                        source=row.source,
                        metadata=json.loads(row.metadata_json) if row.metadata_json else {},
                    )
                    for row in query.order_by(AthleteMemory.key.asc()).all()
                ]
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to load memory for {athlete_id}: {e}") from e
