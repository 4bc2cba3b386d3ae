"""Database models for training sessions, fitness history, outcomes and athlete memory."""

from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Float, Date, DateTime, Boolean, Text, UniqueConstraint
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def _utcnow():
    return datetime.now(timezone.utc)


class TrainingSession(Base):
    """A normalized training session (one completed workout)."""

    __tablename__ = "sessions"

    id = Column(Integer, primary_key=True)
    athlete_id = Column(String(50), nullable=False, index=True)
    external_id = Column(String(100))  # id from the upstream platform
    date = Column(Date, nullable=False, index=True)
    name = Column(String(255))
    sport = Column(String(50))  # Ride, Run, VirtualRide, etc.
    workout_type = Column(String(50))  # recovery, endurance, ... when classified
    duration_seconds = Column(Integer)
    distance_m = Column(Float)
    load = Column(Float)  # TSS
    intensity_factor = Column(Float)
    avg_power = Column(Float)  # watts
    normalized_power = Column(Float)  # watts
    avg_hr = Column(Float)  # bpm
    max_hr = Column(Float)  # bpm
    created_at = Column(DateTime, default=_utcnow)

    def __repr__(self):
        return f"<TrainingSession(athlete={self.athlete_id}, date={self.date}, name={self.name}, load={self.load})>"


class FitnessRecord(Base):
    """Daily fitness/fatigue/form and wellness values."""

    __tablename__ = "fitness_history"
    __table_args__ = (UniqueConstraint("athlete_id", "date", name="uq_fitness_athlete_date"),)

    id = Column(Integer, primary_key=True)
    athlete_id = Column(String(50), nullable=False, index=True)
    date = Column(Date, nullable=False)
    ctl = Column(Float, nullable=False)  # Chronic Training Load
    atl = Column(Float, nullable=False)  # Acute Training Load
    tsb = Column(Float, nullable=False)  # Training Stress Balance
    daily_load = Column(Float, default=0.0)
    hrv = Column(Float)  # ms
    resting_hr = Column(Integer)  # bpm
    sleep_score = Column(Integer)  # 0-100
    readiness = Column(Integer)  # 0-100
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    def __repr__(self):
        return f"<FitnessRecord(date={self.date}, ctl={self.ctl:.1f}, atl={self.atl:.1f}, tsb={self.tsb:.1f})>"


class WorkoutOutcomeRecord(Base):
    """Logged result of a suggested workout. Written once, never updated."""

    __tablename__ = "workout_outcomes"

    id = Column(Integer, primary_key=True)
    athlete_id = Column(String(50), nullable=False, index=True)
    session_id = Column(Integer)  # TrainingSession.id, if matched
    suggested_workout = Column(String(100))
    suggested_type = Column(String(50))
    actual_type = Column(String(50))
    followed_suggestion = Column(Boolean)
    rpe = Column(Integer)  # 1-10
    feedback = Column(Text)
    created_at = Column(DateTime, default=_utcnow, index=True)

    def __repr__(self):
        return (
            f"<WorkoutOutcomeRecord(athlete={self.athlete_id}, suggested={self.suggested_type}, "
            f"actual={self.actual_type}, rpe={self.rpe})>"
        )


class AthleteMemory(Base):
    """A persisted athlete fact, keyed by (athlete, type, key)."""

    __tablename__ = "athlete_memory"
    __table_args__ = (
        UniqueConstraint("athlete_id", "memory_type", "key", name="uq_memory_athlete_type_key"),
    )

    id = Column(Integer, primary_key=True)
    athlete_id = Column(String(50), nullable=False, index=True)
    memory_type = Column(String(50), nullable=False)  # pattern, preference, goal, ...
    key = Column(String(100), nullable=False)
    content = Column(Text, nullable=False)
    confidence = Column(Float, default=1.0)
    source = Column(String(50))  # data_derived, user_stated, ...
    metadata_json = Column(Text)  # JSON string
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    def __repr__(self):
        return f"<AthleteMemory(athlete={self.athlete_id}, type={self.memory_type}, key={self.key})>"
