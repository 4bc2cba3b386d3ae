"""Database module for the endurance periodization engine."""

from .database import Database, get_db, close_db
from .models import AthleteMemory, FitnessRecord, TrainingSession, WorkoutOutcomeRecord
from .records import FitnessDay, MemoryFact, SessionRecord, WorkoutOutcome
from .stores import (
    FitnessStore,
    MemoryStore,
    OutcomeStore,
    SessionStore,
    SqlFitnessStore,
    SqlMemoryStore,
    SqlOutcomeStore,
    SqlSessionStore,
    StoreError,
)

__all__ = [
    "Database",
    "get_db",
    "close_db",
    "AthleteMemory",
    "FitnessRecord",
    "TrainingSession",
    "WorkoutOutcomeRecord",
    "FitnessDay",
    "MemoryFact",
    "SessionRecord",
    "WorkoutOutcome",
    "FitnessStore",
    "MemoryStore",
    "OutcomeStore",
    "SessionStore",
    "SqlFitnessStore",
    "SqlMemoryStore",
    "SqlOutcomeStore",
    "SqlSessionStore",
    "StoreError",
]
