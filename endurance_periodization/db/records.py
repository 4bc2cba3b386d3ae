"""Plain records passed between the stores and the analysis layer."""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, Optional


@dataclass
class SessionRecord:
    """A completed training session."""

    id: int
    date: date
    name: str = ""
    sport: Optional[str] = None
    workout_type: Optional[str] = None
    duration_seconds: Optional[int] = None
    distance_m: Optional[float] = None
    load: Optional[float] = None  # TSS
    intensity_factor: Optional[float] = None
    avg_power: Optional[float] = None
    normalized_power: Optional[float] = None
    avg_hr: Optional[float] = None
    max_hr: Optional[float] = None


@dataclass
class FitnessDay:
    """One day of fitness history plus wellness readings."""

    date: date
    ctl: float
    atl: float
    tsb: float
    daily_load: float = 0.0
    hrv: Optional[float] = None
    resting_hr: Optional[int] = None
    sleep_score: Optional[int] = None
    readiness: Optional[int] = None


@dataclass
class WorkoutOutcome:
    """Suggested vs. actual workout with the athlete's reported effort."""

    id: int
    created_at: datetime
    session_id: Optional[int] = None
    suggested_workout: Optional[str] = None
    suggested_type: Optional[str] = None
    actual_type: Optional[str] = None
    followed_suggestion: Optional[bool] = None
    rpe: Optional[int] = None  # 1-10
    feedback: Optional[str] = None

    @property
    def category(self) -> Optional[str]:
        """Category the outcome is attributed to (actual wins over suggested)."""
        return self.actual_type or self.suggested_type


@dataclass
class MemoryFact:
    """A short persisted statement about an athlete."""

    athlete_id: str
    memory_type: str
    key: str
    content: str
    confidence: float = 1.0
    source: str = "data_derived"
    metadata: Dict[str, Any] = field(default_factory=dict)
