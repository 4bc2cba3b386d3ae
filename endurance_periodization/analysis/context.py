"""Athlete context and ordered fallback resolution of athlete values."""

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Callable, List, Optional, Sequence, Tuple, Union

from ..config import config
from ..db.records import SessionRecord
from ..db.stores import FitnessStore, SessionStore, StoreError
from ..library.workouts import TrainingPhase, WorkoutCategory

logger = logging.getLogger(__name__)

CategoryLike = Union[WorkoutCategory, str]


def parse_category(value: CategoryLike) -> WorkoutCategory:
    """Accept a WorkoutCategory or its string value ("sweet-spot" allowed)."""
    if isinstance(value, WorkoutCategory):
        return value
    return WorkoutCategory(str(value).strip().lower().replace("-", "").replace("_", "").replace(" ", ""))


def try_parse_category(value: Optional[CategoryLike]) -> Optional[WorkoutCategory]:
    if value is None:
        return None
    try:
        return parse_category(value)
    except ValueError:
        return None


def parse_phase(value: Union[TrainingPhase, str, None]) -> Optional[TrainingPhase]:
    if value is None or isinstance(value, TrainingPhase):
        return value
    return TrainingPhase(str(value).strip().lower())


@dataclass
class AthleteContext:
    """Snapshot of an athlete's state used for prescription and planning.

    TSB defaults to CTL - ATL when not given.
    """

    ftp: float = config.DEFAULT_FTP
    weight_kg: float = config.DEFAULT_WEIGHT_KG
    ctl: float = 0.0
    atl: float = 0.0
    tsb: Optional[float] = None
    phase: Optional[TrainingPhase] = None
    recent_categories: List[WorkoutCategory] = field(default_factory=list)
    days_since_intensity: Optional[int] = None
    preferred_categories: List[WorkoutCategory] = field(default_factory=list)
    avoided_categories: List[WorkoutCategory] = field(default_factory=list)
    weekday: Optional[int] = None  # 0=Monday
    weekly_hours_available: Optional[float] = None

    def __post_init__(self):
        if self.tsb is None:
            self.tsb = self.ctl - self.atl
        self.phase = parse_phase(self.phase)
        self.recent_categories = [parse_category(c) for c in self.recent_categories]
        self.preferred_categories = [parse_category(c) for c in self.preferred_categories]
        self.avoided_categories = [parse_category(c) for c in self.avoided_categories]
        if self.weekday is not None and not 0 <= self.weekday <= 6:
            raise ValueError(f"weekday must be 0-6, got {self.weekday}")

    @property
    def watts_per_kg(self) -> float:
        return self.ftp / self.weight_kg if self.weight_kg else 0.0


@dataclass
class Resolved:
    """A resolved value and the name of the source that supplied it."""

    value: Any
    source: str


class SourceResolver:
    """Resolve a value from an ordered list of sources.

    Sources are tried in order (typically local value, external store,
    context value); the first non-None result wins. Store failures are
    logged and treated as a miss, and the fixed default is used when every
    source misses.
    """

    def __init__(self, athlete_id: str = "default"):
        self.athlete_id = athlete_id

    def resolve(self, name: str, sources: Sequence[Tuple[str, Callable[[], Any]]], default: Any) -> Resolved:
        for source_name, fetch in sources:
            try:
                value = fetch()
            except StoreError as e:
                logger.warning("Could not read %s for %s from %s: %s", name, self.athlete_id, source_name, e)
                continue
            if value is not None:
                logger.debug("%s for %s resolved from %s", name, self.athlete_id, source_name)
                return Resolved(value, source_name)
        logger.debug("%s for %s fell back to default %s", name, self.athlete_id, default)
        return Resolved(default, "default")


def _is_intensity_session(session: SessionRecord) -> bool:
    if session.load is not None and session.load > config.INTENSITY_LOAD_THRESHOLD:
        return True
    return session.intensity_factor is not None and session.intensity_factor > config.INTENSITY_IF_THRESHOLD


def estimate_ftp(sessions: Sequence[SessionRecord]) -> Optional[float]:
    """FTP implied by the most recent session with power and intensity factor.

    IF = NP / FTP, so FTP = NP / IF.
    """
    for session in sorted(sessions, key=lambda s: s.date, reverse=True):
        if session.normalized_power and session.intensity_factor:
            return round(session.normalized_power / session.intensity_factor)
    return None


def days_since_intensity(sessions: Sequence[SessionRecord], as_of: date) -> Optional[int]:
    hard_days = [s.date for s in sessions if _is_intensity_session(s) and s.date <= as_of]
    if not hard_days:
        return None
    return (as_of - max(hard_days)).days


def recent_categories(sessions: Sequence[SessionRecord], as_of: date, days: int = 7) -> List[WorkoutCategory]:
    """Classified session categories over the last `days` days, newest first."""
    cutoff = as_of - timedelta(days=days)
    categories = []
    for session in sorted(sessions, key=lambda s: s.date, reverse=True):
        if cutoff <= session.date <= as_of:
            category = try_parse_category(session.workout_type)
            if category is not None:
                categories.append(category)
    return categories


def build_athlete_context(
    athlete_id: str,
    fitness_store: Optional[FitnessStore] = None,
    session_store: Optional[SessionStore] = None,
    as_of: Optional[date] = None,
    ftp: Optional[float] = None,
    weight_kg: Optional[float] = None,
    ctl: Optional[float] = None,
    atl: Optional[float] = None,
    phase: Optional[TrainingPhase] = None,
    preferred_categories: Sequence[CategoryLike] = (),
    avoided_categories: Sequence[CategoryLike] = (),
    weekly_hours_available: Optional[float] = None,
    fallback: Optional[AthleteContext] = None,
) -> AthleteContext:
    """Assemble an AthleteContext from explicit values, stores and defaults.

    Each value is resolved local -> external -> context -> default: an
    explicit argument wins, then the store, then the `fallback` context,
    then the configured default.
    """
    as_of = as_of or date.today()
    resolver = SourceResolver(athlete_id)

    def current_fitness():
        if fitness_store is None:
            return None
        return fitness_store.get_current_fitness(athlete_id)

    sessions_cache: List[Optional[List[SessionRecord]]] = []

    def sessions():
        if session_store is None:
            return None
        if not sessions_cache:
            sessions_cache.append(session_store.get_sessions(
                athlete_id, as_of - timedelta(days=42), as_of, limit=config.SESSION_FETCH_LIMIT,
            ))
        return sessions_cache[0]

    def fitness_field(name):
        def fetch():
            day = current_fitness()
            return getattr(day, name) if day is not None else None
        return fetch

    def from_fallback(name):
        return lambda: getattr(fallback, name) if fallback is not None else None

    ctl_value = resolver.resolve(
        "ctl", [("local", lambda: ctl), ("fitness_store", fitness_field("ctl")), ("context", from_fallback("ctl"))],
        config.DEFAULT_CTL,
    ).value
    atl_value = resolver.resolve(
        "atl", [("local", lambda: atl), ("fitness_store", fitness_field("atl")), ("context", from_fallback("atl"))],
        config.DEFAULT_ATL,
    ).value
    ftp_value = resolver.resolve(
        "ftp",
        [
            ("local", lambda: ftp),
            ("session_store", lambda: estimate_ftp(sessions() or [])),
            ("context", from_fallback("ftp")),
        ],
        config.DEFAULT_FTP,
    ).value
    weight_value = resolver.resolve(
        "weight_kg", [("local", lambda: weight_kg), ("context", from_fallback("weight_kg"))],
        config.DEFAULT_WEIGHT_KG,
    ).value
    recent = resolver.resolve(
        "recent_categories",
        [("session_store", lambda: recent_categories(sessions(), as_of) if sessions() is not None else None),
         ("context", from_fallback("recent_categories"))],
        [],
    ).value
    since_intensity = resolver.resolve(
        "days_since_intensity",
        [("session_store", lambda: days_since_intensity(sessions() or [], as_of)),
         ("context", from_fallback("days_since_intensity"))],
        None,
    ).value

    return AthleteContext(
        ftp=float(ftp_value),
        weight_kg=float(weight_value),
        ctl=float(ctl_value),
        atl=float(atl_value),
        phase=phase if phase is not None else (fallback.phase if fallback else None),
        recent_categories=list(recent),
        days_since_intensity=since_intensity,
        preferred_categories=list(preferred_categories) or (list(fallback.preferred_categories) if fallback else []),
        avoided_categories=list(avoided_categories) or (list(fallback.avoided_categories) if fallback else []),
        weekday=as_of.weekday(),
        weekly_hours_available=weekly_hours_available if weekly_hours_available is not None else (
            fallback.weekly_hours_available if fallback else None
        ),
    )
