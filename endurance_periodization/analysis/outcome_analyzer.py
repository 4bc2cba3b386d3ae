"""Learn athlete response patterns from logged workout outcomes.

Outcomes are joined to sessions (by session id) and sessions to fitness
history (by date). Each sub-pattern has its own minimum sample size and is
left out, with a message, when the data doesn't support it.
"""

import logging
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime, timedelta
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from ..config import config
from ..db.records import FitnessDay, SessionRecord, WorkoutOutcome
from ..db.stores import (
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
from ..library.workouts import INTENSITY_CATEGORIES, WorkoutCategory
from .context import try_parse_category
from .patterns import (
    TSB_BANDS,
    AthletePatterns,
    DayOfWeekPattern,
    RecoveryPattern,
    TSBPattern,
    VolumeIntensityPattern,
    WorkoutTypePattern,
    band_for_tsb,
    band_stats_dict,
    pattern_facts,
)

logger = logging.getLogger(__name__)

RECOVERY_WINDOW_DAYS = 7
MIN_RECOVERY_PAIRS = 3
MIN_TSB_POINTS = 5
MIN_BAND_SAMPLES = 2
MIN_TYPE_OCCURRENCES = 3
MIN_VOLUME_SESSIONS = 20
MIN_VOLUME_WEEKS = 10
MIN_DAY_OF_WEEK_OUTCOMES = 14
MIN_DAY_SAMPLES = 2
DEFAULT_RPE = 5.0
DEFAULT_SWEET_HOURS = (4.0, 10.0)


def _week_start(day: date) -> date:
    return day - timedelta(days=day.weekday())


def _rank_days(rpes_by_day: Dict[int, List[int]]) -> List[int]:
    """Weekdays with enough samples, easiest (lowest mean RPE) first."""
    ranked = [(day, float(np.mean(rpes))) for day, rpes in rpes_by_day.items() if len(rpes) >= MIN_DAY_SAMPLES]
    ranked.sort(key=lambda item: item[1])
    return [day for day, _ in ranked]


def _best_and_worst(ranked: List[int]) -> Tuple[List[int], List[int]]:
    best = ranked[:2]
    worst = [day for day in reversed(ranked[-2:]) if day not in best]
    return best, worst


class _Indexes:
    """Lookups built once per analysis."""

    def __init__(self, outcomes, sessions, fitness):
        self.outcomes: List[WorkoutOutcome] = list(outcomes)
        self.sessions: List[SessionRecord] = sorted(sessions, key=lambda s: s.date)
        self.sessions_by_id: Dict[int, SessionRecord] = {s.id: s for s in self.sessions}
        self.fitness_by_date: Dict[date, FitnessDay] = {f.date: f for f in fitness}

    def session_for(self, outcome: WorkoutOutcome) -> Optional[SessionRecord]:
        if outcome.session_id is None:
            return None
        return self.sessions_by_id.get(outcome.session_id)

    def outcome_date(self, outcome: WorkoutOutcome) -> date:
        session = self.session_for(outcome)
        if session is not None:
            return session.date
        created = outcome.created_at
        return created.date() if isinstance(created, datetime) else created


def analyze_recovery(index: _Indexes, messages: List[str]) -> Optional[RecoveryPattern]:
    """Days for TSB to climb back to its level on a hard day."""
    hard_days = sorted({
        s.date for s in index.sessions
        if ((s.load is not None and s.load > config.INTENSITY_LOAD_THRESHOLD)
            or (s.intensity_factor is not None and s.intensity_factor > config.INTENSITY_IF_THRESHOLD))
        and s.date in index.fitness_by_date
    })

    recovery_days = []
    for day in hard_days:
        baseline = index.fitness_by_date[day].tsb
        window = [
            (offset, index.fitness_by_date.get(day + timedelta(days=offset)))
            for offset in range(1, RECOVERY_WINDOW_DAYS + 1)
        ]
        if not any(fitness is not None for _, fitness in window):
            continue
        recovered = next(
            (offset for offset, fitness in window if fitness is not None and fitness.tsb >= baseline),
            RECOVERY_WINDOW_DAYS,
        )
        recovery_days.append(recovered)

    if len(recovery_days) < MIN_RECOVERY_PAIRS:
        messages.append(
            f"Recovery pattern needs {MIN_RECOVERY_PAIRS} hard days with fitness data "
            f"(found {len(recovery_days)})"
        )
        return None

    average = round(float(np.mean(recovery_days)), 1)
    return RecoveryPattern(
        average_days=average,
        fast_recoverer=average < 2,
        slow_recoverer=average > 3,
        confidence=min(1.0, len(recovery_days) / 10),
        sample_size=len(recovery_days),
    )


def analyze_tsb(index: _Indexes, messages: List[str]) -> Optional[TSBPattern]:
    """Find the form band with the best follow rate and lowest effort."""
    points = []
    for outcome in index.outcomes:
        session = index.session_for(outcome)
        if session is None or outcome.rpe is None:
            continue
        fitness = index.fitness_by_date.get(session.date)
        if fitness is None:
            continue
        followed = outcome.followed_suggestion if outcome.followed_suggestion is not None else True
        points.append((fitness.tsb, followed, outcome.rpe))

    if len(points) < MIN_TSB_POINTS:
        messages.append(f"TSB pattern needs {MIN_TSB_POINTS} outcomes linked to fitness data (found {len(points)})")
        return None

    grouped: Dict[str, List[Tuple[bool, int]]] = defaultdict(list)
    for tsb, followed, rpe in points:
        grouped[band_for_tsb(tsb)[2]].append((followed, rpe))

    stats = {}
    ranked = []
    for low, high, label in TSB_BANDS:
        samples = grouped.get(label, [])
        if len(samples) < MIN_BAND_SAMPLES:
            continue
        follow_rate = float(np.mean([followed for followed, _ in samples]))
        average_rpe = float(np.mean([rpe for _, rpe in samples]))
        stats[label] = (len(samples), follow_rate, average_rpe)
        ranked.append((follow_rate * 10 - average_rpe, low, high))

    logger.debug("TSB band stats: %s", band_stats_dict(stats))
    if not ranked:
        messages.append(f"No TSB band has {MIN_BAND_SAMPLES} or more outcomes")
        return None

    ranked.sort(key=lambda item: item[0], reverse=True)
    _, best_low, best_high = ranked[0]
    risk = ranked[-1] if len(ranked) >= 2 else None

    return TSBPattern(
        optimal_min=best_low,
        optimal_max=best_high,
        risk_min=risk[1] if risk else None,
        risk_max=risk[2] if risk else None,
        peak_performance_tsb=(best_low + best_high) / 2,
        confidence=min(1.0, len(points) / 20),
        data_points=len(points),
    )


def analyze_workout_types(index: _Indexes, messages: List[str]) -> List[WorkoutTypePattern]:
    """Completion rate, effort and best weekdays per workout category."""
    by_category: Dict[WorkoutCategory, List[WorkoutOutcome]] = defaultdict(list)
    for outcome in index.outcomes:
        category = try_parse_category(outcome.category)
        if category is not None:
            by_category[category].append(outcome)

    patterns = []
    for category in WorkoutCategory:
        outcomes = by_category.get(category, [])
        if not outcomes:
            continue
        if len(outcomes) < MIN_TYPE_OCCURRENCES:
            messages.append(
                f"{category.value} pattern needs {MIN_TYPE_OCCURRENCES} outcomes (found {len(outcomes)})"
            )
            continue

        followed = sum(1 for o in outcomes if o.followed_suggestion)
        rpes = [o.rpe for o in outcomes if o.rpe is not None]

        rpes_by_day: Dict[int, List[int]] = defaultdict(list)
        for outcome in outcomes:
            session = index.session_for(outcome)
            if session is not None and outcome.rpe is not None:
                rpes_by_day[session.date.weekday()].append(outcome.rpe)
        best_days, worst_days = _best_and_worst(_rank_days(rpes_by_day))

        patterns.append(WorkoutTypePattern(
            category=category,
            completion_rate=round(followed / len(outcomes), 2),
            average_rpe=round(float(np.mean(rpes)), 1) if rpes else DEFAULT_RPE,
            sample_size=len(outcomes),
            best_days=best_days,
            worst_days=worst_days,
        ))

    patterns.sort(key=lambda p: p.sample_size, reverse=True)
    return patterns


def analyze_volume_intensity(index: _Indexes, messages: List[str]) -> Optional[VolumeIntensityPattern]:
    """Compare effort in high-volume weeks against high-intensity weeks."""
    if len(index.sessions) < MIN_VOLUME_SESSIONS:
        messages.append(
            f"Volume/intensity pattern needs {MIN_VOLUME_SESSIONS} sessions (found {len(index.sessions)})"
        )
        return None

    frame = pd.DataFrame({
        "week": [_week_start(s.date) for s in index.sessions],
        "hours": [(s.duration_seconds or 0) / 3600 for s in index.sessions],
        "intensity_factor": [np.nan if s.intensity_factor is None else s.intensity_factor for s in index.sessions],
    })
    weeks = frame.groupby("week").agg(hours=("hours", "sum"), intensity_factor=("intensity_factor", "mean"))
    weeks = weeks[weeks["hours"] > 0].copy()
    if weeks.empty:
        messages.append("Volume/intensity pattern needs sessions with recorded duration")
        return None

    median_hours = float(weeks["hours"].median())
    median_if = weeks["intensity_factor"].median()
    median_if = 0.7 if pd.isna(median_if) else float(median_if)
    weeks["intensity_factor"] = weeks["intensity_factor"].fillna(median_if)

    rpes_by_week: Dict[date, List[int]] = defaultdict(list)
    for outcome in index.outcomes:
        if outcome.rpe is not None:
            rpes_by_week[_week_start(index.outcome_date(outcome))].append(outcome.rpe)

    joined = []
    joined_outcomes = 0
    for week, row in weeks.iterrows():
        rpes = rpes_by_week.get(week)
        if not rpes:
            continue
        joined_outcomes += len(rpes)
        high_volume = row["hours"] >= median_hours and row["intensity_factor"] <= median_if
        joined.append((float(row["hours"]), float(np.mean(rpes)), high_volume))

    if len(joined) < MIN_VOLUME_WEEKS:
        messages.append(
            f"Volume/intensity pattern needs {MIN_VOLUME_WEEKS} weeks with outcomes (found {len(joined)})"
        )
        return None

    volume_rpes = [rpe for _, rpe, high_volume in joined if high_volume]
    intensity_rpes = [rpe for _, rpe, high_volume in joined if not high_volume]
    volume_rpe = float(np.mean(volume_rpes)) if volume_rpes else DEFAULT_RPE
    intensity_rpe = float(np.mean(intensity_rpes)) if intensity_rpes else DEFAULT_RPE

    prefers_volume = volume_rpe < intensity_rpe - 0.5
    prefers_intensity = intensity_rpe < volume_rpe - 0.5

    comfortable = [hours for hours, rpe, _ in joined if rpe <= 6]
    if comfortable:
        sweet_min, sweet_max = round(min(comfortable), 1), round(max(comfortable), 1)
    else:
        sweet_min, sweet_max = DEFAULT_SWEET_HOURS

    return VolumeIntensityPattern(
        prefers_volume=prefers_volume,
        prefers_intensity=prefers_intensity,
        balanced=not prefers_volume and not prefers_intensity,
        sweet_hours_min=sweet_min,
        sweet_hours_max=sweet_max,
        volume_rpe=round(volume_rpe, 1),
        intensity_rpe=round(intensity_rpe, 1),
        confidence=min(1.0, joined_outcomes / 30),
        weeks=len(joined),
    )


def analyze_day_of_week(index: _Indexes, messages: List[str]) -> Optional[DayOfWeekPattern]:
    """Rank weekdays by effort for hard and easy sessions separately."""
    if len(index.outcomes) < MIN_DAY_OF_WEEK_OUTCOMES:
        messages.append(
            f"Day-of-week pattern needs {MIN_DAY_OF_WEEK_OUTCOMES} outcomes (found {len(index.outcomes)})"
        )
        return None

    intensity_rpes: Dict[int, List[int]] = defaultdict(list)
    easy_rpes: Dict[int, List[int]] = defaultdict(list)
    for outcome in index.outcomes:
        session = index.session_for(outcome)
        if session is None or outcome.rpe is None:
            continue
        is_intensity = (
            (session.intensity_factor is not None and session.intensity_factor > 0.8)
            or try_parse_category(session.workout_type) in INTENSITY_CATEGORIES
        )
        target = intensity_rpes if is_intensity else easy_rpes
        target[session.date.weekday()].append(outcome.rpe)

    ranked_intensity = _rank_days(intensity_rpes)
    if len(ranked_intensity) < 2:
        messages.append(
            f"Day-of-week pattern needs intensity outcomes on 2 weekdays with {MIN_DAY_SAMPLES}+ samples each"
        )
        return None

    best, avoid = _best_and_worst(ranked_intensity)
    return DayOfWeekPattern(
        best_intensity_days=best,
        avoid_intensity_days=avoid,
        best_recovery_days=_rank_days(easy_rpes)[:2],
        confidence=min(1.0, len(index.outcomes) / 30),
    )


def derive_patterns(
    outcomes: Sequence[WorkoutOutcome],
    sessions: Sequence[SessionRecord],
    fitness: Sequence[FitnessDay],
    analyzed_at: Optional[datetime] = None,
) -> AthletePatterns:
    """Derive every sub-pattern from already-fetched data."""
    index = _Indexes(outcomes, sessions, fitness)
    messages: List[str] = []

    patterns = AthletePatterns(
        recovery=analyze_recovery(index, messages),
        tsb=analyze_tsb(index, messages),
        workout_types=analyze_workout_types(index, messages),
        volume_intensity=analyze_volume_intensity(index, messages),
        day_of_week=analyze_day_of_week(index, messages),
        analyzed_at=analyzed_at or datetime.now(),
        data_points=len(index.outcomes),
        messages=messages,
    )
    return patterns


class OutcomePatternAnalyzer:
    """Fetch an athlete's history from the stores and learn patterns from it."""

    def __init__(
        self,
        athlete_id: str = "default",
        outcome_store: Optional[OutcomeStore] = None,
        session_store: Optional[SessionStore] = None,
        fitness_store: Optional[FitnessStore] = None,
        memory_store: Optional[MemoryStore] = None,
    ):
        self.athlete_id = athlete_id
        self.outcome_store = outcome_store or SqlOutcomeStore()
        self.session_store = session_store or SqlSessionStore()
        self.fitness_store = fitness_store or SqlFitnessStore()
        self._memory_store = memory_store

    @property
    def memory_store(self) -> MemoryStore:
        if self._memory_store is None:
            self._memory_store = SqlMemoryStore()
        return self._memory_store

    def _fetch(self, name: str, fetch: Callable[[], list]) -> list:
        try:
            return fetch()
        except StoreError as e:
            logger.warning("Failed to load %s for %s, continuing without them: %s", name, self.athlete_id, e)
            return []

    def fetch_history(self, lookback_days: int, as_of: Optional[datetime] = None):
        """Load outcomes, sessions and fitness history concurrently.

        Returns:
            (outcomes, sessions, fitness) lists; a failing store yields []
        """
        as_of = as_of or datetime.now()
        since = as_of - timedelta(days=lookback_days)

        with ThreadPoolExecutor(max_workers=3) as executor:
            outcomes_future = executor.submit(self._fetch, "outcomes", lambda: self.outcome_store.get_outcomes(
                self.athlete_id, since, limit=config.OUTCOME_FETCH_LIMIT,
            ))
            sessions_future = executor.submit(self._fetch, "sessions", lambda: self.session_store.get_sessions(
                self.athlete_id, since.date(), as_of.date(), limit=config.SESSION_FETCH_LIMIT,
            ))
            fitness_future = executor.submit(self._fetch, "fitness history", lambda: (
                self.fitness_store.get_fitness_history(self.athlete_id, since.date(), as_of.date())
            ))
            return outcomes_future.result(), sessions_future.result(), fitness_future.result()

    def analyze(
        self,
        lookback_days: Optional[int] = None,
        persist: bool = False,
        as_of: Optional[datetime] = None,
    ) -> AthletePatterns:
        """Learn patterns over the last `lookback_days` days.

        Args:
            lookback_days: History window, defaults to Config.DEFAULT_LOOKBACK_DAYS
            persist: Write confident patterns to the memory store
            as_of: End of the window, defaults to now

        Returns:
            AthletePatterns, possibly with every sub-pattern omitted
        """
        if lookback_days is None:
            lookback_days = config.DEFAULT_LOOKBACK_DAYS
        if lookback_days < 0:
            raise ValueError(f"lookback_days must be >= 0, got {lookback_days}")

        outcomes, sessions, fitness = self.fetch_history(lookback_days, as_of)
        patterns = derive_patterns(outcomes, sessions, fitness, analyzed_at=as_of)
        logger.info(
            "Analyzed %d outcomes, %d sessions and %d fitness days for %s (%d patterns omitted)",
            len(outcomes), len(sessions), len(fitness), self.athlete_id, len(patterns.messages),
        )

        if persist:
            self.persist(patterns)
        return patterns

    def persist(self, patterns: AthletePatterns) -> int:
        """Upsert confident patterns as memory facts. Returns the number written."""
        if patterns.data_points < config.PERSIST_MIN_DATA_POINTS:
            logger.info(
                "Not persisting patterns for %s: %d outcomes (need %d)",
                self.athlete_id, patterns.data_points, config.PERSIST_MIN_DATA_POINTS,
            )
            return 0

        written = 0
        for fact in pattern_facts(self.athlete_id, patterns):
            try:
                self.memory_store.upsert(fact)
                written += 1
            except StoreError as e:
                logger.warning("Failed to save pattern %s for %s: %s", fact.key, self.athlete_id, e)
        logger.info("Saved %d pattern facts for %s", written, self.athlete_id)
        return written


def analyze_athlete_patterns(
    athlete_id: str,
    lookback_days: Optional[int] = None,
    persist: bool = False,
    outcome_store: Optional[OutcomeStore] = None,
    session_store: Optional[SessionStore] = None,
    fitness_store: Optional[FitnessStore] = None,
    memory_store: Optional[MemoryStore] = None,
    as_of: Optional[datetime] = None,
) -> AthletePatterns:
    """Learn an athlete's response patterns from stored history."""
    analyzer = OutcomePatternAnalyzer(athlete_id, outcome_store, session_store, fitness_store, memory_store)
    return analyzer.analyze(lookback_days, persist=persist, as_of=as_of)
