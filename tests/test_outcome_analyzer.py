"""Tests for outcome pattern analysis."""

import logging
from datetime import date, datetime, timedelta

import pytest

from endurance_periodization.analysis.outcome_analyzer import (
    OutcomePatternAnalyzer,
    analyze_athlete_patterns,
    derive_patterns,
)
from endurance_periodization.analysis.patterns import AthletePatterns, band_for_tsb, pattern_facts, summarize_patterns
from endurance_periodization.db.records import FitnessDay, SessionRecord, WorkoutOutcome
from endurance_periodization.db.stores import (
    FitnessStore,
    MemoryStore,
    OutcomeStore,
    SessionStore,
    StoreError,
)
from endurance_periodization.library.workouts import WorkoutCategory

START = date(2024, 1, 1)  # Monday


class FakeSessionStore(SessionStore):
    def __init__(self, sessions):
        self.sessions = sessions
        self.calls = []

    def get_sessions(self, athlete_id, start_date, end_date, name_filter=None, limit=None):
        self.calls.append((athlete_id, start_date, end_date, limit))
        return list(self.sessions)


class FakeFitnessStore(FitnessStore):
    def __init__(self, days):
        self.days = days

    def get_fitness_history(self, athlete_id, start_date, end_date):
        return list(self.days)

    def get_current_fitness(self, athlete_id):
        return self.days[-1] if self.days else None


class FakeOutcomeStore(OutcomeStore):
    def __init__(self, outcomes):
        self.outcomes = outcomes

    def get_outcomes(self, athlete_id, since, limit=None):
        return list(self.outcomes)

    def log_outcome(self, athlete_id, **fields):
        outcome = WorkoutOutcome(id=len(self.outcomes) + 1, created_at=datetime.now(), **fields)
        self.outcomes.append(outcome)
        return outcome


class FailingOutcomeStore(OutcomeStore):
    def get_outcomes(self, athlete_id, since, limit=None):
        raise StoreError("outcome log unavailable")

    def log_outcome(self, athlete_id, **fields):
        raise StoreError("outcome log unavailable")


class RecordingMemoryStore(MemoryStore):
    def __init__(self):
        self.facts = {}

    def upsert(self, fact):
        self.facts[(fact.athlete_id, fact.memory_type, fact.key)] = fact


def _fitness(tsbs, start=START):
    return [
        FitnessDay(date=start + timedelta(days=i), ctl=50.0, atl=50.0 - tsb, tsb=float(tsb))
        for i, tsb in enumerate(tsbs)
    ]


def _outcome(outcome_id, session_id=None, actual_type=None, rpe=None, followed=True, day=START):
    return WorkoutOutcome(
        id=outcome_id,
        created_at=datetime.combine(day, datetime.min.time()) + timedelta(hours=18),
        session_id=session_id,
        actual_type=actual_type,
        followed_suggestion=followed,
        rpe=rpe,
    )


def _slow_recovery_history():
    """Five hard days, each followed by a week below its TSB."""
    hard_offsets = [0, 8, 16, 24, 32]
    tsbs = [0 if i in hard_offsets else -5 for i in range(40)]
    sessions = [
        SessionRecord(id=i + 1, date=START + timedelta(days=offset), load=120, intensity_factor=0.9)
        for i, offset in enumerate(hard_offsets)
    ]
    return sessions, _fitness(tsbs)


def _tsb_history():
    """Fresh days go well, very fatigued days go badly."""
    tsbs = [10, 10, 10, -20, -20, -20]
    fitness = _fitness(tsbs)
    sessions = [SessionRecord(id=100 + i, date=day.date, load=50) for i, day in enumerate(fitness)]
    outcomes = [
        _outcome(i, session_id=100 + i, actual_type="threshold", rpe=4 if tsb > 0 else 8, followed=tsb > 0)
        for i, tsb in enumerate(tsbs)
    ]
    return outcomes, sessions, fitness


def _volume_history():
    """Twelve weeks alternating long easy weeks and short intense ones."""
    sessions = []
    outcomes = []
    for week in range(12):
        monday = START + timedelta(weeks=week)
        volume_week = week % 2 == 0
        for offset in (1, 5):
            session_id = len(sessions) + 1
            sessions.append(SessionRecord(
                id=session_id,
                date=monday + timedelta(days=offset),
                duration_seconds=5 * 3600 if volume_week else 3600,
                intensity_factor=0.6 if volume_week else 0.9,
                load=60,
            ))
        outcomes.append(_outcome(
            len(outcomes) + 1,
            session_id=sessions[-1].id,
            actual_type="endurance" if volume_week else "vo2max",
            rpe=4 if volume_week else 7,
            day=sessions[-1].date,
        ))
    return outcomes, sessions


def _day_of_week_history():
    """Four sessions each on Mon (easy), Tue, Thu and Sat (hard)."""
    plan = [(0, 0.5, 3), (1, 0.9, 5), (3, 0.9, 6), (5, 0.95, 8)]
    sessions = []
    outcomes = []
    for week in range(4):
        for weekday, intensity_factor, rpe in plan:
            session_id = len(sessions) + 1
            day = START + timedelta(weeks=week, days=weekday)
            sessions.append(SessionRecord(id=session_id, date=day, intensity_factor=intensity_factor, load=40))
            outcomes.append(_outcome(session_id, session_id=session_id, rpe=rpe, day=day))
    return outcomes, sessions


class TestRecoveryPattern:
    def test_slow_recovery(self):
        sessions, fitness = _slow_recovery_history()

        patterns = derive_patterns([], sessions, fitness)

        assert patterns.recovery.average_days == 7
        assert patterns.recovery.slow_recoverer
        assert not patterns.recovery.fast_recoverer
        assert patterns.recovery.sample_size == 5
        assert patterns.recovery.confidence == pytest.approx(0.5)

    def test_fast_recovery(self):
        sessions = [SessionRecord(id=i, date=START + timedelta(days=i * 3), load=100) for i in range(3)]

        patterns = derive_patterns([], sessions, _fitness([0] * 12))

        assert patterns.recovery.average_days == 1
        assert patterns.recovery.fast_recoverer

    def test_needs_three_resolvable_pairs(self):
        sessions = [
            SessionRecord(id=1, date=START, load=100),
            SessionRecord(id=2, date=START + timedelta(days=3), load=100),
            SessionRecord(id=3, date=START + timedelta(days=5), load=100),  # last fitness day
        ]

        patterns = derive_patterns([], sessions, _fitness([0] * 6))

        assert patterns.recovery is None
        assert any("Recovery pattern" in m for m in patterns.messages)

    def test_easy_sessions_are_not_hard_days(self):
        sessions = [SessionRecord(id=i, date=START + timedelta(days=i * 3), load=60, intensity_factor=0.7)
                    for i in range(4)]

        assert derive_patterns([], sessions, _fitness([0] * 14)).recovery is None


class TestTSBPattern:
    def test_best_and_worst_bands(self):
        outcomes, sessions, fitness = _tsb_history()

        tsb = derive_patterns(outcomes, sessions, fitness).tsb

        assert (tsb.optimal_min, tsb.optimal_max) == (5, 15)
        assert (tsb.risk_min, tsb.risk_max) == (-30, -15)
        assert tsb.peak_performance_tsb == 10
        assert tsb.data_points == 6
        assert tsb.confidence == pytest.approx(0.3)

    def test_values_beyond_bands_are_clamped(self):
        outcomes, sessions, fitness = _tsb_history()
        fitness = [
            FitnessDay(date=f.date, ctl=f.ctl, atl=f.atl, tsb=40.0 if f.tsb > 0 else -50.0)
            for f in fitness
        ]

        tsb = derive_patterns(outcomes, sessions, fitness).tsb

        assert (tsb.optimal_min, tsb.optimal_max) == (15, 30)
        assert (tsb.risk_min, tsb.risk_max) == (-30, -15)

    def test_needs_five_joined_outcomes(self):
        outcomes, sessions, fitness = _tsb_history()

        patterns = derive_patterns(outcomes[:4], sessions, fitness)

        assert patterns.tsb is None
        assert any("TSB pattern" in m for m in patterns.messages)

    def test_single_band_has_no_risk_zone(self):
        outcomes, sessions, fitness = _tsb_history()

        tsb = derive_patterns(outcomes, sessions, _fitness([10] * 6)).tsb

        assert tsb.risk_min is None
        assert tsb.risk_max is None


class TestWorkoutTypePatterns:
    def test_completion_and_effort(self):
        outcomes = [
            _outcome(1, actual_type="threshold", rpe=7, followed=True),
            _outcome(2, actual_type="threshold", rpe=9, followed=False),
            _outcome(3, actual_type="Threshold", rpe=None, followed=True),
            _outcome(4, actual_type="vo2max", rpe=9),
        ]

        patterns = derive_patterns(outcomes, [], [])

        assert len(patterns.workout_types) == 1
        threshold = patterns.for_category(WorkoutCategory.THRESHOLD)
        assert threshold.sample_size == 3
        assert threshold.completion_rate == pytest.approx(0.67)
        assert threshold.average_rpe == 8.0
        assert any("vo2max" in m for m in patterns.messages)

    def test_suggested_type_used_when_actual_missing(self):
        outcomes = [
            WorkoutOutcome(id=i, created_at=datetime(2024, 1, 1), suggested_type="tempo") for i in range(3)
        ]

        pattern = derive_patterns(outcomes, [], []).for_category(WorkoutCategory.TEMPO)

        assert pattern.sample_size == 3
        assert pattern.average_rpe == 5.0
        assert pattern.completion_rate == 0

    def test_best_days_from_sessions(self):
        outcomes, sessions = _day_of_week_history()
        for outcome in outcomes:
            outcome.actual_type = "sweetspot"

        pattern = derive_patterns(outcomes, sessions, []).for_category(WorkoutCategory.SWEETSPOT)

        assert pattern.best_days == [0, 1]
        assert pattern.worst_days == [5, 3]

    def test_sorted_by_sample_size(self):
        outcomes = [_outcome(i, actual_type="tempo") for i in range(3)]
        outcomes += [_outcome(10 + i, actual_type="recovery") for i in range(5)]

        patterns = derive_patterns(outcomes, [], [])

        assert [p.category for p in patterns.workout_types] == [WorkoutCategory.RECOVERY, WorkoutCategory.TEMPO]


class TestVolumeIntensityPattern:
    def test_prefers_volume(self):
        outcomes, sessions = _volume_history()

        pattern = derive_patterns(outcomes, sessions, []).volume_intensity

        assert pattern.prefers_volume
        assert not pattern.prefers_intensity
        assert not pattern.balanced
        assert pattern.volume_rpe == 4
        assert pattern.intensity_rpe == 7
        assert (pattern.sweet_hours_min, pattern.sweet_hours_max) == (10.0, 10.0)
        assert pattern.weeks == 12
        assert pattern.confidence == pytest.approx(0.4)

    def test_needs_twenty_sessions(self):
        outcomes, sessions = _volume_history()

        patterns = derive_patterns(outcomes, sessions[:19], [])

        assert patterns.volume_intensity is None
        assert any("20 sessions" in m for m in patterns.messages)

    def test_needs_ten_joined_weeks(self):
        outcomes, sessions = _volume_history()

        patterns = derive_patterns(outcomes[:9], sessions, [])

        assert patterns.volume_intensity is None
        assert any("weeks with outcomes" in m for m in patterns.messages)


class TestDayOfWeekPattern:
    def test_ranks_days(self):
        outcomes, sessions = _day_of_week_history()

        pattern = derive_patterns(outcomes, sessions, []).day_of_week

        assert pattern.best_intensity_days == [1, 3]
        assert pattern.avoid_intensity_days == [5]
        assert pattern.best_recovery_days == [0]
        assert pattern.confidence == pytest.approx(16 / 30)

    def test_needs_fourteen_outcomes(self):
        outcomes, sessions = _day_of_week_history()

        patterns = derive_patterns(outcomes[:13], sessions, [])

        assert patterns.day_of_week is None
        assert any("14 outcomes" in m for m in patterns.messages)

    def test_needs_two_ranked_intensity_days(self):
        outcomes, sessions = _day_of_week_history()
        sessions = [s for s in sessions if s.date.weekday() in (0, 1)]

        patterns = derive_patterns(outcomes, sessions, [])

        assert patterns.day_of_week is None


class TestAnalyzer:
    """Store-backed analysis."""

    def setup_method(self):
        sessions, fitness = _slow_recovery_history()
        tsb_outcomes, tsb_sessions, _ = _tsb_history()
        self.sessions = sessions + tsb_sessions
        self.fitness = fitness
        self.outcomes = tsb_outcomes
        self.memory = RecordingMemoryStore()
        self.session_store = FakeSessionStore(self.sessions)
        self.as_of = datetime(2024, 2, 15)

    def _analyzer(self, outcome_store=None):
        return OutcomePatternAnalyzer(
            "athlete-1",
            outcome_store=outcome_store or FakeOutcomeStore(self.outcomes),
            session_store=self.session_store,
            fitness_store=FakeFitnessStore(self.fitness),
            memory_store=self.memory,
        )

    def test_analyze_without_persisting(self):
        patterns = self._analyzer().analyze(lookback_days=60, as_of=self.as_of)

        assert patterns.data_points == 6
        assert patterns.recovery is not None
        assert patterns.analyzed_at == self.as_of
        assert self.memory.facts == {}
        assert self.session_store.calls == [("athlete-1", date(2023, 12, 17), date(2024, 2, 15), 200)]

    def test_persist_upserts_confident_patterns(self):
        analyze_athlete_patterns(
            "athlete-1",
            lookback_days=60,
            persist=True,
            outcome_store=FakeOutcomeStore(self.outcomes),
            session_store=self.session_store,
            fitness_store=FakeFitnessStore(self.fitness),
            memory_store=self.memory,
            as_of=self.as_of,
        )

        fact = self.memory.facts[("athlete-1", "pattern", "recovery_rate")]
        assert "more recovery time" in fact.content
        assert fact.source == "data_derived"
        assert fact.confidence == 0.5
        assert fact.metadata["analyzed_at"] == self.as_of.isoformat()
        assert ("athlete-1", "pattern", "threshold_completion") not in self.memory.facts

    def test_persist_is_idempotent(self):
        analyzer = self._analyzer()

        analyzer.analyze(lookback_days=60, persist=True, as_of=self.as_of)
        first = dict(self.memory.facts)
        analyzer.analyze(lookback_days=60, persist=True, as_of=self.as_of)

        assert self.memory.facts == first

    def test_too_few_outcomes_are_not_persisted(self):
        self.outcomes = self.outcomes[:4]

        written = self._analyzer().persist(derive_patterns(self.outcomes, self.sessions, self.fitness))

        assert written == 0
        assert self.memory.facts == {}

    def test_store_failure_falls_back_to_empty(self, caplog):
        with caplog.at_level(logging.WARNING):
            patterns = self._analyzer(FailingOutcomeStore()).analyze(as_of=self.as_of)

        assert patterns.data_points == 0
        assert patterns.recovery is not None
        assert patterns.tsb is None
        assert "outcome log unavailable" in caplog.text

    def test_negative_lookback(self):
        with pytest.raises(ValueError):
            self._analyzer().analyze(lookback_days=-1)


class TestPatternText:
    def test_not_enough_data(self):
        assert summarize_patterns(AthletePatterns(data_points=3)).startswith("Not enough data")

    def test_summary_lines(self):
        outcomes, sessions = _day_of_week_history()
        volume_outcomes, volume_sessions = _volume_history()
        patterns = derive_patterns(outcomes, sessions, [])
        patterns.volume_intensity = derive_patterns(volume_outcomes, volume_sessions, []).volume_intensity

        summary = summarize_patterns(patterns)

        assert "Best intensity days: Tuesday, Thursday" in summary
        assert "Responds best to volume-focused approach" in summary
        assert "Sweet spot: 10-10h/week" in summary

    def test_facts_for_struggling_category(self):
        outcomes = [_outcome(i, actual_type="vo2max", rpe=9, followed=i < 2) for i in range(6)]
        patterns = derive_patterns(outcomes, [], [])

        facts = {fact.key: fact for fact in pattern_facts("athlete-1", patterns)}

        assert facts["vo2max_completion"].confidence == 0.6
        assert "33% completion" in facts["vo2max_completion"].content
        assert "avg RPE 9" in facts["vo2max_effort"].content
        assert all(fact.memory_type == "pattern" for fact in facts.values())


class TestTSBBands:
    def test_band_edges(self):
        assert band_for_tsb(-5)[2] == "neutral"
        assert band_for_tsb(4.9)[2] == "neutral"
        assert band_for_tsb(5)[2] == "fresh"

    def test_out_of_range_values_are_clamped(self):
        assert band_for_tsb(-45)[2] == "very_fatigued"
        assert band_for_tsb(30)[2] == "very_fresh"
        assert band_for_tsb(80)[2] == "very_fresh"
