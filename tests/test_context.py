"""Tests for athlete context assembly and source resolution."""

import logging
from datetime import date, timedelta

import pytest

from endurance_periodization.analysis.context import (
    AthleteContext,
    SourceResolver,
    build_athlete_context,
    days_since_intensity,
    estimate_ftp,
    parse_category,
    recent_categories,
)
from endurance_periodization.config import Config, config
from endurance_periodization.db.records import FitnessDay, SessionRecord
from endurance_periodization.db.stores import FitnessStore, SessionStore, StoreError
from endurance_periodization.library.workouts import TrainingPhase, WorkoutCategory

TODAY = date(2024, 4, 10)  # Wednesday


class FixedFitnessStore(FitnessStore):
    def __init__(self, current):
        self.current = current

    def get_fitness_history(self, athlete_id, start_date, end_date):
        return [self.current] if self.current else []

    def get_current_fitness(self, athlete_id):
        return self.current


class BrokenFitnessStore(FitnessStore):
    def get_fitness_history(self, athlete_id, start_date, end_date):
        raise StoreError("fitness table locked")

    def get_current_fitness(self, athlete_id):
        raise StoreError("fitness table locked")


class ListSessionStore(SessionStore):
    def __init__(self, sessions):
        self.sessions = sessions
        self.calls = 0

    def get_sessions(self, athlete_id, start_date, end_date, name_filter=None, limit=None):
        self.calls += 1
        return [s for s in self.sessions if start_date <= s.date <= end_date]


class TestSourceResolver:
    def setup_method(self):
        self.resolver = SourceResolver("athlete-1")

    def test_first_non_none_wins(self):
        resolved = self.resolver.resolve("ftp", [("local", lambda: None), ("store", lambda: 265)], 250)

        assert resolved.value == 265
        assert resolved.source == "store"

    def test_default_when_all_miss(self):
        resolved = self.resolver.resolve("ftp", [("local", lambda: None)], 250)

        assert resolved.value == 250
        assert resolved.source == "default"

    def test_store_error_is_skipped(self, caplog):
        def broken():
            raise StoreError("connection refused")

        with caplog.at_level(logging.WARNING):
            resolved = self.resolver.resolve("ctl", [("store", broken), ("context", lambda: 61)], 50)

        assert resolved.value == 61
        assert resolved.source == "context"
        assert "connection refused" in caplog.text

    def test_other_errors_propagate(self):
        def broken():
            raise RuntimeError("bug")

        with pytest.raises(RuntimeError):
            self.resolver.resolve("ctl", [("store", broken)], 50)


class TestSessionHelpers:
    def setup_method(self):
        self.sessions = [
            SessionRecord(id=1, date=TODAY - timedelta(days=9), workout_type="vo2max", load=95,
                          normalized_power=290, intensity_factor=1.0),
            SessionRecord(id=2, date=TODAY - timedelta(days=4), workout_type="threshold", load=85,
                          normalized_power=255, intensity_factor=0.95),
            SessionRecord(id=3, date=TODAY - timedelta(days=1), workout_type="Endurance", load=55,
                          intensity_factor=0.68),
            SessionRecord(id=4, date=TODAY - timedelta(days=2), workout_type="gravel", load=40),
        ]

    def test_estimate_ftp_uses_latest_power_session(self):
        assert estimate_ftp(self.sessions) == round(255 / 0.95)
        assert estimate_ftp([]) is None

    def test_days_since_intensity(self):
        assert days_since_intensity(self.sessions, TODAY) == 4
        assert days_since_intensity(self.sessions[2:], TODAY) is None

    def test_recent_categories_newest_first(self):
        assert recent_categories(self.sessions, TODAY) == [WorkoutCategory.ENDURANCE, WorkoutCategory.THRESHOLD]

    def test_parse_category_variants(self):
        assert parse_category("Sweet-Spot") == WorkoutCategory.SWEETSPOT
        assert parse_category("vo2_max") == WorkoutCategory.VO2MAX
        with pytest.raises(ValueError):
            parse_category("yoga")


class TestBuildAthleteContext:
    def setup_method(self):
        self.fitness = FixedFitnessStore(FitnessDay(TODAY, ctl=62.0, atl=70.0, tsb=-8.0))
        self.sessions = ListSessionStore([
            SessionRecord(id=1, date=TODAY - timedelta(days=3), workout_type="threshold", load=90,
                          normalized_power=270, intensity_factor=0.9),
        ])

    def test_values_come_from_stores(self):
        context = build_athlete_context("athlete-1", self.fitness, self.sessions, as_of=TODAY)

        assert context.ctl == 62
        assert context.atl == 70
        assert context.tsb == -8
        assert context.ftp == 300
        assert context.days_since_intensity == 3
        assert context.recent_categories == [WorkoutCategory.THRESHOLD]
        assert context.weekday == TODAY.weekday()
        assert self.sessions.calls == 1

    def test_explicit_values_win(self):
        context = build_athlete_context(
            "athlete-1", self.fitness, self.sessions, as_of=TODAY, ftp=280, ctl=55, phase=TrainingPhase.BUILD,
        )

        assert context.ftp == 280
        assert context.ctl == 55
        assert context.atl == 70
        assert context.phase == TrainingPhase.BUILD

    def test_fallback_context_then_defaults(self):
        fallback = AthleteContext(ftp=240, weight_kg=64, ctl=48, atl=52, preferred_categories=["tempo"])

        context = build_athlete_context("athlete-1", BrokenFitnessStore(), as_of=TODAY, fallback=fallback)

        assert context.ctl == 48
        assert context.atl == 52
        assert context.ftp == 240
        assert context.weight_kg == 64
        assert context.preferred_categories == [WorkoutCategory.TEMPO]

    def test_no_sources_uses_config_defaults(self):
        context = build_athlete_context("athlete-1", as_of=TODAY)

        assert context.ftp == config.DEFAULT_FTP
        assert context.weight_kg == config.DEFAULT_WEIGHT_KG
        assert context.ctl == config.DEFAULT_CTL
        assert context.recent_categories == []
        assert context.days_since_intensity is None

    def test_watts_per_kg(self):
        assert AthleteContext(ftp=280, weight_kg=70).watts_per_kg == pytest.approx(4.0)


class TestConfig:
    def test_key_days_parsing(self, monkeypatch):
        monkeypatch.setattr(Config, "TRAINING_KEY_DAYS", "5, 1,1,9,x,3")

        assert Config.get_key_days() == [1, 3, 5]

    def test_empty_key_days(self, monkeypatch):
        monkeypatch.setattr(Config, "TRAINING_KEY_DAYS", "")

        assert Config.get_key_days() == [1, 3, 5]
