"""Tests for periodized plan generation."""

from datetime import date, timedelta

import pytest

from endurance_periodization.analysis.context import AthleteContext
from endurance_periodization.analysis.patterns import (
    AthletePatterns,
    DayOfWeekPattern,
    RecoveryPattern,
    VolumeIntensityPattern,
)
from endurance_periodization.analysis.plan_generator import (
    available_plans,
    baseline_weekly_load,
    derive_key_days,
    generate_training_plan,
    plan_to_projection_days,
    select_template,
)
from endurance_periodization.analysis.projection import project_fitness
from endurance_periodization.library.plans import PlanGoal, get_plan_template
from endurance_periodization.library.workouts import TrainingPhase, WorkoutCategory


def _volume_pattern(**overrides):
    values = dict(
        prefers_volume=True,
        prefers_intensity=False,
        balanced=False,
        sweet_hours_min=5.0,
        sweet_hours_max=9.0,
        volume_rpe=5.0,
        intensity_rpe=6.5,
        confidence=0.5,
        weeks=12,
    )
    values.update(overrides)
    return VolumeIntensityPattern(**values)


class TestBaseBuildPlan:
    """4-week base build starting Monday 2024-01-01."""

    def setup_method(self):
        self.context = AthleteContext(ftp=250, ctl=40, atl=40)
        result = generate_training_plan(
            date(2024, 1, 1), self.context, template_id="base_build_4week", weekly_hours=8,
        )
        assert result.success
        self.result = result
        self.plan = result.plan
        self.baseline = baseline_weekly_load(40, 8)

    def test_baseline(self):
        assert self.baseline == 380

    def test_day_count_and_weekdays(self):
        days = self.plan.days

        assert len(self.plan.weeks) == 4
        assert len(days) == 28
        assert all(len(week.days) == 7 for week in self.plan.weeks)
        assert [d.weekday for d in days] == [i % 7 for i in range(28)]
        assert days[0].date == date(2024, 1, 1)
        assert self.plan.end_date == date(2024, 1, 28)

    def test_key_days_default_to_tue_thu_sat(self):
        week_one = self.plan.weeks[0].days

        assert [d.weekday for d in week_one if d.is_key_workout] == [1, 3, 5]
        sunday = week_one[6]
        assert sunday.date == date(2024, 1, 7)
        assert sunday.workout is None
        assert sunday.is_recovery_day

    def test_week_targets_follow_progression(self):
        template = get_plan_template("base_build_4week")

        targets = [week.target_load for week in self.plan.weeks]

        assert targets == [round(self.baseline * m) for m in template.load_progression]
        assert self.plan.weeks[3].target_load == round(380 * 0.65)

    def test_week_four_is_recovery(self):
        week_four = self.plan.weeks[3]

        assert week_four.phase == TrainingPhase.RECOVERY
        assert week_four.is_recovery_week

    def test_recovery_workout_is_a_recovery_day(self):
        thursday = self.plan.weeks[3].days[3]

        assert thursday.workout.category == WorkoutCategory.RECOVERY
        assert thursday.is_key_workout
        assert thursday.is_recovery_day
        assert not self.plan.weeks[3].days[1].is_recovery_day

    def test_slot_loads_are_conserved(self):
        template = get_plan_template("base_build_4week")

        for week, week_template in zip(self.plan.weeks, template.weeks):
            expected = sum(round(week.target_load * slot.load_percent / 100) for slot in week_template.key_slots)
            assert week.planned_load == expected

    def test_preferred_templates_are_used(self):
        first = self.plan.weeks[0].days[1].workout

        assert first.template_id == "endurance_zone2_60"
        assert first.target_load == round(380 * 25 / 100)
        assert first.target_intensity_factor == pytest.approx(0.7)

    def test_summary(self):
        summary = self.plan.summary

        assert summary.total_days == 28
        assert summary.workout_days == 12
        assert summary.rest_days == 16
        assert summary.phase_counts == {"base": 3, "recovery": 1}

    def test_projection_days(self):
        projection_days = self.plan.to_projection_days()

        assert len(projection_days) == 28
        assert sum(d.target_load for d in projection_days) == sum(w.planned_load for w in self.plan.weeks)

        projections = project_fitness(40, 40, date(2024, 1, 1), projection_days)
        assert len(projections) == 28

    def test_rest_days_project_zero_load(self):
        projection_days = plan_to_projection_days(self.plan)

        assert projection_days[6].date == date(2024, 1, 7)
        assert projection_days[6].target_load == 0
        assert projection_days[1].target_load == round(380 * 25 / 100)

    def test_first_warning_names_the_plan(self):
        assert "4-Week Base Building" in self.result.warnings[0]


class TestGenerationInputs:
    def setup_method(self):
        self.context = AthleteContext(ctl=45, atl=45)

    def test_iso_string_start_date(self):
        result = generate_training_plan("2024-01-01", self.context)

        assert result.success
        assert result.plan.start_date == date(2024, 1, 1)

    def test_invalid_start_date_fails(self):
        result = generate_training_plan("not-a-date", self.context)

        assert not result.success
        assert "start date" in result.error

    def test_iso_string_event_date(self):
        result = generate_training_plan(
            "2024-01-01", AthleteContext(ctl=65, atl=60), target_event_date="2024-01-20",
        )

        assert result.success
        assert result.plan.target_event_date == date(2024, 1, 20)
        assert result.plan.template_id == "taper_3week"

    def test_invalid_event_date_fails(self):
        result = generate_training_plan(date(2024, 1, 1), self.context, target_event_date="soon")

        assert not result.success
        assert "event date" in result.error

    def test_unknown_template_fails(self):
        result = generate_training_plan(date(2024, 1, 1), self.context, template_id="couch_to_kom")

        assert not result.success
        assert "couch_to_kom" in result.error

    def test_invalid_key_day_fails(self):
        result = generate_training_plan(date(2024, 1, 1), self.context, key_days=[1, 9])

        assert not result.success

    def test_extra_key_days_are_rest(self):
        result = generate_training_plan(
            date(2024, 1, 1), self.context, template_id="base_build_4week", key_days=[0, 2, 4, 6],
        )

        week_one = result.plan.weeks[0].days
        assert [d.weekday for d in week_one if d.workout] == [0, 2, 4]
        assert week_one[6].workout is None

    def test_ctl_below_minimum_warns(self):
        result = generate_training_plan(date(2024, 1, 1), AthleteContext(ctl=30, atl=30), template_id="taper_3week")

        assert result.success
        assert any("below the recommended minimum" in w for w in result.warnings)

    def test_default_hours(self):
        result = generate_training_plan(date(2024, 1, 1), self.context)

        assert result.plan.weekly_hours == 8


class TestTemplateSelection:
    def test_explicit_id_wins(self):
        template, _ = select_template(10, PlanGoal.BASE_BUILD, "event_prep_12week")

        assert template.id == "event_prep_12week"

    def test_no_admissible_template_falls_back_to_lowest_minimum(self):
        template, reason = select_template(10)

        assert template.id == "base_build_4week"
        assert "No plan fits" in reason

    def test_ties_keep_catalog_order(self):
        template, _ = select_template(45)

        assert template.id == "base_build_4week"

    def test_goal_filter(self):
        template, _ = select_template(45, PlanGoal.FTP_BUILD)

        assert template.id == "ftp_build_8week"

    def test_goal_without_admissible_match_uses_all(self):
        template, _ = select_template(30, PlanGoal.TAPER)

        assert template.admits(30)

    def test_close_event_prefers_taper(self):
        result = generate_training_plan(
            date(2024, 1, 1), AthleteContext(ctl=65, atl=60), target_event_date=date(2024, 1, 20),
        )

        assert result.plan.template_id == "taper_3week"

    def test_distant_event_prefers_event_prep(self):
        result = generate_training_plan(
            date(2024, 1, 1), AthleteContext(ctl=65, atl=60), target_event_date=date(2024, 3, 25),
        )

        assert result.plan.template_id == "event_prep_12week"
        assert result.plan.target_event_date == date(2024, 3, 25)

    def test_available_plans(self):
        plans = {p.template.id: p for p in available_plans(30)}

        assert plans["base_build_4week"].admissible
        assert not plans["taper_3week"].admissible
        assert plans["taper_3week"].ctl_gap == 20


class TestLearnedPatterns:
    def setup_method(self):
        self.context = AthleteContext(ctl=45, atl=45)
        self.start = date(2024, 1, 1)

    def test_key_days_from_day_of_week_pattern(self):
        patterns = AthletePatterns(day_of_week=DayOfWeekPattern([2, 4], [0], [1], confidence=0.6))

        assert derive_key_days(patterns) == [2, 4, 6]

        result = generate_training_plan(self.start, self.context, template_id="base_build_4week", patterns=patterns)
        week_one = result.plan.weeks[0].days
        assert [d.weekday for d in week_one if d.workout] == [2, 4, 6]
        assert any("best days" in w for w in result.warnings)

    def test_low_confidence_day_pattern_is_ignored(self):
        patterns = AthletePatterns(day_of_week=DayOfWeekPattern([2, 4], [0], [1], confidence=0.3))

        assert derive_key_days(patterns) is None

    def test_explicit_key_days_beat_patterns(self):
        patterns = AthletePatterns(day_of_week=DayOfWeekPattern([2, 4], [0], [1], confidence=0.9))

        result = generate_training_plan(self.start, self.context, key_days=[0, 3, 5], patterns=patterns)

        assert result.plan.key_days == [0, 3, 5]

    def test_hours_are_clamped_to_sweet_spot(self):
        patterns = AthletePatterns(volume_intensity=_volume_pattern())

        result = generate_training_plan(self.start, self.context, weekly_hours=12, patterns=patterns)

        assert result.plan.weekly_hours == 9
        assert any("Adjusted weekly hours" in w for w in result.warnings)
        assert any("volume" in w for w in result.warnings)

    def test_missing_hours_use_sweet_spot_middle(self):
        patterns = AthletePatterns(volume_intensity=_volume_pattern())

        result = generate_training_plan(self.start, self.context, patterns=patterns)

        assert result.plan.weekly_hours == 7

    def test_patterns_can_be_disabled(self):
        patterns = AthletePatterns(
            volume_intensity=_volume_pattern(),
            day_of_week=DayOfWeekPattern([2, 4], [0], [1], confidence=0.9),
        )

        result = generate_training_plan(
            self.start, self.context, weekly_hours=12, patterns=patterns, use_learned_patterns=False,
        )

        assert result.plan.weekly_hours == 12
        assert result.plan.key_days == [1, 3, 5]

    def test_slow_recovery_warning(self):
        patterns = AthletePatterns(recovery=RecoveryPattern(4.2, False, True, confidence=0.8, sample_size=8))

        result = generate_training_plan(self.start, self.context, patterns=patterns)

        assert any("recover slowly" in w for w in result.warnings)

    def test_week_dates_are_consecutive(self):
        result = generate_training_plan(self.start, self.context, template_id="event_prep_12week")

        days = result.plan.days
        assert len(days) == 84
        assert all(b.date - a.date == timedelta(days=1) for a, b in zip(days, days[1:]))
