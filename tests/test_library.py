"""Tests for the workout and plan catalogs."""

from endurance_periodization.library import (
    PLAN_TEMPLATES,
    WORKOUT_LIBRARY,
    EnergySystem,
    PlanGoal,
    TrainingPhase,
    WorkoutCategory,
    get_applicable_plans,
    get_plan_templates_by_goal,
    get_workout,
    get_workout_counts,
    get_workouts_by_energy_system,
    get_workouts_by_phase,
    search_plan_templates,
    search_workouts,
)


class TestWorkoutCatalog:
    def test_ids_are_unique(self):
        ids = [w.id for w in WORKOUT_LIBRARY]

        assert len(ids) == len(set(ids)) == 34

    def test_neighbor_ids_resolve(self):
        for workout in WORKOUT_LIBRARY:
            for neighbor in (workout.easier_alternative, workout.harder_progression):
                if neighbor is not None:
                    assert get_workout(neighbor) is not None, f"{workout.id} -> {neighbor}"

    def test_ranges_are_ordered(self):
        for workout in WORKOUT_LIBRARY:
            assert workout.load_range[0] <= workout.load_range[1]
            assert workout.intensity_factor_range[0] <= workout.intensity_factor_range[1]
            for block in workout.intervals:
                assert block.intensity_min <= block.intensity_max

    def test_counts_per_category(self):
        counts = get_workout_counts()

        assert counts[WorkoutCategory.RECOVERY] == 3
        assert counts[WorkoutCategory.ENDURANCE] == 5
        assert counts[WorkoutCategory.SPRINT] == 3
        assert sum(counts.values()) == len(WORKOUT_LIBRARY)

    def test_phase_lookup_includes_any_phase_workouts(self):
        taper = {w.id for w in get_workouts_by_phase(TrainingPhase.TAPER)}

        assert {"recovery_easy_spin", "recovery_flush", "recovery_openers"} <= taper
        assert "threshold_3x8" not in taper

    def test_energy_system_lookup(self):
        neuromuscular = get_workouts_by_energy_system(EnergySystem.NEUROMUSCULAR)

        assert all(EnergySystem.NEUROMUSCULAR in w.energy_systems for w in neuromuscular)
        assert "sprint_neuromuscular" in [w.id for w in neuromuscular]

    def test_search_is_case_insensitive(self):
        ids = [w.id for w in search_workouts("ZONE 2")]

        assert {"endurance_zone2_60", "endurance_zone2_90"} <= set(ids)
        assert search_workouts("no such workout anywhere") == []


class TestPlanCatalog:
    def test_week_lists_match_duration(self):
        for template in PLAN_TEMPLATES:
            assert len(template.weeks) == template.duration_weeks
            assert len(template.load_progression) == template.duration_weeks
            assert [w.week_number for w in template.weeks] == list(range(1, template.duration_weeks + 1))

    def test_preferred_ids_resolve(self):
        for template in PLAN_TEMPLATES:
            for week in template.weeks:
                for slot in week.key_slots:
                    for workout_id in slot.preferred_ids:
                        workout = get_workout(workout_id)
                        assert workout is not None, f"{template.id} -> {workout_id}"

    def test_goal_lookup(self):
        assert [t.id for t in get_plan_templates_by_goal(PlanGoal.TAPER)] == ["taper_3week"]

    def test_applicable_plans_respect_ctl_range(self):
        assert [t.id for t in get_applicable_plans(25)] == ["base_build_4week"]
        assert all(t.admits(55) for t in get_applicable_plans(55))

    def test_search(self):
        assert "base_build_4week" in [t.id for t in search_plan_templates("base")]
