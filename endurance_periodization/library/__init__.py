"""Read-only workout and plan template catalogs."""

from .workouts import (
    WORKOUT_LIBRARY,
    EnergySystem,
    IntervalBlock,
    Prerequisites,
    TrainingPhase,
    WorkoutCategory,
    WorkoutTemplate,
    get_workout,
    get_workout_counts,
    get_workouts_by_category,
    get_workouts_by_energy_system,
    get_workouts_by_phase,
    search_workouts,
)
from .plans import (
    PLAN_TEMPLATES,
    KeySlot,
    PlanGoal,
    PlanTemplate,
    WeekTemplate,
    get_applicable_plans,
    get_plan_template,
    get_plan_templates_by_goal,
    search_plan_templates,
)

__all__ = [
    "WORKOUT_LIBRARY",
    "EnergySystem",
    "IntervalBlock",
    "Prerequisites",
    "TrainingPhase",
    "WorkoutCategory",
    "WorkoutTemplate",
    "get_workout",
    "get_workout_counts",
    "get_workouts_by_category",
    "get_workouts_by_energy_system",
    "get_workouts_by_phase",
    "search_workouts",
    "PLAN_TEMPLATES",
    "KeySlot",
    "PlanGoal",
    "PlanTemplate",
    "WeekTemplate",
    "get_applicable_plans",
    "get_plan_template",
    "get_plan_templates_by_goal",
    "search_plan_templates",
]
