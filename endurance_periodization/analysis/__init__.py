"""Fitness projection, workout prescription, plan generation and pattern learning."""

from .context import AthleteContext, SourceResolver, build_athlete_context
from .outcome_analyzer import OutcomePatternAnalyzer, analyze_athlete_patterns, derive_patterns
from .patterns import AthletePatterns, pattern_facts, summarize_patterns
from .plan_generator import (
    GeneratedPlan,
    PlanGenerationFailure,
    PlanGenerationSuccess,
    available_plans,
    generate_training_plan,
    plan_to_projection_days,
)
from .prescription import (
    RecommendationFailure,
    RecommendationSuccess,
    ScoredWorkout,
    best_by_category,
    prescribe_workout,
    recommend_workout,
    suggest_workout_type,
)
from .projection import (
    CalendarEvent,
    PlannedDay,
    ProjectedFitness,
    compute_fitness_history,
    event_day_projections,
    project_fitness,
    projection_on,
    projection_summary,
    race_form_status,
    rebuild_fitness_history,
)

__all__ = [
    "AthleteContext",
    "SourceResolver",
    "build_athlete_context",
    "OutcomePatternAnalyzer",
    "analyze_athlete_patterns",
    "derive_patterns",
    "AthletePatterns",
    "pattern_facts",
    "summarize_patterns",
    "GeneratedPlan",
    "PlanGenerationFailure",
    "PlanGenerationSuccess",
    "available_plans",
    "generate_training_plan",
    "plan_to_projection_days",
    "RecommendationFailure",
    "RecommendationSuccess",
    "ScoredWorkout",
    "best_by_category",
    "prescribe_workout",
    "recommend_workout",
    "suggest_workout_type",
    "CalendarEvent",
    "PlannedDay",
    "ProjectedFitness",
    "compute_fitness_history",
    "event_day_projections",
    "project_fitness",
    "projection_on",
    "projection_summary",
    "race_form_status",
    "rebuild_fitness_history",
]
