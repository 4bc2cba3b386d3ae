"""Training-load projection and periodization engine for endurance athletes."""

from .analysis import (
    AthleteContext,
    analyze_athlete_patterns,
    generate_training_plan,
    prescribe_workout,
    project_fitness,
    recommend_workout,
)

__version__ = "0.1.0"

__all__ = [
    "AthleteContext",
    "analyze_athlete_patterns",
    "generate_training_plan",
    "prescribe_workout",
    "project_fitness",
    "recommend_workout",
]
