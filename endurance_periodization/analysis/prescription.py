"""Workout prescription: score catalog templates against an athlete's state."""

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Union

from ..library.workouts import (
    INTENSITY_CATEGORIES,
    WORKOUT_LIBRARY,
    IntervalBlock,
    TrainingPhase,
    WorkoutCategory,
    WorkoutTemplate,
)
from .context import AthleteContext, CategoryLike, parse_category
from .patterns import WEEKDAY_NAMES, AthletePatterns

logger = logging.getLogger(__name__)

BASE_SCORE = 50.0
HARD_PREREQUISITE_PENALTY = 100.0

_FTP_PERCENT = re.compile(r"(\d+)(?:-(\d+))?% FTP")

C = WorkoutCategory


@dataclass
class PersonalizedInterval:
    """Interval block with intensity resolved to watts."""

    sets: int
    duration_seconds: int
    rest_seconds: int
    power_min: int
    power_max: int
    intensity_min: float
    intensity_max: float
    notes: Optional[str] = None


@dataclass
class ScoredWorkout:
    template: WorkoutTemplate
    score: int
    reasons: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    personalized_description: str = ""
    personalized_intervals: List[PersonalizedInterval] = field(default_factory=list)


@dataclass
class WorkoutSuggestion:
    category: WorkoutCategory
    reason: str
    alternatives: List[WorkoutCategory] = field(default_factory=list)


@dataclass
class RecommendationSuccess:
    best: ScoredWorkout
    alternatives: List[ScoredWorkout]
    category: WorkoutCategory
    reason: str

    @property
    def success(self) -> bool:
        return True


@dataclass
class RecommendationFailure:
    error: str

    @property
    def success(self) -> bool:
        return False


Recommendation = Union[RecommendationSuccess, RecommendationFailure]


def watts(ftp: float, percent: float) -> int:
    return int(round(ftp * percent / 100))


def personalize_description(text: str, ftp: float) -> str:
    """Rewrite "a-b% FTP" / "n% FTP" references with absolute watts."""

    def replace(match):
        low, high = match.group(1), match.group(2)
        if high is None:
            return f"{watts(ftp, int(low))}W ({low}% FTP)"
        return f"{watts(ftp, int(low))}-{watts(ftp, int(high))}W ({low}-{high}% FTP)"

    return _FTP_PERCENT.sub(replace, text)


def personalize_intervals(intervals: Iterable[IntervalBlock], ftp: float) -> List[PersonalizedInterval]:
    return [
        PersonalizedInterval(
            sets=block.sets,
            duration_seconds=block.duration_seconds,
            rest_seconds=block.rest_seconds,
            power_min=watts(ftp, block.intensity_min),
            power_max=watts(ftp, block.intensity_max),
            intensity_min=block.intensity_min,
            intensity_max=block.intensity_max,
            notes=block.notes,
        )
        for block in intervals
    ]


def score_workout(
    template: WorkoutTemplate,
    context: AthleteContext,
    target_duration: Optional[float] = None,
    target_load: Optional[float] = None,
    patterns: Optional[AthletePatterns] = None,
) -> ScoredWorkout:
    """Score one template for the given context.

    Every term that fires appends a reason (or a warning for penalties that
    signal a poor fit). Hard prerequisite violations cost a fixed 100 points
    each but the template is still returned. Once the prerequisite checks
    leave the score negative no further terms are applied.
    """
    score = BASE_SCORE
    reasons: List[str] = []
    warnings: List[str] = []
    category = template.category
    prereq = template.prerequisites
    tsb = context.tsb
    ctl = context.ctl

    # Hard prerequisites
    if prereq.min_ctl is not None and ctl < prereq.min_ctl:
        score -= HARD_PREREQUISITE_PENALTY
        warnings.append(f"Requires CTL >= {prereq.min_ctl:g} (current: {ctl:.0f})")
    if prereq.max_ctl is not None and ctl > prereq.max_ctl:
        score -= HARD_PREREQUISITE_PENALTY
        warnings.append(f"Designed for CTL <= {prereq.max_ctl:g} (current: {ctl:.0f})")
    if prereq.min_tsb is not None and tsb < prereq.min_tsb:
        score -= HARD_PREREQUISITE_PENALTY
        warnings.append(f"Requires TSB >= {prereq.min_tsb:g} (current: {tsb:.0f})")
    if prereq.max_tsb is not None and tsb > prereq.max_tsb:
        score -= HARD_PREREQUISITE_PENALTY
        warnings.append(f"Designed for TSB <= {prereq.max_tsb:g} (current: {tsb:.0f})")

    # Soft prerequisites
    if (
        prereq.min_days_since_intensity is not None
        and context.days_since_intensity is not None
        and context.days_since_intensity < prereq.min_days_since_intensity
    ):
        score -= 30
        warnings.append(f"Recommend {prereq.min_days_since_intensity}+ days since last intensity")
    recent_blockers = [c for c in prereq.not_after if c in context.recent_categories]
    if recent_blockers:
        score -= 20
        warnings.append(f"Not ideal after recent {', '.join(c.value for c in recent_blockers)}")

    if score < 0:
        return _scored(template, context, score, reasons, warnings)

    if context.phase is not None:
        if template.suits_phase(context.phase):
            score += 20
            reasons.append(f"Suitable for {context.phase.value} phase")
        else:
            score -= 10
            reasons.append(f"Better suited for: {', '.join(p.value for p in template.suitable_phases)}")

    # Form
    if tsb < -25:
        if category == C.RECOVERY:
            score += 25
            reasons.append("Recovery needed - high fatigue")
        elif category == C.ENDURANCE:
            score += 12.5
            reasons.append("Easy endurance is manageable while fatigued")
        else:
            score -= 20
            warnings.append("High fatigue - consider recovery instead")
    elif tsb < -10:
        if category in (C.RECOVERY, C.ENDURANCE, C.TEMPO, C.SWEETSPOT):
            score += 17.5
            reasons.append("Moderate fatigue - aerobic work appropriate")
        else:
            score -= 10
            warnings.append("Moderate fatigue - high intensity may compromise quality")
    elif tsb < 5:
        score += 12.5
        reasons.append("Balanced form - ready for most workouts")
    elif tsb < 25:
        if category in INTENSITY_CATEGORIES:
            score += 25
            reasons.append("Fresh - ideal for high intensity")
        elif category == C.RECOVERY:
            score -= 15
            reasons.append("Fresh - recovery not needed")
    elif category != C.RECOVERY:
        score += 12.5
        reasons.append("Very fresh - good time for a quality session")

    # Fitness
    if ctl < 30:
        if category in (C.RECOVERY, C.ENDURANCE, C.TEMPO):
            score += 20
            reasons.append("Builds aerobic foundation")
    elif ctl < 60:
        score += 14
    elif category in (C.THRESHOLD, C.VO2MAX, C.ANAEROBIC):
        score += 20
        reasons.append("Fitness supports high intensity work")

    if context.recent_categories:
        if category not in context.recent_categories:
            score += 15
            reasons.append("Adds variety to recent training")
        else:
            score -= 5

    if target_duration is not None:
        diff = abs(template.duration_minutes - target_duration)
        if diff <= 10:
            score += 10
            reasons.append("Matches target duration")
        elif diff <= 20:
            score += 5
        else:
            score -= 5

    if target_load is not None:
        low, high = template.load_range
        if low <= target_load <= high:
            score += 10
            reasons.append("Matches target training load")
        elif low * 0.8 <= target_load <= high * 1.2:
            score += 5

    if category in context.preferred_categories:
        score += 10
        reasons.append("Matches your preferences")
    if category in context.avoided_categories:
        score -= 10
        warnings.append("You prefer to avoid this workout type")

    if patterns is not None:
        score += _pattern_adjustment(template, context, patterns, reasons, warnings)

    return _scored(template, context, score, reasons, warnings)


def _scored(template, context, score, reasons, warnings) -> ScoredWorkout:
    return ScoredWorkout(
        template=template,
        score=int(round(score)),
        reasons=reasons,
        warnings=warnings,
        personalized_description=personalize_description(template.description, context.ftp),
        personalized_intervals=personalize_intervals(template.intervals, context.ftp),
    )


def _pattern_adjustment(
    template: WorkoutTemplate,
    context: AthleteContext,
    patterns: AthletePatterns,
    reasons: List[str],
    warnings: List[str],
) -> float:
    adjustment = 0.0
    is_intensity = template.category in INTENSITY_CATEGORIES

    dow = patterns.day_of_week
    if dow is not None and context.weekday is not None:
        day = WEEKDAY_NAMES[context.weekday]
        if is_intensity and context.weekday in dow.best_intensity_days:
            adjustment += 15 * dow.confidence
            reasons.append(f"{day} is one of your best intensity days")
        elif is_intensity and context.weekday in dow.avoid_intensity_days:
            adjustment -= 20 * dow.confidence
            warnings.append(f"You typically struggle with intensity on {day}")
        elif not is_intensity and context.weekday in dow.best_recovery_days:
            adjustment += 7.5 * dow.confidence
            reasons.append(f"{day} suits easier sessions for you")

    tsb_pattern = patterns.tsb
    if tsb_pattern is not None:
        if tsb_pattern.in_optimal_zone(context.tsb):
            adjustment += 15 * tsb_pattern.confidence
            reasons.append("Current form is in your optimal zone")
        elif tsb_pattern.in_risk_zone(context.tsb):
            adjustment -= 15 * tsb_pattern.confidence
            warnings.append("Current form is in a zone where you tend to struggle")

    type_pattern = patterns.for_category(template.category)
    if type_pattern is not None and type_pattern.sample_size >= 5:
        if type_pattern.completion_rate >= 0.8:
            adjustment += 10
            reasons.append(f"High completion rate ({round(type_pattern.completion_rate * 100)}%)")
        elif type_pattern.completion_rate < 0.5:
            adjustment -= 10
            warnings.append(f"Often skipped ({round(type_pattern.completion_rate * 100)}% completion)")
        if type_pattern.average_rpe > 8:
            adjustment -= 5
            warnings.append(f"Usually feels very hard (avg RPE {type_pattern.average_rpe})")

    recovery = patterns.recovery
    if recovery is not None and is_intensity and context.days_since_intensity is not None:
        if recovery.slow_recoverer and context.days_since_intensity < 3:
            adjustment -= 10
            warnings.append("You usually need more recovery between hard days")
        elif recovery.fast_recoverer and context.days_since_intensity >= 2:
            adjustment += 5
            reasons.append("You recover quickly from intensity")

    return adjustment


def prescribe_workout(
    context: AthleteContext,
    requested_category: Union[CategoryLike, None] = "any",
    target_duration: Optional[float] = None,
    target_load: Optional[float] = None,
    patterns: Optional[AthletePatterns] = None,
    exclude_ids: Optional[Iterable[str]] = None,
) -> List[ScoredWorkout]:
    """Rank catalog workouts for the given athlete context.

    Args:
        context: Current athlete state
        requested_category: Category to restrict to, or "any"
        target_duration: Desired duration in minutes
        target_load: Desired training load (TSS)
        patterns: Learned patterns to personalize the scoring with
        exclude_ids: Template ids to leave out

    Returns:
        Scored workouts, highest first. Equal scores keep catalog order.

    Raises:
        ValueError: If requested_category is not a workout category.
            recommend_workout reports the same input as a RecommendationFailure.
    """
    excluded = set(exclude_ids or ())
    candidates = [w for w in WORKOUT_LIBRARY if w.id not in excluded]

    if requested_category not in (None, "any"):
        category = parse_category(requested_category)
        candidates = [w for w in candidates if w.category == category]

    if context.phase is not None and context.phase != TrainingPhase.ANY:
        in_phase = [w for w in candidates if w.suits_phase(context.phase)]
        if in_phase:
            candidates = in_phase
        else:
            logger.debug("No %s workouts for phase %s, scoring all", requested_category, context.phase.value)

    scored = [score_workout(w, context, target_duration, target_load, patterns) for w in candidates]
    scored.sort(key=lambda s: s.score, reverse=True)
    return scored


def suggest_workout_type(context: AthleteContext) -> WorkoutSuggestion:
    """Pick a workout category from current form, fitness and phase."""
    tsb = context.tsb
    ctl = context.ctl
    phase = context.phase

    if tsb < -25:
        return WorkoutSuggestion(
            C.RECOVERY,
            f"Very high fatigue (TSB {tsb:.0f}). Recovery is the priority.",
            [C.ENDURANCE],
        )
    if tsb <= -10:
        return WorkoutSuggestion(
            C.ENDURANCE,
            f"Carrying fatigue (TSB {tsb:.0f}). Easy aerobic work keeps fitness without digging deeper.",
            [C.RECOVERY, C.TEMPO],
        )
    if tsb < -5:
        if ctl < 50:
            return WorkoutSuggestion(
                C.SWEETSPOT,
                "Slightly fatigued but fitness is still building. Sweet spot gives good return for the cost.",
                [C.TEMPO, C.ENDURANCE],
            )
        return WorkoutSuggestion(
            C.TEMPO,
            "Slightly fatigued. Tempo maintains aerobic stimulus without a large recovery cost.",
            [C.SWEETSPOT, C.ENDURANCE],
        )
    if tsb < 10:
        if phase == TrainingPhase.BASE:
            return WorkoutSuggestion(
                C.SWEETSPOT,
                "Balanced form in base phase. Sweet spot builds aerobic power efficiently.",
                [C.THRESHOLD, C.TEMPO],
            )
        if phase == TrainingPhase.BUILD:
            return WorkoutSuggestion(
                C.THRESHOLD,
                "Balanced form in build phase. Threshold work raises FTP.",
                [C.VO2MAX, C.SWEETSPOT],
            )
        return WorkoutSuggestion(
            C.THRESHOLD,
            "Balanced form. Good day for threshold work.",
            [C.SWEETSPOT, C.VO2MAX],
        )
    if tsb < 25:
        if phase == TrainingPhase.PEAK:
            return WorkoutSuggestion(
                C.VO2MAX,
                f"Fresh (TSB {tsb:.0f}) in peak phase. Sharpen top-end fitness.",
                [C.THRESHOLD, C.SPRINT],
            )
        return WorkoutSuggestion(
            C.VO2MAX,
            f"Fresh (TSB {tsb:.0f}). Ideal for high intensity work.",
            [C.THRESHOLD, C.ANAEROBIC],
        )
    return WorkoutSuggestion(
        C.THRESHOLD,
        f"Very fresh (TSB {tsb:.0f}). Fitness may start to fade, so add a solid quality session.",
        [C.VO2MAX, C.SWEETSPOT],
    )


def recommend_workout(
    context: AthleteContext,
    category: Union[CategoryLike, None] = "any",
    target_duration: Optional[float] = None,
    target_load: Optional[float] = None,
    patterns: Optional[AthletePatterns] = None,
    exclude_ids: Optional[Iterable[str]] = None,
    alternatives: int = 3,
) -> Recommendation:
    """Best workout plus alternatives for the requested (or suggested) category."""
    if category in (None, "any"):
        suggestion = suggest_workout_type(context)
        chosen = suggestion.category
        reason = suggestion.reason
    else:
        try:
            chosen = parse_category(category)
        except ValueError:
            return RecommendationFailure(error=f"Unknown workout category: {category}")
        reason = f"Requested {chosen.value} workout"

    ranked = prescribe_workout(context, chosen, target_duration, target_load, patterns, exclude_ids)
    if not ranked:
        return RecommendationFailure(error=f"No {chosen.value} workouts available")

    best = ranked[0]
    logger.info("Recommended %s (score %d) for %s", best.template.id, best.score, chosen.value)
    return RecommendationSuccess(
        best=best,
        alternatives=ranked[1:1 + alternatives],
        category=chosen,
        reason=reason,
    )


def best_by_category(
    context: AthleteContext,
    patterns: Optional[AthletePatterns] = None,
) -> Dict[WorkoutCategory, ScoredWorkout]:
    """Top-scored template for each category that has candidates."""
    best: Dict[WorkoutCategory, ScoredWorkout] = {}
    for category in WorkoutCategory:
        ranked = prescribe_workout(context, category, patterns=patterns)
        if ranked:
            best[category] = ranked[0]
    return best
