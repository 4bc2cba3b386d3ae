"""Generate periodized training plans from plan templates."""

import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Sequence, Tuple, Union

from ..config import config
from ..library.plans import PLAN_TEMPLATES, KeySlot, PlanGoal, PlanTemplate, get_plan_template
from ..library.workouts import TrainingPhase, WorkoutCategory, WorkoutTemplate, get_workout, get_workouts_by_category
from .context import AthleteContext
from .patterns import WEEKDAY_NAMES, AthletePatterns, day_names
from .prescription import PersonalizedInterval, personalize_description, personalize_intervals
from .projection import PlannedDay

logger = logging.getLogger(__name__)


@dataclass
class PlannedWorkout:
    template_id: str
    name: str
    category: WorkoutCategory
    duration_minutes: int
    target_load: int
    target_intensity_factor: float
    description: str
    intervals: List[PersonalizedInterval] = field(default_factory=list)
    notes: Optional[str] = None


@dataclass
class GeneratedPlanDay:
    date: date
    week_number: int
    weekday: int  # 0=Monday
    workout: Optional[PlannedWorkout]
    is_key_workout: bool
    is_recovery_day: bool
    focus: str

    @property
    def day_name(self) -> str:
        return WEEKDAY_NAMES[self.weekday]


@dataclass
class GeneratedPlanWeek:
    week_number: int
    phase: TrainingPhase
    focus: str
    target_load_range: Tuple[float, float]
    target_load: int
    days: List[GeneratedPlanDay]

    @property
    def planned_load(self) -> int:
        return sum(day.workout.target_load for day in self.days if day.workout)

    @property
    def is_recovery_week(self) -> bool:
        return self.phase == TrainingPhase.RECOVERY


@dataclass
class PlanSummary:
    total_days: int
    workout_days: int
    rest_days: int
    average_weekly_load: int
    phase_counts: Dict[str, int]


@dataclass
class GeneratedPlan:
    template_id: str
    template_name: str
    goal: PlanGoal
    start_date: date
    end_date: date
    weekly_hours: float
    key_days: List[int]
    target_event_date: Optional[date]
    weeks: List[GeneratedPlanWeek]
    summary: PlanSummary

    @property
    def days(self) -> List[GeneratedPlanDay]:
        return [day for week in self.weeks for day in week.days]

    def to_projection_days(self) -> List[PlannedDay]:
        return plan_to_projection_days(self)


@dataclass
class PlanGenerationSuccess:
    plan: GeneratedPlan
    warnings: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return True


@dataclass
class PlanGenerationFailure:
    error: str
    warnings: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return False


PlanGenerationResult = Union[PlanGenerationSuccess, PlanGenerationFailure]


@dataclass
class PlanAvailability:
    template: PlanTemplate
    admissible: bool
    ctl_gap: float  # CTL still needed to reach the template minimum


def plan_to_projection_days(plan: GeneratedPlan) -> List[PlannedDay]:
    """Plan days as projection input (rest days carry zero load)."""
    return [
        PlannedDay(date=day.date, target_load=float(day.workout.target_load) if day.workout else 0.0)
        for day in plan.days
    ]


def available_plans(ctl: float) -> List[PlanAvailability]:
    """Every plan template with whether the athlete's CTL admits it."""
    return [
        PlanAvailability(template, template.admits(ctl), round(max(0.0, template.min_ctl - ctl), 1))
        for template in PLAN_TEMPLATES
    ]


def baseline_weekly_load(ctl: float, weekly_hours: float) -> int:
    """Blend of current fitness and available time: (CTL*7 + hours*60) / 2."""
    return int(round((ctl * 7 + weekly_hours * config.LOAD_PER_HOUR) / 2))


def _parse_date(value: Union[date, str]) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip())


def _parse_goal(goal: Union[PlanGoal, str, None]) -> Optional[PlanGoal]:
    if goal is None or isinstance(goal, PlanGoal):
        return goal
    return PlanGoal(str(goal).strip().lower())


def select_template(
    ctl: float,
    goal: Optional[PlanGoal] = None,
    template_id: Optional[str] = None,
    weeks_to_event: Optional[int] = None,
) -> Tuple[Optional[PlanTemplate], str]:
    """Choose a plan template.

    Returns:
        (template, reason). Template is None only for an unknown explicit id.
    """
    if template_id:
        template = get_plan_template(template_id)
        if template is None:
            return None, f"Unknown plan template: {template_id}"
        return template, f"Using requested plan: {template.name}"

    candidates = [t for t in PLAN_TEMPLATES if t.admits(ctl)]
    if not candidates:
        fallback = min(PLAN_TEMPLATES, key=lambda t: t.min_ctl)
        return fallback, f"No plan fits CTL {ctl:.0f}; using {fallback.name} as the lowest-entry plan"

    if goal is not None:
        matching = [t for t in candidates if t.goal == goal]
        if matching:
            candidates = matching

    if weeks_to_event is not None:
        preferred = None
        if weeks_to_event <= 4:
            preferred = PlanGoal.TAPER
        elif weeks_to_event >= 10:
            preferred = PlanGoal.EVENT_PREP
        for template in candidates:
            if template.goal == preferred:
                return template, f"{template.name} fits {weeks_to_event} weeks to your event"

    def score(template: PlanTemplate) -> float:
        value = 50.0
        if goal is not None and template.goal == goal:
            value += 30
        if ctl >= template.min_ctl + 10:
            value += 10
        if template.goal == PlanGoal.MAINTENANCE:
            value -= 10
        return value

    best = max(candidates, key=score)  # first of equal scores wins
    return best, f"Selected {best.name} for CTL {ctl:.0f}"


def derive_key_days(patterns: AthletePatterns) -> Optional[List[int]]:
    """Key weekdays from the day-of-week pattern.

    The two best intensity days, plus a third day that is not an avoided day
    and leaves at least one rest day (circularly) from the others.
    """
    dow = patterns.day_of_week
    if dow is None or dow.confidence < config.PATTERN_MIN_CONFIDENCE or len(dow.best_intensity_days) < 2:
        return None

    chosen = list(dow.best_intensity_days[:2])
    for day in range(7):
        if day in chosen or day in dow.avoid_intensity_days:
            continue
        if all(min(abs(day - other), 7 - abs(day - other)) >= 2 for other in chosen):
            chosen.append(day)
            break
    return sorted(chosen)


def _workout_for_slot(slot: KeySlot, load: int) -> Optional[WorkoutTemplate]:
    for workout_id in slot.preferred_ids:
        template = get_workout(workout_id)
        if template is not None:
            return template
    options = get_workouts_by_category(slot.category)
    if not options:
        return None
    return min(options, key=lambda w: abs(w.load_midpoint - load))


def _plan_summary(weeks: Sequence[GeneratedPlanWeek]) -> PlanSummary:
    days = [day for week in weeks for day in week.days]
    workout_days = sum(1 for day in days if day.workout)
    phase_counts: Dict[str, int] = {}
    for week in weeks:
        phase_counts[week.phase.value] = phase_counts.get(week.phase.value, 0) + 1
    return PlanSummary(
        total_days=len(days),
        workout_days=workout_days,
        rest_days=len(days) - workout_days,
        average_weekly_load=int(round(sum(w.planned_load for w in weeks) / len(weeks))) if weeks else 0,
        phase_counts=phase_counts,
    )


def generate_training_plan(
    start_date: Union[date, str],
    context: AthleteContext,
    goal: Union[PlanGoal, str, None] = None,
    template_id: Optional[str] = None,
    weekly_hours: Optional[float] = None,
    key_days: Optional[Sequence[int]] = None,
    target_event_date: Union[date, str, None] = None,
    patterns: Optional[AthletePatterns] = None,
    use_learned_patterns: bool = True,
) -> PlanGenerationResult:
    """Build a periodized plan for the athlete.

    Args:
        start_date: First plan day (date or ISO string)
        context: Athlete state; CTL drives template choice and baseline load
        goal: Preferred plan goal
        template_id: Explicit template, overrides selection
        weekly_hours: Hours available per week
        key_days: Weekdays (0=Monday) for key workouts
        target_event_date: Goal event (date or ISO string), steers selection toward taper or full prep
        patterns: Learned athlete patterns
        use_learned_patterns: Apply patterns to hours, key days and warnings

    Returns:
        PlanGenerationSuccess with the plan and warnings, or
        PlanGenerationFailure for invalid input
    """
    warnings: List[str] = []

    try:
        start = _parse_date(start_date)
    except (TypeError, ValueError):
        return PlanGenerationFailure(error=f"Invalid start date: {start_date!r}")
    event_date = None
    if target_event_date is not None:
        try:
            event_date = _parse_date(target_event_date)
        except (TypeError, ValueError):
            return PlanGenerationFailure(error=f"Invalid target event date: {target_event_date!r}")
    try:
        plan_goal = _parse_goal(goal)
    except ValueError:
        return PlanGenerationFailure(error=f"Unknown plan goal: {goal}")
    if key_days is not None and any(not 0 <= d <= 6 for d in key_days):
        return PlanGenerationFailure(error=f"Key days must be weekdays 0-6, got {list(key_days)}")

    ctl = context.ctl
    weeks_to_event = None
    if event_date is not None:
        weeks_to_event = max(0, math.ceil((event_date - start).days / 7))

    template, reason = select_template(ctl, plan_goal, template_id, weeks_to_event)
    if template is None:
        return PlanGenerationFailure(error=reason, warnings=warnings)
    warnings.append(reason)
    if ctl < template.min_ctl:
        warnings.append(
            f"Current CTL ({ctl:.0f}) is below the recommended minimum ({template.min_ctl:g}) for this plan"
        )

    learned = patterns if use_learned_patterns else None

    hours = weekly_hours if weekly_hours is not None else context.weekly_hours_available
    vi = learned.volume_intensity if learned else None
    if vi is not None and vi.confidence >= config.PATTERN_MIN_CONFIDENCE:
        if hours is None:
            hours = vi.sweet_hours_mid
            warnings.append(f"Using {hours:g}h/week from your historical sweet spot")
        else:
            clamped = min(max(hours, vi.sweet_hours_min), vi.sweet_hours_max)
            if clamped != hours:
                warnings.append(
                    f"Adjusted weekly hours from {hours:g} to {clamped:g} "
                    f"(your sweet spot is {vi.sweet_hours_min:g}-{vi.sweet_hours_max:g}h)"
                )
                hours = clamped
    if hours is None:
        hours = config.DEFAULT_WEEKLY_HOURS

    if key_days is not None:
        days_for_keys = sorted(set(key_days))
    else:
        days_for_keys = derive_key_days(learned) if learned else None
        if days_for_keys:
            warnings.append(f"Key workouts placed on your best days: {day_names(days_for_keys)}")
        else:
            days_for_keys = config.get_key_days()

    if learned and learned.recovery is not None and learned.recovery.slow_recoverer:
        warnings.append("You tend to recover slowly, so keep the days between key workouts easy")
    if vi is not None and vi.confidence >= config.PATTERN_MIN_CONFIDENCE:
        if vi.prefers_volume:
            warnings.append("You respond well to volume: favor longer endurance rides when adding time")
        elif vi.prefers_intensity:
            warnings.append("You respond well to intensity: protect the quality of key sessions")

    baseline = baseline_weekly_load(ctl, hours)
    weeks = []
    for week_index, week_template in enumerate(template.weeks):
        multiplier = (
            template.load_progression[week_index] if week_index < len(template.load_progression) else 1.0
        )
        target_load = int(round(baseline * multiplier))

        slots_by_day: Dict[int, KeySlot] = {}
        for slot in week_template.key_slots:
            if slot.day_offset < len(days_for_keys):
                slots_by_day[days_for_keys[slot.day_offset]] = slot
            else:
                logger.debug("Week %d slot %d has no key day", week_template.week_number, slot.day_offset)

        days = []
        for offset in range(7):
            day_date = start + timedelta(days=week_index * 7 + offset)
            weekday = day_date.weekday()
            slot = slots_by_day.get(weekday)
            workout = None
            if slot is not None:
                slot_load = int(round(target_load * slot.load_percent / 100))
                workout_template = _workout_for_slot(slot, slot_load)
                if workout_template is not None:
                    workout = PlannedWorkout(
                        template_id=workout_template.id,
                        name=workout_template.name,
                        category=workout_template.category,
                        duration_minutes=workout_template.duration_minutes,
                        target_load=slot_load,
                        target_intensity_factor=round(workout_template.intensity_factor_midpoint, 2),
                        description=personalize_description(workout_template.description, context.ftp),
                        intervals=personalize_intervals(workout_template.intervals, context.ftp),
                        notes=slot.notes,
                    )
            days.append(GeneratedPlanDay(
                date=day_date,
                week_number=week_template.week_number,
                weekday=weekday,
                workout=workout,
                is_key_workout=workout is not None,
                is_recovery_day=workout is None or workout.category == WorkoutCategory.RECOVERY,
                focus=week_template.focus,
            ))

        weeks.append(GeneratedPlanWeek(
            week_number=week_template.week_number,
            phase=week_template.phase,
            focus=week_template.focus,
            target_load_range=week_template.target_load_range,
            target_load=target_load,
            days=days,
        ))

    plan = GeneratedPlan(
        template_id=template.id,
        template_name=template.name,
        goal=template.goal,
        start_date=start,
        end_date=start + timedelta(days=len(weeks) * 7 - 1),
        weekly_hours=hours,
        key_days=days_for_keys,
        target_event_date=event_date,
        weeks=weeks,
        summary=_plan_summary(weeks),
    )
    logger.info(
        "Generated %s from %s to %s (baseline %d, %d workouts)",
        template.id, plan.start_date, plan.end_date, baseline, plan.summary.workout_days,
    )
    return PlanGenerationSuccess(plan=plan, warnings=warnings)
