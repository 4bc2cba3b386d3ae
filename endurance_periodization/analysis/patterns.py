"""Learned athlete response patterns and their text/fact renderings."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from ..config import config
from ..db.records import MemoryFact
from ..library.workouts import WorkoutCategory

WEEKDAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

# (min inclusive, max exclusive, label). Values beyond the ends fall into the outer bands.
TSB_BANDS: Tuple[Tuple[float, float, str], ...] = (
    (-30, -15, "very_fatigued"),
    (-15, -5, "fatigued"),
    (-5, 5, "neutral"),
    (5, 15, "fresh"),
    (15, 30, "very_fresh"),
)


@dataclass
class RecoveryPattern:
    """How many days TSB takes to return to its level after a hard day."""

    average_days: float
    fast_recoverer: bool  # < 2 days
    slow_recoverer: bool  # > 3 days
    confidence: float
    sample_size: int


@dataclass
class TSBPattern:
    """Form window with the best (and worst) outcomes."""

    optimal_min: float
    optimal_max: float
    risk_min: Optional[float]
    risk_max: Optional[float]
    peak_performance_tsb: float
    confidence: float
    data_points: int

    def in_optimal_zone(self, tsb: float) -> bool:
        return self.optimal_min <= tsb <= self.optimal_max

    def in_risk_zone(self, tsb: float) -> bool:
        if self.risk_min is None or self.risk_max is None:
            return False
        return self.risk_min <= tsb <= self.risk_max


@dataclass
class WorkoutTypePattern:
    category: WorkoutCategory
    completion_rate: float
    average_rpe: float
    sample_size: int
    best_days: List[int] = field(default_factory=list)  # weekday numbers, 0=Monday
    worst_days: List[int] = field(default_factory=list)


@dataclass
class VolumeIntensityPattern:
    prefers_volume: bool
    prefers_intensity: bool
    balanced: bool
    sweet_hours_min: float
    sweet_hours_max: float
    volume_rpe: float
    intensity_rpe: float
    confidence: float
    weeks: int

    @property
    def sweet_hours_mid(self) -> float:
        return round((self.sweet_hours_min + self.sweet_hours_max) / 2, 1)


@dataclass
class DayOfWeekPattern:
    best_intensity_days: List[int]
    avoid_intensity_days: List[int]
    best_recovery_days: List[int]
    confidence: float


@dataclass
class AthletePatterns:
    """Everything learned from an athlete's outcome history.

    Sub-patterns below their sample gate are None (or absent from
    `workout_types`), with the reason in `messages`.
    """

    recovery: Optional[RecoveryPattern] = None
    tsb: Optional[TSBPattern] = None
    workout_types: List[WorkoutTypePattern] = field(default_factory=list)
    volume_intensity: Optional[VolumeIntensityPattern] = None
    day_of_week: Optional[DayOfWeekPattern] = None
    analyzed_at: Optional[datetime] = None
    data_points: int = 0
    messages: List[str] = field(default_factory=list)

    def for_category(self, category: WorkoutCategory) -> Optional[WorkoutTypePattern]:
        return next((p for p in self.workout_types if p.category == category), None)


def day_names(days) -> str:
    return ", ".join(WEEKDAY_NAMES[d] for d in days)


def summarize_patterns(patterns: AthletePatterns) -> str:
    """Short human-readable summary, one finding per line."""
    if patterns.data_points < 5:
        return "Not enough data to detect patterns yet. Keep logging workout outcomes!"

    lines = []
    recovery = patterns.recovery
    if recovery:
        if recovery.fast_recoverer:
            lines.append(f"Recovery: Fast recoverer ({recovery.average_days} days avg)")
        elif recovery.slow_recoverer:
            lines.append(f"Recovery: Slower recovery ({recovery.average_days} days avg) - allow extra rest")
        else:
            lines.append(f"Recovery: Average recovery rate ({recovery.average_days} days)")

    if patterns.tsb:
        lines.append(f"Optimal form: TSB {patterns.tsb.optimal_min:g} to {patterns.tsb.optimal_max:g}")

    vi = patterns.volume_intensity
    if vi:
        if vi.prefers_volume:
            lines.append("Training style: Responds best to volume-focused approach")
        elif vi.prefers_intensity:
            lines.append("Training style: Responds best to intensity-focused approach")
        else:
            lines.append("Training style: Balanced response to volume and intensity")
        lines.append(f"Sweet spot: {vi.sweet_hours_min:g}-{vi.sweet_hours_max:g}h/week")

    if patterns.day_of_week and patterns.day_of_week.best_intensity_days:
        lines.append(f"Best intensity days: {day_names(patterns.day_of_week.best_intensity_days)}")

    struggles = [p.category.value for p in patterns.workout_types if p.completion_rate < 0.6]
    if struggles:
        lines.append(f"Struggles with: {', '.join(struggles)}")

    if not lines:
        return "Patterns are still being analyzed. More data needed for reliable insights."
    return "\n".join(lines)


def pattern_facts(athlete_id: str, patterns: AthletePatterns) -> List[MemoryFact]:
    """Serialize confident patterns into memory facts.

    Only patterns at or above the persistence confidence gate are emitted;
    per-category facts need at least five samples.
    """
    min_conf = config.PERSIST_MIN_CONFIDENCE
    analyzed_at = patterns.analyzed_at.isoformat() if patterns.analyzed_at else None
    facts: List[Tuple[str, str, float]] = []

    recovery = patterns.recovery
    if recovery and recovery.confidence >= min_conf:
        if recovery.fast_recoverer:
            facts.append((
                "recovery_rate",
                f"Recovers quickly from hard workouts (avg {recovery.average_days} days). "
                "Can handle back-to-back intensity days better than most.",
                recovery.confidence,
            ))
        elif recovery.slow_recoverer:
            facts.append((
                "recovery_rate",
                f"Needs more recovery time after intensity (avg {recovery.average_days} days). "
                "Allow extra rest between hard sessions.",
                recovery.confidence,
            ))

    tsb = patterns.tsb
    if tsb and tsb.confidence >= min_conf:
        content = f"Performs best with TSB between {tsb.optimal_min:g} and {tsb.optimal_max:g}."
        if tsb.risk_min is not None:
            content += f" Struggles when TSB is in {tsb.risk_min:g} to {tsb.risk_max:g} range."
        facts.append(("tsb_window", content, tsb.confidence))

    vi = patterns.volume_intensity
    if vi and vi.confidence >= min_conf:
        if vi.prefers_volume:
            facts.append((
                "volume_intensity",
                "Responds better to higher volume, moderate intensity training. "
                f"Optimal weekly hours: {vi.sweet_hours_min:g}-{vi.sweet_hours_max:g}h.",
                vi.confidence,
            ))
        elif vi.prefers_intensity:
            facts.append((
                "volume_intensity",
                "Responds better to intensity-focused training with lower volume. "
                "Quality over quantity approach works well.",
                vi.confidence,
            ))

    dow = patterns.day_of_week
    if dow and dow.confidence >= min_conf and dow.best_intensity_days:
        facts.append((
            "intensity_days",
            f"Best days for hard workouts: {day_names(dow.best_intensity_days)}. "
            f"Avoid intensity on {day_names(dow.avoid_intensity_days)}.",
            dow.confidence,
        ))

    for type_pattern in patterns.workout_types:
        if type_pattern.sample_size < 5:
            continue
        name = type_pattern.category.value
        sample_conf = min(1.0, type_pattern.sample_size / 10)
        if type_pattern.completion_rate < 0.5:
            facts.append((
                f"{name}_completion",
                f"Often skips {name} workouts ({round(type_pattern.completion_rate * 100)}% completion). "
                "May need different approach or timing.",
                sample_conf,
            ))
        if type_pattern.average_rpe > 8:
            facts.append((
                f"{name}_effort",
                f"Finds {name} workouts very hard (avg RPE {type_pattern.average_rpe}). "
                "Consider easier progressions.",
                sample_conf,
            ))
        if type_pattern.best_days and type_pattern.sample_size >= 8:
            facts.append((
                f"{name}_best_days",
                f"Best days for {name}: {day_names(type_pattern.best_days)}.",
                min(1.0, type_pattern.sample_size / 12),
            ))

    return [
        MemoryFact(
            athlete_id=athlete_id,
            memory_type="pattern",
            key=key,
            content=content,
            confidence=round(confidence, 2),
            source="data_derived",
            metadata={"analyzed_at": analyzed_at, "data_points": patterns.data_points},
        )
        for key, content, confidence in facts
    ]


def band_for_tsb(tsb: float) -> Tuple[float, float, str]:
    """TSB band containing `tsb`, clamping to the outer bands."""
    if tsb < TSB_BANDS[0][0]:
        return TSB_BANDS[0]
    for band in TSB_BANDS:
        if band[0] <= tsb < band[1]:
            return band
    return TSB_BANDS[-1]


def band_stats_dict(stats: Dict[str, Tuple[int, float, float]]) -> Dict[str, Dict[str, float]]:
    """Render (count, follow rate, mean rpe) tuples for logging."""
    return {
        label: {"count": count, "follow_rate": round(rate, 2), "average_rpe": round(rpe, 1)}
        for label, (count, rate, rpe) in stats.items()
    }
