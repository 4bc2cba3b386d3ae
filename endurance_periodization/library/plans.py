"""Periodized plan templates.

Weekly loads are expressed as a percentage of the athlete's baseline week and
scaled by the per-week progression multipliers at generation time.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple

from .workouts import TrainingPhase, WorkoutCategory


class PlanGoal(Enum):
    """What a plan is built to achieve."""

    BASE_BUILD = "base_build"
    FTP_BUILD = "ftp_build"
    EVENT_PREP = "event_prep"
    TAPER = "taper"
    MAINTENANCE = "maintenance"


@dataclass(frozen=True)
class ZoneDistribution:
    """Target share of training time per intensity band (percent)."""

    zone1_2: int
    zone3_4: int
    zone5_plus: int


@dataclass(frozen=True)
class KeySlot:
    """A key workout within a week.

    `day_offset` indexes the athlete's key weekdays (0 = first key day), not
    calendar days.
    """

    day_offset: int
    category: WorkoutCategory
    preferred_ids: Tuple[str, ...]
    load_percent: float  # share of the week's load
    notes: Optional[str] = None


@dataclass(frozen=True)
class WeekTemplate:
    week_number: int
    phase: TrainingPhase
    focus: str
    target_load_range: Tuple[float, float]  # % of baseline week
    key_slots: Tuple[KeySlot, ...]
    recovery_days: int
    intensity_distribution: ZoneDistribution


@dataclass(frozen=True)
class PlanTemplate:
    id: str
    name: str
    goal: PlanGoal
    description: str
    duration_weeks: int
    min_ctl: float
    max_ctl: Optional[float]
    suitable_for: Tuple[str, ...]
    weeks: Tuple[WeekTemplate, ...]
    recovery_week_frequency: int
    recovery_week_reduction: float
    load_progression: Tuple[float, ...]
    tags: Tuple[str, ...] = ()

    def admits(self, ctl: float) -> bool:
        """Whether an athlete at this CTL fits the plan's fitness range."""
        return ctl >= self.min_ctl and (self.max_ctl is None or ctl <= self.max_ctl)


C = WorkoutCategory
P = TrainingPhase

_RECOVERY_WEEK_SLOTS = (
    KeySlot(0, C.ENDURANCE, ("endurance_zone2_60",), 30),
    KeySlot(1, C.RECOVERY, ("recovery_easy_spin",), 20),
    KeySlot(2, C.ENDURANCE, ("endurance_zone2_90",), 35),
)


BASE_BUILD_4WEEK = PlanTemplate(
    id="base_build_4week",
    name="4-Week Base Building",
    goal=PlanGoal.BASE_BUILD,
    description="Foundation building plan focused on aerobic development through Zone 2 work with "
                "progressive volume increase. Perfect for starting a new season or returning from a break.",
    duration_weeks=4,
    min_ctl=20,
    max_ctl=60,
    suitable_for=("returning from break", "new season", "aerobic development"),
    weeks=(
        WeekTemplate(
            1, P.BASE, "Establish rhythm - easy aerobic work with one tempo touchpoint", (85, 95),
            (
                KeySlot(0, C.ENDURANCE, ("endurance_zone2_60", "endurance_zone2_90"), 25, "Zone 2 foundation ride"),
                KeySlot(1, C.TEMPO, ("tempo_3x10",), 25, "Light tempo to maintain some intensity"),
                KeySlot(2, C.ENDURANCE, ("endurance_zone2_90", "endurance_zone2_120"), 35, "Longer Zone 2 ride"),
            ),
            2, ZoneDistribution(80, 18, 2),
        ),
        WeekTemplate(
            2, P.BASE, "Build volume - longer endurance rides", (95, 105),
            (
                KeySlot(0, C.ENDURANCE, ("endurance_zone2_90",), 25),
                KeySlot(1, C.SWEETSPOT, ("sweetspot_3x10",), 28, "Introduce sweet spot"),
                KeySlot(2, C.ENDURANCE, ("endurance_zone2_120",), 35),
            ),
            2, ZoneDistribution(75, 22, 3),
        ),
        WeekTemplate(
            3, P.BASE, "Peak volume week - push duration", (105, 115),
            (
                KeySlot(0, C.ENDURANCE, ("endurance_zone2_90", "endurance_progressive"), 25),
                KeySlot(1, C.SWEETSPOT, ("sweetspot_2x20",), 28, "Build to 2x20 sweet spot"),
                KeySlot(2, C.ENDURANCE, ("endurance_zone2_120", "endurance_zone2_180"), 35,
                        "Long ride - biggest of block"),
            ),
            2, ZoneDistribution(72, 25, 3),
        ),
        WeekTemplate(
            4, P.RECOVERY, "Recovery week - absorb adaptations", (60, 70),
            (
                KeySlot(0, C.ENDURANCE, ("endurance_zone2_60",), 30),
                KeySlot(1, C.RECOVERY, ("recovery_easy_spin", "recovery_openers"), 20, "Very easy - feel the legs"),
                KeySlot(2, C.ENDURANCE, ("endurance_zone2_90",), 35),
            ),
            3, ZoneDistribution(90, 8, 2),
        ),
    ),
    recovery_week_frequency=4,
    recovery_week_reduction=0.65,
    load_progression=(1.0, 1.1, 1.2, 0.65),
    tags=("base", "aerobic", "zone 2", "foundation", "beginner-friendly"),
)


FTP_BUILD_8WEEK = PlanTemplate(
    id="ftp_build_8week",
    name="8-Week FTP Builder",
    goal=PlanGoal.FTP_BUILD,
    description="Structured plan to increase FTP through progressive threshold and sweet spot work. "
                "Includes two 3-week build blocks with recovery weeks.",
    duration_weeks=8,
    min_ctl=40,
    max_ctl=None,
    suitable_for=("FTP improvement", "time trialists", "climbers"),
    weeks=(
        WeekTemplate(
            1, P.BUILD, "Establish intensity baseline with sweet spot introduction", (90, 100),
            (
                KeySlot(0, C.SWEETSPOT, ("sweetspot_3x10",), 28),
                KeySlot(1, C.ENDURANCE, ("endurance_zone2_90",), 25),
                KeySlot(2, C.SWEETSPOT, ("sweetspot_2x20",), 32),
            ),
            2, ZoneDistribution(60, 35, 5),
        ),
        WeekTemplate(
            2, P.BUILD, "Build sweet spot volume", (100, 110),
            (
                KeySlot(0, C.SWEETSPOT, ("sweetspot_2x20",), 30),
                KeySlot(1, C.THRESHOLD, ("threshold_3x8",), 25, "First threshold work"),
                KeySlot(2, C.SWEETSPOT, ("sweetspot_3x15",), 32),
            ),
            2, ZoneDistribution(55, 35, 10),
        ),
        WeekTemplate(
            3, P.BUILD, "Peak sweet spot week - push duration", (110, 120),
            (
                KeySlot(0, C.SWEETSPOT, ("sweetspot_3x15", "sweetspot_over_under"), 30),
                KeySlot(1, C.THRESHOLD, ("threshold_3x10",), 28),
                KeySlot(2, C.SWEETSPOT, ("sweetspot_2x30",), 32, "Big sweet spot session"),
            ),
            2, ZoneDistribution(50, 38, 12),
        ),
        WeekTemplate(
            4, P.RECOVERY, "Recovery week - absorb adaptations from Block 1", (60, 70),
            _RECOVERY_WEEK_SLOTS,
            3, ZoneDistribution(88, 10, 2),
        ),
        WeekTemplate(
            5, P.BUILD, "Begin threshold focus - building on sweet spot base", (95, 105),
            (
                KeySlot(0, C.THRESHOLD, ("threshold_3x10",), 28),
                KeySlot(1, C.SWEETSPOT, ("sweetspot_over_under",), 25),
                KeySlot(2, C.THRESHOLD, ("threshold_2x20",), 32, "Key FTP session"),
            ),
            2, ZoneDistribution(50, 32, 18),
        ),
        WeekTemplate(
            6, P.BUILD, "Build threshold volume", (105, 115),
            (
                KeySlot(0, C.THRESHOLD, ("threshold_2x20",), 30),
                KeySlot(1, C.VO2MAX, ("vo2max_6x3",), 25, "VO2 work to lift ceiling"),
                KeySlot(2, C.THRESHOLD, ("threshold_3x15",), 32),
            ),
            2, ZoneDistribution(45, 30, 25),
        ),
        WeekTemplate(
            7, P.BUILD, "Peak threshold week - FTP breakthrough", (115, 125),
            (
                KeySlot(0, C.THRESHOLD, ("threshold_3x15",), 30),
                KeySlot(1, C.VO2MAX, ("vo2max_5x4", "vo2max_5x5"), 25),
                KeySlot(2, C.THRESHOLD, ("threshold_40min_tt",), 32, "FTP test/breakthrough attempt"),
            ),
            2, ZoneDistribution(42, 28, 30),
        ),
        WeekTemplate(
            8, P.RECOVERY, "Final recovery - consolidate gains", (55, 65),
            (
                KeySlot(0, C.ENDURANCE, ("endurance_zone2_60",), 30),
                KeySlot(1, C.RECOVERY, ("recovery_easy_spin", "recovery_openers"), 20),
                KeySlot(2, C.ENDURANCE, ("endurance_zone2_90",), 35),
            ),
            3, ZoneDistribution(90, 8, 2),
        ),
    ),
    recovery_week_frequency=4,
    recovery_week_reduction=0.6,
    load_progression=(1.0, 1.1, 1.2, 0.6, 1.0, 1.1, 1.2, 0.55),
    tags=("FTP", "threshold", "sweet spot", "build", "power"),
)


TAPER_3WEEK = PlanTemplate(
    id="taper_3week",
    name="3-Week Pre-Event Taper",
    goal=PlanGoal.TAPER,
    description="Progressive load reduction leading to peak freshness for a goal event. "
                "Maintains intensity while reducing volume to optimize form.",
    duration_weeks=3,
    min_ctl=50,
    max_ctl=None,
    suitable_for=("pre-race", "A event", "peak performance"),
    weeks=(
        WeekTemplate(
            1, P.TAPER, "Begin taper - reduce volume, maintain intensity", (70, 80),
            (
                KeySlot(0, C.THRESHOLD, ("threshold_3x8",), 30, "Keep intensity sharp"),
                KeySlot(1, C.ENDURANCE, ("endurance_zone2_60",), 22),
                KeySlot(2, C.VO2MAX, ("vo2max_6x3",), 28, "Short sharp VO2 work"),
            ),
            2, ZoneDistribution(60, 20, 20),
        ),
        WeekTemplate(
            2, P.TAPER, "Deeper taper - more rest, intensity touchpoints only", (50, 60),
            (
                KeySlot(0, C.SWEETSPOT, ("sweetspot_3x10",), 30),
                KeySlot(1, C.RECOVERY, ("recovery_easy_spin",), 18),
                KeySlot(2, C.THRESHOLD, ("threshold_3x8",), 28, "Keep legs used to race pace"),
            ),
            3, ZoneDistribution(65, 20, 15),
        ),
        WeekTemplate(
            3, P.PEAK, "Race week - openers and rest", (30, 40),
            (
                KeySlot(0, C.RECOVERY, ("recovery_openers",), 35, "Mid-week openers"),
                KeySlot(1, C.RECOVERY, ("recovery_easy_spin", "recovery_flush"), 25, "Day before pre-ride"),
            ),
            4, ZoneDistribution(70, 15, 15),
        ),
    ),
    recovery_week_frequency=0,  # taper has no recovery weeks
    recovery_week_reduction=1.0,
    load_progression=(0.75, 0.5, 0.3),
    tags=("taper", "race prep", "peak", "event"),
)


EVENT_PREP_12WEEK = PlanTemplate(
    id="event_prep_12week",
    name="12-Week Event Preparation",
    goal=PlanGoal.EVENT_PREP,
    description="Complete preparation cycle for a goal event. Includes base, build, peak, and taper "
                "phases with progressive specificity toward race demands.",
    duration_weeks=12,
    min_ctl=35,
    max_ctl=None,
    suitable_for=("A race", "goal event", "comprehensive prep"),
    weeks=(
        WeekTemplate(
            1, P.BASE, "Establish base - aerobic focus", (85, 95),
            (
                KeySlot(0, C.ENDURANCE, ("endurance_zone2_90",), 28),
                KeySlot(1, C.TEMPO, ("tempo_3x10",), 25),
                KeySlot(2, C.ENDURANCE, ("endurance_zone2_120",), 35),
            ),
            2, ZoneDistribution(78, 20, 2),
        ),
        WeekTemplate(
            2, P.BASE, "Build base volume", (95, 105),
            (
                KeySlot(0, C.ENDURANCE, ("endurance_zone2_90", "endurance_progressive"), 28),
                KeySlot(1, C.SWEETSPOT, ("sweetspot_3x10",), 25),
                KeySlot(2, C.ENDURANCE, ("endurance_zone2_120",), 35),
            ),
            2, ZoneDistribution(72, 25, 3),
        ),
        WeekTemplate(
            3, P.BASE, "Peak base volume", (105, 115),
            (
                KeySlot(0, C.ENDURANCE, ("endurance_zone2_90",), 25),
                KeySlot(1, C.SWEETSPOT, ("sweetspot_2x20",), 28),
                KeySlot(2, C.ENDURANCE, ("endurance_zone2_180",), 38, "Long ride week"),
            ),
            2, ZoneDistribution(70, 27, 3),
        ),
        WeekTemplate(
            4, P.RECOVERY, "Recovery week - absorb base adaptations", (60, 70),
            _RECOVERY_WEEK_SLOTS,
            3, ZoneDistribution(88, 10, 2),
        ),
        WeekTemplate(
            5, P.BUILD, "Begin build phase - introduce threshold", (95, 105),
            (
                KeySlot(0, C.SWEETSPOT, ("sweetspot_2x20",), 28),
                KeySlot(1, C.THRESHOLD, ("threshold_3x8",), 25),
                KeySlot(2, C.ENDURANCE, ("endurance_zone2_120",), 32),
            ),
            2, ZoneDistribution(58, 30, 12),
        ),
        WeekTemplate(
            6, P.BUILD, "Build intensity volume", (105, 115),
            (
                KeySlot(0, C.THRESHOLD, ("threshold_3x10",), 28),
                KeySlot(1, C.VO2MAX, ("vo2max_6x3",), 25, "First VO2 work"),
                KeySlot(2, C.SWEETSPOT, ("sweetspot_3x15", "sweetspot_over_under"), 32),
            ),
            2, ZoneDistribution(52, 28, 20),
        ),
        WeekTemplate(
            7, P.BUILD, "Peak build week", (115, 125),
            (
                KeySlot(0, C.THRESHOLD, ("threshold_2x20",), 30),
                KeySlot(1, C.VO2MAX, ("vo2max_5x4",), 25),
                KeySlot(2, C.ENDURANCE, ("endurance_zone2_120",), 32),
            ),
            2, ZoneDistribution(50, 25, 25),
        ),
        WeekTemplate(
            8, P.RECOVERY, "Recovery week - absorb build adaptations", (60, 70),
            _RECOVERY_WEEK_SLOTS,
            3, ZoneDistribution(88, 10, 2),
        ),
        WeekTemplate(
            9, P.PEAK, "Peak phase - race-specific intensity", (90, 100),
            (
                KeySlot(0, C.VO2MAX, ("vo2max_5x5",), 28),
                KeySlot(1, C.THRESHOLD, ("threshold_2x20",), 28),
                KeySlot(2, C.ENDURANCE, ("endurance_zone2_90",), 30),
            ),
            2, ZoneDistribution(52, 20, 28),
        ),
        WeekTemplate(
            10, P.PEAK, "Final peak week - maintain sharpness", (80, 90),
            (
                KeySlot(0, C.THRESHOLD, ("threshold_3x10",), 30),
                KeySlot(1, C.ANAEROBIC, ("anaerobic_30_30", "anaerobic_1min"), 22, "Race-specific efforts"),
                KeySlot(2, C.ENDURANCE, ("endurance_zone2_60",), 28),
            ),
            2, ZoneDistribution(58, 18, 24),
        ),
        WeekTemplate(
            11, P.TAPER, "Begin taper - reduce volume, keep intensity", (55, 65),
            (
                KeySlot(0, C.THRESHOLD, ("threshold_3x8",), 30),
                KeySlot(1, C.RECOVERY, ("recovery_easy_spin",), 20),
                KeySlot(2, C.VO2MAX, ("vo2max_6x3",), 28, "Short sharp efforts"),
            ),
            3, ZoneDistribution(60, 20, 20),
        ),
        WeekTemplate(
            12, P.PEAK, "Race week - openers and rest", (30, 40),
            (
                KeySlot(0, C.RECOVERY, ("recovery_openers",), 35),
                KeySlot(1, C.RECOVERY, ("recovery_easy_spin", "recovery_flush"), 25),
            ),
            4, ZoneDistribution(70, 15, 15),
        ),
    ),
    recovery_week_frequency=4,
    recovery_week_reduction=0.6,
    load_progression=(1.0, 1.1, 1.2, 0.6, 1.0, 1.1, 1.2, 0.6, 0.95, 0.85, 0.55, 0.3),
    tags=("event prep", "race", "complete cycle", "periodization", "A event"),
)


MAINTENANCE_4WEEK = PlanTemplate(
    id="maintenance_4week",
    name="4-Week Maintenance",
    goal=PlanGoal.MAINTENANCE,
    description="Maintain current fitness during busy periods or between goal events. "
                "Balanced workload with variety to prevent staleness.",
    duration_weeks=4,
    min_ctl=40,
    max_ctl=None,
    suitable_for=("maintenance", "busy schedule", "between events"),
    weeks=(
        WeekTemplate(
            1, P.ANY, "Balanced week - mixed intensities", (90, 100),
            (
                KeySlot(0, C.SWEETSPOT, ("sweetspot_2x20",), 28),
                KeySlot(1, C.ENDURANCE, ("endurance_zone2_90",), 28),
                KeySlot(2, C.THRESHOLD, ("threshold_3x8",), 28),
            ),
            2, ZoneDistribution(60, 28, 12),
        ),
        WeekTemplate(
            2, P.ANY, "VO2 focus week", (90, 100),
            (
                KeySlot(0, C.VO2MAX, ("vo2max_6x3", "vo2max_5x4"), 26),
                KeySlot(1, C.ENDURANCE, ("endurance_zone2_90",), 28),
                KeySlot(2, C.SWEETSPOT, ("sweetspot_3x10",), 28),
            ),
            2, ZoneDistribution(58, 24, 18),
        ),
        WeekTemplate(
            3, P.ANY, "Endurance focus week", (95, 105),
            (
                KeySlot(0, C.ENDURANCE, ("endurance_zone2_90", "endurance_progressive"), 28),
                KeySlot(1, C.TEMPO, ("tempo_2x20", "tempo_continuous"), 25),
                KeySlot(2, C.ENDURANCE, ("endurance_zone2_120",), 35),
            ),
            2, ZoneDistribution(72, 25, 3),
        ),
        WeekTemplate(
            4, P.RECOVERY, "Easy week - reset", (60, 70),
            _RECOVERY_WEEK_SLOTS,
            3, ZoneDistribution(88, 10, 2),
        ),
    ),
    recovery_week_frequency=4,
    recovery_week_reduction=0.65,
    load_progression=(1.0, 1.0, 1.05, 0.65),
    tags=("maintenance", "balanced", "sustainable", "variety"),
)


PLAN_TEMPLATES: Tuple[PlanTemplate, ...] = (
    BASE_BUILD_4WEEK,
    FTP_BUILD_8WEEK,
    TAPER_3WEEK,
    EVENT_PREP_12WEEK,
    MAINTENANCE_4WEEK,
)

_BY_ID: Dict[str, PlanTemplate] = {t.id: t for t in PLAN_TEMPLATES}


def get_plan_template(template_id: str) -> Optional[PlanTemplate]:
    return _BY_ID.get(template_id)


def get_plan_templates_by_goal(goal: PlanGoal) -> List[PlanTemplate]:
    return [t for t in PLAN_TEMPLATES if t.goal == goal]


def get_applicable_plans(ctl: float) -> List[PlanTemplate]:
    """Templates whose CTL range admits the athlete."""
    return [t for t in PLAN_TEMPLATES if t.admits(ctl)]


def search_plan_templates(query: str) -> List[PlanTemplate]:
    needle = query.lower()
    return [
        t for t in PLAN_TEMPLATES
        if needle in t.name.lower()
        or needle in t.description.lower()
        or any(needle in tag.lower() for tag in t.tags)
    ]
