"""Structured workout catalog.

Every template is defined once at import time and never mutated. Catalog order
is significant: it is the tie-break order for prescription and plan slot
selection.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple


class WorkoutCategory(Enum):
    """Workout categories, easiest to hardest."""

    RECOVERY = "recovery"
    ENDURANCE = "endurance"
    TEMPO = "tempo"
    SWEETSPOT = "sweetspot"
    THRESHOLD = "threshold"
    VO2MAX = "vo2max"
    ANAEROBIC = "anaerobic"
    SPRINT = "sprint"


class EnergySystem(Enum):
    """Primary energy systems a workout targets."""

    AEROBIC = "aerobic"
    THRESHOLD = "threshold"
    VO2MAX = "vo2max"
    ANAEROBIC = "anaerobic"
    NEUROMUSCULAR = "neuromuscular"


class TrainingPhase(Enum):
    """Training phases in a periodized plan."""

    BASE = "base"  # Aerobic base building
    BUILD = "build"  # Increasing intensity
    PEAK = "peak"  # Race sharpening
    TAPER = "taper"  # Pre-competition taper
    RECOVERY = "recovery"  # Unloading
    ANY = "any"


INTENSITY_CATEGORIES = frozenset({
    WorkoutCategory.THRESHOLD,
    WorkoutCategory.VO2MAX,
    WorkoutCategory.ANAEROBIC,
    WorkoutCategory.SPRINT,
})


@dataclass(frozen=True)
class IntervalBlock:
    """Repeated work/rest block with intensity bounds as % of FTP."""

    sets: int
    duration_seconds: int
    rest_seconds: int
    intensity_min: float
    intensity_max: float
    notes: Optional[str] = None


@dataclass(frozen=True)
class Prerequisites:
    """Conditions for a workout to be appropriate.

    CTL and TSB bounds are hard requirements; days since intensity and the
    excluded-after categories are soft.
    """

    min_ctl: Optional[float] = None
    max_ctl: Optional[float] = None
    min_tsb: Optional[float] = None
    max_tsb: Optional[float] = None
    min_days_since_intensity: Optional[int] = None
    not_after: Tuple[WorkoutCategory, ...] = ()


@dataclass(frozen=True)
class WorkoutTemplate:
    """A catalog workout."""

    id: str
    name: str
    category: WorkoutCategory
    energy_systems: Tuple[EnergySystem, ...]
    suitable_phases: Tuple[TrainingPhase, ...]
    duration_minutes: int
    warmup_minutes: int
    cooldown_minutes: int
    load_range: Tuple[float, float]  # TSS
    intensity_factor_range: Tuple[float, float]
    description: str
    purpose: str
    execution_tips: Tuple[str, ...] = ()
    common_mistakes: Tuple[str, ...] = ()
    intervals: Tuple[IntervalBlock, ...] = ()
    prerequisites: Prerequisites = field(default_factory=Prerequisites)
    easier_alternative: Optional[str] = None
    harder_progression: Optional[str] = None
    tags: Tuple[str, ...] = ()

    @property
    def load_midpoint(self) -> float:
        return (self.load_range[0] + self.load_range[1]) / 2

    @property
    def intensity_factor_midpoint(self) -> float:
        return (self.intensity_factor_range[0] + self.intensity_factor_range[1]) / 2

    def suits_phase(self, phase: Optional[TrainingPhase]) -> bool:
        if phase is None:
            return True
        return phase in self.suitable_phases or TrainingPhase.ANY in self.suitable_phases


C = WorkoutCategory
E = EnergySystem
P = TrainingPhase


RECOVERY_WORKOUTS = (
    WorkoutTemplate(
        id="recovery_easy_spin",
        name="Easy Recovery Spin",
        category=C.RECOVERY,
        energy_systems=(E.AEROBIC,),
        suitable_phases=(P.ANY,),
        duration_minutes=45,
        warmup_minutes=0,
        cooldown_minutes=0,
        load_range=(15, 30),
        intensity_factor_range=(0.5, 0.6),
        description="Very easy spin keeping power below 55% FTP. Focus on smooth pedaling and relaxation.",
        purpose="Active recovery to promote blood flow without adding training stress. "
                "Helps clear metabolic waste from previous hard efforts.",
        execution_tips=(
            "Keep cadence high (90-100 rpm)",
            "Power should feel effortless",
            "Stop if you feel any fatigue",
        ),
        common_mistakes=(
            "Going too hard - this should feel almost too easy",
            "Extending duration thinking more is better",
        ),
        prerequisites=Prerequisites(max_tsb=10),  # pointless when very fresh
        harder_progression="endurance_zone2_60",
        tags=("recovery", "easy", "active recovery", "day after"),
    ),
    WorkoutTemplate(
        id="recovery_flush",
        name="Recovery Flush Ride",
        category=C.RECOVERY,
        energy_systems=(E.AEROBIC,),
        suitable_phases=(P.ANY,),
        duration_minutes=30,
        warmup_minutes=0,
        cooldown_minutes=0,
        load_range=(10, 20),
        intensity_factor_range=(0.45, 0.55),
        description="Short, very easy spin. Perfect for day after racing or very hard training.",
        purpose="Minimal stress recovery ride to get blood flowing without any training stimulus.",
        execution_tips=(
            "Keep it short - 30 minutes max",
            "Stay seated, relaxed grip",
            "Can be done on trainer or flat roads",
        ),
        common_mistakes=(
            "Making it too long",
            "Adding any intensity whatsoever",
        ),
        prerequisites=Prerequisites(min_days_since_intensity=0),
        harder_progression="recovery_easy_spin",
        tags=("recovery", "flush", "post-race", "very easy"),
    ),
    WorkoutTemplate(
        id="recovery_openers",
        name="Pre-Event Openers",
        category=C.RECOVERY,
        energy_systems=(E.AEROBIC, E.NEUROMUSCULAR),
        suitable_phases=(P.PEAK, P.TAPER),
        duration_minutes=45,
        warmup_minutes=15,
        cooldown_minutes=15,
        intervals=(IntervalBlock(3, 30, 180, 120, 150, "Short sharp efforts to activate legs"),),
        load_range=(25, 40),
        intensity_factor_range=(0.55, 0.7),
        description="Easy ride with 3x30s hard efforts to open up legs before an event.",
        purpose="Activate neuromuscular system and prime legs without adding fatigue before competition.",
        execution_tips=(
            "Do this ride day before or morning of event",
            "Keep base ride very easy",
            "Efforts should feel sharp but not draining",
        ),
        common_mistakes=(
            "Making opener efforts too long",
            "Doing too many openers",
            "Going too hard on easy portions",
        ),
        prerequisites=Prerequisites(min_tsb=5),
        tags=("openers", "pre-race", "taper", "activation"),
    ),
)


ENDURANCE_WORKOUTS = (
    WorkoutTemplate(
        id="endurance_zone2_60",
        name="Zone 2 Foundation",
        category=C.ENDURANCE,
        energy_systems=(E.AEROBIC,),
        suitable_phases=(P.BASE, P.BUILD, P.ANY),
        duration_minutes=60,
        warmup_minutes=10,
        cooldown_minutes=5,
        load_range=(40, 55),
        intensity_factor_range=(0.65, 0.75),
        description="Steady Zone 2 ride at 60-75% FTP. Conversational pace throughout.",
        purpose="Build aerobic base, improve fat oxidation, develop mitochondrial density.",
        execution_tips=(
            "Should be able to hold a conversation",
            "Nasal breathing test - if you can't breathe through nose, slow down",
            "Keep cadence comfortable (85-95 rpm)",
        ),
        common_mistakes=(
            "Riding too hard - Zone 2 should feel easy",
            "Chasing others or Strava segments",
        ),
        easier_alternative="recovery_easy_spin",
        harder_progression="endurance_zone2_90",
        tags=("zone 2", "aerobic", "base", "endurance", "foundation"),
    ),
    WorkoutTemplate(
        id="endurance_zone2_90",
        name="Zone 2 Builder",
        category=C.ENDURANCE,
        energy_systems=(E.AEROBIC,),
        suitable_phases=(P.BASE, P.BUILD),
        duration_minutes=90,
        warmup_minutes=10,
        cooldown_minutes=5,
        load_range=(55, 75),
        intensity_factor_range=(0.65, 0.75),
        description="90-minute Zone 2 ride. The workhorse of aerobic development.",
        purpose="Extended aerobic stimulus for significant base building. Key workout for endurance foundation.",
        execution_tips=(
            "Bring nutrition - aim for 40-60g carbs per hour",
            "Stay hydrated",
            "Monitor for cardiac drift - if HR rises significantly, back off power",
        ),
        common_mistakes=(
            "Starting too hard and fading",
            "Neglecting nutrition/hydration",
        ),
        prerequisites=Prerequisites(min_ctl=30),
        easier_alternative="endurance_zone2_60",
        harder_progression="endurance_zone2_120",
        tags=("zone 2", "aerobic", "base", "medium-long"),
    ),
    WorkoutTemplate(
        id="endurance_zone2_120",
        name="Long Endurance Ride",
        category=C.ENDURANCE,
        energy_systems=(E.AEROBIC,),
        suitable_phases=(P.BASE, P.BUILD),
        duration_minutes=120,
        warmup_minutes=10,
        cooldown_minutes=5,
        load_range=(75, 100),
        intensity_factor_range=(0.65, 0.75),
        description="2-hour Zone 2 ride. Foundation for longer events.",
        purpose="Build endurance for longer events, train fueling strategy, develop mental stamina.",
        execution_tips=(
            "Practice race nutrition",
            "Include brief standing every 30 minutes",
            "Stay focused on form when tired",
        ),
        common_mistakes=(
            "Going out too hard",
            "Inadequate fueling",
        ),
        prerequisites=Prerequisites(min_ctl=45, min_tsb=-15),
        easier_alternative="endurance_zone2_90",
        harder_progression="endurance_zone2_180",
        tags=("zone 2", "aerobic", "long ride", "endurance"),
    ),
    WorkoutTemplate(
        id="endurance_zone2_180",
        name="Long Aerobic Builder",
        category=C.ENDURANCE,
        energy_systems=(E.AEROBIC,),
        suitable_phases=(P.BASE,),
        duration_minutes=180,
        warmup_minutes=15,
        cooldown_minutes=10,
        load_range=(100, 140),
        intensity_factor_range=(0.60, 0.72),
        description="3-hour Zone 2 ride with optional tempo bursts.",
        purpose="Key long ride for building serious endurance. Prepares body for extended efforts.",
        execution_tips=(
            "Eat early and often - 60-90g carbs per hour",
            "Include 2-3 short tempo efforts (5 min) if feeling good",
            "Plan route with bail-out options",
        ),
        common_mistakes=(
            "Attempting without adequate base",
            "Under-fueling",
            "Going too hard early",
        ),
        prerequisites=Prerequisites(min_ctl=60, min_tsb=-10),
        easier_alternative="endurance_zone2_120",
        tags=("zone 2", "long ride", "big day", "base building"),
    ),
    WorkoutTemplate(
        id="endurance_progressive",
        name="Progressive Endurance",
        category=C.ENDURANCE,
        energy_systems=(E.AEROBIC,),
        suitable_phases=(P.BASE, P.BUILD),
        duration_minutes=90,
        warmup_minutes=15,
        cooldown_minutes=10,
        intervals=(
            IntervalBlock(1, 1800, 0, 60, 65, "First 30 min - easy Zone 2"),
            IntervalBlock(1, 1800, 0, 68, 72, "Second 30 min - upper Zone 2"),
            IntervalBlock(1, 900, 0, 75, 80, "Last 15 min - low tempo"),
        ),
        load_range=(60, 80),
        intensity_factor_range=(0.68, 0.75),
        description="Progressive ride starting easy and building to tempo finish.",
        purpose="Builds endurance while practicing negative split pacing. Good mental training.",
        execution_tips=(
            "Start easier than you think",
            "Increase power smoothly, not in jumps",
            "Last 15 minutes should feel comfortably hard",
        ),
        common_mistakes=(
            "Starting too hard",
            "Building too quickly",
        ),
        prerequisites=Prerequisites(min_ctl=35),
        easier_alternative="endurance_zone2_90",
        tags=("progressive", "negative split", "pacing practice"),
    ),
)


TEMPO_WORKOUTS = (
    WorkoutTemplate(
        id="tempo_3x10",
        name="Tempo Intervals 3x10",
        category=C.TEMPO,
        energy_systems=(E.AEROBIC, E.THRESHOLD),
        suitable_phases=(P.BASE, P.BUILD),
        duration_minutes=60,
        warmup_minutes=15,
        cooldown_minutes=10,
        intervals=(IntervalBlock(3, 600, 300, 76, 87),),
        load_range=(55, 70),
        intensity_factor_range=(0.75, 0.82),
        description="3x10 minutes at tempo (76-87% FTP) with 5 min recovery.",
        purpose="Build muscular endurance and lactate clearance. Good introduction to sustained efforts.",
        execution_tips=(
            "Start each interval at lower end of range",
            "Focus on steady power, not surges",
            "Recovery should be easy spinning",
        ),
        common_mistakes=(
            "Going too hard on first interval",
            "Not recovering enough between intervals",
        ),
        prerequisites=Prerequisites(min_ctl=30),
        harder_progression="tempo_3x15",
        tags=("tempo", "muscular endurance", "intervals"),
    ),
    WorkoutTemplate(
        id="tempo_3x15",
        name="Tempo Intervals 3x15",
        category=C.TEMPO,
        energy_systems=(E.AEROBIC, E.THRESHOLD),
        suitable_phases=(P.BASE, P.BUILD),
        duration_minutes=75,
        warmup_minutes=15,
        cooldown_minutes=10,
        intervals=(IntervalBlock(3, 900, 300, 76, 87),),
        load_range=(65, 80),
        intensity_factor_range=(0.78, 0.84),
        description="3x15 minutes at tempo with 5 min recovery. Progression from 3x10.",
        purpose="Extended tempo efforts build greater muscular endurance and fatigue resistance.",
        execution_tips=(
            "Maintain even power throughout each interval",
            "Mental focus becomes important in final 5 minutes",
            "Stay relaxed - tension wastes energy",
        ),
        common_mistakes=(
            "Fading in third interval",
            "Tensing up when tired",
        ),
        prerequisites=Prerequisites(min_ctl=40),
        easier_alternative="tempo_3x10",
        harder_progression="tempo_2x20",
        tags=("tempo", "muscular endurance", "progression"),
    ),
    WorkoutTemplate(
        id="tempo_2x20",
        name="Tempo 2x20",
        category=C.TEMPO,
        energy_systems=(E.AEROBIC, E.THRESHOLD),
        suitable_phases=(P.BASE, P.BUILD),
        duration_minutes=70,
        warmup_minutes=15,
        cooldown_minutes=10,
        intervals=(IntervalBlock(2, 1200, 600, 76, 87),),
        load_range=(60, 75),
        intensity_factor_range=(0.78, 0.84),
        description="2x20 minutes at tempo with 10 min recovery between.",
        purpose="Classic sustained tempo format. Builds ability to hold moderate-hard effort for extended time.",
        execution_tips=(
            "20 minutes is mentally challenging - break into 5-min chunks",
            "Stay aero if possible to simulate race position",
            "Use second interval to prove you can repeat the effort",
        ),
        common_mistakes=(
            "Starting first interval too hard",
            "Giving up mentally in last 5 minutes",
        ),
        prerequisites=Prerequisites(min_ctl=40),
        easier_alternative="tempo_3x15",
        harder_progression="sweetspot_2x20",
        tags=("tempo", "2x20", "sustained effort"),
    ),
    WorkoutTemplate(
        id="tempo_continuous",
        name="Continuous Tempo",
        category=C.TEMPO,
        energy_systems=(E.AEROBIC, E.THRESHOLD),
        suitable_phases=(P.BUILD,),
        duration_minutes=75,
        warmup_minutes=15,
        cooldown_minutes=15,
        intervals=(IntervalBlock(1, 2700, 0, 76, 85),),
        load_range=(70, 85),
        intensity_factor_range=(0.78, 0.83),
        description="45 minutes of continuous tempo. No breaks, no excuses.",
        purpose="Mental and physical training for sustained race-pace efforts. Simulates time trial demands.",
        execution_tips=(
            "Start conservatively - you have 45 minutes ahead",
            "Use landmarks to break up the effort mentally",
            "Stay smooth and efficient",
        ),
        common_mistakes=(
            "Starting too hard",
            "Losing focus mid-effort",
        ),
        prerequisites=Prerequisites(min_ctl=50, min_tsb=-15),
        easier_alternative="tempo_2x20",
        tags=("tempo", "continuous", "time trial", "mental toughness"),
    ),
)


SWEETSPOT_WORKOUTS = (
    WorkoutTemplate(
        id="sweetspot_3x10",
        name="Sweet Spot 3x10",
        category=C.SWEETSPOT,
        energy_systems=(E.AEROBIC, E.THRESHOLD),
        suitable_phases=(P.BASE, P.BUILD),
        duration_minutes=60,
        warmup_minutes=15,
        cooldown_minutes=10,
        intervals=(IntervalBlock(3, 600, 300, 88, 93),),
        load_range=(60, 75),
        intensity_factor_range=(0.82, 0.88),
        description="3x10 minutes at sweet spot (88-93% FTP). Introduction to sweet spot training.",
        purpose="Time-efficient FTP development. High training stimulus with manageable recovery.",
        execution_tips=(
            "RPE should be 7-8/10 - hard but sustainable",
            "Focus on smooth, consistent power",
            "Recovery should feel easy, not rushed",
        ),
        common_mistakes=(
            "Riding at threshold instead of sweet spot",
            "Too short recovery between intervals",
        ),
        prerequisites=Prerequisites(min_ctl=35),
        harder_progression="sweetspot_2x20",
        tags=("sweet spot", "FTP", "time efficient"),
    ),
    WorkoutTemplate(
        id="sweetspot_2x20",
        name="Sweet Spot 2x20",
        category=C.SWEETSPOT,
        energy_systems=(E.AEROBIC, E.THRESHOLD),
        suitable_phases=(P.BASE, P.BUILD),
        duration_minutes=70,
        warmup_minutes=15,
        cooldown_minutes=10,
        intervals=(IntervalBlock(2, 1200, 600, 88, 93),),
        load_range=(70, 85),
        intensity_factor_range=(0.84, 0.89),
        description="Classic 2x20 at sweet spot. The bread and butter of FTP building.",
        purpose="High-quality FTP development with extended time at productive intensity.",
        execution_tips=(
            "Target middle of sweet spot range (90% FTP)",
            "Break 20 min into four 5-min mental chunks",
            "Stay seated for most of the interval",
        ),
        common_mistakes=(
            "Drifting up to threshold",
            "Giving up when it gets hard around 15 min",
        ),
        prerequisites=Prerequisites(min_ctl=45),
        easier_alternative="sweetspot_3x10",
        harder_progression="sweetspot_3x15",
        tags=("sweet spot", "2x20", "FTP builder", "classic"),
    ),
    WorkoutTemplate(
        id="sweetspot_3x15",
        name="Sweet Spot 3x15",
        category=C.SWEETSPOT,
        energy_systems=(E.AEROBIC, E.THRESHOLD),
        suitable_phases=(P.BUILD,),
        duration_minutes=75,
        warmup_minutes=15,
        cooldown_minutes=10,
        intervals=(IntervalBlock(3, 900, 300, 88, 93),),
        load_range=(75, 90),
        intensity_factor_range=(0.85, 0.90),
        description="3x15 at sweet spot. More volume than 2x20 with similar stress.",
        purpose="Increased total time at sweet spot. Good progression from 2x20.",
        execution_tips=(
            "Shorter rest means managing fatigue across all three",
            "Don't go harder on early intervals",
            "Third interval proves your fitness",
        ),
        common_mistakes=(
            "Going too hard on first two intervals",
            "Fading significantly on third interval",
        ),
        prerequisites=Prerequisites(min_ctl=50, min_tsb=-20),
        easier_alternative="sweetspot_2x20",
        harder_progression="sweetspot_2x30",
        tags=("sweet spot", "3x15", "volume"),
    ),
    WorkoutTemplate(
        id="sweetspot_2x30",
        name="Sweet Spot 2x30",
        category=C.SWEETSPOT,
        energy_systems=(E.AEROBIC, E.THRESHOLD),
        suitable_phases=(P.BUILD,),
        duration_minutes=90,
        warmup_minutes=15,
        cooldown_minutes=10,
        intervals=(IntervalBlock(2, 1800, 600, 88, 92),),
        load_range=(85, 100),
        intensity_factor_range=(0.85, 0.89),
        description="2x30 minutes at sweet spot. Extended duration builds serious fitness.",
        purpose="Maximum duration sweet spot intervals. Builds mental and physical endurance at intensity.",
        execution_tips=(
            "Start at lower end of sweet spot range",
            "Break into 10-min segments mentally",
            "Nutrition during workout helps",
        ),
        common_mistakes=(
            "Attempting without adequate fitness base",
            "Going out too hard",
        ),
        prerequisites=Prerequisites(min_ctl=60, min_tsb=-15),
        easier_alternative="sweetspot_3x15",
        tags=("sweet spot", "extended", "advanced"),
    ),
    WorkoutTemplate(
        id="sweetspot_over_under",
        name="Sweet Spot Over-Unders",
        category=C.SWEETSPOT,
        energy_systems=(E.AEROBIC, E.THRESHOLD),
        suitable_phases=(P.BUILD,),
        duration_minutes=75,
        warmup_minutes=15,
        cooldown_minutes=10,
        intervals=(IntervalBlock(3, 720, 360, 85, 95, "2 min at 95%, 1 min at 85%, repeat 4x"),),
        load_range=(75, 90),
        intensity_factor_range=(0.85, 0.91),
        description="3x12min over-unders: alternate 2 min at 95% FTP with 1 min at 85% FTP.",
        purpose="Train lactate clearance while maintaining power. Crucial for racing.",
        execution_tips=(
            '"Over" should feel hard but controlled',
            '"Under" is active recovery - don\'t coast',
            "Transitions should be smooth, not abrupt",
        ),
        common_mistakes=(
            "Over portions too hard",
            "Under portions too easy (should still be work)",
        ),
        prerequisites=Prerequisites(min_ctl=50),
        easier_alternative="sweetspot_2x20",
        tags=("over-under", "lactate clearance", "racing", "advanced"),
    ),
)


THRESHOLD_WORKOUTS = (
    WorkoutTemplate(
        id="threshold_3x8",
        name="Threshold 3x8",
        category=C.THRESHOLD,
        energy_systems=(E.THRESHOLD,),
        suitable_phases=(P.BUILD,),
        duration_minutes=60,
        warmup_minutes=15,
        cooldown_minutes=10,
        intervals=(IntervalBlock(3, 480, 360, 95, 100),),
        load_range=(65, 80),
        intensity_factor_range=(0.86, 0.92),
        description="3x8 minutes at FTP (95-100%). Introduction to threshold intervals.",
        purpose="Develop ability to sustain FTP. 8 minutes is long enough to challenge threshold.",
        execution_tips=(
            "Target 97-98% FTP",
            "Should feel hard but doable",
            "Full recovery between intervals",
        ),
        common_mistakes=(
            "Going above FTP",
            "Not recovering enough between efforts",
        ),
        prerequisites=Prerequisites(min_ctl=40, min_tsb=-20),
        harder_progression="threshold_3x10",
        tags=("threshold", "FTP", "intervals"),
    ),
    WorkoutTemplate(
        id="threshold_3x10",
        name="Threshold 3x10",
        category=C.THRESHOLD,
        energy_systems=(E.THRESHOLD,),
        suitable_phases=(P.BUILD,),
        duration_minutes=65,
        warmup_minutes=15,
        cooldown_minutes=10,
        intervals=(IntervalBlock(3, 600, 360, 95, 100),),
        load_range=(70, 85),
        intensity_factor_range=(0.88, 0.93),
        description="3x10 minutes at threshold. Classic threshold development workout.",
        purpose="Extend time at threshold. 30 total minutes of threshold work.",
        execution_tips=(
            "Even pacing is critical",
            "Mental focus required especially in last 3 minutes of each interval",
            "Recovery should be complete",
        ),
        common_mistakes=(
            "Starting intervals too hard",
            "Shortening recovery time",
        ),
        prerequisites=Prerequisites(min_ctl=45, min_tsb=-20),
        easier_alternative="threshold_3x8",
        harder_progression="threshold_2x20",
        tags=("threshold", "FTP", "3x10"),
    ),
    WorkoutTemplate(
        id="threshold_2x20",
        name="Threshold 2x20",
        category=C.THRESHOLD,
        energy_systems=(E.THRESHOLD,),
        suitable_phases=(P.BUILD, P.PEAK),
        duration_minutes=70,
        warmup_minutes=15,
        cooldown_minutes=10,
        intervals=(IntervalBlock(2, 1200, 600, 96, 100),),
        load_range=(80, 95),
        intensity_factor_range=(0.90, 0.95),
        description="The gold standard: 2x20 minutes at FTP.",
        purpose="Maximum threshold development. 40 minutes total at FTP is highly effective.",
        execution_tips=(
            "Start at 96% FTP, build to 100% if feeling good",
            "Mental challenge - break into 4x5 min segments",
            "This workout separates the committed from the casual",
        ),
        common_mistakes=(
            "Going above FTP early",
            "Giving up mentally",
        ),
        prerequisites=Prerequisites(min_ctl=55, min_tsb=-15),
        easier_alternative="threshold_3x10",
        harder_progression="threshold_3x15",
        tags=("threshold", "2x20", "gold standard", "FTP test"),
    ),
    WorkoutTemplate(
        id="threshold_3x15",
        name="Threshold 3x15",
        category=C.THRESHOLD,
        energy_systems=(E.THRESHOLD,),
        suitable_phases=(P.BUILD, P.PEAK),
        duration_minutes=80,
        warmup_minutes=15,
        cooldown_minutes=10,
        intervals=(IntervalBlock(3, 900, 420, 96, 100),),
        load_range=(85, 100),
        intensity_factor_range=(0.91, 0.96),
        description="3x15 minutes at threshold. 45 minutes total at FTP.",
        purpose="Extended threshold volume. For athletes who have mastered 2x20.",
        execution_tips=(
            "Pacing is everything - don't go out hard",
            "Third interval is the test of fitness",
            "Reduced rest vs 2x20 adds challenge",
        ),
        common_mistakes=(
            "Attempting before mastering 2x20",
            "Going too hard on first interval",
        ),
        prerequisites=Prerequisites(min_ctl=65, min_tsb=-10),
        easier_alternative="threshold_2x20",
        tags=("threshold", "advanced", "3x15"),
    ),
    WorkoutTemplate(
        id="threshold_40min_tt",
        name="40-Minute Time Trial",
        category=C.THRESHOLD,
        energy_systems=(E.THRESHOLD,),
        suitable_phases=(P.PEAK,),
        duration_minutes=70,
        warmup_minutes=15,
        cooldown_minutes=15,
        intervals=(IntervalBlock(1, 2400, 0, 95, 100),),
        load_range=(90, 105),
        intensity_factor_range=(0.93, 0.98),
        description="40-minute continuous effort at threshold. Race simulation.",
        purpose="Time trial simulation and FTP validation. Closest to actual race demands.",
        execution_tips=(
            "Pace conservatively in first 10 minutes",
            "Find your rhythm and hold it",
            "Use aero position to simulate race",
        ),
        common_mistakes=(
            "Going out too hard",
            "Losing focus mid-effort",
        ),
        prerequisites=Prerequisites(min_ctl=60, min_tsb=-5),
        easier_alternative="threshold_2x20",
        tags=("time trial", "race simulation", "continuous", "peak"),
    ),
)


VO2MAX_WORKOUTS = (
    WorkoutTemplate(
        id="vo2max_6x3",
        name="VO2max 6x3",
        category=C.VO2MAX,
        energy_systems=(E.VO2MAX,),
        suitable_phases=(P.BUILD, P.PEAK),
        duration_minutes=55,
        warmup_minutes=15,
        cooldown_minutes=10,
        intervals=(IntervalBlock(6, 180, 180, 110, 120),),
        load_range=(65, 80),
        intensity_factor_range=(0.85, 0.92),
        description="6x3 minutes at 110-120% FTP with 3 min recovery.",
        purpose="Develop VO2max. Shorter intervals allow higher intensity.",
        execution_tips=(
            "First interval should feel hard but doable",
            "Focus on breathing - deep and rhythmic",
            "Power should be consistent across all intervals",
        ),
        common_mistakes=(
            "Going too hard on first intervals",
            "Inconsistent pacing",
        ),
        prerequisites=Prerequisites(min_ctl=45, min_tsb=-15, min_days_since_intensity=2),
        harder_progression="vo2max_5x4",
        tags=("vo2max", "high intensity", "intervals"),
    ),
    WorkoutTemplate(
        id="vo2max_5x4",
        name="VO2max 5x4",
        category=C.VO2MAX,
        energy_systems=(E.VO2MAX,),
        suitable_phases=(P.BUILD, P.PEAK),
        duration_minutes=60,
        warmup_minutes=15,
        cooldown_minutes=10,
        intervals=(IntervalBlock(5, 240, 240, 108, 115),),
        load_range=(70, 85),
        intensity_factor_range=(0.86, 0.93),
        description="5x4 minutes at VO2max intensity. Classic interval format.",
        purpose="Extended time at VO2max. 20 minutes total at high intensity.",
        execution_tips=(
            "Slightly lower power than 3-min intervals",
            "Last minute of each should be very hard",
            "Don't surge - stay controlled",
        ),
        common_mistakes=(
            "Starting too hard",
            "Giving up early in intervals",
        ),
        prerequisites=Prerequisites(min_ctl=50, min_tsb=-15, min_days_since_intensity=2),
        easier_alternative="vo2max_6x3",
        harder_progression="vo2max_5x5",
        tags=("vo2max", "5x4", "classic"),
    ),
    WorkoutTemplate(
        id="vo2max_5x5",
        name="VO2max 5x5",
        category=C.VO2MAX,
        energy_systems=(E.VO2MAX,),
        suitable_phases=(P.BUILD, P.PEAK),
        duration_minutes=75,
        warmup_minutes=15,
        cooldown_minutes=10,
        intervals=(IntervalBlock(5, 300, 300, 106, 112),),
        load_range=(80, 95),
        intensity_factor_range=(0.88, 0.94),
        description="5x5 minutes at 106-112% FTP. The king of VO2max workouts.",
        purpose="Maximum VO2max development. 25 minutes at/near VO2max.",
        execution_tips=(
            "Target 108-110% FTP",
            "Start each interval smoothly",
            "Equal rest is important - don't shortchange it",
        ),
        common_mistakes=(
            "Going above 112% FTP",
            "Cutting rest short",
        ),
        prerequisites=Prerequisites(min_ctl=55, min_tsb=-10, min_days_since_intensity=2),
        easier_alternative="vo2max_5x4",
        harder_progression="vo2max_4x8",
        tags=("vo2max", "5x5", "king", "classic"),
    ),
    WorkoutTemplate(
        id="vo2max_4x8",
        name="VO2max 4x8",
        category=C.VO2MAX,
        energy_systems=(E.VO2MAX, E.THRESHOLD),
        suitable_phases=(P.PEAK,),
        duration_minutes=75,
        warmup_minutes=15,
        cooldown_minutes=10,
        intervals=(IntervalBlock(4, 480, 480, 102, 108),),
        load_range=(80, 95),
        intensity_factor_range=(0.88, 0.94),
        description="4x8 minutes just above threshold. Extended VO2max stimulus.",
        purpose="Train ability to sustain high power for longer. Bridges VO2max and threshold.",
        execution_tips=(
            "Lower intensity than shorter intervals",
            "8 minutes is long - pace yourself",
            "Mental game becomes important",
        ),
        common_mistakes=(
            "Going too hard early",
            "Not recovering between intervals",
        ),
        prerequisites=Prerequisites(min_ctl=60, min_tsb=-10, min_days_since_intensity=2),
        easier_alternative="vo2max_5x5",
        tags=("vo2max", "extended", "advanced"),
    ),
    WorkoutTemplate(
        id="vo2max_pyramid",
        name="VO2max Pyramid",
        category=C.VO2MAX,
        energy_systems=(E.VO2MAX, E.ANAEROBIC),
        suitable_phases=(P.BUILD, P.PEAK),
        duration_minutes=65,
        warmup_minutes=15,
        cooldown_minutes=10,
        intervals=(
            IntervalBlock(1, 120, 120, 115, 125),
            IntervalBlock(1, 180, 180, 110, 118),
            IntervalBlock(1, 240, 240, 108, 115),
            IntervalBlock(1, 300, 300, 106, 112),
            IntervalBlock(1, 240, 240, 108, 115),
            IntervalBlock(1, 180, 180, 110, 118),
            IntervalBlock(1, 120, 120, 115, 125),
        ),
        load_range=(70, 85),
        intensity_factor_range=(0.87, 0.93),
        description="Pyramid: 2-3-4-5-4-3-2 minutes building to peak then back down.",
        purpose="Varied intensity keeps workout engaging while targeting VO2max throughout.",
        execution_tips=(
            "Higher power on shorter intervals",
            "Peak effort in the 5-min interval",
            "Descending side should match ascending",
        ),
        common_mistakes=(
            "Going too hard at start",
            "Having nothing left for final intervals",
        ),
        prerequisites=Prerequisites(min_ctl=50, min_tsb=-15),
        tags=("vo2max", "pyramid", "variety"),
    ),
)


ANAEROBIC_WORKOUTS = (
    WorkoutTemplate(
        id="anaerobic_30_30",
        name="30/30 Intervals",
        category=C.ANAEROBIC,
        energy_systems=(E.ANAEROBIC, E.VO2MAX),
        suitable_phases=(P.BUILD, P.PEAK),
        duration_minutes=55,
        warmup_minutes=15,
        cooldown_minutes=10,
        intervals=(IntervalBlock(2, 600, 300, 130, 150, "20x (30s on/30s off)"),),
        load_range=(60, 75),
        intensity_factor_range=(0.82, 0.88),
        description="2 sets of 20x30 seconds at 130-150% FTP with 30s recovery between.",
        purpose="Develop anaerobic capacity and repeatability. Great for racing fitness.",
        execution_tips=(
            "Hard efforts should be truly hard",
            "Recovery is active, not complete rest",
            "Consistency across all 20 intervals matters",
        ),
        common_mistakes=(
            "Going too hard early and fading",
            "Stopping during recovery portions",
        ),
        prerequisites=Prerequisites(min_ctl=50, min_tsb=-15, min_days_since_intensity=2),
        tags=("anaerobic", "30/30", "racing", "repeatability"),
    ),
    WorkoutTemplate(
        id="anaerobic_40_20",
        name="40/20 Intervals",
        category=C.ANAEROBIC,
        energy_systems=(E.ANAEROBIC, E.VO2MAX),
        suitable_phases=(P.BUILD, P.PEAK),
        duration_minutes=55,
        warmup_minutes=15,
        cooldown_minutes=10,
        intervals=(IntervalBlock(2, 600, 360, 125, 145, "10x (40s on/20s off)"),),
        load_range=(60, 75),
        intensity_factor_range=(0.82, 0.88),
        description="2 sets of 10x40 seconds hard with only 20s recovery.",
        purpose="Extreme anaerobic stress. Teaches body to work without recovery.",
        execution_tips=(
            "These are brutal - be mentally prepared",
            "20 seconds is not enough to recover",
            "Power will drop - focus on effort",
        ),
        common_mistakes=(
            "Not committing to hard efforts",
            "Giving up mid-set",
        ),
        prerequisites=Prerequisites(min_ctl=55, min_tsb=-10, min_days_since_intensity=2),
        tags=("anaerobic", "40/20", "brutal", "racing"),
    ),
    WorkoutTemplate(
        id="anaerobic_1min",
        name="1-Minute Repeats",
        category=C.ANAEROBIC,
        energy_systems=(E.ANAEROBIC,),
        suitable_phases=(P.BUILD, P.PEAK),
        duration_minutes=60,
        warmup_minutes=15,
        cooldown_minutes=10,
        intervals=(IntervalBlock(8, 60, 180, 130, 150),),
        load_range=(65, 80),
        intensity_factor_range=(0.83, 0.90),
        description="8x1 minute at 130-150% FTP with 3 min recovery.",
        purpose="Pure anaerobic power. Develops ability to produce high power repeatedly.",
        execution_tips=(
            "First 30s should feel controlled",
            "Second 30s is survival",
            "Full recovery between - use it all",
        ),
        common_mistakes=(
            "Starting too hard",
            "Not enough rest between intervals",
        ),
        prerequisites=Prerequisites(min_ctl=50, min_tsb=-15, min_days_since_intensity=2),
        harder_progression="anaerobic_2min",
        tags=("anaerobic", "1-minute", "power", "repeats"),
    ),
    WorkoutTemplate(
        id="anaerobic_2min",
        name="2-Minute Repeats",
        category=C.ANAEROBIC,
        energy_systems=(E.ANAEROBIC, E.VO2MAX),
        suitable_phases=(P.BUILD, P.PEAK),
        duration_minutes=60,
        warmup_minutes=15,
        cooldown_minutes=10,
        intervals=(IntervalBlock(6, 120, 240, 120, 135),),
        load_range=(65, 80),
        intensity_factor_range=(0.84, 0.91),
        description="6x2 minutes at 120-135% FTP. The long anaerobic effort.",
        purpose="Extended anaerobic capacity. 2 minutes is long enough to be brutally hard.",
        execution_tips=(
            "2 minutes feels like an eternity at this power",
            "Pace yourself - don't go out too hard",
            "Mental toughness is key",
        ),
        common_mistakes=(
            "Going out too hard",
            "Giving up early",
        ),
        prerequisites=Prerequisites(min_ctl=55, min_tsb=-10, min_days_since_intensity=2),
        easier_alternative="anaerobic_1min",
        tags=("anaerobic", "2-minute", "brutal", "extended"),
    ),
)


SPRINT_WORKOUTS = (
    WorkoutTemplate(
        id="sprint_neuromuscular",
        name="Neuromuscular Sprints",
        category=C.SPRINT,
        energy_systems=(E.NEUROMUSCULAR,),
        suitable_phases=(P.BUILD, P.PEAK),
        duration_minutes=50,
        warmup_minutes=15,
        cooldown_minutes=10,
        intervals=(IntervalBlock(6, 15, 285, 200, 300, "All-out sprint"),),
        load_range=(35, 50),
        intensity_factor_range=(0.65, 0.75),
        description="6x15 second all-out sprints with 5 min full recovery.",
        purpose="Develop peak power and neuromuscular recruitment. Quality over quantity.",
        execution_tips=(
            "Each sprint should be maximal",
            "Full recovery between - these require it",
            "Focus on explosive starts",
        ),
        common_mistakes=(
            "Not going truly all-out",
            "Insufficient recovery",
        ),
        prerequisites=Prerequisites(min_ctl=40, min_days_since_intensity=2),
        tags=("sprint", "peak power", "neuromuscular"),
    ),
    WorkoutTemplate(
        id="sprint_standing_starts",
        name="Standing Start Sprints",
        category=C.SPRINT,
        energy_systems=(E.NEUROMUSCULAR, E.ANAEROBIC),
        suitable_phases=(P.BUILD, P.PEAK),
        duration_minutes=55,
        warmup_minutes=20,
        cooldown_minutes=10,
        intervals=(IntervalBlock(8, 20, 280, 180, 250, "Start from near standstill"),),
        load_range=(40, 55),
        intensity_factor_range=(0.68, 0.78),
        description="8x20 second sprints from near standstill.",
        purpose="Develop explosive acceleration and race-start power.",
        execution_tips=(
            "Start from very slow roll (5 km/h)",
            "Big gear, explosive start",
            "Get out of saddle immediately",
        ),
        common_mistakes=(
            "Rolling start too fast",
            "Not committing to explosive start",
        ),
        prerequisites=Prerequisites(min_ctl=40),
        tags=("sprint", "starts", "acceleration", "racing"),
    ),
    WorkoutTemplate(
        id="sprint_race_simulation",
        name="Race Sprint Simulation",
        category=C.SPRINT,
        energy_systems=(E.NEUROMUSCULAR, E.ANAEROBIC, E.VO2MAX),
        suitable_phases=(P.PEAK,),
        duration_minutes=60,
        warmup_minutes=20,
        cooldown_minutes=10,
        intervals=(
            IntervalBlock(4, 180, 180, 108, 115, "3 min hard effort"),
            IntervalBlock(4, 20, 40, 180, 250, "Sprint at end of each hard effort"),
        ),
        load_range=(60, 75),
        intensity_factor_range=(0.80, 0.88),
        description="4x(3 min hard + 20s sprint). Simulates racing breakaway with sprint finish.",
        purpose="Race-specific preparation. Combines sustained effort with finishing sprint.",
        execution_tips=(
            "Hard effort should be at VO2max intensity",
            "Sprint should be race-winning effort",
            "This simulates real racing demands",
        ),
        common_mistakes=(
            "Not going hard enough before sprint",
            "Holding back sprint effort",
        ),
        prerequisites=Prerequisites(min_ctl=55, min_tsb=-10),
        tags=("sprint", "race simulation", "finishing", "peak"),
    ),
)


WORKOUT_LIBRARY: Tuple[WorkoutTemplate, ...] = (
    RECOVERY_WORKOUTS
    + ENDURANCE_WORKOUTS
    + TEMPO_WORKOUTS
    + SWEETSPOT_WORKOUTS
    + THRESHOLD_WORKOUTS
    + VO2MAX_WORKOUTS
    + ANAEROBIC_WORKOUTS
    + SPRINT_WORKOUTS
)

_BY_ID: Dict[str, WorkoutTemplate] = {w.id: w for w in WORKOUT_LIBRARY}


def get_workout(workout_id: str) -> Optional[WorkoutTemplate]:
    """Look up a template by id."""
    return _BY_ID.get(workout_id)


def get_workouts_by_category(category: WorkoutCategory) -> List[WorkoutTemplate]:
    return [w for w in WORKOUT_LIBRARY if w.category == category]


def get_workouts_by_phase(phase: TrainingPhase) -> List[WorkoutTemplate]:
    return [w for w in WORKOUT_LIBRARY if w.suits_phase(phase)]


def get_workouts_by_energy_system(system: EnergySystem) -> List[WorkoutTemplate]:
    return [w for w in WORKOUT_LIBRARY if system in w.energy_systems]


def search_workouts(query: str) -> List[WorkoutTemplate]:
    """Case-insensitive search over names, descriptions and tags."""
    needle = query.lower()
    return [
        w for w in WORKOUT_LIBRARY
        if needle in w.name.lower()
        or needle in w.description.lower()
        or any(needle in tag.lower() for tag in w.tags)
    ]


def get_workout_counts() -> Dict[WorkoutCategory, int]:
    """Number of templates per category."""
    counts = {category: 0 for category in WorkoutCategory}
    for workout in WORKOUT_LIBRARY:
        counts[workout.category] += 1
    return counts
