"""
Swing Analysis Domain Models

Data structures for golf swing analysis results: phases, per-category
metrics, grades and the complete analysis returned to callers.

All grade objects are created once per grading call and never mutated.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, ClassVar, Optional, Union
from datetime import datetime

if TYPE_CHECKING:
    from .consistency import ConsistencyMetrics


class SwingPhase(Enum):
    """
    The six ordered phases of a golf swing.

    Each phase has specific biomechanical characteristics:
    - ADDRESS: Setup position, weight balanced
    - BACKSWING: Club moving back, shoulder rotation
    - TOP: Top of backswing, maximum coil
    - DOWNSWING: Transition and acceleration
    - IMPACT: Club meets ball
    - FOLLOW_THROUGH: After impact through to the finish
    """
    ADDRESS = "address"
    BACKSWING = "backswing"
    TOP = "top"
    DOWNSWING = "downswing"
    IMPACT = "impact"
    FOLLOW_THROUGH = "follow_through"


PHASE_ORDER: tuple[SwingPhase, ...] = tuple(SwingPhase)


class MetricCategory(Enum):
    """Categories a swing is measured or graded on."""
    TEMPO = "tempo"
    ROTATION = "rotation"
    WEIGHT_TRANSFER = "weight_transfer"
    SWING_PLANE = "swing_plane"
    BODY_ALIGNMENT = "body_alignment"
    BALANCE = "balance"
    POWER = "power"
    CONSISTENCY = "consistency"


GRADED_CATEGORIES: tuple[MetricCategory, ...] = (
    MetricCategory.TEMPO,
    MetricCategory.ROTATION,
    MetricCategory.BALANCE,
    MetricCategory.SWING_PLANE,
    MetricCategory.POWER,
    MetricCategory.CONSISTENCY,
)


class GolfClub(Enum):
    """Golf club types."""
    DRIVER = "driver"
    WOOD_3 = "wood_3"
    WOOD_5 = "wood_5"
    HYBRID = "hybrid"
    IRON_4 = "iron_4"
    IRON_5 = "iron_5"
    IRON_6 = "iron_6"
    IRON_7 = "iron_7"
    IRON_8 = "iron_8"
    IRON_9 = "iron_9"
    PITCHING_WEDGE = "pitching_wedge"
    SAND_WEDGE = "sand_wedge"
    LOB_WEDGE = "lob_wedge"
    PUTTER = "putter"


@dataclass(frozen=True)
class PhaseSpan:
    """
    Frame range covered by one swing phase.

    Frame indices are inclusive; adjacent spans share their boundary frame.
    Times are the timestamps (ms) of the start and end frames.
    """
    phase: SwingPhase
    start_frame: int
    end_frame: int
    start_time: float
    end_time: float
    confidence: float

    @property
    def duration(self) -> float:
        """Phase duration in milliseconds."""
        return self.end_time - self.start_time

    @property
    def frame_count(self) -> int:
        return self.end_frame - self.start_frame + 1

    @property
    def center_frame(self) -> int:
        return (self.start_frame + self.end_frame) // 2


# =============================================================================
# Category Metrics
# =============================================================================

@dataclass(frozen=True)
class TempoMetric:
    """Backswing/downswing timing in seconds."""
    category: ClassVar[MetricCategory] = MetricCategory.TEMPO

    backswing_time: float = 0.0
    downswing_time: float = 0.0
    tempo_ratio: float = 0.0
    score: float = 0.0


@dataclass(frozen=True)
class RotationMetric:
    """
    Shoulder and hip turn between address and the top, in degrees.

    `estimator` names the strategy that produced the values.
    """
    category: ClassVar[MetricCategory] = MetricCategory.ROTATION

    shoulder_turn: float = 0.0
    hip_turn: float = 0.0
    x_factor: float = 0.0
    score: float = 0.0
    estimator: str = "none"


@dataclass(frozen=True)
class WeightTransferMetric:
    """Percent of weight on trail foot at the top, lead foot at impact and finish."""
    category: ClassVar[MetricCategory] = MetricCategory.WEIGHT_TRANSFER

    backswing: float = 0.0
    impact: float = 0.0
    finish: float = 0.0
    score: float = 0.0
    estimator: str = "none"


@dataclass(frozen=True)
class SwingPlaneMetric:
    category: ClassVar[MetricCategory] = MetricCategory.SWING_PLANE

    shaft_angle: float = 0.0
    plane_deviation: float = 0.0
    score: float = 0.0


@dataclass(frozen=True)
class BodyAlignmentMetric:
    category: ClassVar[MetricCategory] = MetricCategory.BODY_ALIGNMENT

    spine_angle: float = 0.0
    head_movement: float = 0.0          # inches
    knee_flex: float = 0.0
    score: float = 0.0


CategoryMetric = Union[
    TempoMetric,
    RotationMetric,
    WeightTransferMetric,
    SwingPlaneMetric,
    BodyAlignmentMetric,
]


@dataclass(frozen=True)
class SwingMetrics:
    """The five measured categories for one swing."""
    tempo: TempoMetric
    rotation: RotationMetric
    weight_transfer: WeightTransferMetric
    swing_plane: SwingPlaneMetric
    body_alignment: BodyAlignmentMetric
    frame_count: int = 0

    def as_list(self) -> list[CategoryMetric]:
        return [
            self.tempo,
            self.rotation,
            self.weight_transfer,
            self.swing_plane,
            self.body_alignment,
        ]


# =============================================================================
# Grades
# =============================================================================

@dataclass(frozen=True)
class Benchmark:
    professional: float
    amateur: float
    current: float


@dataclass(frozen=True)
class GradeDetails:
    primary: str
    secondary: str
    improvement: str


@dataclass(frozen=True)
class CategoryGrade:
    """Benchmark-relative grade for one category."""
    score: float
    letter: str
    benchmark: Benchmark
    weight: float
    details: GradeDetails


@dataclass(frozen=True)
class OverallGrade:
    score: float
    letter: str
    description: str


@dataclass(frozen=True)
class Comparison:
    vs_professional: float
    vs_amateur: float
    percentile: float


@dataclass(frozen=True)
class EmergencyOverrides:
    """
    Record of a score floor or validation penalty.

    original_score is the score before any floor or penalty.
    """
    applied: bool
    reason: str
    original_score: float
    adjusted_score: float


@dataclass(frozen=True)
class Recommendations:
    immediate: tuple[str, ...] = ()
    short_term: tuple[str, ...] = ()
    long_term: tuple[str, ...] = ()


@dataclass(frozen=True)
class DataQuality:
    pose_count: int
    phase_count: int
    quality_score: float
    reliability: str                    # "High", "Medium" or "Low"


@dataclass(frozen=True)
class SwingValidation:
    """Verdict of the external swing-validity checker."""
    is_valid: bool
    score: float
    errors: tuple[str, ...] = ()


@dataclass(frozen=True)
class ComprehensiveGrade:
    """
    Complete grade for one swing.

    This is what the grading engine returns for every call, including
    failed ones, and what the consistency history stores.
    """
    overall: OverallGrade
    categories: dict[MetricCategory, CategoryGrade]
    comparison: Comparison
    emergency_overrides: EmergencyOverrides
    recommendations: Recommendations
    data_quality: DataQuality
    metrics: Optional[SwingMetrics] = None

    def category_score(self, category: MetricCategory) -> float:
        grade = self.categories.get(category)
        return grade.score if grade is not None else 0.0


# =============================================================================
# Complete Analysis
# =============================================================================

@dataclass
class SwingAnalysis:
    """
    Complete analysis of a golf swing.

    This is the main result object returned after analyzing a pose sequence.
    """
    # Identification
    id: str
    timestamp: datetime

    # Input info
    frame_count: int
    duration_ms: float
    club: GolfClub

    # Results
    phases: list[PhaseSpan] = field(default_factory=list)
    grade: Optional[ComprehensiveGrade] = None
    consistency: Optional["ConsistencyMetrics"] = None
    session_id: Optional[str] = None
    swing_id: Optional[str] = None

    # Coaching
    summary: str = ""
    feedback: Optional[str] = None

    def get_phase(self, phase: SwingPhase) -> Optional[PhaseSpan]:
        """Get the span for a specific phase."""
        for span in self.phases:
            if span.phase == phase:
                return span
        return None

    @property
    def key_frames(self) -> dict[SwingPhase, int]:
        """First frame of every phase."""
        return {span.phase: span.start_frame for span in self.phases}

