"""
Benchmark Tables

Reference values used to score and grade swings.

Metric benchmarks are {min, ideal, max} bands taken from published
tour-player and amateur averages. The grading scale, category weights
and override thresholds are the empirical constants the grading engine
was calibrated with.
"""

from dataclasses import dataclass
from types import MappingProxyType


@dataclass(frozen=True)
class BenchmarkRange:
    """A {min, ideal, max} band for one raw metric value."""
    min: float
    ideal: float
    max: float

    def contains(self, value: float) -> bool:
        return self.min <= value <= self.max


@dataclass(frozen=True)
class TempoBenchmarks:
    backswing_time: BenchmarkRange      # seconds
    downswing_time: BenchmarkRange      # seconds
    tempo_ratio: BenchmarkRange


@dataclass(frozen=True)
class RotationBenchmarks:
    shoulder_turn: BenchmarkRange       # degrees
    hip_turn: BenchmarkRange            # degrees
    x_factor: BenchmarkRange            # degrees


@dataclass(frozen=True)
class WeightTransferBenchmarks:
    backswing: BenchmarkRange           # % on trail foot
    impact: BenchmarkRange              # % on lead foot
    finish: BenchmarkRange              # % on lead foot


@dataclass(frozen=True)
class SwingPlaneBenchmarks:
    shaft_angle: BenchmarkRange         # degrees
    plane_deviation: BenchmarkRange     # degrees


@dataclass(frozen=True)
class BodyAlignmentBenchmarks:
    spine_angle: BenchmarkRange         # degrees
    head_movement: BenchmarkRange       # inches
    knee_flex: BenchmarkRange           # degrees


@dataclass(frozen=True)
class MetricBenchmarks:
    """Full benchmark table for the five measured categories."""
    name: str
    tempo: TempoBenchmarks
    rotation: RotationBenchmarks
    weight_transfer: WeightTransferBenchmarks
    swing_plane: SwingPlaneBenchmarks
    body_alignment: BodyAlignmentBenchmarks


# =============================================================================
# Metric Benchmarks
# =============================================================================

PROFESSIONAL_BENCHMARKS = MetricBenchmarks(
    name="professional",
    tempo=TempoBenchmarks(
        backswing_time=BenchmarkRange(0.7, 0.8, 0.9),
        downswing_time=BenchmarkRange(0.23, 0.25, 0.27),
        tempo_ratio=BenchmarkRange(2.8, 3.0, 3.2),
    ),
    rotation=RotationBenchmarks(
        shoulder_turn=BenchmarkRange(85, 90, 95),
        hip_turn=BenchmarkRange(45, 50, 55),
        x_factor=BenchmarkRange(35, 40, 45),
    ),
    weight_transfer=WeightTransferBenchmarks(
        backswing=BenchmarkRange(80, 85, 90),
        impact=BenchmarkRange(80, 85, 90),
        finish=BenchmarkRange(90, 95, 100),
    ),
    swing_plane=SwingPlaneBenchmarks(
        shaft_angle=BenchmarkRange(55, 60, 65),
        plane_deviation=BenchmarkRange(0, 2, 4),
    ),
    body_alignment=BodyAlignmentBenchmarks(
        spine_angle=BenchmarkRange(35, 40, 45),
        head_movement=BenchmarkRange(0, 2, 4),
        knee_flex=BenchmarkRange(20, 25, 30),
    ),
)

AMATEUR_BENCHMARKS = MetricBenchmarks(
    name="amateur",
    tempo=TempoBenchmarks(
        backswing_time=BenchmarkRange(0.6, 0.8, 1.0),
        downswing_time=BenchmarkRange(0.2, 0.25, 0.3),
        tempo_ratio=BenchmarkRange(2.5, 3.0, 3.5),
    ),
    rotation=RotationBenchmarks(
        shoulder_turn=BenchmarkRange(75, 85, 95),
        hip_turn=BenchmarkRange(35, 45, 55),
        x_factor=BenchmarkRange(30, 35, 45),
    ),
    weight_transfer=WeightTransferBenchmarks(
        backswing=BenchmarkRange(70, 80, 90),
        impact=BenchmarkRange(70, 80, 90),
        finish=BenchmarkRange(80, 90, 100),
    ),
    swing_plane=SwingPlaneBenchmarks(
        shaft_angle=BenchmarkRange(50, 60, 70),
        plane_deviation=BenchmarkRange(0, 4, 8),
    ),
    body_alignment=BodyAlignmentBenchmarks(
        spine_angle=BenchmarkRange(30, 40, 50),
        head_movement=BenchmarkRange(0, 3, 6),
        knee_flex=BenchmarkRange(15, 25, 35),
    ),
)


# =============================================================================
# Grading Scale
# =============================================================================

# (minimum score, letter, description), highest first
GRADING_SCALE: tuple[tuple[float, str, str], ...] = (
    (97, "A+", "Exceptional - Professional level"),
    (93, "A", "Excellent - Above professional average"),
    (90, "A-", "Very Good - Professional average"),
    (87, "B+", "Good - Above amateur average"),
    (83, "B", "Above Average - Solid amateur level"),
    (80, "B-", "Average - Typical amateur"),
    (77, "C+", "Below Average - Needs improvement"),
    (73, "C", "Poor - Significant issues"),
    (70, "C-", "Very Poor - Major problems"),
    (67, "D+", "Bad - Fundamental flaws"),
    (63, "D", "Very Bad - Serious problems"),
    (0, "F", "Failing - Complete overhaul needed"),
)


def score_to_letter(score: float) -> str:
    """
    Map a 0-100 score onto the 12-level letter scale.

    Example:
        >>> score_to_letter(93)
        'A'
    """
    for minimum, letter, _ in GRADING_SCALE:
        if score >= minimum:
            return letter
    return "F"


def grade_description(letter: str) -> str:
    """Human-readable description for a letter grade."""
    for _, scale_letter, description in GRADING_SCALE:
        if scale_letter == letter:
            return description
    return GRADING_SCALE[-1][2]


# =============================================================================
# Category Weights
# =============================================================================

CATEGORY_WEIGHTS = MappingProxyType({
    "tempo": 0.15,
    "rotation": 0.20,
    "balance": 0.15,
    "swing_plane": 0.15,
    "power": 0.20,
    "consistency": 0.15,
})

# Converts normalized image units into inches for head movement
NORMALIZED_UNIT_TO_INCHES = 39.37
