"""
Domain Models

Pure data structures representing golf swing analysis concepts.
No external dependencies - just Python dataclasses and enums.
"""

from .pose import (
    BodyPart,
    PoseLandmark,
    PoseFrame,
    TrajectoryPoint,
    SwingTrajectory,
)
from .analysis import (
    SwingPhase,
    PHASE_ORDER,
    MetricCategory,
    GRADED_CATEGORIES,
    GolfClub,
    PhaseSpan,
    TempoMetric,
    RotationMetric,
    WeightTransferMetric,
    SwingPlaneMetric,
    BodyAlignmentMetric,
    CategoryMetric,
    SwingMetrics,
    CategoryGrade,
    ComprehensiveGrade,
    SwingValidation,
    SwingAnalysis,
)
from .consistency import (
    Trend,
    SwingHistoryEntry,
    ConsistencyMetrics,
    SwingComparison,
)
from .benchmarks import (
    BenchmarkRange,
    MetricBenchmarks,
    PROFESSIONAL_BENCHMARKS,
    AMATEUR_BENCHMARKS,
    CATEGORY_WEIGHTS,
    score_to_letter,
)

__all__ = [
    "BodyPart",
    "PoseLandmark",
    "PoseFrame",
    "TrajectoryPoint",
    "SwingTrajectory",
    "SwingPhase",
    "PHASE_ORDER",
    "MetricCategory",
    "GRADED_CATEGORIES",
    "GolfClub",
    "PhaseSpan",
    "TempoMetric",
    "RotationMetric",
    "WeightTransferMetric",
    "SwingPlaneMetric",
    "BodyAlignmentMetric",
    "CategoryMetric",
    "SwingMetrics",
    "CategoryGrade",
    "ComprehensiveGrade",
    "SwingValidation",
    "SwingAnalysis",
    "Trend",
    "SwingHistoryEntry",
    "ConsistencyMetrics",
    "SwingComparison",
    "BenchmarkRange",
    "MetricBenchmarks",
    "PROFESSIONAL_BENCHMARKS",
    "AMATEUR_BENCHMARKS",
    "CATEGORY_WEIGHTS",
    "score_to_letter",
]
