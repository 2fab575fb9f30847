"""
Services Layer

Business logic services for golf swing analysis.
These services turn pose sequences into phases, metrics, grades and
consistency reports.
"""

from .angle_calculator import AngleCalculator
from .trajectory import build_trajectory
from .phase_segmenter import PhaseSegmenter, find_phase
from .metrics_calculator import MetricsCalculator, InvalidMetricsCalculation, score_metric
from .grading_engine import GradingEngine
from .consistency_aggregator import ConsistencyAggregator, compute_consistency
from .session import SwingSession, SessionRegistry
from .swing_analyzer import SwingAnalyzer, FeedbackGenerator

__all__ = [
    "AngleCalculator",
    "build_trajectory",
    "PhaseSegmenter",
    "find_phase",
    "MetricsCalculator",
    "InvalidMetricsCalculation",
    "score_metric",
    "GradingEngine",
    "ConsistencyAggregator",
    "compute_consistency",
    "SwingSession",
    "SessionRegistry",
    "SwingAnalyzer",
    "FeedbackGenerator",
]
