"""
Consistency Domain Models

Swing history entries and the consistency report computed from them.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from .analysis import ComprehensiveGrade


class Trend(Enum):
    IMPROVING = "improving"
    DECLINING = "declining"
    STABLE = "stable"


OVERALL_SERIES = "overall"


@dataclass(frozen=True)
class HistoryMetadata:
    pose_count: int
    phase_count: int
    data_quality: float
    session_id: Optional[str] = None


@dataclass(frozen=True)
class SwingHistoryEntry:
    """
    One graded swing as kept in the consistency history.

    category_scores is keyed by category value (e.g. "tempo").
    """
    id: str
    timestamp: datetime
    grade: ComprehensiveGrade
    category_scores: dict[str, float]
    metadata: HistoryMetadata

    @property
    def overall_score(self) -> float:
        return self.grade.overall.score


@dataclass(frozen=True)
class Variability:
    std_dev: float
    coefficient_of_variation: float
    range: float
    trend: Trend


@dataclass(frozen=True)
class CategoryConsistency:
    score: float
    letter: str
    variability: Variability


@dataclass(frozen=True)
class ConsistencyScore:
    score: float
    letter: str
    description: str = ""


@dataclass(frozen=True)
class TrendSummary:
    """Series names grouped by trend, in canonical category order."""
    improving: tuple[str, ...] = ()
    declining: tuple[str, ...] = ()
    stable: tuple[str, ...] = ()


@dataclass(frozen=True)
class ConsistencyStatistics:
    total_swings: int = 0
    average_score: float = 0.0
    best_score: float = 0.0
    worst_score: float = 0.0
    std_dev: float = 0.0
    coefficient_of_variation: float = 0.0


@dataclass(frozen=True)
class ConsistencyRecommendations:
    immediate: tuple[str, ...] = ()
    short_term: tuple[str, ...] = ()
    long_term: tuple[str, ...] = ()


@dataclass(frozen=True)
class ConsistencyMetrics:
    """
    Consistency report over the retained swing history.

    Recomputed from the history on every request.
    """
    overall: ConsistencyScore
    categories: dict[str, CategoryConsistency] = field(default_factory=dict)
    trends: TrendSummary = TrendSummary()
    recommendations: ConsistencyRecommendations = ConsistencyRecommendations()
    statistics: ConsistencyStatistics = ConsistencyStatistics()

    @property
    def has_sufficient_data(self) -> bool:
        return self.statistics.total_swings >= 2


@dataclass(frozen=True)
class SwingComparison:
    """Score change between a swing and the one recorded before it."""
    swing_id: str
    previous_swing_id: Optional[str]
    current_score: float
    previous_score: Optional[float]
    difference: float
    verdict: str                        # "improved", "declined", "similar" or "first"
