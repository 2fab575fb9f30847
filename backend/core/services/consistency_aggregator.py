"""
Consistency Aggregator Service

Keeps a bounded history of graded swings and measures how repeatable
they are: per-category variability, trend over time and practice advice.

The history is a FIFO ring buffer (oldest swing evicted first). Mutations
are serialized with a lock; statistics are computed from a snapshot, so
the report is a pure function of the history at call time.
"""

import logging
import threading
import uuid
from collections import deque
from datetime import datetime
from typing import Optional, Sequence

import numpy as np

from ..domain.analysis import GRADED_CATEGORIES, ComprehensiveGrade
from ..domain.benchmarks import score_to_letter, grade_description
from ..domain.consistency import (
    OVERALL_SERIES,
    CategoryConsistency,
    ConsistencyMetrics,
    ConsistencyRecommendations,
    ConsistencyScore,
    ConsistencyStatistics,
    HistoryMetadata,
    SwingComparison,
    SwingHistoryEntry,
    Trend,
    TrendSummary,
    Variability,
)

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_SIZE = 50
TREND_SLOPE = 0.5
TREND_MIN_POINTS = 3
COMPARISON_MARGIN = 5.0

LOW_CONSISTENCY = 70.0
HIGH_VARIATION = 0.2
STRUCTURAL_LOW_COUNT = 2

INSUFFICIENT_DATA_RECOMMENDATIONS = ConsistencyRecommendations(
    immediate=("Record more swings to analyze consistency",),
    short_term=("Practice regularly to build data",),
    long_term=("Develop a consistent practice routine",),
)


class ConsistencyAggregator:
    """
    Bounded swing history with consistency statistics.

    Usage:
        aggregator = ConsistencyAggregator(max_history=50)
        aggregator.add_grade(grade, session_id="range-day")
        report = aggregator.calculate_consistency()
        print(report.overall.letter, report.trends.improving)
    """

    def __init__(self, max_history: int = DEFAULT_HISTORY_SIZE):
        if max_history < 1:
            raise ValueError("max_history must be at least 1")
        self.max_history = max_history
        self._history: deque[SwingHistoryEntry] = deque(maxlen=max_history)
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._history)

    # -------------------------------------------------------------------------
    # History
    # -------------------------------------------------------------------------

    def add_grade(
        self,
        grade: ComprehensiveGrade,
        session_id: Optional[str] = None,
    ) -> SwingHistoryEntry:
        """Record a graded swing, evicting the oldest when full."""
        entry = SwingHistoryEntry(
            id=f"swing_{uuid.uuid4().hex}",
            timestamp=datetime.now(),
            grade=grade,
            category_scores={
                category.value: grade.category_score(category)
                for category in GRADED_CATEGORIES
            },
            metadata=HistoryMetadata(
                pose_count=grade.data_quality.pose_count,
                phase_count=grade.data_quality.phase_count,
                data_quality=grade.data_quality.quality_score,
                session_id=session_id,
            ),
        )

        with self._lock:
            if len(self._history) == self.max_history:
                logger.debug(f"History full, evicting swing {self._history[0].id}")
            self._history.append(entry)

        return entry

    @property
    def history(self) -> tuple[SwingHistoryEntry, ...]:
        """Snapshot of the retained swings, oldest first."""
        with self._lock:
            return tuple(self._history)

    def reset(self) -> None:
        with self._lock:
            self._history.clear()
        logger.info("Swing history cleared")

    # -------------------------------------------------------------------------
    # Statistics
    # -------------------------------------------------------------------------

    def calculate_consistency(self) -> ConsistencyMetrics:
        return compute_consistency(self.history)

    def compare_with_previous(self, swing_id: str) -> Optional[SwingComparison]:
        """
        Compare a swing with the one recorded just before it.

        Returns None if the swing is not in the history.
        """
        history = self.history
        for index, entry in enumerate(history):
            if entry.id != swing_id:
                continue

            current = entry.overall_score
            if index == 0:
                return SwingComparison(
                    swing_id=swing_id,
                    previous_swing_id=None,
                    current_score=current,
                    previous_score=None,
                    difference=0.0,
                    verdict="first",
                )

            previous = history[index - 1]
            difference = round(current - previous.overall_score, 1)
            if difference > COMPARISON_MARGIN:
                verdict = "improved"
            elif difference < -COMPARISON_MARGIN:
                verdict = "declined"
            else:
                verdict = "similar"

            return SwingComparison(
                swing_id=swing_id,
                previous_swing_id=previous.id,
                current_score=current,
                previous_score=previous.overall_score,
                difference=difference,
                verdict=verdict,
            )
        return None


# =============================================================================
# Pure Statistics
# =============================================================================

def compute_consistency(history: Sequence[SwingHistoryEntry]) -> ConsistencyMetrics:
    """Consistency report for a history snapshot (oldest first)."""
    if len(history) < 2:
        return ConsistencyMetrics(
            overall=ConsistencyScore(
                score=0.0,
                letter="F",
                description="Insufficient data for consistency analysis",
            ),
            recommendations=INSUFFICIENT_DATA_RECOMMENDATIONS,
            statistics=ConsistencyStatistics(total_swings=len(history)),
        )

    series: dict[str, list[float]] = {
        category.value: [entry.category_scores.get(category.value, 0.0) for entry in history]
        for category in GRADED_CATEGORIES
    }
    overall_scores = [entry.overall_score for entry in history]

    categories = {name: _series_consistency(scores) for name, scores in series.items()}
    overall = _series_consistency(overall_scores)

    trends: dict[Trend, list[str]] = {trend: [] for trend in Trend}
    for name, result in categories.items():
        trends[result.variability.trend].append(name)
    trends[overall.variability.trend].append(OVERALL_SERIES)

    return ConsistencyMetrics(
        overall=ConsistencyScore(
            score=overall.score,
            letter=overall.letter,
            description=grade_description(overall.letter),
        ),
        categories=categories,
        trends=TrendSummary(
            improving=tuple(trends[Trend.IMPROVING]),
            declining=tuple(trends[Trend.DECLINING]),
            stable=tuple(trends[Trend.STABLE]),
        ),
        recommendations=_recommend(categories),
        statistics=_statistics(overall_scores),
    )


def _series_consistency(scores: Sequence[float]) -> CategoryConsistency:
    values = np.asarray(scores, dtype=float)
    mean = float(values.mean())
    std_dev = float(values.std())            # population standard deviation
    cv = std_dev / mean if mean != 0 else 0.0
    score = round(max(0.0, 100 - cv * 100), 1)

    return CategoryConsistency(
        score=score,
        letter=score_to_letter(score),
        variability=Variability(
            std_dev=round(std_dev, 2),
            coefficient_of_variation=round(cv, 2),
            range=round(float(values.max() - values.min()), 1),
            trend=classify_trend(scores),
        ),
    )


def classify_trend(scores: Sequence[float]) -> Trend:
    """
    Classify a score series by its least-squares slope per swing.

    Needs at least three points; shorter series are stable.
    """
    if len(scores) < TREND_MIN_POINTS:
        return Trend.STABLE

    x = np.arange(len(scores), dtype=float)
    y = np.asarray(scores, dtype=float)
    x_centered = x - x.mean()
    slope = float((x_centered * (y - y.mean())).sum() / (x_centered ** 2).sum())

    if slope > TREND_SLOPE:
        return Trend.IMPROVING
    if slope < -TREND_SLOPE:
        return Trend.DECLINING
    return Trend.STABLE


def _recommend(categories: dict[str, CategoryConsistency]) -> ConsistencyRecommendations:
    low = [name for name, result in categories.items() if result.score < LOW_CONSISTENCY]
    variable = [
        name for name, result in categories.items()
        if result.variability.coefficient_of_variation > HIGH_VARIATION
    ]

    immediate = tuple(
        f"Focus on {name.replace('_', ' ')} consistency - scores vary significantly"
        for name in low
    )
    short_term = tuple(
        f"Practice {name.replace('_', ' ')} drills to reduce variation"
        for name in variable
    )
    long_term: tuple[str, ...] = ()
    if len(low) > STRUCTURAL_LOW_COUNT:
        long_term = (
            "Build a structured practice routine that repeats the same swing thoughts",
            "Consider lessons to stabilize your fundamentals",
        )

    return ConsistencyRecommendations(
        immediate=immediate,
        short_term=short_term,
        long_term=long_term,
    )


def _statistics(overall_scores: Sequence[float]) -> ConsistencyStatistics:
    values = np.asarray(overall_scores, dtype=float)
    mean = float(values.mean())
    std_dev = float(values.std())
    return ConsistencyStatistics(
        total_swings=len(values),
        average_score=round(mean, 1),
        best_score=float(values.max()),
        worst_score=float(values.min()),
        std_dev=round(std_dev, 2),
        coefficient_of_variation=round(std_dev / mean, 2) if mean != 0 else 0.0,
    )
