"""
Swing Analyzer Service

High-level service that runs the full pipeline on a pose sequence:
trajectory -> phases -> metrics and grade -> session consistency.

This is the main entry point for analyzing golf swings.
"""

import logging
import uuid
from dataclasses import replace
from datetime import datetime
from typing import List, Optional, Protocol, Sequence

from ..config import AnalysisOptions, MetricsConfig, PhaseDetectionConfig, GradingConfig
from ..domain.analysis import (
    ComprehensiveGrade,
    GolfClub,
    SwingAnalysis,
    SwingValidation,
)
from ..domain.pose import PoseFrame
from .grading_engine import CATEGORY_LABELS, GradingEngine
from .metrics_calculator import MetricsCalculator
from .phase_segmenter import PhaseSegmenter
from .session import SwingSession
from .trajectory import build_trajectory

logger = logging.getLogger(__name__)


class FeedbackGenerator(Protocol):
    """Produces coaching prose for a finished analysis (e.g. a language model client)."""

    def generate(self, analysis: SwingAnalysis) -> str:
        ...


class SwingAnalyzer:
    """
    Analyzes golf swings from pose frame sequences.

    This service:
    1. Builds wrist/shoulder/hip trajectories
    2. Segments the swing into six phases
    3. Calculates metrics and grades the swing
    4. Records the grade in the session and measures consistency
    5. Writes a summary (and optional generated feedback)

    Usage:
        analyzer = SwingAnalyzer()
        session = SwingSession()

        result = analyzer.analyze_frames(frames, club=GolfClub.DRIVER, session=session)
        print(f"Overall score: {result.grade.overall.score:.0f}")
    """

    def __init__(
        self,
        options: Optional[AnalysisOptions] = None,
        phase_config: Optional[PhaseDetectionConfig] = None,
        grading_config: Optional[GradingConfig] = None,
        feedback_generator: Optional[FeedbackGenerator] = None,
    ):
        """Initialize the swing analyzer."""
        self.options = options or AnalysisOptions()
        self.segmenter = PhaseSegmenter(phase_config)

        metrics_config = MetricsConfig(phase_detection=self.segmenter.config)
        if self.options.benchmarks is not None:
            metrics_config = replace(metrics_config, benchmarks=self.options.benchmarks)
        self.grading_engine = GradingEngine(
            grading_config,
            metrics_calculator=MetricsCalculator(metrics_config),
        )
        self.feedback_generator = feedback_generator

    # -------------------------------------------------------------------------
    # Main Analysis Method
    # -------------------------------------------------------------------------

    def analyze_frames(
        self,
        frames: Sequence[PoseFrame],
        club: GolfClub = GolfClub.IRON_7,
        session: Optional[SwingSession] = None,
        validation: Optional[SwingValidation] = None,
    ) -> SwingAnalysis:
        """
        Analyze a golf swing from pre-detected pose frames.

        Args:
            frames: List of PoseFrame objects in temporal order
            club: Type of golf club
            session: Session to record the grade in (enables consistency)
            validation: Verdict of the external swing-validity checker

        Returns:
            Complete SwingAnalysis
        """
        if not frames:
            raise ValueError("No frames to analyze")

        frame_skip = max(1, self.options.frame_skip)
        frames = list(frames)[::frame_skip]

        trajectory = build_trajectory(frames)
        phases = self.segmenter.segment(frames, trajectory)
        grade = self.grading_engine.grade_swing(frames, phases, trajectory, validation)

        analysis = SwingAnalysis(
            id=str(uuid.uuid4()),
            timestamp=datetime.now(),
            frame_count=len(frames),
            duration_ms=float(frames[-1].timestamp_ms - frames[0].timestamp_ms),
            club=club,
            phases=phases,
            grade=grade,
            summary=self._generate_summary(grade, club),
        )

        if session is not None:
            entry = session.record(grade)
            analysis.session_id = session.session_id
            analysis.swing_id = entry.id
            analysis.consistency = session.consistency()

        if self.options.enable_feedback and self.feedback_generator is not None:
            analysis.feedback = self._generate_feedback(analysis)

        logger.info(
            f"Analyzed {len(frames)} frames: {grade.overall.letter} "
            f"({grade.overall.score:.1f})"
        )
        return analysis

    # -------------------------------------------------------------------------
    # Coaching Text
    # -------------------------------------------------------------------------

    def _generate_feedback(self, analysis: SwingAnalysis) -> Optional[str]:
        """Ask the feedback generator for prose; failures only lose the text."""
        try:
            return self.feedback_generator.generate(analysis)
        except Exception as e:
            logger.warning(f"Feedback generation failed: {e}")
            return None

    def _generate_summary(self, grade: ComprehensiveGrade, club: GolfClub) -> str:
        """Generate a text summary of the analysis."""
        score = grade.overall.score
        if not grade.categories:
            return f"Your {club.value} swing could not be fully graded. {grade.overall.description}."

        if score >= 85:
            quality = "excellent"
        elif score >= 70:
            quality = "good"
        elif score >= 55:
            quality = "developing"
        else:
            quality = "needs work"

        weak: List[str] = [
            CATEGORY_LABELS[category][0].lower()
            for category, category_grade in grade.categories.items()
            if category_grade.score < 70
        ]

        summary = f"Your {club.value} swing scored {score:.0f}/100 ({grade.overall.letter}) - {quality}. "

        if weak:
            summary += f"Focus on improving: {', '.join(weak)}. "
        else:
            summary += "Every category of your swing is solid. "

        summary += "Keep practicing to build consistency!"

        return summary
