"""Tests for the end-to-end analysis pipeline."""

import pytest

from core.config import AnalysisOptions, PhaseDetectionConfig
from core.domain import GolfClub, PHASE_ORDER, SwingPhase
from core.services import SwingAnalyzer, SwingSession

from conftest import make_still_frames


class CannedFeedback:
    def __init__(self):
        self.calls = 0

    def generate(self, analysis):
        self.calls += 1
        return f"Nice {analysis.club.value} swing"


class BrokenFeedback:
    def generate(self, analysis):
        raise ConnectionError("feedback service unavailable")


def test_analyze_frames(swing_frames):
    result = SwingAnalyzer().analyze_frames(swing_frames, club=GolfClub.DRIVER)

    assert result.frame_count == 30
    assert result.duration_ms == pytest.approx(swing_frames[-1].timestamp_ms)
    assert [span.phase for span in result.phases] == list(PHASE_ORDER)
    assert result.grade is not None
    assert result.consistency is None
    assert result.session_id is None
    assert result.feedback is None
    assert "driver" in result.summary


def test_key_frames_are_phase_starts(swing_frames):
    result = SwingAnalyzer().analyze_frames(swing_frames)

    assert result.key_frames[SwingPhase.ADDRESS] == 0
    assert result.key_frames[SwingPhase.IMPACT] == result.get_phase(SwingPhase.IMPACT).start_frame


def test_empty_input_is_rejected():
    with pytest.raises(ValueError):
        SwingAnalyzer().analyze_frames([])


def test_frame_skip_thins_the_sequence(swing_frames):
    result = SwingAnalyzer(AnalysisOptions(frame_skip=2)).analyze_frames(swing_frames)
    assert result.frame_count == 15


def test_session_records_each_swing(swing_frames):
    analyzer = SwingAnalyzer()
    session = SwingSession("lesson")

    first = analyzer.analyze_frames(swing_frames, session=session)
    assert first.session_id == "lesson"
    assert first.swing_id is not None
    assert first.consistency.has_sufficient_data is False

    second = analyzer.analyze_frames(swing_frames, session=session)
    assert second.swing_id != first.swing_id
    assert second.consistency.has_sufficient_data is True
    assert second.consistency.statistics.total_swings == 2
    assert session.compare(second.swing_id).verdict == "similar"


def test_degenerate_swing_still_produces_analysis():
    result = SwingAnalyzer().analyze_frames(make_still_frames(3))

    assert result.grade.overall.score == 0.0
    assert "could not be fully graded" in result.summary


def test_feedback_generator_is_used_when_enabled(swing_frames):
    feedback = CannedFeedback()
    analyzer = SwingAnalyzer(AnalysisOptions(enable_feedback=True), feedback_generator=feedback)

    result = analyzer.analyze_frames(swing_frames, club=GolfClub.IRON_7)
    assert result.feedback == "Nice iron_7 swing"
    assert feedback.calls == 1


def test_feedback_generator_is_skipped_when_disabled(swing_frames):
    feedback = CannedFeedback()
    result = SwingAnalyzer(feedback_generator=feedback).analyze_frames(swing_frames)

    assert result.feedback is None
    assert feedback.calls == 0


def test_feedback_failure_only_loses_the_text(swing_frames):
    analyzer = SwingAnalyzer(AnalysisOptions(enable_feedback=True), feedback_generator=BrokenFeedback())
    result = analyzer.analyze_frames(swing_frames)

    assert result.feedback is None
    assert result.grade.overall.score > 0


def test_phase_config_reaches_grading_lookups():
    """Phases substituted during grading carry the analyzer's fallback confidence."""
    analyzer = SwingAnalyzer(phase_config=PhaseDetectionConfig(fallback_confidence=0.3))
    metrics_config = analyzer.grading_engine.metrics_calculator.config

    assert metrics_config.phase_detection.fallback_confidence == 0.3
    assert metrics_config.phase_detection is analyzer.segmenter.config
