"""Tests for weighted grading, penalties and score floors."""

import pytest

from core.config import GradingConfig, OverrideThresholds
from core.domain import PhaseSpan, SwingPhase, SwingValidation
from core.domain.analysis import GRADED_CATEGORIES, MetricCategory
from core.domain.benchmarks import (
    CATEGORY_WEIGHTS,
    GRADING_SCALE,
    grade_description,
    score_to_letter,
)
from core.services import GradingEngine, PhaseSegmenter, build_trajectory

from conftest import category_grades, make_still_frames


def grade(frames, validation=None, engine=None):
    engine = engine or GradingEngine()
    phases = PhaseSegmenter().segment(frames)
    return engine.grade_swing(frames, phases, build_trajectory(frames), validation)


def uniform_scores(score):
    return {category: score for category in GRADED_CATEGORIES}


# =============================================================================
# Scale and weights
# =============================================================================

@pytest.mark.parametrize("score, letter", [
    (100, "A+"), (97, "A+"), (96.9, "A"), (93, "A"), (90, "A-"), (87, "B+"),
    (83, "B"), (80, "B-"), (77, "C+"), (73, "C"), (70, "C-"), (67, "D+"),
    (63, "D"), (62.9, "F"), (0, "F"),
])
def test_letter_scale(score, letter):
    assert score_to_letter(score) == letter


def test_scale_has_twelve_levels():
    assert len(GRADING_SCALE) == 12
    assert grade_description("A") == "Excellent - Above professional average"


def test_weights_sum_to_one():
    assert sum(CATEGORY_WEIGHTS.values()) == pytest.approx(1.0)
    assert set(CATEGORY_WEIGHTS) == {category.value for category in GRADED_CATEGORIES}


# =============================================================================
# Full grading
# =============================================================================

def test_minimal_valid_swing(swing_frames):
    result = grade(swing_frames)

    assert result.overall.score > 0
    assert result.data_quality.reliability == "Medium"
    assert result.data_quality.phase_count == 6
    assert set(result.categories) == set(GRADED_CATEGORIES)
    assert result.overall.letter == score_to_letter(result.overall.score)


def test_category_grades_are_bounded_and_lettered(swing_frames):
    result = grade(swing_frames)
    for category_grade in result.categories.values():
        assert 0 <= category_grade.score <= 100
        assert category_grade.letter == score_to_letter(category_grade.score)
    for metric in result.metrics.as_list():
        assert 0 <= metric.score <= 100


def test_raw_score_is_weighted_sum(swing_frames):
    result = grade(swing_frames)
    weighted = sum(
        category_grade.score * CATEGORY_WEIGHTS[category.value]
        for category, category_grade in result.categories.items()
    )
    assert result.emergency_overrides.original_score == pytest.approx(weighted)


def test_valid_swing_floor_never_lowers(swing_frames):
    """Twenty poses over six phases is a professional indicator set."""
    result = grade(swing_frames)
    overrides = result.emergency_overrides

    assert overrides.adjusted_score >= overrides.original_score
    assert result.overall.score == max(95.0, overrides.original_score)


def test_invalid_swing_penalty(swing_frames):
    result = grade(swing_frames, SwingValidation(is_valid=False, score=35))
    overrides = result.emergency_overrides

    assert overrides.applied is True
    assert "Invalid golf swing detected - applying 30% penalty" in overrides.reason
    assert result.overall.score <= 70
    assert overrides.adjusted_score <= overrides.original_score
    assert overrides.adjusted_score == pytest.approx(overrides.original_score * 0.7)


def test_very_low_validity_short_circuits(swing_frames):
    result = grade(swing_frames, SwingValidation(is_valid=False, score=20, errors=("No club motion",)))

    assert result.overall.score == 40
    assert result.overall.letter == "F"
    assert result.overall.description == "Invalid Analysis: Not a valid golf swing"
    assert result.categories == {}
    assert "No club motion" in result.recommendations.immediate
    assert result.emergency_overrides.adjusted_score <= result.emergency_overrides.original_score


def test_degenerate_input_grades_without_raising():
    result = grade(make_still_frames(3))

    assert result.overall.score == 0.0
    assert result.overall.letter == "F"
    assert result.overall.description.startswith("Analysis failed: Invalid metrics calculation")
    assert result.data_quality.reliability == "Low"
    assert result.recommendations.immediate == ("Please try analyzing again",)


def test_empty_input_grades_without_raising():
    result = grade([])
    assert result.overall.score == 0.0
    assert result.data_quality.reliability == "Low"


def test_unexpected_failure_becomes_error_grade(swing_frames):
    class ExplodingCalculator:
        def calculate(self, *args, **kwargs):
            raise RuntimeError("landmark buffer corrupted")

    engine = GradingEngine(metrics_calculator=ExplodingCalculator())
    result = grade(swing_frames, engine=engine)

    assert result.overall.description == "Analysis failed: landmark buffer corrupted"
    assert result.categories == {}


def test_missing_phases_are_substituted(swing_frames):
    """Grading works when the caller supplies only some phases."""
    phases = [
        PhaseSpan(SwingPhase.ADDRESS, 0, 5, 0.0, 166.7, 0.8),
        PhaseSpan(SwingPhase.IMPACT, 24, 25, 800.0, 833.3, 0.8),
    ]
    result = GradingEngine().grade_swing(swing_frames, phases)

    assert result.data_quality.phase_count == 2
    assert set(result.categories) == set(GRADED_CATEGORIES)


def test_recommendations_target_weakest_categories(swing_frames):
    result = grade(swing_frames)
    weakest = min(result.categories.values(), key=lambda category_grade: category_grade.score)

    if weakest.score < 70:
        assert len(result.recommendations.immediate) == 2
    if any(category_grade.score < 85 for category_grade in result.categories.values()):
        assert len(result.recommendations.long_term) == 3


# =============================================================================
# Validation penalty
# =============================================================================

@pytest.mark.parametrize("validity, penalty", [(55, 10), (50, 10), (45, 20), (40, 20), (35, 30)])
def test_penalty_tiers(validity, penalty):
    overrides = GradingEngine().apply_validation_penalty(60.0, SwingValidation(False, validity))

    assert overrides.adjusted_score == pytest.approx(60.0 * (100 - penalty) / 100)
    assert f"applying {penalty}% penalty" in overrides.reason


def test_penalty_caps_at_70():
    overrides = GradingEngine().apply_validation_penalty(95.0, SwingValidation(False, 60))

    assert overrides.adjusted_score == 70.0
    assert overrides.reason.endswith("Maximum score capped to 70")


@pytest.mark.parametrize("raw", [0.0, 25.0, 69.9, 70.0, 88.0, 100.0])
@pytest.mark.parametrize("validity", [30, 39, 49, 90])
def test_penalty_never_raises(raw, validity):
    overrides = GradingEngine().apply_validation_penalty(raw, SwingValidation(False, validity))
    assert overrides.adjusted_score <= raw


# =============================================================================
# Safety net
# =============================================================================

def test_no_override_for_thin_data():
    engine = GradingEngine()
    overrides = engine.apply_safety_net(50.0, category_grades(uniform_scores(30.0)), 10, 1)

    assert overrides.applied is False
    assert overrides.adjusted_score == 50.0
    assert overrides.reason == "No overrides applied"


def test_safety_net_floor():
    engine = GradingEngine()
    overrides = engine.apply_safety_net(30.0, category_grades(uniform_scores(30.0)), 25, 1)

    assert overrides.applied is True
    assert overrides.adjusted_score == 75.0
    assert overrides.reason.startswith("Safety net")


def test_professional_floor():
    engine = GradingEngine()
    overrides = engine.apply_safety_net(60.0, category_grades(uniform_scores(50.0)), 60, 6)

    assert overrides.adjusted_score == 95.0
    assert overrides.reason == "Professional swing characteristics detected"


def test_high_quality_floor():
    engine = GradingEngine()
    overrides = engine.apply_safety_net(60.0, category_grades(uniform_scores(0.0)), 60, 2)

    assert overrides.adjusted_score == 90.0
    assert overrides.reason == "High-quality swing data detected"


def test_partial_professional_floor():
    scores = uniform_scores(0.0)
    scores[MetricCategory.SWING_PLANE] = 90.0
    scores[MetricCategory.POWER] = 90.0
    scores[MetricCategory.CONSISTENCY] = 90.0
    overrides = GradingEngine().apply_safety_net(60.0, category_grades(scores), 10, 1)

    assert overrides.adjusted_score == 90.0
    assert overrides.reason == "Partial professional characteristics detected"


def test_rotation_failure_counts_as_professional():
    scores = uniform_scores(0.0)
    scores[MetricCategory.TEMPO] = 45.0
    scores[MetricCategory.BALANCE] = 45.0
    scores[MetricCategory.ROTATION] = 10.0
    engine = GradingEngine()

    assert engine.detect_professional_swing(30, 2, scores) is True
    assert engine.detect_professional_swing(29, 2, scores) is True  # indicator route
    assert engine.detect_professional_swing(10, 1, uniform_scores(0.0)) is False


def test_floors_never_lower_a_high_score():
    overrides = GradingEngine().apply_safety_net(98.0, category_grades(uniform_scores(98.0)), 120, 6)

    assert overrides.adjusted_score == 98.0
    assert overrides.applied is False


@pytest.mark.parametrize("raw", [0.0, 40.0, 69.0, 74.0, 89.0, 96.0])
@pytest.mark.parametrize("pose_count, phase_count", [(5, 1), (25, 1), (25, 3), (60, 2), (150, 6)])
@pytest.mark.parametrize("category_score", [0.0, 45.0, 88.0])
def test_safety_net_is_monotone(raw, pose_count, phase_count, category_score):
    overrides = GradingEngine().apply_safety_net(
        raw, category_grades(uniform_scores(category_score)), pose_count, phase_count
    )
    assert overrides.adjusted_score >= overrides.original_score == raw


def test_override_thresholds_are_configurable():
    config = GradingConfig(overrides=OverrideThresholds(safety_net_floor=80.0))
    engine = GradingEngine(config)
    overrides = engine.apply_safety_net(30.0, category_grades(uniform_scores(30.0)), 25, 1)

    assert overrides.adjusted_score == 80.0


# =============================================================================
# Data quality
# =============================================================================

@pytest.mark.parametrize("pose_count, phase_count, reliability, quality", [
    (100, 4, "High", 90.0),
    (99, 4, "Medium", 70.0),
    (50, 3, "Medium", 70.0),
    (20, 2, "Medium", 50.0),
    (19, 6, "Low", 30.0),
    (200, 1, "Low", 30.0),
])
def test_data_quality(pose_count, phase_count, reliability, quality):
    result = GradingEngine.assess_data_quality(pose_count, phase_count)
    assert result.reliability == reliability
    assert result.quality_score == quality
