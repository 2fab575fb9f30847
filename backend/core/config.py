"""
Analysis Configuration

Tunable thresholds for segmentation, grading and the analysis pipeline.

Every service takes its config in the constructor and falls back to these
defaults, so callers only override what they need:

    segmenter = PhaseSegmenter(PhaseDetectionConfig(min_phase_duration=3))
"""

from dataclasses import dataclass, field
from typing import Optional

from .domain.benchmarks import CATEGORY_WEIGHTS, MetricBenchmarks, PROFESSIONAL_BENCHMARKS


@dataclass(frozen=True)
class PhaseDetectionConfig:
    """Phase segmentation thresholds (frame counts, fractions of the sequence, ms units)."""
    min_phase_duration: int = 5
    velocity_threshold: float = 0.0005      # normalized units per ms
    movement_threshold: float = 0.05        # displacement from the first frame
    address_search_frames: int = 30
    address_fallback_frame: int = 10
    top_search_end: float = 0.8
    top_window: int = 2
    impact_search_start: float = 0.4
    impact_fallback: float = 0.7
    impact_window: int = 1
    min_detection_frames: int = 15

    # Confidence heuristic
    base_confidence: float = 0.8
    fallback_confidence: float = 0.5
    visible_landmark_minimum: int = 20
    confidence_penalty: float = 0.1
    confidence_floor: float = 0.1


# Proportional split used when phases cannot be detected:
# Address/Backswing/Top/Downswing/Impact/FollowThrough = 10/30/10/30/5/15
PROPORTIONAL_SPLITS: tuple[float, ...] = (0.10, 0.30, 0.10, 0.30, 0.05, 0.15)


@dataclass(frozen=True)
class MetricsConfig:
    """Minimum frames each category needs, plus the benchmark table and phase settings in use."""
    benchmarks: MetricBenchmarks = PROFESSIONAL_BENCHMARKS
    phase_detection: PhaseDetectionConfig = PhaseDetectionConfig()
    min_frames_tempo: int = 20
    min_frames_rotation: int = 15
    min_frames_weight_transfer: int = 12
    min_frames_swing_plane: int = 10
    min_frames_body_alignment: int = 10

    # Tempo plausibility bounds (seconds)
    max_backswing_time: float = 2.0
    max_downswing_time: float = 0.5
    min_plausible_ratio: float = 1.5
    fallback_tempo_ratio: float = 2.8
    fallback_backswing_time: float = 0.6
    fallback_downswing_time: float = 0.2

    rotation_search_window: int = 5
    rotation_visibility: float = 0.5
    weight_visibility: float = 0.3
    alignment_window: int = 5
    high_quality_frames: int = 50


@dataclass(frozen=True)
class OverrideThresholds:
    """
    Score floors and validation penalties.

    These are empirical values; they are exposed here so they can be
    retuned without touching the grading engine.
    """
    # Validation penalty
    penalty_tiers: tuple[tuple[float, float], ...] = ((50, 10.0), (40, 20.0))
    penalty_default: float = 30.0
    penalty_cap: float = 70.0
    failing_validity_score: float = 30.0
    failing_grade_score: float = 40.0

    # Professional swing detection
    professional_floor: float = 95.0
    indicator_min_poses: int = 20
    indicator_min_phases: int = 2
    indicator_min_category: float = 40.0
    indicator_required: int = 3
    rotation_failure_min_poses: int = 30
    rotation_failure_max_rotation: float = 20.0
    characteristic_min_poses: int = 50
    characteristic_min_phases: int = 3
    characteristic_min_category: float = 60.0
    characteristic_required: int = 2

    # High-quality data
    high_quality_floor: float = 90.0
    high_quality_min_poses: int = 50
    high_quality_min_phases: int = 2

    # Partial professional characteristics
    partial_professional_floor: float = 90.0
    partial_professional_min_score: float = 85.0
    partial_professional_required: int = 3

    # Final safety net
    safety_net_floor: float = 75.0
    safety_net_min_poses: int = 20
    safety_net_min_phases: int = 1
    safety_net_max_raw: float = 70.0


@dataclass(frozen=True)
class GradingConfig:
    weights: dict[str, float] = field(default_factory=lambda: dict(CATEGORY_WEIGHTS))
    overrides: OverrideThresholds = OverrideThresholds()

    # Recommendation thresholds
    immediate_below: float = 70.0
    short_term_below: float = 80.0
    long_term_below: float = 85.0

    # Consistency landmarks (nose, shoulders, hips)
    repeatability_landmarks: tuple[int, ...] = (0, 11, 12, 23, 24)
    smoothness_movement: float = 0.1


@dataclass(frozen=True)
class AnalysisOptions:
    """
    Presentation-level options for the analysis pipeline.

    Attributes:
        frame_skip: Analyze every Nth frame (performance mode when > 1)
        enable_feedback: Ask the feedback generator for coaching prose
        history_size: Swings kept per session for consistency
    """
    frame_skip: int = 1
    enable_feedback: bool = False
    history_size: int = 50
    benchmarks: Optional[MetricBenchmarks] = None
