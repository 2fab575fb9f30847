"""
Metrics Calculator Service

Per-category biomechanical measurements computed from phase boundaries
and landmarks, each scored against a {min, ideal, max} benchmark.

Categories with too few frames return a zero metric instead of raising.
Rotation and weight transfer try an ordered list of estimators and keep
the first plausible result, so a failed geometric measurement never
surfaces as an impossible 0 degree turn.
"""

import logging
import math
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

import numpy as np

from ..config import MetricsConfig, PhaseDetectionConfig
from ..domain.analysis import (
    BodyAlignmentMetric,
    MetricCategory,
    PhaseSpan,
    RotationMetric,
    SwingMetrics,
    SwingPhase,
    SwingPlaneMetric,
    TempoMetric,
    WeightTransferMetric,
)
from ..domain.benchmarks import BenchmarkRange, NORMALIZED_UNIT_TO_INCHES
from ..domain.pose import BodyPart, PoseFrame, SwingTrajectory
from .angle_calculator import AngleCalculator
from .phase_segmenter import find_phase
from .trajectory import build_trajectory

logger = logging.getLogger(__name__)


class InvalidMetricsCalculation(ValueError):
    """Raised when computed metrics fail the cross-category sanity check."""

    def __init__(self, errors: Sequence[str]):
        self.errors = list(errors)
        super().__init__(f"Invalid metrics calculation: {'; '.join(self.errors)}")


# =============================================================================
# Benchmark Scoring
# =============================================================================

def score_metric(value: float, benchmark: BenchmarkRange) -> float:
    """
    Score a raw value against a benchmark band.

    Three tiers:
    - inside [min, max]: 85-100, highest at the ideal
    - outside the band: 60-85, decaying twice as fast
    - zero where the band minimum is positive (or NaN): 0

    Example:
        >>> score_metric(90, BenchmarkRange(85, 90, 95))
        100.0
    """
    if value is None or math.isnan(value):
        return 0.0
    if value == 0 and benchmark.min > 0:
        return 0.0

    if benchmark.contains(value):
        spread = max(benchmark.ideal - benchmark.min, benchmark.max - benchmark.ideal)
        if spread <= 0:
            return 100.0
        score = 100 - 15 * abs(value - benchmark.ideal) / spread
        return float(np.clip(max(85.0, score), 0, 100))

    if value < benchmark.min:
        spread = benchmark.ideal - benchmark.min
        deviation = benchmark.min - value
    else:
        spread = benchmark.max - benchmark.ideal
        deviation = value - benchmark.max

    if spread <= 0:
        return 60.0
    score = 85 - 30 * deviation / spread
    return float(np.clip(max(60.0, score), 0, 100))


def _mean_score(*scores: float) -> float:
    return round(sum(scores) / len(scores), 1)


# =============================================================================
# Metric Context
# =============================================================================

@dataclass(frozen=True)
class MetricContext:
    """Inputs shared by every category calculation."""
    frames: Sequence[PoseFrame]
    phases: Sequence[PhaseSpan]
    trajectory: SwingTrajectory
    fallback_confidence: float = PhaseDetectionConfig.fallback_confidence

    @classmethod
    def build(
        cls,
        frames: Sequence[PoseFrame],
        phases: Sequence[PhaseSpan],
        trajectory: Optional[SwingTrajectory] = None,
        fallback_confidence: float = PhaseDetectionConfig.fallback_confidence,
    ) -> "MetricContext":
        if trajectory is None or len(trajectory) != len(frames):
            trajectory = build_trajectory(frames)
        return cls(
            frames=frames,
            phases=phases,
            trajectory=trajectory,
            fallback_confidence=fallback_confidence,
        )

    @property
    def frame_count(self) -> int:
        return len(self.frames)

    def phase(self, phase: SwingPhase) -> PhaseSpan:
        return find_phase(self.phases, phase, self.frames, self.fallback_confidence)

    def frame_at(self, index: int) -> PoseFrame:
        return self.frames[min(max(index, 0), len(self.frames) - 1)]


def _find_visible_frame(
    frames: Sequence[PoseFrame],
    target: int,
    window: int,
    parts: Sequence[BodyPart],
    threshold: float,
) -> Optional[PoseFrame]:
    """Nearest frame to target (within window) where all parts are visible."""
    for offset in range(window + 1):
        for index in ((target,) if offset == 0 else (target + offset, target - offset)):
            if 0 <= index < len(frames):
                frame = frames[index]
                if all(frame.get_visible_landmark(part, threshold) for part in parts):
                    return frame
    return None


def _hip_center(frame: PoseFrame, threshold: float = 0.0) -> Optional[tuple[float, float]]:
    left = frame.get_visible_landmark(BodyPart.LEFT_HIP, threshold)
    right = frame.get_visible_landmark(BodyPart.RIGHT_HIP, threshold)
    return AngleCalculator.calculate_midpoint(left, right)


def _plausible(*values: float) -> bool:
    return all(round(value, 1) > 0 for value in values)


# =============================================================================
# Rotation Estimators
# =============================================================================

RotationEstimate = tuple[float, float]          # (shoulder turn, hip turn)
RotationEstimator = Callable[[MetricContext, MetricsConfig], Optional[RotationEstimate]]

_ROTATION_PARTS = (
    BodyPart.LEFT_SHOULDER,
    BodyPart.RIGHT_SHOULDER,
    BodyPart.LEFT_HIP,
    BodyPart.RIGHT_HIP,
)


def rotation_from_line_angles(ctx: MetricContext, config: MetricsConfig) -> Optional[RotationEstimate]:
    """Change in shoulder-line and hip-line orientation from address to the top."""
    address_index = ctx.phase(SwingPhase.ADDRESS).start_frame
    top_index = ctx.phase(SwingPhase.TOP).center_frame

    address = _find_visible_frame(
        ctx.frames, address_index, config.rotation_search_window,
        _ROTATION_PARTS, config.rotation_visibility,
    )
    top = _find_visible_frame(
        ctx.frames, top_index, config.rotation_search_window,
        _ROTATION_PARTS, config.rotation_visibility,
    )
    if address is None or top is None:
        return None

    def line(frame: PoseFrame, left: BodyPart, right: BodyPart) -> float:
        return AngleCalculator.line_angle(frame.get_landmark(left), frame.get_landmark(right))

    shoulder_turn = AngleCalculator.angle_difference(
        line(address, BodyPart.LEFT_SHOULDER, BodyPart.RIGHT_SHOULDER),
        line(top, BodyPart.LEFT_SHOULDER, BodyPart.RIGHT_SHOULDER),
    )
    hip_turn = AngleCalculator.angle_difference(
        line(address, BodyPart.LEFT_HIP, BodyPart.RIGHT_HIP),
        line(top, BodyPart.LEFT_HIP, BodyPart.RIGHT_HIP),
    )
    return min(shoulder_turn, 180.0), min(hip_turn, 90.0)


def rotation_from_displacement(ctx: MetricContext, config: MetricsConfig) -> Optional[RotationEstimate]:
    """
    Estimate turn from average frame-to-frame trail shoulder and hip movement.

    Results are floored at 30/20 degrees for long clean sequences and
    15/10 degrees otherwise.
    """
    if ctx.frame_count < 10:
        return None

    shoulder_moves = []
    hip_moves = []
    for previous, current in zip(ctx.frames, ctx.frames[1:]):
        moves = (
            AngleCalculator.calculate_distance(
                previous.get_landmark(BodyPart.RIGHT_SHOULDER),
                current.get_landmark(BodyPart.RIGHT_SHOULDER),
            ),
            AngleCalculator.calculate_distance(
                previous.get_landmark(BodyPart.RIGHT_HIP),
                current.get_landmark(BodyPart.RIGHT_HIP),
            ),
        )
        if None not in moves:
            shoulder_moves.append(moves[0])
            hip_moves.append(moves[1])

    if not shoulder_moves:
        return None

    shoulder_turn = min(90.0, float(np.mean(shoulder_moves)) * 1000)
    hip_turn = min(50.0, float(np.mean(hip_moves)) * 800)

    if len(shoulder_moves) > 100:
        shoulder_floor, hip_floor = 30.0, 20.0
    else:
        shoulder_floor, hip_floor = 15.0, 10.0
    return max(shoulder_turn, shoulder_floor), max(hip_turn, hip_floor)


def rotation_floor(ctx: MetricContext, config: MetricsConfig) -> Optional[RotationEstimate]:
    """Last resort when no landmarks are usable."""
    return 30.0, 20.0


ROTATION_ESTIMATORS: tuple[tuple[str, RotationEstimator], ...] = (
    ("line_angle", rotation_from_line_angles),
    ("displacement", rotation_from_displacement),
    ("floor", rotation_floor),
)


# =============================================================================
# Weight Transfer Estimators
# =============================================================================

WeightEstimate = tuple[float, float, float]     # (backswing, impact, finish)
WeightEstimator = Callable[[MetricContext, MetricsConfig], Optional[WeightEstimate]]


def _key_frames(ctx: MetricContext) -> tuple[int, int, int, int]:
    """Address, top, impact and finish frame indices."""
    return (
        ctx.phase(SwingPhase.ADDRESS).start_frame,
        ctx.phase(SwingPhase.TOP).center_frame,
        ctx.phase(SwingPhase.IMPACT).start_frame,
        ctx.phase(SwingPhase.FOLLOW_THROUGH).end_frame,
    )


def _trail_percentage(frame: PoseFrame, threshold: float) -> float:
    """
    Percent of weight on the trail (right) foot.

    The hip centre's horizontal offset from the centre of the stance
    moves weight toward that foot. Unreadable frames count as balanced.
    """
    left_ankle, right_ankle = frame.ankles
    left_hip, right_hip = frame.hips
    landmarks = (left_ankle, right_ankle, left_hip, right_hip)
    if any(lm is None or not lm.is_visible(threshold) for lm in landmarks):
        return 50.0

    stance_center = (left_ankle.x + right_ankle.x) / 2
    hip_center = (left_hip.x + right_hip.x) / 2
    return float(np.clip(50 + (hip_center - stance_center) * 100, 20, 80))


def weight_from_hip_offset(ctx: MetricContext, config: MetricsConfig) -> Optional[WeightEstimate]:
    _, top, impact, finish = _key_frames(ctx)
    threshold = config.weight_visibility

    backswing = _trail_percentage(ctx.frame_at(top), threshold)
    impact_lead = 100 - _trail_percentage(ctx.frame_at(impact), threshold)
    finish_lead = 100 - _trail_percentage(ctx.frame_at(finish), threshold)

    triad = (backswing, impact_lead, finish_lead)
    if all(value == 50 for value in triad) or all(value == 0 for value in triad):
        return None
    return triad


def weight_conservative_defaults(ctx: MetricContext, config: MetricsConfig) -> Optional[WeightEstimate]:
    """Defaults for long sequences where detection still failed."""
    if ctx.frame_count > config.high_quality_frames:
        return 70.0, 75.0, 85.0
    return None


def weight_from_hip_height(ctx: MetricContext, config: MetricsConfig) -> Optional[WeightEstimate]:
    """Estimate from vertical hip-centre movement relative to address."""
    address, top, impact, finish = _key_frames(ctx)
    centers = [_hip_center(ctx.frame_at(index)) for index in (address, top, impact, finish)]
    if any(center is None for center in centers):
        return None

    address_y = centers[0][1]
    return tuple(
        float(np.clip(60 + (center[1] - address_y) * 100, 20, 80))
        for center in centers[1:]
    )


def weight_literature_defaults(ctx: MetricContext, config: MetricsConfig) -> Optional[WeightEstimate]:
    return 70.0, 80.0, 85.0


WEIGHT_TRANSFER_ESTIMATORS: tuple[tuple[str, WeightEstimator], ...] = (
    ("hip_offset", weight_from_hip_offset),
    ("conservative_defaults", weight_conservative_defaults),
    ("hip_height", weight_from_hip_height),
    ("literature_defaults", weight_literature_defaults),
)


# =============================================================================
# Calculator
# =============================================================================

class MetricsCalculator:
    """
    Computes the five measured categories for a segmented swing.

    Usage:
        calculator = MetricsCalculator()
        metrics = calculator.calculate(frames, phases, trajectory)
        print(metrics.rotation.shoulder_turn)
    """

    def __init__(
        self,
        config: Optional[MetricsConfig] = None,
        rotation_estimators: Sequence[tuple[str, RotationEstimator]] = ROTATION_ESTIMATORS,
        weight_estimators: Sequence[tuple[str, WeightEstimator]] = WEIGHT_TRANSFER_ESTIMATORS,
    ):
        self.config = config or MetricsConfig()
        self.benchmarks = self.config.benchmarks
        self.rotation_estimators = list(rotation_estimators)
        self.weight_estimators = list(weight_estimators)

    # -------------------------------------------------------------------------
    # Main Entry Point
    # -------------------------------------------------------------------------

    def calculate(
        self,
        frames: Sequence[PoseFrame],
        phases: Sequence[PhaseSpan],
        trajectory: Optional[SwingTrajectory] = None,
        validate: bool = True,
    ) -> SwingMetrics:
        """
        Calculate every category metric.

        Args:
            frames: Pose frames in temporal order
            phases: Phase spans from the segmenter
            trajectory: Pre-built trajectory (built from frames if omitted)
            validate: Run the cross-category check afterwards

        Returns:
            SwingMetrics with one metric per category

        Raises:
            InvalidMetricsCalculation: If validate is set and a category
                did not have enough frames or produced an invalid score
        """
        ctx = MetricContext.build(
            frames, phases, trajectory,
            fallback_confidence=self.config.phase_detection.fallback_confidence,
        )

        metrics = SwingMetrics(
            tempo=self.calculate_tempo(ctx),
            rotation=self.calculate_rotation(ctx),
            weight_transfer=self.calculate_weight_transfer(ctx),
            swing_plane=self.calculate_swing_plane(ctx),
            body_alignment=self.calculate_body_alignment(ctx),
            frame_count=ctx.frame_count,
        )

        if validate:
            self.validate(metrics)
        return metrics

    def validate(self, metrics: SwingMetrics) -> None:
        """Cross-check minimum frame counts and score bounds for every category."""
        errors = []
        for category, minimum in self._minimum_frames().items():
            if metrics.frame_count < minimum:
                errors.append(
                    f"{category.value} requires at least {minimum} frames, "
                    f"got {metrics.frame_count}"
                )

        for metric in metrics.as_list():
            if math.isnan(metric.score) or not 0 <= metric.score <= 100:
                errors.append(f"{metric.category.value} score out of range: {metric.score}")

        if errors:
            raise InvalidMetricsCalculation(errors)

    def _minimum_frames(self) -> dict[MetricCategory, int]:
        return {
            MetricCategory.TEMPO: self.config.min_frames_tempo,
            MetricCategory.ROTATION: self.config.min_frames_rotation,
            MetricCategory.WEIGHT_TRANSFER: self.config.min_frames_weight_transfer,
            MetricCategory.SWING_PLANE: self.config.min_frames_swing_plane,
            MetricCategory.BODY_ALIGNMENT: self.config.min_frames_body_alignment,
        }

    def _has_enough_frames(self, ctx: MetricContext, category: MetricCategory) -> bool:
        minimum = self._minimum_frames()[category]
        if ctx.frame_count < minimum:
            logger.debug(
                f"{category.value}: {ctx.frame_count} frames, need {minimum}; returning zero metric"
            )
            return False
        return True

    # -------------------------------------------------------------------------
    # Tempo
    # -------------------------------------------------------------------------

    def calculate_tempo(self, ctx: MetricContext) -> TempoMetric:
        """Backswing and downswing durations and their ratio (ideal about 3:1)."""
        if not self._has_enough_frames(ctx, MetricCategory.TEMPO):
            return TempoMetric()

        cfg = self.config
        backswing = min(ctx.phase(SwingPhase.BACKSWING).duration / 1000, cfg.max_backswing_time)
        downswing = min(ctx.phase(SwingPhase.DOWNSWING).duration / 1000, cfg.max_downswing_time)
        backswing = max(backswing, 0.0)
        downswing = max(downswing, 0.0)

        ratio = backswing / (downswing or 0.001)
        ratio = float(np.clip(ratio, 1.0, 10.0))

        if ratio < cfg.min_plausible_ratio:
            logger.debug(f"Tempo ratio {ratio:.2f} implausible, using fallback ratio")
            ratio = cfg.fallback_tempo_ratio
            backswing = max(cfg.fallback_backswing_time, backswing)
            downswing = max(cfg.fallback_downswing_time, downswing)

        bench = self.benchmarks.tempo
        return TempoMetric(
            backswing_time=round(backswing, 2),
            downswing_time=round(downswing, 2),
            tempo_ratio=round(ratio, 1),
            score=_mean_score(
                score_metric(backswing, bench.backswing_time),
                score_metric(downswing, bench.downswing_time),
                score_metric(ratio, bench.tempo_ratio),
            ),
        )

    # -------------------------------------------------------------------------
    # Rotation
    # -------------------------------------------------------------------------

    def calculate_rotation(self, ctx: MetricContext) -> RotationMetric:
        """Shoulder turn, hip turn and X-factor at the top of the backswing."""
        if not self._has_enough_frames(ctx, MetricCategory.ROTATION):
            return RotationMetric()

        for name, estimator in self.rotation_estimators:
            estimate = estimator(ctx, self.config)
            if estimate is not None and _plausible(*estimate):
                break
            logger.debug(f"Rotation estimator '{name}' gave no plausible value")
        else:
            return RotationMetric()

        if name != self.rotation_estimators[0][0]:
            logger.info(f"Rotation measured with fallback estimator '{name}'")

        shoulder_turn, hip_turn = (round(value, 1) for value in estimate)
        x_factor = round(abs(shoulder_turn - hip_turn), 1)

        bench = self.benchmarks.rotation
        return RotationMetric(
            shoulder_turn=shoulder_turn,
            hip_turn=hip_turn,
            x_factor=x_factor,
            score=_mean_score(
                score_metric(shoulder_turn, bench.shoulder_turn),
                score_metric(hip_turn, bench.hip_turn),
                score_metric(x_factor, bench.x_factor),
            ),
            estimator=name,
        )

    # -------------------------------------------------------------------------
    # Weight Transfer
    # -------------------------------------------------------------------------

    def calculate_weight_transfer(self, ctx: MetricContext) -> WeightTransferMetric:
        """Weight distribution at the top, impact and finish."""
        if not self._has_enough_frames(ctx, MetricCategory.WEIGHT_TRANSFER):
            return WeightTransferMetric()

        for name, estimator in self.weight_estimators:
            estimate = estimator(ctx, self.config)
            if estimate is not None:
                break
        else:
            return WeightTransferMetric()

        if name != self.weight_estimators[0][0]:
            logger.info(f"Weight transfer measured with fallback estimator '{name}'")

        backswing, impact, finish = (
            round(float(np.clip(value, 20, 80)), 1) for value in estimate
        )

        bench = self.benchmarks.weight_transfer
        return WeightTransferMetric(
            backswing=backswing,
            impact=impact,
            finish=finish,
            score=_mean_score(
                score_metric(backswing, bench.backswing),
                score_metric(impact, bench.impact),
                score_metric(finish, bench.finish),
            ),
            estimator=name,
        )

    # -------------------------------------------------------------------------
    # Swing Plane
    # -------------------------------------------------------------------------

    def calculate_swing_plane(self, ctx: MetricContext) -> SwingPlaneMetric:
        """Shaft angle at impact and average path turning across the swing."""
        if not self._has_enough_frames(ctx, MetricCategory.SWING_PLANE):
            return SwingPlaneMetric()

        wrist = ctx.trajectory.right_wrist
        if len(wrist) < 2:
            return SwingPlaneMetric()

        impact = min(ctx.phase(SwingPhase.IMPACT).start_frame, len(wrist) - 1)
        if impact == 0:
            start, end = wrist[0], wrist[1]
        else:
            start, end = wrist[impact - 1], wrist[impact]

        shaft_angle = abs(90 - math.degrees(math.atan2(end.y - start.y, end.x - start.x)))
        if shaft_angle > 180:
            shaft_angle = 360 - shaft_angle

        segment_angles = [
            AngleCalculator.line_angle(a, b)
            for a, b in zip(wrist, wrist[1:])
            if (a.x, a.y) != (b.x, b.y)
        ]
        turns = [
            AngleCalculator.angle_difference(first, second)
            for first, second in zip(segment_angles, segment_angles[1:])
        ]
        plane_deviation = float(np.mean(turns)) if len(wrist) >= 3 and turns else 0.0

        bench = self.benchmarks.swing_plane
        return SwingPlaneMetric(
            shaft_angle=round(shaft_angle, 1),
            plane_deviation=round(plane_deviation, 1),
            score=_mean_score(
                score_metric(shaft_angle, bench.shaft_angle),
                score_metric(plane_deviation, bench.plane_deviation),
            ),
        )

    # -------------------------------------------------------------------------
    # Body Alignment
    # -------------------------------------------------------------------------

    def calculate_body_alignment(self, ctx: MetricContext) -> BodyAlignmentMetric:
        """Spine tilt and knee flex at address, plus head movement over the swing."""
        if not self._has_enough_frames(ctx, MetricCategory.BODY_ALIGNMENT):
            return BodyAlignmentMetric()

        start = ctx.phase(SwingPhase.ADDRESS).start_frame
        window = ctx.frames[start:start + self.config.alignment_window]

        spine_angles = [
            angle for angle in (AngleCalculator.calculate_spine_angle(f) for f in window)
            if angle is not None
        ]
        knee_flexes = []
        for frame in window:
            flex = AngleCalculator.calculate_knee_flex(frame, "right")
            if flex is None:
                flex = AngleCalculator.calculate_knee_flex(frame, "left")
            if flex is not None:
                knee_flexes.append(flex)

        head_moves = [
            AngleCalculator.calculate_distance(
                previous.get_landmark(BodyPart.NOSE),
                current.get_landmark(BodyPart.NOSE),
            )
            for previous, current in zip(ctx.frames, ctx.frames[1:])
        ]
        head_moves = [move for move in head_moves if move is not None]

        spine_angle = float(np.mean(spine_angles)) if spine_angles else 0.0
        knee_flex = float(np.mean(knee_flexes)) if knee_flexes else 0.0
        head_movement = max(head_moves, default=0.0) * NORMALIZED_UNIT_TO_INCHES

        bench = self.benchmarks.body_alignment
        return BodyAlignmentMetric(
            spine_angle=round(spine_angle, 1),
            head_movement=round(head_movement, 2),
            knee_flex=round(knee_flex, 1),
            score=_mean_score(
                score_metric(spine_angle, bench.spine_angle),
                score_metric(head_movement, bench.head_movement),
                score_metric(knee_flex, bench.knee_flex),
            ),
        )
