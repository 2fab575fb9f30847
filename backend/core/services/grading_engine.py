"""
Grading Engine Service

Turns swing metrics into a weighted, benchmark-relative grade.

Pipeline:
1. Resolve the six phases (proportional fallback for missing ones)
2. Calculate metrics and grade six categories
3. Combine with fixed weights into the raw overall score
4. Apply the validation penalty (invalid swings) or score floors (valid swings)
5. Build comparison, recommendations and data quality

grade_swing never raises. Any failure becomes a complete all-zero F grade
whose description explains what went wrong.
"""

import logging
from typing import Optional, Sequence

import numpy as np

from ..config import GradingConfig
from ..domain.analysis import (
    GRADED_CATEGORIES,
    PHASE_ORDER,
    Benchmark,
    CategoryGrade,
    Comparison,
    ComprehensiveGrade,
    DataQuality,
    EmergencyOverrides,
    GradeDetails,
    MetricCategory,
    OverallGrade,
    PhaseSpan,
    Recommendations,
    SwingMetrics,
    SwingValidation,
)
from ..domain.benchmarks import grade_description, score_to_letter
from ..domain.pose import PoseFrame, SwingTrajectory
from .metrics_calculator import InvalidMetricsCalculation, MetricsCalculator
from .phase_segmenter import find_phase

logger = logging.getLogger(__name__)


# Display label and practice focus per graded category
CATEGORY_LABELS: dict[MetricCategory, tuple[str, str]] = {
    MetricCategory.TEMPO: ("Tempo", "timing"),
    MetricCategory.ROTATION: ("Rotation", "body turn"),
    MetricCategory.BALANCE: ("Balance", "weight transfer"),
    MetricCategory.SWING_PLANE: ("Swing Plane", "club path"),
    MetricCategory.POWER: ("Power", "power generation"),
    MetricCategory.CONSISTENCY: ("Consistency", "repeatability"),
}

LONG_TERM_ADVICE = (
    "Develop a consistent practice routine",
    "Work with a golf professional for comprehensive improvement",
    "Focus on fundamentals and building muscle memory",
)


def _tolerance_score(value: float, target: float, tolerance: float) -> float:
    """100 at the target, losing 40 points per tolerance of deviation, floored at 40."""
    return max(40.0, 100 - abs(value - target) / tolerance * 40)


def _clip_score(score: float) -> float:
    return round(float(np.clip(score, 0, 100)), 1)


class GradingEngine:
    """
    Grades a segmented swing.

    Usage:
        engine = GradingEngine()
        grade = engine.grade_swing(frames, phases, trajectory)
        print(f"{grade.overall.letter}: {grade.overall.score:.0f}")
    """

    def __init__(
        self,
        config: Optional[GradingConfig] = None,
        metrics_calculator: Optional[MetricsCalculator] = None,
    ):
        self.config = config or GradingConfig()
        self.metrics_calculator = metrics_calculator or MetricsCalculator()

    # -------------------------------------------------------------------------
    # Main Entry Point
    # -------------------------------------------------------------------------

    def grade_swing(
        self,
        frames: Sequence[PoseFrame],
        phases: Sequence[PhaseSpan],
        trajectory: Optional[SwingTrajectory] = None,
        validation: Optional[SwingValidation] = None,
    ) -> ComprehensiveGrade:
        """
        Grade one swing.

        Args:
            frames: Pose frames in temporal order
            phases: Phase spans from the segmenter
            trajectory: Pre-built trajectory (optional)
            validation: Verdict of the external swing-validity checker

        Returns:
            ComprehensiveGrade, including on failure
        """
        pose_count = len(frames)
        phase_count = len({span.phase for span in phases})
        overrides = self.config.overrides

        try:
            if (
                validation is not None
                and not validation.is_valid
                and validation.score < overrides.failing_validity_score
            ):
                logger.warning(
                    f"Swing validity score {validation.score} below "
                    f"{overrides.failing_validity_score}, returning failing grade"
                )
                return self._failing_grade(validation, pose_count, phase_count)

            fallback_confidence = self.metrics_calculator.config.phase_detection.fallback_confidence
            resolved = [
                find_phase(phases, phase, frames, fallback_confidence)
                for phase in PHASE_ORDER
            ]
            metrics = self.metrics_calculator.calculate(frames, resolved, trajectory)
            categories = self.grade_categories(metrics, frames)
            raw_score = self.weighted_score(categories)

            if validation is not None and not validation.is_valid:
                emergency = self.apply_validation_penalty(raw_score, validation)
            else:
                emergency = self.apply_safety_net(raw_score, categories, pose_count, phase_count)

            final_score = emergency.adjusted_score
            letter = score_to_letter(final_score)

            return ComprehensiveGrade(
                overall=OverallGrade(
                    score=final_score,
                    letter=letter,
                    description=grade_description(letter),
                ),
                categories=categories,
                comparison=self._compare(categories),
                emergency_overrides=emergency,
                recommendations=self._recommend(categories),
                data_quality=self.assess_data_quality(pose_count, phase_count),
                metrics=metrics,
            )

        except InvalidMetricsCalculation as e:
            logger.warning(f"Swing could not be graded: {e}")
            return self._error_grade(str(e), pose_count, phase_count)
        except Exception as e:
            logger.error(f"Swing grading failed: {e}")
            return self._error_grade(str(e), pose_count, phase_count)

    def weighted_score(self, categories: dict[MetricCategory, CategoryGrade]) -> float:
        """Sum of category score times category weight."""
        return sum(
            grade.score * self.config.weights[category.value]
            for category, grade in categories.items()
        )

    # -------------------------------------------------------------------------
    # Category Grades
    # -------------------------------------------------------------------------

    def grade_categories(
        self,
        metrics: SwingMetrics,
        frames: Sequence[PoseFrame],
    ) -> dict[MetricCategory, CategoryGrade]:
        """Grade all six weighted categories."""
        return {
            MetricCategory.TEMPO: self._grade_tempo(metrics),
            MetricCategory.ROTATION: self._grade_rotation(metrics),
            MetricCategory.BALANCE: self._grade_balance(metrics),
            MetricCategory.SWING_PLANE: self._grade_swing_plane(metrics),
            MetricCategory.POWER: self._grade_power(metrics),
            MetricCategory.CONSISTENCY: self._grade_consistency(frames),
        }

    def _category_grade(
        self,
        category: MetricCategory,
        score: float,
        benchmark: Benchmark,
        details: GradeDetails,
    ) -> CategoryGrade:
        score = _clip_score(score)
        return CategoryGrade(
            score=score,
            letter=score_to_letter(score),
            benchmark=benchmark,
            weight=self.config.weights[category.value],
            details=details,
        )

    def _grade_tempo(self, metrics: SwingMetrics) -> CategoryGrade:
        tempo = metrics.tempo
        ratio_score = max(0.0, 100 - abs(tempo.tempo_ratio - 3.0) / 0.3 * 100)
        time_score = max(0.0, 100 - abs(tempo.backswing_time - 0.8) / 0.2 * 100)
        score = ratio_score * 0.7 + time_score * 0.3

        if tempo.tempo_ratio < 2.7:
            improvement = "Slow down your backswing to build a 3:1 rhythm"
        elif tempo.tempo_ratio > 3.3:
            improvement = "Start the downswing more decisively from the top"
        else:
            improvement = "Keep your current rhythm"

        return self._category_grade(
            MetricCategory.TEMPO,
            score,
            Benchmark(professional=3.0, amateur=2.5, current=tempo.tempo_ratio),
            GradeDetails(
                primary=f"Tempo ratio {tempo.tempo_ratio:.1f}:1",
                secondary=(
                    f"Backswing {tempo.backswing_time:.2f}s, "
                    f"downswing {tempo.downswing_time:.2f}s"
                ),
                improvement=improvement,
            ),
        )

    def _grade_rotation(self, metrics: SwingMetrics) -> CategoryGrade:
        rotation = metrics.rotation
        score = (
            _tolerance_score(rotation.shoulder_turn, 90, 10) * 0.4 +
            _tolerance_score(rotation.hip_turn, 45, 10) * 0.3 +
            _tolerance_score(rotation.x_factor, 40, 10) * 0.3
        )

        if rotation.shoulder_turn < 80:
            improvement = "Turn your shoulders further away from the target"
        elif rotation.x_factor < 30:
            improvement = "Restrict hip turn to build more shoulder-hip separation"
        else:
            improvement = "Maintain your full shoulder turn"

        return self._category_grade(
            MetricCategory.ROTATION,
            score,
            Benchmark(professional=90, amateur=75, current=rotation.shoulder_turn),
            GradeDetails(
                primary=f"Shoulder turn {rotation.shoulder_turn:.0f}°",
                secondary=(
                    f"Hip turn {rotation.hip_turn:.0f}°, "
                    f"X-factor {rotation.x_factor:.0f}°"
                ),
                improvement=improvement,
            ),
        )

    def _grade_balance(self, metrics: SwingMetrics) -> CategoryGrade:
        weight = metrics.weight_transfer
        score = (
            _tolerance_score(weight.backswing, 85, 10) * 0.3 +
            _tolerance_score(weight.impact, 85, 10) * 0.4 +
            _tolerance_score(weight.finish, 95, 5) * 0.3
        )
        average = (weight.backswing + weight.impact + weight.finish) / 3

        return self._category_grade(
            MetricCategory.BALANCE,
            score,
            Benchmark(professional=90, amateur=70, current=round(average, 1)),
            GradeDetails(
                primary=f"{weight.impact:.0f}% on lead foot at impact",
                secondary=(
                    f"{weight.backswing:.0f}% trail at the top, "
                    f"{weight.finish:.0f}% lead at finish"
                ),
                improvement=(
                    "Shift more weight onto your lead side through impact"
                    if weight.impact < 75 else "Hold your balanced finish"
                ),
            ),
        )

    def _grade_swing_plane(self, metrics: SwingMetrics) -> CategoryGrade:
        plane = metrics.swing_plane
        plane_consistency = max(0.0, 100 - plane.plane_deviation)
        score = (
            _tolerance_score(plane.shaft_angle, 60, 5) * 0.6 +
            _tolerance_score(plane_consistency, 85, 5) * 0.4
        )

        return self._category_grade(
            MetricCategory.SWING_PLANE,
            score,
            Benchmark(professional=85, amateur=70, current=round(plane_consistency, 1)),
            GradeDetails(
                primary=f"Shaft angle {plane.shaft_angle:.0f}° at impact",
                secondary=f"Plane deviation {plane.plane_deviation:.1f}°",
                improvement=(
                    "Keep the club on one plane from takeaway to impact"
                    if plane.plane_deviation > 10 else "Your club path is on plane"
                ),
            ),
        )

    def _grade_power(self, metrics: SwingMetrics) -> CategoryGrade:
        tempo = metrics.tempo
        rotation = metrics.rotation
        score = (
            _tolerance_score(tempo.tempo_ratio, 3.0, 0.5) * 0.4 +
            _tolerance_score(rotation.shoulder_turn, 90, 10) * 0.4 +
            _tolerance_score(rotation.x_factor, 40, 10) * 0.2
        )
        current = tempo.tempo_ratio * 20 + rotation.shoulder_turn * 0.5 + rotation.x_factor * 0.5

        return self._category_grade(
            MetricCategory.POWER,
            score,
            Benchmark(professional=110, amateur=90, current=round(current, 1)),
            GradeDetails(
                primary=f"Power index {current:.0f}",
                secondary=f"X-factor {rotation.x_factor:.0f}° with {tempo.tempo_ratio:.1f}:1 tempo",
                improvement=(
                    "Create more coil at the top to store power"
                    if rotation.x_factor < 35 else "Release stored coil through impact"
                ),
            ),
        )

    def _grade_consistency(self, frames: Sequence[PoseFrame]) -> CategoryGrade:
        smoothness = self._movement_smoothness(frames)
        repeatability = self._landmark_repeatability(frames)
        score = (
            _tolerance_score(smoothness, 85, 10) * 0.6 +
            _tolerance_score(repeatability, 80, 10) * 0.4
        )

        return self._category_grade(
            MetricCategory.CONSISTENCY,
            score,
            Benchmark(professional=80, amateur=60, current=round(repeatability, 1)),
            GradeDetails(
                primary=f"Smoothness {smoothness:.0f}%",
                secondary=f"Repeatability {repeatability:.0f}%",
                improvement=(
                    "Make smoother transitions between swing positions"
                    if smoothness < 75 else "Keep repeating this motion"
                ),
            ),
        )

    def _movement_smoothness(self, frames: Sequence[PoseFrame]) -> float:
        """Percent of frame transitions whose mean landmark movement is small."""
        smooth = 0
        transitions = 0
        for previous, current in zip(frames, frames[1:]):
            moves = [
                a.distance_to(b)
                for a, b in zip(previous.landmarks, current.landmarks)
                if a.is_visible() and b.is_visible()
            ]
            if not moves:
                continue
            transitions += 1
            if float(np.mean(moves)) < self.config.smoothness_movement:
                smooth += 1
        return smooth / transitions * 100 if transitions else 0.0

    def _landmark_repeatability(self, frames: Sequence[PoseFrame]) -> float:
        """Low positional variance of the head, shoulders and hips scores high."""
        scores = []
        for index in self.config.repeatability_landmarks:
            points = np.array([
                (frame.landmarks[index].x, frame.landmarks[index].y)
                for frame in frames
                if index < len(frame.landmarks)
            ])
            if len(points) == 0:
                continue
            variance = float(points.var(axis=0).sum())
            scores.append(max(0.0, 100 - variance * 1000))
        return float(np.mean(scores)) if scores else 0.0

    # -------------------------------------------------------------------------
    # Penalties and Overrides
    # -------------------------------------------------------------------------

    def apply_validation_penalty(
        self,
        raw_score: float,
        validation: SwingValidation,
    ) -> EmergencyOverrides:
        """Lower the score of a swing the validity checker rejected."""
        thresholds = self.config.overrides
        penalty = next(
            (p for minimum, p in thresholds.penalty_tiers if validation.score >= minimum),
            thresholds.penalty_default,
        )

        adjusted = raw_score * (100 - penalty) / 100
        reason = f"Invalid golf swing detected - applying {penalty:g}% penalty"
        if adjusted > thresholds.penalty_cap:
            adjusted = thresholds.penalty_cap
            reason += f" - Maximum score capped to {thresholds.penalty_cap:g}"

        logger.info(f"{reason} (raw {raw_score:.1f} -> {adjusted:.1f})")
        return EmergencyOverrides(
            applied=True,
            reason=reason,
            original_score=raw_score,
            adjusted_score=adjusted,
        )

    def apply_safety_net(
        self,
        raw_score: float,
        categories: dict[MetricCategory, CategoryGrade],
        pose_count: int,
        phase_count: int,
    ) -> EmergencyOverrides:
        """
        Raise the score of a valid swing to the floor its data supports.

        Floors never lower a score.
        """
        t = self.config.overrides
        scores = {category: grade.score for category, grade in categories.items()}
        adjusted = raw_score
        reason = "No overrides applied"

        if self.detect_professional_swing(pose_count, phase_count, scores):
            floor, floor_reason = t.professional_floor, "Professional swing characteristics detected"
        elif pose_count >= t.high_quality_min_poses and phase_count >= t.high_quality_min_phases:
            floor, floor_reason = t.high_quality_floor, "High-quality swing data detected"
        elif self.has_professional_characteristics(scores):
            floor, floor_reason = t.partial_professional_floor, "Partial professional characteristics detected"
        else:
            floor, floor_reason = None, None

        if floor is not None and adjusted < floor:
            adjusted, reason = floor, floor_reason

        if (
            raw_score < t.safety_net_max_raw
            and pose_count >= t.safety_net_min_poses
            and phase_count >= t.safety_net_min_phases
            and adjusted < t.safety_net_floor
        ):
            adjusted = t.safety_net_floor
            reason = "Safety net: legitimate swing data with a low raw score"

        applied = adjusted > raw_score
        if applied:
            logger.info(f"Score override: {reason} ({raw_score:.1f} -> {adjusted:.1f})")
        return EmergencyOverrides(
            applied=applied,
            reason=reason,
            original_score=raw_score,
            adjusted_score=adjusted,
        )

    def detect_professional_swing(
        self,
        pose_count: int,
        phase_count: int,
        scores: dict[MetricCategory, float],
    ) -> bool:
        """
        Detect a swing whose data looks professional despite its raw score.

        Three routes:
        - clean data whose only weak point is a failed rotation reading
        - long sequences with enough strong categories
        - enough of the basic quality indicators
        """
        t = self.config.overrides
        tempo = scores.get(MetricCategory.TEMPO, 0.0)
        rotation = scores.get(MetricCategory.ROTATION, 0.0)
        balance = scores.get(MetricCategory.BALANCE, 0.0)
        plane = scores.get(MetricCategory.SWING_PLANE, 0.0)
        core_scores = (tempo, rotation, balance, plane)

        rotation_failed = (
            pose_count >= t.rotation_failure_min_poses
            and phase_count >= t.indicator_min_phases
            and tempo >= t.indicator_min_category
            and balance >= t.indicator_min_category
            and rotation < t.rotation_failure_max_rotation
        )
        if rotation_failed:
            return True

        characteristics = [
            pose_count >= t.characteristic_min_poses,
            phase_count >= t.characteristic_min_phases,
            *(score >= t.characteristic_min_category for score in core_scores),
        ]
        if pose_count >= t.characteristic_min_poses and sum(characteristics) >= t.characteristic_required:
            return True

        indicators = [
            pose_count >= t.indicator_min_poses,
            phase_count >= t.indicator_min_phases,
            *(score >= t.indicator_min_category for score in core_scores),
        ]
        return sum(indicators) >= t.indicator_required

    def has_professional_characteristics(self, scores: dict[MetricCategory, float]) -> bool:
        t = self.config.overrides
        strong = sum(1 for score in scores.values() if score >= t.partial_professional_min_score)
        return strong >= t.partial_professional_required

    # -------------------------------------------------------------------------
    # Comparison, Recommendations, Data Quality
    # -------------------------------------------------------------------------

    def _compare(self, categories: dict[MetricCategory, CategoryGrade]) -> Comparison:
        average = float(np.mean([grade.score for grade in categories.values()]))
        return Comparison(
            vs_professional=round(average),
            vs_amateur=round(average + 10),
            percentile=round(float(np.clip(average, 0, 100)), 1),
        )

    def _recommend(self, categories: dict[MetricCategory, CategoryGrade]) -> Recommendations:
        ranked = sorted(
            (category for category in GRADED_CATEGORIES if category in categories),
            key=lambda category: categories[category].score,
        )
        immediate: tuple[str, ...] = ()
        short_term: tuple[str, ...] = ()
        long_term: tuple[str, ...] = ()

        if ranked and categories[ranked[0]].score < self.config.immediate_below:
            label, focus = CATEGORY_LABELS[ranked[0]]
            immediate = (
                f"Focus on improving your {label.lower()}",
                f"Practice {focus} drills daily",
            )

        if len(ranked) > 1 and categories[ranked[1]].score < self.config.short_term_below:
            label, focus = CATEGORY_LABELS[ranked[1]]
            short_term = (
                f"Work on {label.lower()} for 1-2 weeks",
                f"Take lessons focused on {focus}",
            )

        if any(grade.score < self.config.long_term_below for grade in categories.values()):
            long_term = LONG_TERM_ADVICE

        return Recommendations(immediate=immediate, short_term=short_term, long_term=long_term)

    @staticmethod
    def assess_data_quality(pose_count: int, phase_count: int) -> DataQuality:
        """Reliability of the grade given how much data it was built on."""
        if pose_count >= 100 and phase_count >= 4:
            quality, reliability = 90.0, "High"
        elif pose_count >= 50 and phase_count >= 3:
            quality, reliability = 70.0, "Medium"
        elif pose_count >= 20 and phase_count >= 2:
            quality, reliability = 50.0, "Medium"
        else:
            quality, reliability = 30.0, "Low"

        return DataQuality(
            pose_count=pose_count,
            phase_count=phase_count,
            quality_score=quality,
            reliability=reliability,
        )

    # -------------------------------------------------------------------------
    # Degraded Grades
    # -------------------------------------------------------------------------

    def _failing_grade(
        self,
        validation: SwingValidation,
        pose_count: int,
        phase_count: int,
    ) -> ComprehensiveGrade:
        score = self.config.overrides.failing_grade_score
        reason = (
            f"Invalid golf swing detected - validity score {validation.score:g} "
            f"below {self.config.overrides.failing_validity_score:g}"
        )
        return ComprehensiveGrade(
            overall=OverallGrade(
                score=score,
                letter=score_to_letter(score),
                description="Invalid Analysis: Not a valid golf swing",
            ),
            categories={},
            comparison=Comparison(vs_professional=0, vs_amateur=0, percentile=0),
            emergency_overrides=EmergencyOverrides(
                applied=True,
                reason=reason,
                original_score=score,
                adjusted_score=score,
            ),
            recommendations=Recommendations(
                immediate=(
                    "Make sure you are recording a complete golf swing",
                    *validation.errors,
                ),
                short_term=(
                    "Record the swing from a side or face-on view",
                    "Keep your full body in frame",
                ),
                long_term=("Practice basic golf swing fundamentals",),
            ),
            data_quality=DataQuality(
                pose_count=pose_count,
                phase_count=phase_count,
                quality_score=0.0,
                reliability="Low",
            ),
        )

    @staticmethod
    def _error_grade(reason: str, pose_count: int, phase_count: int) -> ComprehensiveGrade:
        return ComprehensiveGrade(
            overall=OverallGrade(
                score=0.0,
                letter="F",
                description=f"Analysis failed: {reason}",
            ),
            categories={},
            comparison=Comparison(vs_professional=0, vs_amateur=0, percentile=0),
            emergency_overrides=EmergencyOverrides(
                applied=False,
                reason="Analysis failed",
                original_score=0.0,
                adjusted_score=0.0,
            ),
            recommendations=Recommendations(immediate=("Please try analyzing again",)),
            data_quality=DataQuality(
                pose_count=pose_count,
                phase_count=phase_count,
                quality_score=0.0,
                reliability="Low",
            ),
        )
