"""Shared fixtures: synthetic 33-landmark swings and ready-made grades."""

import math

import pytest

from core.domain import PoseFrame, PoseLandmark, BodyPart, PHASE_ORDER
from core.domain.pose import LANDMARK_COUNT
from core.domain.analysis import (
    Benchmark,
    CategoryGrade,
    Comparison,
    ComprehensiveGrade,
    DataQuality,
    EmergencyOverrides,
    GradeDetails,
    OverallGrade,
    PhaseSpan,
    Recommendations,
)
from core.domain.benchmarks import CATEGORY_WEIGHTS, score_to_letter

FPS = 30.0
FRAME_MS = 1000.0 / FPS
VISIBLE = 0.95


def swing_wrist_heights():
    """Right wrist y for a 30-frame swing: still, rise to frame 14, drift down, strike at 24."""
    heights = [0.60] * 5
    heights += [0.60 - 0.045 * (i - 4) for i in range(5, 15)]
    heights += [0.15 + 0.02 * (i - 14) for i in range(15, 24)]
    heights += [0.60]
    heights += [0.50, 0.40, 0.30, 0.25, 0.22]
    return heights


def make_frame(index, wrist=(0.6, 0.6), turn=0.0, visibility=VISIBLE, overrides=None):
    """
    One synthetic pose.

    turn (0..1) tilts the shoulder and hip lines as the golfer coils.
    overrides maps BodyPart -> PoseLandmark for custom joints.
    """
    points = {
        BodyPart.NOSE: (0.30, 0.25),
        BodyPart.LEFT_SHOULDER: (0.45, 0.35 + 0.08 * turn),
        BodyPart.RIGHT_SHOULDER: (0.55, 0.35 - 0.08 * turn),
        BodyPart.LEFT_ELBOW: (0.47, 0.45),
        BodyPart.RIGHT_ELBOW: (0.55, 0.45),
        BodyPart.LEFT_WRIST: (wrist[0] - 0.02, wrist[1]),
        BodyPart.RIGHT_WRIST: wrist,
        BodyPart.LEFT_HIP: (0.46, 0.55 + 0.04 * turn),
        BodyPart.RIGHT_HIP: (0.54, 0.55 - 0.04 * turn),
        BodyPart.LEFT_KNEE: (0.48, 0.72),
        BodyPart.RIGHT_KNEE: (0.58, 0.72),
        BodyPart.LEFT_ANKLE: (0.45, 0.90),
        BodyPart.RIGHT_ANKLE: (0.55, 0.90),
    }
    landmarks = [PoseLandmark(0.5, 0.5, 0.0, visibility) for _ in range(LANDMARK_COUNT)]
    for part, (x, y) in points.items():
        landmarks[part] = PoseLandmark(x, y, 0.0, visibility)
    for part, landmark in (overrides or {}).items():
        landmarks[part] = landmark

    return PoseFrame(
        landmarks=landmarks,
        timestamp_ms=index * FRAME_MS,
        frame_number=index,
        confidence=visibility,
    )


def make_swing(heights=None, visibility=VISIBLE):
    """Frames for a swing whose right wrist follows the given heights."""
    heights = heights if heights is not None else swing_wrist_heights()
    frames = []
    for i, y in enumerate(heights):
        turn = min(max((0.60 - y) / 0.45, 0.0), 1.0)
        frames.append(make_frame(i, wrist=(0.6, y), turn=turn, visibility=visibility))
    return frames


def make_still_frames(count, visibility=VISIBLE, overrides=None):
    return [make_frame(i, visibility=visibility, overrides=overrides) for i in range(count)]


def make_phases(durations_ms, frames_per_phase=5):
    """Six consecutive spans with the given millisecond durations."""
    spans = []
    start_frame, start_time = 0, 0.0
    for phase, duration in zip(PHASE_ORDER, durations_ms):
        end_frame = start_frame + frames_per_phase
        spans.append(PhaseSpan(
            phase=phase,
            start_frame=start_frame,
            end_frame=end_frame,
            start_time=start_time,
            end_time=start_time + duration,
            confidence=0.8,
        ))
        start_frame, start_time = end_frame, start_time + duration
    return spans


def leg_landmarks(knee_angle, side="right"):
    """Hip, knee and ankle placed so the knee angle is knee_angle degrees."""
    hip = PoseLandmark(0.5, 0.5)
    knee = PoseLandmark(0.5, 0.7)
    theta = math.radians(knee_angle)
    ankle = PoseLandmark(0.5 + 0.2 * math.sin(theta), 0.7 - 0.2 * math.cos(theta))
    if side == "right":
        return {BodyPart.RIGHT_HIP: hip, BodyPart.RIGHT_KNEE: knee, BodyPart.RIGHT_ANKLE: ankle}
    return {BodyPart.LEFT_HIP: hip, BodyPart.LEFT_KNEE: knee, BodyPart.LEFT_ANKLE: ankle}


def category_grades(scores):
    """CategoryGrade per graded category from a {MetricCategory: score} map."""
    return {
        category: CategoryGrade(
            score=score,
            letter=score_to_letter(score),
            benchmark=Benchmark(professional=90, amateur=70, current=score),
            weight=CATEGORY_WEIGHTS[category.value],
            details=GradeDetails(primary="", secondary="", improvement=""),
        )
        for category, score in scores.items()
    }


def make_grade(overall, scores=None, pose_count=60, phase_count=6):
    """A minimal ComprehensiveGrade for history and consistency tests."""
    scores = scores if scores is not None else {}
    return ComprehensiveGrade(
        overall=OverallGrade(score=overall, letter=score_to_letter(overall), description=""),
        categories=category_grades(scores),
        comparison=Comparison(vs_professional=overall, vs_amateur=overall + 10, percentile=overall),
        emergency_overrides=EmergencyOverrides(
            applied=False,
            reason="No overrides applied",
            original_score=overall,
            adjusted_score=overall,
        ),
        recommendations=Recommendations(),
        data_quality=DataQuality(
            pose_count=pose_count,
            phase_count=phase_count,
            quality_score=70.0,
            reliability="Medium",
        ),
    )


def frame_payload(frame):
    """JSON body for one PoseFrame."""
    return {
        "landmarks": [
            {"x": lm.x, "y": lm.y, "z": lm.z, "visibility": lm.visibility}
            for lm in frame.landmarks
        ],
        "timestamp_ms": frame.timestamp_ms,
        "frame_number": frame.frame_number,
        "confidence": frame.confidence,
    }


@pytest.fixture
def swing_frames():
    return make_swing()

