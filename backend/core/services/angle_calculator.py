"""
Angle Calculator Service

Geometry primitives used by segmentation and metrics: joint angles,
line orientation, distances and finite-difference kinematics.

This is pure mathematics - no external dependencies except numpy.
Degenerate input (zero-length sides, zero elapsed time) yields 0 instead
of NaN so callers never see invalid floats.
"""

import math
from typing import Optional, Protocol, Tuple
import numpy as np

from ..domain.pose import PoseLandmark, PoseFrame, BodyPart, TrajectoryPoint


class Point(Protocol):
    x: float
    y: float
    z: float


class AngleCalculator:
    """
    Calculates angles and kinematics from landmarks and trajectory points.

    Golf-specific helpers include:
    - Spine angle (tilt from vertical)
    - Shoulder and hip line orientation
    - Knee flex

    All methods are static - no state needed.
    """

    # -------------------------------------------------------------------------
    # Core Angle Calculations
    # -------------------------------------------------------------------------

    @staticmethod
    def calculate_angle(
        p1: Point,
        p2: Point,  # Vertex point
        p3: Point,
        use_depth: bool = False
    ) -> float:
        """
        Calculate angle at p2 formed by p1-p2-p3.

        Uses the law of cosines on the three side lengths.

        Args:
            p1: First point
            p2: Vertex point (where angle is measured)
            p3: Third point
            use_depth: Include the z coordinate

        Returns:
            Angle in degrees (0-180), or 0 if a side has zero length

        Example:
            For knee angle: hip -> knee -> ankle
            angle = calculate_angle(hip, knee, ankle)
        """
        a = AngleCalculator.distance(p1, p2, use_depth)
        b = AngleCalculator.distance(p2, p3, use_depth)
        c = AngleCalculator.distance(p1, p3, use_depth)

        if a == 0 or b == 0:
            return 0.0

        cos_angle = (a ** 2 + b ** 2 - c ** 2) / (2 * a * b)

        # Clamp to valid range (handles floating point errors)
        cos_angle = float(np.clip(cos_angle, -1.0, 1.0))

        return float(np.clip(np.degrees(np.arccos(cos_angle)), 0.0, 180.0))

    @staticmethod
    def line_angle(a: Point, b: Point) -> float:
        """
        Orientation of the line from a to b in degrees (-180, 180].

        Used for shoulder and hip line orientation.
        """
        return math.degrees(math.atan2(b.y - a.y, b.x - a.x))

    @staticmethod
    def angle_difference(first: float, second: float) -> float:
        """Smallest absolute difference between two orientations, in [0, 180]."""
        diff = abs(second - first) % 360
        return 360 - diff if diff > 180 else diff

    @staticmethod
    def vertical_angle(base: Point, tip: Point) -> float:
        """
        Angle between the vector base -> tip and straight up, in [0, 180].

        Image y grows downward, so "up" is negative y.
        """
        dx = tip.x - base.x
        up = base.y - tip.y
        if dx == 0 and up == 0:
            return 0.0
        return math.degrees(math.atan2(abs(dx), up))

    # -------------------------------------------------------------------------
    # Kinematics
    # -------------------------------------------------------------------------

    @staticmethod
    def velocity(p1: TrajectoryPoint, p2: TrajectoryPoint) -> float:
        """
        Speed between two trajectory points in normalized units per ms.

        Returns 0 when no time elapsed.
        """
        dt = p2.timestamp - p1.timestamp
        if dt == 0:
            return 0.0
        return AngleCalculator.distance(p1, p2, use_depth=True) / abs(dt)

    @staticmethod
    def acceleration(
        p1: TrajectoryPoint,
        p2: TrajectoryPoint,
        p3: TrajectoryPoint
    ) -> float:
        """
        Magnitude of the speed change across three consecutive points.

        The change is divided by half the elapsed time from p1 to p3.
        Returns 0 when no time elapsed.
        """
        dt = (p3.timestamp - p1.timestamp) / 2
        if dt == 0:
            return 0.0
        v1 = AngleCalculator.velocity(p1, p2)
        v2 = AngleCalculator.velocity(p2, p3)
        return abs(v2 - v1) / abs(dt)

    # -------------------------------------------------------------------------
    # Golf-Specific Angle Calculations
    # -------------------------------------------------------------------------

    @staticmethod
    def calculate_spine_angle(frame: PoseFrame) -> Optional[float]:
        """
        Calculate spine tilt from the hip midpoint to the nose.

        Returns:
            Degrees from vertical (0 = upright), or None if landmarks are missing
        """
        nose = frame.get_landmark(BodyPart.NOSE)
        hip_mid = AngleCalculator.calculate_midpoint(*frame.hips)

        if nose is None or hip_mid is None:
            return None

        return AngleCalculator.vertical_angle(
            PoseLandmark(hip_mid[0], hip_mid[1]),
            nose,
        )

    @staticmethod
    def calculate_knee_angle(
        frame: PoseFrame,
        side: str = "right"
    ) -> Optional[float]:
        """
        Calculate the hip-knee-ankle angle.

        Args:
            frame: Pose frame with landmarks
            side: "left" or "right"

        Returns:
            Knee angle in degrees (180 = straight leg, 90 = deep squat)
        """
        if side == "left":
            hip, knee, ankle = frame.left_leg
        else:
            hip, knee, ankle = frame.right_leg

        if hip is None or knee is None or ankle is None:
            return None

        return AngleCalculator.calculate_angle(hip, knee, ankle)

    @staticmethod
    def calculate_knee_flex(frame: PoseFrame, side: str = "right") -> Optional[float]:
        """Knee flex as degrees of bend away from a straight leg."""
        angle = AngleCalculator.calculate_knee_angle(frame, side)
        if angle is None or angle == 0:
            return None
        return 180.0 - angle

    # -------------------------------------------------------------------------
    # Utility Methods
    # -------------------------------------------------------------------------

    @staticmethod
    def distance(p1: Point, p2: Point, use_depth: bool = False) -> float:
        """Euclidean distance, 2D unless use_depth is set."""
        dz = (p1.z - p2.z) if use_depth else 0.0
        return math.sqrt((p1.x - p2.x) ** 2 + (p1.y - p2.y) ** 2 + dz ** 2)

    @staticmethod
    def calculate_distance(p1: Optional[PoseLandmark], p2: Optional[PoseLandmark]) -> Optional[float]:
        """Calculate 2D distance between two landmarks."""
        if p1 is None or p2 is None:
            return None
        return AngleCalculator.distance(p1, p2)

    @staticmethod
    def calculate_midpoint(
        p1: Optional[PoseLandmark],
        p2: Optional[PoseLandmark]
    ) -> Optional[Tuple[float, float]]:
        """Calculate midpoint between two landmarks."""
        if p1 is None or p2 is None:
            return None
        return ((p1.x + p2.x) / 2, (p1.y + p2.y) / 2)

