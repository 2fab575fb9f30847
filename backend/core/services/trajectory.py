"""
Trajectory Builder

Extracts per-frame landmark paths from a pose sequence.
"""

from typing import Sequence

from ..domain.pose import BodyPart, PoseFrame, SwingTrajectory, TrajectoryPoint


TRACKED_LANDMARKS: dict[str, BodyPart] = {
    "right_wrist": BodyPart.RIGHT_WRIST,
    "left_wrist": BodyPart.LEFT_WRIST,
    "right_shoulder": BodyPart.RIGHT_SHOULDER,
    "left_shoulder": BodyPart.LEFT_SHOULDER,
    "right_hip": BodyPart.RIGHT_HIP,
    "left_hip": BodyPart.LEFT_HIP,
}


def build_trajectory(frames: Sequence[PoseFrame]) -> SwingTrajectory:
    """
    Build the wrist, shoulder and hip paths for a pose sequence.

    A frame missing a landmark repeats the previous point for that
    landmark (or the origin if none came before), so every path has
    exactly one point per frame.
    """
    paths: dict[str, list[TrajectoryPoint]] = {name: [] for name in TRACKED_LANDMARKS}

    for index, frame in enumerate(frames):
        for name, body_part in TRACKED_LANDMARKS.items():
            path = paths[name]
            landmark = frame.get_landmark(body_part)
            if landmark is not None:
                x, y, z = landmark.x, landmark.y, landmark.z
            elif path:
                x, y, z = path[-1].x, path[-1].y, path[-1].z
            else:
                x, y, z = 0.0, 0.0, 0.0
            path.append(TrajectoryPoint(
                x=x,
                y=y,
                z=z,
                timestamp=frame.timestamp_ms,
                frame=index,
            ))

    return SwingTrajectory(**paths)
