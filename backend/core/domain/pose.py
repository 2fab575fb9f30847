"""
Pose Domain Models

Data structures for the human body pose landmarks that feed swing analysis.

Landmarks follow the 33-point MediaPipe Pose topology, so a landmark's
index in a frame identifies the joint:
https://developers.google.com/mediapipe/solutions/vision/pose_landmarker

Frames are produced by an external pose estimator and never mutated here.
"""
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Optional


class BodyPart(IntEnum):
    """
    Pose landmark indices.

    These map directly to the 33-point pose model.
    We include the ones used by swing segmentation and metrics.
    """
    # Face
    NOSE = 0
    LEFT_EYE = 2
    RIGHT_EYE = 5
    LEFT_EAR = 7
    RIGHT_EAR = 8

    # Upper body
    LEFT_SHOULDER = 11
    RIGHT_SHOULDER = 12
    LEFT_ELBOW = 13
    RIGHT_ELBOW = 14
    LEFT_WRIST = 15
    RIGHT_WRIST = 16

    # Lower body
    LEFT_HIP = 23
    RIGHT_HIP = 24
    LEFT_KNEE = 25
    RIGHT_KNEE = 26
    LEFT_ANKLE = 27
    RIGHT_ANKLE = 28


LANDMARK_COUNT = 33


@dataclass(frozen=True)
class PoseLandmark:
    """
    A single body landmark with 3D coordinates and visibility.

    Attributes:
        x: Horizontal position (0.0 = left edge, 1.0 = right edge)
        y: Vertical position (0.0 = top edge, 1.0 = bottom edge)
        z: Depth (smaller = closer to camera)
        visibility: Confidence score (0.0 to 1.0)

    Note:
        Coordinates are normalized to image dimensions, so y grows
        downward and a rising wrist has a shrinking y.
    """
    x: float
    y: float
    z: float = 0.0
    visibility: float = 1.0

    def is_visible(self, threshold: float = 0.5) -> bool:
        """Check if landmark is visible above confidence threshold."""
        return self.visibility >= threshold

    def distance_to(self, other: "PoseLandmark") -> float:
        """Calculate Euclidean distance to another landmark."""
        return (
            (self.x - other.x) ** 2 +
            (self.y - other.y) ** 2 +
            (self.z - other.z) ** 2
        ) ** 0.5


@dataclass(frozen=True)
class PoseFrame:
    """
    A complete pose estimate for a single video frame.

    Attributes:
        landmarks: Body landmarks indexed by BodyPart (usually 33)
        timestamp_ms: Video timestamp in milliseconds
        frame_number: Sequential frame number
        confidence: Overall detection confidence
    """
    landmarks: list[PoseLandmark]
    timestamp_ms: float
    frame_number: int = 0
    confidence: float = 1.0

    def get_landmark(self, body_part: BodyPart) -> Optional[PoseLandmark]:
        """Get a specific landmark by body part."""
        index = body_part.value
        if 0 <= index < len(self.landmarks):
            return self.landmarks[index]
        return None

    def get_visible_landmark(
        self,
        body_part: BodyPart,
        threshold: float = 0.5
    ) -> Optional[PoseLandmark]:
        """Get a landmark only if it is visible above threshold."""
        landmark = self.get_landmark(body_part)
        if landmark is not None and landmark.is_visible(threshold):
            return landmark
        return None

    def visible_count(self, threshold: float = 0.5) -> int:
        """Number of landmarks above visibility threshold."""
        return sum(1 for lm in self.landmarks if lm.is_visible(threshold))

    # -------------------------------------------------------------------------
    # Convenience methods for common landmark groups
    # -------------------------------------------------------------------------

    @property
    def hips(self) -> tuple[Optional[PoseLandmark], Optional[PoseLandmark]]:
        """Get (left, right) hip landmarks."""
        return (
            self.get_landmark(BodyPart.LEFT_HIP),
            self.get_landmark(BodyPart.RIGHT_HIP),
        )

    @property
    def ankles(self) -> tuple[Optional[PoseLandmark], Optional[PoseLandmark]]:
        """Get (left, right) ankle landmarks."""
        return (
            self.get_landmark(BodyPart.LEFT_ANKLE),
            self.get_landmark(BodyPart.RIGHT_ANKLE),
        )

    @property
    def left_leg(self) -> tuple[Optional[PoseLandmark], ...]:
        """Get left leg landmarks (hip, knee, ankle)."""
        return (
            self.get_landmark(BodyPart.LEFT_HIP),
            self.get_landmark(BodyPart.LEFT_KNEE),
            self.get_landmark(BodyPart.LEFT_ANKLE),
        )

    @property
    def right_leg(self) -> tuple[Optional[PoseLandmark], ...]:
        """Get right leg landmarks (hip, knee, ankle)."""
        return (
            self.get_landmark(BodyPart.RIGHT_HIP),
            self.get_landmark(BodyPart.RIGHT_KNEE),
            self.get_landmark(BodyPart.RIGHT_ANKLE),
        )


# =============================================================================
# Trajectories
# =============================================================================

@dataclass(frozen=True)
class TrajectoryPoint:
    """Position of one landmark at one frame, with its timestamp in ms."""
    x: float
    y: float
    z: float
    timestamp: float
    frame: int


@dataclass
class SwingTrajectory:
    """
    Per-frame paths of the landmarks that drive segmentation.

    Every list holds exactly one point per input frame.
    """
    right_wrist: list[TrajectoryPoint] = field(default_factory=list)
    left_wrist: list[TrajectoryPoint] = field(default_factory=list)
    right_shoulder: list[TrajectoryPoint] = field(default_factory=list)
    left_shoulder: list[TrajectoryPoint] = field(default_factory=list)
    right_hip: list[TrajectoryPoint] = field(default_factory=list)
    left_hip: list[TrajectoryPoint] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.right_wrist)
