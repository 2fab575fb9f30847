"""
Pose API Schemas

Pydantic models for the pose data clients send in.
These define the JSON structure produced by the client-side pose estimator.
"""

from pydantic import BaseModel, Field
from typing import Optional, List
from enum import Enum

from core.domain.pose import PoseFrame, PoseLandmark


class LandmarkSchema(BaseModel):
    """
    Single body landmark.

    Coordinates are normalized to the image (0.0 to 1.0, may overshoot
    slightly for joints near the frame edge).
    """
    x: float = Field(..., description="Horizontal position (0=left, 1=right)")
    y: float = Field(..., description="Vertical position (0=top, 1=bottom)")
    z: float = Field(0.0, description="Depth (negative=closer to camera)")
    visibility: float = Field(1.0, ge=0.0, le=1.0, description="Detection confidence")

    class Config:
        json_schema_extra = {
            "example": {
                "x": 0.45,
                "y": 0.32,
                "z": -0.15,
                "visibility": 0.95,
            }
        }


class PoseFrameSchema(BaseModel):
    """
    Pose estimate for one frame.

    Landmarks are ordered by the 33-point pose topology (index 0 = nose).
    """
    landmarks: List[LandmarkSchema] = Field(..., description="Body landmarks in topology order")
    timestamp_ms: float = Field(..., ge=0, description="Video timestamp in milliseconds")
    frame_number: int = Field(0, ge=0, description="Sequential frame number")
    confidence: float = Field(1.0, ge=0.0, le=1.0, description="Overall detection confidence")

    class Config:
        json_schema_extra = {
            "example": {
                "landmarks": [
                    {"x": 0.5, "y": 0.2, "z": 0.0, "visibility": 0.99}
                ],
                "timestamp_ms": 1500,
                "frame_number": 45,
                "confidence": 0.92
            }
        }

    def to_domain(self) -> PoseFrame:
        """Convert to the domain PoseFrame."""
        return PoseFrame(
            landmarks=[
                PoseLandmark(x=lm.x, y=lm.y, z=lm.z, visibility=lm.visibility)
                for lm in self.landmarks
            ],
            timestamp_ms=self.timestamp_ms,
            frame_number=self.frame_number,
            confidence=self.confidence,
        )


# =============================================================================
# WebSocket Message Schemas
# =============================================================================

class WebSocketMessageType(str, Enum):
    """Types of WebSocket messages."""
    # Client -> Server
    FRAME = "frame"                    # Add a pose frame to the swing buffer
    GRADE = "grade"                    # Grade the buffered swing
    RESET = "reset"                    # Clear buffer and session history
    END_SESSION = "end_session"        # End analysis session

    # Server -> Client
    FRAME_ACK = "frame_ack"            # Frame buffered
    GRADE_RESULT = "grade_result"      # Analysis of the buffered swing
    ERROR = "error"                    # Error message
    SESSION_STARTED = "session_started"
    SESSION_RESET = "session_reset"
    SESSION_ENDED = "session_ended"


class WebSocketMessage(BaseModel):
    """
    Base WebSocket message structure.

    All WebSocket communication uses this format.
    """
    type: WebSocketMessageType = Field(..., description="Message type")
    data: dict = Field(default_factory=dict, description="Message payload")
    timestamp: Optional[int] = Field(None, description="Unix timestamp in milliseconds")

    class Config:
        json_schema_extra = {
            "example": {
                "type": "frame",
                "data": {"landmarks": [], "timestamp_ms": 0},
                "timestamp": 1704067200000
            }
        }
