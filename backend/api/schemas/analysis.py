"""
Analysis API Schemas

Pydantic models for swing grading and consistency requests and responses.
"""

from pydantic import BaseModel, Field
from typing import Optional, List
from enum import Enum
from datetime import datetime

from .pose import PoseFrameSchema


class GolfClubEnum(str, Enum):
    """Golf club types for API."""
    DRIVER = "driver"
    WOOD_3 = "wood_3"
    WOOD_5 = "wood_5"
    HYBRID = "hybrid"
    IRON_4 = "iron_4"
    IRON_5 = "iron_5"
    IRON_6 = "iron_6"
    IRON_7 = "iron_7"
    IRON_8 = "iron_8"
    IRON_9 = "iron_9"
    PITCHING_WEDGE = "pitching_wedge"
    SAND_WEDGE = "sand_wedge"
    LOB_WEDGE = "lob_wedge"
    PUTTER = "putter"


class SwingPhaseEnum(str, Enum):
    """Swing phases for API."""
    ADDRESS = "address"
    BACKSWING = "backswing"
    TOP = "top"
    DOWNSWING = "downswing"
    IMPACT = "impact"
    FOLLOW_THROUGH = "follow_through"


# =============================================================================
# Requests
# =============================================================================

class SwingValidationSchema(BaseModel):
    """Verdict from a swing-validity checker run by the client."""
    is_valid: bool = Field(..., description="Whether the motion looks like a golf swing")
    score: float = Field(..., ge=0, le=100, description="Validity score")
    errors: List[str] = Field(default_factory=list, description="Reasons the swing failed")


class GradeSwingRequest(BaseModel):
    """
    Request to grade a swing from pre-extracted pose frames.

    Used when the frontend has already done pose detection.
    """
    frames: List[PoseFrameSchema] = Field(..., description="Pose frames in temporal order")
    club: GolfClubEnum = Field(GolfClubEnum.IRON_7, description="Club being used")
    validation: Optional[SwingValidationSchema] = Field(None, description="Optional validity verdict")
    session_id: Optional[str] = Field(None, description="Record the swing in this session")
    frame_skip: int = Field(1, ge=1, le=10, description="Analyze every Nth frame")

    class Config:
        json_schema_extra = {
            "example": {
                "frames": [],
                "club": "driver",
                "validation": {"is_valid": True, "score": 85, "errors": []},
                "session_id": "range-day",
                "frame_skip": 1
            }
        }


class CreateSessionRequest(BaseModel):
    session_id: Optional[str] = Field(None, min_length=1, max_length=64, description="Requested session id")


# =============================================================================
# Grade Responses
# =============================================================================

class PhaseSpanSchema(BaseModel):
    """Frame range of one swing phase."""
    phase: SwingPhaseEnum = Field(..., description="Swing phase")
    start_frame: int = Field(..., ge=0)
    end_frame: int = Field(..., ge=0)
    start_time: float = Field(..., description="Start timestamp (ms)")
    end_time: float = Field(..., description="End timestamp (ms)")
    duration: float = Field(..., description="Duration (ms)")
    confidence: float = Field(..., ge=0, le=1)


class BenchmarkSchema(BaseModel):
    professional: float
    amateur: float
    current: float


class GradeDetailsSchema(BaseModel):
    primary: str
    secondary: str
    improvement: str


class CategoryGradeSchema(BaseModel):
    """
    Grade for one swing category.
    """
    score: float = Field(..., ge=0, le=100, description="Score out of 100")
    letter: str = Field(..., description="Letter grade (A+ to F)")
    benchmark: BenchmarkSchema
    weight: float = Field(..., ge=0, le=1, description="Weight in the overall score")
    details: GradeDetailsSchema

    class Config:
        json_schema_extra = {
            "example": {
                "score": 84.0,
                "letter": "B",
                "benchmark": {"professional": 90, "amateur": 75, "current": 82},
                "weight": 0.2,
                "details": {
                    "primary": "Shoulder turn 82°",
                    "secondary": "Hip turn 44°, X-factor 38°",
                    "improvement": "Maintain your full shoulder turn"
                }
            }
        }


class OverallGradeSchema(BaseModel):
    score: float = Field(..., ge=0, le=100)
    letter: str
    description: str


class ComparisonSchema(BaseModel):
    vs_professional: float
    vs_amateur: float
    percentile: float = Field(..., ge=0, le=100)


class EmergencyOverridesSchema(BaseModel):
    applied: bool
    reason: str
    original_score: float
    adjusted_score: float


class RecommendationsSchema(BaseModel):
    immediate: List[str] = Field(default_factory=list)
    short_term: List[str] = Field(default_factory=list)
    long_term: List[str] = Field(default_factory=list)


class DataQualitySchema(BaseModel):
    pose_count: int
    phase_count: int
    quality_score: float
    reliability: str = Field(..., description="High, Medium or Low")


class ComprehensiveGradeSchema(BaseModel):
    """
    Complete grade for one swing.
    """
    overall: OverallGradeSchema
    categories: dict[str, CategoryGradeSchema] = Field(default_factory=dict)
    comparison: ComparisonSchema
    emergency_overrides: EmergencyOverridesSchema
    recommendations: RecommendationsSchema
    data_quality: DataQualitySchema
    metrics: Optional[dict[str, dict[str, float | str]]] = Field(
        None, description="Raw category measurements"
    )


# =============================================================================
# Consistency Responses
# =============================================================================

class VariabilitySchema(BaseModel):
    std_dev: float
    coefficient_of_variation: float
    range: float
    trend: str = Field(..., description="improving, declining or stable")


class CategoryConsistencySchema(BaseModel):
    score: float = Field(..., ge=0, le=100)
    letter: str
    variability: VariabilitySchema


class TrendSummarySchema(BaseModel):
    improving: List[str] = Field(default_factory=list)
    declining: List[str] = Field(default_factory=list)
    stable: List[str] = Field(default_factory=list)


class ConsistencyStatisticsSchema(BaseModel):
    total_swings: int
    average_score: float
    best_score: float
    worst_score: float
    std_dev: float
    coefficient_of_variation: float


class ConsistencyResponse(BaseModel):
    """
    Consistency across the swings of a session.
    """
    overall: OverallGradeSchema
    categories: dict[str, CategoryConsistencySchema] = Field(default_factory=dict)
    trends: TrendSummarySchema
    recommendations: RecommendationsSchema
    statistics: ConsistencyStatisticsSchema


# =============================================================================
# Analysis and Session Responses
# =============================================================================

class SwingAnalysisResponse(BaseModel):
    """
    Complete swing analysis result.

    This is the main response from the grade endpoint.
    """
    # Identification
    id: str = Field(..., description="Unique analysis ID")
    timestamp: datetime = Field(..., description="When analysis was performed")

    # Input info
    frame_count: int = Field(..., description="Frames analyzed")
    duration_ms: float = Field(..., description="Swing duration in milliseconds")
    club: GolfClubEnum = Field(..., description="Golf club used")

    # Results
    phases: List[PhaseSpanSchema] = Field(default_factory=list, description="Six swing phases")
    grade: ComprehensiveGradeSchema
    consistency: Optional[ConsistencyResponse] = Field(None, description="Session consistency")
    session_id: Optional[str] = None
    swing_id: Optional[str] = Field(None, description="History id of this swing in the session")

    # Coaching
    summary: str = Field(..., description="Text summary of analysis")
    feedback: Optional[str] = Field(None, description="Generated coaching feedback")

    # Key frames for visualization
    key_frames: dict[str, int] = Field(default_factory=dict, description="Phase -> first frame mapping")

    class Config:
        json_schema_extra = {
            "example": {
                "id": "550e8400-e29b-41d4-a716-446655440000",
                "timestamp": "2024-01-15T10:30:00Z",
                "frame_count": 90,
                "duration_ms": 3000,
                "club": "iron_7",
                "summary": "Your iron_7 swing scored 78/100 (C+) - good."
            }
        }


class HistoryEntrySchema(BaseModel):
    id: str
    timestamp: datetime
    overall_score: float
    letter: str
    category_scores: dict[str, float]
    pose_count: int
    phase_count: int
    data_quality: float


class SwingComparisonSchema(BaseModel):
    swing_id: str
    previous_swing_id: Optional[str]
    current_score: float
    previous_score: Optional[float]
    difference: float
    verdict: str = Field(..., description="improved, declined, similar or first")


class SessionSummarySchema(BaseModel):
    session_id: str
    swing_count: int
    average_score: float
    best_score: float
    worst_score: float
    started_at: datetime
    last_activity: datetime


class HealthResponse(BaseModel):
    """
    Health check response.
    """
    status: str = Field("healthy", description="Service status")
    version: str = Field(..., description="API version")
    active_sessions: int = Field(..., description="Sessions currently held in memory")
