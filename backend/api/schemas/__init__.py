"""
API Schemas

Pydantic models for request/response validation.
"""

from .pose import (
    LandmarkSchema,
    PoseFrameSchema,
    WebSocketMessageType,
    WebSocketMessage,
)

from .analysis import (
    GolfClubEnum,
    SwingPhaseEnum,
    SwingValidationSchema,
    GradeSwingRequest,
    CreateSessionRequest,
    PhaseSpanSchema,
    BenchmarkSchema,
    GradeDetailsSchema,
    CategoryGradeSchema,
    OverallGradeSchema,
    ComparisonSchema,
    EmergencyOverridesSchema,
    RecommendationsSchema,
    DataQualitySchema,
    ComprehensiveGradeSchema,
    VariabilitySchema,
    CategoryConsistencySchema,
    TrendSummarySchema,
    ConsistencyStatisticsSchema,
    ConsistencyResponse,
    SwingAnalysisResponse,
    HistoryEntrySchema,
    SwingComparisonSchema,
    SessionSummarySchema,
    HealthResponse,
)

__all__ = [
    # Pose schemas
    "LandmarkSchema",
    "PoseFrameSchema",
    "WebSocketMessageType",
    "WebSocketMessage",
    # Analysis schemas
    "GolfClubEnum",
    "SwingPhaseEnum",
    "SwingValidationSchema",
    "GradeSwingRequest",
    "CreateSessionRequest",
    "PhaseSpanSchema",
    "BenchmarkSchema",
    "GradeDetailsSchema",
    "CategoryGradeSchema",
    "OverallGradeSchema",
    "ComparisonSchema",
    "EmergencyOverridesSchema",
    "RecommendationsSchema",
    "DataQualitySchema",
    "ComprehensiveGradeSchema",
    # Consistency and session schemas
    "VariabilitySchema",
    "CategoryConsistencySchema",
    "TrendSummarySchema",
    "ConsistencyStatisticsSchema",
    "ConsistencyResponse",
    "SwingAnalysisResponse",
    "HistoryEntrySchema",
    "SwingComparisonSchema",
    "SessionSummarySchema",
    "HealthResponse",
]
