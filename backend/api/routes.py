"""
REST API Routes

FastAPI routes for golf swing grading.
Handles HTTP requests for swing analysis and practice sessions.
"""

import logging
from dataclasses import asdict
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request

from .schemas import (
    GradeSwingRequest,
    CreateSessionRequest,
    SwingAnalysisResponse,
    PhaseSpanSchema,
    CategoryGradeSchema,
    BenchmarkSchema,
    GradeDetailsSchema,
    OverallGradeSchema,
    ComparisonSchema,
    EmergencyOverridesSchema,
    RecommendationsSchema,
    DataQualitySchema,
    ComprehensiveGradeSchema,
    ConsistencyResponse,
    CategoryConsistencySchema,
    VariabilitySchema,
    TrendSummarySchema,
    ConsistencyStatisticsSchema,
    HistoryEntrySchema,
    SwingComparisonSchema,
    SessionSummarySchema,
    SwingValidationSchema,
    GolfClubEnum,
    SwingPhaseEnum,
    HealthResponse,
)
from core.config import AnalysisOptions
from core.domain import (
    ComprehensiveGrade,
    ConsistencyMetrics,
    GolfClub,
    SwingAnalysis,
    SwingValidation,
)
from core.services import SessionRegistry, SwingAnalyzer, SwingSession

# Configure logging
logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"

# Create router
router = APIRouter()


def get_registry(request: Request) -> SessionRegistry:
    """Session registry created by the application lifespan."""
    return request.app.state.sessions


def _require_session(registry: SessionRegistry, session_id: str) -> SwingSession:
    session = registry.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")
    return session


# =============================================================================
# Health Check
# =============================================================================

@router.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="Health check endpoint"
)
async def health_check(registry: SessionRegistry = Depends(get_registry)) -> HealthResponse:
    """
    Check if the API is running.

    Returns:
        Health status, version and number of active sessions
    """
    return HealthResponse(
        status="healthy",
        version=API_VERSION,
        active_sessions=len(registry)
    )


# =============================================================================
# Swing Analysis
# =============================================================================

@router.post(
    "/analysis/grade",
    response_model=SwingAnalysisResponse,
    tags=["Swing Analysis"],
    summary="Grade a swing from pre-detected poses"
)
async def grade_swing(
    request: GradeSwingRequest,
    registry: SessionRegistry = Depends(get_registry),
) -> SwingAnalysisResponse:
    """
    Grade a golf swing from a sequence of pose frames.

    The frames will be:
    1. Segmented into six swing phases
    2. Measured (tempo, rotation, weight transfer, plane, alignment)
    3. Graded against professional benchmarks
    4. Recorded in the session, if one is given, for consistency tracking

    Args:
        request: Pose frames, club, optional validity verdict and session id

    Returns:
        Complete swing analysis with grade and optional consistency
    """
    if not request.frames:
        raise HTTPException(status_code=400, detail="No frames to analyze")

    session = registry.get_or_create(request.session_id) if request.session_id else None

    try:
        analyzer = SwingAnalyzer(AnalysisOptions(frame_skip=request.frame_skip))
        result = analyzer.analyze_frames(
            [frame.to_domain() for frame in request.frames],
            club=GolfClub(request.club.value),
            session=session,
            validation=convert_validation(request.validation),
        )
        return convert_analysis_to_response(result)

    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Swing grading failed: {e}")
        raise HTTPException(status_code=500, detail=str(e))


# =============================================================================
# Sessions
# =============================================================================

@router.post(
    "/sessions",
    response_model=SessionSummarySchema,
    status_code=201,
    tags=["Sessions"],
    summary="Start a practice session"
)
async def create_session(
    request: Optional[CreateSessionRequest] = None,
    registry: SessionRegistry = Depends(get_registry),
) -> SessionSummarySchema:
    """
    Create a session. An existing id returns the existing session.
    """
    session = registry.create(request.session_id if request else None)
    return _convert_summary(session)


@router.get(
    "/sessions/{session_id}",
    response_model=SessionSummarySchema,
    tags=["Sessions"],
    summary="Session summary"
)
async def get_session(
    session_id: str,
    registry: SessionRegistry = Depends(get_registry),
) -> SessionSummarySchema:
    return _convert_summary(_require_session(registry, session_id))


@router.get(
    "/sessions/{session_id}/consistency",
    response_model=ConsistencyResponse,
    tags=["Sessions"],
    summary="Consistency across the session's swings"
)
async def get_consistency(
    session_id: str,
    registry: SessionRegistry = Depends(get_registry),
) -> ConsistencyResponse:
    """
    Measure how repeatable the session's swings are.

    Fewer than two swings returns a zero score with the
    "Insufficient data" description.
    """
    session = _require_session(registry, session_id)
    try:
        return convert_consistency(session.consistency())
    except Exception as e:
        logger.error(f"Consistency calculation failed: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get(
    "/sessions/{session_id}/history",
    response_model=List[HistoryEntrySchema],
    tags=["Sessions"],
    summary="Graded swings in the session"
)
async def get_history(
    session_id: str,
    registry: SessionRegistry = Depends(get_registry),
) -> List[HistoryEntrySchema]:
    session = _require_session(registry, session_id)
    return [
        HistoryEntrySchema(
            id=entry.id,
            timestamp=entry.timestamp,
            overall_score=entry.overall_score,
            letter=entry.grade.overall.letter,
            category_scores=dict(entry.category_scores),
            pose_count=entry.metadata.pose_count,
            phase_count=entry.metadata.phase_count,
            data_quality=entry.metadata.data_quality,
        )
        for entry in session.history()
    ]


@router.get(
    "/sessions/{session_id}/compare/{swing_id}",
    response_model=SwingComparisonSchema,
    tags=["Sessions"],
    summary="Compare a swing with the one before it"
)
async def compare_swing(
    session_id: str,
    swing_id: str,
    registry: SessionRegistry = Depends(get_registry),
) -> SwingComparisonSchema:
    session = _require_session(registry, session_id)
    comparison = session.compare(swing_id)
    if comparison is None:
        raise HTTPException(status_code=404, detail=f"Swing not found: {swing_id}")
    return SwingComparisonSchema(**asdict(comparison))


@router.delete(
    "/sessions/{session_id}",
    status_code=204,
    tags=["Sessions"],
    summary="Reset and drop a session"
)
async def delete_session(
    session_id: str,
    registry: SessionRegistry = Depends(get_registry),
) -> None:
    if not registry.drop(session_id):
        raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")


# =============================================================================
# Helper Functions
# =============================================================================

def convert_validation(schema: Optional[SwingValidationSchema]) -> Optional[SwingValidation]:
    """Convert the API validity verdict to the domain type."""
    if schema is None:
        return None
    return SwingValidation(
        is_valid=schema.is_valid,
        score=schema.score,
        errors=tuple(schema.errors),
    )


def convert_grade(grade: ComprehensiveGrade) -> ComprehensiveGradeSchema:
    """Convert a domain ComprehensiveGrade to its API schema."""
    categories = {
        category.value: CategoryGradeSchema(
            score=cg.score,
            letter=cg.letter,
            benchmark=BenchmarkSchema(**asdict(cg.benchmark)),
            weight=cg.weight,
            details=GradeDetailsSchema(**asdict(cg.details)),
        )
        for category, cg in grade.categories.items()
    }

    metrics = None
    if grade.metrics is not None:
        metrics = {metric.category.value: asdict(metric) for metric in grade.metrics.as_list()}

    return ComprehensiveGradeSchema(
        overall=OverallGradeSchema(**asdict(grade.overall)),
        categories=categories,
        comparison=ComparisonSchema(**asdict(grade.comparison)),
        emergency_overrides=EmergencyOverridesSchema(**asdict(grade.emergency_overrides)),
        recommendations=RecommendationsSchema(
            immediate=list(grade.recommendations.immediate),
            short_term=list(grade.recommendations.short_term),
            long_term=list(grade.recommendations.long_term),
        ),
        data_quality=DataQualitySchema(**asdict(grade.data_quality)),
        metrics=metrics,
    )


def convert_consistency(report: ConsistencyMetrics) -> ConsistencyResponse:
    """Convert a domain ConsistencyMetrics report to its API schema."""
    categories = {
        name: CategoryConsistencySchema(
            score=cc.score,
            letter=cc.letter,
            variability=VariabilitySchema(
                std_dev=cc.variability.std_dev,
                coefficient_of_variation=cc.variability.coefficient_of_variation,
                range=cc.variability.range,
                trend=cc.variability.trend.value,
            ),
        )
        for name, cc in report.categories.items()
    }

    return ConsistencyResponse(
        overall=OverallGradeSchema(
            score=report.overall.score,
            letter=report.overall.letter,
            description=report.overall.description,
        ),
        categories=categories,
        trends=TrendSummarySchema(
            improving=list(report.trends.improving),
            declining=list(report.trends.declining),
            stable=list(report.trends.stable),
        ),
        recommendations=RecommendationsSchema(
            immediate=list(report.recommendations.immediate),
            short_term=list(report.recommendations.short_term),
            long_term=list(report.recommendations.long_term),
        ),
        statistics=ConsistencyStatisticsSchema(**asdict(report.statistics)),
    )


def convert_analysis_to_response(result: SwingAnalysis) -> SwingAnalysisResponse:
    """Convert domain SwingAnalysis to API response schema."""
    phases = [
        PhaseSpanSchema(
            phase=SwingPhaseEnum(span.phase.value),
            start_frame=span.start_frame,
            end_frame=span.end_frame,
            start_time=span.start_time,
            end_time=span.end_time,
            duration=span.duration,
            confidence=span.confidence,
        )
        for span in result.phases
    ]

    return SwingAnalysisResponse(
        id=result.id,
        timestamp=result.timestamp,
        frame_count=result.frame_count,
        duration_ms=result.duration_ms,
        club=GolfClubEnum(result.club.value),
        phases=phases,
        grade=convert_grade(result.grade),
        consistency=convert_consistency(result.consistency) if result.consistency else None,
        session_id=result.session_id,
        swing_id=result.swing_id,
        summary=result.summary,
        feedback=result.feedback,
        key_frames={phase.value: frame for phase, frame in result.key_frames.items()},
    )


def _convert_summary(session: SwingSession) -> SessionSummarySchema:
    return SessionSummarySchema(**asdict(session.summary()))
