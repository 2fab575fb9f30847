"""
Swing Grader Backend API

FastAPI application for golf swing segmentation, grading and consistency tracking.

Run with:
    uvicorn main:app --reload --host 0.0.0.0 --port 8000

API docs available at:
    http://localhost:8000/docs (Swagger UI)
    http://localhost:8000/redoc (ReDoc)
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import router as api_router, API_VERSION
from api.websocket import websocket_endpoint
from core.config import AnalysisOptions
from core.services import SessionRegistry

# =============================================================================
# Logging Configuration
# =============================================================================

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


# =============================================================================
# Lifespan (startup/shutdown)
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Creates the session registry before the app starts accepting
    requests. Sessions live in memory only and end with the process.
    """
    # Startup
    app.state.sessions = SessionRegistry(max_history=AnalysisOptions().history_size)
    logger.info("Swing Grader API starting up...")
    logger.info("API docs: http://localhost:8000/docs")
    logger.info("WebSocket: ws://localhost:8000/ws/swing")

    yield  # App runs here

    # Shutdown
    logger.info(f"Swing Grader API shutting down ({len(app.state.sessions)} open sessions)")


# =============================================================================
# FastAPI App
# =============================================================================

app = FastAPI(
    title="Swing Grader API",
    description="""
    **Golf Swing Grading Engine**

    Phase segmentation, biomechanics metrics and benchmark-relative grading
    for golf swings captured as pose sequences.

    ## Features

    - **Phase Segmentation** into address, backswing, top, downswing, impact and follow-through
    - **Swing Metrics** (tempo, rotation, weight transfer, swing plane, body alignment)
    - **Weighted Grading** against professional benchmarks, with letter grades
    - **Consistency Tracking** across the swings of a practice session

    ## Endpoints

    - `GET /api/health` - Health check
    - `POST /api/analysis/grade` - Grade a swing from pose frames
    - `POST /api/sessions` - Start a practice session
    - `GET /api/sessions/{id}/consistency` - Session consistency
    - `WS /ws/swing` - Streamed swing grading

    ## WebSocket Protocol

    Connect to `/ws/swing` and send frames as JSON:
```json
    {
        "type": "frame",
        "data": {"landmarks": [...], "timestamp_ms": 0, "frame_number": 0},
        "timestamp": 1704067200000
    }
```
    then `{"type": "grade"}` to grade the buffered swing.
    """,
    version=API_VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)


# =============================================================================
# CORS Middleware
# =============================================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",      # React dev server
        "http://localhost:5173",      # Vite dev server
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5173",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Routes
# =============================================================================

# Include REST API routes
app.include_router(api_router, prefix="/api")

# WebSocket endpoint
app.websocket("/ws/swing")(websocket_endpoint)


@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint - API information.
    """
    return {
        "name": "Swing Grader API",
        "version": API_VERSION,
        "description": "Golf swing segmentation, grading and consistency",
        "docs": "/docs",
        "health": "/api/health",
        "websocket": "ws://localhost:8000/ws/swing"
    }


# =============================================================================
# Run directly (for development)
# =============================================================================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )
