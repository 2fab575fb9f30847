"""
WebSocket Handler

Real-time swing grading via WebSocket connection.
Allows frontend to stream pose frames and receive a grade when the swing ends.
"""

import json
import time
import logging
from typing import Optional
from fastapi import WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from .schemas import (
    WebSocketMessageType,
    PoseFrameSchema,
    SwingValidationSchema,
    GolfClubEnum,
)
from .routes import convert_analysis_to_response, convert_validation
from core.domain import GolfClub, PoseFrame
from core.services import SessionRegistry, SwingAnalyzer, SwingSession

# Configure logging
logger = logging.getLogger(__name__)

# Frames kept per connection before a grade is requested
MAX_BUFFERED_FRAMES = 1000


def _message(msg_type: WebSocketMessageType, data: dict) -> dict:
    return {
        "type": msg_type.value,
        "data": data,
        "timestamp": int(time.time() * 1000)
    }


class ConnectionManager:
    """
    Manages WebSocket connections.

    Each connection owns a practice session and a buffer of the
    frames streamed since the last grade.
    """

    def __init__(self):
        self.active_connections: list[WebSocket] = []
        self.sessions: dict[WebSocket, SwingSession] = {}
        self.buffers: dict[WebSocket, list[PoseFrame]] = {}
        self.analyzer = SwingAnalyzer()

    async def connect(self, websocket: WebSocket, registry: SessionRegistry) -> SwingSession:
        """Accept new WebSocket connection and open its session."""
        await websocket.accept()
        self.active_connections.append(websocket)

        session = registry.create()
        self.sessions[websocket] = session
        self.buffers[websocket] = []

        logger.info(f"New WebSocket connection. Total: {len(self.active_connections)}")
        return session

    def disconnect(self, websocket: WebSocket, registry: SessionRegistry) -> None:
        """Handle WebSocket disconnection."""
        if websocket in self.active_connections:
            self.active_connections.remove(websocket)

        session = self.sessions.pop(websocket, None)
        if session is not None:
            registry.drop(session.session_id)
        self.buffers.pop(websocket, None)

        logger.info(f"WebSocket disconnected. Remaining: {len(self.active_connections)}")

    def get_session(self, websocket: WebSocket) -> Optional[SwingSession]:
        return self.sessions.get(websocket)

    def get_buffer(self, websocket: WebSocket) -> list[PoseFrame]:
        return self.buffers.setdefault(websocket, [])

    async def send_json(self, websocket: WebSocket, data: dict) -> None:
        """Send JSON data to a specific connection."""
        try:
            await websocket.send_json(data)
        except Exception as e:
            logger.error(f"Failed to send WebSocket message: {e}")


# Global connection manager
manager = ConnectionManager()


async def websocket_endpoint(websocket: WebSocket) -> None:
    """
    WebSocket endpoint for streamed swing grading.

    Protocol:
    1. Client connects and receives its session id
    2. Client sends pose frames, one message each
    3. Client sends "grade"; server grades the buffered frames
    4. Client repeats 2-3 per swing, then sends "end_session"

    Message format (client -> server):
    {
        "type": "frame",
        "data": {"landmarks": [...], "timestamp_ms": 33.3, "frame_number": 1},
        "timestamp": 1704067200000
    }
    {
        "type": "grade",
        "data": {"club": "driver", "validation": {"is_valid": true, "score": 80}}
    }

    Message format (server -> client):
    {
        "type": "grade_result",
        "data": { ...swing analysis... },
        "timestamp": 1704067200025
    }
    """
    registry: SessionRegistry = websocket.app.state.sessions
    session = await manager.connect(websocket, registry)

    try:
        # Send session started message
        await manager.send_json(websocket, _message(
            WebSocketMessageType.SESSION_STARTED,
            {"message": "Connected to swing grading", "session_id": session.session_id}
        ))

        # Main message loop
        while True:
            try:
                # Receive message from client
                data = await websocket.receive_json()

                # Process based on message type
                msg_type = data.get("type")

                if msg_type == WebSocketMessageType.FRAME.value:
                    await handle_frame(websocket, data)

                elif msg_type == WebSocketMessageType.GRADE.value:
                    await handle_grade(websocket, data)

                elif msg_type == WebSocketMessageType.RESET.value:
                    manager.get_buffer(websocket).clear()
                    session.reset()
                    await manager.send_json(websocket, _message(
                        WebSocketMessageType.SESSION_RESET,
                        {"session_id": session.session_id}
                    ))

                elif msg_type == WebSocketMessageType.END_SESSION.value:
                    summary = session.summary()
                    await manager.send_json(websocket, _message(
                        WebSocketMessageType.SESSION_ENDED,
                        {
                            "message": "Session ended",
                            "session_id": session.session_id,
                            "swing_count": summary.swing_count,
                            "average_score": summary.average_score,
                        }
                    ))
                    break

                else:
                    await manager.send_json(websocket, _message(
                        WebSocketMessageType.ERROR,
                        {"error": f"Unknown message type: {msg_type}"}
                    ))

            except json.JSONDecodeError:
                await manager.send_json(websocket, _message(
                    WebSocketMessageType.ERROR,
                    {"error": "Invalid JSON"}
                ))

    except WebSocketDisconnect:
        logger.info("Client disconnected")
    except Exception as e:
        logger.error(f"WebSocket error: {e}")
    finally:
        manager.disconnect(websocket, registry)


async def handle_frame(websocket: WebSocket, message: dict) -> None:
    """
    Validate a pose frame and add it to the connection's buffer.
    """
    buffer = manager.get_buffer(websocket)

    if len(buffer) >= MAX_BUFFERED_FRAMES:
        await manager.send_json(websocket, _message(
            WebSocketMessageType.ERROR,
            {"error": f"Frame buffer full ({MAX_BUFFERED_FRAMES}); send grade or reset"}
        ))
        return

    try:
        frame = PoseFrameSchema.model_validate(message.get("data", {}))
    except ValidationError as e:
        await manager.send_json(websocket, _message(
            WebSocketMessageType.ERROR,
            {"error": f"Invalid frame: {e.error_count()} validation error(s)"}
        ))
        return

    buffer.append(frame.to_domain())

    await manager.send_json(websocket, _message(
        WebSocketMessageType.FRAME_ACK,
        {"frame_number": frame.frame_number, "buffered": len(buffer)}
    ))


async def handle_grade(websocket: WebSocket, message: dict) -> None:
    """
    Grade the buffered frames as one swing and clear the buffer.
    """
    buffer = manager.get_buffer(websocket)
    session = manager.get_session(websocket)

    if not buffer:
        await manager.send_json(websocket, _message(
            WebSocketMessageType.ERROR,
            {"error": "No frames to analyze"}
        ))
        return

    try:
        payload = message.get("data", {})
        club = GolfClubEnum(payload.get("club", GolfClubEnum.IRON_7.value))
        validation = None
        if payload.get("validation") is not None:
            validation = SwingValidationSchema.model_validate(payload["validation"])

        result = manager.analyzer.analyze_frames(
            list(buffer),
            club=GolfClub(club.value),
            session=session,
            validation=convert_validation(validation),
        )
        buffer.clear()

        response = convert_analysis_to_response(result)
        await manager.send_json(websocket, _message(
            WebSocketMessageType.GRADE_RESULT,
            response.model_dump(mode="json")
        ))

    except (ValueError, ValidationError) as e:
        await manager.send_json(websocket, _message(
            WebSocketMessageType.ERROR,
            {"error": str(e)}
        ))
    except Exception as e:
        logger.error(f"Swing grading error: {e}")
        await manager.send_json(websocket, _message(
            WebSocketMessageType.ERROR,
            {"error": str(e)}
        ))
