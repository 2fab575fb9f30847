"""
Swing Grader API Module

FastAPI routes and WebSocket handlers for golf swing grading.
"""

from .routes import router, get_registry
from .websocket import websocket_endpoint, manager

__all__ = [
    "router",
    "get_registry",
    "websocket_endpoint",
    "manager",
]
