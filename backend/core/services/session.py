"""
Swing Sessions

A session groups the swings one golfer records in a sitting. Each session
owns its own consistency history, so sessions never share state.
"""

import logging
import threading
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..domain.analysis import ComprehensiveGrade
from ..domain.consistency import ConsistencyMetrics, SwingComparison, SwingHistoryEntry
from .consistency_aggregator import ConsistencyAggregator, DEFAULT_HISTORY_SIZE

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionSummary:
    session_id: str
    swing_count: int
    average_score: float
    best_score: float
    worst_score: float
    started_at: datetime
    last_activity: datetime


class SwingSession:
    """
    One practice session and its swing history.

    Usage:
        session = SwingSession("range-day")
        session.record(grade)
        report = session.consistency()
    """

    def __init__(
        self,
        session_id: Optional[str] = None,
        max_history: int = DEFAULT_HISTORY_SIZE,
    ):
        self.session_id = session_id or f"session_{uuid.uuid4().hex[:12]}"
        self.aggregator = ConsistencyAggregator(max_history=max_history)
        self.started_at = datetime.now()
        self.last_activity = self.started_at

    def record(self, grade: ComprehensiveGrade) -> SwingHistoryEntry:
        """Add a graded swing to this session's history."""
        entry = self.aggregator.add_grade(grade, session_id=self.session_id)
        self.last_activity = entry.timestamp
        logger.debug(f"Session {self.session_id}: recorded {entry.id}")
        return entry

    def consistency(self) -> ConsistencyMetrics:
        return self.aggregator.calculate_consistency()

    def history(self) -> tuple[SwingHistoryEntry, ...]:
        return self.aggregator.history

    def compare(self, swing_id: str) -> Optional[SwingComparison]:
        return self.aggregator.compare_with_previous(swing_id)

    def reset(self) -> None:
        self.aggregator.reset()
        self.last_activity = datetime.now()

    def summary(self) -> SessionSummary:
        scores = [entry.overall_score for entry in self.aggregator.history]
        return SessionSummary(
            session_id=self.session_id,
            swing_count=len(scores),
            average_score=round(sum(scores) / len(scores), 1) if scores else 0.0,
            best_score=max(scores, default=0.0),
            worst_score=min(scores, default=0.0),
            started_at=self.started_at,
            last_activity=self.last_activity,
        )


class SessionRegistry:
    """
    Thread-safe lookup of sessions by id.

    The API keeps one registry on the application state.
    """

    def __init__(self, max_history: int = DEFAULT_HISTORY_SIZE):
        self.max_history = max_history
        self._sessions: dict[str, SwingSession] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def create(self, session_id: Optional[str] = None) -> SwingSession:
        """Create a session, or return the existing one with that id."""
        with self._lock:
            if session_id and session_id in self._sessions:
                return self._sessions[session_id]
            session = SwingSession(session_id, max_history=self.max_history)
            self._sessions[session.session_id] = session
        logger.info(f"Session started: {session.session_id}")
        return session

    def get(self, session_id: str) -> Optional[SwingSession]:
        return self._sessions.get(session_id)

    def get_or_create(self, session_id: str) -> SwingSession:
        return self.get(session_id) or self.create(session_id)

    def drop(self, session_id: str) -> bool:
        """Reset and forget a session. Returns False if it did not exist."""
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        session.reset()
        logger.info(f"Session ended: {session_id}")
        return True
