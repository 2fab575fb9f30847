"""
Phase Segmenter Service

Splits a pose sequence into the six ordered swing phases.

Boundaries come from the lead (right) wrist trajectory:
- ADDRESS ends when the wrist starts moving
- TOP is centred on the highest wrist position
- IMPACT is the frame of peak wrist acceleration

Short or undetectable sequences fall back to fixed proportional splits.
The segmenter never raises: every downstream metric needs all six phases.
"""

import logging
import math
from typing import Optional, Sequence

import numpy as np

from ..config import PhaseDetectionConfig, PROPORTIONAL_SPLITS
from ..domain.analysis import PhaseSpan, SwingPhase, PHASE_ORDER
from ..domain.pose import PoseFrame, SwingTrajectory, TrajectoryPoint
from .angle_calculator import AngleCalculator
from .trajectory import build_trajectory

logger = logging.getLogger(__name__)


class PhaseSegmenter:
    """
    Detects swing phase boundaries.

    Usage:
        segmenter = PhaseSegmenter()
        phases = segmenter.segment(frames)
        top = phases[2]  # always six spans in PHASE_ORDER
    """

    def __init__(self, config: Optional[PhaseDetectionConfig] = None):
        self.config = config or PhaseDetectionConfig()

    # -------------------------------------------------------------------------
    # Main Entry Point
    # -------------------------------------------------------------------------

    def segment(
        self,
        frames: Sequence[PoseFrame],
        trajectory: Optional[SwingTrajectory] = None,
    ) -> list[PhaseSpan]:
        """
        Segment a pose sequence into six phase spans.

        Args:
            frames: Pose frames in temporal order
            trajectory: Pre-built trajectory (built from frames if omitted)

        Returns:
            Six PhaseSpans in canonical order covering every frame
        """
        frame_count = len(frames)
        if frame_count == 0:
            logger.warning("Cannot segment an empty pose sequence")
            return [
                PhaseSpan(phase, 0, 0, 0.0, 0.0, 0.0)
                for phase in PHASE_ORDER
            ]

        if frame_count < self.config.min_detection_frames:
            logger.info(
                f"Only {frame_count} frames, using proportional phase split"
            )
            return self.proportional_phases(frames)

        try:
            if trajectory is None or len(trajectory) != frame_count:
                trajectory = build_trajectory(frames)
            boundaries = self._detect_boundaries(trajectory.right_wrist)
        except Exception as e:
            logger.warning(f"Phase detection failed, using proportional split: {e}")
            return self.proportional_phases(frames)

        logger.debug(f"Phase boundaries: {boundaries}")
        return self._build_spans(frames, boundaries, self.config.base_confidence)

    def proportional_phases(self, frames: Sequence[PoseFrame]) -> list[PhaseSpan]:
        """Split frames by the fixed 10/30/10/30/5/15 percentages."""
        boundaries = proportional_boundaries(len(frames))
        return self._build_spans(frames, boundaries, self.config.fallback_confidence)

    # -------------------------------------------------------------------------
    # Boundary Detection
    # -------------------------------------------------------------------------

    def _detect_boundaries(self, wrist: list[TrajectoryPoint]) -> list[int]:
        cfg = self.config
        last = len(wrist) - 1

        address_end = self._find_address_end(wrist)
        top = self._find_top(wrist, address_end)
        top_start = max(top - cfg.top_window, address_end)
        top_end = min(top + cfg.top_window, last)
        impact = self._find_impact(wrist, top_end)
        impact_end = min(impact + cfg.impact_window, last)

        return self._normalize(
            [0, address_end, top_start, top_end, impact, impact_end, last]
        )

    def _find_address_end(self, wrist: list[TrajectoryPoint]) -> int:
        """First frame where the wrist starts moving, within the search window."""
        cfg = self.config
        origin = wrist[0]
        limit = min(cfg.address_search_frames, len(wrist))

        for i in range(1, limit):
            speed = AngleCalculator.velocity(wrist[i - 1], wrist[i])
            moved = AngleCalculator.distance(origin, wrist[i])
            if speed > cfg.velocity_threshold or moved > cfg.movement_threshold:
                return max(cfg.min_phase_duration, i)

        return min(cfg.address_fallback_frame, len(wrist) - 1)

    def _find_top(self, wrist: list[TrajectoryPoint], address_end: int) -> int:
        """Highest wrist position (smallest y) between address and the search end."""
        last = len(wrist) - 1
        start = min(address_end + 1, last)
        end = min(max(start, int(len(wrist) * self.config.top_search_end)), last)

        heights = np.array([point.y for point in wrist[start:end + 1]])
        return start + int(np.argmin(heights))

    def _find_impact(self, wrist: list[TrajectoryPoint], top_end: int) -> int:
        """Frame of peak wrist acceleration after the top."""
        cfg = self.config
        frame_count = len(wrist)
        start = max(int(frame_count * cfg.impact_search_start), top_end + 1, 2)

        best_frame = None
        best_acceleration = 0.0
        for i in range(start, frame_count - 1):
            acceleration = AngleCalculator.acceleration(wrist[i - 2], wrist[i - 1], wrist[i])
            if acceleration > best_acceleration:
                best_acceleration = acceleration
                best_frame = i

        if best_frame is None:
            fallback = max(int(frame_count * cfg.impact_fallback), top_end)
            logger.debug(f"No acceleration peak found, impact defaults to frame {fallback}")
            return min(fallback, frame_count - 1)
        return best_frame

    def _normalize(self, boundaries: list[int]) -> list[int]:
        """
        Force boundaries to be strictly increasing inside the sequence.

        Every span keeps at least one frame transition. Detection only runs
        on sequences long enough to give each of the six phases a frame.
        """
        last = boundaries[-1]
        result = list(boundaries)
        result[1] = max(result[1], min(self.config.min_phase_duration, last))
        for i in range(1, len(result) - 1):
            result[i] = max(result[i], result[i - 1] + 1)
        result[-1] = last
        for i in range(len(result) - 2, 0, -1):
            result[i] = max(min(result[i], result[i + 1] - 1), 0)
        return result

    # -------------------------------------------------------------------------
    # Span Construction
    # -------------------------------------------------------------------------

    def _build_spans(
        self,
        frames: Sequence[PoseFrame],
        boundaries: list[int],
        base_confidence: float,
    ) -> list[PhaseSpan]:
        spans = []
        for i, phase in enumerate(PHASE_ORDER):
            start, end = boundaries[i], boundaries[i + 1]
            spans.append(PhaseSpan(
                phase=phase,
                start_frame=start,
                end_frame=end,
                start_time=float(frames[start].timestamp_ms),
                end_time=float(frames[end].timestamp_ms),
                confidence=self._confidence(frames, start, end, base_confidence),
            ))
        return spans

    def _confidence(
        self,
        frames: Sequence[PoseFrame],
        start: int,
        end: int,
        base_confidence: float,
    ) -> float:
        """Base confidence minus a penalty per poorly-visible frame in the span."""
        cfg = self.config
        weak_frames = sum(
            1 for frame in frames[start:end + 1]
            if frame.visible_count() < cfg.visible_landmark_minimum
        )
        confidence = base_confidence - cfg.confidence_penalty * weak_frames
        return round(max(cfg.confidence_floor, confidence), 2)


# =============================================================================
# Proportional Fallback
# =============================================================================

def proportional_boundaries(frame_count: int) -> list[int]:
    """
    Seven boundary frames splitting a sequence by PROPORTIONAL_SPLITS.

    Spans i runs from boundary i to boundary i+1.
    """
    last = max(frame_count - 1, 0)
    boundaries = [0]
    cumulative = 0.0
    for split in PROPORTIONAL_SPLITS[:-1]:
        cumulative += split
        boundary = math.floor(round(cumulative * frame_count, 6))
        boundaries.append(min(max(boundary, boundaries[-1]), last))
    boundaries.append(last)
    return boundaries


def find_phase(
    phases: Sequence[PhaseSpan],
    phase: SwingPhase,
    frames: Sequence[PoseFrame],
    fallback_confidence: float = PhaseDetectionConfig.fallback_confidence,
) -> PhaseSpan:
    """
    Look up a phase by name, substituting its proportional span if absent.

    The substitute carries fallback_confidence, which callers take from
    the PhaseDetectionConfig their segmenter ran with.
    """
    for span in phases:
        if span.phase == phase:
            return span

    logger.info(f"Phase '{phase.value}' missing, using proportional fallback")
    boundaries = proportional_boundaries(len(frames))
    index = PHASE_ORDER.index(phase)
    start, end = boundaries[index], boundaries[index + 1]
    if not frames:
        return PhaseSpan(phase, 0, 0, 0.0, 0.0, 0.0)
    return PhaseSpan(
        phase=phase,
        start_frame=start,
        end_frame=end,
        start_time=float(frames[start].timestamp_ms),
        end_time=float(frames[end].timestamp_ms),
        confidence=fallback_confidence,
    )
