"""Tests for phase segmentation."""

import numpy as np
import pytest

from core.config import PhaseDetectionConfig
from core.domain import PHASE_ORDER, SwingPhase
from core.services import PhaseSegmenter, find_phase
from core.services.phase_segmenter import proportional_boundaries

from conftest import make_frame, make_still_frames, make_swing, swing_wrist_heights


def boundaries_of(spans):
    return [spans[0].start_frame] + [span.end_frame for span in spans]


def assert_covers(spans, frame_count):
    """Six canonical spans, non-decreasing, sharing boundaries, covering every frame."""
    assert [span.phase for span in spans] == list(PHASE_ORDER)
    assert spans[0].start_frame == 0
    assert spans[-1].end_frame == frame_count - 1
    for span in spans:
        assert span.start_frame <= span.end_frame
    for previous, current in zip(spans, spans[1:]):
        assert current.start_frame == previous.end_frame


def test_detects_synthetic_swing(swing_frames):
    """Address ends at movement start, top at the highest wrist, impact at the acceleration peak."""
    spans = PhaseSegmenter().segment(swing_frames)

    assert_covers(spans, 30)
    assert boundaries_of(spans) == [0, 5, 12, 16, 24, 25, 29]
    for span in spans:
        assert span.end_frame > span.start_frame
        assert span.confidence == 0.8


def test_top_span_is_centered_on_highest_wrist(swing_frames):
    spans = PhaseSegmenter().segment(swing_frames)
    top = spans[PHASE_ORDER.index(SwingPhase.TOP)]
    assert top.center_frame == 14


def test_span_times_follow_frame_timestamps(swing_frames):
    spans = PhaseSegmenter().segment(swing_frames)
    for span in spans:
        assert span.start_time == swing_frames[span.start_frame].timestamp_ms
        assert span.end_time == swing_frames[span.end_frame].timestamp_ms


@pytest.mark.parametrize("frame_count", [1, 2, 3, 7, 14, 15, 16, 29, 45, 90])
def test_coverage_for_random_sequences(frame_count):
    """Any non-empty sequence yields six ordered spans over [0, n-1]."""
    rng = np.random.default_rng(frame_count)
    heights = list(rng.uniform(0.1, 0.9, frame_count))
    spans = PhaseSegmenter().segment(make_swing(heights))
    assert_covers(spans, frame_count)


def test_still_sequence_uses_address_fallback():
    spans = PhaseSegmenter().segment(make_still_frames(20))

    assert_covers(spans, 20)
    assert boundaries_of(spans) == [0, 10, 11, 13, 14, 15, 19]


def test_crowded_boundaries_are_spread_out():
    """A still clip at the detection minimum still gets six non-empty phases."""
    spans = PhaseSegmenter().segment(make_still_frames(15))

    assert_covers(spans, 15)
    assert boundaries_of(spans) == [0, 9, 10, 11, 12, 13, 14]


@pytest.mark.parametrize("seed", range(8))
@pytest.mark.parametrize("frame_count", [15, 16, 20, 29, 45, 90])
def test_detected_spans_are_never_empty(frame_count, seed):
    rng = np.random.default_rng(seed)
    heights = list(rng.uniform(0.1, 0.9, frame_count))
    for frames in (make_swing(heights), make_still_frames(frame_count)):
        spans = PhaseSegmenter().segment(frames)
        assert_covers(spans, frame_count)
        for span in spans:
            assert span.end_frame > span.start_frame


def test_acceleration_spike_on_last_frame_is_not_impact():
    """Impact needs a frame after it, so the follow-through keeps at least one frame."""
    heights = swing_wrist_heights()[:29]
    heights[-1] = 0.95
    spans = PhaseSegmenter().segment(make_swing(heights))

    assert_covers(spans, 29)
    assert boundaries_of(spans) == [0, 5, 12, 16, 24, 25, 28]
    follow_through = spans[PHASE_ORDER.index(SwingPhase.FOLLOW_THROUGH)]
    assert follow_through.end_frame > follow_through.start_frame


def test_short_sequence_is_proportional():
    """Below the detection minimum, phases are fixed percentage splits."""
    frames = make_still_frames(10)
    spans = PhaseSegmenter().segment(frames)

    assert boundaries_of(spans) == proportional_boundaries(10)
    assert boundaries_of(spans) == [0, 1, 4, 5, 8, 8, 9]
    assert all(span.confidence == 0.5 for span in spans)


def test_three_frames_fall_back_to_proportional():
    spans = PhaseSegmenter().segment(make_still_frames(3))
    assert_covers(spans, 3)
    assert boundaries_of(spans) == [0, 0, 1, 1, 2, 2, 2]


def test_empty_sequence_never_raises():
    spans = PhaseSegmenter().segment([])
    assert [span.phase for span in spans] == list(PHASE_ORDER)
    assert all(span.confidence == 0.0 for span in spans)


def test_low_visibility_lowers_confidence():
    """Each poorly visible frame costs 0.1, floored at 0.1."""
    frames = make_swing(visibility=0.2)
    spans = PhaseSegmenter().segment(frames)

    assert_covers(spans, 30)
    for span in spans:
        expected = max(0.1, 0.8 - 0.1 * span.frame_count)
        assert span.confidence == pytest.approx(expected)
    assert spans[0].confidence == 0.2
    assert spans[1].confidence == 0.1


def test_partial_visibility_penalty():
    frames = make_swing()
    frames[1] = make_frame(1, visibility=0.2)
    spans = PhaseSegmenter().segment(frames)
    assert spans[0].confidence == 0.7


def test_configurable_detection_minimum():
    segmenter = PhaseSegmenter(PhaseDetectionConfig(min_detection_frames=40))
    spans = segmenter.segment(make_swing())
    assert boundaries_of(spans) == proportional_boundaries(30)


def test_find_phase_returns_present_span(swing_frames):
    spans = PhaseSegmenter().segment(swing_frames)
    assert find_phase(spans, SwingPhase.IMPACT, swing_frames) is spans[4]


def test_find_phase_substitutes_proportional_span(swing_frames):
    """A missing phase is rebuilt from the proportional split."""
    spans = PhaseSegmenter().segment(swing_frames)
    without_top = [span for span in spans if span.phase != SwingPhase.TOP]

    top = find_phase(without_top, SwingPhase.TOP, swing_frames)
    assert top.phase == SwingPhase.TOP
    assert (top.start_frame, top.end_frame) == (12, 15)
    assert top.confidence == 0.5


def test_find_phase_uses_given_fallback_confidence(swing_frames):
    spans = PhaseSegmenter().segment(swing_frames)
    without_impact = [span for span in spans if span.phase != SwingPhase.IMPACT]

    impact = find_phase(without_impact, SwingPhase.IMPACT, swing_frames, fallback_confidence=0.3)
    assert impact.confidence == 0.3
