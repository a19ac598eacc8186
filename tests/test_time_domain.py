#!/usr/bin/env python3
"""
Time Domain Tests

Trim windows, playhead movement, clamping and display formatting.
"""

import math
import pytest

from models.time_range import (
    TimeRange,
    MIN_TRIM_WINDOW,
    clamp_time,
    set_trim,
    set_trim_start,
    set_trim_end,
    seek,
    advance_playhead,
    format_time,
    marker_interval,
)

EPSILON = 0.001  # Tolerance for floating point comparisons


def assert_close(actual, expected, msg=""):
    """Assert two values are close within EPSILON tolerance"""
    assert abs(actual - expected) < EPSILON, f"{msg}: Expected {expected}, got {actual}"


def assert_valid_trim(trim: TimeRange, duration: float):
    assert 0 <= trim.start < trim.end <= duration, f"invalid trim {trim} for duration {duration}"
    assert trim.end - trim.start >= MIN_TRIM_WINDOW - EPSILON


class TestTimeRange:
    """TimeRange value object"""

    def test_duration(self):
        assert_close(TimeRange(10, 30).duration, 20)

    def test_contains_is_inclusive(self):
        r = TimeRange(2, 8)
        assert r.contains(2)
        assert r.contains(8)
        assert not r.contains(8.001)

    def test_touching_ranges_do_not_overlap(self):
        assert not TimeRange(0, 5).overlaps(TimeRange(5, 10))
        assert TimeRange(0, 5.1).overlaps(TimeRange(5, 10))

    def test_intersection(self):
        assert TimeRange(12, 18).intersection(TimeRange(10, 30)) == TimeRange(12, 18)
        assert TimeRange(5, 15).intersection(TimeRange(10, 30)) == TimeRange(10, 15)
        assert TimeRange(0, 5).intersection(TimeRange(10, 30)) is None

    def test_shifted(self):
        assert TimeRange(12, 18).shifted(-10) == TimeRange(2, 8)


class TestClamp:
    """clamp_time never raises"""

    def test_inside(self):
        assert clamp_time(5, 0, 10) == 5

    def test_below_and_above(self):
        assert clamp_time(-3, 0, 10) == 0
        assert clamp_time(42, 0, 10) == 10

    def test_nan_collapses_to_lower_bound(self):
        assert clamp_time(math.nan, 2, 10) == 2

    def test_reversed_interval_collapses_to_lower_bound(self):
        assert clamp_time(5, 10, 0) == 10


class TestSetTrim:
    """set_trim always yields 0 <= start < end <= duration with the minimum window"""

    @pytest.mark.parametrize("start,end", [
        (-5, 100),
        (30, 10),
        (20, 20),
        (59.99, 60),
        (60, 60),
        (0, 0),
        (-10, -1),
        (math.nan, 30),
    ])
    def test_invariant_holds(self, start, end):
        trim = set_trim(TimeRange(start, end), 60)
        assert_valid_trim(trim, 60)

    def test_reversed_is_reordered(self):
        assert set_trim(TimeRange(30, 10), 60) == TimeRange(10, 30)

    def test_clamped_to_duration(self):
        assert set_trim(TimeRange(-5, 100), 60) == TimeRange(0, 60)

    def test_narrow_window_widened_by_moving_end(self):
        trim = set_trim(TimeRange(20, 20.05), 60)
        assert_close(trim.start, 20)
        assert_close(trim.end, 20 + MIN_TRIM_WINDOW)

    def test_narrow_window_at_clip_end_moves_start_back(self):
        trim = set_trim(TimeRange(60, 60), 60)
        assert_close(trim.end, 60)
        assert_close(trim.start, 60 - MIN_TRIM_WINDOW)

    def test_clip_shorter_than_minimum_window(self):
        assert set_trim(TimeRange(0, 0.02), 0.05) == TimeRange(0, 0.05)


class TestHandleSetters:
    """Dragging one trim handle at a time"""

    def test_start_cannot_pass_end(self):
        trim = set_trim_start(35, TimeRange(10, 30))
        assert_close(trim.start, 30 - MIN_TRIM_WINDOW)
        assert trim.end == 30

    def test_start_clamped_at_zero(self):
        assert set_trim_start(-4, TimeRange(10, 30)).start == 0

    def test_end_cannot_pass_start(self):
        trim = set_trim_end(5, TimeRange(10, 30), 60)
        assert_close(trim.end, 10 + MIN_TRIM_WINDOW)

    def test_end_clamped_at_duration(self):
        assert set_trim_end(75, TimeRange(10, 30), 60).end == 60


class TestPlayhead:
    """Seek and playback advance inside the trim window"""

    def test_seek_clamps_into_trim(self):
        trim = TimeRange(10, 30)
        assert seek(5, trim) == 10
        assert seek(45, trim) == 30
        assert seek(17.5, trim) == 17.5

    def test_advance(self):
        assert_close(advance_playhead(12, 0.5, TimeRange(10, 30)), 12.5)

    def test_advance_past_end_wraps_to_start(self):
        assert advance_playhead(29.9, 0.2, TimeRange(10, 30)) == 10

    def test_reaching_end_exactly_wraps(self):
        assert advance_playhead(29.5, 0.5, TimeRange(10, 30)) == 10

    def test_before_window_snaps_to_start(self):
        assert advance_playhead(2, 0.1, TimeRange(10, 30)) == 10


class TestDisplay:
    """Timecode formatting and ruler spacing"""

    def test_format_time(self):
        assert format_time(0) == "0:00.0"
        assert format_time(65.25) == "1:05.2"
        assert format_time(-3) == "0:00.0"

    @pytest.mark.parametrize("duration,expected", [
        (5, 1),
        (10, 1),
        (11, 2),
        (31, 5),
        (61, 10),
    ])
    def test_marker_interval(self, duration, expected):
        assert marker_interval(duration) == expected
