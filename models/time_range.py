"""Time domain model - trim windows, playhead movement and clamping rules

Every value here comes from continuous pointer gestures, where landing
exactly on (or just past) a boundary is routine. Nothing in this module
raises for out-of-range input: values are clamped to the nearest legal
value instead.
"""

import math
from dataclasses import dataclass
from typing import Optional

from config import settings


MIN_TRIM_WINDOW = settings.MIN_TRIM_WINDOW


@dataclass(frozen=True)
class TimeRange:
    """A time range with start and end, in seconds"""
    start: float
    end: float

    @property
    def duration(self) -> float:
        return max(0.0, self.end - self.start)

    def contains(self, time: float) -> bool:
        """Inclusive on both ends"""
        return self.start <= time <= self.end

    def overlaps(self, other: 'TimeRange') -> bool:
        """Check if this range shares a positive-length interval with another"""
        return self.start < other.end and other.start < self.end

    def intersection(self, other: 'TimeRange') -> Optional['TimeRange']:
        """Get intersection with another range, or None if no overlap"""
        if not self.overlaps(other):
            return None
        return TimeRange(
            start=max(self.start, other.start),
            end=min(self.end, other.end)
        )

    def shifted(self, offset: float) -> 'TimeRange':
        """Same range moved along the timeline by offset seconds"""
        return TimeRange(self.start + offset, self.end + offset)

    def to_dict(self) -> dict:
        return {"start": self.start, "end": self.end}

    def __repr__(self):
        return f"[{self.start:.2f}s-{self.end:.2f}s]"


def _finite(value: float, fallback: float) -> float:
    try:
        value = float(value)
    except (TypeError, ValueError):
        return fallback
    return value if math.isfinite(value) else fallback


def clamp_time(t: float, lo: float, hi: float) -> float:
    """
    Clamp t into [lo, hi].

    A reversed interval collapses to lo, and NaN/None collapse to lo as well.
    """
    if hi < lo:
        return lo
    t = _finite(t, lo)
    return max(lo, min(hi, t))


def set_trim(trim_range: TimeRange, duration: float, min_window: float = MIN_TRIM_WINDOW) -> TimeRange:
    """
    Produce a legal trim window for a clip of the given duration.

    Both bounds are clamped to [0, duration] and reordered if reversed.
    A window narrower than min_window is widened by moving the end bound;
    when the end is already pinned at the clip end, the start moves back
    instead. Clips shorter than min_window get the whole clip.
    """
    duration = max(0.0, _finite(duration, 0.0))
    start = clamp_time(trim_range.start, 0.0, duration)
    end = clamp_time(trim_range.end, 0.0, duration)

    if start > end:
        start, end = end, start

    if duration <= min_window:
        return TimeRange(0.0, duration)

    if end - start < min_window:
        end = start + min_window
        if end > duration:
            end = duration
            start = duration - min_window

    return TimeRange(start, end)


def set_trim_start(start: float, trim: TimeRange, min_window: float = MIN_TRIM_WINDOW) -> TimeRange:
    """Move the start handle; it may not pass (end - min_window)"""
    new_start = clamp_time(start, 0.0, max(0.0, trim.end - min_window))
    return TimeRange(new_start, trim.end)


def set_trim_end(end: float, trim: TimeRange, duration: float, min_window: float = MIN_TRIM_WINDOW) -> TimeRange:
    """Move the end handle; it may not pass (start + min_window) or the clip end"""
    lo = min(trim.start + min_window, duration)
    new_end = clamp_time(end, lo, duration)
    return TimeRange(trim.start, new_end)


def seek(t: float, trim: TimeRange) -> float:
    """Playhead position for a requested time, kept inside the trim window"""
    return clamp_time(t, trim.start, trim.end)


def advance_playhead(current: float, delta: float, trim: TimeRange) -> float:
    """
    Advance the playhead by delta seconds of playback.

    The trim window is a loop region: reaching the end wraps back to
    the start. Positions before the window snap to its start.
    """
    t = _finite(current, trim.start) + _finite(delta, 0.0)
    if t >= trim.end:
        return trim.start
    if t < trim.start:
        return trim.start
    return t


def format_time(seconds: float) -> str:
    """Format seconds as m:ss.d for display"""
    seconds = max(0.0, _finite(seconds, 0.0))
    mins = int(seconds // 60)
    secs = int(seconds % 60)
    tenths = int((seconds % 1) * 10)
    return f"{mins}:{secs:02d}.{tenths}"


def marker_interval(duration: float) -> int:
    """Spacing in seconds between ruler markers on the timeline"""
    if duration > 60:
        return 10
    if duration > 30:
        return 5
    if duration > 10:
        return 2
    return 1
