"""Timeline resolution: wall-clock bounds to frame activity and progress.

WHY: Rendering is driven frame by frame. Every segment and caption has
wall-clock bounds in seconds, and each frame needs to know whether the
entity is on screen and how far through its interval playback is. That
mapping must be frame-accurate, total (never NaN, never raising for odd
numbers) and cheap enough to run for every entity on every frame.

HOW: resolve() compares the current time with the inclusive interval and
linearly interpolates progress, clamping to [0, 1]. Degenerate intervals
(end <= start) are given a one-frame duration. Helpers convert between
frames, seconds and milliseconds, and build the fade/scale envelopes that
the templates animate with.

RULES:
- is_active is inclusive on both bounds: start <= t <= end
- progress is always within [0, 1], even when t is outside the interval
- end <= start: duration is one frame (1 / fps), closing at start, so a
  zero-length interval reads 1.0 once reached and 0.0 one frame before
- NaN or infinite bounds or time: inactive, progress 0.0
- Numeric strings are coerced; other non-numeric values behave as NaN
- fps must be positive; that is checked once at the boundary
- No state, no caching: identical inputs always give identical outputs
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable

from reel_composer.config import FADE_RAMP_FRAMES
from reel_composer.core.ir import coerce_seconds

MILLIS_PER_SECOND = 1000.0


@dataclass(frozen=True)
class TimelinePosition:
    """Where the current time falls relative to one entity's interval."""

    is_active: bool
    progress: float


INACTIVE = TimelinePosition(is_active=False, progress=0.0)


def check_fps(fps: Any) -> int:
    """Validate a frame rate, returning it as an int.

    Raises ValueError for anything that is not a positive integer; this is
    a precondition of every per-frame function and is reported once.
    """
    if isinstance(fps, bool) or not isinstance(fps, (int, float)):
        raise ValueError("fps must be a positive integer, got {!r}".format(fps))
    if fps <= 0 or int(fps) != fps:
        raise ValueError("fps must be a positive integer, got {!r}".format(fps))
    return int(fps)


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def frame_to_seconds(frame: int, fps: int) -> float:
    return frame / fps


def seconds_to_frame(seconds: float, fps: int) -> int:
    """Floor a time in seconds to the frame that contains it."""
    return int(math.floor(seconds * fps))


def to_seconds(value: float, unit: str = "s") -> float:
    """Normalize a time given in seconds ("s") or milliseconds ("ms")."""
    if unit == "ms":
        return value / MILLIS_PER_SECOND
    if unit == "s":
        return float(value)
    raise ValueError("unit must be 's' or 'ms', got {!r}".format(unit))


def frame_range(start_s: float, end_s: float, fps: int) -> tuple[int, int]:
    """Return the (start_frame, end_frame) pair covering an interval.

    Both ends are floored, matching how segments are placed on the
    timeline.
    """
    return seconds_to_frame(start_s, fps), seconds_to_frame(end_s, fps)


def resolve(
    start_s: float,
    end_s: float,
    current_time_s: float,
    fps: int,
) -> TimelinePosition:
    """Resolve activity and progress of an interval at the current time.

    Args:
        start_s: Interval start in seconds.
        end_s: Interval end in seconds.
        current_time_s: Playback time in seconds.
        fps: Frames per second, used for the degenerate-interval duration.

    Returns:
        TimelinePosition with inclusive activity and clamped progress.
    """
    start_s, end_s, current_time_s = (
        coerce_seconds(value) for value in (start_s, end_s, current_time_s)
    )
    if not all(math.isfinite(v) for v in (start_s, end_s, current_time_s)):
        return INACTIVE

    is_active = start_s <= current_time_s <= end_s
    duration = end_s - start_s
    if duration > 0:
        progress = (current_time_s - start_s) / duration
    else:
        one_frame = 1.0 / fps
        progress = (current_time_s - start_s) / one_frame + 1.0

    return TimelinePosition(is_active=is_active, progress=clamp(progress))


def resolve_entity(entity: Any, current_time_s: float, fps: int) -> TimelinePosition:
    """Resolve any object exposing ``start_s`` and ``end_s``."""
    return resolve(entity.start_s, entity.end_s, current_time_s, fps)


def resolve_frame(entity: Any, frame: int, fps: int) -> TimelinePosition:
    """Resolve an entity at a frame number instead of a time in seconds."""
    return resolve_entity(entity, frame_to_seconds(frame, fps), fps)


# ---------------------------------------------------------------------------
# Easing and envelopes
# ---------------------------------------------------------------------------


def cubic_bezier(x1: float, y1: float, x2: float, y2: float) -> Callable[[float], float]:
    """Build a CSS-style cubic-bezier easing function.

    The curve runs from (0, 0) to (1, 1) with control points (x1, y1) and
    (x2, y2). For a given x, the curve parameter is found with Newton
    iterations, falling back to bisection when the slope is too flat.
    """
    cx = 3.0 * x1
    bx = 3.0 * (x2 - x1) - cx
    ax = 1.0 - cx - bx
    cy = 3.0 * y1
    by = 3.0 * (y2 - y1) - cy
    ay = 1.0 - cy - by

    def sample_x(t: float) -> float:
        return ((ax * t + bx) * t + cx) * t

    def sample_y(t: float) -> float:
        return ((ay * t + by) * t + cy) * t

    def slope_x(t: float) -> float:
        return (3.0 * ax * t + 2.0 * bx) * t + cx

    def solve_t(x: float) -> float:
        t = x
        for _ in range(8):
            error = sample_x(t) - x
            if abs(error) < 1e-7:
                return t
            slope = slope_x(t)
            if abs(slope) < 1e-6:
                break
            t -= error / slope

        low, high = 0.0, 1.0
        t = x
        while low < high:
            value = sample_x(t)
            if abs(value - x) < 1e-7:
                return t
            if x > value:
                low = t
            else:
                high = t
            t = (low + high) / 2.0
            if high - low < 1e-9:
                break
        return t

    def ease(x: float) -> float:
        if x <= 0.0:
            return 0.0
        if x >= 1.0:
            return 1.0
        return sample_y(solve_t(x))

    return ease


STANDARD_EASING = cubic_bezier(0.4, 0.0, 0.2, 1.0)


def fade_envelope(
    frame: float,
    start_frame: float,
    end_frame: float,
    ramp_frames: float = FADE_RAMP_FRAMES,
    easing: Callable[[float], float] = STANDARD_EASING,
) -> float:
    """Opacity of a segment that fades in and out over ``ramp_frames``.

    Maps [start, start + ramp, end - ramp, end] to [0, 1, 1, 0], clamped on
    both sides. When the segment is shorter than two ramps, each ramp takes
    half of it. Zero-length or reversed segments are fully transparent.
    """
    length = end_frame - start_frame
    if not math.isfinite(length) or length <= 0 or not math.isfinite(frame):
        return 0.0

    ramp = min(float(ramp_frames), length / 2.0)
    if ramp <= 0:
        return 1.0 if start_frame <= frame <= end_frame else 0.0

    if frame <= start_frame or frame >= end_frame:
        return 0.0
    if frame < start_frame + ramp:
        return easing((frame - start_frame) / ramp)
    if frame > end_frame - ramp:
        return 1.0 - easing((frame - (end_frame - ramp)) / ramp)
    return 1.0


def enter_scale(progress: float, low: float = 0.8, high: float = 1.0) -> float:
    """Linear pop-in scale for a phrase entering the screen."""
    return low + (high - low) * clamp(progress)
