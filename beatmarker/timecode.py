"""Timecode formatting for display."""

from __future__ import annotations

import math
import re

from beatmarker.config import settings
from beatmarker.errors import InvalidInputError

_TIMECODE_RE = re.compile(r"^(\d{2,}):([0-5]\d):([0-5]\d):(\d{2,})$")

# absorbs float error such as 2.3 * 30 == 68.99999999999999
_EPS = 1e-9


def format_timecode(seconds: float, fps: int | None = None) -> str:
    """Format *seconds* as ``HH:MM:SS:FF`` at a nominal frame rate.

    Sub-second time is floored to whole frames. Hours grow past two
    digits when needed.

    Raises
    ------
    InvalidInputError
        If *seconds* is negative or not finite.
    """
    if fps is None:
        fps = settings.display_fps
    if not math.isfinite(seconds) or seconds < 0:
        raise InvalidInputError(f"Cannot format time {seconds!r}")

    total_frames = int(math.floor(seconds * fps + _EPS))
    frames = total_frames % fps
    total_seconds = total_frames // fps
    hours, rem = divmod(total_seconds, 3600)
    minutes, secs = divmod(rem, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}:{frames:02d}"


def parse_timecode(text: str, fps: int | None = None) -> float:
    """Inverse of :func:`format_timecode`, exact to one frame."""
    if fps is None:
        fps = settings.display_fps
    match = _TIMECODE_RE.match(text.strip())
    if match is None:
        raise InvalidInputError(f"Not a timecode: {text!r}")
    hours, minutes, secs, frames = (int(g) for g in match.groups())
    if frames >= fps:
        raise InvalidInputError(f"Frame {frames} out of range for {fps} fps")
    return hours * 3600 + minutes * 60 + secs + frames / fps


def format_seconds(seconds: float) -> str:
    """Millisecond display used in marker lists, e.g. ``1.234s``."""
    return f"{seconds:.3f}s"
