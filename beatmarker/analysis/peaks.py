"""Adaptive peak picking over an onset strength curve."""

from __future__ import annotations

import numpy as np
from scipy.ndimage import uniform_filter1d

from beatmarker.analysis.models import AnalysisConfig, Marker, OnsetCandidate, StrengthCurve
from beatmarker.config import settings

DETECTED_PALETTE = ("#3b82f6", "#06b6d4", "#8b5cf6", "#10b981")


def threshold_scale(sensitivity: float, aggressive: bool = False) -> float:
    """Multiplier applied to the local mean strength.

    Falls linearly from ``threshold_scale_max`` at sensitivity 0 to
    ``threshold_scale_min`` at sensitivity 1. Aggressive mode lowers it
    further.
    """
    hi = settings.threshold_scale_max
    lo = settings.threshold_scale_min
    scale = hi - (hi - lo) * sensitivity
    if aggressive:
        scale *= settings.aggressive_scale_factor
    return scale


def threshold_window(frame_rate: float, aggressive: bool = False) -> int:
    """Half-width in frames of the moving-average window."""
    seconds = settings.aggressive_window_seconds if aggressive else settings.threshold_window_seconds
    return max(1, int(round(seconds * frame_rate)))


def adaptive_threshold(
    strength: np.ndarray,
    window: int,
    scale: float,
    floor: float | None = None,
) -> np.ndarray:
    """Local threshold: scaled moving average, never below *floor*.

    The floor is strictly positive so an all-zero curve cannot pass.
    """
    if floor is None:
        floor = settings.threshold_floor
    if len(strength) == 0:
        return np.zeros(0, dtype=np.float64)
    local_mean = uniform_filter1d(strength.astype(np.float64), size=2 * window + 1, mode="reflect")
    return np.maximum(local_mean * scale, floor)


def local_maxima(strength: np.ndarray) -> np.ndarray:
    """Mask of frames strictly above the previous frame and >= the next.

    On a plateau of equal values only the first frame qualifies.
    """
    if len(strength) == 0:
        return np.zeros(0, dtype=bool)
    prev = np.concatenate(([0.0], strength[:-1]))
    nxt = np.concatenate((strength[1:], [0.0]))
    return (strength > prev) & (strength >= nxt)


def raw_candidates(curve: StrengthCurve, config: AnalysisConfig) -> list[OnsetCandidate]:
    """All frames above their local threshold that are local maxima, in time order."""
    strength = curve.strength
    if len(strength) == 0:
        return []

    threshold = adaptive_threshold(
        strength,
        window=threshold_window(curve.frame_rate, config.aggressive_mode),
        scale=threshold_scale(config.sensitivity, config.aggressive_mode),
    )
    mask = (strength > threshold) & local_maxima(strength)
    frames = np.flatnonzero(mask)
    times = curve.frame_time(frames)
    return [
        OnsetCandidate(frame_index=int(f), time=float(t), strength=float(strength[f]))
        for f, t in zip(frames, times)
    ]


def enforce_min_distance(candidates: list[OnsetCandidate], min_distance: float) -> list[OnsetCandidate]:
    """Greedy left-to-right minimum spacing.

    A candidate is kept only if it is at least *min_distance* seconds after
    the last kept one. An earlier weak peak can suppress a later strong one.
    """
    accepted: list[OnsetCandidate] = []
    last_time = None
    for cand in candidates:
        if last_time is None or cand.time - last_time >= min_distance:
            accepted.append(cand)
            last_time = cand.time
    return accepted


def pick_peaks(curve: StrengthCurve, config: AnalysisConfig) -> list[OnsetCandidate]:
    """Raw candidates filtered by the minimum-distance rule."""
    return enforce_min_distance(raw_candidates(curve, config), config.min_distance)


def candidates_to_markers(candidates: list[OnsetCandidate]) -> list[Marker]:
    """Wrap accepted candidates as ``Beat N`` markers with palette colors."""
    return [
        Marker(
            time=cand.time,
            label=f"Beat {i + 1}",
            color=DETECTED_PALETTE[i % len(DETECTED_PALETTE)],
        )
        for i, cand in enumerate(candidates)
    ]
