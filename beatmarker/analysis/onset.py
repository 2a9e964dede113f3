"""Onset strength curve: half-wave rectified frame energy derivative."""

import numpy as np
import librosa

from beatmarker.analysis.models import StrengthCurve
from beatmarker.config import settings


def frame_params(sr: float, aggressive: bool = False) -> tuple[int, int]:
    """Return (frame_length, hop_length) in samples at rate *sr*.

    Aggressive mode halves both, trading smoothing for sensitivity to
    softer transients.
    """
    scale = 0.5 if aggressive else 1.0
    frame_length = max(2, int(round(settings.frame_seconds * scale * sr)))
    hop_length = max(1, int(round(settings.hop_seconds * scale * sr)))
    return frame_length, min(hop_length, frame_length)


def frame_energy(audio: np.ndarray, frame_length: int, hop_length: int) -> np.ndarray:
    """Mean-square energy of each non-centred frame.

    Audio shorter than one frame has no complete frame and yields an
    empty array.
    """
    if len(audio) < frame_length:
        return np.zeros(0, dtype=np.float64)
    rms = librosa.feature.rms(
        y=np.ascontiguousarray(audio, dtype=np.float64),
        frame_length=frame_length,
        hop_length=hop_length,
        center=False,
    )[0]
    return rms.astype(np.float64) ** 2


def onset_strength(audio: np.ndarray, sr: float, aggressive: bool = False) -> StrengthCurve:
    """Compute the onset strength curve of a mono series.

    Strength at frame *i* is the positive part of the energy increase from
    frame *i - 1*. The signal is treated as preceded by silence, so frame 0
    carries its full energy.
    """
    frame_length, hop_length = frame_params(sr, aggressive)
    energy = frame_energy(audio, frame_length, hop_length)
    if len(energy) == 0:
        strength = energy
    else:
        strength = np.maximum(np.diff(energy, prepend=0.0), 0.0)
    return StrengthCurve(
        strength=strength,
        sample_rate=float(sr),
        frame_length=frame_length,
        hop_length=hop_length,
    )
