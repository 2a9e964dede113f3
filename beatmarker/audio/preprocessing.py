"""Audio preprocessing: mono downmix and decimation to the analysis rate."""

from __future__ import annotations

import numpy as np
from scipy.signal import resample_poly

from beatmarker.analysis.models import AudioSampleBuffer
from beatmarker.config import settings


def downmix(buffer: AudioSampleBuffer) -> np.ndarray:
    """Average all channels into one mono series.

    An empty buffer (no channels or no samples) yields an empty array.
    """
    if buffer.n_channels == 0 or buffer.n_samples == 0:
        return np.zeros(0, dtype=np.float64)
    return buffer.channels.astype(np.float64).mean(axis=0)


def decimation_factor(sr: int, target_sr: int | None = None) -> int:
    """Largest integer factor that keeps the rate at or above *target_sr*.

    Parameters
    ----------
    sr:
        Source sample rate in Hz.
    target_sr:
        Lowest acceptable analysis rate. Defaults to
        ``settings.analysis_sample_rate``.
    """
    if target_sr is None:
        target_sr = settings.analysis_sample_rate
    return max(1, int(sr // target_sr))


def decimate(audio: np.ndarray, factor: int) -> np.ndarray:
    """Downsample by an integer factor with an anti-aliasing filter."""
    if factor <= 1 or len(audio) == 0:
        return audio
    return resample_poly(audio, up=1, down=factor)


def preprocess(buffer: AudioSampleBuffer) -> tuple[np.ndarray, float]:
    """Apply the full preprocessing pipeline (downmix then decimate).

    Returns
    -------
    tuple[np.ndarray, float]
        The mono series and the effective sample rate it is sampled at.
    """
    factor = decimation_factor(buffer.sample_rate)
    mono = decimate(downmix(buffer), factor)
    return mono, buffer.sample_rate / factor
