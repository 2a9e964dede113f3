"""Audio file loading utilities."""

from __future__ import annotations

import logging
from io import BytesIO
from pathlib import Path
from typing import Union

import librosa
import numpy as np

from beatmarker.analysis.models import AudioSampleBuffer
from beatmarker.errors import AudioDecodeError

logger = logging.getLogger(__name__)


def load_audio(file_path_or_buffer: Union[str, Path, BytesIO]) -> AudioSampleBuffer:
    """Decode an audio file or buffer, keeping its channels and native rate.

    Parameters
    ----------
    file_path_or_buffer:
        Path to an audio file or a BytesIO buffer containing audio data.

    Returns
    -------
    AudioSampleBuffer
        The decoded samples, one row per channel.

    Raises
    ------
    AudioDecodeError
        If the file cannot be read or decoded.
    """
    try:
        audio, sample_rate = librosa.load(file_path_or_buffer, sr=None, mono=False)
    except Exception as e:
        raise AudioDecodeError(f"Could not decode audio: {e}") from e

    audio = np.atleast_2d(audio)
    buffer = AudioSampleBuffer(sample_rate=int(sample_rate), channels=audio)
    logger.info(
        f"Decoded {buffer.duration:.2f}s, {buffer.n_channels} channel(s) at {buffer.sample_rate}Hz"
    )
    return buffer
