"""Core data models for onset analysis and markers."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field

import numpy as np

from beatmarker.config import settings
from beatmarker.errors import InvalidInputError

logger = logging.getLogger(__name__)


def new_marker_id() -> str:
    """Return a fresh, collision-resistant marker id."""
    return uuid.uuid4().hex


@dataclass(frozen=True, eq=False)
class AudioSampleBuffer:
    """Decoded audio, one row per channel.

    ``channels`` is coerced to a read-only float32 array of shape
    ``(n_channels, n_samples)``; a 1-D array is treated as a single channel.
    """
    sample_rate: int
    channels: np.ndarray

    def __post_init__(self):
        if int(self.sample_rate) <= 0:
            raise InvalidInputError(f"Sample rate must be positive, got {self.sample_rate}")
        data = np.asarray(self.channels, dtype=np.float32)
        if data.ndim == 1:
            data = data[np.newaxis, :]
        if data.ndim != 2:
            raise InvalidInputError(f"Expected (channels, samples) array, got shape {data.shape}")
        data = data.copy()
        data.setflags(write=False)
        object.__setattr__(self, "sample_rate", int(self.sample_rate))
        object.__setattr__(self, "channels", data)

    @property
    def n_channels(self) -> int:
        return self.channels.shape[0]

    @property
    def n_samples(self) -> int:
        return self.channels.shape[1]

    @property
    def duration(self) -> float:
        """Duration in seconds."""
        return self.n_samples / self.sample_rate


@dataclass(frozen=True)
class AnalysisConfig:
    """Tunable controls for one analysis run.

    Values outside their valid range are clamped rather than rejected:
    ``sensitivity`` to [0, 1] and ``min_distance`` to at least
    ``settings.min_distance_floor`` seconds.
    """
    sensitivity: float = settings.default_sensitivity
    min_distance: float = settings.default_min_distance  # seconds
    aggressive_mode: bool = False

    def __post_init__(self):
        sensitivity = float(self.sensitivity)
        if np.isnan(sensitivity):
            logger.warning("Sensitivity is NaN, using default")
            sensitivity = settings.default_sensitivity
        elif not 0.0 <= sensitivity <= 1.0:
            clamped = min(1.0, max(0.0, sensitivity))
            logger.warning(f"Sensitivity {sensitivity} out of range, clamped to {clamped}")
            sensitivity = clamped

        # +inf is kept: it spaces markers so that at most one survives
        min_distance = float(self.min_distance)
        if np.isnan(min_distance):
            logger.warning("Min distance is NaN, using default")
            min_distance = settings.default_min_distance
        elif min_distance < settings.min_distance_floor:
            logger.warning(
                f"Min distance {min_distance}s out of range, clamped to {settings.min_distance_floor}s"
            )
            min_distance = settings.min_distance_floor

        object.__setattr__(self, "sensitivity", sensitivity)
        object.__setattr__(self, "min_distance", min_distance)
        object.__setattr__(self, "aggressive_mode", bool(self.aggressive_mode))


@dataclass(frozen=True)
class OnsetCandidate:
    """A frame of the strength curve considered as an onset."""
    frame_index: int
    time: float  # seconds
    strength: float


@dataclass
class StrengthCurve:
    """Per-frame onset strength with the framing used to compute it."""
    strength: np.ndarray
    sample_rate: float  # effective analysis rate
    frame_length: int
    hop_length: int

    def __len__(self) -> int:
        return len(self.strength)

    @property
    def frame_rate(self) -> float:
        """Frames per second."""
        return self.sample_rate / self.hop_length

    def frame_time(self, frame_index) -> float | np.ndarray:
        """Time of the block of samples that entered the window at *frame_index*.

        Frame 0 follows silence, so its whole window is new and it sits at 0.
        """
        index = np.asarray(frame_index)
        start = np.where(index > 0, index * self.hop_length + self.frame_length - self.hop_length, 0)
        return start / self.sample_rate

    @property
    def times(self) -> np.ndarray:
        return self.frame_time(np.arange(len(self.strength)))


@dataclass(frozen=True)
class Marker:
    """A named, colored point in time on the audio timeline."""
    time: float  # seconds
    label: str
    color: str
    id: str = field(default_factory=new_marker_id)


@dataclass
class AnalysisResult:
    """Complete result of one analysis run."""
    markers: list[Marker]
    config: AnalysisConfig
    duration: float = 0.0
    sample_rate: float = 0.0  # effective analysis rate
    frame_rate: float = 0.0
    candidate_count: int = 0
