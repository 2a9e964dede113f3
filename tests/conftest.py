"""Shared test fixtures for onset detection and marker tests."""

import numpy as np
import pytest
from fastapi.testclient import TestClient

from beatmarker.analysis.models import AudioSampleBuffer
from beatmarker.main import app

SR = 44100


@pytest.fixture
def client():
    """FastAPI test client."""
    return TestClient(app)


def click(sr: int = SR, duration: float = 0.02, freq: float = 1000.0) -> np.ndarray:
    """Short sine burst with an exponential decay."""
    t = np.arange(int(duration * sr)) / sr
    return np.sin(2 * np.pi * freq * t) * np.exp(-t * 100)


def generate_clicks(
    times: list[float],
    duration_seconds: float = 3.0,
    sr: int = SR,
    amplitudes: list[float] | None = None,
    n_channels: int = 1,
) -> np.ndarray:
    """Silence with a click starting at each of *times*.

    Returns an array of shape (n_channels, n_samples).
    """
    n_samples = int(duration_seconds * sr)
    audio = np.zeros(n_samples, dtype=np.float32)
    burst = click(sr)
    amplitudes = amplitudes or [1.0] * len(times)
    for t, amp in zip(times, amplitudes):
        start = int(round(t * sr))
        end = min(start + len(burst), n_samples)
        if end > start:
            audio[start:end] += burst[:end - start] * amp
    return np.tile(audio, (n_channels, 1))


def generate_click_track(
    bpm: float,
    beats_per_bar: int,
    duration_seconds: float = 10.0,
    sr: int = SR,
    accent_ratio: float = 2.0,
) -> np.ndarray:
    """Generate a synthetic mono click track with accented downbeats."""
    interval = 60.0 / bpm
    times = list(np.arange(0.0, duration_seconds, interval))
    amplitudes = [accent_ratio if i % beats_per_bar == 0 else 1.0 for i in range(len(times))]
    audio = generate_clicks(times, duration_seconds, sr, amplitudes)[0]
    peak = np.max(np.abs(audio))
    if peak > 0:
        audio = audio / peak
    return audio


def generate_noisy_track(duration_seconds: float = 6.0, sr: int = SR, seed: int = 0) -> np.ndarray:
    """Clicks of varying loudness over low-level noise, deterministic for a seed."""
    rng = np.random.default_rng(seed)
    times = list(np.sort(rng.uniform(0.1, duration_seconds - 0.1, size=24)))
    amplitudes = list(rng.uniform(0.1, 1.0, size=len(times)))
    audio = generate_clicks(times, duration_seconds, sr, amplitudes)[0]
    audio += rng.normal(0.0, 0.01, size=len(audio)).astype(np.float32)
    return np.clip(audio, -1.0, 1.0)


@pytest.fixture
def single_click_buffer():
    """Stereo buffer with one transient at 1.234s."""
    return AudioSampleBuffer(sample_rate=SR, channels=generate_clicks([1.234], 3.0, n_channels=2))


@pytest.fixture
def silence_buffer():
    """Five seconds of digital silence."""
    return AudioSampleBuffer(sample_rate=SR, channels=np.zeros((2, 5 * SR), dtype=np.float32))


@pytest.fixture
def click_4_4_buffer():
    """Click track in 4/4 at 120 BPM."""
    return AudioSampleBuffer(sample_rate=SR, channels=generate_click_track(bpm=120, beats_per_bar=4))


@pytest.fixture
def noisy_buffer():
    return AudioSampleBuffer(sample_rate=SR, channels=generate_noisy_track())
