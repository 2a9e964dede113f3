"""Analysis orchestrator - preprocessing, onset strength and peak picking."""

import logging
import time
from pathlib import Path

from beatmarker.analysis.models import AnalysisConfig, AnalysisResult, AudioSampleBuffer
from beatmarker.analysis.onset import onset_strength
from beatmarker.analysis.peaks import candidates_to_markers, enforce_min_distance, raw_candidates
from beatmarker.audio.loader import load_audio
from beatmarker.audio.preprocessing import preprocess

logger = logging.getLogger(__name__)


class AnalysisEngine:
    """Runs the full onset detection pipeline over a decoded buffer."""

    def analyze_file(self, file_path: str | Path, config: AnalysisConfig | None = None) -> AnalysisResult:
        """Decode and analyze an audio file."""
        buffer = load_audio(file_path)
        return self.analyze_buffer(buffer, config)

    def analyze_buffer(self, buffer: AudioSampleBuffer, config: AnalysisConfig | None = None) -> AnalysisResult:
        """Analyze a decoded buffer.

        The result is deterministic for a given buffer and config: marker
        times, labels and colors are identical across runs, only the marker
        ids are freshly generated.
        """
        if config is None:
            config = AnalysisConfig()
        t0 = time.perf_counter()
        logger.info(
            f"Analyzing {buffer.duration:.1f}s of audio at {buffer.sample_rate}Hz "
            f"(sensitivity={config.sensitivity:.2f}, min_distance={config.min_distance:.3f}s, "
            f"aggressive={config.aggressive_mode})"
        )

        # Step 1: Preprocess
        mono, sr = preprocess(buffer)
        logger.info(f"Step 1: Preprocessed to {len(mono)} mono samples at {sr:.0f}Hz")

        # Step 2: Onset strength
        curve = onset_strength(mono, sr, aggressive=config.aggressive_mode)
        logger.info(
            f"Step 2: Onset strength over {len(curve)} frames "
            f"(frame={curve.frame_length}, hop={curve.hop_length})"
        )

        # Step 3: Peak picking
        candidates = raw_candidates(curve, config)
        accepted = enforce_min_distance(candidates, config.min_distance)
        # Times are already inside the buffer; this only guards float edge cases
        accepted = [c for c in accepted if 0.0 <= c.time < buffer.duration]
        logger.info(f"Step 3: {len(candidates)} candidates, {len(accepted)} accepted")

        markers = candidates_to_markers(accepted)
        logger.info(f"Analysis done in {time.perf_counter() - t0:.2f}s: {len(markers)} markers")
        return AnalysisResult(
            markers=markers,
            config=config,
            duration=buffer.duration,
            sample_rate=sr,
            frame_rate=curve.frame_rate,
            candidate_count=len(candidates),
        )
