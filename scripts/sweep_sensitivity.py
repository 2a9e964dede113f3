#!/usr/bin/env python3
"""Sweep detection settings over audio files and print marker counts.

Used to tune the threshold constants by ear: pick files with known
material (clean electronic drums, film score, speech) and check that
counts rise with sensitivity and with aggressive mode.

Usage:
    python scripts/sweep_sensitivity.py song.wav
    python scripts/sweep_sensitivity.py a.wav b.mp3 --min-distance 0.1 --steps 11
    python scripts/sweep_sensitivity.py song.wav --json > sweep.json
"""

import argparse
import itertools
import json
import logging
import sys
from pathlib import Path

import numpy as np

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from beatmarker.analysis.engine import AnalysisEngine
from beatmarker.analysis.models import AnalysisConfig
from beatmarker.audio.loader import load_audio
from beatmarker.errors import AudioDecodeError

logging.basicConfig(level=logging.WARNING, format="%(name)s %(levelname)s: %(message)s")


def sweep(path: Path, sensitivities: list[float], min_distance: float) -> list[dict]:
    buffer = load_audio(path)
    engine = AnalysisEngine()
    rows = []
    for aggressive, sensitivity in itertools.product((False, True), sensitivities):
        config = AnalysisConfig(sensitivity=sensitivity, min_distance=min_distance, aggressive_mode=aggressive)
        result = engine.analyze_buffer(buffer, config)
        rows.append({
            "file": path.name,
            "aggressive": aggressive,
            "sensitivity": round(sensitivity, 3),
            "candidates": result.candidate_count,
            "markers": len(result.markers),
            "per_second": round(len(result.markers) / result.duration, 2) if result.duration else 0.0,
        })
    return rows


def main():
    parser = argparse.ArgumentParser(description="Marker counts across sensitivity settings")
    parser.add_argument("files", nargs="+", type=Path)
    parser.add_argument("--min-distance", type=float, default=0.25)
    parser.add_argument("--steps", type=int, default=6, help="Sensitivity steps from 0 to 1")
    parser.add_argument("--json", action="store_true", help="Print rows as JSON")
    args = parser.parse_args()

    sensitivities = [float(s) for s in np.linspace(0.0, 1.0, args.steps)]
    rows = []
    for path in args.files:
        try:
            rows.extend(sweep(path, sensitivities, args.min_distance))
        except AudioDecodeError as e:
            print(f"Skipping {path}: {e}", file=sys.stderr)

    if args.json:
        print(json.dumps(rows, indent=2))
        return

    print(f"{'file':<30s} {'mode':<10s} {'sens':>5s} {'cands':>6s} {'markers':>8s} {'/s':>6s}")
    for r in rows:
        mode = "aggressive" if r["aggressive"] else "normal"
        print(f"{r['file'][:30]:<30s} {mode:<10s} {r['sensitivity']:>5.2f} "
              f"{r['candidates']:>6d} {r['markers']:>8d} {r['per_second']:>6.2f}")


if __name__ == "__main__":
    main()
