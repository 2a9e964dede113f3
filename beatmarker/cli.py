"""Command line entry point.

Usage:
    beatmarker analyze song.mp3
    beatmarker analyze song.wav --sensitivity 0.9 --min-distance 0.3 --aggressive
    beatmarker analyze song.wav --format premiere_xml --output song_markers.xml
    beatmarker serve --port 8000
"""

import argparse
import logging
import sys
from pathlib import Path

from beatmarker.analysis.engine import AnalysisEngine
from beatmarker.analysis.models import AnalysisConfig
from beatmarker.config import settings
from beatmarker.errors import AudioDecodeError
from beatmarker.export import ExportFormat, export_markers
from beatmarker.timecode import format_seconds, format_timecode


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="beatmarker", description="Detect beats and export editor markers")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log pipeline steps")
    sub = parser.add_subparsers(dest="command", required=True)

    p_analyze = sub.add_parser("analyze", help="Detect onsets in an audio file")
    p_analyze.add_argument("file", type=Path)
    p_analyze.add_argument("--sensitivity", type=float, default=settings.default_sensitivity,
                           help="0.0-1.0, higher finds more onsets (default: %(default)s)")
    p_analyze.add_argument("--min-distance", type=float, default=settings.default_min_distance,
                           help="Minimum seconds between markers (default: %(default)s)")
    p_analyze.add_argument("--aggressive", action="store_true",
                           help="Shorter frames and lower threshold for soft onsets")
    p_analyze.add_argument("--format", choices=[f.value for f in ExportFormat],
                           help="Write markers in this editor format")
    p_analyze.add_argument("-o", "--output", type=Path,
                           help="Export path (default: <stem>_markers.<ext> next to the audio)")

    p_serve = sub.add_parser("serve", help="Run the HTTP API")
    p_serve.add_argument("--host", default=settings.host)
    p_serve.add_argument("--port", type=int, default=settings.port)
    p_serve.add_argument("--reload", action="store_true")
    return parser


def cmd_analyze(args: argparse.Namespace) -> int:
    config = AnalysisConfig(
        sensitivity=args.sensitivity,
        min_distance=args.min_distance,
        aggressive_mode=args.aggressive,
    )
    try:
        result = AnalysisEngine().analyze_file(args.file, config)
    except AudioDecodeError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"{args.file.name}: {len(result.markers)} markers in {format_timecode(result.duration)}")
    for i, m in enumerate(result.markers, 1):
        print(f"  #{i:<4d} {format_timecode(m.time)}  {format_seconds(m.time):>10s}  {m.label}")

    if args.format:
        artifact = export_markers(result.markers, args.format, source_name=args.file.name,
                                  duration=result.duration)
        out = args.output or args.file.with_name(artifact.filename)
        out.write_text(artifact.content, encoding="utf-8")
        print(f"Wrote {out}")
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    from beatmarker.main import run
    run(host=args.host, port=args.port, reload=args.reload)
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(name)s %(levelname)s: %(message)s",
    )
    if args.command == "analyze":
        return cmd_analyze(args)
    return cmd_serve(args)


if __name__ == "__main__":
    sys.exit(main())
