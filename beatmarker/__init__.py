"""BeatMarker - onset detection and marker export for video editors."""

__version__ = "0.1.0"
