"""Exception types raised by the marker engine."""


class BeatMarkerError(Exception):
    """Base class for all BeatMarker errors."""


class InvalidInputError(BeatMarkerError, ValueError):
    """Input that cannot be processed, e.g. a negative timecode."""


class AudioDecodeError(BeatMarkerError):
    """The audio collaborator failed to decode a file."""


class ConcurrentRunRejectedError(BeatMarkerError, RuntimeError):
    """An analysis was requested while another one is still running."""
