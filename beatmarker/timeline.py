"""Ordered marker collection with selection state."""

from __future__ import annotations

import bisect
import logging
import threading
from typing import Callable, Iterable, Iterator

from beatmarker.analysis.models import Marker

logger = logging.getLogger(__name__)

MANUAL_LABEL = "Manual Beat"
MANUAL_COLOR = "#ec4899"

Listener = Callable[[tuple[Marker, ...]], None]


def clamp_time(t: float, duration: float) -> float:
    """Clamp *t* into ``[0, duration)``, rounded to milliseconds."""
    if duration <= 0:
        return 0.0
    t = round(min(max(float(t), 0.0), duration), 3)
    if t >= duration:
        # rounding may land on the end; step back one millisecond
        t = max(0.0, round(duration - 0.001, 3))
        if t >= duration:
            t = 0.0
    return t


def make_manual_marker(t: float, duration: float) -> Marker:
    """A user-placed marker at *t*, clamped to the buffer."""
    return Marker(time=clamp_time(t, duration), label=MANUAL_LABEL, color=MANUAL_COLOR)


class MarkerTimeline:
    """Markers kept sorted by time, keyed by unique id.

    Equal times keep insertion order. Every mutation happens under a lock
    and swaps in a new tuple, so ``markers`` always returns a consistent
    snapshot. Listeners registered with :meth:`subscribe` are called with
    that snapshot after each mutation.
    """

    def __init__(self, markers: Iterable[Marker] = ()) -> None:
        self._lock = threading.RLock()
        self._markers: tuple[Marker, ...] = ()
        self._selected_id: str | None = None
        self._listeners: list[Listener] = []
        markers = list(markers)
        if markers:
            self.replace_all(markers)

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> None:
        with self._lock:
            self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def _notify(self, snapshot: tuple[Marker, ...]) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            listener(snapshot)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def markers(self) -> tuple[Marker, ...]:
        return self._markers

    def __len__(self) -> int:
        return len(self._markers)

    def __iter__(self) -> Iterator[Marker]:
        return iter(self._markers)

    def find(self, marker_id: str) -> Marker | None:
        for m in self._markers:
            if m.id == marker_id:
                return m
        return None

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def replace_all(self, markers: Iterable[Marker]) -> None:
        """Atomically swap in a new marker set (sorted by time, stable)."""
        new = tuple(sorted(markers, key=lambda m: m.time))
        ids = [m.id for m in new]
        if len(set(ids)) != len(ids):
            raise ValueError("Duplicate marker ids")
        with self._lock:
            self._markers = new
            if self._selected_id not in ids:
                self._selected_id = None
            snapshot = self._markers
        self._notify(snapshot)

    def insert(self, marker: Marker) -> None:
        """Insert keeping time order; goes after markers with an equal time."""
        with self._lock:
            if any(m.id == marker.id for m in self._markers):
                raise ValueError(f"Marker id {marker.id!r} already in timeline")
            times = [m.time for m in self._markers]
            idx = bisect.bisect_right(times, marker.time)
            self._markers = self._markers[:idx] + (marker,) + self._markers[idx:]
            snapshot = self._markers
        self._notify(snapshot)

    def remove(self, marker_id: str) -> bool:
        """Remove a marker. Unknown ids are ignored; returns whether one was removed."""
        with self._lock:
            remaining = tuple(m for m in self._markers if m.id != marker_id)
            if len(remaining) == len(self._markers):
                logger.debug(f"Marker {marker_id} not in timeline, nothing removed")
                return False
            self._markers = remaining
            if self._selected_id == marker_id:
                self._selected_id = None
            snapshot = self._markers
        self._notify(snapshot)
        return True

    def clear(self) -> None:
        with self._lock:
            self._markers = ()
            self._selected_id = None
            snapshot = self._markers
        self._notify(snapshot)

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    @property
    def selected_id(self) -> str | None:
        return self._selected_id

    def select(self, marker_id: str | None) -> bool:
        """Make *marker_id* the active marker; ``None`` or an unknown id deselects."""
        with self._lock:
            if marker_id is not None and self.find(marker_id) is not None:
                self._selected_id = marker_id
                return True
            self._selected_id = None
            return False

    def deselect(self) -> None:
        self.select(None)

    def jump_to(self, marker_id: str) -> float | None:
        """Select a marker and return the time playback should seek to."""
        with self._lock:
            marker = self.find(marker_id)
            if marker is None:
                return None
            self._selected_id = marker_id
            return marker.time
