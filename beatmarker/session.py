"""Analysis sessions: one decoded buffer, one timeline, one run at a time."""

from __future__ import annotations

import logging
import threading
import uuid
from collections import OrderedDict
from concurrent.futures import Future, ThreadPoolExecutor

from beatmarker.analysis.engine import AnalysisEngine
from beatmarker.analysis.models import AnalysisConfig, AnalysisResult, AudioSampleBuffer, Marker
from beatmarker.config import settings
from beatmarker.errors import ConcurrentRunRejectedError
from beatmarker.timeline import MarkerTimeline, make_manual_marker

logger = logging.getLogger(__name__)


class AnalysisSession:
    """Ties a buffer to its marker timeline.

    Analysis runs in a worker thread. While a run is in flight further
    requests are rejected with :class:`ConcurrentRunRejectedError`; the
    running one is unaffected. The timeline is replaced in the worker before
    the returned future resolves.
    """

    def __init__(
        self,
        buffer: AudioSampleBuffer,
        source_name: str = "audio",
        executor: ThreadPoolExecutor | None = None,
        engine: AnalysisEngine | None = None,
    ) -> None:
        self.id = uuid.uuid4().hex
        self.buffer = buffer
        self.source_name = source_name
        self.timeline = MarkerTimeline()
        self.last_result: AnalysisResult | None = None
        self._engine = engine or AnalysisEngine()
        self._executor = executor
        self._owns_executor = executor is None
        self._busy = False
        self._busy_lock = threading.Lock()

    @property
    def duration(self) -> float:
        return self.buffer.duration

    @property
    def is_busy(self) -> bool:
        return self._busy

    def submit(self, config: AnalysisConfig | None = None) -> Future:
        """Start an analysis run in the background.

        Returns
        -------
        Future[AnalysisResult]

        Raises
        ------
        ConcurrentRunRejectedError
            If another run on this session has not finished yet.
        """
        config = config or AnalysisConfig()
        with self._busy_lock:
            if self._busy:
                raise ConcurrentRunRejectedError(f"Analysis already running for session {self.id}")
            self._busy = True
        try:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="beatmarker")
            return self._executor.submit(self._run, config)
        except Exception:
            with self._busy_lock:
                self._busy = False
            raise

    def analyze(self, config: AnalysisConfig | None = None) -> AnalysisResult:
        """Blocking variant of :meth:`submit`."""
        return self.submit(config).result()

    def _run(self, config: AnalysisConfig) -> AnalysisResult:
        try:
            result = self._engine.analyze_buffer(self.buffer, config)
            self.timeline.replace_all(result.markers)
            self.last_result = result
            return result
        except Exception:
            logger.exception(f"Analysis failed for session {self.id}")
            raise
        finally:
            with self._busy_lock:
                self._busy = False

    def add_manual_marker(self, t: float) -> Marker:
        """Insert a user-placed marker at *t* (clamped to the buffer)."""
        marker = make_manual_marker(t, self.duration)
        self.timeline.insert(marker)
        return marker

    def close(self) -> None:
        if self._owns_executor and self._executor is not None:
            self._executor.shutdown(wait=False)


class SessionRegistry:
    """In-memory sessions, at most ``max_sessions`` of them.

    Sessions are kept in least-recently-used order. Creating one past the
    cap evicts the least recently used session that is not analyzing.
    """

    def __init__(self, max_workers: int | None = None, max_sessions: int | None = None) -> None:
        self._sessions: OrderedDict[str, AnalysisSession] = OrderedDict()
        self._lock = threading.Lock()
        self._max_sessions = max(1, max_sessions or settings.max_sessions)
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers or settings.analysis_workers,
            thread_name_prefix="beatmarker",
        )

    def create(self, buffer: AudioSampleBuffer, source_name: str = "audio") -> AnalysisSession:
        session = AnalysisSession(buffer, source_name=source_name, executor=self._executor)
        with self._lock:
            evicted = self._evict_locked(self._max_sessions - 1)
            self._sessions[session.id] = session
        for old in evicted:
            logger.info(f"Evicted session {old.id} ({old.source_name})")
            old.close()
        logger.info(f"Created session {session.id} for {source_name} ({buffer.duration:.1f}s)")
        return session

    def _evict_locked(self, keep: int) -> list[AnalysisSession]:
        evicted = []
        for session_id in list(self._sessions):
            if len(self._sessions) <= keep:
                break
            if not self._sessions[session_id].is_busy:
                evicted.append(self._sessions.pop(session_id))
        if len(self._sessions) > keep:
            logger.warning(f"{len(self._sessions)} sessions busy, cannot evict below {keep}")
        return evicted

    def get(self, session_id: str) -> AnalysisSession | None:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is not None:
                self._sessions.move_to_end(session_id)
            return session

    def remove(self, session_id: str) -> bool:
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        session.close()
        return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
