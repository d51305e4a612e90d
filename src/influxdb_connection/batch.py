"""Client-side write buffer flushed by point count or elapsed time."""

from __future__ import annotations

from typing import Callable, Dict, List, Optional, Tuple
import logging
import threading

from .exceptions import BatchModeError
from .models import BatchPoints, Point

logger = logging.getLogger(__name__)

BatchWriter = Callable[[BatchPoints], object]
ErrorHandler = Callable[[List[Point], Exception], None]

_Entry = Tuple[str, Optional[str], Point]


class BatchProcessor:
    """Buffer single-point writes and hand them to ``writer`` as batches.

    A flush happens as soon as ``actions`` points are buffered, and a daemon
    worker flushes whatever is buffered every ``flush_interval_ms``. Points
    are grouped by ``(database, retention_policy)`` and each group is written
    as one ``BatchPoints`` in insertion order.
    """

    def __init__(
        self,
        writer: BatchWriter,
        actions: int,
        flush_interval_ms: int,
        on_error: Optional[ErrorHandler] = None,
    ) -> None:
        if actions <= 0:
            raise ValueError("actions must be greater than zero")
        if flush_interval_ms <= 0:
            raise ValueError("flush_interval_ms must be greater than zero")
        self.actions = actions
        self.flush_interval_ms = flush_interval_ms
        self._writer = writer
        self._on_error = on_error
        self._buffer: List[_Entry] = []
        self._lock = threading.Lock()
        self._flush_lock = threading.Lock()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self._thread is not None:
            raise BatchModeError("Batch processor already started")
        self._thread = threading.Thread(target=self._run, name="InfluxBatchFlush", daemon=True)
        self._thread.start()

    @property
    def running(self) -> bool:
        return self._thread is not None and not self._stop.is_set()

    def put(self, database: str, retention_policy: Optional[str], point: Point) -> None:
        if self._stop.is_set():
            raise BatchModeError("Batch processor is stopped")
        with self._lock:
            self._buffer.append((database, retention_policy, point))
            full = len(self._buffer) >= self.actions
        if full:
            self.flush()

    def pending(self) -> int:
        with self._lock:
            return len(self._buffer)

    def flush(self) -> int:
        """Write everything buffered so far and return the number of points."""
        failures: List[Tuple[List[Point], Exception]] = []
        with self._flush_lock:
            with self._lock:
                entries = self._buffer
                self._buffer = []
            if not entries:
                return 0
            written = 0
            for batch in _group(entries):
                try:
                    self._writer(batch)
                    written += len(batch)
                except Exception as exc:
                    logger.error(
                        "Failed to flush %d points to %s: %s", len(batch), batch.database, exc, exc_info=True
                    )
                    failures.append((list(batch.points), exc))
            logger.debug("Flushed %d points", written)
        # Handlers run unlocked so they may put() again.
        if self._on_error is not None:
            for points, exc in failures:
                self._on_error(points, exc)
        return written

    def stop(self) -> None:
        """Flush the remaining points and stop the worker."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join()
        self.flush()

    def _run(self) -> None:
        interval = self.flush_interval_ms / 1000.0
        while not self._stop.wait(interval):
            self.flush()


def _group(entries: List[_Entry]) -> List[BatchPoints]:
    groups: Dict[Tuple[str, Optional[str]], BatchPoints] = {}
    for database, retention_policy, point in entries:
        key = (database, retention_policy)
        if key not in groups:
            groups[key] = BatchPoints(database=database, retention_policy=retention_policy)
        groups[key].point(point)
    return list(groups.values())
