"""
Span Collector

Buffers finished spans and hands them to the sink in batches.
One collector per process, shared by every request.

DESIGN RULES:
- submit() is safe to call from any thread or task, and never throws
- Export happens on a single background worker, never on the request path
- A batch goes out when batch_size spans accumulate, and a timer thread
  exports whatever is pending every schedule_delay_seconds
- shutdown() drains the buffer once, bounded by a timeout
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, TimeoutError
from typing import List, Optional

from observability.sink import SpanSink
from observability.trace import FinishedSpan


logger = logging.getLogger(__name__)


class SpanCollector:
    """
    Coordinates span batching and export.
    """

    def __init__(
        self,
        sink: SpanSink,
        batch_size: int = 512,
        schedule_delay_seconds: float = 5.0,
        enabled: bool = True,
    ):
        """
        Initialize span collector.

        Args:
            sink: Destination for exported batches.
            batch_size: Spans per export; a full buffer triggers an export.
            schedule_delay_seconds: Interval of the timed export.
            enabled: When False, submitted spans are discarded.
        """
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        if schedule_delay_seconds <= 0:
            raise ValueError("schedule_delay_seconds must be > 0")
        self._sink = sink
        self._batch_size = batch_size
        self._schedule_delay = schedule_delay_seconds
        self._enabled = enabled
        self._buffer: List[FinishedSpan] = []
        self._lock = threading.Lock()
        self._closed = False
        self._stop = threading.Event()
        self._worker = ThreadPoolExecutor(max_workers=1, thread_name_prefix="span-export")
        self._timer = threading.Thread(
            target=self._run_schedule, name="span-export-timer", daemon=True
        )
        if enabled:
            self._timer.start()

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def pending(self) -> int:
        with self._lock:
            return len(self._buffer)

    def submit(self, span: FinishedSpan) -> None:
        """Queue a finished span. Never throws."""
        if not self._enabled:
            return
        try:
            with self._lock:
                if self._closed:
                    return
                self._buffer.append(span)
                due = len(self._buffer) >= self._batch_size
                batch = self._take_batch_locked() if due else None
            if batch:
                self._worker.submit(self._export, batch)
        except Exception as e:
            logger.warning(f"[SPAN COLLECTOR] Failed to queue span: {e}")

    def force_flush(self, timeout_seconds: Optional[float] = None) -> bool:
        """
        Export everything buffered and wait for it.

        Returns:
            True if the export finished within the timeout.
        """
        with self._lock:
            if self._closed:
                return True
            batch = self._take_batch_locked()
        if not batch:
            # Still wait for any batch already handed to the worker
            future: Future = self._worker.submit(lambda: None)
        else:
            future = self._worker.submit(self._export, batch)
        try:
            future.result(timeout=timeout_seconds)
            return True
        except TimeoutError:
            logger.warning(f"[SPAN COLLECTOR] Flush did not finish within {timeout_seconds}s")
            return False

    def shutdown(self, timeout_seconds: float = 5.0) -> bool:
        """
        Drain remaining spans and stop the export worker.

        Subsequent submits are dropped. Safe to call more than once.
        """
        with self._lock:
            if self._closed:
                return True
            self._closed = True
            batch = self._take_batch_locked()
        self._stop.set()

        def _final_export() -> None:
            if batch:
                self._export(batch)
            try:
                self._sink.shutdown()
            except Exception as e:
                logger.warning(f"[SPAN COLLECTOR] Sink shutdown failed: {e}")

        future = self._worker.submit(_final_export)
        try:
            future.result(timeout=timeout_seconds)
            finished = True
        except TimeoutError:
            logger.warning(
                f"[SPAN COLLECTOR] Shutdown flush exceeded {timeout_seconds}s; "
                f"up to {len(batch)} spans may be lost"
            )
            finished = False
        self._worker.shutdown(wait=False)
        return finished

    def _take_batch_locked(self) -> List[FinishedSpan]:
        batch, self._buffer = self._buffer, []
        return batch

    def _run_schedule(self) -> None:
        while not self._stop.wait(self._schedule_delay):
            with self._lock:
                if self._closed:
                    return
                batch = self._take_batch_locked()
            if not batch:
                continue
            try:
                self._worker.submit(self._export, batch)
            except RuntimeError:
                # Worker already stopped by shutdown
                logger.warning(f"[SPAN COLLECTOR] Dropped {len(batch)} spans after shutdown")
                return

    def _export(self, batch: List[FinishedSpan]) -> None:
        try:
            self._sink.export(batch)
        except Exception as e:
            logger.warning(f"[SPAN COLLECTOR] Sink export failed for {len(batch)} spans: {e}")
