"""
Bounded Worker Pool
===================

Fixed set of worker threads fed from a task queue. Units of work are
submitted and run eventually on some worker; shutting the pool down (or
leaving its ``with`` block) waits until every submitted unit has run.

Usage:
    with WorkerPool(workers=4) as pool:
        for item in items:
            pool.submit(process, item)
    # all items processed here
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, List, Optional

logger = logging.getLogger(__name__)


class WorkerPool:
    """
    Thin wrapper over ThreadPoolExecutor with drain-on-exit semantics.

    Thread Safety:
        submit() and shutdown() may be called from any thread.
    """

    def __init__(self, workers: int, name_prefix: str = "Extractor") -> None:
        self._workers = max(1, workers)
        self._executor: Optional[ThreadPoolExecutor] = ThreadPoolExecutor(
            max_workers=self._workers,
            thread_name_prefix=name_prefix
        )
        self._futures: List[Future] = []
        self._lock = threading.Lock()
        self._shutdown = False

        logger.debug(f"WorkerPool started: {self._workers} workers ({name_prefix})")

    @property
    def workers(self) -> int:
        return self._workers

    def submit(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Future:
        """
        Queue a unit of work.

        Raises:
            RuntimeError: If the pool has been shut down
        """
        with self._lock:
            if self._shutdown or self._executor is None:
                raise RuntimeError("WorkerPool is shut down")
            future = self._executor.submit(fn, *args, **kwargs)
            self._futures.append(future)

        future.add_done_callback(self._on_future_done)
        return future

    @staticmethod
    def _on_future_done(future: Future) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logger.error(f"Worker task failed: {exc!r}")

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting work; with ``wait`` block until the queue drains."""
        with self._lock:
            if self._shutdown:
                return
            self._shutdown = True
            executor = self._executor
            self._executor = None

        if executor is not None:
            executor.shutdown(wait=wait)
            logger.debug(f"WorkerPool drained: {len(self._futures)} tasks")

    def __enter__(self) -> WorkerPool:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown(wait=True)
