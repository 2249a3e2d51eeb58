"""Inference concurrency layer.

Architecture:
    event loop -> asyncio.Semaphore(N) -> ThreadPoolExecutor(N) -> ONNX inference

Each classification is submitted to the executor as its own task; the
resulting future is awaited on the event loop, which is the only place
results are consumed. Requests beyond the semaphore limit wait up to
``queue_timeout`` seconds and then fail with TimeoutError.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)

T = TypeVar("T")


class InferencePool:
    """Bounds concurrent inference and runs it off the event loop."""

    def __init__(self, max_concurrent: int, queue_timeout: float = 5.0) -> None:
        self._semaphore = asyncio.Semaphore(max_concurrent)
        self._executor = ThreadPoolExecutor(
            max_workers=max_concurrent,
            thread_name_prefix="sneaker-inference",
        )
        self._queue_timeout = queue_timeout
        self._active_count: int = 0
        self._queue_depth: int = 0
        self._counter_lock = threading.Lock()

    async def run(self, func: Callable[..., T], *args: object) -> T:
        """Run a blocking function on a worker thread and await its result.

        Raises:
            TimeoutError: If no worker slot frees up within the queue timeout.
        """
        with self._counter_lock:
            self._queue_depth += 1
        try:
            await asyncio.wait_for(self._semaphore.acquire(), timeout=self._queue_timeout)
        except TimeoutError:
            logger.warning("Inference queue full, gave up after %.1fs", self._queue_timeout)
            raise
        finally:
            with self._counter_lock:
                self._queue_depth -= 1

        with self._counter_lock:
            self._active_count += 1
        try:
            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(self._executor, func, *args)
        finally:
            self._semaphore.release()
            with self._counter_lock:
                self._active_count -= 1

    @property
    def active_count(self) -> int:
        """Number of currently running inference tasks."""
        with self._counter_lock:
            return self._active_count

    @property
    def queue_depth(self) -> int:
        """Number of requests waiting for a worker slot."""
        with self._counter_lock:
            return self._queue_depth

    def shutdown(self) -> None:
        """Shut down the thread pool executor."""
        self._executor.shutdown(wait=True)
