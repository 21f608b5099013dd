"""
Ordered background queue for best-effort durable writes
"""

import asyncio
from typing import Awaitable, Callable, Dict, Optional, Tuple

from .constants import (
    DEFAULT_STORE_QUEUE_SIZE,
    DEFAULT_STORE_RETRIES,
    DEFAULT_STORE_TIMEOUT_SECONDS,
    SHUTDOWN_DRAIN_SECONDS,
    STORE_RETRY_BACKOFF_SECONDS,
)
from .logger import get_logger, log_storage_event

logger = get_logger()

DurableJob = Callable[[], Awaitable[None]]


class DurableWriter:
    """
    Runs durable writes one at a time, in submission order, after the live
    relay work is done. Each attempt is bounded by ``timeout`` and retried
    ``retries`` times; the final failure is logged and dropped. At most
    ``max_pending`` writes wait in the queue; while it is full new writes are
    dropped and logged.
    """

    def __init__(self, timeout: float = DEFAULT_STORE_TIMEOUT_SECONDS,
                 retries: int = DEFAULT_STORE_RETRIES,
                 backoff: float = STORE_RETRY_BACKOFF_SECONDS,
                 max_pending: int = DEFAULT_STORE_QUEUE_SIZE):
        self.timeout = timeout
        self.retries = retries
        self.backoff = backoff
        self.max_pending = max_pending
        self._queue: Optional[asyncio.Queue] = None
        self._worker: Optional[asyncio.Task] = None
        self._stats = {"completed": 0, "failed": 0, "retried": 0, "dropped": 0}

    def start(self):
        """Start the worker task on the running loop (idempotent)"""
        if self._worker is not None and not self._worker.done():
            return
        if self._queue is None:
            self._queue = asyncio.Queue(maxsize=self.max_pending)
        self._worker = asyncio.create_task(self._run())

    def submit(self, description: str, job: DurableJob) -> bool:
        """
        Queue a durable write

        Args:
            description: Short label used in logs
            job: Zero-argument coroutine function performing the write

        Returns:
            False if the queue was full and the write was dropped
        """
        self.start()
        try:
            self._queue.put_nowait((description, job))
        except asyncio.QueueFull:
            self._stats["dropped"] += 1
            log_storage_event(description, "dropped", f"queue full | max_pending={self.max_pending}", level="warning")
            return False
        return True

    async def drain(self):
        """Wait until every queued write has been attempted"""
        if self._queue is not None:
            await self._queue.join()

    async def stop(self, drain_timeout: float = SHUTDOWN_DRAIN_SECONDS):
        if self._worker is None:
            return
        try:
            await asyncio.wait_for(self.drain(), timeout=drain_timeout)
        except asyncio.TimeoutError:
            pending = self._queue.qsize() if self._queue is not None else 0
            log_storage_event("shutdown", "dropped", f"pending={pending}", level="warning")
        self._worker.cancel()
        try:
            await self._worker
        except asyncio.CancelledError:
            pass
        self._worker = None

    def get_stats(self) -> Dict[str, int]:
        stats = dict(self._stats)
        stats["pending"] = self._queue.qsize() if self._queue is not None else 0
        return stats

    async def _run(self):
        while True:
            item: Tuple[str, DurableJob] = await self._queue.get()
            try:
                await self._attempt(*item)
            finally:
                self._queue.task_done()

    async def _attempt(self, description: str, job: DurableJob):
        attempts = self.retries + 1
        for attempt in range(1, attempts + 1):
            try:
                await asyncio.wait_for(job(), timeout=self.timeout)
                self._stats["completed"] += 1
                log_storage_event(description, "ok", f"attempt={attempt}")
                return
            except asyncio.CancelledError:
                raise
            except asyncio.TimeoutError:
                error = f"timed out after {self.timeout}s"
            except Exception as e:
                error = str(e) or type(e).__name__

            if attempt < attempts:
                self._stats["retried"] += 1
                log_storage_event(description, "retry", f"attempt={attempt} | error={error}", level="warning")
                await asyncio.sleep(self.backoff * attempt)
            else:
                self._stats["failed"] += 1
                log_storage_event(description, "failed", f"attempts={attempts} | error={error}", level="error")
