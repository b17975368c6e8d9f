"""Worker pool driving a reconciler from a ReconcileQueue."""

import asyncio
import logging

from .queue import QueueShutDown

logger = logging.getLogger(__name__)


class Controller:
    """Runs reconcile passes for the keys of one queue.

    Distinct keys are processed in parallel by ``workers`` tasks; the queue
    guarantees a key is never held by two workers at once.
    """

    def __init__(self, name, reconciler, queue, workers=1):
        self.name = name
        self.reconciler = reconciler
        self.queue = queue
        self.workers = workers
        self._tasks = []

    def start(self):
        logger.info(f"Starting controller {self.name} with {self.workers} workers")
        self._tasks = [
            asyncio.create_task(self._worker(), name=f"{self.name}-worker-{i}")
            for i in range(self.workers)
        ]

    async def stop(self):
        logger.info(f"Stopping controller {self.name}")
        self.queue.shutdown()
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []

    async def _worker(self):
        while True:
            try:
                key = await self.queue.get()
            except QueueShutDown:
                return
            try:
                await self.process(key)
            finally:
                self.queue.done(key)

    async def process(self, key):
        """Run one pass for ``key`` and apply its requeue decision."""
        try:
            result = await self.reconciler.reconcile(key)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"[{self.name}] Reconcile of {key} failed: {e}")
            self.queue.add_rate_limited(key)
            return None

        if result.requeue_after > 0:
            self.queue.forget(key)
            self.queue.add_after(key, result.requeue_after)
        elif result.requeue:
            self.queue.add_rate_limited(key)
        else:
            self.queue.forget(key)
        return result
