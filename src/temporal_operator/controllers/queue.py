"""Level-triggered reconcile queue.

Keys added while already waiting are coalesced into one pending pass. A key
is handed to at most one worker at a time; if it is added again while being
processed it is queued once more when the worker calls ``done``.
"""

import asyncio
import logging
from collections import deque

logger = logging.getLogger(__name__)

DEFAULT_BASE_DELAY = 0.005
DEFAULT_MAX_DELAY = 1000.0


class QueueShutDown(Exception):
    """Raised by ``get`` once the queue has been shut down."""
    pass


class ReconcileQueue:
    """Deduplicating work queue with delayed and rate-limited requeues."""

    def __init__(self, name, base_delay=DEFAULT_BASE_DELAY, max_delay=DEFAULT_MAX_DELAY):
        self.name = name
        self.base_delay = base_delay
        self.max_delay = max_delay
        self._queue = deque()
        self._dirty = set()
        self._processing = set()
        self._failures = {}
        self._timers = set()
        self._not_empty = asyncio.Event()
        self._shutting_down = False

    def add(self, key):
        """Mark a key as needing a reconcile pass."""
        if self._shutting_down or key in self._dirty:
            return
        self._dirty.add(key)
        if key in self._processing:
            return
        self._queue.append(key)
        self._not_empty.set()

    def add_after(self, key, delay):
        """Add a key once ``delay`` seconds have elapsed."""
        if self._shutting_down:
            return
        if delay <= 0:
            self.add(key)
            return

        loop = asyncio.get_running_loop()

        def fire():
            self._timers.discard(handle)
            self.add(key)

        handle = loop.call_later(delay, fire)
        self._timers.add(handle)

    def add_rate_limited(self, key):
        """Requeue a key with per-key exponential backoff."""
        failures = self._failures.get(key, 0)
        self._failures[key] = failures + 1
        delay = min(self.base_delay * (2 ** failures), self.max_delay)
        logger.debug(f"[{self.name}] Requeueing {key} in {delay:.3f}s (attempt {failures + 1})")
        self.add_after(key, delay)

    def forget(self, key):
        """Reset the backoff of a key."""
        self._failures.pop(key, None)

    def num_requeues(self, key):
        return self._failures.get(key, 0)

    async def get(self):
        """Wait for the next key and mark it as processing."""
        while not self._queue:
            if self._shutting_down:
                raise QueueShutDown(self.name)
            self._not_empty.clear()
            await self._not_empty.wait()
        key = self._queue.popleft()
        self._processing.add(key)
        self._dirty.discard(key)
        return key

    def done(self, key):
        """Mark a key as processed, re-queueing it if it was added meanwhile."""
        self._processing.discard(key)
        if key in self._dirty:
            self._queue.append(key)
            self._not_empty.set()

    def shutdown(self):
        self._shutting_down = True
        for handle in list(self._timers):
            handle.cancel()
        self._timers.clear()
        self._not_empty.set()

    def is_processing(self, key):
        return key in self._processing

    def __len__(self):
        return len(self._queue)
