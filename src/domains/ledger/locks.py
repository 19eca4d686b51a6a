# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Per-batch mutual exclusion for enrollment.

Capacity and duplicate checks are read-then-write sequences. Holding the
batch lock across the checks and the inserts keeps two requests in the same
process from both passing ``count < max_students``. Across processes the
unique index on (student_id, batch_id) remains the authoritative duplicate
guard.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator
from weakref import WeakValueDictionary

logger = logging.getLogger(__name__)


class BatchLockRegistry:
    """Hands out one asyncio.Lock per batch id.

    Locks are held weakly: once no coroutine holds or waits on a batch's
    lock, the entry disappears.

    Example:
        >>> locks = BatchLockRegistry()
        >>> async with locks.hold("batch-1"):
        ...     ...  # check capacity and insert
    """

    def __init__(self) -> None:
        self._locks: WeakValueDictionary[str, asyncio.Lock] = WeakValueDictionary()

    def _lock_for(self, batch_id: str) -> asyncio.Lock:
        lock = self._locks.get(batch_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[batch_id] = lock
        return lock

    @asynccontextmanager
    async def hold(self, batch_id: str) -> AsyncIterator[None]:
        """Hold the lock for a batch for the duration of the block.

        Args:
            batch_id: Batch identifier.
        """
        lock = self._lock_for(batch_id)
        if lock.locked():
            logger.debug("Waiting for batch lock: batch=%s", batch_id)
        async with lock:
            yield

    def __len__(self) -> int:
        return len(self._locks)


_registry = BatchLockRegistry()


def get_batch_locks() -> BatchLockRegistry:
    """Get the process-wide batch lock registry."""
    return _registry
