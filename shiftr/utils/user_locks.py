import asyncio
import logging
import weakref
from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional

logger = logging.getLogger(__name__)


class UserLocks:
    """
    One asyncio.Lock per user id, for check-then-write sequences that must not
    interleave with another request touching the same user's shifts.

    Locks live in a weak-value map: a lock exists only while some request
    holds or waits on it.
    """

    def __init__(self):
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def _lock_for(self, user_id: str) -> asyncio.Lock:
        lock = self._locks.get(user_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[user_id] = lock
        return lock

    @asynccontextmanager
    async def hold(self, *user_ids: Optional[str]) -> AsyncIterator[None]:
        """Acquire the locks of every given user id, in sorted order"""
        keys = sorted({uid for uid in user_ids if uid})
        locks: List[asyncio.Lock] = [self._lock_for(key) for key in keys]
        acquired: List[asyncio.Lock] = []
        try:
            for lock in locks:
                await lock.acquire()
                acquired.append(lock)
            logger.debug(f"Holding user locks: {keys}")
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()

    def is_locked(self, user_id: str) -> bool:
        lock = self._locks.get(user_id)
        return lock is not None and lock.locked()


# Shared by every request served by this process
user_locks = UserLocks()
