"""In-process booking lock

Only serializes attempts inside one process. Multi-process deployments need a
storage-level lock or exclusion constraint instead.
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Optional

from gite_booking import config
from gite_booking.domain.exceptions import PersistenceFault
from gite_booking.domain.repositories import BookingLock

logger = logging.getLogger(__name__)


class InMemoryBookingLock(BookingLock):
    """One asyncio.Lock per Parent/Child group"""

    def __init__(self, timeout: Optional[float] = None):
        self._timeout = config.LOCK_TIMEOUT_SECONDS if timeout is None else timeout
        self._locks: Dict[int, asyncio.Lock] = {}

    def _lock_for(self, group_key: int) -> asyncio.Lock:
        if group_key not in self._locks:
            self._locks[group_key] = asyncio.Lock()
        return self._locks[group_key]

    @asynccontextmanager
    async def hold(self, group_key: int) -> AsyncIterator[None]:
        lock = self._lock_for(group_key)
        try:
            await asyncio.wait_for(lock.acquire(), timeout=self._timeout)
        except asyncio.TimeoutError:
            logger.error(f"Timed out after {self._timeout}s waiting for booking lock {group_key}")
            raise PersistenceFault(f"Timed out waiting for booking lock of group {group_key}")
        try:
            yield
        finally:
            lock.release()
