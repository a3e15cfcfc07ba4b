"""
Per-conversation lock registry.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Tuple
from weakref import WeakValueDictionary


class ConversationLocks:
    """Serialize turns that share a (tenant_id, phone) key.

    Locks are created on demand and dropped once no turn holds or waits on them.
    """

    def __init__(self) -> None:
        self._locks: "WeakValueDictionary[Tuple[str, str], asyncio.Lock]" = WeakValueDictionary()

    def _lock_for(self, tenant_id: str, phone: str) -> asyncio.Lock:
        key = (tenant_id, phone)
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    @asynccontextmanager
    async def hold(self, tenant_id: str, phone: str) -> AsyncIterator[None]:
        lock = self._lock_for(tenant_id, phone)
        async with lock:
            yield

    def __len__(self) -> int:
        return len(self._locks)
