"""
Process-local serialization of identify requests

Requests that share an email or a phone number run one at a time, and so
do requests that touch the same identity group (keyed by root contact id).
Keys in one set are acquired in sorted order, and root keys are only ever
taken after identifier keys, so overlapping requests cannot deadlock.
"""

import asyncio
import weakref
from contextlib import AsyncExitStack, asynccontextmanager
from typing import AsyncIterator, Iterable, List, Optional


def identifier_lock_keys(email: Optional[str], phone_number: Optional[str]) -> List[str]:
    keys = []
    if email:
        keys.append(f"email:{email}")
    if phone_number:
        keys.append(f"phone:{phone_number}")
    return sorted(keys)


def root_lock_keys(root_ids: Iterable[int]) -> List[str]:
    return sorted(f"root:{root_id}" for root_id in set(root_ids))


class IdentifierLocks:
    """Keyed asyncio locks, dropped once no request holds a reference"""

    def __init__(self):
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def _get_lock(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    @asynccontextmanager
    async def hold(self, keys: Iterable[str]) -> AsyncIterator[None]:
        # Strong references keep the locks alive while held
        locks = [self._get_lock(key) for key in sorted(set(keys))]
        async with AsyncExitStack() as stack:
            for lock in locks:
                await stack.enter_async_context(lock)
            yield
