from __future__ import annotations

import asyncio
from collections import Counter
from contextlib import asynccontextmanager
from typing import AsyncIterator

from .errors import CapacityExceededError
from .repository import HelpdeskStore
from .state import TicketStatus

DEFAULT_MAX_IN_PROGRESS = 5


class WorkloadAdmissionController:
    """Cap the number of IN_PROGRESS tickets a technician may hold.

    Only tickets with status exactly IN_PROGRESS count against the limit.
    Admission reads a live count and the write follows as a separate step, so
    two concurrent admissions can both pass. Setting ``serialize`` holds a
    per-technician lock from the count until the caller's write completes;
    the lock only covers the current process.
    """

    def __init__(
        self,
        store: HelpdeskStore,
        *,
        limit: int = DEFAULT_MAX_IN_PROGRESS,
        serialize: bool = False,
    ) -> None:
        if limit < 1:
            raise ValueError("Workload limit must be at least 1")
        self._store = store
        self._limit = limit
        self._serialize = serialize
        self._locks: dict[int, asyncio.Lock] = {}
        self._lock_users: Counter[int] = Counter()

    @property
    def limit(self) -> int:
        return self._limit

    async def in_progress_count(self, technician_id: int) -> int:
        return await self._store.count_tickets(technician_id=technician_id, status=TicketStatus.IN_PROGRESS)

    async def admit(self, technician_id: int) -> None:
        count = await self.in_progress_count(technician_id)
        if count >= self._limit:
            raise CapacityExceededError(technician_id, count, self._limit)

    @asynccontextmanager
    async def reserve(self, technician_id: int | None) -> AsyncIterator[None]:
        """Admit ``technician_id`` and keep the admission open around the caller's write.

        ``None`` skips admission entirely.
        """

        if technician_id is None:
            yield
            return
        if not self._serialize:
            await self.admit(technician_id)
            yield
            return
        lock = self._locks.setdefault(technician_id, asyncio.Lock())
        self._lock_users[technician_id] += 1
        try:
            async with lock:
                await self.admit(technician_id)
                yield
        finally:
            # counts holders and waiters; the lock is dropped once nobody needs it
            self._lock_users[technician_id] -= 1
            if not self._lock_users[technician_id]:
                del self._lock_users[technician_id]
                del self._locks[technician_id]
