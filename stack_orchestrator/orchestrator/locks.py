# stack_orchestrator/orchestrator/locks.py
"""Per-branch mutual exclusion for lifecycle actions."""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict


class BranchLocks:
    """
    One asyncio.Lock per branch name.

    Events for the same branch run one after another; different branches
    proceed concurrently. Locks are dropped once nobody holds or waits on them.
    """

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self._locks: Dict[str, asyncio.Lock] = {}
        self._users: Dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, branch_name: str) -> AsyncIterator[None]:
        if not self.enabled:
            yield
            return

        lock = self._locks.setdefault(branch_name, asyncio.Lock())
        self._users[branch_name] = self._users.get(branch_name, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[branch_name] -= 1
            if self._users[branch_name] == 0:
                del self._users[branch_name]
                del self._locks[branch_name]
