"""
Per-account serialization of transaction attempts.

Two operations built from the same account sequence number race: only
one of them can ever be accepted. Attempts that share an AccountLocks
instance therefore run one at a time per source account.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict


class AccountLocks:
    """One asyncio.Lock per source account."""

    def __init__(self) -> None:
        self._locks: Dict[str, asyncio.Lock] = {}

    def _get_lock(self, account_id: str) -> asyncio.Lock:
        if account_id not in self._locks:
            self._locks[account_id] = asyncio.Lock()
        return self._locks[account_id]

    def is_locked(self, account_id: str) -> bool:
        lock = self._locks.get(account_id)
        return lock is not None and lock.locked()

    @asynccontextmanager
    async def hold(self, account_id: str) -> AsyncIterator[None]:
        """Hold the account's lock for the duration of the block."""
        lock = self._get_lock(account_id)
        async with lock:
            yield
