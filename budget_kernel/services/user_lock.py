"""
UserLockRegistry -- in-process mutual exclusion per user.

Both cycle triggers (dashboard load and salary validation) may run at the
same time for the same user.  The orchestrator holds the user's lock for
the whole pass, including commit, so the idempotency check and the write
that follows it never interleave with another pass in this process.  The
row lock taken on the user (FOR UPDATE) covers other processes on
PostgreSQL.
"""

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from uuid import UUID

from budget_kernel.logging_config import get_logger

logger = get_logger("services.user_lock")


class _Entry:
    __slots__ = ("lock", "holders")

    def __init__(self) -> None:
        self.lock = threading.RLock()
        self.holders = 0


class UserLockRegistry:
    """
    Hands out one re-entrant lock per user id.

    An entry lives while at least one thread holds or waits for it and is
    dropped on the last release.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._entries: dict[str, _Entry] = {}

    @contextmanager
    def hold(self, user_id: UUID | str) -> Iterator[None]:
        key = str(user_id)
        with self._guard:
            entry = self._entries.get(key)
            if entry is None:
                entry = self._entries[key] = _Entry()
            entry.holders += 1

        try:
            if not entry.lock.acquire(blocking=False):
                logger.debug("user_lock_wait", extra={"lock_user_id": key})
                entry.lock.acquire()
            try:
                yield
            finally:
                entry.lock.release()
        finally:
            with self._guard:
                entry.holders -= 1
                if entry.holders == 0:
                    del self._entries[key]

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)
