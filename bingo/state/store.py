"""Temporary per-owner state with expiry.

Multi-message flows (building a card row by row, accumulating drawn
numbers) keep their in-progress data here instead of in the database.
Expiry is lazy: an entry past its deadline is dropped the next time it is
touched, so no background sweeper is needed.
"""

from __future__ import annotations

import copy
import time
from collections.abc import Callable, Iterator
from contextlib import AbstractContextManager, contextmanager
from dataclasses import dataclass
from datetime import timedelta
from threading import Lock, RLock
from typing import Any, Protocol


class StateStore(Protocol):
    """Key-scoped store contract used by the session services."""

    def get(self, key: str, default: Any = None) -> Any: ...

    def put(self, key: str, value: Any, ttl: timedelta) -> None: ...

    def delete(self, key: str) -> None: ...

    def exists(self, key: str) -> bool: ...

    def locked(self, key: str) -> AbstractContextManager[None]: ...


@dataclass
class _Entry:
    value: Any
    expires_at: float


@dataclass
class _KeyLock:
    lock: RLock
    holders: int = 0


class InMemoryStateStore:
    """Process-local StateStore.

    Values are deep-copied on the way in and out, so callers only change
    stored state through ``put``.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._lock = Lock()
        self._entries: dict[str, _Entry] = {}
        self._key_locks: dict[str, _KeyLock] = {}

    def _live_entry(self, key: str) -> _Entry | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expires_at <= self._clock():
            del self._entries[key]
            return None
        return entry

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                return copy.deepcopy(default)
            return copy.deepcopy(entry.value)

    def put(self, key: str, value: Any, ttl: timedelta) -> None:
        seconds = ttl.total_seconds()
        if seconds <= 0:
            raise ValueError("ttl must be positive")

        with self._lock:
            self._entries[key] = _Entry(value=copy.deepcopy(value), expires_at=self._clock() + seconds)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def exists(self, key: str) -> bool:
        with self._lock:
            return self._live_entry(key) is not None

    @contextmanager
    def locked(self, key: str) -> Iterator[None]:
        """Serialize read-modify-write sequences on one key.

        Re-entrant for the holding thread; other keys are never blocked.
        """

        with self._lock:
            key_lock = self._key_locks.get(key)
            if key_lock is None:
                key_lock = self._key_locks[key] = _KeyLock(lock=RLock())
            key_lock.holders += 1

        try:
            with key_lock.lock:
                yield
        finally:
            with self._lock:
                key_lock.holders -= 1
                if key_lock.holders == 0:
                    self._key_locks.pop(key, None)

    def __len__(self) -> int:
        with self._lock:
            now = self._clock()
            return sum(1 for entry in self._entries.values() if entry.expires_at > now)
