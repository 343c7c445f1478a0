from __future__ import annotations

import threading
import time
from typing import Callable, Dict, Optional, Tuple

from ...domain.ports import SessionStore


class InMemorySessionStore(SessionStore):
    """
    Process-local ephemeral store with per-key TTL.

    Entries expire lazily: an expired key is dropped the next time it is
    touched. All operations hold one lock, which makes `set_if_absent`
    atomic across request threads.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._entries: Dict[str, Tuple[str, float]] = {}
        self._lock = threading.Lock()

    # ------------------------------------------------------------------ #
    # Port implementation
    # ------------------------------------------------------------------ #

    def set(self, key: str, value: str, ttl: float) -> None:
        with self._lock:
            self._write(key, value, ttl)

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            entry = self._live_entry(key)
            return entry[0] if entry else None

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def set_if_absent(self, key: str, value: str, ttl: float) -> bool:
        with self._lock:
            if self._live_entry(key) is not None:
                return False
            self._write(key, value, ttl)
            return True

    def replace_if_equal(self, key: str, expected: str, value: str, ttl: float) -> bool:
        with self._lock:
            entry = self._live_entry(key)
            if entry is None or entry[0] != expected:
                return False
            self._write(key, value, ttl)
            return True

    def expire(self, key: str, ttl: float) -> bool:
        with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                return False
            self._write(key, entry[0], ttl)
            return True

    def ttl(self, key: str) -> Optional[float]:
        with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                return None
            return entry[1] - self._clock()

    # ------------------------------------------------------------------ #
    # Inspection helpers
    # ------------------------------------------------------------------ #

    def keys(self) -> list[str]:
        with self._lock:
            return [k for k in list(self._entries) if self._live_entry(k) is not None]

    def purge_expired(self) -> int:
        """Drop every expired entry; returns how many were removed."""
        with self._lock:
            now = self._clock()
            expired = [k for k, (_, exp) in self._entries.items() if exp <= now]
            for key in expired:
                del self._entries[key]
            return len(expired)

    # ------------------------------------------------------------------ #
    # Internal helpers (caller holds the lock)
    # ------------------------------------------------------------------ #

    def _write(self, key: str, value: str, ttl: float) -> None:
        if ttl <= 0:
            raise ValueError(f"TTL must be positive, got {ttl}")
        self._entries[key] = (value, self._clock() + ttl)

    def _live_entry(self, key: str) -> Optional[Tuple[str, float]]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry[1] <= self._clock():
            del self._entries[key]
            return None
        return entry
