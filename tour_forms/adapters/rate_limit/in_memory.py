"""In-memory rate limit store.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: uses a lock around shared state.
- Expired entries are removed lazily on access, never by a background sweep.
"""

from __future__ import annotations

import threading

from tour_forms.adapters.rate_limit.base import RateLimitEntry, RateLimitStore


class InMemoryRateLimitStore(RateLimitStore):
    """Process-wide mapping from counter key to RateLimitEntry.

    Important:
        If the API runs with multiple workers (e.g., multiple Uvicorn
        workers), each worker keeps its own independent counters.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._entries: dict[str, RateLimitEntry] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, key: str) -> RateLimitEntry | None:
        with self._lock:
            return self._entries.get(key)

    def set(self, entry: RateLimitEntry) -> None:
        if not entry.key:
            raise ValueError("entry.key must be a non-empty string")
        with self._lock:
            self._entries[entry.key] = entry

    def delete_if_expired(self, key: str, now: float) -> bool:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or not entry.is_expired(now):
                return False
            del self._entries[key]
            return True

    def clear(self) -> None:
        """Remove every counter (used by tests and admin resets)."""

        with self._lock:
            self._entries.clear()
