"""Rate limiter storage interfaces.

The limiter depends on this abstraction (not the concrete implementation)
so the counter map can move to a shared store later (e.g., Redis) without
touching the submission pipeline.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


def build_key(action: str, identifier: str) -> str:
    """Compose the storage key for one counter."""

    return f"{action}:{identifier}"


@dataclass
class RateLimitEntry:
    """One fixed-window counter.

    Attributes:
        key: ``"{action}:{identifier}"``.
        attempts: Allowed attempts counted in the current window.
        window_start: UNIX epoch seconds when the window opened.
        reset_time: UNIX epoch seconds when the window expires.
    """

    key: str
    attempts: int
    window_start: float
    reset_time: float

    def is_expired(self, now: float) -> bool:
        return now > self.reset_time


@dataclass(frozen=True)
class RateLimitCheck:
    """Result of a single-key (or composite) rate limit check.

    Attributes:
        success: Whether the attempt is allowed.
        remaining: Attempts left in the window (0 when blocked).
        reset_time: UNIX epoch seconds when the window resets.
        message: Human-readable explanation when blocked.
    """

    success: bool
    remaining: int
    reset_time: float | None = None
    message: str | None = None


class RateLimitStore(ABC):
    """Key/value store for rate limit counters."""

    @abstractmethod
    def get(self, key: str) -> RateLimitEntry | None:
        """Return the stored entry for key, expired or not."""
        raise NotImplementedError

    @abstractmethod
    def set(self, entry: RateLimitEntry) -> None:
        """Insert or replace the entry under ``entry.key``."""
        raise NotImplementedError

    @abstractmethod
    def delete_if_expired(self, key: str, now: float) -> bool:
        """Drop the entry for key when it has expired at ``now``.

        Returns:
            True if an expired entry was removed.
        """
        raise NotImplementedError
