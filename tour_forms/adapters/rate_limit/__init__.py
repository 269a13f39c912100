"""Rate limiting adapters.

This package provides a small abstraction layer so the service can start with
an in-memory counter map and later migrate to Redis or another shared store
without changing the submission pipeline.
"""

from tour_forms.adapters.rate_limit.base import (
    RateLimitCheck,
    RateLimitEntry,
    RateLimitStore,
    build_key,
)
from tour_forms.adapters.rate_limit.in_memory import InMemoryRateLimitStore

__all__ = [
    "InMemoryRateLimitStore",
    "RateLimitCheck",
    "RateLimitEntry",
    "RateLimitStore",
    "build_key",
]
