"""Persistence adapter layer - abstracts over storage backends."""

from tour_forms.adapters.persistence.base import AbstractPersistence, PersistenceResult
from tour_forms.adapters.persistence.factory import create_persistence
from tour_forms.adapters.persistence.in_memory import InMemoryPersistence
from tour_forms.adapters.persistence.supabase_rest import SupabaseRestPersistence

__all__ = [
    "AbstractPersistence",
    "InMemoryPersistence",
    "PersistenceResult",
    "SupabaseRestPersistence",
    "create_persistence",
]
