"""Factory pattern for creating persistence backends."""

from tour_forms.adapters.persistence.base import AbstractPersistence
from tour_forms.adapters.persistence.in_memory import InMemoryPersistence
from tour_forms.adapters.persistence.supabase_rest import SupabaseRestPersistence
from tour_forms.core.config import settings
from tour_forms.core.errors import PersistenceAppError


def create_persistence() -> AbstractPersistence:
    """Instantiate the persistence backend named by STORAGE_BACKEND.

    Returns:
        AbstractPersistence: Configured backend instance.

    Raises:
        PersistenceAppError: If backend-specific requirements are not met.
    """
    backend = settings.storage.backend.lower()

    if backend == "memory":
        return InMemoryPersistence()

    if backend == "supabase":
        if not settings.storage.supabase_url or not settings.storage.supabase_service_key:
            raise PersistenceAppError(
                code="storage_missing_credentials",
                message=(
                    "Supabase backend requires STORAGE_SUPABASE_URL and "
                    "STORAGE_SUPABASE_SERVICE_KEY environment variables"
                ),
            )
        return SupabaseRestPersistence(
            url=settings.storage.supabase_url,
            service_key=settings.storage.supabase_service_key,
            timeout_seconds=settings.storage.timeout_seconds,
        )

    raise PersistenceAppError(
        code="storage_unknown_backend",
        message=f"Unknown storage backend: '{backend}'. Supported backends: memory, supabase",
    )
