from __future__ import annotations

from fastapi import APIRouter

from tour_forms.core.config import settings

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Health check endpoint.

    Returns a simple status response plus the configured storage backend, so a
    deployment accidentally running on the in-memory store is easy to spot.

    Returns:
        dict: ``{"status": "ok", "storage": <backend>}``.
    """

    return {"status": "ok", "storage": settings.storage.backend}
