"""Application factory for FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers) so
tests can build a fresh app with overridden dependencies.
"""

from __future__ import annotations

from fastapi import FastAPI

from tour_forms.api.routes import forms_router, health_router
from tour_forms.core.config import settings
from tour_forms.core.exception_handlers import setup_exception_handlers
from tour_forms.core.logging import configure_logging
from tour_forms.core.middleware import request_id_middleware
from tour_forms.core.openapi import apply_openapi_customizations


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Tour Forms API",
        description=(
            "Write path for the public tour-booking website: tour bookings, "
            "airport transfers, contact messages and newsletter sign-ups. Every "
            "submission is rate limited per IP and per email, validated, stored, "
            "and announced to the operations chat on Telegram."
        ),
        version="0.1.0",
        debug=settings.app.debug,
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
    )

    # Middleware
    app.middleware("http")(request_id_middleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(forms_router, prefix="/v1")
    app.include_router(health_router)

    # OpenAPI customizations (tags metadata)
    apply_openapi_customizations(app)

    return app
