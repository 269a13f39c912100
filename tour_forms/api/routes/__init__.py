from __future__ import annotations

from tour_forms.api.routes.forms import router as forms_router
from tour_forms.api.routes.health import router as health_router

__all__ = ["forms_router", "health_router"]
