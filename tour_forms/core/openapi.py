"""OpenAPI metadata and customization utilities.

Enriches the generated schema with tag descriptions and documents the
``Retry-After`` header on rate-limited responses. Keeps documentation
concerns out of the app factory.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

TAGS_METADATA = [
    {
        "name": "Forms",
        "description": (
            "Public form submissions. Each is rate limited per IP and per email; "
            "rejections return 429 with Retry-After."
        ),
    },
    {
        "name": "Health",
        "description": "Liveness and readiness checks.",
    },
]

RETRY_AFTER_HEADER = {
    "description": "Seconds until the exhausted rate-limit window resets.",
    "schema": {"type": "integer", "minimum": 1},
}


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add tags and response headers.

    - Adds tags metadata if not present
    - Declares ``Retry-After`` on every documented 429 response
    """

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        schema = original_openapi()

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        for tag in TAGS_METADATA:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        for methods in schema.get("paths", {}).values():
            for method_obj in methods.values():
                if not isinstance(method_obj, dict):
                    continue
                too_many = method_obj.get("responses", {}).get("429")
                if too_many is not None:
                    too_many.setdefault("headers", {})["Retry-After"] = RETRY_AFTER_HEADER

        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
