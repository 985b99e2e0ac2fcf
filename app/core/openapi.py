"""OpenAPI metadata and customization utilities.

Enriches the generated OpenAPI schema with tag descriptions and documents the
429 contract on rate-limited operations, keeping documentation concerns out
of the app factory.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

from app.core.config import AppSettings

_RATE_LIMITED_RESPONSE = {
    "description": "Too many requests. Retry after the number of seconds in `retryAfter`.",
    "headers": {
        "Retry-After": {
            "description": "Seconds to wait before retrying.",
            "schema": {"type": "integer"},
        }
    },
    "content": {
        "application/json": {
            "example": {"error": "Too many requests", "retryAfter": 42},
        }
    },
}


def apply_openapi_customizations(app: FastAPI, app_settings: AppSettings) -> None:
    """Patch FastAPI's OpenAPI generation to add tags and 429 documentation.

    - Adds tags metadata if not present
    - Adds a 429 response to every operation under a rate-limited prefix
    - Replaces the default 422 response with the 400 ``Invalid payload`` one
    """

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        schema = original_openapi()

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        desired_tags = [
            {
                "name": "Questions",
                "description": "Question catalog, proposals and reports.",
            },
            {
                "name": "Health",
                "description": "Liveness checks.",
            },
        ]
        for tag in desired_tags:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        for path, methods in schema.get("paths", {}).items():
            limited = any(path.startswith(p) for p in app_settings.rate_limit_path_prefixes)
            for method_obj in methods.values():
                if not isinstance(method_obj, dict):
                    continue
                responses = method_obj.setdefault("responses", {})
                if "422" in responses:
                    responses.pop("422")
                    responses["400"] = {
                        "description": "Invalid payload",
                        "content": {
                            "application/json": {"example": {"error": "Invalid payload"}}
                        },
                    }
                if limited:
                    responses.setdefault("429", _RATE_LIMITED_RESPONSE)

        app.openapi_schema = schema
        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
