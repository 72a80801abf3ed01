"""OpenAPI customization utilities.

Enriches the generated OpenAPI schema with:
- Bearer token and API key security schemes (either satisfies a request)
- Tags metadata
- Per-path overrides for endpoints that need no credential

This keeps documentation concerns decoupled from the app factory.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

PUBLIC_PATH_SUFFIXES = ("/health",)

TAGS_METADATA = [
    {
        "name": "Inference",
        "description": "Chat, summarization, image generation and speech-to-text.",
    },
    {
        "name": "Limits",
        "description": "Remaining rate limit quota for the caller.",
    },
    {
        "name": "Health",
        "description": "Liveness checks.",
    },
]


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add tags and security.

    - Injects ``BearerAuth`` and ``ApiKeyAuth`` security schemes
    - Requires one of them on every operation, then exempts public endpoints
      by setting ``security: []``
    - Adds tags metadata if not present
    """

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema
        schema = original_openapi()

        components = schema.setdefault("components", {})
        security_schemes = components.setdefault("securitySchemes", {})
        security_schemes.setdefault(
            "BearerAuth",
            {
                "type": "http",
                "scheme": "bearer",
                "description": "Provide your API key as `Authorization: Bearer <key>`.",
            },
        )
        security_schemes.setdefault(
            "ApiKeyAuth",
            {
                "type": "apiKey",
                "in": "header",
                "name": "X-API-Key",
                "description": "Provide your API key via the X-API-Key header.",
            },
        )

        # Alternatives: either scheme is sufficient
        schema.setdefault("security", [{"BearerAuth": []}, {"ApiKeyAuth": []}])

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        for tag in TAGS_METADATA:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        for path, methods in schema.get("paths", {}).items():
            if path.endswith(PUBLIC_PATH_SUFFIXES):
                for method_obj in methods.values():
                    if isinstance(method_obj, dict):
                        method_obj["security"] = []

        app.openapi_schema = schema
        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
