"""OpenAPI metadata and customization utilities.

Enriches the generated OpenAPI schema with:
- Tags metadata
- Bearer security scheme (Supabase access token) on the endpoints that need
  a signed-in user; browsing and health stay public
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

# (path suffix, method) pairs readable without a session
PUBLIC_OPERATIONS = {
    ("/health", "get"),
    ("/api/posts", "get"),
    ("/api/posts/{post_id}", "get"),
}


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add tags and security."""

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        schema = original_openapi()

        components = schema.setdefault("components", {})
        security_schemes = components.setdefault("securitySchemes", {})
        security_schemes.setdefault(
            "SupabaseSession",
            {
                "type": "http",
                "scheme": "bearer",
                "description": (
                    "Access token from the hosted Google sign-in; only university "
                    "email addresses are accepted."
                ),
            },
        )

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        desired_tags = [
            {
                "name": "Posts",
                "description": "Create, edit, delete and browse opportunity postings.",
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
            for method, method_obj in methods.items():
                if not isinstance(method_obj, dict):
                    continue
                if (path, method) in PUBLIC_OPERATIONS:
                    method_obj["security"] = []
                else:
                    method_obj["security"] = [{"SupabaseSession": []}]

        app.openapi_schema = schema
        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
