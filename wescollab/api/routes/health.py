from __future__ import annotations

from fastapi import APIRouter

from wescollab.core.config import settings

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Liveness probe.

    Does not touch the post store, so it stays green while Supabase is down.

    Returns:
        dict: ``status`` plus the configured environment and store backend.
    """

    return {
        "status": "ok",
        "environment": settings.app_env,
        "store": settings.app.store_backend,
    }
