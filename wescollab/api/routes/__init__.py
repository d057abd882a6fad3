from __future__ import annotations

from wescollab.api.routes.health import router as health_router
from wescollab.api.routes.posts import router as posts_router

__all__ = ["health_router", "posts_router"]
