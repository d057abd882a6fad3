"""Application factory for the FastAPI app.

Builds the app (metadata, middleware, handlers, routers) in one place so tests
can create a fresh instance per case.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from wescollab.api.routes import health_router, posts_router
from wescollab.core.config import settings
from wescollab.core.dependencies import close_adapters
from wescollab.core.exception_handlers import setup_exception_handlers
from wescollab.core.logging import configure_logging
from wescollab.core.middleware import request_id_middleware
from wescollab.core.openapi import apply_openapi_customizations


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Release backend HTTP connections on shutdown."""
    yield
    await close_adapters()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="WesCollab Posts API",
        description=(
            "Job board backend for the Wesleyan community. Signed-in users with a "
            "university address can post opportunities (legacy or enhanced contact "
            "shape), edit and soft-delete their own posts, and are limited to a "
            "fixed number of new posts per day. Browsing is public."
        ),
        version="0.1.0",
        lifespan=lifespan,
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
    )

    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(posts_router, prefix="/api")
    app.include_router(health_router)

    # Security scheme, tags, public endpoints
    apply_openapi_customizations(app)

    return app
