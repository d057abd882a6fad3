"""Factory for creating post repository instances."""

from wescollab.adapters.posts.base import AbstractPostRepository
from wescollab.adapters.posts.in_memory import InMemoryPostRepository
from wescollab.adapters.posts.supabase import SupabasePostRepository
from wescollab.adapters.supabase_http import SupabaseHttpClient
from wescollab.core.config import settings
from wescollab.core.errors import ValidationAppError


def create_post_repository() -> AbstractPostRepository:
    """Instantiate the post repository selected by ``APP_STORE_BACKEND``.

    Returns:
        AbstractPostRepository: Configured repository instance.

    Raises:
        ValidationAppError: If the Supabase backend is selected without a URL
            or service role key.
    """
    backend = settings.app.store_backend.lower()

    if backend == "memory":
        return InMemoryPostRepository()

    if backend == "supabase":
        if not settings.supabase.url or not settings.supabase.service_role_key:
            raise ValidationAppError(
                code="supabase_not_configured",
                message="Supabase backend requires SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY",
            )
        http = SupabaseHttpClient(
            base_url=settings.supabase.url,
            api_key=settings.supabase.service_role_key,
            timeout_seconds=settings.supabase.timeout_seconds,
        )
        return SupabasePostRepository(
            http,
            posts_table=settings.supabase.posts_table,
            profiles_table=settings.supabase.profiles_table,
        )

    raise ValidationAppError(
        code="unknown_store_backend",
        message=f"Unknown store backend: '{backend}'. Supported backends: memory, supabase",
    )
