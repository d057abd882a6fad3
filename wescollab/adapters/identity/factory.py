"""Factory for creating identity provider instances."""

from wescollab.adapters.identity.base import AbstractIdentityProvider
from wescollab.adapters.identity.in_memory import InMemoryIdentityProvider
from wescollab.adapters.identity.supabase import SupabaseIdentityProvider
from wescollab.adapters.supabase_http import SupabaseHttpClient
from wescollab.core.config import settings
from wescollab.core.errors import ValidationAppError


def create_identity_provider() -> AbstractIdentityProvider:
    """Instantiate the identity provider matching ``APP_STORE_BACKEND``.

    Raises:
        ValidationAppError: If Supabase is selected without a URL or anon key.
    """
    backend = settings.app.store_backend.lower()

    if backend == "memory":
        return InMemoryIdentityProvider()

    if backend == "supabase":
        if not settings.supabase.url or not settings.supabase.anon_key:
            raise ValidationAppError(
                code="supabase_not_configured",
                message="Supabase backend requires SUPABASE_URL and SUPABASE_ANON_KEY",
            )
        http = SupabaseHttpClient(
            base_url=settings.supabase.url,
            api_key=settings.supabase.anon_key,
            timeout_seconds=settings.supabase.timeout_seconds,
        )
        return SupabaseIdentityProvider(http)

    raise ValidationAppError(
        code="unknown_store_backend",
        message=f"Unknown store backend: '{backend}'. Supported backends: memory, supabase",
    )
