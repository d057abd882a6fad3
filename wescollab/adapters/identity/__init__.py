"""Identity adapters - resolve bearer tokens into signed-in users."""

from wescollab.adapters.identity.base import AbstractIdentityProvider
from wescollab.adapters.identity.factory import create_identity_provider
from wescollab.adapters.identity.in_memory import InMemoryIdentityProvider
from wescollab.adapters.identity.supabase import SupabaseIdentityProvider

__all__ = [
    "AbstractIdentityProvider",
    "InMemoryIdentityProvider",
    "SupabaseIdentityProvider",
    "create_identity_provider",
]
