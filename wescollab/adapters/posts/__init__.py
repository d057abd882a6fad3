"""Post storage adapters - abstracts over the hosted backend and an in-memory store."""

from wescollab.adapters.posts.base import AbstractPostRepository, PostListQuery, PostPage
from wescollab.adapters.posts.factory import create_post_repository
from wescollab.adapters.posts.in_memory import InMemoryPostRepository
from wescollab.adapters.posts.supabase import SupabasePostRepository

__all__ = [
    "AbstractPostRepository",
    "InMemoryPostRepository",
    "PostListQuery",
    "PostPage",
    "SupabasePostRepository",
    "create_post_repository",
]
