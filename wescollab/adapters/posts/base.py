"""Post repository interface.

Routes and services depend on this abstraction, not on the hosted backend,
so the Supabase adapter and the in-memory store are interchangeable.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime

from wescollab.schemas.post import CanonicalPost, PostAuthor, PostRecord, RoleType


@dataclass(frozen=True)
class PostListQuery:
    """Filters and pagination for browsing postings.

    Attributes:
        page: 1-based page number.
        limit: Page size.
        search: Case-insensitive substring matched against title, company
            and description.
        role_type: Restrict to one role type (None for all).
    """

    page: int = 1
    limit: int = 20
    search: str | None = None
    role_type: RoleType | None = None

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True)
class PostPage:
    posts: list[PostRecord]
    total: int


class AbstractPostRepository(ABC):
    """Interface for post storage backends.

    Implementations raise UpstreamUnavailableError when the backend fails;
    "not found" is reported as None rather than an exception.
    """

    async def aclose(self) -> None:
        """Release connections held by the backend. Nothing to do by default."""

    @abstractmethod
    async def create_post(
        self,
        *,
        user_id: str,
        author: PostAuthor | None,
        fields: CanonicalPost,
        now: datetime,
    ) -> PostRecord:
        """Insert a new posting with server-assigned id and timestamps."""
        raise NotImplementedError

    @abstractmethod
    async def get_post(self, post_id: str) -> PostRecord | None:
        """Fetch a posting by id, including soft-deleted ones."""
        raise NotImplementedError

    @abstractmethod
    async def update_post(
        self,
        post_id: str,
        *,
        fields: CanonicalPost,
        now: datetime,
    ) -> PostRecord | None:
        """Replace a posting's canonical fields and refresh ``updatedAt``."""
        raise NotImplementedError

    @abstractmethod
    async def soft_delete_post(self, post_id: str, *, now: datetime) -> None:
        """Mark a posting deleted without removing it."""
        raise NotImplementedError

    @abstractmethod
    async def list_posts(self, query: PostListQuery) -> PostPage:
        """Return one page of non-deleted postings, newest first."""
        raise NotImplementedError

    @abstractmethod
    async def list_user_posts(self, user_id: str) -> list[PostRecord]:
        """Return a user's non-deleted postings, newest first."""
        raise NotImplementedError

    @abstractmethod
    async def count_posts_created_between(
        self,
        user_id: str,
        start: datetime,
        end: datetime | None = None,
    ) -> int:
        """Count postings by ``user_id`` with ``start <= createdAt < end``.

        ``end=None`` leaves the window open-ended.

        Soft-deleted postings are counted too: deleting does not refund quota.
        """
        raise NotImplementedError

    @abstractmethod
    async def earliest_post_created_between(
        self,
        user_id: str,
        start: datetime,
        end: datetime | None = None,
    ) -> datetime | None:
        """Creation time of the oldest posting in ``[start, end)``, if any."""
        raise NotImplementedError
