"""In-memory post repository.

Notes:
- Per-process only: data disappears on restart and isn't shared between workers.
- Thread-safe: uses a lock around shared state.
"""

from __future__ import annotations

import threading
import uuid
from datetime import datetime

from wescollab.adapters.posts.base import AbstractPostRepository, PostListQuery, PostPage
from wescollab.schemas.post import CanonicalPost, PostAuthor, PostRecord


class InMemoryPostRepository(AbstractPostRepository):
    """Dict-backed store used for local development and tests."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._posts: dict[str, PostRecord] = {}

    def _newest_first(self, posts: list[PostRecord]) -> list[PostRecord]:
        return sorted(posts, key=lambda p: p.created_at, reverse=True)

    @staticmethod
    def _matches(post: PostRecord, query: PostListQuery) -> bool:
        if post.is_deleted:
            return False
        if query.role_type is not None and post.role_type != query.role_type:
            return False
        if query.search:
            needle = query.search.lower()
            haystacks = (post.role_title, post.company, post.role_desc)
            if not any(needle in text.lower() for text in haystacks):
                return False
        return True

    async def create_post(
        self,
        *,
        user_id: str,
        author: PostAuthor | None,
        fields: CanonicalPost,
        now: datetime,
    ) -> PostRecord:
        record = PostRecord(
            **fields.model_dump(exclude={"id"}),
            id=str(uuid.uuid4()),
            user_id=user_id,
            is_deleted=False,
            created_at=now,
            updated_at=now,
            author=author,
        )
        with self._lock:
            self._posts[record.id] = record
        return record

    async def get_post(self, post_id: str) -> PostRecord | None:
        with self._lock:
            return self._posts.get(post_id)

    async def update_post(
        self,
        post_id: str,
        *,
        fields: CanonicalPost,
        now: datetime,
    ) -> PostRecord | None:
        with self._lock:
            existing = self._posts.get(post_id)
            if existing is None:
                return None
            updated = existing.model_copy(
                update={**fields.model_dump(exclude={"id"}), "updated_at": now}
            )
            self._posts[post_id] = updated
            return updated

    async def soft_delete_post(self, post_id: str, *, now: datetime) -> None:
        with self._lock:
            existing = self._posts.get(post_id)
            if existing is not None:
                self._posts[post_id] = existing.model_copy(
                    update={"is_deleted": True, "deleted_at": now}
                )

    async def list_posts(self, query: PostListQuery) -> PostPage:
        with self._lock:
            matching = [p for p in self._posts.values() if self._matches(p, query)]
        matching = self._newest_first(matching)
        return PostPage(
            posts=matching[query.offset : query.offset + query.limit],
            total=len(matching),
        )

    async def list_user_posts(self, user_id: str) -> list[PostRecord]:
        with self._lock:
            owned = [
                p for p in self._posts.values() if p.user_id == user_id and not p.is_deleted
            ]
        return self._newest_first(owned)

    def _created_between(
        self, user_id: str, start: datetime, end: datetime | None
    ) -> list[datetime]:
        with self._lock:
            return [
                p.created_at
                for p in self._posts.values()
                if p.user_id == user_id
                and start <= p.created_at
                and (end is None or p.created_at < end)
            ]

    async def count_posts_created_between(
        self,
        user_id: str,
        start: datetime,
        end: datetime | None = None,
    ) -> int:
        return len(self._created_between(user_id, start, end))

    async def earliest_post_created_between(
        self,
        user_id: str,
        start: datetime,
        end: datetime | None = None,
    ) -> datetime | None:
        return min(self._created_between(user_id, start, end), default=None)

    def clear(self) -> None:
        """Remove all stored postings."""
        with self._lock:
            self._posts.clear()
