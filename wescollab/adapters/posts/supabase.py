"""Post repository backed by a Supabase ``posts`` table (PostgREST)."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import httpx

from wescollab.adapters.posts.base import AbstractPostRepository, PostListQuery, PostPage
from wescollab.adapters.supabase_http import SupabaseHttpClient
from wescollab.core.errors import UpstreamUnavailableError
from wescollab.schemas.post import CanonicalPost, PostAuthor, PostRecord

# Columns returned for every read, with the owner's profile embedded as "author"
POST_COLUMNS = (
    "id,userId,roleTitle,company,companyUrl,roleType,roleDesc,contactEmail,"
    "contactPhone,preferredContactMethod,contactDetails,isDeleted,deletedAt,"
    "createdAt,updatedAt"
)


def _iso(value: datetime) -> str:
    return value.isoformat()


def parse_timestamp(value: str) -> datetime:
    """Parse a PostgREST timestamp; values without an offset are taken as UTC."""
    parsed = datetime.fromisoformat(value)
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def _quote_filter_value(value: str) -> str:
    """Quote a value for use inside a PostgREST ``or=(...)`` expression."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def parse_content_range_total(header: str | None) -> int:
    """Extract the total from a ``Content-Range`` header like ``0-19/57``.

    Raises:
        UpstreamUnavailableError: If the header is missing or has no exact total.
    """
    if header and "/" in header:
        total = header.rsplit("/", 1)[1]
        if total.isdigit():
            return int(total)
    raise UpstreamUnavailableError(
        code="upstream_bad_count",
        message="The data service returned an unusable count.",
        details={"context": {"content_range": header}},
    )


class SupabasePostRepository(AbstractPostRepository):
    """PostgREST-backed repository using the service role key."""

    def __init__(
        self,
        http: SupabaseHttpClient,
        *,
        posts_table: str = "posts",
        profiles_table: str = "profiles",
    ) -> None:
        self._http = http
        self._path = f"/rest/v1/{posts_table}"
        self._select = f"{POST_COLUMNS},author:{profiles_table}(name,email)"
        self._auth_headers = {"Authorization": f"Bearer {http.api_key}"}

    async def aclose(self) -> None:
        await self._http.aclose()

    def _headers(self, **extra: str) -> dict[str, str]:
        return {**self._auth_headers, **extra}

    @staticmethod
    def _to_record(row: dict[str, Any]) -> PostRecord:
        return PostRecord.model_validate(row)

    @staticmethod
    def _first_row(response: httpx.Response) -> dict[str, Any] | None:
        rows = response.json()
        return rows[0] if rows else None

    async def create_post(
        self,
        *,
        user_id: str,
        author: PostAuthor | None,
        fields: CanonicalPost,
        now: datetime,
    ) -> PostRecord:
        # Author comes from the profiles join; the argument is for stores without one
        row = fields.model_dump(by_alias=True, mode="json", exclude={"id"})
        row.update(
            {
                "userId": user_id,
                "createdAt": _iso(now),
                "updatedAt": _iso(now),
                "isDeleted": False,
            }
        )
        response = await self._http.request(
            "POST",
            self._path,
            operation="posts.create",
            params={"select": self._select},
            headers=self._headers(Prefer="return=representation"),
            json=row,
        )
        created = self._first_row(response)
        if created is None:
            raise UpstreamUnavailableError(
                code="upstream_empty_insert",
                message="The data service did not return the created post.",
                details={"operation": "posts.create"},
            )
        return self._to_record(created)

    async def get_post(self, post_id: str) -> PostRecord | None:
        response = await self._http.request(
            "GET",
            self._path,
            operation="posts.get",
            params={"select": self._select, "id": f"eq.{post_id}", "limit": "1"},
            headers=self._headers(),
        )
        row = self._first_row(response)
        return self._to_record(row) if row else None

    async def update_post(
        self,
        post_id: str,
        *,
        fields: CanonicalPost,
        now: datetime,
    ) -> PostRecord | None:
        row = fields.model_dump(by_alias=True, mode="json", exclude={"id"})
        row["updatedAt"] = _iso(now)
        response = await self._http.request(
            "PATCH",
            self._path,
            operation="posts.update",
            params={"select": self._select, "id": f"eq.{post_id}"},
            headers=self._headers(Prefer="return=representation"),
            json=row,
        )
        updated = self._first_row(response)
        return self._to_record(updated) if updated else None

    async def soft_delete_post(self, post_id: str, *, now: datetime) -> None:
        await self._http.request(
            "PATCH",
            self._path,
            operation="posts.soft_delete",
            params={"id": f"eq.{post_id}"},
            headers=self._headers(Prefer="return=minimal"),
            json={"isDeleted": True, "deletedAt": _iso(now)},
        )

    async def list_posts(self, query: PostListQuery) -> PostPage:
        params: list[tuple[str, str]] = [
            ("select", self._select),
            ("isDeleted", "eq.false"),
            ("order", "createdAt.desc"),
            ("offset", str(query.offset)),
            ("limit", str(query.limit)),
        ]
        if query.search:
            pattern = _quote_filter_value(f"*{query.search}*")
            params.append(
                (
                    "or",
                    f"(roleTitle.ilike.{pattern},company.ilike.{pattern},roleDesc.ilike.{pattern})",
                )
            )
        if query.role_type is not None:
            params.append(("roleType", f"eq.{query.role_type.value}"))

        response = await self._http.request(
            "GET",
            self._path,
            operation="posts.list",
            params=params,
            headers=self._headers(Prefer="count=exact"),
            accept_statuses=(416,),
        )
        total = parse_content_range_total(response.headers.get("Content-Range"))
        # 416: offset past the last row; the header still carries "*/<total>"
        if response.status_code == 416:
            return PostPage(posts=[], total=total)
        posts = [self._to_record(row) for row in response.json()]
        return PostPage(posts=posts, total=total)

    async def list_user_posts(self, user_id: str) -> list[PostRecord]:
        response = await self._http.request(
            "GET",
            self._path,
            operation="posts.list_user",
            params={
                "select": self._select,
                "userId": f"eq.{user_id}",
                "isDeleted": "eq.false",
                "order": "createdAt.desc",
            },
            headers=self._headers(),
        )
        return [self._to_record(row) for row in response.json()]

    def _created_window_params(
        self,
        user_id: str,
        start: datetime,
        end: datetime | None,
    ) -> list[tuple[str, str]]:
        params = [
            ("userId", f"eq.{user_id}"),
            ("createdAt", f"gte.{_iso(start)}"),
        ]
        if end is not None:
            params.append(("createdAt", f"lt.{_iso(end)}"))
        return params

    async def count_posts_created_between(
        self,
        user_id: str,
        start: datetime,
        end: datetime | None = None,
    ) -> int:
        response = await self._http.request(
            "HEAD",
            self._path,
            operation="posts.count_recent",
            params=[("select", "id"), *self._created_window_params(user_id, start, end)],
            headers=self._headers(Prefer="count=exact"),
        )
        return parse_content_range_total(response.headers.get("Content-Range"))

    async def earliest_post_created_between(
        self,
        user_id: str,
        start: datetime,
        end: datetime | None = None,
    ) -> datetime | None:
        response = await self._http.request(
            "GET",
            self._path,
            operation="posts.earliest_recent",
            params=[
                ("select", "createdAt"),
                *self._created_window_params(user_id, start, end),
                ("order", "createdAt.asc"),
                ("limit", "1"),
            ],
            headers=self._headers(),
        )
        row = self._first_row(response)
        if row is None:
            return None
        return parse_timestamp(row["createdAt"])
