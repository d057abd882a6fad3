import logging
import math
from typing import Any

from fastapi import APIRouter, Depends, Query, Request

from wescollab.adapters.posts.base import AbstractPostRepository, PostListQuery
from wescollab.core.auth import get_current_user
from wescollab.core.config import settings
from wescollab.core.dependencies import get_post_repository
from wescollab.core.errors import (
    AuthorizationAppError,
    NotFoundAppError,
    PostValidationError,
    ValidationAppError,
)
from wescollab.core.rate_limit import enforce_post_rate_limit, get_post_rate_limiter
from wescollab.schemas.post import (
    UUID_PATTERN,
    CanonicalPost,
    DeletePostResponse,
    Pagination,
    PostListResponse,
    PostRecord,
    RoleType,
    UserPostsResponse,
)
from wescollab.schemas.user import AuthenticatedUser
from wescollab.services.post_validation import (
    PostValidationResult,
    ValidationMode,
    validate_post,
)
from wescollab.services.rate_limiter import PostRateLimiter, utc_now

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Posts"])


async def _read_json_body(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError as exc:
        raise PostValidationError(
            [
                {
                    "field": "body",
                    "message": "Request body must be valid JSON",
                    "code": "invalid_json",
                }
            ]
        ) from exc


def _require_valid(result: PostValidationResult) -> CanonicalPost:
    if not result.ok:
        raise PostValidationError([e.as_dict() for e in result.errors])
    return result.canonical  # type: ignore[return-value]


def _parse_role_type_filter(value: str | None) -> RoleType | None:
    if value is None or not value.strip() or value == "all":
        return None
    try:
        return RoleType(value)
    except ValueError as exc:
        raise PostValidationError(
            [
                {
                    "field": "roleType",
                    "message": "Unknown role type filter",
                    "code": "enum",
                }
            ]
        ) from exc


async def _get_live_post(repository: AbstractPostRepository, post_id: str) -> PostRecord:
    """Fetch a post by id, deleted or not; 404 when the id is malformed or unknown."""
    existing = await repository.get_post(post_id) if UUID_PATTERN.fullmatch(post_id) else None
    if existing is None:
        raise NotFoundAppError(code="post_not_found", message="Post not found")
    return existing


@router.get("/posts", response_model=PostListResponse)
async def list_posts(
    page: int = Query(1, ge=1, description="1-based page number."),
    limit: int | None = Query(None, ge=1, description="Page size (capped by the server)."),
    search: str | None = Query(
        None, description="Case-insensitive match on title, company and description."
    ),
    role_type: str | None = Query(None, alias="roleType", description="Role type, or 'all'."),
    repository: AbstractPostRepository = Depends(get_post_repository),
) -> PostListResponse:
    """Browse non-deleted postings, newest first.

    Returns:
        PostListResponse: One page of postings plus pagination metadata.
    """
    page_size = min(limit or settings.app.default_page_size, settings.app.max_page_size)
    search_term = search.strip() if search else None
    role_filter = _parse_role_type_filter(role_type)

    result = await repository.list_posts(
        PostListQuery(
            page=page,
            limit=page_size,
            search=search_term or None,
            role_type=role_filter,
        )
    )

    total_pages = math.ceil(result.total / page_size)
    return PostListResponse(
        posts=result.posts,
        pagination=Pagination(
            page=page,
            limit=page_size,
            total=result.total,
            total_pages=total_pages,
            has_more=page < total_pages,
            has_search=bool(search_term),
            has_filter=role_filter is not None,
        ),
    )


@router.post("/posts", response_model=PostRecord, status_code=201)
async def create_post(
    request: Request,
    user: AuthenticatedUser = Depends(get_current_user),
    repository: AbstractPostRepository = Depends(get_post_repository),
    limiter: PostRateLimiter = Depends(get_post_rate_limiter),
) -> PostRecord:
    """Create a posting from either the legacy or the enhanced shape.

    Order: validate the body, then check the caller's quota, then persist.

    Raises:
        PostValidationError: 400 listing every invalid field.
        RateLimitExceededError: 429 when the caller's quota is used up.
        UpstreamUnavailableError: 500 when the quota or insert cannot be completed.
    """
    payload = await _read_json_body(request)
    result = validate_post(payload, ValidationMode.CREATE)
    canonical = _require_valid(result)

    await enforce_post_rate_limit(limiter, user.id)

    record = await repository.create_post(
        user_id=user.id,
        author=user.as_author(),
        fields=canonical,
        now=utc_now(),
    )
    logger.info(
        "post.created",
        extra={
            "post_id": record.id,
            "shape": result.shape.value,
            "role_type": record.role_type.value,
        },
    )
    return record


@router.get("/posts/mine", response_model=UserPostsResponse)
async def list_my_posts(
    user: AuthenticatedUser = Depends(get_current_user),
    repository: AbstractPostRepository = Depends(get_post_repository),
) -> UserPostsResponse:
    """List the caller's own non-deleted postings, newest first."""
    posts = await repository.list_user_posts(user.id)
    return UserPostsResponse(posts=posts)


@router.get("/posts/{post_id}", response_model=PostRecord)
async def get_post(
    post_id: str,
    repository: AbstractPostRepository = Depends(get_post_repository),
) -> PostRecord:
    """Fetch one posting; soft-deleted postings are reported as not found."""
    post = await _get_live_post(repository, post_id)
    if post.is_deleted:
        raise NotFoundAppError(code="post_not_found", message="Post not found")
    return post


@router.put("/posts/{post_id}", response_model=PostRecord)
async def update_post(
    post_id: str,
    request: Request,
    user: AuthenticatedUser = Depends(get_current_user),
    repository: AbstractPostRepository = Depends(get_post_repository),
) -> PostRecord:
    """Replace a posting's fields. Only the owner may edit, and never a deleted post.

    The path id is merged into the body before validation, so a body ``id``
    is always overridden.
    """
    payload = await _read_json_body(request)
    if isinstance(payload, dict):
        payload = {**payload, "id": post_id}
    canonical = _require_valid(validate_post(payload, ValidationMode.EDIT))

    existing = await _get_live_post(repository, post_id)
    if existing.is_deleted:
        raise ValidationAppError(code="post_deleted", message="Cannot edit deleted post")
    if existing.user_id != user.id:
        raise AuthorizationAppError(
            code="not_post_owner",
            message="You can only edit your own posts",
        )

    updated = await repository.update_post(post_id, fields=canonical, now=utc_now())
    if updated is None:
        raise NotFoundAppError(code="post_not_found", message="Post not found")

    logger.info("post.updated", extra={"post_id": post_id})
    return updated


@router.delete("/posts/{post_id}", response_model=DeletePostResponse)
async def delete_post(
    post_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    repository: AbstractPostRepository = Depends(get_post_repository),
) -> DeletePostResponse:
    """Soft-delete a posting owned by the caller."""
    existing = await _get_live_post(repository, post_id)
    if existing.is_deleted:
        raise ValidationAppError(code="post_already_deleted", message="Post already deleted")
    if existing.user_id != user.id:
        raise AuthorizationAppError(
            code="not_post_owner",
            message="You can only delete your own posts",
        )

    await repository.soft_delete_post(post_id, now=utc_now())
    logger.info("post.deleted", extra={"post_id": post_id})
    return DeletePostResponse(message="Post deleted successfully", post_id=post_id)
