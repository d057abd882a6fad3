"""Post rate limiting wired into the HTTP layer.

Rate limiting strategy:
- Per-user quota of postings per window, counted in the hosted backend.
- Window definition and quota come from settings (APP_RATE_LIMIT_WINDOW,
  APP_POSTS_PER_WINDOW).
- Fails closed: if the count cannot be retrieved, creation is refused with
  an internal error rather than allowed.
"""

from __future__ import annotations

import hashlib
import logging

from fastapi import Depends

from wescollab.adapters.posts.base import AbstractPostRepository
from wescollab.core.config import settings
from wescollab.core.dependencies import get_post_repository
from wescollab.core.errors import RateLimitExceededError
from wescollab.services.rate_limiter import PostRateLimiter, RateLimitResult, RateLimitWindow

logger = logging.getLogger(__name__)


def get_post_rate_limiter(
    repository: AbstractPostRepository = Depends(get_post_repository),
) -> PostRateLimiter:
    """Build a limiter over the configured repository.

    Returns:
        PostRateLimiter: Limiter using the configured quota and window.
    """

    return PostRateLimiter(
        repository,
        limit=settings.app.posts_per_window,
        window=RateLimitWindow(settings.app.rate_limit_window),
    )


def _hash_user_id(user_id: str) -> str:
    """Hash the user id for logging without exposing it."""
    return hashlib.sha256(user_id.encode()).hexdigest()[:16]


async def enforce_post_rate_limit(limiter: PostRateLimiter, user_id: str) -> RateLimitResult:
    """Check the user's quota before a post is created.

    Args:
        limiter: Limiter for the configured window.
        user_id: Authenticated user about to create a post.

    Returns:
        RateLimitResult for the allowed request.

    Raises:
        RateLimitExceededError: When the quota for the window is used up.
        UpstreamUnavailableError: When the count cannot be retrieved.
    """

    user_hash = _hash_user_id(user_id)
    result = await limiter.check(user_id)

    if result.allowed:
        logger.info(
            "rate_limit.allowed",
            extra={
                "user_hash": user_hash,
                "limit": result.limit,
                "count": result.count,
                "remaining": result.remaining,
                "window": limiter.window.value,
            },
        )
        return result

    logger.warning(
        "rate_limit.exceeded",
        extra={
            "user_hash": user_hash,
            "limit": result.limit,
            "count": result.count,
            "window": limiter.window.value,
            "retry_after_s": result.retry_after_seconds,
        },
    )
    raise RateLimitExceededError(
        message=limiter.exceeded_message(),
        reset_at=result.reset_at,
        limit=result.limit,
        retry_after_seconds=result.retry_after_seconds,
    )
