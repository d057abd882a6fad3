"""Per-user post rate limiting.

A user may create a fixed number of postings per window. The count comes
from the post repository (the hosted backend), so the limit holds across
workers, but count-then-create is not atomic: two concurrent requests can
both pass. It is a soft limit.

Two window definitions are supported:
- ROLLING_24H: postings created in the 24 hours before now.
- CALENDAR_DAY_UTC: postings created since the most recent UTC midnight.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable

from wescollab.adapters.posts.base import AbstractPostRepository
from wescollab.core.errors import AppError, UpstreamUnavailableError

logger = logging.getLogger(__name__)

DEFAULT_POSTS_PER_WINDOW = 10
WINDOW_LENGTH = timedelta(hours=24)


class RateLimitWindow(str, Enum):
    ROLLING_24H = "rolling_24h"
    CALENDAR_DAY_UTC = "calendar_day_utc"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a rate limit check.

    Attributes:
        allowed: Whether the user may create another posting.
        limit: Max postings per window.
        count: Postings already created in the current window.
        remaining: Postings left in the window (0 when blocked).
        reset_at: When the window frees up again (UTC).
        retry_after_seconds: Suggested wait time in seconds when blocked.
    """

    allowed: bool
    limit: int
    count: int
    remaining: int
    reset_at: datetime
    retry_after_seconds: int | None


class PostRateLimiter:
    """Decides whether a user may create another posting.

    The limiter is advisory: it does not block creation itself. Callers check
    it before persisting and surface a rate limit response when denied.
    """

    def __init__(
        self,
        repository: AbstractPostRepository,
        *,
        limit: int = DEFAULT_POSTS_PER_WINDOW,
        window: RateLimitWindow = RateLimitWindow.ROLLING_24H,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize the limiter.

        Args:
            repository: Store used to count a user's recent postings.
            limit: Maximum postings per window.
            window: Window definition.
            clock: Time source returning an aware UTC datetime.

        Raises:
            ValueError: If limit is invalid.
        """
        if limit < 1:
            raise ValueError("limit must be >= 1")

        self._repository = repository
        self._limit = limit
        self._window = RateLimitWindow(window)
        self._clock = clock

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def window(self) -> RateLimitWindow:
        return self._window

    def window_bounds(self, now: datetime) -> tuple[datetime, datetime | None]:
        """Return ``(start, end)`` of the counting window containing ``now``.

        ``end`` is None for the rolling window, which counts everything
        created since ``start``.
        """
        if self._window is RateLimitWindow.CALENDAR_DAY_UTC:
            now_utc = now.astimezone(timezone.utc)
            start = now_utc.replace(hour=0, minute=0, second=0, microsecond=0)
            return start, start + WINDOW_LENGTH
        return now - WINDOW_LENGTH, None

    async def _reset_at(
        self,
        user_id: str,
        now: datetime,
        start: datetime,
        end: datetime | None,
    ) -> datetime:
        if end is not None:
            return end
        # Rolling: capacity frees up when the oldest post in the window ages out
        earliest = await self._repository.earliest_post_created_between(user_id, start, end)
        if earliest is None:
            return now + WINDOW_LENGTH
        return earliest + WINDOW_LENGTH

    async def check(self, user_id: str) -> RateLimitResult:
        """Count the user's postings in the current window and decide.

        Args:
            user_id: Owner whose postings are counted.

        Returns:
            RateLimitResult describing whether creation is allowed.

        Raises:
            UpstreamUnavailableError: If the count cannot be retrieved.
        """
        now = self._clock()
        start, end = self.window_bounds(now)

        try:
            count = await self._repository.count_posts_created_between(user_id, start, end)
            allowed = count < self._limit
            retry_after_seconds: int | None = None
            if allowed:
                reset_at = end if end is not None else now + WINDOW_LENGTH
            else:
                reset_at = await self._reset_at(user_id, now, start, end)
                retry_after_seconds = max(0, math.ceil((reset_at - now).total_seconds()))
        except AppError:
            raise
        except Exception as exc:
            raise UpstreamUnavailableError(
                code="rate_limit_check_failed",
                message="Failed to check rate limit",
                details={"operation": "rate_limit.count"},
            ) from exc

        if allowed:
            return RateLimitResult(
                allowed=True,
                limit=self._limit,
                count=count,
                remaining=self._limit - count,
                reset_at=reset_at,
                retry_after_seconds=None,
            )

        return RateLimitResult(
            allowed=False,
            limit=self._limit,
            count=count,
            remaining=0,
            reset_at=reset_at,
            retry_after_seconds=retry_after_seconds,
        )

    async def can_create_post(self, user_id: str) -> bool:
        """Return True if ``user_id`` may create another posting now.

        Fails closed: if the count cannot be retrieved the answer is False.
        """
        try:
            result = await self.check(user_id)
        except AppError as exc:
            logger.error(
                "rate_limit.check_failed",
                extra={"error_code": exc.code, "window": self._window.value},
            )
            return False
        return result.allowed

    def exceeded_message(self) -> str:
        if self._window is RateLimitWindow.CALENDAR_DAY_UTC:
            return (
                f"You can only create {self._limit} posts per day. "
                "Please try again tomorrow."
            )
        return (
            f"You can only create {self._limit} posts in 24 hours. "
            "Please try again later."
        )
