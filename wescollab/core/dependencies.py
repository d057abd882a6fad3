"""Process-wide adapter instances for FastAPI dependencies.

Each adapter owns an HTTP connection pool, so it is built once and cached
in-module. If the relevant configuration changes (primarily in tests), the
instance is rebuilt.
"""

from __future__ import annotations

import logging

from wescollab.adapters.identity.base import AbstractIdentityProvider
from wescollab.adapters.identity.factory import create_identity_provider
from wescollab.adapters.posts.base import AbstractPostRepository
from wescollab.adapters.posts.factory import create_post_repository
from wescollab.core.config import settings

logger = logging.getLogger(__name__)


_repository: AbstractPostRepository | None = None
_repository_config: tuple[str, str | None, str] | None = None

_identity: AbstractIdentityProvider | None = None
_identity_config: tuple[str, str | None] | None = None

# Replaced adapters whose connections still need closing
_retired: list[AbstractPostRepository | AbstractIdentityProvider] = []


def get_post_repository() -> AbstractPostRepository:
    """Return the process-wide post repository.

    Returns:
        AbstractPostRepository: Repository for the configured backend.
    """

    global _repository, _repository_config

    config = (
        settings.app.store_backend,
        settings.supabase.url,
        settings.supabase.posts_table,
    )

    if _repository is None or _repository_config != config:
        if _repository is not None:
            _retired.append(_repository)
        _repository = create_post_repository()
        _repository_config = config
        logger.info("store.repository_initialized", extra={"backend": config[0]})

    return _repository


def get_identity_provider() -> AbstractIdentityProvider:
    """Return the process-wide identity provider."""

    global _identity, _identity_config

    config = (settings.app.store_backend, settings.supabase.url)

    if _identity is None or _identity_config != config:
        if _identity is not None:
            _retired.append(_identity)
        _identity = create_identity_provider()
        _identity_config = config

    return _identity


def reset_adapters() -> None:
    """Drop cached adapters so the next access rebuilds them.

    Dropped adapters are kept until :func:`close_adapters` releases them.
    """

    global _repository, _repository_config, _identity, _identity_config

    _retired.extend(a for a in (_repository, _identity) if a is not None)
    _repository = None
    _repository_config = None
    _identity = None
    _identity_config = None


async def close_adapters() -> None:
    """Close every adapter built so far, current and replaced, then reset."""

    reset_adapters()
    while _retired:
        adapter = _retired.pop()
        try:
            await adapter.aclose()
        except Exception as exc:
            logger.warning(
                "store.adapter_close_failed",
                extra={"adapter": type(adapter).__name__, "error_type": type(exc).__name__},
            )
