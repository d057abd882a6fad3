"""Session authentication for the posts API.

Sign-in happens through Google OAuth handled entirely by the hosted
backend; clients then call this API with the resulting access token as a
bearer token. This module resolves that token into a user and enforces the
university email domain restriction.

Design principles:
- Single Responsibility: only token resolution and domain checks
- Dependency Injection: used via FastAPI Depends() for loose coupling
- Configuration-driven: allowed domain comes from settings
"""

from __future__ import annotations

import hashlib
import logging
from typing import Annotated

from fastapi import Depends, Header

from wescollab.adapters.identity.base import AbstractIdentityProvider
from wescollab.core.config import settings
from wescollab.core.dependencies import get_identity_provider
from wescollab.core.errors import AuthenticationAppError, AuthorizationAppError
from wescollab.schemas.user import AuthenticatedUser

logger = logging.getLogger(__name__)


def is_allowed_email(email: str, domain: str | None = None) -> bool:
    """Check whether an email address belongs to the allowed domain.

    Args:
        email: Address to check.
        domain: Domain without the ``@``; defaults to the configured one.

    Returns:
        True if the address ends with ``@<domain>`` (case-insensitive).

    Examples:
        >>> is_allowed_email("jdoe@wesleyan.edu", "wesleyan.edu")
        True
        >>> is_allowed_email("jdoe@wesleyan.edu.evil.com", "wesleyan.edu")
        False
    """
    allowed = (domain or settings.app.allowed_email_domain).lower().lstrip("@")
    return email.strip().lower().endswith(f"@{allowed}")


def parse_bearer_token(authorization: str | None) -> str | None:
    """Extract the token from an ``Authorization: Bearer <token>`` header.

    Examples:
        >>> parse_bearer_token("Bearer abc")
        'abc'
        >>> parse_bearer_token("Basic abc") is None
        True
    """
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def _hash_token(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()[:16]


async def get_current_user(
    authorization: Annotated[str | None, Header()] = None,
    identity: AbstractIdentityProvider = Depends(get_identity_provider),
) -> AuthenticatedUser:
    """FastAPI dependency resolving the signed-in user.

    Usage:
        @router.post("/posts")
        async def create(user: AuthenticatedUser = Depends(get_current_user)):
            ...

    Args:
        authorization: Authorization header (injected by FastAPI).
        identity: Identity provider for the configured backend.

    Returns:
        AuthenticatedUser: The user owning the presented token.

    Raises:
        AuthenticationAppError: If the token is missing or not recognised.
        AuthorizationAppError: If the user's email is outside the allowed domain.
    """
    token = parse_bearer_token(authorization)
    if token is None:
        logger.info("auth.missing_token", extra={"header_present": authorization is not None})
        raise AuthenticationAppError(
            code="authentication_required",
            message="Authentication required",
        )

    user = await identity.get_user(token)
    if user is None:
        logger.warning("auth.invalid_token", extra={"token_hash": _hash_token(token)})
        raise AuthenticationAppError(
            code="authentication_required",
            message="Authentication required",
        )

    if not is_allowed_email(user.email):
        logger.warning(
            "auth.domain_rejected",
            extra={"allowed_domain": settings.app.allowed_email_domain},
        )
        raise AuthorizationAppError(
            code="domain_not_allowed",
            message=(
                f"Access denied. Only @{settings.app.allowed_email_domain} "
                "email addresses are allowed."
            ),
        )

    logger.debug("auth.success", extra={"token_hash": _hash_token(token)})
    return user
