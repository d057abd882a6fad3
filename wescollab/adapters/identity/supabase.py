"""Identity provider that resolves sessions through Supabase Auth (GoTrue)."""

from __future__ import annotations

import logging

from wescollab.adapters.identity.base import AbstractIdentityProvider
from wescollab.adapters.supabase_http import SupabaseHttpClient
from wescollab.schemas.user import AuthenticatedUser

logger = logging.getLogger(__name__)


class SupabaseIdentityProvider(AbstractIdentityProvider):
    """Looks up the user behind an access token via ``GET /auth/v1/user``.

    The Google OAuth flow itself (redirects, code exchange) is handled by
    Supabase; this service only ever sees the resulting access token.
    """

    def __init__(self, http: SupabaseHttpClient) -> None:
        self._http = http

    async def aclose(self) -> None:
        await self._http.aclose()

    async def get_user(self, access_token: str) -> AuthenticatedUser | None:
        response = await self._http.request(
            "GET",
            "/auth/v1/user",
            operation="auth.get_user",
            headers={"Authorization": f"Bearer {access_token}"},
            accept_statuses=(401, 403),
        )
        if response.status_code in (401, 403):
            logger.info("auth.token_rejected", extra={"status_code": response.status_code})
            return None

        payload = response.json()
        email = payload.get("email")
        if not payload.get("id") or not email:
            return None

        metadata = payload.get("user_metadata") or {}
        return AuthenticatedUser(
            id=payload["id"],
            email=email,
            name=metadata.get("full_name") or metadata.get("name"),
        )
