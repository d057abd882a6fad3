"""In-memory identity provider for local development and tests."""

from __future__ import annotations

import threading

from wescollab.adapters.identity.base import AbstractIdentityProvider
from wescollab.schemas.user import AuthenticatedUser


class InMemoryIdentityProvider(AbstractIdentityProvider):
    """Maps pre-registered tokens to users."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._users_by_token: dict[str, AuthenticatedUser] = {}

    def register(self, access_token: str, user: AuthenticatedUser) -> None:
        with self._lock:
            self._users_by_token[access_token] = user

    def revoke(self, access_token: str) -> None:
        with self._lock:
            self._users_by_token.pop(access_token, None)

    async def get_user(self, access_token: str) -> AuthenticatedUser | None:
        with self._lock:
            return self._users_by_token.get(access_token)
