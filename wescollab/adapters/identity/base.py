from abc import ABC, abstractmethod

from wescollab.schemas.user import AuthenticatedUser


class AbstractIdentityProvider(ABC):
    """Interface for resolving access tokens into users."""

    @abstractmethod
    async def get_user(self, access_token: str) -> AuthenticatedUser | None:
        """Resolve an access token.

        Args:
            access_token: Bearer token presented by the client.

        Returns:
            AuthenticatedUser, or None when the token is unknown or expired.

        Raises:
            UpstreamUnavailableError: If the identity service cannot be reached.
        """
        ...

    async def aclose(self) -> None:
        """Release connections held by the provider. Nothing to do by default."""
