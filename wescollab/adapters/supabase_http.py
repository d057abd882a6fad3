"""Shared HTTP plumbing for talking to a Supabase project.

Table access goes through PostgREST (``/rest/v1``) and session lookups
through GoTrue (``/auth/v1``). Both adapters built on this module convert
transport failures and unexpected statuses into UpstreamUnavailableError so
the HTTP layer can fail closed without leaking backend detail.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from wescollab.core.errors import UpstreamUnavailableError

logger = logging.getLogger(__name__)


class SupabaseHttpClient:
    """Thin async wrapper around ``httpx.AsyncClient`` for one Supabase project."""

    def __init__(
        self,
        *,
        base_url: str,
        api_key: str,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Project URL, e.g. ``https://xyz.supabase.co``.
            api_key: Key sent as ``apikey`` (anon or service role).
            timeout_seconds: Per-request timeout.
            transport: Optional custom transport (tests use ``httpx.MockTransport``).
        """
        self.api_key = api_key
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout_seconds,
            transport=transport,
            headers={"apikey": api_key},
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request(
        self,
        method: str,
        path: str,
        *,
        operation: str,
        params: Any = None,
        headers: dict[str, str] | None = None,
        json: Any = None,
        accept_statuses: tuple[int, ...] = (),
    ) -> httpx.Response:
        """Send a request and return the response.

        Args:
            method: HTTP method.
            path: Path relative to the project URL.
            operation: Short name used in logs and error details.
            params: Query parameters (mapping or list of pairs for repeated keys).
            headers: Extra headers merged over the defaults.
            json: JSON body.
            accept_statuses: Non-2xx statuses the caller handles itself.

        Raises:
            UpstreamUnavailableError: On transport errors or unexpected statuses.
        """
        try:
            response = await self._client.request(
                method,
                path,
                params=params,
                headers=headers,
                json=json,
            )
        except httpx.HTTPError as exc:
            logger.error(
                "supabase.request_failed",
                extra={
                    "operation": operation,
                    "error_type": type(exc).__name__,
                    "error_msg": str(exc),
                },
            )
            raise UpstreamUnavailableError(
                code="upstream_unavailable",
                message="The data service is unavailable. Please try again later.",
                details={"operation": operation},
            ) from exc

        if response.is_success or response.status_code in accept_statuses:
            return response

        logger.error(
            "supabase.unexpected_status",
            extra={
                "operation": operation,
                "status_code": response.status_code,
                "body_preview": response.text[:200],
            },
        )
        raise UpstreamUnavailableError(
            code="upstream_error",
            message="The data service returned an error. Please try again later.",
            details={"operation": operation, "http_status": response.status_code},
        )
