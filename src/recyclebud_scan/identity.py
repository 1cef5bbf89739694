"""Bearer credential verification against Supabase Auth.

The scanner only depends on the ``IdentityVerifier`` protocol: give it a
bearer token, get back a stable user id or an ``UnauthenticatedError``.
``SupabaseIdentityVerifier`` implements it with a single
``GET /auth/v1/user`` call, which is what ``supabase.auth.getUser()`` does
under the hood.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Protocol

import aiohttp

from recyclebud_scan.config import ScanConfig
from recyclebud_scan.exceptions import MisconfiguredServiceError, UnauthenticatedError

logger = logging.getLogger("recyclebud_scan.identity")

BEARER_PREFIX = "bearer "


class IdentityVerifier(Protocol):
    """Anything that can turn a bearer credential into a verified user id."""

    async def verify_async(self, credential: str) -> str: ...

    async def close(self) -> None: ...


def extract_bearer_token(authorization: str | None) -> str:
    """Pull the token out of an ``Authorization`` header value.

    A header without the ``Bearer`` scheme is taken as the raw token.
    Returns an empty string when nothing usable is present.
    """
    if not authorization:
        return ""
    value = authorization.strip()
    if value.lower().startswith(BEARER_PREFIX):
        return value[len(BEARER_PREFIX):].strip()
    if value.lower() == BEARER_PREFIX.strip():
        return ""
    return value


class SupabaseIdentityVerifier:
    """Verifies Supabase access tokens by asking Supabase Auth who they belong to."""

    def __init__(self, config: ScanConfig) -> None:
        self._config = config
        self._base_url = config.supabase_url.rstrip("/")
        self._session: aiohttp.ClientSession | None = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._config.auth_timeout)
            )
        return self._session

    async def verify_async(self, credential: str) -> str:
        """Return the user id for ``credential``.

        Raises:
            UnauthenticatedError: If the token is empty, rejected, or the
                lookup fails for any reason.
            MisconfiguredServiceError: If Supabase is not configured.
        """
        if not credential:
            raise UnauthenticatedError(details={"reason": "empty credential"})
        if not self._config.has_identity:
            raise MisconfiguredServiceError(
                "Classification service is not configured.",
                details={"missing": ["SUPABASE_URL", "SUPABASE_ANON_KEY"]},
            )

        session = await self._get_session()
        url = f"{self._base_url}/auth/v1/user"
        headers = {
            "apikey": self._config.supabase_anon_key,
            "Authorization": f"Bearer {credential}",
        }

        try:
            async with session.get(url, headers=headers) as resp:
                if resp.status != 200:
                    body = await resp.text()
                    raise UnauthenticatedError(
                        details={"status": resp.status, "response_body": body[:500]}
                    )
                payload = await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise UnauthenticatedError(
                details={"reason": f"{type(e).__name__}: {e}"}
            ) from e

        return _user_id_from_payload(payload)

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None


def _user_id_from_payload(payload: Any) -> str:
    """Read the user id from a Supabase ``/auth/v1/user`` response body."""
    if isinstance(payload, dict):
        user = payload.get("user", payload)
        if isinstance(user, dict):
            user_id = user.get("id")
            if isinstance(user_id, str) and user_id:
                return user_id
    raise UnauthenticatedError(details={"reason": "no user in auth response"})
