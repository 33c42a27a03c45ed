"""Identity resolution against the hosted auth service."""

from __future__ import annotations

import logging
from typing import Protocol

import httpx
from pydantic import BaseModel

from portal.config import settings
from portal.services.errors import AuthError

logger = logging.getLogger(__name__)


class AuthUser(BaseModel):
    id: str
    email: str | None = None


class AuthClient(Protocol):
    async def get_user(self, access_token: str) -> AuthUser | None: ...


class SupabaseAuthClient:
    """Looks up the user behind an access token via ``GET /auth/v1/user``."""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.auth_url).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.auth_api_key
        self.timeout = timeout or settings.auth_timeout
        self._transport = transport

    async def get_user(self, access_token: str) -> AuthUser | None:
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {access_token}",
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.get(f"{self.base_url}/auth/v1/user", headers=headers)
        except httpx.HTTPError as e:
            raise AuthError(f"Auth error: {e}") from e

        if resp.status_code != 200:
            try:
                body = resp.json()
            except ValueError:
                body = {}
            if not isinstance(body, dict):
                body = {}
            msg = body.get("msg") or body.get("message") or resp.text
            raise AuthError(f"Auth error: {msg}")

        try:
            data = resp.json()
        except ValueError as e:
            raise AuthError("Auth error: invalid user response") from e
        if not isinstance(data, dict):
            raise AuthError("Auth error: invalid user response")
        if not data.get("id"):
            return None
        return AuthUser(id=data["id"], email=data.get("email"))


class IdentityResolver:
    """Resolves the current user's id for one caller.

    Nothing is cached: every ``resolve()`` asks the auth service again so a
    revoked session is noticed on the next operation.
    """

    def __init__(self, client: AuthClient, access_token: str | None) -> None:
        self._client = client
        self._access_token = access_token

    async def resolve(self) -> str | None:
        if not self._access_token:
            logger.debug("No access token, no authenticated user")
            return None
        user = await self._client.get_user(self._access_token)
        if user is None:
            logger.debug("No authenticated user found")
            return None
        logger.debug("User authenticated: %s", user.id)
        return user.id

    async def require(self) -> str:
        """Like ``resolve()`` but a missing identity is an ``AuthError``."""
        identity = await self.resolve()
        if identity is None:
            raise AuthError("User not authenticated", code="NOT_AUTHENTICATED")
        return identity
