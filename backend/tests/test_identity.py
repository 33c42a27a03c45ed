"""Tests for identity resolution and the auth service client."""

from __future__ import annotations

import httpx
import pytest

from portal.dependencies import get_access_token
from portal.services.errors import AuthError
from portal.services.identity import IdentityResolver, SupabaseAuthClient


def _auth_client(handler) -> SupabaseAuthClient:
    return SupabaseAuthClient(
        base_url="http://auth.test",
        api_key="anon-key",
        transport=httpx.MockTransport(handler),
    )


class TestIdentityResolver:
    async def test_no_token_resolves_to_none(self, auth_client) -> None:
        resolver = IdentityResolver(auth_client, None)

        assert await resolver.resolve() is None
        assert auth_client.calls == 0

    async def test_resolves_every_time(self, auth_client) -> None:
        resolver = IdentityResolver(auth_client, "token-1")

        assert await resolver.resolve() == "user-1"
        assert await resolver.resolve() == "user-1"
        assert auth_client.calls == 2

    async def test_auth_failure_propagates(self, auth_client) -> None:
        resolver = IdentityResolver(auth_client, "expired")

        with pytest.raises(AuthError):
            await resolver.resolve()

    async def test_require_without_identity_raises(self, auth_client) -> None:
        resolver = IdentityResolver(auth_client, None)

        with pytest.raises(AuthError) as exc_info:
            await resolver.require()

        assert exc_info.value.code == "NOT_AUTHENTICATED"


class TestSupabaseAuthClient:
    async def test_returns_user(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/auth/v1/user"
            assert request.headers["apikey"] == "anon-key"
            assert request.headers["Authorization"] == "Bearer abc"
            return httpx.Response(200, json={"id": "user-9", "email": "a@b.c"})

        user = await _auth_client(handler).get_user("abc")

        assert user is not None
        assert user.id == "user-9"
        assert user.email == "a@b.c"

    async def test_rejected_token_raises(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"msg": "invalid JWT"})

        with pytest.raises(AuthError) as exc_info:
            await _auth_client(handler).get_user("abc")

        assert "invalid JWT" in exc_info.value.message

    async def test_transport_failure_raises(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(AuthError):
            await _auth_client(handler).get_user("abc")

    async def test_non_json_user_response_raises(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>gateway</html>")

        with pytest.raises(AuthError) as exc_info:
            await _auth_client(handler).get_user("abc")

        assert exc_info.value.message == "Auth error: invalid user response"

    async def test_non_object_user_response_raises(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=[{"id": "user-9"}])

        with pytest.raises(AuthError):
            await _auth_client(handler).get_user("abc")

    async def test_user_response_without_id_is_none(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={})

        assert await _auth_client(handler).get_user("abc") is None


class TestAccessToken:
    @pytest.mark.parametrize(
        "header, expected",
        [
            ("Bearer token-1", "token-1"),
            ("bearer token-1", "token-1"),
            ("BEARER  token-1 ", "token-1"),
            ("Basic dXNlcjpwdw==", None),
            ("Bearer", None),
            ("Bearer ", None),
            (None, None),
        ],
    )
    def test_parses_bearer_scheme(self, header, expected) -> None:
        assert get_access_token(header) == expected
