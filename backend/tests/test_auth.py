"""
Tests for sign-in and sessions

Tests cover:
- Session token round trip and scope checks
- OAuth state binding to a provider and to the starting browser
- Callback upserting the user and setting the session cookie
- /auth/session, /auth/refresh, /auth/logout
"""

from unittest.mock import AsyncMock, patch
from urllib.parse import parse_qs, urlparse

import httpx
import pytest
from jose import jwt

from jobtracker.auth import COOKIE_NAME, create_session_token, verify_session_token
from jobtracker.config import get_settings
from jobtracker.exceptions import UpstreamError
from jobtracker.services import identity
from jobtracker.services.identity import (
    STATE_COOKIE,
    ProviderIdentity,
    create_state,
    exchange_code,
    get_provider,
    verify_state,
)


def _cookie_value(response: httpx.Response, name: str) -> str:
    for header in response.headers.get_list("set-cookie"):
        key, _, value = header.split(";")[0].partition("=")
        if key.strip() == name:
            return value
    raise AssertionError(f"{name} not set")


class TestSessionTokens:
    """JWT session tokens."""

    def test_round_trip(self):
        token, _ = create_session_token("user-1")
        assert verify_session_token(token) == "user-1"

    def test_garbage_rejected(self):
        assert verify_session_token("not-a-token") is None

    def test_other_scope_rejected(self):
        """A storage or state token must not work as a session."""
        token = jwt.encode({"sub": "user-1", "scope": "storage"}, get_settings().secret_key, algorithm="HS256")
        assert verify_session_token(token) is None


class TestOAuthState:
    """Signed state parameter."""

    def test_state_bound_to_provider(self):
        state = create_state("github", "n1")
        assert verify_state(state, "github", "n1")
        assert not verify_state(state, "google", "n1")

    def test_state_bound_to_nonce(self):
        state = create_state("github", "n1")
        assert not verify_state(state, "github", "n2")
        assert not verify_state(state, "github", None)
        assert not verify_state(state, "github", "")

    def test_tampered_state_rejected(self):
        assert not verify_state(create_state("github", "n1") + "x", "github", "n1")


class TestAuthorize:
    """GET /auth/{provider}/authorize"""

    @pytest.mark.asyncio
    async def test_unconfigured_provider_reports_error(self, client):
        with patch.object(identity.settings, "github_client_id", ""):
            response = await client.get("/auth/github/authorize")

        assert response.status_code == 500
        assert "not configured" in response.json()["error"]

    @pytest.mark.asyncio
    async def test_redirects_with_state(self, client):
        with patch.object(identity.settings, "github_client_id", "client-123"):
            response = await client.get("/auth/github/authorize")

        assert response.status_code == 302
        location = urlparse(response.headers["location"])
        params = parse_qs(location.query)
        assert location.netloc == "github.com"
        assert params["client_id"] == ["client-123"]
        assert verify_state(params["state"][0], "github", _cookie_value(response, STATE_COOKIE))
        assert params["redirect_uri"][0].endswith("/auth/github/callback")

    @pytest.mark.asyncio
    async def test_unknown_provider(self, client):
        response = await client.get("/auth/myspace/authorize")
        assert response.status_code == 404


class TestCallback:
    """GET /auth/{provider}/callback"""

    @staticmethod
    def _start_flow(client, nonce="browser-nonce"):
        client.cookies.set(STATE_COOKIE, nonce)
        return create_state("github", nonce)

    @pytest.mark.asyncio
    async def test_invalid_state(self, client):
        client.cookies.set(STATE_COOKIE, "browser-nonce")
        response = await client.get("/auth/github/callback", params={"code": "c", "state": "bogus"})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_state_without_nonce_cookie_rejected(self, client):
        exchange = AsyncMock()

        with patch("jobtracker.api.auth.exchange_code", exchange):
            response = await client.get(
                "/auth/github/callback",
                params={"code": "attacker-code", "state": create_state("github", "attacker-nonce")},
            )

        assert response.status_code == 400
        exchange.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_state_from_another_browser_rejected(self, client):
        state = create_state("github", "attacker-nonce")
        client.cookies.set(STATE_COOKIE, "victim-nonce")

        response = await client.get("/auth/github/callback", params={"code": "c", "state": state})

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_authorize_then_callback_in_same_browser(self, client):
        identity_result = ProviderIdentity(subject="7", email="o@example.com", display_name="Octo")

        with patch.object(identity.settings, "github_client_id", "client-123"):
            started = await client.get("/auth/github/authorize")
        state = parse_qs(urlparse(started.headers["location"]).query)["state"][0]

        with patch("jobtracker.api.auth.exchange_code", AsyncMock(return_value=identity_result)):
            response = await client.get("/auth/github/callback", params={"code": "abc", "state": state})

        assert response.status_code == 302
        assert verify_session_token(_cookie_value(response, COOKIE_NAME))

    @pytest.mark.asyncio
    async def test_signs_in_and_sets_cookie(self, client):
        identity_result = ProviderIdentity(subject="42", email="dev@example.com", display_name="Dev")

        with patch("jobtracker.api.auth.exchange_code", AsyncMock(return_value=identity_result)):
            response = await client.get(
                "/auth/github/callback",
                params={"code": "abc", "state": self._start_flow(client)},
            )

        assert response.status_code == 302
        assert response.headers["location"].endswith("/dashboard")
        token = _cookie_value(response, COOKIE_NAME)

        session = await client.get("/auth/session", headers={"Authorization": f"Bearer {token}"})
        assert session.status_code == 200
        assert session.json()["user"]["email"] == "dev@example.com"
        assert session.json()["access_token"] == token

        profile = await client.get("/profile", headers={"Authorization": f"Bearer {token}"})
        assert profile.json()["full_name"] == "Dev"

    @pytest.mark.asyncio
    async def test_second_sign_in_reuses_user(self, client):
        identity_result = ProviderIdentity(subject="42", email="dev@example.com", display_name="Dev")
        user_ids = []

        with patch("jobtracker.api.auth.exchange_code", AsyncMock(return_value=identity_result)):
            for _ in range(2):
                response = await client.get(
                    "/auth/github/callback",
                    params={"code": "abc", "state": self._start_flow(client)},
                )
                user_ids.append(verify_session_token(_cookie_value(response, COOKIE_NAME)))

        assert user_ids[0] == user_ids[1]


class TestSessionEndpoints:
    """Session read, refresh and logout."""

    @pytest.mark.asyncio
    async def test_session_requires_token(self, client):
        response = await client.get("/auth/session")
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_refresh_issues_valid_token(self, client, alice):
        response = await client.post("/auth/refresh", headers=alice.headers)

        assert response.status_code == 200
        assert verify_session_token(response.json()["access_token"]) == alice.user.id

    @pytest.mark.asyncio
    async def test_logout(self, client):
        response = await client.post("/auth/logout")
        assert response.json() == {"success": True, "message": "Logged out successfully"}


class TestExchangeCode:
    """Provider code exchange over a mocked transport."""

    @pytest.mark.asyncio
    async def test_github_identity(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/login/oauth/access_token":
                return httpx.Response(200, json={"access_token": "gho_x"})
            assert request.headers["authorization"] == "Bearer gho_x"
            return httpx.Response(200, json={"id": 7, "login": "octo", "email": "o@example.com"})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            result = await exchange_code(get_provider("github"), "code", "http://cb", client=http)

        assert result == ProviderIdentity(subject="7", email="o@example.com", display_name="octo")

    @pytest.mark.asyncio
    async def test_token_failure_is_upstream_error(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(401, json={}))

        async with httpx.AsyncClient(transport=transport) as http:
            with pytest.raises(UpstreamError):
                await exchange_code(get_provider("google"), "code", "http://cb", client=http)
