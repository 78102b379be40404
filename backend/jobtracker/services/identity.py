"""
OAuth Identity Providers - sign-in through GitHub or Google

Implements the authorization-code flow used by the session gate:

    1. /auth/{provider}/authorize  → redirect to provider with signed `state`
    2. provider → /auth/{provider}/callback?code=...&state=...
    3. exchange_code(): code → access token → provider user info

The `state` parameter is a short-lived JWT bound to the provider name and to
a random nonce that is also set as a cookie on the browser that started the
flow. A callback completes only when both agree, so a state minted for one
browser cannot finish sign-in in another.
"""

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

import httpx
from jose import JWTError, jwt

from jobtracker.config import get_settings
from jobtracker.exceptions import ConfigurationError, MalformedPayloadError, UpstreamError

logger = logging.getLogger(__name__)
settings = get_settings()

STATE_SCOPE = "oauth_state"
STATE_TTL_MINUTES = 10
STATE_COOKIE = "oauth_nonce"


@dataclass
class IdentityProvider:
    name: str
    authorize_url: str
    token_url: str
    userinfo_url: str
    scope: str
    client_id: str
    client_secret: str


@dataclass
class ProviderIdentity:
    subject: str
    email: Optional[str]
    display_name: Optional[str]


def get_providers() -> Dict[str, IdentityProvider]:
    return {
        "github": IdentityProvider(
            name="github",
            authorize_url="https://github.com/login/oauth/authorize",
            token_url="https://github.com/login/oauth/access_token",
            userinfo_url="https://api.github.com/user",
            scope="read:user user:email",
            client_id=settings.github_client_id,
            client_secret=settings.github_client_secret,
        ),
        "google": IdentityProvider(
            name="google",
            authorize_url="https://accounts.google.com/o/oauth2/v2/auth",
            token_url="https://oauth2.googleapis.com/token",
            userinfo_url="https://openidconnect.googleapis.com/v1/userinfo",
            scope="openid email profile",
            client_id=settings.google_client_id,
            client_secret=settings.google_client_secret,
        ),
    }


def get_provider(name: str) -> Optional[IdentityProvider]:
    return get_providers().get(name)


def new_nonce() -> str:
    return secrets.token_urlsafe(16)


def create_state(provider: str, nonce: str) -> str:
    expire = datetime.now(timezone.utc) + timedelta(minutes=STATE_TTL_MINUTES)
    payload = {
        "scope": STATE_SCOPE,
        "provider": provider,
        "nonce": nonce,
        "exp": expire,
    }
    return jwt.encode(payload, settings.secret_key, algorithm="HS256")


def verify_state(state: str, provider: str, nonce: Optional[str]) -> bool:
    if not nonce:
        return False
    try:
        payload = jwt.decode(state, settings.secret_key, algorithms=["HS256"])
    except JWTError:
        return False
    return (
        payload.get("scope") == STATE_SCOPE
        and payload.get("provider") == provider
        and secrets.compare_digest(str(payload.get("nonce", "")).encode(), nonce.encode())
    )


def build_authorize_url(provider: IdentityProvider, redirect_uri: str, state: str) -> str:
    if not provider.client_id:
        raise ConfigurationError(f"{provider.name} sign-in is not configured.")
    params = {
        "client_id": provider.client_id,
        "redirect_uri": redirect_uri,
        "scope": provider.scope,
        "state": state,
        "response_type": "code",
    }
    return str(httpx.URL(provider.authorize_url, params=params))


def _parse_identity(provider: str, data: dict) -> ProviderIdentity:
    if provider == "github":
        subject = data.get("id")
        name = data.get("name") or data.get("login")
    else:
        subject = data.get("sub")
        name = data.get("name")
    if subject is None:
        raise MalformedPayloadError(f"{provider} user info has no subject id.")
    return ProviderIdentity(subject=str(subject), email=data.get("email"), display_name=name)


async def exchange_code(
    provider: IdentityProvider,
    code: str,
    redirect_uri: str,
    client: Optional[httpx.AsyncClient] = None,
) -> ProviderIdentity:
    """
    Trade an authorization code for the provider's view of the user.

    Raises:
        UpstreamError: token or user-info request failed
        MalformedPayloadError: provider answered without a token / subject
    """
    owns_client = client is None
    client = client or httpx.AsyncClient(timeout=15.0)
    try:
        token_response = await client.post(
            provider.token_url,
            data={
                "client_id": provider.client_id,
                "client_secret": provider.client_secret,
                "code": code,
                "redirect_uri": redirect_uri,
                "grant_type": "authorization_code",
            },
            headers={"Accept": "application/json"},
        )
        token_response.raise_for_status()
        access_token = token_response.json().get("access_token")
        if not access_token:
            raise MalformedPayloadError(f"{provider.name} did not return an access token.")

        info_response = await client.get(
            provider.userinfo_url,
            headers={"Authorization": f"Bearer {access_token}", "Accept": "application/json"},
        )
        info_response.raise_for_status()
        return _parse_identity(provider.name, info_response.json())
    except httpx.HTTPError as e:
        logger.error(f"{provider.name} code exchange failed: {e}")
        raise UpstreamError(f"Sign-in with {provider.name} failed.") from e
    finally:
        if owns_client:
            await client.aclose()
