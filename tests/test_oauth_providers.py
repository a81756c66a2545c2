"""Tests for the OAuth provider adapters (HTTP mocked with httpx.MockTransport)."""

from __future__ import annotations

from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from mirror_chat.config import Settings
from mirror_chat.errors import OAuthFailed
from mirror_chat.services.oauth_providers import (
    FacebookProvider,
    GoogleProvider,
    InstagramProvider,
    ProviderRegistry,
)

REDIRECT = "http://testserver/auth/x/callback"


class RecordingTransport(httpx.MockTransport):
    """MockTransport that remembers every request it served."""

    def __init__(self, token_response: httpx.Response, profile_response: httpx.Response):
        self.requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            if request.method == "POST":
                return token_response
            return profile_response

        super().__init__(handler)


def _ok(token: str = "at-1", profile: dict | None = None) -> RecordingTransport:
    return RecordingTransport(
        httpx.Response(200, json={"access_token": token}),
        httpx.Response(200, json=profile or {}),
    )


# ── Registry ─────────────────────────────────────────────

def test_registry_without_credentials_enables_nothing():
    registry = ProviderRegistry.from_settings(Settings(_env_file=None))
    assert registry.enabled == []
    assert registry.get("google") is None


def test_registry_needs_both_id_and_secret():
    registry = ProviderRegistry.from_settings(
        Settings(
            _env_file=None,
            google_client_id="gid",
            facebook_client_id="fid",
            facebook_client_secret="fsecret",
        )
    )
    assert registry.enabled == ["facebook"]
    assert registry.disabled == ["google", "instagram"]
    assert isinstance(registry.get("facebook"), FacebookProvider)


# ── begin_auth ───────────────────────────────────────────

def test_begin_auth_builds_authorize_url():
    provider = GoogleProvider("gid", "gsecret", "/auth/google/callback")
    url = provider.begin_auth("st4te", REDIRECT)

    parsed = urlparse(url)
    assert f"{parsed.scheme}://{parsed.netloc}{parsed.path}" == GoogleProvider.authorize_url
    query = parse_qs(parsed.query)
    assert query["client_id"] == ["gid"]
    assert query["redirect_uri"] == [REDIRECT]
    assert query["response_type"] == ["code"]
    assert query["state"] == ["st4te"]
    assert query["scope"] == ["openid profile email"]


# ── handle_callback ──────────────────────────────────────

@pytest.mark.asyncio
async def test_google_callback_exchanges_code():
    transport = _ok(
        profile={
            "sub": "1234",
            "name": "Gina Google",
            "email": "gina@example.com",
            "picture": "https://img/g.png",
        }
    )
    provider = GoogleProvider("gid", "gsecret", "/cb", transport=transport)

    profile = await provider.handle_callback("the-code", REDIRECT)

    assert profile["id"] == "1234"
    assert profile["displayName"] == "Gina Google"
    assert profile["emails"] == [{"value": "gina@example.com"}]
    assert profile["photos"] == [{"value": "https://img/g.png"}]

    token_request, profile_request = transport.requests
    form = parse_qs(token_request.content.decode())
    assert form["code"] == ["the-code"]
    assert form["grant_type"] == ["authorization_code"]
    assert form["redirect_uri"] == [REDIRECT]
    assert profile_request.headers["Authorization"] == "Bearer at-1"


@pytest.mark.asyncio
async def test_facebook_profile_fields_and_picture():
    transport = _ok(
        profile={
            "id": "fb-9",
            "name": "Fay Book",
            "picture": {"data": {"url": "https://img/f.png"}},
        }
    )
    provider = FacebookProvider("fid", "fsecret", "/cb", transport=transport)

    profile = await provider.handle_callback("c", REDIRECT)

    assert profile["id"] == "fb-9"
    assert profile["photos"] == [{"value": "https://img/f.png"}]
    assert profile["emails"] == []
    assert transport.requests[1].url.params["fields"] == "id,name,picture,email"


@pytest.mark.asyncio
async def test_instagram_uses_username():
    transport = _ok(profile={"id": "ig-3", "username": "insta.user"})
    provider = InstagramProvider("iid", "isecret", "/cb", transport=transport)

    profile = await provider.handle_callback("c", REDIRECT)
    assert profile["displayName"] == "insta.user"
    assert profile["raw"] == {"id": "ig-3", "username": "insta.user"}


@pytest.mark.asyncio
async def test_token_exchange_error():
    transport = RecordingTransport(
        httpx.Response(400, json={"error": "invalid_grant"}),
        httpx.Response(200, json={}),
    )
    provider = GoogleProvider("gid", "gsecret", "/cb", transport=transport)

    with pytest.raises(OAuthFailed):
        await provider.handle_callback("bad", REDIRECT)
    assert len(transport.requests) == 1


@pytest.mark.asyncio
async def test_missing_access_token():
    transport = RecordingTransport(httpx.Response(200, json={}), httpx.Response(200, json={}))
    provider = GoogleProvider("gid", "gsecret", "/cb", transport=transport)

    with pytest.raises(OAuthFailed):
        await provider.handle_callback("c", REDIRECT)


@pytest.mark.asyncio
async def test_token_response_not_an_object():
    transport = RecordingTransport(httpx.Response(200, json=["at"]), httpx.Response(200, json={}))
    provider = GoogleProvider("gid", "gsecret", "/cb", transport=transport)

    with pytest.raises(OAuthFailed, match="malformed token"):
        await provider.handle_callback("c", REDIRECT)
    assert len(transport.requests) == 1


@pytest.mark.asyncio
async def test_profile_response_not_an_object():
    transport = RecordingTransport(
        httpx.Response(200, json={"access_token": "at"}),
        httpx.Response(200, json=["not", "a", "profile"]),
    )
    provider = InstagramProvider("iid", "isecret", "/cb", transport=transport)

    with pytest.raises(OAuthFailed, match="malformed profile"):
        await provider.handle_callback("c", REDIRECT)


@pytest.mark.asyncio
async def test_profile_fetch_error():
    transport = RecordingTransport(
        httpx.Response(200, json={"access_token": "at"}),
        httpx.Response(500, text="oops"),
    )
    provider = FacebookProvider("fid", "fsecret", "/cb", transport=transport)

    with pytest.raises(OAuthFailed):
        await provider.handle_callback("c", REDIRECT)


@pytest.mark.asyncio
async def test_network_error_becomes_oauth_failed():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("no route", request=request)

    provider = GoogleProvider("gid", "gsecret", "/cb", transport=httpx.MockTransport(handler))

    with pytest.raises(OAuthFailed):
        await provider.handle_callback("c", REDIRECT)
