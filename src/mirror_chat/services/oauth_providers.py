"""OAuth2 provider adapters — Google, Facebook and Instagram login.

Each adapter speaks the authorization-code flow over ``httpx``:

1. :meth:`OAuthProvider.begin_auth` builds the provider's authorize URL.
2. :meth:`OAuthProvider.handle_callback` exchanges the returned ``code``
   for an access token and fetches the user's profile.

Profiles are normalised to a small passport-style shape
(``id``, ``displayName``, ``emails``, ``photos``) with the provider's raw
payload kept under ``raw``.
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import urlencode

import httpx

from mirror_chat.config import Settings
from mirror_chat.errors import OAuthFailed

logger = logging.getLogger(__name__)


class OAuthProvider:
    """Base adapter; subclasses fill in endpoints and profile mapping."""

    name: str = ""
    authorize_url: str = ""
    token_url: str = ""
    profile_url: str = ""
    scope: str = ""
    profile_fields: str | None = None

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        callback_url: str,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.callback_url = callback_url
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    # ── Step 1: redirect to the provider ─────────────────

    def begin_auth(self, state: str, redirect_uri: str) -> str:
        params = {
            "client_id": self.client_id,
            "redirect_uri": redirect_uri,
            "response_type": "code",
            "state": state,
        }
        if self.scope:
            params["scope"] = self.scope
        return f"{self.authorize_url}?{urlencode(params)}"

    # ── Step 2: code → token → profile ───────────────────

    async def handle_callback(self, code: str, redirect_uri: str) -> dict[str, Any]:
        """Exchange *code* and return the normalised profile.

        Raises ``OAuthFailed`` on any transport or provider error.
        """
        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=10.0) as client:
                token = await self._exchange_code(client, code, redirect_uri)
                raw = await self._fetch_profile(client, token)
        except (httpx.HTTPError, ValueError) as exc:
            logger.exception("%s OAuth request error: %s", self.name, exc)
            raise OAuthFailed(f"{self.name} login failed") from exc
        return self.normalize_profile(raw)

    async def _exchange_code(
        self, client: httpx.AsyncClient, code: str, redirect_uri: str
    ) -> str:
        resp = await client.post(
            self.token_url,
            data={
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "code": code,
                "grant_type": "authorization_code",
                "redirect_uri": redirect_uri,
            },
            headers={"Accept": "application/json"},
        )
        if resp.status_code != 200:
            logger.error("%s token exchange failed: %s %s", self.name, resp.status_code, resp.text)
            raise OAuthFailed(f"{self.name} token exchange failed")
        payload = resp.json()
        if not isinstance(payload, dict):
            raise OAuthFailed(f"{self.name} returned a malformed token response")
        token = payload.get("access_token")
        if not token:
            raise OAuthFailed(f"{self.name} returned no access token")
        return token

    async def _fetch_profile(self, client: httpx.AsyncClient, token: str) -> dict[str, Any]:
        params = {"fields": self.profile_fields} if self.profile_fields else None
        resp = await client.get(
            self.profile_url,
            params=params,
            headers={"Authorization": f"Bearer {token}"},
        )
        if resp.status_code != 200:
            logger.error("%s profile fetch failed: %s %s", self.name, resp.status_code, resp.text)
            raise OAuthFailed(f"{self.name} profile fetch failed")
        payload = resp.json()
        if not isinstance(payload, dict):
            raise OAuthFailed(f"{self.name} returned a malformed profile")
        return payload

    def normalize_profile(self, raw: dict[str, Any]) -> dict[str, Any]:
        return {
            "id": str(raw.get("id", "")),
            "displayName": raw.get("name", ""),
            "emails": [{"value": raw["email"]}] if raw.get("email") else [],
            "photos": [],
            "raw": raw,
        }


class GoogleProvider(OAuthProvider):
    name = "google"
    authorize_url = "https://accounts.google.com/o/oauth2/v2/auth"
    token_url = "https://oauth2.googleapis.com/token"
    profile_url = "https://openidconnect.googleapis.com/v1/userinfo"
    scope = "openid profile email"

    def normalize_profile(self, raw: dict[str, Any]) -> dict[str, Any]:
        profile = super().normalize_profile(raw)
        # OpenID Connect userinfo uses ``sub`` for the account id
        profile["id"] = str(raw.get("sub") or raw.get("id", ""))
        if raw.get("picture"):
            profile["photos"] = [{"value": raw["picture"]}]
        return profile


class FacebookProvider(OAuthProvider):
    name = "facebook"
    authorize_url = "https://www.facebook.com/v19.0/dialog/oauth"
    token_url = "https://graph.facebook.com/v19.0/oauth/access_token"
    profile_url = "https://graph.facebook.com/me"
    scope = "email"
    profile_fields = "id,name,picture,email"

    def normalize_profile(self, raw: dict[str, Any]) -> dict[str, Any]:
        profile = super().normalize_profile(raw)
        picture = (raw.get("picture") or {}).get("data", {}).get("url")
        if picture:
            profile["photos"] = [{"value": picture}]
        return profile


class InstagramProvider(OAuthProvider):
    name = "instagram"
    authorize_url = "https://api.instagram.com/oauth/authorize"
    token_url = "https://api.instagram.com/oauth/access_token"
    profile_url = "https://graph.instagram.com/me"
    scope = "user_profile"
    profile_fields = "id,username"

    def normalize_profile(self, raw: dict[str, Any]) -> dict[str, Any]:
        profile = super().normalize_profile(raw)
        profile["displayName"] = raw.get("username", "")
        return profile


class ProviderRegistry:
    """All known providers, exposing only those with credentials."""

    def __init__(self, providers: list[OAuthProvider]) -> None:
        self._providers = {p.name: p for p in providers}

    @classmethod
    def from_settings(
        cls, settings: Settings, transport: httpx.AsyncBaseTransport | None = None
    ) -> ProviderRegistry:
        registry = cls(
            [
                GoogleProvider(
                    settings.google_client_id,
                    settings.google_client_secret,
                    settings.google_callback,
                    transport,
                ),
                FacebookProvider(
                    settings.facebook_client_id,
                    settings.facebook_client_secret,
                    settings.facebook_callback,
                    transport,
                ),
                InstagramProvider(
                    settings.instagram_client_id,
                    settings.instagram_client_secret,
                    settings.instagram_callback,
                    transport,
                ),
            ]
        )
        for name in registry.disabled:
            logger.info("OAuth provider %s has no credentials; login disabled", name)
        return registry

    def get(self, name: str) -> OAuthProvider | None:
        provider = self._providers.get(name)
        if provider is None or not provider.is_configured:
            return None
        return provider

    @property
    def enabled(self) -> list[str]:
        return [n for n, p in self._providers.items() if p.is_configured]

    @property
    def disabled(self) -> list[str]:
        return [n for n, p in self._providers.items() if not p.is_configured]
