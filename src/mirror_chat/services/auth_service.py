"""Authentication service — phone OTP login, OAuth login, logout and profile."""

from __future__ import annotations

import logging
import secrets
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from urllib.parse import urljoin

from mirror_chat.errors import LoginError, NotFound, OAuthFailed, Unauthenticated, ValidationError
from mirror_chat.models.user import AnyIdentity, OAuthIdentity, PhoneIdentity
from mirror_chat.services.oauth_providers import OAuthProvider, ProviderRegistry
from mirror_chat.services.otp_store import OTPStore
from mirror_chat.services.session_manager import SessionStore

logger = logging.getLogger(__name__)

# How long an authorize redirect may wait for its callback
OAUTH_STATE_TTL_SECONDS = 600


@dataclass
class PendingOAuth:
    """An authorize redirect awaiting its callback, bound to one browser session."""

    provider: str
    redirect_uri: str
    session_token: str
    issued_at: float


class AuthService:
    """Issues session identities for phone and OAuth logins.

    Flow (phone)
    ------------
    1. ``request_otp`` stores a fresh code for the number and logs it.
    2. ``verify_phone`` checks the code, stores a ``PhoneIdentity`` in the
       session and only then consumes the code.

    Flow (OAuth)
    ------------
    1. ``begin_oauth`` returns the provider's authorize URL with a random
       ``state``.
    2. ``complete_oauth`` checks the ``state``, lets the provider adapter
       exchange the code and stores an ``OAuthIdentity`` in the session.

    The two flows share nothing except :meth:`_login`.
    """

    def __init__(
        self,
        otp_store: OTPStore,
        sessions: SessionStore,
        providers: ProviderRegistry,
        clock: Callable[[], float] = time.time,
        state_ttl: float = OAUTH_STATE_TTL_SECONDS,
    ) -> None:
        self._otp = otp_store
        self._sessions = sessions
        self._providers = providers
        self._clock = clock
        self._state_ttl = state_ttl
        self._pending: dict[str, PendingOAuth] = {}

    # ── Phone / OTP ──────────────────────────────────────

    def request_otp(self, country_code: str, phone_number: str) -> str:
        return self._otp.request(country_code, phone_number)

    def verify_phone(
        self, session_token: str, country_code: str, phone_number: str, otp: str
    ) -> PhoneIdentity:
        if not country_code or not phone_number or not otp:
            raise ValidationError("Missing parameters")

        self._otp.peek(country_code, phone_number, otp)

        identity = PhoneIdentity(id=str(uuid.uuid4()), phone=f"{country_code} {phone_number}")
        self._login(session_token, identity)
        self._otp.discard(country_code, phone_number)
        logger.info("Phone %s %s verified via OTP", country_code, phone_number)
        return identity

    # ── OAuth ────────────────────────────────────────────

    def _provider(self, name: str) -> OAuthProvider:
        provider = self._providers.get(name)
        if provider is None:
            raise NotFound(f"{name} login is not configured")
        return provider

    def _prune_pending(self, session_token: str) -> None:
        """Drop expired states and any earlier state of *session_token*."""
        cutoff = self._clock() - self._state_ttl
        for state, pending in list(self._pending.items()):
            if pending.issued_at < cutoff or pending.session_token == session_token:
                del self._pending[state]

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def begin_oauth(self, session_token: str, provider_name: str, base_url: str) -> str:
        """Return the authorize URL; relative callback URLs resolve against *base_url*.

        The ``state`` is bound to *session_token*, so only the browser that
        started the login can finish it. Each session keeps at most one
        pending state.
        """
        provider = self._provider(provider_name)
        self._prune_pending(session_token)
        redirect_uri = urljoin(base_url, provider.callback_url)
        state = secrets.token_urlsafe(16)
        self._pending[state] = PendingOAuth(
            provider=provider.name,
            redirect_uri=redirect_uri,
            session_token=session_token,
            issued_at=self._clock(),
        )
        logger.info("Redirecting to %s for login", provider.name)
        return provider.begin_auth(state, redirect_uri)

    async def complete_oauth(
        self,
        session_token: str,
        provider_name: str,
        code: str | None,
        state: str | None,
    ) -> OAuthIdentity:
        provider = self._provider(provider_name)

        pending = self._pending.pop(state, None) if state else None
        if (
            pending is None
            or pending.provider != provider.name
            or not secrets.compare_digest(pending.session_token, session_token)
        ):
            logger.warning("%s callback with unknown state", provider.name)
            raise OAuthFailed("Invalid OAuth state")
        if self._clock() - pending.issued_at > self._state_ttl:
            logger.info("%s callback arrived after the state expired", provider.name)
            raise OAuthFailed("OAuth state expired")
        if not code:
            raise OAuthFailed(f"{provider.name} did not return an authorization code")

        profile = await provider.handle_callback(code, pending.redirect_uri)
        identity = OAuthIdentity(
            id=f"{provider.name}:{profile['id']}",
            provider=provider.name,
            profile=profile,
        )
        self._login(session_token, identity)
        return identity

    # ── Session ──────────────────────────────────────────

    def _login(self, session_token: str, identity: AnyIdentity) -> None:
        try:
            self._sessions.set(session_token, identity)
        except Exception as exc:
            logger.exception("Could not store session identity")
            raise LoginError() from exc

    def logout(self, session_token: str) -> None:
        self._sessions.clear(session_token)

    def current_identity(self, session_token: str) -> AnyIdentity | None:
        return self._sessions.get(session_token)

    def get_profile(self, session_token: str) -> AnyIdentity:
        identity = self._sessions.get(session_token)
        if identity is None:
            raise Unauthenticated()
        return identity
