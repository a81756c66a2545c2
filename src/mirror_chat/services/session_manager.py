"""Session manager — tracks the authenticated identity of each browser session."""

from __future__ import annotations

import hashlib
import hmac
import logging
import secrets
from typing import Protocol

from mirror_chat.models.user import AnyIdentity

logger = logging.getLogger(__name__)


class SessionStore(Protocol):
    """Minimum surface the auth flow needs from a session backend."""

    def get(self, token: str) -> AnyIdentity | None:
        ...

    def set(self, token: str, identity: AnyIdentity) -> None:
        ...

    def clear(self, token: str) -> None:
        ...


class SessionManager:
    """In-memory session store keyed by an opaque session token.

    Tokens reach the browser as a cookie of the form ``<token>.<signature>``
    where the signature is an HMAC over the token with the session secret.
    For production deployments, swap to a Redis-backed implementation of
    :class:`SessionStore`.
    """

    def __init__(self, secret: str) -> None:
        self._secret = secret.encode()
        self._sessions: dict[str, AnyIdentity] = {}

    # ── Identity storage ─────────────────────────────────

    def get(self, token: str) -> AnyIdentity | None:
        return self._sessions.get(token)

    def set(self, token: str, identity: AnyIdentity) -> None:
        self._sessions[token] = identity
        logger.info("Session %s… logged in via %s", token[:8], identity.provider)

    def clear(self, token: str) -> None:
        """Remove the identity (e.g. on logout). No-op if absent."""
        if self._sessions.pop(token, None) is not None:
            logger.info("Session cleared for %s…", token[:8])

    @property
    def active_count(self) -> int:
        """Number of authenticated sessions (useful for monitoring)."""
        return len(self._sessions)

    # ── Cookie tokens ────────────────────────────────────

    @staticmethod
    def new_token() -> str:
        return secrets.token_urlsafe(32)

    def _signature(self, token: str) -> str:
        return hmac.new(self._secret, token.encode(), hashlib.sha256).hexdigest()

    def sign(self, token: str) -> str:
        return f"{token}.{self._signature(token)}"

    def unsign(self, cookie_value: str | None) -> str | None:
        """Return the token inside a signed cookie, or ``None`` if tampered."""
        if not cookie_value or "." not in cookie_value:
            return None
        token, _, signature = cookie_value.rpartition(".")
        if not hmac.compare_digest(signature, self._signature(token)):
            logger.warning("Rejected session cookie with a bad signature")
            return None
        return token
