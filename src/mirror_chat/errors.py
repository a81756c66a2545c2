"""Domain errors raised by the services and rendered by the HTTP layer."""

from __future__ import annotations


class MirrorError(Exception):
    """Base class for every error that maps onto an HTTP response."""

    status_code: int = 500
    default_message: str = "Internal error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(MirrorError):
    status_code = 400
    default_message = "Invalid request"


class NotFound(MirrorError):
    status_code = 404
    default_message = "Not found"


class DuplicateChat(MirrorError):
    """A second chat for the same contact (or id) was about to be stored."""

    status_code = 409
    default_message = "Chat already exists"


# ── OTP failures (all reported as 400) ───────────────────

class OtpError(MirrorError):
    status_code = 400


class OtpNotFound(OtpError):
    default_message = "No OTP requested for this number"


class OtpExpired(OtpError):
    default_message = "OTP expired"


class OtpMismatch(OtpError):
    default_message = "Invalid OTP"


# ── Session / login ──────────────────────────────────────

class Unauthenticated(MirrorError):
    status_code = 401
    default_message = "Not authenticated"


class LoginError(MirrorError):
    status_code = 500
    default_message = "Login error"


class OAuthFailed(MirrorError):
    status_code = 400
    default_message = "Authentication failed"
