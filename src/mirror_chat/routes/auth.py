"""Auth routes — phone OTP login, OAuth login, logout and profile.

Endpoints
---------
POST /auth/phone                 → issue an OTP (logged, not sent)
POST /auth/verify-otp            → verify an OTP and log in
GET  /auth/{provider}            → redirect to Google / Facebook / Instagram
GET  /auth/{provider}/callback   → finish OAuth login
GET  /auth/success, /auth/failure
GET  /logout
GET  /profile                    → current session identity
"""

from __future__ import annotations

import html
import json
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from pydantic import ConfigDict

from mirror_chat.errors import OAuthFailed
from mirror_chat.models.chat import CamelModel
from mirror_chat.routes.deps import get_auth_service, get_session_token
from mirror_chat.services.auth_service import AuthService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


# ── Request models ───────────────────────────────────────

class PhoneRequest(CamelModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    country_code: str = ""
    phone_number: str = ""


class VerifyOtpRequest(PhoneRequest):
    otp: str = ""


# ── Phone / OTP ──────────────────────────────────────────

@router.post("/auth/phone")
async def request_otp(
    body: PhoneRequest,
    auth: AuthService = Depends(get_auth_service),
) -> dict:
    """Issue a 6-digit code for the number; the code only appears in the logs."""
    auth.request_otp(body.country_code, body.phone_number)
    return {"message": "OTP sent (for demo check server logs)"}


@router.post("/auth/verify-otp")
async def verify_otp(
    body: VerifyOtpRequest,
    auth: AuthService = Depends(get_auth_service),
    token: str = Depends(get_session_token),
) -> dict:
    identity = auth.verify_phone(token, body.country_code, body.phone_number, body.otp)
    return {"message": "Verified", "user": identity.model_dump()}


# ── OAuth result pages (declared before /auth/{provider}) ─

@router.get("/auth/success", response_class=HTMLResponse)
async def auth_success(
    auth: AuthService = Depends(get_auth_service),
    token: str = Depends(get_session_token),
):
    identity = auth.current_identity(token)
    if identity is None:
        return RedirectResponse("/auth/failure", status_code=302)
    pretty = html.escape(json.dumps(identity.model_dump(), indent=2))
    return HTMLResponse(
        "<h1>Login successful</h1>"
        f"<pre>{pretty}</pre>"
        '<p><a href="/">Go back</a></p>'
        '<p><a href="/logout">Logout</a></p>'
    )


@router.get("/auth/failure", response_class=HTMLResponse)
async def auth_failure() -> HTMLResponse:
    return HTMLResponse('<h1>Authentication Failed</h1><p><a href="/">Try again</a></p>')


# ── OAuth ────────────────────────────────────────────────

@router.get("/auth/{provider}")
async def begin_oauth(
    provider: str,
    request: Request,
    auth: AuthService = Depends(get_auth_service),
    token: str = Depends(get_session_token),
) -> RedirectResponse:
    url = auth.begin_oauth(token, provider, str(request.base_url))
    return RedirectResponse(url, status_code=302)


@router.get("/auth/{provider}/callback")
async def oauth_callback(
    provider: str,
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
    auth: AuthService = Depends(get_auth_service),
    token: str = Depends(get_session_token),
) -> RedirectResponse:
    if error:
        logger.info("%s login declined: %s", provider, error)
        return RedirectResponse("/auth/failure", status_code=302)
    try:
        await auth.complete_oauth(token, provider, code, state)
    except OAuthFailed as exc:
        logger.info("%s login failed: %s", provider, exc.message)
        return RedirectResponse("/auth/failure", status_code=302)
    return RedirectResponse("/auth/success", status_code=302)


# ── Session ──────────────────────────────────────────────

@router.get("/logout")
async def logout(
    auth: AuthService = Depends(get_auth_service),
    token: str = Depends(get_session_token),
) -> RedirectResponse:
    auth.logout(token)
    return RedirectResponse("/", status_code=302)


@router.get("/profile")
async def profile(
    auth: AuthService = Depends(get_auth_service),
    token: str = Depends(get_session_token),
) -> dict:
    return {"user": auth.get_profile(token).model_dump()}
