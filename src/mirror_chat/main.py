"""FastAPI application entry point."""

from __future__ import annotations

import logging
import random
from contextlib import asynccontextmanager

import httpx
import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from mirror_chat.config import Settings, settings as default_settings
from mirror_chat.database.repository import ChatRepository
from mirror_chat.errors import MirrorError
from mirror_chat.routes.auth import router as auth_router
from mirror_chat.routes.chat import router as chat_router
from mirror_chat.routes.deps import AppServices
from mirror_chat.services.auth_service import AuthService
from mirror_chat.services.chat_service import ChatService
from mirror_chat.services.oauth_providers import ProviderRegistry
from mirror_chat.services.otp_store import OTPStore
from mirror_chat.services.scheduler import AsyncioScheduler, Scheduler
from mirror_chat.services.session_manager import SessionManager

logging.basicConfig(
    level=logging.DEBUG if default_settings.debug else logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)

logger = logging.getLogger(__name__)


def build_services(
    settings: Settings,
    scheduler: Scheduler | None = None,
    oauth_transport: httpx.AsyncBaseTransport | None = None,
    rng: random.Random | None = None,
) -> AppServices:
    """Wire one fresh set of stores and services."""
    scheduler = scheduler or AsyncioScheduler()
    sessions = SessionManager(settings.session_secret)
    otp_store = OTPStore(ttl_seconds=settings.otp_ttl_seconds, clock=scheduler.now, rng=rng)
    providers = ProviderRegistry.from_settings(settings, transport=oauth_transport)
    repository = ChatRepository()
    return AppServices(
        scheduler=scheduler,
        sessions=sessions,
        providers=providers,
        auth=AuthService(otp_store, sessions, providers, clock=scheduler.now),
        repository=repository,
        chats=ChatService(
            repository,
            scheduler,
            reply_delay=settings.auto_reply_delay_seconds,
            rng=rng,
        ),
    )


def _error_body(request: Request, message: str) -> dict:
    # The chat API reports ``error``; auth and profile routes report ``message``.
    key = "error" if request.url.path.startswith("/api/") else "message"
    return {key: message}


def create_app(
    settings: Settings | None = None,
    scheduler: Scheduler | None = None,
    oauth_transport: httpx.AsyncBaseTransport | None = None,
    rng: random.Random | None = None,
) -> FastAPI:
    """Build the app with its own in-memory state."""
    settings = settings or default_settings
    services = build_services(settings, scheduler, oauth_transport, rng)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup / shutdown lifecycle hook."""
        logger.info("Starting %s …", settings.app_name)
        enabled = services.providers.enabled
        logger.info("OAuth providers enabled: %s", ", ".join(enabled) or "none")
        yield
        services.scheduler.cancel_all()
        logger.info("Shutting down %s …", settings.app_name)

    app = FastAPI(
        title=settings.app_name,
        description="Demo chat backend with mock OTP phone login and OAuth login",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.services = services

    @app.middleware("http")
    async def session_cookie(request: Request, call_next):
        """Give every browser a signed session token cookie."""
        cookie_name = settings.session_cookie_name
        token = services.sessions.unsign(request.cookies.get(cookie_name))
        issued = token is None
        if issued:
            token = services.sessions.new_token()
        request.state.session_token = token
        response = await call_next(request)
        if issued:
            response.set_cookie(
                cookie_name, services.sessions.sign(token), httponly=True, samesite="lax"
            )
        return response

    @app.exception_handler(MirrorError)
    async def mirror_error_handler(request: Request, exc: MirrorError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=_error_body(request, exc.message))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        logger.debug("Rejected request body for %s: %s", request.url.path, exc.errors())
        return JSONResponse(status_code=400, content=_error_body(request, "Invalid request body"))

    app.include_router(auth_router)
    app.include_router(chat_router)

    @app.get("/health")
    async def health_check():
        """Simple liveness check."""
        return {"status": "healthy", "app": settings.app_name}

    return app


app = create_app()


def run() -> None:
    """Console-script entry point: serve the app with uvicorn."""
    uvicorn.run(
        "mirror_chat.main:app",
        host=default_settings.host,
        port=default_settings.port,
        log_level="debug" if default_settings.debug else "info",
    )


if __name__ == "__main__":
    run()
