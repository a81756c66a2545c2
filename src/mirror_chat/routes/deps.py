"""FastAPI dependencies — resolve per-app services and the session token."""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Request

from mirror_chat.database.repository import ChatRepository
from mirror_chat.services.auth_service import AuthService
from mirror_chat.services.chat_service import ChatService
from mirror_chat.services.oauth_providers import ProviderRegistry
from mirror_chat.services.scheduler import Scheduler
from mirror_chat.services.session_manager import SessionManager


@dataclass
class AppServices:
    """Everything stateful in one app instance (see ``create_app``)."""

    scheduler: Scheduler
    sessions: SessionManager
    providers: ProviderRegistry
    auth: AuthService
    repository: ChatRepository
    chats: ChatService


def get_services(request: Request) -> AppServices:
    return request.app.state.services


def get_auth_service(request: Request) -> AuthService:
    return get_services(request).auth


def get_chat_service(request: Request) -> ChatService:
    return get_services(request).chats


def get_repository(request: Request) -> ChatRepository:
    return get_services(request).repository


def get_session_token(request: Request) -> str:
    """The token assigned to this browser by the session middleware."""
    return request.state.session_token
