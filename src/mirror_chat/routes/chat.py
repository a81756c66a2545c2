"""Chat API routes — profile, contacts, chats and messages under ``/api``."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from mirror_chat.database.repository import ChatRepository
from mirror_chat.errors import NotFound
from mirror_chat.models.chat import CamelModel, Chat, Contact
from mirror_chat.models.user import User
from mirror_chat.routes.deps import get_chat_service, get_repository
from mirror_chat.services.chat_service import ChatService

router = APIRouter(prefix="/api", tags=["chat"])


# ── Request / response models ────────────────────────────

class InitResponse(CamelModel):
    user: User
    contacts: list[Contact]
    chats: list[Chat]


class CreateChatRequest(CamelModel):
    contact_id: int | None = None


class SendMessageRequest(CamelModel):
    text: str | None = None
    type: str | None = None


class ProfileUpdateRequest(CamelModel):
    name: str | None = None
    about: str | None = None
    phone: str | None = None
    avatar: str | None = None


def _parse_chat_id(raw: str) -> int:
    try:
        return int(raw)
    except ValueError:
        raise NotFound("Chat not found") from None


# ── Endpoints ────────────────────────────────────────────

@router.get("/init")
async def init(repo: ChatRepository = Depends(get_repository)) -> InitResponse:
    """Everything the client needs to render its first screen."""
    return InitResponse(user=repo.user, contacts=repo.list_contacts(), chats=repo.list_chats())


@router.get("/contacts")
async def list_contacts(repo: ChatRepository = Depends(get_repository)) -> list[Contact]:
    return repo.list_contacts()


@router.get("/chats")
async def list_chats(repo: ChatRepository = Depends(get_repository)) -> list[Chat]:
    return repo.list_chats()


@router.get("/chats/{chat_id}")
async def get_chat(chat_id: str, chats: ChatService = Depends(get_chat_service)) -> Chat:
    return chats.get_chat(_parse_chat_id(chat_id))


@router.post("/chats")
async def create_chat(
    body: CreateChatRequest,
    chats: ChatService = Depends(get_chat_service),
) -> Chat:
    """Open the chat with a contact, creating it on first use."""
    return chats.create_or_get_chat(body.contact_id)


@router.post("/chats/{chat_id}/messages")
async def send_message(
    chat_id: str,
    body: SendMessageRequest,
    chats: ChatService = Depends(get_chat_service),
) -> Chat:
    """Append a message; the simulated reply arrives a second later."""
    return chats.append_message(_parse_chat_id(chat_id), body.text, body.type)


@router.post("/profile")
async def update_profile(
    body: ProfileUpdateRequest | None = None,
    chats: ChatService = Depends(get_chat_service),
) -> User:
    fields = body.model_dump(exclude_unset=True) if body is not None else {}
    return chats.update_profile(fields)
