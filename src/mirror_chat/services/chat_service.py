"""Chat service — creates chats, appends messages and simulates replies."""

from __future__ import annotations

import logging
import random
from datetime import datetime
from typing import Any

from mirror_chat.database.repository import ChatRepository
from mirror_chat.errors import NotFound, ValidationError
from mirror_chat.models.chat import Chat, Message
from mirror_chat.models.user import User
from mirror_chat.services.scheduler import Scheduler

logger = logging.getLogger(__name__)

AUTO_REPLY_DELAY_SECONDS = 1.0

AUTO_REPLIES = (
    "Hey! How are you?",
    "That sounds great!",
    "I agree with you.",
    "Interesting point!",
    "Let me think about it.",
    "Sure, no problem!",
    "Thanks for letting me know.",
)

PROFILE_FIELDS = ("name", "about", "phone", "avatar")


class ChatService:
    """Mutations over the chat repository.

    Every timestamp and chat id comes from the scheduler's clock, and the
    auto-reply is submitted to the same scheduler.
    """

    def __init__(
        self,
        repository: ChatRepository,
        scheduler: Scheduler,
        reply_delay: float = AUTO_REPLY_DELAY_SECONDS,
        rng: random.Random | None = None,
    ) -> None:
        self._repo = repository
        self._scheduler = scheduler
        self._reply_delay = reply_delay
        self._rng = rng or random.Random()
        self._last_chat_id = 0

    # ── Helpers ──────────────────────────────────────────

    def _clock_time(self) -> str:
        """Local wall-clock time as ``HH:MM``."""
        return datetime.fromtimestamp(self._scheduler.now()).strftime("%H:%M")

    def _next_chat_id(self) -> int:
        # Millisecond timestamp, bumped so two chats created in the same
        # millisecond still get distinct, increasing ids.
        chat_id = max(int(self._scheduler.now() * 1000), self._last_chat_id + 1)
        self._last_chat_id = chat_id
        return chat_id

    def get_chat(self, chat_id: int) -> Chat:
        chat = self._repo.find_chat_by_id(chat_id)
        if chat is None:
            raise NotFound("Chat not found")
        return chat

    # ── Chats ────────────────────────────────────────────

    def create_or_get_chat(self, contact_id: int | None) -> Chat:
        """Return the chat with *contact_id*, creating it on first use."""
        if contact_id is None:
            raise ValidationError("contactId is required")

        existing = self._repo.find_chat_by_contact(contact_id)
        if existing is not None:
            return existing

        contact = self._repo.find_contact(contact_id)
        if contact is None:
            raise NotFound("Contact not found")

        chat = Chat(
            id=self._next_chat_id(),
            contact_id=contact.id,
            name=contact.name,
            messages=[],
            last_message="",
            time=self._clock_time(),
        )
        self._repo.add_chat(chat)
        logger.info("Chat %s created with %s", chat.id, contact.name)
        return chat

    def append_message(self, chat_id: int, text: str | None, type: str | None = None) -> Chat:
        """Append a message and schedule the simulated reply.

        The returned chat reflects only the new message; the reply lands
        ``reply_delay`` seconds later and is visible on the next read.
        """
        chat = self.get_chat(chat_id)
        if not text:
            raise ValidationError("text is required")
        if type not in (None, "", "sent", "received"):
            raise ValidationError("type must be 'sent' or 'received'")

        chat.append(Message(text=text, type=type or "sent", time=self._clock_time()))
        self._scheduler.call_later(self._reply_delay, lambda: self._auto_reply(chat))
        return chat

    def _auto_reply(self, chat: Chat) -> None:
        text = self._rng.choice(AUTO_REPLIES)
        chat.append(Message(text=text, type="received", time=self._clock_time()))
        logger.debug("Auto-reply in chat %s: %s", chat.id, text)

    # ── Profile ──────────────────────────────────────────

    def update_profile(self, fields: dict[str, Any]) -> User:
        """Overwrite each non-empty profile field present in *fields*."""
        user = self._repo.user
        for name in PROFILE_FIELDS:
            value = fields.get(name)
            if value:
                setattr(user, name, value)
        return user
