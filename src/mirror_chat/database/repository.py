"""Chat repository — in-memory data access layer for the profile, contacts and chats."""

from __future__ import annotations

from mirror_chat.database.seed import default_user, sample_contacts
from mirror_chat.errors import DuplicateChat
from mirror_chat.models.chat import Chat, Contact
from mirror_chat.models.user import User


class ChatRepository:
    """Encapsulates all lookups over the in-memory collections.

    Chats are kept in insertion order. A secondary index on ``contact_id``
    enforces the one-chat-per-contact rule on insert, so
    :meth:`find_chat_by_contact` can never see two matches.
    """

    def __init__(
        self,
        user: User | None = None,
        contacts: list[Contact] | None = None,
    ) -> None:
        self._user = user if user is not None else default_user()
        self._contacts: dict[int, Contact] = {
            c.id: c for c in (contacts if contacts is not None else sample_contacts())
        }
        self._chats: dict[int, Chat] = {}
        self._chat_by_contact: dict[int, int] = {}

    @property
    def user(self) -> User:
        return self._user

    # ── Contacts ─────────────────────────────────────────

    def find_contact(self, contact_id: int) -> Contact | None:
        return self._contacts.get(contact_id)

    def list_contacts(self) -> list[Contact]:
        return list(self._contacts.values())

    # ── Chats ────────────────────────────────────────────

    def find_chat_by_id(self, chat_id: int) -> Chat | None:
        return self._chats.get(chat_id)

    def find_chat_by_contact(self, contact_id: int) -> Chat | None:
        chat_id = self._chat_by_contact.get(contact_id)
        return self._chats.get(chat_id) if chat_id is not None else None

    def list_chats(self) -> list[Chat]:
        return list(self._chats.values())

    def add_chat(self, chat: Chat) -> None:
        if chat.contact_id in self._chat_by_contact:
            raise DuplicateChat(f"A chat with contact {chat.contact_id} already exists")
        if chat.id in self._chats:
            raise DuplicateChat(f"A chat with id {chat.id} already exists")
        self._chats[chat.id] = chat
        self._chat_by_contact[chat.contact_id] = chat.id
