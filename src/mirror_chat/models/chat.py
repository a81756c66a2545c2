"""Pydantic models for contacts, chats and messages."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

MessageType = Literal["sent", "received"]


class CamelModel(BaseModel):
    """Base model serialised with camelCase keys on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Contact(CamelModel):
    id: int
    name: str
    avatar: str | None = None


class Message(CamelModel):
    """A single chat bubble. Never modified once appended to a chat."""

    model_config = ConfigDict(frozen=True)

    text: str
    type: MessageType = "sent"
    time: str


class Chat(CamelModel):
    """A conversation with exactly one contact.

    ``last_message`` and ``time`` mirror the most recently appended
    message so chat lists can be rendered without walking ``messages``.
    """

    id: int
    contact_id: int
    name: str
    messages: list[Message] = Field(default_factory=list)
    last_message: str = ""
    time: str

    def append(self, message: Message) -> None:
        self.messages.append(message)
        self.last_message = message.text
        self.time = message.time
