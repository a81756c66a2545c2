"""Tests for the ChatRepository."""

import pytest

from mirror_chat.database.repository import ChatRepository
from mirror_chat.errors import DuplicateChat
from mirror_chat.models.chat import Chat, Contact


@pytest.fixture
def repo():
    return ChatRepository()


def _chat(chat_id: int, contact_id: int) -> Chat:
    return Chat(id=chat_id, contact_id=contact_id, name=f"Contact {contact_id}", time="12:00")


# ── Seed data ────────────────────────────────────────────

def test_seeded_contacts(repo: ChatRepository):
    contacts = repo.list_contacts()
    assert [c.id for c in contacts] == [1, 2, 3, 4, 5]
    assert contacts[0].name == "John Doe"
    assert repo.list_chats() == []


def test_seeded_user(repo: ChatRepository):
    assert repo.user.name == "Mirror User"
    assert repo.user.avatar is None


def test_custom_contacts():
    repo = ChatRepository(contacts=[Contact(id=9, name="Solo")])
    assert repo.find_contact(9).name == "Solo"
    assert repo.find_contact(1) is None


# ── Lookups ──────────────────────────────────────────────

def test_find_chat_by_id_and_contact(repo: ChatRepository):
    chat = _chat(1000, 2)
    repo.add_chat(chat)

    assert repo.find_chat_by_id(1000) is chat
    assert repo.find_chat_by_contact(2) is chat


def test_find_chat_no_match(repo: ChatRepository):
    assert repo.find_chat_by_id(1) is None
    assert repo.find_chat_by_contact(1) is None


def test_list_chats_keeps_insertion_order(repo: ChatRepository):
    repo.add_chat(_chat(3000, 3))
    repo.add_chat(_chat(1000, 1))
    assert [c.id for c in repo.list_chats()] == [3000, 1000]


def test_list_returns_snapshot(repo: ChatRepository):
    snapshot = repo.list_chats()
    repo.add_chat(_chat(1000, 1))
    assert snapshot == []
    assert len(repo.list_chats()) == 1


# ── Uniqueness ───────────────────────────────────────────

def test_second_chat_for_contact_rejected(repo: ChatRepository):
    repo.add_chat(_chat(1000, 1))
    with pytest.raises(DuplicateChat):
        repo.add_chat(_chat(2000, 1))
    assert len(repo.list_chats()) == 1


def test_duplicate_chat_id_rejected(repo: ChatRepository):
    repo.add_chat(_chat(1000, 1))
    with pytest.raises(DuplicateChat):
        repo.add_chat(_chat(1000, 2))
