"""Seed data — the demo profile and contact list every new app starts with."""

from mirror_chat.models.chat import Contact
from mirror_chat.models.user import User

SAMPLE_CONTACTS = [
    ("John Doe", None),
    ("Jane Smith", None),
    ("Mike Johnson", None),
    ("Sarah Wilson", None),
    ("Tom Brown", None),
]


def default_user() -> User:
    return User(
        name="Mirror User",
        about="Hey there! I am using Mirror",
        phone="+1 234 567 8900",
        avatar=None,
    )


def sample_contacts() -> list[Contact]:
    """Fresh Contact objects with ids 1..N."""
    return [
        Contact(id=i, name=name, avatar=avatar)
        for i, (name, avatar) in enumerate(SAMPLE_CONTACTS, start=1)
    ]
