"""User profile and authenticated-identity models."""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field

from mirror_chat.models.chat import CamelModel

OAuthProviderName = Literal["google", "facebook", "instagram"]


class User(CamelModel):
    """The singleton profile of the person using the app.

    Updated in place by :meth:`ChatService.update_profile`; never recreated.
    """

    name: str
    about: str
    phone: str
    avatar: str | None = None


class PhoneIdentity(BaseModel):
    """Identity established by a successful OTP verification."""

    id: str
    provider: Literal["phone"] = "phone"
    phone: str


class OAuthIdentity(BaseModel):
    """Identity established by an OAuth provider callback."""

    id: str
    provider: OAuthProviderName
    profile: dict[str, Any]


AnyIdentity = Annotated[Union[PhoneIdentity, OAuthIdentity], Field(discriminator="provider")]
