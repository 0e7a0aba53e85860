"""Pydantic schemas for users and the auth endpoints.

Field names are snake_case in Python and camelCase on the wire
(``fullName``, ``accessToken``...).
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )


class PublicUser(CamelModel):
    """User representation returned by the API, without credential fields."""

    id: str
    username: str
    email: str
    full_name: str
    avatar: str
    cover_image: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None


class UserInDB(PublicUser):
    """Internal user model including DB-only fields."""

    password_hash: str
    refresh_token: str | None = None

    def to_public(self) -> PublicUser:
        """Return a copy with the credential fields dropped."""
        return PublicUser.model_validate(
            self.model_dump(include=set(PublicUser.model_fields))
        )


class LoginRequest(CamelModel):
    """Request body for logging in with a username or an email."""

    username: str | None = None
    email: str | None = None
    password: str | None = None


class RefreshTokenRequest(CamelModel):
    """Optional request body carrying the refresh token when no cookie is sent."""

    refresh_token: str | None = None


class TokenPair(CamelModel):
    """Freshly minted access and refresh tokens."""

    access_token: str
    refresh_token: str


class LoginResult(TokenPair):
    """Tokens plus the sanitized user returned by a successful login."""

    user: PublicUser
