"""User account model.

The user row carries the profile fields set at registration, the password
hash and the single refresh token that is currently valid for the user.
"""

import uuid

from db.session import Base
from sqlalchemy import Column, DateTime, String
from sqlalchemy.sql import func


def _uuid_str() -> str:
    return str(uuid.uuid4())


class User(Base):
    """Database model representing an application user.

    Attributes:
        id: UUID primary key.
        username: Unique login name, stored lowercase.
        email: Unique email address.
        full_name: Full display name.
        avatar: URL of the uploaded avatar image.
        cover_image: URL of the uploaded cover image, or empty string.
        password_hash: Password hash.
        refresh_token: Refresh token issued at the last login/refresh, or
            NULL when the user has no active session.
        created_at: Account creation timestamp.
        updated_at: Last modification timestamp.
    """

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_uuid_str)
    username = Column(String(255), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    full_name = Column(String(255), nullable=False, index=True)
    avatar = Column(String, nullable=False)
    cover_image = Column(String, nullable=False, default="")
    password_hash = Column(String, nullable=False)
    refresh_token = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
