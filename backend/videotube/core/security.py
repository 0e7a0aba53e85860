"""Credential hashing and token signing primitives.

TOKEN LIFECYCLE:

1. LOGIN:
   - Credentials are checked against the stored password hash
   - Server signs two tokens for the user id:
     * Access Token (JWT, short-lived) - proves identity on API requests
     * Refresh Token (JWT, long-lived) - stored on the user row, only used
       to mint a new pair
   - Both are returned in the body and as HttpOnly cookies

2. REFRESH:
   - Client presents the refresh token
   - Server checks signature, expiry and token type, then compares the
     presented value against the one stored on the user row
   - A new pair is signed and the stored refresh token is replaced
     (rotation), so the presented token can never be used again

3. LOGOUT:
   - The stored refresh token is cleared; both cookies are deleted

Access and refresh tokens are signed with different secrets so one can never
be accepted in place of the other.
"""

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from jwt.exceptions import InvalidTokenError
from pwdlib import PasswordHash
from pwdlib.exceptions import UnknownHashError

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"

__all__ = [
    "ACCESS_TOKEN_TYPE",
    "REFRESH_TOKEN_TYPE",
    "InvalidTokenError",
    "PasswordHasher",
    "TokenCodec",
    "TokenSettings",
]


@dataclass(frozen=True)
class TokenSettings:
    """Signing secrets and lifetimes for the two token kinds.

    Attributes:
        access_token_secret: Secret used to sign access tokens.
        access_token_expires: Lifetime of an access token.
        refresh_token_secret: Secret used to sign refresh tokens.
        refresh_token_expires: Lifetime of a refresh token.
        algorithm: JWT signing algorithm shared by both kinds.
    """

    access_token_secret: str
    access_token_expires: timedelta
    refresh_token_secret: str
    refresh_token_expires: timedelta
    algorithm: str = "HS256"


class PasswordHasher:
    """One-way password hashing using the recommended pwdlib algorithm."""

    def __init__(self, password_hash: PasswordHash | None = None) -> None:
        self._password_hash = password_hash or PasswordHash.recommended()

    def hash(self, password: str) -> str:
        """Hash a plain password.

        Args:
            password: Plain-text password to hash.

        Returns:
            str: The resulting password hash.
        """
        return self._password_hash.hash(password)

    def verify(self, password: str, hashed_password: str) -> bool:
        """Verify a plain password against a stored hash.

        Args:
            password: The clear-text password provided by the user.
            hashed_password: The stored password hash to verify against.

        Returns:
            bool: True if the password matches, False otherwise (including
                when the stored hash is not in a recognized format).
        """
        try:
            return self._password_hash.verify(password, hashed_password)
        except UnknownHashError:
            return False


class TokenCodec:
    """Sign and verify stateless JWTs with an embedded expiry."""

    def __init__(self, algorithm: str = "HS256") -> None:
        self.algorithm = algorithm

    def sign(self, payload: dict[str, Any], secret: str, expires_delta: timedelta) -> str:
        """Sign ``payload`` with ``secret``, adding ``iat``, ``exp`` and ``jti``.

        Args:
            payload: Claims to embed (e.g. ``{"sub": user_id}``).
            secret: Signing secret.
            expires_delta: Lifetime of the token from now.

        Returns:
            str: Encoded JWT.
        """
        now = datetime.now(timezone.utc)
        to_encode = payload.copy()
        # NOTE: a random jti keeps two tokens minted in the same second for
        # the same subject distinct.
        to_encode.update(
            {"iat": now, "exp": now + expires_delta, "jti": secrets.token_urlsafe(16)}
        )
        return jwt.encode(to_encode, secret, algorithm=self.algorithm)

    def verify(self, token: str, secret: str) -> dict[str, Any]:
        """Decode ``token`` and validate its signature and expiry.

        Raises:
            InvalidTokenError: If the token is malformed, expired or signed
                with a different secret.
        """
        return jwt.decode(token, secret, algorithms=[self.algorithm])
