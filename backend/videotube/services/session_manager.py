"""Session manager: registration, login, logout and token refresh.

The session manager owns the authentication lifecycle and nothing else. It
is composed from four collaborators passed in at construction time:

    UserStore       - identity store (user rows, stored refresh token)
    PasswordHasher  - password hashing and verification
    TokenCodec      - JWT signing and verification
    AssetStore      - avatar / cover image upload

together with a :class:`TokenSettings` value holding the secrets and
lifetimes, so tests can run it with their own secrets and stores.

Each user has at most one active session: the refresh token issued by the
last login or refresh is stored on the user row. Login overwrites it, refresh
replaces it (rotation) and logout clears it. A presented refresh token that
differs from the stored one is rejected even if its signature and expiry are
valid, which makes superseded tokens unusable immediately.

Every public method only raises :class:`core.errors.ApiError` subclasses.
"""

import hmac

from core.errors import (
    ConflictError,
    InternalError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
    normalize_errors,
)
from core.logging import logger
from core.security import (
    ACCESS_TOKEN_TYPE,
    REFRESH_TOKEN_TYPE,
    InvalidTokenError,
    PasswordHasher,
    TokenCodec,
    TokenSettings,
)
from schemas.users import LoginResult, PublicUser, TokenPair, UserInDB
from services.asset_store import AssetStore
from services.user_store import UserStore
from sqlalchemy.exc import IntegrityError

USER_EXISTS = "User with username or email already exists."
TOKEN_GENERATION_FAILED = "Something went wrong while generating refresh and access token."
INVALID_REFRESH_TOKEN = "Invalid refresh token."
REFRESH_TOKEN_USED = "Refresh token is expired or used."


def _is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


class SessionManager:
    """Authentication lifecycle on top of the injected collaborators."""

    def __init__(
        self,
        *,
        users: UserStore,
        hasher: PasswordHasher,
        tokens: TokenCodec,
        assets: AssetStore,
        config: TokenSettings,
    ) -> None:
        self.users = users
        self.hasher = hasher
        self.tokens = tokens
        self.assets = assets
        self.config = config

    @normalize_errors("register")
    async def register(
        self,
        username: str | None,
        email: str | None,
        full_name: str | None,
        password: str | None,
        avatar_path=None,
        cover_image_path=None,
    ) -> PublicUser:
        """Create a user account.

        Args:
            username: Login name; stored lowercase.
            email: Email address.
            full_name: Display name.
            password: Plain-text password; only its hash is stored.
            avatar_path: Local path of the avatar image (mandatory).
            cover_image_path: Local path of the cover image (optional).

        Returns:
            PublicUser: The created user, re-read without credential fields.

        Raises:
            ValidationError: A required field is blank or the avatar is
                missing or could not be uploaded.
            ConflictError: The username or the email is already taken.
            InternalError: The created user could not be read back.
        """
        if any(_is_blank(field) for field in (username, email, full_name, password)):
            raise ValidationError("All fields are required.")

        if await self.users.find_one(username=username, email=email):
            logger.info("Registration rejected, username or email taken username={}", username)
            raise ConflictError(USER_EXISTS)

        if not avatar_path:
            raise ValidationError("Avatar file is required.")

        avatar = await self.assets.upload(avatar_path)
        if avatar is None:
            raise ValidationError("Avatar file is required.")

        # NOTE: the cover image is best-effort; a failed upload stores "".
        cover_image = await self.assets.upload(cover_image_path) if cover_image_path else None

        try:
            user = await self.users.create(
                username=username.strip().lower(),
                email=email.strip(),
                full_name=full_name.strip(),
                password_hash=self.hasher.hash(password),
                avatar=avatar.url,
                cover_image=cover_image.url if cover_image else "",
            )
        except IntegrityError:
            # Lost a race with a concurrent registration of the same name/email.
            raise ConflictError(USER_EXISTS)

        created_user = await self.users.find_public_by_id(user.id)
        if created_user is None:
            raise InternalError("Something went wrong while registering the user.")

        logger.info("User {} registered id={}", created_user.username, created_user.id)
        return created_user

    @normalize_errors("login")
    async def login(
        self,
        password: str | None,
        username: str | None = None,
        email: str | None = None,
    ) -> LoginResult:
        """Check credentials and start a new session.

        Any previous session of the user is ended: its refresh token is
        overwritten by the new one.

        Raises:
            ValidationError: Neither username nor email, or no password.
            NotFoundError: No user matches the username or email.
            UnauthorizedError: The password does not match.
        """
        if _is_blank(username) and _is_blank(email):
            raise ValidationError("Username or email is required.")
        if not password:
            raise ValidationError("Password is required.")

        user = await self.users.find_one(username=username, email=email)
        if user is None:
            logger.info("Login for unknown user username={} email={}", username, email)
            raise NotFoundError("User does not exist.")

        if not self.hasher.verify(password, user.password_hash):
            logger.warning("Failed login attempt for username={}", user.username)
            raise UnauthorizedError("Invalid user credentials.")

        tokens = await self._generate_tokens(user)
        logger.info("User {} logged in", user.username)
        return LoginResult(
            user=user.to_public(),
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
        )

    @normalize_errors("logout")
    async def logout(self, user_id: str) -> None:
        """End the user's session by clearing the stored refresh token.

        Calling it again for a user without a session is not an error.
        """
        user = await self.users.find_by_id_and_update(user_id, refresh_token=None)
        if user is None:
            logger.warning("Logout for unknown user id={}", user_id)
            return
        logger.info("User {} logged out", user.username)

    @normalize_errors("refresh_access_token")
    async def refresh_access_token(self, presented_refresh_token: str | None) -> TokenPair:
        """Exchange a refresh token for a new token pair.

        The presented token must verify and must equal the token stored for
        its subject. On success the stored token is replaced, so the
        presented token cannot be used again.

        Raises:
            UnauthorizedError: The token is missing, does not verify, names
                an unknown user, or has been superseded.
        """
        if _is_blank(presented_refresh_token):
            raise UnauthorizedError("Unauthorized request.")

        try:
            payload = self.tokens.verify(
                presented_refresh_token, self.config.refresh_token_secret
            )
        except InvalidTokenError as e:
            logger.warning("Rejected refresh token: {}", e)
            raise UnauthorizedError(INVALID_REFRESH_TOKEN)

        user_id = payload.get("sub")
        if payload.get("token_type") != REFRESH_TOKEN_TYPE or not user_id:
            logger.warning("Rejected refresh token: wrong type or missing subject")
            raise UnauthorizedError(INVALID_REFRESH_TOKEN)

        user = await self.users.find_by_id(str(user_id))
        if user is None:
            logger.warning("Rejected refresh token for unknown user id={}", user_id)
            raise UnauthorizedError(INVALID_REFRESH_TOKEN)

        if user.refresh_token is None or not hmac.compare_digest(
            user.refresh_token.encode(), presented_refresh_token.encode()
        ):
            logger.warning("Superseded refresh token presented for user {}", user.username)
            raise UnauthorizedError(REFRESH_TOKEN_USED)

        tokens = await self._generate_tokens(user, rotate_from=presented_refresh_token)
        logger.info("Issued new refresh token for user {}", user.username)
        return tokens

    async def _generate_tokens(
        self, user: UserInDB, rotate_from: str | None = None
    ) -> TokenPair:
        """Sign a new token pair and store its refresh token on the user.

        Args:
            user: The user the tokens are issued to.
            rotate_from: The refresh token being exchanged. When given, the
                stored token is only replaced if it still equals this value.

        Raises:
            UnauthorizedError: ``rotate_from`` was superseded meanwhile.
            InternalError: Signing or storing the tokens failed.
        """
        try:
            access_token = self.tokens.sign(
                {
                    "sub": user.id,
                    "username": user.username,
                    "email": user.email,
                    "full_name": user.full_name,
                    "token_type": ACCESS_TOKEN_TYPE,
                },
                self.config.access_token_secret,
                self.config.access_token_expires,
            )
            refresh_token = self.tokens.sign(
                {"sub": user.id, "token_type": REFRESH_TOKEN_TYPE},
                self.config.refresh_token_secret,
                self.config.refresh_token_expires,
            )

            if rotate_from is None:
                stored = await self.users.find_by_id_and_update(
                    user.id, refresh_token=refresh_token
                )
                if stored is None:
                    raise LookupError(f"user {user.id} disappeared while storing token")
            else:
                swapped = await self.users.swap_refresh_token(
                    user.id, expected=rotate_from, new=refresh_token
                )
        except Exception as exc:
            logger.exception("Failed to issue tokens for user id={}", user.id)
            raise InternalError(TOKEN_GENERATION_FAILED) from exc

        if rotate_from is not None and not swapped:
            logger.warning("Concurrent rotation of refresh token for user {}", user.username)
            raise UnauthorizedError(REFRESH_TOKEN_USED)

        return TokenPair(access_token=access_token, refresh_token=refresh_token)
