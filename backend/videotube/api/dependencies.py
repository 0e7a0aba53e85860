"""FastAPI dependencies wiring the session manager and request identity.

The session manager and the temp file store are built once from
``settings``; tests replace them through ``app.dependency_overrides``.
"""

from functools import lru_cache
from typing import Annotated

from config.config import settings
from core.errors import UnauthorizedError
from core.logging import logger
from core.security import ACCESS_TOKEN_TYPE, InvalidTokenError, PasswordHasher, TokenCodec
from fastapi import Cookie, Depends, Header
from schemas.users import PublicUser
from services.asset_store import AssetStore
from services.session_manager import SessionManager
from services.uploads import TempFileStore
from services.user_store import UserStore


@lru_cache
def get_session_manager() -> SessionManager:
    """Return the process-wide session manager built from settings."""
    token_settings = settings.token_settings()
    return SessionManager(
        users=UserStore(),
        hasher=PasswordHasher(),
        tokens=TokenCodec(algorithm=token_settings.algorithm),
        assets=AssetStore(
            cloud_name=settings.CLOUDINARY_CLOUD_NAME,
            api_key=settings.CLOUDINARY_API_KEY,
            api_secret=settings.CLOUDINARY_API_SECRET,
            base_url=settings.CLOUDINARY_BASE_URL,
            timeout=settings.UPLOAD_TIMEOUT_SECONDS,
        ),
        config=token_settings,
    )


@lru_cache
def get_temp_file_store() -> TempFileStore:
    return TempFileStore(settings.temp_upload_dir)


def _bearer_token(authorization: str | None) -> str | None:
    if authorization and authorization.lower().startswith("bearer "):
        return authorization.split(" ", 1)[1].strip() or None
    return None


async def get_current_user(
    manager: Annotated[SessionManager, Depends(get_session_manager)],
    access_token: Annotated[str | None, Cookie(alias="accessToken")] = None,
    authorization: Annotated[str | None, Header()] = None,
) -> PublicUser:
    """Validate the access token and return the user it belongs to.

    The token is read from the ``accessToken`` cookie, or from an
    ``Authorization: Bearer`` header when no cookie is sent. Only access
    tokens are accepted.

    Raises:
        UnauthorizedError: No token, an invalid token, or an unknown user.
    """
    token = access_token or _bearer_token(authorization)
    if not token:
        raise UnauthorizedError("Unauthorized request.")

    try:
        payload = manager.tokens.verify(token, manager.config.access_token_secret)
    except InvalidTokenError:
        logger.warning("Invalid access token provided")
        raise UnauthorizedError("Invalid access token.")

    user_id = payload.get("sub")
    if payload.get("token_type") != ACCESS_TOKEN_TYPE or not user_id:
        raise UnauthorizedError("Invalid access token.")

    user = await manager.users.find_public_by_id(str(user_id))
    if user is None:
        raise UnauthorizedError("Invalid access token.")
    return user
