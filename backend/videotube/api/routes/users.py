"""User authentication routes.

Exposes the four session lifecycle endpoints. Tokens are returned in the
response body and set as HttpOnly cookies.

Endpoints:
    - POST /users/register: Create an account (multipart, with avatar)
    - POST /users/login: Login (returns access + refresh tokens)
    - POST /users/logout: End the current session
    - POST /users/refresh-token: Exchange a refresh token for a new pair
"""

from datetime import timedelta
from pathlib import Path
from typing import Annotated

from api.dependencies import get_current_user, get_session_manager, get_temp_file_store
from config.config import settings
from fastapi import APIRouter, Cookie, Depends, File, Form, Response, UploadFile, status
from schemas.responses import ApiResponse
from schemas.users import LoginRequest, LoginResult, PublicUser, RefreshTokenRequest, TokenPair
from services.session_manager import SessionManager
from services.uploads import TempFileStore

router = APIRouter(prefix="/users", tags=["users"])

ACCESS_TOKEN_COOKIE = "accessToken"
REFRESH_TOKEN_COOKIE = "refreshToken"


def _set_token_cookies(response: Response, tokens: TokenPair) -> None:
    """Set both tokens as HttpOnly cookies that expire with the tokens."""
    lifetimes = {
        ACCESS_TOKEN_COOKIE: (tokens.access_token, timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)),
        REFRESH_TOKEN_COOKIE: (tokens.refresh_token, timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)),
    }
    for key, (value, lifetime) in lifetimes.items():
        response.set_cookie(
            key=key,
            value=value,
            httponly=True,
            secure=settings.COOKIE_SECURE,
            samesite=settings.COOKIE_SAMESITE,
            max_age=int(lifetime.total_seconds()),
            path="/",
        )


def _clear_token_cookies(response: Response) -> None:
    for key in (ACCESS_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE):
        response.delete_cookie(
            key,
            path="/",
            httponly=True,
            secure=settings.COOKIE_SECURE,
            samesite=settings.COOKIE_SAMESITE,
        )


@router.post(
    "/register",
    response_model=ApiResponse[PublicUser],
    status_code=status.HTTP_201_CREATED,
)
async def register_user(
    manager: Annotated[SessionManager, Depends(get_session_manager)],
    temp_files: Annotated[TempFileStore, Depends(get_temp_file_store)],
    username: Annotated[str | None, Form()] = None,
    email: Annotated[str | None, Form()] = None,
    full_name: Annotated[str | None, Form(alias="fullName")] = None,
    password: Annotated[str | None, Form()] = None,
    avatar: Annotated[UploadFile | None, File()] = None,
    cover_image: Annotated[UploadFile | None, File(alias="coverImage")] = None,
):
    """Register a user with an avatar and an optional cover image.

    The files are written to the temp directory, uploaded to the image host
    and removed again whatever the outcome.
    """
    avatar_path = await temp_files.save(avatar)
    cover_image_path = await temp_files.save(cover_image)
    try:
        user = await manager.register(
            username=username,
            email=email,
            full_name=full_name,
            password=password,
            avatar_path=avatar_path,
            cover_image_path=cover_image_path,
        )
    finally:
        for path in (avatar_path, cover_image_path):
            if path:
                Path(path).unlink(missing_ok=True)

    return ApiResponse(
        status_code=status.HTTP_201_CREATED,
        data=user,
        message="User registered successfully",
    )


@router.post("/login", response_model=ApiResponse[LoginResult])
async def login_user(
    body: LoginRequest,
    response: Response,
    manager: Annotated[SessionManager, Depends(get_session_manager)],
):
    """Authenticate by username or email and start a session."""
    result = await manager.login(
        password=body.password, username=body.username, email=body.email
    )
    _set_token_cookies(response, result)
    return ApiResponse(
        status_code=status.HTTP_200_OK,
        data=result,
        message="User logged in successfully",
    )


@router.post("/logout", response_model=ApiResponse[dict])
async def logout_user(
    response: Response,
    current_user: Annotated[PublicUser, Depends(get_current_user)],
    manager: Annotated[SessionManager, Depends(get_session_manager)],
):
    """End the current user's session and clear both token cookies."""
    await manager.logout(current_user.id)
    _clear_token_cookies(response)
    return ApiResponse(status_code=status.HTTP_200_OK, data={}, message="User logged out")


@router.post("/refresh-token", response_model=ApiResponse[TokenPair])
async def refresh_access_token(
    response: Response,
    manager: Annotated[SessionManager, Depends(get_session_manager)],
    refresh_token_cookie: Annotated[str | None, Cookie(alias=REFRESH_TOKEN_COOKIE)] = None,
    body: RefreshTokenRequest | None = None,
):
    """Exchange the refresh token (cookie or body) for a new token pair.

    The presented token is rotated: it can no longer be used once this call
    succeeds.
    """
    presented = refresh_token_cookie or (body.refresh_token if body else None)
    tokens = await manager.refresh_access_token(presented)
    _set_token_cookies(response, tokens)
    return ApiResponse(
        status_code=status.HTTP_200_OK,
        data=tokens,
        message="Access token refreshed",
    )
