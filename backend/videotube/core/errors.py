"""Typed API errors and the boundary that normalizes everything else.

Every failure leaving the session manager is an :class:`ApiError` carrying
an HTTP status code and a message. Collaborator exceptions (database,
hashing, upload client) are logged and converted to :class:`InternalError`
by :func:`normalize_errors` so raw driver errors never reach the caller.

Error hierarchy:
    ApiError (base)
    ├── ValidationError    400
    ├── UnauthorizedError  401
    ├── NotFoundError      404
    ├── ConflictError      409
    └── InternalError      500
"""

import functools
from typing import Any, Awaitable, Callable, TypeVar

from fastapi import status

from core.logging import logger

T = TypeVar("T")


class ApiError(Exception):
    """Base error with an HTTP status code and a client-facing message.

    Attributes:
        status_code: HTTP status the error maps to.
        message: Human-readable message returned to the client.
        errors: Optional list of detail entries (e.g. field errors).
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Something went wrong"

    def __init__(self, message: str | None = None, errors: list[Any] | None = None):
        self.message = message or self.default_message
        self.errors = errors or []
        super().__init__(self.message)

    @property
    def success(self) -> bool:
        return False

    def to_dict(self) -> dict[str, Any]:
        """Render the error envelope returned to HTTP clients."""
        return {
            "statusCode": self.status_code,
            "data": None,
            "message": self.message,
            "success": self.success,
            "errors": self.errors,
        }


class ValidationError(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class UnauthorizedError(ApiError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized request"


class NotFoundError(ApiError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class ConflictError(ApiError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Resource already exists"


class InternalError(ApiError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Something went wrong"


def normalize_errors(
    operation: str,
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """Wrap an async operation so only :class:`ApiError` escapes it.

    Args:
        operation: Operation name used in the log line for unexpected errors.
    """

    def decorator(fn: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(fn)
        async def wrapper(*args, **kwargs) -> T:
            try:
                return await fn(*args, **kwargs)
            except ApiError:
                raise
            except Exception as exc:
                logger.exception("Unexpected error during {}", operation)
                raise InternalError() from exc

        return wrapper

    return decorator
