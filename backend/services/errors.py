"""Error types raised by the service layer and mapped to HTTP responses in main."""

from fastapi import status


class ApiError(Exception):
    """Base class for errors that become an ``{"ok": false}`` response."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    headers: dict = {}

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class AuthorizationError(ApiError):
    status_code = status.HTTP_401_UNAUTHORIZED
    headers = {"WWW-Authenticate": "Bearer"}

    def __init__(self, message: str = "unauthorized"):
        super().__init__(message)


class ValidationError(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(ApiError):
    status_code = status.HTTP_404_NOT_FOUND


class StorageError(ApiError):
    """Persistence failure.

    The message is the only thing returned to the caller; the underlying
    database error is logged, never echoed.
    """

    def __init__(self, message: str = "storage error"):
        super().__init__(message)
