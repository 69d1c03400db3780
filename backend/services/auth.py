"""Shared-secret authentication for the sync and admin APIs."""

import secrets
from typing import Optional

from fastapi import Depends
from fastapi.security import (
    HTTPAuthorizationCredentials,
    HTTPBasic,
    HTTPBasicCredentials,
    HTTPBearer,
)

import config
from services.errors import AuthorizationError

# auto_error=False so a missing header becomes our own 401 body
bearer_scheme = HTTPBearer(auto_error=False)
basic_scheme = HTTPBasic(auto_error=False)


def _matches(supplied: Optional[str], expected: Optional[str]) -> bool:
    """Constant-time comparison; an unset secret never matches."""
    if not supplied or not expected:
        return False
    return secrets.compare_digest(supplied.encode("utf-8"), expected.encode("utf-8"))


def require_sync_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> None:
    """Allow the request only if it carries ``Bearer <SYNC_TOKEN>``."""
    token = credentials.credentials if credentials else None
    if not _matches(token, config.SYNC_TOKEN):
        raise AuthorizationError()


def require_admin(
    bearer: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    basic: Optional[HTTPBasicCredentials] = Depends(basic_scheme),
) -> None:
    """Accept either the admin bearer token or the configured Basic credentials."""
    if bearer is not None and _matches(bearer.credentials, config.ADMIN_TOKEN):
        return

    if basic is not None and config.ADMIN_BASIC_USER and config.ADMIN_BASIC_PASSWORD:
        user_ok = _matches(basic.username, config.ADMIN_BASIC_USER)
        password_ok = _matches(basic.password, config.ADMIN_BASIC_PASSWORD)
        if user_ok and password_ok:
            return

    raise AuthorizationError()
