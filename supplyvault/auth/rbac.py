"""FastAPI dependencies for authentication and role-based access control."""

from __future__ import annotations

import hmac
from typing import Annotated
from uuid import UUID

import structlog
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError

from supplyvault.auth.jwt import decode_token
from supplyvault.config import Settings
from supplyvault.errors import ForbiddenError, UnauthorizedError

logger = structlog.get_logger()

_bearer_scheme = HTTPBearer()
_optional_bearer = HTTPBearer(auto_error=False)


def _get_settings(request: Request) -> Settings:
    return request.app.state.settings


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(_bearer_scheme)],
    settings: Annotated[Settings, Depends(_get_settings)],
) -> dict:
    """Decode JWT and return ``{"id": str, "brand_id": UUID, "roles": [...]}``."""
    try:
        payload = decode_token(credentials.credentials, settings)
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )

    if payload.get("type") != "access":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token type",
        )

    brand_id = payload.get("brand_id")
    if not brand_id:
        raise ForbiddenError("Brand profile not found")

    return {
        "id": payload["sub"],
        "brand_id": UUID(brand_id),
        "roles": payload.get("roles", []),
    }


def require_role(*allowed_roles: str):
    """Return a FastAPI dependency that checks the user has at least one of the given roles.

    Role hierarchy:
        - ``admin`` implies ``editor`` and ``viewer``
        - ``editor`` implies ``viewer``
    """
    HIERARCHY = {
        "viewer": {"admin", "editor", "viewer"},
        "editor": {"admin", "editor"},
        "admin": {"admin"},
    }
    expanded = set()
    for role in allowed_roles:
        expanded.update(HIERARCHY.get(role, {role}))

    async def _check(user: dict = Depends(get_current_user)) -> dict:
        user_roles = set(user.get("roles", []))
        if not user_roles & expanded:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return user

    return _check


async def require_cron_secret(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_optional_bearer)],
    settings: Annotated[Settings, Depends(_get_settings)],
) -> None:
    """Guard scheduled-job and worker endpoints with the shared bearer secret.

    When no secret is configured the endpoints are open.
    """
    if settings.cron_secret is None:
        return
    expected = settings.cron_secret.get_secret_value()
    supplied = credentials.credentials if credentials else ""
    if not hmac.compare_digest(supplied.encode(), expected.encode()):
        logger.warning("cron_secret_rejected")
        raise UnauthorizedError()
