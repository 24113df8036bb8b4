"""JWT token creation and validation.

Tokens are issued by the external auth provider; ``create_access_token``
mints compatible tokens for local development and tests.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from uuid import UUID

from jose import jwt

from supplyvault.config import Settings


def create_access_token(
    user_id: str,
    brand_id: UUID | None,
    roles: list[str],
    settings: Settings,
) -> str:
    """Create a signed JWT access token."""
    expire = datetime.now(timezone.utc) + timedelta(
        minutes=settings.jwt_access_token_expire_minutes,
    )
    payload = {
        "sub": user_id,
        "brand_id": str(brand_id) if brand_id else None,
        "roles": roles,
        "exp": expire,
        "type": "access",
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str, settings: Settings) -> dict:
    """Decode and validate a JWT token. Raises ``JWTError`` on failure."""
    return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
