"""Gmail OAuth: consent URL and authorization-code callback."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from supplyvault.auth.rbac import require_role
from supplyvault.config import Settings
from supplyvault.deps import get_gmail_client, get_session, get_settings, get_token_cipher
from supplyvault.gmail.accounts import save_account
from supplyvault.gmail.client import GmailAPIError, GmailClient
from supplyvault.gmail.crypto import TokenCipher
from supplyvault.schemas.ingest import GmailAuthStart, GmailConnected

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/oauth", tags=["oauth"])


@router.get("/gmail", response_model=GmailAuthStart | GmailConnected)
async def gmail_oauth(
    session: Annotated[AsyncSession, Depends(get_session)],
    settings: Annotated[Settings, Depends(get_settings)],
    user: Annotated[dict, Depends(require_role("admin"))],
    client: Annotated[GmailClient, Depends(get_gmail_client)],
    cipher: Annotated[TokenCipher, Depends(get_token_cipher)],
    code: str | None = Query(default=None),
    state: str | None = Query(default=None),
    error: str | None = Query(default=None),
):
    """Without ``code`` return Google's consent URL; with it, store the account.

    The account always belongs to the caller's brand. ``state`` is passed
    through to Google untouched and never used to pick a brand.
    """
    client_id = settings.google_client_id
    client_secret = settings.google_client_secret
    redirect_uri = settings.google_redirect_uri
    if not (client_id and client_secret and redirect_uri):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="OAuth not configured",
        )

    if error:
        logger.warning("gmail_oauth_denied", brand_id=str(user["brand_id"]), reason=error)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"OAuth error: {error}")

    if not code:
        return GmailAuthStart(auth_url=GmailClient.authorization_url(client_id, redirect_uri, state))

    try:
        tokens = await client.exchange_code(
            code, client_id, client_secret.get_secret_value(), redirect_uri
        )
        email = await client.get_user_email(tokens["access_token"])
    except GmailAPIError as exc:
        logger.warning("gmail_oauth_exchange_failed", status_code=exc.status_code)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Failed to exchange authorization code",
        )
    if not email:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Google did not return an email address",
        )

    expires_at = None
    if tokens.get("expires_in"):
        expires_at = datetime.now(timezone.utc) + timedelta(seconds=int(tokens["expires_in"]))

    account = await save_account(
        session,
        cipher,
        brand_id=user["brand_id"],
        email=email,
        access_token=tokens["access_token"],
        refresh_token=tokens.get("refresh_token"),
        scope=tokens.get("scope"),
        token_type=tokens.get("token_type"),
        expires_at=expires_at,
    )
    await session.commit()
    logger.info("gmail_account_connected", account_id=str(account.id), brand_id=str(user["brand_id"]))
    return GmailConnected(account_id=account.id, email=email)
