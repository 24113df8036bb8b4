"""Background worker triggers."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Body, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from supplyvault.auth.rbac import require_cron_secret
from supplyvault.config import Settings
from supplyvault.deps import get_gmail_client, get_ingester, get_session, get_settings, get_token_cipher
from supplyvault.gmail.client import GmailClient
from supplyvault.gmail.crypto import TokenCipher
from supplyvault.gmail.poller import GmailPoller, poll_accounts
from supplyvault.ingest.service import AttachmentIngester
from supplyvault.schemas.ingest import GmailPollRequest, GmailPollResponse

router = APIRouter(
    prefix="/api/v1/workers",
    tags=["workers"],
    dependencies=[Depends(require_cron_secret)],
)


@router.post("/gmail-poll", response_model=GmailPollResponse)
async def gmail_poll(
    session: Annotated[AsyncSession, Depends(get_session)],
    settings: Annotated[Settings, Depends(get_settings)],
    client: Annotated[GmailClient, Depends(get_gmail_client)],
    cipher: Annotated[TokenCipher, Depends(get_token_cipher)],
    ingester: Annotated[AttachmentIngester, Depends(get_ingester)],
    body: Annotated[GmailPollRequest | None, Body()] = None,
):
    """Poll one account (``account_id``) or every connected account."""
    poller = GmailPoller(
        client,
        ingester,
        query=settings.gmail_query,
        max_results=settings.gmail_max_results,
    )
    processed = await poll_accounts(
        session,
        poller,
        client,
        cipher,
        settings,
        account_id=body.account_id if body else None,
    )
    return GmailPollResponse(processed=processed)
