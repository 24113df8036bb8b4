"""Stored Gmail accounts: token encryption, refresh persistence, poll bookkeeping."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from supplyvault.db.models import GmailAccount
from supplyvault.gmail.crypto import TokenCipher

logger = structlog.get_logger()


@dataclass
class AccountTokens:
    account_id: uuid.UUID
    email: str
    access_token: str | None
    refresh_token: str | None
    expires_at: datetime | None


async def save_account(
    session: AsyncSession,
    cipher: TokenCipher,
    *,
    brand_id: uuid.UUID,
    email: str,
    access_token: str,
    refresh_token: str | None = None,
    scope: str | None = None,
    token_type: str | None = None,
    expires_at: datetime | None = None,
) -> GmailAccount:
    account = GmailAccount(
        brand_id=brand_id,
        email=email,
        access_token=cipher.encrypt(access_token),
        refresh_token=cipher.encrypt(refresh_token),
        scope=scope,
        token_type=token_type,
        expires_at=expires_at,
    )
    session.add(account)
    await session.flush()
    logger.info("gmail_account_saved", account_id=str(account.id), brand_id=str(brand_id))
    return account


async def list_accounts(
    session: AsyncSession, account_id: uuid.UUID | None = None
) -> list[GmailAccount]:
    stmt = select(GmailAccount).order_by(GmailAccount.created_at)
    if account_id is not None:
        stmt = stmt.where(GmailAccount.id == account_id)
    return list((await session.execute(stmt)).scalars().all())


def decrypt_tokens(account: GmailAccount, cipher: TokenCipher) -> AccountTokens:
    return AccountTokens(
        account_id=account.id,
        email=account.email,
        access_token=cipher.decrypt(account.access_token),
        refresh_token=cipher.decrypt(account.refresh_token),
        expires_at=account.expires_at,
    )


def persist_refreshed_tokens(
    account: GmailAccount, cipher: TokenCipher, tokens: dict, now: datetime
) -> None:
    """Write a refresh response onto the account. Caller commits."""
    if tokens.get("access_token"):
        account.access_token = cipher.encrypt(tokens["access_token"])
    if tokens.get("refresh_token"):
        account.refresh_token = cipher.encrypt(tokens["refresh_token"])
    if tokens.get("token_type"):
        account.token_type = tokens["token_type"]
    if tokens.get("expires_in"):
        account.expires_at = now + timedelta(seconds=int(tokens["expires_in"]))
