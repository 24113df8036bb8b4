"""Poll connected Gmail accounts and ingest their attachments."""

from __future__ import annotations

import uuid
from collections import deque
from datetime import datetime, timezone

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from supplyvault.config import Settings
from supplyvault.db.models import GmailAccount
from supplyvault.gmail.accounts import decrypt_tokens, list_accounts, persist_refreshed_tokens
from supplyvault.gmail.client import GmailClient, base64url_to_base64
from supplyvault.gmail.crypto import TokenCipher
from supplyvault.ingest.service import DEFAULT_CONTENT_TYPE, AttachmentIngester, InboundAttachment

logger = structlog.get_logger()


def _header(message: dict, name: str) -> str | None:
    for header in message.get("payload", {}).get("headers", []) or []:
        if header.get("name") == name:
            return header.get("value")
    return None


def attachment_parts(message: dict) -> list[dict]:
    """Breadth-first walk of the MIME tree, keeping parts with a filename and attachmentId."""
    found = []
    queue = deque(message.get("payload", {}).get("parts") or [])
    while queue:
        part = queue.popleft()
        if part.get("filename") and (part.get("body") or {}).get("attachmentId"):
            found.append(part)
        queue.extend(part.get("parts") or [])
    return found


def _expired(expires_at: datetime | None, now: datetime) -> bool:
    if expires_at is None:
        return False
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    return expires_at <= now


class GmailPoller:
    def __init__(
        self,
        client: GmailClient,
        ingester: AttachmentIngester,
        *,
        query: str = "has:attachment",
        max_results: int = 50,
    ) -> None:
        self._client = client
        self._ingester = ingester
        self._query = query
        self._max_results = max_results

    async def process_message(self, access_token: str, message_id: str) -> int:
        """Ingest one message's attachments. Returns how many were stored."""
        message = await self._client.get_message(access_token, message_id)
        attachments = []
        for part in attachment_parts(message):
            data = await self._client.get_attachment(
                access_token, message["id"], part["body"]["attachmentId"]
            )
            attachments.append(
                InboundAttachment(
                    file_name=part["filename"],
                    content_base64=base64url_to_base64(data.get("data") or ""),
                    content_type=part.get("mimeType") or DEFAULT_CONTENT_TYPE,
                )
            )
        if not attachments:
            return 0

        results = await self._ingester.ingest(
            attachments,
            message_id=message["id"],
            sender=_header(message, "From"),
            subject=_header(message, "Subject"),
        )
        return sum(1 for r in results if r.success)

    async def process_account(self, access_token: str) -> int:
        """Poll one mailbox. A failing message is logged and skipped."""
        messages = await self._client.list_messages(access_token, self._query, self._max_results)
        stored = 0
        for entry in messages:
            try:
                stored += await self.process_message(access_token, entry["id"])
            except Exception:
                logger.exception("gmail_message_failed", message_id=entry.get("id"))
        logger.info("gmail_account_polled", messages=len(messages), attachments_stored=stored)
        return stored


async def poll_accounts(
    session: AsyncSession,
    poller: GmailPoller,
    client: GmailClient,
    cipher: TokenCipher,
    settings: Settings,
    *,
    account_id: uuid.UUID | None = None,
    now: datetime | None = None,
) -> int:
    """Poll every stored account (or just *account_id*). Returns the number of accounts considered."""
    now = now or datetime.now(timezone.utc)
    accounts = await list_accounts(session, account_id)
    client_secret = (
        settings.google_client_secret.get_secret_value()
        if settings.google_client_secret
        else None
    )

    account_ids = [a.id for a in accounts]

    for acct_id in account_ids:
        log = logger.bind(account_id=str(acct_id))
        try:
            account = await session.get(GmailAccount, acct_id)
            if account is None:
                continue
            tokens = decrypt_tokens(account, cipher)
            access_token = tokens.access_token
            needs_refresh = not access_token or _expired(tokens.expires_at, now)
            if (
                needs_refresh
                and tokens.refresh_token
                and settings.google_client_id
                and client_secret
            ):
                refreshed = await client.refresh_access_token(
                    tokens.refresh_token, settings.google_client_id, client_secret
                )
                access_token = refreshed.get("access_token") or access_token
                persist_refreshed_tokens(account, cipher, refreshed, now)
                await session.commit()
                log.info("gmail_tokens_refreshed")

            if not access_token:
                log.warning("gmail_account_skipped", reason="no_access_token")
                continue

            await poller.process_account(access_token)
            account.last_polled_at = now
            await session.commit()
        except Exception:
            await session.rollback()
            log.exception("gmail_account_poll_failed")

    return len(account_ids)
