"""FastAPI dependency-injection helpers for sessions and shared services."""

from __future__ import annotations

from collections.abc import AsyncGenerator

from fastapi import HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from supplyvault.config import Settings
from supplyvault.gmail.client import GmailClient
from supplyvault.gmail.crypto import EncryptionNotConfigured, TokenCipher
from supplyvault.ingest.service import AttachmentIngester
from supplyvault.notifications.email import EmailNotifier
from supplyvault.verification.router import VerificationRouter


async def get_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    async with request.app.state.db.session() as session:
        yield session


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_ingester(request: Request) -> AttachmentIngester:
    return AttachmentIngester(request.app.state.store)


def get_notifier(request: Request) -> EmailNotifier:
    return request.app.state.notifier


def get_verification_router(request: Request) -> VerificationRouter:
    return request.app.state.verifier


def get_gmail_client(request: Request) -> GmailClient:
    return request.app.state.gmail


def get_token_cipher(request: Request) -> TokenCipher:
    try:
        return TokenCipher.from_settings(request.app.state.settings)
    except EncryptionNotConfigured as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        )
