"""Scheduled-job endpoints, triggered by an external scheduler."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from supplyvault.alerts.service import ExpiryChecker, ReVerifier
from supplyvault.auth.rbac import require_cron_secret
from supplyvault.config import Settings
from supplyvault.deps import get_notifier, get_session, get_settings, get_verification_router
from supplyvault.notifications.email import EmailNotifier
from supplyvault.schemas.jobs import ExpiryCheckResult, ReVerifyResult
from supplyvault.verification.router import VerificationRouter

router = APIRouter(
    prefix="/api/v1/cron",
    tags=["cron"],
    dependencies=[Depends(require_cron_secret)],
)


@router.get("/check-expiries", response_model=ExpiryCheckResult)
async def check_expiries(
    session: Annotated[AsyncSession, Depends(get_session)],
    settings: Annotated[Settings, Depends(get_settings)],
    notifier: Annotated[EmailNotifier, Depends(get_notifier)],
):
    """Create expiry alerts and send reminder emails."""
    result = await ExpiryChecker(settings, notifier).run(session, datetime.now(timezone.utc))
    return ExpiryCheckResult(
        processed=result.processed,
        alerts_created=result.alerts_created,
        emails_sent=result.emails_sent,
        errors=result.errors,
    )


@router.get("/re-verify", response_model=ReVerifyResult)
async def re_verify(
    session: Annotated[AsyncSession, Depends(get_session)],
    settings: Annotated[Settings, Depends(get_settings)],
    notifier: Annotated[EmailNotifier, Depends(get_notifier)],
    verifier: Annotated[VerificationRouter, Depends(get_verification_router)],
):
    """Re-check stale VERIFIED certifications against their issuing bodies."""
    result = await ReVerifier(settings, verifier, notifier).run(
        session, datetime.now(timezone.utc)
    )
    return ReVerifyResult(
        processed=result.processed,
        reverified=result.reverified,
        revoked=result.revoked,
        failed=result.failed,
        emails_sent=result.emails_sent,
        errors=result.errors,
    )
