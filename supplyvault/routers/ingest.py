"""Inbound email attachment endpoint, fed by the Gmail poller or a mail relay."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from supplyvault.auth.rbac import require_cron_secret
from supplyvault.deps import get_ingester
from supplyvault.ingest.service import AttachmentIngester
from supplyvault.schemas.ingest import EmailIngestRequest, EmailIngestResponse

router = APIRouter(prefix="/api/v1", tags=["ingest"])


@router.post(
    "/email-ingest",
    response_model=EmailIngestResponse,
    dependencies=[Depends(require_cron_secret)],
)
async def email_ingest(
    body: EmailIngestRequest,
    ingester: Annotated[AttachmentIngester, Depends(get_ingester)],
):
    """Store each attachment; per-item failures are reported, not raised."""
    if not body.attachments:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No attachments provided",
        )
    results = await ingester.ingest(
        body.attachments,
        message_id=body.message_id,
        sender=body.sender,
        subject=body.subject,
    )
    return EmailIngestResponse(results=results)
