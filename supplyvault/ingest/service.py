"""Decode, fingerprint and store batches of base64 email attachments."""

from __future__ import annotations

import base64
import binascii

import structlog
from pydantic import BaseModel

from supplyvault.ingest.s3 import AttachmentStore

logger = structlog.get_logger()

DEFAULT_FILE_NAME = "attachment.pdf"
DEFAULT_CONTENT_TYPE = "application/pdf"


class InboundAttachment(BaseModel):
    file_name: str | None = None
    content_base64: str | None = None
    content_type: str | None = None


class AttachmentResult(BaseModel):
    file_name: str
    success: bool
    key: str | None = None
    url: str | None = None
    size: int | None = None
    sha256: str | None = None
    error: str | None = None


def decode_base64(data: str) -> bytes:
    """Strict standard-alphabet decode; whitespace is ignored."""
    compact = "".join(data.split())
    return base64.b64decode(compact, validate=True)


class AttachmentIngester:
    """Stores each attachment independently; one bad item never aborts the batch."""

    def __init__(self, store: AttachmentStore) -> None:
        self._store = store

    async def ingest_one(self, item: InboundAttachment) -> AttachmentResult:
        file_name = item.file_name or DEFAULT_FILE_NAME
        if not item.content_base64:
            return AttachmentResult(
                file_name=file_name, success=False, error="missing content_base64"
            )

        try:
            payload = decode_base64(item.content_base64)
        except (binascii.Error, ValueError):
            return AttachmentResult(
                file_name=file_name, success=False, error="invalid base64 content"
            )
        if not payload:
            return AttachmentResult(
                file_name=file_name, success=False, error="missing content_base64"
            )

        try:
            stored = await self._store.put(
                file_name, payload, item.content_type or DEFAULT_CONTENT_TYPE
            )
        except Exception as exc:
            logger.exception("attachment_store_failed", file_name=file_name)
            return AttachmentResult(file_name=file_name, success=False, error=str(exc))

        return AttachmentResult(
            file_name=file_name,
            success=True,
            key=stored.key,
            url=stored.url,
            size=stored.size,
            sha256=stored.sha256,
        )

    async def ingest(
        self,
        attachments: list[InboundAttachment],
        *,
        message_id: str | None = None,
        sender: str | None = None,
        subject: str | None = None,
    ) -> list[AttachmentResult]:
        results = []
        for item in attachments:
            results.append(await self.ingest_one(item))

        logger.info(
            "attachments_ingested",
            message_id=message_id,
            sender=sender,
            subject=subject,
            total=len(results),
            saved=sum(1 for r in results if r.success),
        )
        return results
