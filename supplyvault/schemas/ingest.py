"""Request/response schemas for inbound email attachments and worker triggers."""

from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from supplyvault.ingest.service import AttachmentResult, InboundAttachment


class EmailIngestRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message_id: str | None = None
    sender: str | None = Field(default=None, alias="from")
    subject: str | None = None
    attachments: list[InboundAttachment] = Field(default_factory=list)


class EmailIngestResponse(BaseModel):
    success: bool = True
    results: list[AttachmentResult]


class GmailPollRequest(BaseModel):
    account_id: UUID | None = None


class GmailPollResponse(BaseModel):
    success: bool = True
    processed: int


class GmailAuthStart(BaseModel):
    auth_url: str


class GmailConnected(BaseModel):
    success: bool = True
    account_id: UUID
    email: str
