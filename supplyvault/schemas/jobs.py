"""Response schemas for scheduled jobs."""

from __future__ import annotations

from pydantic import BaseModel


class ExpiryCheckResult(BaseModel):
    success: bool = True
    processed: int
    alerts_created: int
    emails_sent: int
    errors: list[str]


class ReVerifyResult(BaseModel):
    success: bool = True
    processed: int
    reverified: int
    revoked: int
    failed: int
    emails_sent: int
    errors: list[str]
