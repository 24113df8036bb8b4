"""Request/result models and the abstract base class for certification verifiers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field

from supplyvault.db.models.enums import CertificationType, VerificationMethod, VerificationStatus


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class VerificationRequest(BaseModel):
    certificate_number: str | None = None
    company_name: str | None = None
    issuing_body: str | None = None
    issue_date: datetime | None = None
    expiry_date: datetime | None = None
    checked_at: datetime = Field(default_factory=_utcnow)


class VerificationResult(BaseModel):
    status: VerificationStatus
    method: VerificationMethod
    confidence: float = Field(ge=0.0, le=1.0)
    verified: bool = False
    details: dict[str, Any] = Field(default_factory=dict)

    @property
    def needs_review(self) -> bool:
        return self.status in (VerificationStatus.PENDING, VerificationStatus.FAILED)


class BaseVerifier(ABC):
    """Check a certificate against an issuing body's records."""

    @property
    @abstractmethod
    def supported_types(self) -> list[CertificationType]:
        """Certification types this verifier handles."""

    @abstractmethod
    async def verify(self, request: VerificationRequest) -> VerificationResult:
        """Verify a single certificate.

        May raise; the router turns any exception into a PENDING result.
        """
