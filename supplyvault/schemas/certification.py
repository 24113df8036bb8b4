"""Request/response schemas for certification and verification endpoints."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from supplyvault.db.models.enums import (
    CertificationStatus,
    CertificationType,
    VerificationMethod,
    VerificationStatus,
)

NON_NULLABLE_FIELDS = (
    "certification_type",
    "certification_name",
    "issuing_body",
    "issue_date",
    "expiry_date",
)


def as_utc(value: datetime | None) -> datetime | None:
    """Return ``value`` as an aware UTC datetime; naive values are taken as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class CertificationCreate(BaseModel):
    supplier_id: UUID
    certification_type: CertificationType
    certification_name: str = Field(min_length=1)
    issuing_body: str = Field(min_length=1)
    certificate_number: str | None = None
    issue_date: datetime
    expiry_date: datetime
    document_url: str | None = None

    @field_validator("issue_date", "expiry_date")
    @classmethod
    def _to_utc(cls, value: datetime) -> datetime:
        return as_utc(value)

    @model_validator(mode="after")
    def _expiry_after_issue(self) -> CertificationCreate:
        if self.expiry_date <= self.issue_date:
            raise ValueError("expiry_date must be after issue_date")
        return self


class CertificationUpdate(BaseModel):
    """PATCH body. Verification fields are deliberately absent.

    Only fields present in the request are applied, so an explicit ``null``
    clears ``certificate_number`` or ``document_url``.
    """

    certification_type: CertificationType | None = None
    certification_name: str | None = Field(default=None, min_length=1)
    issuing_body: str | None = Field(default=None, min_length=1)
    certificate_number: str | None = None
    issue_date: datetime | None = None
    expiry_date: datetime | None = None
    document_url: str | None = None

    @field_validator("issue_date", "expiry_date")
    @classmethod
    def _to_utc(cls, value: datetime | None) -> datetime | None:
        return as_utc(value)

    @model_validator(mode="after")
    def _check(self) -> CertificationUpdate:
        for name in NON_NULLABLE_FIELDS:
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        if self.issue_date and self.expiry_date and self.expiry_date <= self.issue_date:
            raise ValueError("expiry_date must be after issue_date")
        return self


class CertificationOut(BaseModel):
    id: UUID
    supplier_id: UUID
    certification_type: CertificationType
    certification_name: str
    issuing_body: str
    certificate_number: str | None
    issue_date: datetime
    expiry_date: datetime
    document_url: str | None
    status: CertificationStatus
    verification_status: VerificationStatus
    verification_method: VerificationMethod | None
    verification_confidence: float | None
    verification_details: dict[str, Any] | None
    verification_date: datetime | None
    last_verified_at: datetime | None
    needs_review: bool
    created_at: datetime


class VerificationOut(BaseModel):
    certification_id: UUID
    status: VerificationStatus
    method: VerificationMethod
    confidence: float
    verified: bool
    needs_review: bool
    details: dict[str, Any]


class ReviewDecision(BaseModel):
    action: Literal["approve", "reject"]
    notes: str | None = None
    updated_data: CertificationUpdate | None = None
