"""SQLAlchemy ORM model for supplier certifications."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Float, ForeignKey, Text, Uuid, func, text
from sqlalchemy.orm import Mapped, mapped_column

from supplyvault.db.models.enums import CertificationStatus, VerificationStatus
from supplyvault.db.models.tenancy import Base, utcnow


class Certification(Base):
    __tablename__ = "certifications"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    supplier_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("suppliers.id", ondelete="CASCADE"), nullable=False, index=True
    )
    certification_type: Mapped[str] = mapped_column(Text, nullable=False)
    certification_name: Mapped[str] = mapped_column(Text, nullable=False)
    issuing_body: Mapped[str] = mapped_column(Text, nullable=False)
    certificate_number: Mapped[str | None] = mapped_column(Text)
    issue_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    expiry_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )
    document_url: Mapped[str | None] = mapped_column(Text)
    status: Mapped[str] = mapped_column(
        Text, nullable=False, default=CertificationStatus.VALID.value
    )

    verification_status: Mapped[str] = mapped_column(
        Text, nullable=False, default=VerificationStatus.UNVERIFIED.value
    )
    verification_method: Mapped[str | None] = mapped_column(Text)
    verification_confidence: Mapped[float | None] = mapped_column(Float)
    verification_details: Mapped[dict | None] = mapped_column(JSON)
    verification_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    last_verified_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    needs_review: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
