"""Request/response schemas for supplier and connection endpoints."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from supplyvault.db.models.enums import ConnectionStatus, SupplierVerificationStatus


class SupplierCreate(BaseModel):
    name: str = Field(min_length=1)
    country: str = Field(min_length=1)
    address: str | None = None
    contact_email: str | None = None
    contact_phone: str | None = None
    supplier_type: str | None = None


class SupplierOut(BaseModel):
    id: UUID
    brand_id: UUID | None
    name: str
    country: str
    address: str | None
    contact_email: str | None
    contact_phone: str | None
    supplier_type: str | None
    verification_status: SupplierVerificationStatus
    verified_at: datetime | None
    verified_by: str | None
    created_at: datetime


class SupplierVerificationUpdate(BaseModel):
    status: SupplierVerificationStatus


class ConnectionCreate(BaseModel):
    supplier_id: UUID
    notes: str | None = None


class ConnectionOut(BaseModel):
    id: UUID
    brand_id: UUID
    supplier_id: UUID
    status: ConnectionStatus
    notes: str | None
    created_at: datetime
