"""Request/response schemas for alert endpoints."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from supplyvault.db.models.enums import AlertType


class AlertOut(BaseModel):
    id: UUID
    certification_id: UUID
    alert_type: AlertType
    is_read: bool
    sent_at: datetime | None
    created_at: datetime


class AlertWithCertification(AlertOut):
    """Alert joined with the certification and supplier it refers to (list view)."""

    certification_name: str
    certification_type: str
    expiry_date: datetime
    supplier_id: UUID
    supplier_name: str


class AlertIds(BaseModel):
    """Request body for the bulk alert endpoints."""

    alert_ids: list[UUID]


class UnreadCount(BaseModel):
    count: int


class BulkResult(BaseModel):
    success: bool = True
    count: int
