"""Alert inbox endpoints, scoped to the caller's brand."""

from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from supplyvault.auth.rbac import require_role
from supplyvault.db.models import Alert, Certification, Supplier
from supplyvault.deps import get_session
from supplyvault.errors import ValidationError
from supplyvault.schemas.alert import (
    AlertIds,
    AlertOut,
    AlertWithCertification,
    BulkResult,
    UnreadCount,
)
from supplyvault.schemas.common import PaginatedResponse

router = APIRouter(prefix="/api/v1/alerts", tags=["alerts"])


def _require_ids(body: AlertIds) -> list[uuid.UUID]:
    if not body.alert_ids:
        raise ValidationError("No alert IDs provided", field="alert_ids")
    return body.alert_ids


@router.get("", response_model=PaginatedResponse[AlertWithCertification])
async def list_alerts(
    session: Annotated[AsyncSession, Depends(get_session)],
    user: Annotated[dict, Depends(require_role("viewer"))],
    is_read: bool | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=200),
):
    """List the brand's alerts, newest first, with certification context."""
    stmt = (
        select(
            Alert,
            Certification.certification_name,
            Certification.certification_type,
            Certification.expiry_date,
            Supplier.id.label("supplier_id"),
            Supplier.name.label("supplier_name"),
        )
        .join(Certification, Alert.certification_id == Certification.id)
        .join(Supplier, Certification.supplier_id == Supplier.id)
        .where(Alert.brand_id == user["brand_id"])
    )
    if is_read is not None:
        stmt = stmt.where(Alert.is_read == is_read)

    count_stmt = select(func.count()).select_from(stmt.subquery())
    total = (await session.execute(count_stmt)).scalar_one()

    stmt = stmt.order_by(Alert.created_at.desc()).offset(offset).limit(limit)
    rows = (await session.execute(stmt)).all()

    items = [
        AlertWithCertification(
            id=alert.id,
            certification_id=alert.certification_id,
            alert_type=alert.alert_type,
            is_read=alert.is_read,
            sent_at=alert.sent_at,
            created_at=alert.created_at,
            certification_name=cert_name,
            certification_type=cert_type,
            expiry_date=expiry_date,
            supplier_id=supplier_id,
            supplier_name=supplier_name,
        )
        for alert, cert_name, cert_type, expiry_date, supplier_id, supplier_name in rows
    ]
    return PaginatedResponse(items=items, total=total, offset=offset, limit=limit)


@router.get("/unread-count", response_model=UnreadCount)
async def unread_count(
    session: Annotated[AsyncSession, Depends(get_session)],
    user: Annotated[dict, Depends(require_role("viewer"))],
):
    stmt = (
        select(func.count())
        .select_from(Alert)
        .where(Alert.brand_id == user["brand_id"])
        .where(Alert.is_read.is_(False))
    )
    return UnreadCount(count=(await session.execute(stmt)).scalar_one())


@router.post("/bulk-read", response_model=BulkResult)
async def bulk_mark_read(
    body: AlertIds,
    session: Annotated[AsyncSession, Depends(get_session)],
    user: Annotated[dict, Depends(require_role("viewer"))],
):
    ids = _require_ids(body)
    result = await session.execute(
        update(Alert)
        .where(Alert.id.in_(ids))
        .where(Alert.brand_id == user["brand_id"])
        .values(is_read=True)
    )
    await session.commit()
    return BulkResult(count=result.rowcount)


@router.post("/bulk-delete", response_model=BulkResult)
async def bulk_delete(
    body: AlertIds,
    session: Annotated[AsyncSession, Depends(get_session)],
    user: Annotated[dict, Depends(require_role("editor"))],
):
    ids = _require_ids(body)
    result = await session.execute(
        delete(Alert)
        .where(Alert.id.in_(ids))
        .where(Alert.brand_id == user["brand_id"])
    )
    await session.commit()
    return BulkResult(count=result.rowcount)


@router.post("/{alert_id}/read", response_model=AlertOut)
async def mark_read(
    alert_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(get_session)],
    user: Annotated[dict, Depends(require_role("viewer"))],
):
    alert = (
        await session.execute(
            select(Alert)
            .where(Alert.id == alert_id)
            .where(Alert.brand_id == user["brand_id"])
        )
    ).scalar_one_or_none()
    if alert is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Alert not found")

    alert.is_read = True
    await session.commit()
    return AlertOut.model_validate(alert, from_attributes=True)
