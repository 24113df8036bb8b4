"""Supplier management endpoints."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import case, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from supplyvault.auth.rbac import require_role
from supplyvault.db.models import Supplier
from supplyvault.db.models.enums import SupplierVerificationStatus
from supplyvault.deps import get_session
from supplyvault.schemas.common import PaginatedResponse
from supplyvault.schemas.supplier import SupplierCreate, SupplierOut, SupplierVerificationUpdate
from supplyvault.scoping import get_owned_supplier

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/suppliers", tags=["suppliers"])


@router.get("", response_model=PaginatedResponse[SupplierOut])
async def list_suppliers(
    session: Annotated[AsyncSession, Depends(get_session)],
    user: Annotated[dict, Depends(require_role("viewer"))],
    search: str | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=200),
):
    stmt = select(Supplier).where(Supplier.brand_id == user["brand_id"])
    if search:
        stmt = stmt.where(Supplier.name.ilike(f"%{search}%"))

    count_stmt = select(func.count()).select_from(stmt.subquery())
    total = (await session.execute(count_stmt)).scalar_one()

    stmt = stmt.order_by(Supplier.name).offset(offset).limit(limit)
    suppliers = (await session.execute(stmt)).scalars().all()
    return PaginatedResponse(
        items=[SupplierOut.model_validate(s, from_attributes=True) for s in suppliers],
        total=total,
        offset=offset,
        limit=limit,
    )


_VERIFICATION_RANK = case(
    (Supplier.verification_status == SupplierVerificationStatus.VERIFIED.value, 0),
    (Supplier.verification_status == SupplierVerificationStatus.BASIC.value, 1),
    else_=2,
)


@router.get("/search", response_model=PaginatedResponse[SupplierOut])
async def search_suppliers(
    session: Annotated[AsyncSession, Depends(get_session)],
    user: Annotated[dict, Depends(require_role("viewer"))],
    q: str | None = Query(default=None),
    country: str | None = Query(default=None),
    supplier_type: str | None = Query(default=None, alias="type"),
    verification_status: SupplierVerificationStatus | None = Query(default=None, alias="verification"),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=20, ge=1, le=100),
):
    """Directory of independent suppliers, visible to every brand.

    ``q`` matches name or country. Verified suppliers sort first, then newest.
    """
    stmt = select(Supplier).where(Supplier.external_user_id.is_not(None))
    if q:
        pattern = f"%{q}%"
        stmt = stmt.where(or_(Supplier.name.ilike(pattern), Supplier.country.ilike(pattern)))
    if country:
        stmt = stmt.where(Supplier.country == country)
    if supplier_type:
        stmt = stmt.where(Supplier.supplier_type == supplier_type)
    if verification_status is not None:
        stmt = stmt.where(Supplier.verification_status == verification_status.value)

    count_stmt = select(func.count()).select_from(stmt.subquery())
    total = (await session.execute(count_stmt)).scalar_one()

    stmt = stmt.order_by(_VERIFICATION_RANK, Supplier.created_at.desc()).offset(offset).limit(limit)
    suppliers = (await session.execute(stmt)).scalars().all()
    return PaginatedResponse(
        items=[SupplierOut.model_validate(s, from_attributes=True) for s in suppliers],
        total=total,
        offset=offset,
        limit=limit,
    )


@router.post("", response_model=SupplierOut, status_code=status.HTTP_201_CREATED)
async def create_supplier(
    body: SupplierCreate,
    session: Annotated[AsyncSession, Depends(get_session)],
    user: Annotated[dict, Depends(require_role("editor"))],
):
    supplier = Supplier(
        brand_id=user["brand_id"],
        verification_status=SupplierVerificationStatus.UNVERIFIED.value,
        **body.model_dump(),
    )
    session.add(supplier)
    await session.commit()
    await session.refresh(supplier)
    logger.info("supplier_created", supplier_id=str(supplier.id), brand_id=str(user["brand_id"]))
    return SupplierOut.model_validate(supplier, from_attributes=True)


@router.get("/{supplier_id}", response_model=SupplierOut)
async def get_supplier(
    supplier_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(get_session)],
    user: Annotated[dict, Depends(require_role("viewer"))],
):
    supplier = await get_owned_supplier(session, supplier_id, user["brand_id"])
    return SupplierOut.model_validate(supplier, from_attributes=True)


@router.patch("/{supplier_id}/verification", response_model=SupplierOut)
async def update_supplier_verification(
    supplier_id: uuid.UUID,
    body: SupplierVerificationUpdate,
    session: Annotated[AsyncSession, Depends(get_session)],
    user: Annotated[dict, Depends(require_role("editor"))],
):
    """Set the supplier's verification level. VERIFIED records who and when."""
    supplier = await get_owned_supplier(session, supplier_id, user["brand_id"])

    verified = body.status == SupplierVerificationStatus.VERIFIED
    supplier.verification_status = body.status.value
    supplier.verified_at = datetime.now(timezone.utc) if verified else None
    supplier.verified_by = user["id"] if verified else None

    await session.commit()
    await session.refresh(supplier)
    return SupplierOut.model_validate(supplier, from_attributes=True)
