"""Brand-scoped row lookups shared by the routers.

Every lookup filters on the caller's brand so rows owned by another tenant
are indistinguishable from missing ones.
"""

from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from supplyvault.db.models import Brand, Certification, Supplier
from supplyvault.errors import NotFoundError


async def get_brand(session: AsyncSession, brand_id: uuid.UUID) -> Brand:
    brand = (
        await session.execute(select(Brand).where(Brand.id == brand_id))
    ).scalar_one_or_none()
    if brand is None:
        raise NotFoundError("Brand")
    return brand


async def get_owned_supplier(
    session: AsyncSession, supplier_id: uuid.UUID, brand_id: uuid.UUID
) -> Supplier:
    supplier = (
        await session.execute(
            select(Supplier)
            .where(Supplier.id == supplier_id)
            .where(Supplier.brand_id == brand_id)
        )
    ).scalar_one_or_none()
    if supplier is None:
        raise NotFoundError("Supplier")
    return supplier


async def get_owned_certification(
    session: AsyncSession, certification_id: uuid.UUID, brand_id: uuid.UUID
) -> tuple[Certification, Supplier]:
    row = (
        await session.execute(
            select(Certification, Supplier)
            .join(Supplier, Certification.supplier_id == Supplier.id)
            .where(Certification.id == certification_id)
            .where(Supplier.brand_id == brand_id)
        )
    ).first()
    if row is None:
        raise NotFoundError("Certification")
    return row[0], row[1]
