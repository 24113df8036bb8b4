"""Brand connections to independent, self-managed suppliers."""

from __future__ import annotations

import uuid
from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from supplyvault.auth.rbac import require_role
from supplyvault.db.models import Supplier, SupplierConnection
from supplyvault.db.models.enums import ConnectionStatus
from supplyvault.deps import get_session
from supplyvault.errors import ConflictError
from supplyvault.schemas.supplier import ConnectionCreate, ConnectionOut

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/connections", tags=["connections"])


async def _find_connection(
    session: AsyncSession, brand_id: uuid.UUID, supplier_id: uuid.UUID
) -> SupplierConnection | None:
    return (
        await session.execute(
            select(SupplierConnection)
            .where(SupplierConnection.brand_id == brand_id)
            .where(SupplierConnection.supplier_id == supplier_id)
        )
    ).scalar_one_or_none()


@router.post("", response_model=ConnectionOut, status_code=status.HTTP_201_CREATED)
async def add_connection(
    body: ConnectionCreate,
    response: Response,
    session: Annotated[AsyncSession, Depends(get_session)],
    user: Annotated[dict, Depends(require_role("editor"))],
):
    """Connect an independent supplier. A DISCONNECTED connection is revived."""
    brand_id = user["brand_id"]
    supplier = (
        await session.execute(
            select(Supplier)
            .where(Supplier.id == body.supplier_id)
            .where(Supplier.external_user_id.is_not(None))
        )
    ).scalar_one_or_none()
    if supplier is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Supplier not found or not available for connection",
        )

    connection = await _find_connection(session, brand_id, body.supplier_id)
    if connection is not None:
        if connection.status == ConnectionStatus.CONNECTED.value:
            raise ConflictError("Supplier already connected")
        connection.status = ConnectionStatus.CONNECTED.value
        connection.notes = body.notes or connection.notes
        response.status_code = status.HTTP_200_OK
        logger.info("supplier_reconnected", brand_id=str(brand_id), supplier_id=str(body.supplier_id))
    else:
        connection = SupplierConnection(
            brand_id=brand_id,
            supplier_id=body.supplier_id,
            status=ConnectionStatus.CONNECTED.value,
            notes=body.notes,
        )
        session.add(connection)
        logger.info("supplier_connected", brand_id=str(brand_id), supplier_id=str(body.supplier_id))

    await session.commit()
    await session.refresh(connection)
    return ConnectionOut.model_validate(connection, from_attributes=True)


@router.get("", response_model=list[ConnectionOut])
async def list_connections(
    session: Annotated[AsyncSession, Depends(get_session)],
    user: Annotated[dict, Depends(require_role("viewer"))],
):
    connections = (
        await session.execute(
            select(SupplierConnection)
            .where(SupplierConnection.brand_id == user["brand_id"])
            .where(SupplierConnection.status == ConnectionStatus.CONNECTED.value)
            .order_by(SupplierConnection.created_at.desc())
        )
    ).scalars().all()
    return [ConnectionOut.model_validate(c, from_attributes=True) for c in connections]


@router.delete("/{supplier_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_connection(
    supplier_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(get_session)],
    user: Annotated[dict, Depends(require_role("editor"))],
):
    """Soft delete: the row stays, marked DISCONNECTED."""
    connection = await _find_connection(session, user["brand_id"], supplier_id)
    if connection is None or connection.status != ConnectionStatus.CONNECTED.value:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Connection not found")

    connection.status = ConnectionStatus.DISCONNECTED.value
    await session.commit()
    logger.info("supplier_disconnected", brand_id=str(user["brand_id"]), supplier_id=str(supplier_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
