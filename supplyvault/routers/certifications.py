"""Certification CRUD, verification and manual-review endpoints."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from supplyvault.alerts.classifier import certification_status
from supplyvault.auth.rbac import require_role
from supplyvault.config import Settings
from supplyvault.db.models import Certification, Supplier
from supplyvault.db.models.enums import VerificationMethod, VerificationStatus
from supplyvault.deps import get_session, get_settings, get_verification_router
from supplyvault.errors import ValidationError
from supplyvault.schemas.certification import (
    CertificationCreate,
    CertificationOut,
    CertificationUpdate,
    ReviewDecision,
    VerificationOut,
    as_utc,
)
from supplyvault.schemas.common import PaginatedResponse
from supplyvault.scoping import get_owned_certification, get_owned_supplier
from supplyvault.verification.router import VerificationRouter, apply_verification, request_for

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/certifications", tags=["certifications"])


def _out(certification: Certification) -> CertificationOut:
    return CertificationOut.model_validate(certification, from_attributes=True)


def _apply_update(certification: Certification, body: CertificationUpdate) -> None:
    changes = body.model_dump(exclude_unset=True)
    issue_date = as_utc(changes.get("issue_date", certification.issue_date))
    expiry_date = as_utc(changes.get("expiry_date", certification.expiry_date))
    if expiry_date <= issue_date:
        raise ValidationError("expiry_date must be after issue_date", field="expiry_date")
    for field, value in changes.items():
        setattr(certification, field, value)


@router.post("", response_model=CertificationOut, status_code=status.HTTP_201_CREATED)
async def create_certification(
    body: CertificationCreate,
    session: Annotated[AsyncSession, Depends(get_session)],
    settings: Annotated[Settings, Depends(get_settings)],
    user: Annotated[dict, Depends(require_role("editor"))],
):
    await get_owned_supplier(session, body.supplier_id, user["brand_id"])

    now = datetime.now(timezone.utc)
    certification = Certification(
        supplier_id=body.supplier_id,
        certification_type=body.certification_type.value,
        certification_name=body.certification_name,
        issuing_body=body.issuing_body,
        certificate_number=body.certificate_number,
        issue_date=body.issue_date,
        expiry_date=body.expiry_date,
        document_url=body.document_url,
        status=certification_status(body.expiry_date, now, settings.alert_thresholds).value,
        verification_status=VerificationStatus.UNVERIFIED.value,
        needs_review=False,
    )
    session.add(certification)
    await session.commit()
    await session.refresh(certification)
    logger.info("certification_created", certification_id=str(certification.id))
    return _out(certification)


@router.get("/review", response_model=PaginatedResponse[CertificationOut])
async def review_queue(
    session: Annotated[AsyncSession, Depends(get_session)],
    user: Annotated[dict, Depends(require_role("viewer"))],
    queue: str = Query(default="pending", alias="status", pattern="^(pending|all)$"),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=20, ge=1, le=200),
):
    """Certifications awaiting manual review; ``status=all`` lists every certification."""
    stmt = (
        select(Certification)
        .join(Supplier, Certification.supplier_id == Supplier.id)
        .where(Supplier.brand_id == user["brand_id"])
    )
    if queue == "pending":
        stmt = stmt.where(Certification.needs_review.is_(True))

    count_stmt = select(func.count()).select_from(stmt.subquery())
    total = (await session.execute(count_stmt)).scalar_one()

    stmt = (
        stmt.order_by(Certification.needs_review.desc(), Certification.created_at.desc())
        .offset(offset)
        .limit(limit)
    )
    certifications = (await session.execute(stmt)).scalars().all()
    return PaginatedResponse(
        items=[_out(c) for c in certifications], total=total, offset=offset, limit=limit
    )


@router.get("/{certification_id}", response_model=CertificationOut)
async def get_certification(
    certification_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(get_session)],
    user: Annotated[dict, Depends(require_role("viewer"))],
):
    certification, _ = await get_owned_certification(session, certification_id, user["brand_id"])
    return _out(certification)


@router.patch("/{certification_id}", response_model=CertificationOut)
async def update_certification(
    certification_id: uuid.UUID,
    body: CertificationUpdate,
    session: Annotated[AsyncSession, Depends(get_session)],
    settings: Annotated[Settings, Depends(get_settings)],
    user: Annotated[dict, Depends(require_role("editor"))],
):
    certification, _ = await get_owned_certification(session, certification_id, user["brand_id"])
    _apply_update(certification, body)
    if body.expiry_date is not None:
        certification.status = certification_status(
            body.expiry_date, datetime.now(timezone.utc), settings.alert_thresholds
        ).value
    await session.commit()
    await session.refresh(certification)
    return _out(certification)


@router.delete("/{certification_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_certification(
    certification_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(get_session)],
    user: Annotated[dict, Depends(require_role("editor"))],
):
    certification, _ = await get_owned_certification(session, certification_id, user["brand_id"])
    await session.delete(certification)
    await session.commit()
    logger.info("certification_deleted", certification_id=str(certification_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{certification_id}/verify", response_model=VerificationOut)
async def verify_certification(
    certification_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(get_session)],
    verifier: Annotated[VerificationRouter, Depends(get_verification_router)],
    user: Annotated[dict, Depends(require_role("editor"))],
):
    """Run automated verification and store the outcome."""
    certification, supplier = await get_owned_certification(
        session, certification_id, user["brand_id"]
    )
    result = await verifier.verify(
        certification.certification_type, request_for(certification, supplier.name)
    )
    apply_verification(certification, result, datetime.now(timezone.utc))
    await session.commit()

    logger.info(
        "certification_verified",
        certification_id=str(certification_id),
        status=result.status.value,
        method=result.method.value,
        confidence=result.confidence,
    )
    return VerificationOut(
        certification_id=certification_id,
        status=result.status,
        method=result.method,
        confidence=result.confidence,
        verified=result.verified,
        needs_review=result.needs_review,
        details=result.details,
    )


@router.post("/{certification_id}/review", response_model=CertificationOut)
async def review_certification(
    certification_id: uuid.UUID,
    body: ReviewDecision,
    session: Annotated[AsyncSession, Depends(get_session)],
    settings: Annotated[Settings, Depends(get_settings)],
    user: Annotated[dict, Depends(require_role("editor"))],
):
    """Approve or reject a certification after manual review."""
    certification, _ = await get_owned_certification(session, certification_id, user["brand_id"])
    now = datetime.now(timezone.utc)

    certification.needs_review = False
    certification.last_verified_at = now
    certification.verification_method = VerificationMethod.MANUAL.value
    certification.verification_date = now

    if body.action == "approve":
        certification.verification_status = VerificationStatus.VERIFIED.value
        certification.verification_confidence = 1.0
        certification.verification_details = {
            "reviewed_by": user["id"],
            "reviewed_at": now.isoformat(),
            "notes": body.notes or "Manually approved",
        }
        if body.updated_data is not None:
            _apply_update(certification, body.updated_data)
            if body.updated_data.expiry_date is not None:
                certification.status = certification_status(
                    body.updated_data.expiry_date, now, settings.alert_thresholds
                ).value
    else:
        certification.verification_status = VerificationStatus.FAILED.value
        certification.verification_confidence = 0.0
        certification.verification_details = {
            "reviewed_by": user["id"],
            "reviewed_at": now.isoformat(),
            "notes": body.notes or "Manually rejected",
        }

    await session.commit()
    await session.refresh(certification)
    logger.info(
        "certification_reviewed",
        certification_id=str(certification_id),
        action=body.action,
        reviewer=user["id"],
    )
    return _out(certification)
