"""Brand notification preferences."""

from __future__ import annotations

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from supplyvault.auth.rbac import require_role
from supplyvault.deps import get_session
from supplyvault.schemas.settings import NotificationSettings, NotificationSettingsUpdate
from supplyvault.scoping import get_brand

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/settings", tags=["settings"])


@router.get("/notifications", response_model=NotificationSettings)
async def get_notification_settings(
    session: Annotated[AsyncSession, Depends(get_session)],
    user: Annotated[dict, Depends(require_role("viewer"))],
):
    brand = await get_brand(session, user["brand_id"])
    return NotificationSettings(
        email_alerts_enabled=brand.email_alerts_enabled,
        disabled_alert_types=brand.disabled_alert_types or [],
    )


@router.patch("/notifications", response_model=NotificationSettings)
async def update_notification_settings(
    body: NotificationSettingsUpdate,
    session: Annotated[AsyncSession, Depends(get_session)],
    user: Annotated[dict, Depends(require_role("admin"))],
):
    brand = await get_brand(session, user["brand_id"])
    if body.email_alerts_enabled is not None:
        brand.email_alerts_enabled = body.email_alerts_enabled
    if body.disabled_alert_types is not None:
        brand.disabled_alert_types = sorted({t.value for t in body.disabled_alert_types})
    await session.commit()
    logger.info(
        "notification_settings_updated",
        brand_id=str(brand.id),
        email_alerts_enabled=brand.email_alerts_enabled,
        disabled_alert_types=brand.disabled_alert_types,
    )
    return NotificationSettings(
        email_alerts_enabled=brand.email_alerts_enabled,
        disabled_alert_types=brand.disabled_alert_types or [],
    )
