"""Alert bookkeeping and the scheduled sweeps that drive it.

``ExpiryChecker`` walks every brand's certifications, records one alert per
(certification, bucket) and emails the brand. ``ReVerifier`` re-runs the
verification router over stale VERIFIED certificates.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta

import structlog
from sqlalchemy import or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from supplyvault.alerts.classifier import classify, days_until_expiry, status_for_alert
from supplyvault.config import Settings
from supplyvault.db.models import Alert, Brand, Certification, Supplier
from supplyvault.db.models.enums import AlertType, VerificationStatus
from supplyvault.notifications.email import EmailNotifier
from supplyvault.verification.router import VerificationRouter, apply_verification, request_for

logger = structlog.get_logger()


def certification_url(settings: Settings, certification_id: uuid.UUID) -> str:
    return f"{settings.app_url.rstrip('/')}/dashboard/certifications/{certification_id}"


async def alert_exists(
    session: AsyncSession, certification_id: uuid.UUID, alert_type: AlertType
) -> bool:
    """True when any alert, read or unread, exists for the pair."""
    stmt = (
        select(Alert.id)
        .where(Alert.certification_id == certification_id)
        .where(Alert.alert_type == alert_type.value)
        .limit(1)
    )
    return (await session.execute(stmt)).scalar_one_or_none() is not None


async def create_expiry_alert(
    session: AsyncSession,
    certification_id: uuid.UUID,
    brand_id: uuid.UUID,
    alert_type: AlertType,
) -> Alert | None:
    """Record an alert unless one already exists for (certification, type).

    Returns ``None`` for duplicates. Flushes but does not commit. The insert
    runs in a savepoint, so losing a unique-key race leaves the rest of the
    caller's transaction intact.
    """
    if await alert_exists(session, certification_id, alert_type):
        logger.debug(
            "expiry_alert_exists",
            certification_id=str(certification_id),
            alert_type=alert_type.value,
        )
        return None

    alert = Alert(
        certification_id=certification_id,
        brand_id=brand_id,
        alert_type=alert_type.value,
    )
    try:
        async with session.begin_nested():
            session.add(alert)
            await session.flush()
    except IntegrityError:
        logger.info(
            "expiry_alert_race_lost",
            certification_id=str(certification_id),
            alert_type=alert_type.value,
        )
        return None

    logger.info(
        "expiry_alert_created",
        certification_id=str(certification_id),
        brand_id=str(brand_id),
        alert_type=alert_type.value,
    )
    return alert


def emails_enabled(email_alerts_enabled: bool, disabled_alert_types: list[str] | None, alert_type: AlertType) -> bool:
    if not email_alerts_enabled:
        return False
    return alert_type.value not in (disabled_alert_types or [])


@dataclass
class SweepResult:
    processed: int = 0
    alerts_created: int = 0
    emails_sent: int = 0
    revoked: int = 0
    reverified: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)


class ExpiryChecker:
    """Daily sweep that turns approaching expiry dates into alerts and emails."""

    def __init__(self, settings: Settings, notifier: EmailNotifier) -> None:
        self._settings = settings
        self._notifier = notifier

    async def run(self, session: AsyncSession, now: datetime) -> SweepResult:
        result = SweepResult()
        stmt = (
            select(
                Certification.id,
                Certification.certification_name,
                Certification.certification_type,
                Certification.expiry_date,
                Supplier.name.label("supplier_name"),
                Brand.id.label("brand_id"),
                Brand.email.label("brand_email"),
                Brand.email_alerts_enabled,
                Brand.disabled_alert_types,
            )
            .join(Supplier, Certification.supplier_id == Supplier.id)
            .join(Brand, Supplier.brand_id == Brand.id)
            .order_by(Brand.id, Certification.expiry_date)
        )
        rows = (await session.execute(stmt)).all()
        logger.info("expiry_check_started", certifications=len(rows))

        for row in rows:
            alert_type = classify(row.expiry_date, now, self._settings.alert_thresholds)
            if alert_type is None:
                continue
            try:
                await self._process(session, row, alert_type, now, result)
                await session.commit()
            except Exception as exc:
                await session.rollback()
                logger.exception("expiry_check_item_failed", certification_id=str(row.id))
                result.errors.append(
                    f"Error processing cert {row.id} ({alert_type.value}): {exc}"
                )
            result.processed += 1

        logger.info(
            "expiry_check_finished",
            processed=result.processed,
            alerts_created=result.alerts_created,
            emails_sent=result.emails_sent,
            errors=len(result.errors),
        )
        return result

    async def _process(self, session, row, alert_type: AlertType, now: datetime, result: SweepResult) -> None:
        new_status = status_for_alert(alert_type)
        if new_status is not None:
            await session.execute(
                update(Certification)
                .where(Certification.id == row.id)
                .values(status=new_status.value)
            )

        alert = await create_expiry_alert(session, row.id, row.brand_id, alert_type)
        if alert is None:
            return
        result.alerts_created += 1

        if not emails_enabled(row.email_alerts_enabled, row.disabled_alert_types, alert_type):
            logger.debug("expiry_email_suppressed", brand_id=str(row.brand_id), alert_type=alert_type.value)
            return

        send = await self._notifier.send_expiry_alert(
            to=row.brand_email,
            supplier_name=row.supplier_name,
            certification_name=row.certification_name,
            certification_type=row.certification_type,
            expiry_date=row.expiry_date,
            days_until_expiry=max(days_until_expiry(row.expiry_date, now), 0),
            certification_url=certification_url(self._settings, row.id),
        )
        if send.success:
            alert.sent_at = now
            result.emails_sent += 1
        else:
            result.errors.append(f"Failed to send email for cert {row.id}: {send.error}")


class ReVerifier:
    """Re-runs verification on VERIFIED certificates that have gone stale."""

    def __init__(
        self,
        settings: Settings,
        router: VerificationRouter,
        notifier: EmailNotifier,
    ) -> None:
        self._settings = settings
        self._router = router
        self._notifier = notifier

    async def run(self, session: AsyncSession, now: datetime) -> SweepResult:
        result = SweepResult()
        cutoff = now - timedelta(days=self._settings.reverify_after_days)
        stmt = (
            select(
                Certification.id,
                Supplier.name.label("supplier_name"),
                Brand.email.label("brand_email"),
            )
            .join(Supplier, Certification.supplier_id == Supplier.id)
            .outerjoin(Brand, Supplier.brand_id == Brand.id)
            .where(Certification.verification_status == VerificationStatus.VERIFIED.value)
            .where(
                or_(
                    Certification.last_verified_at.is_(None),
                    Certification.last_verified_at < cutoff,
                )
            )
            .order_by(Certification.last_verified_at.asc().nulls_first())
            .limit(self._settings.reverify_batch_size)
        )
        rows = (await session.execute(stmt)).all()
        logger.info("reverify_started", certifications=len(rows))

        for row in rows:
            try:
                await self._process(session, row, now, result)
                await session.commit()
            except Exception as exc:
                await session.rollback()
                logger.exception("reverify_item_failed", certification_id=str(row.id))
                result.failed += 1
                result.errors.append(f"Error re-verifying cert {row.id}: {exc}")
            result.processed += 1

        logger.info(
            "reverify_finished",
            processed=result.processed,
            reverified=result.reverified,
            revoked=result.revoked,
            failed=result.failed,
            emails_sent=result.emails_sent,
            errors=len(result.errors),
        )
        return result

    async def _process(self, session, row, now: datetime, result: SweepResult) -> None:
        certification = await session.get(Certification, row.id)
        if certification is None:
            return

        outcome = await self._router.verify(
            certification.certification_type,
            request_for(certification, row.supplier_name),
        )
        apply_verification(certification, outcome, now)

        if outcome.status not in (VerificationStatus.FAILED, VerificationStatus.PENDING):
            result.reverified += 1
            return

        result.revoked += 1
        logger.warning(
            "certification_revoked",
            certification_id=str(row.id),
            status=outcome.status.value,
        )
        if not row.brand_email:
            return

        send = await self._notifier.send_revocation_alert(
            to=row.brand_email,
            supplier_name=row.supplier_name,
            certification_name=certification.certification_name,
            certificate_number=certification.certificate_number,
            certification_url=certification_url(self._settings, row.id),
        )
        if send.success:
            result.emails_sent += 1
        else:
            result.errors.append(f"Failed to send email for cert {row.id}: {send.error}")
