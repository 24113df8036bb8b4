"""Map a certification's expiry date onto an alert bucket.

Pure functions, no I/O.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from datetime import datetime, timezone

from supplyvault.db.models.enums import AlertType, CertificationStatus

DEFAULT_THRESHOLDS: tuple[int, ...] = (90, 30, 7)

_SECONDS_PER_DAY = 86_400

_BUCKETS: dict[int, AlertType] = {
    90: AlertType.NINETY_DAY,
    30: AlertType.THIRTY_DAY,
    7: AlertType.SEVEN_DAY,
}


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def days_until_expiry(expiry: datetime, now: datetime) -> int:
    """Whole days until *expiry*, rounded up. Negative once expired."""
    delta = _as_utc(expiry) - _as_utc(now)
    return math.ceil(delta.total_seconds() / _SECONDS_PER_DAY)


def classify(
    expiry: datetime,
    now: datetime,
    thresholds: Iterable[int] = DEFAULT_THRESHOLDS,
) -> AlertType | None:
    """Return the alert bucket for *expiry* at *now*, or ``None``.

    Anything strictly in the past is EXPIRED. Otherwise the smallest
    threshold that is still >= the remaining days wins.
    """
    if _as_utc(expiry) < _as_utc(now):
        return AlertType.EXPIRED

    days = days_until_expiry(expiry, now)
    for threshold in sorted(thresholds):
        if days <= threshold:
            return bucket_for_threshold(threshold)
    return None


def bucket_for_threshold(threshold: int) -> AlertType:
    try:
        return _BUCKETS[threshold]
    except KeyError:
        raise ValueError(f"No alert type for threshold {threshold} days") from None


def status_for_alert(alert_type: AlertType) -> CertificationStatus | None:
    """Certification status implied by an alert bucket.

    NINETY_DAY leaves the status untouched.
    """
    if alert_type == AlertType.EXPIRED:
        return CertificationStatus.EXPIRED
    if alert_type in (AlertType.THIRTY_DAY, AlertType.SEVEN_DAY):
        return CertificationStatus.EXPIRING_SOON
    return None


def certification_status(
    expiry: datetime,
    now: datetime,
    thresholds: Iterable[int] = DEFAULT_THRESHOLDS,
) -> CertificationStatus:
    alert_type = classify(expiry, now, thresholds)
    if alert_type is None:
        return CertificationStatus.VALID
    return status_for_alert(alert_type) or CertificationStatus.VALID
