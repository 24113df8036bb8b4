"""SA8000 verification by matching against the list of certified facilities."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

import structlog

from supplyvault.db.models.enums import CertificationType, VerificationMethod, VerificationStatus

from .base import BaseVerifier, VerificationRequest, VerificationResult

logger = structlog.get_logger()

ISSUING_BODY = "Social Accountability International (SAI)"
NAME_MATCH_THRESHOLD = 0.7
STRONG_NAME_MATCH = 0.9


@dataclass(frozen=True)
class CertifiedFacility:
    certificate_number: str
    company_name: str
    valid_from: datetime
    valid_until: datetime
    scope: str = ""


def levenshtein(a: str, b: str) -> int:
    """Edit distance between *a* and *b*."""
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            current.append(
                min(
                    previous[j] + 1,
                    current[j - 1] + 1,
                    previous[j - 1] + (ca != cb),
                )
            )
        previous = current
    return previous[-1]


def name_similarity(a: str, b: str) -> float:
    """1.0 for identical names, falling towards 0.0 with edit distance. Case-insensitive."""
    a, b = a.lower(), b.lower()
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return (longest - levenshtein(a, b)) / longest


def _parse_date(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def load_registry(path: str | Path) -> list[CertifiedFacility]:
    """Load certified facilities from a JSON list.

    Each entry needs ``certificate_number``, ``company_name``,
    ``valid_from`` and ``valid_until`` (ISO dates); ``scope`` is optional.
    """
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    facilities = [
        CertifiedFacility(
            certificate_number=entry["certificate_number"],
            company_name=entry["company_name"],
            valid_from=_parse_date(entry["valid_from"]),
            valid_until=_parse_date(entry["valid_until"]),
            scope=entry.get("scope", ""),
        )
        for entry in raw
    ]
    logger.info("sa8000_registry_loaded", path=str(path), facilities=len(facilities))
    return facilities


class SA8000Verifier(BaseVerifier):
    """Looks certificate numbers up in the SA8000 certified-facility list."""

    def __init__(self, facilities: list[CertifiedFacility] | None = None) -> None:
        self._facilities = {
            f.certificate_number.upper(): f for f in (facilities or [])
        }

    @property
    def supported_types(self) -> list[CertificationType]:
        return [CertificationType.SA8000]

    def _result(
        self, status: VerificationStatus, confidence: float, **details
    ) -> VerificationResult:
        return VerificationResult(
            status=status,
            method=VerificationMethod.LIST_MATCHING,
            confidence=confidence,
            verified=status == VerificationStatus.VERIFIED,
            details=details,
        )

    async def verify(self, request: VerificationRequest) -> VerificationResult:
        if not request.certificate_number:
            return self._result(
                VerificationStatus.PENDING,
                0.0,
                notes="Certificate number is required for SA8000 verification",
            )

        facility = self._facilities.get(request.certificate_number.strip().upper())
        if facility is None:
            return self._result(
                VerificationStatus.PENDING,
                0.0,
                notes=(
                    "Certificate number not found in SA8000 certified facilities "
                    "database. Manual verification recommended."
                ),
            )

        now = request.checked_at
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        if not facility.valid_from <= now <= facility.valid_until:
            return self._result(
                VerificationStatus.FAILED,
                0.9,
                certificate_number=facility.certificate_number,
                valid_from=facility.valid_from.isoformat(),
                valid_until=facility.valid_until.isoformat(),
                notes="Certificate found but has expired or is not yet valid",
            )

        confidence = 0.9
        if request.company_name:
            similarity = name_similarity(request.company_name, facility.company_name)
            if similarity <= NAME_MATCH_THRESHOLD:
                return self._result(
                    VerificationStatus.FAILED,
                    0.3,
                    certificate_number=facility.certificate_number,
                    similarity=round(similarity, 3),
                    notes=(
                        "Certificate number found but company name mismatch. "
                        f"Expected: {facility.company_name}, Got: {request.company_name}"
                    ),
                )
            confidence = 1.0 if similarity > STRONG_NAME_MATCH else 0.85

        return self._result(
            VerificationStatus.VERIFIED,
            confidence,
            certificate_number=facility.certificate_number,
            holder_name=facility.company_name,
            valid_from=facility.valid_from.isoformat(),
            valid_until=facility.valid_until.isoformat(),
            scope=facility.scope,
            issuing_body=ISSUING_BODY,
            notes="Certificate verified against SA8000 certified facilities database",
        )
