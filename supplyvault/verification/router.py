"""Verification router: maps certification types to verifier instances."""

from __future__ import annotations

from datetime import datetime

import structlog

from supplyvault.db.models.certification import Certification
from supplyvault.db.models.enums import CertificationType, VerificationMethod, VerificationStatus

from .base import BaseVerifier, VerificationRequest, VerificationResult

logger = structlog.get_logger()

# Method each certification type is verified with. Types not listed go to manual review.
STRATEGY_METHODS: dict[CertificationType, VerificationMethod] = {
    CertificationType.SA8000: VerificationMethod.LIST_MATCHING,
    CertificationType.GOTS: VerificationMethod.API,
    CertificationType.OEKO_TEX: VerificationMethod.WEB_SCRAPING,
}


def manual_review_result(notes: str) -> VerificationResult:
    return VerificationResult(
        status=VerificationStatus.PENDING,
        method=VerificationMethod.MANUAL,
        confidence=0.0,
        verified=False,
        details={"notes": notes},
    )


class VerificationRouter:
    """Registry of verifiers, keyed by certification type."""

    def __init__(self) -> None:
        self._verifiers: dict[str, BaseVerifier] = {}

    def register(self, verifier: BaseVerifier) -> None:
        """Register a verifier for each of its supported types."""
        for cert_type in verifier.supported_types:
            self._verifiers[cert_type.value] = verifier
            logger.info("verifier_registered", certification_type=cert_type.value)

    def get(self, certification_type: str) -> BaseVerifier | None:
        return self._verifiers.get(certification_type)

    @property
    def supported_types(self) -> list[str]:
        return list(self._verifiers.keys())

    async def verify(
        self, certification_type: str, request: VerificationRequest
    ) -> VerificationResult:
        """Run the verifier for *certification_type*.

        Never raises: unknown types and verifier errors both come back as
        PENDING/MANUAL with zero confidence.
        """
        verifier = self.get(certification_type)
        if verifier is None:
            return manual_review_result(
                "No automated verifier available for this certification type. "
                "Manual review required."
            )

        try:
            return await verifier.verify(request)
        except Exception as exc:
            logger.exception(
                "verification_failed", certification_type=certification_type
            )
            return manual_review_result(f"Verification error: {exc}")


def request_for(certification: Certification, company_name: str | None) -> VerificationRequest:
    return VerificationRequest(
        certificate_number=certification.certificate_number,
        company_name=company_name,
        issuing_body=certification.issuing_body,
        issue_date=certification.issue_date,
        expiry_date=certification.expiry_date,
    )


def apply_verification(
    certification: Certification, result: VerificationResult, now: datetime
) -> None:
    """Copy a verification result onto the certification row."""
    certification.verification_status = result.status.value
    certification.verification_method = result.method.value
    certification.verification_confidence = result.confidence
    certification.verification_details = result.model_dump(mode="json")["details"]
    certification.verification_date = now
    certification.last_verified_at = now
    certification.needs_review = result.needs_review
