"""OEKO-TEX label check verifier."""

from __future__ import annotations

from supplyvault.db.models.enums import CertificationType, VerificationMethod, VerificationStatus

from .base import BaseVerifier, VerificationRequest, VerificationResult

LABEL_CHECK_URL = "https://www.oeko-tex.com/en/label-check"


class OekoTexVerifier(BaseVerifier):
    @property
    def supported_types(self) -> list[CertificationType]:
        return [CertificationType.OEKO_TEX]

    async def verify(self, request: VerificationRequest) -> VerificationResult:
        if not request.certificate_number:
            return VerificationResult(
                status=VerificationStatus.PENDING,
                method=VerificationMethod.MANUAL,
                confidence=0.0,
                details={"notes": "Certificate number is required for OEKO-TEX verification"},
            )

        return VerificationResult(
            status=VerificationStatus.PENDING,
            method=VerificationMethod.WEB_SCRAPING,
            confidence=0.0,
            details={
                "certificate_number": request.certificate_number,
                "database_url": LABEL_CHECK_URL,
                "notes": (
                    "Automated OEKO-TEX label check is not available. Check the "
                    f"certificate at {LABEL_CHECK_URL}."
                ),
            },
        )
