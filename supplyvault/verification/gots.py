"""GOTS (Global Organic Textile Standard) verifier.

GOTS publishes a public database but no lookup API is wired up yet, so
numbered certificates are queued for manual confirmation.
"""

from __future__ import annotations

from supplyvault.db.models.enums import CertificationType, VerificationMethod, VerificationStatus

from .base import BaseVerifier, VerificationRequest, VerificationResult

PUBLIC_DATABASE_URL = "https://www.global-standard.org/public-database"


class GOTSVerifier(BaseVerifier):
    @property
    def supported_types(self) -> list[CertificationType]:
        return [CertificationType.GOTS]

    async def verify(self, request: VerificationRequest) -> VerificationResult:
        if not request.certificate_number:
            return VerificationResult(
                status=VerificationStatus.PENDING,
                method=VerificationMethod.MANUAL,
                confidence=0.0,
                details={"notes": "Certificate number is required for GOTS verification"},
            )

        return VerificationResult(
            status=VerificationStatus.PENDING,
            method=VerificationMethod.API,
            confidence=0.0,
            details={
                "certificate_number": request.certificate_number,
                "database_url": PUBLIC_DATABASE_URL,
                "notes": (
                    "Automated GOTS lookup is not available. Check the certificate "
                    f"against {PUBLIC_DATABASE_URL}."
                ),
            },
        )
