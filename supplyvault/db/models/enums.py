"""String enums stored in Text columns."""

from __future__ import annotations

from enum import StrEnum


class AlertType(StrEnum):
    NINETY_DAY = "NINETY_DAY"
    THIRTY_DAY = "THIRTY_DAY"
    SEVEN_DAY = "SEVEN_DAY"
    EXPIRED = "EXPIRED"


class CertificationType(StrEnum):
    SA8000 = "SA8000"
    BSCI = "BSCI"
    GOTS = "GOTS"
    OEKO_TEX = "OEKO_TEX"
    OTHER = "OTHER"


class CertificationStatus(StrEnum):
    VALID = "VALID"
    EXPIRING_SOON = "EXPIRING_SOON"
    EXPIRED = "EXPIRED"


class VerificationStatus(StrEnum):
    UNVERIFIED = "UNVERIFIED"
    PENDING = "PENDING"
    VERIFIED = "VERIFIED"
    FAILED = "FAILED"
    BASIC = "BASIC"


class VerificationMethod(StrEnum):
    MANUAL = "MANUAL"
    API = "API"
    WEB_SCRAPING = "WEB_SCRAPING"
    LIST_MATCHING = "LIST_MATCHING"


class SupplierVerificationStatus(StrEnum):
    UNVERIFIED = "UNVERIFIED"
    BASIC = "BASIC"
    VERIFIED = "VERIFIED"


class ConnectionStatus(StrEnum):
    CONNECTED = "CONNECTED"
    DISCONNECTED = "DISCONNECTED"
