"""Certification expiry classification and alert bookkeeping."""

from supplyvault.alerts.classifier import classify, days_until_expiry
from supplyvault.alerts.service import ExpiryChecker, ReVerifier, create_expiry_alert

__all__ = [
    "ExpiryChecker",
    "ReVerifier",
    "classify",
    "create_expiry_alert",
    "days_until_expiry",
]
