"""Certification verification strategies and the router that selects them."""

from __future__ import annotations

from supplyvault.config import Settings

from .base import BaseVerifier, VerificationRequest, VerificationResult
from .gots import GOTSVerifier
from .oekotex import OekoTexVerifier
from .router import STRATEGY_METHODS, VerificationRouter, apply_verification
from .sa8000 import SA8000Verifier, load_registry

__all__ = [
    "STRATEGY_METHODS",
    "BaseVerifier",
    "VerificationRequest",
    "VerificationResult",
    "VerificationRouter",
    "apply_verification",
    "build_default_router",
]


def build_default_router(settings: Settings) -> VerificationRouter:
    """Router with every built-in verifier registered."""
    facilities = load_registry(settings.sa8000_registry_path) if settings.sa8000_registry_path else []
    router = VerificationRouter()
    router.register(SA8000Verifier(facilities))
    router.register(GOTSVerifier())
    router.register(OekoTexVerifier())
    return router
