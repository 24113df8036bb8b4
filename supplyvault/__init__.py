"""SupplyVault: supplier certification tracking, expiry alerting and verification."""

__version__ = "0.1.0"
