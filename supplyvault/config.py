"""Backend configuration loaded from environment variables."""

from __future__ import annotations

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Top-level settings for the SupplyVault backend.

    All env vars are prefixed with ``SUPPLYVAULT_``.
    Example: ``SUPPLYVAULT_JWT_SECRET=mysecret``
    """

    model_config = SettingsConfigDict(env_prefix="SUPPLYVAULT_")

    # --- Database -----------------------------------------------------------
    database_url: str = Field(
        description="Async SQLAlchemy URL for the application database",
    )

    # --- JWT (issued by the auth provider) ----------------------------------
    jwt_secret: str = Field(
        description="Secret key used to verify JWT tokens",
    )
    jwt_algorithm: str = Field(
        default="HS256",
        description="JWT signing algorithm",
    )
    jwt_access_token_expire_minutes: int = Field(
        default=30,
        description="Access token lifetime in minutes (dev token minting only)",
    )

    # --- Scheduled jobs / workers -------------------------------------------
    cron_secret: SecretStr | None = Field(
        default=None,
        description="Bearer secret required on cron and worker endpoints (unset = open)",
    )
    app_url: str = Field(
        default="http://localhost:3000",
        description="Public base URL used for links in notification emails",
    )
    alert_thresholds: list[int] = Field(
        default_factory=lambda: [90, 30, 7],
        description="Days-before-expiry thresholds that produce alerts",
    )
    reverify_after_days: int = Field(
        default=30,
        description="Re-verify VERIFIED certifications not checked for this many days",
    )
    reverify_batch_size: int = Field(
        default=100,
        description="Maximum certifications re-verified per cron run",
    )

    # --- S3 -----------------------------------------------------------------
    s3_bucket: str = Field(
        default="supplyvault",
        description="S3 bucket name for certification documents",
    )
    s3_region: str = Field(
        default="us-east-1",
        description="S3 region",
    )
    s3_endpoint_url: str | None = Field(
        default=None,
        description="Custom S3 endpoint URL (e.g. for MinIO)",
    )
    s3_ingest_prefix: str = Field(
        default="certifications/inbound",
        description="S3 key prefix for ingested email attachments",
    )

    # --- Email (Resend) -----------------------------------------------------
    resend_api_key: SecretStr | None = Field(
        default=None,
        description="Resend API key (unset = email disabled)",
    )
    resend_api_url: str = Field(
        default="https://api.resend.com",
        description="Resend API base URL",
    )
    email_from: str = Field(
        default="SupplyVault <notifications@supplyvault.com>",
        description="Sender address for notification emails",
    )
    email_timeout_seconds: float = Field(default=10.0, description="Email API timeout")

    # --- Gmail --------------------------------------------------------------
    google_client_id: str | None = Field(default=None, description="Google OAuth client id")
    google_client_secret: SecretStr | None = Field(
        default=None,
        description="Google OAuth client secret",
    )
    google_redirect_uri: str | None = Field(
        default=None,
        description="OAuth redirect URI registered with Google",
    )
    gmail_query: str = Field(
        default="has:attachment",
        description="Gmail search query used by the poller",
    )
    gmail_max_results: int = Field(default=50, description="Messages listed per poll")
    encryption_key: SecretStr | None = Field(
        default=None,
        description="Key material for encrypting stored OAuth tokens",
    )

    # --- Verification -------------------------------------------------------
    sa8000_registry_path: str | None = Field(
        default=None,
        description="JSON file listing SA8000 certified facilities",
    )

    # --- Server -------------------------------------------------------------
    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=8000, description="Bind port")
    log_level: str = Field(default="INFO", description="Log level")
    log_json: bool = Field(
        default=True,
        description="Use JSON log output (True for prod, False for dev)",
    )

    @field_validator("alert_thresholds")
    @classmethod
    def _known_thresholds(cls, value: list[int]) -> list[int]:
        unknown = sorted(set(value) - {90, 30, 7})
        if unknown:
            raise ValueError(f"unsupported alert thresholds: {unknown}")
        return sorted(set(value), reverse=True)
