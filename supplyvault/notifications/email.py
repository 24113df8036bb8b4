"""Transactional email delivery through the Resend REST API."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

import httpx
import structlog

from supplyvault.config import Settings
from supplyvault.notifications.templates import format_expiry_alert, format_revocation_alert

logger = structlog.get_logger()

NOT_CONFIGURED = "Email service not configured"


@dataclass(frozen=True)
class SendResult:
    success: bool
    error: str | None = None


class EmailNotifier:
    """Sends notification emails. Never raises; failures come back as :class:`SendResult`.

    Without an API key every send reports ``Email service not configured``.
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._client: httpx.AsyncClient | None = None

    @property
    def configured(self) -> bool:
        return self._settings.resend_api_key is not None

    async def start(self) -> None:
        if not self.configured:
            logger.info("email_notifier_disabled", reason="no_api_key")
            return
        self._client = httpx.AsyncClient(
            base_url=self._settings.resend_api_url,
            timeout=httpx.Timeout(self._settings.email_timeout_seconds),
            headers={
                "Authorization": f"Bearer {self._settings.resend_api_key.get_secret_value()}",
            },
        )
        logger.info("email_notifier_started", api_url=self._settings.resend_api_url)

    async def stop(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            logger.info("email_notifier_stopped")

    async def send(self, to: str, subject: str, text: str, html: str) -> SendResult:
        if self._client is None:
            logger.warning("email_not_sent", reason="not_configured", subject=subject)
            return SendResult(success=False, error=NOT_CONFIGURED)

        payload = {
            "from": self._settings.email_from,
            "to": [to],
            "subject": subject,
            "text": text,
            "html": html,
        }
        try:
            response = await self._client.post("/emails", json=payload)
        except httpx.HTTPError as exc:
            logger.error("email_send_failed", to=to, error=str(exc))
            return SendResult(success=False, error=str(exc) or type(exc).__name__)

        if response.is_error:
            try:
                message = response.json().get("message") or response.text
            except ValueError:
                message = response.text
            logger.error(
                "email_send_rejected", to=to, status_code=response.status_code, error=message
            )
            return SendResult(success=False, error=message or f"HTTP {response.status_code}")

        logger.info("email_sent", to=to, subject=subject)
        return SendResult(success=True)

    async def send_expiry_alert(
        self,
        *,
        to: str,
        supplier_name: str,
        certification_name: str,
        certification_type: str,
        expiry_date: datetime,
        days_until_expiry: int,
        certification_url: str,
    ) -> SendResult:
        subject, text, html = format_expiry_alert(
            supplier_name=supplier_name,
            certification_name=certification_name,
            certification_type=certification_type,
            expiry_date=expiry_date,
            days_until_expiry=days_until_expiry,
            certification_url=certification_url,
        )
        return await self.send(to, subject, text, html)

    async def send_revocation_alert(
        self,
        *,
        to: str,
        supplier_name: str,
        certification_name: str,
        certificate_number: str | None,
        certification_url: str,
    ) -> SendResult:
        subject, text, html = format_revocation_alert(
            supplier_name=supplier_name,
            certification_name=certification_name,
            certificate_number=certificate_number,
            certification_url=certification_url,
        )
        return await self.send(to, subject, text, html)
