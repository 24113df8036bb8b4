"""Request/response schemas for brand notification settings."""

from __future__ import annotations

from pydantic import BaseModel

from supplyvault.db.models.enums import AlertType


class NotificationSettings(BaseModel):
    email_alerts_enabled: bool
    disabled_alert_types: list[AlertType]


class NotificationSettingsUpdate(BaseModel):
    email_alerts_enabled: bool | None = None
    disabled_alert_types: list[AlertType] | None = None
