"""Async client for the Gmail REST API and Google's OAuth endpoints."""

from __future__ import annotations

import httpx
import structlog

logger = structlog.get_logger()

GMAIL_API_URL = "https://gmail.googleapis.com/gmail/v1/users/me"
AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
TOKEN_URL = "https://oauth2.googleapis.com/token"
USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"
GMAIL_SCOPES = (
    "https://www.googleapis.com/auth/gmail.readonly",
    "openid",
    "https://www.googleapis.com/auth/userinfo.email",
)


class GmailAPIError(Exception):
    """Non-2xx response from Gmail or the token endpoint."""

    def __init__(self, operation: str, status_code: int, body: str) -> None:
        super().__init__(f"{operation} failed ({status_code}): {body}")
        self.operation = operation
        self.status_code = status_code
        self.body = body


def base64url_to_base64(data: str) -> str:
    """Convert Gmail's unpadded base64url to padded standard base64."""
    converted = data.replace("-", "+").replace("_", "/")
    pad = len(converted) % 4
    if pad:
        converted += "=" * (4 - pad)
    return converted


class GmailClient:
    """Thin wrapper over the Gmail endpoints the poller needs."""

    def __init__(self, timeout_seconds: float = 30.0) -> None:
        self._timeout = timeout_seconds
        self._client: httpx.AsyncClient | None = None

    async def start(self) -> None:
        self._client = httpx.AsyncClient(timeout=httpx.Timeout(self._timeout))
        logger.info("gmail_client_started")

    async def stop(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            logger.info("gmail_client_stopped")

    async def _get(self, operation: str, access_token: str, url: str, params: dict | None = None) -> dict:
        assert self._client is not None, "Gmail client not started"
        response = await self._client.get(
            url,
            params=params,
            headers={"Authorization": f"Bearer {access_token}"},
        )
        if response.is_error:
            raise GmailAPIError(operation, response.status_code, response.text)
        return response.json()

    @staticmethod
    def authorization_url(client_id: str, redirect_uri: str, state: str | None = None) -> str:
        """Google consent URL requesting offline access to the inbox."""
        params = {
            "client_id": client_id,
            "redirect_uri": redirect_uri,
            "response_type": "code",
            "scope": " ".join(GMAIL_SCOPES),
            "access_type": "offline",
            "prompt": "consent",
        }
        if state:
            params["state"] = state
        return str(httpx.URL(AUTH_URL, params=params))

    async def exchange_code(
        self, code: str, client_id: str, client_secret: str, redirect_uri: str
    ) -> dict:
        """Trade an authorization code for Google's token payload."""
        assert self._client is not None, "Gmail client not started"
        response = await self._client.post(
            TOKEN_URL,
            data={
                "code": code,
                "client_id": client_id,
                "client_secret": client_secret,
                "redirect_uri": redirect_uri,
                "grant_type": "authorization_code",
            },
        )
        if response.is_error:
            raise GmailAPIError("exchange_code", response.status_code, response.text)
        return response.json()

    async def get_user_email(self, access_token: str) -> str | None:
        payload = await self._get("get_user_email", access_token, USERINFO_URL)
        return payload.get("email")

    async def refresh_access_token(
        self, refresh_token: str, client_id: str, client_secret: str
    ) -> dict:
        """Exchange a refresh token for a new access token.

        Returns Google's token payload (``access_token``, ``expires_in`` and
        possibly a rotated ``refresh_token``).
        """
        assert self._client is not None, "Gmail client not started"
        response = await self._client.post(
            TOKEN_URL,
            data={
                "refresh_token": refresh_token,
                "client_id": client_id,
                "client_secret": client_secret,
                "grant_type": "refresh_token",
            },
        )
        if response.is_error:
            raise GmailAPIError("refresh_access_token", response.status_code, response.text)
        logger.debug("gmail_token_refreshed")
        return response.json()

    async def list_messages(self, access_token: str, query: str, max_results: int = 50) -> list[dict]:
        """Return ``[{"id", "threadId"}, ...]`` for messages matching *query*."""
        payload = await self._get(
            "list_messages",
            access_token,
            f"{GMAIL_API_URL}/messages",
            params={"q": query, "maxResults": max_results},
        )
        return payload.get("messages") or []

    async def get_message(self, access_token: str, message_id: str) -> dict:
        return await self._get(
            "get_message",
            access_token,
            f"{GMAIL_API_URL}/messages/{message_id}",
            params={"format": "full"},
        )

    async def get_attachment(self, access_token: str, message_id: str, attachment_id: str) -> dict:
        return await self._get(
            "get_attachment",
            access_token,
            f"{GMAIL_API_URL}/messages/{message_id}/attachments/{attachment_id}",
        )
