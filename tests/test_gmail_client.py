"""Tests for supplyvault.gmail.client."""

from __future__ import annotations

import base64

import httpx
import pytest
import respx

from supplyvault.gmail.client import (
    GMAIL_API_URL,
    TOKEN_URL,
    USERINFO_URL,
    GmailAPIError,
    GmailClient,
    base64url_to_base64,
)


@pytest.fixture
async def gmail():
    client = GmailClient()
    await client.start()
    yield client
    await client.stop()


class TestBase64url:
    def test_converts_alphabet_and_pads(self):
        raw = b"\xfb\xff\xfe certificate"
        urlsafe = base64.urlsafe_b64encode(raw).decode().rstrip("=")
        converted = base64url_to_base64(urlsafe)
        assert base64.b64decode(converted, validate=True) == raw

    def test_already_aligned(self):
        assert base64url_to_base64("YWJj") == "YWJj"


class TestGmailClient:
    @pytest.mark.asyncio
    @respx.mock
    async def test_list_messages(self, gmail: GmailClient):
        route = respx.get(f"{GMAIL_API_URL}/messages").mock(
            return_value=httpx.Response(200, json={"messages": [{"id": "m1", "threadId": "t1"}]})
        )

        messages = await gmail.list_messages("tok", "has:attachment", 10)

        assert messages == [{"id": "m1", "threadId": "t1"}]
        request = route.calls[0].request
        assert request.headers["authorization"] == "Bearer tok"
        assert request.url.params["q"] == "has:attachment"
        assert request.url.params["maxResults"] == "10"

    @pytest.mark.asyncio
    @respx.mock
    async def test_list_messages_empty_mailbox(self, gmail: GmailClient):
        respx.get(f"{GMAIL_API_URL}/messages").mock(
            return_value=httpx.Response(200, json={"resultSizeEstimate": 0})
        )
        assert await gmail.list_messages("tok", "has:attachment") == []

    @pytest.mark.asyncio
    @respx.mock
    async def test_get_message_full_format(self, gmail: GmailClient):
        route = respx.get(f"{GMAIL_API_URL}/messages/m1").mock(
            return_value=httpx.Response(200, json={"id": "m1", "payload": {}})
        )
        message = await gmail.get_message("tok", "m1")
        assert message["id"] == "m1"
        assert route.calls[0].request.url.params["format"] == "full"

    @pytest.mark.asyncio
    @respx.mock
    async def test_error_raises_gmail_api_error(self, gmail: GmailClient):
        respx.get(f"{GMAIL_API_URL}/messages/m1/attachments/a1").mock(
            return_value=httpx.Response(401, text="invalid credentials")
        )
        with pytest.raises(GmailAPIError) as exc_info:
            await gmail.get_attachment("tok", "m1", "a1")
        assert exc_info.value.status_code == 401
        assert exc_info.value.operation == "get_attachment"

    @pytest.mark.asyncio
    @respx.mock
    async def test_refresh_access_token(self, gmail: GmailClient):
        route = respx.post(TOKEN_URL).mock(
            return_value=httpx.Response(200, json={"access_token": "new", "expires_in": 3599})
        )
        tokens = await gmail.refresh_access_token("refresh", "cid", "csecret")
        assert tokens["access_token"] == "new"
        form = route.calls[0].request.content.decode()
        assert "grant_type=refresh_token" in form
        assert "refresh_token=refresh" in form

    @pytest.mark.asyncio
    @respx.mock
    async def test_refresh_failure(self, gmail: GmailClient):
        respx.post(TOKEN_URL).mock(return_value=httpx.Response(400, json={"error": "invalid_grant"}))
        with pytest.raises(GmailAPIError):
            await gmail.refresh_access_token("refresh", "cid", "csecret")

    @pytest.mark.asyncio
    @respx.mock
    async def test_exchange_code(self, gmail: GmailClient):
        route = respx.post(TOKEN_URL).mock(
            return_value=httpx.Response(200, json={"access_token": "a", "refresh_token": "r"})
        )
        tokens = await gmail.exchange_code("code-1", "cid", "csecret", "https://app.test/cb")
        assert tokens["refresh_token"] == "r"
        form = httpx.QueryParams(route.calls[0].request.content.decode())
        assert form["grant_type"] == "authorization_code"
        assert form["redirect_uri"] == "https://app.test/cb"

    @pytest.mark.asyncio
    @respx.mock
    async def test_exchange_code_failure(self, gmail: GmailClient):
        respx.post(TOKEN_URL).mock(return_value=httpx.Response(400, json={"error": "invalid_grant"}))
        with pytest.raises(GmailAPIError) as exc_info:
            await gmail.exchange_code("stale", "cid", "csecret", "https://app.test/cb")
        assert exc_info.value.operation == "exchange_code"

    @pytest.mark.asyncio
    @respx.mock
    async def test_get_user_email(self, gmail: GmailClient):
        respx.get(USERINFO_URL).mock(
            return_value=httpx.Response(200, json={"id": "1", "email": "inbox@acme.test"})
        )
        assert await gmail.get_user_email("tok") == "inbox@acme.test"


class TestAuthorizationUrl:
    def test_without_state(self):
        url = httpx.URL(GmailClient.authorization_url("cid", "https://app.test/cb"))
        assert url.params["response_type"] == "code"
        assert url.params["scope"].split() == [
            "https://www.googleapis.com/auth/gmail.readonly",
            "openid",
            "https://www.googleapis.com/auth/userinfo.email",
        ]
        assert "state" not in url.params
