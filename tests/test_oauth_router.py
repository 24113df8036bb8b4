"""Tests for the Gmail OAuth endpoint."""

from __future__ import annotations

import uuid

import httpx
import pytest
import respx
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select

from supplyvault.app import create_app
from supplyvault.db.models import GmailAccount
from supplyvault.deps import get_gmail_client, get_token_cipher
from supplyvault.gmail.client import TOKEN_URL, USERINFO_URL, GmailClient
from supplyvault.gmail.crypto import TokenCipher
from tests.conftest import (
    BRAND_ID,
    _test_settings,
    make_admin_headers,
    make_editor_headers,
    make_session_mock,
    override_database,
    override_session,
    seed_brand,
)

OTHER_BRAND = uuid.UUID("44444444-4444-4444-8444-444444444444")
CIPHER = TokenCipher("oauth-test-key")


@pytest.fixture
def oauth_settings():
    return _test_settings(
        google_client_id="client-123",
        google_client_secret="shh",
        google_redirect_uri="https://app.test/api/v1/oauth/gmail",
    )


@pytest.fixture
async def gmail():
    client = GmailClient()
    await client.start()
    yield client
    await client.stop()


@pytest.fixture
async def oauth(oauth_settings, gmail):
    """App with Google OAuth configured, plus its client."""
    app = create_app(oauth_settings)
    app.dependency_overrides[get_gmail_client] = lambda: gmail
    app.dependency_overrides[get_token_cipher] = lambda: CIPHER
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield app, ac


class TestConsentUrl:
    @pytest.mark.asyncio
    async def test_returns_offline_consent_url(self, oauth, oauth_settings):
        app, ac = oauth
        override_session(app, make_session_mock())

        resp = await ac.get(
            "/api/v1/oauth/gmail",
            params={"state": "settings-page"},
            headers=make_admin_headers(oauth_settings),
        )

        assert resp.status_code == 200
        url = httpx.URL(resp.json()["auth_url"])
        assert url.host == "accounts.google.com"
        assert url.params["client_id"] == "client-123"
        assert url.params["redirect_uri"] == "https://app.test/api/v1/oauth/gmail"
        assert url.params["access_type"] == "offline"
        assert url.params["prompt"] == "consent"
        assert url.params["state"] == "settings-page"
        assert "gmail.readonly" in url.params["scope"]

    @pytest.mark.asyncio
    async def test_not_configured_is_503(self, app, client, settings, gmail):
        override_session(app, make_session_mock())
        app.dependency_overrides[get_gmail_client] = lambda: gmail
        app.dependency_overrides[get_token_cipher] = lambda: CIPHER

        resp = await client.get("/api/v1/oauth/gmail", headers=make_admin_headers(settings))

        assert resp.status_code == 503
        assert resp.json() == {"error": "OAuth not configured"}

    @pytest.mark.asyncio
    async def test_editor_is_403(self, oauth, oauth_settings):
        app, ac = oauth
        override_session(app, make_session_mock())

        resp = await ac.get("/api/v1/oauth/gmail", headers=make_editor_headers(oauth_settings))

        assert resp.status_code == 403

    @pytest.mark.asyncio
    async def test_google_error_is_400(self, oauth, oauth_settings):
        app, ac = oauth
        override_session(app, make_session_mock())

        resp = await ac.get(
            "/api/v1/oauth/gmail",
            params={"error": "access_denied"},
            headers=make_admin_headers(oauth_settings),
        )

        assert resp.status_code == 400
        assert "access_denied" in resp.json()["error"]


class TestCallback:
    @pytest.mark.asyncio
    @respx.mock
    async def test_stores_encrypted_account_for_caller_brand(self, oauth, oauth_settings, db, session):
        app, ac = oauth
        await seed_brand(session)
        await session.commit()
        override_database(app, db)
        token_route = respx.post(TOKEN_URL).mock(
            return_value=httpx.Response(
                200,
                json={
                    "access_token": "ya29.access",
                    "refresh_token": "1//refresh",
                    "expires_in": 3599,
                    "scope": "https://www.googleapis.com/auth/gmail.readonly",
                    "token_type": "Bearer",
                },
            )
        )
        userinfo_route = respx.get(USERINFO_URL).mock(
            return_value=httpx.Response(200, json={"email": "certs@acme.test"})
        )

        resp = await ac.get(
            "/api/v1/oauth/gmail",
            params={"code": "auth-code", "state": str(OTHER_BRAND)},
            headers=make_admin_headers(oauth_settings),
        )

        assert resp.status_code == 200
        data = resp.json()
        assert data["success"] is True
        assert data["email"] == "certs@acme.test"

        form = httpx.QueryParams(token_route.calls[0].request.content.decode())
        assert form["grant_type"] == "authorization_code"
        assert form["code"] == "auth-code"
        assert form["client_secret"] == "shh"
        assert userinfo_route.calls[0].request.headers["authorization"] == "Bearer ya29.access"

        async with db.session() as check:
            account = (await check.execute(select(GmailAccount))).scalar_one()
            assert str(account.id) == data["account_id"]
            assert account.brand_id == BRAND_ID
            assert account.access_token.startswith("enc:")
            assert CIPHER.decrypt(account.access_token) == "ya29.access"
            assert CIPHER.decrypt(account.refresh_token) == "1//refresh"
            assert account.token_type == "Bearer"
            assert account.expires_at is not None

    @pytest.mark.asyncio
    @respx.mock
    async def test_exchange_failure_is_400(self, oauth, oauth_settings, db):
        app, ac = oauth
        override_database(app, db)
        respx.post(TOKEN_URL).mock(
            return_value=httpx.Response(400, json={"error": "invalid_grant"})
        )

        resp = await ac.get(
            "/api/v1/oauth/gmail",
            params={"code": "stale-code"},
            headers=make_admin_headers(oauth_settings),
        )

        assert resp.status_code == 400
        assert resp.json() == {"error": "Failed to exchange authorization code"}
        async with db.session() as check:
            assert (await check.execute(select(GmailAccount))).first() is None
