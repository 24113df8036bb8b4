"""Shared test fixtures for the SupplyVault backend."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

from supplyvault.app import create_app
from supplyvault.auth.jwt import create_access_token
from supplyvault.config import Settings
from supplyvault.db.engine import Database
from supplyvault.deps import get_ingester, get_notifier, get_session, get_verification_router

BRAND_ID = uuid.UUID("11111111-1111-4111-8111-111111111111")


def _test_settings(**overrides) -> Settings:
    """Create Settings with test defaults."""
    defaults = {
        "database_url": "sqlite+aiosqlite://",
        "jwt_secret": "test-secret",
        "app_url": "https://app.test",
    }
    defaults.update(overrides)
    return Settings(**defaults)


@pytest.fixture
def settings():
    return _test_settings()


@pytest.fixture
async def app(settings):
    application = create_app(settings)
    return application


@pytest.fixture
async def client(app):
    """Async HTTP test client. Lifespan is not started; use dependency_overrides."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
async def db(settings):
    """In-memory SQLite database with every table created."""
    database = Database(settings)
    await database.create_all()
    yield database
    await database.close()


@pytest.fixture
async def session(db):
    async with db.session() as s:
        yield s


def make_session_mock(scalar=None, scalars=None, scalar_count=0, rows=None, first=None, rowcount=0):
    """Build an async session mock."""
    session = AsyncMock()

    async def _execute(stmt, *args, **kwargs):
        result = MagicMock()
        result.scalar_one_or_none.return_value = scalar
        result.scalar_one.return_value = scalar_count
        result.scalars.return_value.all.return_value = scalars or []
        result.all.return_value = rows or []
        result.first.return_value = first
        result.rowcount = rowcount
        return result

    session.execute = _execute
    session.commit = AsyncMock()
    session.refresh = AsyncMock()
    session.delete = AsyncMock()
    session.add = MagicMock()
    session.rollback = AsyncMock()
    return session


def override_session(app, session):
    """Override the database session dependency on the app."""

    async def _get_session():
        yield session

    app.dependency_overrides[get_session] = _get_session
    return app


def override_notifier(app, notifier):
    app.dependency_overrides[get_notifier] = lambda: notifier


def override_verifier(app, verifier):
    app.dependency_overrides[get_verification_router] = lambda: verifier


def override_ingester(app, ingester):
    app.dependency_overrides[get_ingester] = lambda: ingester


def _headers(settings: Settings, roles: list[str], brand_id: uuid.UUID | None) -> dict:
    token = create_access_token("user_test", brand_id, roles, settings)
    return {"Authorization": f"Bearer {token}"}


def make_admin_headers(settings: Settings, brand_id: uuid.UUID | None = BRAND_ID) -> dict:
    return _headers(settings, ["admin"], brand_id)


def make_editor_headers(settings: Settings, brand_id: uuid.UUID | None = BRAND_ID) -> dict:
    return _headers(settings, ["editor"], brand_id)


def make_viewer_headers(settings: Settings, brand_id: uuid.UUID | None = BRAND_ID) -> dict:
    return _headers(settings, ["viewer"], brand_id)


def make_certification(**overrides):
    """MagicMock standing in for a Certification row, with every response field set."""
    cert = MagicMock()
    values = {
        "id": uuid.uuid4(),
        "supplier_id": uuid.uuid4(),
        "certification_type": "SA8000",
        "certification_name": "SA8000 Social Accountability",
        "issuing_body": "SAI",
        "certificate_number": "SA8000-2023-001",
        "issue_date": datetime(2024, 1, 1, tzinfo=timezone.utc),
        "expiry_date": datetime(2027, 1, 1, tzinfo=timezone.utc),
        "document_url": None,
        "status": "VALID",
        "verification_status": "UNVERIFIED",
        "verification_method": None,
        "verification_confidence": None,
        "verification_details": None,
        "verification_date": None,
        "last_verified_at": None,
        "needs_review": False,
        "created_at": datetime(2024, 1, 1, tzinfo=timezone.utc),
    }
    values.update(overrides)
    for key, value in values.items():
        setattr(cert, key, value)
    return cert


def make_supplier(**overrides):
    supplier = MagicMock()
    values = {
        "id": uuid.uuid4(),
        "brand_id": BRAND_ID,
        "external_user_id": None,
        "name": "Sample Textile Factory Ltd",
        "country": "Bangladesh",
        "address": None,
        "contact_email": "ops@factory.test",
        "contact_phone": None,
        "supplier_type": "MANUFACTURER",
        "verification_status": "UNVERIFIED",
        "verified_at": None,
        "verified_by": None,
        "created_at": datetime(2024, 1, 1, tzinfo=timezone.utc),
    }
    values.update(overrides)
    for key, value in values.items():
        setattr(supplier, key, value)
    return supplier


def override_database(app, database: Database):
    """Route the session dependency at a real (SQLite) database."""

    async def _get_session():
        async with database.session() as s:
            yield s

    app.dependency_overrides[get_session] = _get_session
    return app


async def seed_brand(session, brand_id: uuid.UUID = BRAND_ID, **overrides):
    from supplyvault.db.models import Brand

    values = {"id": brand_id, "company_name": "Acme Apparel", "email": "compliance@acme.test"}
    values.update(overrides)
    brand = Brand(**values)
    session.add(brand)
    await session.flush()
    return brand


async def seed_supplier(session, brand_id: uuid.UUID | None = BRAND_ID, **overrides):
    from supplyvault.db.models import Supplier

    values = {"brand_id": brand_id, "name": "Sample Textile Factory Ltd", "country": "Bangladesh"}
    values.update(overrides)
    supplier = Supplier(**values)
    session.add(supplier)
    await session.flush()
    return supplier


async def seed_certification(session, supplier_id: uuid.UUID, **overrides):
    from supplyvault.db.models import Certification

    values = {
        "supplier_id": supplier_id,
        "certification_type": "SA8000",
        "certification_name": "SA8000 Social Accountability",
        "issuing_body": "SAI",
        "certificate_number": "SA8000-2023-001",
        "issue_date": datetime(2024, 1, 1, tzinfo=timezone.utc),
        "expiry_date": datetime(2030, 1, 1, tzinfo=timezone.utc),
    }
    values.update(overrides)
    certification = Certification(**values)
    session.add(certification)
    await session.flush()
    return certification
