"""Tests for the certification endpoints."""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from supplyvault.db.models import Certification
from supplyvault.db.models.enums import VerificationMethod, VerificationStatus
from supplyvault.verification.base import VerificationResult
from tests.conftest import (
    make_editor_headers,
    make_session_mock,
    make_viewer_headers,
    override_database,
    override_session,
    override_verifier,
    seed_brand,
    seed_certification,
    seed_supplier,
)

OTHER_BRAND = uuid.UUID("33333333-3333-4333-8333-333333333333")


def _iso(days: int) -> str:
    return (datetime.now(timezone.utc) + timedelta(days=days)).isoformat()


class TestCreateCertification:
    @pytest.mark.asyncio
    async def test_create(self, app, client, settings, db, session):
        await seed_brand(session)
        supplier = await seed_supplier(session)
        await session.commit()
        override_database(app, db)

        resp = await client.post(
            "/api/v1/certifications",
            json={
                "supplier_id": str(supplier.id),
                "certification_type": "GOTS",
                "certification_name": "Global Organic Textile Standard",
                "issuing_body": "Control Union",
                "certificate_number": "CU-123456",
                "issue_date": _iso(-300),
                "expiry_date": _iso(20),
            },
            headers=make_editor_headers(settings),
        )

        assert resp.status_code == 201
        data = resp.json()
        assert data["certification_type"] == "GOTS"
        assert data["status"] == "EXPIRING_SOON"
        assert data["verification_status"] == "UNVERIFIED"
        assert data["needs_review"] is False

    @pytest.mark.asyncio
    async def test_expiry_before_issue_is_400(self, app, client, settings):
        override_session(app, make_session_mock())
        resp = await client.post(
            "/api/v1/certifications",
            json={
                "supplier_id": str(uuid.uuid4()),
                "certification_type": "SA8000",
                "certification_name": "SA8000",
                "issuing_body": "SAI",
                "issue_date": _iso(10),
                "expiry_date": _iso(-10),
            },
            headers=make_editor_headers(settings),
        )
        assert resp.status_code == 400
        assert "expiry_date must be after issue_date" in resp.json()["error"]

    @pytest.mark.asyncio
    async def test_naive_issue_date_with_aware_expiry(self, app, client, settings, db, session):
        await seed_brand(session)
        supplier = await seed_supplier(session)
        await session.commit()
        override_database(app, db)

        resp = await client.post(
            "/api/v1/certifications",
            json={
                "supplier_id": str(supplier.id),
                "certification_type": "SA8000",
                "certification_name": "SA8000",
                "issuing_body": "SAI",
                "issue_date": "2025-01-01T00:00:00",
                "expiry_date": "2027-01-01T00:00:00Z",
            },
            headers=make_editor_headers(settings),
        )

        assert resp.status_code == 201
        assert resp.json()["issue_date"].startswith("2025-01-01T00:00:00")

    @pytest.mark.asyncio
    async def test_naive_dates_out_of_order_is_400(self, app, client, settings):
        override_session(app, make_session_mock())
        resp = await client.post(
            "/api/v1/certifications",
            json={
                "supplier_id": str(uuid.uuid4()),
                "certification_type": "SA8000",
                "certification_name": "SA8000",
                "issuing_body": "SAI",
                "issue_date": "2027-06-01T00:00:00",
                "expiry_date": "2027-01-01T00:00:00+00:00",
            },
            headers=make_editor_headers(settings),
        )
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_foreign_supplier_is_404(self, app, client, settings):
        override_session(app, make_session_mock(scalar=None))
        resp = await client.post(
            "/api/v1/certifications",
            json={
                "supplier_id": str(uuid.uuid4()),
                "certification_type": "SA8000",
                "certification_name": "SA8000",
                "issuing_body": "SAI",
                "issue_date": _iso(-10),
                "expiry_date": _iso(300),
            },
            headers=make_editor_headers(settings),
        )
        assert resp.status_code == 404
        assert resp.json() == {"error": "Supplier not found"}

    @pytest.mark.asyncio
    async def test_viewer_cannot_create(self, app, client, settings):
        override_session(app, make_session_mock())
        resp = await client.post(
            "/api/v1/certifications",
            json={
                "supplier_id": str(uuid.uuid4()),
                "certification_type": "SA8000",
                "certification_name": "SA8000",
                "issuing_body": "SAI",
                "issue_date": _iso(-10),
                "expiry_date": _iso(300),
            },
            headers=make_viewer_headers(settings),
        )
        assert resp.status_code == 403


class TestGetUpdateDelete:
    @pytest.mark.asyncio
    async def test_get_missing_is_404(self, app, client, settings):
        override_session(app, make_session_mock(first=None))
        resp = await client.get(
            f"/api/v1/certifications/{uuid.uuid4()}", headers=make_viewer_headers(settings)
        )
        assert resp.status_code == 404
        assert resp.json() == {"error": "Certification not found"}

    @pytest.mark.asyncio
    async def test_other_brand_cannot_read(self, app, client, settings, db, session):
        await seed_brand(session, OTHER_BRAND, company_name="Other", email="o@other.test")
        supplier = await seed_supplier(session, OTHER_BRAND)
        cert = await seed_certification(session, supplier.id)
        await session.commit()
        override_database(app, db)

        resp = await client.get(
            f"/api/v1/certifications/{cert.id}", headers=make_viewer_headers(settings)
        )
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_patch_recomputes_status(self, app, client, settings, db, session):
        await seed_brand(session)
        supplier = await seed_supplier(session)
        cert = await seed_certification(session, supplier.id)
        await session.commit()
        override_database(app, db)

        resp = await client.patch(
            f"/api/v1/certifications/{cert.id}",
            json={"expiry_date": _iso(-1), "certificate_number": "SA8000-NEW"},
            headers=make_editor_headers(settings),
        )

        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "EXPIRED"
        assert data["certificate_number"] == "SA8000-NEW"
        assert data["certification_name"] == "SA8000 Social Accountability"

    @pytest.mark.asyncio
    async def test_patch_null_clears_optional_fields(self, app, client, settings, db, session):
        await seed_brand(session)
        supplier = await seed_supplier(session)
        cert = await seed_certification(
            session, supplier.id, document_url="https://files.test/sa8000.pdf"
        )
        await session.commit()
        override_database(app, db)

        resp = await client.patch(
            f"/api/v1/certifications/{cert.id}",
            json={"certificate_number": None, "document_url": None},
            headers=make_editor_headers(settings),
        )

        assert resp.status_code == 200
        data = resp.json()
        assert data["certificate_number"] is None
        assert data["document_url"] is None
        assert data["issuing_body"] == "SAI"

    @pytest.mark.asyncio
    async def test_patch_null_required_field_is_400(self, app, client, settings):
        override_session(app, make_session_mock())
        resp = await client.patch(
            f"/api/v1/certifications/{uuid.uuid4()}",
            json={"certification_name": None},
            headers=make_editor_headers(settings),
        )
        assert resp.status_code == 400
        assert "certification_name cannot be null" in resp.json()["error"]

    @pytest.mark.asyncio
    async def test_patch_expiry_before_stored_issue_is_400(self, app, client, settings, db, session):
        await seed_brand(session)
        supplier = await seed_supplier(session)
        cert = await seed_certification(session, supplier.id)
        await session.commit()
        override_database(app, db)

        resp = await client.patch(
            f"/api/v1/certifications/{cert.id}",
            json={"expiry_date": "2023-06-01T00:00:00"},
            headers=make_editor_headers(settings),
        )

        assert resp.status_code == 400
        assert resp.json() == {"error": "expiry_date must be after issue_date"}

    @pytest.mark.asyncio
    async def test_delete(self, app, client, settings, db, session):
        await seed_brand(session)
        supplier = await seed_supplier(session)
        cert = await seed_certification(session, supplier.id)
        await session.commit()
        override_database(app, db)

        resp = await client.delete(
            f"/api/v1/certifications/{cert.id}", headers=make_editor_headers(settings)
        )

        assert resp.status_code == 204
        async with db.session() as check:
            assert await check.get(Certification, cert.id) is None


class TestVerify:
    @pytest.mark.asyncio
    async def test_verify_stores_result(self, app, client, settings, db, session):
        await seed_brand(session)
        supplier = await seed_supplier(session)
        cert = await seed_certification(session, supplier.id)
        await session.commit()
        override_database(app, db)
        verifier = MagicMock()
        verifier.verify = AsyncMock(
            return_value=VerificationResult(
                status=VerificationStatus.VERIFIED,
                method=VerificationMethod.LIST_MATCHING,
                confidence=0.95,
                verified=True,
                details={"matched_name": "Sample Textile Factory Ltd"},
            )
        )
        override_verifier(app, verifier)

        resp = await client.post(
            f"/api/v1/certifications/{cert.id}/verify", headers=make_editor_headers(settings)
        )

        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "VERIFIED"
        assert data["needs_review"] is False
        cert_type, request = verifier.verify.call_args.args
        assert cert_type == "SA8000"
        assert request.company_name == "Sample Textile Factory Ltd"
        assert request.certificate_number == "SA8000-2023-001"

        async with db.session() as check:
            stored = await check.get(Certification, cert.id)
            assert stored.verification_status == "VERIFIED"
            assert stored.verification_method == "LIST_MATCHING"
            assert stored.last_verified_at is not None

    @pytest.mark.asyncio
    async def test_pending_result_flags_review(self, app, client, settings, db, session):
        await seed_brand(session)
        supplier = await seed_supplier(session)
        cert = await seed_certification(session, supplier.id, certification_type="BSCI")
        await session.commit()
        override_database(app, db)
        verifier = MagicMock()
        verifier.verify = AsyncMock(
            return_value=VerificationResult(
                status=VerificationStatus.PENDING,
                method=VerificationMethod.MANUAL,
                confidence=0.0,
                verified=False,
                details={"notes": "Manual review required."},
            )
        )
        override_verifier(app, verifier)

        resp = await client.post(
            f"/api/v1/certifications/{cert.id}/verify", headers=make_editor_headers(settings)
        )

        assert resp.json()["needs_review"] is True


class TestReview:
    async def _flagged(self, session):
        await seed_brand(session)
        supplier = await seed_supplier(session)
        cert = await seed_certification(
            session, supplier.id, verification_status="PENDING", needs_review=True
        )
        await session.commit()
        return cert

    @pytest.mark.asyncio
    async def test_approve_with_corrections(self, app, client, settings, db, session):
        cert = await self._flagged(session)
        override_database(app, db)

        resp = await client.post(
            f"/api/v1/certifications/{cert.id}/review",
            json={
                "action": "approve",
                "notes": "Checked with auditor",
                "updated_data": {"certificate_number": "SA-FIXED"},
            },
            headers=make_editor_headers(settings),
        )

        assert resp.status_code == 200
        data = resp.json()
        assert data["verification_status"] == "VERIFIED"
        assert data["verification_method"] == "MANUAL"
        assert data["verification_confidence"] == 1.0
        assert data["needs_review"] is False
        assert data["certificate_number"] == "SA-FIXED"
        assert data["verification_details"]["notes"] == "Checked with auditor"
        assert data["verification_details"]["reviewed_by"] == "user_test"

    @pytest.mark.asyncio
    async def test_reject(self, app, client, settings, db, session):
        cert = await self._flagged(session)
        override_database(app, db)

        resp = await client.post(
            f"/api/v1/certifications/{cert.id}/review",
            json={"action": "reject"},
            headers=make_editor_headers(settings),
        )

        data = resp.json()
        assert data["verification_status"] == "FAILED"
        assert data["verification_confidence"] == 0.0
        assert data["verification_details"]["notes"] == "Manually rejected"
        assert data["needs_review"] is False

    @pytest.mark.asyncio
    async def test_approve_with_reversed_dates_is_400(self, app, client, settings):
        override_session(app, make_session_mock())
        resp = await client.post(
            f"/api/v1/certifications/{uuid.uuid4()}/review",
            json={
                "action": "approve",
                "updated_data": {
                    "issue_date": "2026-01-01T00:00:00",
                    "expiry_date": "2025-01-01T00:00:00Z",
                },
            },
            headers=make_editor_headers(settings),
        )
        assert resp.status_code == 400
        assert "expiry_date must be after issue_date" in resp.json()["error"]

    @pytest.mark.asyncio
    async def test_unknown_action_is_400(self, app, client, settings):
        override_session(app, make_session_mock())
        resp = await client.post(
            f"/api/v1/certifications/{uuid.uuid4()}/review",
            json={"action": "escalate"},
            headers=make_editor_headers(settings),
        )
        assert resp.status_code == 400


class TestReviewQueue:
    @pytest.mark.asyncio
    async def test_pending_only_by_default(self, app, client, settings, db, session):
        await seed_brand(session)
        supplier = await seed_supplier(session)
        flagged = await seed_certification(session, supplier.id, needs_review=True)
        await seed_certification(session, supplier.id, certificate_number="OTHER")
        await session.commit()
        override_database(app, db)

        resp = await client.get("/api/v1/certifications/review", headers=make_viewer_headers(settings))

        assert resp.status_code == 200
        data = resp.json()
        assert data["total"] == 1
        assert data["items"][0]["id"] == str(flagged.id)

    @pytest.mark.asyncio
    async def test_all_lists_flagged_first(self, app, client, settings, db, session):
        await seed_brand(session)
        supplier = await seed_supplier(session)
        flagged = await seed_certification(session, supplier.id, needs_review=True)
        await seed_certification(session, supplier.id, certificate_number="NEWER")
        await session.commit()
        override_database(app, db)

        resp = await client.get(
            "/api/v1/certifications/review",
            params={"status": "all"},
            headers=make_viewer_headers(settings),
        )

        data = resp.json()
        assert data["total"] == 2
        assert data["items"][0]["id"] == str(flagged.id)

    @pytest.mark.asyncio
    async def test_invalid_status_is_400(self, app, client, settings):
        override_session(app, make_session_mock())
        resp = await client.get(
            "/api/v1/certifications/review",
            params={"status": "bogus"},
            headers=make_viewer_headers(settings),
        )
        assert resp.status_code == 400
