# tests/test_onboarding_api.py
from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select

from hure_core.core.config import settings
from hure_core.models.audit_log import AuditLog
from hure_core.models.clinic import Clinic
from hure_core.models.otp_code import OtpCode
from hure_core.models.subscription import Subscription
from hure_core.models.user import User
from factories import BUSINESS, create_clinic, latest_otp


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


async def register(client, **overrides) -> str:
    body = {**BUSINESS, "modules": ["core", "care"], "planKey": "essential", "planProduct": "core", **overrides}
    resp = await client.post("/api/onboard/clinic", json=body)
    assert resp.status_code == 201, resp.text
    return resp.json()["clinicId"]


@pytest.mark.asyncio
async def test_full_onboarding_ends_pending_activation(client, db):
    clinic_id = await register(client)

    resp = await client.post(
        "/api/onboard/temp-password",
        json={"clinicId": clinic_id, "email": BUSINESS["email"], "password": "temp123"},
    )
    assert resp.status_code == 200, resp.text

    resp = await client.post("/api/onboard/verify-email", json={"clinicId": clinic_id, "email": BUSINESS["email"]})
    assert resp.status_code == 200
    assert resp.json()["success"] is True

    code = await latest_otp(db, clinic_id)
    resp = await client.post("/api/onboard/verify-otp", json={"clinicId": clinic_id, "code": code})
    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["pricing"] == {"baseAmount": 18000, "discountPercent": 20, "finalAmount": 14400, "isBundle": True}
    assert data["clinic"]["isBundle"] is True

    resp = await client.post("/api/onboard/skip-payment", json={"clinicId": clinic_id})
    assert resp.status_code == 200, resp.text
    assert resp.json()["clinicName"] == BUSINESS["name"]

    clinic = await db.get(Clinic, uuid.UUID(clinic_id), populate_existing=True)
    assert clinic.status == "pending_activation"
    assert clinic.email_verified is True
    assert clinic.modules == ["core", "care"]

    sub = (await db.execute(select(Subscription).where(Subscription.clinic_id == clinic.id))).scalar_one()
    assert sub.status == "pending"
    assert (sub.base_amount, sub.discount_percent, sub.final_amount) == (18000, 20, 14400)
    assert sub.trial_ends_at is not None

    owner = (await db.execute(select(User).where(User.clinic_id == clinic.id))).scalar_one()
    assert owner.role == "owner"
    assert owner.temp_password_hash and owner.temp_password_hash != "temp123"
    assert owner.password_set is False

    types = set((await db.execute(select(AuditLog.type))).scalars().all())
    assert {"clinic_created", "temp_password_set", "otp_sent", "email_verified", "payment_skipped_dev"} <= types


@pytest.mark.asyncio
async def test_register_requires_name_and_email(client):
    resp = await client.post("/api/onboard/clinic", json={"name": "  ", "email": "a@b.co"})
    assert resp.status_code == 400
    assert resp.json() == {"success": False, "error": "Name and email are required"}


@pytest.mark.asyncio
async def test_register_rejects_bad_email_and_unknown_module(client):
    resp = await client.post("/api/onboard/clinic", json={"name": "X", "email": "not-an-email"})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Please enter a valid email"

    resp = await client.post("/api/onboard/clinic", json={"name": "X", "email": "x@y.co", "modules": ["payroll"]})
    assert resp.status_code == 400
    assert "payroll" in resp.json()["error"]


@pytest.mark.asyncio
async def test_register_duplicate_email_conflicts(client):
    await register(client)
    resp = await client.post(
        "/api/onboard/clinic",
        json={**BUSINESS, "email": BUSINESS["email"].upper()},
    )
    assert resp.status_code == 409
    assert resp.json() == {"success": False, "error": "Email already registered"}


@pytest.mark.asyncio
async def test_register_single_product_is_not_bundle(client, db):
    clinic_id = await register(client, modules=["care"], planKey="care_standard", planProduct="care")
    clinic = await db.get(Clinic, uuid.UUID(clinic_id))
    assert clinic.is_bundle is False
    assert clinic.status == "pending_verification"


@pytest.mark.asyncio
async def test_temp_password_validation(client):
    clinic_id = await register(client)

    resp = await client.post("/api/onboard/temp-password", json={"clinicId": clinic_id, "email": BUSINESS["email"]})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Missing required fields"

    resp = await client.post(
        "/api/onboard/temp-password",
        json={"clinicId": clinic_id, "email": BUSINESS["email"], "password": "12345"},
    )
    assert resp.status_code == 400
    assert resp.json()["error"] == "Password must be at least 6 characters"

    resp = await client.post(
        "/api/onboard/temp-password",
        json={"clinicId": str(uuid.uuid4()), "email": BUSINESS["email"], "password": "temp123"},
    )
    assert resp.status_code == 404
    assert resp.json()["error"] == "Clinic not found"


@pytest.mark.asyncio
async def test_malformed_clinic_id_is_a_400(client):
    resp = await client.post("/api/onboard/verify-email", json={"clinicId": "nope", "email": "a@b.co"})
    assert resp.status_code == 400
    assert resp.json()["success"] is False


@pytest.mark.asyncio
async def test_wrong_code_keeps_clinic_unverified(client, db):
    clinic_id = await register(client)
    await client.post("/api/onboard/verify-email", json={"clinicId": clinic_id, "email": BUSINESS["email"]})
    code = await latest_otp(db, clinic_id)
    wrong = "000000" if code != "000000" else "111111"

    resp = await client.post("/api/onboard/verify-otp", json={"clinicId": clinic_id, "code": wrong})
    assert resp.status_code == 400
    assert resp.json() == {"success": False, "error": "Invalid or expired code"}

    clinic = await db.get(Clinic, uuid.UUID(clinic_id), populate_existing=True)
    assert clinic.email_verified is False
    assert clinic.status == "pending_verification"


@pytest.mark.asyncio
async def test_expired_code_is_rejected(client, db):
    clinic = await create_clinic(db, status="pending_verification", email_verified=False)
    db.add(OtpCode(clinic_id=clinic.id, email=clinic.email, code="123456", expires_at=utcnow() - timedelta(minutes=1)))
    await db.commit()

    resp = await client.post("/api/onboard/verify-otp", json={"clinicId": str(clinic.id), "code": "123456"})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Invalid or expired code"


@pytest.mark.asyncio
async def test_code_is_single_use(client, db):
    clinic_id = await register(client)
    await client.post("/api/onboard/verify-email", json={"clinicId": clinic_id, "email": BUSINESS["email"]})
    await client.post("/api/onboard/verify-email", json={"clinicId": clinic_id, "email": BUSINESS["email"]})
    code = await latest_otp(db, clinic_id)

    resp = await client.post("/api/onboard/verify-otp", json={"clinicId": clinic_id, "code": code})
    assert resp.status_code == 200

    resp = await client.post("/api/onboard/verify-otp", json={"clinicId": clinic_id, "code": code})
    assert resp.status_code == 400

    unused = (
        await db.execute(
            select(func.count(OtpCode.id))
            .where(OtpCode.clinic_id == uuid.UUID(clinic_id))
            .where(OtpCode.used.is_(False))
        )
    ).scalar()
    assert unused == 0


@pytest.mark.asyncio
async def test_skip_payment_blocked_in_production(client, db, monkeypatch):
    clinic = await create_clinic(db, status="pending_payment")
    monkeypatch.setattr(settings, "ENVIRONMENT", "production")

    resp = await client.post("/api/onboard/skip-payment", json={"clinicId": str(clinic.id)})
    assert resp.status_code == 403
    assert resp.json() == {"success": False, "error": "Not available in production"}


@pytest.mark.asyncio
async def test_skip_payment_requires_verified_email(client, db):
    clinic = await create_clinic(db, status="pending_verification", email_verified=False)

    resp = await client.post("/api/onboard/skip-payment", json={"clinicId": str(clinic.id)})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Email not verified"

    resp = await client.post("/api/onboard/skip-payment", json={})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Clinic ID required"


@pytest.mark.asyncio
async def test_register_rejects_unknown_plan(client, db):
    resp = await client.post(
        "/api/onboard/clinic",
        json={**BUSINESS, "modules": ["care"], "planKey": "essential", "planProduct": "care"},
    )
    assert resp.status_code == 400
    assert resp.json() == {"success": False, "error": "Unknown plan care/essential"}

    # bundle tiers come from the core catalog whatever planProduct says
    resp = await client.post(
        "/api/onboard/clinic",
        json={**BUSINESS, "modules": ["core", "care"], "planKey": "care_standard", "planProduct": "care"},
    )
    assert resp.status_code == 400

    assert (await db.execute(select(func.count(Clinic.id)))).scalar() == 0


@pytest.mark.asyncio
async def test_repeated_temp_password_keeps_one_owner(client, db):
    clinic_id = await register(client)
    for password in ("temp123", "temp456"):
        resp = await client.post(
            "/api/onboard/temp-password",
            json={"clinicId": clinic_id, "email": BUSINESS["email"], "password": password},
        )
        assert resp.status_code == 200, resp.text

    owners = (
        await db.execute(select(User).where(User.clinic_id == uuid.UUID(clinic_id), User.role == "owner"))
    ).scalars().all()
    assert len(owners) == 1
    assert owners[0].email == BUSINESS["email"]


@pytest.mark.asyncio
async def test_owner_email_must_match_registration(client, db):
    clinic_id = await register(client)

    resp = await client.post(
        "/api/onboard/temp-password",
        json={"clinicId": clinic_id, "email": "other@sunrise.co.ke", "password": "temp123"},
    )
    assert resp.status_code == 400
    assert resp.json()["error"] == "Email does not match clinic registration"

    resp = await client.post("/api/onboard/verify-email", json={"clinicId": clinic_id, "email": "other@sunrise.co.ke"})
    assert resp.status_code == 400

    assert (await db.execute(select(func.count(User.id)))).scalar() == 0
    assert (await db.execute(select(func.count(OtpCode.id)))).scalar() == 0

    # case and padding are not a different address
    resp = await client.post(
        "/api/onboard/temp-password",
        json={"clinicId": clinic_id, "email": "  Owner@Sunrise.co.ke ", "password": "temp123"},
    )
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_skip_payment_refuses_unpriced_plan(client, db):
    clinic = await create_clinic(db, status="pending_payment", plan_key="legacy")

    resp = await client.post("/api/onboard/skip-payment", json={"clinicId": str(clinic.id)})
    assert resp.status_code == 400
    assert resp.json() == {"success": False, "error": "Plan is not priced"}

    clinic = await db.get(Clinic, clinic.id, populate_existing=True)
    assert clinic.status == "pending_payment"
    assert (await db.execute(select(func.count(Subscription.id)))).scalar() == 0
