# tests/factories.py
from __future__ import annotations

import uuid
from typing import Optional

from sqlalchemy import select

from hure_core.core.security import create_access_token, hash_password
from hure_core.models.clinic import Clinic
from hure_core.models.otp_code import OtpCode
from hure_core.models.user import User

BUSINESS = {
    "name": "Sunrise Medical Centre",
    "town": "Nakuru",
    "country": "Kenya",
    "contactName": "Wanjiru Kamau",
    "email": "owner@sunrise.co.ke",
    "phone": "+254700000001",
    "businessLicense": "LIC-001",
}


async def create_clinic(
    db,
    *,
    email: Optional[str] = None,
    status: str = "pending_activation",
    plan_key: str = "essential",
    plan_product: str = "core",
    modules: Optional[list[str]] = None,
    staff_count: int = 0,
    email_verified: bool = True,
) -> Clinic:
    modules = modules or ["core"]
    clinic = Clinic(
        name=f"Clinic {uuid.uuid4().hex[:6]}",
        email=email or f"clinic-{uuid.uuid4().hex[:8]}@example.com",
        phone="+254700000000",
        contact_name="Test Owner",
        modules=modules,
        plan_key=plan_key,
        plan_product=plan_product,
        is_bundle="core" in modules and "care" in modules,
        status=status,
        email_verified=email_verified,
        staff_count=staff_count,
    )
    db.add(clinic)
    await db.commit()
    return clinic


async def create_user(
    db,
    clinic: Clinic,
    *,
    role: str = "owner",
    email: Optional[str] = None,
    temp_password: Optional[str] = "temp123",
    password: Optional[str] = None,
    username: Optional[str] = None,
) -> User:
    user = User(
        clinic_id=clinic.id,
        email=email or clinic.email,
        role=role,
        username=username,
        temp_password_hash=hash_password(temp_password) if temp_password else None,
        password_hash=hash_password(password) if password else None,
        password_set=password is not None,
    )
    db.add(user)
    await db.commit()
    return user


def bearer_for(user: User) -> dict[str, str]:
    token = create_access_token(
        subject=str(user.id),
        email=user.email,
        role=user.role,
        name=user.username,
        clinic_id=str(user.clinic_id),
    )
    return {"Authorization": f"Bearer {token}"}


async def latest_otp(db, clinic_id) -> str:
    stmt = (
        select(OtpCode.code)
        .where(OtpCode.clinic_id == uuid.UUID(str(clinic_id)))
        .where(OtpCode.used.is_(False))
        .order_by(OtpCode.expires_at.desc())
        .limit(1)
    )
    return (await db.execute(stmt)).scalar_one()
