# hure_core/api/v1/onboard.py
from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from hure_core.core.audit import ONBOARDING_ACTOR, Actor, AuditType, Target, log_audit
from hure_core.core.config import settings
from hure_core.core.plans import Product, get_plan_details, get_plan_price, is_bundle
from hure_core.core.security import generate_otp_code, hash_password
from hure_core.core.validators import (
    MIN_TEMP_PASSWORD_LENGTH,
    is_blank,
    is_valid_email,
    normalize_email,
)
from hure_core.db.session import get_db
from hure_core.models.clinic import (
    CLINIC_STATUS_PENDING_ACTIVATION,
    CLINIC_STATUS_PENDING_PAYMENT,
    CLINIC_STATUS_PENDING_VERIFICATION,
    Clinic,
)
from hure_core.models.otp_code import OtpCode
from hure_core.models.subscription import SUBSCRIPTION_STATUS_PENDING, Subscription
from hure_core.models.user import User
from hure_core.schemas.base import ActionResult
from hure_core.schemas.onboard import (
    ClinicCreate,
    ClinicCreated,
    ClinicSummary,
    OtpVerified,
    PaymentSkipped,
    SkipPaymentRequest,
    TempPasswordRequest,
    VerifyEmailRequest,
    VerifyOtpRequest,
)
from hure_core.schemas.plans import PriceQuoteOut
from hure_core.services.email import send_otp_email

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/onboard", tags=["onboarding"])

DEV_MODE_ACTOR = Actor(id="system", role="system", name="Dev Mode")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


async def _get_clinic_or_404(db: AsyncSession, clinic_id: uuid.UUID) -> Clinic:
    clinic = await db.get(Clinic, clinic_id)
    if clinic is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Clinic not found")
    return clinic


def _require_clinic_email(clinic: Clinic, email: str) -> None:
    # the owner account and OTPs are bound to the address the clinic registered with
    if email != clinic.email:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email does not match clinic registration")


# ---------------------------------------------------------
# Step 2: business details -> pending clinic
# ---------------------------------------------------------
@router.post("/clinic", response_model=ClinicCreated, status_code=status.HTTP_201_CREATED)
async def create_clinic(payload: ClinicCreate, db: AsyncSession = Depends(get_db)):
    if is_blank(payload.name) or is_blank(payload.email):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Name and email are required")

    email = normalize_email(payload.email)
    if not is_valid_email(email):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Please enter a valid email")

    modules = [m.strip().lower() for m in payload.modules if m and m.strip()] or [Product.CORE.value]
    unknown = set(modules) - {p.value for p in Product}
    if unknown:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Unknown modules: {sorted(unknown)}")

    # bundles are priced from the core tier
    bundle = is_bundle(modules)
    plan_product = Product.CORE.value if bundle else payload.plan_product
    if get_plan_details(plan_product, payload.plan_key) is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown plan {plan_product}/{payload.plan_key}",
        )

    existing = (await db.execute(select(Clinic.id).where(Clinic.email == email))).scalar_one_or_none()
    if existing is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")

    clinic = Clinic(
        name=payload.name.strip(),
        town=payload.town,
        country=payload.country or "Kenya",
        contact_name=payload.contact_name,
        email=email,
        phone=payload.phone,
        business_license=payload.business_license,
        modules=modules,
        plan_key=payload.plan_key,
        plan_product=plan_product,
        is_bundle=bundle,
        status=CLINIC_STATUS_PENDING_VERIFICATION,
    )
    db.add(clinic)
    await db.flush()

    log_audit(
        db,
        AuditType.CLINIC_CREATED,
        ONBOARDING_ACTOR,
        Target(entity="clinic", id=str(clinic.id), name=clinic.name),
        {"modules": modules, "planKey": clinic.plan_key, "isBundle": bundle},
    )
    await db.commit()

    return ClinicCreated(
        success=True,
        clinic_id=clinic.id,
        message="Clinic created. Please set a temporary password.",
    )


# ---------------------------------------------------------
# Step 3: temporary password for the clinic owner
# ---------------------------------------------------------
@router.post("/temp-password", response_model=ActionResult)
async def set_temp_password(payload: TempPasswordRequest, db: AsyncSession = Depends(get_db)):
    if payload.clinic_id is None or is_blank(payload.email) or not payload.password:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing required fields")

    if len(payload.password) < MIN_TEMP_PASSWORD_LENGTH:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Password must be at least {MIN_TEMP_PASSWORD_LENGTH} characters",
        )

    clinic = await _get_clinic_or_404(db, payload.clinic_id)

    email = normalize_email(payload.email)
    _require_clinic_email(clinic, email)

    hashed = hash_password(payload.password)
    expires_at = _utcnow() + timedelta(hours=settings.TEMP_PASSWORD_EXPIRE_HOURS)

    # one owner per clinic; a repeated step 3 replaces the temp password
    user = (
        await db.execute(select(User).where(User.clinic_id == clinic.id, User.role == "owner"))
    ).scalar_one_or_none()
    if user is None:
        taken = (await db.execute(select(User.id).where(User.email == email))).scalar_one_or_none()
        if taken is not None:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")
        user = User(clinic_id=clinic.id, email=email, role="owner")
        db.add(user)

    user.temp_password_hash = hashed
    user.temp_password_expires = expires_at

    log_audit(
        db,
        AuditType.TEMP_PASSWORD_SET,
        ONBOARDING_ACTOR,
        Target(entity="clinic", id=str(clinic.id), name=clinic.name),
        {"email": email},
    )
    await db.commit()

    return ActionResult(success=True, message="Temporary password set. Please verify your email.")


# ---------------------------------------------------------
# Step 3 -> 4: send OTP (also used for "resend")
# ---------------------------------------------------------
@router.post("/verify-email", response_model=ActionResult)
async def send_verification_code(payload: VerifyEmailRequest, db: AsyncSession = Depends(get_db)):
    if payload.clinic_id is None or is_blank(payload.email):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing required fields")

    clinic = await _get_clinic_or_404(db, payload.clinic_id)
    email = normalize_email(payload.email)
    _require_clinic_email(clinic, email)

    code = generate_otp_code()
    db.add(
        OtpCode(
            clinic_id=clinic.id,
            email=email,
            code=code,
            expires_at=_utcnow() + timedelta(minutes=settings.OTP_EXPIRE_MINUTES),
        )
    )
    log_audit(
        db,
        AuditType.OTP_SENT,
        ONBOARDING_ACTOR,
        Target(entity="clinic", id=str(clinic.id), name=clinic.name),
        {"email": email},
    )
    await db.commit()

    await send_otp_email(email, code, clinic.name)

    return ActionResult(success=True, message="Verification code sent to email")


# ---------------------------------------------------------
# Step 4: OTP check -> pending payment
# ---------------------------------------------------------
@router.post("/verify-otp", response_model=OtpVerified)
async def verify_otp(payload: VerifyOtpRequest, db: AsyncSession = Depends(get_db)):
    code = (payload.code or "").strip()
    if payload.clinic_id is None or not code:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing required fields")

    stmt = (
        select(OtpCode)
        .where(OtpCode.clinic_id == payload.clinic_id)
        .where(OtpCode.code == code)
        .where(OtpCode.used.is_(False))
        .where(OtpCode.expires_at >= _utcnow())
        .order_by(OtpCode.created_at.desc())
        .limit(1)
    )
    otp = (await db.execute(stmt)).scalar_one_or_none()
    if otp is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid or expired code")

    clinic = await _get_clinic_or_404(db, payload.clinic_id)

    # One-time use: burn every outstanding code for this clinic
    await db.execute(
        update(OtpCode)
        .where(OtpCode.clinic_id == clinic.id)
        .where(OtpCode.used.is_(False))
        .values(used=True)
    )
    clinic.email_verified = True
    if clinic.status == CLINIC_STATUS_PENDING_VERIFICATION:
        clinic.status = CLINIC_STATUS_PENDING_PAYMENT

    log_audit(
        db,
        AuditType.EMAIL_VERIFIED,
        ONBOARDING_ACTOR,
        Target(entity="clinic", id=str(clinic.id), name=clinic.name),
    )
    await db.commit()

    pricing = get_plan_price(clinic.modules, clinic.plan_key)
    return OtpVerified(
        success=True,
        message="Email verified. Proceed to payment.",
        pricing=PriceQuoteOut.from_quote(pricing),
        clinic=ClinicSummary(
            id=clinic.id,
            name=clinic.name,
            modules=list(clinic.modules or []),
            plan_key=clinic.plan_key,
            is_bundle=clinic.is_bundle,
        ),
    )


# ---------------------------------------------------------
# Step 5 (dev only): skip payment -> pending activation
# ---------------------------------------------------------
@router.post("/skip-payment", response_model=PaymentSkipped)
async def skip_payment(payload: SkipPaymentRequest, db: AsyncSession = Depends(get_db)):
    if not settings.allow_skip_payment:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not available in production")

    if payload.clinic_id is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Clinic ID required")

    clinic = await _get_clinic_or_404(db, payload.clinic_id)

    if not clinic.email_verified:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email not verified")

    pricing = get_plan_price(clinic.modules, clinic.plan_key)
    if pricing.final_amount <= 0:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Plan is not priced")

    db.add(
        Subscription(
            clinic_id=clinic.id,
            plan_key=clinic.plan_key,
            plan_product=clinic.plan_product,
            modules=list(clinic.modules or []),
            is_bundle=clinic.is_bundle,
            status=SUBSCRIPTION_STATUS_PENDING,
            base_amount=pricing.base_amount,
            discount_percent=pricing.discount_percent,
            final_amount=pricing.final_amount,
            auto_renew=True,
            trial_ends_at=_utcnow() + timedelta(days=settings.TRIAL_DAYS),
        )
    )
    clinic.status = CLINIC_STATUS_PENDING_ACTIVATION

    log_audit(
        db,
        AuditType.PAYMENT_SKIPPED_DEV,
        DEV_MODE_ACTOR,
        Target(entity="clinic", id=str(clinic.id), name=clinic.name),
        {"note": "Payment skipped for development testing"},
    )
    await db.commit()

    logger.warning("DEV: payment skipped for clinic %s (%s)", clinic.name, clinic.id)

    return PaymentSkipped(
        success=True,
        message="Payment skipped. Clinic is now pending activation.",
        clinic_id=clinic.id,
        clinic_name=clinic.name,
    )
