# hure_core/api/v1/auth.py
from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from hure_core.api.deps.auth import SuperAdmin, get_current_superadmin
from hure_core.core.audit import Actor, AuditType, Target, log_audit
from hure_core.core.config import settings
from hure_core.core.security import (
    create_access_token,
    create_first_login_token,
    hash_password,
    verify_first_login_token,
    verify_password,
)
from hure_core.core.validators import MIN_PASSWORD_LENGTH, is_blank, normalize_email
from hure_core.db.session import get_db
from hure_core.models.clinic import CLINIC_STATUS_ACTIVE, CLINIC_STATUS_SUSPENDED, Clinic
from hure_core.models.user import User
from hure_core.schemas.auth import (
    AuthUser,
    FirstLoginRequest,
    LoginRequest,
    ResendActivationRequest,
    TokenResponse,
    VerifyTokenResponse,
)
from hure_core.schemas.base import ActionResult
from hure_core.services.email import send_activation_email

router = APIRouter(prefix="/auth", tags=["auth"])


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_aware(dt: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes; everything is stored in UTC
    if dt is not None and dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def first_login_url(token: str) -> str:
    return f"{settings.APP_URL.rstrip('/')}/first-login?token={token}"


async def issue_first_login_token(db: AsyncSession, clinic: Clinic) -> str:
    """
    Mint a first-login token for the clinic owner and store it on the owner row.
    Caller commits.
    """
    owner = (
        await db.execute(
            select(User).where(User.clinic_id == clinic.id).where(User.role == "owner")
        )
    ).scalar_one_or_none()
    if owner is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Owner not found")

    token = create_first_login_token(str(clinic.id), owner.email)
    owner.first_login_token = token
    owner.first_login_token_expires = _utcnow() + timedelta(hours=settings.FIRST_LOGIN_TOKEN_EXPIRE_HOURS)
    return token


def _auth_user(user: User, clinic: Clinic | None) -> AuthUser:
    return AuthUser(
        id=user.id,
        email=user.email,
        username=user.username,
        role=user.role,
        clinic_id=clinic.id if clinic else user.clinic_id,
        clinic_name=clinic.name if clinic else None,
    )


async def _owner_for_first_login(db: AsyncSession, claims: dict) -> User | None:
    try:
        clinic_id = uuid.UUID(str(claims.get("clinicId")))
    except ValueError:
        return None
    stmt = (
        select(User)
        .where(User.clinic_id == clinic_id)
        .where(User.email == normalize_email(claims.get("email")))
        .where(User.role == "owner")
    )
    return (await db.execute(stmt)).scalar_one_or_none()


@router.post("/first-login", response_model=TokenResponse)
async def first_login(payload: FirstLoginRequest, db: AsyncSession = Depends(get_db)):
    """
    Owner trades the activation link + temporary password for a username and permanent password.
    """
    if any(is_blank(v) for v in (payload.token, payload.temp_password, payload.new_password, payload.username)):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="All fields are required")

    if len(payload.new_password) < MIN_PASSWORD_LENGTH:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
        )

    try:
        username = User.normalize_username(payload.username)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    claims = verify_first_login_token(payload.token)
    if claims is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")

    user = await _owner_for_first_login(db, claims)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    if user.password_set:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Password already set. Please use regular login.",
        )

    if user.first_login_token != payload.token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    expires = _as_aware(user.first_login_token_expires)
    if expires is None or expires < _utcnow():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token has expired. Please contact support.")

    if not verify_password(payload.temp_password, user.temp_password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Incorrect temporary password")

    taken = (
        await db.execute(select(User.id).where(User.username == username).where(User.id != user.id))
    ).scalar_one_or_none()
    if taken is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already taken")

    user.username = username
    user.password_hash = hash_password(payload.new_password)
    user.password_set = True
    user.first_login_token = None
    user.first_login_token_expires = None
    user.temp_password_hash = None
    user.temp_password_expires = None
    user.last_login_at = _utcnow()

    clinic = await db.get(Clinic, user.clinic_id)

    log_audit(
        db,
        AuditType.FIRST_LOGIN_COMPLETED,
        Actor(id=str(user.id), role="owner", name=username),
        Target(entity="user", id=str(user.id), name=username),
        {"clinicId": str(user.clinic_id)},
    )
    await db.commit()

    token = create_access_token(
        subject=str(user.id),
        email=user.email,
        role=user.role,
        name=username,
        clinic_id=str(user.clinic_id),
    )
    return TokenResponse(
        success=True,
        message="Account setup complete! You can now log in.",
        token=token,
        user=_auth_user(user, clinic),
    )


@router.post("/login", response_model=TokenResponse)
async def login(payload: LoginRequest, db: AsyncSession = Depends(get_db)):
    if is_blank(payload.identifier) or not payload.password:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Username/email and password required")

    identifier = payload.identifier.strip().lower()
    stmt = select(User).where(or_(func.lower(User.email) == identifier, User.username == identifier))
    user = (await db.execute(stmt)).scalar_one_or_none()
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    if not user.password_set or not user.password_hash:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": "Please complete first-time login setup first", "needsFirstLogin": True},
        )

    clinic = await db.get(Clinic, user.clinic_id) if user.clinic_id else None
    if clinic is not None and clinic.status == CLINIC_STATUS_SUSPENDED:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Your clinic account is suspended")

    if not verify_password(payload.password, user.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    user.last_login_at = _utcnow()
    await db.commit()

    token = create_access_token(
        subject=str(user.id),
        email=user.email,
        role=user.role,
        name=user.username,
        clinic_id=str(user.clinic_id) if user.clinic_id else None,
    )
    return TokenResponse(success=True, token=token, user=_auth_user(user, clinic))


@router.get("/verify-token", response_model=VerifyTokenResponse)
async def verify_token(token: str = Query(default=""), db: AsyncSession = Depends(get_db)):
    """
    Used by the first-login page before showing the form.
    """
    if not token:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Token required")

    claims = verify_first_login_token(token)
    if claims is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")

    user = await _owner_for_first_login(db, claims)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    if user.password_set:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Account already set up")

    if user.first_login_token != token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token mismatch")

    expires = _as_aware(user.first_login_token_expires)
    if expires is None or expires < _utcnow():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token expired")

    clinic = await db.get(Clinic, user.clinic_id)
    return VerifyTokenResponse(valid=True, email=user.email, clinic_name=clinic.name if clinic else None)


@router.post("/resend-activation", response_model=ActionResult)
async def resend_activation(
    payload: ResendActivationRequest,
    db: AsyncSession = Depends(get_db),
    admin: SuperAdmin = Depends(get_current_superadmin),
):
    if payload.clinic_id is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Clinic ID required")

    clinic = await db.get(Clinic, payload.clinic_id)
    if clinic is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Clinic not found")

    if clinic.status != CLINIC_STATUS_ACTIVE:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Clinic must be active to resend activation")

    owner = (
        await db.execute(select(User).where(User.clinic_id == clinic.id).where(User.role == "owner"))
    ).scalar_one_or_none()
    if owner is not None and owner.password_set:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="User already completed setup")

    token = await issue_first_login_token(db, clinic)
    log_audit(
        db,
        AuditType.ACTIVATION_RESENT,
        admin.as_actor(),
        Target(entity="clinic", id=str(clinic.id), name=clinic.name),
    )
    await db.commit()

    await send_activation_email(clinic.email, clinic.name, first_login_url(token))
    return ActionResult(success=True, message="Activation email resent")
