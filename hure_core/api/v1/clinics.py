# hure_core/api/v1/clinics.py
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from hure_core.api.deps.auth import SuperAdmin, get_current_superadmin
from hure_core.api.v1.auth import first_login_url, issue_first_login_token
from hure_core.core.audit import AuditType, Target, log_audit
from hure_core.core.plan_limits import TenantUsage, check_plan_limits
from hure_core.core.plans import PLAN_CATALOG, Product, get_plan_details, is_bundle
from hure_core.db.session import get_db
from hure_core.models.clinic import (
    CLINIC_STATUS_ACTIVE,
    CLINIC_STATUS_REJECTED,
    CLINIC_STATUS_SUSPENDED,
    CLINIC_STATUSES,
    Clinic,
)
from hure_core.models.subscription import (
    SUBSCRIPTION_STATUS_ACTIVE,
    SUBSCRIPTION_STATUS_PAUSED,
    Subscription,
)
from hure_core.schemas.base import ActionResult
from hure_core.schemas.clinic import (
    ActivationResult,
    ChangePlanRequest,
    ClinicDetailOut,
    ClinicListOut,
    ClinicResponse,
    ClinicStatsOut,
    ReasonRequest,
)
from hure_core.schemas.plans import LimitsOut, PlanOut
from hure_core.services.email import send_activation_email, send_suspension_email

router = APIRouter(prefix="/clinics", tags=["clinics"])


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def clinic_detail(clinic: Clinic) -> ClinicDetailOut:
    """
    Clinic row + its plan tier + the limit report for its current usage.
    """
    out = ClinicDetailOut.model_validate(clinic)
    plan = get_plan_details(clinic.plan_product, clinic.plan_key)
    if plan is not None:
        out.plan_details = PlanOut.from_tier(plan)
        out.limits = LimitsOut.from_report(check_plan_limits(TenantUsage.from_clinic(clinic), plan))
    return out


async def _get_clinic_or_404(db: AsyncSession, clinic_id: uuid.UUID) -> Clinic:
    clinic = await db.get(Clinic, clinic_id)
    if clinic is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Clinic not found")
    return clinic


async def _set_subscription_status(db: AsyncSession, clinic_id: uuid.UUID, new_status: str) -> None:
    await db.execute(
        update(Subscription).where(Subscription.clinic_id == clinic_id).values(status=new_status)
    )


# ---------------------------------------------------------
# Listing / stats
# ---------------------------------------------------------
@router.get("", response_model=ClinicListOut)
async def list_clinics(
    status_filter: Optional[str] = Query(default=None, alias="status"),
    search: Optional[str] = Query(default=None),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    db: AsyncSession = Depends(get_db),
    _admin: SuperAdmin = Depends(get_current_superadmin),
):
    filters = []
    if status_filter and status_filter != "all":
        if status_filter not in CLINIC_STATUSES:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Unknown status: {status_filter}")
        filters.append(Clinic.status == status_filter)
    if search:
        pattern = f"%{search.strip().lower()}%"
        filters.append(or_(func.lower(Clinic.name).like(pattern), func.lower(Clinic.email).like(pattern)))

    total = (await db.execute(select(func.count(Clinic.id)).where(*filters))).scalar() or 0

    stmt = (
        select(Clinic)
        .where(*filters)
        .order_by(Clinic.created_at.desc())
        .offset(offset)
        .limit(limit)
    )
    clinics = (await db.execute(stmt)).scalars().all()

    return ClinicListOut(
        clinics=[clinic_detail(c) for c in clinics],
        total=int(total),
        limit=limit,
        offset=offset,
    )


@router.get("/stats/overview", response_model=ClinicStatsOut)
async def clinic_stats(
    db: AsyncSession = Depends(get_db),
    _admin: SuperAdmin = Depends(get_current_superadmin),
):
    rows = (await db.execute(select(Clinic.status, Clinic.is_bundle, Clinic.modules))).all()

    return ClinicStatsOut(
        total=len(rows),
        pending=sum(1 for r in rows if r.status.startswith("pending")),
        active=sum(1 for r in rows if r.status == CLINIC_STATUS_ACTIVE),
        suspended=sum(1 for r in rows if r.status == CLINIC_STATUS_SUSPENDED),
        bundles=sum(1 for r in rows if r.is_bundle),
        core_only=sum(1 for r in rows if list(r.modules or []) == [Product.CORE.value]),
        care_only=sum(1 for r in rows if list(r.modules or []) == [Product.CARE.value]),
    )


@router.get("/{clinic_id}", response_model=ClinicResponse)
async def get_clinic(
    clinic_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    _admin: SuperAdmin = Depends(get_current_superadmin),
):
    clinic = await _get_clinic_or_404(db, clinic_id)
    return ClinicResponse(clinic=clinic_detail(clinic))


# ---------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------
@router.patch("/{clinic_id}/activate", response_model=ActivationResult)
async def activate_clinic(
    clinic_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    admin: SuperAdmin = Depends(get_current_superadmin),
):
    clinic = await _get_clinic_or_404(db, clinic_id)
    if clinic.status == CLINIC_STATUS_ACTIVE:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Clinic already active")

    token = await issue_first_login_token(db, clinic)
    clinic.status = CLINIC_STATUS_ACTIVE
    clinic.activated_at = _utcnow()
    await _set_subscription_status(db, clinic.id, SUBSCRIPTION_STATUS_ACTIVE)

    log_audit(
        db,
        AuditType.CLINIC_ACTIVATED,
        admin.as_actor(),
        Target(entity="clinic", id=str(clinic.id), name=clinic.name),
    )
    await db.commit()

    url = first_login_url(token)
    await send_activation_email(clinic.email, clinic.name, url)

    return ActivationResult(success=True, message="Clinic activated successfully", first_login_url=url)


@router.patch("/{clinic_id}/suspend", response_model=ActionResult)
async def suspend_clinic(
    clinic_id: uuid.UUID,
    payload: ReasonRequest,
    db: AsyncSession = Depends(get_db),
    admin: SuperAdmin = Depends(get_current_superadmin),
):
    clinic = await _get_clinic_or_404(db, clinic_id)

    clinic.status = CLINIC_STATUS_SUSPENDED
    clinic.suspend_reason = payload.reason or None
    await _set_subscription_status(db, clinic.id, SUBSCRIPTION_STATUS_PAUSED)

    log_audit(
        db,
        AuditType.CLINIC_SUSPENDED,
        admin.as_actor(),
        Target(entity="clinic", id=str(clinic.id), name=clinic.name),
        reason=payload.reason,
    )
    await db.commit()

    await send_suspension_email(clinic.email, clinic.name, payload.reason)
    return ActionResult(success=True, message="Clinic suspended")


@router.patch("/{clinic_id}/reject", response_model=ActionResult)
async def reject_clinic(
    clinic_id: uuid.UUID,
    payload: ReasonRequest,
    db: AsyncSession = Depends(get_db),
    admin: SuperAdmin = Depends(get_current_superadmin),
):
    clinic = await _get_clinic_or_404(db, clinic_id)
    if clinic.status == CLINIC_STATUS_ACTIVE:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Active clinics must be suspended, not rejected")

    clinic.status = CLINIC_STATUS_REJECTED
    clinic.reject_reason = payload.reason or None

    log_audit(
        db,
        AuditType.CLINIC_REJECTED,
        admin.as_actor(),
        Target(entity="clinic", id=str(clinic.id), name=clinic.name),
        reason=payload.reason,
    )
    await db.commit()

    return ActionResult(success=True, message="Clinic rejected")


@router.patch("/{clinic_id}/change-plan", response_model=ActionResult)
async def change_clinic_plan(
    clinic_id: uuid.UUID,
    payload: ChangePlanRequest,
    db: AsyncSession = Depends(get_db),
    admin: SuperAdmin = Depends(get_current_superadmin),
):
    if not payload.plan_key:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Plan key required")

    clinic = await _get_clinic_or_404(db, clinic_id)

    plan_product = payload.plan_product or clinic.plan_product
    if get_plan_details(plan_product, payload.plan_key) is None:
        known = sorted(k for tiers in PLAN_CATALOG.values() for k in tiers)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown plan {plan_product}/{payload.plan_key}. Known plans: {', '.join(known)}",
        )

    modules = payload.modules if payload.modules else list(clinic.modules or [])
    old_plan = clinic.plan_key

    clinic.plan_key = payload.plan_key
    clinic.plan_product = plan_product
    clinic.modules = modules
    clinic.is_bundle = is_bundle(modules)

    log_audit(
        db,
        AuditType.CLINIC_PLAN_CHANGED,
        admin.as_actor(),
        Target(entity="clinic", id=str(clinic.id), name=clinic.name),
        {"oldPlan": old_plan, "newPlan": payload.plan_key, "modules": modules},
    )
    await db.commit()

    return ActionResult(success=True, message="Plan changed successfully")
