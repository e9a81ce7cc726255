# hure_core/api/v1/employer.py
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from hure_core.api.deps.auth import get_current_user
from hure_core.api.deps.permissions import require_permissions
from hure_core.auth.permissions import CAP, permissions_for_role
from hure_core.core.plan_limits import TenantUsage, check_plan_limits
from hure_core.core.plans import get_plan_details
from hure_core.db.session import get_db
from hure_core.models.clinic import Clinic
from hure_core.models.user import User
from hure_core.schemas.employer import PermissionsOut, PlanUsageOut, UsageOut
from hure_core.schemas.plans import LimitsOut, PlanOut

router = APIRouter(prefix="/employer", tags=["employer"])


@router.get("/permissions", response_model=PermissionsOut)
async def my_permissions(user: User = Depends(get_current_user)):
    return PermissionsOut(role=user.role, permissions=dict(permissions_for_role(user.role)))


@router.get("/plan-usage", response_model=PlanUsageOut)
async def plan_usage(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_permissions([CAP.MANAGE_BILLING, CAP.VIEW_STAFF], any_of=True)),
):
    clinic = await db.get(Clinic, user.clinic_id)
    if clinic is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Clinic not found")

    usage = TenantUsage.from_clinic(clinic)
    plan = get_plan_details(clinic.plan_product, clinic.plan_key)

    return PlanUsageOut(
        clinic_id=clinic.id,
        plan=PlanOut.from_tier(plan) if plan else None,
        usage=UsageOut(
            staff_count=usage.staff_count,
            location_count=usage.location_count,
            admin_role_count=usage.admin_role_count,
        ),
        limits=LimitsOut.from_report(check_plan_limits(usage, plan)) if plan else None,
    )
