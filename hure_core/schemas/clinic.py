from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import Field

from hure_core.schemas.base import ActionResult, CamelModel
from hure_core.schemas.plans import LimitsOut, PlanOut


class ClinicOut(CamelModel):
    id: UUID
    name: str
    town: Optional[str] = None
    country: str
    contact_name: Optional[str] = None
    email: str
    phone: Optional[str] = None
    business_license: Optional[str] = None
    modules: List[str]
    plan_key: str
    plan_product: str
    is_bundle: bool
    status: str
    email_verified: bool
    staff_count: int
    location_count: int
    admin_role_count: int
    reject_reason: Optional[str] = None
    suspend_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    activated_at: Optional[datetime] = None


class ClinicDetailOut(ClinicOut):
    plan_details: Optional[PlanOut] = None
    limits: Optional[LimitsOut] = None


class ClinicListOut(CamelModel):
    clinics: List[ClinicDetailOut]
    total: int
    limit: int
    offset: int


class ClinicResponse(CamelModel):
    clinic: ClinicDetailOut


class ReasonRequest(CamelModel):
    reason: Optional[str] = Field(default=None, max_length=1000)


class ChangePlanRequest(CamelModel):
    plan_key: Optional[str] = None
    plan_product: Optional[str] = None
    modules: Optional[List[str]] = None


class ActivationResult(ActionResult):
    first_login_url: str


class ClinicStatsOut(CamelModel):
    total: int
    pending: int
    active: int
    suspended: int
    bundles: int
    core_only: int
    care_only: int
