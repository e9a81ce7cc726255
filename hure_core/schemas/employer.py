from __future__ import annotations

from typing import Dict, Optional
from uuid import UUID

from hure_core.schemas.base import CamelModel
from hure_core.schemas.plans import LimitsOut, PlanOut


class PermissionsOut(CamelModel):
    role: str
    permissions: Dict[str, bool]


class UsageOut(CamelModel):
    staff_count: int
    location_count: int
    admin_role_count: int


class PlanUsageOut(CamelModel):
    clinic_id: UUID
    plan: Optional[PlanOut] = None
    usage: UsageOut
    limits: Optional[LimitsOut] = None
