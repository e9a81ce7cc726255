# hure_core/core/plan_limits.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from hure_core.core.plans import PlanTier


@dataclass(frozen=True)
class TenantUsage:
    staff_count: int = 0
    location_count: int = 0
    admin_role_count: int = 0

    @classmethod
    def from_clinic(cls, clinic) -> "TenantUsage":
        return cls(
            staff_count=int(getattr(clinic, "staff_count", 0) or 0),
            location_count=int(getattr(clinic, "location_count", 0) or 0),
            admin_role_count=int(getattr(clinic, "admin_role_count", 0) or 0),
        )


@dataclass(frozen=True)
class PlanLimitReport:
    staff_within_limit: bool
    locations_within_limit: bool
    admin_roles_within_limit: bool
    staff_usage: float
    locations_usage: float
    admin_roles_usage: float

    @property
    def all_within_limits(self) -> bool:
        return self.staff_within_limit and self.locations_within_limit and self.admin_roles_within_limit


def _within(count: int, cap: Optional[int]) -> bool:
    return cap is None or count <= cap


def _usage(count: int, cap: Optional[int]) -> float:
    # unbounded (or a zero cap) never divides
    if cap is None or cap <= 0:
        return 0.0
    return count / cap


def check_plan_limits(usage: TenantUsage, plan: PlanTier) -> PlanLimitReport:
    """
    Compares usage against the plan caps. Reports only; enforcement is the caller's job.
    """
    return PlanLimitReport(
        staff_within_limit=_within(usage.staff_count, plan.max_staff),
        locations_within_limit=_within(usage.location_count, plan.max_locations),
        admin_roles_within_limit=_within(usage.admin_role_count, plan.max_admin_roles),
        staff_usage=_usage(usage.staff_count, plan.max_staff),
        locations_usage=_usage(usage.location_count, plan.max_locations),
        admin_roles_usage=_usage(usage.admin_role_count, plan.max_admin_roles),
    )
