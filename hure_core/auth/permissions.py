from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import FrozenSet, Mapping

ROLE_OWNER = "owner"
ROLE_ADMIN = "admin"
ROLE_HR = "hr"
ROLE_EMPLOYEE = "employee"

CLINIC_ROLES: FrozenSet[str] = frozenset({ROLE_OWNER, ROLE_ADMIN, ROLE_HR, ROLE_EMPLOYEE})


@dataclass(frozen=True)
class Capability:
    # staff
    VIEW_STAFF: str = "view_staff"
    CREATE_STAFF: str = "create_staff"
    INVITE_STAFF: str = "invite_staff"

    # schedule
    VIEW_SCHEDULE: str = "view_schedule"
    CREATE_SHIFT: str = "create_shift"
    ASSIGN_SHIFT: str = "assign_shift"

    # attendance
    VIEW_ATTENDANCE: str = "view_attendance"
    EXPORT_ATTENDANCE: str = "export_attendance"

    # leave
    VIEW_LEAVE: str = "view_leave"
    APPROVE_LEAVE: str = "approve_leave"

    # documents
    VIEW_DOCS: str = "view_docs"
    UPLOAD_DOCS: str = "upload_docs"

    # account
    MANAGE_BILLING: str = "manage_billing"
    MANAGE_PERMISSIONS: str = "manage_permissions"
    VIEW_AUDIT: str = "view_audit"


CAP = Capability()

ALL_CAPABILITIES: tuple[str, ...] = (
    CAP.VIEW_STAFF,
    CAP.CREATE_STAFF,
    CAP.INVITE_STAFF,
    CAP.VIEW_SCHEDULE,
    CAP.CREATE_SHIFT,
    CAP.ASSIGN_SHIFT,
    CAP.VIEW_ATTENDANCE,
    CAP.EXPORT_ATTENDANCE,
    CAP.VIEW_LEAVE,
    CAP.APPROVE_LEAVE,
    CAP.VIEW_DOCS,
    CAP.UPLOAD_DOCS,
    CAP.MANAGE_BILLING,
    CAP.MANAGE_PERMISSIONS,
    CAP.VIEW_AUDIT,
)


def _row(*granted: str) -> Mapping[str, bool]:
    unknown = set(granted) - set(ALL_CAPABILITIES)
    if unknown:
        raise ValueError(f"Unknown capabilities: {sorted(unknown)}")
    return MappingProxyType({c: c in granted for c in ALL_CAPABILITIES})


# Every row lists every capability; roles do not inherit from each other.
ROLE_PERMISSIONS: Mapping[str, Mapping[str, bool]] = MappingProxyType(
    {
        ROLE_OWNER: _row(*ALL_CAPABILITIES),
        ROLE_ADMIN: _row(
            CAP.VIEW_STAFF,
            CAP.CREATE_STAFF,
            CAP.INVITE_STAFF,
            CAP.VIEW_SCHEDULE,
            CAP.CREATE_SHIFT,
            CAP.ASSIGN_SHIFT,
            CAP.VIEW_ATTENDANCE,
            CAP.VIEW_DOCS,
        ),
        ROLE_HR: _row(
            CAP.VIEW_STAFF,
            CAP.VIEW_ATTENDANCE,
            CAP.EXPORT_ATTENDANCE,
            CAP.VIEW_LEAVE,
            CAP.APPROVE_LEAVE,
            CAP.VIEW_DOCS,
            CAP.UPLOAD_DOCS,
        ),
        ROLE_EMPLOYEE: _row(
            CAP.VIEW_SCHEDULE,
            CAP.VIEW_ATTENDANCE,
            CAP.VIEW_LEAVE,
            CAP.VIEW_DOCS,
        ),
    }
)

ROLE_DESCRIPTIONS: Mapping[str, str] = {
    ROLE_OWNER: "Full access to all features",
    ROLE_ADMIN: "Manage staff and schedules",
    ROLE_HR: "Manage leave and documents",
    ROLE_EMPLOYEE: "Basic staff access",
}


def _normalize_role(role: str | None) -> str:
    return (role or "").strip().lower()


def permissions_for_role(role: str | None) -> Mapping[str, bool]:
    """
    Full capability row for a role; empty for unknown roles.
    """
    return dict(ROLE_PERMISSIONS.get(_normalize_role(role), {}))


def has_permission(role: str | None, capability: str | None) -> bool:
    """
    Fail-closed: unknown role or capability -> False.
    """
    row = ROLE_PERMISSIONS.get(_normalize_role(role))
    if row is None or not isinstance(capability, str):
        return False
    return row.get(capability.strip(), False)
