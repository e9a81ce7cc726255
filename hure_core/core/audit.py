# hure_core/core/audit.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from hure_core.models.audit_log import AuditLog

logger = logging.getLogger(__name__)


class AuditType:
    # clinic
    CLINIC_CREATED = "clinic_created"
    CLINIC_ACTIVATED = "clinic_activated"
    CLINIC_SUSPENDED = "clinic_suspended"
    CLINIC_REJECTED = "clinic_rejected"
    CLINIC_PLAN_CHANGED = "clinic_plan_changed"

    # onboarding
    TEMP_PASSWORD_SET = "temp_password_set"
    OTP_SENT = "otp_sent"
    EMAIL_VERIFIED = "email_verified"
    PAYMENT_SKIPPED_DEV = "payment_skipped_dev"

    # accounts
    FIRST_LOGIN_COMPLETED = "first_login_completed"
    ACTIVATION_RESENT = "activation_resent"


@dataclass(frozen=True)
class Actor:
    id: str = "system"
    role: str = "system"
    name: str = "System"


@dataclass(frozen=True)
class Target:
    entity: str
    id: Optional[str] = None
    name: Optional[str] = None


ONBOARDING_ACTOR = Actor(id="system", role="system", name="Onboarding")


def log_audit(
    db: AsyncSession,
    type_: str,
    actor: Actor | None,
    target: Target | None,
    meta: dict[str, Any] | None = None,
    reason: str | None = None,
) -> AuditLog:
    """
    Stage an audit row on the caller's session; it commits with the action it records.
    """
    actor = actor or Actor()
    entry = AuditLog(
        type=type_,
        actor_id=str(actor.id),
        actor_role=actor.role,
        actor_name=actor.name,
        target_entity=target.entity if target else None,
        target_id=str(target.id) if target and target.id is not None else None,
        target_name=target.name if target else None,
        meta=meta or {},
        reason=reason,
    )
    db.add(entry)
    logger.info(
        "audit %s by %s:%s on %s:%s",
        type_,
        actor.role,
        actor.id,
        target.entity if target else "-",
        target.id if target else "-",
    )
    return entry
