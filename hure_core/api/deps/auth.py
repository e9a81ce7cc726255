from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Any, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from hure_core.core.audit import Actor
from hure_core.core.config import settings
from hure_core.core.security import bearer_scheme, decode_access_token
from hure_core.db.session import get_db
from hure_core.models.user import User

ROLE_SUPERADMIN = "superadmin"


@dataclass(frozen=True)
class SuperAdmin:
    id: str
    email: Optional[str]
    name: str
    role: str = ROLE_SUPERADMIN

    def as_actor(self) -> Actor:
        return Actor(id=self.id, role=self.role, name=self.name)


DEMO_SUPERADMIN = SuperAdmin(id="demo-superadmin", email="admin@hure.com", name="Demo SuperAdmin")


def get_token_payload(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> dict[str, Any]:
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="No token provided")
    return decode_access_token(credentials.credentials)


async def get_current_superadmin(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> SuperAdmin:
    """
    Guards the superadmin console. SKIP_AUTH (dev only) lets every request through.
    """
    if settings.SKIP_AUTH:
        return DEMO_SUPERADMIN

    payload = get_token_payload(credentials)
    if payload.get("role") != ROLE_SUPERADMIN:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="SuperAdmin access required")

    return SuperAdmin(
        id=str(payload.get("sub")),
        email=payload.get("email"),
        name=payload.get("name") or "SuperAdmin",
    )


async def get_current_user(
    payload: dict[str, Any] = Depends(get_token_payload),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Clinic user (owner/admin/hr/employee) behind the bearer token.
    """
    try:
        user_uuid = uuid.UUID(str(payload.get("sub")))
    except ValueError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token subject")

    user = await db.get(User, user_uuid)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    if user.clinic_id is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="No clinic for this account")

    return user
