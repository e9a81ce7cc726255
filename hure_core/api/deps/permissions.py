from __future__ import annotations

from typing import Callable, Sequence

from fastapi import Depends, HTTPException, status

from hure_core.api.deps.auth import get_current_user
from hure_core.auth.permissions import ALL_CAPABILITIES, has_permission
from hure_core.models.user import User


def require_permissions(
    required: str | Sequence[str],
    *,
    any_of: bool = False,
) -> Callable:
    """
    Enforce the clinic role permission table against the current user's role.

    Args:
      required: capability string OR list of capabilities
      any_of: True => any required capability passes; False => all are required
    """
    required_list = [required] if isinstance(required, str) else list(required)
    unknown = set(required_list) - set(ALL_CAPABILITIES)
    if unknown:
        raise ValueError(f"Unknown capabilities: {sorted(unknown)}")

    async def _checker(user: User = Depends(get_current_user)) -> User:
        checks = [has_permission(user.role, c) for c in required_list]
        allowed = any(checks) if any_of else all(checks)

        if not allowed:
            missing = [c for c, ok in zip(required_list, checks) if not ok]
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={
                    "code": "rbac_forbidden",
                    "message": "You do not have permission to perform this action.",
                    "required": required_list,
                    "missing": missing,
                    "role": user.role,
                },
            )

        return user

    return _checker
