# hure_core/schemas/auth.py
from __future__ import annotations

from typing import Optional
from uuid import UUID

from hure_core.schemas.base import ActionResult, CamelModel


class LoginRequest(CamelModel):
    # username or email
    identifier: Optional[str] = None
    password: Optional[str] = None


class FirstLoginRequest(CamelModel):
    token: Optional[str] = None
    temp_password: Optional[str] = None
    new_password: Optional[str] = None
    username: Optional[str] = None


class ResendActivationRequest(CamelModel):
    clinic_id: Optional[UUID] = None


class AuthUser(CamelModel):
    id: UUID
    email: str
    username: Optional[str] = None
    role: str
    clinic_id: Optional[UUID] = None
    clinic_name: Optional[str] = None


class TokenResponse(ActionResult):
    token: str
    user: AuthUser


class VerifyTokenResponse(CamelModel):
    valid: bool
    email: Optional[str] = None
    clinic_name: Optional[str] = None
