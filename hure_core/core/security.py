from __future__ import annotations

import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from fastapi import HTTPException, status
from fastapi.security import HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from hure_core.core.config import settings

bearer_scheme = HTTPBearer(auto_error=False)

pwd_context = CryptContext(
    schemes=["argon2"],
    deprecated="auto",
)

FIRST_LOGIN_TOKEN_TYPE = "first_login"


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed_password: str | None) -> bool:
    if not hashed_password:
        return False
    return pwd_context.verify(password, hashed_password)


def generate_otp_code() -> str:
    return str(secrets.randbelow(900000) + 100000)  # 6 digits


def _normalize_token(token: str | None) -> str:
    """
    Make token decoding resilient to common Swagger / copy-paste issues:
    - Leading/trailing whitespace/newlines
    - Surrounding quotes
    - Accidentally including the 'Bearer ' prefix in the token field
    """
    if token is None:
        return ""

    t = token.strip()

    if (t.startswith('"') and t.endswith('"')) or (t.startswith("'") and t.endswith("'")):
        t = t[1:-1].strip()

    if t.lower().startswith("bearer "):
        t = t[7:].strip()

    return t


def _encode(claims: dict[str, Any], expires_delta: timedelta) -> str:
    now = datetime.now(timezone.utc)
    to_encode = dict(claims)
    # numeric timestamps for maximum compatibility
    to_encode["exp"] = int((now + expires_delta).timestamp())
    to_encode["iat"] = int(now.timestamp())
    return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def create_access_token(
    *,
    subject: str,
    email: str | None = None,
    role: str,
    name: str | None = None,
    clinic_id: str | None = None,
    expires_minutes: Optional[int] = None,
) -> str:
    claims: dict[str, Any] = {
        "sub": str(subject),
        "email": email,
        "role": role,
        "name": name,
    }
    if clinic_id is not None:
        claims["clinicId"] = str(clinic_id)
    return _encode(claims, timedelta(minutes=expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES))


def decode_access_token(token: str | None) -> dict[str, Any]:
    token = _normalize_token(token)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="No token provided")

    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            options={"require_sub": True, "require_exp": True},
        )
    except ExpiredSignatureError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token expired")
    except JWTError:
        # bad format, bad signature, wrong algorithm, missing claims
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    if payload.get("type") == FIRST_LOGIN_TOKEN_TYPE:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    return payload


def create_first_login_token(clinic_id: str, email: str) -> str:
    claims = {
        "sub": str(clinic_id),
        "type": FIRST_LOGIN_TOKEN_TYPE,
        "clinicId": str(clinic_id),
        "email": email,
    }
    return _encode(claims, timedelta(hours=settings.FIRST_LOGIN_TOKEN_EXPIRE_HOURS))


def verify_first_login_token(token: str | None) -> dict[str, Any] | None:
    """
    Returns the decoded claims, or None for anything that is not a live first-login token.
    """
    token = _normalize_token(token)
    if not token:
        return None
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None
    if payload.get("type") != FIRST_LOGIN_TOKEN_TYPE:
        return None
    return payload
