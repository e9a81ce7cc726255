# hure_core/core/validators.py
from __future__ import annotations

import re

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
OTP_RE = re.compile(r"^\d{6}$")

MIN_TEMP_PASSWORD_LENGTH = 6
MIN_PASSWORD_LENGTH = 8


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def is_valid_email(email: str | None) -> bool:
    return bool(email) and EMAIL_RE.fullmatch(email) is not None


def is_valid_otp(code: str | None) -> bool:
    # exactly six ASCII digits; no surrounding whitespace
    return isinstance(code, str) and OTP_RE.fullmatch(code) is not None and code.isascii()


def is_blank(value: str | None) -> bool:
    return value is None or not str(value).strip()
