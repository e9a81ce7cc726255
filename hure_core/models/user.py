# hure_core/models/user.py
import re
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from hure_core.db.base import Base

_USERNAME_RE = re.compile(r"^[a-zA-Z0-9_]+$")


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    clinic_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("clinics.id", ondelete="CASCADE"), nullable=True, index=True
    )

    email: Mapped[str] = mapped_column(String(320), unique=True, index=True, nullable=False)
    # Chosen on first login
    username: Mapped[Optional[str]] = mapped_column(String(64), unique=True, nullable=True)

    # Onboarding temporary password (step 3 of the wizard)
    temp_password_hash: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    temp_password_expires: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    password_hash: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    password_set: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # owner | admin | hr | employee
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="owner")

    first_login_token: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    first_login_token_expires: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    last_login_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    @staticmethod
    def normalize_username(value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        v = value.strip()
        if len(v) < 3:
            raise ValueError("Username must be at least 3 characters")
        if not _USERNAME_RE.match(v):
            raise ValueError("Username can only contain letters, numbers, and underscores")
        return v.lower()
