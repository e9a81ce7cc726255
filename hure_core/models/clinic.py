# hure_core/models/clinic.py

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, Boolean, DateTime, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from hure_core.db.base import Base

# pending_verification -> pending_payment -> pending_activation -> active
# active <-> suspended; any pending state -> rejected
CLINIC_STATUS_PENDING_VERIFICATION = "pending_verification"
CLINIC_STATUS_PENDING_PAYMENT = "pending_payment"
CLINIC_STATUS_PENDING_ACTIVATION = "pending_activation"
CLINIC_STATUS_ACTIVE = "active"
CLINIC_STATUS_SUSPENDED = "suspended"
CLINIC_STATUS_REJECTED = "rejected"

CLINIC_STATUSES = (
    CLINIC_STATUS_PENDING_VERIFICATION,
    CLINIC_STATUS_PENDING_PAYMENT,
    CLINIC_STATUS_PENDING_ACTIVATION,
    CLINIC_STATUS_ACTIVE,
    CLINIC_STATUS_SUSPENDED,
    CLINIC_STATUS_REJECTED,
)


class Clinic(Base):
    __tablename__ = "clinics"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    town: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    country: Mapped[str] = mapped_column(String(80), nullable=False, default="Kenya")
    contact_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    email: Mapped[str] = mapped_column(String(320), unique=True, index=True, nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    business_license: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)

    # ["core"], ["care"] or ["core", "care"]
    modules: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=lambda: ["core"])
    plan_key: Mapped[str] = mapped_column(String(40), nullable=False, default="essential")
    plan_product: Mapped[str] = mapped_column(String(10), nullable=False, default="core")
    is_bundle: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    status: Mapped[str] = mapped_column(
        String(30), nullable=False, default=CLINIC_STATUS_PENDING_VERIFICATION, index=True
    )
    email_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Usage counts, maintained by the employer portal
    staff_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    location_count: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    admin_role_count: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    reject_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    suspend_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    activated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
