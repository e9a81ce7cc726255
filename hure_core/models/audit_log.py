# hure_core/models/audit_log.py

import uuid
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import JSON, DateTime, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from hure_core.db.base import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    # clinic_created, clinic_activated, otp_sent, ...
    type: Mapped[str] = mapped_column(String(60), nullable=False, index=True)

    actor_id: Mapped[str] = mapped_column(String(64), nullable=False, default="system")
    actor_role: Mapped[str] = mapped_column(String(30), nullable=False, default="system")
    actor_name: Mapped[str] = mapped_column(String(200), nullable=False, default="System")

    target_entity: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    target_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    target_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    # NOTE: "metadata" is reserved by SQLAlchemy's Declarative API
    meta: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
