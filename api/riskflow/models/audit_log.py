"""Audit log model for tracking workflow mutations."""
from datetime import datetime
from typing import Optional
from sqlalchemy import String, Integer, Text, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column
from riskflow.models.base import Base
from riskflow.core.time import utc_now


class AuditLog(Base):
    """Organization-scoped audit trail. Rows are written once and never updated."""
    __tablename__ = "audit_logs"

    log_id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    organization_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    action: Mapped[str] = mapped_column(String(100), nullable=False)  # e.g. risk_validated
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)  # e.g. "risk"
    entity_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    entity_name: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    changes: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)  # JSON of what changed
    timestamp: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)
