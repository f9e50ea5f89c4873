"""Risk register - risk records and their workflow sub-records.

A Risk owns at most one RiskAssessment and at most one RiskTreatment
(unique risk_id). RiskHistory and RiskTreatmentUpdate are append-only trails.
Actor columns hold ids issued by the upstream identity provider.
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from sqlalchemy import (
    String, Integer, Text, Boolean, ForeignKey, DateTime, Numeric, JSON,
    UniqueConstraint, CheckConstraint
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from riskflow.models.base import Base
from riskflow.core.time import utc_now


class Risk(Base):
    """Top-level risk record moving through intake, assessment and treatment."""
    __tablename__ = "risks"

    risk_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    organization_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    # Per-organization sequential code (e.g., "RISK-007")
    risk_code: Mapped[str] = mapped_column(String(20), nullable=False)

    # Content
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    source: Mapped[str] = mapped_column(String(50), nullable=False)
    category: Mapped[str] = mapped_column(String(50), nullable=False, default="security")
    initial_severity: Mapped[str] = mapped_column(String(20), nullable=False)
    documentation: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    tags: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    # Workflow status
    status: Mapped[str] = mapped_column(String(40), nullable=False, index=True)

    # Scoring (derived from the assessment / mitigation inputs)
    likelihood: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    impact: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    inherent_risk: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    residual_risk: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    # Role assignments
    reporter_id: Mapped[str] = mapped_column(String(64), nullable=False)
    grc_sme_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    risk_assessor_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    risk_owner_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    # Treatment summary mirrored from RiskTreatment
    treatment_plan: Mapped[Optional[str]] = mapped_column(
        String(20), nullable=True, comment="mitigate/accept/transfer/avoid"
    )
    treatment_status: Mapped[Optional[str]] = mapped_column(
        String(20), nullable=True, comment="pending/in_progress/completed"
    )
    treatment_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_by: Mapped[str] = mapped_column(String(64), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utc_now, onupdate=utc_now
    )

    # One-to-one sub-records
    assessment: Mapped[Optional["RiskAssessment"]] = relationship(
        back_populates="risk", uselist=False, cascade="all, delete-orphan"
    )
    treatment: Mapped[Optional["RiskTreatment"]] = relationship(
        back_populates="risk", uselist=False, cascade="all, delete-orphan"
    )

    # One-to-many
    history: Mapped[List["RiskHistory"]] = relationship(
        back_populates="risk", cascade="all, delete-orphan",
        order_by="RiskHistory.history_id"
    )
    assets: Mapped[List["RiskAsset"]] = relationship(
        back_populates="risk", cascade="all, delete-orphan"
    )
    controls: Mapped[List["RiskControl"]] = relationship(
        back_populates="risk", cascade="all, delete-orphan"
    )
    scenarios: Mapped[List["RiskScenarioLink"]] = relationship(
        back_populates="risk", cascade="all, delete-orphan"
    )

    __table_args__ = (
        UniqueConstraint('organization_id', 'risk_code', name='uq_risk_org_code'),
    )


class RiskAssessment(Base):
    """Assessor's analysis of a validated risk."""
    __tablename__ = "risk_assessments"

    assessment_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    risk_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("risks.risk_id", ondelete="CASCADE"),
        nullable=False, unique=True, index=True
    )
    status: Mapped[str] = mapped_column(String(40), nullable=False)

    risk_assessor_id: Mapped[str] = mapped_column(String(64), nullable=False)
    grc_sme_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    # Narrative
    threat_description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    vulnerabilities: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    likelihood: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    likelihood_rationale: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    impact: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    impact_rationale: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    impact_categories: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    calculated_risk_level: Mapped[Optional[str]] = mapped_column(
        String(20), nullable=True, comment="Derived from likelihood x impact"
    )
    recommended_owner_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    assessment_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    treatment_recommendation: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # GRC review
    grc_review_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    grc_declined_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    assessor_submitted_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    grc_approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utc_now, onupdate=utc_now
    )

    risk = relationship("Risk", back_populates="assessment")


class RiskTreatment(Base):
    """Treatment decision, executive escalation and mitigation tracking."""
    __tablename__ = "risk_treatments"

    treatment_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    risk_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("risks.risk_id", ondelete="CASCADE"),
        nullable=False, unique=True, index=True
    )
    status: Mapped[str] = mapped_column(String(40), nullable=False)

    risk_owner_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    grc_sme_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    # Decision
    treatment_decision: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    treatment_justification: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Decision-specific fields
    mitigation_description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    mitigation_target_date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    transfer_to: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    transfer_cost: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 2), nullable=True)
    avoid_strategy: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    acceptance_rationale: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    acceptance_expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # Executive escalation
    executive_approval_required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    executive_approver_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    executive_approval_status: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    executive_approval_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    executive_denied_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    executive_approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # Mitigation progress
    mitigation_status: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    mitigation_progress: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_progress_update: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    mitigation_actual_date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # Residual risk (derived from residual likelihood x impact)
    residual_likelihood: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    residual_impact: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    residual_risk_level: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utc_now, onupdate=utc_now
    )

    risk = relationship("Risk", back_populates="treatment")
    updates: Mapped[List["RiskTreatmentUpdate"]] = relationship(
        back_populates="treatment", cascade="all, delete-orphan",
        order_by="desc(RiskTreatmentUpdate.update_id)"
    )

    __table_args__ = (
        CheckConstraint(
            "mitigation_progress >= 0 AND mitigation_progress <= 100",
            name='chk_treatment_progress_range'
        ),
    )


class RiskTreatmentUpdate(Base):
    """Fine-grained mitigation progress entry. Append-only."""
    __tablename__ = "risk_treatment_updates"

    update_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    treatment_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("risk_treatments.treatment_id", ondelete="CASCADE"),
        nullable=False, index=True
    )
    update_type: Mapped[str] = mapped_column(
        String(20), nullable=False, comment="progress/delay/cancellation/completion"
    )
    previous_status: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    new_status: Mapped[str] = mapped_column(String(20), nullable=False)
    progress: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    new_target_date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    delay_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    cancellation_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    completion_evidence: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    effectiveness_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_by: Mapped[str] = mapped_column(String(64), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now)

    treatment = relationship("RiskTreatment", back_populates="updates")


class RiskHistory(Base):
    """Coarse-grained trail of workflow actions on a risk. Append-only."""
    __tablename__ = "risk_history"

    history_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    risk_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("risks.risk_id", ondelete="CASCADE"),
        nullable=False, index=True
    )
    action: Mapped[str] = mapped_column(String(100), nullable=False)
    changes: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    changed_by: Mapped[str] = mapped_column(String(64), nullable=False)
    changed_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now)

    risk = relationship("Risk", back_populates="history")


class RiskAsset(Base):
    """Risk <-> asset link. Assets live in the asset inventory service."""
    __tablename__ = "risk_assets"

    risk_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("risks.risk_id", ondelete="CASCADE"), primary_key=True
    )
    asset_id: Mapped[str] = mapped_column(String(64), primary_key=True)

    risk = relationship("Risk", back_populates="assets")


class RiskControl(Base):
    """Risk <-> control link with the control's effectiveness against this risk."""
    __tablename__ = "risk_controls"

    risk_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("risks.risk_id", ondelete="CASCADE"), primary_key=True
    )
    control_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    effectiveness: Mapped[str] = mapped_column(String(20), nullable=False, default="partial")

    risk = relationship("Risk", back_populates="controls")

    __table_args__ = (
        CheckConstraint(
            "effectiveness IN ('none', 'partial', 'full')",
            name='chk_risk_control_effectiveness'
        ),
    )


class RiskScenarioLink(Base):
    """Risk <-> scenario library entry."""
    __tablename__ = "risk_scenario_links"

    risk_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("risks.risk_id", ondelete="CASCADE"), primary_key=True
    )
    scenario_id: Mapped[str] = mapped_column(String(64), primary_key=True)

    risk = relationship("Risk", back_populates="scenarios")


class RiskIdSequence(Base):
    """Per-organization counter backing risk codes."""
    __tablename__ = "risk_id_sequences"

    organization_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    last_value: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
