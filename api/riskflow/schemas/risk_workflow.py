"""Pydantic schemas for the risk lifecycle workflow."""
from datetime import datetime
from decimal import Decimal
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field, field_validator

from riskflow.core.risk_statuses import (
    RiskSource,
    RiskCategory,
    RiskLevel,
    Likelihood,
    Impact,
    TreatmentDecision,
    ReviewDecision,
    ExecutiveDecision,
    MitigationProgressStatus,
)


def _require_text(value: Optional[str], label: str) -> str:
    if not value or not value.strip():
        raise ValueError(f'{label} is required')
    return value.strip()


# --- Request/Input Schemas ---

class RiskIntakeCreate(BaseModel):
    """Schema for a reporter submitting a new risk."""
    title: str
    description: str
    source: RiskSource
    category: RiskCategory = RiskCategory.SECURITY
    initial_severity: RiskLevel
    documentation: Optional[Dict[str, Any]] = None
    suggested_sme_id: Optional[str] = None
    tags: List[str] = Field(default_factory=list)

    @field_validator('title')
    @classmethod
    def validate_title(cls, v):
        return _require_text(v, 'Title')

    @field_validator('description')
    @classmethod
    def validate_description(cls, v):
        return _require_text(v, 'Description')


class RiskValidateRequest(BaseModel):
    """GRC SME decision on whether the reported item is a real risk."""
    decision: ReviewDecision
    grc_sme_id: str
    notes: Optional[str] = None


class AssignAssessorRequest(BaseModel):
    risk_assessor_id: str
    notes: Optional[str] = None


class AssessmentSubmitRequest(BaseModel):
    """Assessor's analysis. Also used for the GRC revision pass."""
    threat_description: str
    affected_assets: Optional[List[str]] = None
    existing_controls: Optional[List[str]] = None
    vulnerabilities: Optional[str] = None
    likelihood: Likelihood
    likelihood_rationale: Optional[str] = None
    impact: Impact
    impact_rationale: Optional[str] = None
    impact_categories: Optional[Dict[str, str]] = None
    recommended_owner_id: Optional[str] = None
    assessment_notes: Optional[str] = None
    treatment_recommendation: Optional[str] = None

    @field_validator('threat_description')
    @classmethod
    def validate_threat_description(cls, v):
        return _require_text(v, 'Threat description')


class AssessmentReviewRequest(BaseModel):
    decision: ReviewDecision
    notes: Optional[str] = None


class TreatmentDecisionRequest(BaseModel):
    """Risk owner's treatment choice with the fields specific to that choice."""
    treatment_decision: TreatmentDecision
    justification: str
    # Mitigate
    mitigation_description: Optional[str] = None
    mitigation_target_date: Optional[datetime] = None
    # Transfer
    transfer_to: Optional[str] = None
    transfer_cost: Optional[Decimal] = Field(default=None, ge=0)
    # Avoid
    avoid_strategy: Optional[str] = None
    # Accept
    acceptance_rationale: Optional[str] = None
    acceptance_expires_at: Optional[datetime] = None

    @field_validator('justification')
    @classmethod
    def validate_justification(cls, v):
        return _require_text(v, 'Justification')


class ExecutiveApproverRequest(BaseModel):
    executive_approver_id: str


class ExecutiveDecisionRequest(BaseModel):
    decision: ExecutiveDecision
    notes: Optional[str] = None


class MitigationUpdateRequest(BaseModel):
    """Progress report from the risk owner on an in-flight mitigation."""
    status: MitigationProgressStatus
    progress: Optional[int] = Field(default=None, ge=0, le=100)
    notes: Optional[str] = None
    new_target_date: Optional[datetime] = None
    delay_reason: Optional[str] = None
    cancellation_reason: Optional[str] = None
    completion_evidence: Optional[str] = None
    effectiveness_notes: Optional[str] = None
    residual_likelihood: Optional[Likelihood] = None
    residual_impact: Optional[Impact] = None


# --- Response Schemas ---

class RiskResponse(BaseModel):
    risk_id: int
    organization_id: str
    risk_code: str
    title: str
    description: str
    source: str
    category: str
    initial_severity: str
    status: str
    likelihood: Optional[str] = None
    impact: Optional[str] = None
    inherent_risk: Optional[str] = None
    residual_risk: Optional[str] = None
    reporter_id: str
    grc_sme_id: Optional[str] = None
    risk_assessor_id: Optional[str] = None
    risk_owner_id: Optional[str] = None
    treatment_plan: Optional[str] = None
    treatment_status: Optional[str] = None
    tags: List[str] = []
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class RiskAssessmentResponse(BaseModel):
    assessment_id: int
    risk_id: int
    status: str
    risk_assessor_id: str
    likelihood: Optional[str] = None
    impact: Optional[str] = None
    calculated_risk_level: Optional[str] = None
    recommended_owner_id: Optional[str] = None
    grc_declined_reason: Optional[str] = None
    assessor_submitted_at: Optional[datetime] = None
    grc_approved_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RiskTreatmentUpdateResponse(BaseModel):
    update_id: int
    update_type: str
    previous_status: Optional[str] = None
    new_status: str
    progress: Optional[int] = None
    notes: Optional[str] = None
    new_target_date: Optional[datetime] = None
    delay_reason: Optional[str] = None
    cancellation_reason: Optional[str] = None
    completion_evidence: Optional[str] = None
    created_by: str
    created_at: datetime

    class Config:
        from_attributes = True


class RiskTreatmentResponse(BaseModel):
    treatment_id: int
    risk_id: int
    status: str
    risk_owner_id: Optional[str] = None
    treatment_decision: Optional[str] = None
    treatment_justification: Optional[str] = None
    executive_approval_required: bool
    executive_approver_id: Optional[str] = None
    executive_approval_status: Optional[str] = None
    mitigation_status: Optional[str] = None
    mitigation_progress: int
    mitigation_target_date: Optional[datetime] = None
    residual_likelihood: Optional[str] = None
    residual_impact: Optional[str] = None
    residual_risk_level: Optional[str] = None
    completed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RiskHistoryResponse(BaseModel):
    history_id: int
    action: str
    changes: Optional[Dict[str, Any]] = None
    notes: Optional[str] = None
    changed_by: str
    changed_at: datetime

    class Config:
        from_attributes = True


class AssignAssessorResponse(BaseModel):
    risk: RiskResponse
    assessment: RiskAssessmentResponse


class AssessmentReviewResponse(BaseModel):
    assessment: RiskAssessmentResponse
    treatment: Optional[RiskTreatmentResponse] = None


class WorkflowRoles(BaseModel):
    reporter_id: str
    grc_sme_id: Optional[str] = None
    risk_assessor_id: Optional[str] = None
    risk_owner_id: Optional[str] = None


class TreatmentStateResponse(RiskTreatmentResponse):
    updates: List[RiskTreatmentUpdateResponse] = []


class WorkflowStateResponse(BaseModel):
    """Full read-side view of a risk's workflow position."""
    risk: RiskResponse
    roles: WorkflowRoles
    assessment: Optional[RiskAssessmentResponse] = None
    treatment: Optional[TreatmentStateResponse] = None
    history: List[RiskHistoryResponse]
    current_stage: str
    available_actions: List[str]
