"""Risk lifecycle workflow API endpoints.

Intake -> validation -> assessment -> GRC review -> treatment decision ->
executive escalation -> mitigation tracking. Domain errors raised by the
service are mapped to HTTP responses in main.py.
"""
from typing import List
from fastapi import APIRouter, Depends, status

from riskflow.core.deps import Actor, get_actor, get_workflow_service
from riskflow.schemas.risk_workflow import (
    RiskIntakeCreate, RiskValidateRequest, AssignAssessorRequest,
    AssessmentSubmitRequest, AssessmentReviewRequest,
    TreatmentDecisionRequest, ExecutiveApproverRequest, ExecutiveDecisionRequest,
    MitigationUpdateRequest,
    RiskResponse, RiskTreatmentResponse, RiskHistoryResponse,
    RiskAssessmentResponse, AssignAssessorResponse, AssessmentReviewResponse,
    WorkflowStateResponse,
)
from riskflow.services.risk_workflow import RiskWorkflowService

router = APIRouter()


# ==================== INTAKE ====================

@router.post("/intake", response_model=RiskResponse, status_code=status.HTTP_201_CREATED)
def submit_intake(
    intake: RiskIntakeCreate,
    actor: Actor = Depends(get_actor),
    service: RiskWorkflowService = Depends(get_workflow_service)
):
    """Report a new risk. The caller becomes the reporter."""
    return service.submit_intake(actor.organization_id, intake, actor.user_id)


@router.post("/{risk_id}/validate", response_model=RiskResponse)
def validate_risk(
    risk_id: int,
    request: RiskValidateRequest,
    actor: Actor = Depends(get_actor),
    service: RiskWorkflowService = Depends(get_workflow_service)
):
    """GRC SME approves (actual risk) or declines (not a risk) an intake."""
    return service.validate_risk(
        risk_id, actor.organization_id, request.decision, request.grc_sme_id,
        actor.user_id, request.notes
    )


# ==================== ASSESSMENT ====================

@router.post("/{risk_id}/assign-assessor", response_model=AssignAssessorResponse)
def assign_risk_assessor(
    risk_id: int,
    request: AssignAssessorRequest,
    actor: Actor = Depends(get_actor),
    service: RiskWorkflowService = Depends(get_workflow_service)
):
    risk, assessment = service.assign_risk_assessor(
        risk_id, actor.organization_id, request.risk_assessor_id, actor.user_id, request.notes
    )
    return {"risk": risk, "assessment": assessment}


@router.post("/{risk_id}/assessment/submit", response_model=RiskAssessmentResponse)
def submit_assessment(
    risk_id: int,
    request: AssessmentSubmitRequest,
    actor: Actor = Depends(get_actor),
    service: RiskWorkflowService = Depends(get_workflow_service)
):
    return service.submit_assessment(risk_id, actor.organization_id, request, actor.user_id)


@router.post("/{risk_id}/assessment/review", response_model=AssessmentReviewResponse)
def review_assessment(
    risk_id: int,
    request: AssessmentReviewRequest,
    actor: Actor = Depends(get_actor),
    service: RiskWorkflowService = Depends(get_workflow_service)
):
    """Approve (opens treatment) or decline (sends to GRC revision)."""
    assessment, treatment = service.review_assessment(
        risk_id, actor.organization_id, request.decision, actor.user_id, request.notes
    )
    return {"assessment": assessment, "treatment": treatment}


@router.post("/{risk_id}/assessment/revision", response_model=AssessmentReviewResponse)
def submit_grc_revision(
    risk_id: int,
    request: AssessmentSubmitRequest,
    actor: Actor = Depends(get_actor),
    service: RiskWorkflowService = Depends(get_workflow_service)
):
    assessment, treatment = service.submit_grc_revision(
        risk_id, actor.organization_id, request, actor.user_id
    )
    return {"assessment": assessment, "treatment": treatment}


# ==================== TREATMENT ====================

@router.post("/{risk_id}/treatment/decision", response_model=RiskTreatmentResponse)
def submit_treatment_decision(
    risk_id: int,
    request: TreatmentDecisionRequest,
    actor: Actor = Depends(get_actor),
    service: RiskWorkflowService = Depends(get_workflow_service)
):
    return service.submit_treatment_decision(risk_id, actor.organization_id, request, actor.user_id)


@router.post("/{risk_id}/treatment/set-approver", response_model=RiskTreatmentResponse)
def set_executive_approver(
    risk_id: int,
    request: ExecutiveApproverRequest,
    actor: Actor = Depends(get_actor),
    service: RiskWorkflowService = Depends(get_workflow_service)
):
    return service.set_executive_approver(
        risk_id, actor.organization_id, request.executive_approver_id, actor.user_id
    )


@router.post("/{risk_id}/treatment/executive-decision", response_model=RiskTreatmentResponse)
def submit_executive_decision(
    risk_id: int,
    request: ExecutiveDecisionRequest,
    actor: Actor = Depends(get_actor),
    service: RiskWorkflowService = Depends(get_workflow_service)
):
    return service.submit_executive_decision(
        risk_id, actor.organization_id, request.decision, actor.user_id, request.notes
    )


@router.post("/{risk_id}/treatment/mitigation-update", response_model=RiskTreatmentResponse)
def submit_mitigation_update(
    risk_id: int,
    request: MitigationUpdateRequest,
    actor: Actor = Depends(get_actor),
    service: RiskWorkflowService = Depends(get_workflow_service)
):
    return service.submit_mitigation_update(risk_id, actor.organization_id, request, actor.user_id)


# ==================== READ ====================

@router.get("/{risk_id}/state", response_model=WorkflowStateResponse)
def get_workflow_state(
    risk_id: int,
    actor: Actor = Depends(get_actor),
    service: RiskWorkflowService = Depends(get_workflow_service)
):
    """Current stage, available actions and recent activity for one risk."""
    return service.get_workflow_state(risk_id, actor.organization_id)


@router.get("/{risk_id}/history", response_model=List[RiskHistoryResponse])
def list_history(
    risk_id: int,
    actor: Actor = Depends(get_actor),
    service: RiskWorkflowService = Depends(get_workflow_service)
):
    return service.list_history(risk_id, actor.organization_id)
