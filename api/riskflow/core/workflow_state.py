"""
Read-side projection of a risk's position in the workflow.

Given only the three status fields (risk, assessment, treatment) this module
answers two questions for the UI:
1. Which stage is the risk in?
2. Which workflow operations may be invoked next?

Precedence is Treatment > Assessment > Risk: the most downstream sub-record
reflects where the pipeline actually is.

Stage Definitions:
- intake_review: Reported, awaiting GRC validation
- declined: GRC decided it is not a risk (terminal)
- awaiting_assessor: Validated, no assessor assigned yet
- assessment: Assessor is analysing
- grc_review: Assessment submitted, awaiting GRC approval
- grc_revision: GRC declined the assessment and is revising it
- treatment_decision: Owner must choose mitigate/accept/transfer/avoid
- identify_executive: Decision escalated, GRC must name an executive
- awaiting_executive_approval: Executive must approve or deny
- mitigation_in_progress: Mitigation plan is being executed
- treatment_final: Accepted, transferred, avoided or auto-accepted
- completed: Mitigation finished
"""
from typing import Dict, List, Optional, Tuple

from riskflow.core.risk_statuses import RiskStatus, AssessmentStatus, TreatmentStatus


class WorkflowStage:
    """Enum-like class for workflow stage labels."""
    INTAKE_REVIEW = "intake_review"
    DECLINED = "declined"
    AWAITING_ASSESSOR = "awaiting_assessor"
    ASSESSMENT = "assessment"
    GRC_REVIEW = "grc_review"
    GRC_REVISION = "grc_revision"
    TREATMENT_DECISION = "treatment_decision"
    IDENTIFY_EXECUTIVE = "identify_executive"
    AWAITING_EXECUTIVE_APPROVAL = "awaiting_executive_approval"
    MITIGATION_IN_PROGRESS = "mitigation_in_progress"
    TREATMENT_FINAL = "treatment_final"
    COMPLETED = "completed"


ALL_STAGES = frozenset({
    WorkflowStage.INTAKE_REVIEW,
    WorkflowStage.DECLINED,
    WorkflowStage.AWAITING_ASSESSOR,
    WorkflowStage.ASSESSMENT,
    WorkflowStage.GRC_REVIEW,
    WorkflowStage.GRC_REVISION,
    WorkflowStage.TREATMENT_DECISION,
    WorkflowStage.IDENTIFY_EXECUTIVE,
    WorkflowStage.AWAITING_EXECUTIVE_APPROVAL,
    WorkflowStage.MITIGATION_IN_PROGRESS,
    WorkflowStage.TREATMENT_FINAL,
    WorkflowStage.COMPLETED,
})


class WorkflowAction:
    """Operation names exposed to clients as available actions."""
    VALIDATE_RISK = "validate_risk"
    ASSIGN_RISK_ASSESSOR = "assign_risk_assessor"
    SUBMIT_ASSESSMENT = "submit_assessment"
    REVIEW_ASSESSMENT = "review_assessment"
    SUBMIT_GRC_REVISION = "submit_grc_revision"
    SUBMIT_TREATMENT_DECISION = "submit_treatment_decision"
    SET_EXECUTIVE_APPROVER = "set_executive_approver"
    SUBMIT_EXECUTIVE_DECISION = "submit_executive_decision"
    SUBMIT_MITIGATION_UPDATE = "submit_mitigation_update"


# Each table covers every member of its enum; tests check exhaustiveness.
TREATMENT_STAGES: Dict[TreatmentStatus, str] = {
    TreatmentStatus.TREATMENT_DECISION_REVIEW: WorkflowStage.TREATMENT_DECISION,
    TreatmentStatus.IDENTIFY_EXECUTIVE_APPROVER: WorkflowStage.IDENTIFY_EXECUTIVE,
    TreatmentStatus.EXECUTIVE_APPROVAL: WorkflowStage.AWAITING_EXECUTIVE_APPROVAL,
    TreatmentStatus.RISK_MITIGATION_IN_PROGRESS: WorkflowStage.MITIGATION_IN_PROGRESS,
    TreatmentStatus.MITIGATION_STATUS_UPDATE: WorkflowStage.MITIGATION_IN_PROGRESS,
    TreatmentStatus.RISK_MITIGATION_COMPLETE: WorkflowStage.COMPLETED,
    TreatmentStatus.RISK_ACCEPT: WorkflowStage.TREATMENT_FINAL,
    TreatmentStatus.RISK_TRANSFER: WorkflowStage.TREATMENT_FINAL,
    TreatmentStatus.RISK_AVOID: WorkflowStage.TREATMENT_FINAL,
    TreatmentStatus.RISK_AUTO_ACCEPT: WorkflowStage.TREATMENT_FINAL,
}

# None means "defer to the risk's own status"
ASSESSMENT_STAGES: Dict[AssessmentStatus, Optional[str]] = {
    AssessmentStatus.RISK_ASSESSOR_ANALYSIS: WorkflowStage.ASSESSMENT,
    AssessmentStatus.GRC_APPROVAL: WorkflowStage.GRC_REVIEW,
    AssessmentStatus.GRC_REVISION: WorkflowStage.GRC_REVISION,
    AssessmentStatus.DONE: None,
}

RISK_STAGES: Dict[RiskStatus, str] = {
    RiskStatus.RISK_IDENTIFIED: WorkflowStage.INTAKE_REVIEW,
    RiskStatus.NOT_A_RISK: WorkflowStage.DECLINED,
    RiskStatus.ACTUAL_RISK: WorkflowStage.AWAITING_ASSESSOR,
    RiskStatus.RISK_ANALYSIS_IN_PROGRESS: WorkflowStage.ASSESSMENT,
    RiskStatus.RISK_ANALYZED: WorkflowStage.TREATMENT_DECISION,
}

TREATMENT_ACTIONS: Dict[TreatmentStatus, Tuple[str, ...]] = {
    TreatmentStatus.TREATMENT_DECISION_REVIEW: (WorkflowAction.SUBMIT_TREATMENT_DECISION,),
    TreatmentStatus.IDENTIFY_EXECUTIVE_APPROVER: (WorkflowAction.SET_EXECUTIVE_APPROVER,),
    TreatmentStatus.EXECUTIVE_APPROVAL: (WorkflowAction.SUBMIT_EXECUTIVE_DECISION,),
    TreatmentStatus.RISK_MITIGATION_IN_PROGRESS: (WorkflowAction.SUBMIT_MITIGATION_UPDATE,),
    TreatmentStatus.MITIGATION_STATUS_UPDATE: (WorkflowAction.SUBMIT_MITIGATION_UPDATE,),
    TreatmentStatus.RISK_MITIGATION_COMPLETE: (),
    TreatmentStatus.RISK_ACCEPT: (),
    TreatmentStatus.RISK_TRANSFER: (),
    TreatmentStatus.RISK_AVOID: (),
    TreatmentStatus.RISK_AUTO_ACCEPT: (),
}

ASSESSMENT_ACTIONS: Dict[AssessmentStatus, Tuple[str, ...]] = {
    AssessmentStatus.RISK_ASSESSOR_ANALYSIS: (WorkflowAction.SUBMIT_ASSESSMENT,),
    AssessmentStatus.GRC_APPROVAL: (WorkflowAction.REVIEW_ASSESSMENT,),
    AssessmentStatus.GRC_REVISION: (WorkflowAction.SUBMIT_GRC_REVISION,),
    AssessmentStatus.DONE: (),
}

RISK_ACTIONS: Dict[RiskStatus, Tuple[str, ...]] = {
    RiskStatus.RISK_IDENTIFIED: (WorkflowAction.VALIDATE_RISK,),
    RiskStatus.NOT_A_RISK: (),
    RiskStatus.ACTUAL_RISK: (WorkflowAction.ASSIGN_RISK_ASSESSOR,),
    RiskStatus.RISK_ANALYSIS_IN_PROGRESS: (),
    RiskStatus.RISK_ANALYZED: (),
}


def determine_current_stage(
    risk_status: str,
    assessment_status: Optional[str] = None,
    treatment_status: Optional[str] = None
) -> str:
    """
    Determine the current workflow stage for display.

    Args:
        risk_status: Risk.status
        assessment_status: RiskAssessment.status, or None if no assessment yet
        treatment_status: RiskTreatment.status, or None if no treatment yet

    Returns:
        One of the WorkflowStage labels

    Raises:
        ValueError: If a status is not a known enum value
    """
    if treatment_status is not None:
        return TREATMENT_STAGES[TreatmentStatus(treatment_status)]

    if assessment_status is not None:
        stage = ASSESSMENT_STAGES[AssessmentStatus(assessment_status)]
        if stage is not None:
            return stage

    return RISK_STAGES[RiskStatus(risk_status)]


def get_available_actions(
    risk_status: str,
    assessment_status: Optional[str] = None,
    treatment_status: Optional[str] = None
) -> List[str]:
    """
    List the workflow operations permitted in the current state.

    Only the most downstream record contributes actions: once a treatment
    exists assessment actions are closed, and once an assessment exists the
    intake actions are closed.
    """
    if treatment_status is not None:
        return list(TREATMENT_ACTIONS[TreatmentStatus(treatment_status)])

    if assessment_status is not None:
        return list(ASSESSMENT_ACTIONS[AssessmentStatus(assessment_status)])

    return list(RISK_ACTIONS[RiskStatus(risk_status)])
