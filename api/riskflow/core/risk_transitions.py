"""Pure transition decisions for the risk workflow.

Every function here takes current statuses plus the caller's input and returns
the target state and derived fields; nothing touches the database. The
service layer in riskflow.services.risk_workflow persists the results.
"""
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Tuple

from riskflow.core.exceptions import RiskNotFoundError, InvalidStateError
from riskflow.core.risk_scoring import calculate_optional_risk_level
from riskflow.core.risk_statuses import (
    RiskStatus,
    AssessmentStatus,
    TreatmentStatus,
    TreatmentDecision,
    RiskLevel,
    ReviewDecision,
    ExecutiveDecision,
    ExecutiveApprovalStatus,
    MitigationProgressStatus,
    MITIGATION_UPDATE_STATUSES,
)
from riskflow.core.treatment_routing import (
    route_treatment_decision,
    requires_executive_approval,
    resolve_executive_decision,
)


# ==================== GUARDS ====================

def require_risk_status(current: str, expected: RiskStatus) -> None:
    """Intake-stage guard. Wrong status is reported as not found."""
    if current != expected:
        raise RiskNotFoundError(f"Risk not found or not in {expected.value} status")


def require_assessment_status(current: Optional[str], expected: AssessmentStatus) -> None:
    if current is None:
        raise RiskNotFoundError("Risk or assessment not found")
    if current != expected:
        raise InvalidStateError(f"Assessment is not in {expected.value} status")


def require_treatment_status(current: Optional[str], allowed: Iterable[TreatmentStatus]) -> None:
    allowed = tuple(allowed)
    if current is None:
        raise RiskNotFoundError("Risk or treatment not found")
    if current not in allowed:
        if len(allowed) == 1:
            raise InvalidStateError(f"Treatment is not in {allowed[0].value} status")
        raise InvalidStateError("Treatment is not in a mitigation status")


# ==================== INTAKE ====================

VALIDATION_OUTCOMES: Dict[ReviewDecision, Tuple[RiskStatus, str]] = {
    ReviewDecision.APPROVE: (RiskStatus.ACTUAL_RISK, "risk_validated"),
    ReviewDecision.DECLINE: (RiskStatus.NOT_A_RISK, "risk_declined"),
}


def decide_validation(current: str, decision: ReviewDecision | str) -> Tuple[RiskStatus, str]:
    """Return (new risk status, history action) for a GRC validation."""
    require_risk_status(current, RiskStatus.RISK_IDENTIFIED)
    return VALIDATION_OUTCOMES[ReviewDecision(decision)]


def format_risk_code(sequence: int, prefix: str = "RISK", width: int = 3) -> str:
    """RISK-001, RISK-042, RISK-1234."""
    return f"{prefix}-{str(sequence).zfill(width)}"


# ==================== ASSESSMENT ====================

@dataclass(frozen=True)
class AssessmentReviewOutcome:
    assessment_status: AssessmentStatus
    risk_status: Optional[RiskStatus]
    creates_treatment: bool
    history_action: str


ASSESSMENT_REVIEW_OUTCOMES: Dict[ReviewDecision, AssessmentReviewOutcome] = {
    ReviewDecision.APPROVE: AssessmentReviewOutcome(
        assessment_status=AssessmentStatus.DONE,
        risk_status=RiskStatus.RISK_ANALYZED,
        creates_treatment=True,
        history_action="assessment_approved",
    ),
    # Decline loops inside the assessment; the risk status stays put
    ReviewDecision.DECLINE: AssessmentReviewOutcome(
        assessment_status=AssessmentStatus.GRC_REVISION,
        risk_status=None,
        creates_treatment=False,
        history_action="assessment_revision_requested",
    ),
}


def decide_assessment_review(current: Optional[str], decision: ReviewDecision | str) -> AssessmentReviewOutcome:
    require_assessment_status(current, AssessmentStatus.GRC_APPROVAL)
    return ASSESSMENT_REVIEW_OUTCOMES[ReviewDecision(decision)]


def score_assessment(likelihood: str, impact: str) -> RiskLevel:
    """Inherent level for a submitted or revised assessment."""
    return calculate_optional_risk_level(likelihood, impact)


# ==================== TREATMENT ====================

@dataclass(frozen=True)
class TreatmentRoutingOutcome:
    next_status: TreatmentStatus
    executive_approval_required: bool


def decide_treatment(
    current: Optional[str],
    decision: TreatmentDecision | str,
    inherent_level: Optional[str]
) -> TreatmentRoutingOutcome:
    """Route a treatment decision through the matrix."""
    require_treatment_status(current, (TreatmentStatus.TREATMENT_DECISION_REVIEW,))
    next_status = route_treatment_decision(decision, inherent_level)
    return TreatmentRoutingOutcome(
        next_status=next_status,
        executive_approval_required=requires_executive_approval(decision, inherent_level),
    )


def decide_executive_approver(current: Optional[str]) -> TreatmentStatus:
    require_treatment_status(current, (TreatmentStatus.IDENTIFY_EXECUTIVE_APPROVER,))
    return TreatmentStatus.EXECUTIVE_APPROVAL


@dataclass(frozen=True)
class ExecutiveDecisionOutcome:
    next_status: TreatmentStatus
    approval_status: ExecutiveApprovalStatus
    clears_decision: bool
    history_action: str


def decide_executive(
    current: Optional[str],
    executive_decision: ExecutiveDecision | str,
    treatment_decision: Optional[str]
) -> ExecutiveDecisionOutcome:
    require_treatment_status(current, (TreatmentStatus.EXECUTIVE_APPROVAL,))
    if treatment_decision is None:
        raise InvalidStateError("Treatment has no decision awaiting executive approval")

    next_status = resolve_executive_decision(executive_decision, treatment_decision)
    if ExecutiveDecision(executive_decision) == ExecutiveDecision.APPROVE:
        return ExecutiveDecisionOutcome(
            next_status=next_status,
            approval_status=ExecutiveApprovalStatus.APPROVED,
            clears_decision=False,
            history_action="executive_approval_granted",
        )
    return ExecutiveDecisionOutcome(
        next_status=next_status,
        approval_status=ExecutiveApprovalStatus.DENIED,
        clears_decision=True,
        history_action="executive_approval_denied",
    )


# ==================== MITIGATION ====================

@dataclass(frozen=True)
class MitigationOutcome:
    next_status: TreatmentStatus
    update_type: str
    clears_decision: bool
    completes: bool


MITIGATION_OUTCOMES: Dict[MitigationProgressStatus, MitigationOutcome] = {
    MitigationProgressStatus.ON_TRACK: MitigationOutcome(
        TreatmentStatus.RISK_MITIGATION_IN_PROGRESS, "progress", False, False
    ),
    MitigationProgressStatus.DELAYED: MitigationOutcome(
        TreatmentStatus.RISK_MITIGATION_IN_PROGRESS, "delay", False, False
    ),
    # Owner has to pick a new approach, same as an executive denial
    MitigationProgressStatus.CANCELLED: MitigationOutcome(
        TreatmentStatus.TREATMENT_DECISION_REVIEW, "cancellation", True, False
    ),
    MitigationProgressStatus.DONE: MitigationOutcome(
        TreatmentStatus.RISK_MITIGATION_COMPLETE, "completion", False, True
    ),
}

def decide_mitigation_update(current: Optional[str], progress_status: MitigationProgressStatus | str) -> MitigationOutcome:
    require_treatment_status(current, sorted(MITIGATION_UPDATE_STATUSES))
    return MITIGATION_OUTCOMES[MitigationProgressStatus(progress_status)]


def merge_residual(
    current_likelihood: Optional[str],
    current_impact: Optional[str],
    new_likelihood: Optional[str],
    new_impact: Optional[str]
) -> Tuple[Optional[str], Optional[str], Optional[RiskLevel]]:
    """
    Merge residual inputs from an update with stored values.

    Returns:
        (likelihood, impact, level) where level is recomputed from the merged
        pair, or None while either half is still unknown
    """
    likelihood = new_likelihood if new_likelihood is not None else current_likelihood
    impact = new_impact if new_impact is not None else current_impact
    return likelihood, impact, calculate_optional_risk_level(likelihood, impact)
