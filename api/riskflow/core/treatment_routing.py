"""Treatment routing matrix.

Decision x inherent risk level -> next treatment status. Escalation policy
lives in this table only; change the data, not the code paths that read it.
"""
from typing import Dict

from riskflow.core.risk_statuses import (
    RiskLevel,
    TreatmentDecision,
    TreatmentStatus,
    ExecutiveDecision,
)


TREATMENT_ROUTING: Dict[TreatmentDecision, Dict[RiskLevel, TreatmentStatus]] = {
    TreatmentDecision.MITIGATE: {
        RiskLevel.VERY_HIGH: TreatmentStatus.RISK_MITIGATION_IN_PROGRESS,
        RiskLevel.HIGH: TreatmentStatus.RISK_MITIGATION_IN_PROGRESS,
        RiskLevel.MEDIUM: TreatmentStatus.RISK_MITIGATION_IN_PROGRESS,
        RiskLevel.LOW: TreatmentStatus.RISK_MITIGATION_IN_PROGRESS,
        RiskLevel.VERY_LOW: TreatmentStatus.RISK_MITIGATION_IN_PROGRESS,
    },
    TreatmentDecision.ACCEPT: {
        RiskLevel.VERY_HIGH: TreatmentStatus.IDENTIFY_EXECUTIVE_APPROVER,
        RiskLevel.HIGH: TreatmentStatus.IDENTIFY_EXECUTIVE_APPROVER,
        RiskLevel.MEDIUM: TreatmentStatus.RISK_ACCEPT,
        RiskLevel.LOW: TreatmentStatus.RISK_AUTO_ACCEPT,
        RiskLevel.VERY_LOW: TreatmentStatus.RISK_AUTO_ACCEPT,
    },
    TreatmentDecision.TRANSFER: {
        RiskLevel.VERY_HIGH: TreatmentStatus.IDENTIFY_EXECUTIVE_APPROVER,
        RiskLevel.HIGH: TreatmentStatus.IDENTIFY_EXECUTIVE_APPROVER,
        RiskLevel.MEDIUM: TreatmentStatus.RISK_TRANSFER,
        RiskLevel.LOW: TreatmentStatus.RISK_AUTO_ACCEPT,
        RiskLevel.VERY_LOW: TreatmentStatus.RISK_AUTO_ACCEPT,
    },
    TreatmentDecision.AVOID: {
        RiskLevel.VERY_HIGH: TreatmentStatus.IDENTIFY_EXECUTIVE_APPROVER,
        RiskLevel.HIGH: TreatmentStatus.IDENTIFY_EXECUTIVE_APPROVER,
        RiskLevel.MEDIUM: TreatmentStatus.RISK_AVOID,
        RiskLevel.LOW: TreatmentStatus.RISK_AUTO_ACCEPT,
        RiskLevel.VERY_LOW: TreatmentStatus.RISK_AUTO_ACCEPT,
    },
}

# Where an executive-approved decision lands
EXECUTIVE_APPROVAL_OUTCOMES: Dict[TreatmentDecision, TreatmentStatus] = {
    TreatmentDecision.MITIGATE: TreatmentStatus.RISK_MITIGATION_IN_PROGRESS,
    TreatmentDecision.ACCEPT: TreatmentStatus.RISK_ACCEPT,
    TreatmentDecision.TRANSFER: TreatmentStatus.RISK_TRANSFER,
    TreatmentDecision.AVOID: TreatmentStatus.RISK_AVOID,
}

# Applied when a legacy risk reaches treatment without an inherent level
DEFAULT_ROUTING_LEVEL = RiskLevel.MEDIUM


def route_treatment_decision(
    decision: TreatmentDecision | str,
    risk_level: RiskLevel | str | None
) -> TreatmentStatus:
    """Look up the next treatment status for a decision at a given level."""
    level = RiskLevel(risk_level) if risk_level else DEFAULT_ROUTING_LEVEL
    return TREATMENT_ROUTING[TreatmentDecision(decision)][level]


def requires_executive_approval(
    decision: TreatmentDecision | str,
    risk_level: RiskLevel | str | None
) -> bool:
    """True when the matrix escalates this cell to an executive."""
    return route_treatment_decision(decision, risk_level) == TreatmentStatus.IDENTIFY_EXECUTIVE_APPROVER


def resolve_executive_decision(
    executive_decision: ExecutiveDecision | str,
    treatment_decision: TreatmentDecision | str
) -> TreatmentStatus:
    """
    Map an executive's ruling to the next treatment status.

    Approval lands on the terminal status of the owner's original decision
    (mitigate still goes to mitigation in progress). Denial sends the
    treatment back for a new decision.
    """
    if ExecutiveDecision(executive_decision) == ExecutiveDecision.DENY:
        return TreatmentStatus.TREATMENT_DECISION_REVIEW
    return EXECUTIVE_APPROVAL_OUTCOMES[TreatmentDecision(treatment_decision)]
