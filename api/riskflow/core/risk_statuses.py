"""Shared risk workflow enums and status groupings.

Values are persisted as plain strings, so renaming a value requires a data
migration.
"""
from __future__ import annotations

import enum
from typing import Dict


class RiskStatus(str, enum.Enum):
    """Intake-level status carried on the Risk itself."""
    RISK_IDENTIFIED = "risk_identified"
    NOT_A_RISK = "not_a_risk"
    ACTUAL_RISK = "actual_risk"
    RISK_ANALYSIS_IN_PROGRESS = "risk_analysis_in_progress"
    RISK_ANALYZED = "risk_analyzed"


class AssessmentStatus(str, enum.Enum):
    RISK_ASSESSOR_ANALYSIS = "risk_assessor_analysis"
    GRC_APPROVAL = "grc_approval"
    GRC_REVISION = "grc_revision"
    DONE = "done"


class TreatmentStatus(str, enum.Enum):
    TREATMENT_DECISION_REVIEW = "treatment_decision_review"
    IDENTIFY_EXECUTIVE_APPROVER = "identify_executive_approver"
    EXECUTIVE_APPROVAL = "executive_approval"
    RISK_MITIGATION_IN_PROGRESS = "risk_mitigation_in_progress"
    MITIGATION_STATUS_UPDATE = "mitigation_status_update"
    RISK_MITIGATION_COMPLETE = "risk_mitigation_complete"
    RISK_ACCEPT = "risk_accept"
    RISK_TRANSFER = "risk_transfer"
    RISK_AVOID = "risk_avoid"
    RISK_AUTO_ACCEPT = "risk_auto_accept"


class TreatmentDecision(str, enum.Enum):
    MITIGATE = "mitigate"
    ACCEPT = "accept"
    TRANSFER = "transfer"
    AVOID = "avoid"


class RiskLevel(str, enum.Enum):
    VERY_LOW = "very_low"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    VERY_HIGH = "very_high"


class Likelihood(str, enum.Enum):
    RARE = "rare"
    UNLIKELY = "unlikely"
    POSSIBLE = "possible"
    LIKELY = "likely"
    ALMOST_CERTAIN = "almost_certain"


class Impact(str, enum.Enum):
    NEGLIGIBLE = "negligible"
    MINOR = "minor"
    MODERATE = "moderate"
    MAJOR = "major"
    SEVERE = "severe"


class MitigationProgressStatus(str, enum.Enum):
    ON_TRACK = "on_track"
    DELAYED = "delayed"
    CANCELLED = "cancelled"
    DONE = "done"


class RiskSource(str, enum.Enum):
    INTERNAL_SECURITY_REVIEWS = "internal_security_reviews"
    AD_HOC_DISCOVERY = "ad_hoc_discovery"
    EXTERNAL_SECURITY_REVIEWS = "external_security_reviews"
    INCIDENT_RESPONSE = "incident_response"
    POLICY_EXCEPTION = "policy_exception"
    EMPLOYEE_REPORTING = "employee_reporting"


class RiskCategory(str, enum.Enum):
    TECHNICAL = "technical"
    PROCESS_COMPLIANCE = "process_compliance"
    THIRD_PARTY = "third_party"
    OPERATIONAL = "operational"
    STRATEGIC = "strategic"
    COMPLIANCE = "compliance"
    SECURITY = "security"
    FINANCIAL = "financial"


class ControlEffectiveness(str, enum.Enum):
    NONE = "none"
    PARTIAL = "partial"
    FULL = "full"


class ReviewDecision(str, enum.Enum):
    APPROVE = "approve"
    DECLINE = "decline"


class ExecutiveDecision(str, enum.Enum):
    APPROVE = "approve"
    DENY = "deny"


class ExecutiveApprovalStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"


TERMINAL_TREATMENT_STATUSES = frozenset({
    TreatmentStatus.RISK_MITIGATION_COMPLETE,
    TreatmentStatus.RISK_ACCEPT,
    TreatmentStatus.RISK_TRANSFER,
    TreatmentStatus.RISK_AVOID,
    TreatmentStatus.RISK_AUTO_ACCEPT,
})

# Statuses from which a mitigation progress update may be filed
MITIGATION_UPDATE_STATUSES = frozenset({
    TreatmentStatus.RISK_MITIGATION_IN_PROGRESS,
    TreatmentStatus.MITIGATION_STATUS_UPDATE,
})

# Coarse treatment summary mirrored onto Risk.treatment_status
TREATMENT_SUMMARY_STATUS: Dict[TreatmentStatus, str] = {
    TreatmentStatus.TREATMENT_DECISION_REVIEW: "pending",
    TreatmentStatus.IDENTIFY_EXECUTIVE_APPROVER: "pending",
    TreatmentStatus.EXECUTIVE_APPROVAL: "pending",
    TreatmentStatus.RISK_MITIGATION_IN_PROGRESS: "in_progress",
    TreatmentStatus.MITIGATION_STATUS_UPDATE: "in_progress",
    TreatmentStatus.RISK_MITIGATION_COMPLETE: "completed",
    TreatmentStatus.RISK_ACCEPT: "completed",
    TreatmentStatus.RISK_TRANSFER: "completed",
    TreatmentStatus.RISK_AVOID: "completed",
    TreatmentStatus.RISK_AUTO_ACCEPT: "completed",
}
