"""Tests for the pure transition decisions and their guards."""
import pytest

from riskflow.core.exceptions import RiskNotFoundError, InvalidStateError
from riskflow.core.risk_statuses import (
    RiskStatus,
    AssessmentStatus,
    TreatmentStatus,
    RiskLevel,
    ExecutiveApprovalStatus,
)
from riskflow.core.risk_transitions import (
    decide_validation,
    format_risk_code,
    decide_assessment_review,
    decide_treatment,
    decide_executive_approver,
    decide_executive,
    decide_mitigation_update,
    merge_residual,
)


class TestValidation:
    def test_approve_and_decline(self):
        assert decide_validation("risk_identified", "approve") == (RiskStatus.ACTUAL_RISK, "risk_validated")
        assert decide_validation("risk_identified", "decline") == (RiskStatus.NOT_A_RISK, "risk_declined")

    def test_wrong_status_reads_as_not_found(self):
        with pytest.raises(RiskNotFoundError) as exc_info:
            decide_validation("actual_risk", "approve")
        assert exc_info.value.status_code == 404
        assert "risk_identified" in exc_info.value.detail


class TestRiskCode:
    @pytest.mark.parametrize("sequence,expected", [
        (1, "RISK-001"),
        (42, "RISK-042"),
        (999, "RISK-999"),
        (1234, "RISK-1234"),
    ])
    def test_zero_padded(self, sequence, expected):
        assert format_risk_code(sequence) == expected


class TestAssessmentReview:
    def test_approve_completes_and_opens_treatment(self):
        outcome = decide_assessment_review("grc_approval", "approve")
        assert outcome.assessment_status == AssessmentStatus.DONE
        assert outcome.risk_status == RiskStatus.RISK_ANALYZED
        assert outcome.creates_treatment

    def test_decline_leaves_risk_status(self):
        outcome = decide_assessment_review("grc_approval", "decline")
        assert outcome.assessment_status == AssessmentStatus.GRC_REVISION
        assert outcome.risk_status is None
        assert not outcome.creates_treatment

    def test_missing_assessment_is_not_found(self):
        with pytest.raises(RiskNotFoundError):
            decide_assessment_review(None, "approve")

    def test_wrong_status_is_invalid_state(self):
        with pytest.raises(InvalidStateError) as exc_info:
            decide_assessment_review("risk_assessor_analysis", "approve")
        assert exc_info.value.status_code == 400


class TestTreatmentDecision:
    def test_high_accept_escalates(self):
        outcome = decide_treatment("treatment_decision_review", "accept", RiskLevel.HIGH)
        assert outcome.next_status == TreatmentStatus.IDENTIFY_EXECUTIVE_APPROVER
        assert outcome.executive_approval_required

    def test_low_transfer_auto_accepts(self):
        outcome = decide_treatment("treatment_decision_review", "transfer", "low")
        assert outcome.next_status == TreatmentStatus.RISK_AUTO_ACCEPT
        assert not outcome.executive_approval_required

    def test_requires_decision_review(self):
        with pytest.raises(InvalidStateError):
            decide_treatment("risk_accept", "accept", "medium")
        with pytest.raises(RiskNotFoundError):
            decide_treatment(None, "accept", "medium")

    def test_set_approver_requires_escalation(self):
        assert decide_executive_approver("identify_executive_approver") == TreatmentStatus.EXECUTIVE_APPROVAL
        with pytest.raises(InvalidStateError):
            decide_executive_approver("treatment_decision_review")


class TestExecutiveDecision:
    def test_approve(self):
        outcome = decide_executive("executive_approval", "approve", "accept")
        assert outcome.next_status == TreatmentStatus.RISK_ACCEPT
        assert outcome.approval_status == ExecutiveApprovalStatus.APPROVED
        assert not outcome.clears_decision

    def test_deny(self):
        outcome = decide_executive("executive_approval", "deny", "transfer")
        assert outcome.next_status == TreatmentStatus.TREATMENT_DECISION_REVIEW
        assert outcome.approval_status == ExecutiveApprovalStatus.DENIED
        assert outcome.clears_decision

    def test_requires_executive_approval_status(self):
        with pytest.raises(InvalidStateError):
            decide_executive("identify_executive_approver", "approve", "accept")


class TestMitigationUpdate:
    @pytest.mark.parametrize("progress_status,next_status,update_type", [
        ("on_track", TreatmentStatus.RISK_MITIGATION_IN_PROGRESS, "progress"),
        ("delayed", TreatmentStatus.RISK_MITIGATION_IN_PROGRESS, "delay"),
        ("cancelled", TreatmentStatus.TREATMENT_DECISION_REVIEW, "cancellation"),
        ("done", TreatmentStatus.RISK_MITIGATION_COMPLETE, "completion"),
    ])
    def test_outcomes(self, progress_status, next_status, update_type):
        outcome = decide_mitigation_update("risk_mitigation_in_progress", progress_status)
        assert outcome.next_status == next_status
        assert outcome.update_type == update_type

    def test_cancel_clears_decision(self):
        assert decide_mitigation_update("mitigation_status_update", "cancelled").clears_decision

    def test_rejects_non_mitigation_status(self):
        with pytest.raises(InvalidStateError) as exc_info:
            decide_mitigation_update("risk_accept", "on_track")
        assert "mitigation status" in exc_info.value.detail


class TestMergeResidual:
    def test_new_values_override_stored(self):
        assert merge_residual("likely", "major", "rare", "minor") == ("rare", "minor", RiskLevel.VERY_LOW)

    def test_partial_update_merges_with_stored(self):
        assert merge_residual("rare", None, None, "minor") == ("rare", "minor", RiskLevel.VERY_LOW)

    def test_level_unknown_until_both_halves(self):
        assert merge_residual(None, None, "rare", None) == ("rare", None, None)
