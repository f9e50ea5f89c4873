"""Tests for the workflow stage / available action projection."""
import pytest

from riskflow.core.risk_statuses import RiskStatus, AssessmentStatus, TreatmentStatus
from riskflow.core.workflow_state import (
    ALL_STAGES,
    TREATMENT_STAGES,
    ASSESSMENT_STAGES,
    RISK_STAGES,
    TREATMENT_ACTIONS,
    ASSESSMENT_ACTIONS,
    RISK_ACTIONS,
    WorkflowStage,
    WorkflowAction,
    determine_current_stage,
    get_available_actions,
)


class TestExhaustiveMappings:
    def test_every_status_has_a_stage(self):
        assert set(TREATMENT_STAGES) == set(TreatmentStatus)
        assert set(ASSESSMENT_STAGES) == set(AssessmentStatus)
        assert set(RISK_STAGES) == set(RiskStatus)

    def test_every_status_has_an_action_list(self):
        assert set(TREATMENT_ACTIONS) == set(TreatmentStatus)
        assert set(ASSESSMENT_ACTIONS) == set(AssessmentStatus)
        assert set(RISK_ACTIONS) == set(RiskStatus)

    def test_stage_labels_are_known(self):
        mapped = set(TREATMENT_STAGES.values()) | set(RISK_STAGES.values())
        mapped |= {stage for stage in ASSESSMENT_STAGES.values() if stage is not None}
        assert mapped <= ALL_STAGES


class TestDetermineCurrentStage:
    @pytest.mark.parametrize("risk_status,expected", [
        ("risk_identified", WorkflowStage.INTAKE_REVIEW),
        ("not_a_risk", WorkflowStage.DECLINED),
        ("actual_risk", WorkflowStage.AWAITING_ASSESSOR),
    ])
    def test_risk_only(self, risk_status, expected):
        assert determine_current_stage(risk_status) == expected

    @pytest.mark.parametrize("assessment_status,expected", [
        ("risk_assessor_analysis", WorkflowStage.ASSESSMENT),
        ("grc_approval", WorkflowStage.GRC_REVIEW),
        ("grc_revision", WorkflowStage.GRC_REVISION),
    ])
    def test_assessment_in_flight(self, assessment_status, expected):
        assert determine_current_stage("risk_analysis_in_progress", assessment_status) == expected

    def test_done_assessment_defers_to_risk(self):
        assert determine_current_stage("risk_analyzed", "done") == WorkflowStage.TREATMENT_DECISION

    @pytest.mark.parametrize("treatment_status,expected", [
        ("treatment_decision_review", WorkflowStage.TREATMENT_DECISION),
        ("identify_executive_approver", WorkflowStage.IDENTIFY_EXECUTIVE),
        ("executive_approval", WorkflowStage.AWAITING_EXECUTIVE_APPROVAL),
        ("risk_mitigation_in_progress", WorkflowStage.MITIGATION_IN_PROGRESS),
        ("mitigation_status_update", WorkflowStage.MITIGATION_IN_PROGRESS),
        ("risk_mitigation_complete", WorkflowStage.COMPLETED),
        ("risk_accept", WorkflowStage.TREATMENT_FINAL),
        ("risk_transfer", WorkflowStage.TREATMENT_FINAL),
        ("risk_avoid", WorkflowStage.TREATMENT_FINAL),
        ("risk_auto_accept", WorkflowStage.TREATMENT_FINAL),
    ])
    def test_treatment_takes_precedence(self, treatment_status, expected):
        assert determine_current_stage("risk_analyzed", "done", treatment_status) == expected

    def test_unknown_status_raises(self):
        with pytest.raises(ValueError):
            determine_current_stage("archived")


class TestAvailableActions:
    def test_intake(self):
        assert get_available_actions("risk_identified") == [WorkflowAction.VALIDATE_RISK]
        assert get_available_actions("actual_risk") == [WorkflowAction.ASSIGN_RISK_ASSESSOR]
        assert get_available_actions("not_a_risk") == []

    def test_assessment_closes_intake_actions(self):
        assert get_available_actions("risk_analysis_in_progress", "grc_approval") == [
            WorkflowAction.REVIEW_ASSESSMENT
        ]
        assert get_available_actions("risk_analysis_in_progress", "grc_revision") == [
            WorkflowAction.SUBMIT_GRC_REVISION
        ]

    def test_treatment_closes_assessment_actions(self):
        assert get_available_actions("risk_analyzed", "done", "treatment_decision_review") == [
            WorkflowAction.SUBMIT_TREATMENT_DECISION
        ]
        assert get_available_actions("risk_analyzed", "done", "mitigation_status_update") == [
            WorkflowAction.SUBMIT_MITIGATION_UPDATE
        ]

    @pytest.mark.parametrize("terminal", [
        "risk_mitigation_complete", "risk_accept", "risk_transfer", "risk_avoid", "risk_auto_accept"
    ])
    def test_terminal_treatment_has_no_actions(self, terminal):
        assert get_available_actions("risk_analyzed", "done", terminal) == []
