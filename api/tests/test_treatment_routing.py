"""Tests for the decision x risk level routing matrix."""
import pytest

from riskflow.core.risk_statuses import (
    RiskLevel,
    TreatmentDecision,
    TreatmentStatus,
    ExecutiveDecision,
)
from riskflow.core.treatment_routing import (
    TREATMENT_ROUTING,
    route_treatment_decision,
    requires_executive_approval,
    resolve_executive_decision,
)

ESCALATE = TreatmentStatus.IDENTIFY_EXECUTIVE_APPROVER
MITIGATE = TreatmentStatus.RISK_MITIGATION_IN_PROGRESS
AUTO = TreatmentStatus.RISK_AUTO_ACCEPT

EXPECTED_ROUTES = {
    # decision: (very_high, high, medium, low, very_low)
    TreatmentDecision.MITIGATE: (MITIGATE, MITIGATE, MITIGATE, MITIGATE, MITIGATE),
    TreatmentDecision.ACCEPT: (ESCALATE, ESCALATE, TreatmentStatus.RISK_ACCEPT, AUTO, AUTO),
    TreatmentDecision.TRANSFER: (ESCALATE, ESCALATE, TreatmentStatus.RISK_TRANSFER, AUTO, AUTO),
    TreatmentDecision.AVOID: (ESCALATE, ESCALATE, TreatmentStatus.RISK_AVOID, AUTO, AUTO),
}
LEVEL_COLUMNS = (
    RiskLevel.VERY_HIGH, RiskLevel.HIGH, RiskLevel.MEDIUM, RiskLevel.LOW, RiskLevel.VERY_LOW
)

ALL_CELLS = [
    (decision, level, expected)
    for decision, row in EXPECTED_ROUTES.items()
    for level, expected in zip(LEVEL_COLUMNS, row)
]


class TestRoutingMatrix:
    def test_matrix_covers_every_decision_and_level(self):
        assert set(TREATMENT_ROUTING) == set(TreatmentDecision)
        for row in TREATMENT_ROUTING.values():
            assert set(row) == set(RiskLevel)

    @pytest.mark.parametrize("decision,level,expected", ALL_CELLS)
    def test_route(self, decision, level, expected):
        assert route_treatment_decision(decision, level) == expected

    @pytest.mark.parametrize("decision,level,expected", ALL_CELLS)
    def test_escalation_flag_matches_route(self, decision, level, expected):
        assert requires_executive_approval(decision, level) == (expected == ESCALATE)

    def test_string_inputs(self):
        assert route_treatment_decision("accept", "high") == ESCALATE

    def test_missing_level_routes_as_medium(self):
        assert route_treatment_decision("accept", None) == TreatmentStatus.RISK_ACCEPT
        assert route_treatment_decision("transfer", None) == TreatmentStatus.RISK_TRANSFER

    def test_mitigate_never_escalates(self):
        assert not any(requires_executive_approval("mitigate", level) for level in RiskLevel)


class TestExecutiveResolution:
    @pytest.mark.parametrize("decision,expected", [
        (TreatmentDecision.MITIGATE, TreatmentStatus.RISK_MITIGATION_IN_PROGRESS),
        (TreatmentDecision.ACCEPT, TreatmentStatus.RISK_ACCEPT),
        (TreatmentDecision.TRANSFER, TreatmentStatus.RISK_TRANSFER),
        (TreatmentDecision.AVOID, TreatmentStatus.RISK_AVOID),
    ])
    def test_approval_lands_on_decision_status(self, decision, expected):
        assert resolve_executive_decision(ExecutiveDecision.APPROVE, decision) == expected

    @pytest.mark.parametrize("decision", list(TreatmentDecision))
    def test_denial_returns_to_decision_review(self, decision):
        assert resolve_executive_decision("deny", decision) == TreatmentStatus.TREATMENT_DECISION_REVIEW
