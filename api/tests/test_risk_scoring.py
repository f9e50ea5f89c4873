"""Tests for likelihood x impact risk scoring."""
import itertools

import pytest

from riskflow.core.risk_scoring import (
    LIKELIHOOD_VALUES,
    IMPACT_VALUES,
    get_risk_score,
    level_for_score,
    calculate_risk_level,
    calculate_optional_risk_level,
    create_history_changes,
)
from riskflow.core.risk_statuses import Likelihood, Impact, RiskLevel, TreatmentStatus

# Least to most severe
SEVERITY = [RiskLevel.VERY_LOW, RiskLevel.LOW, RiskLevel.MEDIUM, RiskLevel.HIGH, RiskLevel.VERY_HIGH]


class TestRiskScore:
    def test_score_is_product_of_ordinals(self):
        assert get_risk_score(Likelihood.LIKELY, Impact.MAJOR) == 16
        assert get_risk_score("rare", "negligible") == 1
        assert get_risk_score("almost_certain", "severe") == 25

    def test_unknown_code_raises(self):
        with pytest.raises(ValueError):
            get_risk_score("sometimes", "major")


class TestLevelThresholds:
    @pytest.mark.parametrize("score,expected", [
        (25, RiskLevel.VERY_HIGH),
        (20, RiskLevel.VERY_HIGH),
        (16, RiskLevel.HIGH),
        (12, RiskLevel.HIGH),
        (9, RiskLevel.MEDIUM),
        (6, RiskLevel.MEDIUM),
        (4, RiskLevel.LOW),
        (3, RiskLevel.LOW),
        (2, RiskLevel.VERY_LOW),
        (1, RiskLevel.VERY_LOW),
    ])
    def test_level_for_score(self, score, expected):
        assert level_for_score(score) == expected

    def test_documented_examples(self):
        assert calculate_risk_level("likely", "major") == RiskLevel.HIGH
        assert calculate_risk_level("rare", "minor") == RiskLevel.VERY_LOW
        assert calculate_risk_level("possible", "negligible") == RiskLevel.LOW


class TestMonotonicity:
    """Raising likelihood or impact never lowers the level."""

    def test_monotonic_in_likelihood(self):
        likelihoods = sorted(Likelihood, key=LIKELIHOOD_VALUES.get)
        for impact in Impact:
            for lower, higher in zip(likelihoods, likelihoods[1:]):
                assert SEVERITY.index(calculate_risk_level(higher, impact)) >= \
                    SEVERITY.index(calculate_risk_level(lower, impact))

    def test_monotonic_in_impact(self):
        impacts = sorted(Impact, key=IMPACT_VALUES.get)
        for likelihood in Likelihood:
            for lower, higher in zip(impacts, impacts[1:]):
                assert SEVERITY.index(calculate_risk_level(likelihood, higher)) >= \
                    SEVERITY.index(calculate_risk_level(likelihood, lower))

    def test_every_pair_has_a_level(self):
        for likelihood, impact in itertools.product(Likelihood, Impact):
            assert calculate_risk_level(likelihood, impact) in RiskLevel


class TestOptionalLevel:
    def test_none_when_either_half_missing(self):
        assert calculate_optional_risk_level(None, "major") is None
        assert calculate_optional_risk_level("likely", None) is None

    def test_level_when_both_known(self):
        assert calculate_optional_risk_level("likely", "major") == RiskLevel.HIGH


class TestHistoryChanges:
    def test_only_changed_fields_are_recorded(self):
        changes = create_history_changes(
            {"status": "risk_identified", "title": "A"},
            {"status": "actual_risk", "title": "A"}
        )
        assert changes == {"status": {"old": "risk_identified", "new": "actual_risk"}}

    def test_enums_are_stored_as_values(self):
        changes = create_history_changes(
            {"treatment_status": None},
            {"treatment_status": TreatmentStatus.RISK_ACCEPT},
            {"risk_level": RiskLevel.MEDIUM}
        )
        assert changes["treatment_status"] == {"old": None, "new": "risk_accept"}
        assert changes["risk_level"] == "medium"
