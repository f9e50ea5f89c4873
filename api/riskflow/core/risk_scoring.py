"""Risk scoring logic for the risk lifecycle workflow.

Implements:
- Ordinal likelihood / impact point values
- Likelihood x impact score
- Score -> risk level classification
- Field diffing for history/audit change sets
"""
import enum
from decimal import Decimal
from typing import Dict, Optional, Tuple, Any

from riskflow.core.risk_statuses import Likelihood, Impact, RiskLevel


LIKELIHOOD_VALUES: Dict[Likelihood, int] = {
    Likelihood.RARE: 1,
    Likelihood.UNLIKELY: 2,
    Likelihood.POSSIBLE: 3,
    Likelihood.LIKELY: 4,
    Likelihood.ALMOST_CERTAIN: 5,
}

IMPACT_VALUES: Dict[Impact, int] = {
    Impact.NEGLIGIBLE: 1,
    Impact.MINOR: 2,
    Impact.MODERATE: 3,
    Impact.MAJOR: 4,
    Impact.SEVERE: 5,
}

# Minimum score for each level, checked from the top down
LEVEL_THRESHOLDS: Tuple[Tuple[int, RiskLevel], ...] = (
    (20, RiskLevel.VERY_HIGH),
    (12, RiskLevel.HIGH),
    (6, RiskLevel.MEDIUM),
    (3, RiskLevel.LOW),
)


def get_risk_score(likelihood: Likelihood | str, impact: Impact | str) -> int:
    """
    Multiply the ordinal points of likelihood and impact.

    Args:
        likelihood: Likelihood value or its string code
        impact: Impact value or its string code

    Returns:
        Score between 1 and 25

    Raises:
        ValueError: If either input is not a known code
    """
    return LIKELIHOOD_VALUES[Likelihood(likelihood)] * IMPACT_VALUES[Impact(impact)]


def level_for_score(score: int) -> RiskLevel:
    """Classify a likelihood x impact score."""
    for minimum, level in LEVEL_THRESHOLDS:
        if score >= minimum:
            return level
    return RiskLevel.VERY_LOW


def calculate_risk_level(likelihood: Likelihood | str, impact: Impact | str) -> RiskLevel:
    """
    Derive the risk level for a likelihood/impact pair.

    Used for inherent risk at assessment time and for residual risk after
    mitigation. Monotonic in both arguments since the score is a product of
    positive ordinals and the thresholds are ordered.

    Examples:
        likely x major = 16 -> HIGH
        rare x minor = 2 -> VERY_LOW
    """
    return level_for_score(get_risk_score(likelihood, impact))


def calculate_optional_risk_level(
    likelihood: Optional[str],
    impact: Optional[str]
) -> Optional[RiskLevel]:
    """Same as calculate_risk_level, but None unless both inputs are known."""
    if likelihood is None or impact is None:
        return None
    return calculate_risk_level(likelihood, impact)


def create_history_changes(
    old_values: dict,
    new_values: dict,
    extra: Optional[Dict[str, Any]] = None
) -> dict:
    """
    Build a change set for RiskHistory/AuditLog entries.

    Args:
        old_values: Values before the transition
        new_values: Values after the transition
        extra: Additional keys copied verbatim (e.g. the decision made)

    Returns:
        Dict of {field: {'old': ..., 'new': ...}} for fields that changed,
        plus any extra keys
    """
    changes: Dict[str, Any] = {}

    for key in sorted(set(old_values.keys()) | set(new_values.keys())):
        old_val = _plain(old_values.get(key))
        new_val = _plain(new_values.get(key))
        if old_val != new_val:
            changes[key] = {'old': old_val, 'new': new_val}

    if extra:
        for key, value in extra.items():
            changes[key] = _plain(value)

    return changes


def _plain(value: Any) -> Any:
    # Keep change sets JSON serializable
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, Decimal):
        return str(value)
    if hasattr(value, 'isoformat'):
        return value.isoformat()
    return value
