"""Models package."""
from riskflow.models.base import Base
from riskflow.models.audit_log import AuditLog
from riskflow.models.notification import Notification
from riskflow.models.risk import (
    Risk,
    RiskAssessment,
    RiskTreatment,
    RiskTreatmentUpdate,
    RiskHistory,
    RiskAsset,
    RiskControl,
    RiskScenarioLink,
    RiskIdSequence,
)

__all__ = [
    "Base",
    "AuditLog",
    "Notification",
    "Risk",
    "RiskAssessment",
    "RiskTreatment",
    "RiskTreatmentUpdate",
    "RiskHistory",
    "RiskAsset",
    "RiskControl",
    "RiskScenarioLink",
    "RiskIdSequence",
]
