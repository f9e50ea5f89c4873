"""Pytest fixtures for API and service testing."""
import os

# The app builds its engine at import time
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from riskflow.main import app
from riskflow.core.database import get_db
from riskflow.models.base import Base
from riskflow.schemas.risk_workflow import (
    RiskIntakeCreate,
    AssessmentSubmitRequest,
    TreatmentDecisionRequest,
)
from riskflow.services.risk_workflow import RiskWorkflowService

# In-memory SQLite for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

ORG_ID = "org-test-001"
REPORTER = "user-reporter"
GRC_SME = "user-grc-sme"
ASSESSOR = "user-assessor"
OWNER = "user-owner"
EXECUTIVE = "user-executive"


def override_get_db():
    """Override database dependency for testing."""
    try:
        db = TestingSessionLocal()
        yield db
    finally:
        db.close()


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    yield db
    db.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """Test client with database override.

    Note: db_session already created tables, so we don't need to create them again.
    """
    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def headers_for(user_id, organization_id=ORG_ID):
    return {"X-User-Id": user_id, "X-Organization-Id": organization_id}


@pytest.fixture
def reporter_headers():
    return headers_for(REPORTER)


@pytest.fixture
def grc_headers():
    return headers_for(GRC_SME)


@pytest.fixture
def owner_headers():
    return headers_for(OWNER)


@pytest.fixture
def service(db_session):
    return RiskWorkflowService(db_session)


# ==================== WORKFLOW BUILDERS ====================

def intake_payload(**overrides):
    payload = {
        "title": "Unpatched VPN appliance",
        "description": "Edge VPN firmware is two releases behind vendor advisories.",
        "source": "internal_security_reviews",
        "category": "security",
        "initial_severity": "high",
        "suggested_sme_id": GRC_SME,
        "tags": ["network"],
    }
    payload.update(overrides)
    return payload


def assessment_payload(likelihood="likely", impact="major", **overrides):
    payload = {
        "threat_description": "Remote code execution against the VPN gateway.",
        "affected_assets": ["asset-vpn-01"],
        "existing_controls": ["ctrl-ids-01"],
        "likelihood": likelihood,
        "likelihood_rationale": "Public exploit available.",
        "impact": impact,
        "impact_rationale": "Full network access.",
        "recommended_owner_id": OWNER,
    }
    payload.update(overrides)
    return payload


def submit_risk(service, organization_id=ORG_ID, **overrides):
    return service.submit_intake(
        organization_id, RiskIntakeCreate(**intake_payload(**overrides)), REPORTER
    )


def assessed_risk(service, likelihood="likely", impact="major", organization_id=ORG_ID):
    """Drive a fresh risk through to treatment_decision_review."""
    risk = submit_risk(service, organization_id)
    service.validate_risk(risk.risk_id, organization_id, "approve", GRC_SME, GRC_SME)
    service.assign_risk_assessor(risk.risk_id, organization_id, ASSESSOR, GRC_SME)
    service.submit_assessment(
        risk.risk_id, organization_id,
        AssessmentSubmitRequest(**assessment_payload(likelihood, impact)), ASSESSOR
    )
    service.review_assessment(risk.risk_id, organization_id, "approve", GRC_SME)
    return risk


def decide(service, risk, decision, organization_id=ORG_ID, **fields):
    request = TreatmentDecisionRequest(
        treatment_decision=decision,
        justification=fields.pop("justification", f"Owner chose to {decision}."),
        **fields
    )
    return service.submit_treatment_decision(risk.risk_id, organization_id, request, OWNER)


@pytest.fixture
def assessed_high_risk(service):
    """likely x major = 16 -> high."""
    return assessed_risk(service, "likely", "major")


@pytest.fixture
def assessed_low_risk(service):
    """possible x negligible = 3 -> low."""
    return assessed_risk(service, "possible", "negligible")


@pytest.fixture
def mitigating_risk(service, assessed_high_risk):
    decide(service, assessed_high_risk, "mitigate", mitigation_description="Upgrade firmware")
    return assessed_high_risk
