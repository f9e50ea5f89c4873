"""API tests for the risk workflow endpoints."""
from conftest import (
    GRC_SME, ASSESSOR, OWNER, EXECUTIVE, ORG_ID,
    headers_for, intake_payload, assessment_payload,
)

BASE = "/risks/workflow"


def create_risk(client, reporter_headers, **overrides):
    response = client.post(f"{BASE}/intake", json=intake_payload(**overrides), headers=reporter_headers)
    assert response.status_code == 201
    return response.json()


def drive_to_treatment(client, reporter_headers, grc_headers, likelihood="likely", impact="major"):
    risk_id = create_risk(client, reporter_headers)["risk_id"]
    assert client.post(
        f"{BASE}/{risk_id}/validate",
        json={"decision": "approve", "grc_sme_id": GRC_SME},
        headers=grc_headers
    ).status_code == 200
    assert client.post(
        f"{BASE}/{risk_id}/assign-assessor",
        json={"risk_assessor_id": ASSESSOR},
        headers=grc_headers
    ).status_code == 200
    assert client.post(
        f"{BASE}/{risk_id}/assessment/submit",
        json=assessment_payload(likelihood, impact),
        headers=headers_for(ASSESSOR)
    ).status_code == 200
    response = client.post(
        f"{BASE}/{risk_id}/assessment/review",
        json={"decision": "approve"},
        headers=grc_headers
    )
    assert response.status_code == 200
    return risk_id, response.json()


class TestIntakeEndpoint:
    def test_create_risk(self, client, reporter_headers):
        data = create_risk(client, reporter_headers)
        assert data["risk_code"] == "RISK-001"
        assert data["status"] == "risk_identified"
        assert data["organization_id"] == ORG_ID
        assert data["tags"] == ["network"]

    def test_missing_user_header(self, client):
        response = client.post(f"{BASE}/intake", json=intake_payload())
        assert response.status_code == 401

    def test_default_organization(self, client):
        response = client.post(f"{BASE}/intake", json=intake_payload(), headers={"X-User-Id": "user-1"})
        assert response.status_code == 201
        assert response.json()["organization_id"] == "org-default-001"

    def test_blank_title_rejected(self, client, reporter_headers):
        response = client.post(f"{BASE}/intake", json=intake_payload(title="   "), headers=reporter_headers)
        assert response.status_code == 422

    def test_unknown_source_rejected(self, client, reporter_headers):
        response = client.post(f"{BASE}/intake", json=intake_payload(source="rumour"), headers=reporter_headers)
        assert response.status_code == 422


class TestErrorMapping:
    def test_missing_risk_is_404(self, client, grc_headers):
        response = client.post(
            f"{BASE}/999/validate", json={"decision": "approve", "grc_sme_id": GRC_SME}, headers=grc_headers
        )
        assert response.status_code == 404
        assert response.json()["detail"] == "Risk not found"

    def test_wrong_intake_status_is_404(self, client, reporter_headers, grc_headers):
        risk_id = create_risk(client, reporter_headers)["risk_id"]
        response = client.post(
            f"{BASE}/{risk_id}/assign-assessor", json={"risk_assessor_id": ASSESSOR}, headers=grc_headers
        )
        assert response.status_code == 404
        assert "actual_risk" in response.json()["detail"]

    def test_wrong_treatment_status_is_400(self, client, reporter_headers, grc_headers):
        risk_id, _ = drive_to_treatment(client, reporter_headers, grc_headers)
        response = client.post(
            f"{BASE}/{risk_id}/treatment/executive-decision",
            json={"decision": "approve"},
            headers=headers_for(EXECUTIVE)
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Treatment is not in executive_approval status"

    def test_blank_justification_is_422(self, client, reporter_headers, grc_headers):
        risk_id, _ = drive_to_treatment(client, reporter_headers, grc_headers)
        response = client.post(
            f"{BASE}/{risk_id}/treatment/decision",
            json={"treatment_decision": "accept", "justification": ""},
            headers=headers_for(OWNER)
        )
        assert response.status_code == 422

    def test_progress_out_of_range_is_422(self, client, reporter_headers, grc_headers):
        risk_id, _ = drive_to_treatment(client, reporter_headers, grc_headers)
        response = client.post(
            f"{BASE}/{risk_id}/treatment/mitigation-update",
            json={"status": "on_track", "progress": 150},
            headers=headers_for(OWNER)
        )
        assert response.status_code == 422


class TestWorkflowEndpoints:
    def test_review_approval_returns_treatment(self, client, reporter_headers, grc_headers):
        _, review = drive_to_treatment(client, reporter_headers, grc_headers)
        assert review["assessment"]["status"] == "done"
        assert review["assessment"]["calculated_risk_level"] == "high"
        assert review["treatment"]["status"] == "treatment_decision_review"
        assert review["treatment"]["risk_owner_id"] == OWNER

    def test_executive_accept_flow(self, client, reporter_headers, grc_headers):
        risk_id, _ = drive_to_treatment(client, reporter_headers, grc_headers)
        owner = headers_for(OWNER)

        response = client.post(
            f"{BASE}/{risk_id}/treatment/decision",
            json={"treatment_decision": "accept", "justification": "Cost of fix exceeds exposure"},
            headers=owner
        )
        assert response.status_code == 200
        assert response.json()["status"] == "identify_executive_approver"
        assert response.json()["executive_approval_required"] is True

        response = client.post(
            f"{BASE}/{risk_id}/treatment/set-approver",
            json={"executive_approver_id": EXECUTIVE},
            headers=grc_headers
        )
        assert response.json()["executive_approval_status"] == "pending"

        response = client.post(
            f"{BASE}/{risk_id}/treatment/executive-decision",
            json={"decision": "approve", "notes": "Accepted for 12 months"},
            headers=headers_for(EXECUTIVE)
        )
        assert response.status_code == 200
        assert response.json()["status"] == "risk_accept"

        state = client.get(f"{BASE}/{risk_id}/state", headers=owner).json()
        assert state["current_stage"] == "treatment_final"
        assert state["available_actions"] == []
        assert state["roles"]["risk_assessor_id"] == ASSESSOR
        assert state["history"][0]["action"] == "executive_approval_granted"

    def test_mitigation_flow(self, client, reporter_headers, grc_headers):
        risk_id, _ = drive_to_treatment(client, reporter_headers, grc_headers)
        owner = headers_for(OWNER)

        client.post(
            f"{BASE}/{risk_id}/treatment/decision",
            json={"treatment_decision": "mitigate", "justification": "Patch available",
                  "mitigation_target_date": "2030-01-31T00:00:00Z"},
            headers=owner
        )
        response = client.post(
            f"{BASE}/{risk_id}/treatment/mitigation-update",
            json={"status": "done", "residual_likelihood": "rare", "residual_impact": "minor"},
            headers=owner
        )
        assert response.status_code == 200
        assert response.json()["status"] == "risk_mitigation_complete"
        assert response.json()["residual_risk_level"] == "very_low"

        state = client.get(f"{BASE}/{risk_id}/state", headers=owner).json()
        assert state["current_stage"] == "completed"
        assert state["risk"]["residual_risk"] == "very_low"
        assert state["treatment"]["updates"][0]["update_type"] == "completion"

    def test_history_endpoint(self, client, reporter_headers, grc_headers):
        risk_id, _ = drive_to_treatment(client, reporter_headers, grc_headers)
        response = client.get(f"{BASE}/{risk_id}/history", headers=grc_headers)
        assert response.status_code == 200
        assert [entry["action"] for entry in response.json()] == [
            "risk_submitted",
            "risk_validated",
            "risk_assessor_assigned",
            "assessment_submitted",
            "assessment_approved",
        ]

    def test_state_is_scoped_to_organization(self, client, reporter_headers):
        risk_id = create_risk(client, reporter_headers)["risk_id"]
        response = client.get(f"{BASE}/{risk_id}/state", headers=headers_for(GRC_SME, "org-other"))
        assert response.status_code == 404
