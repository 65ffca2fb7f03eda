"""
Tests for approval routes.
"""
from fastapi import status


def request_approval(client, headers, **overrides):
    body = {"action_type": "send_email", "payload": {"to": "press@example.com"}}
    body.update(overrides)
    response = client.post("/api/approvals", json=body, headers=headers)
    assert response.status_code == status.HTTP_201_CREATED, response.text
    return response.json()


def test_create_defaults_requester_to_caller(client, agent, auth):
    created = request_approval(client, auth(agent))
    assert created["status"] == "pending"

    approval = client.get(f"/api/approvals/{created['id']}").json()
    assert approval["requested_by_agent_id"] == agent.id
    assert approval["requested_by_name"] == "Linus"


def test_decide_twice(client, agent, lead, auth):
    approval_id = request_approval(client, auth(agent))["id"]

    response = client.post(
        f"/api/approvals/{approval_id}/decide",
        json={"decision": "approved", "decision_note": "Ship it"},
        headers=auth(lead),
    )
    assert response.status_code == status.HTTP_204_NO_CONTENT

    response = client.post(
        f"/api/approvals/{approval_id}/decide",
        json={"decision": "rejected"},
        headers=auth(lead),
    )
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["detail"] == "Approval already decided"

    approval = client.get(f"/api/approvals/{approval_id}").json()
    assert approval["status"] == "approved"
    assert approval["decided_by"] == "Danny"


def test_decide_missing(client, lead, auth):
    response = client.post("/api/approvals/999/decide", json={"decision": "approved"}, headers=auth(lead))
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_decide_bad_decision(client, agent, auth):
    approval_id = request_approval(client, auth(agent))["id"]
    response = client.post(
        f"/api/approvals/{approval_id}/decide", json={"decision": "executed"}, headers=auth(agent)
    )
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_execute_flow_and_stats(client, agent, lead, auth):
    approval_id = request_approval(client, auth(agent))["id"]

    response = client.post(f"/api/approvals/{approval_id}/execute", json={}, headers=auth(agent))
    assert response.status_code == status.HTTP_409_CONFLICT

    client.post(f"/api/approvals/{approval_id}/decide", json={"decision": "approved"}, headers=auth(lead))
    response = client.post(
        f"/api/approvals/{approval_id}/execute",
        json={"execution_result": {"message_id": "abc"}},
        headers=auth(agent),
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["status"] == "executed"
    assert response.json()["execution_result"] == {"message_id": "abc"}

    stats = client.get("/api/approvals/stats").json()
    assert stats == {"pending": 0, "approved": 0, "rejected": 0, "executed": 1, "total": 1}


def test_list_by_status(client, agent, lead, auth):
    first = request_approval(client, auth(agent))["id"]
    second = request_approval(client, auth(agent), action_type="post_tweet")["id"]
    client.post(f"/api/approvals/{second}/decide", json={"decision": "rejected"}, headers=auth(lead))

    pending = client.get("/api/approvals", params={"status": "pending"}).json()
    assert [a["id"] for a in pending] == [first]
    assert len(client.get("/api/approvals").json()) == 2
