"""
Tests for deliverable routes.
"""
from fastapi import status

from mission_control.models.deliverable import Deliverable


def create(client, headers, **overrides):
    body = {"title": "Q1 Audit", "type": "research", "squad": "oceans-11", "content": "v1"}
    body.update(overrides)
    response = client.post("/api/deliverables", json=body, headers=headers)
    assert response.status_code == status.HTTP_201_CREATED, response.text
    return response.json()["id"]


def test_create_requires_identity(client):
    response = client.post(
        "/api/deliverables",
        json={"title": "Q1 Audit", "type": "research", "squad": "oceans-11"},
    )
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["error"] == "unauthorized"


def test_create_with_unknown_session(client):
    response = client.post(
        "/api/deliverables",
        json={"title": "Q1 Audit", "type": "research", "squad": "oceans-11"},
        headers={"X-Agent-Session": "nobody"},
    )
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_create_rejects_bad_type(client, agent, auth):
    response = client.post(
        "/api/deliverables",
        json={"title": "Q1 Audit", "type": "podcast", "squad": "oceans-11"},
        headers=auth(agent),
    )
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_create_and_get(client, agent, auth):
    deliverable_id = create(client, auth(agent))

    response = client.get(f"/api/deliverables/{deliverable_id}")
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["status"] == "draft"
    assert data["version"] == 1
    assert data["created_by_name"] == "Linus"
    assert data["versions"][0]["change_summary"] == "Initial creation"
    assert data["transitions"] == [{"from": "draft", "to": "review", "label": "Submit for Review"}]


def test_get_missing(client):
    response = client.get("/api/deliverables/999")
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json() == {"detail": "Deliverable 999 not found", "error": "not_found"}


def test_lifecycle_scenario(client, agent, auth):
    headers = auth(agent)
    response = client.post(
        "/api/deliverables",
        json={"title": "Q1 Audit", "type": "research", "squad": "A"},
        headers=headers,
    )
    assert response.status_code == status.HTTP_201_CREATED, response.text
    deliverable_id = response.json()["id"]

    response = client.post(f"/api/deliverables/{deliverable_id}/status", json={"status": "review"}, headers=headers)
    assert response.json() == {"success": True, "version": 2}
    response = client.post(f"/api/deliverables/{deliverable_id}/status", json={"status": "approved"}, headers=headers)
    assert response.json() == {"success": True, "version": 3}
    response = client.post(f"/api/deliverables/{deliverable_id}/archive", headers=headers)
    assert response.json() == {"success": True}

    data = client.get(f"/api/deliverables/{deliverable_id}").json()
    assert data["squad"] == "A"
    assert data["status"] == "archived"
    assert data["version"] == 4

    versions = client.get(f"/api/deliverables/{deliverable_id}/versions").json()
    assert [v["version"] for v in versions] == [4, 3, 2, 1]
    assert versions[0]["change_summary"] == "Archived from status: approved"


def test_invalid_transition(client, agent, auth):
    deliverable_id = create(client, auth(agent))
    response = client.post(
        f"/api/deliverables/{deliverable_id}/status", json={"status": "published"}, headers=auth(agent)
    )
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["error"] == "invalid_transition"


def test_patch_update(client, agent, auth):
    deliverable_id = create(client, auth(agent))
    response = client.patch(
        f"/api/deliverables/{deliverable_id}",
        json={"content": "v2", "change_summary": "Second pass"},
        headers=auth(agent),
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"success": True, "version": 2}

    versions = client.get(f"/api/deliverables/{deliverable_id}/versions").json()
    assert versions[0]["content"] == "v1"
    assert versions[0]["change_summary"] == "Second pass"


def test_patch_empty_body(client, agent, auth):
    deliverable_id = create(client, auth(agent))
    response = client.patch(f"/api/deliverables/{deliverable_id}", json={}, headers=auth(agent))
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert response.json()["error"] == "validation_error"


def test_delete_requires_lead(client, agent, lead, auth):
    deliverable_id = create(client, auth(agent))

    response = client.delete(f"/api/deliverables/{deliverable_id}", headers=auth(agent))
    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json()["error"] == "permission_denied"

    response = client.delete(f"/api/deliverables/{deliverable_id}", headers=auth(lead))
    assert response.status_code == status.HTTP_200_OK
    assert client.get(f"/api/deliverables/{deliverable_id}").status_code == status.HTTP_404_NOT_FOUND


def test_list_caps_page_size(client, db, agent):
    db.add_all(
        Deliverable(
            title=f"Doc {i}",
            type="research",
            squad="oceans-11",
            status="draft",
            content_format="markdown",
            version=1,
            created_by_agent_id=agent.id,
        )
        for i in range(101)
    )
    db.commit()

    response = client.get("/api/deliverables", params={"limit": 500})
    data = response.json()
    assert len(data["items"]) == 100
    assert data["cursor"] is not None

    rest = client.get("/api/deliverables", params={"limit": 500, "cursor": data["cursor"]}).json()
    assert len(rest["items"]) == 1
    assert rest["cursor"] is None


def test_create_accepts_any_squad_name(client, agent, auth):
    deliverable_id = create(client, auth(agent), squad="growth-team")
    assert client.get(f"/api/deliverables/{deliverable_id}").json()["squad"] == "growth-team"

    data = client.get("/api/deliverables", params={"squad": "growth-team"}).json()
    assert [d["id"] for d in data["items"]] == [deliverable_id]


def test_create_rejects_blank_or_long_squad(client, agent, auth):
    for squad in ["", "   ", "x" * 21]:
        response = client.post(
            "/api/deliverables",
            json={"title": "Q1 Audit", "type": "research", "squad": squad},
            headers=auth(agent),
        )
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY, squad

    response = client.get("/api/deliverables", params={"squad": "x" * 21})
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_file_size_beyond_32_bits(client, db, agent, auth):
    three_gib = 3 * 1024 ** 3
    deliverable_id = create(client, auth(agent), file_url="s3://bucket/export.zip", file_size=three_gib)

    assert client.get(f"/api/deliverables/{deliverable_id}").json()["file_size"] == three_gib
    db.expire_all()
    assert db.get(Deliverable, deliverable_id).file_size == three_gib


def test_list_cursor(client, agent, auth):
    for i in range(3):
        create(client, auth(agent), title=f"Doc {i}")

    first = client.get("/api/deliverables", params={"limit": 2}).json()
    assert [d["title"] for d in first["items"]] == ["Doc 2", "Doc 1"]
    second = client.get("/api/deliverables", params={"limit": 2, "cursor": first["cursor"]}).json()
    assert [d["title"] for d in second["items"]] == ["Doc 0"]
    assert second["cursor"] is None


def test_list_filters(client, agent, auth):
    create(client, auth(agent), title="Ocean doc")
    create(client, auth(agent), title="Dune doc", squad="dune", type="brief")

    data = client.get("/api/deliverables", params={"squad": "dune", "type": "brief"}).json()
    assert [d["title"] for d in data["items"]] == ["Dune doc"]
    assert client.get("/api/deliverables", params={"status": "bogus"}).status_code == 422


def test_malformed_cursor(client):
    response = client.get("/api/deliverables", params={"cursor": "garbage"})
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_search_stats_and_transitions(client, agent, auth, task):
    create(client, auth(agent), title="Audit notes", task_id=task.id)
    create(client, auth(agent), title="Press kit", type="brief")

    found = client.get("/api/deliverables/search", params={"q": "AUDIT"}).json()
    assert [d["title"] for d in found] == ["Audit notes"]

    stats = client.get("/api/deliverables/stats").json()
    assert stats["total"] == 2
    assert stats["by_type"]["brief"] == 1
    assert stats["by_status"]["archived"] == 0

    by_task = client.get(f"/api/deliverables/by-task/{task.id}").json()
    assert [d["title"] for d in by_task] == ["Audit notes"]
    by_agent = client.get(f"/api/deliverables/by-agent/{agent.id}").json()
    assert len(by_agent) == 2

    table = client.get("/api/deliverables/transitions").json()
    assert {"from": "approved", "to": "review", "label": "Revoke Approval"} in table


def test_response_carries_request_id(client):
    response = client.get("/api/deliverables", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"
