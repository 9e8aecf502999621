import uuid

import pytest
from sqlalchemy.exc import OperationalError

from bug_tracker.config import Settings, settings
from bug_tracker.db.repository import BugRepository


async def _create(client, **fields):
    payload = {"title": "Test Bug", "description": "This is a test bug description"}
    payload.update(fields)
    resp = await client.post("/api/bugs", json=payload)
    assert resp.status_code == 201
    return resp.json()["data"]


@pytest.mark.asyncio
async def test_create_bug_returns_201_envelope(client):
    resp = await client.post(
        "/api/bugs",
        json={"title": "Test Bug", "description": "Desc", "severity": "high", "status": "open"},
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["success"] is True
    assert body["message"] == "Bug created successfully"
    data = body["data"]
    assert uuid.UUID(data["id"])
    assert data["title"] == "Test Bug"
    assert data["severity"] == "high"
    assert data["assignedTo"] == "Unassigned"
    assert data["isStale"] is False
    assert data["createdAt"] == data["updatedAt"]
    assert {"age", "priority", "reproducible", "tags"} <= data.keys()


@pytest.mark.asyncio
async def test_create_missing_title_returns_400(client):
    resp = await client.post("/api/bugs", json={"description": "Missing title"})
    assert resp.status_code == 400
    assert resp.json() == {"success": False, "message": "Title is required"}


@pytest.mark.asyncio
async def test_create_with_empty_body_returns_400(client):
    resp = await client.post("/api/bugs")
    assert resp.status_code == 400
    assert resp.json()["message"] == "Title is required"


@pytest.mark.asyncio
async def test_create_invalid_severity_returns_400(client):
    resp = await client.post(
        "/api/bugs", json={"title": "Bug", "description": "Desc", "severity": "super-critical"}
    )
    assert resp.status_code == 400
    assert resp.json()["message"] == "Severity must be one of: low, medium, high, critical"


@pytest.mark.asyncio
async def test_create_schema_errors_are_listed(client):
    resp = await client.post(
        "/api/bugs", json={"title": "Bug", "description": "Desc", "priority": 7, "reproducible": "nope"}
    )
    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert body["message"] == "Validation Error"
    assert body["errors"] == ["Priority cannot exceed 5", "Reproducible must be a boolean"]


@pytest.mark.asyncio
async def test_non_object_body_returns_400(client):
    resp = await client.post("/api/bugs", json=["not", "an", "object"])
    assert resp.status_code == 400
    body = resp.json()
    assert body["message"] == "Validation Error"
    assert body["errors"]


@pytest.mark.asyncio
async def test_list_bugs_empty(client):
    resp = await client.get("/api/bugs")
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "count": 0, "data": []}


@pytest.mark.asyncio
async def test_list_filters_by_status_and_severity(client):
    await _create(client, title="Open Bug", status="open", severity="high")
    await _create(client, title="Closed Bug", status="closed", severity="high")
    await _create(client, title="Open Low", status="open", severity="low")

    resp = await client.get("/api/bugs", params={"status": "open"})
    body = resp.json()
    assert body["count"] == 2
    assert all(bug["status"] == "open" for bug in body["data"])

    resp = await client.get("/bugs", params={"status": "open", "severity": "high"})
    body = resp.json()
    assert body["count"] == 1
    assert body["data"][0]["title"] == "Open Bug"


@pytest.mark.asyncio
async def test_list_sort_by_priority(client):
    await _create(client, title="p4", priority=4)
    await _create(client, title="p1", priority=1)
    await _create(client, title="p2", priority=2)

    resp = await client.get("/api/bugs", params={"sortBy": "priority"})
    assert [bug["title"] for bug in resp.json()["data"]] == ["p1", "p2", "p4"]


@pytest.mark.asyncio
async def test_get_bug_by_id(client):
    created = await _create(client, title="Single Bug")

    resp = await client.get(f"/api/bugs/{created['id']}")
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["data"]["id"] == created["id"]
    assert body["data"]["title"] == "Single Bug"


@pytest.mark.asyncio
async def test_get_missing_bug_returns_404(client):
    resp = await client.get(f"/api/bugs/{uuid.uuid4()}")
    assert resp.status_code == 404
    assert resp.json() == {"success": False, "message": "Bug not found"}


@pytest.mark.asyncio
async def test_get_malformed_id_returns_400(client):
    resp = await client.get("/api/bugs/invalid-id")
    assert resp.status_code == 400
    assert resp.json() == {"success": False, "message": "Invalid bug ID format"}


@pytest.mark.asyncio
async def test_update_bug(client):
    created = await _create(client, title="Original")

    resp = await client.put(f"/api/bugs/{created['id']}", json={"status": "closed", "tags": ["fixed"]})
    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == "Bug updated successfully"
    assert body["data"]["title"] == "Original"
    assert body["data"]["status"] == "closed"
    assert body["data"]["tags"] == ["fixed"]
    assert body["data"]["createdAt"] == created["createdAt"]


@pytest.mark.asyncio
async def test_update_errors(client):
    created = await _create(client)

    resp = await client.put(f"/api/bugs/{created['id']}", json={"severity": "urgent"})
    assert resp.status_code == 400

    resp = await client.put(f"/api/bugs/{uuid.uuid4()}", json={"status": "closed"})
    assert resp.status_code == 404

    resp = await client.put("/api/bugs/xyz", json={"status": "closed"})
    assert resp.status_code == 400
    assert resp.json()["message"] == "Invalid bug ID format"


@pytest.mark.asyncio
async def test_delete_bug(client):
    created = await _create(client)

    resp = await client.delete(f"/bugs/{created['id']}")
    assert resp.status_code == 200
    assert resp.json() == {
        "success": True,
        "message": "Bug deleted successfully",
        "data": {"id": created["id"]},
    }

    resp = await client.get(f"/api/bugs/{created['id']}")
    assert resp.status_code == 404

    resp = await client.delete(f"/bugs/{created['id']}")
    assert resp.status_code == 404

    resp = await client.delete("/bugs/not-an-id")
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_stats(client):
    await _create(client, status="open", severity="critical")
    await _create(client, status="open", severity="low")
    await _create(client, status="closed", severity="low")

    resp = await client.get("/api/bugs/stats")
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["data"]["total"] == 3
    assert body["data"]["byStatus"] == [{"_id": "open", "count": 2}, {"_id": "closed", "count": 1}]
    assert {g["_id"]: g["count"] for g in body["data"]["bySeverity"]} == {"low": 2, "critical": 1}


@pytest.mark.asyncio
async def test_critical_bugs(client):
    await _create(client, title="Fire", severity="critical")
    await _create(client, title="Old fire", severity="critical", status="closed")

    resp = await client.get("/api/bugs/critical")
    body = resp.json()
    assert body["count"] == 1
    assert body["data"][0]["title"] == "Fire"


@pytest.mark.asyncio
async def test_health(client):
    for path in ("/health", "/api/health"):
        resp = await client.get(path)
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "OK"
        assert body["message"] == "Bug Tracker API is running"
        assert "timestamp" in body


@pytest.mark.asyncio
async def test_root_lists_endpoints(client):
    resp = await client.get("/")
    assert resp.status_code == 200
    assert resp.json()["endpoints"]["bugs"] == "/api/bugs"


@pytest.mark.asyncio
async def test_unknown_route_returns_404_envelope(client):
    resp = await client.get("/api/nothing-here")
    assert resp.status_code == 404
    assert resp.json() == {"success": False, "message": "Route not found - /api/nothing-here"}


@pytest.mark.asyncio
async def test_store_failure_returns_500_without_details(client, monkeypatch):
    async def broken_find(self, **kwargs):
        raise OperationalError("SELECT", {}, Exception("timeout"))

    monkeypatch.setattr(BugRepository, "find", broken_find)
    monkeypatch.setattr(settings, "environment", "production")

    resp = await client.get("/api/bugs")
    assert resp.status_code == 500
    assert resp.json() == {"success": False, "message": "Internal Server Error"}


@pytest.mark.asyncio
async def test_development_errors_include_stack(client, monkeypatch):
    monkeypatch.setattr(settings, "environment", "development")

    resp = await client.get("/api/bugs/invalid-id")
    assert resp.status_code == 400
    body = resp.json()
    assert "InvalidIdentifierError" in body["stack"]
    assert body["error"].startswith("InvalidIdentifierError")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "fields, message",
    [
        ({"severity": 0}, "Severity must be one of: low, medium, high, critical"),
        ({"severity": False}, "Severity must be one of: low, medium, high, critical"),
        ({"severity": ""}, "Severity must be one of: low, medium, high, critical"),
        ({"status": []}, "Status must be one of: open, in-progress, resolved, closed"),
        ({"status": 0}, "Status must be one of: open, in-progress, resolved, closed"),
        ({"status": ""}, "Status must be one of: open, in-progress, resolved, closed"),
    ],
)
async def test_create_rejects_falsy_enum_values(client, fields, message):
    payload = {"title": "Bug", "description": "Desc", **fields}
    resp = await client.post("/api/bugs", json=payload)
    assert resp.status_code == 400
    assert resp.json()["message"] == message

    resp = await client.get("/api/bugs")
    assert resp.status_code == 200
    assert resp.json()["count"] == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("fields", [{"severity": 0}, {"severity": ""}, {"status": []}, {"status": ""}])
async def test_update_rejects_falsy_enum_values(client, fields):
    created = await _create(client, severity="high", status="in-progress")

    resp = await client.put(f"/api/bugs/{created['id']}", json=fields)
    assert resp.status_code == 400

    resp = await client.get(f"/api/bugs/{created['id']}")
    assert resp.status_code == 200
    assert resp.json()["data"]["severity"] == "high"
    assert resp.json()["data"]["status"] == "in-progress"


@pytest.mark.asyncio
async def test_default_environment_hides_stack(client, monkeypatch):
    monkeypatch.delenv("ENVIRONMENT", raising=False)
    monkeypatch.setattr(settings, "environment", Settings(_env_file=None).environment)

    resp = await client.get("/api/bugs/invalid-id")
    assert resp.status_code == 400
    assert resp.json() == {"success": False, "message": "Invalid bug ID format"}
