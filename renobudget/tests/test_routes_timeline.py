# renobudget/tests/test_routes_timeline.py
import pytest


def _save(client, headers, phases):
    return client.post("/timeline", json={"timeline": {"phases": phases}}, headers=headers)


def test_get_empty_timeline(client, viewer_headers):
    resp = client.get("/timeline", headers=viewer_headers)
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["success"] is True
    assert body["timeline"]["phases"] == []
    assert body["timeline"]["overallProgress"] == 0
    assert body["timeline"]["currentPhase"] is None


def test_timeline_requires_caller(client):
    assert client.get("/timeline").status_code == 401


def test_save_and_read_timeline(client, admin_headers, viewer_headers):
    resp = _save(client, admin_headers, [
        {"title": "Demolition", "status": "Completed", "order": 0,
         "startDate": "2024-03-01T00:00:00.000Z", "endDate": "2024-03-10"},
        {"title": "Kitchen", "status": "In Progress", "order": 1, "relatedRooms": ["cocina"],
         "references": [{"type": "link", "name": "Tiles", "url": "https://example.com/tiles"}]},
    ])
    assert resp.status_code == 200
    timeline = resp.get_json()["timeline"]
    assert timeline["overallProgress"] == 50
    assert timeline["currentPhase"]["title"] == "Kitchen"
    assert timeline["phases"][0]["startDate"] == "2024-03-01"
    assert timeline["phases"][1]["relatedRooms"] == ["cocina"]
    assert timeline["phases"][1]["references"][0]["id"]

    read = client.get("/timeline", headers=viewer_headers).get_json()["timeline"]
    assert [p["id"] for p in read["phases"]] == [p["id"] for p in timeline["phases"]]
    assert read["updatedAt"]


@pytest.mark.parametrize(
    "method, path",
    [("post", "/timeline"), ("put", "/timeline/phase/p1"), ("delete", "/timeline/phase/p1")],
)
def test_timeline_writes_are_admin_only(client, viewer_headers, method, path):
    resp = getattr(client, method)(path, json={"timeline": {"phases": []}, "phase": {"title": "x"}},
                                   headers=viewer_headers)
    assert resp.status_code == 403


def test_save_timeline_validation(client, admin_headers):
    resp = client.post("/timeline", json={"phases": []}, headers=admin_headers)
    assert resp.status_code == 400
    assert resp.get_json()["errorType"] == "VALIDATION_ERROR"

    resp = _save(client, admin_headers, [{"title": "  "}])
    assert resp.status_code == 400
    assert "phases.0.title" in resp.get_json()["fields"]


def test_update_and_delete_phase(client, admin_headers):
    phases = _save(client, admin_headers, [{"title": "A"}, {"title": "B", "order": 1}]).get_json()["timeline"]["phases"]
    first = phases[0]["id"]

    resp = client.put(f"/timeline/phase/{first}", json={"phase": {"title": "A", "status": "Completed"}},
                      headers=admin_headers)
    assert resp.status_code == 200
    assert resp.get_json()["timeline"]["overallProgress"] == 50

    resp = client.delete(f"/timeline/phase/{first}", headers=admin_headers)
    assert resp.status_code == 200
    assert [p["title"] for p in resp.get_json()["timeline"]["phases"]] == ["B"]

    assert client.delete(f"/timeline/phase/{first}", headers=admin_headers).status_code == 404
    assert client.put("/timeline/phase/missing", json={"phase": {"title": "x"}},
                      headers=admin_headers).status_code == 404
