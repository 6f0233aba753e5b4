# renobudget/tests/test_routes_expenses.py
import pytest


def _post_expenses(client, headers, expenses):
    return client.post("/expenses", json={"expenses": expenses}, headers=headers)


def _expenses(client, headers):
    resp = client.get("/expenses", headers=headers)
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["success"] is True
    return body["expenses"]


def test_empty_expenses(client, viewer_headers):
    assert _expenses(client, viewer_headers) == []


def test_single_room_expense(client, admin_headers):
    resp = _post_expenses(client, admin_headers, [{
        "description": "Sink", "amount": 500, "category": "Materials",
        "rooms": ["cocina"], "status": "Completed", "date": "2024-10-01",
    }])
    assert resp.status_code == 200
    assert resp.get_json() == {"success": True, "stats": {"created": 1, "updated": 0, "deleted": 0}}

    expenses = _expenses(client, admin_headers)
    assert len(expenses) == 1
    assert expenses[0]["id"]
    assert expenses[0]["amount"] == 500
    assert expenses[0]["date"] == "2024-10-01"

    totals = client.get("/totals", headers=admin_headers).get_json()
    assert totals["totalExpenses"] == 500

    cocina = client.get("/rooms/cocina", headers=admin_headers).get_json()["roomData"]
    assert cocina["items"] == []
    assert cocina["sharedItems"][0]["amount"] == 500
    assert cocina["sharedSpent"] == 500


def test_multi_room_equal_split(client, admin_headers):
    _post_expenses(client, admin_headers, [{
        "description": "Electrician", "amount": 900,
        "rooms": ["cocina", "sala", "bano1"], "status": "Completed",
    }])
    expense = _expenses(client, admin_headers)[0]
    assert expense["roomAllocations"] == []
    assert expense["isSharedExpense"] is True

    for slug in ("cocina", "sala", "bano1"):
        shared = client.get(f"/rooms/{slug}", headers=admin_headers).get_json()["roomData"]["sharedItems"]
        assert shared[0]["amount"] == pytest.approx(300)
        assert shared[0]["readOnly"] is True
        assert shared[0]["totalAmount"] == 900


def test_drifted_allocations_normalized(client, admin_headers):
    _post_expenses(client, admin_headers, [{
        "description": "Electrician", "amount": 900, "rooms": ["cocina", "sala", "bano1"],
        "roomAllocations": [
            {"room": "cocina", "amount": 450, "percentage": 50},
            {"room": "sala", "amount": 300, "percentage": 33.33},
            {"room": "bano1", "amount": 300, "percentage": 33.33},
        ],
    }])
    allocations = _expenses(client, admin_headers)[0]["roomAllocations"]
    assert [a["amount"] for a in allocations] == pytest.approx([300, 300, 300])
    assert sum(a["percentage"] for a in allocations) == pytest.approx(100)


def test_delete_by_omission(client, admin_headers):
    _post_expenses(client, admin_headers, [{"description": "A", "amount": 1}, {"description": "B", "amount": 2}])
    a, b = _expenses(client, admin_headers)

    resp = _post_expenses(client, admin_headers, [a])
    assert resp.get_json()["stats"] == {"created": 0, "updated": 0, "deleted": 1}
    assert [e["id"] for e in _expenses(client, admin_headers)] == [a["id"]]


def test_resave_is_noop(client, admin_headers):
    _post_expenses(client, admin_headers, [
        {"description": "A", "amount": 10, "rooms": ["sala", "cocina"]},
        {"description": "B", "amount": 20, "rooms": ["sala"]},
    ])
    listed = _expenses(client, admin_headers)
    resp = _post_expenses(client, admin_headers, listed)
    assert resp.get_json()["stats"] == {"created": 0, "updated": 0, "deleted": 0}
    assert _expenses(client, admin_headers) == listed


def test_viewer_cannot_save(client, viewer_headers):
    assert _post_expenses(client, viewer_headers, []).status_code == 403


def test_expenses_must_be_list(client, admin_headers):
    resp = client.post("/expenses", json={"expenses": {"description": "x"}}, headers=admin_headers)
    assert resp.status_code == 400
    assert "expenses" in resp.get_json()["fields"]


def test_unknown_room_is_400(client, admin_headers):
    resp = _post_expenses(client, admin_headers, [{"description": "Door", "amount": 5, "rooms": ["garage"]}])
    assert resp.status_code == 400
    assert "expenses.0.rooms" in resp.get_json()["fields"]
    assert _expenses(client, admin_headers) == []


def test_summary(client, admin_headers):
    _post_expenses(client, admin_headers, [
        {"description": "Tiles", "amount": 100, "category": "Materials", "date": "2024-01-10"},
        {"description": "Grout", "amount": 50, "category": "Materials", "date": "2024-02-10"},
        {"description": "Plumber", "amount": 400, "category": "Labor", "date": "2024-02-15"},
    ])

    summary = client.get("/expenses/summary", headers=admin_headers).get_json()["summary"]
    assert summary == [
        {"category": "Labor", "count": 1, "total": 400.0},
        {"category": "Materials", "count": 2, "total": 150.0},
    ]

    feb = client.get("/expenses/summary?start=2024-02-01&end=2024-02-28", headers=admin_headers).get_json()["summary"]
    assert {row["category"]: row["total"] for row in feb} == {"Labor": 400.0, "Materials": 50.0}

    bad = client.get("/expenses/summary?start=not-a-date", headers=admin_headers)
    assert bad.status_code == 400
