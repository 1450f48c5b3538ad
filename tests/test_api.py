"""
End-to-end tests for the HTTP routes (FastAPI TestClient, sqlite in tmp).
"""


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"


def test_requires_token(client):
    r = client.post("/water-chemistry/assess", json={"ph": 7.0})
    assert r.status_code == 401

    r = client.get("/water-chemistry/records", headers={"Authorization": "Bearer garbage"})
    assert r.status_code == 401


def test_assess(client, auth_headers):
    r = client.post(
        "/water-chemistry/assess",
        json={"ph": 8.0, "ammonia": 1.0, "water_temperature": 30},
        headers=auth_headers("alice"),
    )
    assert r.status_code == 200
    body = r.json()
    assert body["toxicity_level"] == "Critical"
    assert body["pka_used"] == 9.08


def test_assess_insufficient_data_is_a_normal_outcome(client, auth_headers):
    r = client.post(
        "/water-chemistry/assess",
        json={"ph": 7.0, "ammonia": "?"},
        headers=auth_headers("alice"),
    )
    assert r.status_code == 200
    assert r.json() == {"status": "insufficient_data", "missing": ["ammonia", "water_temperature"]}


def test_solve(client, auth_headers):
    r = client.post(
        "/water-chemistry/solve",
        json={"reading": {"ph": 9.0, "ammonia": 0.06, "water_temperature": 25}, "target_level": "Safe"},
        headers=auth_headers("alice"),
    )
    assert r.status_code == 200
    body = r.json()
    assert body["ph_feasible"] is True
    assert body["required_ph"] == 6.05
    assert body["no_change_needed"] is False


def test_analyze(client, auth_headers):
    r = client.post(
        "/water-chemistry/analyze",
        json={"reading": {"ph": 8.0, "ammonia": 1.0, "water_temperature": 30, "nitrite": 0, "nitrate": 20}},
        headers=auth_headers("alice"),
    )
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "ok"
    assert body["assessment"]["toxicity_level"] == "Critical"
    assert body["plan"]["ph_feasible"] is False
    assert any("cannot reach Safe" in rec for rec in body["recommendations"])
    statuses = {p["parameter"]: p["status"] for p in body["parameters"]}
    assert statuses == {"ph": "warning", "ammonia": "warning", "nitrite": "good", "nitrate": "good"}


def test_analyze_insufficient_data_still_reports_parameters(client, auth_headers):
    r = client.post(
        "/water-chemistry/analyze",
        json={"reading": {"nitrite": 0.5}},
        headers=auth_headers("alice"),
    )
    body = r.json()
    assert body["status"] == "insufficient_data"
    assert body["missing"] == ["ph", "ammonia", "water_temperature"]
    assert body["assessment"] is None
    assert any(a.startswith("Nitrite detected") for a in body["parameter_advice"])


def test_record_lifecycle(client, auth_headers):
    alice, bob = auth_headers("alice"), auth_headers("bob")

    r = client.post("/water-chemistry/records", json={"record_date": "2026-03-01", "ph": 7.2}, headers=alice)
    assert r.status_code == 200
    first = r.json()
    assert first["was_insert"] is True
    assert first["message"] == "Record saved successfully"
    record_id = first["data"]["id"]

    r = client.post("/water-chemistry/records", json={"record_date": "2026-03-01", "ammonia": 0.5}, headers=alice)
    second = r.json()
    assert second["was_insert"] is False
    assert second["message"] == "Record updated successfully"
    assert second["data"]["id"] == record_id
    assert second["data"]["ph"] == 7.2
    assert second["data"]["ammonia"] == 0.5

    r = client.get("/water-chemistry/records", headers=alice)
    assert [rec["id"] for rec in r.json()["records"]] == [record_id]
    assert client.get("/water-chemistry/records", headers=bob).json()["records"] == []

    r = client.put(f"/water-chemistry/records/{record_id}", json={"notes": "ok"}, headers=bob)
    assert r.status_code == 403
    r = client.put(f"/water-chemistry/records/{record_id}", json={"notes": "ok"}, headers=alice)
    assert r.status_code == 200
    assert r.json()["notes"] == "ok"

    assert client.delete(f"/water-chemistry/records/{record_id}", headers=bob).status_code == 403
    assert client.delete(f"/water-chemistry/records/{record_id}", headers=alice).status_code == 200
    assert client.delete(f"/water-chemistry/records/{record_id}", headers=alice).status_code == 404
    assert client.get(f"/water-chemistry/records/{record_id}", headers=alice).status_code == 404


def test_save_with_bad_date(client, auth_headers):
    r = client.post(
        "/water-chemistry/records",
        json={"record_date": "yesterday", "ph": 7.0},
        headers=auth_headers("alice"),
    )
    assert r.status_code == 400
    assert client.get("/water-chemistry/records", headers=auth_headers("alice")).json()["records"] == []


def test_list_filters(client, auth_headers):
    alice = auth_headers("alice")
    client.post("/water-chemistry/records", json={"record_date": "2026-03-01", "ph": 7.2, "notes": "Cloudy"}, headers=alice)
    client.post("/water-chemistry/records", json={"record_date": "2026-03-02", "ph": 6.8}, headers=alice)

    r = client.get("/water-chemistry/records", params={"search": "cloudy"}, headers=alice)
    assert [rec["record_date"] for rec in r.json()["records"]] == ["2026-03-01"]

    r = client.get("/water-chemistry/records", params={"date": "2026-03-02"}, headers=alice)
    assert [rec["record_date"] for rec in r.json()["records"]] == ["2026-03-02"]

    r = client.get("/water-chemistry/records", params={"date": "03/02/2026"}, headers=alice)
    assert r.status_code == 400


def test_fahrenheit_record_stored_in_celsius(client, auth_headers):
    alice = auth_headers("alice")
    r = client.post(
        "/water-chemistry/records",
        json={"record_date": "2026-03-01", "water_temperature": 86, "temperature_unit": "F"},
        headers=alice,
    )
    assert r.status_code == 200
    assert r.json()["data"]["water_temperature"] == 30.0


def test_unknown_record_field_rejected(client, auth_headers):
    alice = auth_headers("alice")
    r = client.post(
        "/water-chemistry/records",
        json={"record_date": "2026-03-01", "ph": 7.0, "colour": "green"},
        headers=alice,
    )
    assert r.status_code == 422
    assert client.get("/water-chemistry/records", headers=alice).json()["records"] == []
