import uuid
from datetime import date


def _open_shift(client, auth, unit, **extra):
    body = {"date": "2025-03-10", "unit_id": str(unit.unit_id), **extra}
    return client.post("/shifts", json=body, headers=auth())


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_requires_a_valid_token(client):
    assert client.get("/shifts").status_code in (401, 403)
    r = client.get("/shifts", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401


def test_open_shift_and_duplicate(client, auth, night_unit, supervisor):
    unit, _, bruno = night_unit

    r = _open_shift(client, auth, unit, on_rest_worker_ids=[str(bruno.personnel_id)])
    assert r.status_code == 201
    shift = r.json()
    assert shift["status"] == "en_curso"
    assert shift["unit_name"] == "U1"
    assert shift["supervisor_id"] == str(supervisor.user_id)
    assert shift["supervisor_name"] == "Rosa Quispe"

    calls = client.get(f"/shifts/{shift['shift_id']}/calls", headers=auth()).json()
    assert len(calls) == 3

    r = _open_shift(client, auth, unit)
    assert r.status_code == 409
    assert r.json()["error"] == "duplicate_shift"
    assert r.json()["existing_id"] == shift["shift_id"]


def test_unknown_unit(client, auth):
    r = client.post("/shifts", json={"date": "2025-03-10", "unit_id": str(uuid.uuid4())}, headers=auth())
    assert r.status_code == 404
    assert r.json()["error"] == "not_found"


def test_bad_date_is_rejected(client, auth, night_unit):
    unit, _, _ = night_unit
    r = client.post("/shifts", json={"date": "10/03/2025", "unit_id": str(unit.unit_id)}, headers=auth())
    assert r.status_code == 422
    assert r.json()["error"] == "validation_error"


def test_call_flow_with_alerts(client, auth, night_unit):
    unit, ana, _ = night_unit
    shift_id = _open_shift(client, auth, unit).json()["shift_id"]
    call = next(
        c
        for c in client.get(f"/shifts/{shift_id}/calls", headers=auth()).json()
        if c["worker_id"] == str(ana.personnel_id) and c["call_number"] == 1
    )

    r = client.patch(f"/calls/{call['call_id']}", json={"answered": False}, headers=auth())
    assert r.status_code == 200

    alerts = client.get(f"/shifts/{shift_id}/alerts", headers=auth()).json()
    assert [a["type"] for a in alerts] == ["missing_call", "missing_photo"]

    r = client.post(f"/alerts/{alerts[1]['alert_id']}/resolve", headers=auth())
    assert r.status_code == 200
    assert r.json()["resolved"] is True

    r = client.patch(
        f"/calls/{call['call_id']}",
        json={"answered": True, "photo_received": True, "actual_time": "23:04"},
        headers=auth(),
    )
    assert r.json()["actual_time"] == "23:04:00"
    assert client.get(f"/shifts/{shift_id}/alerts", headers=auth()).json() == []
    assert len(client.get(f"/shifts/{shift_id}/alerts?include_resolved=true", headers=auth()).json()) == 2

    shift = client.get(f"/shifts/{shift_id}", headers=auth()).json()
    assert shift["completion_percentage"] == 11


def test_unplanned_call(client, auth, night_unit, make_person):
    unit, ana, _ = night_unit
    shift_id = _open_shift(client, auth, unit).json()["shift_id"]

    r = client.post(f"/shifts/{shift_id}/calls", json={"worker_id": str(ana.personnel_id), "call_number": 2}, headers=auth())
    assert r.status_code == 409
    assert r.json()["error"] == "duplicate_call"
    assert r.json()["existing_id"]

    relief = make_person(unit, "Diego Vega", phone="988000111", assigned_shift="Día")
    r = client.post(
        f"/shifts/{shift_id}/calls",
        json={"worker_id": str(relief.personnel_id), "call_number": 1, "scheduled_time": "23:30"},
        headers=auth(),
    )
    assert r.status_code == 201
    assert r.json()["worker_name"] == "Diego Vega"
    assert r.json()["worker_phone"] == "988000111"

    r = client.delete(f"/calls/{r.json()['call_id']}", headers=auth())
    assert r.status_code == 204


def test_camera_review_upsert(client, auth, night_unit):
    unit, _, _ = night_unit
    shift_id = _open_shift(client, auth, unit).json()["shift_id"]
    url = f"/shifts/{shift_id}/camera-reviews/1"

    r = client.put(url, json={"screenshot_url": "https://cdn/1.png"}, headers=auth())
    assert r.status_code == 422
    assert r.json()["error"] == "validation_error"
    assert client.get(f"/shifts/{shift_id}/camera-reviews", headers=auth()).json() == []

    r = client.put(url, json={"screenshot_url": "https://cdn/1.png", "notes": "Sin novedad"}, headers=auth())
    assert r.status_code == 200
    review_id = r.json()["review_id"]

    r = client.put(url, json={"cameras_reviewed": ["Cam 1", "Cam 2"]}, headers=auth())
    assert r.json()["review_id"] == review_id
    assert r.json()["screenshot_url"] == "https://cdn/1.png"

    assert client.put(f"/shifts/{shift_id}/camera-reviews/4", json={"notes": "x"}, headers=auth()).status_code == 422


def test_shift_lifecycle(client, auth, night_unit):
    unit, _, _ = night_unit
    shift_id = _open_shift(client, auth, unit).json()["shift_id"]

    r = client.patch(f"/shifts/{shift_id}", json={"notes": "Corte de luz 01:00"}, headers=auth())
    assert r.json()["notes"] == "Corte de luz 01:00"

    r = client.post(f"/shifts/{shift_id}/recompute", headers=auth())
    assert r.json()["completion_percentage"] == 0

    report = client.get(f"/shifts/{shift_id}/report", headers=auth()).json()
    assert report["total_calls_required"] == 6
    assert report["total_camera_reviews_required"] == 3

    r = client.post(f"/shifts/{shift_id}/cancel", headers=auth())
    assert r.json()["status"] == "cancelada"
    listed = client.get("/shifts", params={"status": "cancelada"}, headers=auth()).json()
    assert [s["shift_id"] for s in listed] == [shift_id]

    assert client.delete(f"/shifts/{shift_id}", headers=auth()).status_code == 204
    r = client.get(f"/shifts/{shift_id}", headers=auth())
    assert r.status_code == 404
    assert r.json()["error"] == "not_found"


def test_contract_alerts_by_role(client, auth, make_unit, make_person, operations):
    unit = make_unit("U1")
    trainee = make_person(unit, "Elena Soto", in_training=True, training_start_date=date(2025, 1, 1))

    r = client.get("/contract-alerts", headers=auth())
    assert r.status_code == 403
    assert r.json()["error"] == "permission_denied"

    alerts = client.get("/contract-alerts", params={"unit_id": str(unit.unit_id)}, headers=auth(operations)).json()
    assert [a["personnel_id"] for a in alerts] == [str(trainee.personnel_id)]
    assert alerts[0]["alert_date"] == "2025-01-04"

    r = client.post(f"/personnel/{trainee.personnel_id}/contract-generated", headers=auth(operations))
    assert r.status_code == 200
    assert r.json()["contract_generated"] is True
    assert client.get("/contract-alerts", headers=auth(operations)).json() == []


def test_night_workers(client, auth, night_unit):
    unit, ana, bruno = night_unit
    workers = client.get(f"/units/{unit.unit_id}/night-workers", headers=auth()).json()
    assert [w["name"] for w in workers] == [ana.name, bruno.name]


def test_reports(client, auth, night_unit):
    unit, ana, _ = night_unit

    r = client.get(f"/reports/workers/{ana.personnel_id}", headers=auth())
    assert r.status_code == 404
    assert r.json()["error"] == "no_data"

    _open_shift(client, auth, unit)
    r = client.get(
        f"/reports/workers/{ana.personnel_id}",
        params={"date_from": "2025-03-01", "date_to": "2025-03-31"},
        headers=auth(),
    )
    assert r.status_code == 200
    assert r.json()["total_shifts"] == 1

    r = client.get(f"/reports/units/{unit.unit_id}", headers=auth())
    assert r.json()["total_workers"] == 2
