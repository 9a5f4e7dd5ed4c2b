import uuid

from fieldops.services.auth import create_access_token, hash_password

API = "/api/v1/time-tracker"


def _clock_in(client, headers, wo):
    return client.post(f"{API}/clock-in", headers=headers, json={
        "timesheet_type": "field_work",
        "work_order_id": str(wo.id),
        "coords": {"lat": 52.37, "lon": 4.89},
        "address": "Dam 1",
    })


def test_health(client):
    assert client.get("/health").json() == {"ok": True}


def test_requests_without_identity_are_rejected(client):
    r = client.get(f"{API}/active")
    assert r.status_code == 401
    assert r.json()["detail"] == "Unauthorized - User ID header missing"


def test_unknown_user_id(client, db):
    r = client.get(f"{API}/active", headers={"X-User-Id": str(uuid.uuid4())})
    assert r.status_code == 401


def test_clock_in_switch_clock_out_flow(client, worker, work_orders, headers):
    h = headers(worker)
    r = _clock_in(client, h, work_orders[0])
    assert r.status_code == 201
    body = r.json()
    assert body["is_active"] is True
    seg = body["work_order_segments"][0]
    assert seg["work_order_number"] == "WO-1"
    assert seg["work_order_title"] == "Pump repair"
    assert seg["customer_name"] == "Acme"
    assert seg["work_order_address"] == "1 Main St"

    active = client.get(f"{API}/active", headers=h).json()["timesheet"]
    assert active["id"] == body["id"]

    r = client.post(f"{API}/switch", headers=h, json={"work_order_id": str(work_orders[1].id)})
    assert r.status_code == 200
    segments = r.json()["work_order_segments"]
    assert len(segments) == 2
    assert [s["end_time"] is None for s in segments] == [False, True]

    r = client.post(f"{API}/clock-out", headers=h, json={"notes": "all done"})
    assert r.status_code == 200
    done = r.json()
    assert done["is_active"] is False
    assert done["status"] == "completed"
    assert done["total_duration_minutes"] is not None
    assert client.get(f"{API}/active", headers=h).json() == {"timesheet": None}

    mine = client.get(f"{API}/me", headers=h).json()
    assert [t["id"] for t in mine] == [body["id"]]


def test_clock_in_validation_message(client, worker, headers):
    r = client.post(f"{API}/clock-in", headers=headers(worker), json={})
    assert r.status_code == 400
    assert r.json() == {"detail": "Please select work type (Work Order or Office Work)"}


def test_double_clock_in_conflict(client, worker, work_orders, headers):
    first = _clock_in(client, headers(worker), work_orders[0]).json()
    r = _clock_in(client, headers(worker), work_orders[1])
    assert r.status_code == 409
    assert r.json()["active_timesheet_id"] == first["id"]


def test_team_leader_clock_out_needs_status(client, team_leader, work_orders, headers):
    h = headers(team_leader)
    _clock_in(client, h, work_orders[0])

    r = client.post(f"{API}/clock-out", headers=h, json={})
    assert r.status_code == 409
    assert r.json()["work_order_id"] == str(work_orders[0].id)
    assert r.json()["current_status"] == "open"

    r = client.post(f"{API}/clock-out", headers=h, json={"work_order_status": "open", "status_notes": "parts on order"})
    assert r.status_code == 200

    wo = client.get(f"/api/v1/work-orders/{work_orders[0].id}", headers=h).json()
    assert wo["status"] == "open"
    assert "parts on order" in wo["work_notes"]


def test_invalid_work_order_status_is_rejected(client, team_leader, work_orders, headers):
    _clock_in(client, headers(team_leader), work_orders[0])
    r = client.post(f"{API}/clock-out", headers=headers(team_leader), json={"work_order_status": "done"})
    assert r.status_code == 422


def test_tracking_points(client, worker, work_orders, headers):
    h = headers(worker)
    assert client.post(f"{API}/tracking-points", headers=h, json={"lat": 1, "lon": 1}).status_code == 404

    _clock_in(client, h, work_orders[0])
    r = client.post(f"{API}/tracking-points", headers=h, json={"lat": 0, "lon": 0})
    assert r.status_code == 201
    assert r.json()["points"] == 1

    assert client.post(f"{API}/tracking-points", headers=h, json={"lat": 91, "lon": 0}).status_code == 422


def test_admin_routes_require_admin(client, worker, headers):
    for path in ("/all", "/sessions/today", "/pending", "/summary/daily"):
        assert client.get(f"{API}{path}", headers=headers(worker)).status_code == 403


def test_all_returns_latest_session_per_employee(client, admin, worker, other_worker, work_orders, headers):
    for _ in range(2):
        _clock_in(client, headers(worker), work_orders[0])
        client.post(f"{API}/clock-out", headers=headers(worker), json={})
    _clock_in(client, headers(other_worker), work_orders[1])

    rows = client.get(f"{API}/all", headers=headers(admin)).json()
    by_employee = {r["employee_id"]: r for r in rows}
    assert set(by_employee) == {str(worker.id), str(other_worker.id)}
    assert by_employee[str(worker.id)]["session_count"] == 2
    assert by_employee[str(other_worker.id)]["is_active"] is True

    today = client.get(f"{API}/sessions/today", headers=headers(admin)).json()
    assert len(today) == 3

    per_employee = client.get(f"{API}/employees/{worker.id}", headers=headers(admin)).json()
    assert len(per_employee) == 2

    summary = client.get(f"{API}/summary/daily", headers=headers(admin)).json()
    working = {r["employee_id"]: r["is_working"] for r in summary["employees"]}
    assert working == {str(worker.id): False, str(other_worker.id): True}


def test_range_params_must_come_together(client, worker, headers):
    r = client.get(f"{API}/me", headers=headers(worker), params={"start": "2026-03-01"})
    assert r.status_code == 400


def test_edit_request_and_approval(client, admin, worker, other_worker, work_orders, headers):
    ts = _clock_in(client, headers(worker), work_orders[0]).json()

    r = client.put(f"{API}/{ts['id']}/approve", headers=headers(admin), json={})
    assert r.status_code == 409

    client.post(f"{API}/clock-out", headers=headers(worker), json={})

    r = client.put(f"{API}/{ts['id']}/edit-request", headers=headers(other_worker), json={"notes": "x"})
    assert r.status_code == 403

    r = client.put(f"{API}/{ts['id']}/edit-request", headers=headers(worker), json={
        "clock_in_time": ts["clock_in_time"],
        "clock_out_time": "2000-01-01T00:00:00Z",
    })
    assert r.status_code == 400
    assert r.json()["detail"] == "Clock out time must be after clock in time"

    r = client.put(f"{API}/{ts['id']}/edit-request", headers=headers(worker), json={"notes": "left late"})
    assert r.status_code == 200
    assert r.json()["status"] == "pending_approval"
    assert r.json()["was_edited"] is True

    pending = client.get(f"{API}/pending", headers=headers(admin)).json()
    assert [p["id"] for p in pending] == [ts["id"]]

    r = client.put(f"{API}/{ts['id']}/reject", headers=headers(admin), json={})
    assert r.status_code == 400
    assert r.json()["detail"] == "Rejection reason is required"

    r = client.put(f"{API}/{ts['id']}/approve", headers=headers(admin), json={"approval_notes": "fine"})
    assert r.status_code == 200
    assert r.json()["status"] == "approved"
    assert r.json()["approval_notes"] == "fine"


def test_admin_get_update_delete(client, admin, worker, work_orders, headers):
    ts = _clock_in(client, headers(worker), work_orders[0]).json()
    client.post(f"{API}/clock-out", headers=headers(worker), json={})

    assert client.get(f"{API}/{ts['id']}", headers=headers(worker)).status_code == 200
    assert client.get(f"{API}/{uuid.uuid4()}", headers=headers(admin)).status_code == 404

    r = client.put(f"{API}/{ts['id']}", headers=headers(admin), json={"notes": "verified"})
    assert r.json()["notes"] == "verified"

    r = client.put(f"{API}/{ts['id']}/edit-and-approve", headers=headers(admin), json={
        "clock_in_time": "2026-03-02T07:00:00Z",
        "clock_out_time": "2026-03-02T16:30:00Z",
    })
    assert r.status_code == 200
    assert r.json()["total_duration_minutes"] == 570
    assert r.json()["regular_hours"] == 8
    assert r.json()["overtime_hours_paid"] == 1.5

    assert client.delete(f"{API}/{ts['id']}", headers=headers(admin)).json()["ok"] is True
    assert client.get(f"{API}/{ts['id']}", headers=headers(admin)).status_code == 404


def test_settings_roundtrip(client, admin, worker, headers):
    defaults = client.get(f"{API}/settings", headers=headers(worker)).json()
    assert defaults["tracker"]["track_gps"] is True
    assert defaults["hours"]["regular_hours_per_day"] == 8.0

    r = client.put("/api/v1/settings/time-tracker", headers=headers(worker), json={"tracker": {"track_gps": False}})
    assert r.status_code == 403

    r = client.put("/api/v1/settings/time-tracker", headers=headers(admin), json={
        "tracker": {"track_gps": False, "require_photo_switch": True},
        "hours": {"regular_hours_per_day": 7.5, "tracking_interval_minutes": 15},
    })
    assert r.status_code == 200
    assert r.json()["tracker"]["track_gps"] is False
    assert r.json()["hours"]["tracking_interval_minutes"] == 15

    r = client.put("/api/v1/settings/time-tracker", headers=headers(admin), json={"tracker": {"bogus": 1}})
    assert r.status_code == 400


def test_work_orders_and_departments(client, admin, worker, headers):
    r = client.post("/api/v1/work-orders", headers=headers(admin), json={
        "title": "Roof survey", "work_order_number": "WO-9", "employee_ids": [str(worker.id)],
    })
    assert r.status_code == 201
    wo_id = r.json()["id"]

    assert client.post("/api/v1/work-orders", headers=headers(worker), json={"title": "x"}).status_code == 403

    mine = client.get("/api/v1/work-orders", headers=headers(worker), params={"employee_id": str(worker.id)}).json()
    assert [w["id"] for w in mine] == [wo_id]

    assert client.put(f"/api/v1/work-orders/{wo_id}/status", headers=headers(worker),
                      json={"status": "closed"}).status_code == 403
    r = client.put(f"/api/v1/work-orders/{wo_id}/status", headers=headers(admin), json={"status": "closed"})
    assert r.json()["status"] == "closed"
    assert r.json()["completed_date"] is not None

    r = client.post("/api/v1/departments", headers=headers(admin), json={"name": "Electrical"})
    assert r.status_code == 201
    assert client.post("/api/v1/departments", headers=headers(admin), json={"name": "Electrical"}).status_code == 409
    names = [d["name"] for d in client.get("/api/v1/departments", headers=headers(worker)).json()]
    assert names == ["Electrical"]


def test_login_and_bearer_token(client, db, worker):
    worker.password_hash = hash_password("s3cret!")
    db.commit()

    r = client.post("/api/v1/auth/login", json={"email": "worker@test.local", "password": "wrong"})
    assert r.status_code == 401

    r = client.post("/api/v1/auth/login", json={"email": "Worker@test.local", "password": "s3cret!", "branch_code": "test"})
    assert r.status_code == 200
    token = r.json()["access_token"]

    me = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.json()["id"] == str(worker.id)

    assert client.get(f"{API}/active", headers={"Authorization": "Bearer junk"}).status_code == 401


def test_admin_token_reaches_admin_routes(client, admin):
    token = create_access_token(admin.id, admin.role, admin.branch_id)
    r = client.get(f"{API}/pending", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 200
    assert r.json() == []


def test_admin_update_with_null_status(client, admin, worker, work_orders, headers):
    ts = _clock_in(client, headers(worker), work_orders[0]).json()
    client.post(f"{API}/clock-out", headers=headers(worker), json={})

    r = client.put(f"{API}/{ts['id']}", headers=headers(admin), json={"status": None, "notes": "seen"})
    assert r.status_code == 200
    assert r.json()["status"] == "completed"
    assert r.json()["notes"] == "seen"


def test_tracking_points_need_field_work(client, worker, department, headers):
    h = headers(worker)
    client.post(f"{API}/clock-in", headers=h, json={"timesheet_type": "office_work", "department_id": str(department.id)})
    r = client.post(f"{API}/tracking-points", headers=h, json={"lat": 0, "lon": 0})
    assert r.status_code == 400


def test_other_branch_admin_cannot_reach_timesheet(client, db, admin, worker, work_orders, headers):
    from fieldops.models.user import Branch, User

    ts = _clock_in(client, headers(worker), work_orders[0]).json()
    client.post(f"{API}/clock-out", headers=headers(worker), json={})

    other = Branch(name="Other Co", code="other")
    db.add(other)
    db.flush()
    outsider = User(email="admin@other.local", full_name="Outsider", role="admin", branch_id=other.id, is_active=True)
    db.add(outsider)
    db.commit()
    h = headers(outsider)

    assert client.get(f"{API}/{ts['id']}", headers=h).status_code == 404
    assert client.get(f"{API}/employees/{worker.id}", headers=h, params={"all": "true"}).json() == []
    assert client.put(f"{API}/{ts['id']}", headers=h, json={"notes": "x"}).status_code == 404
    assert client.put(f"{API}/{ts['id']}/approve", headers=h, json={}).status_code == 404
    assert client.put(f"{API}/{ts['id']}/reject", headers=h, json={"approval_notes": "no"}).status_code == 404
    assert client.put(f"{API}/{ts['id']}/edit-and-approve", headers=h, json={
        "clock_in_time": "2026-03-02T07:00:00Z",
        "clock_out_time": "2026-03-02T08:00:00Z",
    }).status_code == 404
    assert client.delete(f"{API}/{ts['id']}", headers=h).status_code == 404

    assert client.get(f"{API}/{ts['id']}", headers=headers(admin)).status_code == 200
    assert len(client.get(f"{API}/employees/{worker.id}", headers=headers(admin), params={"all": "true"}).json()) == 1
