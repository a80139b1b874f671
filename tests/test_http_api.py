from __future__ import annotations

from datetime import datetime

from attendance_tracker.core.enums import AttendanceStatus


def test_unauthenticated_request_gets_uniform_401(client):
    resp = client.get("/punch/today")

    assert resp.status_code == 401
    assert resp.get_json() == {"success": False, "error": "Not authenticated"}


def test_unknown_route_is_json_404(client):
    resp = client.get("/no/such/route")

    assert resp.status_code == 404
    assert resp.get_json()["success"] is False


def test_bad_login_is_401(client, world):
    world.add_account("ana@example.com")
    resp = client.post("/auth/login", json={"email": "ana@example.com", "password": "nope-nope"})

    assert resp.status_code == 401
    assert resp.get_json()["error"] == "Invalid email or password"


def test_login_auto_links_and_describes_session(client, world, login):
    person = world.add_person("Ana Lima", email="ana@example.com")
    world.add_account("ana@example.com")

    body = login("ana@example.com").get_json()

    assert body["success"] is True
    assert body["data"]["role"] == "member"
    assert body["data"]["person"]["person_id"] == person.person_id
    assert client.get("/auth/me").get_json()["data"]["email"] == "ana@example.com"


def test_logout_ends_session(client, world, login):
    world.add_member("Ana Lima", email="ana@example.com")
    login("ana@example.com")

    assert client.post("/auth/logout").status_code == 200
    assert client.get("/auth/me").status_code == 401


def test_member_cannot_reach_admin_routes(client, world, login):
    world.add_member("Ana Lima", email="ana@example.com")
    login("ana@example.com")

    resp = client.get("/people")

    assert resp.status_code == 403
    assert resp.get_json() == {"success": False, "error": "Admin access required"}


def test_punch_in_twice_over_http(client, world, login):
    _, person = world.add_member("Ana Lima", email="ana@example.com")
    login("ana@example.com")

    first = client.post("/punch/in", json={"latitude": 10.5, "longitude": 20.5, "address": "HQ"})
    second = client.post("/punch/in", json={})

    assert first.status_code == 200
    assert first.get_json()["data"]["status"] == "present"
    assert first.get_json()["data"]["punch_in_address"] == "HQ"
    assert second.status_code == 409
    assert second.get_json()["error"] == "You have already punched in today"

    today = client.get("/punch/today").get_json()["data"]
    assert today["has_punched_in"] is True
    assert today["has_punched_out"] is False


def test_punch_out_before_punch_in_is_409(client, world, login):
    world.add_member("Ana Lima", email="ana@example.com")
    login("ana@example.com")

    resp = client.post("/punch/out")

    assert resp.status_code == 409
    assert resp.get_json()["error"] == "You need to punch in first"


def test_unlinked_member_gets_403_on_punch(client, world, login):
    world.add_account("stray@example.com")
    login("stray@example.com")

    resp = client.post("/punch/in")

    assert resp.status_code == 403
    assert "not linked" in resp.get_json()["error"]


def test_admin_creates_person_with_credentials(client, world, login):
    world.add_admin("boss@example.com")
    login("boss@example.com")

    resp = client.post(
        "/people",
        json={"full_name": " Ana Lima ", "email": "ana@example.com", "password": "hunter22"},
    )

    assert resp.status_code == 201
    data = resp.get_json()["data"]
    assert data["full_name"] == "Ana Lima"
    assert data["user_id"] is not None
    assert client.post("/people", json={"full_name": ""}).status_code == 422


def test_admin_bulk_entry_and_export(client, world, login):
    world.add_admin("boss@example.com")
    person = world.add_person("Ana Lima")
    login("boss@example.com")

    saved = client.post(
        "/attendance/bulk",
        json={"date": "2024-03-04", "records": [{"person_id": person.person_id, "status": "absent", "notes": 'He said "hi"'}]},
    )
    assert saved.get_json()["data"] == {"saved": 1}

    sheet = client.get("/attendance/sheet?date=2024-03-04").get_json()["data"]
    assert sheet[0]["status"] == "absent"

    logs = client.get("/logs?status=absent").get_json()["data"]
    assert logs["count"] == 1 and logs["total_pages"] == 1

    export = client.get("/logs/export.csv")
    assert export.status_code == 200
    assert export.mimetype == "text/csv"
    text = export.data.decode("utf-8-sig")
    assert text.startswith('"Date","Person","Role"')
    assert '"He said ""hi"""' in text


def test_invalid_log_filter_is_422(client, world, login):
    world.add_admin("boss@example.com")
    login("boss@example.com")

    resp = client.get("/logs?limit=9999")

    assert resp.status_code == 422
    assert resp.get_json()["success"] is False


def test_leave_request_and_review_over_http(client, world, login):
    world.add_admin("boss@example.com")
    _, person = world.add_member("Ana Lima", email="ana@example.com")

    login("ana@example.com")
    created = client.post(
        "/leave",
        json={"start_date": "2024-01-10", "end_date": "2024-01-12", "leave_type": "sick", "reason": "flu"},
    )
    assert created.status_code == 201
    request_id = created.get_json()["data"]["request_id"]
    assert len(client.get("/leave/mine").get_json()["data"]) == 1

    login("boss@example.com")
    pending = client.get("/leave?status=pending").get_json()["data"]
    assert [r["request_id"] for r in pending] == [request_id]

    reviewed = client.post(f"/leave/{request_id}/review", json={"decision": "approved"})
    assert reviewed.get_json()["data"]["status"] == "approved"
    again = client.post(f"/leave/{request_id}/review", json={"decision": "rejected"})
    assert again.status_code == 409

    logs = client.get(f"/people/{person.person_id}/logs").get_json()["data"]
    assert [r["status"] for r in logs] == ["leave", "leave", "leave"]
    stats = client.get(f"/people/{person.person_id}/leave-stats").get_json()["data"]
    assert stats["approved"] == 1


def test_dashboard_depends_on_role(client, world, login):
    world.add_admin("boss@example.com")
    world.add_account("stray@example.com")

    login("stray@example.com")
    member = client.get("/dashboard").get_json()["data"]
    assert member["role"] == "member"
    assert member["person"] is None

    login("boss@example.com")
    admin = client.get("/dashboard").get_json()["data"]
    assert admin["role"] == "admin"
    assert set(admin) >= {"stats", "today_punches", "pending_leaves"}


def test_cron_requires_bearer_secret(client, world, monkeypatch):
    world.add_member("Ana Lima")
    monkeypatch.setattr("attendance_tracker.absence.service.now_local", lambda: datetime(2024, 3, 4, 14, 0))

    assert client.get("/cron/auto-absent").status_code == 401
    wrong = client.get("/cron/auto-absent", headers={"Authorization": "Bearer nope"})
    assert wrong.get_json() == {"success": False, "error": "Unauthorized"}

    resp = client.get("/cron/auto-absent", headers={"Authorization": "Bearer test-cron-secret"})

    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert data["marked_absent"] == 1
    assert data["members"] == ["Ana Lima"]
    assert all(r.status == AttendanceStatus.ABSENT for r in world.store.logs.values())


def test_bulk_entry_with_non_object_record_is_422(client, world, login):
    world.add_admin("boss@example.com")
    login("boss@example.com")

    resp = client.post("/attendance/bulk", json={"date": "2024-03-04", "records": [5]})

    assert resp.status_code == 422
    assert resp.get_json() == {"success": False, "error": "Each record must be an object"}


def test_wrongly_typed_fields_are_422(client, world, login):
    world.add_admin("boss@example.com")
    world.add_member("Ana Lima", email="ana@example.com")

    login("boss@example.com")
    person = client.post("/people", json={"full_name": 123})
    assert person.status_code == 422
    assert person.get_json()["error"] == "Full name must be text"

    login("ana@example.com")
    leave = client.post("/leave", json={"start_date": 20240110, "end_date": "2024-01-12", "leave_type": "sick"})
    assert leave.status_code == 422
    assert leave.get_json()["error"] == "start_date must be text"

    client.post("/auth/logout")
    bad_login = client.post("/auth/login", json={"email": ["ana@example.com"], "password": "secret123"})
    assert bad_login.status_code == 422


def test_log_listings_carry_map_links(client, world, login):
    world.add_admin("boss@example.com")
    _, person = world.add_member("Ana Lima", email="ana@example.com")
    expected = "https://www.google.com/maps?q=10.5,20.5"

    login("ana@example.com")
    client.post("/punch/in", json={"latitude": 10.5, "longitude": 20.5})
    mine = client.get("/my/logs").get_json()["data"]
    assert mine[0]["punch_in_map_url"] == expected
    assert mine[0]["punch_out_map_url"] is None

    login("boss@example.com")
    listed = client.get("/logs").get_json()["data"]["records"]
    assert listed[0]["punch_in_map_url"] == expected
    by_person = client.get(f"/people/{person.person_id}/logs").get_json()["data"]
    assert by_person[0]["punch_in_map_url"] == expected
