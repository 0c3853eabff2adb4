from conftest import MONDAY, SUNDAY, WEDNESDAY, auth

REASON = "Representing the college at the inter-university hackathon"

SEMESTER = {
    "semester_start": "2024-01-01",
    "semester_end": "2024-05-31",
    "subjects": [
        {"subject_code": "CS101", "subject_name": "Data Structures", "total_classes": 60},
        {"subject_code": "CS102", "subject_name": "Operating Systems", "total_classes": 20},
    ],
}


def apply(client, dates, reason=REASON, username="stu1"):
    return client.post(
        "/api/student/od/apply",
        json={"dates": dates, "reason": reason},
        headers=auth(username),
    )


def act(client, od_id, subject_code, action, username, remarks=None):
    return client.patch(
        f"/api/staff/od/{od_id}/action",
        json={"subject_code": subject_code, "action": action, "remarks": remarks},
        headers=auth(username),
    )


# ===== AUTH =====

def test_login_and_me(client):
    res = client.post("/api/auth/login", json={"username": "stu1", "password": "secret123"})
    assert res.status_code == 200
    token = res.json()["data"]["token"]
    assert token == "mock-stu1"

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.json()["data"]["roll_number"] == "21CS001"


def test_login_wrong_password(client):
    res = client.post("/api/auth/login", json={"username": "stu1", "password": "nope"})
    assert res.status_code == 401


def test_unknown_token_rejected(client):
    assert client.get("/api/auth/me", headers=auth("ghost")).status_code == 401


def test_register_student_and_block_admin(client, seeded):
    body = {
        "username": "stu2", "password": "secret123", "name": "Ravi Kumar",
        "email": "ravi@college.edu", "role": "student", "roll_number": "21CS002",
    }
    res = client.post("/api/auth/register", json=body)
    assert res.status_code == 201
    stored = next(u for u in seeded.rows("users") if u["username"] == "stu2")
    assert stored["password_hash"] != "secret123"

    assert client.post("/api/auth/register", json=body).status_code == 400
    admin = {**body, "username": "boss", "email": "boss@college.edu", "role": "admin"}
    assert client.post("/api/auth/register", json=admin).status_code == 403


def test_deactivated_user_rejected(client, seeded):
    seeded.rows("users")[0]["is_active"] = False
    assert client.get("/api/auth/me", headers=auth("stu1")).status_code == 403


# ===== STUDENT =====

def test_student_timetable(client):
    res = client.get("/api/student/timetable", headers=auth("stu1"))
    assert res.status_code == 200
    assert [(s["day_of_week"], s["period"]) for s in res.json()["data"]] == [(1, 2), (1, 4), (3, 1)]

    assert client.get("/api/student/timetable/today", headers=auth("stu1")).status_code == 200


def test_preview_lists_staff(client):
    res = client.post("/api/student/od/preview", json={"dates": [WEDNESDAY]}, headers=auth("stu1"))
    assert res.json()["data"] == [{
        "staff_id": "S1", "staff_name": "Dr. Iyer",
        "subject_code": "CS101", "subject_name": "Data Structures",
    }]


def test_apply_creates_pending_request(client, seeded):
    res = apply(client, [MONDAY, WEDNESDAY])

    assert res.status_code == 201
    data = res.json()["data"]
    assert data["overall_status"] == "pending"
    assert [(a["staff_id"], a["subject_code"], a["status"]) for a in data["staff_approvals"]] == [
        ("S1", "CS101", "pending"),
        ("S2", "CS102", "pending"),
    ]
    assert data["student_roll_number"] == "21CS001"
    assert len(seeded.rows("od_requests")) == 1


def test_apply_errors_use_error_envelope(client, seeded):
    short = apply(client, [MONDAY], reason="short")
    assert short.status_code == 400
    assert short.json()["success"] is False
    assert short.json()["data"]["error"] == "InvalidODRequest"

    no_class = apply(client, [SUNDAY])
    assert no_class.status_code == 400
    assert no_class.json()["data"]["error"] == "NoApplicableStaff"

    assert seeded.rows("od_requests") == []


def test_staff_cannot_apply(client):
    assert apply(client, [MONDAY], username="staff1").status_code == 403


# ===== STAFF =====

def test_staff_schedule_and_mappings(client):
    schedule = client.get("/api/staff/schedule", headers=auth("staff1")).json()["data"]
    assert len(schedule) == 2

    count = client.get("/api/staff/students/count", headers=auth("staff1")).json()["data"]
    assert count == {"count": 2}

    subjects = client.get("/api/staff/subjects", headers=auth("staff1")).json()["data"]
    assert subjects == [{"code": "CS101", "name": "Data Structures"}]


def test_full_approval_flow(client):
    od_id = apply(client, [MONDAY]).json()["data"]["id"]

    pending = client.get("/api/staff/od/requests?status=pending", headers=auth("staff1")).json()["data"]
    assert [r["id"] for r in pending] == [od_id]

    res = act(client, od_id, "CS101", "approve", "staff1", remarks="Approved")
    assert res.status_code == 200
    assert res.json()["data"]["overall_status"] == "pending"

    # nothing left for staff1
    pending = client.get("/api/staff/od/requests?status=pending", headers=auth("staff1")).json()["data"]
    assert pending == []
    everything = client.get("/api/staff/od/requests", headers=auth("staff1")).json()["data"]
    assert [r["id"] for r in everything] == [od_id]

    res = act(client, od_id, "CS102", "approve", "staff2")
    assert res.json()["data"]["overall_status"] == "approved"

    status = client.get("/api/student/od/status", headers=auth("stu1")).json()["data"]
    assert status[0]["overall_status"] == "approved"


def test_rejection_by_one_staff_rejects(client):
    od_id = apply(client, [MONDAY]).json()["data"]["id"]
    act(client, od_id, "CS101", "approve", "staff1")
    res = act(client, od_id, "CS102", "reject", "staff2", remarks="Lab exam that day")

    assert res.json()["data"]["overall_status"] == "rejected"


def test_staff_action_errors(client):
    od_id = apply(client, [MONDAY]).json()["data"]["id"]

    assert act(client, od_id, "CS101", "approve", "staff1").status_code == 200
    again = act(client, od_id, "CS101", "reject", "staff1")
    assert again.status_code == 409
    assert again.json()["data"]["error"] == "AlreadyResolved"

    # staff1 has no CS102 entry
    assert act(client, od_id, "CS102", "approve", "staff1").status_code == 404
    assert act(client, "missing", "CS101", "approve", "staff1").status_code == 404
    assert act(client, od_id, "CS101", "maybe", "staff1").status_code == 422


# ===== SHARED READS =====

def test_read_single_request_access(client):
    od_id = apply(client, [WEDNESDAY]).json()["data"]["id"]

    assert client.get(f"/api/od-requests/{od_id}", headers=auth("stu1")).status_code == 200
    assert client.get(f"/api/od-requests/{od_id}", headers=auth("staff1")).status_code == 200
    assert client.get(f"/api/od-requests/{od_id}", headers=auth("staff2")).status_code == 403
    assert client.get(f"/api/od-requests/{od_id}", headers=auth("admin")).status_code == 200
    assert client.get("/api/od-requests/missing", headers=auth("admin")).status_code == 404


# ===== ADMIN / UTILIZATION =====

def test_semester_settings_round_trip(client):
    assert client.get("/api/semester-settings", headers=auth("stu1")).status_code == 404
    assert client.get("/api/admin/semester-settings", headers=auth("admin")).json()["data"] is None

    res = client.put("/api/admin/semester-settings", json=SEMESTER, headers=auth("admin"))
    assert res.status_code == 200

    updated = {**SEMESTER, "subjects": SEMESTER["subjects"][:1]}
    client.put("/api/admin/semester-settings", json=updated, headers=auth("admin"))

    current = client.get("/api/semester-settings", headers=auth("stu1")).json()["data"]
    assert [s["subject_code"] for s in current["subjects"]] == ["CS101"]


def test_semester_settings_validation(client):
    bad = {**SEMESTER, "semester_end": "2023-12-01"}
    assert client.put("/api/admin/semester-settings", json=bad, headers=auth("admin")).status_code == 422
    assert client.put("/api/admin/semester-settings", json=SEMESTER, headers=auth("stu1")).status_code == 403


def test_usage_after_approval(client):
    client.put("/api/admin/semester-settings", json=SEMESTER, headers=auth("admin"))
    od_id = apply(client, [MONDAY, WEDNESDAY]).json()["data"]["id"]
    act(client, od_id, "CS101", "approve", "staff1")

    usage = client.get("/api/student/od/usage", headers=auth("stu1")).json()["data"]
    rows = {u["subject_code"]: u for u in usage}

    assert rows["CS101"]["used"] == 2
    assert rows["CS101"]["total"] == 60
    assert rows["CS102"]["used"] == 0

    admin_view = client.get("/api/admin/students/STU1/od-usage", headers=auth("admin")).json()["data"]
    assert admin_view == usage


def test_usage_without_semester(client):
    res = client.get("/api/student/od/usage", headers=auth("stu1")).json()
    assert res["data"] == []
    assert res["message"] == "Semester settings have not been configured yet"


def test_admin_stats_and_users(client):
    od_id = apply(client, [WEDNESDAY]).json()["data"]["id"]
    act(client, od_id, "CS101", "approve", "staff1")
    apply(client, [MONDAY])

    stats = client.get("/api/admin/stats", headers=auth("admin")).json()["data"]
    assert stats == {
        "total_students": 1,
        "total_staff": 2,
        "total_od_requests": 2,
        "pending_requests": 1,
        "approved_requests": 1,
        "rejected_requests": 0,
        "timetables_uploaded": 1,
    }

    users = client.get("/api/admin/users", headers=auth("admin")).json()["data"]
    assert len(users) == 4
    assert all("password_hash" not in u for u in users)


# ===== COMPLIANCE =====

def test_od_summary_and_csv(client):
    client.put("/api/admin/semester-settings", json=SEMESTER, headers=auth("admin"))
    od_id = apply(client, [MONDAY, WEDNESDAY]).json()["data"]["id"]
    act(client, od_id, "CS102", "approve", "staff2")

    summary = client.get("/api/compliance/od-summary", headers=auth("admin")).json()["data"]
    assert summary["by_status"] == {"pending": 1, "approved": 0, "rejected": 0}
    assert summary["risk_distribution"] == {"low": 2, "medium": 0, "high": 0}
    cs102 = next(s for s in summary["subjects"] if s["subject_code"] == "CS102")
    assert cs102["approved"] == 1

    res = client.get("/api/compliance/export/csv", headers=auth("admin"))
    assert res.status_code == 200
    assert res.headers["content-type"].startswith("text/csv")
    lines = res.text.strip().splitlines()
    assert lines[0].startswith("Request ID,Student Name")
    assert len(lines) == 3
