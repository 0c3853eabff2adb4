import copy
import json
import uuid

import pytest
from fastapi.testclient import TestClient

from odportal.core import database
from odportal.core.security import get_password_hash


class FakeResponse:
    def __init__(self, data, count=None):
        self.data = data
        self.count = count


class FakeQuery:
    """Just enough of the supabase-py query builder for the portal's queries."""

    def __init__(self, db, table):
        self.db = db
        self.table = table
        self.op = "select"
        self.payload = None
        self.count = None
        self.filters = []
        self.orders = []
        self.row_limit = None
        self.single = False

    # ---- operations ----
    def select(self, columns="*", count=None):
        self.op = "select"
        self.count = count
        return self

    def insert(self, data):
        self.op = "insert"
        self.payload = data
        return self

    def update(self, data):
        self.op = "update"
        self.payload = data
        return self

    # ---- filters / modifiers ----
    def eq(self, column, value):
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def in_(self, column, values):
        values = list(values)
        self.filters.append(lambda row: row.get(column) in values)
        return self

    def contains(self, column, value):
        if isinstance(value, str):
            value = json.loads(value)

        def matches(row):
            items = row.get(column) or []
            return all(
                any(all(item.get(k) == v for k, v in wanted.items()) for item in items)
                for wanted in value
            )
        self.filters.append(matches)
        return self

    def order(self, column, desc=False):
        self.orders.append((column, desc))
        return self

    def limit(self, n):
        self.row_limit = n
        return self

    def maybe_single(self):
        self.single = True
        return self

    # ---- execution ----
    def _matching(self):
        return [row for row in self.db.rows(self.table) if all(f(row) for f in self.filters)]

    def execute(self):
        if self.op == "insert":
            records = self.payload if isinstance(self.payload, list) else [self.payload]
            inserted = []
            for record in records:
                row = copy.deepcopy(record)
                row.setdefault("id", str(uuid.uuid4()))
                self.db.rows(self.table).append(row)
                inserted.append(copy.deepcopy(row))
            return FakeResponse(inserted)

        if self.op == "update":
            if self.db.before_update:
                hook = self.db.before_update.pop(0)
                hook(self.table)
            updated = []
            for row in self._matching():
                row.update(copy.deepcopy(self.payload))
                updated.append(copy.deepcopy(row))
            return FakeResponse(updated)

        rows = self._matching()
        for column, desc in reversed(self.orders):
            rows.sort(key=lambda r: (r.get(column) is None, r.get(column)), reverse=desc)
        count = len(rows) if self.count else None
        if self.row_limit is not None:
            rows = rows[: self.row_limit]
        rows = copy.deepcopy(rows)

        if self.single:
            return FakeResponse(rows[0] if rows else None)
        return FakeResponse(rows, count=count)


class FakeSupabase:
    def __init__(self):
        self.tables = {}
        # one-shot callables, one popped before each update is applied
        self.before_update = []

    def rows(self, table):
        return self.tables.setdefault(table, [])

    def table(self, name):
        return FakeQuery(self, name)


# Calendar anchors: 2024-01-01 is a Monday.
MONDAY = "2024-01-01"
TUESDAY = "2024-01-02"
WEDNESDAY = "2024-01-03"
SUNDAY = "2024-01-07"
NEXT_MONDAY = "2024-01-08"


def slot(student_id, day, period, subject_code, staff_id, subject_name=None, staff_name=None):
    return {
        "student_id": student_id,
        "day_of_week": day,
        "period": period,
        "subject_code": subject_code,
        "subject_name": subject_name or f"Subject {subject_code}",
        "staff_id": staff_id,
        "staff_name": staff_name or f"Staff {staff_id}",
        "start_time": "09:00",
        "end_time": "09:50",
    }


@pytest.fixture
def db(monkeypatch):
    fake = FakeSupabase()
    monkeypatch.setattr(database, "_supabase_client", fake)
    return fake


@pytest.fixture
def seeded(db):
    """One student with Mon/Wed classes, two staff members and an admin."""
    password_hash = get_password_hash("secret123")
    db.rows("users").extend([
        {"id": "STU1", "username": "stu1", "name": "Asha Raman", "email": "asha@college.edu",
         "role": "student", "roll_number": "21CS001", "password_hash": password_hash, "is_active": True,
         "created_at": "2024-01-01T00:00:00+00:00"},
        {"id": "S1", "username": "staff1", "name": "Dr. Iyer", "email": "iyer@college.edu",
         "role": "staff", "password_hash": password_hash, "is_active": True,
         "created_at": "2024-01-01T00:00:01+00:00"},
        {"id": "S2", "username": "staff2", "name": "Prof. Menon", "email": "menon@college.edu",
         "role": "staff", "password_hash": password_hash, "is_active": True,
         "created_at": "2024-01-01T00:00:02+00:00"},
        {"id": "A1", "username": "admin", "name": "Office", "email": "office@college.edu",
         "role": "admin", "password_hash": password_hash, "is_active": True,
         "created_at": "2024-01-01T00:00:03+00:00"},
    ])
    db.rows("timetable_entries").extend([
        slot("STU1", 1, 2, "CS101", "S1", "Data Structures", "Dr. Iyer"),
        slot("STU1", 1, 4, "CS102", "S2", "Operating Systems", "Prof. Menon"),
        slot("STU1", 3, 1, "CS101", "S1", "Data Structures", "Dr. Iyer"),
    ])
    db.rows("staff_duty_schedules").extend([
        {"staff_id": "S1", "day_of_week": 1, "period": 2, "subject_code": "CS101",
         "subject_name": "Data Structures", "start_time": "09:50", "end_time": "10:40"},
        {"staff_id": "S1", "day_of_week": 3, "period": 1, "subject_code": "CS101",
         "subject_name": "Data Structures", "start_time": "09:00", "end_time": "09:50"},
    ])
    db.rows("student_staff_mappings").extend([
        {"student_id": "STU1", "staff_id": "S1", "subject_code": "CS101", "subject_name": "Data Structures"},
        {"student_id": "STU2", "staff_id": "S1", "subject_code": "CS101", "subject_name": "Data Structures"},
        {"student_id": "STU1", "staff_id": "S2", "subject_code": "CS102", "subject_name": "Operating Systems"},
    ])
    return db


@pytest.fixture
def client(seeded):
    from odportal.main import app

    with TestClient(app) as c:
        yield c


def auth(username):
    return {"Authorization": f"Bearer mock-{username}"}
