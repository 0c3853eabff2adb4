"""
Read-only lookups over the Supabase tables the OD workflow consumes.

Rows are turned into schema objects here so the workflow and utilization
code never touches raw query results.
"""

import json
from typing import List, Optional
from supabase import Client
from odportal.core.exceptions import RequestNotFound
from odportal.schemas.academic import (
    AttendanceRecord,
    DutySlot,
    SemesterConfig,
    StudentStaffMapping,
    TimetableSlot,
)
from odportal.schemas.workflow import ODRequest


def get_slots_for_student(db: Client, student_id: str) -> List[TimetableSlot]:
    result = (
        db.table("timetable_entries")
        .select("*")
        .eq("student_id", student_id)
        .order("day_of_week")
        .order("period")
        .execute()
    )
    return [TimetableSlot.model_validate(row) for row in result.data]


def get_duty_for_staff(db: Client, staff_id: str) -> List[DutySlot]:
    result = (
        db.table("staff_duty_schedules")
        .select("*")
        .eq("staff_id", staff_id)
        .order("day_of_week")
        .order("period")
        .execute()
    )
    return [DutySlot.model_validate(row) for row in result.data]


def get_mappings_for_staff(
    db: Client, staff_id: str, subject_code: Optional[str] = None
) -> List[StudentStaffMapping]:
    query = db.table("student_staff_mappings").select("*").eq("staff_id", staff_id)
    if subject_code:
        query = query.eq("subject_code", subject_code)
    result = query.order("subject_code").order("student_id").execute()
    return [StudentStaffMapping.model_validate(row) for row in result.data]


def get_attendance_records(
    db: Client, staff_id: str, subject_code: Optional[str] = None
) -> List[AttendanceRecord]:
    """Attendance marked by one staff member, optionally for a single subject."""
    query = db.table("attendance_records").select("*").eq("staff_id", staff_id)
    if subject_code:
        query = query.eq("subject_code", subject_code)
    result = query.order("date").execute()
    return [AttendanceRecord.model_validate(row) for row in result.data]


def get_active_semester_config(db: Client) -> Optional[SemesterConfig]:
    """Latest semester settings row, or None when no semester is configured."""
    result = (
        db.table("semester_settings")
        .select("*")
        .order("updated_at", desc=True)
        .limit(1)
        .execute()
    )
    if not result.data:
        return None
    return SemesterConfig.model_validate(result.data[0])


def get_od_request(db: Client, request_id: str) -> ODRequest:
    result = (
        db.table("od_requests")
        .select("*")
        .eq("id", request_id)
        .maybe_single()
        .execute()
    )
    if not result or not result.data:
        raise RequestNotFound(f"OD request '{request_id}' not found")
    return ODRequest.model_validate(result.data)


def get_requests_for_student(db: Client, student_id: str) -> List[ODRequest]:
    result = (
        db.table("od_requests")
        .select("*")
        .eq("student_id", student_id)
        .order("created_at", desc=True)
        .execute()
    )
    return [ODRequest.model_validate(row) for row in result.data]


def get_requests_for_staff(db: Client, staff_id: str) -> List[ODRequest]:
    """Requests carrying at least one approval entry for this staff member."""
    result = (
        db.table("od_requests")
        .select("*")
        # jsonb containment needs the JSON text, a list would be sent as an array literal
        .contains("staff_approvals", json.dumps([{"staff_id": staff_id}]))
        .order("created_at", desc=True)
        .execute()
    )
    return [ODRequest.model_validate(row) for row in result.data]
