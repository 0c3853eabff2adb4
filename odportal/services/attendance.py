"""
Attendance summaries for a staff member's mapped students.

OD days count as attended: percentage = (present + od) / marked classes.
A student with nothing marked yet reports zero classes and 0%.
"""

from collections import Counter
from typing import Dict, Iterable, List, Optional
from supabase import Client
from odportal.schemas.academic import AttendanceRecord, AttendanceSummary, StudentStaffMapping
from odportal.services.lookups import get_attendance_records, get_mappings_for_staff

ATTENDANCE_THRESHOLD = 75


def attendance_percentage(attended: int, od_count: int, total_classes: int) -> float:
    if total_classes <= 0:
        return 0
    return min(round((attended + od_count) * 100 / total_classes, 2), 100)


def summarize_attendance(
    mappings: Iterable[StudentStaffMapping],
    records: Iterable[AttendanceRecord],
    students: Dict[str, dict],
) -> List[AttendanceSummary]:
    """One row per mapping, in mapping order. `students` maps user id to its users row."""
    counts: Dict[tuple, Counter] = {}
    for rec in records:
        counts.setdefault((rec.student_id, rec.subject_code), Counter())[rec.status] += 1

    summary = []
    for m in mappings:
        tally = counts.get((m.student_id, m.subject_code), Counter())
        total = sum(tally.values())
        pct = attendance_percentage(tally["present"], tally["od"], total)
        student = students.get(m.student_id, {})
        summary.append(AttendanceSummary(
            student_id=m.student_id,
            student_name=student.get("name") or m.student_id,
            student_roll_number=student.get("roll_number") or m.student_id,
            subject_code=m.subject_code,
            subject_name=m.subject_name,
            total_classes=total,
            attended=tally["present"],
            od_count=tally["od"],
            percentage=pct,
            flagged=pct < ATTENDANCE_THRESHOLD,
        ))
    return summary


def get_staff_attendance(
    db: Client, staff_id: str, subject_code: Optional[str] = None
) -> List[AttendanceSummary]:
    mappings = get_mappings_for_staff(db, staff_id, subject_code)
    if not mappings:
        return []

    students = (
        db.table("users")
        .select("id, name, roll_number")
        .in_("id", sorted({m.student_id for m in mappings}))
        .execute()
    )
    records = get_attendance_records(db, staff_id, subject_code)
    return summarize_attendance(
        mappings, records, {s["id"]: s for s in students.data}
    )
