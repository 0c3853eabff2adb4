"""
Staff router — Duty schedule, mapped students/subjects, attendance, OD approval per subject.
Staff act only on approval entries that carry their own staff_id.
"""

from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends
from odportal.core.security import require_role
from odportal.core.database import get_supabase
from odportal.schemas.workflow import ODAction
from odportal.services.approvals import day_of_week, respond_to_approval
from odportal.services.attendance import get_staff_attendance
from odportal.services.lookups import get_duty_for_staff, get_mappings_for_staff, get_requests_for_staff
from odportal.utils.response import success_response

router = APIRouter(prefix="/api/staff", tags=["Staff"])

ACTION_TO_DECISION = {"approve": "approved", "reject": "rejected"}


# ===== SCHEDULE =====

@router.get("/schedule")
async def get_my_schedule(
    user: dict = Depends(require_role(["staff"])),
):
    db = get_supabase()
    duty = get_duty_for_staff(db, user["user_id"])
    return success_response(data=[d.model_dump() for d in duty])


@router.get("/schedule/today")
async def get_my_schedule_today(
    user: dict = Depends(require_role(["staff"])),
):
    db = get_supabase()
    today = day_of_week(date.today())
    duty = [d for d in get_duty_for_staff(db, user["user_id"]) if d.day_of_week == today]
    return success_response(data=[d.model_dump() for d in duty])


@router.get("/students/count")
async def get_my_student_count(
    user: dict = Depends(require_role(["staff"])),
):
    db = get_supabase()
    unique_students = {m.student_id for m in get_mappings_for_staff(db, user["user_id"])}
    return success_response(data={"count": len(unique_students)})


@router.get("/subjects")
async def get_my_subjects(
    user: dict = Depends(require_role(["staff"])),
):
    """Subjects this staff member teaches, from the student-staff mappings."""
    db = get_supabase()
    mappings = get_mappings_for_staff(db, user["user_id"])
    subjects = {m.subject_code: {"code": m.subject_code, "name": m.subject_name} for m in mappings}
    return success_response(data=sorted(subjects.values(), key=lambda s: s["code"]))


# ===== ATTENDANCE =====

@router.get("/attendance")
async def get_my_students_attendance(
    subject_code: Optional[str] = None,
    user: dict = Depends(require_role(["staff"])),
):
    """
    Attendance per mapped student and subject. OD days count as attended.
    ?subject_code=CS101 narrows to one subject.
    """
    db = get_supabase()
    summary = get_staff_attendance(db, user["user_id"], subject_code)
    return success_response(data=[s.model_dump() for s in summary])


# ===== OD APPROVAL (per subject) =====

@router.get("/od/requests")
async def get_my_od_requests(
    status: Optional[str] = None,
    user: dict = Depends(require_role(["staff"])),
):
    """
    Requests with at least one approval entry for this staff member.
    ?status=pending narrows to those still waiting on this staff member.
    """
    db = get_supabase()
    staff_id = user["user_id"]
    requests = get_requests_for_staff(db, staff_id)

    if status:
        requests = [
            r for r in requests
            if any(a.status == status for a in r.approvals_for_staff(staff_id))
        ]

    return success_response(data=[r.model_dump(mode="json") for r in requests])


@router.patch("/od/{od_id}/action")
async def staff_od_action(
    od_id: str,
    body: ODAction,
    user: dict = Depends(require_role(["staff"])),
):
    db = get_supabase()
    od_request = respond_to_approval(
        db,
        request_id=od_id,
        staff_id=user["user_id"],
        subject_code=body.subject_code,
        decision=ACTION_TO_DECISION[body.action],
        remarks=body.remarks,
    )
    return success_response(
        data=od_request.model_dump(mode="json"),
        message=f"OD {body.action}d for {body.subject_code}",
    )
