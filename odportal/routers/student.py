"""
Student router — Timetable, apply OD, OD status, OD utilization.
All queries use the authenticated user's id as student_id.
"""

from datetime import date
from fastapi import APIRouter, BackgroundTasks, Depends
from odportal.core.security import require_role
from odportal.core.database import get_supabase
from odportal.core.email import notify_approvers
from odportal.schemas.workflow import ODApply, ODPreview
from odportal.services.approvals import create_od_request, day_of_week, preview_approvers
from odportal.services.lookups import (
    get_active_semester_config,
    get_requests_for_student,
    get_slots_for_student,
)
from odportal.services.utilization import compute_usage_all_subjects
from odportal.utils.response import success_response

router = APIRouter(prefix="/api/student", tags=["Student"])


@router.get("/timetable")
async def get_my_timetable(
    user: dict = Depends(require_role(["student"])),
):
    db = get_supabase()
    slots = get_slots_for_student(db, user["user_id"])
    return success_response(data=[s.model_dump() for s in slots])


@router.get("/timetable/today")
async def get_my_timetable_today(
    user: dict = Depends(require_role(["student"])),
):
    db = get_supabase()
    today = day_of_week(date.today())
    slots = [s for s in get_slots_for_student(db, user["user_id"]) if s.day_of_week == today]
    return success_response(data=[s.model_dump() for s in slots])


@router.post("/od/preview")
async def preview_od(
    body: ODPreview,
    user: dict = Depends(require_role(["student"])),
):
    """Staff members a request for these dates would be sent to."""
    db = get_supabase()
    approvers = preview_approvers(db, user["user_id"], body.dates)
    return success_response(data=[a.model_dump(include={"staff_id", "staff_name", "subject_code", "subject_name"}) for a in approvers])


@router.post("/od/apply", status_code=201)
async def apply_od(
    body: ODApply,
    background_tasks: BackgroundTasks,
    user: dict = Depends(require_role(["student"])),
):
    db = get_supabase()
    od_request = create_od_request(
        db,
        student_id=user["user_id"],
        student_name=user["name"],
        student_roll_number=user.get("roll_number") or user["username"],
        dates=body.dates,
        reason=body.reason,
        proof_document_ref=body.proof_document_ref,
    )

    background_tasks.add_task(notify_approvers, od_request)

    return success_response(
        data=od_request.model_dump(mode="json"),
        message=f"OD request sent to {len(od_request.staff_approvals)} staff approval(s)",
    )


@router.get("/od/status")
async def get_my_od_requests(
    user: dict = Depends(require_role(["student"])),
):
    db = get_supabase()
    requests = get_requests_for_student(db, user["user_id"])
    return success_response(data=[r.model_dump(mode="json") for r in requests])


@router.get("/od/usage")
async def get_my_od_usage(
    user: dict = Depends(require_role(["student"])),
):
    db = get_supabase()
    semester = get_active_semester_config(db)
    requests = get_requests_for_student(db, user["user_id"])
    usage = compute_usage_all_subjects(user["user_id"], requests, semester)

    message = "Success" if semester else "Semester settings have not been configured yet"
    return success_response(data=[u.model_dump() for u in usage], message=message)
