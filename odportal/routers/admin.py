"""
Admin router — Portal statistics, user listing, semester settings, per-student OD usage.

Admin can:
- See counts of students, staff and OD requests by status
- List registered users
- Configure the semester window and per-subject class totals
- Inspect any student's OD utilization
"""

from fastapi import APIRouter, Depends
from odportal.core.security import require_role
from odportal.core.database import get_supabase
from odportal.schemas.academic import SemesterConfig
from odportal.schemas.auth import UserProfile
from odportal.services.lookups import get_active_semester_config, get_requests_for_student
from odportal.services.semester import save_semester_config
from odportal.services.utilization import compute_usage_all_subjects
from odportal.utils.response import success_response

router = APIRouter(prefix="/api/admin", tags=["Admin"])


def _count(query) -> int:
    result = query.execute()
    return result.count or 0


# ═══════════════════════════════════════════════════════════
# DASHBOARD
# ═══════════════════════════════════════════════════════════

@router.get("/stats")
async def admin_stats(user: dict = Depends(require_role(["admin"]))):
    db = get_supabase()

    def users(role):
        return db.table("users").select("id", count="exact").eq("role", role)

    def requests(status=None):
        q = db.table("od_requests").select("id", count="exact")
        return q.eq("overall_status", status) if status else q

    timetables = db.table("timetable_entries").select("student_id").execute()

    return success_response(data={
        "total_students": _count(users("student")),
        "total_staff": _count(users("staff")),
        "total_od_requests": _count(requests()),
        "pending_requests": _count(requests("pending")),
        "approved_requests": _count(requests("approved")),
        "rejected_requests": _count(requests("rejected")),
        "timetables_uploaded": len({t["student_id"] for t in timetables.data}),
    })


@router.get("/users")
async def list_users(user: dict = Depends(require_role(["admin"]))):
    db = get_supabase()
    result = db.table("users").select("*").order("created_at", desc=True).execute()
    profiles = [UserProfile.model_validate(u).model_dump() for u in result.data]
    return success_response(data=profiles)


# ═══════════════════════════════════════════════════════════
# SEMESTER SETTINGS
# ═══════════════════════════════════════════════════════════

@router.get("/semester-settings")
async def get_semester_settings(user: dict = Depends(require_role(["admin"]))):
    db = get_supabase()
    semester = get_active_semester_config(db)
    if semester is None:
        return success_response(data=None, message="Semester settings have not been configured yet")
    return success_response(data=semester.model_dump(mode="json"))


@router.put("/semester-settings")
async def update_semester_settings(
    body: SemesterConfig,
    user: dict = Depends(require_role(["admin"])),
):
    db = get_supabase()
    saved = save_semester_config(db, body)
    return success_response(data=saved.model_dump(mode="json"), message="Semester settings saved")


# ═══════════════════════════════════════════════════════════
# OD UTILIZATION
# ═══════════════════════════════════════════════════════════

@router.get("/students/{student_id}/od-usage")
async def student_od_usage(
    student_id: str,
    user: dict = Depends(require_role(["admin"])),
):
    db = get_supabase()
    semester = get_active_semester_config(db)
    requests = get_requests_for_student(db, student_id)
    usage = compute_usage_all_subjects(student_id, requests, semester)
    return success_response(data=[u.model_dump() for u in usage])
