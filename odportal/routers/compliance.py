"""
Compliance router — OD summary for the active semester and CSV export of OD requests.
Read-only consumers of the persisted OD requests.
"""

from collections import defaultdict
from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from odportal.core.security import require_role
from odportal.core.database import get_supabase
from odportal.schemas.workflow import ODRequest
from odportal.services.lookups import get_active_semester_config
from odportal.services.utilization import compute_usage_all_subjects
from odportal.utils.response import success_response, csv_response

router = APIRouter(prefix="/api/compliance", tags=["Compliance"])


def _all_requests(db) -> list[ODRequest]:
    result = db.table("od_requests").select("*").order("created_at", desc=True).execute()
    return [ODRequest.model_validate(row) for row in result.data]


@router.get("/od-summary")
async def od_summary(
    user: dict = Depends(require_role(["admin"])),
):
    db = get_supabase()
    requests = _all_requests(db)
    semester = get_active_semester_config(db)

    by_status = {"pending": 0, "approved": 0, "rejected": 0}
    for r in requests:
        by_status[r.overall_status] += 1

    subject_stats = {}
    for r in requests:
        for a in r.staff_approvals:
            if a.subject_code not in subject_stats:
                subject_stats[a.subject_code] = {
                    "subject_code": a.subject_code,
                    "subject_name": a.subject_name,
                    "pending": 0, "approved": 0, "rejected": 0,
                }
            subject_stats[a.subject_code][a.status] += 1

    # risk distribution over every (student, subject) row of the active semester
    requests_by_student = defaultdict(list)
    for r in requests:
        requests_by_student[r.student_id].append(r)

    risk = {"low": 0, "medium": 0, "high": 0}
    at_risk = []
    for student_id, student_requests in requests_by_student.items():
        for usage in compute_usage_all_subjects(student_id, student_requests, semester):
            risk[usage.risk] += 1
            if usage.risk == "high":
                at_risk.append({
                    **usage.model_dump(),
                    "student_name": student_requests[0].student_name,
                    "student_roll_number": student_requests[0].student_roll_number,
                })

    return success_response(data={
        "total_requests": len(requests),
        "by_status": by_status,
        "subjects": sorted(subject_stats.values(), key=lambda s: s["subject_code"]),
        "risk_distribution": risk,
        "high_risk": at_risk,
        "semester_configured": semester is not None,
    })


@router.get("/export/csv")
async def export_csv(
    user: dict = Depends(require_role(["admin"])),
) -> StreamingResponse:
    db = get_supabase()
    requests = _all_requests(db)

    header = [
        "Request ID", "Student Name", "Roll Number", "Dates", "Reason",
        "Staff", "Subject Code", "Subject", "Approval Status", "Remarks",
        "Responded At", "Overall Status",
    ]
    rows = []
    for r in requests:
        for a in r.staff_approvals:
            rows.append([
                r.id,
                r.student_name,
                r.student_roll_number,
                " ".join(d.isoformat() for d in r.dates),
                r.reason,
                a.staff_name,
                a.subject_code,
                a.subject_name,
                a.status,
                a.remarks or "",
                a.responded_at.isoformat() if a.responded_at else "",
                r.overall_status,
            ])

    return csv_response(header, rows, filename="od_requests_report.csv")
