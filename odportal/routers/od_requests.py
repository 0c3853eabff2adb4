"""
Shared read-only routes for any signed-in role: a single OD request and the active semester.
"""

from fastapi import APIRouter, Depends, HTTPException
from odportal.core.security import get_current_user
from odportal.core.database import get_supabase
from odportal.services.lookups import get_active_semester_config, get_od_request
from odportal.utils.response import success_response

router = APIRouter(prefix="/api", tags=["OD Requests"])


@router.get("/od-requests/{request_id}")
async def read_od_request(
    request_id: str,
    user: dict = Depends(get_current_user),
):
    db = get_supabase()
    od_request = get_od_request(db, request_id)

    # students only see their own requests, staff only those routed to them
    if user["role"] == "student" and od_request.student_id != user["user_id"]:
        raise HTTPException(status_code=403, detail="Not your OD request")
    if user["role"] == "staff" and not od_request.approvals_for_staff(user["user_id"]):
        raise HTTPException(status_code=403, detail="This OD request was not routed to you")

    return success_response(data=od_request.model_dump(mode="json"))


@router.get("/semester-settings")
async def read_semester_settings(user: dict = Depends(get_current_user)):
    db = get_supabase()
    semester = get_active_semester_config(db)
    if semester is None:
        raise HTTPException(status_code=404, detail="Semester settings have not been configured yet")
    return success_response(data=semester.model_dump(mode="json"))
