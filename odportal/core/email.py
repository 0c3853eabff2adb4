import httpx
from odportal.core.config import settings
from odportal.core.database import get_supabase
from odportal.core.logging import get_logger
from odportal.schemas.workflow import ODRequest

logger = get_logger(__name__)

EMAILJS_URL = "https://api.emailjs.com/api/v1.0/email/send"


def _emailjs_configured() -> bool:
    return all([
        settings.EMAILJS_SERVICE_ID,
        settings.EMAILJS_PUBLIC_KEY,
        settings.EMAILJS_TEMPLATE_ID,
        settings.EMAILJS_PRIVATE_KEY,
    ])


async def send_od_request_email(to_email: str, staff_name: str, od_request: ODRequest, subjects: list[str]):
    """
    Tells one staff member an OD request is waiting for them, using EmailJS REST API.
    """
    payload = {
        "service_id": settings.EMAILJS_SERVICE_ID,
        "template_id": settings.EMAILJS_TEMPLATE_ID,
        "user_id": settings.EMAILJS_PUBLIC_KEY,
        "accessToken": settings.EMAILJS_PRIVATE_KEY,
        "template_params": {
            "to_email": to_email,
            "to_name": staff_name,
            "student_name": od_request.student_name,
            "roll_number": od_request.student_roll_number,
            "dates": ", ".join(d.isoformat() for d in od_request.dates),
            "subjects": ", ".join(subjects),
            "reason": od_request.reason,
        },
    }

    try:
        async with httpx.AsyncClient() as client:
            response = await client.post(EMAILJS_URL, json=payload)
            response.raise_for_status()
        logger.info("email.od_request.sent", to=to_email, request_id=od_request.id)
    except httpx.HTTPStatusError as e:
        logger.error(
            "email.od_request.failed",
            to=to_email,
            status_code=e.response.status_code,
            response=e.response.text,
        )
    except httpx.HTTPError as e:
        logger.error("email.od_request.failed", to=to_email, error=str(e))


async def notify_approvers(od_request: ODRequest):
    """Background task: one email per distinct staff member on the request."""
    if not _emailjs_configured():
        logger.info("email.skipped", reason="EmailJS credentials not configured", request_id=od_request.id)
        return

    subjects_by_staff: dict[str, list[str]] = {}
    names: dict[str, str] = {}
    for approval in od_request.staff_approvals:
        subjects_by_staff.setdefault(approval.staff_id, []).append(approval.subject_code)
        names[approval.staff_id] = approval.staff_name

    db = get_supabase()
    staff = (
        db.table("users")
        .select("id, email, name")
        .in_("id", list(subjects_by_staff))
        .execute()
    )
    emails = {s["id"]: s.get("email") for s in staff.data}

    for staff_id, subjects in subjects_by_staff.items():
        to_email = emails.get(staff_id)
        if not to_email:
            logger.warning("email.no_address", staff_id=staff_id, request_id=od_request.id)
            continue
        await send_od_request_email(to_email, names[staff_id], od_request, subjects)
