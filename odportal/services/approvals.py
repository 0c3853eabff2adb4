"""
OD approval workflow.

A request fans out into one approval entry per (staff, subject) pair that
teaches the student on any of the requested weekdays. The entries are fixed at
creation time; later timetable changes do not touch existing requests.

The overall status is folded from the entry statuses after every response:
any pending entry keeps the request pending, otherwise a single rejection
rejects it, otherwise it is approved.
"""

import uuid
from datetime import date, datetime, timezone
from functools import reduce
from typing import Iterable, List, Optional, Sequence, get_args

from supabase import Client

from odportal.core.config import settings
from odportal.core.exceptions import (
    AlreadyResolved,
    ApprovalNotFound,
    ConcurrentUpdateConflict,
    InvalidODRequest,
    NoApplicableStaff,
)
from odportal.core.logging import get_logger
from odportal.schemas.academic import TimetableSlot
from odportal.schemas.workflow import ApprovalEntry, ApprovalStatus, Decision, ODRequest
from odportal.services.lookups import get_od_request, get_slots_for_student

logger = get_logger(__name__)

DECISIONS = get_args(Decision)

# Columns rewritten when a staff member responds. Everything else on the
# request is immutable after creation.
_RESPONSE_COLUMNS = {"staff_approvals", "overall_status", "version", "updated_at"}


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def day_of_week(d: date) -> int:
    """0=Sunday ... 6=Saturday, the convention used by timetable_entries."""
    return d.isoweekday() % 7


# ═══════════════════════════════════════════════════════════
# PURE HELPERS
# ═══════════════════════════════════════════════════════════

def derive_approvers(
    slots: Iterable[TimetableSlot], dates: Iterable[date]
) -> List[ApprovalEntry]:
    """
    Build the pending approval entries for a set of requested dates.

    Every slot falling on a requested weekday contributes its
    (staff_id, subject_code) pair; pairs repeated across periods or dates
    collapse into one entry. The result is sorted by that pair, so it does
    not depend on the order of `slots` or `dates`.
    """
    days = {day_of_week(d) for d in dates}
    approvers: dict[tuple[str, str], ApprovalEntry] = {}

    for slot in sorted(slots, key=lambda s: (s.day_of_week, s.period)):
        if slot.day_of_week not in days:
            continue
        key = (slot.staff_id, slot.subject_code)
        if key in approvers:
            continue
        approvers[key] = ApprovalEntry(
            staff_id=slot.staff_id,
            staff_name=slot.staff_name,
            subject_code=slot.subject_code,
            subject_name=slot.subject_name,
        )

    return [approvers[key] for key in sorted(approvers)]


def _fold_status(acc: ApprovalStatus, status: ApprovalStatus) -> ApprovalStatus:
    if acc == "pending" or status == "pending":
        return "pending"
    if acc == "rejected" or status == "rejected":
        return "rejected"
    return "approved"


def aggregate_status(statuses: Iterable[ApprovalStatus]) -> ApprovalStatus:
    """Overall status of a request from its entry statuses."""
    return reduce(_fold_status, statuses, "approved")


def _coerce_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        raise InvalidODRequest(f"Invalid date: {value!r}")


def normalize_dates(dates: Sequence) -> List[date]:
    """Parse, reject empty or duplicate input, return ascending dates."""
    if not dates:
        raise InvalidODRequest("Select at least one date")
    parsed = [_coerce_date(d) for d in dates]
    if len(set(parsed)) != len(parsed):
        raise InvalidODRequest("Each date can only be requested once")
    return sorted(parsed)


def validate_reason(reason: Optional[str]) -> str:
    """Length check only; the reason is stored exactly as the student wrote it."""
    reason = reason or ""
    if len(reason) < settings.OD_MIN_REASON_LENGTH:
        raise InvalidODRequest(
            f"Reason must be at least {settings.OD_MIN_REASON_LENGTH} characters"
        )
    return reason


def apply_response(
    od_request: ODRequest,
    staff_id: str,
    subject_code: str,
    decision: Decision,
    remarks: Optional[str],
    responded_at: datetime,
) -> ODRequest:
    """Return a copy of `od_request` with one entry resolved and the status refolded."""
    if decision not in DECISIONS:
        raise InvalidODRequest(f"Invalid decision '{decision}'. Must be: approved, rejected")

    entry = next(
        (a for a in od_request.staff_approvals if a.key == (staff_id, subject_code)),
        None,
    )
    if entry is None:
        raise ApprovalNotFound(
            f"No approval for staff '{staff_id}' on subject '{subject_code}'"
        )
    if entry.status != "pending":
        raise AlreadyResolved(
            f"Approval for subject '{subject_code}' was already {entry.status}"
        )

    resolved = entry.model_copy(update={
        "status": decision,
        "remarks": remarks,
        "responded_at": responded_at,
    })
    approvals = [resolved if a is entry else a for a in od_request.staff_approvals]

    return od_request.model_copy(update={
        "staff_approvals": approvals,
        "overall_status": aggregate_status(a.status for a in approvals),
        "version": od_request.version + 1,
        "updated_at": responded_at,
    })


# ═══════════════════════════════════════════════════════════
# WORKFLOW OPERATIONS
# ═══════════════════════════════════════════════════════════

def preview_approvers(db: Client, student_id: str, dates: Sequence) -> List[ApprovalEntry]:
    """Approvers a request for these dates would be routed to. Nothing is stored."""
    return derive_approvers(get_slots_for_student(db, student_id), normalize_dates(dates))


def create_od_request(
    db: Client,
    student_id: str,
    student_name: str,
    student_roll_number: str,
    dates: Sequence,
    reason: str,
    proof_document_ref: Optional[str] = None,
) -> ODRequest:
    """
    Validate and persist a new OD request with all approvals pending.

    Raises InvalidODRequest for bad input and NoApplicableStaff when the
    student has no classes on any requested day; nothing is written then.
    """
    dates = normalize_dates(dates)
    reason = validate_reason(reason)

    approvals = derive_approvers(get_slots_for_student(db, student_id), dates)
    if not approvals:
        logger.info(
            "od_request.no_applicable_staff",
            student_id=student_id,
            dates=[d.isoformat() for d in dates],
        )
        raise NoApplicableStaff("No classes found for the selected dates")

    now = _utc_now()
    od_request = ODRequest(
        id=str(uuid.uuid4()),
        student_id=student_id,
        student_name=student_name,
        student_roll_number=student_roll_number,
        dates=dates,
        reason=reason,
        proof_document_ref=proof_document_ref,
        staff_approvals=approvals,
        overall_status=aggregate_status(a.status for a in approvals),
        version=1,
        created_at=now,
        updated_at=now,
    )

    result = db.table("od_requests").insert(od_request.model_dump(mode="json")).execute()
    created = ODRequest.model_validate(result.data[0])

    logger.info(
        "od_request.created",
        request_id=created.id,
        student_id=student_id,
        days=len(dates),
        approvers=len(approvals),
    )
    return created


def respond_to_approval(
    db: Client,
    request_id: str,
    staff_id: str,
    subject_code: str,
    decision: Decision,
    remarks: Optional[str] = None,
) -> ODRequest:
    """
    Record one staff member's decision for one subject.

    The write is conditional on the version that was read. When another
    response got there first the request is re-read and the decision applied
    to the fresh state, so concurrent responses to different entries are all
    kept and the overall status always reflects the merged entries.
    """
    for attempt in range(1, settings.OD_UPDATE_MAX_ATTEMPTS + 1):
        current = get_od_request(db, request_id)
        updated = apply_response(current, staff_id, subject_code, decision, remarks, _utc_now())

        result = (
            db.table("od_requests")
            .update(updated.model_dump(mode="json", include=_RESPONSE_COLUMNS))
            .eq("id", request_id)
            .eq("version", current.version)
            .execute()
        )
        if result.data:
            saved = ODRequest.model_validate(result.data[0])
            logger.info(
                "od_request.responded",
                request_id=request_id,
                staff_id=staff_id,
                subject_code=subject_code,
                decision=decision,
                overall_status=saved.overall_status,
            )
            return saved

        logger.warning(
            "od_request.update_conflict",
            request_id=request_id,
            attempt=attempt,
            version=current.version,
        )

    raise ConcurrentUpdateConflict(
        f"OD request '{request_id}' changed too often to record the response; try again"
    )
