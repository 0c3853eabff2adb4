"""
OD utilization against the semester's per-subject class totals.

Every approved entry charges the full day count of its request to that
entry's subject. A three-day request approved for two subjects therefore
counts three days against each of them.
"""

from typing import Iterable, List, Optional
from odportal.schemas.academic import SemesterConfig
from odportal.schemas.workflow import ODRequest, RiskTier, SubjectUsage

HIGH_RISK_PERCENTAGE = 25
MEDIUM_RISK_PERCENTAGE = 13


def risk_tier(percentage: float) -> RiskTier:
    if percentage >= HIGH_RISK_PERCENTAGE:
        return "high"
    if percentage >= MEDIUM_RISK_PERCENTAGE:
        return "medium"
    return "low"


def _used_days(subject_code: str, requests: Iterable[ODRequest]) -> int:
    used = 0
    for req in requests:
        for approval in req.staff_approvals:
            if approval.subject_code == subject_code and approval.status == "approved":
                used += len(req.dates)
    return used


def compute_usage(
    student_id: str,
    subject_code: str,
    requests: Iterable[ODRequest],
    semester: Optional[SemesterConfig],
) -> SubjectUsage:
    """OD days used for one subject. A subject without a quota has total 0."""
    requests = [r for r in requests if r.student_id == student_id]
    subject = semester.subject(subject_code) if semester else None
    total = subject.total_classes if subject else 0
    used = _used_days(subject_code, requests)
    # multiply first: (3 / 20) * 100 is 15.000000000000002
    percentage = used * 100 / total if total > 0 else 0.0

    return SubjectUsage(
        student_id=student_id,
        subject_code=subject_code,
        subject_name=subject.subject_name if subject else "",
        used=used,
        total=total,
        remaining=max(total - used, 0),
        percentage=percentage,
        risk=risk_tier(percentage),
    )


def compute_usage_all_subjects(
    student_id: str,
    requests: Iterable[ODRequest],
    semester: Optional[SemesterConfig],
) -> List[SubjectUsage]:
    """One row per configured subject, in configuration order."""
    if semester is None:
        return []
    requests = list(requests)
    return [
        compute_usage(student_id, s.subject_code, requests, semester)
        for s in semester.subjects
    ]
