"""
Pydantic schemas for OD requests, staff approvals and OD utilization.
"""

from pydantic import BaseModel, Field
from typing import Optional, List, Literal
from datetime import date, datetime


ApprovalStatus = Literal["pending", "approved", "rejected"]
Decision = Literal["approved", "rejected"]
RiskTier = Literal["low", "medium", "high"]


# ---- Staff approval entry ----
class ApprovalEntry(BaseModel):
    staff_id: str
    staff_name: str
    subject_code: str
    subject_name: str
    status: ApprovalStatus = "pending"
    remarks: Optional[str] = None
    responded_at: Optional[datetime] = None

    @property
    def key(self) -> tuple[str, str]:
        return (self.staff_id, self.subject_code)


# ---- OD Request (persisted record) ----
class ODRequest(BaseModel):
    id: str
    student_id: str
    student_name: str
    student_roll_number: str
    dates: List[date] = Field(min_length=1)
    reason: str
    proof_document_ref: Optional[str] = None
    staff_approvals: List[ApprovalEntry] = Field(min_length=1)
    overall_status: ApprovalStatus = "pending"
    version: int = 1
    created_at: datetime
    updated_at: datetime

    def approvals_for_staff(self, staff_id: str) -> List[ApprovalEntry]:
        return [a for a in self.staff_approvals if a.staff_id == staff_id]


# ---- Request bodies ----
class ODApply(BaseModel):
    dates: List[date]
    reason: str
    proof_document_ref: Optional[str] = None  # opaque reference to uploaded proof


class ODPreview(BaseModel):
    dates: List[date]


class ODAction(BaseModel):
    subject_code: str
    action: Literal["approve", "reject"]
    remarks: Optional[str] = None


# ---- OD utilization ----
class SubjectUsage(BaseModel):
    student_id: str
    subject_code: str
    subject_name: str = ""
    used: int
    total: int
    remaining: int
    percentage: float
    risk: RiskTier
