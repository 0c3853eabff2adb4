"""
Pydantic schemas for academic lookup data: timetable, duty schedule, mappings,
attendance and semester settings.
"""

from pydantic import BaseModel, Field, model_validator
from typing import Optional, List, Literal
from datetime import date


# ---- Timetable ----
class TimetableSlot(BaseModel):
    student_id: str
    day_of_week: int = Field(ge=0, le=6)  # 0=Sun ... 6=Sat
    period: int = Field(ge=1, le=10)
    subject_code: str
    subject_name: str
    staff_id: str
    staff_name: str
    start_time: Optional[str] = None  # "09:00"
    end_time: Optional[str] = None    # "09:50"


# ---- Staff duty schedule ----
class DutySlot(BaseModel):
    staff_id: str
    day_of_week: int = Field(ge=0, le=6)
    period: int = Field(ge=1, le=10)
    subject_code: str
    subject_name: str
    start_time: Optional[str] = None
    end_time: Optional[str] = None


# ---- Student-staff mapping ----
class StudentStaffMapping(BaseModel):
    student_id: str
    staff_id: str
    subject_code: str
    subject_name: str = ""


# ---- Attendance ----
AttendanceStatus = Literal["present", "absent", "od"]


class AttendanceRecord(BaseModel):
    student_id: str
    staff_id: str
    subject_code: str
    date: date
    status: AttendanceStatus


class AttendanceSummary(BaseModel):
    student_id: str
    student_name: str
    student_roll_number: str
    subject_code: str
    subject_name: str
    total_classes: int
    attended: int
    od_count: int
    percentage: float
    flagged: bool  # below the 75% attendance line


# ---- Semester settings ----
class SemesterSubject(BaseModel):
    subject_code: str
    subject_name: str
    total_classes: int = Field(ge=0)


class SemesterConfig(BaseModel):
    semester_start: date
    semester_end: date
    subjects: List[SemesterSubject] = []

    @model_validator(mode="after")
    def check_range_and_codes(self):
        if self.semester_end < self.semester_start:
            raise ValueError("semester_end must not be before semester_start")
        codes = [s.subject_code for s in self.subjects]
        if len(codes) != len(set(codes)):
            raise ValueError("subject codes must be unique within a semester")
        return self

    def subject(self, subject_code: str) -> Optional[SemesterSubject]:
        for s in self.subjects:
            if s.subject_code == subject_code:
                return s
        return None
