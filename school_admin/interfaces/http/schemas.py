from datetime import datetime

from pydantic import BaseModel

from ...domain.entities import DayOfWeek, EnrollmentStatus, GradingPolicyType, Role, SchoolLevel
from ...domain.errors import ErrorCode


class UserSummaryOut(BaseModel):
    id: int
    name: str
    email: str
    class Config: from_attributes = True


class UserOut(BaseModel):
    id: int
    email: str
    name: str
    role: Role
    active: bool
    class Config: from_attributes = True


class GradeScaleItemOut(BaseModel):
    letter: str
    min_value: float
    max_value: float
    gpa_value: float
    class Config: from_attributes = True


class GradingPolicyOut(BaseModel):
    id: int
    name: str
    type: GradingPolicyType
    scale: list[GradeScaleItemOut]
    class_count: int = 0
    class Config: from_attributes = True


class GradeOut(BaseModel):
    letter: str | None = None
    gpa: float | None = None


class TemplateResultOut(BaseModel):
    template: str
    success: bool
    error: str | None = None
    code: ErrorCode | None = None
    policy: GradingPolicyOut | None = None
    class Config: from_attributes = True


class ClassSummaryOut(BaseModel):
    id: int
    name: str
    level: SchoolLevel
    grade: int
    academic_year: str
    class Config: from_attributes = True


class ClassCohortOut(BaseModel):
    id: int
    name: str
    level: SchoolLevel
    grade: int
    academic_year: str
    grading_policy_id: int
    capacity: int | None = None
    homeroom_teacher: UserSummaryOut | None = None
    grading_policy_name: str | None = None
    enrollment_count: int = 0
    schedule_count: int = 0
    class Config: from_attributes = True


class SubjectOut(BaseModel):
    id: int
    name: str
    code: str | None = None
    description: str | None = None
    class Config: from_attributes = True


class SubjectSummaryOut(BaseModel):
    id: int
    name: str
    code: str | None = None
    class Config: from_attributes = True


class EnrollmentOut(BaseModel):
    id: int
    student_id: int
    class_id: int
    academic_year: str
    status: EnrollmentStatus
    enrolled_at: datetime | None = None
    student: UserSummaryOut | None = None
    class_cohort: ClassSummaryOut | None = None
    class Config: from_attributes = True


class BulkEnrollmentReq(BaseModel):
    student_ids: list[int]
    class_id: int
    academic_year: str


class CopyEnrollmentsReq(BaseModel):
    from_year: str
    to_year: str


class TransferReq(BaseModel):
    to_class_id: int


class BulkItemOut(BaseModel):
    student_id: int
    success: bool
    error: str | None = None
    code: ErrorCode | None = None
    skipped: bool = False
    student_name: str | None = None
    class_name: str | None = None
    enrollment: EnrollmentOut | None = None
    class Config: from_attributes = True


class BulkSummaryOut(BaseModel):
    total: int
    successful: int
    failed: int
    skipped: int
    class Config: from_attributes = True


class BulkResultOut(BaseModel):
    success: bool
    error: str | None = None
    code: ErrorCode | None = None
    results: list[BulkItemOut] = []
    summary: BulkSummaryOut
    class Config: from_attributes = True


class TransferOut(BaseModel):
    success: bool
    error: str | None = None
    code: ErrorCode | None = None
    removed: bool = False
    partial: bool = False
    enrollment: EnrollmentOut | None = None
    class Config: from_attributes = True


class ScheduleOut(BaseModel):
    id: int
    class_id: int
    subject_id: int
    teacher_id: int
    day_of_week: DayOfWeek
    start_time: str
    end_time: str
    room: str | None = None
    class_cohort: ClassSummaryOut | None = None
    subject: SubjectSummaryOut | None = None
    teacher: UserSummaryOut | None = None
    class Config: from_attributes = True
