import re
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, EmailStr, Field, ValidationError, field_validator

from ..domain.entities import (
    DayOfWeek,
    Enrollment,
    GradeScaleItem,
    GradingPolicyType,
    Role,
    SchoolLevel,
)
from ..domain.errors import ErrorCode
from ..domain.scheduling import is_valid_time

ACADEMIC_YEAR_RE = re.compile(r"^\d{4}/\d{4}$")


def check_academic_year(value: str) -> str:
    if not ACADEMIC_YEAR_RE.match(value):
        raise ValueError("Format: YYYY/YYYY")
    return value


def check_time(value: str) -> str:
    if not is_valid_time(value):
        raise ValueError("Format must be HH:MM (e.g., 08:00)")
    return value


def first_error_message(exc: ValidationError) -> str:
    err = exc.errors()[0]
    msg = err["msg"].removeprefix("Value error, ")
    loc = ".".join(str(p) for p in err.get("loc", ()))
    return f"{loc}: {msg}" if loc else msg


# --- Входные данные use case'ов

class GradeScaleItemIn(BaseModel):
    letter: str = Field(min_length=1)
    # границы 0..100 проверяет validate_grading_scale
    min_value: float
    max_value: float
    gpa_value: float = Field(ge=0, le=4)

    def to_domain(self) -> GradeScaleItem:
        return GradeScaleItem(self.letter, self.min_value, self.max_value, self.gpa_value)


class CreateGradingPolicyInput(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    type: GradingPolicyType = GradingPolicyType.LETTER
    scale: list[GradeScaleItemIn]


class UpdateGradingPolicyInput(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    type: GradingPolicyType | None = None
    scale: list[GradeScaleItemIn] | None = None


class CreateClassCohortInput(BaseModel):
    name: str = Field(min_length=1, max_length=50)
    level: SchoolLevel
    grade: int = Field(ge=1, le=12)
    academic_year: str
    grading_policy_id: int
    capacity: int | None = Field(default=None, gt=0)
    homeroom_teacher_id: int | None = None

    @field_validator("academic_year")
    @classmethod
    def validate_year(cls, v):
        return check_academic_year(v)


class UpdateClassCohortInput(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=50)
    level: SchoolLevel | None = None
    grade: int | None = Field(default=None, ge=1, le=12)
    academic_year: str | None = None
    grading_policy_id: int | None = None
    capacity: int | None = Field(default=None, gt=0)
    homeroom_teacher_id: int | None = None

    @field_validator("academic_year")
    @classmethod
    def validate_year(cls, v):
        return check_academic_year(v) if v is not None else v


class CreateSubjectInput(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    code: str | None = Field(default=None, min_length=1, max_length=20)
    description: str | None = Field(default=None, max_length=500)


class UpdateSubjectInput(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    code: str | None = Field(default=None, min_length=1, max_length=20)
    description: str | None = Field(default=None, max_length=500)


class CreateUserInput(BaseModel):
    email: EmailStr
    name: str = Field(min_length=1, max_length=100)
    password: str = Field(min_length=8)
    role: Role = Role.STUDENT


class UpdateUserInput(BaseModel):
    email: EmailStr | None = None
    name: str | None = Field(default=None, min_length=1, max_length=100)
    password: str | None = Field(default=None, min_length=8)
    role: Role | None = None
    active: bool | None = None


class CreateEnrollmentInput(BaseModel):
    student_id: int
    class_id: int
    academic_year: str

    @field_validator("academic_year")
    @classmethod
    def validate_year(cls, v):
        return check_academic_year(v)


class CreateScheduleInput(BaseModel):
    class_id: int
    subject_id: int
    teacher_id: int
    day_of_week: DayOfWeek
    start_time: str
    end_time: str
    room: str | None = Field(default=None, max_length=50)

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_times(cls, v):
        return check_time(v)


class UpdateScheduleInput(BaseModel):
    class_id: int | None = None
    subject_id: int | None = None
    teacher_id: int | None = None
    day_of_week: DayOfWeek | None = None
    start_time: str | None = None
    end_time: str | None = None
    room: str | None = Field(default=None, max_length=50)

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_times(cls, v):
        return check_time(v) if v is not None else v


# --- Результаты

@dataclass
class OperationResult:
    success: bool
    error: str | None = None
    code: ErrorCode | None = None
    value: Any = None

    @classmethod
    def ok(cls, value: Any = None) -> "OperationResult":
        return cls(success=True, value=value)

    @classmethod
    def fail(cls, code: ErrorCode, error: str) -> "OperationResult":
        return cls(success=False, error=error, code=code)


@dataclass
class BulkItemResult:
    student_id: int
    success: bool
    error: str | None = None
    code: ErrorCode | None = None
    enrollment: Enrollment | None = None
    skipped: bool = False
    student_name: str | None = None
    class_name: str | None = None


@dataclass
class BulkSummary:
    total: int = 0
    successful: int = 0
    failed: int = 0
    skipped: int = 0


@dataclass
class BulkResult:
    success: bool
    error: str | None = None
    code: ErrorCode | None = None
    results: list[BulkItemResult] = field(default_factory=list)
    summary: BulkSummary = field(default_factory=BulkSummary)

    def add(self, item: BulkItemResult) -> None:
        self.results.append(item)
        self.summary.total += 1
        if item.skipped:
            self.summary.skipped += 1
        elif item.success:
            self.summary.successful += 1
        else:
            self.summary.failed += 1


@dataclass
class TransferResult:
    success: bool
    error: str | None = None
    code: ErrorCode | None = None
    removed: bool = False
    partial: bool = False
    enrollment: Enrollment | None = None
