from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class Role(str, Enum):
    ADMIN = "ADMIN"
    TEACHER = "TEACHER"
    STUDENT = "STUDENT"


class EnrollmentStatus(str, Enum):
    ACTIVE = "ACTIVE"
    WITHDRAWN = "WITHDRAWN"


class SchoolLevel(str, Enum):
    SD = "SD"
    SMP = "SMP"
    SMA = "SMA"
    SMK = "SMK"


class GradingPolicyType(str, Enum):
    LETTER = "LETTER"
    NUMERIC = "NUMERIC"
    PERCENTAGE = "PERCENTAGE"


class DayOfWeek(str, Enum):
    MONDAY = "MONDAY"
    TUESDAY = "TUESDAY"
    WEDNESDAY = "WEDNESDAY"
    THURSDAY = "THURSDAY"
    FRIDAY = "FRIDAY"
    SATURDAY = "SATURDAY"
    SUNDAY = "SUNDAY"

    @property
    def order(self) -> int:
        return list(DayOfWeek).index(self)


@dataclass(frozen=True)
class User:
    id: int | None
    email: str
    name: str
    role: Role = Role.STUDENT
    active: bool = True


@dataclass(frozen=True)
class UserSummary:
    id: int
    name: str
    email: str


@dataclass(frozen=True)
class GradeScaleItem:
    letter: str
    min_value: float
    max_value: float
    gpa_value: float

    def contains(self, score: float) -> bool:
        return self.min_value <= score <= self.max_value


@dataclass(frozen=True)
class GradingPolicy:
    id: int | None
    name: str
    type: GradingPolicyType
    scale: list[GradeScaleItem]
    class_count: int = 0


@dataclass(frozen=True)
class ClassSummary:
    id: int
    name: str
    level: SchoolLevel
    grade: int
    academic_year: str


@dataclass(frozen=True)
class ClassCohort:
    id: int | None
    name: str
    level: SchoolLevel
    grade: int
    academic_year: str
    grading_policy_id: int
    capacity: int | None = None
    homeroom_teacher: UserSummary | None = None
    grading_policy_name: str | None = None
    enrollment_count: int = 0
    schedule_count: int = 0


@dataclass(frozen=True)
class Subject:
    id: int | None
    name: str
    code: str | None = None
    description: str | None = None


@dataclass(frozen=True)
class Enrollment:
    id: int | None
    student_id: int
    class_id: int
    academic_year: str
    status: EnrollmentStatus = EnrollmentStatus.ACTIVE
    enrolled_at: datetime | None = None
    student: UserSummary | None = None
    class_cohort: ClassSummary | None = None


@dataclass(frozen=True)
class SubjectSummary:
    id: int
    name: str
    code: str | None = None


@dataclass(frozen=True)
class Schedule:
    id: int | None
    class_id: int
    subject_id: int
    teacher_id: int
    day_of_week: DayOfWeek
    start_time: str
    end_time: str
    room: str | None = None
    class_cohort: ClassSummary | None = None
    subject: SubjectSummary | None = None
    teacher: UserSummary | None = None
