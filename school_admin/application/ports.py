from __future__ import annotations

from ..domain.entities import (
    ClassCohort,
    Enrollment,
    EnrollmentStatus,
    GradeScaleItem,
    GradingPolicy,
    Schedule,
    Subject,
    User,
)


class ConflictError(Exception):
    """Хранилище отклонило запись по ограничению уникальности."""


class IRepository:
    def rollback(self) -> None: ...


class IUserRepository(IRepository):
    def get(self, user_id: int, lock: bool = False) -> User | None: ...
    def get_by_email(self, email: str) -> User | None: ...
    def list(self, role: str | None = None, active: bool | None = None) -> list[User]: ...
    def create(self, email: str, name: str, password_hash: str, role: str) -> User: ...
    def update(self, user_id: int, **fields) -> User: ...


class IPasswordHasher:
    def hash(self, plain: str) -> str: ...
    def verify(self, plain: str, hashed: str) -> bool: ...


class IGradingPolicyRepository(IRepository):
    def get(self, policy_id: int) -> GradingPolicy | None: ...
    def get_by_name(self, name: str) -> GradingPolicy | None: ...
    def list(self) -> list[GradingPolicy]: ...
    def create(self, name: str, type: str, scale: list[GradeScaleItem]) -> GradingPolicy: ...
    def update(self, policy_id: int, **fields) -> GradingPolicy: ...
    def delete(self, policy_id: int) -> None: ...
    def count_classes(self, policy_id: int) -> int: ...


class IClassCohortRepository(IRepository):
    def get(self, class_id: int, lock: bool = False) -> ClassCohort | None: ...
    def get_by_homeroom_teacher(self, teacher_id: int) -> ClassCohort | None: ...
    def list(self, level: str | None = None, academic_year: str | None = None,
             search: str | None = None) -> list[ClassCohort]: ...
    def create(self, **fields) -> ClassCohort: ...
    def update(self, class_id: int, **fields) -> ClassCohort: ...
    def delete(self, class_id: int) -> None: ...
    def count_active_enrollments(self, class_id: int) -> int: ...
    def count_enrollments(self, class_id: int) -> int: ...


class ISubjectRepository(IRepository):
    def get(self, subject_id: int) -> Subject | None: ...
    def get_by_code(self, code: str) -> Subject | None: ...
    def list(self) -> list[Subject]: ...
    def create(self, **fields) -> Subject: ...
    def update(self, subject_id: int, **fields) -> Subject: ...
    def delete(self, subject_id: int) -> None: ...
    def count_schedules(self, subject_id: int) -> int: ...


class IEnrollmentRepository(IRepository):
    def get(self, enrollment_id: int) -> Enrollment | None: ...
    def find(self, student_id: int, class_id: int, academic_year: str) -> Enrollment | None: ...
    def find_in_other_class(self, student_id: int, academic_year: str,
                            class_id: int) -> Enrollment | None: ...
    def get_active_for_student(self, student_id: int, academic_year: str) -> Enrollment | None: ...
    def list(self, student_id: int | None = None, class_id: int | None = None,
             academic_year: str | None = None,
             status: EnrollmentStatus | None = None) -> list[Enrollment]: ...
    def create(self, student_id: int, class_id: int, academic_year: str) -> Enrollment: ...
    def set_status(self, enrollment_id: int, status: EnrollmentStatus) -> Enrollment: ...
    def delete(self, enrollment_id: int) -> None: ...


class IScheduleRepository(IRepository):
    def get(self, schedule_id: int) -> Schedule | None: ...
    def list(self, class_id: int | None = None, teacher_id: int | None = None,
             subject_id: int | None = None, day_of_week: str | None = None) -> list[Schedule]: ...
    def find_same_day(self, day_of_week: str, class_id: int, teacher_id: int,
                      room: str | None = None, exclude_id: int | None = None) -> list[Schedule]: ...
    def create(self, **fields) -> Schedule: ...
    def update(self, schedule_id: int, **fields) -> Schedule: ...
    def delete(self, schedule_id: int) -> None: ...
