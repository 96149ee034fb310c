from fastapi import Depends, Request
from slowapi import Limiter
from sqlalchemy.orm import Session

from ...application.use_cases.class_cohorts import ClassCohortService
from ...application.use_cases.enrollments import EnrollmentService
from ...application.use_cases.grading_policies import GradingPolicyService
from ...application.use_cases.schedules import ScheduleService
from ...application.use_cases.subjects import SubjectService
from ...application.use_cases.users import UserService
from ...config import settings
from ...infrastructure.db import get_db
from ...infrastructure.repositories import (
    ClassCohortRepository,
    EnrollmentRepository,
    GradingPolicyRepository,
    ScheduleRepository,
    SubjectRepository,
    UserRepository,
)
from ...infrastructure.security import PasswordHasher


def get_limiter(request: Request) -> Limiter:
    return request.app.state.limiter


# Сервисы собираются на каждый запрос поверх одной сессии

def get_user_service(db: Session = Depends(get_db)) -> UserService:
    return UserService(repo=UserRepository(db), hasher=PasswordHasher())


def get_policy_service(db: Session = Depends(get_db)) -> GradingPolicyService:
    return GradingPolicyService(repo=GradingPolicyRepository(db))


def get_subject_service(db: Session = Depends(get_db)) -> SubjectService:
    return SubjectService(repo=SubjectRepository(db))


def get_class_service(db: Session = Depends(get_db)) -> ClassCohortService:
    return ClassCohortService(
        classes=ClassCohortRepository(db),
        users=UserRepository(db),
        policies=GradingPolicyRepository(db),
    )


def get_enrollment_service(db: Session = Depends(get_db)) -> EnrollmentService:
    return EnrollmentService(
        enrollments=EnrollmentRepository(db),
        users=UserRepository(db),
        classes=ClassCohortRepository(db),
    )


def get_schedule_service(db: Session = Depends(get_db)) -> ScheduleService:
    return ScheduleService(
        schedules=ScheduleRepository(db),
        classes=ClassCohortRepository(db),
        subjects=SubjectRepository(db),
        users=UserRepository(db),
        check_rooms=settings.SCHEDULE_ROOM_CONFLICTS,
    )
