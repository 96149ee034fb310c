import os
import sys
import pytest
from unittest.mock import MagicMock, patch

CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.dirname(CURRENT_DIR)
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

# Настройки читаются при импорте пакета
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/99")

from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from school_admin.application.use_cases.class_cohorts import ClassCohortService
from school_admin.application.use_cases.enrollments import EnrollmentService
from school_admin.application.use_cases.grading_policies import GradingPolicyService
from school_admin.application.use_cases.schedules import ScheduleService
from school_admin.config import settings
from school_admin.domain.grading import DEFAULT_GRADING_POLICIES
from school_admin.infrastructure.db import get_db
from school_admin.infrastructure.models import Base
from school_admin.infrastructure.repositories import (
    ClassCohortRepository,
    EnrollmentRepository,
    GradingPolicyRepository,
    ScheduleRepository,
    SubjectRepository,
    UserRepository,
    scale_to_domain,
)
from school_admin.interfaces.http.deps import get_limiter
from school_admin.main import app

# Тестовая БД в памяти: одно соединение на все сессии
test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


@event.listens_for(test_engine, "connect")
def _enable_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

YEAR = "2024/2025"


@pytest.fixture
def db():
    Base.metadata.drop_all(bind=test_engine)
    Base.metadata.create_all(bind=test_engine)
    session = TestingSessionLocal()
    yield session
    session.close()
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture(autouse=True)
def fake_redis():
    """Redis в тестах не нужен: кэш всегда промахивается"""
    client = MagicMock()
    client.get.return_value = None
    client.scan_iter.return_value = []
    with patch("school_admin.infrastructure.cache.get_redis", return_value=client):
        yield client


# Отключаем rate limiting в тестах
def override_get_limiter():
    mock_limiter = MagicMock()
    def noop_limit(*args, **kwargs):
        def decorator(func):
            return func
        return decorator
    mock_limiter.limit = noop_limit
    return mock_limiter


@pytest.fixture
def client(db):
    def _get_db():
        yield db
    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_limiter] = override_get_limiter
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_token(role: str = "ADMIN", sub: str = "admin@sman1.sch.id") -> str:
    return jwt.encode({"sub": sub, "role": role}, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


@pytest.fixture
def admin_headers():
    return {"Authorization": f"Bearer {make_token('ADMIN')}"}


@pytest.fixture
def teacher_headers():
    return {"Authorization": f"Bearer {make_token('TEACHER', 'teacher@sman1.sch.id')}"}


class Factory:
    """Прямые вставки через репозитории, минуя проверки сервисов"""

    def __init__(self, db):
        self.users = UserRepository(db)
        self.policies = GradingPolicyRepository(db)
        self.classes = ClassCohortRepository(db)
        self.subjects = SubjectRepository(db)
        self._seq = 0

    def _next(self) -> int:
        self._seq += 1
        return self._seq

    def user(self, role="STUDENT", name=None, active=True, email=None):
        n = self._next()
        user = self.users.create(
            email=email or f"user{n}@sman1.sch.id",
            name=name or f"{role.title()} {n}",
            password_hash="not-a-real-hash",
            role=role,
        )
        if not active:
            user = self.users.update(user.id, active=False)
        return user

    def student(self, **kwargs):
        return self.user("STUDENT", **kwargs)

    def teacher(self, **kwargs):
        return self.user("TEACHER", **kwargs)

    def policy(self, name="Standard"):
        template = DEFAULT_GRADING_POLICIES["STANDARD_LETTER"]
        return self.policies.create(name, "LETTER", scale_to_domain(template["scale"]))

    def cohort(self, name=None, academic_year=YEAR, capacity=None, policy_id=None, homeroom_teacher_id=None):
        if policy_id is None:
            policy_id = self.policy().id
        return self.classes.create(
            name=name or f"X-{self._next()}",
            level="SMA",
            grade=10,
            academic_year=academic_year,
            grading_policy_id=policy_id,
            capacity=capacity,
            homeroom_teacher_id=homeroom_teacher_id,
        )

    def subject(self, name="Mathematics", code=None):
        return self.subjects.create(name=name, code=code, description=None)


@pytest.fixture
def factory(db):
    return Factory(db)


@pytest.fixture
def enrollment_service(db):
    return EnrollmentService(EnrollmentRepository(db), UserRepository(db), ClassCohortRepository(db))


@pytest.fixture
def schedule_service(db):
    return ScheduleService(ScheduleRepository(db), ClassCohortRepository(db), SubjectRepository(db),
                           UserRepository(db), check_rooms=True)


@pytest.fixture
def policy_service(db):
    return GradingPolicyService(GradingPolicyRepository(db))


@pytest.fixture
def class_service(db):
    return ClassCohortService(ClassCohortRepository(db), UserRepository(db), GradingPolicyRepository(db))
