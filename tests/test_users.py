import pytest

from school_admin.application.use_cases.users import UserService
from school_admin.domain.entities import Role
from school_admin.domain.errors import ErrorCode
from school_admin.infrastructure.models import UserORM
from school_admin.infrastructure.repositories import UserRepository
from school_admin.infrastructure.security import PasswordHasher


@pytest.fixture
def user_service(db):
    return UserService(UserRepository(db), PasswordHasher())


def test_password_stored_as_hash(db, user_service):
    """Тест: пароль хранится только в виде хэша"""
    result = user_service.create_user({
        "email": "guru@sman1.sch.id", "name": "Guru", "password": "rahasia123", "role": "TEACHER",
    })

    assert result.success
    stored = db.get(UserORM, result.value.id).password_hash
    assert stored != "rahasia123"
    assert PasswordHasher().verify("rahasia123", stored)
    assert not PasswordHasher().verify("salah-sekali", stored)


def test_password_change_rehashes(db, user_service):
    user = user_service.create_user({"email": "a@sman1.sch.id", "name": "A", "password": "pertama123"}).value

    assert user_service.update_user(user.id, {"password": "kedua12345"}).success

    stored = db.get(UserORM, user.id).password_hash
    assert PasswordHasher().verify("kedua12345", stored)


def test_duplicate_email_rejected(user_service):
    user_service.create_user({"email": "a@sman1.sch.id", "name": "A", "password": "rahasia123"})
    result = user_service.create_user({"email": "a@sman1.sch.id", "name": "B", "password": "rahasia123"})
    assert result.code == ErrorCode.EMAIL_TAKEN


def test_short_password_is_validation_error(user_service):
    result = user_service.create_user({"email": "a@sman1.sch.id", "name": "A", "password": "123"})
    assert result.code == ErrorCode.VALIDATION_ERROR


def test_deactivate_and_filter(user_service):
    teacher = user_service.create_user({
        "email": "t@sman1.sch.id", "name": "T", "password": "rahasia123", "role": "TEACHER",
    }).value
    user_service.create_user({"email": "s@sman1.sch.id", "name": "S", "password": "rahasia123"})

    assert user_service.set_active(teacher.id, False).value.active is False
    inactive = user_service.list_users(active=False).value
    assert [(u.id, u.role) for u in inactive] == [(teacher.id, Role.TEACHER)]

    assert user_service.set_active(404, True).code == ErrorCode.USER_NOT_FOUND
