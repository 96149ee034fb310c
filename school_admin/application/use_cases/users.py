import structlog

from ...domain.entities import User
from ...domain.errors import DomainError, ErrorCode
from ..dto import CreateUserInput, OperationResult, UpdateUserInput
from ..ports import IPasswordHasher, IUserRepository
from .base import UseCase

logger = structlog.get_logger(__name__)


class UserService(UseCase):
    """Минимальный справочник пользователей: учётки создаёт администратор."""

    def __init__(self, repo: IUserRepository, hasher: IPasswordHasher):
        super().__init__(repo)
        self.repo = repo
        self.hasher = hasher

    def _require(self, user_id: int) -> User:
        user = self.repo.get(user_id)
        if user is None:
            raise DomainError(ErrorCode.USER_NOT_FOUND, "User not found")
        return user

    def create_user(self, data) -> OperationResult:
        def action():
            payload = self._parse(CreateUserInput, data)
            if self.repo.get_by_email(payload.email):
                raise DomainError(ErrorCode.EMAIL_TAKEN, "Email already in use")
            user = self.repo.create(
                email=payload.email,
                name=payload.name,
                password_hash=self.hasher.hash(payload.password),
                role=payload.role.value,
            )
            logger.info("user_created", user_id=user.id, role=user.role.value)
            return user
        return self._run("create_user", action, "creating the user")

    def update_user(self, user_id: int, data) -> OperationResult:
        def action():
            payload = self._parse(UpdateUserInput, data)
            existing = self._require(user_id)
            changes = payload.model_dump(exclude_unset=True, exclude_none=True)
            if "email" in changes and changes["email"] != existing.email:
                if self.repo.get_by_email(changes["email"]):
                    raise DomainError(ErrorCode.EMAIL_TAKEN, "Email already in use")
            if "password" in changes:
                changes["password_hash"] = self.hasher.hash(changes.pop("password"))
            if "role" in changes:
                changes["role"] = changes["role"].value
            return self.repo.update(user_id, **changes)
        return self._run("update_user", action, "updating the user")

    def set_active(self, user_id: int, active: bool) -> OperationResult:
        def action():
            self._require(user_id)
            user = self.repo.update(user_id, active=active)
            logger.info("user_activation_changed", user_id=user_id, active=active)
            return user
        operation = "activate_user" if active else "deactivate_user"
        return self._run(operation, action, f"{'activating' if active else 'deactivating'} the user")

    def get_user(self, user_id: int) -> OperationResult:
        return self._run("get_user", lambda: self._require(user_id), "fetching the user")

    def list_users(self, role: str | None = None, active: bool | None = None) -> OperationResult:
        return self._run("list_users", lambda: self.repo.list(role=role, active=active),
                         "fetching users")
