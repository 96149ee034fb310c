import structlog

from ...domain.entities import ClassCohort, Role
from ...domain.errors import DomainError, ErrorCode
from ..dto import CreateClassCohortInput, OperationResult, UpdateClassCohortInput
from ..ports import IClassCohortRepository, IGradingPolicyRepository, IUserRepository
from .base import UseCase

logger = structlog.get_logger(__name__)


class ClassCohortService(UseCase):
    def __init__(self, classes: IClassCohortRepository, users: IUserRepository,
                 policies: IGradingPolicyRepository):
        super().__init__(classes, users, policies)
        self.classes = classes
        self.users = users
        self.policies = policies

    def _require(self, class_id: int) -> ClassCohort:
        cohort = self.classes.get(class_id)
        if cohort is None:
            raise DomainError(ErrorCode.CLASS_NOT_FOUND, "Class not found")
        return cohort

    def _check_policy(self, policy_id: int) -> None:
        if self.policies.get(policy_id) is None:
            raise DomainError(ErrorCode.POLICY_NOT_FOUND, "Grading policy not found")

    def _check_homeroom(self, teacher_id: int, class_id: int | None = None) -> None:
        teacher = self.users.get(teacher_id)
        if teacher is None or teacher.role != Role.TEACHER or not teacher.active:
            raise DomainError(ErrorCode.INVALID_TEACHER, "Invalid homeroom teacher")
        # у учителя не больше одного класса под руководством
        taken = self.classes.get_by_homeroom_teacher(teacher_id)
        if taken is not None and taken.id != class_id:
            raise DomainError(
                ErrorCode.HOMEROOM_TEACHER_TAKEN,
                f"Teacher {teacher.name} is already homeroom teacher of {taken.name}",
            )

    def create_class(self, data) -> OperationResult:
        def action():
            payload = self._parse(CreateClassCohortInput, data)
            self._check_policy(payload.grading_policy_id)
            if payload.homeroom_teacher_id is not None:
                self._check_homeroom(payload.homeroom_teacher_id)
            fields = payload.model_dump()
            fields["level"] = payload.level.value
            cohort = self.classes.create(**fields)
            logger.info("class_created", class_id=cohort.id, name=cohort.name,
                        academic_year=cohort.academic_year)
            return cohort
        return self._run("create_class", action, "creating the class")

    def update_class(self, class_id: int, data) -> OperationResult:
        def action():
            payload = self._parse(UpdateClassCohortInput, data)
            self._require(class_id)
            changes = payload.model_dump(exclude_unset=True)
            # обязательные поля не обнуляются
            for key in ("name", "level", "grade", "academic_year", "grading_policy_id"):
                if key in changes and changes[key] is None:
                    del changes[key]
            if "level" in changes:
                changes["level"] = changes["level"].value
            if "grading_policy_id" in changes:
                self._check_policy(changes["grading_policy_id"])
            if changes.get("homeroom_teacher_id") is not None:
                self._check_homeroom(changes["homeroom_teacher_id"], class_id)
            if changes.get("capacity") is not None:
                active = self.classes.count_active_enrollments(class_id)
                if changes["capacity"] < active:
                    raise DomainError(
                        ErrorCode.CAPACITY_EXCEEDED,
                        f"Capacity cannot be lower than the {active} active enrollment(s)",
                    )
            return self.classes.update(class_id, **changes)
        return self._run("update_class", action, "updating the class")

    def delete_class(self, class_id: int) -> OperationResult:
        def action():
            self._require(class_id)
            enrolled = self.classes.count_enrollments(class_id)
            if enrolled:
                raise DomainError(
                    ErrorCode.CLASS_HAS_ENROLLMENTS,
                    f"Cannot delete class with {enrolled} enrollment(s)",
                )
            self.classes.delete(class_id)
            logger.info("class_deleted", class_id=class_id)
        return self._run("delete_class", action, "deleting the class")

    def get_class(self, class_id: int) -> OperationResult:
        return self._run("get_class", lambda: self._require(class_id), "fetching the class")

    def list_classes(self, level: str | None = None, academic_year: str | None = None,
                     search: str | None = None) -> OperationResult:
        return self._run(
            "list_classes",
            lambda: self.classes.list(level=level, academic_year=academic_year, search=search),
            "fetching classes",
        )
