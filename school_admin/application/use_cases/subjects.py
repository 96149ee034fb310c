import structlog

from ...domain.entities import Subject
from ...domain.errors import DomainError, ErrorCode
from ..dto import CreateSubjectInput, OperationResult, UpdateSubjectInput
from ..ports import ISubjectRepository
from .base import UseCase

logger = structlog.get_logger(__name__)


class SubjectService(UseCase):
    def __init__(self, repo: ISubjectRepository):
        super().__init__(repo)
        self.repo = repo

    def _require(self, subject_id: int) -> Subject:
        subject = self.repo.get(subject_id)
        if subject is None:
            raise DomainError(ErrorCode.SUBJECT_NOT_FOUND, "Subject not found")
        return subject

    def _check_code(self, code: str | None, subject_id: int | None = None) -> None:
        if not code:
            return
        existing = self.repo.get_by_code(code)
        if existing is not None and existing.id != subject_id:
            raise DomainError(ErrorCode.DUPLICATE_SUBJECT_CODE, "A subject with this code already exists")

    def create_subject(self, data) -> OperationResult:
        def action():
            payload = self._parse(CreateSubjectInput, data)
            self._check_code(payload.code)
            subject = self.repo.create(**payload.model_dump())
            logger.info("subject_created", subject_id=subject.id, code=subject.code)
            return subject
        return self._run("create_subject", action, "creating the subject")

    def update_subject(self, subject_id: int, data) -> OperationResult:
        def action():
            payload = self._parse(UpdateSubjectInput, data)
            self._require(subject_id)
            changes = payload.model_dump(exclude_unset=True)
            if changes.get("name") is None:
                changes.pop("name", None)
            self._check_code(changes.get("code"), subject_id)
            return self.repo.update(subject_id, **changes)
        return self._run("update_subject", action, "updating the subject")

    def delete_subject(self, subject_id: int) -> OperationResult:
        def action():
            self._require(subject_id)
            used = self.repo.count_schedules(subject_id)
            if used:
                raise DomainError(
                    ErrorCode.SUBJECT_IN_USE,
                    f"Cannot delete subject that is used by {used} schedule(s)",
                )
            self.repo.delete(subject_id)
            logger.info("subject_deleted", subject_id=subject_id)
        return self._run("delete_subject", action, "deleting the subject")

    def get_subject(self, subject_id: int) -> OperationResult:
        return self._run("get_subject", lambda: self._require(subject_id), "fetching the subject")

    def list_subjects(self) -> OperationResult:
        return self._run("list_subjects", self.repo.list, "fetching subjects")
