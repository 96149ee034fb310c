"""Зачисление учеников в классы.

Правила (проверяются в этом порядке):

1. ученик существует, имеет роль STUDENT и активен;
2. класс существует;
3. в классе есть свободные места (считаются только ACTIVE-зачисления);
4. нет такого же зачисления (ученик, класс, учебный год);
5. ученик не зачислен в другой класс на тот же учебный год.

Отчисление (WITHDRAWN) место в году не освобождает: чтобы перевести
ученика, используется transfer_enrollment (удаление + новое зачисление).
"""
from typing import Callable

import structlog

from ...domain.entities import Enrollment, EnrollmentStatus, Role
from ...domain.errors import DomainError, ErrorCode
from ...infrastructure.metrics import operation_results_total
from ..dto import (
    BulkItemResult,
    BulkResult,
    CreateEnrollmentInput,
    OperationResult,
    TransferResult,
    check_academic_year,
)
from ..ports import ConflictError, IClassCohortRepository, IEnrollmentRepository, IUserRepository
from .base import UseCase

logger = structlog.get_logger(__name__)


def _check_year(year) -> None:
    if not isinstance(year, str) or not year:
        raise DomainError(ErrorCode.VALIDATION_ERROR, "Format: YYYY/YYYY")
    try:
        check_academic_year(year)
    except ValueError as exc:
        raise DomainError(ErrorCode.VALIDATION_ERROR, str(exc))


class EnrollmentService(UseCase):
    def __init__(self, enrollments: IEnrollmentRepository, users: IUserRepository,
                 classes: IClassCohortRepository):
        super().__init__(enrollments, users, classes)
        self.enrollments = enrollments
        self.users = users
        self.classes = classes

    # --- одиночные операции

    def create_enrollment(self, data) -> OperationResult:
        def action():
            payload = self._parse(CreateEnrollmentInput, data)
            return self._create(payload.student_id, payload.class_id, payload.academic_year)
        return self._run("create_enrollment", action, "creating the enrollment")

    def _create(self, student_id: int, class_id: int, academic_year: str) -> Enrollment:
        student = self.users.get(student_id)
        if student is None or student.role != Role.STUDENT:
            raise DomainError(ErrorCode.INVALID_STUDENT, "Invalid student")
        if not student.active:
            raise DomainError(ErrorCode.INACTIVE_STUDENT, "Student account is not active")

        # блокируем строку класса до конца транзакции (PostgreSQL)
        cohort = self.classes.get(class_id, lock=True)
        if cohort is None:
            raise DomainError(ErrorCode.CLASS_NOT_FOUND, "Class not found")

        if cohort.capacity is not None:
            if self.classes.count_active_enrollments(class_id) >= cohort.capacity:
                raise DomainError(ErrorCode.CAPACITY_EXCEEDED, "Class is at full capacity")

        self._check_not_enrolled(student_id, class_id, academic_year)

        try:
            enrollment = self.enrollments.create(student_id, class_id, academic_year)
        except ConflictError:
            # параллельный запрос успел раньше: отвечаем так же, как при обычной проверке
            self.enrollments.rollback()
            self._check_not_enrolled(student_id, class_id, academic_year)
            # иное нарушение (например, класс удалён параллельно) уходит в общую ошибку
            raise
        logger.info("enrollment_created", enrollment_id=enrollment.id, student_id=student_id,
                    class_id=class_id, academic_year=academic_year)
        return enrollment

    def _check_not_enrolled(self, student_id: int, class_id: int, academic_year: str) -> None:
        if self.enrollments.find(student_id, class_id, academic_year) is not None:
            raise DomainError(
                ErrorCode.DUPLICATE_ENROLLMENT,
                "Student is already enrolled in this class for this academic year",
            )
        other = self.enrollments.find_in_other_class(student_id, academic_year, class_id)
        if other is None:
            return
        class_name = other.class_cohort.name if other.class_cohort else f"class #{other.class_id}"
        if other.status == EnrollmentStatus.ACTIVE:
            message = f"Student is already enrolled in {class_name} for {academic_year}"
        else:
            message = (f"Student has a withdrawn enrollment in {class_name} for {academic_year}; "
                       "transfer it instead")
        raise DomainError(ErrorCode.ALREADY_ENROLLED_ELSEWHERE, message)

    def _require(self, enrollment_id: int) -> Enrollment:
        enrollment = self.enrollments.get(enrollment_id)
        if enrollment is None:
            raise DomainError(ErrorCode.ENROLLMENT_NOT_FOUND, "Enrollment not found")
        return enrollment

    def withdraw_enrollment(self, enrollment_id: int) -> OperationResult:
        def action():
            self._require(enrollment_id)
            enrollment = self.enrollments.set_status(enrollment_id, EnrollmentStatus.WITHDRAWN)
            logger.info("enrollment_withdrawn", enrollment_id=enrollment_id)
            return enrollment
        return self._run("withdraw_enrollment", action, "withdrawing the enrollment")

    def delete_enrollment(self, enrollment_id: int) -> OperationResult:
        def action():
            enrollment = self._require(enrollment_id)
            self.enrollments.delete(enrollment_id)
            logger.info("enrollment_deleted", enrollment_id=enrollment_id,
                        student_id=enrollment.student_id)
            return enrollment
        return self._run("delete_enrollment", action, "deleting the enrollment")

    def get_enrollment(self, enrollment_id: int) -> OperationResult:
        return self._run("get_enrollment", lambda: self._require(enrollment_id),
                         "fetching the enrollment")

    def get_student_enrollment(self, student_id: int, academic_year: str) -> OperationResult:
        """Текущее ACTIVE-зачисление ученика (value=None, если его нет)."""
        def action():
            _check_year(academic_year)
            return self.enrollments.get_active_for_student(student_id, academic_year)
        return self._run("get_student_enrollment", action, "fetching student enrollment")

    def list_enrollments(self, student_id: int | None = None, class_id: int | None = None,
                         academic_year: str | None = None,
                         status: EnrollmentStatus | None = None) -> OperationResult:
        return self._run(
            "list_enrollments",
            lambda: self.enrollments.list(student_id=student_id, class_id=class_id,
                                          academic_year=academic_year, status=status),
            "fetching enrollments",
        )

    # --- пакетные операции: ошибки по отдельным ученикам не прерывают пакет

    def _run_bulk(self, operation: str, action: Callable[[], BulkResult], failure: str) -> BulkResult:
        try:
            result = action()
        except DomainError as exc:
            logger.info("operation_rejected", operation=operation, code=exc.code.value, reason=exc.message)
            operation_results_total.labels(operation=operation, outcome=exc.code.value).inc()
            return BulkResult(success=False, error=exc.message, code=exc.code)
        except Exception:
            self._rollback()
            logger.exception("operation_failed", operation=operation)
            operation_results_total.labels(operation=operation, outcome=ErrorCode.INTERNAL_ERROR.value).inc()
            return BulkResult(success=False, error=f"An error occurred while {failure}",
                              code=ErrorCode.INTERNAL_ERROR)
        logger.info(f"{operation}_finished", total=result.summary.total,
                    successful=result.summary.successful, failed=result.summary.failed,
                    skipped=result.summary.skipped)
        return result

    def bulk_create_enrollments(self, student_ids: list[int], class_id: int,
                                academic_year: str) -> BulkResult:
        def action():
            if not student_ids:
                raise DomainError(ErrorCode.NO_STUDENTS_SELECTED, "No students selected")
            if self.classes.get(class_id) is None:
                raise DomainError(ErrorCode.CLASS_NOT_FOUND, "Class not found")
            result = BulkResult(success=True)
            for student_id in student_ids:
                created = self.create_enrollment(
                    {"student_id": student_id, "class_id": class_id, "academic_year": academic_year}
                )
                result.add(BulkItemResult(
                    student_id=student_id,
                    success=created.success,
                    error=created.error,
                    code=created.code,
                    enrollment=created.value,
                ))
            return result
        return self._run_bulk("bulk_create_enrollments", action, "creating bulk enrollments")

    def copy_enrollments_from_previous_year(self, from_year: str, to_year: str) -> BulkResult:
        """Переносит все ACTIVE-зачисления from_year в to_year в те же классы."""
        def action():
            for year in (from_year, to_year):
                _check_year(year)

            previous = self.enrollments.list(academic_year=from_year, status=EnrollmentStatus.ACTIVE)
            if not previous:
                raise DomainError(ErrorCode.NO_SOURCE_ENROLLMENTS,
                                  f"No active enrollments found for {from_year}")

            result = BulkResult(success=True)
            for prev in previous:
                student = self.users.get(prev.student_id)
                student_name = student.name if student else None
                class_name = prev.class_cohort.name if prev.class_cohort else None
                if student is None or not student.active:
                    result.add(BulkItemResult(
                        student_id=prev.student_id,
                        success=False,
                        error="Student is inactive",
                        code=ErrorCode.INACTIVE_STUDENT,
                        skipped=True,
                        student_name=student_name,
                        class_name=class_name,
                    ))
                    operation_results_total.labels(operation="copy_enrollments", outcome="skipped").inc()
                    continue
                created = self.create_enrollment(
                    {"student_id": prev.student_id, "class_id": prev.class_id, "academic_year": to_year}
                )
                result.add(BulkItemResult(
                    student_id=prev.student_id,
                    success=created.success,
                    error=created.error,
                    code=created.code,
                    enrollment=created.value,
                    student_name=student_name,
                    class_name=class_name,
                ))
            return result
        return self._run_bulk("copy_enrollments", action, "copying enrollments")

    def transfer_enrollment(self, enrollment_id: int, to_class_id: int) -> TransferResult:
        """Перевод в другой класс того же учебного года.

        Не атомарен: если новое зачисление не удалось, старое уже удалено и
        результат помечается как partial.
        """
        current = self.get_enrollment(enrollment_id)
        if not current.success:
            return TransferResult(success=False, error=current.error, code=current.code)
        enrollment = current.value
        if enrollment.class_id == to_class_id:
            return TransferResult(success=False, error="Student is already in this class",
                                  code=ErrorCode.VALIDATION_ERROR)
        target = self._run("get_class", lambda: self.classes.get(to_class_id), "fetching the class")
        if not target.success:
            return TransferResult(success=False, error=target.error, code=target.code)
        if target.value is None:
            return TransferResult(success=False, error="Class not found", code=ErrorCode.CLASS_NOT_FOUND)

        removed = self.delete_enrollment(enrollment_id)
        if not removed.success:
            return TransferResult(success=False, error=removed.error, code=removed.code)

        bulk = self.bulk_create_enrollments([enrollment.student_id], to_class_id, enrollment.academic_year)
        item = bulk.results[0] if bulk.results else None
        if item is not None and item.success:
            logger.info("enrollment_transferred", student_id=enrollment.student_id,
                        from_class_id=enrollment.class_id, to_class_id=to_class_id)
            return TransferResult(success=True, removed=True, enrollment=item.enrollment)

        error = item.error if item else bulk.error
        code = item.code if item else bulk.code
        logger.warning("enrollment_transfer_partial", student_id=enrollment.student_id,
                       from_class_id=enrollment.class_id, to_class_id=to_class_id, reason=error)
        return TransferResult(success=False, error=error, code=code, removed=True, partial=True)
