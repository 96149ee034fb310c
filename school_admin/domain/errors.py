from enum import Enum


class ErrorCode(str, Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    # enrollments
    INVALID_STUDENT = "INVALID_STUDENT"
    INACTIVE_STUDENT = "INACTIVE_STUDENT"
    CLASS_NOT_FOUND = "CLASS_NOT_FOUND"
    CAPACITY_EXCEEDED = "CAPACITY_EXCEEDED"
    DUPLICATE_ENROLLMENT = "DUPLICATE_ENROLLMENT"
    ALREADY_ENROLLED_ELSEWHERE = "ALREADY_ENROLLED_ELSEWHERE"
    ENROLLMENT_NOT_FOUND = "ENROLLMENT_NOT_FOUND"
    NO_STUDENTS_SELECTED = "NO_STUDENTS_SELECTED"
    NO_SOURCE_ENROLLMENTS = "NO_SOURCE_ENROLLMENTS"
    # schedules
    INVALID_TIME_RANGE = "INVALID_TIME_RANGE"
    CLASS_DOUBLE_BOOKED = "CLASS_DOUBLE_BOOKED"
    TEACHER_DOUBLE_BOOKED = "TEACHER_DOUBLE_BOOKED"
    ROOM_DOUBLE_BOOKED = "ROOM_DOUBLE_BOOKED"
    SCHEDULE_NOT_FOUND = "SCHEDULE_NOT_FOUND"
    # subjects / cohorts
    SUBJECT_NOT_FOUND = "SUBJECT_NOT_FOUND"
    DUPLICATE_SUBJECT_CODE = "DUPLICATE_SUBJECT_CODE"
    SUBJECT_IN_USE = "SUBJECT_IN_USE"
    INVALID_TEACHER = "INVALID_TEACHER"
    HOMEROOM_TEACHER_TAKEN = "HOMEROOM_TEACHER_TAKEN"
    CLASS_HAS_ENROLLMENTS = "CLASS_HAS_ENROLLMENTS"
    # grading policies
    POLICY_NOT_FOUND = "POLICY_NOT_FOUND"
    INVALID_GRADING_SCALE = "INVALID_GRADING_SCALE"
    POLICY_IN_USE = "POLICY_IN_USE"
    POLICY_EXISTS = "POLICY_EXISTS"
    # users
    USER_NOT_FOUND = "USER_NOT_FOUND"
    EMAIL_TAKEN = "EMAIL_TAKEN"

    INTERNAL_ERROR = "INTERNAL_ERROR"


NOT_FOUND_CODES = frozenset({
    ErrorCode.CLASS_NOT_FOUND,
    ErrorCode.ENROLLMENT_NOT_FOUND,
    ErrorCode.SCHEDULE_NOT_FOUND,
    ErrorCode.SUBJECT_NOT_FOUND,
    ErrorCode.POLICY_NOT_FOUND,
    ErrorCode.USER_NOT_FOUND,
})

VALIDATION_CODES = frozenset({
    ErrorCode.VALIDATION_ERROR,
    ErrorCode.INVALID_TIME_RANGE,
    ErrorCode.INVALID_GRADING_SCALE,
    ErrorCode.INVALID_STUDENT,
    ErrorCode.INVALID_TEACHER,
    ErrorCode.NO_STUDENTS_SELECTED,
})


class DomainError(Exception):
    """Ожидаемое нарушение бизнес-правила. Не выходит за пределы use case."""

    def __init__(self, code: ErrorCode, message: str):
        super().__init__(message)
        self.code = code
        self.message = message
