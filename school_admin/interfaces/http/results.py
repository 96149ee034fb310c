from fastapi import HTTPException, status

from ...application.dto import OperationResult
from ...domain.errors import NOT_FOUND_CODES, VALIDATION_CODES, ErrorCode


def status_for(code: ErrorCode | None) -> int:
    if code in VALIDATION_CODES:
        return status.HTTP_400_BAD_REQUEST
    if code in NOT_FOUND_CODES:
        return status.HTTP_404_NOT_FOUND
    if code == ErrorCode.INTERNAL_ERROR or code is None:
        return status.HTTP_500_INTERNAL_SERVER_ERROR
    # нарушения бизнес-правил: занято, переполнено, пересекается
    return status.HTTP_409_CONFLICT


def unwrap(result: OperationResult):
    """Значение успешного результата или HTTPException с кодом ошибки."""
    if result.success:
        return result.value
    raise HTTPException(
        status_code=status_for(result.code),
        detail={"code": result.code.value if result.code else None, "error": result.error},
    )
