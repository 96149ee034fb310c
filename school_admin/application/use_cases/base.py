from typing import Any, Callable

import structlog
from pydantic import BaseModel, ValidationError

from ...domain.errors import DomainError, ErrorCode
from ...infrastructure.metrics import operation_results_total
from ..dto import OperationResult, first_error_message
from ..ports import IRepository

logger = structlog.get_logger(__name__)


class UseCase:
    """Общий каркас: валидация -> проверки -> запись.

    Бизнес-ошибки и ошибки валидации возвращаются как OperationResult,
    инфраструктурные логируются и превращаются в общий ответ.
    """

    def __init__(self, *repos: IRepository):
        self._repos = repos

    @staticmethod
    def _parse(model: type[BaseModel], data: Any) -> BaseModel:
        if isinstance(data, model):
            return data
        return model.model_validate(data)

    def _rollback(self) -> None:
        # все репозитории одного запроса делят одну сессию
        if self._repos:
            self._repos[0].rollback()

    def _run(self, operation: str, action: Callable[[], Any], failure: str) -> OperationResult:
        try:
            value = action()
        except ValidationError as exc:
            return self._reject(operation, ErrorCode.VALIDATION_ERROR, first_error_message(exc))
        except DomainError as exc:
            self._rollback()
            return self._reject(operation, exc.code, exc.message)
        except Exception:
            self._rollback()
            logger.exception("operation_failed", operation=operation)
            operation_results_total.labels(operation=operation, outcome=ErrorCode.INTERNAL_ERROR.value).inc()
            return OperationResult.fail(ErrorCode.INTERNAL_ERROR, f"An error occurred while {failure}")
        operation_results_total.labels(operation=operation, outcome="success").inc()
        return OperationResult.ok(value)

    @staticmethod
    def _reject(operation: str, code: ErrorCode, message: str) -> OperationResult:
        logger.info("operation_rejected", operation=operation, code=code.value, reason=message)
        operation_results_total.labels(operation=operation, outcome=code.value).inc()
        return OperationResult.fail(code, message)
