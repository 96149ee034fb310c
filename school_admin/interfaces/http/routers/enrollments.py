from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from slowapi import Limiter
from sqlalchemy.orm import Session

from ....application.dto import CreateEnrollmentInput
from ....application.use_cases.enrollments import EnrollmentService
from ....config import settings
from ....domain.entities import EnrollmentStatus, Role
from ....infrastructure.db import get_db
from ....infrastructure.repositories import UserRepository
from ..authz import get_claims, get_current_role, get_user_email, require_admin
from ..deps import get_enrollment_service, get_limiter
from ..results import status_for, unwrap
from ..schemas import (
    BulkEnrollmentReq,
    BulkResultOut,
    CopyEnrollmentsReq,
    EnrollmentOut,
    TransferOut,
    TransferReq,
)

router = APIRouter(prefix="/api/enrollments", tags=["enrollments"])

# limiter.limit() регистрирует лимит на каждый вызов, поэтому обёртки кэшируются
_limited = {}


def _rate_limited(limiter: Limiter, func):
    key = (id(limiter), func.__name__)
    if key not in _limited:
        _limited[key] = limiter.limit(f"{settings.BULK_RATE_LIMIT_PER_MINUTE}/minute")(func)
    return _limited[key]


def _bulk_response(result) -> BulkResultOut:
    # пакет отработал: 200 даже при ошибках отдельных учеников
    if not result.success:
        raise HTTPException(status_code=status_for(result.code),
                            detail={"code": result.code.value, "error": result.error})
    return result


@router.get("", response_model=list[EnrollmentOut], dependencies=[Depends(get_claims)])
def list_enrollments(student_id: int | None = Query(None),
                     class_id: int | None = Query(None),
                     academic_year: str | None = Query(None),
                     status_: EnrollmentStatus | None = Query(None, alias="status"),
                     service: EnrollmentService = Depends(get_enrollment_service)):
    return unwrap(service.list_enrollments(student_id=student_id, class_id=class_id,
                                           academic_year=academic_year, status=status_))


@router.get("/students/{student_id}/current", response_model=EnrollmentOut | None)
def current_enrollment(student_id: int,
                       academic_year: str = Query(...),
                       email: str = Depends(get_user_email),
                       role: Role = Depends(get_current_role),
                       db: Session = Depends(get_db),
                       service: EnrollmentService = Depends(get_enrollment_service)):
    if role == Role.STUDENT:
        # ученик видит только своё зачисление
        me = UserRepository(db).get_by_email(email)
        if me is None or me.id != student_id:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not allowed")
    return unwrap(service.get_student_enrollment(student_id, academic_year))


@router.get("/{enrollment_id}", response_model=EnrollmentOut, dependencies=[Depends(get_claims)])
def get_enrollment(enrollment_id: int, service: EnrollmentService = Depends(get_enrollment_service)):
    return unwrap(service.get_enrollment(enrollment_id))


# --- Admin-only:

@router.post("", response_model=EnrollmentOut, status_code=status.HTTP_201_CREATED,
             dependencies=[Depends(require_admin)])
def create_enrollment(payload: CreateEnrollmentInput,
                      service: EnrollmentService = Depends(get_enrollment_service)):
    return unwrap(service.create_enrollment(payload))


def _bulk_impl(request: Request, payload: BulkEnrollmentReq, service: EnrollmentService):
    return _bulk_response(service.bulk_create_enrollments(payload.student_ids, payload.class_id,
                                                          payload.academic_year))


@router.post("/bulk", response_model=BulkResultOut, dependencies=[Depends(require_admin)])
def bulk_create(request: Request,
                payload: BulkEnrollmentReq,
                service: EnrollmentService = Depends(get_enrollment_service),
                limiter: Limiter = Depends(get_limiter)):
    return _rate_limited(limiter, _bulk_impl)(request, payload, service)


def _copy_impl(request: Request, payload: CopyEnrollmentsReq, service: EnrollmentService):
    return _bulk_response(service.copy_enrollments_from_previous_year(payload.from_year, payload.to_year))


@router.post("/copy", response_model=BulkResultOut, dependencies=[Depends(require_admin)])
def copy_from_previous_year(request: Request,
                            payload: CopyEnrollmentsReq,
                            service: EnrollmentService = Depends(get_enrollment_service),
                            limiter: Limiter = Depends(get_limiter)):
    return _rate_limited(limiter, _copy_impl)(request, payload, service)


@router.post("/{enrollment_id}/withdraw", response_model=EnrollmentOut, dependencies=[Depends(require_admin)])
def withdraw(enrollment_id: int, service: EnrollmentService = Depends(get_enrollment_service)):
    return unwrap(service.withdraw_enrollment(enrollment_id))


@router.post("/{enrollment_id}/transfer", response_model=TransferOut, dependencies=[Depends(require_admin)])
def transfer(enrollment_id: int, payload: TransferReq,
             service: EnrollmentService = Depends(get_enrollment_service)):
    result = service.transfer_enrollment(enrollment_id, payload.to_class_id)
    # частичный перевод (старое удалено, новое не создано) отдаётся телом, а не ошибкой
    if not result.success and not result.partial:
        raise HTTPException(status_code=status_for(result.code),
                            detail={"code": result.code.value, "error": result.error})
    return result


@router.delete("/{enrollment_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(require_admin)])
def delete_enrollment(enrollment_id: int, service: EnrollmentService = Depends(get_enrollment_service)):
    unwrap(service.delete_enrollment(enrollment_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
