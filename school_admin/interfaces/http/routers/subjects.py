from fastapi import APIRouter, Depends, Response, status

from ....application.dto import CreateSubjectInput, UpdateSubjectInput
from ....application.use_cases.subjects import SubjectService
from ....infrastructure.cache import cache_key, delete_cache_pattern, get_cache, set_cache
from ....infrastructure.metrics import cache_hits_total, cache_misses_total
from ..authz import get_claims, require_admin
from ..deps import get_subject_service
from ..results import unwrap
from ..schemas import SubjectOut

router = APIRouter(prefix="/api/subjects", tags=["subjects"])

LIST_KEY = cache_key("subjects", "list")


def _invalidate():
    delete_cache_pattern(LIST_KEY)


@router.get("", response_model=list[SubjectOut], dependencies=[Depends(get_claims)])
def list_subjects(service: SubjectService = Depends(get_subject_service)):
    cached = get_cache(LIST_KEY)
    if cached is not None:
        cache_hits_total.inc()
        return cached

    cache_misses_total.inc()
    result = [SubjectOut.model_validate(s) for s in unwrap(service.list_subjects())]
    set_cache(LIST_KEY, [r.model_dump(mode="json") for r in result])
    return result


@router.get("/{subject_id}", response_model=SubjectOut, dependencies=[Depends(get_claims)])
def get_subject(subject_id: int, service: SubjectService = Depends(get_subject_service)):
    return unwrap(service.get_subject(subject_id))


# --- Admin-only CRUD:

@router.post("", response_model=SubjectOut, status_code=status.HTTP_201_CREATED, dependencies=[Depends(require_admin)])
def create_subject(payload: CreateSubjectInput, service: SubjectService = Depends(get_subject_service)):
    subject = unwrap(service.create_subject(payload))
    _invalidate()
    return subject


@router.put("/{subject_id}", response_model=SubjectOut, dependencies=[Depends(require_admin)])
def update_subject(subject_id: int, payload: UpdateSubjectInput,
                   service: SubjectService = Depends(get_subject_service)):
    subject = unwrap(service.update_subject(subject_id, payload))
    _invalidate()
    return subject


@router.delete("/{subject_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(require_admin)])
def delete_subject(subject_id: int, service: SubjectService = Depends(get_subject_service)):
    unwrap(service.delete_subject(subject_id))
    _invalidate()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
