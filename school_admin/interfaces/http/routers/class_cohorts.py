from fastapi import APIRouter, Depends, Query, Response, status

from ....application.dto import CreateClassCohortInput, UpdateClassCohortInput
from ....application.use_cases.class_cohorts import ClassCohortService
from ....domain.entities import SchoolLevel
from ..authz import get_claims, require_admin
from ..deps import get_class_service
from ..results import unwrap
from ..schemas import ClassCohortOut
from .grading_policies import invalidate_policies_cache

router = APIRouter(prefix="/api/class-cohorts", tags=["class-cohorts"])


@router.get("", response_model=list[ClassCohortOut], dependencies=[Depends(get_claims)])
def list_classes(level: SchoolLevel | None = Query(None),
                 academic_year: str | None = Query(None),
                 search: str | None = Query(None, max_length=50),
                 service: ClassCohortService = Depends(get_class_service)):
    return unwrap(service.list_classes(level=level.value if level else None,
                                       academic_year=academic_year, search=search))


@router.get("/{class_id}", response_model=ClassCohortOut, dependencies=[Depends(get_claims)])
def get_class(class_id: int, service: ClassCohortService = Depends(get_class_service)):
    return unwrap(service.get_class(class_id))


# --- Admin-only CRUD:
# число классов входит в список политик, поэтому его кэш сбрасывается

@router.post("", response_model=ClassCohortOut, status_code=status.HTTP_201_CREATED,
             dependencies=[Depends(require_admin)])
def create_class(payload: CreateClassCohortInput, service: ClassCohortService = Depends(get_class_service)):
    cohort = unwrap(service.create_class(payload))
    invalidate_policies_cache()
    return cohort


@router.put("/{class_id}", response_model=ClassCohortOut, dependencies=[Depends(require_admin)])
def update_class(class_id: int, payload: UpdateClassCohortInput,
                 service: ClassCohortService = Depends(get_class_service)):
    cohort = unwrap(service.update_class(class_id, payload))
    invalidate_policies_cache()
    return cohort


@router.delete("/{class_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(require_admin)])
def delete_class(class_id: int, service: ClassCohortService = Depends(get_class_service)):
    unwrap(service.delete_class(class_id))
    invalidate_policies_cache()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
