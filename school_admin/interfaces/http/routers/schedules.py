from fastapi import APIRouter, Depends, Query, Response, status

from ....application.dto import CreateScheduleInput, UpdateScheduleInput
from ....application.use_cases.schedules import ScheduleService
from ....domain.entities import DayOfWeek
from ..authz import get_claims, require_admin
from ..deps import get_schedule_service
from ..results import unwrap
from ..schemas import ScheduleOut

router = APIRouter(prefix="/api/schedules", tags=["schedules"])


@router.get("", response_model=list[ScheduleOut], dependencies=[Depends(get_claims)])
def list_schedules(class_id: int | None = Query(None),
                   teacher_id: int | None = Query(None),
                   subject_id: int | None = Query(None),
                   day_of_week: DayOfWeek | None = Query(None),
                   service: ScheduleService = Depends(get_schedule_service)):
    return unwrap(service.list_schedules(class_id=class_id, teacher_id=teacher_id, subject_id=subject_id,
                                         day_of_week=day_of_week.value if day_of_week else None))


@router.get("/{schedule_id}", response_model=ScheduleOut, dependencies=[Depends(get_claims)])
def get_schedule(schedule_id: int, service: ScheduleService = Depends(get_schedule_service)):
    return unwrap(service.get_schedule(schedule_id))


# --- Admin-only CRUD:

@router.post("", response_model=ScheduleOut, status_code=status.HTTP_201_CREATED,
             dependencies=[Depends(require_admin)])
def create_schedule(payload: CreateScheduleInput, service: ScheduleService = Depends(get_schedule_service)):
    return unwrap(service.create_schedule(payload))


@router.put("/{schedule_id}", response_model=ScheduleOut, dependencies=[Depends(require_admin)])
def update_schedule(schedule_id: int, payload: UpdateScheduleInput,
                    service: ScheduleService = Depends(get_schedule_service)):
    return unwrap(service.update_schedule(schedule_id, payload))


@router.delete("/{schedule_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(require_admin)])
def delete_schedule(schedule_id: int, service: ScheduleService = Depends(get_schedule_service)):
    unwrap(service.delete_schedule(schedule_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
