import structlog

from ...config import settings
from ...domain.entities import Role, Schedule
from ...domain.errors import DomainError, ErrorCode
from ...domain.scheduling import find_conflict, is_valid_time_range
from ...infrastructure.metrics import schedule_conflicts_total
from ..dto import CreateScheduleInput, OperationResult, UpdateScheduleInput
from ..ports import IClassCohortRepository, IScheduleRepository, ISubjectRepository, IUserRepository
from .base import UseCase

logger = structlog.get_logger(__name__)

# поля, изменение которых требует повторной проверки пересечений
_SLOT_FIELDS = ("class_id", "teacher_id", "day_of_week", "start_time", "end_time")

_CONFLICT_CODES = {
    "class": ErrorCode.CLASS_DOUBLE_BOOKED,
    "teacher": ErrorCode.TEACHER_DOUBLE_BOOKED,
    "room": ErrorCode.ROOM_DOUBLE_BOOKED,
}


def _conflict_message(kind: str, existing: Schedule) -> str:
    class_name = existing.class_cohort.name if existing.class_cohort else f"class #{existing.class_id}"
    subject_name = existing.subject.name if existing.subject else f"subject #{existing.subject_id}"
    if kind == "class":
        return f"Class {class_name} already has {subject_name} at this time"
    if kind == "teacher":
        teacher_name = existing.teacher.name if existing.teacher else f"teacher #{existing.teacher_id}"
        return f"Teacher {teacher_name} is already teaching {subject_name} to {class_name} at this time"
    return f"Room {existing.room} is already used by {class_name} for {subject_name} at this time"


class ScheduleService(UseCase):
    """Расписание: один слот = (класс, предмет, учитель, день, [начало, конец)).

    Ни класс, ни учитель не могут стоять в двух пересекающихся слотах одного
    дня. Если включено check_rooms, то же самое проверяется для кабинета.
    """

    def __init__(self, schedules: IScheduleRepository, classes: IClassCohortRepository,
                 subjects: ISubjectRepository, users: IUserRepository,
                 check_rooms: bool = settings.SCHEDULE_ROOM_CONFLICTS):
        super().__init__(schedules, classes, subjects, users)
        self.schedules = schedules
        self.classes = classes
        self.subjects = subjects
        self.users = users
        self.check_rooms = check_rooms

    def _require(self, schedule_id: int) -> Schedule:
        schedule = self.schedules.get(schedule_id)
        if schedule is None:
            raise DomainError(ErrorCode.SCHEDULE_NOT_FOUND, "Schedule not found")
        return schedule

    @staticmethod
    def _check_time_range(start_time: str, end_time: str) -> None:
        if not is_valid_time_range(start_time, end_time):
            raise DomainError(ErrorCode.INVALID_TIME_RANGE, "Start time must be before end time")

    def _check_references(self, class_id: int, subject_id: int, teacher_id: int) -> None:
        # блокировки класса и учителя сериализуют конкурентные записи в их расписание
        if self.classes.get(class_id, lock=True) is None:
            raise DomainError(ErrorCode.CLASS_NOT_FOUND, "Class not found")
        if self.subjects.get(subject_id) is None:
            raise DomainError(ErrorCode.SUBJECT_NOT_FOUND, "Subject not found")
        teacher = self.users.get(teacher_id, lock=True)
        if teacher is None or teacher.role != Role.TEACHER or not teacher.active:
            raise DomainError(ErrorCode.INVALID_TEACHER, "Invalid teacher")

    def _check_conflicts(self, slot: dict, exclude_id: int | None = None) -> None:
        room = slot.get("room") if self.check_rooms else None
        candidates = self.schedules.find_same_day(
            slot["day_of_week"], slot["class_id"], slot["teacher_id"],
            room=room, exclude_id=exclude_id,
        )
        conflict = find_conflict(
            candidates,
            class_id=slot["class_id"],
            teacher_id=slot["teacher_id"],
            start_time=slot["start_time"],
            end_time=slot["end_time"],
            room=room,
        )
        if conflict is None:
            return
        kind, existing = conflict
        schedule_conflicts_total.labels(kind=kind).inc()
        raise DomainError(_CONFLICT_CODES[kind], _conflict_message(kind, existing))

    def create_schedule(self, data) -> OperationResult:
        def action():
            payload = self._parse(CreateScheduleInput, data)
            self._check_time_range(payload.start_time, payload.end_time)
            self._check_references(payload.class_id, payload.subject_id, payload.teacher_id)
            slot = payload.model_dump()
            slot["day_of_week"] = payload.day_of_week.value
            self._check_conflicts(slot)
            schedule = self.schedules.create(**slot)
            logger.info("schedule_created", schedule_id=schedule.id, class_id=schedule.class_id,
                        teacher_id=schedule.teacher_id, day_of_week=slot["day_of_week"])
            return schedule
        return self._run("create_schedule", action, "creating the schedule")

    def update_schedule(self, schedule_id: int, data) -> OperationResult:
        def action():
            payload = self._parse(UpdateScheduleInput, data)
            existing = self._require(schedule_id)
            changes = payload.model_dump(exclude_unset=True)
            # room=None очищает кабинет, остальные поля обнулять нельзя
            for key in list(changes):
                if key != "room" and changes[key] is None:
                    del changes[key]
            if "day_of_week" in changes:
                changes["day_of_week"] = changes["day_of_week"].value

            merged = {
                "class_id": existing.class_id,
                "subject_id": existing.subject_id,
                "teacher_id": existing.teacher_id,
                "day_of_week": existing.day_of_week.value,
                "start_time": existing.start_time,
                "end_time": existing.end_time,
                "room": existing.room,
            }
            merged.update(changes)

            self._check_time_range(merged["start_time"], merged["end_time"])
            if {"class_id", "subject_id", "teacher_id"} & changes.keys():
                self._check_references(merged["class_id"], merged["subject_id"], merged["teacher_id"])

            rescan = any(key in changes for key in _SLOT_FIELDS)
            if self.check_rooms and changes.get("room"):
                rescan = True
            if rescan:
                self._check_conflicts(merged, exclude_id=schedule_id)

            schedule = self.schedules.update(schedule_id, **changes)
            logger.info("schedule_updated", schedule_id=schedule_id, fields=sorted(changes))
            return schedule
        return self._run("update_schedule", action, "updating the schedule")

    def delete_schedule(self, schedule_id: int) -> OperationResult:
        def action():
            self._require(schedule_id)
            self.schedules.delete(schedule_id)
            logger.info("schedule_deleted", schedule_id=schedule_id)
        return self._run("delete_schedule", action, "deleting the schedule")

    def get_schedule(self, schedule_id: int) -> OperationResult:
        return self._run("get_schedule", lambda: self._require(schedule_id), "fetching the schedule")

    def list_schedules(self, class_id: int | None = None, teacher_id: int | None = None,
                       subject_id: int | None = None, day_of_week: str | None = None) -> OperationResult:
        return self._run(
            "list_schedules",
            lambda: self.schedules.list(class_id=class_id, teacher_id=teacher_id,
                                        subject_id=subject_id, day_of_week=day_of_week),
            "fetching schedules",
        )
