import pytest
from prometheus_client import REGISTRY

from school_admin.application.use_cases.schedules import ScheduleService
from school_admin.domain.entities import DayOfWeek
from school_admin.domain.errors import ErrorCode
from school_admin.infrastructure.repositories import (
    ClassCohortRepository,
    ScheduleRepository,
    SubjectRepository,
    UserRepository,
)


@pytest.fixture
def school(factory):
    """Два класса, два учителя и два предмета"""
    policy = factory.policy()
    return {
        "c1": factory.cohort(name="X-A", policy_id=policy.id),
        "c2": factory.cohort(name="X-B", policy_id=policy.id),
        "t1": factory.teacher(name="Pak Ahmad"),
        "t2": factory.teacher(name="Bu Sari"),
        "math": factory.subject("Mathematics", "MATH"),
        "physics": factory.subject("Physics", "PHYS"),
    }


def slot(cohort, teacher, subject, start, end, day="MONDAY", room=None):
    return {
        "class_id": cohort.id,
        "teacher_id": teacher.id,
        "subject_id": subject.id,
        "day_of_week": day,
        "start_time": start,
        "end_time": end,
        "room": room,
    }


def test_create_schedule_returns_summaries(school, schedule_service):
    result = schedule_service.create_schedule(slot(school["c1"], school["t1"], school["math"], "08:00", "09:00"))

    assert result.success
    schedule = result.value
    assert schedule.day_of_week == DayOfWeek.MONDAY
    assert schedule.class_cohort.name == "X-A"
    assert schedule.subject.name == "Mathematics"
    assert schedule.teacher.name == "Pak Ahmad"


def test_teacher_double_booked(school, schedule_service):
    """Тест: учитель не может вести два урока в пересекающееся время"""
    assert schedule_service.create_schedule(
        slot(school["c1"], school["t1"], school["math"], "08:00", "09:00")).success

    result = schedule_service.create_schedule(
        slot(school["c2"], school["t1"], school["physics"], "08:30", "09:30"))

    assert not result.success
    assert result.code == ErrorCode.TEACHER_DOUBLE_BOOKED
    assert result.error == "Teacher Pak Ahmad is already teaching Mathematics to X-A at this time"


def test_class_double_booked(school, schedule_service):
    schedule_service.create_schedule(slot(school["c1"], school["t1"], school["math"], "08:00", "09:00"))

    result = schedule_service.create_schedule(
        slot(school["c1"], school["t2"], school["physics"], "08:30", "09:30"))

    assert result.code == ErrorCode.CLASS_DOUBLE_BOOKED
    assert result.error == "Class X-A already has Mathematics at this time"


@pytest.mark.parametrize("first, second", [
    (("08:00", "09:00"), ("08:30", "09:30")),
    (("08:30", "09:30"), ("08:00", "09:00")),
    (("08:00", "10:00"), ("08:30", "09:00")),
    (("08:30", "09:00"), ("08:00", "10:00")),
])
def test_overlap_detected_in_either_order(school, schedule_service, first, second):
    """Тест: пересечение находится, какой бы интервал ни был создан первым"""
    assert schedule_service.create_schedule(slot(school["c1"], school["t1"], school["math"], *first)).success
    result = schedule_service.create_schedule(slot(school["c2"], school["t1"], school["physics"], *second))
    assert result.code == ErrorCode.TEACHER_DOUBLE_BOOKED


def test_adjacent_slots_and_other_days_allowed(school, schedule_service):
    """Тест: 08:00-09:00 и 09:00-10:00 не конфликтуют"""
    c1, t1, math = school["c1"], school["t1"], school["math"]
    assert schedule_service.create_schedule(slot(c1, t1, math, "08:00", "09:00")).success
    assert schedule_service.create_schedule(slot(c1, t1, math, "09:00", "10:00")).success
    assert schedule_service.create_schedule(slot(c1, t1, math, "08:00", "09:00", day="TUESDAY")).success


def test_time_validation(school, schedule_service):
    c1, t1, math = school["c1"], school["t1"], school["math"]

    same = schedule_service.create_schedule(slot(c1, t1, math, "09:00", "09:00"))
    assert same.code == ErrorCode.INVALID_TIME_RANGE
    assert same.error == "Start time must be before end time"

    bad = schedule_service.create_schedule(slot(c1, t1, math, "8:00", "09:00"))
    assert bad.code == ErrorCode.VALIDATION_ERROR
    assert "HH:MM" in bad.error


def test_references_checked(school, factory, schedule_service):
    c1, t1, math = school["c1"], school["t1"], school["math"]
    student = factory.student()

    assert schedule_service.create_schedule(
        {**slot(c1, t1, math, "08:00", "09:00"), "class_id": 404}).code == ErrorCode.CLASS_NOT_FOUND
    assert schedule_service.create_schedule(
        {**slot(c1, t1, math, "08:00", "09:00"), "subject_id": 404}).code == ErrorCode.SUBJECT_NOT_FOUND
    assert schedule_service.create_schedule(
        slot(c1, student, math, "08:00", "09:00")).code == ErrorCode.INVALID_TEACHER


def test_room_double_booked(school, schedule_service):
    """Тест: один кабинет не занимают два класса одновременно"""
    schedule_service.create_schedule(slot(school["c1"], school["t1"], school["math"], "08:00", "09:00", room="Lab A"))

    result = schedule_service.create_schedule(
        slot(school["c2"], school["t2"], school["physics"], "08:30", "09:30", room="lab a"))

    assert result.code == ErrorCode.ROOM_DOUBLE_BOOKED
    assert result.error == "Room Lab A is already used by X-A for Mathematics at this time"


def test_room_double_booked_non_ascii(school, schedule_service):
    """Тест: регистр не-ASCII имён кабинета не мешает найти конфликт"""
    schedule_service.create_schedule(slot(school["c1"], school["t1"], school["math"], "08:00", "09:00", room="Ruang Ö"))

    result = schedule_service.create_schedule(
        slot(school["c2"], school["t2"], school["physics"], "08:30", "09:30", room="ruang ö"))

    assert result.code == ErrorCode.ROOM_DOUBLE_BOOKED
    assert result.error == "Room Ruang Ö is already used by X-A for Mathematics at this time"


def test_room_check_can_be_disabled(db, school):
    service = ScheduleService(ScheduleRepository(db), ClassCohortRepository(db), SubjectRepository(db),
                              UserRepository(db), check_rooms=False)
    service.create_schedule(slot(school["c1"], school["t1"], school["math"], "08:00", "09:00", room="101"))

    result = service.create_schedule(slot(school["c2"], school["t2"], school["physics"], "08:30", "09:30", room="101"))

    assert result.success


def test_conflicts_are_counted(school, schedule_service):
    labels = {"kind": "teacher"}
    before = REGISTRY.get_sample_value("schedule_conflicts_total", labels) or 0
    schedule_service.create_schedule(slot(school["c1"], school["t1"], school["math"], "08:00", "09:00"))
    schedule_service.create_schedule(slot(school["c2"], school["t1"], school["math"], "08:30", "09:30"))
    assert REGISTRY.get_sample_value("schedule_conflicts_total", labels) == before + 1


# --- update

def test_update_excludes_itself_from_scan(school, schedule_service):
    """Тест: сдвиг урока внутри своего же интервала не конфликт"""
    created = schedule_service.create_schedule(
        slot(school["c1"], school["t1"], school["math"], "08:00", "09:00")).value

    result = schedule_service.update_schedule(created.id, {"start_time": "08:15", "end_time": "09:15"})

    assert result.success
    assert (result.value.start_time, result.value.end_time) == ("08:15", "09:15")


def test_update_into_conflict_rejected(school, schedule_service):
    schedule_service.create_schedule(slot(school["c1"], school["t1"], school["math"], "08:00", "09:00"))
    other = schedule_service.create_schedule(
        slot(school["c2"], school["t1"], school["physics"], "10:00", "11:00")).value

    result = schedule_service.update_schedule(other.id, {"start_time": "08:30", "end_time": "09:30"})

    assert result.code == ErrorCode.TEACHER_DOUBLE_BOOKED
    assert schedule_service.get_schedule(other.id).value.start_time == "10:00"


def test_update_merges_before_time_check(school, schedule_service):
    """Тест: новое окончание сравнивается с сохранённым началом"""
    created = schedule_service.create_schedule(
        slot(school["c1"], school["t1"], school["math"], "08:00", "09:00")).value

    result = schedule_service.update_schedule(created.id, {"end_time": "07:30"})

    assert result.code == ErrorCode.INVALID_TIME_RANGE


def test_update_subject_only_skips_scan(school, schedule_service):
    created = schedule_service.create_schedule(
        slot(school["c1"], school["t1"], school["math"], "08:00", "09:00")).value

    result = schedule_service.update_schedule(created.id, {"subject_id": school["physics"].id, "room": None})

    assert result.success
    assert result.value.subject.name == "Physics"


def test_update_and_delete_missing(schedule_service):
    assert schedule_service.update_schedule(404, {"room": "1"}).code == ErrorCode.SCHEDULE_NOT_FOUND
    assert schedule_service.delete_schedule(404).code == ErrorCode.SCHEDULE_NOT_FOUND


def test_delete_and_list_order(school, schedule_service):
    c1, t1, math = school["c1"], school["t1"], school["math"]
    tuesday = schedule_service.create_schedule(slot(c1, t1, math, "08:00", "09:00", day="TUESDAY")).value
    schedule_service.create_schedule(slot(c1, t1, math, "10:00", "11:00"))
    schedule_service.create_schedule(slot(c1, t1, math, "08:00", "09:00"))

    listed = schedule_service.list_schedules(class_id=c1.id).value
    assert [(s.day_of_week.value, s.start_time) for s in listed] == [
        ("MONDAY", "08:00"), ("MONDAY", "10:00"), ("TUESDAY", "08:00"),
    ]

    assert schedule_service.delete_schedule(tuesday.id).success
    assert schedule_service.get_schedule(tuesday.id).code == ErrorCode.SCHEDULE_NOT_FOUND
