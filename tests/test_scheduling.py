import pytest

from school_admin.domain.entities import DayOfWeek, Schedule
from school_admin.domain.scheduling import (
    find_conflict,
    intervals_overlap,
    is_valid_time,
    is_valid_time_range,
    normalize_room,
)


def make(id, class_id, teacher_id, start, end, room=None):
    return Schedule(id=id, class_id=class_id, subject_id=1, teacher_id=teacher_id,
                    day_of_week=DayOfWeek.MONDAY, start_time=start, end_time=end, room=room)


@pytest.mark.parametrize(
    "first, second",
    [
        (("08:00", "09:00"), ("08:30", "09:30")),  # частичное пересечение
        (("08:00", "10:00"), ("08:30", "09:00")),  # вложенный интервал
        (("08:00", "09:00"), ("08:00", "09:00")),  # совпадение
        (("08:00", "09:00"), ("07:00", "08:01")),
    ],
)
def test_overlap_is_symmetric(first, second):
    """Тест: пересечение находится независимо от порядка интервалов"""
    assert intervals_overlap(*first, *second)
    assert intervals_overlap(*second, *first)


@pytest.mark.parametrize("first, second", [
    (("08:00", "09:00"), ("09:00", "10:00")),
    (("08:00", "09:00"), ("10:00", "11:00")),
])
def test_adjacent_or_disjoint_intervals_do_not_overlap(first, second):
    """Тест: стык на границе не считается пересечением"""
    assert not intervals_overlap(*first, *second)
    assert not intervals_overlap(*second, *first)


@pytest.mark.parametrize("value, ok", [
    ("08:00", True), ("23:59", True), ("00:00", True),
    ("8:00", False), ("24:00", False), ("12:60", False), ("0800", False), ("", False),
])
def test_time_format(value, ok):
    assert is_valid_time(value) is ok


def test_time_range_requires_start_before_end():
    assert is_valid_time_range("08:00", "08:45")
    assert not is_valid_time_range("09:00", "09:00")
    assert not is_valid_time_range("10:00", "09:00")


def test_normalize_room():
    assert normalize_room("  Lab A ") == "lab a"
    assert normalize_room("   ") is None
    assert normalize_room(None) is None
    assert normalize_room("RUANG ÖLÇÜ") == "ruang ölçü"


def test_class_conflict_beats_teacher_conflict_on_same_row():
    """Тест: строка с тем же классом и учителем даёт конфликт класса"""
    existing = [make(1, class_id=1, teacher_id=7, start="08:00", end="09:00")]
    kind, row = find_conflict(existing, class_id=1, teacher_id=7, start_time="08:30", end_time="09:30")
    assert kind == "class"
    assert row.id == 1


def test_teacher_conflict():
    existing = [make(1, class_id=1, teacher_id=7, start="08:00", end="09:00")]
    kind, _ = find_conflict(existing, class_id=2, teacher_id=7, start_time="08:30", end_time="09:30")
    assert kind == "teacher"


def test_non_overlapping_rows_are_ignored():
    existing = [make(1, class_id=1, teacher_id=7, start="08:00", end="09:00")]
    assert find_conflict(existing, class_id=1, teacher_id=7, start_time="09:00", end_time="10:00") is None


def test_room_conflict_only_when_no_class_or_teacher_conflict():
    """Тест: кабинет проверяется последним и без учёта регистра"""
    existing = [
        make(1, class_id=3, teacher_id=8, start="08:00", end="09:00", room="Lab A"),
        make(2, class_id=4, teacher_id=7, start="08:15", end="08:45"),
    ]
    kind, row = find_conflict(existing, class_id=1, teacher_id=7, start_time="08:30", end_time="09:30",
                              room=" lab a")
    assert (kind, row.id) == ("teacher", 2)

    kind, row = find_conflict(existing[:1], class_id=1, teacher_id=7, start_time="08:30", end_time="09:30",
                              room="LAB A")
    assert (kind, row.id) == ("room", 1)


def test_room_ignored_when_not_given():
    existing = [make(1, class_id=3, teacher_id=8, start="08:00", end="09:00", room="101")]
    assert find_conflict(existing, class_id=1, teacher_id=7, start_time="08:30", end_time="09:30") is None
