import re

from .entities import Schedule

# HH:MM, 24-часовой формат с ведущими нулями: строки сравниваются лексикографически
TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"
_TIME_RE = re.compile(TIME_PATTERN)


def is_valid_time(value: str) -> bool:
    return bool(_TIME_RE.match(value))


def is_valid_time_range(start: str, end: str) -> bool:
    return start < end


def intervals_overlap(start: str, end: str, ex_start: str, ex_end: str) -> bool:
    """Пересечение интервалов [start, end) и [ex_start, ex_end).

    Стык 08:00-09:00 / 09:00-10:00 пересечением не считается.
    """
    return (
        (start >= ex_start and start < ex_end)
        or (end > ex_start and end <= ex_end)
        or (start <= ex_start and end >= ex_end)
    )


def normalize_room(room: str | None) -> str | None:
    if room is None:
        return None
    room = room.strip()
    return room.lower() if room else None


def find_conflict(
    candidates: list[Schedule],
    *,
    class_id: int,
    teacher_id: int,
    start_time: str,
    end_time: str,
    room: str | None = None,
) -> tuple[str, Schedule] | None:
    """Ищет первое пересечение среди расписаний того же дня.

    Возвращает пару (вид конфликта, существующее расписание); вид одно из
    "class", "teacher", "room". Конфликт класса важнее конфликта учителя,
    тот важнее конфликта кабинета.
    """
    room_key = normalize_room(room)
    room_hit = None
    for existing in candidates:
        if not intervals_overlap(start_time, end_time, existing.start_time, existing.end_time):
            continue
        if existing.class_id == class_id:
            return "class", existing
        if existing.teacher_id == teacher_id:
            return "teacher", existing
        if room_key and room_hit is None and normalize_room(existing.room) == room_key:
            room_hit = existing
    if room_hit is not None:
        return "room", room_hit
    return None
