"""Шкалы оценивания: перевод балла в буквенную оценку и GPA."""
from typing import Iterable, Sequence

from .entities import GradeScaleItem

MIN_SCORE = 0
MAX_SCORE = 100


def _find_item(score: float, scale: Iterable[GradeScaleItem]) -> GradeScaleItem | None:
    # берём первый подходящий диапазон в порядке объявления
    for item in scale:
        if item.contains(score):
            return item
    return None


def calculate_letter_grade(score: float, scale: Iterable[GradeScaleItem]) -> str | None:
    item = _find_item(score, scale)
    return item.letter if item else None


def calculate_gpa(score: float, scale: Iterable[GradeScaleItem]) -> float | None:
    item = _find_item(score, scale)
    return item.gpa_value if item else None


def get_grade_info(score: float, scale: Sequence[GradeScaleItem]) -> dict:
    return {
        "letter": calculate_letter_grade(score, scale),
        "gpa": calculate_gpa(score, scale),
    }


def validate_grading_scale(scale: Sequence[GradeScaleItem]) -> str | None:
    """Возвращает текст ошибки или None, если шкала корректна.

    Пропуски между диапазонами допустимы, пересечения нет.
    """
    if not scale:
        return "Scale must have at least one grade"

    for item in scale:
        values = (item.min_value, item.max_value)
        if any(v < MIN_SCORE or v > MAX_SCORE for v in values):
            return "Grade values must be between 0 and 100"
        if item.min_value > item.max_value:
            return "Min value cannot be greater than max value"

    ordered = sorted(scale, key=lambda i: i.min_value, reverse=True)
    for upper, lower in zip(ordered, ordered[1:]):
        if upper.min_value <= lower.max_value:
            return "Grade scale ranges must not overlap"
    return None


def _scale(*rows):
    return [
        {"letter": letter, "min_value": lo, "max_value": hi, "gpa_value": gpa}
        for letter, lo, hi, gpa in rows
    ]


# Шаблоны для первичной настройки школы
DEFAULT_GRADING_POLICIES = {
    "STANDARD_LETTER": {
        "name": "Standard Letter Grades (A-F)",
        "type": "LETTER",
        "scale": _scale(
            ("A", 90, 100, 4.0),
            ("B", 80, 89, 3.0),
            ("C", 70, 79, 2.0),
            ("D", 60, 69, 1.0),
            ("F", 0, 59, 0.0),
        ),
    },
    "PLUS_MINUS": {
        "name": "Letter Grades with Plus/Minus",
        "type": "LETTER",
        "scale": _scale(
            ("A+", 97, 100, 4.0),
            ("A", 93, 96, 4.0),
            ("A-", 90, 92, 3.7),
            ("B+", 87, 89, 3.3),
            ("B", 83, 86, 3.0),
            ("B-", 80, 82, 2.7),
            ("C+", 77, 79, 2.3),
            ("C", 73, 76, 2.0),
            ("C-", 70, 72, 1.7),
            ("D+", 67, 69, 1.3),
            ("D", 63, 66, 1.0),
            ("D-", 60, 62, 0.7),
            ("F", 0, 59, 0.0),
        ),
    },
    "LENIENT": {
        "name": "Lenient Grading (85+ is A)",
        "type": "LETTER",
        "scale": _scale(
            ("A", 85, 100, 4.0),
            ("B", 75, 84, 3.0),
            ("C", 65, 74, 2.0),
            ("D", 55, 64, 1.0),
            ("F", 0, 54, 0.0),
        ),
    },
    "STRICT": {
        "name": "Strict Grading (93+ is A)",
        "type": "LETTER",
        "scale": _scale(
            ("A", 93, 100, 4.0),
            ("B", 85, 92, 3.0),
            ("C", 77, 84, 2.0),
            ("D", 70, 76, 1.0),
            ("F", 0, 69, 0.0),
        ),
    },
    "PASS_FAIL": {
        "name": "Pass/Fail (70+ is Pass)",
        "type": "LETTER",
        "scale": _scale(
            ("Pass", 70, 100, 4.0),
            ("Fail", 0, 69, 0.0),
        ),
    },
}
