import pytest

from school_admin.domain.entities import GradeScaleItem
from school_admin.domain.grading import (
    DEFAULT_GRADING_POLICIES,
    calculate_gpa,
    calculate_letter_grade,
    get_grade_info,
    validate_grading_scale,
)
from school_admin.infrastructure.repositories import scale_to_domain

AB_SCALE = [
    GradeScaleItem("A", 90, 100, 4.0),
    GradeScaleItem("B", 80, 89, 3.0),
]


def test_letter_grade_inside_range():
    """Тест: 85 попадает в B"""
    assert calculate_letter_grade(85, AB_SCALE) == "B"
    assert calculate_gpa(85, AB_SCALE) == 3.0


def test_score_in_gap_has_no_grade():
    """Тест: балл вне всех диапазонов не ошибка, а отсутствие оценки"""
    assert calculate_letter_grade(75, AB_SCALE) is None
    assert calculate_gpa(75, AB_SCALE) is None
    assert get_grade_info(75, AB_SCALE) == {"letter": None, "gpa": None}


@pytest.mark.parametrize("item", AB_SCALE, ids=lambda i: i.letter)
def test_range_bounds_are_inclusive(item):
    """Тест: обе границы диапазона дают его оценку"""
    for score in (item.min_value, item.max_value):
        assert calculate_letter_grade(score, AB_SCALE) == item.letter
        assert calculate_gpa(score, AB_SCALE) == item.gpa_value


def test_grade_is_deterministic():
    """Тест: повторный вызов даёт тот же результат"""
    assert [calculate_letter_grade(93, AB_SCALE) for _ in range(3)] == ["A", "A", "A"]


def test_first_matching_item_wins():
    """Тест: при совпадении берётся первый элемент в порядке объявления"""
    scale = [GradeScaleItem("X", 50, 60, 1.0), GradeScaleItem("Y", 55, 70, 2.0)]
    assert calculate_letter_grade(58, scale) == "X"


def test_valid_scale_with_gaps():
    assert validate_grading_scale(AB_SCALE) is None


@pytest.mark.parametrize(
    "scale, message",
    [
        ([], "Scale must have at least one grade"),
        ([GradeScaleItem("A", 90, 80, 4.0)], "Min value cannot be greater than max value"),
        ([GradeScaleItem("A", 90, 101, 4.0)], "Grade values must be between 0 and 100"),
        ([GradeScaleItem("F", -1, 50, 0.0)], "Grade values must be between 0 and 100"),
        (
            [GradeScaleItem("A", 85, 100, 4.0), GradeScaleItem("B", 80, 92, 3.0)],
            "Grade scale ranges must not overlap",
        ),
        (
            [GradeScaleItem("B", 80, 90, 3.0), GradeScaleItem("A", 90, 100, 4.0)],
            "Grade scale ranges must not overlap",
        ),
    ],
    ids=["empty", "inverted", "above-100", "below-0", "overlap", "shared-bound"],
)
def test_invalid_scales_rejected(scale, message):
    """Тест: некорректные шкалы отклоняются с понятной причиной"""
    assert validate_grading_scale(scale) == message


@pytest.mark.parametrize("key", sorted(DEFAULT_GRADING_POLICIES))
def test_default_templates_are_valid(key):
    """Тест: встроенные шаблоны проходят собственную валидацию"""
    scale = scale_to_domain(DEFAULT_GRADING_POLICIES[key]["scale"])
    assert validate_grading_scale(scale) is None
