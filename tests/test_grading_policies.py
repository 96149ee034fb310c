from school_admin.domain.errors import ErrorCode
from school_admin.domain.grading import DEFAULT_GRADING_POLICIES

AB_POLICY = {
    "name": "A/B only",
    "scale": [
        {"letter": "A", "min_value": 90, "max_value": 100, "gpa_value": 4.0},
        {"letter": "B", "min_value": 80, "max_value": 89, "gpa_value": 3.0},
    ],
}


def test_create_policy_and_grade(policy_service):
    """Тест: политика {A:90-100, B:80-89} даёт B за 85 и ничего за 75"""
    created = policy_service.create_policy(AB_POLICY)
    assert created.success
    policy_id = created.value.id

    assert policy_service.grade_for_policy(policy_id, 85).value == {"letter": "B", "gpa": 3.0}
    assert policy_service.grade_for_policy(policy_id, 75).value == {"letter": None, "gpa": None}


def test_grade_score_bounds(policy_service):
    policy_id = policy_service.create_policy(AB_POLICY).value.id
    assert policy_service.grade_for_policy(policy_id, 101).code == ErrorCode.VALIDATION_ERROR
    assert policy_service.grade_for_policy(404, 50).code == ErrorCode.POLICY_NOT_FOUND


def test_overlapping_scale_rejected(policy_service):
    result = policy_service.create_policy({
        "name": "Broken",
        "scale": [
            {"letter": "A", "min_value": 85, "max_value": 100, "gpa_value": 4.0},
            {"letter": "B", "min_value": 80, "max_value": 92, "gpa_value": 3.0},
        ],
    })
    assert result.code == ErrorCode.INVALID_GRADING_SCALE
    assert result.error == "Grade scale ranges must not overlap"


def test_item_shape_validated(policy_service):
    result = policy_service.create_policy({
        "name": "Too generous",
        "scale": [{"letter": "A", "min_value": 0, "max_value": 100, "gpa_value": 5.0}],
    })
    assert result.code == ErrorCode.VALIDATION_ERROR


def test_update_revalidates_scale(policy_service):
    policy_id = policy_service.create_policy(AB_POLICY).value.id

    bad = policy_service.update_policy(policy_id, {"scale": []})
    assert bad.code == ErrorCode.INVALID_GRADING_SCALE

    renamed = policy_service.update_policy(policy_id, {"name": "Renamed"})
    assert renamed.value.name == "Renamed"
    assert len(renamed.value.scale) == 2


def test_policy_in_use_cannot_be_deleted(factory, policy_service):
    """Тест: политику, назначенную классу, удалить нельзя"""
    policy_id = policy_service.create_policy(AB_POLICY).value.id
    factory.cohort(policy_id=policy_id)

    result = policy_service.delete_policy(policy_id)

    assert result.code == ErrorCode.POLICY_IN_USE
    assert result.error == "Cannot delete grading policy that is assigned to 1 class(es)"
    assert policy_service.get_policy(policy_id).value.class_count == 1


def test_delete_unused_policy(policy_service):
    policy_id = policy_service.create_policy(AB_POLICY).value.id
    assert policy_service.delete_policy(policy_id).success
    assert policy_service.get_policy(policy_id).code == ErrorCode.POLICY_NOT_FOUND


def test_default_policies_created_once(policy_service):
    first = policy_service.create_default_policies().value
    assert [r.template for r in first] == list(DEFAULT_GRADING_POLICIES)
    assert all(r.success for r in first)

    second = policy_service.create_default_policies().value
    assert all(r.code == ErrorCode.POLICY_EXISTS for r in second)
    assert len(policy_service.list_policies().value) == len(DEFAULT_GRADING_POLICIES)
