from dataclasses import dataclass

import structlog

from ...domain.entities import GradingPolicy
from ...domain.errors import DomainError, ErrorCode
from ...domain.grading import DEFAULT_GRADING_POLICIES, get_grade_info, validate_grading_scale
from ..dto import CreateGradingPolicyInput, OperationResult, UpdateGradingPolicyInput
from ..ports import IGradingPolicyRepository
from .base import UseCase

logger = structlog.get_logger(__name__)


@dataclass
class TemplateResult:
    template: str
    success: bool
    error: str | None = None
    code: ErrorCode | None = None
    policy: GradingPolicy | None = None


class GradingPolicyService(UseCase):
    def __init__(self, repo: IGradingPolicyRepository):
        super().__init__(repo)
        self.repo = repo

    def _require(self, policy_id: int) -> GradingPolicy:
        policy = self.repo.get(policy_id)
        if policy is None:
            raise DomainError(ErrorCode.POLICY_NOT_FOUND, "Grading policy not found")
        return policy

    @staticmethod
    def _check_scale(scale):
        items = [item.to_domain() for item in scale]
        error = validate_grading_scale(items)
        if error:
            raise DomainError(ErrorCode.INVALID_GRADING_SCALE, error)
        return items

    def create_policy(self, data) -> OperationResult:
        def action():
            payload = self._parse(CreateGradingPolicyInput, data)
            scale = self._check_scale(payload.scale)
            policy = self.repo.create(payload.name, payload.type.value, scale)
            logger.info("grading_policy_created", policy_id=policy.id, name=policy.name)
            return policy
        return self._run("create_grading_policy", action, "creating the grading policy")

    def update_policy(self, policy_id: int, data) -> OperationResult:
        def action():
            payload = self._parse(UpdateGradingPolicyInput, data)
            self._require(policy_id)
            fields = {}
            if payload.name is not None:
                fields["name"] = payload.name
            if payload.type is not None:
                fields["type"] = payload.type.value
            if payload.scale is not None:
                fields["scale"] = self._check_scale(payload.scale)
            policy = self.repo.update(policy_id, **fields)
            logger.info("grading_policy_updated", policy_id=policy_id, fields=sorted(fields))
            return policy
        return self._run("update_grading_policy", action, "updating the grading policy")

    def delete_policy(self, policy_id: int) -> OperationResult:
        def action():
            self._require(policy_id)
            in_use = self.repo.count_classes(policy_id)
            if in_use > 0:
                raise DomainError(
                    ErrorCode.POLICY_IN_USE,
                    f"Cannot delete grading policy that is assigned to {in_use} class(es)",
                )
            self.repo.delete(policy_id)
            logger.info("grading_policy_deleted", policy_id=policy_id)
        return self._run("delete_grading_policy", action, "deleting the grading policy")

    def get_policy(self, policy_id: int) -> OperationResult:
        return self._run("get_grading_policy", lambda: self._require(policy_id),
                         "fetching the grading policy")

    def list_policies(self) -> OperationResult:
        return self._run("list_grading_policies", self.repo.list, "fetching grading policies")

    def grade_for_policy(self, policy_id: int, score: float) -> OperationResult:
        """Буква и GPA для балла по сохранённой политике."""
        def action():
            if score < 0 or score > 100:
                raise DomainError(ErrorCode.VALIDATION_ERROR, "Score must be between 0 and 100")
            policy = self._require(policy_id)
            return get_grade_info(score, policy.scale)
        return self._run("grade_for_policy", action, "calculating the grade")

    def create_default_policies(self) -> OperationResult:
        def action():
            results = []
            for key, template in DEFAULT_GRADING_POLICIES.items():
                if self.repo.get_by_name(template["name"]) is not None:
                    results.append(TemplateResult(key, False, "Policy already exists", ErrorCode.POLICY_EXISTS))
                    continue
                created = self.create_policy(template)
                results.append(TemplateResult(key, created.success, created.error, created.code, created.value))
            return results
        return self._run("create_default_grading_policies", action, "creating default grading policies")

    @staticmethod
    def templates() -> dict:
        return DEFAULT_GRADING_POLICIES
