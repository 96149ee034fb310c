from fastapi import APIRouter, Depends, Query, Response, status

from ....application.dto import CreateGradingPolicyInput, UpdateGradingPolicyInput
from ....application.use_cases.grading_policies import GradingPolicyService
from ....infrastructure.cache import cache_key, delete_cache_pattern, get_cache, set_cache
from ....infrastructure.metrics import cache_hits_total, cache_misses_total
from ..authz import get_claims, require_admin
from ..deps import get_policy_service
from ..results import unwrap
from ..schemas import GradeOut, GradingPolicyOut, TemplateResultOut

router = APIRouter(prefix="/api/grading-policies", tags=["grading-policies"])

LIST_KEY = cache_key("grading-policies", "list")


def invalidate_policies_cache():
    delete_cache_pattern(LIST_KEY)


@router.get("", response_model=list[GradingPolicyOut], dependencies=[Depends(get_claims)])
def list_policies(service: GradingPolicyService = Depends(get_policy_service)):
    # Кэширование списка политик
    cached = get_cache(LIST_KEY)
    if cached is not None:
        cache_hits_total.inc()
        return cached

    cache_misses_total.inc()
    result = [GradingPolicyOut.model_validate(p) for p in unwrap(service.list_policies())]
    set_cache(LIST_KEY, [r.model_dump(mode="json") for r in result])
    return result


@router.get("/templates", dependencies=[Depends(get_claims)])
def list_templates():
    return GradingPolicyService.templates()


@router.post("/defaults", response_model=list[TemplateResultOut], dependencies=[Depends(require_admin)])
def create_default_policies(service: GradingPolicyService = Depends(get_policy_service)):
    results = unwrap(service.create_default_policies())
    invalidate_policies_cache()
    return results


@router.get("/{policy_id}", response_model=GradingPolicyOut, dependencies=[Depends(get_claims)])
def get_policy(policy_id: int, service: GradingPolicyService = Depends(get_policy_service)):
    return unwrap(service.get_policy(policy_id))


@router.get("/{policy_id}/grade", response_model=GradeOut, dependencies=[Depends(get_claims)])
def grade(policy_id: int, score: float = Query(...),
          service: GradingPolicyService = Depends(get_policy_service)):
    return unwrap(service.grade_for_policy(policy_id, score))


# --- Admin-only CRUD:

@router.post("", response_model=GradingPolicyOut, status_code=status.HTTP_201_CREATED,
             dependencies=[Depends(require_admin)])
def create_policy(payload: CreateGradingPolicyInput,
                  service: GradingPolicyService = Depends(get_policy_service)):
    policy = unwrap(service.create_policy(payload))
    invalidate_policies_cache()
    return policy


@router.put("/{policy_id}", response_model=GradingPolicyOut, dependencies=[Depends(require_admin)])
def update_policy(policy_id: int, payload: UpdateGradingPolicyInput,
                  service: GradingPolicyService = Depends(get_policy_service)):
    policy = unwrap(service.update_policy(policy_id, payload))
    invalidate_policies_cache()
    return policy


@router.delete("/{policy_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(require_admin)])
def delete_policy(policy_id: int, service: GradingPolicyService = Depends(get_policy_service)):
    unwrap(service.delete_policy(policy_id))
    invalidate_policies_cache()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
