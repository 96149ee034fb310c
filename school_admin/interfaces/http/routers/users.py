from fastapi import APIRouter, Depends, Query, status

from ....application.dto import CreateUserInput, UpdateUserInput
from ....application.use_cases.users import UserService
from ....domain.entities import Role
from ..authz import require_admin
from ..deps import get_user_service
from ..results import unwrap
from ..schemas import UserOut

# справочник пользователей целиком доступен только администратору
router = APIRouter(prefix="/api/users", tags=["users"], dependencies=[Depends(require_admin)])


@router.get("", response_model=list[UserOut])
def list_users(role: Role | None = Query(None),
               active: bool | None = Query(None),
               service: UserService = Depends(get_user_service)):
    return unwrap(service.list_users(role=role.value if role else None, active=active))


@router.get("/{user_id}", response_model=UserOut)
def get_user(user_id: int, service: UserService = Depends(get_user_service)):
    return unwrap(service.get_user(user_id))


@router.post("", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def create_user(payload: CreateUserInput, service: UserService = Depends(get_user_service)):
    return unwrap(service.create_user(payload))


@router.put("/{user_id}", response_model=UserOut)
def update_user(user_id: int, payload: UpdateUserInput, service: UserService = Depends(get_user_service)):
    return unwrap(service.update_user(user_id, payload))


@router.post("/{user_id}/activate", response_model=UserOut)
def activate_user(user_id: int, service: UserService = Depends(get_user_service)):
    return unwrap(service.set_active(user_id, True))


@router.post("/{user_id}/deactivate", response_model=UserOut)
def deactivate_user(user_id: int, service: UserService = Depends(get_user_service)):
    return unwrap(service.set_active(user_id, False))
