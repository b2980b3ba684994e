from fastapi import APIRouter, Depends, Query, status

from classtime.api.deps import READ_ROLES, get_classroom_registry, require_roles
from classtime.core.config import get_settings
from classtime.models.user import User, UserRole
from classtime.schemas.classroom import ClassroomCreate, ClassroomOut, ClassroomPage, ClassroomUpdate
from classtime.schemas.common import PageMeta
from classtime.services.classroom_registry import ClassroomRegistry

router = APIRouter()

settings = get_settings()


@router.get("/", response_model=ClassroomPage)
def list_classrooms(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=settings.default_page_size, ge=1, le=settings.max_page_size),
    current_user: User = Depends(require_roles(*READ_ROLES)),
    registry: ClassroomRegistry = Depends(get_classroom_registry),
) -> ClassroomPage:
    items, total = registry.list_page(page=page, limit=limit)
    return ClassroomPage(
        data=[ClassroomOut.model_validate(item) for item in items],
        meta=PageMeta.build(total=total, page=page, limit=limit),
    )


@router.post("/", response_model=ClassroomOut, status_code=status.HTTP_201_CREATED)
def create_classroom(
    payload: ClassroomCreate,
    current_user: User = Depends(require_roles(UserRole.admin)),
    registry: ClassroomRegistry = Depends(get_classroom_registry),
) -> ClassroomOut:
    return registry.create(payload, actor=current_user)


@router.get("/{classroom_id}", response_model=ClassroomOut)
def get_classroom(
    classroom_id: int,
    current_user: User = Depends(require_roles(*READ_ROLES)),
    registry: ClassroomRegistry = Depends(get_classroom_registry),
) -> ClassroomOut:
    return registry.require(classroom_id)


@router.patch("/{classroom_id}", response_model=ClassroomOut)
def update_classroom(
    classroom_id: int,
    payload: ClassroomUpdate,
    current_user: User = Depends(require_roles(UserRole.admin)),
    registry: ClassroomRegistry = Depends(get_classroom_registry),
) -> ClassroomOut:
    return registry.update(classroom_id, payload, actor=current_user)


@router.delete("/{classroom_id}")
def delete_classroom(
    classroom_id: int,
    current_user: User = Depends(require_roles(UserRole.admin)),
    registry: ClassroomRegistry = Depends(get_classroom_registry),
) -> dict:
    registry.remove(classroom_id, actor=current_user)
    return {"deleted": True}


@router.patch("/{classroom_id}/restore", response_model=ClassroomOut)
def restore_classroom(
    classroom_id: int,
    current_user: User = Depends(require_roles(UserRole.admin)),
    registry: ClassroomRegistry = Depends(get_classroom_registry),
) -> ClassroomOut:
    return registry.restore(classroom_id, actor=current_user)
