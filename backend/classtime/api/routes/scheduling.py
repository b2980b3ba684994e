from datetime import date

from fastapi import APIRouter, Depends, Query, status

from classtime.api.deps import READ_ROLES, get_timetable_service, require_roles
from classtime.core.config import get_settings
from classtime.models.user import User, UserRole
from classtime.schemas.common import PageMeta
from classtime.schemas.schedule import ScheduleCreate, ScheduleOut, SchedulePage, ScheduleUpdate
from classtime.services.timetable import TimetableService

router = APIRouter()

settings = get_settings()


@router.post("/", response_model=ScheduleOut, status_code=status.HTTP_201_CREATED)
def create_schedule(
    payload: ScheduleCreate,
    current_user: User = Depends(require_roles(UserRole.admin)),
    service: TimetableService = Depends(get_timetable_service),
) -> ScheduleOut:
    return service.create_schedule(payload, actor=current_user)


@router.get("/", response_model=SchedulePage)
def list_schedules(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=settings.default_page_size, ge=1, le=settings.max_page_size),
    teacher_id: str | None = Query(default=None, max_length=36),
    current_user: User = Depends(require_roles(*READ_ROLES)),
    service: TimetableService = Depends(get_timetable_service),
) -> SchedulePage:
    items, total = service.list_schedules(page=page, limit=limit, teacher_id=teacher_id)
    return SchedulePage(
        data=[ScheduleOut.model_validate(item) for item in items],
        meta=PageMeta.build(total=total, page=page, limit=limit),
    )


@router.get("/today", response_model=list[ScheduleOut])
def list_todays_schedules(
    on: date | None = Query(default=None),
    classroom_id: int | None = Query(default=None, ge=1),
    current_user: User = Depends(require_roles(*READ_ROLES)),
    service: TimetableService = Depends(get_timetable_service),
) -> list[ScheduleOut]:
    return service.list_for_date(on or date.today(), classroom_id=classroom_id)


@router.get("/course/{course_id}", response_model=list[ScheduleOut])
def list_course_schedules(
    course_id: str,
    current_user: User = Depends(require_roles(*READ_ROLES)),
    service: TimetableService = Depends(get_timetable_service),
) -> list[ScheduleOut]:
    return service.list_by_course(course_id)


@router.get("/classroom/{classroom_id}", response_model=list[ScheduleOut])
def list_classroom_schedules(
    classroom_id: int,
    current_user: User = Depends(require_roles(*READ_ROLES)),
    service: TimetableService = Depends(get_timetable_service),
) -> list[ScheduleOut]:
    return service.list_by_classroom(classroom_id)


@router.get("/{schedule_id}", response_model=ScheduleOut)
def get_schedule(
    schedule_id: int,
    current_user: User = Depends(require_roles(*READ_ROLES)),
    service: TimetableService = Depends(get_timetable_service),
) -> ScheduleOut:
    return service.get_schedule(schedule_id)


@router.patch("/{schedule_id}", response_model=ScheduleOut)
def update_schedule(
    schedule_id: int,
    payload: ScheduleUpdate,
    current_user: User = Depends(require_roles(UserRole.admin)),
    service: TimetableService = Depends(get_timetable_service),
) -> ScheduleOut:
    return service.update_schedule(schedule_id, payload, actor=current_user)


@router.delete("/{schedule_id}")
def delete_schedule(
    schedule_id: int,
    current_user: User = Depends(require_roles(UserRole.admin)),
    service: TimetableService = Depends(get_timetable_service),
) -> dict:
    service.delete_schedule(schedule_id, actor=current_user)
    return {"deleted": True}


@router.patch("/{schedule_id}/restore", response_model=ScheduleOut)
def restore_schedule(
    schedule_id: int,
    current_user: User = Depends(require_roles(UserRole.admin)),
    service: TimetableService = Depends(get_timetable_service),
) -> ScheduleOut:
    return service.restore_schedule(schedule_id, actor=current_user)
