from __future__ import annotations

import logging
from datetime import date, time

from sqlalchemy.orm import Session

from classtime.core.exceptions import ConflictError, NotFoundError, ValidationError
from classtime.models.schedule import BOOKING_CONSTRAINTS, Schedule
from classtime.models.user import User
from classtime.schemas.schedule import DAY_NAMES, ScheduleCreate, ScheduleUpdate
from classtime.services.audit import log_activity
from classtime.services.classroom_registry import ClassroomRegistry
from classtime.services.conflicts import find_conflict, validate_slot
from classtime.services.courses import require_course
from classtime.services.lifecycle import require_restorable
from classtime.services.schedule_store import BOOKING_CONFLICT_MESSAGE, ScheduleStore
from classtime.services.transactions import unit_of_work

logger = logging.getLogger(__name__)


def weekday_index(day: date) -> int:
    """Weekday of ``day`` with Sunday as 0, matching ``Schedule.day_of_week``."""
    return day.isoweekday() % 7


class TimetableService:
    """Coordinates booking requests.

    A create/update moves through validation (course and classroom must be
    live), a pre-commit conflict check against the room's bookings for that
    day, and the store write, which repeats the check under a classroom lock.
    The service keeps no state of its own.
    """

    def __init__(self, db: Session) -> None:
        self.db = db
        self.store = ScheduleStore(db)
        self.classrooms = ClassroomRegistry(db, self.store)

    def _transaction(self):
        return unit_of_work(self.db, conflict_message=BOOKING_CONFLICT_MESSAGE, constraints=BOOKING_CONSTRAINTS)

    def _check_conflict(
        self,
        classroom_id: int,
        day_of_week: int,
        start_time: time,
        end_time: time,
        *,
        exclude_id: int | None = None,
    ) -> None:
        existing = self.store.list_by_classroom_and_day(classroom_id, day_of_week, exclude_id=exclude_id)
        clash = find_conflict(day_of_week, start_time, end_time, existing, exclude_id=exclude_id)
        if clash is None:
            return
        logger.info(
            "Rejected booking in classroom %s on %s %s-%s: overlaps schedule %s",
            classroom_id,
            DAY_NAMES[day_of_week],
            start_time,
            end_time,
            clash.id,
        )
        raise ConflictError(BOOKING_CONFLICT_MESSAGE)

    def get_schedule(self, schedule_id: int) -> Schedule:
        schedule = self.store.get(schedule_id)
        if schedule is None:
            raise NotFoundError("Schedule not found", details={"schedule_id": schedule_id})
        return schedule

    def create_schedule(self, payload: ScheduleCreate, *, actor: User | None = None) -> Schedule:
        validate_slot(payload.day_of_week, payload.start_time, payload.end_time)
        with self._transaction():
            require_course(self.db, payload.course_id)
            self.classrooms.require(payload.classroom_id)
            self._check_conflict(payload.classroom_id, payload.day_of_week, payload.start_time, payload.end_time)
            schedule_id = self.store.insert(
                Schedule(
                    course_id=payload.course_id,
                    classroom_id=payload.classroom_id,
                    day_of_week=payload.day_of_week,
                    start_time=payload.start_time,
                    end_time=payload.end_time,
                )
            )
            log_activity(
                self.db,
                user=actor,
                action="schedule.create",
                entity_type="schedule",
                entity_id=schedule_id,
                details={
                    "classroom_id": payload.classroom_id,
                    "day_of_week": payload.day_of_week,
                    "start_time": payload.start_time.isoformat(),
                    "end_time": payload.end_time.isoformat(),
                },
            )
        logger.info(
            "Booked classroom %s for course %s on %s %s-%s (schedule %s)",
            payload.classroom_id,
            payload.course_id,
            DAY_NAMES[payload.day_of_week],
            payload.start_time,
            payload.end_time,
            schedule_id,
        )
        return self.get_schedule(schedule_id)

    def update_schedule(self, schedule_id: int, payload: ScheduleUpdate, *, actor: User | None = None) -> Schedule:
        # Omitted and null fields both keep the stored value.
        changes = {key: value for key, value in payload.model_dump(exclude_unset=True).items() if value is not None}
        if "start_time" in changes and "end_time" in changes and changes["end_time"] <= changes["start_time"]:
            raise ValidationError("end_time must be after start_time")

        with self._transaction():
            schedule = self.get_schedule(schedule_id)
            course_id = changes.get("course_id", schedule.course_id)
            classroom_id = changes.get("classroom_id", schedule.classroom_id)
            day_of_week = changes.get("day_of_week", schedule.day_of_week)
            start_time = changes.get("start_time", schedule.start_time)
            end_time = changes.get("end_time", schedule.end_time)

            validate_slot(day_of_week, start_time, end_time)
            require_course(self.db, course_id)
            self.classrooms.require(classroom_id)
            self._check_conflict(classroom_id, day_of_week, start_time, end_time, exclude_id=schedule_id)
            self.store.update(schedule_id, changes)
            if changes:
                log_activity(
                    self.db,
                    user=actor,
                    action="schedule.update",
                    entity_type="schedule",
                    entity_id=schedule_id,
                    details={"fields": sorted(changes)},
                )
        logger.info("Updated schedule %s (%s)", schedule_id, ", ".join(sorted(changes)) or "no changes")
        return self.get_schedule(schedule_id)

    def delete_schedule(self, schedule_id: int, *, actor: User | None = None) -> None:
        with self._transaction():
            self.store.soft_delete(schedule_id)
            log_activity(self.db, user=actor, action="schedule.delete", entity_type="schedule", entity_id=schedule_id)
        logger.info("Soft-deleted schedule %s", schedule_id)

    def restore_schedule(self, schedule_id: int, *, actor: User | None = None) -> Schedule:
        with self._transaction():
            schedule = require_restorable(self.store.get(schedule_id, include_deleted=True), "Schedule", schedule_id)
            require_course(self.db, schedule.course_id)
            self.classrooms.require(schedule.classroom_id)
            self.store.restore(schedule_id)
            log_activity(self.db, user=actor, action="schedule.restore", entity_type="schedule", entity_id=schedule_id)
        logger.info("Restored schedule %s", schedule_id)
        return self.get_schedule(schedule_id)

    def list_schedules(self, *, page: int, limit: int, teacher_id: str | None = None) -> tuple[list[Schedule], int]:
        return self.store.list_page(page=page, limit=limit, teacher_id=teacher_id)

    def list_by_course(self, course_id: str) -> list[Schedule]:
        return self.store.list_by_course(course_id)

    def list_by_classroom(self, classroom_id: int) -> list[Schedule]:
        return self.store.list_by_classroom(classroom_id)

    def list_for_date(self, day: date, *, classroom_id: int | None = None) -> list[Schedule]:
        return self.store.list_for_day(weekday_index(day), classroom_id=classroom_id)
