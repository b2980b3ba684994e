from __future__ import annotations

import logging
from datetime import time
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from classtime.core.exceptions import ConflictError, NotFoundError
from classtime.models.classroom import Classroom
from classtime.models.course import Course, course_teachers
from classtime.models.schedule import BOOKING_CONSTRAINTS, Schedule
from classtime.services.conflicts import find_conflict, validate_slot
from classtime.services.lifecycle import require_deletable, require_restorable, revive, tombstone
from classtime.services.transactions import violates_any

logger = logging.getLogger(__name__)

BOOKING_CONFLICT_MESSAGE = "Schedule conflict: classroom is already booked at this time"
MUTABLE_FIELDS = ("course_id", "classroom_id", "day_of_week", "start_time", "end_time")


class ScheduleStore:
    """Owns the booking table.

    Every write re-checks the non-overlap invariant inside the caller's
    transaction while holding a row lock on the target classroom, so two
    racing writers for the same room serialize and the loser sees the
    winner's row. Callers commit.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def _ordered(self, statement):
        return statement.order_by(Schedule.day_of_week.asc(), Schedule.start_time.asc(), Schedule.id.asc())

    def _lock_classroom(self, classroom_id: int) -> None:
        # FOR UPDATE is a no-op on SQLite, where the engine takes the write lock at BEGIN instead.
        statement = (
            select(Classroom.id)
            .where(Classroom.id == classroom_id, Classroom.deleted_at.is_(None))
            .with_for_update()
        )
        if self.db.execute(statement).scalar_one_or_none() is None:
            raise NotFoundError("Classroom not found", details={"classroom_id": classroom_id})

    def _assert_slot_free(
        self,
        classroom_id: int,
        day_of_week: int,
        start_time: time,
        end_time: time,
        *,
        exclude_id: int | None = None,
    ) -> None:
        validate_slot(day_of_week, start_time, end_time)
        self._lock_classroom(classroom_id)
        existing = self.list_by_classroom_and_day(classroom_id, day_of_week, exclude_id=exclude_id)
        clash = find_conflict(day_of_week, start_time, end_time, existing)
        if clash is not None:
            logger.info(
                "Store rejected booking for classroom %s day %s %s-%s: overlaps schedule %s",
                classroom_id,
                day_of_week,
                start_time,
                end_time,
                clash.id,
            )
            raise ConflictError(BOOKING_CONFLICT_MESSAGE)

    def _flush(self) -> None:
        try:
            self.db.flush()
        except IntegrityError as exc:
            if not violates_any(exc, BOOKING_CONSTRAINTS):
                raise
            raise ConflictError(BOOKING_CONFLICT_MESSAGE) from exc

    def get(self, schedule_id: int, *, include_deleted: bool = False) -> Schedule | None:
        statement = (
            select(Schedule)
            .options(selectinload(Schedule.course), selectinload(Schedule.classroom))
            .where(Schedule.id == schedule_id)
        )
        if not include_deleted:
            statement = statement.where(Schedule.deleted_at.is_(None))
        return self.db.execute(statement).scalar_one_or_none()

    def list_by_classroom_and_day(
        self,
        classroom_id: int,
        day_of_week: int,
        *,
        exclude_id: int | None = None,
    ) -> list[Schedule]:
        statement = select(Schedule).where(
            Schedule.classroom_id == classroom_id,
            Schedule.day_of_week == day_of_week,
            Schedule.deleted_at.is_(None),
        )
        if exclude_id is not None:
            statement = statement.where(Schedule.id != exclude_id)
        return list(self.db.execute(self._ordered(statement)).scalars())

    def insert(self, booking: Schedule) -> int:
        self._assert_slot_free(booking.classroom_id, booking.day_of_week, booking.start_time, booking.end_time)
        self.db.add(booking)
        self._flush()
        return booking.id

    def update(self, schedule_id: int, changes: dict[str, Any]) -> Schedule:
        schedule = self.get(schedule_id)
        if schedule is None:
            raise NotFoundError("Schedule not found")

        unknown = set(changes) - set(MUTABLE_FIELDS)
        if unknown:
            raise ValueError(f"Unsupported schedule fields: {', '.join(sorted(unknown))}")

        merged = {field: changes.get(field, getattr(schedule, field)) for field in MUTABLE_FIELDS}
        self._assert_slot_free(
            merged["classroom_id"],
            merged["day_of_week"],
            merged["start_time"],
            merged["end_time"],
            exclude_id=schedule.id,
        )

        for field, value in changes.items():
            setattr(schedule, field, value)
        self._flush()
        return schedule

    def soft_delete(self, schedule_id: int) -> None:
        schedule = require_deletable(self.get(schedule_id, include_deleted=True), "Schedule", schedule_id)
        tombstone(schedule)
        self._flush()

    def restore(self, schedule_id: int) -> Schedule:
        schedule = require_restorable(self.get(schedule_id, include_deleted=True), "Schedule", schedule_id)
        # The slot may have been booked while this one was tombstoned.
        self._assert_slot_free(
            schedule.classroom_id,
            schedule.day_of_week,
            schedule.start_time,
            schedule.end_time,
            exclude_id=schedule.id,
        )
        revive(schedule)
        self._flush()
        return schedule

    def list_by_course(self, course_id: str) -> list[Schedule]:
        statement = (
            select(Schedule)
            .options(selectinload(Schedule.course), selectinload(Schedule.classroom))
            .where(Schedule.course_id == course_id, Schedule.deleted_at.is_(None))
        )
        return list(self.db.execute(self._ordered(statement)).scalars())

    def list_by_classroom(self, classroom_id: int) -> list[Schedule]:
        statement = (
            select(Schedule)
            .options(selectinload(Schedule.course), selectinload(Schedule.classroom))
            .where(Schedule.classroom_id == classroom_id, Schedule.deleted_at.is_(None))
        )
        return list(self.db.execute(self._ordered(statement)).scalars())

    def list_for_day(self, day_of_week: int, *, classroom_id: int | None = None) -> list[Schedule]:
        statement = (
            select(Schedule)
            .options(selectinload(Schedule.course), selectinload(Schedule.classroom))
            .where(Schedule.day_of_week == day_of_week, Schedule.deleted_at.is_(None))
        )
        if classroom_id is not None:
            statement = statement.where(Schedule.classroom_id == classroom_id)
        return list(self.db.execute(self._ordered(statement)).scalars())

    def list_page(self, *, page: int, limit: int, teacher_id: str | None = None) -> tuple[list[Schedule], int]:
        filtered = select(Schedule.id).where(Schedule.deleted_at.is_(None))
        if teacher_id is not None:
            filtered = (
                filtered.join(Course, Course.id == Schedule.course_id)
                .join(course_teachers, course_teachers.c.course_id == Course.id)
                .where(course_teachers.c.user_id == teacher_id)
            )
        total = self.db.execute(select(func.count()).select_from(filtered.subquery())).scalar_one()

        statement = (
            select(Schedule)
            .options(selectinload(Schedule.course), selectinload(Schedule.classroom))
            .where(Schedule.id.in_(filtered))
        )
        statement = self._ordered(statement).offset((page - 1) * limit).limit(limit)
        return list(self.db.execute(statement).scalars()), total

    def has_active_for_classroom(self, classroom_id: int) -> bool:
        statement = (
            select(Schedule.id)
            .where(Schedule.classroom_id == classroom_id, Schedule.deleted_at.is_(None))
            .limit(1)
        )
        return self.db.execute(statement).first() is not None
