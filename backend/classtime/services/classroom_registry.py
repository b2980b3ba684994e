from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from classtime.core.exceptions import ConflictError, NotFoundError
from classtime.models.classroom import ROOM_LABEL_CONSTRAINTS, Classroom
from classtime.models.user import User
from classtime.schemas.classroom import ClassroomCreate, ClassroomUpdate
from classtime.services.audit import log_activity
from classtime.services.lifecycle import require_deletable, require_restorable, revive, tombstone
from classtime.services.schedule_store import ScheduleStore
from classtime.services.transactions import unit_of_work

logger = logging.getLogger(__name__)

ROOM_LABEL_CONFLICT_MESSAGE = "Room label already exists"
# Columns that may not be cleared through a partial update.
REQUIRED_FIELDS = {"room_label", "capacity", "type"}


class ClassroomRegistry:
    def __init__(self, db: Session, schedules: ScheduleStore | None = None) -> None:
        self.db = db
        self.schedules = schedules or ScheduleStore(db)

    def _transaction(self):
        return unit_of_work(self.db, conflict_message=ROOM_LABEL_CONFLICT_MESSAGE, constraints=ROOM_LABEL_CONSTRAINTS)

    def _label_taken(self, room_label: str, *, exclude_id: int | None = None) -> bool:
        statement = select(Classroom.id).where(
            Classroom.room_label == room_label,
            Classroom.deleted_at.is_(None),
        )
        if exclude_id is not None:
            statement = statement.where(Classroom.id != exclude_id)
        return self.db.execute(statement.limit(1)).first() is not None

    def get(self, classroom_id: int, *, include_deleted: bool = False, for_update: bool = False) -> Classroom | None:
        statement = select(Classroom).where(Classroom.id == classroom_id)
        if not include_deleted:
            statement = statement.where(Classroom.deleted_at.is_(None))
        if for_update:
            statement = statement.with_for_update()
        return self.db.execute(statement).scalar_one_or_none()

    def require(self, classroom_id: int) -> Classroom:
        classroom = self.get(classroom_id)
        if classroom is None:
            raise NotFoundError("Classroom not found", details={"classroom_id": classroom_id})
        return classroom

    def list_page(self, *, page: int, limit: int) -> tuple[list[Classroom], int]:
        active = Classroom.deleted_at.is_(None)
        total = self.db.execute(select(func.count(Classroom.id)).where(active)).scalar_one()
        statement = (
            select(Classroom)
            .where(active)
            .order_by(Classroom.room_label.asc(), Classroom.id.asc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list(self.db.execute(statement).scalars()), total

    def create(self, payload: ClassroomCreate, *, actor: User | None = None) -> Classroom:
        with self._transaction():
            if self._label_taken(payload.room_label):
                raise ConflictError(ROOM_LABEL_CONFLICT_MESSAGE)
            classroom = Classroom(**payload.model_dump())
            self.db.add(classroom)
            self.db.flush()
            log_activity(
                self.db,
                user=actor,
                action="classroom.create",
                entity_type="classroom",
                entity_id=classroom.id,
                details={"room_label": classroom.room_label},
            )
        logger.info("Created classroom %s (%s)", classroom.id, classroom.room_label)
        self.db.refresh(classroom)
        return classroom

    def update(self, classroom_id: int, payload: ClassroomUpdate, *, actor: User | None = None) -> Classroom:
        data = {
            key: value
            for key, value in payload.model_dump(exclude_unset=True).items()
            if value is not None or key not in REQUIRED_FIELDS
        }
        with self._transaction():
            classroom = self.require(classroom_id)
            if "room_label" in data and data["room_label"] != classroom.room_label:
                if self._label_taken(data["room_label"], exclude_id=classroom_id):
                    raise ConflictError(ROOM_LABEL_CONFLICT_MESSAGE)
            for key, value in data.items():
                setattr(classroom, key, value)
            if data:
                log_activity(
                    self.db,
                    user=actor,
                    action="classroom.update",
                    entity_type="classroom",
                    entity_id=classroom_id,
                    details={"fields": sorted(data)},
                )
        self.db.refresh(classroom)
        return classroom

    def remove(self, classroom_id: int, *, actor: User | None = None) -> None:
        with unit_of_work(self.db, conflict_message="Classroom could not be deleted"):
            current = self.get(classroom_id, include_deleted=True, for_update=True)
            classroom = require_deletable(current, "Classroom", classroom_id)
            if self.schedules.has_active_for_classroom(classroom_id):
                raise ConflictError(
                    "Cannot delete classroom with existing schedules",
                    details={"classroom_id": classroom_id},
                )
            tombstone(classroom)
            log_activity(
                self.db,
                user=actor,
                action="classroom.delete",
                entity_type="classroom",
                entity_id=classroom_id,
            )
        logger.info("Soft-deleted classroom %s", classroom_id)

    def restore(self, classroom_id: int, *, actor: User | None = None) -> Classroom:
        with self._transaction():
            classroom = require_restorable(self.get(classroom_id, include_deleted=True), "Classroom", classroom_id)
            if self._label_taken(classroom.room_label, exclude_id=classroom_id):
                raise ConflictError(ROOM_LABEL_CONFLICT_MESSAGE)
            revive(classroom)
            log_activity(
                self.db,
                user=actor,
                action="classroom.restore",
                entity_type="classroom",
                entity_id=classroom_id,
            )
        logger.info("Restored classroom %s", classroom_id)
        self.db.refresh(classroom)
        return classroom
