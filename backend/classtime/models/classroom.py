from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, Enum as SAEnum, Index, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from classtime.db.base import Base


ROOM_LABEL_CONSTRAINTS = (
    "uq_classrooms_active_room_label",
    # SQLite names the columns instead of the index.
    "classrooms.room_label",
)


class ClassroomType(str, Enum):
    lecture = "lecture"
    lab = "lab"
    seminar = "seminar"
    virtual = "virtual"


class Classroom(Base):
    __tablename__ = "classrooms"
    __table_args__ = (
        # Labels only need to be unique among live rooms; tombstones keep theirs.
        Index(
            "uq_classrooms_active_room_label",
            "room_label",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    room_label: Mapped[str] = mapped_column(String(20), nullable=False)
    building: Mapped[str | None] = mapped_column(String(100), nullable=True)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    type: Mapped[ClassroomType] = mapped_column(
        SAEnum(ClassroomType, name="classroom_type"), nullable=False, default=ClassroomType.lecture
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
