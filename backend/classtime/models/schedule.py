from datetime import datetime, time

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, String, Time
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from classtime.db.base import Base
from classtime.models.classroom import Classroom
from classtime.models.course import Course

SCHEDULE_OVERLAP_CONSTRAINT = "ex_schedules_no_overlap"
# PostgreSQL only; needs the btree_gist extension for the scalar equality columns.
SCHEDULE_OVERLAP_DDL = (
    f"ALTER TABLE schedules ADD CONSTRAINT {SCHEDULE_OVERLAP_CONSTRAINT} "
    "EXCLUDE USING gist ("
    "classroom_id WITH =, "
    "day_of_week WITH =, "
    "tsrange(DATE '2000-01-01' + start_time, DATE '2000-01-01' + end_time, '[)') WITH &&"
    ") WHERE (deleted_at IS NULL)"
)
# Violations of these mean the slot is unavailable.
BOOKING_CONSTRAINTS = (
    SCHEDULE_OVERLAP_CONSTRAINT,
    "ck_schedules_day_of_week",
    "ck_schedules_time_order",
)


class Schedule(Base):
    """A weekly-recurring booking of one classroom for one course.

    ``day_of_week`` runs 0-6 with Sunday as 0. Times carry no date component
    and are compared as half-open ``[start_time, end_time)`` ranges.
    """

    __tablename__ = "schedules"
    __table_args__ = (
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_schedules_day_of_week"),
        CheckConstraint("start_time < end_time", name="ck_schedules_time_order"),
        Index("ix_schedules_classroom_day", "classroom_id", "day_of_week"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    course_id: Mapped[str] = mapped_column(String(36), ForeignKey("courses.id", ondelete="CASCADE"), index=True, nullable=False)
    classroom_id: Mapped[int] = mapped_column(Integer, ForeignKey("classrooms.id"), nullable=False)
    day_of_week: Mapped[int] = mapped_column(Integer, nullable=False)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    course: Mapped[Course] = relationship(Course)
    classroom: Mapped[Classroom] = relationship(Classroom)
