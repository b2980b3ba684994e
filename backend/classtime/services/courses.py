from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from classtime.core.exceptions import NotFoundError
from classtime.models.course import Course


def get_active_course(db: Session, course_id: str) -> Course | None:
    statement = select(Course).where(Course.id == course_id, Course.deleted_at.is_(None))
    return db.execute(statement).scalar_one_or_none()


def require_course(db: Session, course_id: str) -> Course:
    course = get_active_course(db, course_id)
    if course is None:
        raise NotFoundError("Course not found", details={"course_id": course_id})
    return course
