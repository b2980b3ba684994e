"""Seed demo accounts, courses, classrooms and a weekly timetable.

Prints a bearer token per account, since the API has no login endpoint.

Run:
  PYTHONPATH=backend python scripts/seed_demo_timetable.py
"""

from __future__ import annotations

import os
from typing import Iterable

from sqlalchemy import select

from classtime.core.exceptions import ConflictError
from classtime.core.security import create_access_token
from classtime.db.bootstrap import ensure_runtime_schema_compatibility
from classtime.db.session import SessionLocal
from classtime.models.classroom import Classroom, ClassroomType
from classtime.models.course import Course
from classtime.models.user import User, UserRole
from classtime.schemas.schedule import ScheduleCreate
from classtime.services.timetable import TimetableService


def _env_email(key: str, default: str) -> str:
    value = os.getenv(key, "").strip()
    return value or default


DEMO_ACCOUNTS = {
    "admin": ("Demo Admin", _env_email("DEMO_ADMIN_EMAIL", "admin.demo@classtime.local"), UserRole.admin),
    "teacher": ("Demo Teacher", _env_email("DEMO_TEACHER_EMAIL", "teacher.demo@classtime.local"), UserRole.teacher),
    "student": ("Demo Student", _env_email("DEMO_STUDENT_EMAIL", "student.demo@classtime.local"), UserRole.student),
}

DEMO_COURSES = [("CS101", "Introduction to Programming"), ("MA201", "Linear Algebra")]

DEMO_CLASSROOMS = [
    ("A101", "Main", 70, ClassroomType.lecture),
    ("LAB-2", "Science", 30, ClassroomType.lab),
]

# (course code, room label, day of week with Sunday = 0, start, end)
DEMO_SLOTS = [
    ("CS101", "A101", 1, "09:00", "10:30"),
    ("MA201", "A101", 1, "10:30", "12:00"),
    ("CS101", "LAB-2", 3, "14:00", "16:00"),
    ("MA201", "A101", 4, "09:00", "10:30"),
]


def _upsert_user(*, name: str, email: str, role: UserRole) -> User:
    with SessionLocal() as session:
        existing = session.execute(select(User).where(User.email == email)).scalar_one_or_none()
        if existing is None:
            existing = User(name=name, email=email, role=role, is_active=True)
            session.add(existing)
        else:
            existing.name = name
            existing.role = role
            existing.is_active = True
        session.commit()
        session.refresh(existing)
        return existing


def _upsert_catalog(teacher: User) -> None:
    with SessionLocal() as session:
        for code, name in DEMO_COURSES:
            course = session.execute(select(Course).where(Course.code == code)).scalar_one_or_none()
            if course is None:
                course = Course(code=code, name=name)
                session.add(course)
            course.deleted_at = None
            if all(member.id != teacher.id for member in course.teachers):
                course.teachers.append(session.get(User, teacher.id))

        for label, building, capacity, room_type in DEMO_CLASSROOMS:
            room = session.execute(
                select(Classroom).where(Classroom.room_label == label, Classroom.deleted_at.is_(None))
            ).scalar_one_or_none()
            if room is None:
                session.add(Classroom(room_label=label, building=building, capacity=capacity, type=room_type))
        session.commit()


def _book_slots(admin: User) -> int:
    booked = 0
    with SessionLocal() as session:
        courses = {course.code: course.id for course in session.execute(select(Course)).scalars()}
        rooms = {
            room.room_label: room.id
            for room in session.execute(select(Classroom).where(Classroom.deleted_at.is_(None))).scalars()
        }
        service = TimetableService(session)
        actor = session.get(User, admin.id)
        for code, label, day, start, end in DEMO_SLOTS:
            payload = ScheduleCreate(
                course_id=courses[code],
                classroom_id=rooms[label],
                day_of_week=day,
                start_time=start,
                end_time=end,
            )
            try:
                service.create_schedule(payload, actor=actor)
            except ConflictError:
                # Already seeded on a previous run.
                continue
            booked += 1
    return booked


def _print_accounts(items: Iterable[tuple[str, User]]) -> None:
    print("\nDemo accounts ready:")
    for label, user in items:
        print(f"  - {label}: {user.email} | role={user.role.value}")
        print(f"    Authorization: Bearer {create_access_token(user.id)}")


def main() -> None:
    ensure_runtime_schema_compatibility()
    users = {
        key: _upsert_user(name=name, email=email, role=role)
        for key, (name, email, role) in DEMO_ACCOUNTS.items()
    }
    _upsert_catalog(users["teacher"])
    booked = _book_slots(users["admin"])
    print(f"Booked {booked} new slot(s); {len(DEMO_SLOTS) - booked} already present.")
    _print_accounts(users.items())


if __name__ == "__main__":
    main()
