from datetime import time
from types import SimpleNamespace

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from classtime.core.exceptions import ConflictError
from classtime.models.classroom import ROOM_LABEL_CONSTRAINTS, Classroom
from classtime.models.course import Course
from classtime.models.schedule import BOOKING_CONSTRAINTS, SCHEDULE_OVERLAP_CONSTRAINT, Schedule
from classtime.services.transactions import unit_of_work, violated_constraint, violates_any


def _driver_error(constraint_name: str) -> IntegrityError:
    orig = SimpleNamespace(diag=SimpleNamespace(constraint_name=constraint_name))
    return IntegrityError("INSERT INTO schedules ...", {}, orig)


def test_constraint_name_is_read_from_driver_diagnostics():
    exc = _driver_error(SCHEDULE_OVERLAP_CONSTRAINT)

    assert violated_constraint(exc) == SCHEDULE_OVERLAP_CONSTRAINT
    assert violates_any(exc, BOOKING_CONSTRAINTS)
    assert not violates_any(_driver_error("schedules_course_id_fkey"), BOOKING_CONSTRAINTS)


def test_overlap_exclusion_at_commit_becomes_conflict(db_session):
    with pytest.raises(ConflictError, match="slot taken"):
        with unit_of_work(db_session, conflict_message="slot taken", constraints=BOOKING_CONSTRAINTS):
            raise _driver_error(SCHEDULE_OVERLAP_CONSTRAINT)


def test_foreign_key_violation_is_not_reported_as_double_booking(db_session):
    with pytest.raises(IntegrityError):
        with unit_of_work(db_session, conflict_message="slot taken", constraints=BOOKING_CONSTRAINTS):
            raise _driver_error("schedules_course_id_fkey")


def test_check_constraint_on_sqlite_becomes_conflict(db_session, make_course, make_classroom):
    course = make_course()
    room = make_classroom()

    with pytest.raises(ConflictError, match="slot taken"):
        with unit_of_work(db_session, conflict_message="slot taken", constraints=BOOKING_CONSTRAINTS):
            db_session.add(
                Schedule(
                    course_id=course.id,
                    classroom_id=room.id,
                    day_of_week=1,
                    start_time=time(11),
                    end_time=time(10),
                )
            )

    assert db_session.execute(select(func.count(Schedule.id))).scalar_one() == 0


def test_unrelated_integrity_error_propagates_and_rolls_back(db_session, make_course):
    make_course("DUP1")

    with pytest.raises(IntegrityError):
        with unit_of_work(db_session, conflict_message="slot taken", constraints=BOOKING_CONSTRAINTS):
            db_session.add(Course(code="DUP1", name="Duplicate"))

    assert db_session.execute(select(func.count(Course.id))).scalar_one() == 1


def test_duplicate_active_room_label_on_sqlite_becomes_conflict(db_session, make_classroom):
    make_classroom("SAME")

    with pytest.raises(ConflictError, match="Room label already exists"):
        with unit_of_work(db_session, conflict_message="Room label already exists", constraints=ROOM_LABEL_CONSTRAINTS):
            db_session.add(Classroom(room_label="SAME", capacity=10))
