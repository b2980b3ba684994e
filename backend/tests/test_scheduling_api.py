from datetime import time

import pytest

from classtime.models.schedule import Schedule
from classtime.models.user import UserRole

BASE = "/api/scheduling"


@pytest.fixture()
def admin_headers(make_user, auth_headers):
    return auth_headers(make_user(UserRole.admin))


@pytest.fixture()
def booking_refs(make_course, make_classroom):
    return make_course("X"), make_course("Y"), make_classroom("C1")


def _body(course, classroom, day=1, start="09:00", end="10:30"):
    return {
        "course_id": course.id,
        "classroom_id": classroom.id,
        "day_of_week": day,
        "start_time": start,
        "end_time": end,
    }


def test_admin_books_a_classroom(client, admin_headers, booking_refs):
    course_x, _, c1 = booking_refs

    response = client.post(f"{BASE}/", json=_body(course_x, c1), headers=admin_headers)

    assert response.status_code == 201
    payload = response.json()
    assert payload["start_time"] == "09:00:00"
    assert payload["end_time"] == "10:30:00"
    assert payload["course"]["code"] == "X"
    assert payload["classroom"]["room_label"] == "C1"

    fetched = client.get(f"{BASE}/{payload['id']}", headers=admin_headers)
    assert fetched.status_code == 200
    assert fetched.json()["day_of_week"] == 1


def test_overlapping_booking_returns_conflict(client, admin_headers, booking_refs):
    course_x, course_y, c1 = booking_refs
    client.post(f"{BASE}/", json=_body(course_x, c1), headers=admin_headers)

    clash = client.post(f"{BASE}/", json=_body(course_y, c1, start="10:00", end="11:00"), headers=admin_headers)
    touching = client.post(f"{BASE}/", json=_body(course_y, c1, start="10:30", end="11:30"), headers=admin_headers)

    assert clash.status_code == 409
    assert clash.json()["message"] == "Schedule conflict: classroom is already booked at this time"
    assert touching.status_code == 201


@pytest.mark.parametrize(
    "override",
    [
        {"start_time": "9am"},
        {"start_time": "24:00"},
        {"end_time": "10:60"},
        {"day_of_week": 7},
        {"day_of_week": -1},
        {"start_time": "11:00", "end_time": "10:00"},
        {"start_time": "10:00", "end_time": "10:00"},
        {"start_time": 32400, "end_time": 36000},
        {"start_time": 32400.5, "end_time": 36000},
        {"start_time": "09:00:00.5"},
        {"end_time": True},
    ],
)
def test_invalid_booking_payloads_are_rejected(client, admin_headers, booking_refs, override):
    course_x, _, c1 = booking_refs
    body = {**_body(course_x, c1), **override}

    response = client.post(f"{BASE}/", json=body, headers=admin_headers)

    assert response.status_code == 422


def test_missing_references_return_not_found(client, admin_headers, booking_refs):
    course_x, _, c1 = booking_refs
    body = _body(course_x, c1)

    missing_course = client.post(f"{BASE}/", json={**body, "course_id": "nope"}, headers=admin_headers)
    missing_room = client.post(f"{BASE}/", json={**body, "classroom_id": 999}, headers=admin_headers)

    assert missing_course.status_code == 404
    assert missing_course.json()["message"] == "Course not found"
    assert missing_room.status_code == 404
    assert missing_room.json()["message"] == "Classroom not found"
    assert client.get(f"{BASE}/999", headers=admin_headers).status_code == 404


def test_update_checks_merged_slot(client, admin_headers, booking_refs):
    course_x, course_y, c1 = booking_refs
    first = client.post(f"{BASE}/", json=_body(course_x, c1, start="08:00", end="09:00"), headers=admin_headers).json()
    second = client.post(f"{BASE}/", json=_body(course_y, c1, start="09:00", end="10:00"), headers=admin_headers).json()

    same = client.patch(f"{BASE}/{second['id']}", json={"start_time": "09:00"}, headers=admin_headers)
    assert same.status_code == 200

    inverted = client.patch(f"{BASE}/{second['id']}", json={"start_time": "10:30"}, headers=admin_headers)
    assert inverted.status_code == 422
    assert inverted.json()["message"] == "end_time must be after start_time"

    clash = client.patch(f"{BASE}/{first['id']}", json={"end_time": "09:15"}, headers=admin_headers)
    assert clash.status_code == 409

    moved = client.patch(f"{BASE}/{first['id']}", json={"day_of_week": 2, "end_time": "09:15"}, headers=admin_headers)
    assert moved.status_code == 200
    assert moved.json()["day_of_week"] == 2
    assert moved.json()["end_time"] == "09:15:00"


def test_delete_and_restore_round_trip(client, admin_headers, booking_refs):
    course_x, course_y, c1 = booking_refs
    created = client.post(f"{BASE}/", json=_body(course_x, c1), headers=admin_headers).json()

    deleted = client.delete(f"{BASE}/{created['id']}", headers=admin_headers)
    assert deleted.status_code == 200
    assert deleted.json() == {"deleted": True}
    assert client.get(f"{BASE}/{created['id']}", headers=admin_headers).status_code == 404
    assert client.delete(f"{BASE}/{created['id']}", headers=admin_headers).status_code == 409
    assert client.delete(f"{BASE}/4040", headers=admin_headers).status_code == 404

    # The tombstoned booking no longer holds the slot.
    reused = client.post(f"{BASE}/", json=_body(course_y, c1), headers=admin_headers)
    assert reused.status_code == 201

    blocked = client.patch(f"{BASE}/{created['id']}/restore", headers=admin_headers)
    assert blocked.status_code == 409

    client.delete(f"{BASE}/{reused.json()['id']}", headers=admin_headers)
    restored = client.patch(f"{BASE}/{created['id']}/restore", headers=admin_headers)
    assert restored.status_code == 200
    assert restored.json()["id"] == created["id"]

    again = client.patch(f"{BASE}/{created['id']}/restore", headers=admin_headers)
    assert again.status_code == 409
    assert again.json()["message"] == f"Schedule with ID {created['id']} is not deleted"


def test_listing_is_paginated_and_filterable(client, db_session, make_user, make_course, make_classroom, auth_headers):
    teacher = make_user(UserRole.teacher)
    taught = make_course("T1", teachers=[teacher])
    other = make_course("O1")
    room = make_classroom("P1")
    for hour in range(8, 13):
        db_session.add(
            Schedule(
                course_id=(taught if hour % 2 == 0 else other).id,
                classroom_id=room.id,
                day_of_week=2,
                start_time=time(hour),
                end_time=time(hour, 50),
            )
        )
    db_session.commit()
    headers = auth_headers(make_user(UserRole.student))

    default_page = client.get(f"{BASE}/", headers=headers).json()
    assert default_page["meta"] == {"total": 5, "page": 1, "limit": 10, "last_page": 1}

    second = client.get(f"{BASE}/", params={"page": 2, "limit": 2}, headers=headers).json()
    assert second["meta"] == {"total": 5, "page": 2, "limit": 2, "last_page": 3}
    assert [item["start_time"] for item in second["data"]] == ["10:00:00", "11:00:00"]

    filtered = client.get(f"{BASE}/", params={"teacher_id": teacher.id}, headers=headers).json()
    assert filtered["meta"]["total"] == 3
    assert {item["course"]["code"] for item in filtered["data"]} == {"T1"}

    empty = client.get(f"{BASE}/", params={"teacher_id": "nobody"}, headers=headers).json()
    assert empty["data"] == []
    assert empty["meta"]["last_page"] == 0

    assert client.get(f"{BASE}/", params={"limit": 101}, headers=headers).status_code == 422
    assert client.get(f"{BASE}/", params={"page": 0}, headers=headers).status_code == 422


def test_course_classroom_and_daily_views(client, admin_headers, booking_refs, make_classroom):
    course_x, course_y, c1 = booking_refs
    lab = make_classroom("LAB")
    client.post(f"{BASE}/", json=_body(course_x, c1, day=1), headers=admin_headers)
    client.post(f"{BASE}/", json=_body(course_y, lab, day=1, start="08:00", end="09:00"), headers=admin_headers)
    client.post(f"{BASE}/", json=_body(course_x, lab, day=0, start="13:00", end="14:00"), headers=admin_headers)

    by_course = client.get(f"{BASE}/course/{course_x.id}", headers=admin_headers).json()
    assert [(item["day_of_week"], item["start_time"]) for item in by_course] == [(0, "13:00:00"), (1, "09:00:00")]

    by_room = client.get(f"{BASE}/classroom/{lab.id}", headers=admin_headers).json()
    assert [item["course"]["code"] for item in by_room] == ["X", "Y"]

    monday = client.get(f"{BASE}/today", params={"on": "2026-10-19"}, headers=admin_headers).json()
    assert [item["classroom"]["room_label"] for item in monday] == ["LAB", "C1"]

    sunday_lab = client.get(
        f"{BASE}/today",
        params={"on": "2026-10-18", "classroom_id": lab.id},
        headers=admin_headers,
    ).json()
    assert len(sunday_lab) == 1
    assert sunday_lab[0]["start_time"] == "13:00:00"


def test_mutations_require_admin(client, make_user, auth_headers, booking_refs):
    course_x, _, c1 = booking_refs
    teacher_headers = auth_headers(make_user(UserRole.teacher))
    student_headers = auth_headers(make_user(UserRole.student))

    assert client.post(f"{BASE}/", json=_body(course_x, c1), headers=teacher_headers).status_code == 403
    assert client.patch(f"{BASE}/1", json={"day_of_week": 2}, headers=student_headers).status_code == 403
    assert client.delete(f"{BASE}/1", headers=student_headers).status_code == 403
    assert client.get(f"{BASE}/", headers=teacher_headers).status_code == 200


def test_requests_without_valid_token_are_rejected(client):
    assert client.get(f"{BASE}/").status_code in {401, 403}

    bad = client.get(f"{BASE}/", headers={"Authorization": "Bearer not-a-token"})
    assert bad.status_code == 401
