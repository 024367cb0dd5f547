from datetime import date, timedelta

import pytest

from conftest import auth, make_user

TARGET = date.today() + timedelta(days=7)


@pytest.fixture
def published(client, teacher):
    response = client.post(
        "/session-groups/",
        json={
            "title": "Algebra",
            "date": TARGET.strftime("%d-%m-%Y"),
            "slot_duration": 30,
            "break_duration": 0,
        },
        headers=auth(teacher),
    )
    assert response.status_code == 201, response.text
    return response.json()


def test_health(client):
    assert client.get("/health").json() == {"redis": True}


def test_identity_is_required(client):
    assert client.get("/availability/").status_code == 401


def test_role_is_checked(client, student):
    assert client.get("/availability/", headers=auth(student)).status_code == 403


def test_weekly_availability_round_trip(client, teacher):
    response = client.put(
        "/availability/",
        json={"weekly_availability": [{"day": "tue", "start_time": "10:00", "end_time": "12:00"}]},
        headers=auth(teacher),
    )

    assert response.status_code == 200
    assert client.get("/availability/", headers=auth(teacher)).json() == {
        "teacher_id": teacher.id,
        "weekly_availability": [{"day": "tuesday", "start_time": "10:00", "end_time": "12:00"}],
    }


def test_invalid_template_reports_rows(client, teacher):
    response = client.put(
        "/availability/",
        json={"weekly_availability": [{"day": "monday", "start_time": "12:00", "end_time": "10:00"}]},
        headers=auth(teacher),
    )

    assert response.status_code == 400
    body = response.json()
    assert body["code"] == "ValidationError"
    assert body["details"]["errors"] == ["Row 1: start_time must be before end_time"]


def test_holiday_endpoints(client, teacher):
    start = date.today() + timedelta(days=30)
    created = client.post(
        "/availability/holidays",
        json={"start_date": start.isoformat(), "end_date": start.isoformat(), "reason": "public"},
        headers=auth(teacher),
    )
    assert created.status_code == 201
    holiday_id = created.json()["id"]

    listed = client.get("/availability/holidays", headers=auth(teacher)).json()
    assert [h["id"] for h in listed] == [holiday_id]

    assert client.delete(f"/availability/holidays/{holiday_id}", headers=auth(teacher)).status_code == 204
    assert client.delete(f"/availability/holidays/{holiday_id}", headers=auth(teacher)).status_code == 404


def test_publish_returns_generated_slots(published):
    assert published["timezone"] == "Asia/Kolkata"
    assert len(published["generated_slots"]) == 16
    first = published["generated_slots"][0]
    assert first["start_time"] == "09:00"
    assert first["start_time_utc"].startswith(f"{TARGET.isoformat()}T03:30:00")


def test_duplicate_publish_is_409(client, teacher, published):
    response = client.post(
        "/session-groups/",
        json={"title": "Algebra", "date": TARGET.isoformat()},
        headers=auth(teacher),
    )

    assert response.status_code == 409


def test_student_books_and_sees_it(client, student, other_student, published):
    slot = published["generated_slots"][0]
    payload = {
        "session_id": published["session_id"],
        "start_time_utc": slot["start_time_utc"],
        "end_time_utc": slot["end_time_utc"],
    }

    booked = client.post("/slots/book", json=payload, headers=auth(student))
    assert booked.status_code == 200, booked.text
    assert booked.json()["booked_by"] == student.id

    again = client.post("/slots/book", json=payload, headers=auth(other_student))
    assert again.status_code == 409

    bookings = client.get("/slots/bookings", headers=auth(student)).json()
    assert bookings["pagination"]["total"] == 1
    assert bookings["sessions"][0]["title"] == "Algebra"

    mine = client.get("/slots/mine", headers=auth(other_student)).json()
    assert mine["timezone"] == "Europe/London"
    assert len(mine["sessions"][0]["slots"]) == 15


def test_viewer_zone_override(client, student, published):
    response = client.get("/slots/mine", params={"tz": "America/New_York"}, headers=auth(student))

    assert response.status_code == 200
    assert response.json()["sessions"][0]["slots"][0]["timezone"] == "America/New_York"


def test_unknown_viewer_zone_is_400(client, student, published):
    response = client.get("/slots/mine", params={"tz": "Nowhere/Land"}, headers=auth(student))

    assert response.status_code == 400


def test_assign_and_cancel(client, teacher, student, published):
    body = {
        "session_id": published["session_id"],
        "date": TARGET.isoformat(),
        "start_time": "10:00",
        "end_time": "10:30",
    }

    assigned = client.post("/slots/assign", json={**body, "student_id": student.id}, headers=auth(teacher))
    assert assigned.status_code == 200, assigned.text
    assert assigned.json()["booked_by_teacher"] is True

    groups = client.get("/session-groups/", params={"type": "common"}, headers=auth(teacher)).json()
    assert len(groups["sessions"][0]["booked_slots"]) == 1

    assert client.delete(f"/session-groups/{published['session_id']}", headers=auth(teacher)).status_code == 409

    cancelled = client.post("/slots/cancel", json=body, headers=auth(teacher))
    assert cancelled.status_code == 200
    assert client.delete(f"/session-groups/{published['session_id']}", headers=auth(teacher)).status_code == 204


def test_lock_store_outage_is_503(client, broken_redis, student, published):
    client.app.state.redis = broken_redis
    slot = published["generated_slots"][0]

    response = client.post(
        "/slots/book",
        json={
            "session_id": published["session_id"],
            "start_time_utc": slot["start_time_utc"],
            "end_time_utc": slot["end_time_utc"],
        },
        headers=auth(student),
    )

    assert response.status_code == 503
    assert response.json()["code"] == "LockUnavailableError"


def test_other_teachers_cannot_touch_group(client, db, published):
    intruder = make_user(db, "teacher", "Nina")

    response = client.delete(f"/session-groups/{published['session_id']}", headers=auth(intruder))

    assert response.status_code == 403
