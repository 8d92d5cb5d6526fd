from ..conftest import MONDAY


def test_teacher_replaces_schedule(client, auth_headers, teacher, teacher_profile, monday_rule) -> None:
    response = client.put(
        "/api/v1/teachers/me/availability",
        json={"rules": [{"day_of_week": 2, "start_time": "09:00", "end_time": "11:00"}]},
        headers=auth_headers(teacher),
    )
    assert response.status_code == 200
    body = response.json()
    assert body["teacher_profile_id"] == teacher_profile.id
    assert [r["day_of_week"] for r in body["rules"]] == [2]


def test_customer_cannot_set_schedule(client, auth_headers, customer) -> None:
    response = client.put(
        "/api/v1/teachers/me/availability", json={"rules": []}, headers=auth_headers(customer)
    )
    assert response.status_code == 403


def test_inverted_rule_is_unprocessable(client, auth_headers, teacher, teacher_profile) -> None:
    response = client.put(
        "/api/v1/teachers/me/availability",
        json={"rules": [{"day_of_week": 1, "start_time": "12:00", "end_time": "10:00"}]},
        headers=auth_headers(teacher),
    )
    assert response.status_code == 422


def test_public_schedule_and_slots(client, teacher_profile, service, monday_rule) -> None:
    schedule = client.get(f"/api/v1/teachers/{teacher_profile.id}/availability")
    assert schedule.status_code == 200
    assert schedule.json()["rules"][0]["start_time"] == "10:00"

    slots = client.get(
        f"/api/v1/teachers/{teacher_profile.id}/slots",
        params={"service_id": service.id, "date": MONDAY.isoformat()},
    )
    assert slots.status_code == 200
    assert slots.json()["slots"] == ["10:00", "10:30", "11:00"]


def test_unknown_teacher_schedule(client) -> None:
    assert client.get("/api/v1/teachers/01J00000000000000000000000/availability").status_code == 404
