from consultly.models.booking import BookingStatus


def test_review_flow(client, auth_headers, customer, teacher, teacher_profile, make_booking) -> None:
    booking = make_booking(status=BookingStatus.COMPLETED)
    payload = {
        "teacher_profile_id": teacher_profile.id,
        "booking_id": booking.id,
        "rating": 4,
        "comment": "Clear and practical",
    }

    created = client.post("/api/v1/reviews", json=payload, headers=auth_headers(customer))
    assert created.status_code == 201
    review = created.json()
    assert review["is_verified"] is True

    again = client.post("/api/v1/reviews", json=payload, headers=auth_headers(customer))
    assert again.status_code == 409

    listing = client.get(f"/api/v1/teachers/{teacher_profile.id}/reviews").json()
    assert listing["total_reviews"] == 1
    assert listing["average_rating"] == 4.0
    assert [item["id"] for item in listing["items"]] == [review["id"]]

    reply = client.post(
        f"/api/v1/reviews/{review['id']}/reply",
        json={"reply": "  Thanks for coming  "},
        headers=auth_headers(teacher),
    )
    assert reply.status_code == 200
    assert reply.json()["teacher_reply"] == "Thanks for coming"

    mine = client.get("/api/v1/reviews/me", headers=auth_headers(customer)).json()
    assert [item["id"] for item in mine] == [review["id"]]


def test_customer_cannot_reply(client, auth_headers, customer, teacher_profile) -> None:
    created = client.post(
        "/api/v1/reviews",
        json={"teacher_profile_id": teacher_profile.id, "rating": 5},
        headers=auth_headers(customer),
    ).json()

    response = client.post(
        f"/api/v1/reviews/{created['id']}/reply",
        json={"reply": "nice"},
        headers=auth_headers(customer),
    )
    assert response.status_code == 403


def test_rating_out_of_range_is_rejected(client, auth_headers, customer, teacher_profile) -> None:
    response = client.post(
        "/api/v1/reviews",
        json={"teacher_profile_id": teacher_profile.id, "rating": 6},
        headers=auth_headers(customer),
    )
    assert response.status_code == 422


def test_reviews_of_unknown_teacher(client) -> None:
    assert client.get("/api/v1/teachers/01J00000000000000000000000/reviews").status_code == 404


def test_reviews_require_auth(client, teacher_profile) -> None:
    response = client.post(
        "/api/v1/reviews", json={"teacher_profile_id": teacher_profile.id, "rating": 5}
    )
    assert response.status_code == 401
