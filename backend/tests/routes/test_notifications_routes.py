from consultly.core.enums import NotificationType


def test_inbox_flow(client, auth_headers, notification_service, customer) -> None:
    first = notification_service.notify(customer.id, NotificationType.SYSTEM, "One", "m")
    notification_service.notify(customer.id, NotificationType.SYSTEM, "Two", "m")
    headers = auth_headers(customer)

    inbox = client.get("/api/v1/notifications", headers=headers).json()
    assert inbox["unread_count"] == 2
    assert len(inbox["items"]) == 2

    read = client.post(f"/api/v1/notifications/{first.id}/read", headers=headers)
    assert read.json()["is_read"] is True
    assert client.get("/api/v1/notifications/unread-count", headers=headers).json() == {
        "unread_count": 1
    }

    assert client.post("/api/v1/notifications/read-all", headers=headers).json() == {"updated": 1}


def test_cannot_read_someone_elses(client, auth_headers, notification_service, customer, other_customer) -> None:
    notification = notification_service.notify(customer.id, NotificationType.SYSTEM, "t", "m")
    response = client.post(
        f"/api/v1/notifications/{notification.id}/read", headers=auth_headers(other_customer)
    )
    assert response.status_code == 404
