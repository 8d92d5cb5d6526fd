def test_health(client) -> None:
    body = client.get("/health").json()
    assert body["status"] == "healthy"
    assert body["service"] == "consultly-api"


def test_ready_checks_database(client) -> None:
    response = client.get("/ready")
    assert response.status_code == 200
    assert response.json()["database"] == "ok"


def test_metrics_exposes_request_counters(client) -> None:
    client.get("/health")
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "consultly_http_requests_total" in response.text
