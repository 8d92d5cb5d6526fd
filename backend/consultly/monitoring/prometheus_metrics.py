"""
Prometheus metrics for Consultly.

Service-operation timings come from the ``@measure_operation`` decorator on
services; HTTP timings from the middleware in ``main.py``. Domain counters
track booking conflicts and calendar sync outcomes.
"""

from __future__ import annotations

from typing import Optional, cast

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

# Custom registry keeps tests and multiple app instances isolated from defaults
REGISTRY = CollectorRegistry()

http_request_duration_seconds = Histogram(
    "consultly_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint", "status_code"],
    registry=REGISTRY,
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

http_requests_total = Counter(
    "consultly_http_requests_total",
    "Total number of HTTP requests",
    ["method", "endpoint", "status_code"],
    registry=REGISTRY,
)

service_operation_duration_seconds = Histogram(
    "consultly_service_operation_duration_seconds",
    "Service operation duration in seconds",
    ["service", "operation", "status"],
    registry=REGISTRY,
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

errors_total = Counter(
    "consultly_errors_total",
    "Total number of errors",
    ["service", "operation", "error_type"],
    registry=REGISTRY,
)

booking_conflicts_total = Counter(
    "consultly_booking_conflicts_total",
    "Booking attempts rejected because the slot was taken",
    ["source"],  # booking | calendar | constraint
    registry=REGISTRY,
)

calendar_syncs_total = Counter(
    "consultly_calendar_syncs_total",
    "Calendar busy-slot sync attempts by outcome",
    ["status"],  # success | error | auth_expired
    registry=REGISTRY,
)


class PrometheusMetrics:
    """Manages Prometheus metrics collection and exposure."""

    @staticmethod
    def record_http_request(method: str, endpoint: str, duration: float, status_code: int) -> None:
        labels = {"method": method, "endpoint": endpoint, "status_code": str(status_code)}
        http_request_duration_seconds.labels(**labels).observe(duration)
        http_requests_total.labels(**labels).inc()

    @staticmethod
    def record_service_operation(
        service: str,
        operation: str,
        duration: float,
        status: str = "success",
        error_type: Optional[str] = None,
    ) -> None:
        """
        Record service operation metrics from @measure_operation decorator.

        Args:
            service: Service name (e.g., 'BookingService')
            operation: Operation/method name (e.g., 'create_booking')
            duration: Operation duration in seconds
            status: Operation status ('success' or 'error')
            error_type: Type of error if status is 'error'
        """
        service_operation_duration_seconds.labels(
            service=service, operation=operation, status=status
        ).observe(duration)
        if status == "error" and error_type:
            errors_total.labels(service=service, operation=operation, error_type=error_type).inc()

    @staticmethod
    def record_booking_conflict(source: str) -> None:
        booking_conflicts_total.labels(source=source).inc()

    @staticmethod
    def record_calendar_sync(status: str) -> None:
        calendar_syncs_total.labels(status=status).inc()

    @staticmethod
    def get_metrics() -> bytes:
        """Metrics in Prometheus text exposition format."""
        return cast(bytes, generate_latest(REGISTRY))

    @staticmethod
    def get_content_type() -> str:
        return cast(str, CONTENT_TYPE_LATEST)


prometheus_metrics = PrometheusMetrics()
