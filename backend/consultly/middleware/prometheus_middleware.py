"""
Prometheus metrics middleware for HTTP request tracking.

ULID path segments are collapsed to ``:id`` so per-booking URLs do not
explode label cardinality.
"""

from __future__ import annotations

import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from ..core.ulid_helper import is_valid_ulid
from ..monitoring.prometheus_metrics import prometheus_metrics


def normalize_path(raw_path: str) -> str:
    return "/".join(
        ":id" if segment.isdigit() or is_valid_ulid(segment) else segment
        for segment in raw_path.split("/")
    )


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Middleware to collect Prometheus metrics for HTTP requests."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path == "/metrics":
            return await call_next(request)

        method = request.method
        path = normalize_path(request.url.path)
        start_time = time.time()

        response = await call_next(request)
        prometheus_metrics.record_http_request(
            method=method,
            endpoint=path,
            duration=time.time() - start_time,
            status_code=response.status_code,
        )
        return response
