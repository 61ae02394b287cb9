"""
FastAPI middleware for automatic Prometheus metrics collection.

This middleware automatically tracks:
- Request counts by endpoint, method, and status code
- Request latency histograms
- Requests in progress (concurrent requests)
"""

import logging
import time
from typing import Callable
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from src.observability.metrics import (
    http_requests_total,
    http_request_duration_seconds,
    http_requests_in_progress,
)

logger = logging.getLogger(__name__)


class PrometheusMiddleware(BaseHTTPMiddleware):
    """
    Middleware to collect Prometheus metrics for HTTP requests.

    Endpoints are labelled by their path with ids collapsed, so
    /api/v1/users/<uuid>/habits becomes /api/v1/users/{uuid}/habits.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        method = request.method
        path = self._normalize_path(request.url.path)

        http_requests_in_progress.labels(method=method, endpoint=path).inc()
        start_time = time.perf_counter()
        status_code = 500

        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            http_requests_in_progress.labels(method=method, endpoint=path).dec()
            http_requests_total.labels(method=method, endpoint=path, status=status_code).inc()
            http_request_duration_seconds.labels(method=method, endpoint=path).observe(
                time.perf_counter() - start_time
            )

    def _normalize_path(self, path: str) -> str:
        """Replace numeric and UUID path segments with placeholders"""
        if path in ["/metrics", "/health", "/"]:
            return path

        normalized_parts = []
        for part in path.strip("/").split("/"):
            if part.isdigit():
                normalized_parts.append("{id}")
            elif self._is_uuid(part):
                normalized_parts.append("{uuid}")
            else:
                normalized_parts.append(part)

        return "/" + "/".join(normalized_parts)

    @staticmethod
    def _is_uuid(value: str) -> bool:
        """Check for the 8-4-4-4-12 hex layout"""
        parts = value.split("-")
        if [len(p) for p in parts] != [8, 4, 4, 4, 12]:
            return False
        try:
            for part in parts:
                int(part, 16)
            return True
        except ValueError:
            return False


def setup_metrics_middleware(app) -> None:
    """Add Prometheus metrics middleware to the FastAPI application"""
    from src.config import ENABLE_METRICS

    if not ENABLE_METRICS:
        logger.info("Metrics collection is disabled (ENABLE_METRICS=false)")
        return

    app.add_middleware(PrometheusMiddleware)
    logger.info("Prometheus metrics middleware added to FastAPI")
