"""Prometheus metrics for monitoring and observability."""

import re
import time
from contextlib import contextmanager
from typing import Iterator

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    Counter,
    Gauge,
    Histogram,
    Info,
    generate_latest,
)
from starlette.requests import Request
from starlette.responses import Response


class MetricsRegistry:
    """Central registry for application metrics."""

    def __init__(self):
        self._setup_metrics()

    def _setup_metrics(self) -> None:
        """Initialize Prometheus metrics."""

        # Application info
        self.app_info = Info("backup_vault_app", "Backup Vault application information")

        # HTTP request metrics
        self.http_requests_total = Counter(
            "backup_vault_http_requests_total",
            "Total HTTP requests",
            ["method", "endpoint", "status_code"],
        )

        self.http_request_duration_seconds = Histogram(
            "backup_vault_http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["method", "endpoint"],
            buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0],
        )

        # Object storage metrics
        self.storage_operations_total = Counter(
            "backup_vault_storage_operations_total",
            "Total object storage operations",
            ["operation", "status"],  # operation: upload, download, list, delete
        )

        self.storage_operation_duration_seconds = Histogram(
            "backup_vault_storage_operation_duration_seconds",
            "Object storage operation duration in seconds",
            ["operation"],
            buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
        )

        # History ledger
        self.history_entries = Gauge(
            "backup_vault_history_entries",
            "Entries currently held in the history ledger",
        )

    def record_http_request(
        self,
        method: str,
        endpoint: str,
        status_code: int,
        duration: float,
    ) -> None:
        """Record HTTP request metrics."""
        self.http_requests_total.labels(
            method=method,
            endpoint=endpoint,
            status_code=str(status_code),
        ).inc()

        self.http_request_duration_seconds.labels(
            method=method, endpoint=endpoint
        ).observe(duration)

    def record_storage_operation(
        self, operation: str, status: str, duration: float
    ) -> None:
        """Record object storage operation metrics."""
        self.storage_operations_total.labels(operation=operation, status=status).inc()
        self.storage_operation_duration_seconds.labels(operation=operation).observe(
            duration
        )

    @contextmanager
    def track_storage_operation(self, operation: str) -> Iterator[None]:
        """Time a storage call and record it as success or failure."""
        start_time = time.perf_counter()
        status = "success"
        try:
            yield
        except Exception:
            status = "failure"
            raise
        finally:
            self.record_storage_operation(
                operation, status, time.perf_counter() - start_time
            )

    def set_history_size(self, size: int) -> None:
        self.history_entries.set(size)


# Global metrics registry
metrics_registry = MetricsRegistry()


def setup_metrics(app_name: str, version: str) -> None:
    """Set up application info metrics."""
    metrics_registry.app_info.info({"app_name": app_name, "version": version})


class MetricsMiddleware:
    """Middleware to automatically collect HTTP request metrics."""

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] == "http":
            start_time = time.time()
            status_code = 200

            async def send_wrapper(message):
                nonlocal status_code
                if message["type"] == "http.response.start":
                    status_code = message["status"]
                await send(message)

            try:
                await self.app(scope, receive, send_wrapper)
            except Exception:
                status_code = 500
                raise
            finally:
                duration = time.time() - start_time
                metrics_registry.record_http_request(
                    method=scope.get("method", "UNKNOWN"),
                    endpoint=normalize_path(scope.get("path", "/unknown")),
                    status_code=status_code,
                    duration=duration,
                )
        else:
            await self.app(scope, receive, send)


_KNOWN_PATHS = frozenset(
    {
        "/",
        "/upload",
        "/files",
        "/history",
        "/delete-history",
        "/health",
        "/metrics",
        "/docs",
        "/redoc",
        "/openapi.json",
    }
)
_FILENAME_ROUTES = re.compile(r"^/(download|delete)/.+")

UNMATCHED_PATH = "{unmatched}"


def normalize_path(path: str) -> str:
    """Map a request path onto a bounded set of metric labels.

    Filenames are collapsed and anything outside the route table shares one label.
    """
    if path in _KNOWN_PATHS:
        return path
    match = _FILENAME_ROUTES.match(path)
    if match:
        return f"/{match.group(1)}/{{filename}}"
    return UNMATCHED_PATH


def metrics_endpoint(request: Request) -> Response:
    """Prometheus metrics endpoint."""
    return Response(generate_latest(REGISTRY), media_type=CONTENT_TYPE_LATEST)
