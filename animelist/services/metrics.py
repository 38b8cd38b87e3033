"""
Lightweight Prometheus-compatible metrics collector.

Tracks HTTP request counts and timings, plus import and enrichment outcome
counters for the pipeline.
"""

import time
from collections import defaultdict
from typing import Any

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

PIPELINE_COUNTERS = (
    "import_created",
    "import_updated",
    "import_failed",
    "import_skipped",
    "enrichment_updated",
    "enrichment_failed",
)


class MetricsCollector:
    """
    In-process metrics collector.

    One instance lives on app.state for the lifetime of the process.
    """

    def __init__(self) -> None:
        self._request_count: dict[str, int] = defaultdict(int)
        self._error_count: dict[str, int] = defaultdict(int)
        self._response_time_sum: dict[str, float] = defaultdict(float)
        self._status_counts: dict[int, int] = defaultdict(int)
        self._pipeline: dict[str, int] = {name: 0 for name in PIPELINE_COUNTERS}
        self._start_time: float = time.time()

    def record_request(
        self,
        method: str,
        path: str,
        status_code: int,
        duration: float,
    ) -> None:
        """Record a completed request."""
        key = f"{method} {path}"
        self._request_count[key] += 1
        self._response_time_sum[key] += duration
        self._status_counts[status_code] += 1

        if status_code >= 400:
            self._error_count[key] += 1

    def record_import(self, created: int, updated: int, failed: int, skipped: int) -> None:
        self._pipeline["import_created"] += created
        self._pipeline["import_updated"] += updated
        self._pipeline["import_failed"] += failed
        self._pipeline["import_skipped"] += skipped

    def record_enrichment(self, success: bool) -> None:
        key = "enrichment_updated" if success else "enrichment_failed"
        self._pipeline[key] += 1

    @property
    def pipeline(self) -> dict[str, int]:
        return dict(self._pipeline)

    def get_metrics(self) -> dict[str, Any]:
        """Get metrics as a structured dictionary."""
        total_requests = sum(self._request_count.values())
        total_errors = sum(self._error_count.values())

        return {
            "uptime_seconds": round(time.time() - self._start_time, 2),
            "total_requests": total_requests,
            "total_errors": total_errors,
            "error_rate": round(total_errors / total_requests, 4) if total_requests > 0 else 0,
            "requests_by_endpoint": dict(self._request_count),
            "errors_by_endpoint": dict(self._error_count),
            "status_code_counts": {str(k): v for k, v in sorted(self._status_counts.items())},
            "avg_response_time_ms": {
                k: round((self._response_time_sum[k] / self._request_count[k]) * 1000, 2)
                for k in self._request_count
            },
            "pipeline": self.pipeline,
        }

    def to_prometheus(self) -> str:
        """
        Export metrics in Prometheus text exposition format.
        See: https://prometheus.io/docs/instrumenting/exposition_formats/
        """
        lines: list[str] = [
            "# HELP animelist_uptime_seconds Time since service start in seconds",
            "# TYPE animelist_uptime_seconds gauge",
            f"animelist_uptime_seconds {time.time() - self._start_time:.2f}",
            "",
            "# HELP animelist_http_requests_total Total HTTP requests",
            "# TYPE animelist_http_requests_total counter",
        ]
        for key, count in sorted(self._request_count.items()):
            method, path = key.split(" ", 1)
            lines.append(
                f'animelist_http_requests_total{{method="{method}",path="{path}"}} {count}'
            )
        lines.append("")

        lines.append("# HELP animelist_http_errors_total Total HTTP errors (4xx/5xx)")
        lines.append("# TYPE animelist_http_errors_total counter")
        for key, count in sorted(self._error_count.items()):
            method, path = key.split(" ", 1)
            lines.append(
                f'animelist_http_errors_total{{method="{method}",path="{path}"}} {count}'
            )
        lines.append("")

        lines.append("# HELP animelist_http_status_total HTTP responses by status code")
        lines.append("# TYPE animelist_http_status_total counter")
        for code, count in sorted(self._status_counts.items()):
            lines.append(f'animelist_http_status_total{{code="{code}"}} {count}')
        lines.append("")

        lines.append("# HELP animelist_import_entries_total Import entries by outcome")
        lines.append("# TYPE animelist_import_entries_total counter")
        for outcome in ("created", "updated", "failed", "skipped"):
            count = self._pipeline[f"import_{outcome}"]
            lines.append(f'animelist_import_entries_total{{outcome="{outcome}"}} {count}')
        lines.append("")

        lines.append("# HELP animelist_enrichment_total Enrichment fetches by outcome")
        lines.append("# TYPE animelist_enrichment_total counter")
        for outcome in ("updated", "failed"):
            count = self._pipeline[f"enrichment_{outcome}"]
            lines.append(f'animelist_enrichment_total{{outcome="{outcome}"}} {count}')
        lines.append("")

        return "\n".join(lines) + "\n"


class MetricsMiddleware(BaseHTTPMiddleware):
    """
    ASGI middleware that records request metrics into the collector stored
    on app.state.metrics.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        # Skip metrics endpoints themselves
        if "/metrics" in request.url.path:
            return await call_next(request)

        start = time.time()
        response = await call_next(request)
        duration = time.time() - start

        # Normalize numeric ids to {id} for aggregation
        normalized_path = "/".join(
            "{id}" if part.isdigit() else part for part in request.url.path.split("/")
        )

        collector: MetricsCollector | None = getattr(request.app.state, "metrics", None)
        if collector is not None:
            collector.record_request(
                method=request.method,
                path=normalized_path,
                status_code=response.status_code,
                duration=duration,
            )

        return response
