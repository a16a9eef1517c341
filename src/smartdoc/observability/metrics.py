from __future__ import annotations

"""Prometheus metrics for the Smart Doc FastAPI backend.

The HTTP middleware records request latency per method/path/status and
tracks in-flight requests. Outbound text-generation calls are counted per
outcome.
"""

import time
from typing import Awaitable, Callable, Tuple

from prometheus_client import Counter, Gauge, Histogram
from starlette.requests import Request
from starlette.responses import Response

# Upper buckets cover slow generateContent round-trips (seconds)
REQUEST_LATENCY = Histogram(
    "smartdoc_request_latency_seconds",
    "HTTP request latency in seconds",
    labelnames=("method", "path", "status"),
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0),
)

LLM_CALLS = Counter(
    "smartdoc_llm_calls_total",
    "Outbound text-generation calls",
    labelnames=("operation", "outcome"),
)

IN_FLIGHT = Gauge(
    "smartdoc_requests_in_flight",
    "HTTP requests currently being served",
    labelnames=("path",),
)


def sanitize_path(path: str) -> str:
    """Reduce high-cardinality paths (e.g., /chat/sessions/{id}) to a coarse label.

    Keeps the first segment, or the first two when the first is the /api prefix.
    """
    if not path:
        return "/"
    segs = [s for s in path.split("?")[0].split("/") if s]
    if not segs:
        return "/"
    if segs[0] == "api" and len(segs) > 1:
        return "/api/" + segs[1]
    return "/" + segs[0]


def record_llm_call(operation: str, ok: bool) -> None:
    LLM_CALLS.labels(operation=operation, outcome="success" if ok else "fallback").inc()


def _observe(method: str, path: str, status: int, elapsed: float) -> None:
    REQUEST_LATENCY.labels(method=method, path=sanitize_path(path), status=str(status)).observe(elapsed)


def metrics_middleware_factory(
    skip_prefixes: Tuple[str, ...] = ("/metrics",),
) -> Callable[[Request, Callable[[Request], Awaitable[Response]]], Awaitable[Response]]:
    """Build the latency middleware; paths under ``skip_prefixes`` are not observed.

    Requests that raise are recorded as status 500 before the error propagates,
    and in-flight requests are tracked per coarse path.
    """

    async def middleware(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        path = request.url.path
        if path.startswith(skip_prefixes):
            return await call_next(request)
        gauge = IN_FLIGHT.labels(path=sanitize_path(path))
        gauge.inc()
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            _observe(request.method, path, 500, time.perf_counter() - start)
            raise
        finally:
            gauge.dec()
        _observe(request.method, path, response.status_code, time.perf_counter() - start)
        return response

    return middleware
