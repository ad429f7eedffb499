"""Request metrics collection utilities."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from threading import Lock
from time import perf_counter
from typing import Dict

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp


@dataclass
class RouteStats:
    """Mutable statistics for a single route."""

    count: int = 0
    total_duration_ms: float = 0.0
    min_duration_ms: float | None = None
    max_duration_ms: float | None = None


class MetricsRegistry:
    """In-memory collector for request and document metrics."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._in_flight = 0
        self._requests_total = 0
        self._status_families: Counter[str] = Counter()
        self._routes: Dict[str, RouteStats] = {}
        self._documents: Counter[str] = Counter()

    def reset(self) -> None:
        """Reset all counters (useful for tests)."""

        with self._lock:
            self._in_flight = 0
            self._requests_total = 0
            self._status_families = Counter()
            self._routes = {}
            self._documents = Counter()

    def request_started(self) -> None:
        with self._lock:
            self._in_flight += 1

    def request_finished(
        self,
        method: str,
        path: str,
        status_code: int,
        duration_seconds: float,
    ) -> None:
        """Record request completion statistics."""

        duration_ms = max(duration_seconds * 1000.0, 0.0)
        route_key = f"{method.upper()} {path}"
        status_family = f"{status_code // 100}xx"

        with self._lock:
            self._in_flight = max(0, self._in_flight - 1)
            self._requests_total += 1
            self._status_families[status_family] += 1

            stats = self._routes.setdefault(route_key, RouteStats())
            stats.count += 1
            stats.total_duration_ms += duration_ms
            stats.min_duration_ms = (
                duration_ms
                if stats.min_duration_ms is None
                else min(stats.min_duration_ms, duration_ms)
            )
            stats.max_duration_ms = (
                duration_ms
                if stats.max_duration_ms is None
                else max(stats.max_duration_ms, duration_ms)
            )

    def document_event(self, event: str) -> None:
        """Count a document lifecycle event such as ``uploaded`` or ``deleted``."""

        with self._lock:
            self._documents[event] += 1

    def snapshot(self) -> Dict[str, object]:
        """Return an immutable view of the current metrics."""

        with self._lock:
            routes: Dict[str, Dict[str, float | int | None]] = {}
            for key, stats in self._routes.items():
                count = stats.count or 1
                routes[key] = {
                    "count": stats.count,
                    "avg_duration_ms": stats.total_duration_ms / count,
                    "min_duration_ms": stats.min_duration_ms,
                    "max_duration_ms": stats.max_duration_ms,
                }

            return {
                "requests_total": self._requests_total,
                "in_flight": self._in_flight,
                "status_codes": dict(self._status_families),
                "routes": routes,
                "documents": dict(self._documents),
            }


def _route_template(request: Request) -> str:
    """Return the matched route pattern so ``/documents/1`` and ``/documents/2`` share stats."""

    route = request.scope.get("route")
    return getattr(route, "path", None) or request.url.path


class RequestMetricsMiddleware(BaseHTTPMiddleware):
    """ASGI middleware that records request metrics."""

    def __init__(
        self,
        app: ASGIApp,
        *,
        registry: MetricsRegistry | None = None,
    ) -> None:
        super().__init__(app)
        self._registry = registry or metrics_registry

    async def dispatch(self, request: Request, call_next):
        start = perf_counter()
        self._registry.request_started()
        try:
            response = await call_next(request)
        except Exception:  # pragma: no cover - re-raise after recording metrics
            self._registry.request_finished(
                request.method, _route_template(request), 500, perf_counter() - start
            )
            raise
        self._registry.request_finished(
            request.method,
            _route_template(request),
            getattr(response, "status_code", 200),
            perf_counter() - start,
        )
        return response


metrics_registry = MetricsRegistry()

__all__ = [
    "MetricsRegistry",
    "RequestMetricsMiddleware",
    "metrics_registry",
]
