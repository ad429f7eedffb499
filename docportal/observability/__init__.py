"""Observability helpers for DocPortal."""

from .metrics import MetricsRegistry, RequestMetricsMiddleware, metrics_registry

__all__ = [
    "MetricsRegistry",
    "RequestMetricsMiddleware",
    "metrics_registry",
]
