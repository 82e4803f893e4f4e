"""Observability adapter for OpenTelemetry metrics."""

from .metrics import MetricsProvider

__all__ = ["MetricsProvider"]
