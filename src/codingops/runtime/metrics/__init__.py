"""Per-module request metrics."""

from .registry import HEALTH_THRESHOLD, ApiMetrics, MetricsRegistry

__all__ = ["ApiMetrics", "MetricsRegistry", "HEALTH_THRESHOLD"]
