"""Metrics data sources consumed by the view model."""

from .api_client import MetricsAPIClient
from .base import MetricsSource
from .static import DEFAULT_STATIC_METRICS, StaticMetricsSource

__all__ = ["DEFAULT_STATIC_METRICS", "MetricsAPIClient", "MetricsSource", "StaticMetricsSource"]
