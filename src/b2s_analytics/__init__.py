"""Token analytics dashboard: polling view model, data sources and a Rich terminal UI."""

from .exceptions import ConfigurationError, FetchError
from .formatting import derive
from .models import DashboardConfig, DashboardSnapshot, DisplayMetrics, FetchResult, Metrics, ViewState
from .view_model import MetricsViewModel

__all__ = [
    "ConfigurationError",
    "DashboardConfig",
    "DashboardSnapshot",
    "DisplayMetrics",
    "FetchError",
    "FetchResult",
    "Metrics",
    "MetricsViewModel",
    "ViewState",
    "derive",
]
