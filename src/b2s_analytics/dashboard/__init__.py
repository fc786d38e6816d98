"""
Rich-based dashboard for the B2S analytics view model.

The UI only consumes ``DashboardSnapshot`` objects published by
``MetricsViewModel``, so polling keeps working even if the UI is disabled
(headless mode) or crashes.
"""

from .dashboard import AnalyticsDashboard
from .lifecycle import DashboardApp, fetch_once

__all__ = [
    "AnalyticsDashboard",
    "DashboardApp",
    "fetch_once",
]
