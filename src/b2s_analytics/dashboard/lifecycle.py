"""Lifecycle management for the dashboard."""

from __future__ import annotations

import asyncio
import contextlib

from loguru import logger
from rich.console import Console

from .. import settings
from ..health_server import HealthServerMixin
from ..models import DashboardConfig, DashboardSnapshot
from ..sources.base import MetricsSource
from ..view_model import MetricsViewModel
from .dashboard import AnalyticsDashboard


class DashboardApp(HealthServerMixin):
    """Wires a metrics source, the view model and the Rich UI together."""

    def __init__(
        self,
        *,
        config: DashboardConfig,
        source: MetricsSource,
        show_dashboard: bool = True,
        console: Console | None = None,
        ui_refresh_interval: float = settings.UI_REFRESH_INTERVAL,
    ) -> None:
        self.config = config
        self.source = source
        self._show_dashboard = show_dashboard
        self._console = console
        self._ui_refresh_interval = ui_refresh_interval
        self._snapshot_queue: asyncio.Queue[DashboardSnapshot] = asyncio.Queue(maxsize=settings.SNAPSHOT_QUEUE_SIZE)
        self.view_model = MetricsViewModel(source, snapshot_queue=self._snapshot_queue)
        self._dashboard: AnalyticsDashboard | None = None
        self._app_task: asyncio.Task[None] | None = None
        self._stop_event = asyncio.Event()
        self._started = False

    async def start(self) -> None:
        """Start polling and the UI (or the snapshot logger in headless mode)."""
        if self._started:
            return

        self._stop_event.clear()
        await self.view_model.start(self.config)

        if self._show_dashboard:
            self._dashboard = AnalyticsDashboard(
                self._snapshot_queue, refresh_interval=self._ui_refresh_interval, console=self._console
            )
            self._app_task = asyncio.create_task(self._run_dashboard(), name="b2s-dashboard-ui")
        else:
            self._app_task = asyncio.create_task(self._log_snapshots(), name="b2s-dashboard-log")

        await self._start_health_server()
        self._started = True
        logger.info(f"Dashboard started (ui={'live' if self._show_dashboard else 'headless'})")

    async def stop(self) -> None:
        """Stop polling, the UI task, the health server, and close the source."""
        if not self._started:
            return

        await self.view_model.stop()
        if self._app_task is not None:
            self._app_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._app_task
        await self._stop_health_server()

        aclose = getattr(self.source, "aclose", None)
        if aclose is not None:
            await aclose()

        self._app_task = None
        self._dashboard = None
        self._started = False
        self._stop_event.set()
        logger.info("Dashboard stopped")

    async def run(self) -> None:
        """Run until the UI exits or the task is cancelled."""
        await self.start()
        try:
            await self._stop_event.wait()
        finally:
            await self.stop()

    async def _run_dashboard(self) -> None:
        """Run the dashboard UI."""
        if self._dashboard is None:
            return
        try:
            await self._dashboard.run()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.exception(f"Dashboard UI stopped unexpectedly: {type(e).__name__}: {e}")
            if self._console is not None:
                self._console.print("[red]Dashboard UI encountered an error and was closed.[/]")
        finally:
            self._stop_event.set()

    async def _log_snapshots(self) -> None:
        """Headless mode: log every published snapshot."""
        while True:
            snapshot = await self._snapshot_queue.get()
            if snapshot.loading:
                logger.info(f"Loading analytics for {snapshot.contract_address}...")
                continue
            display = snapshot.display
            logger.info(
                f"{snapshot.contract_address} | volume={display.total_volume} users={display.active_users} "
                f"staked={display.total_staked} txns24h={display.transactions_24h}"
                + (f" | stale: {snapshot.last_error}" if snapshot.last_error else "")
            )


async def fetch_once(
    config: DashboardConfig,
    source: MetricsSource,
    timeout: float | None = None,
) -> DashboardSnapshot:
    """Start a view model, wait for the first fetch, stop it and return the snapshot."""
    view_model = MetricsViewModel(source)
    await view_model.start(config)
    try:
        await view_model.wait_until_ready(timeout)
        return view_model.snapshot()
    finally:
        await view_model.stop()
