"""
Refresh lifecycle for the analytics dashboard.

``MetricsViewModel`` owns the display state and is its only writer. A single
scheduler task triggers a fetch immediately on ``start`` and then once per
refresh interval. A tick that fires while the previous fetch is still running
is skipped rather than queued, so fetches never overlap. Every start, restart
and stop bumps a generation counter; a fetch that completes under an older
generation is discarded, which is what guarantees that nothing writes to the
state once ``stop`` has returned.
"""

from __future__ import annotations

import asyncio
import contextlib
from dataclasses import asdict
from datetime import datetime, timezone

from loguru import logger

from . import telemetry
from .exceptions import FetchError
from .formatting import derive
from .models import DashboardConfig, DashboardSnapshot, FetchResult, Metrics, ViewState
from .sources.base import MetricsSource


class MetricsViewModel:
    """Polls a metrics source and exposes the current view state."""

    def __init__(
        self,
        source: MetricsSource,
        *,
        snapshot_queue: asyncio.Queue[DashboardSnapshot] | None = None,
    ) -> None:
        self._source = source
        self._snapshot_queue = snapshot_queue
        self._config: DashboardConfig | None = None
        self._state = ViewState()
        self._generation = 0
        self._started = False
        self._scheduler_task: asyncio.Task[None] | None = None
        self._fetch_task: asyncio.Task[None] | None = None
        self._fetch_lock = asyncio.Lock()
        self._ready = asyncio.Event()
        self._fetch_count = 0
        self._failure_count = 0
        self._skipped_ticks = 0
        self._last_error: FetchError | None = None

    # --- Read-only views ---------------------------------------------------

    @property
    def state(self) -> ViewState:
        return self._state

    @property
    def config(self) -> DashboardConfig | None:
        return self._config

    @property
    def running(self) -> bool:
        return self._started

    @property
    def fetch_count(self) -> int:
        return self._fetch_count

    @property
    def failure_count(self) -> int:
        return self._failure_count

    @property
    def skipped_ticks(self) -> int:
        return self._skipped_ticks

    @property
    def last_error(self) -> FetchError | None:
        return self._last_error

    def snapshot(self) -> DashboardSnapshot:
        """Build a renderer snapshot of the current state."""
        state = self._state
        config = self._config
        return DashboardSnapshot(
            generated_at=datetime.now(tz=timezone.utc),
            contract_address=config.contract_address if config else "",
            theme=config.theme if config else "dark",
            loading=state.loading,
            metrics=state.metrics,
            display=derive(state.metrics),
            last_updated=state.last_updated,
            fetch_count=self._fetch_count,
            failure_count=self._failure_count,
            last_error=str(self._last_error) if self._last_error else None,
        )

    # --- Lifecycle ---------------------------------------------------------

    async def start(self, config: DashboardConfig) -> None:
        """Reset the view state and begin polling with ``config``."""
        if self._started:
            logger.warning("MetricsViewModel.start() called while already running; ignoring")
            return

        self._config = config
        self._state = ViewState()
        self._ready.clear()
        self._fetch_count = 0
        self._failure_count = 0
        self._skipped_ticks = 0
        self._last_error = None
        self._started = True
        self._generation += 1
        self._publish_snapshot()
        self._launch_scheduler()
        logger.info(
            f"Metrics view model started for {config.contract_address} "
            f"(endpoint={config.api_endpoint}, interval={config.refresh_interval}ms)"
        )

    async def stop(self) -> None:
        """Cancel polling. No state is written after this returns."""
        if not self._started:
            logger.debug("MetricsViewModel.stop() called while not running")
            return

        self._started = False
        self._generation += 1
        await self._cancel_tasks()
        logger.info("Metrics view model stopped")

    async def reconfigure(self, config: DashboardConfig) -> None:
        """
        Apply a new configuration to a running view model.

        A new contract address or refresh interval restarts the schedule with
        an immediate fetch; the current state is kept. Other changes only take
        effect on the next fetch and snapshot.
        """
        if not self._started or self._config is None:
            raise RuntimeError("MetricsViewModel.reconfigure() called before start()")

        previous = self._config
        self._config = config
        if (
            previous.contract_address == config.contract_address
            and previous.refresh_interval == config.refresh_interval
        ):
            logger.debug(f"Reconfigured without restart (theme={config.theme}, endpoint={config.api_endpoint})")
            self._publish_snapshot()
            return

        self._generation += 1
        await self._cancel_tasks()
        self._launch_scheduler()
        logger.info(
            f"Refresh schedule restarted for {config.contract_address} (interval={config.refresh_interval}ms)"
        )

    async def wait_until_ready(self, timeout: float | None = None) -> ViewState:
        """Wait for the first completed fetch and return the state."""
        await asyncio.wait_for(self._ready.wait(), timeout)
        return self._state

    # --- Fetching ----------------------------------------------------------

    async def fetch(self) -> FetchResult:
        """
        Fetch metrics once and fold the outcome into the view state.

        A ``FetchError`` is logged and returned in the result, never raised.
        The previous metrics are kept on failure.
        """
        if not self._started or self._config is None:
            raise RuntimeError("MetricsViewModel.fetch() called before start()")

        generation = self._generation
        async with self._fetch_lock:
            config = self._config
            try:
                metrics = await self._source.fetch_metrics(config.contract_address, config.api_endpoint)
            except FetchError as e:
                logger.error(f"Failed to fetch metrics: {e}")
                return self._apply_failure(generation, e)
            return self._apply_success(generation, metrics)

    def _launch_scheduler(self) -> None:
        assert self._config is not None
        self._scheduler_task = asyncio.create_task(
            self._run_scheduler(self._generation, self._config.refresh_seconds),
            name="b2s-metrics-scheduler",
        )

    async def _run_scheduler(self, generation: int, interval: float) -> None:
        while generation == self._generation:
            self._tick(generation)
            await asyncio.sleep(interval)

    def _tick(self, generation: int) -> None:
        in_flight = self._fetch_lock.locked() or (self._fetch_task is not None and not self._fetch_task.done())
        if in_flight:
            self._skipped_ticks += 1
            if self._config is not None:
                telemetry.record_skipped_tick(self._config.contract_address)
            logger.debug(f"Skipping refresh tick: previous fetch still in flight ({self._skipped_ticks} skipped)")
            return
        self._fetch_task = asyncio.create_task(self._scheduled_fetch(generation), name="b2s-metrics-fetch")

    async def _scheduled_fetch(self, generation: int) -> None:
        try:
            await self.fetch()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.exception(f"Unexpected error during scheduled metrics fetch: {e}")
            self._apply_failure(generation, FetchError(f"Unexpected error: {type(e).__name__}: {e}"))

    async def _cancel_tasks(self) -> None:
        current = asyncio.current_task()
        for task in (self._scheduler_task, self._fetch_task):
            if task is None or task is current:
                continue
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._scheduler_task = None
        self._fetch_task = None

    # --- State writes ------------------------------------------------------

    def _is_current(self, generation: int) -> bool:
        return self._started and generation == self._generation

    def _apply_success(self, generation: int, metrics: Metrics) -> FetchResult:
        if not self._is_current(generation):
            logger.debug("Discarding metrics from a stopped or restarted refresh cycle")
            return FetchResult(metrics=None, skipped=True)

        self._state = self._state.with_metrics(metrics, datetime.now(tz=timezone.utc))
        self._fetch_count += 1
        self._last_error = None
        assert self._config is not None
        telemetry.record_fetch(self._config.contract_address, ok=True)
        telemetry.record_metric_values(self._config.contract_address, asdict(metrics))
        self._mark_ready()
        self._publish_snapshot()
        return FetchResult(metrics=metrics)

    def _apply_failure(self, generation: int, error: FetchError) -> FetchResult:
        if not self._is_current(generation):
            logger.debug("Discarding fetch failure from a stopped or restarted refresh cycle")
            return FetchResult(error=error, skipped=True)

        self._state = self._state.ready()
        self._failure_count += 1
        self._last_error = error
        assert self._config is not None
        telemetry.record_fetch(self._config.contract_address, ok=False)
        self._mark_ready()
        self._publish_snapshot()
        return FetchResult(error=error)

    def _mark_ready(self) -> None:
        if not self._ready.is_set():
            self._ready.set()
            logger.info("Dashboard ready: first metrics fetch completed")

    def _publish_snapshot(self) -> None:
        """Publish a snapshot, dropping the oldest one if the queue is full."""
        if self._snapshot_queue is None:
            return
        snapshot = self.snapshot()
        try:
            self._snapshot_queue.put_nowait(snapshot)
        except asyncio.QueueFull:
            with contextlib.suppress(asyncio.QueueEmpty):
                self._snapshot_queue.get_nowait()
            self._snapshot_queue.put_nowait(snapshot)
        logger.debug(f"Published snapshot (queue size: {self._snapshot_queue.qsize()})")
