"""Fixed-value metrics source used until the analytics API is live."""

from __future__ import annotations

import asyncio

from loguru import logger

from ..exceptions import FetchError
from ..models import Metrics

DEFAULT_STATIC_METRICS = Metrics(
    total_volume=15_200_000,
    active_users=892,
    total_staked=2_300_000,
    transactions_24h=1247,
)


class StaticMetricsSource:
    """Returns the same record on every fetch, optionally after a delay."""

    def __init__(
        self,
        metrics: Metrics = DEFAULT_STATIC_METRICS,
        *,
        delay: float = 0.0,
        error: FetchError | None = None,
    ) -> None:
        self.metrics = metrics
        self.delay = delay
        self.error = error
        self.calls = 0

    async def fetch_metrics(self, contract_address: str, api_endpoint: str) -> Metrics:
        self.calls += 1
        logger.debug(f"Static metrics requested for {contract_address} (call #{self.calls})")
        if self.delay > 0:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.metrics
