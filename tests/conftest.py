import asyncio

import pytest

from b2s_analytics.exceptions import FetchError
from b2s_analytics.models import DashboardConfig, Metrics

CONTRACT_ADDRESS = "0xabc"

SCENARIO_METRICS = Metrics(
    total_volume=15_200_000,
    active_users=892,
    total_staked=2_300_000,
    transactions_24h=1247,
)


class RecordingSource:
    """Metrics source that replays a scripted sequence of results.

    Each entry is either a ``Metrics`` to return or an exception to raise; the
    last entry repeats once the script runs out. An optional gate blocks every
    call until it is set.
    """

    def __init__(self, *results, delay: float = 0.0, gate: asyncio.Event | None = None):
        self.results = list(results) or [SCENARIO_METRICS]
        self.delay = delay
        self.gate = gate
        self.calls: list[tuple[str, str]] = []

    async def fetch_metrics(self, contract_address: str, api_endpoint: str) -> Metrics:
        self.calls.append((contract_address, api_endpoint))
        if self.gate is not None:
            await self.gate.wait()
        if self.delay:
            await asyncio.sleep(self.delay)
        index = min(len(self.calls) - 1, len(self.results) - 1)
        result = self.results[index]
        if isinstance(result, BaseException):
            raise result
        return result


@pytest.fixture
def config() -> DashboardConfig:
    return DashboardConfig(contract_address=CONTRACT_ADDRESS, refresh_interval=30000)


@pytest.fixture
def fetch_error() -> FetchError:
    return FetchError("connection refused")
