from typing import Protocol, runtime_checkable

from ..models import Metrics


@runtime_checkable
class MetricsSource(Protocol):
    """Anything that can fetch a metrics record for a contract.

    Implementations raise ``FetchError`` on any transport or parse problem.
    """

    async def fetch_metrics(self, contract_address: str, api_endpoint: str) -> Metrics: ...
