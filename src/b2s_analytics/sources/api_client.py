from __future__ import annotations

from typing import Any

import httpx
from loguru import logger

from .. import settings
from ..exceptions import FetchError
from ..models import Metrics

METRICS_PATH = "/v1/analytics/{contract_address}/metrics"


class MetricsAPIClient:
    """Fetches contract metrics from the B2S analytics API.

    One request per call: no retries, no backoff. The caller decides what to do
    with a ``FetchError``.
    """

    def __init__(
        self,
        *,
        timeout: float = settings.REQUEST_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._timeout = timeout
        self._client = client
        self._owns_client = client is None

    def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout, headers={"Accept": "application/json"})
        return self._client

    @staticmethod
    def build_url(contract_address: str, api_endpoint: str) -> str:
        return api_endpoint.rstrip("/") + METRICS_PATH.format(contract_address=contract_address)

    async def fetch_metrics(self, contract_address: str, api_endpoint: str) -> Metrics:
        url = self.build_url(contract_address, api_endpoint)
        logger.debug(f"Requesting metrics | GET {url}")

        try:
            response = await self._get_http_client().get(url)
        except httpx.HTTPError as e:
            raise FetchError(f"Error requesting metrics from {url}: {type(e).__name__}: {e}") from e

        if response.status_code != 200:
            raise FetchError(
                f"Error requesting metrics from {url}: {response.status_code} - {response.text[:200]}",
                status_code=response.status_code,
            )

        try:
            payload: Any = response.json()
        except ValueError as e:
            raise FetchError(f"Metrics response from {url} is not valid JSON") from e

        try:
            metrics = Metrics.from_payload(payload)
        except ValueError as e:
            raise FetchError(f"Invalid metrics payload from {url}: {e}") from e

        logger.debug(f"Received metrics for {contract_address}: {metrics}")
        return metrics

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "MetricsAPIClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        await self.aclose()
        return False
