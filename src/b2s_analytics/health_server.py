from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any, Optional

from aiohttp import web
from loguru import logger
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, generate_latest

from . import settings

if TYPE_CHECKING:  # pragma: no cover - type checking helper
    from .view_model import MetricsViewModel


def build_health_payload(view_model: "MetricsViewModel") -> dict[str, Any]:
    """Describe the view model state for the health endpoint."""
    config = view_model.config
    state = view_model.state
    last_error = view_model.last_error
    return {
        "status": "healthy" if view_model.running else "stopped",
        "contract_address": config.contract_address if config else None,
        "api_endpoint": config.api_endpoint if config else None,
        "refresh_interval_ms": config.refresh_interval if config else None,
        "loading": state.loading,
        "last_updated": state.last_updated.isoformat() if state.last_updated else None,
        "fetch_count": view_model.fetch_count,
        "failure_count": view_model.failure_count,
        "skipped_ticks": view_model.skipped_ticks,
        "last_error": str(last_error) if last_error else None,
        "timestamp": time.time(),
    }


class HealthServerMixin:
    health_app_runner: Optional[web.AppRunner] = None
    health_site: Optional[web.TCPSite] = None
    view_model: "MetricsViewModel"

    def _build_health_app(self) -> web.Application:
        app = web.Application()

        async def health_handler(request):
            return web.json_response(build_health_payload(self.view_model))

        async def metrics_handler(request):
            return web.Response(body=generate_latest(REGISTRY), headers={"Content-Type": CONTENT_TYPE_LATEST})

        app.router.add_get(settings.HEALTH_ENDPOINT, health_handler)
        app.router.add_get(settings.METRICS_ENDPOINT, metrics_handler)
        return app

    async def _start_health_server(self):
        """Starts the aiohttp web server for healthchecks."""
        if not settings.LAUNCH_HEALTH:
            return

        self.health_app_runner = web.AppRunner(self._build_health_app())
        await self.health_app_runner.setup()
        self.health_site = web.TCPSite(self.health_app_runner, settings.HEALTH_HOST, settings.HEALTH_PORT)
        await self.health_site.start()
        logger.info(
            f"Dashboard healthcheck API started on "
            f"http://{settings.HEALTH_HOST}:{settings.HEALTH_PORT}{settings.HEALTH_ENDPOINT}"
        )

    async def _stop_health_server(self):
        """Stops the aiohttp web server for healthchecks."""
        if self.health_site:
            await self.health_site.stop()
            logger.info("Dashboard healthcheck API site stopped.")
            self.health_site = None
        if self.health_app_runner:
            await self.health_app_runner.cleanup()
            logger.info("Dashboard healthcheck API runner cleaned up.")
            self.health_app_runner = None
