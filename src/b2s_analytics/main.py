import argparse
import asyncio
import logging
import sys

from loguru import logger
from rich.console import Console
from rich.markup import escape

from b2s_analytics import settings
from b2s_analytics.dashboard import AnalyticsDashboard, DashboardApp, fetch_once
from b2s_analytics.exceptions import ConfigurationError
from b2s_analytics.models import DashboardConfig
from b2s_analytics.sources import MetricsAPIClient, StaticMetricsSource


def configure_logging(show_dashboard: bool, level: str = settings.LOG_LEVEL, log_file: str | None = settings.LOG_FILE):
    """Route loguru output so it never draws over the live dashboard."""
    logger.remove()
    if log_file:
        logger.add(log_file, level=level, rotation="10 MB", enqueue=True)
    if show_dashboard:
        if not log_file:
            logger.add(lambda _: None, level=level)
        # aiohttp access logs go through stdlib logging
        logging.disable(logging.CRITICAL)
    else:
        logger.add(sys.stderr, level=level)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run the B2S token analytics dashboard.")
    parser.add_argument(
        "--contract-address",
        dest="contract_address",
        default=settings.CONTRACT_ADDRESS,
        help="Contract to show analytics for (env: B2S_CONTRACT_ADDRESS).",
    )
    parser.add_argument(
        "--api-endpoint",
        dest="api_endpoint",
        default=settings.API_ENDPOINT,
        help=f"Analytics API base URL (default: {settings.DEFAULT_API_ENDPOINT}).",
    )
    parser.add_argument(
        "--refresh-interval",
        dest="refresh_interval",
        type=int,
        default=settings.REFRESH_INTERVAL_MS,
        help="Refresh interval in milliseconds (default: 30000).",
    )
    parser.add_argument(
        "--theme",
        dest="theme",
        choices=["light", "dark"],
        default=settings.THEME,
        help="Colour theme (default: dark).",
    )
    parser.add_argument(
        "--mock",
        dest="use_mock",
        action="store_true",
        help="Use the built-in static metrics instead of the API.",
    )
    parser.add_argument(
        "--live",
        dest="use_mock",
        action="store_false",
        help="Fetch metrics from the analytics API.",
    )
    parser.add_argument(
        "--dashboard",
        dest="show_dashboard",
        action="store_true",
        help="Enable the live terminal dashboard (default).",
    )
    parser.add_argument(
        "--no-dashboard",
        dest="show_dashboard",
        action="store_false",
        help="Disable the live terminal dashboard and log snapshots instead.",
    )
    parser.add_argument(
        "--once",
        dest="once",
        action="store_true",
        help="Fetch once, print the dashboard and exit.",
    )
    parser.set_defaults(use_mock=settings.USE_MOCK_SOURCE, show_dashboard=True, once=False)
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the analytics dashboard."""
    args = build_parser().parse_args(argv)
    console = Console()

    try:
        config = DashboardConfig(
            contract_address=args.contract_address,
            api_endpoint=args.api_endpoint,
            refresh_interval=args.refresh_interval,
            theme=args.theme,
        )
    except ConfigurationError as e:
        console.print(f"[red]Invalid configuration: {escape(str(e))}[/]")
        return 2

    configure_logging(show_dashboard=args.show_dashboard and not args.once)
    source = StaticMetricsSource() if args.use_mock else MetricsAPIClient()

    try:
        if args.once:
            asyncio.run(_print_once(config, source, console))
        else:
            asyncio.run(_run_app(config, source, console, show_dashboard=args.show_dashboard))
    except KeyboardInterrupt:
        pass
    return 0


async def _print_once(config: DashboardConfig, source, console: Console) -> None:
    try:
        snapshot = await fetch_once(config, source, timeout=settings.REQUEST_TIMEOUT + 1)
    finally:
        aclose = getattr(source, "aclose", None)
        if aclose is not None:
            await aclose()
    dashboard = AnalyticsDashboard(asyncio.Queue(), console=console)
    dashboard.update_from_snapshot(snapshot)
    console.print(dashboard.generate_static_view(console.width))


async def _run_app(config: DashboardConfig, source, console: Console, *, show_dashboard: bool) -> None:
    app = DashboardApp(config=config, source=source, show_dashboard=show_dashboard, console=console)
    await app.run()


if __name__ == "__main__":
    sys.exit(main())
