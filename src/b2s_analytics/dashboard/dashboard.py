"""Rich-based dashboard for displaying contract analytics."""

from __future__ import annotations

import asyncio
import math

from blessed import Terminal
from loguru import logger
from rich.align import Align
from rich.console import Console, Group, RenderableType
from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .. import settings
from ..models import DashboardSnapshot
from .utils import (
    CHARTS,
    DASHBOARD_SUBTITLE,
    DASHBOARD_TITLE,
    LOADING_MESSAGE,
    METRIC_CARDS,
    MetricCardSpec,
    ThemePalette,
    card_value,
    get_palette,
    grid_columns,
    is_positive_change,
)

CARD_MIN_WIDTH = 30
CARD_HEIGHT = 6
CHART_MIN_WIDTH = 50


class AnalyticsDashboard:
    """Rich-based dashboard that renders snapshots published by the view model."""

    def __init__(
        self,
        snapshot_queue: asyncio.Queue[DashboardSnapshot],
        refresh_interval: float = settings.UI_REFRESH_INTERVAL,
        console: Console | None = None,
    ):
        self.term = Terminal()
        self.console = console or Console()
        self.layout = Layout()
        self.snapshot_queue = snapshot_queue
        self.refresh_interval = refresh_interval
        self.current_snapshot: DashboardSnapshot | None = None

        self.setup_layout()

    def setup_layout(self):
        """Configure the dashboard layout structure."""
        self.layout.split(
            Layout(name="header", size=4),
            Layout(name="metrics", size=CARD_HEIGHT),
            Layout(name="charts", ratio=1),
            Layout(name="footer", size=3),
        )

    @property
    def palette(self) -> ThemePalette:
        theme = self.current_snapshot.theme if self.current_snapshot else settings.THEME
        return get_palette(theme)

    def available_width(self) -> int:
        try:
            return self.term.width or self.console.width
        except Exception:
            return self.console.width

    def generate_header(self) -> Panel:
        palette = self.palette
        header = Text(justify="center")
        header.append(DASHBOARD_TITLE + "\n", style=f"bold {palette.text}")
        header.append(DASHBOARD_SUBTITLE, style=palette.text)
        return Panel(
            Align.center(header),
            style=f"on {palette.background}",
            border_style=palette.border,
            padding=(0, 1),
        )

    def generate_card(self, card: MetricCardSpec, value: str) -> Panel:
        """Render a single metric tile."""
        palette = self.palette
        change_style = palette.positive if is_positive_change(card.change) else palette.negative

        body = Text()
        body.append(f"{card.icon} {card.title}\n", style=f"dim {palette.text}")
        body.append(value, style=f"bold {palette.text}")
        body.append(f" {card.unit}\n", style=f"dim {palette.text}")
        body.append(f"{card.change} vs last period", style=change_style)

        return Panel(body, style=f"on {palette.card}", border_style=palette.border, padding=(0, 1))

    def generate_metric_cards(self, width: int | None = None) -> Table:
        """Lay out the metric cards in as many columns as fit."""
        snapshot = self.current_snapshot
        if snapshot is None:
            raise RuntimeError("No snapshot to render")

        columns = grid_columns(width or self.available_width(), CARD_MIN_WIDTH, len(METRIC_CARDS))
        grid = Table.grid(expand=True, padding=(0, 1))
        for _ in range(columns):
            grid.add_column(ratio=1)

        cards = [self.generate_card(card, card_value(snapshot.display, card)) for card in METRIC_CARDS]
        for start in range(0, len(cards), columns):
            row = cards[start : start + columns]
            grid.add_row(*row, *([""] * (columns - len(row))))
        return grid

    def generate_charts(self, width: int | None = None) -> Table:
        """Generate the chart placeholder panels."""
        palette = self.palette
        columns = grid_columns(width or self.available_width(), CHART_MIN_WIDTH, len(CHARTS))
        grid = Table.grid(expand=True, padding=(0, 1))
        for _ in range(columns):
            grid.add_column(ratio=1)

        panels = []
        for chart in CHARTS:
            body = Text(justify="center")
            body.append(chart.placeholder + "\n", style=palette.text)
            body.append(chart.note, style=f"dim {palette.text}")
            panels.append(
                Panel(
                    Align.center(body, vertical="middle"),
                    title=chart.title,
                    style=f"on {palette.card}",
                    border_style=palette.placeholder_border,
                    padding=(1, 1),
                )
            )
        for start in range(0, len(panels), columns):
            row = panels[start : start + columns]
            grid.add_row(*row, *([""] * (columns - len(row))))
        return grid

    def generate_footer(self) -> Panel:
        """Generate the footer panel with refresh status."""
        palette = self.palette
        snapshot = self.current_snapshot
        parts: list[str] = []
        if snapshot is not None:
            parts.append(f"Contract {snapshot.contract_address}")
            if snapshot.last_updated is not None:
                parts.append(f"Last update {snapshot.last_updated.astimezone().strftime('%H:%M:%S')}")
        parts.append("Press Ctrl+C to exit")

        footer = Text(" · ".join(parts), style=palette.text)
        if snapshot is not None and snapshot.last_error:
            footer.append("  Last refresh failed, showing previous values", style=palette.negative)
        return Panel(Align.center(footer), style=f"on {palette.background}", border_style=palette.border)

    def generate_loading(self) -> Panel:
        palette = self.palette
        return Panel(
            Align.center(Text(LOADING_MESSAGE, style=f"bold {palette.text}"), vertical="middle"),
            style=f"on {palette.background}",
            border_style=palette.border,
        )

    def generate_static_view(self, width: int | None = None) -> RenderableType:
        """Render the dashboard as a plain renderable, for non-live output."""
        snapshot = self.current_snapshot
        if snapshot is None or snapshot.loading:
            return self.generate_loading()
        return Group(
            self.generate_header(),
            self.generate_metric_cards(width),
            self.generate_charts(width),
            self.generate_footer(),
        )

    def update_from_snapshot(self, snapshot: DashboardSnapshot):
        """Update dashboard state from a snapshot."""
        self.current_snapshot = snapshot

    def render(self) -> RenderableType:
        """Render the complete dashboard layout."""
        snapshot = self.current_snapshot
        if snapshot is None or snapshot.loading:
            return self.generate_loading()

        width = self.available_width()
        card_rows = math.ceil(len(METRIC_CARDS) / grid_columns(width, CARD_MIN_WIDTH, len(METRIC_CARDS)))
        self.layout["metrics"].size = card_rows * CARD_HEIGHT

        self.layout["header"].update(self.generate_header())
        self.layout["metrics"].update(self.generate_metric_cards(width))
        self.layout["charts"].update(self.generate_charts(width))
        self.layout["footer"].update(self.generate_footer())
        return self.layout

    def drain_queue(self) -> DashboardSnapshot | None:
        """Return the newest queued snapshot, discarding older ones."""
        snapshot: DashboardSnapshot | None = None
        try:
            while True:
                snapshot = self.snapshot_queue.get_nowait()
        except asyncio.QueueEmpty:
            pass
        return snapshot

    async def run(self):
        """Run the dashboard with live updates."""
        try:
            with Live(self.render(), console=self.console, refresh_per_second=4, screen=True) as live:
                while True:
                    snapshot = self.drain_queue()
                    if snapshot:
                        logger.debug(
                            f"Dashboard received snapshot: loading={snapshot.loading}, "
                            f"fetches={snapshot.fetch_count}, failures={snapshot.failure_count}"
                        )
                        self.update_from_snapshot(snapshot)

                    try:
                        live.update(self.render())
                    except Exception as e:
                        logger.exception(f"Error rendering dashboard: {e}")
                        live.update(Panel(f"Dashboard rendering error: {e}", style="red"))

                    await asyncio.sleep(self.refresh_interval)
        except KeyboardInterrupt:
            self.console.print("\n[bold yellow]Dashboard stopped.[/]")
        except Exception as e:
            logger.exception(f"Dashboard run error: {e}")
            raise
