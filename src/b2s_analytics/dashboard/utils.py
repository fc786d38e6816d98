"""Static content and helpers for the dashboard."""

from __future__ import annotations

from dataclasses import dataclass

from ..models import DisplayMetrics, Theme

DASHBOARD_TITLE = "📊 B2S Analytics Dashboard"
DASHBOARD_SUBTITLE = "Real-time metrics and insights"
LOADING_MESSAGE = "Loading analytics..."


@dataclass(frozen=True, slots=True)
class MetricCardSpec:
    title: str
    field: str  # attribute of DisplayMetrics
    unit: str
    change: str  # static label, not a computed trend
    icon: str


@dataclass(frozen=True, slots=True)
class ChartSpec:
    title: str
    placeholder: str
    note: str


METRIC_CARDS: tuple[MetricCardSpec, ...] = (
    MetricCardSpec(title="Total Volume", field="total_volume", unit="$B2S", change="+12.5%", icon="📈"),
    MetricCardSpec(title="Active Users", field="active_users", unit="wallets", change="+8.3%", icon="👥"),
    MetricCardSpec(title="Total Staked", field="total_staked", unit="$B2S", change="+15.2%", icon="🔒"),
    MetricCardSpec(title="24h Transactions", field="transactions_24h", unit="txns", change="+5.7%", icon="⚡"),
)

CHARTS: tuple[ChartSpec, ...] = (
    ChartSpec(
        title="📈 Volume Over Time",
        placeholder="Volume chart will be rendered here",
        note="Using Recharts library",
    ),
    ChartSpec(
        title="👥 User Growth",
        placeholder="User growth chart will be rendered here",
        note="Line chart with trend analysis",
    ),
    ChartSpec(
        title="🥧 Token Distribution",
        placeholder="Distribution pie chart will be rendered here",
        note="Top holders breakdown",
    ),
)


@dataclass(frozen=True, slots=True)
class ThemePalette:
    background: str
    text: str
    card: str
    border: str
    placeholder_border: str
    positive: str = "#10b981"
    negative: str = "#ef4444"


PALETTES: dict[Theme, ThemePalette] = {
    "dark": ThemePalette(
        background="#0f172a", text="#f1f5f9", card="#1e293b", border="#334155", placeholder_border="#334155"
    ),
    "light": ThemePalette(
        background="#ffffff", text="#0f172a", card="#f8fafc", border="#e2e8f0", placeholder_border="#cbd5e1"
    ),
}


def get_palette(theme: Theme) -> ThemePalette:
    return PALETTES.get(theme, PALETTES["dark"])


def is_positive_change(change: str) -> bool:
    return change.startswith("+")


def card_value(display: DisplayMetrics, card: MetricCardSpec) -> str:
    return getattr(display, card.field)


def grid_columns(width: int, min_cell_width: int, max_columns: int) -> int:
    """Number of equal columns of at least ``min_cell_width`` that fit in ``width``."""
    return max(1, min(max_columns, width // min_cell_width))
