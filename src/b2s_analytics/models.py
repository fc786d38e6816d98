"""Data models for the analytics dashboard."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Literal, Mapping, Optional, get_args

from . import settings
from .exceptions import ConfigurationError, FetchError

Theme = Literal["light", "dark"]

# Wire name -> attribute name
_PAYLOAD_FIELDS = {
    "totalVolume": "total_volume",
    "activeUsers": "active_users",
    "totalStaked": "total_staked",
    "transactions24h": "transactions_24h",
}


@dataclass(frozen=True, slots=True)
class Metrics:
    """Four-field numeric snapshot shown by the dashboard."""

    total_volume: float = 0.0
    active_users: int = 0
    total_staked: float = 0.0
    transactions_24h: int = 0

    def __post_init__(self) -> None:
        for name in ("total_volume", "total_staked"):
            value = getattr(self, name)
            if not math.isfinite(value) or value < 0:
                raise ValueError(f"{name} must be a finite non-negative number, got {value!r}")
        for name in ("active_users", "transactions_24h"):
            value = getattr(self, name)
            if value < 0:
                raise ValueError(f"{name} must be non-negative, got {value!r}")

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Metrics":
        """
        Build a record from an API payload.

        Accepts the camelCase wire keys or their snake_case forms, optionally
        nested under a ``data`` key. Raises ``ValueError`` for missing or
        non-numeric fields.
        """
        if not isinstance(payload, Mapping):
            raise ValueError(f"Metrics payload must be an object, got {type(payload).__name__}")
        if isinstance(payload.get("data"), Mapping):
            payload = payload["data"]

        values: dict[str, float | int] = {}
        for wire_name, attr in _PAYLOAD_FIELDS.items():
            raw = payload.get(wire_name, payload.get(attr))
            if raw is None:
                raise ValueError(f"Metrics payload is missing '{wire_name}'")
            if isinstance(raw, bool):
                raise ValueError(f"'{wire_name}' must be numeric, got {raw!r}")
            try:
                number = float(raw)
            except (TypeError, ValueError) as exc:
                raise ValueError(f"'{wire_name}' must be numeric, got {raw!r}") from exc
            if attr in ("active_users", "transactions_24h"):
                if not number.is_integer():
                    raise ValueError(f"'{wire_name}' must be an integer, got {raw!r}")
                values[attr] = int(number)
            else:
                values[attr] = number
        return cls(**values)


@dataclass(frozen=True, slots=True)
class DashboardConfig:
    """Options the dashboard is mounted with."""

    contract_address: str
    api_endpoint: str = settings.DEFAULT_API_ENDPOINT
    refresh_interval: int = settings.DEFAULT_REFRESH_INTERVAL_MS  # milliseconds
    theme: Theme = settings.DEFAULT_THEME

    def __post_init__(self) -> None:
        if not isinstance(self.contract_address, str) or not self.contract_address.strip():
            raise ConfigurationError("contract_address is required")
        if not isinstance(self.api_endpoint, str) or not self.api_endpoint.strip():
            raise ConfigurationError("api_endpoint must be a non-empty string")
        if (
            isinstance(self.refresh_interval, bool)
            or not isinstance(self.refresh_interval, int)
            or self.refresh_interval <= 0
        ):
            raise ConfigurationError(
                f"refresh_interval must be a positive integer of milliseconds, got {self.refresh_interval!r}"
            )
        if self.theme not in get_args(Theme):
            raise ConfigurationError(f"theme must be one of {', '.join(get_args(Theme))}, got {self.theme!r}")

    @property
    def refresh_seconds(self) -> float:
        return self.refresh_interval / 1000


@dataclass(frozen=True, slots=True)
class ViewState:
    """Display state owned by the view model. Replaced, never mutated."""

    metrics: Metrics = field(default_factory=Metrics)
    loading: bool = True
    last_updated: Optional[datetime] = None

    def with_metrics(self, metrics: Metrics, updated_at: datetime) -> "ViewState":
        return replace(self, metrics=metrics, loading=False, last_updated=updated_at)

    def ready(self) -> "ViewState":
        return replace(self, loading=False)


@dataclass(frozen=True, slots=True)
class DisplayMetrics:
    """Formatted strings for the four metric cards."""

    total_volume: str
    active_users: str
    total_staked: str
    transactions_24h: str

    def as_list(self) -> list[str]:
        return [self.total_volume, self.active_users, self.total_staked, self.transactions_24h]


@dataclass(frozen=True, slots=True)
class FetchResult:
    """Outcome of a single fetch."""

    metrics: Optional[Metrics] = None
    error: Optional[FetchError] = None
    skipped: bool = False

    @property
    def ok(self) -> bool:
        return self.metrics is not None


@dataclass(slots=True)
class DashboardSnapshot:
    """Serializable view of dashboard data published to the renderer."""

    generated_at: datetime
    contract_address: str
    theme: Theme
    loading: bool
    metrics: Metrics
    display: DisplayMetrics
    last_updated: Optional[datetime] = None
    fetch_count: int = 0
    failure_count: int = 0
    last_error: Optional[str] = None
