"""Formatting helpers that turn a ``Metrics`` record into display strings."""

from decimal import ROUND_HALF_UP, Context, Decimal

from .models import DisplayMetrics, Metrics

_ONE_DECIMAL = Decimal("0.1")
# wide enough for every digit of the largest float scaled down by 1e6
_QUANTIZE_CONTEXT = Context(prec=400)


def format_millions(value: float) -> str:
    """
    Format a value in millions with one decimal place and an ``M`` suffix.

    Rounds half away from zero on the exact binary value of ``value / 1e6``,
    so 1_250_000 gives ``1.3M`` while 950_000 (0.9499... in binary) gives ``0.9M``.
    Negative zero prints as ``0.0M``.
    """
    scaled = Decimal(value / 1_000_000).quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP, context=_QUANTIZE_CONTEXT)
    if scaled.is_zero():
        scaled = abs(scaled)
    return f"{scaled}M"


def format_count(value: int) -> str:
    return str(int(value))


def derive(metrics: Metrics) -> DisplayMetrics:
    """Map a metrics record to the four card values. Pure."""
    return DisplayMetrics(
        total_volume=format_millions(metrics.total_volume),
        active_users=format_count(metrics.active_users),
        total_staked=format_millions(metrics.total_staked),
        transactions_24h=format_count(metrics.transactions_24h),
    )
