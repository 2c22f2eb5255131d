"""Display formatting helpers shared by the CLI and services."""

from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional


def round_hours(seconds: int | float) -> float:
    """Convert seconds to hours rounded half-up to one decimal."""
    hours = Decimal(str(seconds)) / Decimal(3600)
    return float(hours.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def sum_durations(durations: Iterable[Optional[int]]) -> int:
    """Sum durations in seconds, treating missing values as zero."""
    return sum(d or 0 for d in durations)


def format_duration(seconds: int) -> str:
    """Format seconds as HH:MM:SS."""
    seconds = max(0, int(seconds))
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def format_money(amount: Decimal, currency: str = "USD") -> str:
    """Format a money amount with two decimals and its currency code."""
    return f"{amount:,.2f} {currency}"


def percent_change(current: Decimal | float, previous: Decimal | float) -> str:
    """Signed percentage change from previous to current, one decimal.

    A previous value of zero reports "+100%".
    """
    if previous == 0:
        return "+100%"
    change = (float(current) - float(previous)) / float(previous) * 100
    sign = "+" if change >= 0 else ""
    return f"{sign}{change:.1f}%"
