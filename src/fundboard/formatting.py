"""Display helpers for dashboard numbers, percentages and timestamps."""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from fundboard.amounts import is_finite_number, to_decimal

QUICK_FILL_PERCENTAGES: tuple[float, ...] = (0.25, 0.5, 0.75, 1)


def parse_iso_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 string into an aware UTC datetime.

    Accepts a trailing "Z" and date-only strings. Naive values are taken
    as UTC. Returns None for anything unparsable.
    """
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_percent(value: Any = None) -> str:
    """Format a percentage with two decimals, or "-" when missing or NaN."""
    if value is None:
        return "-"
    if isinstance(value, (float, Decimal)) and value != value:  # NaN
        return "-"
    number = to_decimal(value, default=None)
    if number is None:
        return "-"
    return f"{number:.2f}%"


def format_number(value: Any) -> str:
    """Format an amount with thousands separators and two decimals."""
    if not is_finite_number(value):
        return "0.00"
    return f"{to_decimal(value):,.2f}"


def format_last_updated_label(
    last_updated: str | None, now: datetime | None = None
) -> str | None:
    """Return a relative "Updated ... ago" label, or None when unknown."""
    parsed = parse_iso_timestamp(last_updated)
    if parsed is None:
        return None

    current = now or datetime.now(timezone.utc)
    diff_seconds = (current - parsed).total_seconds()

    if diff_seconds < 60:
        return "Updated just now"

    minutes = int(diff_seconds // 60)
    if minutes < 60:
        return f"Updated {minutes} min{'' if minutes == 1 else 's'} ago"

    hours = minutes // 60
    if hours < 24:
        return f"Updated {hours} hr{'' if hours == 1 else 's'} ago"

    days = hours // 24
    return f"Updated {days} day{'' if days == 1 else 's'} ago"


def slice_public_key(public_key: str | None) -> str:
    """Shorten a wallet address to "ABCD...WXYZ"."""
    if not public_key:
        return ""
    return f"{public_key[:4]}...{public_key[-4:]}"


def quick_fill_amount(balance: Decimal, percentage: float, decimals: int = 6) -> str | None:
    """Amount string for a quick-fill button, or None when the balance is empty.

    The amount is rounded down to the asset precision and printed without
    trailing zeros.
    """
    if not is_finite_number(balance) or balance <= 0:
        return None

    target = to_decimal(balance) * to_decimal(percentage)
    if target <= 0:
        return None

    step = Decimal(1).scaleb(-decimals)
    rounded = (target // step) * step
    return format(rounded.normalize(), "f")


def format_quick_fill_label(percentage: float) -> str:
    """Quick-fill button label: "Max" for 100%, otherwise e.g. "25%"."""
    return "Max" if percentage == 1 else f"{round(percentage * 100)}%"
