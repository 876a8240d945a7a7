"""Upstream response mapper.

Converts loosely typed Breeze yield and balance records into the
normalized models. Every field access goes through a total coercion
helper: a missing or wrong-typed field never raises, it falls back to the
model default (None for optional fields, zero for amounts).

The yield endpoint returns a history array. The "current" entry is the
first one (the order Breeze consistently returns) unless a fund id is
requested, in which case it is looked up by fund id.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from fundboard.amounts import (
    MAX_DECIMALS,
    ZERO,
    normalise_with_decimals,
    to_decimal,
    to_int,
    to_normalised_yield,
)
from fundboard.formatting import parse_iso_timestamp
from fundboard.models import (
    MetricsHistoryPoint,
    MetricsSummary,
    TokenBalanceEntry,
    YieldBalance,
)
from fundboard.upstream.types import RawBalanceEntry, RawYieldBalance, RawYieldEntry

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_SECONDS_PER_DAY = 86400


def _string_field(record: Any, key: str) -> str | None:
    """Return record[key] only if it is a string."""
    if not isinstance(record, dict):
        return None
    value = record.get(key)
    return value if isinstance(value, str) else None


def _number_field(record: Any, key: str) -> Decimal | None:
    """Return record[key] as Decimal if it is a number or numeric string."""
    if not isinstance(record, dict):
        return None
    return to_decimal(record.get(key), default=None)


def entries_of(envelope: Any) -> list[Any]:
    """Return the ``data`` array of an upstream envelope, or an empty list."""
    if isinstance(envelope, dict):
        data = envelope.get("data")
        if isinstance(data, list):
            return data
    return []


def map_yield_balance(raw: RawYieldBalance | None) -> YieldBalance | None:
    """Map a yield_balance sub-object; None when absent or not an object."""
    if not isinstance(raw, dict):
        return None
    return YieldBalance(
        fund_id=_string_field(raw, "fund_id") or "",
        funds=to_int(raw.get("funds")),
        amount_of_yield=to_int(raw.get("amount_of_yield")),
        fund_apy=_number_field(raw, "fund_apy") or ZERO,
    )


def map_balance_entry(raw: RawBalanceEntry) -> TokenBalanceEntry:
    """Map one balance record, normalising the atomic total exactly."""
    decimals = to_int(raw.get("decimals") if isinstance(raw, dict) else None)
    if not 0 <= decimals <= MAX_DECIMALS:
        decimals = 0
    total_balance = to_int(raw.get("total_balance") if isinstance(raw, dict) else None)
    return TokenBalanceEntry(
        token_address=_string_field(raw, "token_address") or "",
        token_symbol=_string_field(raw, "token_symbol") or "",
        token_name=_string_field(raw, "token_name") or "",
        decimals=decimals,
        total_balance=total_balance,
        normalized_balance=normalise_with_decimals(total_balance, decimals),
        yield_balance=map_yield_balance(
            raw.get("yield_balance") if isinstance(raw, dict) else None
        ),
    )


def map_balances(entries: list[Any]) -> list[TokenBalanceEntry]:
    """Map every balance record; non-object entries are skipped."""
    return [map_balance_entry(entry) for entry in entries if isinstance(entry, dict)]


def select_yield_entry(
    entries: list[Any], fund_id: str | None = None
) -> RawYieldEntry | None:
    """Pick the current yield entry.

    Without a fund id this is the first entry. With one, the first entry
    whose fund_id matches; None when no entry matches.
    """
    candidates = [entry for entry in entries if isinstance(entry, dict)]
    if not candidates:
        return None
    if fund_id is None:
        return candidates[0]
    for entry in candidates:
        if _string_field(entry, "fund_id") == fund_id:
            return entry
    return None


def resolve_fund_id(configured: str | None, entries: list[Any]) -> str | None:
    """Configured fund id, else the fund_id of the first yield entry."""
    if configured:
        return configured
    first = select_yield_entry(entries)
    return _string_field(first, "fund_id")


def days_since(entry_date: str | None, now: datetime | None = None) -> int | None:
    """Whole days elapsed since entry_date, never negative; None when unparsable."""
    parsed = parse_iso_timestamp(entry_date)
    if parsed is None:
        return None
    current = now or datetime.now(timezone.utc)
    elapsed = (current - parsed).total_seconds()
    return max(int(elapsed // _SECONDS_PER_DAY), 0)


def build_summary(
    entry: RawYieldEntry | None,
    balances: list[TokenBalanceEntry] | None,
    decimals: int,
    now: datetime | None = None,
) -> MetricsSummary:
    """Build the headline summary from the current yield entry and balances.

    total_portfolio_value is the sum of normalized wallet balances. When
    no entry is available every yield-derived field takes its default.
    """
    portfolio_value = sum(
        (balance.normalized_balance for balance in balances or []), ZERO
    )
    if entry is None:
        return MetricsSummary(total_portfolio_value=portfolio_value)

    entry_date = _string_field(entry, "entry_date")
    return MetricsSummary(
        current_apy=_number_field(entry, "apy"),
        total_yield_earned=to_normalised_yield(entry.get("yield_earned"), decimals),
        total_position_value=_number_field(entry, "position_value") or ZERO,
        total_portfolio_value=portfolio_value,
        last_updated=_string_field(entry, "last_updated"),
        base_asset=_string_field(entry, "base_asset"),
        fund_name=_string_field(entry, "fund_name"),
        entry_date=entry_date,
        days_in_fund=days_since(entry_date, now),
    )


def _history_sort_key(point: MetricsHistoryPoint) -> datetime:
    return parse_iso_timestamp(point.timestamp) or _EPOCH


def build_history(entries: list[Any], decimals: int) -> list[MetricsHistoryPoint]:
    """Build an ascending yield history.

    Each entry is stamped with last_updated, falling back to entry_date.
    Entries with neither are dropped. The sort is stable and unparsable
    timestamps sort as the epoch.
    """
    points: list[MetricsHistoryPoint] = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        timestamp = _string_field(entry, "last_updated") or _string_field(
            entry, "entry_date"
        )
        if not timestamp:
            continue
        points.append(
            MetricsHistoryPoint(
                timestamp=timestamp,
                apy=_number_field(entry, "apy") or ZERO,
                position_value=_number_field(entry, "position_value") or ZERO,
                yield_earned=to_normalised_yield(entry.get("yield_earned"), decimals),
            )
        )
    return sorted(points, key=_history_sort_key)
