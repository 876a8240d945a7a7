"""Fixed-point conversions between atomic integer amounts and decimal amounts.

All monetary values use Decimal. Never use float for balances, yields or
percentages: binary floating point makes idle capital drift negative when
a wallet balance and a position value are equal.
"""

import math
import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from typing import Any

# Largest decimal exponent accepted for an amount, and largest asset precision.
# Both leave u128 atomic amounts at 18 decimals well inside the range.
MAX_MAGNITUDE = 60
MAX_DECIMALS = 60

# Room to scale a bounded amount by a bounded precision and quantize it exactly.
_WORKING_PRECISION = MAX_MAGNITUDE + MAX_DECIMALS + 2

_LEADING_INTEGER = re.compile(r"[+-]?\d+")

ZERO = Decimal("0")


def is_finite_number(value: Any) -> bool:
    """Return True for int, finite float and finite Decimal values (bools excluded)."""
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    if isinstance(value, float):
        return math.isfinite(value)
    if isinstance(value, Decimal):
        return value.is_finite()
    return False


def _bounded(value: Decimal, default: Decimal | None) -> Decimal | None:
    if not value.is_finite():
        return default
    if abs(value.adjusted()) > MAX_MAGNITUDE:
        return default
    return value


def to_decimal(value: Any, default: Decimal | None = ZERO) -> Decimal | None:
    """Coerce an upstream value to Decimal without ever raising.

    Accepts int, finite float, finite Decimal and numeric strings.
    Floats go through str() so 0.1 becomes Decimal("0.1"), not its binary
    expansion. Values whose exponent lies beyond +/-MAX_MAGNITUDE are rejected:
    "1e3000000" parses cheaply but expands to a multi-million digit integer.
    Anything rejected returns ``default``.
    """
    if isinstance(value, bool):
        return default
    if isinstance(value, Decimal):
        return _bounded(value, default)
    if isinstance(value, int):
        return _bounded(Decimal(value), default)
    if isinstance(value, float):
        if not math.isfinite(value):
            return default
        return _bounded(Decimal(str(value)), default)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return default
        try:
            parsed = Decimal(text)
        except InvalidOperation:
            return default
        return _bounded(parsed, default)
    return default


def to_int(value: Any, default: int = 0) -> int:
    """Coerce an upstream value to an integer amount, truncating any fraction."""
    parsed = to_decimal(value, default=None)
    if parsed is None:
        return default
    return int(parsed)


def normalise_with_decimals(amount: Any, decimals: Any) -> Decimal:
    """Convert an atomic amount to a decimal amount: ``amount / 10**decimals``.

    The result is exact. Returns zero when either input is not a finite
    number, or when ``decimals`` lies outside +/-MAX_DECIMALS.
    """
    if not is_finite_number(amount) or not is_finite_number(decimals):
        return ZERO
    if abs(int(decimals)) > MAX_DECIMALS:
        return ZERO

    with localcontext() as ctx:
        ctx.prec = _WORKING_PRECISION
        try:
            return to_decimal(amount).scaleb(-int(decimals))
        except InvalidOperation:
            return ZERO


def to_atomic_units(amount: Any, decimals: int) -> int:
    """Convert a decimal amount to whole atomic units.

    Rounds half away from zero so the result is never a fractional unit.

    Args:
        amount: Decimal amount (Decimal, int, float or numeric string).
        decimals: The asset's decimal precision (e.g. 6 for USDC).

    Returns:
        The amount in atomic units, or 0 when ``amount`` is not numeric.
    """
    value = to_decimal(amount)
    with localcontext() as ctx:
        ctx.prec = _WORKING_PRECISION
        scaled = value.scaleb(int(decimals))
        return int(scaled.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def to_normalised_yield(raw_value: Any, decimals: int) -> Decimal:
    """Normalise an upstream yield-earned value.

    The upstream reports yield as an over-scaled integer that may be
    rendered with a decimal point. Only the integer component before the
    point is kept, then scaled down: "3.457" at 6 decimals is 0.000003.
    Every yield-earned conversion goes through this function so the
    encoding can be swapped in one place.
    """
    if is_finite_number(raw_value):
        text = format(to_decimal(raw_value), "f")
    elif isinstance(raw_value, str):
        text = raw_value.strip()
    else:
        text = ""

    match = _LEADING_INTEGER.match(text.split(".", 1)[0])
    integer_part = to_decimal(match.group()) if match else ZERO
    return normalise_with_decimals(integer_part, decimals)


def quantize_to_decimals(value: Decimal, decimals: int) -> Decimal:
    """Round a decimal amount to the asset's native precision."""
    with localcontext() as ctx:
        ctx.prec = _WORKING_PRECISION
        return value.quantize(Decimal(1).scaleb(-int(decimals)))
