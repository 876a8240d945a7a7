"""User-entered amount validation for deposit and withdraw forms.

Runs before any network call: an amount that fails here never reaches the
BFF or the upstream API.
"""

from dataclasses import dataclass
from decimal import Decimal

from fundboard.amounts import to_decimal
from fundboard.exceptions import AmountValidationError
from fundboard.formatting import format_number
from fundboard.models import TransactionKind


@dataclass(frozen=True)
class AmountValidation:
    """Outcome of validating one amount input."""

    parsed_amount: Decimal | None
    is_positive: bool
    exceeds_balance: bool
    message: str

    @property
    def is_valid(self) -> bool:
        return self.is_positive and not self.exceeds_balance


def parse_amount(text: str | None) -> Decimal | None:
    """Parse a user-entered amount.

    Thousands separators are stripped. Blank input, a lone "." and
    anything that is not a finite, sanely sized number give None.
    """
    if not text:
        return None
    normalized = text.replace(",", "").strip()
    if not normalized or normalized == ".":
        return None
    return to_decimal(normalized, default=None)


def validate_amount(
    amount: str | None,
    action: TransactionKind,
    base_asset: str,
    available_balance: Decimal | None = None,
    check_balance: bool = True,
) -> AmountValidation:
    """Validate an amount against positivity and an optional balance ceiling.

    An empty input is invalid but carries no message, so a form does not
    show an error before the user types anything.
    """
    parsed = parse_amount(amount)
    is_positive = parsed is not None and parsed > 0
    exceeds_balance = (
        check_balance
        and available_balance is not None
        and is_positive
        and parsed > available_balance
    )

    if not amount:
        message = ""
    elif not is_positive:
        message = f"Enter a positive {action.value} amount"
    elif exceeds_balance:
        message = (
            f"Amount exceeds available balance "
            f"({format_number(available_balance)} {base_asset})"
        )
    else:
        message = ""

    return AmountValidation(
        parsed_amount=parsed,
        is_positive=is_positive,
        exceeds_balance=bool(exceeds_balance),
        message=message,
    )


def require_valid_amount(
    amount: str | None,
    action: TransactionKind,
    base_asset: str,
    available_balance: Decimal | None = None,
    check_balance: bool = True,
) -> Decimal:
    """Return the parsed amount or raise AmountValidationError with the user-facing message."""
    result = validate_amount(amount, action, base_asset, available_balance, check_balance)
    if not result.is_valid or result.parsed_amount is None:
        raise AmountValidationError(result.message or f"Enter a positive {action.value} amount")
    return result.parsed_amount
