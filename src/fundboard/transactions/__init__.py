"""Transaction layer -- amount validation and deposit/withdraw request building."""

from fundboard.transactions.builder import TransactionRequestBuilder
from fundboard.transactions.validation import (
    AmountValidation,
    parse_amount,
    require_valid_amount,
    validate_amount,
)

__all__ = [
    "AmountValidation",
    "TransactionRequestBuilder",
    "parse_amount",
    "require_valid_amount",
    "validate_amount",
]
