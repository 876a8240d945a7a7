"""Tests for user-entered amount validation."""

from decimal import Decimal

import pytest

from fundboard.exceptions import AmountValidationError
from fundboard.models import TransactionKind
from fundboard.transactions.validation import (
    parse_amount,
    require_valid_amount,
    validate_amount,
)


class TestParseAmount:
    def test_commas_are_stripped(self) -> None:
        assert parse_amount("1,234.5") == Decimal("1234.5")

    @pytest.mark.parametrize(
        "text", [None, "", "  ", ".", "abc", "NaN", "Infinity", "1e3000000"]
    )
    def test_rejected(self, text: str | None) -> None:
        assert parse_amount(text) is None

    def test_negative_parses(self) -> None:
        assert parse_amount("-5") == Decimal("-5")


class TestValidateAmount:
    def test_valid_deposit(self) -> None:
        result = validate_amount("25", TransactionKind.DEPOSIT, "USDC")
        assert result.is_valid
        assert result.parsed_amount == Decimal("25")
        assert result.message == ""

    def test_negative_deposit(self) -> None:
        result = validate_amount("-5", TransactionKind.DEPOSIT, "USDC")
        assert not result.is_valid
        assert result.message == "Enter a positive deposit amount"

    def test_zero_withdraw(self) -> None:
        result = validate_amount("0", TransactionKind.WITHDRAW, "USDC")
        assert result.message == "Enter a positive withdraw amount"

    def test_empty_input_has_no_message(self) -> None:
        result = validate_amount("", TransactionKind.DEPOSIT, "USDC")
        assert not result.is_valid
        assert result.message == ""

    def test_exceeds_balance(self) -> None:
        result = validate_amount(
            "150", TransactionKind.WITHDRAW, "USDC", available_balance=Decimal("100")
        )
        assert not result.is_valid
        assert result.exceeds_balance
        assert result.message == "Amount exceeds available balance (100.00 USDC)"

    def test_balance_check_can_be_disabled(self) -> None:
        result = validate_amount(
            "150",
            TransactionKind.WITHDRAW,
            "USDC",
            available_balance=Decimal("100"),
            check_balance=False,
        )
        assert result.is_valid

    def test_equal_to_balance_is_valid(self) -> None:
        result = validate_amount(
            "100", TransactionKind.WITHDRAW, "USDC", available_balance=Decimal("100")
        )
        assert result.is_valid


class TestRequireValidAmount:
    def test_returns_amount(self) -> None:
        assert require_valid_amount("1,000", TransactionKind.DEPOSIT, "USDC") == Decimal("1000")

    def test_raises_with_message(self) -> None:
        with pytest.raises(AmountValidationError, match="Enter a positive deposit amount"):
            require_valid_amount("-5", TransactionKind.DEPOSIT, "USDC")

    def test_empty_input_still_explains(self) -> None:
        with pytest.raises(AmountValidationError, match="positive withdraw amount"):
            require_valid_amount("", TransactionKind.WITHDRAW, "USDC")
