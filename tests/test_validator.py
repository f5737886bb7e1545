"""Tests for transaction request validation."""

import pytest

from src.models import TransactionKind, TransactionRequest
from src.validation import TransactionValidator, classify_raw_type, parse_amount


def valid_request(**overrides) -> TransactionRequest:
    fields = {
        "name": "Groceries",
        "amount": "45.20",
        "type": "Expense",
        "date": "2024-03-01",
        "account": "acc-1",
        "category": "cat-food",
    }
    fields.update(overrides)
    return TransactionRequest(**fields)


class TestParseAmount:
    """Tests for amount parsing."""

    @pytest.mark.parametrize("value,expected", [
        ("45.20", 45.2),
        (12, 12.0),
        (" 7.5 ", 7.5),
        (0.01, 0.01),
    ])
    def test_positive_amounts(self, value, expected):
        assert parse_amount(value) == expected

    @pytest.mark.parametrize("value", [None, "", "0", 0, "-5", "abc", "nan", "inf", True])
    def test_rejected_amounts(self, value):
        """Zero, negatives, non-numbers and booleans are not amounts."""
        assert parse_amount(value) is None


class TestClassifyRawType:
    """Tests for classifying free-text types."""

    def test_income_and_expense(self):
        assert classify_raw_type("💰 Income") == TransactionKind.INCOME
        assert classify_raw_type("expense") == TransactionKind.EXPENSE

    def test_unrecognized(self):
        assert classify_raw_type("Transfer") is None
        assert classify_raw_type(None) is None


class TestTransactionValidator:
    """Tests for TransactionValidator."""

    validator = TransactionValidator()

    def test_valid_expense(self):
        result = self.validator.validate(valid_request())
        assert result.is_valid
        assert result.amount == 45.2
        assert result.category_required

    def test_all_missing_reported_at_once(self):
        """Every missing field is reported, in field order."""
        result = self.validator.validate(TransactionRequest())
        assert not result.is_valid
        assert result.missing_fields == ["name", "amount", "type", "date", "account"]

    def test_whitespace_only_counts_as_missing(self):
        result = self.validator.validate(valid_request(name="   ", account="\t"))
        assert result.missing_fields == ["name", "account"]

    def test_non_positive_amount_is_missing(self):
        """A zero amount is reported under the amount field."""
        result = self.validator.validate(valid_request(amount=0))
        assert result.missing_fields == ["amount"]
        assert result.issues[0].issue_type == "invalid_value"

    def test_blank_amount_issue_type(self):
        result = self.validator.validate(valid_request(amount="  "))
        assert result.issues[0].issue_type == "missing"

    def test_expense_requires_category(self):
        result = self.validator.validate(valid_request(category=None))
        assert result.missing_fields == ["category"]

    def test_category_reported_last(self):
        result = self.validator.validate(valid_request(name="", category=""))
        assert result.missing_fields == ["name", "category"]

    def test_income_does_not_require_category(self):
        result = self.validator.validate(valid_request(type="Income", category=None))
        assert result.is_valid
        assert not result.category_required
        assert result.classification == TransactionKind.INCOME

    def test_unrecognized_type_does_not_require_category(self):
        """Only types that read as an expense need a category."""
        result = self.validator.validate(valid_request(type="Transfer", category=None))
        assert result.is_valid
