"""Validation package."""

from src.validation.validator import (
    TransactionValidator,
    classify_raw_type,
    parse_amount,
)

__all__ = ["TransactionValidator", "classify_raw_type", "parse_amount"]
