"""
Transaction Request Validation

DESIGN DECISION: Validation collects EVERY problem before failing.
The form shows the user the full list of missing fields at once rather
than one error per submit.

Rules:
- name, type, date, account: non-empty after trimming
- amount: present, parseable, strictly positive
  (a non-positive amount is reported as missing)
- category: required only for expenses; never for income; optional when
  the type is neither recognizably income nor expense

IMPORTANT: Validation never fixes input. It only reports.
"""

import math
from typing import Any, Optional

from src.models.finance import (
    TransactionKind,
    TransactionRequest,
    TransactionValidation,
    ValidationIssue,
)


REQUIRED_TEXT_FIELDS = ("name", "amount", "type", "date", "account")


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    return not str(value).strip()


def parse_amount(value: Any) -> Optional[float]:
    """
    Parse an amount, returning None unless it is a finite positive number.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        amount = float(str(value).strip())
    except (TypeError, ValueError):
        return None
    if not math.isfinite(amount) or amount <= 0:
        return None
    return amount


def classify_raw_type(raw_type: Optional[str]) -> Optional[TransactionKind]:
    """
    Classify a free-text transaction type.

    Returns None when the text names neither income nor expense.
    """
    if not raw_type:
        return None
    lowered = raw_type.lower()
    if "income" in lowered:
        return TransactionKind.INCOME
    if "expense" in lowered:
        return TransactionKind.EXPENSE
    return None


class TransactionValidator:
    """Validates transaction requests before anything is sent to Notion."""

    def validate(self, request: TransactionRequest) -> TransactionValidation:
        """
        Validate a transaction request.

        Args:
            request: The raw request

        Returns:
            TransactionValidation with every issue found, in field order
        """
        issues = []
        amount = None

        for field_name in REQUIRED_TEXT_FIELDS:
            value = getattr(request, field_name)

            if field_name == "amount":
                amount = parse_amount(value)
                if amount is None:
                    issues.append(ValidationIssue(
                        field="amount",
                        issue_type="missing" if _is_blank(value) else "invalid_value",
                        message="Amount is required and must be greater than zero",
                    ))
                continue

            if _is_blank(value):
                issues.append(ValidationIssue(
                    field=field_name,
                    issue_type="missing",
                    message=f"{field_name.capitalize()} is required",
                ))

        kind = classify_raw_type(request.type)
        category_required = kind == TransactionKind.EXPENSE
        if category_required and _is_blank(request.category):
            issues.append(ValidationIssue(
                field="category",
                issue_type="missing",
                message="Category is required for expenses",
            ))

        return TransactionValidation(
            issues=issues,
            amount=amount,
            classification=kind or TransactionKind.EXPENSE,
            category_required=category_required,
        )
