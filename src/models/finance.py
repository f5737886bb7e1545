"""
Finance Models for Notion Ledger

These are the fixed internal shapes the rest of the system works with,
regardless of how the user's Notion databases are laid out.

Accounts and categories mirror external records; nothing here is stored
by this system. Balances are recomputed on every request.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TransactionKind(str, Enum):
    """
    Direction of a transaction.

    Every read path normalizes to one of these two values.
    Anything unrecognized is treated as an expense.
    """
    INCOME = "income"
    EXPENSE = "expense"


# =============================================================================
# INBOUND
# =============================================================================

class TransactionRequest(BaseModel):
    """
    A transaction as submitted by the form.

    All fields are optional here on purpose: validation reports every missing
    field at once instead of failing on the first one.
    """
    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = None
    amount: Any = None
    type: Optional[str] = None
    date: Optional[str] = None
    account: Optional[str] = None
    category: Optional[str] = None
    note: Optional[str] = None


# =============================================================================
# OUTBOUND
# =============================================================================

class Category(BaseModel):
    """A spending category (title of a Categories record)."""

    id: str
    name: str


class AccountSummary(BaseModel):
    """An account as listed in the account picker."""

    id: str
    name: str


class LastTransaction(BaseModel):
    """Most recent transaction linked to an account."""

    amount: float
    type: TransactionKind


class AccountBalance(BaseModel):
    """An account with its current balance."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    balance: float = 0.0
    last_transaction: Optional[LastTransaction] = Field(
        default=None,
        alias="lastTransaction",
    )

    @field_validator('balance')
    @classmethod
    def round_balance(cls, v: float) -> float:
        """Balances always carry exactly two decimal digits."""
        return round(float(v), 2)


class BalanceReport(BaseModel):
    """Response of the balance aggregation."""

    accounts: list[AccountBalance] = Field(default_factory=list)
    message: Optional[str] = None


class TransactionSummary(BaseModel):
    """A transaction as shown in the recent activity list."""

    name: str
    amount: float
    type: TransactionKind
    date: Optional[str] = None


class CreatedTransaction(BaseModel):
    """Result of a successful transaction write."""
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    page_id: str = Field(..., alias="pageId")
    message: str = "Transaction created successfully"


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single problem with a transaction request."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        pattern="^(missing|invalid_value)$",
        description="Type of issue"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )


class TransactionValidation(BaseModel):
    """
    Result of validating a transaction request.

    Issues are kept in field order so the missing-field list is stable.
    """

    issues: list[ValidationIssue] = Field(default_factory=list)
    amount: Optional[float] = Field(
        default=None,
        description="Parsed amount when valid"
    )
    classification: TransactionKind = TransactionKind.EXPENSE
    category_required: bool = False

    @property
    def is_valid(self) -> bool:
        return not self.issues

    @property
    def missing_fields(self) -> list[str]:
        return [issue.field for issue in self.issues]
