"""
Data Models Package

This package contains all Pydantic models used in Notion Ledger.
All data flowing through the system must conform to these schemas.
"""

from src.models.finance import (
    AccountBalance,
    AccountSummary,
    BalanceReport,
    Category,
    CreatedTransaction,
    LastTransaction,
    TransactionKind,
    TransactionRequest,
    TransactionSummary,
    TransactionValidation,
    ValidationIssue,
)
from src.models.schema import (
    ACCOUNT_ROLES,
    CATEGORY_ROLES,
    TRANSACTION_ROLES,
    AccountProperties,
    CategoryProperties,
    DatabaseSchema,
    PropertyDescriptor,
    PropertyType,
    Role,
    RoleSpec,
    TransactionProperties,
)
from src.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Finance models
    "AccountBalance",
    "AccountSummary",
    "BalanceReport",
    "Category",
    "CreatedTransaction",
    "LastTransaction",
    "TransactionKind",
    "TransactionRequest",
    "TransactionSummary",
    "TransactionValidation",
    "ValidationIssue",
    # Schema models
    "ACCOUNT_ROLES",
    "CATEGORY_ROLES",
    "TRANSACTION_ROLES",
    "AccountProperties",
    "CategoryProperties",
    "DatabaseSchema",
    "PropertyDescriptor",
    "PropertyType",
    "Role",
    "RoleSpec",
    "TransactionProperties",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
