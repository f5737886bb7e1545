"""
Audit Models for Notion Ledger

Every significant action against the Notion workspace is logged.
This provides:
1. Traceability of every write
2. Debugging information when a schema mapping goes wrong
3. Visibility into degraded reads (sort fallbacks, failed accounts)

DESIGN DECISION: Audit events go to the structured log only.
Notion stays the single system of record for financial data.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Schema
    SCHEMA_FETCHED = "schema_fetched"

    # Queries
    QUERY_SORT_FALLBACK = "query_sort_fallback"

    # Transactions
    TRANSACTION_CREATED = "transaction_created"
    TRANSACTION_REJECTED = "transaction_rejected"

    # Balances
    ACCOUNT_DEGRADED = "account_degraded"

    # Authentication
    LOGIN_SUCCEEDED = "login_succeeded"
    LOGIN_FAILED = "login_failed"

    # System events
    SYSTEM_ERROR = "system_error"
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Every significant action creates one of these.
    """

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # What is this about? Notion ids are opaque strings.
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'account', 'database')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="External identifier of the entity"
    )

    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate events of one request"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_code: Optional[str] = None
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_created(page_id, name, amount)
        event = AuditEventBuilder.account_degraded(account_id, error)
    """

    @staticmethod
    def schema_fetched(
        database_id: str,
        property_count: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SCHEMA_FETCHED,
            severity=AuditSeverity.DEBUG,
            entity_type="database",
            entity_id=database_id,
            description=f"Schema fetched with {property_count} properties",
            details={"property_count": property_count},
        )

    @staticmethod
    def query_sort_fallback(
        database_id: str,
        sort_property: Optional[str],
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.QUERY_SORT_FALLBACK,
            severity=AuditSeverity.WARNING,
            entity_type="database",
            entity_id=database_id,
            description="Sorted query rejected, fetched unsorted",
            details={"sort_property": sort_property},
            error_message=error_message,
        )

    @staticmethod
    def transaction_created(
        page_id: str,
        name: str,
        amount: float,
        transaction_type: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_CREATED,
            entity_type="transaction",
            entity_id=page_id,
            correlation_id=correlation_id,
            description=f"Transaction created: {name[:200]}",
            details={
                "amount": amount,
                "type": transaction_type,
            },
            is_user_action=True,
        )

    @staticmethod
    def transaction_rejected(
        reason: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="transaction",
            correlation_id=correlation_id,
            description=f"Transaction rejected: {reason}",
            details=details or {},
            is_user_action=True,
        )

    @staticmethod
    def account_degraded(
        account_id: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_DEGRADED,
            severity=AuditSeverity.WARNING,
            entity_type="account",
            entity_id=account_id,
            correlation_id=correlation_id,
            description="Account balance degraded to zero",
            error_message=error_message,
        )

    @staticmethod
    def login(
        username: str,
        succeeded: bool,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=(
                AuditEventType.LOGIN_SUCCEEDED
                if succeeded
                else AuditEventType.LOGIN_FAILED
            ),
            severity=AuditSeverity.INFO if succeeded else AuditSeverity.WARNING,
            entity_type="session",
            description="Login succeeded" if succeeded else "Login failed",
            details={"username": username},
            is_user_action=True,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_code: Optional[str],
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"External service error: {service}",
            error_code=error_code,
            error_message=error_message,
            details={
                "service": service,
            },
            correlation_id=correlation_id,
        )
