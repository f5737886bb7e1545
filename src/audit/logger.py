"""
Audit Logger

DESIGN DECISION: Every significant interaction with Notion is logged.
This provides:
1. Traceability of every transaction write
2. Debugging capability when a user's schema doesn't map cleanly
3. Visibility into degraded reads that still return 200

The audit logger:
- Writes structured JSON through structlog
- Gracefully handles failures (logging never crashes a request)
- Supports correlation IDs to trace related events
"""

import logging
import sys
from typing import Optional
from uuid import UUID, uuid4

import structlog

from src.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


def configure_logging(level: str = "INFO") -> None:
    """
    Configure stdlib logging and structlog.

    Safe to call more than once.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )
    # basicConfig is a no-op once handlers exist
    logging.getLogger().setLevel(log_level)
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


configure_logging()


def get_logger(name: Optional[str] = None):
    return structlog.get_logger(name)


class AuditLogger:
    """
    Central audit logging service.

    Events go to the structured log only; Notion holds the financial data.
    """

    def __init__(self, name: str = "notion_ledger.audit"):
        self._logger = structlog.get_logger(name)

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns False if the event could not be written.
        """
        log_dict = event.to_log_dict()

        try:
            if event.severity == AuditSeverity.ERROR:
                self._logger.error("audit_event", **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            elif event.severity == AuditSeverity.DEBUG:
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception as e:
            # Never let logging break the request
            print(f"WARNING: Failed to write audit event: {e}", file=sys.stderr)
            return False

        return True

    def log_schema_fetched(self, database_id: str, property_count: int) -> None:
        self.log(AuditEventBuilder.schema_fetched(
            database_id=database_id,
            property_count=property_count,
        ))

    def log_sort_fallback(
        self,
        database_id: str,
        sort_property: Optional[str],
        error_message: str,
    ) -> None:
        """Log that a sorted query was rejected and retried unsorted."""
        self.log(AuditEventBuilder.query_sort_fallback(
            database_id=database_id,
            sort_property=sort_property,
            error_message=error_message,
        ))

    def log_transaction_created(
        self,
        page_id: str,
        name: str,
        amount: float,
        transaction_type: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.transaction_created(
            page_id=page_id,
            name=name,
            amount=amount,
            transaction_type=transaction_type,
            correlation_id=correlation_id,
        ))

    def log_transaction_rejected(
        self,
        reason: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.transaction_rejected(
            reason=reason,
            details=details,
            correlation_id=correlation_id,
        ))

    def log_account_degraded(
        self,
        account_id: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log that an account was reported with a zero balance after a failure."""
        self.log(AuditEventBuilder.account_degraded(
            account_id=account_id,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    def log_login(self, username: str, succeeded: bool) -> None:
        self.log(AuditEventBuilder.login(username=username, succeeded=succeeded))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))

    def log_external_service_error(
        self,
        service: str,
        error_code: Optional[str],
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log external service error."""
        self.log(AuditEventBuilder.external_service_error(
            service=service,
            error_code=error_code,
            error_message=error_message,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a request and pass it through.
    """
    return uuid4()
