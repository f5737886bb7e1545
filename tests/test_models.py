"""
Tests for Notion Ledger models and the error taxonomy

Test strategy:
1. Unit tests for individual components (models, validators, extractors)
2. Flow tests against an in-memory document store
3. No real API calls in tests
"""

import bcrypt
import pytest

from src.auth import hash_password, verify_credentials
from src.errors import (
    GENERIC_ERROR_DETAILS,
    InternalError,
    InvalidDatabaseIdError,
    NotFoundError,
    ValidationError,
    translate_store_error,
)
from src.models import (
    AccountBalance,
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
    BalanceReport,
    CreatedTransaction,
    LastTransaction,
    TransactionKind,
    TransactionRequest,
)
from src.services.storage import (
    NotADatabaseError,
    ObjectNotFoundError,
    StoreError,
    StoreValidationError,
)
from src.services.storage.notion import error_from_api


class TestFinanceModels:
    """Tests for finance-related Pydantic models."""

    def test_balance_rounded_to_cents(self):
        account = AccountBalance(id="a1", name="Checking", balance=10.456)
        assert account.balance == 10.46

    def test_account_balance_json_shape(self):
        """The last transaction is exposed as lastTransaction."""
        account = AccountBalance(
            id="a1",
            name="Checking",
            balance=5,
            last_transaction=LastTransaction(amount=20, type=TransactionKind.INCOME),
        )
        assert account.model_dump(mode="json", by_alias=True) == {
            "id": "a1",
            "name": "Checking",
            "balance": 5.0,
            "lastTransaction": {"amount": 20.0, "type": "income"},
        }

    def test_created_transaction_json_shape(self):
        created = CreatedTransaction(page_id="p1")
        assert created.model_dump(by_alias=True) == {
            "success": True,
            "pageId": "p1",
            "message": "Transaction created successfully",
        }

    def test_transaction_request_ignores_unknown_fields(self):
        request = TransactionRequest(name="Coffee", colour="blue")
        assert request.name == "Coffee"
        assert not hasattr(request, "colour")

    def test_balance_report_defaults(self):
        report = BalanceReport()
        assert report.accounts == []
        assert report.message is None


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.TRANSACTION_CREATED,
            description="Transaction created: Coffee",
        )
        assert event.event_type == AuditEventType.TRANSACTION_CREATED
        assert event.severity == AuditSeverity.INFO
        assert event.event_id is not None

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEventBuilder.account_degraded("acc-1", "boom")
        log_dict = event.to_log_dict()

        assert log_dict["event_type"] == "account_degraded"
        assert log_dict["severity"] == "warning"
        assert log_dict["entity_id"] == "acc-1"
        assert log_dict["error_message"] == "boom"
        assert log_dict["correlation_id"] is None

    def test_login_events(self):
        succeeded = AuditEventBuilder.login("admin", succeeded=True)
        failed = AuditEventBuilder.login("admin", succeeded=False)

        assert succeeded.event_type == AuditEventType.LOGIN_SUCCEEDED
        assert failed.event_type == AuditEventType.LOGIN_FAILED
        assert failed.severity == AuditSeverity.WARNING

    def test_long_transaction_name_fits_description(self):
        event = AuditEventBuilder.transaction_created("p1", "x" * 1000, 1.0, "💸 Expense")
        assert len(event.description) <= 500


class TestErrorTranslation:
    """Tests for store error -> user-facing error translation."""

    def test_not_a_database(self):
        error = translate_store_error(NotADatabaseError("page, not a database"), "Accounts")
        assert isinstance(error, InvalidDatabaseIdError)
        assert "NOTION_ACCOUNTS_DB_ID" in error.hint

    def test_not_found_outside_writes(self):
        error = translate_store_error(ObjectNotFoundError("missing"), "Accounts")
        assert isinstance(error, NotFoundError)
        assert error.error == "Accounts database not found"

    def test_not_found_during_write(self):
        error = translate_store_error(
            ObjectNotFoundError("Could not find page"),
            "Transactions",
            relation_context=True,
        )
        assert error.error == "Database or relation not found"
        assert error.details == "Could not find page"

    def test_rejected_body(self):
        error = translate_store_error(StoreValidationError("bad"), "Transactions")
        assert isinstance(error, ValidationError)
        assert error.status_code == 400

    def test_anything_else_is_internal(self):
        error = translate_store_error(StoreError("timeout"), "Transactions")
        assert isinstance(error, InternalError)
        assert error.details == "timeout"

    def test_internal_error_hidden_in_production(self):
        error = InternalError("stack trace here")
        assert error.to_response(production=False)["details"] == "stack trace here"
        assert error.to_response(production=True)["details"] == GENERIC_ERROR_DETAILS

    def test_response_omits_empty_hint(self):
        body = ValidationError("bad").to_response()
        assert body == {"error": "Validation Error", "details": "bad"}

    @pytest.mark.parametrize("code,message,expected", [
        ("object_not_found", "Could not find database", ObjectNotFoundError),
        ("validation_error", "Provided ID is a page, not a database.", NotADatabaseError),
        ("validation_error", "Sort property not found", StoreValidationError),
        ("rate_limited", "Slow down", StoreError),
    ])
    def test_notion_error_codes(self, code, message, expected):
        error = error_from_api(code, message)
        assert type(error) is expected
        assert error.code == code


class TestCredentials:
    """Tests for the shared-credential check."""

    password_hash = bcrypt.hashpw(b"secret", bcrypt.gensalt(rounds=4)).decode("utf-8")

    def test_valid(self):
        assert verify_credentials("admin", "secret", "admin", self.password_hash)

    def test_wrong_password_or_user(self):
        assert not verify_credentials("admin", "nope", "admin", self.password_hash)
        assert not verify_credentials("root", "secret", "admin", self.password_hash)

    def test_unconfigured_or_malformed_hash(self):
        """A broken configuration denies access instead of raising."""
        assert not verify_credentials("admin", "secret", "admin", "")
        assert not verify_credentials("admin", "secret", "", self.password_hash)
        assert not verify_credentials("admin", "secret", "admin", "not-a-hash")

    def test_hash_password_round_trip(self):
        assert verify_credentials("admin", "pw", "admin", hash_password("pw"))
