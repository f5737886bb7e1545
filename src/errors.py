"""
Error Taxonomy for Notion Ledger

DESIGN DECISION: Raw store errors bubble untouched through the schema
resolver and the query adapter. They are translated exactly once, at the
boundary between a core operation and its caller, into one of the errors
below. Every error carries what the user needs to fix the problem:
a short title, details, and (where possible) a hint.
"""

from typing import Optional

from src.services.storage import (
    NotADatabaseError,
    ObjectNotFoundError,
    StoreError,
    StoreValidationError,
)


GENERIC_ERROR_DETAILS = "An error occurred processing your request"


class TrackerError(Exception):
    """Base exception for all user-facing errors."""

    code = "INTERNAL_ERROR"
    status_code = 500
    default_error = "Internal Server Error"

    def __init__(
        self,
        details: str,
        error: Optional[str] = None,
        hint: Optional[str] = None,
    ):
        self.error = error or self.default_error
        self.details = details
        self.hint = hint
        super().__init__(f"{self.error}: {details}")

    def to_response(self, production: bool = False) -> dict:
        """Build the JSON body returned to clients."""
        body = {
            "error": self.error,
            "details": self.details,
        }
        if self.hint:
            body["hint"] = self.hint
        return body


class ValidationError(TrackerError):
    """Missing or malformed input fields."""

    code = "VALIDATION_ERROR"
    status_code = 400
    default_error = "Validation Error"

    def __init__(
        self,
        details: str,
        error: Optional[str] = None,
        hint: Optional[str] = None,
        fields: Optional[list[str]] = None,
    ):
        self.fields = list(fields or [])
        super().__init__(details, error=error, hint=hint)

    @classmethod
    def missing_fields(cls, fields: list[str]) -> "ValidationError":
        return cls(
            f"The following fields are required: {', '.join(fields)}",
            error="Missing required fields",
            fields=fields,
        )


class InvalidTransactionTypeError(ValidationError):
    """The transaction type matches none of the database's select options."""

    def __init__(self, transaction_type: str, available: list[str]):
        self.transaction_type = transaction_type
        self.available = list(available)
        super().__init__(
            f'"{transaction_type}" is not a valid option. '
            f"Available options: {', '.join(self.available)}",
            error="Invalid transaction type",
            hint="Please use one of the available transaction types from your Notion database.",
            fields=["type"],
        )


class InvalidDatabaseIdError(TrackerError):
    """A configured database id actually names a single page."""

    code = "INVALID_DATABASE_ID"
    status_code = 400
    default_error = "Invalid Database ID"

    def __init__(self, database_label: str):
        self.database_label = database_label
        super().__init__(
            "The provided ID is a page ID, not a database ID. Please get the "
            'database ID from the URL before "?v=" when viewing the database '
            "as a full page in Notion.",
            error=f"Invalid {database_label} Database ID",
            hint=(
                f"Open your {database_label} database in Notion as a full page, "
                'copy the URL, and extract the 32-character ID before "?v=". '
                f"Update NOTION_{database_label.upper()}_DB_ID in your .env file."
            ),
        )


class NotFoundError(TrackerError):
    """A database or relation target doesn't exist or isn't shared."""

    code = "NOT_FOUND"
    status_code = 404
    default_error = "Not Found"

    @classmethod
    def database(cls, database_label: str) -> "NotFoundError":
        return cls(
            "The database ID does not exist or the integration does not have access to it.",
            error=f"{database_label} database not found",
            hint="Make sure the database is shared with your Notion integration",
        )

    @classmethod
    def relation(cls, message: str) -> "NotFoundError":
        return cls(
            message,
            error="Database or relation not found",
            hint=(
                "The category or account ID may be invalid, or the relation "
                "property may not be set up correctly in your Transactions database."
            ),
        )


class UnauthorizedError(TrackerError):
    """Session absent or expired."""

    code = "UNAUTHORIZED"
    status_code = 401
    default_error = "Unauthorized"


class ConfigurationError(TrackerError):
    """Required configuration is missing."""

    code = "CONFIG_ERROR"
    status_code = 500
    default_error = "Configuration Error"


class InternalError(TrackerError):
    """Any other failure of the external service."""

    code = "INTERNAL_ERROR"
    status_code = 500

    def to_response(self, production: bool = False) -> dict:
        if production:
            return {"error": self.error, "details": GENERIC_ERROR_DETAILS}
        return super().to_response(production)


def translate_store_error(
    error: StoreError,
    database_label: str,
    relation_context: bool = False,
) -> TrackerError:
    """
    Translate a store error into the user-facing taxonomy.

    Args:
        error: The raw store error
        database_label: Which database was involved ("Transactions", ...)
        relation_context: True for writes, where a missing object is most
                          likely a bad account/category relation

    Returns:
        The TrackerError to raise
    """
    if isinstance(error, NotADatabaseError):
        return InvalidDatabaseIdError(database_label)

    if isinstance(error, ObjectNotFoundError):
        if relation_context:
            return NotFoundError.relation(error.message)
        return NotFoundError.database(database_label)

    if isinstance(error, StoreValidationError):
        hint = None
        if "property" in error.message:
            hint = "Check that all property names in your database match the expected names."
        return ValidationError(error.message, error="Invalid data format", hint=hint)

    return InternalError(error.message)
