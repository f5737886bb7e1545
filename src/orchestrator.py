"""
Main Orchestrator for Notion Ledger

This module ties together all the components and defines the core
operations behind every route:
1. Create a transaction (validate -> resolve type -> write)
2. Account balances with each account's last transaction
3. Recent transactions across the whole store
4. Category and account listings

DESIGN DECISION: The orchestrator is the error boundary.
Store errors travel untouched through the resolver and the query executor
and are translated exactly once, here, into the user-facing taxonomy.
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional
from uuid import UUID

from src.audit import AuditLogger, create_correlation_id
from src.config import get_settings
from src.errors import (
    ConfigurationError,
    InvalidTransactionTypeError,
    TrackerError,
    ValidationError,
    translate_store_error,
)
from src.mapping import (
    SchemaCache,
    SchemaResolver,
    extract_balance,
    extract_date,
    extract_number,
    extract_relation_ids,
    extract_title,
    extract_transaction_type,
    match_select_option,
)
from src.models.finance import (
    AccountBalance,
    AccountSummary,
    BalanceReport,
    Category,
    CreatedTransaction,
    LastTransaction,
    TransactionRequest,
    TransactionSummary,
)
from src.models.schema import AccountProperties, TransactionProperties
from src.queries import FALLBACK_PAGE_SIZE, SortedQueryExecutor
from src.services.storage import (
    DocumentStoreInterface,
    NotionDocumentStore,
    StoreError,
)
from src.validation import TransactionValidator


TRANSACTIONS = "Transactions"
ACCOUNTS = "Accounts"
CATEGORIES = "Categories"

ACCOUNTS_NOT_CONFIGURED = "ACCOUNTS_DB_ID not configured"
LAST_TRANSACTION_WINDOW = 100


@dataclass(frozen=True)
class DatabaseIds:
    """The three Notion databases, passed opaquely to every operation."""

    transactions: str
    categories: Optional[str] = None
    accounts: Optional[str] = None

    @property
    def resolved_categories(self) -> str:
        return self.categories or self.transactions


def _text(value: Optional[str]) -> str:
    return (value or "").strip()


def _date_timestamp_ms(value: Optional[str]) -> int:
    """Milliseconds since the epoch for an ISO date; 0 if unparseable."""
    if not value:
        return 0
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return 0
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp() * 1000)


class TransactionWriter:
    """
    Creates transactions in the Transactions database.

    Flow: Received -> Validated -> TypeResolved -> Written.
    Any stage can fail; nothing is written unless every stage passes.
    """

    def __init__(
        self,
        store: DocumentStoreInterface,
        resolver: SchemaResolver,
        databases: DatabaseIds,
        validator: Optional[TransactionValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._resolver = resolver
        self._databases = databases
        self._validator = validator or TransactionValidator()
        self._audit_logger = audit_logger

    def _build_properties(
        self,
        request: TransactionRequest,
        properties: TransactionProperties,
        amount: float,
        type_value: str,
    ) -> dict[str, Any]:
        """Map a validated request onto Notion property values."""
        page_properties: dict[str, Any] = {
            properties.title: {
                "title": [{"text": {"content": _text(request.name)}}],
            },
            properties.amount: {
                "number": amount,
            },
            properties.type: {
                "select": {"name": type_value},
            },
            properties.date: {
                "date": {"start": _text(request.date)},
            },
            properties.account: {
                "relation": [{"id": _text(request.account)}],
            },
        }

        category = _text(request.category)
        if category:
            page_properties[properties.category] = {
                "relation": [{"id": category}],
            }

        note = _text(request.note)
        if note:
            page_properties[properties.note] = {
                "rich_text": [{"text": {"content": note}}],
            }

        return page_properties

    async def create(
        self,
        request: TransactionRequest,
        correlation_id: Optional[UUID] = None,
    ) -> CreatedTransaction:
        """
        Validate and create a transaction.

        Raises:
            ValidationError: With every missing field
            InvalidTransactionTypeError: If the type matches no select option
            NotFoundError: If the database or a relation target is missing
            InvalidDatabaseIdError: If the transactions id names a page
            InternalError: Any other Notion failure
        """
        correlation_id = correlation_id or create_correlation_id()
        database_id = self._databases.transactions

        # Validated
        validation = self._validator.validate(request)
        if not validation.is_valid:
            if self._audit_logger:
                self._audit_logger.log_transaction_rejected(
                    reason="missing required fields",
                    details={"fields": validation.missing_fields},
                    correlation_id=correlation_id,
                )
            raise ValidationError.missing_fields(validation.missing_fields)

        # TypeResolved
        try:
            schema = await self._resolver.get_schema(database_id)
            properties = await self._resolver.transaction_properties(database_id)
        except StoreError as e:
            raise self._translate(e, correlation_id) from e

        raw_type = _text(request.type)
        type_descriptor = schema.get(properties.type)
        type_value = match_select_option(type_descriptor, raw_type)
        if type_value is None:
            available = list(type_descriptor.options) if type_descriptor else []
            if self._audit_logger:
                self._audit_logger.log_transaction_rejected(
                    reason="invalid transaction type",
                    details={"type": raw_type, "available": available},
                    correlation_id=correlation_id,
                )
            raise InvalidTransactionTypeError(raw_type, available)

        # Written
        page_properties = self._build_properties(
            request,
            properties,
            amount=validation.amount,
            type_value=type_value,
        )
        try:
            page_id = await self._store.create_page(database_id, page_properties)
        except StoreError as e:
            raise self._translate(e, correlation_id, relation_context=True) from e

        if self._audit_logger:
            self._audit_logger.log_transaction_created(
                page_id=page_id,
                name=_text(request.name),
                amount=validation.amount,
                transaction_type=type_value,
                correlation_id=correlation_id,
            )

        return CreatedTransaction(page_id=page_id)

    def _translate(
        self,
        error: StoreError,
        correlation_id: UUID,
        relation_context: bool = False,
    ) -> TrackerError:
        if self._audit_logger:
            self._audit_logger.log_external_service_error(
                service="notion",
                error_code=error.code,
                error_message=str(error),
                correlation_id=correlation_id,
            )
        return translate_store_error(error, TRANSACTIONS, relation_context=relation_context)


class RecentTransactionsReader:
    """
    Lists the most recent transactions across the whole store.

    Records are always re-sorted client-side by date, so the result is
    correct whether or not Notion accepted the date sort.
    """

    def __init__(
        self,
        resolver: SchemaResolver,
        executor: SortedQueryExecutor,
        databases: DatabaseIds,
        default_limit: int = 5,
        max_limit: int = 100,
    ):
        self._resolver = resolver
        self._executor = executor
        self._databases = databases
        self._default_limit = default_limit
        self._max_limit = max_limit

    def clamp_limit(self, limit: Optional[int]) -> int:
        """Clamp a requested limit to [1, max]."""
        if limit is None:
            limit = self._default_limit
        return max(1, min(int(limit), self._max_limit))

    async def recent(self, limit: Optional[int] = None) -> list[TransactionSummary]:
        limit = self.clamp_limit(limit)
        database_id = self._databases.transactions

        try:
            properties = await self._resolver.transaction_properties(database_id)
            outcome = await self._executor.execute(
                database_id,
                sort_property=properties.date,
                direction="descending",
                page_size=limit,
                fallback_page_size=FALLBACK_PAGE_SIZE,
            )
        except StoreError as e:
            raise translate_store_error(e, TRANSACTIONS) from e

        decorated = []
        for record in outcome.records:
            date_value = extract_date(record, properties.date)
            summary = TransactionSummary(
                name=extract_title(record, properties.title) or "Unnamed Transaction",
                amount=extract_number(record, properties.amount),
                type=extract_transaction_type(record, properties.type),
                date=date_value.split("T")[0] if date_value else None,
            )
            decorated.append((_date_timestamp_ms(date_value), summary))

        decorated.sort(key=lambda item: item[0], reverse=True)
        return [summary for _, summary in decorated[:limit]]


class BalanceAggregator:
    """
    Reports every account's balance and its most recent transaction.

    The balance is read from the account's own balance property, which
    Notion keeps current; it is not recomputed from transactions.

    Accounts are processed concurrently with isolated failures: one account
    failing degrades to a zero balance without affecting the others.
    """

    def __init__(
        self,
        resolver: SchemaResolver,
        executor: SortedQueryExecutor,
        databases: DatabaseIds,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._resolver = resolver
        self._executor = executor
        self._databases = databases
        self._audit_logger = audit_logger

    async def _last_transaction(
        self,
        account_id: str,
        properties: TransactionProperties,
    ) -> Optional[LastTransaction]:
        """First of the most recent transactions linked to the account."""
        outcome = await self._executor.execute(
            self._databases.transactions,
            sort_property=properties.date,
            direction="descending",
            page_size=LAST_TRANSACTION_WINDOW,
        )
        for record in outcome.records:
            if account_id in extract_relation_ids(record, properties.account):
                return LastTransaction(
                    amount=extract_number(record, properties.amount),
                    type=extract_transaction_type(record, properties.type),
                )
        return None

    async def _account_balance(
        self,
        account: dict[str, Any],
        account_properties: AccountProperties,
        transaction_properties: TransactionProperties,
        correlation_id: UUID,
    ) -> AccountBalance:
        account_id = account.get("id", "")
        balance = extract_balance(account, account_properties.balance)

        last_transaction = None
        try:
            last_transaction = await self._last_transaction(
                account_id, transaction_properties
            )
        except StoreError as e:
            if self._audit_logger:
                self._audit_logger.log_external_service_error(
                    service="notion",
                    error_code=e.code,
                    error_message=f"last transaction lookup failed: {e}",
                    correlation_id=correlation_id,
                )

        return AccountBalance(
            id=account_id,
            name=extract_title(account, account_properties.title) or "Unnamed Account",
            balance=balance,
            last_transaction=last_transaction,
        )

    async def balances(self, correlation_id: Optional[UUID] = None) -> BalanceReport:
        correlation_id = correlation_id or create_correlation_id()
        accounts_db = self._databases.accounts
        if not accounts_db:
            return BalanceReport(accounts=[], message=ACCOUNTS_NOT_CONFIGURED)

        try:
            account_properties = await self._resolver.account_properties(accounts_db)
            outcome = await self._executor.execute(
                accounts_db,
                sort_property=account_properties.title,
                direction="ascending",
            )
        except StoreError as e:
            raise translate_store_error(e, ACCOUNTS) from e

        try:
            transaction_properties = await self._resolver.transaction_properties(
                self._databases.transactions
            )
        except StoreError as e:
            raise translate_store_error(e, TRANSACTIONS) from e

        results = await asyncio.gather(
            *(
                self._account_balance(
                    account,
                    account_properties,
                    transaction_properties,
                    correlation_id,
                )
                for account in outcome.records
            ),
            return_exceptions=True,
        )

        accounts = []
        for account, result in zip(outcome.records, results):
            if isinstance(result, AccountBalance):
                accounts.append(result)
                continue
            if not isinstance(result, Exception):
                raise result
            accounts.append(self._degraded(account, account_properties, result, correlation_id))

        return BalanceReport(accounts=accounts)

    def _degraded(
        self,
        account: Any,
        account_properties: AccountProperties,
        error: Exception,
        correlation_id: UUID,
    ) -> AccountBalance:
        account_id = account.get("id", "") if isinstance(account, dict) else ""
        if self._audit_logger:
            self._audit_logger.log_account_degraded(
                account_id=account_id,
                error_message=str(error),
                correlation_id=correlation_id,
            )
        return AccountBalance(
            id=account_id,
            name=extract_title(account, account_properties.title) or "Unnamed Account",
            balance=0.0,
            last_transaction=None,
        )


class CatalogReader:
    """Plain listings of categories and accounts for the form pickers."""

    def __init__(
        self,
        resolver: SchemaResolver,
        executor: SortedQueryExecutor,
        databases: DatabaseIds,
    ):
        self._resolver = resolver
        self._executor = executor
        self._databases = databases

    async def _list_titles(
        self,
        database_id: str,
        label: str,
        title_property_getter,
        fallback_name: str,
    ) -> list[tuple[str, str]]:
        try:
            properties = await title_property_getter(database_id)
            outcome = await self._executor.execute(
                database_id,
                sort_property=properties.title,
                direction="ascending",
            )
        except StoreError as e:
            raise translate_store_error(e, label) from e

        entries = [
            (
                record.get("id", ""),
                extract_title(record, properties.title) or fallback_name,
            )
            for record in outcome.records
        ]
        # Sorted again in case Notion rejected the title sort
        entries.sort(key=lambda entry: entry[1].lower())
        return entries

    async def categories(self) -> list[Category]:
        entries = await self._list_titles(
            self._databases.resolved_categories,
            CATEGORIES,
            self._resolver.category_properties,
            "Unnamed Category",
        )
        return [Category(id=entry_id, name=name) for entry_id, name in entries]

    async def accounts(self) -> list[AccountSummary]:
        if not self._databases.accounts:
            raise ConfigurationError(
                "NOTION_ACCOUNTS_DB_ID environment variable is missing",
                error="Accounts database ID not configured",
            )
        entries = await self._list_titles(
            self._databases.accounts,
            ACCOUNTS,
            self._resolver.account_properties,
            "Unnamed Account",
        )
        return [AccountSummary(id=entry_id, name=name) for entry_id, name in entries]


@dataclass
class LedgerComponents:
    """Everything a surface (HTTP API, dashboard) needs."""

    writer: TransactionWriter
    recent: RecentTransactionsReader
    balances: BalanceAggregator
    catalog: CatalogReader
    resolver: SchemaResolver
    schema_cache: SchemaCache
    audit_logger: AuditLogger
    store: DocumentStoreInterface


def create_app_components(
    store: Optional[DocumentStoreInterface] = None,
    databases: Optional[DatabaseIds] = None,
    schema_cache: Optional[SchemaCache] = None,
    audit_logger: Optional[AuditLogger] = None,
) -> LedgerComponents:
    """
    Factory function to create all application components.

    Args:
        store: Document store; defaults to Notion
        databases: Database ids; default to NOTION_* settings
        schema_cache: Shared schema cache; a fresh one by default
        audit_logger: Audit logger; a default one if None

    Returns:
        LedgerComponents wired around one store and one schema cache
    """
    settings = get_settings()
    app_settings = settings.app

    if databases is None:
        notion = settings.notion
        databases = DatabaseIds(
            transactions=notion.transactions_db_id,
            categories=notion.resolved_categories_db_id,
            accounts=notion.accounts_db_id,
        )

    store = store or NotionDocumentStore()
    schema_cache = schema_cache if schema_cache is not None else SchemaCache()
    audit_logger = audit_logger or AuditLogger()

    resolver = SchemaResolver(store, schema_cache, audit_logger=audit_logger)
    executor = SortedQueryExecutor(
        store,
        audit_logger=audit_logger,
        fallback_page_size=app_settings.default_page_size,
    )

    return LedgerComponents(
        writer=TransactionWriter(
            store,
            resolver,
            databases,
            audit_logger=audit_logger,
        ),
        recent=RecentTransactionsReader(
            resolver,
            executor,
            databases,
            default_limit=app_settings.default_recent_transactions_limit,
            max_limit=min(app_settings.max_recent_transactions_limit, FALLBACK_PAGE_SIZE),
        ),
        balances=BalanceAggregator(
            resolver,
            executor,
            databases,
            audit_logger=audit_logger,
        ),
        catalog=CatalogReader(resolver, executor, databases),
        resolver=resolver,
        schema_cache=schema_cache,
        audit_logger=audit_logger,
        store=store,
    )
