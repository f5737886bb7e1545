"""
Tests for the core operations, driven against the in-memory store.

Flows tested:
1. Transaction writer: validate -> resolve type -> write, with error mapping
2. Recent transactions: limits, client-side ordering, sort fallback
3. Balance aggregation: per-account isolation and degradation
4. Category and account listings
"""

import asyncio

import pytest

from notion_pages import (
    formula_number,
    formula_string,
    page,
    title,
    transaction,
)
from src.errors import (
    ConfigurationError,
    InternalError,
    InvalidDatabaseIdError,
    InvalidTransactionTypeError,
    NotFoundError,
    ValidationError,
)
from src.mapping import SchemaCache
from src.models import TransactionKind, TransactionRequest
from src.orchestrator import DatabaseIds, create_app_components
from src.services.storage import (
    NotADatabaseError,
    ObjectNotFoundError,
    StoreError,
    StoreValidationError,
)


def expense(**overrides) -> TransactionRequest:
    fields = {
        "name": "  Groceries ",
        "amount": "45.20",
        "type": "Expense",
        "date": "2024-03-01",
        "account": "acc-checking",
        "category": "cat-food",
    }
    fields.update(overrides)
    return TransactionRequest(**fields)


# =============================================================================
# TRANSACTION WRITER
# =============================================================================

class TestTransactionWriter:
    """Tests for creating transactions."""

    def test_creates_page_with_mapped_properties(self, components, store):
        created = asyncio.run(components.writer.create(expense()))

        assert created.success
        assert created.page_id == "page-1"
        assert created.message == "Transaction created successfully"

        written = store.created[0]
        assert written["database_id"] == "tx-db"
        properties = written["properties"]
        assert properties["Transaction Name"] == {
            "title": [{"text": {"content": "Groceries"}}],
        }
        assert properties["Amount"] == {"number": 45.2}
        assert properties["Transaction Type"] == {"select": {"name": "💸 Expense"}}
        assert properties["Date"] == {"date": {"start": "2024-03-01"}}
        assert properties["Linked Account"] == {"relation": [{"id": "acc-checking"}]}
        assert properties["Spending Category"] == {"relation": [{"id": "cat-food"}]}
        assert "Note" not in properties

    def test_note_written_when_present(self, components, store):
        asyncio.run(components.writer.create(expense(note="  weekly shop  ")))

        assert store.created[0]["properties"]["Note"] == {
            "rich_text": [{"text": {"content": "weekly shop"}}],
        }

    def test_blank_note_not_written(self, components, store):
        asyncio.run(components.writer.create(expense(note="   ")))
        assert "Note" not in store.created[0]["properties"]

    def test_income_without_category(self, components, store):
        """Income needs no category, and none is written."""
        asyncio.run(components.writer.create(expense(type="income", category=None)))

        properties = store.created[0]["properties"]
        assert properties["Transaction Type"] == {"select": {"name": "💰 Income"}}
        assert "Spending Category" not in properties

    def test_missing_fields_rejected_before_any_request(self, components, store):
        """Validation fails with every missing field; Notion is never called."""
        with pytest.raises(ValidationError) as exc_info:
            asyncio.run(components.writer.create(TransactionRequest(type="Expense")))

        error = exc_info.value
        assert error.status_code == 400
        assert error.fields == ["name", "amount", "date", "account", "category"]
        assert error.error == "Missing required fields"
        assert "name, amount, date, account, category" in error.details
        assert store.retrieve_calls == []
        assert store.created == []

    def test_unknown_type_lists_available_options(self, components, store):
        with pytest.raises(InvalidTransactionTypeError) as exc_info:
            asyncio.run(components.writer.create(expense(type="Refund")))

        error = exc_info.value
        assert error.status_code == 400
        assert error.available == ["💸 Expense", "💰 Income"]
        assert "Refund" in error.details
        assert error.hint
        assert store.created == []

    def test_missing_relation_target(self, components, store):
        """A missing object at write time points at the account/category ids."""
        store.create_error = ObjectNotFoundError(
            "Could not find page with ID: acc-checking.",
            code="object_not_found",
        )

        with pytest.raises(NotFoundError) as exc_info:
            asyncio.run(components.writer.create(expense()))

        error = exc_info.value
        assert error.status_code == 404
        assert error.details == "Could not find page with ID: acc-checking."
        assert "relation" in error.hint

    def test_transactions_database_not_found(self, components, store):
        store.retrieve_errors["tx-db"] = ObjectNotFoundError("Could not find database", code="object_not_found")

        with pytest.raises(NotFoundError) as exc_info:
            asyncio.run(components.writer.create(expense()))

        assert exc_info.value.error == "Transactions database not found"

    def test_page_id_instead_of_database_id(self, components, store):
        store.retrieve_errors["tx-db"] = NotADatabaseError(
            "Provided ID is a page, not a database.",
            code="validation_error",
        )

        with pytest.raises(InvalidDatabaseIdError) as exc_info:
            asyncio.run(components.writer.create(expense()))

        assert exc_info.value.status_code == 400
        assert exc_info.value.error == "Invalid Transactions Database ID"

    def test_rejected_property_value(self, components, store):
        store.create_error = StoreValidationError(
            "Amount is expected to be number. Check the property value.",
            code="validation_error",
        )

        with pytest.raises(ValidationError) as exc_info:
            asyncio.run(components.writer.create(expense()))

        assert exc_info.value.error == "Invalid data format"
        assert exc_info.value.hint

    def test_other_failures_keep_original_message(self, components, store):
        store.create_error = StoreError("Notion is down", code="service_unavailable")

        with pytest.raises(InternalError) as exc_info:
            asyncio.run(components.writer.create(expense()))

        assert exc_info.value.details == "Notion is down"
        assert exc_info.value.status_code == 500


# =============================================================================
# RECENT TRANSACTIONS
# =============================================================================

@pytest.fixture
def history(store):
    store.records["tx-db"] = [
        transaction("t1", "Rent", 1200, "💸 Expense", "2024-01-01", "acc-checking"),
        transaction("t2", "Salary", 3000, "💰 Income", "2024-01-15T09:30:00.000+00:00", "acc-checking"),
        transaction("t3", None, 12.5, None, "2024-01-10", "acc-savings"),
        transaction("t4", "Coffee", 4, "💸 Expense", None, "acc-checking"),
    ]
    return store


class TestRecentTransactions:
    """Tests for the recent transactions listing."""

    def test_newest_first(self, components, history):
        transactions = asyncio.run(components.recent.recent(3))

        assert [transaction.date for transaction in transactions] == [
            "2024-01-15",
            "2024-01-10",
            "2024-01-01",
        ]

    def test_records_are_normalized(self, components, history):
        transactions = asyncio.run(components.recent.recent(10))
        by_amount = {transaction.amount: transaction for transaction in transactions}

        assert by_amount[3000].type == TransactionKind.INCOME
        assert by_amount[3000].date == "2024-01-15"
        assert by_amount[12.5].name == "Unnamed Transaction"
        assert by_amount[12.5].type == TransactionKind.EXPENSE
        assert by_amount[4].date is None

    def test_undated_transactions_sort_last(self, components, history):
        transactions = asyncio.run(components.recent.recent(10))
        assert transactions[-1].name == "Coffee"

    def test_sorted_query_uses_limit_as_page_size(self, components, history):
        asyncio.run(components.recent.recent(2))

        assert history.query_calls[0]["sorts"] == [{"property": "Date", "direction": "descending"}]
        assert history.query_calls[0]["page_size"] == 2

    def test_fallback_is_sorted_client_side(self, components, history):
        """Even when Notion rejects the date sort, results are newest first."""
        history.reject_sorts.add("tx-db")

        transactions = asyncio.run(components.recent.recent(10))

        assert [transaction.name for transaction in transactions] == [
            "Salary",
            "Unnamed Transaction",
            "Rent",
            "Coffee",
        ]
        assert len(history.query_calls) == 2
        assert history.query_calls[1]["page_size"] == 100

    def test_output_truncated_to_limit(self, components, history):
        history.reject_sorts.add("tx-db")
        history.records["tx-db"] *= 3
        transactions = asyncio.run(components.recent.recent(5))
        assert len(transactions) == 5

    def test_fallback_sorts_before_truncating(self, components, store):
        """The newest records survive truncation even when Notion returned them shuffled."""
        days = [9, 5, 12, 7, 14, 6, 11, 8, 13, 10]
        store.records["tx-db"] = [
            transaction(f"t{day}", f"Day {day}", day, "💸 Expense", f"2024-01-{day:02d}")
            for day in days
        ]
        store.reject_sorts.add("tx-db")

        transactions = asyncio.run(components.recent.recent(3))

        assert [transaction.date for transaction in transactions] == [
            "2024-01-14",
            "2024-01-13",
            "2024-01-12",
        ]

    @pytest.mark.parametrize("requested,expected", [
        (None, 5),
        (0, 1),
        (-3, 1),
        (1, 1),
        (100, 100),
        (500, 100),
    ])
    def test_limit_is_clamped(self, components, requested, expected):
        assert components.recent.clamp_limit(requested) == expected

    def test_missing_database(self, store):
        components = create_app_components(
            store=store,
            databases=DatabaseIds(transactions="gone", accounts="acc-db"),
            schema_cache=SchemaCache(),
        )
        with pytest.raises(NotFoundError):
            asyncio.run(components.recent.recent())


# =============================================================================
# BALANCES
# =============================================================================

@pytest.fixture
def ledger(history):
    history.records["acc-db"] = [
        page("acc-savings", props={"Name": title("Savings"), "Current Status": formula_string("$2,500.499")}),
        page("acc-checking", props={"Name": title("Checking"), "Current Status": formula_number(1800.004)}),
        page("acc-cash", props={"Name": title("Cash"), "Current Status": formula_number(None)}),
    ]
    return history


class TestBalanceAggregator:
    """Tests for account balances."""

    def test_accounts_without_accounts_database(self, store):
        components = create_app_components(
            store=store,
            databases=DatabaseIds(transactions="tx-db"),
            schema_cache=SchemaCache(),
        )

        report = asyncio.run(components.balances.balances())

        assert report.accounts == []
        assert report.message == "ACCOUNTS_DB_ID not configured"

    def test_balances_in_name_order(self, components, ledger):
        report = asyncio.run(components.balances.balances())

        assert [account.name for account in report.accounts] == ["Cash", "Checking", "Savings"]
        balances = {account.id: account.balance for account in report.accounts}
        assert balances == {"acc-cash": 0.0, "acc-checking": 1800.0, "acc-savings": 2500.5}

    def test_last_transaction_is_most_recent_linked(self, components, ledger):
        report = asyncio.run(components.balances.balances())
        accounts = {account.id: account for account in report.accounts}

        checking = accounts["acc-checking"].last_transaction
        assert checking.amount == 3000
        assert checking.type == TransactionKind.INCOME

        savings = accounts["acc-savings"].last_transaction
        assert savings.amount == 12.5
        assert savings.type == TransactionKind.EXPENSE

        assert accounts["acc-cash"].last_transaction is None

    def test_failed_lookup_keeps_balance(self, components, ledger, monkeypatch):
        """If only the last-transaction lookup fails, the balance survives."""
        aggregator = components.balances
        original = aggregator._last_transaction

        async def flaky(account_id, properties):
            if account_id == "acc-checking":
                raise StoreError("rate limited", code="rate_limited")
            return await original(account_id, properties)

        monkeypatch.setattr(aggregator, "_last_transaction", flaky)

        report = asyncio.run(aggregator.balances())
        accounts = {account.id: account for account in report.accounts}

        assert accounts["acc-checking"].balance == 1800.0
        assert accounts["acc-checking"].last_transaction is None
        assert accounts["acc-savings"].last_transaction is not None

    def test_failed_account_degrades_to_zero(self, components, ledger, monkeypatch):
        """An unexpected failure zeroes one account without touching the rest."""
        aggregator = components.balances
        original = aggregator._last_transaction

        async def broken(account_id, properties):
            if account_id == "acc-savings":
                raise RuntimeError("unexpected payload")
            return await original(account_id, properties)

        monkeypatch.setattr(aggregator, "_last_transaction", broken)

        report = asyncio.run(aggregator.balances())
        accounts = {account.id: account for account in report.accounts}

        assert [account.name for account in report.accounts] == ["Cash", "Checking", "Savings"]
        assert accounts["acc-savings"].balance == 0.0
        assert accounts["acc-savings"].last_transaction is None
        assert accounts["acc-checking"].balance == 1800.0
        assert accounts["acc-checking"].last_transaction.amount == 3000

    def test_unsortable_accounts_still_listed(self, components, ledger):
        ledger.reject_sorts.add("acc-db")
        report = asyncio.run(components.balances.balances())
        assert [account.id for account in report.accounts] == [
            "acc-savings",
            "acc-checking",
            "acc-cash",
        ]

    def test_accounts_database_not_found(self, components, store):
        store.retrieve_errors["acc-db"] = ObjectNotFoundError("not shared", code="object_not_found")

        with pytest.raises(NotFoundError) as exc_info:
            asyncio.run(components.balances.balances())

        assert exc_info.value.error == "Accounts database not found"
        assert "shared" in exc_info.value.hint


# =============================================================================
# CATALOG
# =============================================================================

class TestCatalogReader:
    """Tests for category and account listings."""

    def test_categories(self, components):
        categories = asyncio.run(components.catalog.categories())
        assert [(category.id, category.name) for category in categories] == [
            ("cat-food", "Food"),
            ("cat-rent", "Rent"),
        ]

    def test_categories_sorted_by_name_after_fallback(self, components, store):
        store.reject_sorts.add("cat-db")
        store.records["cat-db"] = [
            page("c2", Name=title("utilities")),
            page("c1", Name=title("Groceries")),
            page("c3"),
        ]

        categories = asyncio.run(components.catalog.categories())

        assert [category.name for category in categories] == [
            "Groceries",
            "Unnamed Category",
            "utilities",
        ]

    def test_categories_default_to_transactions_database(self, store):
        components = create_app_components(
            store=store,
            databases=DatabaseIds(transactions="tx-db", accounts="acc-db"),
            schema_cache=SchemaCache(),
        )
        store.records["tx-db"] = [transaction("t1", "Dining", 0, None, None)]

        categories = asyncio.run(components.catalog.categories())

        assert [category.name for category in categories] == ["Dining"]
        assert store.query_calls[0]["database_id"] == "tx-db"

    def test_accounts(self, components, ledger):
        accounts = asyncio.run(components.catalog.accounts())
        assert [account.name for account in accounts] == ["Cash", "Checking", "Savings"]

    def test_accounts_require_accounts_database(self, store):
        components = create_app_components(
            store=store,
            databases=DatabaseIds(transactions="tx-db"),
            schema_cache=SchemaCache(),
        )
        with pytest.raises(ConfigurationError):
            asyncio.run(components.catalog.accounts())

    def test_categories_page_id(self, components, store):
        store.retrieve_errors["cat-db"] = NotADatabaseError(
            "Provided ID is a page, not a database.",
            code="validation_error",
        )
        with pytest.raises(InvalidDatabaseIdError) as exc_info:
            asyncio.run(components.catalog.categories())

        assert exc_info.value.error == "Invalid Categories Database ID"
        assert "NOTION_CATEGORIES_DB_ID" in exc_info.value.hint


class TestSchemaCacheSharing:
    """The schema of a database is fetched once across operations."""

    def test_one_fetch_per_database(self, components, ledger):
        asyncio.run(components.recent.recent())
        asyncio.run(components.writer.create(expense()))
        asyncio.run(components.balances.balances())

        assert ledger.retrieve_calls.count("tx-db") == 1
        assert ledger.retrieve_calls.count("acc-db") == 1
