"""
Shared fixtures.

No test talks to Notion: every component is wired around FakeDocumentStore
and a fresh schema cache per test.
"""

import pytest

from notion_pages import (
    FakeDocumentStore,
    accounts_schema,
    categories_schema,
    page,
    title,
    transactions_schema,
)
from src.mapping import SchemaCache
from src.orchestrator import DatabaseIds, create_app_components


@pytest.fixture
def store() -> FakeDocumentStore:
    """A store with empty Transactions, Accounts and Categories databases."""
    fake = FakeDocumentStore()
    fake.add_database(transactions_schema("tx-db"))
    fake.add_database(accounts_schema("acc-db"))
    fake.add_database(categories_schema("cat-db"), [
        page("cat-food", Name=title("Food")),
        page("cat-rent", Name=title("Rent")),
    ])
    return fake


@pytest.fixture
def databases() -> DatabaseIds:
    return DatabaseIds(transactions="tx-db", categories="cat-db", accounts="acc-db")


@pytest.fixture
def components(store, databases):
    return create_app_components(
        store=store,
        databases=databases,
        schema_cache=SchemaCache(),
    )
