"""Tests for the sorted query with its single unsorted fallback."""

import asyncio

import pytest

from notion_pages import FakeDocumentStore, date, page, transactions_schema
from src.queries import QueryStrategy, SortedQueryExecutor
from src.services.storage import StoreError


@pytest.fixture
def store():
    fake = FakeDocumentStore()
    fake.add_database(transactions_schema("tx-db"), [
        page("t1", Date=date("2024-01-01")),
        page("t3", Date=date("2024-03-01")),
        page("t2", Date=date("2024-02-01")),
    ])
    return fake


class TestSortedQueryExecutor:
    """Tests for SortedQueryExecutor."""

    def test_sorted_request_succeeds(self, store):
        """One request, carrying the sort, tagged SORTED."""
        executor = SortedQueryExecutor(store)
        outcome = asyncio.run(executor.execute("tx-db", "Date", "descending", page_size=2))

        assert outcome.strategy == QueryStrategy.SORTED
        assert outcome.is_sorted
        assert [record["id"] for record in outcome.records] == ["t3", "t2"]
        assert store.query_calls == [{
            "database_id": "tx-db",
            "sorts": [{"property": "Date", "direction": "descending"}],
            "page_size": 2,
        }]

    def test_rejected_sort_falls_back_once(self, store):
        """A rejected sort is retried exactly once, unsorted."""
        store.reject_sorts.add("tx-db")
        executor = SortedQueryExecutor(store)

        outcome = asyncio.run(executor.execute("tx-db", "Date", "descending"))

        assert outcome.is_fallback
        assert len(store.query_calls) == 2
        assert store.query_calls[1]["sorts"] is None
        assert store.query_calls[1]["page_size"] == 100

    def test_fallback_records_are_unmodified(self, store):
        """Fallback records come back in store order, not re-sorted."""
        store.reject_sorts.add("tx-db")
        executor = SortedQueryExecutor(store)

        outcome = asyncio.run(executor.execute("tx-db", "Date", "descending"))

        assert [record["id"] for record in outcome.records] == ["t1", "t3", "t2"]

    def test_fallback_keeps_requested_page_size(self, store):
        store.reject_sorts.add("tx-db")
        executor = SortedQueryExecutor(store)

        asyncio.run(executor.execute("tx-db", "Date", "descending", page_size=5))

        assert store.query_calls[1]["page_size"] == 5

    def test_explicit_fallback_page_size(self, store):
        """The retry can ask for more records than the sorted request did."""
        store.reject_sorts.add("tx-db")
        executor = SortedQueryExecutor(store)

        asyncio.run(executor.execute("tx-db", "Date", page_size=2, fallback_page_size=100))

        assert store.query_calls[0]["page_size"] == 2
        assert store.query_calls[1]["page_size"] == 100

    def test_fallback_error_propagates(self, store):
        """If the unsorted retry fails too, its error reaches the caller."""
        store.query_errors["tx-db"] = StoreError("Service unavailable", code="service_unavailable")
        executor = SortedQueryExecutor(store)

        with pytest.raises(StoreError, match="Service unavailable"):
            asyncio.run(executor.execute("tx-db", "Date"))

        assert len(store.query_calls) == 2

    def test_no_sort_property(self, store):
        """Without a sort property one plain request runs, tagged UNSORTED."""
        executor = SortedQueryExecutor(store)
        outcome = asyncio.run(executor.execute("tx-db", page_size=2))

        assert outcome.strategy == QueryStrategy.UNSORTED
        assert not outcome.is_sorted
        assert not outcome.is_fallback
        assert store.query_calls == [{"database_id": "tx-db", "sorts": None, "page_size": 2}]

    def test_no_sort_property_is_not_retried(self, store):
        """A failing unsorted request is not repeated."""
        store.query_errors["tx-db"] = StoreError("Service unavailable", code="service_unavailable")
        executor = SortedQueryExecutor(store)

        with pytest.raises(StoreError, match="Service unavailable"):
            asyncio.run(executor.execute("tx-db"))

        assert len(store.query_calls) == 1
