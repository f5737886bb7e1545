"""
Sorted Query Executor

DESIGN DECISION: Notion refuses to sort on some property types, and the
property we sort on is inferred from a user-editable schema. So every
listing first asks for a server-side sort and, if that request is rejected,
retries exactly once without a sort.

The outcome is tagged with the strategy that actually ran, so callers
know whether the records are already ordered or need a client-side sort.

This executor reads a single page. It never follows cursors.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from src.audit import AuditLogger
from src.services.storage import DocumentStoreInterface, StoreError


FALLBACK_PAGE_SIZE = 100


class QueryStrategy(str, Enum):
    """Which request produced the records."""
    SORTED = "sorted"
    FALLBACK = "fallback"
    UNSORTED = "unsorted"


@dataclass
class QueryOutcome:
    """Records of one page plus how they were obtained."""

    strategy: QueryStrategy
    records: list[dict[str, Any]] = field(default_factory=list)
    has_more: bool = False
    next_cursor: Optional[str] = None

    @property
    def is_sorted(self) -> bool:
        return self.strategy == QueryStrategy.SORTED

    @property
    def is_fallback(self) -> bool:
        return self.strategy == QueryStrategy.FALLBACK


class SortedQueryExecutor:
    """
    Runs sorted queries with a single unsorted fallback.

    GUARANTEES:
    - At most two requests per call
    - Fallback records are returned exactly as the store sent them
    - Errors of the fallback request propagate unchanged
    """

    def __init__(
        self,
        store: DocumentStoreInterface,
        audit_logger: Optional[AuditLogger] = None,
        fallback_page_size: int = FALLBACK_PAGE_SIZE,
    ):
        self._store = store
        self._audit_logger = audit_logger
        self._fallback_page_size = fallback_page_size

    async def execute(
        self,
        database_id: str,
        sort_property: Optional[str] = None,
        direction: str = "ascending",
        page_size: Optional[int] = None,
        fallback_page_size: Optional[int] = None,
    ) -> QueryOutcome:
        """
        Query a database, sorted if the store allows it.

        Args:
            database_id: Database to query
            sort_property: Property to sort by (None for no sort)
            direction: "ascending" or "descending"
            page_size: Page size for the sorted request
            fallback_page_size: Page size for the unsorted retry; defaults to
                                page_size, then to the executor default (100)

        Returns:
            QueryOutcome tagged SORTED or FALLBACK, or UNSORTED when no
            sort was asked for
        """
        if not sort_property:
            # Nothing to fall back from; errors propagate
            page = await self._store.query_database(database_id, page_size=page_size)
            return QueryOutcome(
                strategy=QueryStrategy.UNSORTED,
                records=page.records,
                has_more=page.has_more,
                next_cursor=page.next_cursor,
            )

        sorts = [{"property": sort_property, "direction": direction}]

        try:
            page = await self._store.query_database(
                database_id,
                sorts=sorts,
                page_size=page_size,
            )
            return QueryOutcome(
                strategy=QueryStrategy.SORTED,
                records=page.records,
                has_more=page.has_more,
                next_cursor=page.next_cursor,
            )
        except StoreError as sort_error:
            if self._audit_logger:
                self._audit_logger.log_sort_fallback(
                    database_id=database_id,
                    sort_property=sort_property,
                    error_message=str(sort_error),
                )

        page = await self._store.query_database(
            database_id,
            page_size=fallback_page_size or page_size or self._fallback_page_size,
        )
        return QueryOutcome(
            strategy=QueryStrategy.FALLBACK,
            records=page.records,
            has_more=page.has_more,
            next_cursor=page.next_cursor,
        )
