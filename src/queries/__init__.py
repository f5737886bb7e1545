"""Query execution package."""

from src.queries.executor import (
    FALLBACK_PAGE_SIZE,
    QueryOutcome,
    QueryStrategy,
    SortedQueryExecutor,
)

__all__ = ["FALLBACK_PAGE_SIZE", "QueryOutcome", "QueryStrategy", "SortedQueryExecutor"]
