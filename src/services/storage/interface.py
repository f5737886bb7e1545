"""
Abstract Document Store Interface

DESIGN DECISION: We define an abstract interface for the external document
database. This allows us to:
1. Keep the mapping and aggregation logic independent of Notion's SDK
2. Use in-memory storage for testing
3. Translate vendor errors into a small set of store errors in one place

The interface is intentionally small - exactly the three operations the
tracker consumes: retrieve a schema, query records, create a record.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from pydantic import BaseModel, Field


class QueryPage(BaseModel):
    """One page of records returned by a database query."""

    records: list[dict[str, Any]] = Field(default_factory=list)
    has_more: bool = False
    next_cursor: Optional[str] = None


class DocumentStoreInterface(ABC):
    """
    Abstract interface for the external document database.

    Any implementation (Notion, in-memory, ...) must implement these methods.
    Implementations raise StoreError subclasses, never vendor exceptions.
    """

    @abstractmethod
    async def retrieve_database(self, database_id: str) -> dict[str, Any]:
        """
        Retrieve a database object including its property schema.

        Args:
            database_id: The database identifier

        Returns:
            The raw database object

        Raises:
            ObjectNotFoundError: If the database doesn't exist or isn't shared
            NotADatabaseError: If the id refers to a page, not a database
        """
        pass

    @abstractmethod
    async def query_database(
        self,
        database_id: str,
        sorts: Optional[list[dict[str, Any]]] = None,
        page_size: Optional[int] = None,
        start_cursor: Optional[str] = None,
        filter: Optional[dict[str, Any]] = None,
    ) -> QueryPage:
        """
        Query records of a database.

        Args:
            database_id: The database identifier
            sorts: Server-side sort specification
            page_size: Maximum number of records in this page
            start_cursor: Cursor of the page to fetch
            filter: Server-side filter specification

        Returns:
            A single page of records

        Raises:
            StoreError: If the query is rejected
        """
        pass

    @abstractmethod
    async def create_page(
        self,
        database_id: str,
        properties: dict[str, Any],
    ) -> str:
        """
        Create a record in a database.

        Args:
            database_id: Parent database identifier
            properties: Property values keyed by property name

        Returns:
            The new record's identifier

        Raises:
            ObjectNotFoundError: If the parent or a relation target is missing
            StoreError: If the write is rejected
        """
        pass

    async def close(self) -> None:
        """Release any connection held by the store. No-op by default."""
        return None


class StoreError(Exception):
    """Base exception for document store operations."""

    def __init__(self, message: str, code: Optional[str] = None):
        self.message = message
        self.code = code
        super().__init__(message)


class ObjectNotFoundError(StoreError):
    """Database, record or relation target not found (or not shared)."""
    pass


class NotADatabaseError(StoreError):
    """The identifier names a single page rather than a database."""
    pass


class StoreValidationError(StoreError):
    """The store rejected the request body (bad property, bad sort, ...)."""
    pass


class ConnectionError(StoreError):
    """Could not reach the store backend."""
    pass
