"""Services package."""

from src.services.storage import (
    ConnectionError,
    DocumentStoreInterface,
    NotADatabaseError,
    NotionClient,
    NotionDocumentStore,
    ObjectNotFoundError,
    QueryPage,
    StoreError,
    StoreValidationError,
)

__all__ = [
    "ConnectionError",
    "DocumentStoreInterface",
    "NotADatabaseError",
    "NotionClient",
    "NotionDocumentStore",
    "ObjectNotFoundError",
    "QueryPage",
    "StoreError",
    "StoreValidationError",
]
