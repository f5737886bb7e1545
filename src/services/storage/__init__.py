"""
Storage Services Package

Provides the abstract document store interface and its Notion implementation.
Notion is the only backend today, but the tracker logic never imports it.
"""

from src.services.storage.interface import (
    ConnectionError,
    DocumentStoreInterface,
    NotADatabaseError,
    ObjectNotFoundError,
    QueryPage,
    StoreError,
    StoreValidationError,
)
from src.services.storage.notion import (
    NotionClient,
    NotionDocumentStore,
    error_from_api,
)

__all__ = [
    # Interfaces
    "DocumentStoreInterface",
    "QueryPage",
    # Exceptions
    "ConnectionError",
    "NotADatabaseError",
    "ObjectNotFoundError",
    "StoreError",
    "StoreValidationError",
    # Notion implementation
    "NotionClient",
    "NotionDocumentStore",
    "error_from_api",
]
