"""
Notion Document Store Implementation

DESIGN DECISION: Notion is the system of record because:
1. Users already keep their budget databases there
2. No database setup required on our side
3. Users can edit and fix data directly in Notion

TRADEOFFS:
- Users can rename or re-type any property (handled by src.mapping)
- Sorting is rejected on some property types (handled by src.queries)
- Queries return one page at a time (we only ever read the first page)

The implementation follows the abstract interface, so the mapping and
aggregation logic never touches the Notion SDK directly.
"""

from typing import Any, Optional

import httpx
from notion_client import AsyncClient
from notion_client.errors import (
    APIErrorCode,
    APIResponseError,
    HTTPResponseError,
    RequestTimeoutError,
)

from src.config import get_settings
from src.services.storage.interface import (
    ConnectionError,
    DocumentStoreInterface,
    NotADatabaseError,
    ObjectNotFoundError,
    QueryPage,
    StoreError,
    StoreValidationError,
)


PAGE_NOT_DATABASE_MARKER = "page, not a database"


def error_from_api(code: Optional[str], message: str) -> StoreError:
    """
    Map a Notion API error code and message onto a store error.

    The "page, not a database" case is only distinguishable by message.
    """
    code_value = getattr(code, "value", code)

    if code_value == APIErrorCode.ObjectNotFound.value:
        return ObjectNotFoundError(message, code=code_value)
    if code_value == APIErrorCode.ValidationError.value:
        if PAGE_NOT_DATABASE_MARKER in message:
            return NotADatabaseError(message, code=code_value)
        return StoreValidationError(message, code=code_value)
    return StoreError(message, code=code_value)


class NotionClient:
    """
    Low-level Notion client wrapper.

    Handles authentication and lazily creates the SDK client.
    """

    def __init__(self, api_key: Optional[str] = None):
        self._api_key = api_key
        self._client: Optional[AsyncClient] = None

    def connect(self) -> AsyncClient:
        """Create the SDK client on first use."""
        if self._client is None:
            api_key = self._api_key or get_settings().notion.api_key
            if not api_key:
                raise ConnectionError("NOTION_API_KEY is not configured")
            self._client = AsyncClient(auth=api_key)
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


class NotionDocumentStore(DocumentStoreInterface):
    """
    Notion implementation of the document store.

    Every SDK error is converted into a StoreError subclass here, so callers
    only ever see our own exception types.
    """

    def __init__(self, client: Optional[NotionClient] = None):
        self._client = client or NotionClient()

    async def close(self) -> None:
        await self._client.close()

    async def _call(self, operation, **kwargs) -> dict[str, Any]:
        try:
            return await operation(**kwargs)
        except APIResponseError as e:
            raise error_from_api(e.code, str(e)) from e
        except RequestTimeoutError as e:
            raise ConnectionError(f"Notion request timed out: {e}") from e
        except HTTPResponseError as e:
            raise StoreError(f"Notion returned HTTP {e.status}: {e}") from e
        except httpx.HTTPError as e:
            # Transport failures the SDK does not wrap
            raise ConnectionError(f"Could not reach Notion: {e}") from e

    async def retrieve_database(self, database_id: str) -> dict[str, Any]:
        """Retrieve a database object."""
        client = self._client.connect()
        return await self._call(
            client.databases.retrieve,
            database_id=database_id,
        )

    async def query_database(
        self,
        database_id: str,
        sorts: Optional[list[dict[str, Any]]] = None,
        page_size: Optional[int] = None,
        start_cursor: Optional[str] = None,
        filter: Optional[dict[str, Any]] = None,
    ) -> QueryPage:
        """Query one page of a database."""
        client = self._client.connect()

        # Only send what was asked for; Notion rejects explicit nulls
        body: dict[str, Any] = {"database_id": database_id}
        if sorts:
            body["sorts"] = sorts
        if page_size is not None:
            body["page_size"] = page_size
        if start_cursor:
            body["start_cursor"] = start_cursor
        if filter:
            body["filter"] = filter

        response = await self._call(client.databases.query, **body)
        return QueryPage(
            records=response.get("results", []),
            has_more=bool(response.get("has_more")),
            next_cursor=response.get("next_cursor"),
        )

    async def create_page(
        self,
        database_id: str,
        properties: dict[str, Any],
    ) -> str:
        """Create a page in a database."""
        client = self._client.connect()
        response = await self._call(
            client.pages.create,
            parent={"database_id": database_id},
            properties=properties,
        )
        return response["id"]
