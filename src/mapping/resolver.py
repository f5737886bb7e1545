"""
Schema Resolver

Maps a user-editable Notion schema onto our fixed roles.

DESIGN DECISION: Schemas are fetched once per database and cached for the
lifetime of the process. The cache is an explicit object injected into the
resolver, so tests can start from an empty cache every time and operators
can invalidate one database or everything.

Role resolution is a pure function (`resolve_role`) over an immutable
snapshot; the resolver only adds fetching and caching around it.
"""

from typing import Optional

from src.audit import AuditLogger
from src.models.schema import (
    ACCOUNT_ROLES,
    CATEGORY_ROLES,
    TRANSACTION_ROLES,
    AccountProperties,
    CategoryProperties,
    DatabaseSchema,
    PropertyDescriptor,
    PropertyType,
    Role,
    RoleSpec,
    TransactionProperties,
)
from src.services.storage import DocumentStoreInterface


class SchemaCache:
    """
    Process-wide schema cache keyed by database id.

    Populated lazily, never invalidated automatically.
    """

    def __init__(self):
        self._schemas: dict[str, DatabaseSchema] = {}

    def get(self, database_id: str) -> Optional[DatabaseSchema]:
        return self._schemas.get(database_id)

    def set(self, database_id: str, schema: DatabaseSchema) -> None:
        self._schemas[database_id] = schema

    def invalidate(self, database_id: Optional[str] = None) -> None:
        """Drop one database's schema, or everything when no id is given."""
        if database_id is None:
            self._schemas.clear()
        else:
            self._schemas.pop(database_id, None)

    def __contains__(self, database_id: str) -> bool:
        return database_id in self._schemas

    def __len__(self) -> int:
        return len(self._schemas)


def resolve_role(schema: DatabaseSchema, spec: RoleSpec) -> str:
    """
    Resolve the property name that plays a role in a schema.

    First match wins:
    1. The preferred name, if the schema has it
    2. Non-relation roles: the first property of an expected type
       (types tried in the order the role lists them)
    3. Relation roles: the first relation whose name contains a keyword
    4. The hardcoded default name, even if the schema lacks it

    Never raises.
    """
    if spec.preferred_name and spec.preferred_name in schema.properties:
        return spec.preferred_name

    if spec.is_relation:
        keywords = [keyword.lower() for keyword in spec.keywords]
        for name, descriptor in schema.properties.items():
            if descriptor.type != PropertyType.RELATION.value:
                continue
            lowered = name.lower()
            if any(keyword in lowered for keyword in keywords):
                return name
    else:
        for expected in spec.expected_types:
            for name, descriptor in schema.properties.items():
                if descriptor.type == expected.value:
                    return name

    return spec.default_name


def match_select_option(
    descriptor: Optional[PropertyDescriptor],
    raw_type: str,
) -> Optional[str]:
    """
    Find the select option a free-text transaction type refers to.

    Options are usually decorated ("💸 Expense"), so we first match on the
    words "expense"/"income"; only then on the exact option name.

    Returns None if the property isn't a select or nothing matches.
    """
    if descriptor is None or descriptor.type != PropertyType.SELECT.value:
        return None

    type_lower = (raw_type or "").lower()

    for option in descriptor.options:
        option_lower = option.lower()
        if "expense" in type_lower and "expense" in option_lower:
            return option
        if "income" in type_lower and "income" in option_lower:
            return option

    for option in descriptor.options:
        if option == raw_type:
            return option

    return None


class SchemaResolver:
    """
    Fetches, caches and interprets database schemas.

    Store errors are NOT translated here; they reach the calling operation
    unchanged.
    """

    def __init__(
        self,
        store: DocumentStoreInterface,
        cache: Optional[SchemaCache] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._cache = cache if cache is not None else SchemaCache()
        self._audit_logger = audit_logger

    @property
    def cache(self) -> SchemaCache:
        return self._cache

    async def get_schema(self, database_id: str) -> DatabaseSchema:
        """Return the schema of a database, fetching it on first use."""
        cached = self._cache.get(database_id)
        if cached is not None:
            return cached

        payload = await self._store.retrieve_database(database_id)
        schema = DatabaseSchema.from_notion(payload)
        if not schema.database_id:
            schema = schema.model_copy(update={"database_id": database_id})
        self._cache.set(database_id, schema)

        if self._audit_logger:
            self._audit_logger.log_schema_fetched(
                database_id=database_id,
                property_count=len(schema.properties),
            )
        return schema

    def _resolve_all(
        self,
        schema: DatabaseSchema,
        roles: dict[Role, RoleSpec],
    ) -> dict[str, str]:
        return {
            role.value: resolve_role(schema, spec)
            for role, spec in roles.items()
        }

    async def transaction_properties(self, database_id: str) -> TransactionProperties:
        schema = await self.get_schema(database_id)
        return TransactionProperties(**self._resolve_all(schema, TRANSACTION_ROLES))

    async def account_properties(self, database_id: str) -> AccountProperties:
        schema = await self.get_schema(database_id)
        return AccountProperties(**self._resolve_all(schema, ACCOUNT_ROLES))

    async def category_properties(self, database_id: str) -> CategoryProperties:
        schema = await self.get_schema(database_id)
        return CategoryProperties(**self._resolve_all(schema, CATEGORY_ROLES))
