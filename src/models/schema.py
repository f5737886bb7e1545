"""
External Schema Models

A Notion database is user-editable: people rename, reorder and re-type
properties freely. These models capture an immutable snapshot of a database
schema and the role specifications used to map it onto our fixed
transaction/account/category model.

DESIGN DECISION: Role resolution is a pure function over a snapshot.
Nothing here performs I/O, so mapping rules can be unit-tested directly.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# ENUMS
# =============================================================================

class PropertyType(str, Enum):
    """Notion property types this system understands."""
    TITLE = "title"
    NUMBER = "number"
    SELECT = "select"
    DATE = "date"
    RELATION = "relation"
    RICH_TEXT = "rich_text"
    FORMULA = "formula"


class Role(str, Enum):
    """Semantic roles a database property can play."""
    TITLE = "title"
    AMOUNT = "amount"
    TYPE = "type"
    DATE = "date"
    ACCOUNT = "account"
    CATEGORY = "category"
    NOTE = "note"
    BALANCE = "balance"


# =============================================================================
# SCHEMA SNAPSHOT
# =============================================================================

class PropertyDescriptor(BaseModel):
    """
    A single property of an external database.

    `type` is kept as a plain string because Notion has many property types
    (checkbox, people, ...) that we never map but must not reject.
    """
    model_config = ConfigDict(frozen=True)

    name: str
    type: str
    options: tuple[str, ...] = Field(
        default=(),
        description="Ordered option names (select properties only)"
    )


class DatabaseSchema(BaseModel):
    """
    Read-only snapshot of a database's property schema.

    Property order is the order the external service returned them in.
    """
    model_config = ConfigDict(frozen=True)

    database_id: str
    title: Optional[str] = None
    properties: dict[str, PropertyDescriptor] = Field(default_factory=dict)

    @classmethod
    def from_notion(cls, payload: dict[str, Any]) -> "DatabaseSchema":
        """Build a snapshot from a `databases.retrieve` response."""
        properties = {}
        for name, raw in (payload.get("properties") or {}).items():
            prop_type = raw.get("type", "")
            options: tuple[str, ...] = ()
            if prop_type == PropertyType.SELECT.value:
                select = raw.get("select") or {}
                options = tuple(
                    option.get("name", "")
                    for option in select.get("options") or []
                )
            properties[name] = PropertyDescriptor(
                name=name,
                type=prop_type,
                options=options,
            )

        title_runs = payload.get("title") or []
        title = title_runs[0].get("plain_text") if title_runs else None

        return cls(
            database_id=payload.get("id", ""),
            title=title,
            properties=properties,
        )

    def get(self, name: str) -> Optional[PropertyDescriptor]:
        return self.properties.get(name)


# =============================================================================
# ROLE SPECIFICATIONS
# =============================================================================

class RoleSpec(BaseModel):
    """
    How to find the property that plays a role.

    Resolution order: preferred name, then expected types (non-relation roles),
    then relation keywords (relation roles), then the default name.
    """
    model_config = ConfigDict(frozen=True)

    role: Role
    default_name: str
    preferred_name: Optional[str] = None
    expected_types: tuple[PropertyType, ...] = ()
    keywords: tuple[str, ...] = ()

    @property
    def is_relation(self) -> bool:
        return PropertyType.RELATION in self.expected_types


TRANSACTION_ROLES: dict[Role, RoleSpec] = {
    Role.TITLE: RoleSpec(
        role=Role.TITLE,
        default_name="Transaction Name",
        preferred_name="Transaction Name",
        expected_types=(PropertyType.TITLE,),
    ),
    Role.AMOUNT: RoleSpec(
        role=Role.AMOUNT,
        default_name="Amount",
        preferred_name="Amount",
        expected_types=(PropertyType.NUMBER,),
    ),
    Role.TYPE: RoleSpec(
        role=Role.TYPE,
        default_name="Transaction Type",
        preferred_name="Transaction Type",
        expected_types=(PropertyType.SELECT,),
    ),
    Role.DATE: RoleSpec(
        role=Role.DATE,
        default_name="Date",
        preferred_name="Date",
        expected_types=(PropertyType.DATE,),
    ),
    Role.ACCOUNT: RoleSpec(
        role=Role.ACCOUNT,
        default_name="Linked Account",
        preferred_name="Linked Account",
        expected_types=(PropertyType.RELATION,),
        keywords=("account",),
    ),
    Role.CATEGORY: RoleSpec(
        role=Role.CATEGORY,
        default_name="Spending Category",
        preferred_name="Spending Category",
        expected_types=(PropertyType.RELATION,),
        keywords=("category", "spending"),
    ),
    Role.NOTE: RoleSpec(
        role=Role.NOTE,
        default_name="Note",
        preferred_name="Note",
        expected_types=(PropertyType.RICH_TEXT,),
    ),
}

ACCOUNT_ROLES: dict[Role, RoleSpec] = {
    Role.TITLE: RoleSpec(
        role=Role.TITLE,
        default_name="Name",
        preferred_name="Name",
        expected_types=(PropertyType.TITLE,),
    ),
    Role.BALANCE: RoleSpec(
        role=Role.BALANCE,
        default_name="Current Status",
        preferred_name="Current Status",
        expected_types=(PropertyType.NUMBER, PropertyType.FORMULA),
    ),
}

CATEGORY_ROLES: dict[Role, RoleSpec] = {
    Role.TITLE: RoleSpec(
        role=Role.TITLE,
        default_name="Name",
        preferred_name="Name",
        expected_types=(PropertyType.TITLE,),
    ),
}


# =============================================================================
# ROLE MAPPINGS
# =============================================================================

class TransactionProperties(BaseModel):
    """Resolved property names of the Transactions database."""
    model_config = ConfigDict(frozen=True)

    title: str
    amount: str
    type: str
    date: str
    account: str
    category: str
    note: str


class AccountProperties(BaseModel):
    """Resolved property names of the Accounts database."""
    model_config = ConfigDict(frozen=True)

    title: str
    balance: str


class CategoryProperties(BaseModel):
    """Resolved property names of the Categories database."""
    model_config = ConfigDict(frozen=True)

    title: str
