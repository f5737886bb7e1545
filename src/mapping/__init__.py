"""Schema mapping package: role resolution and record extraction."""

from src.mapping.extractors import (
    classify_transaction_type,
    extract_balance,
    extract_date,
    extract_number,
    extract_relation_ids,
    extract_title,
    extract_transaction_type,
    parse_numeric_text,
)
from src.mapping.resolver import (
    SchemaCache,
    SchemaResolver,
    match_select_option,
    resolve_role,
)

__all__ = [
    "SchemaCache",
    "SchemaResolver",
    "classify_transaction_type",
    "extract_balance",
    "extract_date",
    "extract_number",
    "extract_relation_ids",
    "extract_title",
    "extract_transaction_type",
    "match_select_option",
    "parse_numeric_text",
    "resolve_role",
]
