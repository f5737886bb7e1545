"""
Record Extractors

Pure functions that pull typed values out of a Notion page's property bag.

IMPORTANT: None of these functions raise. Users edit their databases by
hand, so any property may be missing, empty, re-typed or malformed.
Every malformed input degrades to a documented default.
"""

import re
from typing import Any, Optional

from src.models.finance import TransactionKind
from src.models.schema import PropertyType


NON_NUMERIC = re.compile(r"[^0-9.\-]")


def _property(record: Any, prop: str) -> dict:
    """Get a property value object, or an empty dict."""
    if not isinstance(record, dict):
        return {}
    properties = record.get("properties")
    if not isinstance(properties, dict):
        return {}
    value = properties.get(prop)
    return value if isinstance(value, dict) else {}


def _first_plain_text(runs: Any) -> Optional[str]:
    if not isinstance(runs, list) or not runs:
        return None
    first = runs[0]
    if not isinstance(first, dict):
        return None
    text = first.get("plain_text")
    if text is None and isinstance(first.get("text"), dict):
        text = first["text"].get("content")
    return text if isinstance(text, str) else None


def _to_float(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
        # NaN and infinities are not amounts
        if number != number or number in (float("inf"), float("-inf")):
            return 0.0
        return number
    return 0.0


def parse_numeric_text(text: Any) -> float:
    """
    Parse a number out of free text like "$1,234.56 owed".

    Everything except digits, "." and "-" is stripped first.
    Returns 0.0 when nothing parseable remains.
    """
    if not isinstance(text, str):
        return 0.0
    cleaned = NON_NUMERIC.sub("", text)
    try:
        return _to_float(float(cleaned))
    except ValueError:
        return 0.0


def extract_title(record: Any, prop: str) -> Optional[str]:
    """First text run of a title property, or None if absent/empty."""
    text = _first_plain_text(_property(record, prop).get("title"))
    return text or None


def extract_number(record: Any, prop: str) -> float:
    """Numeric value of a number property, 0 if absent or null."""
    return _to_float(_property(record, prop).get("number"))


def extract_date(record: Any, prop: str) -> Optional[str]:
    """Start of a date property as an ISO string, or None."""
    date_value = _property(record, prop).get("date")
    if not isinstance(date_value, dict):
        return None
    start = date_value.get("start")
    return start if isinstance(start, str) and start else None


def extract_relation_ids(record: Any, prop: str) -> list[str]:
    """Ids of the records a relation property points at."""
    relation = _property(record, prop).get("relation")
    if not isinstance(relation, list):
        return []
    return [
        item["id"]
        for item in relation
        if isinstance(item, dict) and isinstance(item.get("id"), str)
    ]


def extract_balance(record: Any, prop: str) -> float:
    """
    Balance of an account, whatever way the user stores it.

    Handles three representations:
    - number property
    - formula property (number or string result)
    - rich_text property (free text such as "$1,234.56")

    Always rounded to 2 decimals; 0.0 on anything unparseable.
    """
    value = _property(record, prop)
    prop_type = value.get("type")
    balance = 0.0

    if prop_type == PropertyType.NUMBER.value:
        balance = _to_float(value.get("number"))
    elif prop_type == PropertyType.FORMULA.value:
        formula = value.get("formula")
        if isinstance(formula, dict):
            if formula.get("type") == "number":
                balance = _to_float(formula.get("number"))
            elif formula.get("type") == "string":
                balance = parse_numeric_text(formula.get("string") or "0")
    elif prop_type == PropertyType.RICH_TEXT.value:
        balance = parse_numeric_text(
            _first_plain_text(value.get("rich_text")) or "0"
        )

    return round(balance, 2)


def classify_transaction_type(select_value: Any) -> TransactionKind:
    """
    Classify a select value as income or expense.

    Accepts the select option itself ({"name": ...}), the whole select
    property ({"select": {...}}) or None. "income" wins if both words are
    present; anything unrecognized is an expense.
    """
    if isinstance(select_value, dict) and "select" in select_value:
        select_value = select_value.get("select")

    if not isinstance(select_value, dict):
        return TransactionKind.EXPENSE

    name = select_value.get("name")
    if not isinstance(name, str):
        return TransactionKind.EXPENSE

    name_lower = name.lower()
    if "income" in name_lower:
        return TransactionKind.INCOME
    return TransactionKind.EXPENSE


def extract_transaction_type(record: Any, prop: str) -> TransactionKind:
    """Classify the select property of a transaction record."""
    return classify_transaction_type(_property(record, prop).get("select"))
