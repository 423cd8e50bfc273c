# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""Column types and helpers shared by the ORM models."""

from datetime import datetime, timezone
from typing import Dict, Optional, Union

from sqlalchemy import JSON, String
from sqlalchemy.dialects.postgresql import INET, JSONB

# A JSON document column holds a mapping from string keys to a closed set of
# value shapes: string, number, boolean, or a nested mapping of the same.
JSONScalar = Union[str, int, float, bool]
JSONValue = Union[JSONScalar, Dict[str, "JSONValue"]]
JSONDocument = Dict[str, JSONValue]

# JSONB on PostgreSQL, generic JSON (TEXT) elsewhere
DocumentType = JSON().with_variant(JSONB(), "postgresql")

# INET on PostgreSQL, String(45) elsewhere (long enough for IPv6)
IPAddressType = String(45).with_variant(INET(), "postgresql")


def validate_document(field: str, value) -> JSONDocument:
    """
    Check that *value* is a JSON document of the allowed shape and return it.
    ``None`` is stored as an empty document.
    """
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"{field} must be a mapping, got {type(value).__name__}")
    _check_mapping(field, value)
    return value


def _check_mapping(path: str, mapping: dict) -> None:
    for key, item in mapping.items():
        if not isinstance(key, str):
            raise ValueError(f"{path}: keys must be strings, got {key!r}")
        where = f"{path}.{key}"
        if isinstance(item, dict):
            _check_mapping(where, item)
        elif not isinstance(item, (str, int, float, bool)):
            raise ValueError(f"{where}: unsupported value type {type(item).__name__}")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Normalise *value* to an aware UTC datetime.

    Naive values are read as UTC (SQLite hands them back that way); aware
    values in any other zone are converted.  SQLite drops the offset on
    write, so every timestamp must be UTC before it reaches a column.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def resolve_now(now: Optional[datetime] = None) -> datetime:
    """*now* as aware UTC, or the current time when omitted."""
    return as_utc(now) if now is not None else utcnow()
