"""Helper utilities for jsonstore."""

import time
from typing import Any, Dict, Optional

TIMESTAMP_KEY = '__timestamp'
TTL_KEY = '__ttl'
RESERVED_KEYS = frozenset((TIMESTAMP_KEY, TTL_KEY))


def current_timestamp() -> int:
    """Get current Unix timestamp in milliseconds."""
    return int(time.time() * 1000)


def new_document(ttl: int, now: Optional[int] = None) -> Dict[str, Any]:
    """Build a fresh metadata-only document.

    Args:
        ttl: Expiry window in milliseconds
        now: Creation timestamp in milliseconds (defaults to the current time)

    Returns:
        Dictionary holding only the reserved metadata fields
    """
    if now is None:
        now = current_timestamp()
    return {TIMESTAMP_KEY: now, TTL_KEY: ttl}


def read_number(document: Dict[str, Any], field: str) -> int:
    """Read a numeric metadata field, treating missing or non-numeric values as 0."""
    value = document.get(field)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return int(value)


def is_expired(document: Dict[str, Any], now: int) -> bool:
    """Check if a document has outlived its TTL.

    Args:
        document: Parsed store document
        now: Current timestamp in milliseconds

    Returns:
        True if now - __timestamp > __ttl, False otherwise
    """
    return now - read_number(document, TIMESTAMP_KEY) > read_number(document, TTL_KEY)


def user_items(document: Dict[str, Any]) -> Dict[str, Any]:
    """Return the document without its reserved metadata fields."""
    return {k: v for k, v in document.items() if k not in RESERVED_KEYS}
