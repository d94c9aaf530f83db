"""Selector matching shared by the reference state store adapters.

Only field equality is supported; that is all the domain layer issues.
"""

import json
from typing import Any

from medledger.domain.ports import StorageError


def parse_query_string(query_string: str) -> dict[str, Any]:
    """Return the ``selector`` object of a JSON query string.

    Raises:
        StorageError: If the query is not JSON or has no selector object
    """
    try:
        query = json.loads(query_string)
    except json.JSONDecodeError as e:
        raise StorageError(f"Invalid query string: {str(e)}", operation="get_query_result") from e

    selector = query.get("selector") if isinstance(query, dict) else None
    if not isinstance(selector, dict):
        raise StorageError("Query string must contain a selector object", operation="get_query_result")
    return selector


def matches_selector(value: bytes, selector: dict[str, Any]) -> bool:
    """True if the JSON document in ``value`` has every selector field equal."""
    if not value:
        return False
    try:
        document = json.loads(value.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        # non-JSON values are never selectable
        return False
    if not isinstance(document, dict):
        return False
    return all(field in document and document[field] == expected for field, expected in selector.items())
