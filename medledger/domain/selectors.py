"""Selector query construction.

Queries are JSON documents of the form ``{"selector": {field: value, ...}}``
matched by equality against stored documents. Field names are the stored
(camelCase) names.
"""

import json
from typing import Any

from medledger.domain.enums import DocType


def build_selector(doc_type: DocType, **criteria: Any) -> dict[str, Any]:
    """Build a selector matching ``doc_type`` plus each keyword criterion.

    Example:
        ```python
        build_selector(DocType.GRANT, recordId="r1", entityId="e1")
        # {"docType": "grant", "recordId": "r1", "entityId": "e1"}
        ```
    """
    selector: dict[str, Any] = {"docType": doc_type.value}
    selector.update(criteria)
    return selector


def build_query_string(doc_type: DocType, **criteria: Any) -> str:
    """Return the JSON query string for :func:`build_selector`."""
    return json.dumps({"selector": build_selector(doc_type, **criteria)})
