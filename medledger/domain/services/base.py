"""Shared state store plumbing for domain services."""

import json
import logging
from typing import Any, Optional, TypeVar

from medledger.domain.documents import LedgerDocument, QueryResult
from medledger.domain.enums import DocType
from medledger.domain.ports import InvocationContext, NotFoundError, StateStorePort, StorageError
from medledger.domain.selectors import build_query_string

logger = logging.getLogger(__name__)

DocumentT = TypeVar("DocumentT", bound=LedgerDocument)


def is_present(raw: Optional[bytes]) -> bool:
    """Absent keys come back as ``None`` or empty bytes."""
    return bool(raw)


def decode_document(key: str, raw: Optional[bytes]) -> Optional[dict[str, Any]]:
    """Decode raw state bytes into a document dictionary.

    Returns:
        The decoded document, or ``None`` if nothing is stored at ``key``

    Raises:
        StorageError: If the stored bytes are not a JSON object
    """
    if not is_present(raw):
        return None
    try:
        document = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise StorageError(
            f"Stored value at {key} is not a JSON document",
            operation="get_state",
            details={"key": key}
        ) from e
    if not isinstance(document, dict):
        raise StorageError(f"Stored value at {key} is not a JSON object", operation="get_state", details={"key": key})
    return document


def load_document(doc_type: DocType, model: type[DocumentT], key: str, raw: Optional[bytes]) -> DocumentT:
    """Validate raw state bytes as a document of ``doc_type``.

    Raises:
        NotFoundError: If nothing is stored at ``key`` or the stored
            document is of a different kind
    """
    document = decode_document(key, raw)
    if document is None or document.get("docType") != doc_type.value:
        raise NotFoundError(doc_type.value, key)
    return model.model_validate(document)


class LedgerService:
    """Base class binding a service to one invocation context.

    Parameters:
        ctx: The invocation context (state store, identity, transaction)
    """

    def __init__(self, ctx: InvocationContext):
        self.ctx = ctx

    @property
    def store(self) -> StateStorePort:
        return self.ctx.store

    async def _put(self, key: str, document: LedgerDocument) -> None:
        await self.store.put_state(key, document.to_bytes())

    async def _get_document(self, key: str) -> Optional[dict[str, Any]]:
        return decode_document(key, await self.store.get_state(key))

    async def _load(self, doc_type: DocType, model: type[DocumentT], key: str) -> DocumentT:
        return load_document(doc_type, model, key, await self.store.get_state(key))

    async def _query(self, doc_type: DocType, **criteria: Any) -> list[QueryResult]:
        """Run a selector query and decode every non-empty match.

        Returns:
            list[QueryResult]: Matches in the store's iteration order
        """
        query_string = build_query_string(doc_type, **criteria)
        logger.debug(f"Running selector query: {query_string}")
        rows = await self.store.get_query_result(query_string)

        results = []
        for key, value in rows:
            document = decode_document(key, value)
            if document is None:
                continue
            results.append(QueryResult(key=key, record=document))
        return results
