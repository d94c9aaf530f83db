"""Grant Ledger Service.

This module issues access grants and answers whether an entity may read a record.

Security Impact:
    - A record is readable by an entity only if a matching grant exists
    - At most one grant exists per (record, entity) pair; duplicates are rejected
    - Grants are immutable and never revoked

Architecture:
    - Grants are keyed by the transaction id, not by the (record, entity) pair,
      so uniqueness is a logical invariant enforced by a selector query
    - The existence checks and the write are check-then-act against a store with
      no cross-key isolation; the hosting environment must serialize commits of
      concurrent invocations for uniqueness to hold
"""

import asyncio
import logging

from medledger.domain.documents import Ack, Grant, QueryResult
from medledger.domain.enums import DocType
from medledger.domain.ports import ConflictError, NotFoundError
from medledger.domain.services.base import LedgerService, decode_document
from medledger.domain.services.registry import is_principal

logger = logging.getLogger(__name__)

GRANT_ACK = "Access granted"


class GrantLedger(LedgerService):
    """Issues grants and looks them up.

    Example Usage:
        ```python
        ledger = GrantLedger(ctx)
        await ledger.grant_access("r1", "e1", payment_tx_id="tx-paid-42")
        assert await ledger.has_access("r1", "e1")
        ```
    """

    async def grant_access(self, record_id: str, entity_id: str, payment_tx_id: str) -> Ack:
        """Grant ``entity_id`` read access to ``record_id``.

        Parameters:
            record_id: Key of the record to share
            entity_id: Key of the grantee (patient, doctor, facility or entity)
            payment_tx_id: Reference to the payment that bought the access

        Returns:
            Ack: ``{"success": "Access granted"}``

        Raises:
            NotFoundError: If the record or the grantee does not exist
                (the record is checked first)
            ConflictError: If the grantee already holds a grant for the record
        """
        tx_id = self.ctx.transaction.tx_id()
        grant = Grant(
            record_id=record_id,
            entity_id=entity_id,
            payment_tx_id=payment_tx_id,
            created_at=self.ctx.transaction.now(),
        )

        record_raw, grantee_raw, existing = await asyncio.gather(
            self.store.get_state(record_id),
            self.store.get_state(entity_id),
            self.find_grants(record_id, entity_id),
        )

        record = decode_document(record_id, record_raw)
        if record is None or record.get("docType") != DocType.RECORD.value:
            raise NotFoundError("record", record_id)

        if not is_principal(decode_document(entity_id, grantee_raw)):
            raise NotFoundError("entity", entity_id)

        log_fields = {"record_id": record_id, "entity_id": entity_id, "tx_id": tx_id}
        if existing:
            logger.warning(
                f"Rejected duplicate grant of record {record_id} to {entity_id}",
                extra={"extra_fields": log_fields}
            )
            raise ConflictError(record_id, entity_id)

        await self._put(tx_id, grant)
        logger.info(f"Granted {entity_id} access to record {record_id} (tx {tx_id})", extra={"extra_fields": log_fields})
        return Ack(success=GRANT_ACK)

    async def find_grants(self, record_id: str, entity_id: str) -> list[QueryResult]:
        """Return every grant of ``record_id`` to ``entity_id``."""
        matches = await self._query(DocType.GRANT, recordId=record_id, entityId=entity_id)
        # selector results are re-checked; a store may return a superset
        return [
            match for match in matches
            if match.record.get("recordId") == record_id and match.record.get("entityId") == entity_id
        ]

    async def has_access(self, record_id: str, entity_id: str) -> bool:
        return bool(await self.find_grants(record_id, entity_id))

    async def get_grants_for_record(self, record_id: str) -> list[QueryResult]:
        """Return every grant issued for ``record_id``.

        Raises:
            NotFoundError: If the record does not exist
        """
        record_raw, grants = await asyncio.gather(
            self.store.get_state(record_id),
            self._query(DocType.GRANT, recordId=record_id),
        )
        record = decode_document(record_id, record_raw)
        if record is None or record.get("docType") != DocType.RECORD.value:
            raise NotFoundError("record", record_id)
        return grants
