"""Record Manager Service.

This module creates and updates clinical records and serves authorization-gated
reads.

Security Impact:
    - Each patient has at most one record; once linked, every later write for
      that patient lands on the same record regardless of the key supplied
    - Reads are gated on a grant matching the resolved caller and the record
    - Record metadata is opaque: stored as an already-encoded string and decoded
      once on read

Architecture:
    - Independent reads are issued together with asyncio.gather, for latency only;
      create_record reads the patient first since it decides which record key is read
    - The patient and record writes of a first creation are issued together but
      are not atomic as a unit; the hosting environment owns commit semantics
"""

import asyncio
import json
import logging
from typing import Any

from medledger.domain.documents import Ack, MedicalRecord, QueryResult, RecordView
from medledger.domain.enums import DocType
from medledger.domain.ports import MetadataDecodeError, Result
from medledger.domain.services.base import LedgerService, load_document
from medledger.domain.services.grants import GrantLedger
from medledger.domain.services.registry import EntityRegistry

logger = logging.getLogger(__name__)

ACCESS_DENIED_MESSAGE = "You are not authorized to access this record"
ACCESS_DENIED = "AccessDenied"


def decode_metadata(record_id: str, metadata: str) -> Any:
    """Decode the stored metadata payload.

    Raises:
        MetadataDecodeError: If the payload is not valid JSON
    """
    try:
        return json.loads(metadata)
    except json.JSONDecodeError as e:
        raise MetadataDecodeError(f"Metadata of record {record_id} is not valid JSON", key=record_id) from e


class RecordManager(LedgerService):
    """Creates, updates and reads clinical records.

    Example Usage:
        ```python
        manager = RecordManager(ctx)
        await manager.create_record("r1", "p1", "d1", "f1", json.dumps({"bp": "120/80"}))
        result = await manager.get_record("r1")
        if result.is_success():
            print(result.value.metadata)
        ```
    """

    def __init__(self, ctx):
        super().__init__(ctx)
        self.registry = EntityRegistry(ctx)
        self.grants = GrantLedger(ctx)

    async def create_record(
        self,
        record_id: str,
        patient_id: str,
        doctor_id: str,
        facility_id: str,
        metadata: str
    ) -> Ack:
        """Create the patient's record, or update it if one is already linked.

        Parameters:
            record_id: Key for the record if the patient has none yet
            patient_id: Owning patient
            doctor_id: Authoring doctor
            facility_id: Facility where the record was produced
            metadata: Opaque, already-encoded clinical payload

        Returns:
            Ack: ``{"success": "OK"}``

        Raises:
            NotFoundError: If the patient does not exist

        Note:
            When the patient is already linked to a record, the draft is written
            to that record and ``record_id`` is ignored. ``createdAt`` is carried
            over from the record document being overwritten.
        """
        now = self.ctx.transaction.now()
        draft = MedicalRecord(
            owner_list=[patient_id, doctor_id, facility_id],
            metadata=metadata,
            created_at=now,
            updated_at=now,
        )

        patient = await self.registry.get_patient(patient_id)
        # only the key actually written can lend its createdAt
        target_id = patient.record_id or record_id
        existing = await self._get_document(target_id)

        if existing is not None and existing.get("docType") == DocType.RECORD.value and existing.get("createdAt"):
            draft.created_at = existing["createdAt"]

        if patient.record_id:
            if patient.record_id != record_id:
                logger.info(f"Patient {patient_id} is linked to record {patient.record_id}; ignoring key {record_id}")
            await self._put(patient.record_id, draft)
            logger.info(
                f"Updated record {patient.record_id} for patient {patient_id}",
                extra={"extra_fields": {"record_id": patient.record_id, "patient_id": patient_id}}
            )
            return Ack()

        patient.record_id = record_id
        await asyncio.gather(
            self._put(patient_id, patient),
            self._put(record_id, draft),
        )
        logger.info(
            f"Created record {record_id} for patient {patient_id}",
            extra={"extra_fields": {"record_id": record_id, "patient_id": patient_id}}
        )
        return Ack()

    async def get_record(self, record_id: str) -> Result[RecordView]:
        """Read a record on behalf of the resolved caller.

        Returns:
            Result[RecordView]: Success with the decoded payload if the caller
            holds a grant for the record, otherwise a failure result with
            ``error_type="AccessDenied"``

        Raises:
            IdentityError: If the caller credential cannot be resolved
            NotFoundError: If the record does not exist, regardless of grants
        """
        caller_id = await self.ctx.identity.resolve_caller_id()

        record_raw, granted = await asyncio.gather(
            self.store.get_state(record_id),
            self.grants.has_access(record_id, caller_id),
        )
        record = load_document(DocType.RECORD, MedicalRecord, record_id, record_raw)

        if not granted:
            details = {"record_id": record_id, "entity_id": caller_id}
            logger.warning(f"Denied read of record {record_id} by {caller_id}", extra={"extra_fields": details})
            return Result.failure_result(ACCESS_DENIED_MESSAGE, error_type=ACCESS_DENIED, error_details=details)

        logger.debug(f"Serving record {record_id} to {caller_id}")
        return Result.success_result(RecordView(
            metadata=decode_metadata(record_id, record.metadata),
            created_at=record.created_at,
            updated_at=record.updated_at,
        ))

    async def get_all_records(self) -> list[QueryResult]:
        """Return every stored record document.

        Security Impact:
            - Performs no authorization filtering; do not expose directly to
              untrusted principals
        """
        return await self._query(DocType.RECORD)
