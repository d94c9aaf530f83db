"""Public operation surface of MedLedger.

Every operation takes the InvocationContext supplied by the hosting environment
for that call, then delegates to the domain service that owns it.
"""

import logging

from medledger.domain.documents import Ack, Doctor, Patient, QueryResult, RecordView
from medledger.domain.ports import InvocationContext, Result
from medledger.domain.services import EntityRegistry, GrantLedger, RecordManager

logger = logging.getLogger(__name__)


class MedicalRecordsContract:
    """Medical records and access control operations.

    Example Usage:
        ```python
        contract = MedicalRecordsContract()
        ctx = InvocationContext(store, identity, SystemTransactionContext())
        await contract.register_patient(ctx, "Ada", "Lovelace", "p1")
        ```
    """

    name = "MedicalRecordsContract"

    # Patients

    async def register_patient(self, ctx: InvocationContext, first_name: str, last_name: str, patient_id: str) -> Ack:
        return await EntityRegistry(ctx).register_patient(first_name, last_name, patient_id)

    async def get_patient(self, ctx: InvocationContext, patient_id: str) -> Patient:
        return await EntityRegistry(ctx).get_patient(patient_id)

    async def patient_exists(self, ctx: InvocationContext, patient_id: str) -> bool:
        return await EntityRegistry(ctx).patient_exists(patient_id)

    async def get_all_patients(self, ctx: InvocationContext) -> list[QueryResult]:
        return await EntityRegistry(ctx).get_all_patients()

    # Doctors

    async def register_doctor(self, ctx: InvocationContext, first_name: str, last_name: str, doctor_id: str) -> Ack:
        return await EntityRegistry(ctx).register_doctor(first_name, last_name, doctor_id)

    async def get_doctor(self, ctx: InvocationContext, doctor_id: str) -> Doctor:
        return await EntityRegistry(ctx).get_doctor(doctor_id)

    async def doctor_exists(self, ctx: InvocationContext, doctor_id: str) -> bool:
        return await EntityRegistry(ctx).doctor_exists(doctor_id)

    async def get_all_doctors(self, ctx: InvocationContext) -> list[QueryResult]:
        return await EntityRegistry(ctx).get_all_doctors()

    # Facilities and entities

    async def register_facility(self, ctx: InvocationContext, facility_name: str, facility_id: str) -> Ack:
        return await EntityRegistry(ctx).register_facility(facility_name, facility_id)

    async def get_all_facilities(self, ctx: InvocationContext) -> list[QueryResult]:
        return await EntityRegistry(ctx).get_all_facilities()

    async def register_entity(self, ctx: InvocationContext, entity_name: str, entity_id: str) -> Ack:
        return await EntityRegistry(ctx).register_entity(entity_name, entity_id)

    async def get_all_entities(self, ctx: InvocationContext) -> list[QueryResult]:
        return await EntityRegistry(ctx).get_all_entities()

    # Records

    async def create_record(
        self,
        ctx: InvocationContext,
        record_id: str,
        patient_id: str,
        doctor_id: str,
        facility_id: str,
        metadata: str
    ) -> Ack:
        return await RecordManager(ctx).create_record(record_id, patient_id, doctor_id, facility_id, metadata)

    async def get_record(self, ctx: InvocationContext, record_id: str) -> Result[RecordView]:
        """Authorization-gated read; check ``result.success`` before using the value."""
        return await RecordManager(ctx).get_record(record_id)

    async def get_all_records(self, ctx: InvocationContext) -> list[QueryResult]:
        return await RecordManager(ctx).get_all_records()

    # Grants

    async def grant_access(self, ctx: InvocationContext, record_id: str, entity_id: str, payment_tx_id: str) -> Ack:
        return await GrantLedger(ctx).grant_access(record_id, entity_id, payment_tx_id)

    async def get_grants_for_record(self, ctx: InvocationContext, record_id: str) -> list[QueryResult]:
        return await GrantLedger(ctx).get_grants_for_record(record_id)
