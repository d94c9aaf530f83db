"""Entity Registry Service.

This module registers and retrieves the principals of the ledger: patients,
doctors, facilities and generic entities.

Security Impact:
    - Registration performs no existence check: a repeated id overwrites the
      previous document, so callers must supply collision-resistant ids (hashes)
    - Lookups only succeed for documents of the requested kind

Architecture:
    - Pure domain service operating through StateStorePort
    - One register/get/exists/get_all group per principal kind
"""

import logging

from medledger.domain.documents import (
    Ack,
    Doctor,
    Entity,
    Facility,
    Patient,
    QueryResult,
    full_name,
)
from medledger.domain.enums import PRINCIPAL_TYPES, DocType
from medledger.domain.ports import StorageError
from medledger.domain.services.base import LedgerService, decode_document

logger = logging.getLogger(__name__)


class EntityRegistry(LedgerService):
    """Registers and looks up principals in the world state.

    Example Usage:
        ```python
        registry = EntityRegistry(ctx)
        await registry.register_patient("Ada", "Lovelace", "p1")
        patient = await registry.get_patient("p1")
        ```
    """

    # ------------------------------------------------------------------
    # Patients
    # ------------------------------------------------------------------

    async def register_patient(self, first_name: str, last_name: str, patient_id: str) -> Ack:
        await self._put(patient_id, Patient(full_name=full_name(first_name, last_name)))
        logger.info(f"Registered patient {patient_id}")
        return Ack()

    async def get_patient(self, patient_id: str) -> Patient:
        """Fetch a patient.

        Raises:
            NotFoundError: If no patient is stored under ``patient_id``
        """
        return await self._load(DocType.PATIENT, Patient, patient_id)

    async def patient_exists(self, patient_id: str) -> bool:
        return await self._exists(DocType.PATIENT, patient_id)

    async def get_all_patients(self) -> list[QueryResult]:
        return await self._query(DocType.PATIENT)

    # ------------------------------------------------------------------
    # Doctors
    # ------------------------------------------------------------------

    async def register_doctor(self, first_name: str, last_name: str, doctor_id: str) -> Ack:
        await self._put(doctor_id, Doctor(full_name=full_name(first_name, last_name)))
        logger.info(f"Registered doctor {doctor_id}")
        return Ack()

    async def get_doctor(self, doctor_id: str) -> Doctor:
        """Fetch a doctor.

        Raises:
            NotFoundError: If no doctor is stored under ``doctor_id``
        """
        return await self._load(DocType.DOCTOR, Doctor, doctor_id)

    async def doctor_exists(self, doctor_id: str) -> bool:
        return await self._exists(DocType.DOCTOR, doctor_id)

    async def get_all_doctors(self) -> list[QueryResult]:
        return await self._query(DocType.DOCTOR)

    # ------------------------------------------------------------------
    # Facilities
    # ------------------------------------------------------------------

    async def register_facility(self, facility_name: str, facility_id: str) -> Ack:
        await self._put(facility_id, Facility(facility_name=facility_name))
        logger.info(f"Registered facility {facility_id}")
        return Ack()

    async def get_facility(self, facility_id: str) -> Facility:
        return await self._load(DocType.FACILITY, Facility, facility_id)

    async def facility_exists(self, facility_id: str) -> bool:
        return await self._exists(DocType.FACILITY, facility_id)

    async def get_all_facilities(self) -> list[QueryResult]:
        return await self._query(DocType.FACILITY)

    # ------------------------------------------------------------------
    # Generic entities
    # ------------------------------------------------------------------

    async def register_entity(self, entity_name: str, entity_id: str) -> Ack:
        await self._put(entity_id, Entity(entity_name=entity_name))
        logger.info(f"Registered entity {entity_id}")
        return Ack()

    async def get_entity(self, entity_id: str) -> Entity:
        return await self._load(DocType.ENTITY, Entity, entity_id)

    async def entity_exists(self, entity_id: str) -> bool:
        return await self._exists(DocType.ENTITY, entity_id)

    async def get_all_entities(self) -> list[QueryResult]:
        return await self._query(DocType.ENTITY)

    # ------------------------------------------------------------------

    async def _exists(self, doc_type: DocType, key: str) -> bool:
        raw = await self.store.get_state(key)
        if not raw:
            return False
        try:
            document = decode_document(key, raw)
        except StorageError:
            return False
        return document.get("docType") == doc_type.value


def is_principal(document) -> bool:
    """True if ``document`` is a patient, doctor, facility or entity."""
    return document is not None and document.get("docType") in PRINCIPAL_TYPES
