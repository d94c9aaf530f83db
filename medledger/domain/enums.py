"""Enumerations shared by the domain layer."""

from enum import Enum


class DocType(str, Enum):
    """Discriminator stored in every ledger document under ``docType``."""
    PATIENT = "patient"
    DOCTOR = "doctor"
    FACILITY = "facility"
    ENTITY = "entity"
    RECORD = "record"
    GRANT = "grant"


# Document kinds that may hold a grant to read a record
PRINCIPAL_TYPES = frozenset({
    DocType.PATIENT.value,
    DocType.DOCTOR.value,
    DocType.FACILITY.value,
    DocType.ENTITY.value,
})
