"""Domain layer for MedLedger.

This module contains the core business logic for entity registration, clinical
record management and grant-based access control. Domain models are pure Python
with no external dependencies beyond Pydantic.
"""

from .documents import (
    Ack,
    Doctor,
    Entity,
    Facility,
    Grant,
    MedicalRecord,
    Patient,
    QueryResult,
    RecordView,
)
from .enums import DocType
from .ports import (
    ConflictError,
    IdentityError,
    InvocationContext,
    LedgerError,
    NotFoundError,
    Result,
)

__all__ = [
    "Ack",
    "Doctor",
    "Entity",
    "Facility",
    "Grant",
    "MedicalRecord",
    "Patient",
    "QueryResult",
    "RecordView",
    "DocType",
    "ConflictError",
    "IdentityError",
    "InvocationContext",
    "LedgerError",
    "NotFoundError",
    "Result",
]
