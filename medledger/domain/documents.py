"""Ledger Document Schema Definitions.

This module defines the documents stored in the world state: the principals
(patients, doctors, facilities, generic entities), clinical records and access
grants. Every document carries a ``docType`` discriminator because all kinds share
one key space in the state store.

Security Impact:
    - Record metadata is an opaque, already-encoded payload and is never inspected
    - Grants are the only path by which a record becomes readable
    - Schema validation prevents malformed documents from reaching the state store

Architecture:
    - Pure domain models with zero infrastructure dependencies
    - Field names are snake_case in Python and camelCase on the wire (aliases)
    - Follows Hexagonal Architecture: Domain Core is isolated from Adapters
"""

import json
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LedgerDocument(BaseModel):
    """Base class for every document persisted in the state store.

    Documents serialise with their camelCase aliases so the stored JSON matches
    what selector queries filter on (``docType``, ``recordId``, ``entityId``...).
    """

    model_config = ConfigDict(populate_by_name=True)

    def to_document(self) -> dict[str, Any]:
        """Return the JSON-compatible dictionary stored in the ledger."""
        return self.model_dump(by_alias=True, mode="json")

    def to_bytes(self) -> bytes:
        """Encode the document as UTF-8 JSON bytes for ``put_state``."""
        return json.dumps(self.to_document()).encode("utf-8")

    @classmethod
    def from_bytes(cls, data: bytes):
        """Decode a document previously written with :meth:`to_bytes`."""
        return cls.model_validate_json(data)


def full_name(first_name: str, last_name: str) -> str:
    return f"{first_name} {last_name}"


class Patient(LedgerDocument):
    """Patient principal.

    ``record_id`` stays ``None`` until the first record is created for the patient
    and is set exactly once afterwards.
    """

    doc_type: Literal["patient"] = Field("patient", alias="docType")
    full_name: str = Field(..., alias="fullName", description="First and last name")
    record_id: Optional[str] = Field(None, alias="recordId", description="Key of the patient's single record")


class Doctor(LedgerDocument):
    """Doctor principal. ``access_list`` is reserved and unused."""

    doc_type: Literal["doctor"] = Field("doctor", alias="docType")
    full_name: str = Field(..., alias="fullName")
    access_list: list[str] = Field(default_factory=list, alias="accessList")


class Facility(LedgerDocument):
    doc_type: Literal["facility"] = Field("facility", alias="docType")
    facility_name: str = Field(..., alias="facilityName")


class Entity(LedgerDocument):
    """Generic principal that can be granted read access (insurer, lab, etc.)."""

    doc_type: Literal["entity"] = Field("entity", alias="docType")
    entity_name: str = Field(..., alias="entityName")


class MedicalRecord(LedgerDocument):
    """Clinical record document.

    Parameters:
        owner_list: ``[patient_id, doctor_id, facility_id]``
        metadata: Opaque, already JSON-encoded clinical payload
        created_at: Creation timestamp, preserved across updates
        updated_at: Timestamp of the latest write
    """

    doc_type: Literal["record"] = Field("record", alias="docType")
    owner_list: list[str] = Field(..., alias="ownerList")
    metadata: str = Field(..., description="Opaque encoded payload")
    created_at: str = Field(..., alias="createdAt")
    updated_at: str = Field(..., alias="updatedAt")

    @field_validator("owner_list")
    @classmethod
    def validate_owner_list(cls, v: list[str]) -> list[str]:
        if len(v) != 3:
            raise ValueError("ownerList must contain patient, doctor and facility ids")
        return v


class Grant(LedgerDocument):
    """Permission for one entity to read one record, keyed by transaction id."""

    doc_type: Literal["grant"] = Field("grant", alias="docType")
    record_id: str = Field(..., alias="recordId")
    entity_id: str = Field(..., alias="entityId")
    payment_tx_id: str = Field(..., alias="paymentTxId")
    created_at: str = Field(..., alias="createdAt")


class QueryResult(BaseModel):
    """A single selector query match: the key and the decoded document."""

    model_config = ConfigDict(populate_by_name=True)

    key: str = Field(..., alias="Key")
    record: dict[str, Any] = Field(..., alias="Record")


class RecordView(BaseModel):
    """Payload returned to an authorized reader of a record."""

    model_config = ConfigDict(populate_by_name=True)

    metadata: Any
    created_at: str = Field(..., alias="createdAt")
    updated_at: str = Field(..., alias="updatedAt")


class Ack(BaseModel):
    """Acknowledgment returned by every write operation."""

    success: str = "OK"
