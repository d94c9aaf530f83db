"""Request and response models for the MedLedger API.

JSON bodies use the same camelCase names as the stored documents.
"""

from datetime import datetime, timezone
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ApiModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class RegisterPersonRequest(ApiModel):
    """Body for registering a patient or a doctor."""
    first_name: str = Field(..., alias="firstName", min_length=1)
    last_name: str = Field(..., alias="lastName", min_length=1)
    id: str = Field(..., min_length=1, description="Collision-resistant id, e.g. a hash")


class RegisterNamedRequest(ApiModel):
    """Body for registering a facility or a generic entity."""
    name: str = Field(..., min_length=1)
    id: str = Field(..., min_length=1)


class CreateRecordRequest(ApiModel):
    record_id: str = Field(..., alias="recordId", min_length=1)
    patient_id: str = Field(..., alias="patientId", min_length=1)
    doctor_id: str = Field(..., alias="doctorId", min_length=1)
    facility_id: str = Field(..., alias="facilityId", min_length=1)
    metadata: str = Field(..., description="Opaque, already JSON-encoded payload")


class GrantAccessRequest(ApiModel):
    record_id: str = Field(..., alias="recordId", min_length=1)
    entity_id: str = Field(..., alias="entityId", min_length=1)
    payment_tx_id: str = Field(..., alias="paymentTxId", min_length=1)


class ExistsResponse(BaseModel):
    id: str
    exists: bool


class AccessDeniedResponse(BaseModel):
    success: Literal[False] = False
    message: str


class StoreHealth(BaseModel):
    status: Literal["connected", "disconnected"]
    type: str
    response_time_ms: Optional[float] = Field(None, description="State store response time in milliseconds")


class HealthResponse(BaseModel):
    status: Literal["healthy", "unhealthy"]
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    version: str
    store: StoreHealth
