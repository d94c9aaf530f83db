"""Registration and lookup endpoints for patients, doctors, facilities and entities."""

from fastapi import APIRouter

from medledger.api.dependencies import ContextDep, ContractDep
from medledger.api.models import ExistsResponse, RegisterNamedRequest, RegisterPersonRequest
from medledger.domain.documents import Ack, Doctor, Patient, QueryResult

router = APIRouter(prefix="/api", tags=["registry"])


@router.post("/patients", response_model=Ack, status_code=201)
async def register_patient(body: RegisterPersonRequest, ctx: ContextDep, contract: ContractDep):
    return await contract.register_patient(ctx, body.first_name, body.last_name, body.id)


@router.get("/patients", response_model=list[QueryResult])
async def get_all_patients(ctx: ContextDep, contract: ContractDep):
    return await contract.get_all_patients(ctx)


@router.get("/patients/{patient_id}", response_model=Patient)
async def get_patient(patient_id: str, ctx: ContextDep, contract: ContractDep):
    return await contract.get_patient(ctx, patient_id)


@router.get("/patients/{patient_id}/exists", response_model=ExistsResponse)
async def patient_exists(patient_id: str, ctx: ContextDep, contract: ContractDep):
    return ExistsResponse(id=patient_id, exists=await contract.patient_exists(ctx, patient_id))


@router.post("/doctors", response_model=Ack, status_code=201)
async def register_doctor(body: RegisterPersonRequest, ctx: ContextDep, contract: ContractDep):
    return await contract.register_doctor(ctx, body.first_name, body.last_name, body.id)


@router.get("/doctors", response_model=list[QueryResult])
async def get_all_doctors(ctx: ContextDep, contract: ContractDep):
    return await contract.get_all_doctors(ctx)


@router.get("/doctors/{doctor_id}", response_model=Doctor)
async def get_doctor(doctor_id: str, ctx: ContextDep, contract: ContractDep):
    return await contract.get_doctor(ctx, doctor_id)


@router.get("/doctors/{doctor_id}/exists", response_model=ExistsResponse)
async def doctor_exists(doctor_id: str, ctx: ContextDep, contract: ContractDep):
    return ExistsResponse(id=doctor_id, exists=await contract.doctor_exists(ctx, doctor_id))


@router.post("/facilities", response_model=Ack, status_code=201)
async def register_facility(body: RegisterNamedRequest, ctx: ContextDep, contract: ContractDep):
    return await contract.register_facility(ctx, body.name, body.id)


@router.get("/facilities", response_model=list[QueryResult])
async def get_all_facilities(ctx: ContextDep, contract: ContractDep):
    return await contract.get_all_facilities(ctx)


@router.post("/entities", response_model=Ack, status_code=201)
async def register_entity(body: RegisterNamedRequest, ctx: ContextDep, contract: ContractDep):
    return await contract.register_entity(ctx, body.name, body.id)


@router.get("/entities", response_model=list[QueryResult])
async def get_all_entities(ctx: ContextDep, contract: ContractDep):
    return await contract.get_all_entities(ctx)
