"""Record endpoints.

``GET /api/records/{record_id}`` is authorization-gated: the caller is identified
by the client id header and must hold a grant for the record.
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from medledger.api.dependencies import ContextDep, ContractDep
from medledger.api.models import AccessDeniedResponse, CreateRecordRequest
from medledger.domain.documents import Ack, QueryResult, RecordView

router = APIRouter(prefix="/api", tags=["records"])


@router.post("/records", response_model=Ack, status_code=201)
async def create_record(body: CreateRecordRequest, ctx: ContextDep, contract: ContractDep):
    return await contract.create_record(
        ctx, body.record_id, body.patient_id, body.doctor_id, body.facility_id, body.metadata
    )


@router.get("/records", response_model=list[QueryResult])
async def get_all_records(ctx: ContextDep, contract: ContractDep):
    """List every record document.

    Performs no authorization filtering; deploy behind an administrative boundary.
    """
    return await contract.get_all_records(ctx)


@router.get(
    "/records/{record_id}",
    response_model=RecordView,
    responses={403: {"model": AccessDeniedResponse}},
)
async def get_record(record_id: str, ctx: ContextDep, contract: ContractDep):
    result = await contract.get_record(ctx, record_id)
    if result.is_failure():
        return JSONResponse(
            status_code=403,
            content=AccessDeniedResponse(message=result.error).model_dump(),
        )
    return result.value


@router.get("/records/{record_id}/grants", response_model=list[QueryResult])
async def get_grants_for_record(record_id: str, ctx: ContextDep, contract: ContractDep):
    """List the grants issued for a record.

    Like the record listing this is not filtered by caller.
    """
    return await contract.get_grants_for_record(ctx, record_id)
