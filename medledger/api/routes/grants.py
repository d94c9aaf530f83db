"""Grant endpoint."""

from fastapi import APIRouter

from medledger.api.dependencies import ContextDep, ContractDep
from medledger.api.models import GrantAccessRequest
from medledger.domain.documents import Ack

router = APIRouter(prefix="/api", tags=["grants"])


@router.post("/grants", response_model=Ack, status_code=201)
async def grant_access(body: GrantAccessRequest, ctx: ContextDep, contract: ContractDep):
    return await contract.grant_access(ctx, body.record_id, body.entity_id, body.payment_tx_id)
