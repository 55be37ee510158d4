"""fx_payouts REST endpoints.

POST /payouts                                   run one investor's payout batch
POST /webhooks/wise/transfer_state_change       processor transfer state updates
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.fx_common.database import get_db_session
from src.fx_common.response import ApiResponse, success_response
from src.fx_payouts.application.schemas import PayoutRequest, TransferStateChangeEvent
from src.fx_payouts.application.service import PayoutApplicationService, TransferUpdateService

router = APIRouter(tags=["payouts"])

_service = PayoutApplicationService()
_transfer_updates = TransferUpdateService()


@router.post("/payouts")
async def process_payout(
    body: PayoutRequest,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.process(db, body.kind, body.company_investor_id, body.item_ids)
    resp = success_response(result.model_dump(mode="json"))
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/webhooks/wise/transfer_state_change")
async def transfer_state_change(
    event: TransferStateChangeEvent,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _transfer_updates.handle_state_change(
        db, str(event.data.resource.id), event.data.current_state
    )
    resp = success_response(result.model_dump(mode="json"))
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
