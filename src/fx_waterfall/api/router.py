"""fx_waterfall REST endpoints.

POST /companies/{company_id}/liquidation_scenarios/{scenario_id}/calculate  recompute + persist
GET  /companies/{company_id}/liquidation_scenarios/{scenario_id}/payouts    stored payouts
POST /companies/{company_id}/waterfall/preview                              playground, no writes
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.fx_common.database import get_db_session
from src.fx_common.response import ApiResponse, success_response
from src.fx_waterfall.application.schemas import WaterfallPreviewRequest
from src.fx_waterfall.application.service import WaterfallApplicationService

router = APIRouter(prefix="/companies/{company_id}", tags=["waterfall"])

_service = WaterfallApplicationService()


@router.post("/liquidation_scenarios/{scenario_id}/calculate")
async def calculate_scenario(
    company_id: str,
    scenario_id: str,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.calculate(db, company_id, scenario_id)
    resp = success_response(result.model_dump(mode="json"))
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/liquidation_scenarios/{scenario_id}/payouts")
async def list_scenario_payouts(
    company_id: str,
    scenario_id: str,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.list_payouts(db, company_id, scenario_id)
    resp = success_response(result.model_dump(mode="json"))
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/waterfall/preview")
async def preview_waterfall(
    company_id: str,
    body: WaterfallPreviewRequest,
    request: Request,
) -> ApiResponse:
    result = _service.preview(company_id, body)
    resp = success_response(result.model_dump(mode="json"))
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
