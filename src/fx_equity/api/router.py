"""fx_equity REST endpoints.

POST /companies/{company_id}/equity_calculations    cash/equity split preview
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.fx_common.database import get_db_session
from src.fx_common.response import ApiResponse, error_response, success_response
from src.fx_equity.application.schemas import (
    EquityCalculationRequest,
    EquityCalculationResponse,
)
from src.fx_equity.application.service import EquityApplicationService

router = APIRouter(prefix="/companies/{company_id}", tags=["equity"])

_service = EquityApplicationService()

EQUITY_CALCULATION_FAILED = 1101


@router.post("/equity_calculations")
async def calculate_equity(
    company_id: str,
    body: EquityCalculationRequest,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.calculate(
        db,
        company_id,
        body.company_worker_id,
        body.service_amount_cents,
        body.invoice_year,
        body.equity_percentage,
    )
    if result.success:
        resp = success_response(
            EquityCalculationResponse.from_split(body.service_amount_cents, result.data).model_dump(
                mode="json"
            )
        )
    else:
        resp = error_response(EQUITY_CALCULATION_FAILED, result.error or "equity calculation failed")
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
