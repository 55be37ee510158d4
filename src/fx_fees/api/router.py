"""fx_fees REST endpoints.

GET /fees/{kind}?amount_cents=    platform fee for an invoice or dividend total
"""

from typing import Literal

from fastapi import APIRouter, Query, Request

from src.fx_common.cents import cents_to_display
from src.fx_common.response import ApiResponse, success_response
from src.fx_fees.domain.fee import FEE_SCHEDULES, calc_platform_fee

router = APIRouter(prefix="/fees", tags=["fees"])


@router.get("/{kind}")
async def get_fee(
    kind: Literal["invoice", "dividend"],
    request: Request,
    amount_cents: int = Query(..., ge=0),
) -> ApiResponse:
    schedule = FEE_SCHEDULES[kind]
    fee_cents = calc_platform_fee(amount_cents, schedule)
    resp = success_response(
        {
            "kind": kind,
            "amount_cents": amount_cents,
            "fee_cents": fee_cents,
            "fee_display": cents_to_display(fee_cents),
            "base_cents": schedule.base_cents,
            "percent": str(schedule.percent),
            "max_cents": schedule.max_cents,
        }
    )
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
