"""fx_billing REST endpoints.

POST /companies/{company_id}/consolidated_invoices                          group payable invoices by date
POST /companies/{company_id}/dividend_rounds/{round_id}/consolidated_invoice  bill a dividend round
POST /companies/{company_id}/invoices/{invoice_id}/approvals                approve an invoice
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.fx_billing.application.schemas import (
    ConsolidateInvoicesRequest,
    InvoiceApprovalRequest,
)
from src.fx_billing.application.service import BillingApplicationService
from src.fx_common.database import get_db_session
from src.fx_common.response import ApiResponse, error_response, success_response

router = APIRouter(prefix="/companies/{company_id}", tags=["billing"])

_service = BillingApplicationService()

INVOICE_APPROVAL_FAILED = 1102


@router.post("/consolidated_invoices")
async def consolidate_invoices(
    company_id: str,
    body: ConsolidateInvoicesRequest,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.consolidate_invoices(db, company_id, body.invoice_ids)
    resp = success_response([c.model_dump(mode="json") for c in result])
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/dividend_rounds/{round_id}/consolidated_invoice")
async def consolidate_dividend_round(
    company_id: str,
    round_id: str,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.consolidate_dividend_round(db, company_id, round_id)
    resp = success_response(result.model_dump(mode="json"))
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/invoices/{invoice_id}/approvals")
async def approve_invoice(
    company_id: str,
    invoice_id: str,
    body: InvoiceApprovalRequest,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.approve_invoice(db, company_id, invoice_id, body.approver_id)
    if result.success:
        resp = success_response(result.data.model_dump(mode="json"))
    else:
        resp = error_response(INVOICE_APPROVAL_FAILED, result.error or "approval failed")
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
