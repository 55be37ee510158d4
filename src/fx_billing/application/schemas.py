"""Pydantic schemas for fx_billing API."""

from datetime import date

from pydantic import BaseModel

from src.fx_billing.domain.models import ConsolidatedInvoice
from src.fx_common.cents import cents_to_display


class ConsolidateInvoicesRequest(BaseModel):
    invoice_ids: list[str] | None = None


class InvoiceApprovalRequest(BaseModel):
    approver_id: str


class ConsolidatedInvoiceOut(BaseModel):
    id: str | None
    company_id: str
    invoice_number: str
    invoice_date: date
    period_start_date: date
    period_end_date: date
    invoice_amount_cents: int
    flexile_fee_cents: int
    transfer_fee_cents: int
    total_cents: int
    total_display: str
    status: str
    invoice_ids: list[str]

    @classmethod
    def from_domain(cls, c: ConsolidatedInvoice) -> "ConsolidatedInvoiceOut":
        return cls(
            id=c.id,
            company_id=c.company_id,
            invoice_number=c.invoice_number,
            invoice_date=c.invoice_date,
            period_start_date=c.period_start_date,
            period_end_date=c.period_end_date,
            invoice_amount_cents=c.invoice_amount_cents,
            flexile_fee_cents=c.flexile_fee_cents,
            transfer_fee_cents=c.transfer_fee_cents,
            total_cents=c.total_cents,
            total_display=cents_to_display(c.total_cents),
            status=c.status,
            invoice_ids=c.invoice_ids,
        )


class InvoiceApprovalOut(BaseModel):
    invoice_id: str
    status: str
    approvals: int
    flexile_fee_cents: int
