"""Consolidated billing: one company-facing invoice per contractor invoice date.

Callers pass only alive, payable invoices not yet linked to a consolidated
invoice; grouping the same invoice twice is prevented there, not here.
"""

from collections import defaultdict
from datetime import date

from src.fx_billing.domain.models import ConsolidatedInvoice, DividendRound, Invoice
from src.fx_common.enums import ConsolidatedInvoiceStatus, InvoiceStatus
from src.fx_fees.domain.fee import dividend_fee

# Fully approved, or failed and waiting for a new charge
CHARGEABLE_STATUSES = frozenset({InvoiceStatus.APPROVED.value, InvoiceStatus.FAILED.value})
PAID_OR_PAYING_STATUSES = frozenset({
    InvoiceStatus.PAYMENT_PENDING.value,
    InvoiceStatus.PROCESSING.value,
    InvoiceStatus.PAID.value,
})
PAYABLE_STATUSES = CHARGEABLE_STATUSES | PAID_OR_PAYING_STATUSES

TRANSFER_FEE_CENTS = 0


def status_after_consolidation(status: str) -> str:
    """Chargeable invoices wait for the company's payment; the rest keep their status."""
    if status in CHARGEABLE_STATUSES:
        return InvoiceStatus.PAYMENT_PENDING.value
    return status


def consolidate_by_invoice_date(
    company_id: str,
    invoices: list[Invoice],
    today: date,
    invoice_numbers: list[str],
) -> list[ConsolidatedInvoice]:
    """Group invoices by invoice_date, oldest first; one number per group."""
    groups: dict[date, list[Invoice]] = defaultdict(list)
    for invoice in invoices:
        groups[invoice.invoice_date].append(invoice)
    if len(invoice_numbers) < len(groups):
        raise ValueError(f"need {len(groups)} invoice numbers, got {len(invoice_numbers)}")

    consolidated = []
    for number, invoice_date in zip(invoice_numbers, sorted(groups)):
        grouped = groups[invoice_date]
        amount = sum(i.cash_amount_in_cents for i in grouped)
        fee = sum(i.flexile_fee_cents for i in grouped)
        consolidated.append(
            ConsolidatedInvoice(
                company_id=company_id,
                invoice_number=number,
                invoice_date=today,
                period_start_date=invoice_date,
                period_end_date=invoice_date,
                invoice_amount_cents=amount,
                flexile_fee_cents=fee,
                transfer_fee_cents=TRANSFER_FEE_CENTS,
                total_cents=amount + fee + TRANSFER_FEE_CENTS,
                status=ConsolidatedInvoiceStatus.SENT.value,
                invoice_ids=[i.id for i in grouped],
            )
        )
    return consolidated


def consolidate_dividend_round(
    dividend_round: DividendRound, today: date, invoice_number: str
) -> ConsolidatedInvoice:
    amount = dividend_round.total_amount_in_cents
    fee = dividend_fee(amount)
    issued_on = dividend_round.issued_at.date()
    return ConsolidatedInvoice(
        company_id=dividend_round.company_id,
        invoice_number=invoice_number,
        invoice_date=today,
        period_start_date=issued_on,
        period_end_date=issued_on,
        invoice_amount_cents=amount,
        flexile_fee_cents=fee,
        transfer_fee_cents=TRANSFER_FEE_CENTS,
        total_cents=amount + fee + TRANSFER_FEE_CENTS,
        status=ConsolidatedInvoiceStatus.SENT.value,
    )
