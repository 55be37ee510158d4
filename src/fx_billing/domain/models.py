"""Domain models for fx_billing: pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal


@dataclass
class BillingCompany:
    id: str
    is_active: bool
    bank_account_ready: bool
    required_invoice_approval_count: int = 1

    @property
    def ready_for_billing(self) -> bool:
        return self.is_active and self.bank_account_ready


@dataclass
class Invoice:
    id: str
    company_id: str
    user_id: str
    company_worker_id: str | None
    invoice_date: date
    status: str                      # InvoiceStatus value
    cash_amount_in_cents: int
    total_amount_in_usd_cents: int
    flexile_fee_cents: int = 0
    equity_amount_in_cents: int = 0
    equity_amount_in_options: int = 0
    equity_percentage: Decimal = Decimal(0)


@dataclass(frozen=True)
class InvoiceSplit:
    """Cash/equity columns written to an invoice when it is approved."""

    cash_amount_in_cents: int
    equity_amount_in_cents: int
    equity_amount_in_options: int
    equity_percentage: Decimal


@dataclass
class ConsolidatedInvoice:
    company_id: str
    invoice_number: str
    invoice_date: date
    period_start_date: date
    period_end_date: date
    invoice_amount_cents: int
    flexile_fee_cents: int
    transfer_fee_cents: int
    total_cents: int
    status: str                      # ConsolidatedInvoiceStatus value
    invoice_ids: list[str] = field(default_factory=list)
    id: str | None = None


@dataclass
class DividendRound:
    id: str
    company_id: str
    issued_at: datetime
    status: str                      # DividendRoundStatus value
    total_amount_in_cents: int
    consolidated_invoice_id: str | None = None
