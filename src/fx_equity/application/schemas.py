"""Pydantic schemas for fx_equity API."""

from decimal import Decimal

from pydantic import BaseModel, Field

from src.fx_common.cents import cents_to_display
from src.fx_equity.domain.calculator import EquitySplit


class EquityCalculationRequest(BaseModel):
    company_worker_id: str
    service_amount_cents: int = Field(..., ge=0)
    invoice_year: int | None = None
    equity_percentage: Decimal | None = Field(None, ge=0, le=100)


class EquityCalculationResponse(BaseModel):
    service_amount_cents: int
    cash_cents: int
    cash_display: str
    equity_cents: int
    equity_display: str
    equity_option_shares: int | None
    effective_equity_percentage: Decimal

    @classmethod
    def from_split(cls, service_amount_cents: int, split: EquitySplit) -> "EquityCalculationResponse":
        cash = split.cash_cents(service_amount_cents)
        return cls(
            service_amount_cents=service_amount_cents,
            cash_cents=cash,
            cash_display=cents_to_display(cash),
            equity_cents=split.equity_cents,
            equity_display=cents_to_display(split.equity_cents),
            equity_option_shares=split.equity_option_shares,
            effective_equity_percentage=split.effective_equity_percentage,
        )
