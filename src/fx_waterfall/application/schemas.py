"""Pydantic schemas for fx_waterfall API.

Component amounts (preference / participation / common) are Decimal cents at
two decimal places and serialize as strings; payout_amount_cents is whole cents.
"""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field, model_validator

from src.fx_common.cents import cents_to_display
from src.fx_waterfall.domain.models import (
    CapTableSnapshot,
    ConvertibleSecurity,
    HoldingAggregate,
    LiquidationPayout,
    ShareClass,
)

# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class PayoutOut(BaseModel):
    company_investor_id: str
    security_type: str
    share_class_name: str | None
    convertible_security_id: str | None
    number_of_shares: int | None
    payout_amount_cents: int
    payout_amount_display: str
    liquidation_preference_amount: Decimal
    participation_amount: Decimal
    common_proceeds_amount: Decimal

    @classmethod
    def from_domain(cls, p: LiquidationPayout) -> "PayoutOut":
        return cls(
            company_investor_id=p.company_investor_id,
            security_type=p.security_type,
            share_class_name=p.share_class_name,
            convertible_security_id=p.convertible_security_id,
            number_of_shares=p.number_of_shares,
            payout_amount_cents=p.payout_amount_cents,
            payout_amount_display=cents_to_display(p.payout_amount_cents),
            liquidation_preference_amount=p.liquidation_preference_amount,
            participation_amount=p.participation_amount,
            common_proceeds_amount=p.common_proceeds_amount,
        )


class WaterfallResponse(BaseModel):
    scenario_id: str | None
    exit_amount_cents: int
    exit_amount_display: str
    total_payout_cents: int
    calculated_at: datetime | None = None
    payouts: list[PayoutOut]

    @classmethod
    def from_payouts(
        cls,
        scenario_id: str | None,
        exit_amount_cents: int,
        payouts: list[LiquidationPayout],
        calculated_at: datetime | None = None,
    ) -> "WaterfallResponse":
        return cls(
            scenario_id=scenario_id,
            exit_amount_cents=exit_amount_cents,
            exit_amount_display=cents_to_display(exit_amount_cents),
            total_payout_cents=sum(p.payout_amount_cents for p in payouts),
            calculated_at=calculated_at,
            payouts=[PayoutOut.from_domain(p) for p in payouts],
        )


# ---------------------------------------------------------------------------
# Playground preview request
# ---------------------------------------------------------------------------


class ShareClassIn(BaseModel):
    id: str
    name: str
    seniority_rank: int | None = None
    original_issue_price_in_dollars: Decimal | None = Field(None, ge=0)
    liquidation_preference_multiple: Decimal = Field(Decimal(1), ge=0)
    preferred: bool = False
    participating: bool = False
    participation_cap_multiple: Decimal | None = Field(None, ge=0)
    is_default: bool = False


class HoldingIn(BaseModel):
    company_investor_id: str
    share_class_id: str
    number_of_shares: int = Field(..., ge=0)


class ConvertibleIn(BaseModel):
    id: str
    company_investor_id: str
    principal_value_in_cents: int = Field(..., ge=0)
    issued_at: datetime
    implied_shares: Decimal = Field(..., ge=0)
    interest_rate_percent: Decimal | None = None
    maturity_date: date | None = None
    valuation_cap_cents: int | None = None
    discount_rate_percent: Decimal | None = Field(None, ge=0, le=100)


class WaterfallPreviewRequest(BaseModel):
    exit_amount_cents: int
    share_classes: list[ShareClassIn] = []
    holdings: list[HoldingIn] = []
    convertibles: list[ConvertibleIn] = []
    as_of: date | None = None

    @model_validator(mode="after")
    def _holdings_reference_known_classes(self) -> "WaterfallPreviewRequest":
        class_ids = {sc.id for sc in self.share_classes}
        unknown = {h.share_class_id for h in self.holdings} - class_ids
        if unknown:
            raise ValueError(f"holdings reference unknown share classes: {sorted(unknown)}")
        return self

    def to_snapshot(self, company_id: str) -> CapTableSnapshot:
        totals: dict[tuple[str, str], int] = {}
        for h in self.holdings:
            key = (h.company_investor_id, h.share_class_id)
            totals[key] = totals.get(key, 0) + h.number_of_shares
        return CapTableSnapshot(
            share_classes=[ShareClass(company_id=company_id, **sc.model_dump()) for sc in self.share_classes],
            holdings=[
                HoldingAggregate(company_investor_id=inv, share_class_id=sc, total_shares=n)
                for (inv, sc), n in totals.items()
            ],
            convertibles=[ConvertibleSecurity(**c.model_dump()) for c in self.convertibles],
        )
