"""Pydantic schemas for fx_payouts API."""

from datetime import datetime

from pydantic import BaseModel, Field

from src.fx_common.enums import PayoutKind
from src.fx_payouts.domain.models import PayoutOutcome


class PayoutRequest(BaseModel):
    kind: PayoutKind
    company_investor_id: str
    item_ids: list[str] = Field(..., min_length=1)


class PayoutOutcomeResponse(BaseModel):
    kind: PayoutKind
    company_investor_id: str
    status: str
    reason: str | None
    payment_id: str | None
    item_ids: list[str]

    @classmethod
    def from_domain(
        cls, kind: PayoutKind, company_investor_id: str, outcome: PayoutOutcome
    ) -> "PayoutOutcomeResponse":
        return cls(
            kind=kind,
            company_investor_id=company_investor_id,
            status=outcome.status,
            reason=outcome.reason,
            payment_id=outcome.payment_id,
            item_ids=outcome.item_ids,
        )


# ---------------------------------------------------------------------------
# Wise transfers#state-change webhook
# ---------------------------------------------------------------------------


class TransferResource(BaseModel):
    id: int | str
    type: str = "transfer"
    profile_id: int | str | None = None


class TransferStateChangeData(BaseModel):
    resource: TransferResource
    current_state: str
    previous_state: str | None = None
    occurred_at: datetime | None = None


class TransferStateChangeEvent(BaseModel):
    data: TransferStateChangeData
    event_type: str = "transfers#state-change"
    subscription_id: str | None = None
    sent_at: datetime | None = None


class TransferUpdateResponse(BaseModel):
    transfer_id: str
    kind: PayoutKind
    payment_id: str
    payment_status: str
    wise_transfer_status: str
    item_ids: list[str]
