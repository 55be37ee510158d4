"""Domain models for fx_payouts: pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal


@dataclass
class PayoutItem:
    """A dividend or an equity buyback owed to one investor."""
    id: str
    company_id: str
    company_investor_id: str
    status: str                      # PayoutItemStatus value
    total_amount_in_cents: int
    net_amount_in_cents: int
    retained_reason: str | None = None


@dataclass
class PayoutRecipient:
    """Investor + user facts the eligibility checks read."""
    company_investor_id: str
    user_id: str
    completed_onboarding: bool
    country_code: str | None
    tax_information_confirmed_at: datetime | None
    tax_id_verified: bool
    minimum_dividend_payment_in_cents: int = 0


@dataclass
class BankAccount:
    id: str
    user_id: str
    recipient_id: str
    currency: str
    last_four_digits: str | None = None


@dataclass
class Payment:
    id: str
    company_investor_id: str
    processor_uuid: str
    status: str                      # PaymentStatus value
    wise_transfer_reference: str
    wise_quote_id: str | None = None
    transfer_currency: str | None = None
    total_transaction_cents: int | None = None
    transfer_fee_in_cents: int | None = None
    transfer_id: str | None = None
    conversion_rate: Decimal | None = None
    recipient_last4: str | None = None
    wise_transfer_status: str | None = None
    wise_transfer_estimate: datetime | None = None
    created_at: datetime | None = None


@dataclass
class PayoutOutcome:
    status: str                      # "skipped" | "retained" | "submitted"
    reason: str | None = None
    payment_id: str | None = None
    item_ids: list[str] = field(default_factory=list)

    SKIPPED = "skipped"
    RETAINED = "retained"
    SUBMITTED = "submitted"

    @classmethod
    def skipped(cls, reason: str, item_ids: list[str]) -> "PayoutOutcome":
        return cls(status=cls.SKIPPED, reason=reason, item_ids=item_ids)

    @classmethod
    def retained(cls, reason: str, item_ids: list[str]) -> "PayoutOutcome":
        return cls(status=cls.RETAINED, reason=reason, item_ids=item_ids)

    @classmethod
    def submitted(cls, payment_id: str, item_ids: list[str]) -> "PayoutOutcome":
        return cls(status=cls.SUBMITTED, payment_id=payment_id, item_ids=item_ids)
