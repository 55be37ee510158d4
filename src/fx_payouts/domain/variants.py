"""Payout variants: capability objects for the one PayoutOrchestrator.

A variant names its tables, its status vocabulary, how the net amount is
computed, and any extra retention rule. Adding a payout type means adding a
PayoutVariant, not subclassing the orchestrator.
"""

from collections.abc import Callable
from dataclasses import dataclass

from src.fx_common.enums import PayoutItemStatus, PayoutKind, RetainedReason
from src.fx_payouts.domain.models import PayoutItem, PayoutRecipient

# Returns a retained reason to divert the batch, or None to continue
AdditionalValidation = Callable[[list[PayoutItem], PayoutRecipient, int], str | None]


def _no_additional_validation(
    items: list[PayoutItem], recipient: PayoutRecipient, net_amount_in_cents: int
) -> str | None:
    return None


def _below_minimum_dividend(
    items: list[PayoutItem], recipient: PayoutRecipient, net_amount_in_cents: int
) -> str | None:
    if net_amount_in_cents < recipient.minimum_dividend_payment_in_cents:
        return RetainedReason.BELOW_MINIMUM_PAYMENT_THRESHOLD.value
    return None


def _sum_net(items: list[PayoutItem]) -> int:
    return sum(i.net_amount_in_cents for i in items)


def _sum_total(items: list[PayoutItem]) -> int:
    return sum(i.total_amount_in_cents for i in items)


@dataclass(frozen=True)
class PayoutVariant:
    kind: PayoutKind
    item_type_name: str
    items_table: str
    payments_table: str
    payment_items_table: str
    payment_item_fk: str
    payment_fk: str
    transfer_reference: str
    net_amount_in_cents: Callable[[list[PayoutItem]], int]
    additional_validation: AdditionalValidation = _no_additional_validation
    requires_bank_account: bool = True
    valid_statuses: frozenset[str] = frozenset(
        {PayoutItemStatus.ISSUED.value, PayoutItemStatus.RETAINED.value}
    )
    issued_status: str = PayoutItemStatus.ISSUED.value
    processing_status: str = PayoutItemStatus.PROCESSING.value
    paid_status: str = PayoutItemStatus.PAID.value


DIVIDEND_PAYOUT = PayoutVariant(
    kind=PayoutKind.DIVIDEND,
    item_type_name="Dividend",
    items_table="dividends",
    payments_table="dividend_payments",
    payment_items_table="dividend_payment_items",
    payment_item_fk="dividend_id",
    payment_fk="dividend_payment_id",
    transfer_reference="DIV",
    net_amount_in_cents=_sum_net,
    additional_validation=_below_minimum_dividend,
)

EQUITY_BUYBACK_PAYOUT = PayoutVariant(
    kind=PayoutKind.EQUITY_BUYBACK,
    item_type_name="Equity buyback",
    items_table="equity_buybacks",
    payments_table="equity_buyback_payments",
    payment_items_table="equity_buyback_payment_items",
    payment_item_fk="equity_buyback_id",
    payment_fk="equity_buyback_payment_id",
    transfer_reference="EB",
    net_amount_in_cents=_sum_total,
)

PAYOUT_VARIANTS: dict[PayoutKind, PayoutVariant] = {
    DIVIDEND_PAYOUT.kind: DIVIDEND_PAYOUT,
    EQUITY_BUYBACK_PAYOUT.kind: EQUITY_BUYBACK_PAYOUT,
}
