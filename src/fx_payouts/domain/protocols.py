"""External boundaries of the payout flow.

The processor methods return the processor's JSON as-is; the orchestrator
reads its keys (id, status, rate, active, paymentOptions[].payIn,
paymentOptions[].fee.total, paymentOptions[].sourceAmount, targetCurrency,
targetValue, estimatedDeliveryDate) by their original names.
"""

from decimal import Decimal
from typing import Any, Protocol


class PayoutProcessorProtocol(Protocol):
    async def get_exchange_rate(self, target_currency: str) -> list[dict[str, Any]]: ...

    async def get_recipient_account(self, recipient_id: str) -> dict[str, Any]: ...

    async def create_quote(
        self, target_currency: str, amount: Decimal, recipient_id: str
    ) -> dict[str, Any]: ...

    async def create_transfer(
        self,
        quote_id: str,
        recipient_id: str,
        unique_transaction_id: str,
        reference: str,
    ) -> dict[str, Any]: ...

    async def fund_transfer(self, transfer_id: str) -> dict[str, Any]: ...

    async def get_transfer(self, transfer_id: str) -> dict[str, Any]: ...

    async def delivery_estimate(self, transfer_id: str) -> dict[str, Any]: ...


class BalanceCheckerProtocol(Protocol):
    async def has_sufficient_balance(self, amount_usd: Decimal) -> bool: ...


class PayoutNotifierProtocol(Protocol):
    async def payment_failed(
        self,
        kind: str,
        payment_id: str,
        amount: Decimal,
        currency: str,
        net_amount_in_usd_cents: int,
    ) -> None: ...
