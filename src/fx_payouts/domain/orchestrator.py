"""PayoutOrchestrator: drives one investor's batch of payout items to a funded transfer.

Order of operations:
  1. Items exist and belong to the investor (raised otherwise).
  2. Preconditions; a failure returns "skipped" without touching any row.
  3. Country: unknown raises, sanctioned retains every item and returns.
  4. Platform balance must cover the net USD amount (raised otherwise).
  5. Variant validation may retain the batch (e.g. below minimum dividend).
  6. Items back to issued, new Payment, then processor calls:
     rate -> recipient account -> quote -> transfer -> items processing -> fund.

Each state change is committed as it happens; the processor is the source of
truth once a transfer exists. A failure after the Payment is created marks the
Payment failed and re-raises. Items already moved to processing stay there.
"""

import logging
from decimal import Decimal
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from src.fx_common.cents import cents_to_usd, quantize_cents, round_cents, to_decimal
from src.fx_common.enums import PaymentStatus, RetainedReason
from src.fx_common.errors import (
    InsufficientPlatformBalanceError,
    InvestorNotFoundError,
    ItemsInvestorMismatchError,
    PayoutItemsNotFoundError,
    PayoutProcessorError,
    UnknownCountryError,
)
from src.fx_payouts.domain.eligibility import (
    BANK_ACCOUNT_MISSING,
    is_sanctioned,
    precondition_failure,
)
from src.fx_payouts.domain.models import BankAccount, Payment, PayoutItem, PayoutOutcome
from src.fx_payouts.domain.protocols import (
    BalanceCheckerProtocol,
    PayoutNotifierProtocol,
    PayoutProcessorProtocol,
)
from src.fx_payouts.domain.repository import PayoutRepositoryProtocol
from src.fx_payouts.domain.variants import PayoutVariant

logger = logging.getLogger(__name__)

USD = "USD"
PAY_IN_BALANCE = "BALANCE"
FUNDING_COMPLETED = "COMPLETED"


class PayoutOrchestrator:
    def __init__(
        self,
        variant: PayoutVariant,
        repo: PayoutRepositoryProtocol,
        processor: PayoutProcessorProtocol,
        balance_checker: BalanceCheckerProtocol,
        notifier: PayoutNotifierProtocol,
        sanctioned_country_codes: list[str],
    ) -> None:
        self._variant = variant
        self._repo = repo
        self._processor = processor
        self._balance = balance_checker
        self._notifier = notifier
        self._sanctioned = sanctioned_country_codes

    async def process(
        self, db: AsyncSession, company_investor_id: str, item_ids: list[str]
    ) -> PayoutOutcome:
        variant = self._variant
        items = await self._load_items(db, company_investor_id, item_ids)
        ids = [i.id for i in items]

        recipient = await self._repo.get_recipient(db, company_investor_id)
        if recipient is None:
            raise InvestorNotFoundError(company_investor_id)
        bank_account = await self._repo.get_bank_account(db, recipient.user_id)

        reason = precondition_failure(variant, items, recipient, bank_account)
        if reason is not None:
            logger.info(
                "%s payout for investor %s skipped: %s",
                variant.item_type_name, company_investor_id, reason,
            )
            return PayoutOutcome.skipped(reason, ids)

        if not recipient.country_code:
            raise UnknownCountryError(recipient.user_id)
        if is_sanctioned(recipient.country_code, self._sanctioned):
            return await self._retain(
                db, ids, RetainedReason.OFAC_SANCTIONED_COUNTRY.value, company_investor_id
            )

        net_amount_in_cents = variant.net_amount_in_cents(items)
        net_amount_in_usd = cents_to_usd(net_amount_in_cents)
        if not await self._balance.has_sufficient_balance(net_amount_in_usd):
            raise InsufficientPlatformBalanceError(variant.item_type_name, company_investor_id)

        retain_reason = variant.additional_validation(items, recipient, net_amount_in_cents)
        if retain_reason is not None:
            return await self._retain(db, ids, retain_reason, company_investor_id)

        if bank_account is None:
            return PayoutOutcome.skipped(BANK_ACCOUNT_MISSING, ids)

        await self._repo.set_items_status(
            db, variant, ids, variant.issued_status, clear_retained_reason=True
        )
        payment = await self._repo.create_payment(db, variant, company_investor_id, ids)
        await db.commit()
        logger.info(
            "Created %s payment %s (uuid %s) for investor %s, %d items",
            variant.kind.value, payment.id, payment.processor_uuid, company_investor_id, len(ids),
        )

        try:
            await self._submit(
                db, payment, ids, bank_account, net_amount_in_cents, net_amount_in_usd
            )
        except Exception:
            logger.exception("%s payment %s failed", variant.item_type_name, payment.id)
            await db.rollback()
            await self._repo.update_payment(
                db, variant, payment.id, status=PaymentStatus.FAILED.value
            )
            await db.commit()
            raise

        return PayoutOutcome.submitted(payment.id, ids)

    # ------------------------------------------------------------------

    async def _load_items(
        self, db: AsyncSession, company_investor_id: str, item_ids: list[str]
    ) -> list[PayoutItem]:
        variant = self._variant
        items = await self._repo.get_items(db, variant, item_ids)
        if not items or len(items) != len(set(item_ids)):
            raise PayoutItemsNotFoundError(variant.item_type_name)
        if {i.company_investor_id for i in items} != {company_investor_id}:
            raise ItemsInvestorMismatchError(variant.item_type_name)
        return items

    async def _retain(
        self, db: AsyncSession, ids: list[str], reason: str, company_investor_id: str
    ) -> PayoutOutcome:
        await self._repo.mark_items_retained(db, self._variant, ids, reason)
        await db.commit()
        logger.info(
            "%s payout for investor %s retained: %s",
            self._variant.item_type_name, company_investor_id, reason,
        )
        return PayoutOutcome.retained(reason, ids)

    async def _submit(
        self,
        db: AsyncSession,
        payment: Payment,
        ids: list[str],
        bank_account: BankAccount,
        net_amount_in_cents: int,
        net_amount_in_usd: Decimal,
    ) -> None:
        variant = self._variant
        name = variant.item_type_name.lower()
        target_currency = bank_account.currency

        if target_currency == USD:
            amount = net_amount_in_usd
        else:
            rates = await self._processor.get_exchange_rate(target_currency)
            logger.info("%s payment %s - fetched exchange rate: %s", name, payment.id, rates)
            amount = quantize_cents(net_amount_in_usd * to_decimal(rates[0]["rate"]))

        account = await self._processor.get_recipient_account(bank_account.recipient_id)
        if not account.get("active"):
            await self._repo.mark_bank_account_deleted(db, bank_account.id)
            await db.commit()
            await self._notify_failure(payment, amount, target_currency, net_amount_in_cents)
            raise PayoutProcessorError(
                PayoutProcessorError.RECIPIENT_ACCOUNT_INACTIVE,
                f"Bank account is no longer active for {name} payment {payment.id}",
            )

        quote = await self._processor.create_quote(target_currency, amount, bank_account.recipient_id)
        logger.info("%s payment %s - received quote: %s", name, payment.id, quote)
        quote_id = quote.get("id")
        option = _balance_payment_option(quote)
        if not quote_id or option is None:
            raise PayoutProcessorError(
                PayoutProcessorError.QUOTE_CREATION_FAILED,
                f"Creating quote failed for {name} payment {payment.id}",
            )
        await self._repo.update_payment(
            db,
            variant,
            payment.id,
            wise_quote_id=str(quote_id),
            transfer_currency=quote.get("targetCurrency"),
            total_transaction_cents=int(to_decimal(option["sourceAmount"]) * 100),
            transfer_fee_in_cents=round_cents(to_decimal(option["fee"]["total"]) * 100),
        )
        await db.commit()

        transfer = await self._processor.create_transfer(
            str(quote_id),
            bank_account.recipient_id,
            payment.processor_uuid,
            payment.wise_transfer_reference,
        )
        logger.info("%s payment %s - created transfer: %s", name, payment.id, transfer)
        transfer_id = transfer.get("id")
        if not transfer_id:
            raise PayoutProcessorError(
                PayoutProcessorError.TRANSFER_CREATION_FAILED,
                f"Creating transfer failed for {name} payment {payment.id}",
            )

        await self._repo.set_items_status(db, variant, ids, variant.processing_status)
        await self._repo.update_payment(
            db,
            variant,
            payment.id,
            transfer_id=str(transfer_id),
            conversion_rate=to_decimal(transfer["rate"]) if transfer.get("rate") is not None else None,
            wise_transfer_status=transfer.get("status"),
            recipient_last4=bank_account.last_four_digits,
        )
        await db.commit()

        response = await self._processor.fund_transfer(str(transfer_id))
        logger.info("%s payment %s - funded transfer: %s", name, payment.id, response)
        if response.get("status") != FUNDING_COMPLETED:
            raise PayoutProcessorError(
                PayoutProcessorError.TRANSFER_FUNDING_FAILED,
                f"Funding transfer failed for {name} payment {payment.id}",
            )

    async def _notify_failure(
        self, payment: Payment, amount: Decimal, currency: str, net_amount_in_cents: int
    ) -> None:
        """Fire-and-forget: a notifier error never changes the payout outcome."""
        try:
            await self._notifier.payment_failed(
                kind=self._variant.kind.value,
                payment_id=payment.id,
                amount=amount,
                currency=currency,
                net_amount_in_usd_cents=net_amount_in_cents,
            )
        except Exception:
            logger.exception("Failed to enqueue failure notification for payment %s", payment.id)


def _balance_payment_option(quote: dict[str, Any]) -> dict[str, Any] | None:
    for option in quote.get("paymentOptions") or []:
        if option.get("payIn") == PAY_IN_BALANCE:
            return option
    return None
