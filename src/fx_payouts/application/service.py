"""Payout application services.

PayoutApplicationService runs one PayoutOrchestrator batch under a Redis lock
keyed payout:{kind}:{company_investor_id}: batches for different investors run
in parallel, batches for the same investor are serialized across workers.

TransferUpdateService applies the processor's transfer state-change webhook to
the Payment and its items.
"""

import logging
from collections.abc import Awaitable, Callable

import redis.asyncio as aioredis
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.fx_common.cents import to_decimal
from src.fx_common.datetime_utils import parse_iso_timestamp
from src.fx_common.enums import PaymentStatus, PayoutKind, WiseTransferState
from src.fx_common.errors import PaymentNotFoundError
from src.fx_common.redis_client import distributed_lock, get_redis
from src.fx_payouts.application.schemas import PayoutOutcomeResponse, TransferUpdateResponse
from src.fx_payouts.domain.models import Payment
from src.fx_payouts.domain.orchestrator import PayoutOrchestrator
from src.fx_payouts.domain.protocols import (
    BalanceCheckerProtocol,
    PayoutNotifierProtocol,
    PayoutProcessorProtocol,
)
from src.fx_payouts.domain.repository import PayoutRepositoryProtocol
from src.fx_payouts.domain.variants import PAYOUT_VARIANTS, PayoutVariant
from src.fx_payouts.infrastructure.notifier import LoggingPayoutNotifier
from src.fx_payouts.infrastructure.persistence import PayoutRepository
from src.fx_payouts.infrastructure.wise_client import WiseAccountBalance, WisePayoutApi

logger = logging.getLogger(__name__)

FAILED_TRANSFER_STATES = frozenset({
    WiseTransferState.CANCELLED.value,
    WiseTransferState.FUNDS_REFUNDED.value,
    WiseTransferState.BOUNCED_BACK.value,
    WiseTransferState.CHARGED_BACK.value,
})


def payout_lock_key(kind: PayoutKind, company_investor_id: str) -> str:
    return f"payout:{kind.value}:{company_investor_id}"


class PayoutApplicationService:
    def __init__(
        self,
        repo: PayoutRepositoryProtocol | None = None,
        processor: PayoutProcessorProtocol | None = None,
        balance_checker: BalanceCheckerProtocol | None = None,
        notifier: PayoutNotifierProtocol | None = None,
        redis_factory: Callable[[], Awaitable[aioredis.Redis]] = get_redis,
    ) -> None:
        self._repo: PayoutRepositoryProtocol = repo or PayoutRepository()
        self._processor: PayoutProcessorProtocol = processor or WisePayoutApi()
        self._balance: BalanceCheckerProtocol = balance_checker or WiseAccountBalance()
        self._notifier: PayoutNotifierProtocol = notifier or LoggingPayoutNotifier()
        self._redis_factory = redis_factory

    def orchestrator(self, variant: PayoutVariant) -> PayoutOrchestrator:
        return PayoutOrchestrator(
            variant,
            self._repo,
            self._processor,
            self._balance,
            self._notifier,
            settings.SANCTIONED_COUNTRY_CODES,
        )

    async def process(
        self,
        db: AsyncSession,
        kind: PayoutKind,
        company_investor_id: str,
        item_ids: list[str],
    ) -> PayoutOutcomeResponse:
        variant = PAYOUT_VARIANTS[kind]
        redis = await self._redis_factory()
        async with distributed_lock(redis, payout_lock_key(kind, company_investor_id)):
            outcome = await self.orchestrator(variant).process(db, company_investor_id, item_ids)
        return PayoutOutcomeResponse.from_domain(kind, company_investor_id, outcome)


class TransferUpdateService:
    def __init__(
        self,
        repo: PayoutRepositoryProtocol | None = None,
        processor: PayoutProcessorProtocol | None = None,
        notifier: PayoutNotifierProtocol | None = None,
    ) -> None:
        self._repo: PayoutRepositoryProtocol = repo or PayoutRepository()
        self._processor: PayoutProcessorProtocol = processor or WisePayoutApi()
        self._notifier: PayoutNotifierProtocol = notifier or LoggingPayoutNotifier()

    async def handle_state_change(
        self, db: AsyncSession, transfer_id: str, current_state: str
    ) -> TransferUpdateResponse:
        try:
            variant, payment = await self._find_payment(db, transfer_id)
            item_ids = await self._repo.get_payment_item_ids(db, variant, payment.id)

            if current_state == WiseTransferState.OUTGOING_PAYMENT_SENT.value:
                payment_status = PaymentStatus.SUCCEEDED.value
                estimate = await self._processor.delivery_estimate(transfer_id)
                await self._repo.update_payment(
                    db,
                    variant,
                    payment.id,
                    status=payment_status,
                    wise_transfer_status=current_state,
                    wise_transfer_estimate=parse_iso_timestamp(estimate.get("estimatedDeliveryDate")),
                )
                await self._repo.set_items_status(db, variant, item_ids, variant.paid_status)
            elif current_state in FAILED_TRANSFER_STATES:
                payment_status = PaymentStatus.FAILED.value
                await self._repo.update_payment(
                    db, variant, payment.id, status=payment_status, wise_transfer_status=current_state
                )
                # Back to issued so a later batch can retry with a new Payment
                await self._repo.set_items_status(db, variant, item_ids, variant.issued_status)
                await self._notify_failure(db, variant, payment.id, transfer_id, item_ids)
            else:
                payment_status = PaymentStatus.PROCESSING.value
                await self._repo.update_payment(
                    db, variant, payment.id, status=payment_status, wise_transfer_status=current_state
                )
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info(
            "Transfer %s → %s: %s payment %s now %s",
            transfer_id, current_state, variant.kind.value, payment.id, payment_status,
        )
        return TransferUpdateResponse(
            transfer_id=transfer_id,
            kind=variant.kind,
            payment_id=payment.id,
            payment_status=payment_status,
            wise_transfer_status=current_state,
            item_ids=item_ids,
        )

    async def _find_payment(
        self, db: AsyncSession, transfer_id: str
    ) -> tuple[PayoutVariant, Payment]:
        for variant in PAYOUT_VARIANTS.values():
            payment = await self._repo.find_payment_by_transfer_id(db, variant, transfer_id)
            if payment is not None:
                return variant, payment
        raise PaymentNotFoundError(transfer_id)

    async def _notify_failure(
        self,
        db: AsyncSession,
        variant: PayoutVariant,
        payment_id: str,
        transfer_id: str,
        item_ids: list[str],
    ) -> None:
        try:
            transfer = await self._processor.get_transfer(transfer_id)
            items = await self._repo.get_items(db, variant, item_ids)
            await self._notifier.payment_failed(
                kind=variant.kind.value,
                payment_id=payment_id,
                amount=to_decimal(transfer.get("targetValue")),
                currency=transfer.get("targetCurrency") or "",
                net_amount_in_usd_cents=variant.net_amount_in_cents(items),
            )
        except Exception:
            logger.exception("Failed to enqueue failure notification for payment %s", payment_id)
