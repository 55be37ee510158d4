"""Unit tests for TransferUpdateService (processor webhook handling)."""

from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from src.fx_common.enums import PaymentStatus, PayoutItemStatus, PayoutKind
from src.fx_common.errors import PaymentNotFoundError
from src.fx_payouts.application.service import TransferUpdateService
from src.fx_payouts.domain.models import Payment, PayoutItem
from src.fx_payouts.domain.variants import DIVIDEND_PAYOUT, EQUITY_BUYBACK_PAYOUT


def _payment() -> Payment:
    return Payment(
        id="pay-1",
        company_investor_id="ci-1",
        processor_uuid="uuid-1",
        status=PaymentStatus.INITIAL.value,
        wise_transfer_reference="EB",
        transfer_id="777",
    )


def _repo(found_in: str = "equity_buyback") -> AsyncMock:
    repo = AsyncMock()

    async def find(db: object, variant: object, transfer_id: str) -> Payment | None:
        return _payment() if variant.kind.value == found_in else None

    repo.find_payment_by_transfer_id.side_effect = find
    repo.get_payment_item_ids.return_value = ["eb-1", "eb-2"]
    repo.get_items.return_value = [
        PayoutItem("eb-1", "co-1", "ci-1", "Issued", 5_000, 5_000),
        PayoutItem("eb-2", "co-1", "ci-1", "Issued", 7_000, 7_000),
    ]
    return repo


class TestHandleStateChange:
    async def test_outgoing_payment_sent_marks_paid(self) -> None:
        repo = _repo()
        processor = AsyncMock()
        processor.delivery_estimate.return_value = {"estimatedDeliveryDate": "2026-10-21T12:00:00Z"}
        db = AsyncMock()
        svc = TransferUpdateService(repo=repo, processor=processor, notifier=AsyncMock())

        result = await svc.handle_state_change(db, "777", "outgoing_payment_sent")

        assert result.kind == PayoutKind.EQUITY_BUYBACK
        assert result.payment_status == PaymentStatus.SUCCEEDED.value
        fields = repo.update_payment.await_args.kwargs
        assert fields["status"] == PaymentStatus.SUCCEEDED.value
        assert fields["wise_transfer_estimate"] == datetime(2026, 10, 21, 12, tzinfo=timezone.utc)
        repo.set_items_status.assert_awaited_once_with(
            db, EQUITY_BUYBACK_PAYOUT, ["eb-1", "eb-2"], PayoutItemStatus.PAID.value
        )
        db.commit.assert_awaited_once()

    async def test_failed_state_returns_items_to_issued_and_notifies(self) -> None:
        repo = _repo()
        processor = AsyncMock()
        processor.get_transfer.return_value = {"targetValue": 110.4, "targetCurrency": "EUR"}
        notifier = AsyncMock()
        db = AsyncMock()
        svc = TransferUpdateService(repo=repo, processor=processor, notifier=notifier)

        result = await svc.handle_state_change(db, "777", "bounced_back")

        assert result.payment_status == PaymentStatus.FAILED.value
        repo.set_items_status.assert_awaited_once_with(
            db, EQUITY_BUYBACK_PAYOUT, ["eb-1", "eb-2"], PayoutItemStatus.ISSUED.value
        )
        notifier.payment_failed.assert_awaited_once_with(
            kind="equity_buyback",
            payment_id="pay-1",
            amount=Decimal("110.4"),
            currency="EUR",
            net_amount_in_usd_cents=12_000,
        )

    async def test_charged_back_is_a_failure(self) -> None:
        svc = TransferUpdateService(repo=_repo(), processor=AsyncMock(), notifier=AsyncMock())

        result = await svc.handle_state_change(AsyncMock(), "777", "charged_back")

        assert result.payment_status == PaymentStatus.FAILED.value

    async def test_intermediate_state_is_processing(self) -> None:
        repo = _repo(found_in="dividend")
        svc = TransferUpdateService(repo=repo, processor=AsyncMock(), notifier=AsyncMock())

        result = await svc.handle_state_change(AsyncMock(), "777", "funds_converted")

        assert result.kind == PayoutKind.DIVIDEND
        assert result.payment_status == PaymentStatus.PROCESSING.value
        repo.update_payment.assert_awaited_once()
        assert repo.update_payment.await_args.args[1] is DIVIDEND_PAYOUT
        repo.set_items_status.assert_not_awaited()

    async def test_unknown_transfer_rolls_back(self) -> None:
        repo = _repo(found_in="none")
        db = AsyncMock()
        svc = TransferUpdateService(repo=repo, processor=AsyncMock(), notifier=AsyncMock())

        with pytest.raises(PaymentNotFoundError):
            await svc.handle_state_change(db, "404", "outgoing_payment_sent")
        db.rollback.assert_awaited_once()
        db.commit.assert_not_awaited()
