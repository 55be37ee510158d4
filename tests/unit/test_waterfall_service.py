"""Unit tests for WaterfallApplicationService using a mock repository."""

import asyncio
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from src.fx_common.errors import (
    MultipleDefaultShareClassesError,
    NoInvestorsError,
    ScenarioNotFoundError,
)
from src.fx_waterfall.application.schemas import WaterfallPreviewRequest, WaterfallResponse
from src.fx_waterfall.application.service import WaterfallApplicationService
from src.fx_waterfall.domain.models import (
    CapTableSnapshot,
    HoldingAggregate,
    LiquidationScenario,
    ShareClass,
)


def _scenario(company_id: str = "co-1", exit_cents: int = 1_000_000) -> LiquidationScenario:
    return LiquidationScenario(
        id="sc-1", company_id=company_id, exit_amount_cents=exit_cents, status="draft"
    )


def _snapshot() -> CapTableSnapshot:
    return CapTableSnapshot(
        share_classes=[ShareClass(id="common", company_id="co-1", name="Common", is_default=True)],
        holdings=[
            HoldingAggregate("inv-1", "common", 100),
            HoldingAggregate("inv-2", "common", 100),
        ],
    )


def _repo(scenario: LiquidationScenario | None, snapshot: CapTableSnapshot | None = None) -> AsyncMock:
    repo = AsyncMock()
    repo.get_scenario.return_value = scenario
    repo.load_cap_table.return_value = snapshot or _snapshot()
    return repo


class TestCalculate:
    async def test_persists_payouts_and_commits(self) -> None:
        repo = _repo(_scenario())
        svc = WaterfallApplicationService(repo=repo)
        db = AsyncMock()

        result = await svc.calculate(db, "co-1", "sc-1")

        assert isinstance(result, WaterfallResponse)
        assert result.total_payout_cents == 1_000_000
        assert len(result.payouts) == 2
        repo.get_scenario.assert_awaited_once_with(db, "sc-1", for_update=True)
        replaced = repo.replace_payouts.await_args.args[2]
        assert sorted(p.payout_amount_cents for p in replaced) == [500_000, 500_000]
        repo.mark_calculated.assert_awaited_once()
        db.commit.assert_awaited_once()
        db.rollback.assert_not_awaited()

    async def test_unknown_scenario_rolls_back(self) -> None:
        db = AsyncMock()
        svc = WaterfallApplicationService(repo=_repo(None))

        with pytest.raises(ScenarioNotFoundError):
            await svc.calculate(db, "co-1", "sc-1")
        db.rollback.assert_awaited_once()
        db.commit.assert_not_awaited()

    async def test_scenario_of_other_company_not_found(self) -> None:
        svc = WaterfallApplicationService(repo=_repo(_scenario(company_id="co-2")))

        with pytest.raises(ScenarioNotFoundError):
            await svc.calculate(AsyncMock(), "co-1", "sc-1")

    async def test_engine_error_keeps_previous_payouts(self) -> None:
        repo = _repo(_scenario(), CapTableSnapshot())
        db = AsyncMock()
        svc = WaterfallApplicationService(repo=repo)

        with pytest.raises(NoInvestorsError):
            await svc.calculate(db, "co-1", "sc-1")
        repo.replace_payouts.assert_not_awaited()
        db.rollback.assert_awaited_once()

    async def test_same_scenario_serialized(self) -> None:
        repo = _repo(_scenario())
        active = 0
        peak = 0

        async def slow_replace(*args: object) -> None:
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.01)
            active -= 1

        repo.replace_payouts.side_effect = slow_replace
        svc = WaterfallApplicationService(repo=repo)

        await asyncio.gather(
            svc.calculate(AsyncMock(), "co-1", "sc-1"),
            svc.calculate(AsyncMock(), "co-1", "sc-1"),
        )

        assert peak == 1
        assert repo.replace_payouts.await_count == 2

    async def test_scenario_lock_released_after_runs(self) -> None:
        repo = _repo(_scenario())
        svc = WaterfallApplicationService(repo=repo)

        await asyncio.gather(
            svc.calculate(AsyncMock(), "co-1", "sc-1"),
            svc.calculate(AsyncMock(), "co-1", "sc-1"),
        )
        repo.get_scenario.return_value = None
        with pytest.raises(ScenarioNotFoundError):
            await svc.calculate(AsyncMock(), "co-1", "sc-2")

        assert svc._scenario_locks == {}
        assert svc._lock_users == {}


class TestListPayouts:
    async def test_returns_stored_payouts(self) -> None:
        scenario = _scenario()
        scenario.calculated_at = datetime(2026, 1, 1, tzinfo=timezone.utc)
        repo = _repo(scenario)
        repo.list_payouts.return_value = []
        svc = WaterfallApplicationService(repo=repo)

        result = await svc.list_payouts(AsyncMock(), "co-1", "sc-1")

        assert result.scenario_id == "sc-1"
        assert result.calculated_at == scenario.calculated_at
        assert result.payouts == []


class TestPreview:
    def test_preview_computes_without_repository(self) -> None:
        repo = AsyncMock()
        svc = WaterfallApplicationService(repo=repo)
        request = WaterfallPreviewRequest(
            exit_amount_cents=15_000,
            share_classes=[
                {"id": "A", "name": "Series A", "seniority_rank": 1,
                 "original_issue_price_in_dollars": "1.00", "preferred": True},
                {"id": "C", "name": "Common", "is_default": True},
            ],
            holdings=[
                {"company_investor_id": "inv-a", "share_class_id": "A", "number_of_shares": 60},
                {"company_investor_id": "inv-a", "share_class_id": "A", "number_of_shares": 40},
                {"company_investor_id": "inv-c", "share_class_id": "C", "number_of_shares": 100},
            ],
        )

        result = svc.preview("co-1", request)

        amounts = {p.company_investor_id: p.payout_amount_cents for p in result.payouts}
        assert amounts == {"inv-a": 10_000, "inv-c": 5_000}
        assert result.scenario_id is None
        repo.assert_not_called()

    def test_multiple_default_classes_rejected(self) -> None:
        svc = WaterfallApplicationService(repo=AsyncMock())
        request = WaterfallPreviewRequest(
            exit_amount_cents=1_000,
            share_classes=[
                {"id": "C1", "name": "Common 1", "is_default": True},
                {"id": "C2", "name": "Common 2", "is_default": True},
            ],
            holdings=[{"company_investor_id": "i", "share_class_id": "C1", "number_of_shares": 1}],
        )

        with pytest.raises(MultipleDefaultShareClassesError):
            svc.preview("co-1", request)

    def test_holding_with_unknown_class_rejected(self) -> None:
        with pytest.raises(ValueError, match="unknown share classes"):
            WaterfallPreviewRequest(
                exit_amount_cents=1_000,
                holdings=[{"company_investor_id": "i", "share_class_id": "X", "number_of_shares": 1}],
            )
