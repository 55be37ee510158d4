"""Tests for WaterfallRepository with a mocked AsyncSession."""

from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

from src.fx_waterfall.domain.models import LiquidationPayout
from src.fx_waterfall.infrastructure.persistence import WaterfallRepository


def _payout(investor: str, cents: int) -> LiquidationPayout:
    return LiquidationPayout(
        company_investor_id=investor,
        security_type="equity",
        payout_amount_cents=cents,
        liquidation_preference_amount=Decimal("0.00"),
        participation_amount=Decimal("0.00"),
        common_proceeds_amount=Decimal(cents),
        share_class_name="Common",
        number_of_shares=100,
    )


class TestReplacePayouts:
    async def test_deletes_then_inserts_all(self) -> None:
        db = AsyncMock()

        await WaterfallRepository().replace_payouts(
            db, "sc-1", [_payout("inv-1", 500), _payout("inv-2", 500)]
        )

        delete_call, insert_call = db.execute.await_args_list
        assert "DELETE FROM liquidation_payouts" in str(delete_call.args[0])
        assert delete_call.args[1] == {"scenario_id": "sc-1"}
        rows = insert_call.args[1]
        assert [r["company_investor_id"] for r in rows] == ["inv-1", "inv-2"]
        assert len({r["id"] for r in rows}) == 2
        assert all(r["scenario_id"] == "sc-1" for r in rows)

    async def test_empty_set_only_deletes(self) -> None:
        db = AsyncMock()

        await WaterfallRepository().replace_payouts(db, "sc-1", [])

        db.execute.assert_awaited_once()


class TestLoadCapTable:
    async def test_maps_rows(self) -> None:
        classes = MagicMock()
        classes.fetchall.return_value = [
            SimpleNamespace(
                id="c", company_id="co-1", name="Common", seniority_rank=None,
                original_issue_price_in_dollars=None, liquidation_preference_multiple=Decimal(1),
                preferred=False, participating=False, participation_cap_multiple=None,
                is_default=True,
            )
        ]
        holdings = MagicMock()
        holdings.fetchall.return_value = [
            SimpleNamespace(company_investor_id="inv-1", share_class_id="c", total_shares=Decimal(150))
        ]
        convertibles = MagicMock()
        convertibles.fetchall.return_value = []
        db = AsyncMock()
        db.execute.side_effect = [classes, holdings, convertibles]

        snapshot = await WaterfallRepository().load_cap_table(db, "co-1")

        assert snapshot.share_classes[0].is_default
        assert snapshot.holdings[0].total_shares == 150
        assert isinstance(snapshot.holdings[0].total_shares, int)
        assert snapshot.convertibles == []
