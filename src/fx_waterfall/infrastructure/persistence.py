"""WaterfallRepository: concrete implementation of WaterfallRepositoryProtocol.

All queries use raw text() SQL (no ORM). Payout rows are never updated in
place: replace_payouts deletes the scenario's rows and inserts the new set
inside the caller's transaction.
"""

import uuid
from datetime import datetime

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.fx_common.enums import ScenarioStatus
from src.fx_waterfall.domain.models import (
    CapTableSnapshot,
    ConvertibleSecurity,
    HoldingAggregate,
    LiquidationPayout,
    LiquidationScenario,
    ShareClass,
)

# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

_SCENARIO_COLUMNS = "id, company_id, exit_amount_cents, status, calculated_at"

_GET_SCENARIO_SQL = text(f"""
    SELECT {_SCENARIO_COLUMNS}
    FROM liquidation_scenarios
    WHERE id = :scenario_id
""")

_GET_SCENARIO_FOR_UPDATE_SQL = text(f"""
    SELECT {_SCENARIO_COLUMNS}
    FROM liquidation_scenarios
    WHERE id = :scenario_id
    FOR UPDATE
""")

_SHARE_CLASSES_SQL = text("""
    SELECT id, company_id, name, seniority_rank, original_issue_price_in_dollars,
           liquidation_preference_multiple, preferred, participating,
           participation_cap_multiple, is_default
    FROM share_classes
    WHERE company_id = :company_id
    ORDER BY COALESCE(seniority_rank, 1000000) ASC, id ASC
""")

_HOLDINGS_SQL = text("""
    SELECT sh.company_investor_id, sh.share_class_id,
           SUM(sh.number_of_shares) AS total_shares
    FROM share_holdings sh
    JOIN company_investors ci ON ci.id = sh.company_investor_id
    JOIN share_classes sc ON sc.id = sh.share_class_id
    WHERE ci.company_id = :company_id
    GROUP BY sh.company_investor_id, sh.share_class_id
    ORDER BY sh.company_investor_id, sh.share_class_id
""")

_CONVERTIBLES_SQL = text("""
    SELECT cs.id, cs.company_investor_id, cs.principal_value_in_cents,
           cs.interest_rate_percent, cs.maturity_date, cs.issued_at,
           cs.valuation_cap_cents, cs.discount_rate_percent, cs.implied_shares
    FROM convertible_securities cs
    JOIN company_investors ci ON ci.id = cs.company_investor_id
    WHERE ci.company_id = :company_id
    ORDER BY cs.id
""")

_DELETE_PAYOUTS_SQL = text("""
    DELETE FROM liquidation_payouts WHERE liquidation_scenario_id = :scenario_id
""")

_INSERT_PAYOUT_SQL = text("""
    INSERT INTO liquidation_payouts (
        id, liquidation_scenario_id, company_investor_id, share_class_name,
        convertible_security_id, security_type, number_of_shares,
        payout_amount_cents, liquidation_preference_amount,
        participation_amount, common_proceeds_amount
    ) VALUES (
        :id, :scenario_id, :company_investor_id, :share_class_name,
        :convertible_security_id, :security_type, :number_of_shares,
        :payout_amount_cents, :liquidation_preference_amount,
        :participation_amount, :common_proceeds_amount
    )
""")

_MARK_CALCULATED_SQL = text("""
    UPDATE liquidation_scenarios
    SET status = :status, calculated_at = :calculated_at, updated_at = NOW()
    WHERE id = :scenario_id
""")

_LIST_PAYOUTS_SQL = text("""
    SELECT id, liquidation_scenario_id, company_investor_id, share_class_name,
           convertible_security_id, security_type, number_of_shares,
           payout_amount_cents, liquidation_preference_amount,
           participation_amount, common_proceeds_amount
    FROM liquidation_payouts
    WHERE liquidation_scenario_id = :scenario_id
    ORDER BY payout_amount_cents DESC, id
""")

# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_scenario(row: object) -> LiquidationScenario:
    return LiquidationScenario(
        id=row.id,  # type: ignore[attr-defined]
        company_id=row.company_id,  # type: ignore[attr-defined]
        exit_amount_cents=row.exit_amount_cents,  # type: ignore[attr-defined]
        status=row.status,  # type: ignore[attr-defined]
        calculated_at=row.calculated_at,  # type: ignore[attr-defined]
    )


def _row_to_share_class(row: object) -> ShareClass:
    return ShareClass(
        id=row.id,  # type: ignore[attr-defined]
        company_id=row.company_id,  # type: ignore[attr-defined]
        name=row.name,  # type: ignore[attr-defined]
        seniority_rank=row.seniority_rank,  # type: ignore[attr-defined]
        original_issue_price_in_dollars=row.original_issue_price_in_dollars,  # type: ignore[attr-defined]
        liquidation_preference_multiple=row.liquidation_preference_multiple,  # type: ignore[attr-defined]
        preferred=row.preferred,  # type: ignore[attr-defined]
        participating=row.participating,  # type: ignore[attr-defined]
        participation_cap_multiple=row.participation_cap_multiple,  # type: ignore[attr-defined]
        is_default=row.is_default,  # type: ignore[attr-defined]
    )


def _row_to_convertible(row: object) -> ConvertibleSecurity:
    return ConvertibleSecurity(
        id=row.id,  # type: ignore[attr-defined]
        company_investor_id=row.company_investor_id,  # type: ignore[attr-defined]
        principal_value_in_cents=row.principal_value_in_cents,  # type: ignore[attr-defined]
        interest_rate_percent=row.interest_rate_percent,  # type: ignore[attr-defined]
        maturity_date=row.maturity_date,  # type: ignore[attr-defined]
        issued_at=row.issued_at,  # type: ignore[attr-defined]
        valuation_cap_cents=row.valuation_cap_cents,  # type: ignore[attr-defined]
        discount_rate_percent=row.discount_rate_percent,  # type: ignore[attr-defined]
        implied_shares=row.implied_shares,  # type: ignore[attr-defined]
    )


def _row_to_payout(row: object) -> LiquidationPayout:
    return LiquidationPayout(
        id=row.id,  # type: ignore[attr-defined]
        liquidation_scenario_id=row.liquidation_scenario_id,  # type: ignore[attr-defined]
        company_investor_id=row.company_investor_id,  # type: ignore[attr-defined]
        share_class_name=row.share_class_name,  # type: ignore[attr-defined]
        convertible_security_id=row.convertible_security_id,  # type: ignore[attr-defined]
        security_type=row.security_type,  # type: ignore[attr-defined]
        number_of_shares=row.number_of_shares,  # type: ignore[attr-defined]
        payout_amount_cents=row.payout_amount_cents,  # type: ignore[attr-defined]
        liquidation_preference_amount=row.liquidation_preference_amount,  # type: ignore[attr-defined]
        participation_amount=row.participation_amount,  # type: ignore[attr-defined]
        common_proceeds_amount=row.common_proceeds_amount,  # type: ignore[attr-defined]
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class WaterfallRepository:
    async def get_scenario(
        self, db: AsyncSession, scenario_id: str, for_update: bool = False
    ) -> LiquidationScenario | None:
        sql = _GET_SCENARIO_FOR_UPDATE_SQL if for_update else _GET_SCENARIO_SQL
        row = (await db.execute(sql, {"scenario_id": scenario_id})).fetchone()
        return _row_to_scenario(row) if row is not None else None

    async def load_cap_table(self, db: AsyncSession, company_id: str) -> CapTableSnapshot:
        params = {"company_id": company_id}
        classes = (await db.execute(_SHARE_CLASSES_SQL, params)).fetchall()
        holdings = (await db.execute(_HOLDINGS_SQL, params)).fetchall()
        convertibles = (await db.execute(_CONVERTIBLES_SQL, params)).fetchall()
        return CapTableSnapshot(
            share_classes=[_row_to_share_class(r) for r in classes],
            holdings=[
                HoldingAggregate(
                    company_investor_id=r.company_investor_id,
                    share_class_id=r.share_class_id,
                    total_shares=int(r.total_shares),
                )
                for r in holdings
            ],
            convertibles=[_row_to_convertible(r) for r in convertibles],
        )

    async def replace_payouts(
        self, db: AsyncSession, scenario_id: str, payouts: list[LiquidationPayout]
    ) -> None:
        await db.execute(_DELETE_PAYOUTS_SQL, {"scenario_id": scenario_id})
        if not payouts:
            return
        await db.execute(
            _INSERT_PAYOUT_SQL,
            [
                {
                    "id": str(uuid.uuid4()),
                    "scenario_id": scenario_id,
                    "company_investor_id": p.company_investor_id,
                    "share_class_name": p.share_class_name,
                    "convertible_security_id": p.convertible_security_id,
                    "security_type": p.security_type,
                    "number_of_shares": p.number_of_shares,
                    "payout_amount_cents": p.payout_amount_cents,
                    "liquidation_preference_amount": p.liquidation_preference_amount,
                    "participation_amount": p.participation_amount,
                    "common_proceeds_amount": p.common_proceeds_amount,
                }
                for p in payouts
            ],
        )

    async def mark_calculated(
        self, db: AsyncSession, scenario_id: str, calculated_at: datetime
    ) -> None:
        await db.execute(
            _MARK_CALCULATED_SQL,
            {
                "scenario_id": scenario_id,
                "status": ScenarioStatus.CALCULATED.value,
                "calculated_at": calculated_at,
            },
        )

    async def list_payouts(
        self, db: AsyncSession, scenario_id: str
    ) -> list[LiquidationPayout]:
        rows = (await db.execute(_LIST_PAYOUTS_SQL, {"scenario_id": scenario_id})).fetchall()
        return [_row_to_payout(r) for r in rows]
