"""EquityRepository: read-only raw SQL lookups."""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.fx_equity.domain.models import CompanyWorker, EquityCompany, EquityGrant

_GET_COMPANY_SQL = text("""
    SELECT id, equity_compensation_enabled, fmv_per_share_in_usd
    FROM companies
    WHERE id = :company_id
""")

_GET_COMPANY_WORKER_SQL = text("""
    SELECT id, company_id, user_id, equity_percentage
    FROM company_workers
    WHERE id = :company_worker_id
""")

# A worker has at most one grant with unvested shares per period year
_GET_UNVESTED_GRANT_SQL = text("""
    SELECT id, company_worker_id, period_year, share_price_usd, unvested_shares
    FROM equity_grants
    WHERE company_worker_id = :company_worker_id
      AND period_year = :year
      AND unvested_shares > 0
    ORDER BY id
    LIMIT 1
""")


class EquityRepository:
    async def get_company(self, db: AsyncSession, company_id: str) -> EquityCompany | None:
        row = (await db.execute(_GET_COMPANY_SQL, {"company_id": company_id})).fetchone()
        if row is None:
            return None
        return EquityCompany(
            id=row.id,
            equity_compensation_enabled=row.equity_compensation_enabled,
            fmv_per_share_in_usd=row.fmv_per_share_in_usd,
        )

    async def get_company_worker(
        self, db: AsyncSession, company_worker_id: str
    ) -> CompanyWorker | None:
        row = (
            await db.execute(_GET_COMPANY_WORKER_SQL, {"company_worker_id": company_worker_id})
        ).fetchone()
        if row is None:
            return None
        return CompanyWorker(
            id=row.id,
            company_id=row.company_id,
            user_id=row.user_id,
            equity_percentage=row.equity_percentage,
        )

    async def get_unvested_grant_for_year(
        self, db: AsyncSession, company_worker_id: str, year: int
    ) -> EquityGrant | None:
        row = (
            await db.execute(
                _GET_UNVESTED_GRANT_SQL,
                {"company_worker_id": company_worker_id, "year": year},
            )
        ).fetchone()
        if row is None:
            return None
        return EquityGrant(
            id=row.id,
            company_worker_id=row.company_worker_id,
            period_year=row.period_year,
            share_price_usd=row.share_price_usd,
            unvested_shares=row.unvested_shares,
        )
