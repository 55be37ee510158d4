"""Repository Protocol for equity lookups."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.fx_equity.domain.models import CompanyWorker, EquityCompany, EquityGrant


class EquityRepositoryProtocol(Protocol):
    async def get_company(self, db: AsyncSession, company_id: str) -> EquityCompany | None: ...

    async def get_company_worker(
        self, db: AsyncSession, company_worker_id: str
    ) -> CompanyWorker | None: ...

    async def get_unvested_grant_for_year(
        self, db: AsyncSession, company_worker_id: str, year: int
    ) -> EquityGrant | None: ...
