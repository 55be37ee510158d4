"""EquityApplicationService: resolves the share price and computes the split.

Share price: the worker's unvested grant for the invoice year, else the
company's fair market value. Whether a grant is required before equity can be
issued is decided at invoice approval (see fx_billing), not here.
"""

import logging
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from src.fx_common.datetime_utils import utc_today
from src.fx_common.errors import CompanyNotFoundError, CompanyWorkerNotFoundError
from src.fx_common.response import ServiceResult
from src.fx_equity.domain.calculator import calculate_equity_split
from src.fx_equity.domain.models import EquityGrant
from src.fx_equity.domain.repository import EquityRepositoryProtocol
from src.fx_equity.infrastructure.persistence import EquityRepository

logger = logging.getLogger(__name__)


class EquityApplicationService:
    def __init__(self, repo: EquityRepositoryProtocol | None = None) -> None:
        self._repo: EquityRepositoryProtocol = repo or EquityRepository()

    async def calculate(
        self,
        db: AsyncSession,
        company_id: str,
        company_worker_id: str,
        service_amount_cents: int,
        invoice_year: int | None = None,
        equity_percentage: Decimal | None = None,
    ) -> ServiceResult:
        """Return ServiceResult whose data is an EquitySplit; invalid amounts fail."""
        company = await self._repo.get_company(db, company_id)
        if company is None:
            raise CompanyNotFoundError(company_id)
        worker = await self._repo.get_company_worker(db, company_worker_id)
        if worker is None or worker.company_id != company_id:
            raise CompanyWorkerNotFoundError(company_worker_id)

        year = invoice_year or utc_today().year
        percentage = equity_percentage if equity_percentage is not None else worker.equity_percentage

        grant = await self._repo.get_unvested_grant_for_year(db, company_worker_id, year)
        share_price = grant.share_price_usd if grant else company.fmv_per_share_in_usd
        if grant is None:
            logger.debug(
                "No unvested grant for worker %s in %d, using company FMV %s",
                company_worker_id, year, share_price,
            )

        try:
            split = calculate_equity_split(
                service_amount_cents,
                percentage,
                share_price,
                company.equity_compensation_enabled,
            )
        except ValueError as e:
            return ServiceResult.fail(str(e))
        return ServiceResult.ok(split)

    async def get_unvested_grant(
        self, db: AsyncSession, company_worker_id: str, year: int
    ) -> EquityGrant | None:
        return await self._repo.get_unvested_grant_for_year(db, company_worker_id, year)
