"""WaterfallApplicationService: recompute and persist a liquidation scenario.

Recalculation is serialized per scenario: an in-process asyncio.Lock, then a
SELECT ... FOR UPDATE on the scenario row. The cap table is read and the new
payout set computed inside that transaction; old rows are deleted and new rows
inserted before one commit, so readers never see a partial set. Any error,
including a failed invariant, rolls back and leaves the previous payouts.
"""

import asyncio
import logging
from collections import defaultdict
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncSession

from src.fx_common.datetime_utils import utc_now, utc_today
from src.fx_common.errors import MultipleDefaultShareClassesError, ScenarioNotFoundError
from src.fx_waterfall.application.schemas import WaterfallPreviewRequest, WaterfallResponse
from src.fx_waterfall.domain.engine import compute_waterfall
from src.fx_waterfall.domain.repository import WaterfallRepositoryProtocol
from src.fx_waterfall.infrastructure.persistence import WaterfallRepository

logger = logging.getLogger(__name__)


class WaterfallApplicationService:
    def __init__(self, repo: WaterfallRepositoryProtocol | None = None) -> None:
        self._repo: WaterfallRepositoryProtocol = repo or WaterfallRepository()
        self._scenario_locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = defaultdict(int)

    @asynccontextmanager
    async def _scenario_lock(self, scenario_id: str) -> AsyncIterator[None]:
        """Hold the scenario's lock; the entry is dropped when no caller holds or awaits it."""
        lock = self._scenario_locks.setdefault(scenario_id, asyncio.Lock())
        self._lock_users[scenario_id] += 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[scenario_id] -= 1
            if self._lock_users[scenario_id] == 0:
                del self._lock_users[scenario_id]
                del self._scenario_locks[scenario_id]

    async def calculate(
        self, db: AsyncSession, company_id: str, scenario_id: str
    ) -> WaterfallResponse:
        async with self._scenario_lock(scenario_id):
            try:
                scenario = await self._repo.get_scenario(db, scenario_id, for_update=True)
                if scenario is None or scenario.company_id != company_id:
                    raise ScenarioNotFoundError(scenario_id)

                snapshot = await self._repo.load_cap_table(db, company_id)
                payouts = compute_waterfall(
                    company_id, scenario.exit_amount_cents, snapshot, utc_today()
                )

                calculated_at = utc_now()
                await self._repo.replace_payouts(db, scenario_id, payouts)
                await self._repo.mark_calculated(db, scenario_id, calculated_at)
                await db.commit()
            except Exception:
                await db.rollback()
                raise

        logger.info(
            "Scenario %s recalculated: %d payouts, exit %d cents",
            scenario_id, len(payouts), scenario.exit_amount_cents,
        )
        return WaterfallResponse.from_payouts(
            scenario_id, scenario.exit_amount_cents, payouts, calculated_at
        )

    def preview(self, company_id: str, request: WaterfallPreviewRequest) -> WaterfallResponse:
        """Run the waterfall on an explicit equity structure; nothing is persisted."""
        if sum(1 for sc in request.share_classes if sc.is_default) > 1:
            raise MultipleDefaultShareClassesError(company_id)
        payouts = compute_waterfall(
            company_id,
            request.exit_amount_cents,
            request.to_snapshot(company_id),
            request.as_of or utc_today(),
        )
        return WaterfallResponse.from_payouts(None, request.exit_amount_cents, payouts)

    async def list_payouts(
        self, db: AsyncSession, company_id: str, scenario_id: str
    ) -> WaterfallResponse:
        scenario = await self._repo.get_scenario(db, scenario_id)
        if scenario is None or scenario.company_id != company_id:
            raise ScenarioNotFoundError(scenario_id)
        payouts = await self._repo.list_payouts(db, scenario_id)
        return WaterfallResponse.from_payouts(
            scenario_id, scenario.exit_amount_cents, payouts, scenario.calculated_at
        )
