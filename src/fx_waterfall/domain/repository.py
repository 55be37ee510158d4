# src/fx_waterfall/domain/repository.py
"""Repository Protocol for liquidation scenarios and the cap table.

Unit tests inject a mock that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.fx_waterfall.domain.models import (
    CapTableSnapshot,
    LiquidationPayout,
    LiquidationScenario,
)


class WaterfallRepositoryProtocol(Protocol):
    async def get_scenario(
        self, db: AsyncSession, scenario_id: str, for_update: bool = False
    ) -> LiquidationScenario | None: ...

    async def load_cap_table(self, db: AsyncSession, company_id: str) -> CapTableSnapshot: ...

    async def replace_payouts(
        self, db: AsyncSession, scenario_id: str, payouts: list[LiquidationPayout]
    ) -> None: ...

    async def mark_calculated(
        self, db: AsyncSession, scenario_id: str, calculated_at: datetime
    ) -> None: ...

    async def list_payouts(
        self, db: AsyncSession, scenario_id: str
    ) -> list[LiquidationPayout]: ...
