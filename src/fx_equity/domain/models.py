"""Domain models for fx_equity: pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from decimal import Decimal


@dataclass
class EquityCompany:
    id: str
    equity_compensation_enabled: bool
    fmv_per_share_in_usd: Decimal | None


@dataclass
class CompanyWorker:
    id: str
    company_id: str
    user_id: str
    equity_percentage: Decimal


@dataclass
class EquityGrant:
    id: str
    company_worker_id: str
    period_year: int
    share_price_usd: Decimal
    unvested_shares: int
