"""Domain models for fx_waterfall: pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal

# Seniority used for classes without a rank; sorts after every real rank
UNRANKED_SENIORITY = 1_000_000


@dataclass
class ShareClass:
    id: str
    company_id: str
    name: str
    seniority_rank: int | None = None
    original_issue_price_in_dollars: Decimal | None = None
    liquidation_preference_multiple: Decimal = Decimal(1)
    preferred: bool = False
    participating: bool = False
    participation_cap_multiple: Decimal | None = None
    is_default: bool = False

    @property
    def sort_key(self) -> tuple[int, str]:
        rank = self.seniority_rank if self.seniority_rank is not None else UNRANKED_SENIORITY
        return rank, self.id

    @property
    def issue_price_cents(self) -> Decimal:
        return (self.original_issue_price_in_dollars or Decimal(0)) * 100

    @property
    def receives_residual(self) -> bool:
        """Common classes and participating preferred share in what is left."""
        return not self.preferred or self.participating


@dataclass
class HoldingAggregate:
    """Total shares one investor holds in one class."""
    company_investor_id: str
    share_class_id: str
    total_shares: int


@dataclass
class ConvertibleSecurity:
    id: str
    company_investor_id: str
    principal_value_in_cents: int
    issued_at: datetime
    implied_shares: Decimal
    interest_rate_percent: Decimal | None = None
    maturity_date: date | None = None
    valuation_cap_cents: int | None = None
    discount_rate_percent: Decimal | None = None


@dataclass
class CapTableSnapshot:
    share_classes: list[ShareClass] = field(default_factory=list)
    holdings: list[HoldingAggregate] = field(default_factory=list)
    convertibles: list[ConvertibleSecurity] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.holdings and not self.convertibles


@dataclass
class LiquidationScenario:
    id: str
    company_id: str
    exit_amount_cents: int
    status: str
    calculated_at: datetime | None = None


@dataclass
class LiquidationPayout:
    company_investor_id: str
    security_type: str               # SecurityType value
    payout_amount_cents: int
    liquidation_preference_amount: Decimal
    participation_amount: Decimal
    common_proceeds_amount: Decimal
    share_class_name: str | None = None
    convertible_security_id: str | None = None
    number_of_shares: int | None = None
    id: str | None = None
    liquidation_scenario_id: str | None = None
