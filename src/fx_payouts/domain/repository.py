# src/fx_payouts/domain/repository.py
"""Repository Protocol for payout items, payments and recipients.

Every method takes the PayoutVariant whose tables it touches. None of them
commit; the orchestrator commits after each state change.
"""

from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.fx_payouts.domain.models import BankAccount, Payment, PayoutItem, PayoutRecipient
from src.fx_payouts.domain.variants import PayoutVariant


class PayoutRepositoryProtocol(Protocol):
    async def get_items(
        self, db: AsyncSession, variant: PayoutVariant, item_ids: list[str]
    ) -> list[PayoutItem]: ...

    async def get_recipient(
        self, db: AsyncSession, company_investor_id: str
    ) -> PayoutRecipient | None: ...

    async def get_bank_account(self, db: AsyncSession, user_id: str) -> BankAccount | None: ...

    async def mark_bank_account_deleted(self, db: AsyncSession, bank_account_id: str) -> None: ...

    async def mark_items_retained(
        self, db: AsyncSession, variant: PayoutVariant, item_ids: list[str], reason: str
    ) -> None: ...

    async def set_items_status(
        self,
        db: AsyncSession,
        variant: PayoutVariant,
        item_ids: list[str],
        status: str,
        clear_retained_reason: bool = False,
    ) -> None: ...

    async def create_payment(
        self,
        db: AsyncSession,
        variant: PayoutVariant,
        company_investor_id: str,
        item_ids: list[str],
    ) -> Payment: ...

    async def update_payment(
        self, db: AsyncSession, variant: PayoutVariant, payment_id: str, **fields: Any
    ) -> None: ...

    async def find_payment_by_transfer_id(
        self, db: AsyncSession, variant: PayoutVariant, transfer_id: str
    ) -> Payment | None: ...

    async def get_payment_item_ids(
        self, db: AsyncSession, variant: PayoutVariant, payment_id: str
    ) -> list[str]: ...
