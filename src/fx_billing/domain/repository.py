# src/fx_billing/domain/repository.py
"""Repository Protocol for consolidated billing and invoice approval."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.fx_billing.domain.models import (
    BillingCompany,
    ConsolidatedInvoice,
    DividendRound,
    Invoice,
    InvoiceSplit,
)


class BillingRepositoryProtocol(Protocol):
    async def get_company(self, db: AsyncSession, company_id: str) -> BillingCompany | None: ...

    async def list_consolidatable_invoices(
        self, db: AsyncSession, company_id: str, invoice_ids: list[str] | None
    ) -> list[Invoice]: ...

    async def count_consolidated_invoices(self, db: AsyncSession, company_id: str) -> int: ...

    async def insert_consolidated_invoice(
        self, db: AsyncSession, consolidated: ConsolidatedInvoice
    ) -> str: ...

    async def set_invoice_status(
        self, db: AsyncSession, invoice_id: str, status: str
    ) -> None: ...

    async def get_dividend_round(
        self, db: AsyncSession, round_id: str, for_update: bool = False
    ) -> DividendRound | None: ...

    async def link_dividend_round(
        self, db: AsyncSession, round_id: str, consolidated_invoice_id: str
    ) -> None: ...

    async def get_consolidated_invoice(
        self, db: AsyncSession, consolidated_invoice_id: str
    ) -> ConsolidatedInvoice | None: ...

    async def get_invoice(
        self, db: AsyncSession, invoice_id: str, for_update: bool = False
    ) -> Invoice | None: ...

    async def record_approval(
        self, db: AsyncSession, invoice_id: str, approver_id: str
    ) -> int: ...

    async def update_invoice_approval(
        self,
        db: AsyncSession,
        invoice_id: str,
        status: str,
        flexile_fee_cents: int,
        split: InvoiceSplit | None = None,
    ) -> None: ...
