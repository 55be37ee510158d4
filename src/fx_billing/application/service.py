"""BillingApplicationService: consolidated invoices and invoice approval.

Consolidation and approval each run in one transaction; the service owns
commit/rollback.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.fx_billing.application.schemas import ConsolidatedInvoiceOut, InvoiceApprovalOut
from src.fx_billing.domain import aggregator
from src.fx_billing.domain.models import BillingCompany, InvoiceSplit
from src.fx_billing.domain.repository import BillingRepositoryProtocol
from src.fx_billing.infrastructure.persistence import BillingRepository
from src.fx_common.datetime_utils import utc_today
from src.fx_common.enums import DividendRoundStatus, InvoiceStatus
from src.fx_common.errors import (
    BillingNotReadyError,
    CompanyNotFoundError,
    DividendRoundNotFoundError,
    DividendRoundNotIssuedError,
    InvoiceNotFoundError,
)
from src.fx_common.response import ServiceResult
from src.fx_equity.application.service import EquityApplicationService
from src.fx_equity.domain.calculator import EquitySplit, grant_shortfall
from src.fx_fees.domain.fee import invoice_fee

logger = logging.getLogger(__name__)

APPROVABLE_STATUSES = frozenset({
    InvoiceStatus.RECEIVED.value,
    InvoiceStatus.APPROVED.value,
    InvoiceStatus.FAILED.value,
})


class BillingApplicationService:
    def __init__(
        self,
        repo: BillingRepositoryProtocol | None = None,
        equity_service: EquityApplicationService | None = None,
    ) -> None:
        self._repo: BillingRepositoryProtocol = repo or BillingRepository()
        self._equity = equity_service or EquityApplicationService()

    async def _billable_company(self, db: AsyncSession, company_id: str) -> BillingCompany:
        company = await self._repo.get_company(db, company_id)
        if company is None:
            raise CompanyNotFoundError(company_id)
        if not company.ready_for_billing:
            raise BillingNotReadyError(company_id)
        return company

    async def consolidate_invoices(
        self, db: AsyncSession, company_id: str, invoice_ids: list[str] | None = None
    ) -> list[ConsolidatedInvoiceOut]:
        await self._billable_company(db, company_id)
        try:
            invoices = await self._repo.list_consolidatable_invoices(db, company_id, invoice_ids)
            if not invoices:
                await db.rollback()
                return []

            existing = await self._repo.count_consolidated_invoices(db, company_id)
            group_count = len({i.invoice_date for i in invoices})
            numbers = [f"FX-{existing + n}" for n in range(1, group_count + 1)]
            consolidated = aggregator.consolidate_by_invoice_date(
                company_id, invoices, utc_today(), numbers
            )

            for c in consolidated:
                c.id = await self._repo.insert_consolidated_invoice(db, c)
            for invoice in invoices:
                new_status = aggregator.status_after_consolidation(invoice.status)
                if new_status != invoice.status:
                    await self._repo.set_invoice_status(db, invoice.id, new_status)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info(
            "Company %s: %d invoices consolidated into %d consolidated invoices",
            company_id, len(invoices), len(consolidated),
        )
        return [ConsolidatedInvoiceOut.from_domain(c) for c in consolidated]

    async def consolidate_dividend_round(
        self, db: AsyncSession, company_id: str, round_id: str
    ) -> ConsolidatedInvoiceOut:
        await self._billable_company(db, company_id)
        try:
            dividend_round = await self._repo.get_dividend_round(db, round_id, for_update=True)
            if dividend_round is None or dividend_round.company_id != company_id:
                raise DividendRoundNotFoundError(round_id)

            if dividend_round.consolidated_invoice_id is not None:
                existing = await self._repo.get_consolidated_invoice(
                    db, dividend_round.consolidated_invoice_id
                )
                await db.rollback()
                if existing is not None:
                    return ConsolidatedInvoiceOut.from_domain(existing)
                raise DividendRoundNotFoundError(round_id)

            if dividend_round.status != DividendRoundStatus.ISSUED.value:
                raise DividendRoundNotIssuedError(round_id, dividend_round.status)

            count = await self._repo.count_consolidated_invoices(db, company_id)
            consolidated = aggregator.consolidate_dividend_round(
                dividend_round, utc_today(), f"FX-DVD-{count + 1}"
            )
            consolidated.id = await self._repo.insert_consolidated_invoice(db, consolidated)
            await self._repo.link_dividend_round(db, round_id, consolidated.id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info(
            "Dividend round %s billed as %s: total %d cents",
            round_id, consolidated.invoice_number, consolidated.total_cents,
        )
        return ConsolidatedInvoiceOut.from_domain(consolidated)

    async def approve_invoice(
        self, db: AsyncSession, company_id: str, invoice_id: str, approver_id: str
    ) -> ServiceResult:
        """Record an approval; data is an InvoiceApprovalOut on success."""
        company = await self._repo.get_company(db, company_id)
        if company is None:
            raise CompanyNotFoundError(company_id)
        invoice = await self._repo.get_invoice(db, invoice_id, for_update=True)
        if invoice is None or invoice.company_id != company_id:
            raise InvoiceNotFoundError(invoice_id)

        if invoice.status not in APPROVABLE_STATUSES:
            await db.rollback()
            return ServiceResult.fail(f"Invoice {invoice_id} cannot be approved ({invoice.status})")

        split: InvoiceSplit | None = None
        if invoice.company_worker_id is not None:
            year = invoice.invoice_date.year
            equity = await self._equity.calculate(
                db,
                company_id,
                invoice.company_worker_id,
                invoice.total_amount_in_usd_cents,
                year,
                invoice.equity_percentage,
            )
            if not equity.success:
                await db.rollback()
                return ServiceResult.fail(equity.error or "Equity calculation failed")
            equity_split: EquitySplit = equity.data
            grant = await self._equity.get_unvested_grant(db, invoice.company_worker_id, year)
            shortfall = grant_shortfall(equity_split, grant, year)
            if shortfall is not None:
                logger.warning("Invoice %s not approved: %s", invoice_id, shortfall)
                await db.rollback()
                return ServiceResult.fail(shortfall)
            split = InvoiceSplit(
                cash_amount_in_cents=equity_split.cash_cents(invoice.total_amount_in_usd_cents),
                equity_amount_in_cents=equity_split.equity_cents,
                equity_amount_in_options=equity_split.equity_option_shares or 0,
                equity_percentage=equity_split.effective_equity_percentage,
            )

        try:
            approvals = await self._repo.record_approval(db, invoice_id, approver_id)
            status = invoice.status
            if status == InvoiceStatus.RECEIVED.value and (
                approvals >= company.required_invoice_approval_count
            ):
                status = InvoiceStatus.APPROVED.value
            fee = invoice_fee(invoice.total_amount_in_usd_cents)
            await self._repo.update_invoice_approval(db, invoice_id, status, fee, split)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info(
            "Invoice %s approved by %s (%d/%d) → %s",
            invoice_id, approver_id, approvals, company.required_invoice_approval_count, status,
        )
        return ServiceResult.ok(
            InvoiceApprovalOut(
                invoice_id=invoice_id, status=status, approvals=approvals, flexile_fee_cents=fee
            )
        )
