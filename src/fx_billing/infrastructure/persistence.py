"""BillingRepository: concrete implementation of BillingRepositoryProtocol.

All queries use raw text() SQL (no ORM). Consolidation reads invoices with
FOR UPDATE so two concurrent runs cannot group the same invoice.
"""

import uuid
from typing import Any

from sqlalchemy import bindparam, text
from sqlalchemy.ext.asyncio import AsyncSession

from src.fx_billing.domain.aggregator import PAYABLE_STATUSES
from src.fx_billing.domain.models import (
    BillingCompany,
    ConsolidatedInvoice,
    DividendRound,
    Invoice,
    InvoiceSplit,
)

# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

_GET_COMPANY_SQL = text("""
    SELECT id, is_active, bank_account_ready, required_invoice_approval_count
    FROM companies
    WHERE id = :company_id
""")

_INVOICE_COLUMNS = """
    i.id, i.company_id, i.user_id, i.company_worker_id, i.invoice_date, i.status,
    i.cash_amount_in_cents, i.total_amount_in_usd_cents, i.flexile_fee_cents,
    i.equity_amount_in_cents, i.equity_amount_in_options, i.equity_percentage
"""

# Alive, payable, and not linked to any consolidated invoice yet
_LIST_CONSOLIDATABLE_SQL = text(f"""
    SELECT {_INVOICE_COLUMNS}
    FROM invoices i
    WHERE i.company_id = :company_id
      AND i.deleted_at IS NULL
      AND i.status IN :statuses
      AND NOT EXISTS (
          SELECT 1 FROM consolidated_invoices_invoices cii WHERE cii.invoice_id = i.id
      )
      AND (CAST(:filter_ids AS BOOLEAN) IS FALSE OR i.id IN :invoice_ids)
    ORDER BY i.invoice_date, i.id
    FOR UPDATE OF i
""").bindparams(
    bindparam("statuses", expanding=True),
    bindparam("invoice_ids", expanding=True),
)

_GET_INVOICE_SQL = text(f"""
    SELECT {_INVOICE_COLUMNS}
    FROM invoices i
    WHERE i.id = :invoice_id AND i.deleted_at IS NULL
""")

_GET_INVOICE_FOR_UPDATE_SQL = text(f"""
    SELECT {_INVOICE_COLUMNS}
    FROM invoices i
    WHERE i.id = :invoice_id AND i.deleted_at IS NULL
    FOR UPDATE
""")

_COUNT_CONSOLIDATED_SQL = text("""
    SELECT COUNT(*) FROM consolidated_invoices WHERE company_id = :company_id
""")

_INSERT_CONSOLIDATED_SQL = text("""
    INSERT INTO consolidated_invoices (
        id, company_id, invoice_number, invoice_date, period_start_date,
        period_end_date, invoice_amount_cents, flexile_fee_cents,
        transfer_fee_cents, total_cents, status
    ) VALUES (
        :id, :company_id, :invoice_number, :invoice_date, :period_start_date,
        :period_end_date, :invoice_amount_cents, :flexile_fee_cents,
        :transfer_fee_cents, :total_cents, :status
    )
""")

_LINK_INVOICE_SQL = text("""
    INSERT INTO consolidated_invoices_invoices (consolidated_invoice_id, invoice_id)
    VALUES (:consolidated_invoice_id, :invoice_id)
""")

_SET_INVOICE_STATUS_SQL = text("""
    UPDATE invoices SET status = :status, updated_at = NOW() WHERE id = :invoice_id
""")

_GET_CONSOLIDATED_SQL = text("""
    SELECT ci.id, ci.company_id, ci.invoice_number, ci.invoice_date,
           ci.period_start_date, ci.period_end_date, ci.invoice_amount_cents,
           ci.flexile_fee_cents, ci.transfer_fee_cents, ci.total_cents, ci.status,
           COALESCE(
               ARRAY_AGG(cii.invoice_id ORDER BY cii.invoice_id)
                   FILTER (WHERE cii.invoice_id IS NOT NULL),
               '{}'
           ) AS invoice_ids
    FROM consolidated_invoices ci
    LEFT JOIN consolidated_invoices_invoices cii ON cii.consolidated_invoice_id = ci.id
    WHERE ci.id = :consolidated_invoice_id
    GROUP BY ci.id
""")

_ROUND_COLUMNS = "id, company_id, issued_at, status, total_amount_in_cents, consolidated_invoice_id"

_GET_ROUND_SQL = text(f"SELECT {_ROUND_COLUMNS} FROM dividend_rounds WHERE id = :round_id")

_GET_ROUND_FOR_UPDATE_SQL = text(
    f"SELECT {_ROUND_COLUMNS} FROM dividend_rounds WHERE id = :round_id FOR UPDATE"
)

_LINK_ROUND_SQL = text("""
    UPDATE dividend_rounds
    SET consolidated_invoice_id = :consolidated_invoice_id, updated_at = NOW()
    WHERE id = :round_id
""")

_RECORD_APPROVAL_SQL = text("""
    INSERT INTO invoice_approvals (invoice_id, approver_id, approved_at)
    VALUES (:invoice_id, :approver_id, NOW())
    ON CONFLICT (invoice_id, approver_id) DO NOTHING
""")

_COUNT_APPROVALS_SQL = text("""
    SELECT COUNT(*) FROM invoice_approvals WHERE invoice_id = :invoice_id
""")

_UPDATE_INVOICE_APPROVAL_SQL = text("""
    UPDATE invoices
    SET status = :status, flexile_fee_cents = :flexile_fee_cents, updated_at = NOW()
    WHERE id = :invoice_id
""")

_UPDATE_INVOICE_APPROVAL_WITH_SPLIT_SQL = text("""
    UPDATE invoices
    SET status = :status,
        flexile_fee_cents = :flexile_fee_cents,
        cash_amount_in_cents = :cash_amount_in_cents,
        equity_amount_in_cents = :equity_amount_in_cents,
        equity_amount_in_options = :equity_amount_in_options,
        equity_percentage = :equity_percentage,
        updated_at = NOW()
    WHERE id = :invoice_id
""")

# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_invoice(row: Any) -> Invoice:
    return Invoice(
        id=row.id,
        company_id=row.company_id,
        user_id=row.user_id,
        company_worker_id=row.company_worker_id,
        invoice_date=row.invoice_date,
        status=row.status,
        cash_amount_in_cents=row.cash_amount_in_cents,
        total_amount_in_usd_cents=row.total_amount_in_usd_cents,
        flexile_fee_cents=row.flexile_fee_cents or 0,
        equity_amount_in_cents=row.equity_amount_in_cents,
        equity_amount_in_options=row.equity_amount_in_options,
        equity_percentage=row.equity_percentage,
    )


def _row_to_round(row: Any) -> DividendRound:
    return DividendRound(
        id=row.id,
        company_id=row.company_id,
        issued_at=row.issued_at,
        status=row.status,
        total_amount_in_cents=row.total_amount_in_cents,
        consolidated_invoice_id=row.consolidated_invoice_id,
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class BillingRepository:
    async def get_company(self, db: AsyncSession, company_id: str) -> BillingCompany | None:
        row: Any = (await db.execute(_GET_COMPANY_SQL, {"company_id": company_id})).fetchone()
        if row is None:
            return None
        return BillingCompany(
            id=row.id,
            is_active=row.is_active,
            bank_account_ready=row.bank_account_ready,
            required_invoice_approval_count=row.required_invoice_approval_count,
        )

    async def list_consolidatable_invoices(
        self, db: AsyncSession, company_id: str, invoice_ids: list[str] | None
    ) -> list[Invoice]:
        rows = (
            await db.execute(
                _LIST_CONSOLIDATABLE_SQL,
                {
                    "company_id": company_id,
                    "statuses": sorted(PAYABLE_STATUSES),
                    "filter_ids": invoice_ids is not None,
                    # expanding IN () needs at least one value
                    "invoice_ids": list(invoice_ids) if invoice_ids else [""],
                },
            )
        ).fetchall()
        return [_row_to_invoice(r) for r in rows]

    async def count_consolidated_invoices(self, db: AsyncSession, company_id: str) -> int:
        return (await db.execute(_COUNT_CONSOLIDATED_SQL, {"company_id": company_id})).scalar_one()

    async def insert_consolidated_invoice(
        self, db: AsyncSession, consolidated: ConsolidatedInvoice
    ) -> str:
        consolidated_id = str(uuid.uuid4())
        await db.execute(
            _INSERT_CONSOLIDATED_SQL,
            {
                "id": consolidated_id,
                "company_id": consolidated.company_id,
                "invoice_number": consolidated.invoice_number,
                "invoice_date": consolidated.invoice_date,
                "period_start_date": consolidated.period_start_date,
                "period_end_date": consolidated.period_end_date,
                "invoice_amount_cents": consolidated.invoice_amount_cents,
                "flexile_fee_cents": consolidated.flexile_fee_cents,
                "transfer_fee_cents": consolidated.transfer_fee_cents,
                "total_cents": consolidated.total_cents,
                "status": consolidated.status,
            },
        )
        if consolidated.invoice_ids:
            await db.execute(
                _LINK_INVOICE_SQL,
                [
                    {"consolidated_invoice_id": consolidated_id, "invoice_id": invoice_id}
                    for invoice_id in consolidated.invoice_ids
                ],
            )
        return consolidated_id

    async def set_invoice_status(self, db: AsyncSession, invoice_id: str, status: str) -> None:
        await db.execute(_SET_INVOICE_STATUS_SQL, {"invoice_id": invoice_id, "status": status})

    async def get_dividend_round(
        self, db: AsyncSession, round_id: str, for_update: bool = False
    ) -> DividendRound | None:
        sql = _GET_ROUND_FOR_UPDATE_SQL if for_update else _GET_ROUND_SQL
        row = (await db.execute(sql, {"round_id": round_id})).fetchone()
        return _row_to_round(row) if row is not None else None

    async def link_dividend_round(
        self, db: AsyncSession, round_id: str, consolidated_invoice_id: str
    ) -> None:
        await db.execute(
            _LINK_ROUND_SQL,
            {"round_id": round_id, "consolidated_invoice_id": consolidated_invoice_id},
        )

    async def get_consolidated_invoice(
        self, db: AsyncSession, consolidated_invoice_id: str
    ) -> ConsolidatedInvoice | None:
        row: Any = (
            await db.execute(
                _GET_CONSOLIDATED_SQL, {"consolidated_invoice_id": consolidated_invoice_id}
            )
        ).fetchone()
        if row is None:
            return None
        return ConsolidatedInvoice(
            id=row.id,
            company_id=row.company_id,
            invoice_number=row.invoice_number,
            invoice_date=row.invoice_date,
            period_start_date=row.period_start_date,
            period_end_date=row.period_end_date,
            invoice_amount_cents=row.invoice_amount_cents,
            flexile_fee_cents=row.flexile_fee_cents,
            transfer_fee_cents=row.transfer_fee_cents,
            total_cents=row.total_cents,
            status=row.status,
            invoice_ids=list(row.invoice_ids),
        )

    async def get_invoice(
        self, db: AsyncSession, invoice_id: str, for_update: bool = False
    ) -> Invoice | None:
        sql = _GET_INVOICE_FOR_UPDATE_SQL if for_update else _GET_INVOICE_SQL
        row = (await db.execute(sql, {"invoice_id": invoice_id})).fetchone()
        return _row_to_invoice(row) if row is not None else None

    async def record_approval(
        self, db: AsyncSession, invoice_id: str, approver_id: str
    ) -> int:
        """Insert the approval (idempotent per approver); return the approval count."""
        await db.execute(
            _RECORD_APPROVAL_SQL, {"invoice_id": invoice_id, "approver_id": approver_id}
        )
        return (await db.execute(_COUNT_APPROVALS_SQL, {"invoice_id": invoice_id})).scalar_one()

    async def update_invoice_approval(
        self,
        db: AsyncSession,
        invoice_id: str,
        status: str,
        flexile_fee_cents: int,
        split: InvoiceSplit | None = None,
    ) -> None:
        params: dict[str, Any] = {
            "invoice_id": invoice_id,
            "status": status,
            "flexile_fee_cents": flexile_fee_cents,
        }
        if split is None:
            await db.execute(_UPDATE_INVOICE_APPROVAL_SQL, params)
            return
        params.update(
            cash_amount_in_cents=split.cash_amount_in_cents,
            equity_amount_in_cents=split.equity_amount_in_cents,
            equity_amount_in_options=split.equity_amount_in_options,
            equity_percentage=split.equity_percentage,
        )
        await db.execute(_UPDATE_INVOICE_APPROVAL_WITH_SPLIT_SQL, params)
