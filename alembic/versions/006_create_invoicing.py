"""006: create invoices, approvals, consolidated invoices, dividend rounds

Revision ID: 006
Revises: 005
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "006"
down_revision: Union[str, None] = "005"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE invoices (
            id                          VARCHAR(64)     PRIMARY KEY,
            company_id                  VARCHAR(64)     NOT NULL REFERENCES companies(id),
            user_id                     VARCHAR(64)     NOT NULL REFERENCES users(id),
            company_worker_id           VARCHAR(64)     REFERENCES company_workers(id),
            invoice_date                DATE            NOT NULL,
            status                      VARCHAR(20)     NOT NULL DEFAULT 'received',
            cash_amount_in_cents        BIGINT          NOT NULL DEFAULT 0,
            equity_amount_in_cents      BIGINT          NOT NULL DEFAULT 0,
            equity_amount_in_options    BIGINT          NOT NULL DEFAULT 0,
            equity_percentage           NUMERIC(5, 2)   NOT NULL DEFAULT 0,
            total_amount_in_usd_cents   BIGINT          NOT NULL,
            flexile_fee_cents           BIGINT,
            deleted_at                  TIMESTAMPTZ,
            created_at                  TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at                  TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_invoices_status CHECK (status IN (
                'received', 'approved', 'payment_pending', 'processing', 'paid', 'rejected', 'failed'
            )),
            CONSTRAINT ck_invoices_total CHECK (total_amount_in_usd_cents >= 0)
        );
    """)
    op.execute("""
        CREATE INDEX idx_invoices_company_status
        ON invoices (company_id, status, invoice_date)
        WHERE deleted_at IS NULL;
    """)
    op.execute("""
        CREATE TABLE invoice_approvals (
            id              BIGSERIAL       PRIMARY KEY,
            invoice_id      VARCHAR(64)     NOT NULL REFERENCES invoices(id),
            approver_id     VARCHAR(64)     NOT NULL REFERENCES users(id),
            approved_at     TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_invoice_approvals UNIQUE (invoice_id, approver_id)
        );
    """)
    op.execute("""
        CREATE TABLE consolidated_invoices (
            id                      VARCHAR(64)     PRIMARY KEY,
            company_id              VARCHAR(64)     NOT NULL REFERENCES companies(id),
            invoice_number          VARCHAR(40)     NOT NULL,
            invoice_date            DATE            NOT NULL,
            period_start_date       DATE            NOT NULL,
            period_end_date         DATE            NOT NULL,
            invoice_amount_cents    BIGINT          NOT NULL,
            flexile_fee_cents       BIGINT          NOT NULL,
            transfer_fee_cents      BIGINT          NOT NULL DEFAULT 0,
            total_cents             BIGINT          NOT NULL,
            status                  VARCHAR(20)     NOT NULL DEFAULT 'sent',
            created_at              TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at              TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_consolidated_total
                CHECK (total_cents = invoice_amount_cents + flexile_fee_cents + transfer_fee_cents),
            CONSTRAINT ck_consolidated_status CHECK (status IN ('sent', 'processing', 'paid', 'failed'))
        );
    """)
    op.execute("""
        CREATE TABLE consolidated_invoices_invoices (
            consolidated_invoice_id     VARCHAR(64)     NOT NULL REFERENCES consolidated_invoices(id),
            invoice_id                  VARCHAR(64)     NOT NULL REFERENCES invoices(id),
            created_at                  TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_consolidated_invoices_invoices_invoice UNIQUE (invoice_id)
        );
    """)
    op.execute("""
        CREATE TABLE dividend_rounds (
            id                          VARCHAR(64)     PRIMARY KEY,
            company_id                  VARCHAR(64)     NOT NULL REFERENCES companies(id),
            issued_at                   TIMESTAMPTZ     NOT NULL,
            status                      VARCHAR(20)     NOT NULL DEFAULT 'Issued',
            total_amount_in_cents       BIGINT          NOT NULL,
            consolidated_invoice_id     VARCHAR(64)     REFERENCES consolidated_invoices(id),
            created_at                  TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at                  TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_dividend_rounds_status CHECK (status IN ('Issued', 'Paid'))
        );
    """)
    for table in ("invoices", "consolidated_invoices", "dividend_rounds"):
        op.execute(f"""
            CREATE TRIGGER trg_{table}_updated_at
                BEFORE UPDATE ON {table}
                FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
        """)
    op.execute(
        "COMMENT ON TABLE consolidated_invoices_invoices IS"
        " 'An invoice belongs to at most one consolidated invoice';"
    )


def downgrade() -> None:
    for table in (
        "dividend_rounds",
        "consolidated_invoices_invoices",
        "consolidated_invoices",
        "invoice_approvals",
        "invoices",
    ):
        op.execute(f"DROP TABLE IF EXISTS {table} CASCADE;")
