"""002: create companies, users, investors, workers, bank accounts

Revision ID: 002
Revises: 001
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE companies (
            id                              VARCHAR(64)     PRIMARY KEY,
            name                            VARCHAR(255)    NOT NULL,
            is_active                       BOOLEAN         NOT NULL DEFAULT TRUE,
            bank_account_ready              BOOLEAN         NOT NULL DEFAULT FALSE,
            equity_compensation_enabled     BOOLEAN         NOT NULL DEFAULT FALSE,
            fmv_per_share_in_usd            NUMERIC(20, 8),
            required_invoice_approval_count INTEGER         NOT NULL DEFAULT 1,
            created_at                      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at                      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_companies_approval_count CHECK (required_invoice_approval_count >= 1)
        );
    """)
    op.execute("""
        CREATE TABLE users (
            id                              VARCHAR(64)     PRIMARY KEY,
            email                           VARCHAR(255)    NOT NULL,
            country_code                    VARCHAR(2),
            tax_information_confirmed_at    TIMESTAMPTZ,
            tax_id_verified                 BOOLEAN         NOT NULL DEFAULT FALSE,
            created_at                      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at                      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_users_email UNIQUE (email)
        );
    """)
    op.execute("""
        CREATE TABLE company_investors (
            id                                  VARCHAR(64)     PRIMARY KEY,
            company_id                          VARCHAR(64)     NOT NULL REFERENCES companies(id),
            user_id                             VARCHAR(64)     NOT NULL REFERENCES users(id),
            completed_onboarding                BOOLEAN         NOT NULL DEFAULT FALSE,
            minimum_dividend_payment_in_cents   BIGINT          NOT NULL DEFAULT 0,
            created_at                          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at                          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_company_investors UNIQUE (company_id, user_id)
        );
    """)
    op.execute("""
        CREATE TABLE company_workers (
            id                  VARCHAR(64)     PRIMARY KEY,
            company_id          VARCHAR(64)     NOT NULL REFERENCES companies(id),
            user_id             VARCHAR(64)     NOT NULL REFERENCES users(id),
            equity_percentage   NUMERIC(5, 2)   NOT NULL DEFAULT 0,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_company_workers_equity_pct CHECK (equity_percentage BETWEEN 0 AND 100)
        );
    """)
    op.execute("""
        CREATE TABLE bank_accounts (
            id                  VARCHAR(64)     PRIMARY KEY,
            user_id             VARCHAR(64)     NOT NULL REFERENCES users(id),
            recipient_id        VARCHAR(64)     NOT NULL,
            currency            VARCHAR(3)      NOT NULL,
            last_four_digits    VARCHAR(4),
            deleted_at          TIMESTAMPTZ,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW()
        );
    """)
    op.execute("""
        CREATE INDEX idx_bank_accounts_user_live
        ON bank_accounts (user_id, created_at DESC)
        WHERE deleted_at IS NULL;
    """)
    for table in ("companies", "users", "company_investors", "company_workers", "bank_accounts"):
        op.execute(f"""
            CREATE TRIGGER trg_{table}_updated_at
                BEFORE UPDATE ON {table}
                FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
        """)


def downgrade() -> None:
    for table in ("bank_accounts", "company_workers", "company_investors", "users", "companies"):
        op.execute(f"DROP TABLE IF EXISTS {table} CASCADE;")
