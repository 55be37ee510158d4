"""003: create cap table: share classes, holdings, convertibles, equity grants

Revision ID: 003
Revises: 002
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE share_classes (
            id                                  VARCHAR(64)     PRIMARY KEY,
            company_id                          VARCHAR(64)     NOT NULL REFERENCES companies(id),
            name                                VARCHAR(255)    NOT NULL,
            seniority_rank                      INTEGER,
            original_issue_price_in_dollars     NUMERIC(20, 8),
            liquidation_preference_multiple     NUMERIC(10, 4)  NOT NULL DEFAULT 1,
            preferred                           BOOLEAN         NOT NULL DEFAULT FALSE,
            participating                       BOOLEAN         NOT NULL DEFAULT FALSE,
            participation_cap_multiple          NUMERIC(10, 4),
            is_default                          BOOLEAN         NOT NULL DEFAULT FALSE,
            created_at                          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at                          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_share_classes_name UNIQUE (company_id, name),
            CONSTRAINT ck_share_classes_pref_multiple CHECK (liquidation_preference_multiple >= 0)
        );
    """)
    # One default (common) class per company
    op.execute("""
        CREATE UNIQUE INDEX uq_share_classes_default
        ON share_classes (company_id)
        WHERE is_default;
    """)
    op.execute("""
        CREATE TABLE share_holdings (
            id                      VARCHAR(64)     PRIMARY KEY,
            company_investor_id     VARCHAR(64)     NOT NULL REFERENCES company_investors(id),
            share_class_id          VARCHAR(64)     NOT NULL REFERENCES share_classes(id),
            number_of_shares        BIGINT          NOT NULL,
            share_price_usd         NUMERIC(20, 8)  NOT NULL,
            issued_at               TIMESTAMPTZ     NOT NULL,
            created_at              TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_share_holdings_shares CHECK (number_of_shares >= 0)
        );
    """)
    op.execute(
        "CREATE INDEX idx_share_holdings_investor_class"
        " ON share_holdings (company_investor_id, share_class_id);"
    )
    op.execute("""
        CREATE TABLE convertible_securities (
            id                          VARCHAR(64)     PRIMARY KEY,
            company_investor_id         VARCHAR(64)     NOT NULL REFERENCES company_investors(id),
            principal_value_in_cents    BIGINT          NOT NULL,
            interest_rate_percent       NUMERIC(7, 4),
            maturity_date               DATE,
            issued_at                   TIMESTAMPTZ     NOT NULL,
            valuation_cap_cents         BIGINT,
            discount_rate_percent       NUMERIC(7, 4),
            implied_shares              NUMERIC(30, 9)  NOT NULL,
            created_at                  TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_convertibles_principal CHECK (principal_value_in_cents >= 0)
        );
    """)
    op.execute("""
        CREATE TABLE equity_grants (
            id                  VARCHAR(64)     PRIMARY KEY,
            company_worker_id   VARCHAR(64)     NOT NULL REFERENCES company_workers(id),
            period_year         INTEGER         NOT NULL,
            share_price_usd     NUMERIC(20, 8)  NOT NULL,
            unvested_shares     BIGINT          NOT NULL DEFAULT 0,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW()
        );
    """)
    op.execute(
        "CREATE INDEX idx_equity_grants_worker_year ON equity_grants (company_worker_id, period_year);"
    )
    for table in ("share_classes", "equity_grants"):
        op.execute(f"""
            CREATE TRIGGER trg_{table}_updated_at
                BEFORE UPDATE ON {table}
                FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
        """)


def downgrade() -> None:
    for table in ("equity_grants", "convertible_securities", "share_holdings", "share_classes"):
        op.execute(f"DROP TABLE IF EXISTS {table} CASCADE;")
