"""005: create payout items, payments and payment links (dividends, equity buybacks)

Revision ID: 005
Revises: 004
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# Both payout kinds share one shape: item table, payment table, link table
_KINDS = (
    ("dividends", "dividend_payments", "dividend_payment_items", "dividend_id", "dividend_payment_id"),
    (
        "equity_buybacks",
        "equity_buyback_payments",
        "equity_buyback_payment_items",
        "equity_buyback_id",
        "equity_buyback_payment_id",
    ),
)


def upgrade() -> None:
    for items, payments, links, item_fk, payment_fk in _KINDS:
        op.execute(f"""
            CREATE TABLE {items} (
                id                      VARCHAR(64)     PRIMARY KEY,
                company_id              VARCHAR(64)     NOT NULL REFERENCES companies(id),
                company_investor_id     VARCHAR(64)     NOT NULL REFERENCES company_investors(id),
                status                  VARCHAR(30)     NOT NULL DEFAULT 'Issued',
                total_amount_in_cents   BIGINT          NOT NULL,
                net_amount_in_cents     BIGINT,
                retained_reason         VARCHAR(64),
                created_at              TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
                updated_at              TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
                CONSTRAINT ck_{items}_status
                    CHECK (status IN ('Pending signup', 'Issued', 'Retained', 'Processing', 'Paid')),
                CONSTRAINT ck_{items}_total CHECK (total_amount_in_cents >= 0)
            );
        """)
        op.execute(
            f"CREATE INDEX idx_{items}_investor_status ON {items} (company_investor_id, status);"
        )
        op.execute(f"""
            CREATE TABLE {payments} (
                id                          VARCHAR(64)     PRIMARY KEY,
                company_investor_id         VARCHAR(64)     NOT NULL REFERENCES company_investors(id),
                processor_uuid              VARCHAR(64)     NOT NULL,
                status                      VARCHAR(20)     NOT NULL DEFAULT 'initial',
                wise_transfer_reference     VARCHAR(20)     NOT NULL,
                wise_quote_id               VARCHAR(64),
                transfer_currency           VARCHAR(3),
                total_transaction_cents     BIGINT,
                transfer_fee_in_cents       BIGINT,
                transfer_id                 VARCHAR(64),
                conversion_rate             NUMERIC(20, 10),
                recipient_last4             VARCHAR(4),
                wise_transfer_status        VARCHAR(40),
                wise_transfer_estimate      TIMESTAMPTZ,
                created_at                  TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
                updated_at                  TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
                CONSTRAINT uq_{payments}_processor_uuid UNIQUE (processor_uuid),
                CONSTRAINT ck_{payments}_status
                    CHECK (status IN ('initial', 'processing', 'succeeded', 'failed'))
            );
        """)
        op.execute(
            f"CREATE INDEX idx_{payments}_transfer_id ON {payments} (transfer_id)"
            " WHERE transfer_id IS NOT NULL;"
        )
        op.execute(f"""
            CREATE TABLE {links} (
                {payment_fk}    VARCHAR(64)     NOT NULL REFERENCES {payments}(id),
                {item_fk}       VARCHAR(64)     NOT NULL REFERENCES {items}(id),
                created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
                CONSTRAINT uq_{links} UNIQUE ({payment_fk}, {item_fk})
            );
        """)
        for table in (items, payments):
            op.execute(f"""
                CREATE TRIGGER trg_{table}_updated_at
                    BEFORE UPDATE ON {table}
                    FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
            """)
        op.execute(
            f"COMMENT ON TABLE {payments} IS"
            " 'One row per processor attempt; a retry creates a new row with a new processor_uuid';"
        )


def downgrade() -> None:
    for items, payments, links, _item_fk, _payment_fk in reversed(_KINDS):
        op.execute(f"DROP TABLE IF EXISTS {links} CASCADE;")
        op.execute(f"DROP TABLE IF EXISTS {payments} CASCADE;")
        op.execute(f"DROP TABLE IF EXISTS {items} CASCADE;")
