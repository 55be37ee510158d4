"""004: create liquidation scenarios and payouts

Revision ID: 004
Revises: 003
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE liquidation_scenarios (
            id                  VARCHAR(64)     PRIMARY KEY,
            company_id          VARCHAR(64)     NOT NULL REFERENCES companies(id),
            name                VARCHAR(255),
            exit_amount_cents   BIGINT          NOT NULL,
            status              VARCHAR(20)     NOT NULL DEFAULT 'draft',
            calculated_at       TIMESTAMPTZ,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_scenarios_exit_amount CHECK (exit_amount_cents > 0),
            CONSTRAINT ck_scenarios_status CHECK (status IN ('draft', 'calculated'))
        );
    """)
    op.execute("""
        CREATE TABLE liquidation_payouts (
            id                              VARCHAR(64)     PRIMARY KEY,
            liquidation_scenario_id         VARCHAR(64)     NOT NULL
                REFERENCES liquidation_scenarios(id) ON DELETE CASCADE,
            company_investor_id             VARCHAR(64)     NOT NULL REFERENCES company_investors(id),
            share_class_name                VARCHAR(255),
            convertible_security_id         VARCHAR(64)     REFERENCES convertible_securities(id),
            security_type                   VARCHAR(20)     NOT NULL,
            number_of_shares                BIGINT,
            payout_amount_cents             BIGINT          NOT NULL,
            liquidation_preference_amount   NUMERIC(20, 2)  NOT NULL DEFAULT 0,
            participation_amount            NUMERIC(20, 2)  NOT NULL DEFAULT 0,
            common_proceeds_amount          NUMERIC(20, 2)  NOT NULL DEFAULT 0,
            created_at                      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_payouts_security_type CHECK (security_type IN ('equity', 'convertible'))
        );
    """)
    op.execute(
        "CREATE INDEX idx_liquidation_payouts_scenario ON liquidation_payouts (liquidation_scenario_id);"
    )
    op.execute("""
        CREATE TRIGGER trg_liquidation_scenarios_updated_at
            BEFORE UPDATE ON liquidation_scenarios
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute(
        "COMMENT ON TABLE liquidation_payouts IS"
        " 'Regenerated on every calculation (delete + insert), amounts in cents';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS liquidation_payouts CASCADE;")
    op.execute("DROP TABLE IF EXISTS liquidation_scenarios CASCADE;")
