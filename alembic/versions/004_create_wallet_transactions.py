"""004: create wallet_transactions table

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
        CREATE TABLE wallet_transactions (
            id              BIGSERIAL       PRIMARY KEY,
            wallet_id       UUID            NOT NULL REFERENCES wallets (id),
            user_id         VARCHAR(64)     NOT NULL,
            type            VARCHAR(30)     NOT NULL,
            balance_field   VARCHAR(10)     NOT NULL,
            amount          NUMERIC(14,2)   NOT NULL,
            balance_before  NUMERIC(14,2)   NOT NULL,
            balance_after   NUMERIC(14,2)   NOT NULL,
            fee             NUMERIC(14,2)   NOT NULL DEFAULT 0,
            description     VARCHAR(500),
            reference_type  VARCHAR(30),
            reference_id    VARCHAR(64),
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_wallet_tx_type CHECK (
                type IN (
                    'DEPOSIT', 'WITHDRAWAL',
                    'ESCROW_HOLD', 'ESCROW_RELEASE', 'ESCROW_REVERSAL',
                    'SALE', 'REFUND'
                )
            ),
            CONSTRAINT ck_wallet_tx_field CHECK (balance_field IN ('BALANCE', 'PENDING')),
            CONSTRAINT ck_wallet_tx_delta CHECK (balance_after - balance_before = amount),
            CONSTRAINT ck_wallet_tx_balance_gte_0 CHECK (balance_after >= 0),
            CONSTRAINT ck_wallet_tx_fee_gte_0 CHECK (fee >= 0)
        );
    """)
    op.execute("CREATE INDEX idx_wallet_tx_user ON wallet_transactions (user_id, id DESC);")
    op.execute("""
        CREATE INDEX idx_wallet_tx_reference
        ON wallet_transactions (reference_type, reference_id)
        WHERE reference_id IS NOT NULL;
    """)
    op.execute("CREATE INDEX idx_wallet_tx_type ON wallet_transactions (type, created_at);")
    op.execute("""
        CREATE TRIGGER trg_wallet_tx_append_only
            BEFORE UPDATE OR DELETE ON wallet_transactions
            FOR EACH ROW EXECUTE FUNCTION fn_reject_mutation();
    """)
    op.execute("COMMENT ON TABLE wallet_transactions IS 'Wallet ledger, append-only (trigger-enforced)';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS wallet_transactions CASCADE;")
