"""006: create disputes table

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
        CREATE TABLE disputes (
            id              BIGSERIAL       PRIMARY KEY,
            order_id        VARCHAR(32)     NOT NULL REFERENCES orders (id),
            buyer_id        VARCHAR(64)     NOT NULL,
            seller_id       VARCHAR(64)     NOT NULL,
            initiator_id    VARCHAR(64)     NOT NULL,
            reason          VARCHAR(30)     NOT NULL,
            description     TEXT            NOT NULL,
            status          VARCHAR(10)     NOT NULL DEFAULT 'OPEN',
            resolution      VARCHAR(30),
            resolved_by     VARCHAR(64),
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            resolved_at     TIMESTAMPTZ,
            CONSTRAINT uq_disputes_order UNIQUE (order_id),
            CONSTRAINT ck_disputes_reason CHECK (
                reason IN ('ITEM_NOT_RECEIVED', 'ITEM_NOT_AS_DESCRIBED', 'LATE_DELIVERY',
                           'ACCOUNT_RECOVERED', 'SELLER_UNRESPONSIVE', 'OTHER')
            ),
            CONSTRAINT ck_disputes_description_len CHECK (
                LENGTH(description) BETWEEN 10 AND 2000
            ),
            CONSTRAINT ck_disputes_status CHECK (status IN ('OPEN', 'RESOLVED')),
            CONSTRAINT ck_disputes_resolution CHECK (
                resolution IS NULL OR resolution IN ('RELEASED_TO_SELLER', 'REFUNDED_TO_BUYER')
            )
        );
    """)
    op.execute("CREATE INDEX idx_disputes_open ON disputes (created_at) WHERE status = 'OPEN';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS disputes CASCADE;")
