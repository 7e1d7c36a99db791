"""005: create orders and order_timeline tables

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


def upgrade() -> None:
    op.execute("""
        CREATE TABLE orders (
            id                  VARCHAR(32)     PRIMARY KEY,
            order_number        VARCHAR(32)     NOT NULL,
            buyer_id            VARCHAR(64)     NOT NULL,
            seller_id           VARCHAR(64)     NOT NULL,
            listing_id          VARCHAR(64)     NOT NULL,
            unit_price          NUMERIC(14,2)   NOT NULL,
            quantity            INTEGER         NOT NULL,
            subtotal            NUMERIC(14,2)   NOT NULL,
            discount            NUMERIC(14,2)   NOT NULL DEFAULT 0,
            service_fee         NUMERIC(14,2)   NOT NULL DEFAULT 0,
            platform_fee        NUMERIC(14,2)   NOT NULL,
            seller_earnings     NUMERIC(14,2)   NOT NULL,
            final_amount        NUMERIC(14,2)   NOT NULL,
            status              VARCHAR(20)     NOT NULL DEFAULT 'PENDING',
            escrow_status       VARCHAR(20)     NOT NULL DEFAULT 'PENDING',
            cancel_reason       VARCHAR(500),
            delivery_deadline   TIMESTAMPTZ,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            paid_at             TIMESTAMPTZ,
            delivered_at        TIMESTAMPTZ,
            completed_at        TIMESTAMPTZ,
            cancelled_at        TIMESTAMPTZ,
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_orders_order_number UNIQUE (order_number),
            CONSTRAINT ck_orders_status CHECK (
                status IN ('PENDING', 'ACTIVE', 'DELIVERED', 'COMPLETED',
                           'CANCELLED', 'DISPUTED', 'REFUNDED')
            ),
            CONSTRAINT ck_orders_escrow_status CHECK (
                escrow_status IN ('PENDING', 'HELD', 'RELEASED', 'REFUNDED', 'VOID')
            ),
            CONSTRAINT ck_orders_not_self CHECK (buyer_id <> seller_id),
            CONSTRAINT ck_orders_quantity CHECK (quantity > 0),
            CONSTRAINT ck_orders_unit_price CHECK (unit_price > 0),
            CONSTRAINT ck_orders_discount CHECK (discount >= 0 AND discount <= subtotal),
            CONSTRAINT ck_orders_earnings CHECK (seller_earnings = subtotal - platform_fee),
            CONSTRAINT ck_orders_final CHECK (final_amount = subtotal - discount + service_fee)
        );
    """)
    op.execute("CREATE INDEX idx_orders_buyer ON orders (buyer_id, id DESC);")
    op.execute("CREATE INDEX idx_orders_seller ON orders (seller_id, id DESC);")
    op.execute("CREATE INDEX idx_orders_escrow_held ON orders (seller_id) WHERE escrow_status = 'HELD';")
    op.execute("""
        CREATE TABLE order_timeline (
            id              BIGSERIAL       PRIMARY KEY,
            order_id        VARCHAR(32)     NOT NULL REFERENCES orders (id),
            event           VARCHAR(30)     NOT NULL,
            description     VARCHAR(1000)   NOT NULL,
            actor_id        VARCHAR(64),
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT clock_timestamp()
        );
    """)
    op.execute("CREATE INDEX idx_order_timeline_order ON order_timeline (order_id, created_at, id);")
    op.execute("""
        CREATE TRIGGER trg_order_timeline_append_only
            BEFORE UPDATE OR DELETE ON order_timeline
            FOR EACH ROW EXECUTE FUNCTION fn_reject_mutation();
    """)
    op.execute("COMMENT ON TABLE orders IS 'Orders — commercial fields fixed at creation, never deleted';")
    op.execute("COMMENT ON TABLE order_timeline IS 'Order timeline, append-only (trigger-enforced)';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS order_timeline CASCADE;")
    op.execute("DROP TABLE IF EXISTS orders CASCADE;")
