"""002: create users table (identity mirror + seller reputation)

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
        CREATE TABLE users (
            id              VARCHAR(64)     PRIMARY KEY,
            username        VARCHAR(64),
            role            VARCHAR(10)     NOT NULL DEFAULT 'USER',
            seller_rating   NUMERIC(3,2)    NOT NULL DEFAULT 0,
            total_reviews   INTEGER         NOT NULL DEFAULT 0,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_users_role CHECK (role IN ('USER', 'ADMIN')),
            CONSTRAINT ck_users_seller_rating CHECK (seller_rating >= 0 AND seller_rating <= 5),
            CONSTRAINT ck_users_total_reviews CHECK (total_reviews >= 0)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_users_updated_at
            BEFORE UPDATE ON users
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute(
        "COMMENT ON TABLE users IS "
        "'Identity mirror; seller_rating/total_reviews written only by the review module';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS users CASCADE;")
