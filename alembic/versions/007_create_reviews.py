"""007: create reviews table

Revision ID: 007
Revises: 006
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "007"
down_revision: Union[str, None] = "006"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE reviews (
            id              BIGSERIAL       PRIMARY KEY,
            order_id        VARCHAR(32)     NOT NULL REFERENCES orders (id),
            author_id       VARCHAR(64)     NOT NULL,
            seller_id       VARCHAR(64)     NOT NULL,
            listing_id      VARCHAR(64)     NOT NULL,
            rating          SMALLINT        NOT NULL,
            content         TEXT            NOT NULL DEFAULT '',
            edit_count      INTEGER         NOT NULL DEFAULT 0,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_reviews_order UNIQUE (order_id),
            CONSTRAINT ck_reviews_rating CHECK (rating BETWEEN 1 AND 5),
            CONSTRAINT ck_reviews_content_len CHECK (LENGTH(content) <= 2000),
            CONSTRAINT ck_reviews_edit_count CHECK (edit_count BETWEEN 0 AND 1)
        );
    """)
    op.execute("CREATE INDEX idx_reviews_seller ON reviews (seller_id);")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS reviews CASCADE;")
