"""ReviewRepository — raw SQL persistence implementation.

The upsert allows exactly one amendment: the ON CONFLICT branch only fires
while edit_count is below MAX_REVIEW_EDITS, so a second amendment returns no
row. The seller aggregate is recomputed from every review of the seller on
each write, O(reviews per seller).
"""
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.mk_common.errors import InternalError
from src.mk_review.domain.models import MAX_REVIEW_EDITS, Review, SellerRating

_COLUMNS = """
    id, order_id, author_id, seller_id, listing_id, rating, content,
    edit_count, created_at, updated_at
"""

# xmax = 0 only on a freshly inserted row version
_UPSERT_SQL = text(f"""
    INSERT INTO reviews (order_id, author_id, seller_id, listing_id, rating, content)
    VALUES (:order_id, :author_id, :seller_id, :listing_id, :rating, :content)
    ON CONFLICT (order_id) DO UPDATE
    SET rating = EXCLUDED.rating,
        content = EXCLUDED.content,
        edit_count = reviews.edit_count + 1,
        updated_at = NOW()
    WHERE reviews.edit_count < :max_edits
    RETURNING {_COLUMNS}, (xmax = 0) AS inserted
""")

_GET_BY_ORDER_SQL = text(f"""
    SELECT {_COLUMNS} FROM reviews WHERE order_id = :order_id
""")

_REFRESH_SELLER_SQL = text("""
    INSERT INTO users (id, seller_rating, total_reviews)
    SELECT :seller_id,
           COALESCE(ROUND(AVG(rating)::numeric, 2), 0),
           COUNT(*)
    FROM reviews
    WHERE seller_id = :seller_id
    ON CONFLICT (id) DO UPDATE
    SET seller_rating = EXCLUDED.seller_rating,
        total_reviews = EXCLUDED.total_reviews,
        updated_at = NOW()
    RETURNING id, seller_rating, total_reviews
""")

_GET_SELLER_SQL = text("""
    SELECT id, seller_rating, total_reviews FROM users WHERE id = :seller_id
""")


def _row_to_review(row: Any) -> Review:
    return Review(
        id=row.id,
        order_id=row.order_id,
        author_id=row.author_id,
        seller_id=row.seller_id,
        listing_id=row.listing_id,
        rating=row.rating,
        content=row.content,
        edit_count=row.edit_count,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _row_to_rating(row: Any) -> SellerRating:
    return SellerRating(
        seller_id=row.id,
        average=row.seller_rating,
        total_reviews=row.total_reviews,
    )


class ReviewRepository:
    async def upsert(
        self,
        order_id: str,
        author_id: str,
        seller_id: str,
        listing_id: str,
        rating: int,
        content: str,
        db: AsyncSession,
    ) -> tuple[Review, bool] | None:
        result = await db.execute(
            _UPSERT_SQL,
            {
                "order_id": order_id,
                "author_id": author_id,
                "seller_id": seller_id,
                "listing_id": listing_id,
                "rating": rating,
                "content": content,
                "max_edits": MAX_REVIEW_EDITS,
            },
        )
        row = result.fetchone()
        if row is None:
            return None
        return _row_to_review(row), bool(row.inserted)

    async def get_by_order(self, order_id: str, db: AsyncSession) -> Review | None:
        result = await db.execute(_GET_BY_ORDER_SQL, {"order_id": order_id})
        row = result.fetchone()
        return _row_to_review(row) if row else None

    async def refresh_seller_rating(self, seller_id: str, db: AsyncSession) -> SellerRating:
        result = await db.execute(_REFRESH_SELLER_SQL, {"seller_id": seller_id})
        row = result.fetchone()
        if row is None:
            raise InternalError(f"Seller rating refresh for {seller_id} returned no row")
        return _row_to_rating(row)

    async def get_seller_rating(self, seller_id: str, db: AsyncSession) -> SellerRating | None:
        result = await db.execute(_GET_SELLER_SQL, {"seller_id": seller_id})
        row = result.fetchone()
        return _row_to_rating(row) if row else None
