"""Review domain model — pure dataclasses, no SQLAlchemy dependency."""
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

MAX_REVIEW_EDITS = 1


@dataclass
class Review:
    id: int
    order_id: str
    author_id: str
    seller_id: str
    listing_id: str
    rating: int
    content: str
    edit_count: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class SellerRating:
    seller_id: str
    average: Decimal     # 0.00 when the seller has no reviews
    total_reviews: int
