from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from src.mk_review.domain.models import Review, SellerRating


class SubmitReviewRequest(BaseModel):
    rating: int = Field(..., description="1-5")
    content: str = Field("", description="At most 2000 characters")


class ReviewResponse(BaseModel):
    id: int
    order_id: str
    author_id: str
    seller_id: str
    listing_id: str
    rating: int
    content: str
    edit_count: int
    created_at: datetime | None
    updated_at: datetime | None

    @classmethod
    def from_domain(cls, r: Review) -> "ReviewResponse":
        return cls(
            id=r.id,
            order_id=r.order_id,
            author_id=r.author_id,
            seller_id=r.seller_id,
            listing_id=r.listing_id,
            rating=r.rating,
            content=r.content,
            edit_count=r.edit_count,
            created_at=r.created_at,
            updated_at=r.updated_at,
        )


class SellerRatingResponse(BaseModel):
    seller_id: str
    average_rating: Decimal
    total_reviews: int

    @classmethod
    def from_domain(cls, r: SellerRating) -> "SellerRatingResponse":
        return cls(seller_id=r.seller_id, average_rating=r.average, total_reviews=r.total_reviews)


class SubmitReviewResponse(BaseModel):
    review: ReviewResponse
    created: bool
    seller_rating: SellerRatingResponse
