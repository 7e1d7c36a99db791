"""ReviewRepository Protocol."""
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.mk_review.domain.models import Review, SellerRating


class ReviewRepositoryProtocol(Protocol):
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
        """(review, inserted). None when the review exists and is already amended."""
        ...

    async def get_by_order(self, order_id: str, db: AsyncSession) -> Review | None: ...

    async def refresh_seller_rating(self, seller_id: str, db: AsyncSession) -> SellerRating: ...

    async def get_seller_rating(self, seller_id: str, db: AsyncSession) -> SellerRating | None: ...
