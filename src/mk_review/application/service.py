"""ReviewApplicationService — post-completion reviews and seller reputation.

One commit per submission: review upsert, timeline event and the seller's
recomputed average/count.
"""
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.mk_common.actor import Actor
from src.mk_common.database import run_atomic, run_read
from src.mk_common.enums import OrderStatus, TimelineEventType
from src.mk_common.errors import (
    InvalidOrderStateError,
    InvalidReviewError,
    OrderActionForbiddenError,
    OrderNotFoundError,
    ReviewLockedError,
    ReviewNotFoundError,
    SellerNotFoundError,
)
from src.mk_order.domain.events import OrderEvent, OrderEventPublisherProtocol
from src.mk_order.domain.repository import OrderRepositoryProtocol
from src.mk_order.domain.state_machine import can_view
from src.mk_order.infrastructure.event_publisher import RedisOrderEventPublisher
from src.mk_order.infrastructure.persistence import OrderRepository
from src.mk_review.application.schemas import (
    ReviewResponse,
    SellerRatingResponse,
    SubmitReviewResponse,
)
from src.mk_review.domain.models import Review, SellerRating
from src.mk_review.domain.repository import ReviewRepositoryProtocol
from src.mk_review.infrastructure.persistence import ReviewRepository

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5
MAX_CONTENT_LENGTH = 2000


def validate_review(rating: object, content: str | None) -> tuple[int, str]:
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise InvalidReviewError(f"Rating must be an integer between {MIN_RATING} and {MAX_RATING}")
    if not MIN_RATING <= rating <= MAX_RATING:
        raise InvalidReviewError(
            f"Rating must be between {MIN_RATING} and {MAX_RATING}, got {rating}"
        )
    text = (content or "").strip()
    if len(text) > MAX_CONTENT_LENGTH:
        raise InvalidReviewError(
            f"Review content must be at most {MAX_CONTENT_LENGTH} characters, got {len(text)}"
        )
    return rating, text


class ReviewApplicationService:
    def __init__(
        self,
        repo: ReviewRepositoryProtocol | None = None,
        order_repo: OrderRepositoryProtocol | None = None,
        publisher: OrderEventPublisherProtocol | None = None,
    ) -> None:
        self._repo: ReviewRepositoryProtocol = repo or ReviewRepository()
        self._orders: OrderRepositoryProtocol = order_repo or OrderRepository()
        self._publisher: OrderEventPublisherProtocol = publisher or RedisOrderEventPublisher()

    async def submit_review(
        self,
        db: AsyncSession,
        order_id: str,
        rating: object,
        content: str | None,
        actor: Actor,
    ) -> SubmitReviewResponse:
        order = await run_read(db, lambda: self._orders.get_by_id(order_id, db))
        if order is None:
            raise OrderNotFoundError(order_id)
        if actor.user_id != order.buyer_id:
            raise OrderActionForbiddenError(
                f"Only the buyer can review order {order.order_number}"
            )
        if order.status != OrderStatus.COMPLETED:
            raise InvalidOrderStateError(
                f"Only completed orders can be reviewed; order is {order.status}"
            )
        score, text = validate_review(rating, content)

        async def work() -> tuple[Review, bool, SellerRating]:
            upserted = await self._repo.upsert(
                order.id, actor.user_id, order.seller_id, order.listing_id, score, text, db
            )
            if upserted is None:
                raise ReviewLockedError(order.id)
            review, inserted = upserted
            event = (
                TimelineEventType.REVIEW_SUBMITTED if inserted else TimelineEventType.REVIEW_UPDATED
            )
            verb = "left" if inserted else "updated"
            await self._orders.append_timeline(
                order.id,
                event.value,
                f"Buyer {verb} a {score}-star review",
                actor.user_id,
                db,
            )
            seller = await self._repo.refresh_seller_rating(order.seller_id, db)
            return review, inserted, seller

        review, inserted, seller = await run_atomic(db, work)
        logger.info(
            "Review %s: order=%s seller=%s rating=%d seller_avg=%s reviews=%d",
            "created" if inserted else "amended",
            order.id,
            order.seller_id,
            score,
            seller.average,
            seller.total_reviews,
        )
        await self._publisher.publish(
            OrderEvent(
                event_type="REVIEW_SUBMITTED",
                order_id=order.id,
                order_number=order.order_number,
                buyer_id=order.buyer_id,
                seller_id=order.seller_id,
                status=order.status,
                actor_id=actor.user_id,
                payload={"rating": score, "amended": not inserted},
            )
        )
        return SubmitReviewResponse(
            review=ReviewResponse.from_domain(review),
            created=inserted,
            seller_rating=SellerRatingResponse.from_domain(seller),
        )

    async def get_review(self, db: AsyncSession, order_id: str, actor: Actor) -> ReviewResponse:
        order = await run_read(db, lambda: self._orders.get_by_id(order_id, db))
        if order is None:
            raise OrderNotFoundError(order_id)
        if not can_view(actor, order):
            raise OrderActionForbiddenError(
                f"Only the buyer, the seller or an administrator can view the review "
                f"on order {order.order_number}"
            )
        review = await run_read(db, lambda: self._repo.get_by_order(order_id, db))
        if review is None:
            raise ReviewNotFoundError(order_id)
        return ReviewResponse.from_domain(review)

    async def get_seller_rating(self, db: AsyncSession, seller_id: str) -> SellerRatingResponse:
        rating = await run_read(db, lambda: self._repo.get_seller_rating(seller_id, db))
        if rating is None:
            raise SellerNotFoundError(seller_id)
        return SellerRatingResponse.from_domain(rating)
