# src/mk_order/application/service.py
"""OrderApplicationService — request-facing composition over the lifecycle engine.

Writes go through OrderLifecycleEngine; reads go straight to the repository
and are limited to the buyer, the seller and administrators.
"""
from sqlalchemy.ext.asyncio import AsyncSession

from src.mk_common.actor import Actor
from src.mk_common.database import run_read
from src.mk_common.errors import OrderActionForbiddenError, OrderNotFoundError
from src.mk_order.application.engine import (
    OrderLifecycleEngine,
    TransitionResult,
    get_lifecycle_engine,
)
from src.mk_order.application.schemas import (
    CreateOrderRequest,
    LedgerEffect,
    OrderListResponse,
    OrderResponse,
    TimelineEventResponse,
    TimelineResponse,
    TransitionResponse,
)
from src.mk_order.domain.models import Order
from src.mk_order.domain.repository import OrderRepositoryProtocol
from src.mk_order.domain.state_machine import can_view
from src.mk_order.infrastructure.persistence import OrderRepository


def to_transition_response(result: TransitionResult) -> TransitionResponse:
    return TransitionResponse(
        order=OrderResponse.from_domain(result.order),
        previous_status=result.previous_status,
        timeline_event=TimelineEventResponse.from_domain(result.timeline_event),
        ledger_effects=[
            LedgerEffect(
                user_id=tx.user_id,
                type=tx.type,
                balance_field=tx.balance_field,
                amount=tx.amount,
                balance_after=tx.balance_after,
            )
            for tx in result.transactions
        ],
    )


class OrderApplicationService:
    def __init__(
        self,
        engine: OrderLifecycleEngine | None = None,
        repo: OrderRepositoryProtocol | None = None,
    ) -> None:
        self._engine = engine
        self._repo: OrderRepositoryProtocol = repo or OrderRepository()

    @property
    def engine(self) -> OrderLifecycleEngine:
        return self._engine or get_lifecycle_engine()

    async def create_order(
        self, db: AsyncSession, buyer: Actor, req: CreateOrderRequest
    ) -> OrderResponse:
        order = await self.engine.create_order(
            db,
            buyer,
            seller_id=req.seller_id,
            listing_id=req.listing_id,
            unit_price=req.unit_price,
            quantity=req.quantity,
            discount=req.discount,
        )
        return OrderResponse.from_domain(order)

    async def mark_delivered(
        self, db: AsyncSession, order_id: str, actor: Actor
    ) -> TransitionResponse:
        return to_transition_response(await self.engine.mark_delivered(db, order_id, actor))

    async def confirm(self, db: AsyncSession, order_id: str, actor: Actor) -> TransitionResponse:
        return to_transition_response(await self.engine.confirm(db, order_id, actor))

    async def cancel(
        self, db: AsyncSession, order_id: str, actor: Actor, reason: str
    ) -> TransitionResponse:
        return to_transition_response(await self.engine.cancel(db, order_id, actor, reason))

    async def get_order(self, db: AsyncSession, order_id: str, actor: Actor) -> OrderResponse:
        return OrderResponse.from_domain(await self._load_visible(db, order_id, actor))

    async def get_timeline(
        self, db: AsyncSession, order_id: str, actor: Actor
    ) -> TimelineResponse:
        order = await self._load_visible(db, order_id, actor)
        events = await run_read(db, lambda: self._repo.list_timeline(order.id, db))
        return TimelineResponse(
            order_id=order.id,
            events=[TimelineEventResponse.from_domain(e) for e in events],
        )

    async def list_orders(
        self,
        db: AsyncSession,
        actor: Actor,
        as_seller: bool,
        status: str | None,
        limit: int,
        cursor: str | None,
    ) -> OrderListResponse:
        statuses = [status] if status else None
        # Fetch limit+1 to detect has_more without a COUNT(*) query
        orders = await run_read(
            db,
            lambda: self._repo.list_by_party(
                user_id=actor.user_id,
                as_seller=as_seller,
                statuses=statuses,
                limit=limit + 1,
                cursor_id=cursor,
                db=db,
            ),
        )
        has_more = len(orders) > limit
        page = orders[:limit]
        return OrderListResponse(
            orders=[OrderResponse.from_domain(o) for o in page],
            next_cursor=page[-1].id if has_more and page else None,
            has_more=has_more,
        )

    async def _load_visible(self, db: AsyncSession, order_id: str, actor: Actor) -> Order:
        order = await run_read(db, lambda: self._repo.get_by_id(order_id, db))
        if order is None:
            raise OrderNotFoundError(order_id)
        if not can_view(actor, order):
            raise OrderActionForbiddenError(
                f"Only the buyer, the seller or an administrator can view order {order.order_number}"
            )
        return order
