"""OrderLifecycleEngine — the only writer of order status and escrow movements.

Every operation runs the same pipeline against one request-scoped session:

  1. load the order                        -> OrderNotFoundError
  2. authorize the actor's parties          -> OrderActionForbiddenError
  3. status and escrow preconditions        -> InvalidOrderStateError
  4. conditional UPDATE on (id, status, escrow) -> InvalidOrderStateError if the race is lost
  5. escrow movements + ledger entries
  6. module hook (dispute insert / resolve)
  7. exactly one timeline event
  8. COMMIT (ROLLBACK on any failure), then publish the OrderEvent
"""
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.mk_clearing.domain.escrow import (
    cancellation_escrow_status,
    hold_escrow,
    settle_cancellation,
    settle_completion,
)
from src.mk_clearing.domain.fee import FeeSchedule, calculate_order_amounts
from src.mk_common.actor import Actor
from src.mk_common.database import run_atomic, run_read
from src.mk_common.datetime_utils import hours_from_now, utc_now
from src.mk_common.enums import (
    EscrowStatus,
    OrderOperation,
    OrderStatus,
    TimelineEventType,
)
from src.mk_common.errors import (
    AppError,
    InvalidCancelReasonError,
    InvalidOrderStateError,
    OrderNotFoundError,
    SelfPurchaseError,
)
from src.mk_common.id_generator import generate_id, generate_order_number
from src.mk_common.money import ZERO
from src.mk_order.domain.events import OrderEvent, OrderEventPublisherProtocol
from src.mk_order.domain.models import Order, StatusChange, TimelineEvent
from src.mk_order.domain.repository import OrderRepositoryProtocol
from src.mk_order.domain.state_machine import authorize, check_order_state
from src.mk_order.infrastructure.event_publisher import RedisOrderEventPublisher
from src.mk_order.infrastructure.persistence import OrderRepository
from src.mk_wallet.domain.models import WalletTransaction
from src.mk_wallet.domain.repository import WalletRepositoryProtocol
from src.mk_wallet.infrastructure.persistence import WalletRepository

logger = logging.getLogger(__name__)

MAX_CANCEL_REASON_LENGTH = 500
FORCE_CANCEL_DEFAULT_REASON = "Cancelled and refunded by administrator"

# Called inside the commit unit with the order before and after the status write.
TransitionHook = Callable[[AsyncSession, Order, Order], Awaitable[None]]

_STAMP_COLUMN: dict[OrderOperation, str | None] = {
    OrderOperation.CONFIRM_PAYMENT: "paid_at",
    OrderOperation.MARK_DELIVERED: "delivered_at",
    OrderOperation.CONFIRM: "completed_at",
    OrderOperation.FORCE_COMPLETE: "completed_at",
    OrderOperation.CANCEL: "cancelled_at",
    OrderOperation.FORCE_CANCEL_REFUND: "cancelled_at",
    OrderOperation.OPEN_DISPUTE: None,
}

_COMPLETING = frozenset({OrderOperation.CONFIRM, OrderOperation.FORCE_COMPLETE})
_CANCELLING = frozenset({OrderOperation.CANCEL, OrderOperation.FORCE_CANCEL_REFUND})


@dataclass
class TransitionResult:
    order: Order
    previous_status: str
    timeline_event: TimelineEvent
    transactions: list[WalletTransaction] = field(default_factory=list)


def validate_cancel_reason(reason: str | None) -> str:
    cleaned = (reason or "").strip()
    if not cleaned:
        raise InvalidCancelReasonError("a reason is required")
    if len(cleaned) > MAX_CANCEL_REASON_LENGTH:
        raise InvalidCancelReasonError(
            f"must be at most {MAX_CANCEL_REASON_LENGTH} characters"
        )
    return cleaned


class OrderLifecycleEngine:
    def __init__(
        self,
        order_repo: OrderRepositoryProtocol | None = None,
        wallet_repo: WalletRepositoryProtocol | None = None,
        publisher: OrderEventPublisherProtocol | None = None,
    ) -> None:
        self._orders: OrderRepositoryProtocol = order_repo or OrderRepository()
        self._wallets: WalletRepositoryProtocol = wallet_repo or WalletRepository()
        self._publisher: OrderEventPublisherProtocol = publisher or RedisOrderEventPublisher()

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    async def create_order(
        self,
        db: AsyncSession,
        buyer: Actor,
        seller_id: str,
        listing_id: str,
        unit_price: Decimal,
        quantity: int,
        discount: Decimal = ZERO,
        schedule: FeeSchedule | None = None,
    ) -> Order:
        if buyer.user_id == seller_id:
            raise SelfPurchaseError()
        amounts = calculate_order_amounts(
            unit_price, quantity, schedule or FeeSchedule.from_settings(settings), discount
        )
        order = Order(
            id=generate_id(),
            order_number=generate_order_number(),
            buyer_id=buyer.user_id,
            seller_id=seller_id,
            listing_id=listing_id,
            unit_price=amounts.unit_price,
            quantity=amounts.quantity,
            subtotal=amounts.subtotal,
            discount=amounts.discount,
            service_fee=amounts.service_fee,
            platform_fee=amounts.platform_fee,
            seller_earnings=amounts.seller_earnings,
            final_amount=amounts.final_amount,
            created_at=utc_now(),
        )

        async def work() -> Order:
            for user_id in sorted((order.buyer_id, order.seller_id)):
                await self._wallets.create_wallet(db, user_id)
            await self._orders.save(order, db)
            await self._orders.append_timeline(
                order.id,
                TimelineEventType.ORDER_CREATED.value,
                f"Order placed by {buyer.label} for {order.final_amount}",
                buyer.user_id,
                db,
            )
            return order

        created = await run_atomic(db, work)
        logger.info(
            "Order created: order=%s number=%s buyer=%s seller=%s final=%s",
            created.id,
            created.order_number,
            created.buyer_id,
            created.seller_id,
            created.final_amount,
        )
        await self._publish(created, "ORDER_CREATED", None, buyer)
        return created

    # ------------------------------------------------------------------
    # Named operations
    # ------------------------------------------------------------------

    async def confirm_payment(
        self,
        db: AsyncSession,
        order_id: str,
        actor: Actor,
        delivery_hours: int | None = None,
    ) -> TransitionResult:
        return await self.transition(
            db, order_id, OrderOperation.CONFIRM_PAYMENT, actor, delivery_hours=delivery_hours
        )

    async def mark_delivered(
        self, db: AsyncSession, order_id: str, actor: Actor
    ) -> TransitionResult:
        return await self.transition(db, order_id, OrderOperation.MARK_DELIVERED, actor)

    async def confirm(self, db: AsyncSession, order_id: str, actor: Actor) -> TransitionResult:
        return await self.transition(db, order_id, OrderOperation.CONFIRM, actor)

    async def cancel(
        self, db: AsyncSession, order_id: str, actor: Actor, reason: str | None
    ) -> TransitionResult:
        return await self.transition(
            db, order_id, OrderOperation.CANCEL, actor, cancel_reason=reason
        )

    async def force_complete(
        self,
        db: AsyncSession,
        order_id: str,
        actor: Actor,
        hook: TransitionHook | None = None,
    ) -> TransitionResult:
        return await self.transition(
            db, order_id, OrderOperation.FORCE_COMPLETE, actor, hook=hook
        )

    async def force_cancel_refund(
        self,
        db: AsyncSession,
        order_id: str,
        actor: Actor,
        reason: str | None = None,
        hook: TransitionHook | None = None,
    ) -> TransitionResult:
        return await self.transition(
            db,
            order_id,
            OrderOperation.FORCE_CANCEL_REFUND,
            actor,
            cancel_reason=reason or FORCE_CANCEL_DEFAULT_REASON,
            hook=hook,
        )

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    async def transition(
        self,
        db: AsyncSession,
        order_id: str,
        operation: OrderOperation,
        actor: Actor,
        *,
        cancel_reason: str | None = None,
        description: str | None = None,
        hook: TransitionHook | None = None,
        precheck: Callable[[Order], None] | None = None,
        delivery_hours: int | None = None,
    ) -> TransitionResult:
        try:
            order = await run_read(db, lambda: self._orders.get_by_id(order_id, db))
            if order is None:
                raise OrderNotFoundError(order_id)
            transition = authorize(operation, actor, order)
            target = check_order_state(operation, order)
            if operation in _CANCELLING:
                cancel_reason = validate_cancel_reason(cancel_reason)
            if precheck is not None:
                precheck(order)
        except AppError as exc:
            logger.info(
                "Transition rejected: order=%s op=%s actor=%s kind=%s reason=%s",
                order_id,
                operation.value,
                actor.user_id,
                exc.kind.value,
                exc.message,
            )
            raise

        change = self._build_change(operation, target, order, cancel_reason, delivery_hours)

        async def work() -> TransitionResult:
            updated = await self._orders.apply_transition(order.id, order.status, change, db)
            if updated is None:
                raise InvalidOrderStateError(
                    f"Order {order.order_number} changed status concurrently; reload and retry"
                )
            transactions = await self._move_funds(operation, order, db)
            if hook is not None:
                await hook(db, order, updated)
            event = await self._orders.append_timeline(
                order.id,
                transition.event.value,
                description or self._describe(operation, updated, actor),
                actor.user_id,
                db,
            )
            return TransitionResult(
                order=updated,
                previous_status=order.status,
                timeline_event=event,
                transactions=transactions,
            )

        result = await run_atomic(db, work)
        logger.info(
            "Order transition: order=%s op=%s %s->%s escrow=%s actor=%s entries=%d",
            order.id,
            operation.value,
            result.previous_status,
            result.order.status,
            result.order.escrow_status,
            actor.user_id,
            len(result.transactions),
        )
        event_type = (
            "DISPUTE_OPENED" if operation == OrderOperation.OPEN_DISPUTE else "STATUS_CHANGED"
        )
        await self._publish(result.order, event_type, result.previous_status, actor)
        return result

    def _build_change(
        self,
        operation: OrderOperation,
        target: OrderStatus,
        order: Order,
        cancel_reason: str | None,
        delivery_hours: int | None,
    ) -> StatusChange:
        escrow = EscrowStatus(order.escrow_status)
        deadline = None
        if operation == OrderOperation.CONFIRM_PAYMENT:
            escrow = EscrowStatus.HELD
            if target == OrderStatus.ACTIVE:
                deadline = hours_from_now(delivery_hours or settings.DEFAULT_DELIVERY_HOURS)
        elif operation in _COMPLETING:
            escrow = EscrowStatus.RELEASED
        elif operation in _CANCELLING:
            escrow = cancellation_escrow_status(order)
        return StatusChange(
            target=target,
            escrow_status=escrow,
            stamp_column=_STAMP_COLUMN[operation],
            cancel_reason=cancel_reason,
            delivery_deadline=deadline,
            expected_escrow_status=EscrowStatus(order.escrow_status),
        )

    async def _move_funds(
        self, operation: OrderOperation, order: Order, db: AsyncSession
    ) -> list[WalletTransaction]:
        # `order` is the pre-update snapshot; escrow decisions read its escrow_status.
        if operation == OrderOperation.CONFIRM_PAYMENT:
            return await hold_escrow(order, self._wallets, db)
        if operation in _COMPLETING:
            return await settle_completion(order, self._wallets, db)
        if operation in _CANCELLING:
            return await settle_cancellation(order, self._wallets, db)
        return []

    @staticmethod
    def _describe(operation: OrderOperation, order: Order, actor: Actor) -> str:
        who = actor.label
        if operation == OrderOperation.CONFIRM_PAYMENT:
            if order.status == OrderStatus.DELIVERED:
                return "Payment confirmed after delivery"
            due = order.delivery_deadline.isoformat() if order.delivery_deadline else "n/a"
            return f"Payment confirmed. Delivery due by {due}"
        if operation == OrderOperation.MARK_DELIVERED:
            return f"Order marked as delivered by {who}"
        if operation == OrderOperation.CONFIRM:
            return f"Order confirmed by {who}"
        if operation == OrderOperation.FORCE_COMPLETE:
            return f"Order force-completed by administrator {who}"
        if operation == OrderOperation.CANCEL:
            return f"Order cancelled by {who}: {order.cancel_reason}"
        if operation == OrderOperation.FORCE_CANCEL_REFUND:
            return f"Order cancelled and refunded by administrator {who}: {order.cancel_reason}"
        return f"Dispute opened by {who}"

    async def _publish(
        self, order: Order, event_type: str, previous_status: str | None, actor: Actor
    ) -> None:
        await self._publisher.publish(
            OrderEvent(
                event_type=event_type,
                order_id=order.id,
                order_number=order.order_number,
                buyer_id=order.buyer_id,
                seller_id=order.seller_id,
                status=order.status,
                previous_status=previous_status,
                actor_id=actor.user_id,
                payload={"escrow_status": order.escrow_status},
            )
        )


_engine: OrderLifecycleEngine | None = None


def get_lifecycle_engine() -> OrderLifecycleEngine:
    global _engine
    if _engine is None:
        _engine = OrderLifecycleEngine()
    return _engine
