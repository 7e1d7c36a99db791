# src/mk_order/application/schemas.py
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from src.mk_order.domain.models import Order, TimelineEvent


class CreateOrderRequest(BaseModel):
    seller_id: str = Field(..., min_length=1, max_length=64)
    listing_id: str = Field(..., min_length=1, max_length=64)
    unit_price: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    quantity: int = Field(..., ge=1, le=10_000)
    discount: Decimal = Field(Decimal("0.00"), ge=0, max_digits=12, decimal_places=2)


class CancelOrderRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=500)


class OrderResponse(BaseModel):
    id: str
    order_number: str
    buyer_id: str
    seller_id: str
    listing_id: str
    unit_price: Decimal
    quantity: int
    subtotal: Decimal
    discount: Decimal
    service_fee: Decimal
    platform_fee: Decimal
    seller_earnings: Decimal
    final_amount: Decimal
    status: str
    escrow_status: str
    cancel_reason: str | None = None
    delivery_deadline: datetime | None = None
    created_at: datetime | None = None
    paid_at: datetime | None = None
    delivered_at: datetime | None = None
    completed_at: datetime | None = None
    cancelled_at: datetime | None = None

    @classmethod
    def from_domain(cls, order: Order) -> "OrderResponse":
        return cls(
            id=order.id,
            order_number=order.order_number,
            buyer_id=order.buyer_id,
            seller_id=order.seller_id,
            listing_id=order.listing_id,
            unit_price=order.unit_price,
            quantity=order.quantity,
            subtotal=order.subtotal,
            discount=order.discount,
            service_fee=order.service_fee,
            platform_fee=order.platform_fee,
            seller_earnings=order.seller_earnings,
            final_amount=order.final_amount,
            status=order.status,
            escrow_status=order.escrow_status,
            cancel_reason=order.cancel_reason,
            delivery_deadline=order.delivery_deadline,
            created_at=order.created_at,
            paid_at=order.paid_at,
            delivered_at=order.delivered_at,
            completed_at=order.completed_at,
            cancelled_at=order.cancelled_at,
        )


class TimelineEventResponse(BaseModel):
    id: int
    event: str
    description: str
    actor_id: str | None
    created_at: datetime | None

    @classmethod
    def from_domain(cls, event: TimelineEvent) -> "TimelineEventResponse":
        return cls(
            id=event.id,
            event=event.event,
            description=event.description,
            actor_id=event.actor_id,
            created_at=event.created_at,
        )


class LedgerEffect(BaseModel):
    """One wallet movement caused by a transition."""
    user_id: str
    type: str
    balance_field: str
    amount: Decimal
    balance_after: Decimal


class TransitionResponse(BaseModel):
    order: OrderResponse
    previous_status: str
    timeline_event: TimelineEventResponse
    ledger_effects: list[LedgerEffect]


class OrderListResponse(BaseModel):
    orders: list[OrderResponse]
    next_cursor: str | None
    has_more: bool


class TimelineResponse(BaseModel):
    order_id: str
    events: list[TimelineEventResponse]
