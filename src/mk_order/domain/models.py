"""Order domain model — pure dataclasses, no SQLAlchemy dependency."""
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from src.mk_common.enums import TERMINAL_ORDER_STATUSES, EscrowStatus, OrderStatus


@dataclass
class Order:
    id: str
    order_number: str
    buyer_id: str
    seller_id: str
    listing_id: str
    # Commercial fields: fixed at creation, never rewritten
    unit_price: Decimal
    quantity: int
    subtotal: Decimal
    discount: Decimal
    service_fee: Decimal
    platform_fee: Decimal
    seller_earnings: Decimal
    final_amount: Decimal
    # Lifecycle
    status: str = OrderStatus.PENDING.value
    escrow_status: str = EscrowStatus.PENDING.value
    cancel_reason: str | None = None
    delivery_deadline: datetime | None = None
    created_at: datetime | None = None
    paid_at: datetime | None = None
    delivered_at: datetime | None = None
    completed_at: datetime | None = None
    cancelled_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_ORDER_STATUSES

    @property
    def is_escrow_held(self) -> bool:
        return self.escrow_status == EscrowStatus.HELD

    def is_overdue(self, now: datetime) -> bool:
        """Seller missed the delivery deadline on a paid, undelivered order."""
        return (
            self.status == OrderStatus.ACTIVE
            and self.delivery_deadline is not None
            and now > self.delivery_deadline
        )


@dataclass
class TimelineEvent:
    id: int
    order_id: str
    event: str
    description: str
    actor_id: str | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class StatusChange:
    """Everything the conditional UPDATE writes for one transition."""
    target: OrderStatus
    escrow_status: EscrowStatus
    stamp_column: str | None = None   # paid_at / delivered_at / completed_at / cancelled_at
    cancel_reason: str | None = None
    delivery_deadline: datetime | None = None
    expected_escrow_status: EscrowStatus | None = None   # guard alongside the expected status
