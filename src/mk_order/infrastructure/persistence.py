# src/mk_order/infrastructure/persistence.py
"""OrderRepository — raw SQL persistence implementation."""
from typing import Any

from sqlalchemy import TextClause, text
from sqlalchemy.ext.asyncio import AsyncSession

from src.mk_common.errors import InternalError
from src.mk_order.domain.models import Order, StatusChange, TimelineEvent

# ---------------------------------------------------------------------------
# SQL statements
# ---------------------------------------------------------------------------

_SELECT_COLUMNS = """
    id, order_number, buyer_id, seller_id, listing_id,
    unit_price, quantity, subtotal, discount, service_fee,
    platform_fee, seller_earnings, final_amount,
    status, escrow_status, cancel_reason, delivery_deadline,
    created_at, paid_at, delivered_at, completed_at, cancelled_at, updated_at
"""

_INSERT_ORDER_SQL = text("""
    INSERT INTO orders (id, order_number, buyer_id, seller_id, listing_id,
        unit_price, quantity, subtotal, discount, service_fee,
        platform_fee, seller_earnings, final_amount, status, escrow_status,
        created_at, updated_at)
    VALUES (:id, :order_number, :buyer_id, :seller_id, :listing_id,
        :unit_price, :quantity, :subtotal, :discount, :service_fee,
        :platform_fee, :seller_earnings, :final_amount, :status, :escrow_status,
        COALESCE(CAST(:created_at AS TIMESTAMPTZ), NOW()), NOW())
""")

_GET_ORDER_BY_ID_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM orders WHERE id = :id
""")

_LIST_ORDERS_SQL_TEMPLATE = """
    SELECT {columns}
    FROM orders
    WHERE {party_column} = :user_id
      AND (CAST(:cursor_id AS TEXT) IS NULL OR id < :cursor_id)
      AND (CAST(:statuses_csv AS TEXT) IS NULL
           OR status = ANY(string_to_array(CAST(:statuses_csv AS TEXT), ',')))
    ORDER BY id DESC
    LIMIT :limit
"""

_LIST_AS_BUYER_SQL = text(
    _LIST_ORDERS_SQL_TEMPLATE.format(columns=_SELECT_COLUMNS, party_column="buyer_id")
)
_LIST_AS_SELLER_SQL = text(
    _LIST_ORDERS_SQL_TEMPLATE.format(columns=_SELECT_COLUMNS, party_column="seller_id")
)

# Conditional update: a losing concurrent transition matches zero rows. The
# escrow guard covers transitions that keep the status (payment after delivery).
_TRANSITION_SQL_TEMPLATE = """
    UPDATE orders
    SET status = :target,
        escrow_status = :escrow_status,
        {stamp}
        cancel_reason = COALESCE(CAST(:cancel_reason AS TEXT), cancel_reason),
        delivery_deadline = COALESCE(CAST(:delivery_deadline AS TIMESTAMPTZ), delivery_deadline),
        updated_at = NOW()
    WHERE id = :id AND status = :expected_status
      AND escrow_status = COALESCE(CAST(:expected_escrow_status AS TEXT), escrow_status)
    RETURNING {columns}
"""

_STAMP_COLUMNS = ("paid_at", "delivered_at", "completed_at", "cancelled_at")

_TRANSITION_SQL: dict[str | None, TextClause] = {
    column: text(
        _TRANSITION_SQL_TEMPLATE.format(
            stamp=f"{column} = NOW()," if column else "",
            columns=_SELECT_COLUMNS,
        )
    )
    for column in (*_STAMP_COLUMNS, None)
}

_INSERT_TIMELINE_SQL = text("""
    INSERT INTO order_timeline (order_id, event, description, actor_id)
    VALUES (:order_id, :event, :description, :actor_id)
    RETURNING id, order_id, event, description, actor_id, created_at
""")

_LIST_TIMELINE_SQL = text("""
    SELECT id, order_id, event, description, actor_id, created_at
    FROM order_timeline
    WHERE order_id = :order_id
    ORDER BY created_at ASC, id ASC
""")


# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_order(row: Any) -> Order:
    """Convert a DB result row to an Order domain object."""
    return Order(
        id=row.id,
        order_number=row.order_number,
        buyer_id=row.buyer_id,
        seller_id=row.seller_id,
        listing_id=row.listing_id,
        unit_price=row.unit_price,
        quantity=row.quantity,
        subtotal=row.subtotal,
        discount=row.discount,
        service_fee=row.service_fee,
        platform_fee=row.platform_fee,
        seller_earnings=row.seller_earnings,
        final_amount=row.final_amount,
        status=row.status,
        escrow_status=row.escrow_status,
        cancel_reason=row.cancel_reason,
        delivery_deadline=row.delivery_deadline,
        created_at=row.created_at,
        paid_at=row.paid_at,
        delivered_at=row.delivered_at,
        completed_at=row.completed_at,
        cancelled_at=row.cancelled_at,
        updated_at=row.updated_at,
    )


def _row_to_timeline(row: Any) -> TimelineEvent:
    return TimelineEvent(
        id=row.id,
        order_id=row.order_id,
        event=row.event,
        description=row.description,
        actor_id=row.actor_id,
        created_at=row.created_at,
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class OrderRepository:
    """Concrete implementation of OrderRepositoryProtocol using raw SQL."""

    async def save(self, order: Order, db: AsyncSession) -> None:
        await db.execute(
            _INSERT_ORDER_SQL,
            {
                "id": order.id,
                "order_number": order.order_number,
                "buyer_id": order.buyer_id,
                "seller_id": order.seller_id,
                "listing_id": order.listing_id,
                "unit_price": order.unit_price,
                "quantity": order.quantity,
                "subtotal": order.subtotal,
                "discount": order.discount,
                "service_fee": order.service_fee,
                "platform_fee": order.platform_fee,
                "seller_earnings": order.seller_earnings,
                "final_amount": order.final_amount,
                "status": order.status,
                "escrow_status": order.escrow_status,
                "created_at": order.created_at,
            },
        )

    async def get_by_id(self, order_id: str, db: AsyncSession) -> Order | None:
        result = await db.execute(_GET_ORDER_BY_ID_SQL, {"id": order_id})
        row = result.fetchone()
        return _row_to_order(row) if row else None

    async def apply_transition(
        self, order_id: str, expected_status: str, change: StatusChange, db: AsyncSession
    ) -> Order | None:
        """Write the transition iff the order still has expected_status (and escrow). None = lost race."""
        if change.stamp_column not in _TRANSITION_SQL:
            raise InternalError(f"Unknown timestamp column: {change.stamp_column}")
        result = await db.execute(
            _TRANSITION_SQL[change.stamp_column],
            {
                "id": order_id,
                "expected_status": expected_status,
                "target": change.target.value,
                "escrow_status": change.escrow_status.value,
                "cancel_reason": change.cancel_reason,
                "delivery_deadline": change.delivery_deadline,
                "expected_escrow_status": (
                    change.expected_escrow_status.value if change.expected_escrow_status else None
                ),
            },
        )
        row = result.fetchone()
        return _row_to_order(row) if row else None

    async def append_timeline(
        self,
        order_id: str,
        event: str,
        description: str,
        actor_id: str | None,
        db: AsyncSession,
    ) -> TimelineEvent:
        result = await db.execute(
            _INSERT_TIMELINE_SQL,
            {
                "order_id": order_id,
                "event": event,
                "description": description,
                "actor_id": actor_id,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Timeline insert returned no rows — this should never happen")
        return _row_to_timeline(row)

    async def list_timeline(self, order_id: str, db: AsyncSession) -> list[TimelineEvent]:
        result = await db.execute(_LIST_TIMELINE_SQL, {"order_id": order_id})
        return [_row_to_timeline(row) for row in result.fetchall()]

    async def list_by_party(
        self,
        user_id: str,
        as_seller: bool,
        statuses: list[str] | None,
        limit: int,
        cursor_id: str | None,
        db: AsyncSession,
    ) -> list[Order]:
        statuses_csv = ",".join(statuses) if statuses else None
        result = await db.execute(
            _LIST_AS_SELLER_SQL if as_seller else _LIST_AS_BUYER_SQL,
            {
                "user_id": user_id,
                "cursor_id": cursor_id,
                "limit": limit,
                "statuses_csv": statuses_csv,
            },
        )
        return [_row_to_order(row) for row in result.fetchall()]
