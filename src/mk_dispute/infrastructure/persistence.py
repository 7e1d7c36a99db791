"""DisputeRepository — raw SQL persistence implementation.

Callers own the transaction; disputes are written inside the order
transition's commit unit.
"""
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.mk_common.errors import InternalError
from src.mk_dispute.domain.models import Dispute

_COLUMNS = """
    id, order_id, buyer_id, seller_id, initiator_id, reason, description,
    status, resolution, resolved_by, created_at, resolved_at
"""

_INSERT_SQL = text(f"""
    INSERT INTO disputes (order_id, buyer_id, seller_id, initiator_id, reason, description)
    VALUES (:order_id, :buyer_id, :seller_id, :initiator_id, :reason, :description)
    RETURNING {_COLUMNS}
""")

_GET_BY_ORDER_SQL = text(f"""
    SELECT {_COLUMNS} FROM disputes WHERE order_id = :order_id
""")

_RESOLVE_OPEN_SQL = text(f"""
    UPDATE disputes
    SET status = 'RESOLVED',
        resolution = :resolution,
        resolved_by = :resolved_by,
        resolved_at = NOW()
    WHERE order_id = :order_id AND status = 'OPEN'
    RETURNING {_COLUMNS}
""")

_LIST_OPEN_SQL = text(f"""
    SELECT {_COLUMNS} FROM disputes
    WHERE status = 'OPEN'
    ORDER BY created_at ASC, id ASC
    LIMIT :limit
""")


def _row_to_dispute(row: Any) -> Dispute:
    return Dispute(
        id=row.id,
        order_id=row.order_id,
        buyer_id=row.buyer_id,
        seller_id=row.seller_id,
        initiator_id=row.initiator_id,
        reason=row.reason,
        description=row.description,
        status=row.status,
        resolution=row.resolution,
        resolved_by=row.resolved_by,
        created_at=row.created_at,
        resolved_at=row.resolved_at,
    )


class DisputeRepository:
    async def insert(
        self,
        order_id: str,
        buyer_id: str,
        seller_id: str,
        initiator_id: str,
        reason: str,
        description: str,
        db: AsyncSession,
    ) -> Dispute:
        result = await db.execute(
            _INSERT_SQL,
            {
                "order_id": order_id,
                "buyer_id": buyer_id,
                "seller_id": seller_id,
                "initiator_id": initiator_id,
                "reason": reason,
                "description": description,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Dispute insert returned no rows")
        return _row_to_dispute(row)

    async def get_by_order(self, order_id: str, db: AsyncSession) -> Dispute | None:
        result = await db.execute(_GET_BY_ORDER_SQL, {"order_id": order_id})
        row = result.fetchone()
        return _row_to_dispute(row) if row else None

    async def resolve_open(
        self, order_id: str, resolution: str, resolved_by: str, db: AsyncSession
    ) -> Dispute | None:
        """Close the open dispute for order_id. None when there is none open."""
        result = await db.execute(
            _RESOLVE_OPEN_SQL,
            {"order_id": order_id, "resolution": resolution, "resolved_by": resolved_by},
        )
        row = result.fetchone()
        return _row_to_dispute(row) if row else None

    async def list_open(self, limit: int, db: AsyncSession) -> list[Dispute]:
        result = await db.execute(_LIST_OPEN_SQL, {"limit": limit})
        return [_row_to_dispute(row) for row in result.fetchall()]
