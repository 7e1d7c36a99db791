"""DisputeRepository Protocol — interface contract for persistence layer."""
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.mk_dispute.domain.models import Dispute


class DisputeRepositoryProtocol(Protocol):
    async def insert(
        self,
        order_id: str,
        buyer_id: str,
        seller_id: str,
        initiator_id: str,
        reason: str,
        description: str,
        db: AsyncSession,
    ) -> Dispute: ...

    async def get_by_order(self, order_id: str, db: AsyncSession) -> Dispute | None: ...

    async def resolve_open(
        self, order_id: str, resolution: str, resolved_by: str, db: AsyncSession
    ) -> Dispute | None: ...

    async def list_open(self, limit: int, db: AsyncSession) -> list[Dispute]: ...
