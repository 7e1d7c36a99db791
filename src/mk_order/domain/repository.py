# src/mk_order/domain/repository.py
"""OrderRepository Protocol — interface contract for persistence layer.

The timeline is insert/select only; commercial fields have no update path.
"""
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.mk_order.domain.models import Order, StatusChange, TimelineEvent


class OrderRepositoryProtocol(Protocol):
    async def save(self, order: Order, db: AsyncSession) -> None: ...

    async def get_by_id(self, order_id: str, db: AsyncSession) -> Order | None: ...

    async def apply_transition(
        self, order_id: str, expected_status: str, change: StatusChange, db: AsyncSession
    ) -> Order | None: ...

    async def append_timeline(
        self,
        order_id: str,
        event: str,
        description: str,
        actor_id: str | None,
        db: AsyncSession,
    ) -> TimelineEvent: ...

    async def list_timeline(self, order_id: str, db: AsyncSession) -> list[TimelineEvent]: ...

    async def list_by_party(
        self,
        user_id: str,
        as_seller: bool,
        statuses: list[str] | None,
        limit: int,
        cursor_id: str | None,
        db: AsyncSession,
    ) -> list[Order]: ...
