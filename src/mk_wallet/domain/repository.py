"""Repository Protocol — dependency inversion for testability.

Unit tests inject a mock that conforms to this Protocol.
Infrastructure layer provides the real implementation.

There is deliberately no update or delete method for wallet transactions:
the ledger is append-only at this seam.
"""

from decimal import Decimal
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.mk_wallet.domain.models import Wallet, WalletTransaction


class WalletRepositoryProtocol(Protocol):
    async def get_wallet(self, db: AsyncSession, user_id: str) -> Wallet | None: ...

    async def create_wallet(self, db: AsyncSession, user_id: str) -> Wallet: ...

    async def adjust_balance(
        self,
        db: AsyncSession,
        user_id: str,
        amount: Decimal,
        tx_type: str,
        ref_type: str | None,
        ref_id: str | None,
        description: str,
        fee: Decimal = ...,
    ) -> tuple[Wallet, WalletTransaction]: ...

    async def adjust_pending(
        self,
        db: AsyncSession,
        user_id: str,
        amount: Decimal,
        tx_type: str,
        ref_type: str | None,
        ref_id: str | None,
        description: str,
    ) -> tuple[Wallet, WalletTransaction]: ...

    async def list_transactions(
        self,
        db: AsyncSession,
        user_id: str,
        cursor_id: int | None,
        limit: int,
        tx_type: str | None,
    ) -> list[WalletTransaction]: ...

    async def list_transactions_by_reference(
        self, db: AsyncSession, ref_type: str, ref_id: str
    ) -> list[WalletTransaction]: ...
