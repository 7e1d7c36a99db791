"""WalletApplicationService — thin composition layer over WalletRepository.

Mutations (open_wallet, deposit, withdraw) commit through run_atomic;
reads run without an explicit transaction.
"""

import logging
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.mk_clearing.domain.fee import FeeSchedule, calculate_withdrawal
from src.mk_common.database import run_atomic, run_read
from src.mk_common.enums import WalletTransactionType
from src.mk_common.errors import InvalidAmountError, WalletNotFoundError
from src.mk_common.money import to_money
from src.mk_wallet.application.schemas import (
    DepositResponse,
    TransactionListResponse,
    WalletResponse,
    WalletTransactionItem,
    WithdrawResponse,
    cursor_decode,
    cursor_encode,
)
from src.mk_wallet.domain.models import Wallet, WalletTransaction
from src.mk_wallet.domain.repository import WalletRepositoryProtocol
from src.mk_wallet.infrastructure.persistence import WalletRepository

logger = logging.getLogger(__name__)

DEPOSIT_REF = "DEPOSIT"
WITHDRAWAL_REF = "WITHDRAWAL"


class WalletApplicationService:
    def __init__(self, repo: WalletRepositoryProtocol | None = None) -> None:
        self._repo: WalletRepositoryProtocol = repo or WalletRepository()

    async def open_wallet(self, db: AsyncSession, user_id: str) -> WalletResponse:
        """Create the caller's wallet if missing; returns the existing one otherwise."""
        wallet = await run_atomic(db, lambda: self._repo.create_wallet(db, user_id))
        return WalletResponse.from_domain(wallet)

    async def get_wallet(self, db: AsyncSession, user_id: str) -> WalletResponse:
        wallet = await run_read(db, lambda: self._repo.get_wallet(db, user_id))
        if wallet is None:
            raise WalletNotFoundError(user_id)
        return WalletResponse.from_domain(wallet)

    async def deposit(
        self,
        db: AsyncSession,
        user_id: str,
        amount: Decimal,
        reference_id: str | None = None,
    ) -> DepositResponse:
        amount = to_money(amount)
        if amount <= 0:
            raise InvalidAmountError(f"deposit must be positive, got {amount}")

        async def work() -> tuple[Wallet, WalletTransaction]:
            await self._repo.create_wallet(db, user_id)
            return await self._repo.adjust_balance(
                db,
                user_id,
                amount,
                WalletTransactionType.DEPOSIT,
                DEPOSIT_REF,
                reference_id,
                f"Deposit of {amount}",
            )

        wallet, entry = await run_atomic(db, work)
        logger.info("Deposit: user=%s amount=%s tx=%s", user_id, amount, entry.id)
        return DepositResponse(balance=wallet.balance, deposited=amount, transaction_id=entry.id)

    async def withdraw(
        self,
        db: AsyncSession,
        user_id: str,
        amount: Decimal,
        schedule: FeeSchedule | None = None,
    ) -> WithdrawResponse:
        """Debit the full amount; the payout is amount - fee, the fee is recorded on the entry."""
        amount = to_money(amount)
        fee, net = calculate_withdrawal(amount, schedule or FeeSchedule.from_settings(settings))
        if net <= 0:
            raise InvalidAmountError(f"withdrawal of {amount} does not cover the {fee} fee")

        wallet, entry = await run_atomic(
            db,
            lambda: self._repo.adjust_balance(
                db,
                user_id,
                -amount,
                WalletTransactionType.WITHDRAWAL,
                WITHDRAWAL_REF,
                None,
                f"Withdrawal of {amount} (fee {fee}, payout {net})",
                fee=fee,
            ),
        )
        logger.info(
            "Withdrawal: user=%s amount=%s fee=%s net=%s tx=%s",
            user_id,
            amount,
            fee,
            net,
            entry.id,
        )
        return WithdrawResponse(
            balance=wallet.balance,
            withdrawn=amount,
            fee=fee,
            net_amount=net,
            transaction_id=entry.id,
        )

    async def list_transactions(
        self,
        db: AsyncSession,
        user_id: str,
        cursor: str | None,
        limit: int,
        tx_type: str | None,
    ) -> TransactionListResponse:
        cursor_id = cursor_decode(cursor)
        # Fetch limit+1 to detect has_more without a COUNT(*) query
        entries = await run_read(
            db, lambda: self._repo.list_transactions(db, user_id, cursor_id, limit + 1, tx_type)
        )
        has_more = len(entries) > limit
        page = entries[:limit]
        next_cursor = cursor_encode(page[-1].id) if has_more and page else None
        return TransactionListResponse(
            items=[WalletTransactionItem.from_domain(e) for e in page],
            next_cursor=next_cursor,
            has_more=has_more,
        )
