# src/mk_admin/application/service.py
"""Admin application service — override operations and financial reporting.

Force operations are ordinary engine transitions performed by an ADMIN actor,
so escrow release/refund, ledger entries and timeline apply exactly as for a
buyer confirm or seller cancel.
"""
from decimal import Decimal
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.mk_clearing.domain.escrow import ORDER_REF
from src.mk_clearing.domain.reconciliation import verify_ledger_reconciliation
from src.mk_common.actor import Actor
from src.mk_common.database import run_read
from src.mk_common.enums import DisputeResolution
from src.mk_common.errors import OrderNotFoundError
from src.mk_common.money import to_money
from src.mk_dispute.application.service import DisputeApplicationService
from src.mk_order.application.engine import OrderLifecycleEngine, get_lifecycle_engine
from src.mk_order.application.schemas import TransitionResponse
from src.mk_order.application.service import to_transition_response
from src.mk_order.domain.repository import OrderRepositoryProtocol
from src.mk_order.infrastructure.persistence import OrderRepository
from src.mk_wallet.application.schemas import OrderLedgerResponse, WalletTransactionItem
from src.mk_wallet.domain.repository import WalletRepositoryProtocol
from src.mk_wallet.infrastructure.persistence import WalletRepository

_FINANCE_SUMMARY_SQL = text("""
    SELECT
        COUNT(*) AS completed_orders,
        COALESCE(SUM(subtotal), 0) AS gross_volume,
        COALESCE(SUM(discount), 0) AS total_discounts,
        COALESCE(SUM(service_fee), 0) AS buyer_service_fees,
        COALESCE(SUM(platform_fee), 0) AS platform_commission,
        COALESCE(SUM(seller_earnings), 0) AS seller_earnings
    FROM orders
    WHERE status = 'COMPLETED'
""")

_WITHDRAWAL_FEES_SQL = text("""
    SELECT COALESCE(SUM(fee), 0) FROM wallet_transactions WHERE type = 'WITHDRAWAL'
""")

_HELD_ESCROW_SQL = text("""
    SELECT COUNT(*) AS orders, COALESCE(SUM(seller_earnings), 0) AS amount
    FROM orders WHERE escrow_status = 'HELD'
""")


class AdminService:
    def __init__(
        self,
        engine: OrderLifecycleEngine | None = None,
        disputes: DisputeApplicationService | None = None,
        order_repo: OrderRepositoryProtocol | None = None,
        wallet_repo: WalletRepositoryProtocol | None = None,
    ) -> None:
        self._engine = engine
        self._disputes = disputes or DisputeApplicationService(engine=engine)
        self._orders: OrderRepositoryProtocol = order_repo or OrderRepository()
        self._wallets: WalletRepositoryProtocol = wallet_repo or WalletRepository()

    @property
    def engine(self) -> OrderLifecycleEngine:
        return self._engine or get_lifecycle_engine()

    async def confirm_payment(
        self,
        db: AsyncSession,
        order_id: str,
        admin: Actor,
        delivery_hours: int | None = None,
    ) -> TransitionResponse:
        result = await self.engine.confirm_payment(db, order_id, admin, delivery_hours)
        return to_transition_response(result)

    async def force_complete(
        self, db: AsyncSession, order_id: str, admin: Actor
    ) -> TransitionResponse:
        hook = self._disputes.resolution_hook(DisputeResolution.RELEASED_TO_SELLER, admin)
        result = await self.engine.force_complete(db, order_id, admin, hook=hook)
        return to_transition_response(result)

    async def force_cancel_refund(
        self, db: AsyncSession, order_id: str, admin: Actor, reason: str | None = None
    ) -> TransitionResponse:
        hook = self._disputes.resolution_hook(DisputeResolution.REFUNDED_TO_BUYER, admin)
        result = await self.engine.force_cancel_refund(db, order_id, admin, reason, hook=hook)
        return to_transition_response(result)

    async def get_financial_summary(self, db: AsyncSession) -> dict[str, Any]:
        async def read() -> tuple[Any, Any, Any]:
            row = (await db.execute(_FINANCE_SUMMARY_SQL)).fetchone()
            withdrawal_fees = (await db.execute(_WITHDRAWAL_FEES_SQL)).scalar_one()
            held = (await db.execute(_HELD_ESCROW_SQL)).fetchone()
            return row, withdrawal_fees, held

        row, withdrawal_fees, held = await run_read(db, read)
        platform_commission = to_money(row.platform_commission) if row else Decimal("0.00")
        service_fees = to_money(row.buyer_service_fees) if row else Decimal("0.00")
        fees = to_money(withdrawal_fees)
        return {
            "completed_orders": int(row.completed_orders) if row else 0,
            "gross_volume": str(to_money(row.gross_volume)) if row else "0.00",
            "total_discounts": str(to_money(row.total_discounts)) if row else "0.00",
            "buyer_service_fees": str(service_fees),
            "platform_commission": str(platform_commission),
            "seller_earnings": str(to_money(row.seller_earnings)) if row else "0.00",
            "withdrawal_fees": str(fees),
            "platform_revenue": str(platform_commission + service_fees + fees),
            "escrow_held_orders": int(held.orders) if held else 0,
            "escrow_held_amount": str(to_money(held.amount)) if held else "0.00",
        }

    async def verify_ledger(self, db: AsyncSession) -> dict[str, object]:
        violations = await run_read(db, lambda: verify_ledger_reconciliation(db))
        return {"ok": len(violations) == 0, "violations": violations}

    async def get_order_ledger(self, db: AsyncSession, order_id: str) -> OrderLedgerResponse:
        order = await run_read(db, lambda: self._orders.get_by_id(order_id, db))
        if order is None:
            raise OrderNotFoundError(order_id)
        entries = await run_read(
            db, lambda: self._wallets.list_transactions_by_reference(db, ORDER_REF, order.id)
        )
        return OrderLedgerResponse(
            order_id=order.id,
            entries=[WalletTransactionItem.from_domain(tx) for tx in entries],
        )
