"""AdminService force operations and financial reporting."""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from src.mk_admin.application.service import AdminService
from src.mk_common.enums import DisputeResolution
from src.mk_common.errors import OrderNotFoundError, StorageFailureError
from src.mk_order.application.engine import TransitionResult
from tests.unit.factories import ADMIN, make_event, make_order, make_tx


def _result(status: str, escrow: str) -> TransitionResult:
    return TransitionResult(
        order=make_order(status, escrow),
        previous_status="DISPUTED",
        timeline_event=make_event("ORDER_COMPLETED"),
    )


class TestForceOperations:
    async def test_force_complete_passes_release_hook(self) -> None:
        engine = AsyncMock()
        engine.force_complete.return_value = _result("COMPLETED", "RELEASED")
        disputes = MagicMock()
        svc = AdminService(engine=engine, disputes=disputes)
        db = AsyncMock()

        resp = await svc.force_complete(db, "1001", ADMIN)

        disputes.resolution_hook.assert_called_once_with(DisputeResolution.RELEASED_TO_SELLER, ADMIN)
        engine.force_complete.assert_awaited_once_with(
            db, "1001", ADMIN, hook=disputes.resolution_hook.return_value
        )
        assert resp.order.status == "COMPLETED"
        assert resp.previous_status == "DISPUTED"

    async def test_force_cancel_refund_passes_refund_hook(self) -> None:
        engine = AsyncMock()
        engine.force_cancel_refund.return_value = _result("CANCELLED", "REFUNDED")
        disputes = MagicMock()
        svc = AdminService(engine=engine, disputes=disputes)
        db = AsyncMock()

        await svc.force_cancel_refund(db, "1001", ADMIN, "Seller unreachable")

        disputes.resolution_hook.assert_called_once_with(DisputeResolution.REFUNDED_TO_BUYER, ADMIN)
        engine.force_cancel_refund.assert_awaited_once_with(
            db, "1001", ADMIN, "Seller unreachable", hook=disputes.resolution_hook.return_value
        )

    async def test_confirm_payment(self) -> None:
        engine = AsyncMock()
        engine.confirm_payment.return_value = _result("ACTIVE", "HELD")
        svc = AdminService(engine=engine, disputes=MagicMock())
        db = AsyncMock()

        resp = await svc.confirm_payment(db, "1001", ADMIN, 48)

        engine.confirm_payment.assert_awaited_once_with(db, "1001", ADMIN, 48)
        assert resp.order.escrow_status == "HELD"


class TestFinancialSummary:
    async def test_revenue_is_commission_plus_fees(self) -> None:
        summary = MagicMock()
        summary.completed_orders = 3
        summary.gross_volume = Decimal("60.00")
        summary.total_discounts = Decimal("5.00")
        summary.buyer_service_fees = Decimal("3.15")
        summary.platform_commission = Decimal("8.40")
        summary.seller_earnings = Decimal("51.60")
        fees = MagicMock()
        fees.scalar_one.return_value = Decimal("6.00")
        held = MagicMock()
        held.orders = 1
        held.amount = Decimal("17.20")

        first = MagicMock()
        first.fetchone.return_value = summary
        third = MagicMock()
        third.fetchone.return_value = held
        db = AsyncMock()
        db.execute.side_effect = [first, fees, third]

        result = await AdminService(engine=AsyncMock(), disputes=MagicMock()).get_financial_summary(db)

        assert result["completed_orders"] == 3
        assert result["gross_volume"] == "60.00"
        assert result["platform_commission"] == "8.40"
        assert result["withdrawal_fees"] == "6.00"
        assert result["platform_revenue"] == "17.55"
        assert result["escrow_held_orders"] == 1
        assert result["escrow_held_amount"] == "17.20"


class TestVerifyLedger:
    async def test_ok_when_no_violations(self) -> None:
        with patch(
            "src.mk_admin.application.service.verify_ledger_reconciliation",
            AsyncMock(return_value=[]),
        ):
            result = await AdminService(engine=AsyncMock(), disputes=MagicMock()).verify_ledger(
                AsyncMock()
            )
        assert result == {"ok": True, "violations": []}

    async def test_reports_violations(self) -> None:
        with patch(
            "src.mk_admin.application.service.verify_ledger_reconciliation",
            AsyncMock(return_value=["escrow-held: user seller-1 pending_balance=1.00 != held earnings 0"]),
        ):
            result = await AdminService(engine=AsyncMock(), disputes=MagicMock()).verify_ledger(
                AsyncMock()
            )
        assert result["ok"] is False
        assert len(result["violations"]) == 1  # type: ignore[arg-type]


class TestOrderLedger:
    async def test_lists_entries_for_order(self) -> None:
        orders = AsyncMock()
        orders.get_by_id.return_value = make_order("COMPLETED", "RELEASED")
        wallets = AsyncMock()
        wallets.list_transactions_by_reference.return_value = [
            make_tx("seller-1", "ESCROW_HOLD", "17.20", field="PENDING", tx_id=1),
            make_tx("seller-1", "ESCROW_RELEASE", "-17.20", "17.20", field="PENDING", tx_id=2),
            make_tx("seller-1", "SALE", "17.20", tx_id=3),
        ]
        svc = AdminService(
            engine=AsyncMock(), disputes=MagicMock(), order_repo=orders, wallet_repo=wallets
        )
        db = AsyncMock()

        result = await svc.get_order_ledger(db, "1001")

        wallets.list_transactions_by_reference.assert_awaited_once_with(db, "ORDER", "1001")
        assert result.order_id == "1001"
        assert [e.type for e in result.entries] == ["ESCROW_HOLD", "ESCROW_RELEASE", "SALE"]
        assert {e.user_id for e in result.entries} == {"seller-1"}

    async def test_unknown_order(self) -> None:
        orders = AsyncMock()
        orders.get_by_id.return_value = None
        wallets = AsyncMock()
        svc = AdminService(
            engine=AsyncMock(), disputes=MagicMock(), order_repo=orders, wallet_repo=wallets
        )
        with pytest.raises(OrderNotFoundError):
            await svc.get_order_ledger(AsyncMock(), "missing")
        wallets.list_transactions_by_reference.assert_not_awaited()

    async def test_read_failure_is_storage_failure(self) -> None:
        orders = AsyncMock()
        orders.get_by_id.side_effect = OperationalError("SELECT", {}, Exception("down"))
        svc = AdminService(
            engine=AsyncMock(), disputes=MagicMock(), order_repo=orders, wallet_repo=AsyncMock()
        )
        db = AsyncMock()
        with pytest.raises(StorageFailureError):
            await svc.get_order_ledger(db, "1001")
        db.rollback.assert_awaited_once()
