"""DisputeApplicationService on a real engine with mocked repositories."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError

from src.mk_common.enums import DisputeResolution, DisputeReason
from src.mk_common.errors import (
    DisputeNotFoundError,
    InvalidDisputeError,
    InvalidOrderStateError,
    OrderActionForbiddenError,
    StorageFailureError,
)
from src.mk_dispute.application.service import DisputeApplicationService, validate_dispute
from src.mk_dispute.domain.models import Dispute
from src.mk_order.application.engine import OrderLifecycleEngine
from tests.unit.factories import ADMIN, BUYER, SELLER, STRANGER, make_event, make_order

DESCRIPTION = "Seller never sent the account credentials."


def _dispute(**overrides: object) -> Dispute:
    fields: dict[str, object] = {
        "id": 11,
        "order_id": "1001",
        "buyer_id": "buyer-1",
        "seller_id": "seller-1",
        "initiator_id": "buyer-1",
        "reason": "ITEM_NOT_RECEIVED",
        "description": DESCRIPTION,
        "created_at": datetime.now(UTC),
    }
    fields.update(overrides)
    return Dispute(**fields)  # type: ignore[arg-type]


@pytest.fixture
def orders() -> AsyncMock:
    repo = AsyncMock()
    repo.get_by_id.return_value = make_order("DELIVERED", "HELD")
    repo.apply_transition.return_value = make_order("DISPUTED", "HELD")
    repo.append_timeline.return_value = make_event("DISPUTE_OPENED")
    return repo


@pytest.fixture
def wallets() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def disputes() -> AsyncMock:
    repo = AsyncMock()
    repo.insert.return_value = _dispute()
    return repo


@pytest.fixture
def svc(orders: AsyncMock, wallets: AsyncMock, disputes: AsyncMock) -> DisputeApplicationService:
    engine = OrderLifecycleEngine(orders, wallets, AsyncMock())
    return DisputeApplicationService(engine=engine, repo=disputes, order_repo=orders)


class TestValidateDispute:
    def test_valid(self) -> None:
        code, text = validate_dispute("LATE_DELIVERY", f"  {DESCRIPTION}  ")
        assert code == DisputeReason.LATE_DELIVERY
        assert text == DESCRIPTION

    def test_unknown_reason_lists_allowed(self) -> None:
        with pytest.raises(InvalidDisputeError, match="ITEM_NOT_RECEIVED"):
            validate_dispute("BORED", DESCRIPTION)

    @pytest.mark.parametrize("description", ["too short", "x" * 2001, "          "])
    def test_description_length(self, description: str) -> None:
        with pytest.raises(InvalidDisputeError, match="10-2000"):
            validate_dispute("OTHER", description)


class TestOpenDispute:
    async def test_inserts_dispute_in_same_commit(
        self, svc: DisputeApplicationService, orders: AsyncMock, wallets: AsyncMock, disputes: AsyncMock
    ) -> None:
        db = AsyncMock()
        resp = await svc.open_dispute(db, "1001", "ITEM_NOT_RECEIVED", DESCRIPTION, BUYER)

        disputes.insert.assert_awaited_once_with(
            "1001", "buyer-1", "seller-1", "buyer-1", "ITEM_NOT_RECEIVED", DESCRIPTION, db
        )
        assert resp.dispute.reason == "ITEM_NOT_RECEIVED"
        assert resp.transition.order.status == "DISPUTED"
        assert resp.transition.ledger_effects == []
        wallets.adjust_balance.assert_not_awaited()
        wallets.adjust_pending.assert_not_awaited()
        assert orders.append_timeline.call_args.args[2] == "Dispute opened by alice: ITEM_NOT_RECEIVED"
        db.commit.assert_awaited_once()

    async def test_bad_reason_rejected_before_write(
        self, svc: DisputeApplicationService, orders: AsyncMock, disputes: AsyncMock
    ) -> None:
        with pytest.raises(InvalidDisputeError):
            await svc.open_dispute(AsyncMock(), "1001", "NOPE", DESCRIPTION, BUYER)
        orders.apply_transition.assert_not_awaited()
        disputes.insert.assert_not_awaited()

    async def test_seller_cannot_open(self, svc: DisputeApplicationService) -> None:
        with pytest.raises(OrderActionForbiddenError):
            await svc.open_dispute(AsyncMock(), "1001", "OTHER", DESCRIPTION, SELLER)

    async def test_second_dispute_rejected(
        self, svc: DisputeApplicationService, orders: AsyncMock
    ) -> None:
        orders.get_by_id.return_value = make_order("DISPUTED", "HELD")
        with pytest.raises(InvalidOrderStateError, match="already open"):
            await svc.open_dispute(AsyncMock(), "1001", "OTHER", DESCRIPTION, BUYER)

    async def test_unpaid_order_cannot_be_disputed(
        self, svc: DisputeApplicationService, orders: AsyncMock
    ) -> None:
        orders.get_by_id.return_value = make_order("PENDING", "PENDING")
        with pytest.raises(InvalidOrderStateError, match="not been paid"):
            await svc.open_dispute(AsyncMock(), "1001", "OTHER", DESCRIPTION, BUYER)


class TestResolutionHook:
    async def test_resolves_when_order_was_disputed(
        self, svc: DisputeApplicationService, disputes: AsyncMock
    ) -> None:
        disputes.resolve_open.return_value = _dispute(status="RESOLVED")
        hook = svc.resolution_hook(DisputeResolution.REFUNDED_TO_BUYER, ADMIN)
        db = AsyncMock()

        await hook(db, make_order("DISPUTED", "HELD"), make_order("CANCELLED", "REFUNDED"))

        disputes.resolve_open.assert_awaited_once_with("1001", "REFUNDED_TO_BUYER", "admin-1", db)

    async def test_noop_for_undisputed_order(
        self, svc: DisputeApplicationService, disputes: AsyncMock
    ) -> None:
        hook = svc.resolution_hook(DisputeResolution.RELEASED_TO_SELLER, ADMIN)
        await hook(AsyncMock(), make_order("DELIVERED", "HELD"), make_order("COMPLETED", "RELEASED"))
        disputes.resolve_open.assert_not_awaited()

    async def test_missing_dispute_row_is_tolerated(
        self, svc: DisputeApplicationService, disputes: AsyncMock
    ) -> None:
        disputes.resolve_open.return_value = None
        hook = svc.resolution_hook(DisputeResolution.RELEASED_TO_SELLER, ADMIN)
        await hook(AsyncMock(), make_order("DISPUTED", "HELD"), make_order("COMPLETED", "RELEASED"))


class TestReads:
    async def test_get_dispute(self, svc: DisputeApplicationService, disputes: AsyncMock) -> None:
        disputes.get_by_order.return_value = _dispute()
        resp = await svc.get_dispute(AsyncMock(), "1001", SELLER)
        assert resp.id == 11

    async def test_get_dispute_stranger(self, svc: DisputeApplicationService) -> None:
        with pytest.raises(OrderActionForbiddenError):
            await svc.get_dispute(AsyncMock(), "1001", STRANGER)

    async def test_get_dispute_missing(
        self, svc: DisputeApplicationService, disputes: AsyncMock
    ) -> None:
        disputes.get_by_order.return_value = None
        with pytest.raises(DisputeNotFoundError):
            await svc.get_dispute(AsyncMock(), "1001", BUYER)

    async def test_list_open(self, svc: DisputeApplicationService, disputes: AsyncMock) -> None:
        disputes.list_open.return_value = [_dispute(), _dispute(id=12, order_id="1002")]
        resp = await svc.list_open(AsyncMock(), 50)
        assert [d.id for d in resp.disputes] == [11, 12]

    async def test_read_failure_is_storage_failure(
        self, svc: DisputeApplicationService, orders: AsyncMock
    ) -> None:
        orders.get_by_id.side_effect = OperationalError("SELECT", {}, Exception("down"))
        db = AsyncMock()
        with pytest.raises(StorageFailureError):
            await svc.get_dispute(db, "1001", BUYER)
        db.rollback.assert_awaited_once()
