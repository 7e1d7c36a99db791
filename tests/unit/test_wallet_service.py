"""Unit tests for WalletApplicationService with a mocked repository."""

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from src.mk_clearing.domain.fee import FeeSchedule
from src.mk_common.enums import WalletTransactionType
from src.mk_common.errors import InsufficientBalanceError, InvalidAmountError, WalletNotFoundError
from src.mk_wallet.application.schemas import cursor_decode, cursor_encode
from src.mk_wallet.application.service import WalletApplicationService
from tests.unit.factories import make_tx, make_wallet

SCHEDULE = FeeSchedule(
    buyer_service_percent=Decimal("0.03"),
    buyer_service_flat=Decimal("0.50"),
    seller_commission_percent=Decimal("0.10"),
    withdrawal_percent=Decimal("0.04"),
    withdrawal_flat=Decimal("2.00"),
)


@pytest.fixture
def repo() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def svc(repo: AsyncMock) -> WalletApplicationService:
    return WalletApplicationService(repo=repo)


class TestGetWallet:
    async def test_returns_display_fields(self, svc: WalletApplicationService, repo: AsyncMock) -> None:
        repo.get_wallet.return_value = make_wallet("u1", "1500.00", "17.20")
        resp = await svc.get_wallet(AsyncMock(), "u1")
        assert resp.balance_display == "$1,500.00"
        assert resp.total_balance == Decimal("1517.20")

    async def test_missing(self, svc: WalletApplicationService, repo: AsyncMock) -> None:
        repo.get_wallet.return_value = None
        with pytest.raises(WalletNotFoundError):
            await svc.get_wallet(AsyncMock(), "u1")


class TestDeposit:
    async def test_credits_balance(self, svc: WalletApplicationService, repo: AsyncMock) -> None:
        db = AsyncMock()
        repo.adjust_balance.return_value = (
            make_wallet("u1", "50.00"),
            make_tx("u1", "DEPOSIT", "50.00", tx_id=7),
        )
        resp = await svc.deposit(db, "u1", Decimal("50"), reference_id="pi_123")

        repo.create_wallet.assert_awaited_once_with(db, "u1")
        repo.adjust_balance.assert_awaited_once_with(
            db,
            "u1",
            Decimal("50.00"),
            WalletTransactionType.DEPOSIT,
            "DEPOSIT",
            "pi_123",
            "Deposit of 50.00",
        )
        assert resp.balance == Decimal("50.00")
        assert resp.transaction_id == 7
        db.commit.assert_awaited_once()

    async def test_non_positive_rejected(self, svc: WalletApplicationService, repo: AsyncMock) -> None:
        with pytest.raises(InvalidAmountError):
            await svc.deposit(AsyncMock(), "u1", Decimal("0"))
        repo.adjust_balance.assert_not_awaited()


class TestWithdraw:
    async def test_debits_full_amount_and_records_fee(
        self, svc: WalletApplicationService, repo: AsyncMock
    ) -> None:
        db = AsyncMock()
        repo.adjust_balance.return_value = (
            make_wallet("u1", "0.00"),
            make_tx("u1", "WITHDRAWAL", "-100.00", before="100.00", fee="6.00", tx_id=9),
        )
        resp = await svc.withdraw(db, "u1", Decimal("100.00"), schedule=SCHEDULE)

        args = repo.adjust_balance.call_args
        assert args.args[2] == Decimal("-100.00")
        assert args.args[3] == WalletTransactionType.WITHDRAWAL
        assert args.kwargs["fee"] == Decimal("6.00")
        assert resp.fee == Decimal("6.00")
        assert resp.net_amount == Decimal("94.00")
        assert resp.withdrawn == Decimal("100.00")
        assert resp.balance == Decimal("0.00")

    async def test_amount_not_covering_fee(self, svc: WalletApplicationService, repo: AsyncMock) -> None:
        with pytest.raises(InvalidAmountError, match="fee"):
            await svc.withdraw(AsyncMock(), "u1", Decimal("2.00"), schedule=SCHEDULE)
        repo.adjust_balance.assert_not_awaited()

    async def test_insufficient_balance_rolls_back(
        self, svc: WalletApplicationService, repo: AsyncMock
    ) -> None:
        db = AsyncMock()
        repo.adjust_balance.side_effect = InsufficientBalanceError(Decimal("100.00"), Decimal("20.00"))
        with pytest.raises(InsufficientBalanceError):
            await svc.withdraw(db, "u1", Decimal("100.00"), schedule=SCHEDULE)
        db.rollback.assert_awaited_once()
        db.commit.assert_not_awaited()


class TestListTransactions:
    async def test_has_more_and_cursor(self, svc: WalletApplicationService, repo: AsyncMock) -> None:
        repo.list_transactions.return_value = [
            make_tx("u1", "DEPOSIT", "1.00", tx_id=i) for i in (30, 29, 28)
        ]
        resp = await svc.list_transactions(AsyncMock(), "u1", None, 2, None)

        assert [i.id for i in resp.items] == [30, 29]
        assert resp.has_more is True
        assert cursor_decode(resp.next_cursor) == 29
        # limit + 1 fetched
        assert repo.list_transactions.call_args.args[3] == 3

    async def test_last_page(self, svc: WalletApplicationService, repo: AsyncMock) -> None:
        repo.list_transactions.return_value = [make_tx("u1", "SALE", "1.00", tx_id=3)]
        resp = await svc.list_transactions(AsyncMock(), "u1", cursor_encode(4), 20, "SALE")

        assert resp.has_more is False
        assert resp.next_cursor is None
        assert repo.list_transactions.call_args.args[2] == 4
        assert repo.list_transactions.call_args.args[4] == "SALE"


class TestCursor:
    def test_roundtrip(self) -> None:
        assert cursor_decode(cursor_encode(12345)) == 12345

    def test_garbage_is_ignored(self) -> None:
        assert cursor_decode("not-a-cursor!!") is None
        assert cursor_decode(None) is None
