"""Request validation for the order and wallet API schemas."""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from src.mk_order.application.schemas import CancelOrderRequest, CreateOrderRequest
from src.mk_wallet.application.schemas import DepositRequest, WithdrawRequest


class TestCreateOrderRequest:
    def test_valid(self) -> None:
        req = CreateOrderRequest(seller_id="seller-1", listing_id="listing-1", unit_price="10.00", quantity=2)
        assert req.unit_price == Decimal("10.00")
        assert req.discount == Decimal("0.00")

    @pytest.mark.parametrize("price", ["0", "-1.00", "1.001"])
    def test_bad_price(self, price: str) -> None:
        with pytest.raises(ValidationError):
            CreateOrderRequest(seller_id="s", listing_id="l", unit_price=price, quantity=1)

    @pytest.mark.parametrize("quantity", [0, -3, 10_001])
    def test_bad_quantity(self, quantity: int) -> None:
        with pytest.raises(ValidationError):
            CreateOrderRequest(seller_id="s", listing_id="l", unit_price="1.00", quantity=quantity)

    def test_negative_discount(self) -> None:
        with pytest.raises(ValidationError):
            CreateOrderRequest(seller_id="s", listing_id="l", unit_price="1.00", quantity=1, discount="-0.01")

    def test_empty_seller(self) -> None:
        with pytest.raises(ValidationError):
            CreateOrderRequest(seller_id="", listing_id="l", unit_price="1.00", quantity=1)


class TestCancelOrderRequest:
    def test_empty_reason(self) -> None:
        with pytest.raises(ValidationError):
            CancelOrderRequest(reason="")

    def test_too_long(self) -> None:
        with pytest.raises(ValidationError):
            CancelOrderRequest(reason="x" * 501)


class TestWalletRequests:
    def test_deposit_reference_optional(self) -> None:
        assert DepositRequest(amount="25.00").reference_id is None

    @pytest.mark.parametrize("amount", ["0", "-5", "0.001"])
    def test_withdraw_amount(self, amount: str) -> None:
        with pytest.raises(ValidationError):
            WithdrawRequest(amount=amount)
