"""Fee calculation — order amounts and withdrawal fees.

The schedule is a frozen snapshot handed in by the caller, so a fee change
in configuration never applies retroactively to an order already priced.
"""

from dataclasses import dataclass
from decimal import Decimal

from config.settings import Settings
from src.mk_common.errors import InvalidAmountError
from src.mk_common.money import ZERO, percent_of, to_money


@dataclass(frozen=True)
class FeeSchedule:
    buyer_service_percent: Decimal
    buyer_service_flat: Decimal
    seller_commission_percent: Decimal
    withdrawal_percent: Decimal
    withdrawal_flat: Decimal

    @classmethod
    def from_settings(cls, s: Settings) -> "FeeSchedule":
        return cls(
            buyer_service_percent=s.BUYER_SERVICE_PERCENT,
            buyer_service_flat=to_money(s.BUYER_SERVICE_FLAT),
            seller_commission_percent=s.SELLER_COMMISSION_PERCENT,
            withdrawal_percent=s.WITHDRAWAL_PERCENT,
            withdrawal_flat=to_money(s.WITHDRAWAL_FLAT),
        )


@dataclass(frozen=True)
class OrderAmounts:
    unit_price: Decimal
    quantity: int
    subtotal: Decimal
    discount: Decimal
    service_fee: Decimal      # buyer-side, on top of the discounted subtotal
    platform_fee: Decimal     # seller commission
    seller_earnings: Decimal
    final_amount: Decimal     # what the buyer pays


def calculate_order_amounts(
    unit_price: Decimal,
    quantity: int,
    schedule: FeeSchedule,
    discount: Decimal = ZERO,
) -> OrderAmounts:
    """Price one order.

    subtotal        = unit_price x quantity
    service_fee     = (subtotal - discount) x buyer% + buyer flat
    final_amount    = subtotal - discount + service_fee
    platform_fee    = subtotal x commission%
    seller_earnings = subtotal - platform_fee
    """
    unit_price = to_money(unit_price)
    discount = to_money(discount)
    if unit_price <= 0:
        raise InvalidAmountError(f"unit price must be positive, got {unit_price}")
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise InvalidAmountError(f"quantity must be a positive integer, got {quantity}")

    subtotal = to_money(unit_price * quantity)
    if discount < 0 or discount > subtotal:
        raise InvalidAmountError(f"discount {discount} outside [0, {subtotal}]")

    discounted = subtotal - discount
    service_fee = percent_of(discounted, schedule.buyer_service_percent) + schedule.buyer_service_flat
    platform_fee = percent_of(subtotal, schedule.seller_commission_percent)
    return OrderAmounts(
        unit_price=unit_price,
        quantity=quantity,
        subtotal=subtotal,
        discount=discount,
        service_fee=service_fee,
        platform_fee=platform_fee,
        seller_earnings=subtotal - platform_fee,
        final_amount=discounted + service_fee,
    )


def calculate_withdrawal(amount: Decimal, schedule: FeeSchedule) -> tuple[Decimal, Decimal]:
    """Return (fee, net_amount) for a withdrawal: fee = amount x pct + flat, net floored at 0."""
    amount = to_money(amount)
    if amount <= 0:
        raise InvalidAmountError(f"withdrawal amount must be positive, got {amount}")
    fee = percent_of(amount, schedule.withdrawal_percent) + schedule.withdrawal_flat
    return fee, max(ZERO, amount - fee)
