"""Escrow movements — the wallet side of each order transition.

Called by the lifecycle engine inside its commit unit; never commits itself.
Every wallet field mutation goes through the repository, which pairs it with a
ledger entry:

  hold     seller pending  += earnings     ESCROW_HOLD
  release  seller pending  -= earnings     ESCROW_RELEASE
           seller balance  += earnings     SALE
  refund   buyer  balance  += final_amount REFUND
           seller pending  -= earnings     ESCROW_REVERSAL

Each repository call takes the wallet's row lock. When one movement touches
two wallets the rows are locked in ascending user_id order.
"""
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.mk_common.enums import EscrowStatus, WalletTransactionType
from src.mk_common.errors import InvalidOrderStateError
from src.mk_order.domain.models import Order
from src.mk_wallet.domain.models import WalletTransaction
from src.mk_wallet.domain.repository import WalletRepositoryProtocol

logger = logging.getLogger(__name__)

ORDER_REF = "ORDER"


async def hold_escrow(
    order: Order, wallets: WalletRepositoryProtocol, db: AsyncSession
) -> list[WalletTransaction]:
    _, entry = await wallets.adjust_pending(
        db,
        order.seller_id,
        order.seller_earnings,
        WalletTransactionType.ESCROW_HOLD,
        ORDER_REF,
        order.id,
        f"Earnings held in escrow for order {order.order_number}",
    )
    return [entry]


async def release_escrow(
    order: Order, wallets: WalletRepositoryProtocol, db: AsyncSession
) -> list[WalletTransaction]:
    _, released = await wallets.adjust_pending(
        db,
        order.seller_id,
        -order.seller_earnings,
        WalletTransactionType.ESCROW_RELEASE,
        ORDER_REF,
        order.id,
        f"Escrow released for order {order.order_number}",
    )
    _, sale = await wallets.adjust_balance(
        db,
        order.seller_id,
        order.seller_earnings,
        WalletTransactionType.SALE,
        ORDER_REF,
        order.id,
        f"Sale proceeds for order {order.order_number}",
    )
    return [released, sale]


async def _refund_buyer(
    order: Order, wallets: WalletRepositoryProtocol, db: AsyncSession
) -> WalletTransaction:
    _, refund = await wallets.adjust_balance(
        db,
        order.buyer_id,
        order.final_amount,
        WalletTransactionType.REFUND,
        ORDER_REF,
        order.id,
        f"Refund for cancelled order {order.order_number}",
    )
    return refund


async def _reverse_seller_pending(
    order: Order, wallets: WalletRepositoryProtocol, db: AsyncSession
) -> WalletTransaction:
    _, reversal = await wallets.adjust_pending(
        db,
        order.seller_id,
        -order.seller_earnings,
        WalletTransactionType.ESCROW_REVERSAL,
        ORDER_REF,
        order.id,
        f"Escrow reversed for cancelled order {order.order_number}",
    )
    return reversal


async def refund_escrow(
    order: Order, wallets: WalletRepositoryProtocol, db: AsyncSession
) -> list[WalletTransaction]:
    """Refund the buyer and reverse the seller's held earnings; returns [REFUND, ESCROW_REVERSAL]."""
    if order.buyer_id < order.seller_id:
        refund = await _refund_buyer(order, wallets, db)
        reversal = await _reverse_seller_pending(order, wallets, db)
    else:
        reversal = await _reverse_seller_pending(order, wallets, db)
        refund = await _refund_buyer(order, wallets, db)
    return [refund, reversal]


def cancellation_escrow_status(order: Order) -> EscrowStatus:
    return EscrowStatus.REFUNDED if order.is_escrow_held else EscrowStatus.VOID


async def settle_completion(
    order: Order, wallets: WalletRepositoryProtocol, db: AsyncSession
) -> list[WalletTransaction]:
    """Completion: release held escrow. Completing unfunded escrow is refused."""
    if not order.is_escrow_held:
        raise InvalidOrderStateError("Order has not been paid yet")
    return await release_escrow(order, wallets, db)


async def settle_cancellation(
    order: Order, wallets: WalletRepositoryProtocol, db: AsyncSession
) -> list[WalletTransaction]:
    """Cancellation: refund a paid order; an unpaid one moves nothing."""
    if not order.is_escrow_held:
        logger.info("Order %s cancelled before payment; no funds moved", order.id)
        return []
    return await refund_escrow(order, wallets, db)
