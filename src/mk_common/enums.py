"""Global enums — must match DB CHECK constraints exactly."""

from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    DELIVERED = "DELIVERED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    DISPUTED = "DISPUTED"
    REFUNDED = "REFUNDED"


TERMINAL_ORDER_STATUSES = frozenset(
    {OrderStatus.COMPLETED, OrderStatus.CANCELLED, OrderStatus.REFUNDED}
)
NON_TERMINAL_ORDER_STATUSES = frozenset(OrderStatus) - TERMINAL_ORDER_STATUSES


class EscrowStatus(str, Enum):
    PENDING = "PENDING"      # order created, payment not yet confirmed
    HELD = "HELD"            # seller earnings sit in pending_balance
    RELEASED = "RELEASED"    # moved to seller balance
    REFUNDED = "REFUNDED"    # buyer refunded, seller escrow reversed
    VOID = "VOID"            # order closed without funds ever being held


class OrderOperation(str, Enum):
    CONFIRM_PAYMENT = "CONFIRM_PAYMENT"
    MARK_DELIVERED = "MARK_DELIVERED"
    CONFIRM = "CONFIRM"
    CANCEL = "CANCEL"
    OPEN_DISPUTE = "OPEN_DISPUTE"
    FORCE_COMPLETE = "FORCE_COMPLETE"
    FORCE_CANCEL_REFUND = "FORCE_CANCEL_REFUND"


class Party(str, Enum):
    """Relationship of an actor to one order."""
    BUYER = "BUYER"
    SELLER = "SELLER"
    ADMIN = "ADMIN"


class UserRole(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"


class TimelineEventType(str, Enum):
    ORDER_CREATED = "ORDER_CREATED"
    PAYMENT_CONFIRMED = "PAYMENT_CONFIRMED"
    ORDER_DELIVERED = "ORDER_DELIVERED"
    ORDER_COMPLETED = "ORDER_COMPLETED"
    ORDER_CANCELLED = "ORDER_CANCELLED"
    DISPUTE_OPENED = "DISPUTE_OPENED"
    REVIEW_SUBMITTED = "REVIEW_SUBMITTED"
    REVIEW_UPDATED = "REVIEW_UPDATED"


class WalletTransactionType(str, Enum):
    DEPOSIT = "DEPOSIT"
    WITHDRAWAL = "WITHDRAWAL"
    # Escrow (seller pending_balance side)
    ESCROW_HOLD = "ESCROW_HOLD"
    ESCROW_RELEASE = "ESCROW_RELEASE"
    ESCROW_REVERSAL = "ESCROW_REVERSAL"
    # Settlement (spendable balance side)
    SALE = "SALE"
    REFUND = "REFUND"


class BalanceField(str, Enum):
    """Which wallet column a ledger entry explains."""
    BALANCE = "BALANCE"
    PENDING = "PENDING"


class DisputeStatus(str, Enum):
    OPEN = "OPEN"
    RESOLVED = "RESOLVED"


class DisputeReason(str, Enum):
    ITEM_NOT_RECEIVED = "ITEM_NOT_RECEIVED"
    ITEM_NOT_AS_DESCRIBED = "ITEM_NOT_AS_DESCRIBED"
    LATE_DELIVERY = "LATE_DELIVERY"
    ACCOUNT_RECOVERED = "ACCOUNT_RECOVERED"
    SELLER_UNRESPONSIVE = "SELLER_UNRESPONSIVE"
    OTHER = "OTHER"


class DisputeResolution(str, Enum):
    RELEASED_TO_SELLER = "RELEASED_TO_SELLER"
    REFUNDED_TO_BUYER = "REFUNDED_TO_BUYER"
