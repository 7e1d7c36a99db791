"""Pydantic schemas and cursor utilities for mk_wallet API."""

import base64
import binascii
import json
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from src.mk_common.money import money_to_display
from src.mk_wallet.domain.models import Wallet, WalletTransaction

# ---------------------------------------------------------------------------
# Cursor-based pagination utilities
# ---------------------------------------------------------------------------


def cursor_encode(last_id: int) -> str:
    """Encode a BIGINT primary key into an opaque Base64 cursor string."""
    payload = json.dumps({"id": last_id})
    return base64.b64encode(payload.encode()).decode()


def cursor_decode(cursor: str | None) -> int | None:
    """Decode a cursor string back to the last seen id. Returns None on error."""
    if cursor is None:
        return None
    try:
        payload = json.loads(base64.b64decode(cursor.encode()).decode())
        return int(payload["id"])
    except (binascii.Error, UnicodeDecodeError, ValueError, KeyError, TypeError):
        return None


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class DepositRequest(BaseModel):
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    reference_id: str | None = Field(None, max_length=128, description="Payment gateway reference")


class WithdrawRequest(BaseModel):
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class WalletResponse(BaseModel):
    user_id: str
    balance: Decimal
    balance_display: str
    pending_balance: Decimal
    pending_balance_display: str
    total_balance: Decimal
    total_balance_display: str

    @classmethod
    def from_domain(cls, wallet: Wallet) -> "WalletResponse":
        return cls(
            user_id=wallet.user_id,
            balance=wallet.balance,
            balance_display=money_to_display(wallet.balance),
            pending_balance=wallet.pending_balance,
            pending_balance_display=money_to_display(wallet.pending_balance),
            total_balance=wallet.total_balance,
            total_balance_display=money_to_display(wallet.total_balance),
        )


class DepositResponse(BaseModel):
    balance: Decimal
    deposited: Decimal
    transaction_id: int


class WithdrawResponse(BaseModel):
    balance: Decimal
    withdrawn: Decimal
    fee: Decimal
    net_amount: Decimal
    transaction_id: int


class WalletTransactionItem(BaseModel):
    id: int
    user_id: str
    type: str
    balance_field: str
    amount: Decimal
    balance_before: Decimal
    balance_after: Decimal
    fee: Decimal
    reference_type: str | None
    reference_id: str | None
    description: str | None
    created_at: datetime | None

    @classmethod
    def from_domain(cls, tx: WalletTransaction) -> "WalletTransactionItem":
        return cls(
            id=tx.id,
            user_id=tx.user_id,
            type=tx.type,
            balance_field=tx.balance_field,
            amount=tx.amount,
            balance_before=tx.balance_before,
            balance_after=tx.balance_after,
            fee=tx.fee,
            reference_type=tx.reference_type,
            reference_id=tx.reference_id,
            description=tx.description,
            created_at=tx.created_at,
        )


class TransactionListResponse(BaseModel):
    items: list[WalletTransactionItem]
    next_cursor: str | None
    has_more: bool


class OrderLedgerResponse(BaseModel):
    """Every wallet entry written for one order, oldest first."""

    order_id: str
    entries: list[WalletTransactionItem]
