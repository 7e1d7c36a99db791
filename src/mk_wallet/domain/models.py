"""Domain models for mk_wallet — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass
class Wallet:
    id: str
    user_id: str
    balance: Decimal            # spendable
    pending_balance: Decimal    # seller earnings held in escrow
    version: int
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def total_balance(self) -> Decimal:
        return self.balance + self.pending_balance


@dataclass
class WalletTransaction:
    id: int                          # BIGSERIAL
    wallet_id: str
    user_id: str
    type: str                        # WalletTransactionType value
    balance_field: str               # BalanceField value
    amount: Decimal                  # signed: positive=credit negative=debit
    balance_before: Decimal
    balance_after: Decimal
    fee: Decimal = Decimal("0.00")
    description: str | None = None
    reference_type: str | None = None
    reference_id: str | None = None
    created_at: datetime | None = None
