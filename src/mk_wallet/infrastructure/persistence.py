"""WalletRepository — concrete implementation of WalletRepositoryProtocol.

All balance-mutating operations use atomic PostgreSQL UPDATE ... RETURNING.
The UPDATE takes the wallet row lock, so concurrent writers to one wallet
serialise on it; the RETURNING row is the only source of balance_before /
balance_after, so a ledger entry always reconciles to the stored field.
A result of 0 rows means the wallet is missing or the field would go negative.

Transaction ownership: The CALLER (application service or lifecycle engine) is
responsible for committing or rolling back the session.
"""

from decimal import Decimal

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.mk_common.enums import BalanceField
from src.mk_common.errors import (
    InsufficientBalanceError,
    InsufficientPendingBalanceError,
    InternalError,
    WalletNotFoundError,
)
from src.mk_common.money import ZERO, to_money
from src.mk_wallet.domain.models import Wallet, WalletTransaction

# ---------------------------------------------------------------------------
# SQL: wallets
# ---------------------------------------------------------------------------

_WALLET_COLUMNS = "id, user_id, balance, pending_balance, version, created_at, updated_at"

_GET_WALLET_SQL = text(f"""
    SELECT {_WALLET_COLUMNS}
    FROM wallets
    WHERE user_id = :user_id
""")

_CREATE_WALLET_SQL = text("""
    INSERT INTO wallets (user_id)
    VALUES (:user_id)
    ON CONFLICT (user_id) DO NOTHING
""")

_ADJUST_BALANCE_SQL = text(f"""
    UPDATE wallets
    SET balance = balance + CAST(:amount AS NUMERIC),
        version = version + 1,
        updated_at = NOW()
    WHERE user_id = :user_id AND balance + CAST(:amount AS NUMERIC) >= 0
    RETURNING {_WALLET_COLUMNS},
              balance - CAST(:amount AS NUMERIC) AS field_before,
              balance AS field_after
""")

_ADJUST_PENDING_SQL = text(f"""
    UPDATE wallets
    SET pending_balance = pending_balance + CAST(:amount AS NUMERIC),
        version = version + 1,
        updated_at = NOW()
    WHERE user_id = :user_id AND pending_balance + CAST(:amount AS NUMERIC) >= 0
    RETURNING {_WALLET_COLUMNS},
              pending_balance - CAST(:amount AS NUMERIC) AS field_before,
              pending_balance AS field_after
""")

# ---------------------------------------------------------------------------
# SQL: wallet_transactions (insert/select only)
# ---------------------------------------------------------------------------

_TX_COLUMNS = """
    id, wallet_id, user_id, type, balance_field, amount,
    balance_before, balance_after, fee, description,
    reference_type, reference_id, created_at
"""

_INSERT_TX_SQL = text(f"""
    INSERT INTO wallet_transactions
        (wallet_id, user_id, type, balance_field, amount,
         balance_before, balance_after, fee, description,
         reference_type, reference_id)
    VALUES
        (:wallet_id, :user_id, :type, :balance_field, :amount,
         :balance_before, :balance_after, :fee, :description,
         :reference_type, :reference_id)
    RETURNING {_TX_COLUMNS}
""")

_LIST_TX_SQL = text(f"""
    SELECT {_TX_COLUMNS}
    FROM wallet_transactions
    WHERE user_id = :user_id
      AND (CAST(:cursor_id AS BIGINT) IS NULL OR id < :cursor_id)
      AND (CAST(:tx_type AS TEXT) IS NULL OR type = :tx_type)
    ORDER BY id DESC
    LIMIT :limit
""")

_LIST_TX_BY_REFERENCE_SQL = text(f"""
    SELECT {_TX_COLUMNS}
    FROM wallet_transactions
    WHERE reference_type = :reference_type AND reference_id = :reference_id
    ORDER BY id ASC
""")


def _row_to_wallet(row: object) -> Wallet:
    return Wallet(
        id=str(row.id),  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        balance=row.balance,  # type: ignore[attr-defined]
        pending_balance=row.pending_balance,  # type: ignore[attr-defined]
        version=row.version,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


def _row_to_transaction(row: object) -> WalletTransaction:
    return WalletTransaction(
        id=row.id,  # type: ignore[attr-defined]
        wallet_id=str(row.wallet_id),  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        type=row.type,  # type: ignore[attr-defined]
        balance_field=row.balance_field,  # type: ignore[attr-defined]
        amount=row.amount,  # type: ignore[attr-defined]
        balance_before=row.balance_before,  # type: ignore[attr-defined]
        balance_after=row.balance_after,  # type: ignore[attr-defined]
        fee=row.fee,  # type: ignore[attr-defined]
        description=row.description,  # type: ignore[attr-defined]
        reference_type=row.reference_type,  # type: ignore[attr-defined]
        reference_id=row.reference_id,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


class WalletRepository:
    """Concrete repository — all operations atomic at the SQL level."""

    async def get_wallet(self, db: AsyncSession, user_id: str) -> Wallet | None:
        result = await db.execute(_GET_WALLET_SQL, {"user_id": user_id})
        row = result.fetchone()
        return _row_to_wallet(row) if row else None

    async def create_wallet(self, db: AsyncSession, user_id: str) -> Wallet:
        await db.execute(_CREATE_WALLET_SQL, {"user_id": user_id})
        wallet = await self.get_wallet(db, user_id)
        if wallet is None:
            raise InternalError(f"Wallet insert for {user_id} returned no row")
        return wallet

    async def adjust_balance(
        self,
        db: AsyncSession,
        user_id: str,
        amount: Decimal,
        tx_type: str,
        ref_type: str | None,
        ref_id: str | None,
        description: str,
        fee: Decimal = ZERO,
    ) -> tuple[Wallet, WalletTransaction]:
        amount = to_money(amount)
        result = await db.execute(_ADJUST_BALANCE_SQL, {"user_id": user_id, "amount": amount})
        row = result.fetchone()
        if row is None:
            wallet = await self.get_wallet(db, user_id)
            if wallet is None:
                raise WalletNotFoundError(user_id)
            raise InsufficientBalanceError(-amount, wallet.balance)
        entry = await self._append(
            db, row, BalanceField.BALANCE, tx_type, amount, ref_type, ref_id, description, fee
        )
        return _row_to_wallet(row), entry

    async def adjust_pending(
        self,
        db: AsyncSession,
        user_id: str,
        amount: Decimal,
        tx_type: str,
        ref_type: str | None,
        ref_id: str | None,
        description: str,
    ) -> tuple[Wallet, WalletTransaction]:
        amount = to_money(amount)
        result = await db.execute(_ADJUST_PENDING_SQL, {"user_id": user_id, "amount": amount})
        row = result.fetchone()
        if row is None:
            wallet = await self.get_wallet(db, user_id)
            if wallet is None:
                raise WalletNotFoundError(user_id)
            raise InsufficientPendingBalanceError(user_id, -amount, wallet.pending_balance)
        entry = await self._append(
            db, row, BalanceField.PENDING, tx_type, amount, ref_type, ref_id, description, ZERO
        )
        return _row_to_wallet(row), entry

    async def _append(
        self,
        db: AsyncSession,
        wallet_row: object,
        field: BalanceField,
        tx_type: str,
        amount: Decimal,
        ref_type: str | None,
        ref_id: str | None,
        description: str,
        fee: Decimal,
    ) -> WalletTransaction:
        result = await db.execute(
            _INSERT_TX_SQL,
            {
                "wallet_id": wallet_row.id,  # type: ignore[attr-defined]
                "user_id": wallet_row.user_id,  # type: ignore[attr-defined]
                "type": tx_type,
                "balance_field": field.value,
                "amount": amount,
                "balance_before": wallet_row.field_before,  # type: ignore[attr-defined]
                "balance_after": wallet_row.field_after,  # type: ignore[attr-defined]
                "fee": fee,
                "description": description,
                "reference_type": ref_type,
                "reference_id": ref_id,
            },
        )
        tx_row = result.fetchone()
        if tx_row is None:
            raise InternalError("Ledger insert returned no rows — this should never happen")
        return _row_to_transaction(tx_row)

    async def list_transactions(
        self,
        db: AsyncSession,
        user_id: str,
        cursor_id: int | None,
        limit: int,
        tx_type: str | None,
    ) -> list[WalletTransaction]:
        result = await db.execute(
            _LIST_TX_SQL,
            {
                "user_id": user_id,
                "cursor_id": cursor_id,
                "tx_type": tx_type,
                "limit": limit,
            },
        )
        return [_row_to_transaction(row) for row in result.fetchall()]

    async def list_transactions_by_reference(
        self, db: AsyncSession, ref_type: str, ref_id: str
    ) -> list[WalletTransaction]:
        result = await db.execute(
            _LIST_TX_BY_REFERENCE_SQL,
            {"reference_type": ref_type, "reference_id": ref_id},
        )
        return [_row_to_transaction(row) for row in result.fetchall()]
