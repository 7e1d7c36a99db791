# src/mk_clearing/domain/reconciliation.py
"""Ledger reconciliation checks, run on demand from the admin API.

  wallet-ledger   each wallet field equals the sum of its ledger amounts
  latest-entry    each wallet field equals balance_after of its newest entry
  escrow-held     each seller's pending_balance equals the earnings of their HELD orders
  single-release  no order has more than one ESCROW_RELEASE or REFUND entry
"""
import logging

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

_LEDGER_SUM_SQL = text("""
    SELECT w.user_id,
           w.balance,
           w.pending_balance,
           COALESCE(SUM(t.amount) FILTER (WHERE t.balance_field = 'BALANCE'), 0) AS ledger_balance,
           COALESCE(SUM(t.amount) FILTER (WHERE t.balance_field = 'PENDING'), 0) AS ledger_pending
    FROM wallets w
    LEFT JOIN wallet_transactions t ON t.wallet_id = w.id
    GROUP BY w.user_id, w.balance, w.pending_balance
    HAVING w.balance <> COALESCE(SUM(t.amount) FILTER (WHERE t.balance_field = 'BALANCE'), 0)
        OR w.pending_balance <> COALESCE(SUM(t.amount) FILTER (WHERE t.balance_field = 'PENDING'), 0)
""")

_LATEST_ENTRY_SQL = text("""
    SELECT latest.user_id, latest.balance_field, latest.balance_after,
           CASE latest.balance_field
               WHEN 'BALANCE' THEN w.balance
               ELSE w.pending_balance
           END AS stored
    FROM (
        SELECT DISTINCT ON (wallet_id, balance_field)
               wallet_id, user_id, balance_field, balance_after
        FROM wallet_transactions
        ORDER BY wallet_id, balance_field, id DESC
    ) latest
    JOIN wallets w ON w.id = latest.wallet_id
    WHERE latest.balance_after <> CASE latest.balance_field
                                      WHEN 'BALANCE' THEN w.balance
                                      ELSE w.pending_balance
                                  END
""")

_ESCROW_HELD_SQL = text("""
    SELECT w.user_id, w.pending_balance, COALESCE(h.held, 0) AS held
    FROM wallets w
    LEFT JOIN (
        SELECT seller_id, SUM(seller_earnings) AS held
        FROM orders
        WHERE escrow_status = 'HELD'
        GROUP BY seller_id
    ) h ON h.seller_id = w.user_id
    WHERE w.pending_balance <> COALESCE(h.held, 0)
""")

_MULTI_SETTLEMENT_SQL = text("""
    SELECT reference_id, type, COUNT(*) AS n
    FROM wallet_transactions
    WHERE reference_type = 'ORDER' AND type IN ('ESCROW_RELEASE', 'REFUND')
    GROUP BY reference_id, type
    HAVING COUNT(*) > 1
""")


async def verify_ledger_reconciliation(db: AsyncSession) -> list[str]:
    """Return one violation string per failed check row; empty list means consistent."""
    violations: list[str] = []

    for row in (await db.execute(_LEDGER_SUM_SQL)).fetchall():
        violations.append(
            f"wallet-ledger: user {row.user_id} balance={row.balance} "
            f"(ledger {row.ledger_balance}), pending={row.pending_balance} "
            f"(ledger {row.ledger_pending})"
        )
    for row in (await db.execute(_LATEST_ENTRY_SQL)).fetchall():
        violations.append(
            f"latest-entry: user {row.user_id} {row.balance_field} stored={row.stored} "
            f"!= last balance_after={row.balance_after}"
        )
    for row in (await db.execute(_ESCROW_HELD_SQL)).fetchall():
        violations.append(
            f"escrow-held: user {row.user_id} pending_balance={row.pending_balance} "
            f"!= held earnings {row.held}"
        )
    for row in (await db.execute(_MULTI_SETTLEMENT_SQL)).fetchall():
        violations.append(f"single-release: order {row.reference_id} has {row.n} {row.type} entries")

    for msg in violations:
        logger.error("Reconciliation violation: %s", msg)
    return violations
