"""LedgerRepository — concrete implementation of LedgerRepositoryProtocol.

Balance moves are a single atomic upsert (INSERT ... ON CONFLICT DO UPDATE
... RETURNING), so concurrent writers never lose an increment.

Transaction ownership: the CALLER commits. Nothing here calls commit().
"""

from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.fm_common.errors import InternalError
from src.fm_ledger.domain.models import BalanceDrift, LedgerEntry, UserBalance

# ---------------------------------------------------------------------------
# SQL: user_balances projection
# ---------------------------------------------------------------------------

_ADJUST_BALANCE_SQL = text("""
    INSERT INTO user_balances (user_id, balance, lifetime_earned, version)
    VALUES (:user_id, :amount, GREATEST(:amount, 0), 1)
    ON CONFLICT (user_id) DO UPDATE
        SET balance = user_balances.balance + :amount,
            lifetime_earned = user_balances.lifetime_earned + GREATEST(:amount, 0),
            version = user_balances.version + 1,
            updated_at = NOW()
    RETURNING balance
""")

_GET_BALANCE_SQL = text("""
    SELECT user_id, balance, lifetime_earned, version, updated_at
    FROM user_balances
    WHERE user_id = :user_id
""")

_OVERWRITE_BALANCE_SQL = text("""
    INSERT INTO user_balances (user_id, balance, lifetime_earned, version)
    VALUES (:user_id, :balance, :lifetime_earned, 1)
    ON CONFLICT (user_id) DO UPDATE
        SET balance = :balance,
            lifetime_earned = :lifetime_earned,
            version = user_balances.version + 1,
            updated_at = NOW()
    RETURNING user_id, balance, lifetime_earned, version, updated_at
""")

_LEDGER_TOTALS_SQL = text("""
    SELECT COALESCE(SUM(amount), 0) AS balance,
           COALESCE(SUM(amount) FILTER (WHERE amount > 0), 0) AS lifetime_earned
    FROM ledger_entries
    WHERE user_id = :user_id
""")

_BALANCE_DRIFT_SQL = text("""
    SELECT b.user_id, b.balance AS projected, COALESCE(l.total, 0) AS ledger_sum
    FROM user_balances b
    LEFT JOIN (
        SELECT user_id, SUM(amount) AS total FROM ledger_entries GROUP BY user_id
    ) l ON l.user_id = b.user_id
    WHERE b.balance <> COALESCE(l.total, 0)
    ORDER BY b.user_id
""")

# ---------------------------------------------------------------------------
# SQL: ledger_entries (append-only)
# ---------------------------------------------------------------------------

_ENTRY_COLUMNS = """
    id, user_id, order_id, amount, reason, balance_after, idempotency_key, created_at
"""

_INSERT_ENTRY_SQL = text(f"""
    INSERT INTO ledger_entries
        (user_id, order_id, amount, reason, balance_after, idempotency_key)
    VALUES
        (:user_id, :order_id, :amount, :reason, :balance_after, :idempotency_key)
    RETURNING {_ENTRY_COLUMNS}
""")

_GET_BY_KEY_SQL = text(f"""
    SELECT {_ENTRY_COLUMNS}
    FROM ledger_entries
    WHERE idempotency_key = :idempotency_key
""")

_LIST_BY_ORDER_SQL = text(f"""
    SELECT {_ENTRY_COLUMNS}
    FROM ledger_entries
    WHERE order_id = :order_id
    ORDER BY id ASC
""")

_LIST_BY_USER_SQL = text(f"""
    SELECT {_ENTRY_COLUMNS}
    FROM ledger_entries
    WHERE user_id = :user_id
      AND (CAST(:order_id AS BIGINT) IS NULL OR order_id = :order_id)
    ORDER BY id DESC
    LIMIT :limit
""")


def _row_to_entry(row: Any) -> LedgerEntry:
    return LedgerEntry(
        id=row.id,
        user_id=row.user_id,
        order_id=row.order_id,
        amount=row.amount,
        reason=row.reason,
        balance_after=row.balance_after,
        idempotency_key=row.idempotency_key,
        created_at=row.created_at,
    )


def _row_to_balance(row: Any) -> UserBalance:
    return UserBalance(
        user_id=row.user_id,
        balance=row.balance,
        lifetime_earned=row.lifetime_earned,
        version=row.version,
        updated_at=row.updated_at,
    )


class LedgerRepository:
    """Concrete repository — every statement runs in the caller's transaction."""

    async def get_by_key(self, idempotency_key: str, db: AsyncSession) -> LedgerEntry | None:
        result = await db.execute(_GET_BY_KEY_SQL, {"idempotency_key": idempotency_key})
        row = result.fetchone()
        return _row_to_entry(row) if row else None

    async def adjust_balance(self, user_id: str, amount: int, db: AsyncSession) -> int:
        result = await db.execute(_ADJUST_BALANCE_SQL, {"user_id": user_id, "amount": amount})
        return int(result.scalar_one())

    async def insert_entry(
        self,
        user_id: str,
        order_id: int,
        amount: int,
        reason: str,
        balance_after: int,
        idempotency_key: str | None,
        db: AsyncSession,
    ) -> LedgerEntry:
        result = await db.execute(
            _INSERT_ENTRY_SQL,
            {
                "user_id": user_id,
                "order_id": order_id,
                "amount": amount,
                "reason": reason,
                "balance_after": balance_after,
                "idempotency_key": idempotency_key,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Ledger insert returned no rows — this should never happen")
        return _row_to_entry(row)

    async def list_by_order(self, order_id: int, db: AsyncSession) -> list[LedgerEntry]:
        result = await db.execute(_LIST_BY_ORDER_SQL, {"order_id": order_id})
        return [_row_to_entry(row) for row in result.fetchall()]

    async def list_by_user(
        self, user_id: str, order_id: int | None, limit: int, db: AsyncSession
    ) -> list[LedgerEntry]:
        result = await db.execute(
            _LIST_BY_USER_SQL, {"user_id": user_id, "order_id": order_id, "limit": limit}
        )
        return [_row_to_entry(row) for row in result.fetchall()]

    async def get_balance(self, user_id: str, db: AsyncSession) -> UserBalance | None:
        result = await db.execute(_GET_BALANCE_SQL, {"user_id": user_id})
        row = result.fetchone()
        return _row_to_balance(row) if row else None

    async def ledger_totals(self, user_id: str, db: AsyncSession) -> tuple[int, int]:
        row: Any = (await db.execute(_LEDGER_TOTALS_SQL, {"user_id": user_id})).fetchone()
        return int(row.balance), int(row.lifetime_earned)

    async def overwrite_balance(
        self, user_id: str, balance: int, lifetime_earned: int, db: AsyncSession
    ) -> UserBalance:
        result = await db.execute(
            _OVERWRITE_BALANCE_SQL,
            {"user_id": user_id, "balance": balance, "lifetime_earned": lifetime_earned},
        )
        return _row_to_balance(result.fetchone())

    async def list_balance_drift(self, db: AsyncSession) -> list[BalanceDrift]:
        rows = (await db.execute(_BALANCE_DRIFT_SQL)).fetchall()
        return [
            BalanceDrift(user_id=r.user_id, projected=int(r.projected), ledger_sum=int(r.ledger_sum))
            for r in rows
        ]
