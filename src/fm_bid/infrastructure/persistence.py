# src/fm_bid/infrastructure/persistence.py
"""BidRepository — raw SQL persistence implementation."""
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.fm_bid.domain.models import Bid

_COLUMNS = "id, order_id, writer_id, amount, message, status, created_at, updated_at"

# uq_bids_order_writer turns a concurrent duplicate into an empty RETURNING
_INSERT_BID_SQL = text(f"""
    INSERT INTO bids (order_id, writer_id, amount, message, status)
    VALUES (:order_id, :writer_id, :amount, :message, 'pending')
    ON CONFLICT (order_id, writer_id) DO NOTHING
    RETURNING {_COLUMNS}
""")

_GET_BID_SQL = text(f"SELECT {_COLUMNS} FROM bids WHERE id = :id")

_GET_BY_ORDER_AND_WRITER_SQL = text(f"""
    SELECT {_COLUMNS} FROM bids
    WHERE order_id = :order_id AND writer_id = :writer_id
""")

_LIST_BY_ORDER_SQL = text(f"""
    SELECT {_COLUMNS} FROM bids
    WHERE order_id = :order_id
    ORDER BY created_at ASC, id ASC
""")

_MARK_ACCEPTED_SQL = text("""
    UPDATE bids SET status = 'accepted', updated_at = NOW()
    WHERE id = :id AND status = 'pending'
""")

_REJECT_OTHERS_SQL = text("""
    UPDATE bids SET status = 'rejected', updated_at = NOW()
    WHERE order_id = :order_id AND id != :accepted_id AND status = 'pending'
""")

_REJECT_PENDING_SQL = text("""
    UPDATE bids SET status = 'rejected', updated_at = NOW()
    WHERE order_id = :order_id AND status = 'pending'
""")


def _row_to_bid(row: Any) -> Bid:
    return Bid(
        id=row.id,
        order_id=row.order_id,
        writer_id=row.writer_id,
        amount=row.amount,
        message=row.message,
        status=row.status,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class BidRepository:
    """Concrete implementation of BidRepositoryProtocol using raw SQL."""

    async def insert(
        self, order_id: int, writer_id: str, amount: int, message: str, db: AsyncSession
    ) -> Bid | None:
        result = await db.execute(
            _INSERT_BID_SQL,
            {"order_id": order_id, "writer_id": writer_id, "amount": amount, "message": message},
        )
        row = result.fetchone()
        return _row_to_bid(row) if row else None

    async def get_by_id(self, bid_id: int, db: AsyncSession) -> Bid | None:
        result = await db.execute(_GET_BID_SQL, {"id": bid_id})
        row = result.fetchone()
        return _row_to_bid(row) if row else None

    async def get_by_order_and_writer(
        self, order_id: int, writer_id: str, db: AsyncSession
    ) -> Bid | None:
        result = await db.execute(
            _GET_BY_ORDER_AND_WRITER_SQL, {"order_id": order_id, "writer_id": writer_id}
        )
        row = result.fetchone()
        return _row_to_bid(row) if row else None

    async def list_by_order(self, order_id: int, db: AsyncSession) -> list[Bid]:
        result = await db.execute(_LIST_BY_ORDER_SQL, {"order_id": order_id})
        return [_row_to_bid(row) for row in result.fetchall()]

    async def mark_accepted(self, bid_id: int, db: AsyncSession) -> bool:
        result = await db.execute(_MARK_ACCEPTED_SQL, {"id": bid_id})
        return result.rowcount == 1  # type: ignore[attr-defined]

    async def reject_others(self, order_id: int, accepted_bid_id: int, db: AsyncSession) -> int:
        result = await db.execute(
            _REJECT_OTHERS_SQL, {"order_id": order_id, "accepted_id": accepted_bid_id}
        )
        return result.rowcount  # type: ignore[attr-defined,no-any-return]

    async def reject_pending(self, order_id: int, db: AsyncSession) -> int:
        result = await db.execute(_REJECT_PENDING_SQL, {"order_id": order_id})
        return result.rowcount  # type: ignore[attr-defined,no-any-return]
