# src/fm_order/infrastructure/persistence.py
"""OrderRepository — raw SQL persistence implementation."""
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.fm_common.errors import InternalError
from src.fm_order.domain.models import (
    Order,
    StatusLogEntry,
    assignee_from_column,
    assignee_to_column,
)

# ---------------------------------------------------------------------------
# SQL statements
# ---------------------------------------------------------------------------

_SELECT_COLUMNS = """
    id, display_code, client_id, writer_id, manager_id, title, work_type,
    pages, slides, problems, total_amount,
    writer_earnings, manager_assign_fee, manager_submit_fee, platform_margin,
    pricing_review, payment_confirmed, payout_round, payment_reference,
    status, version, created_at, updated_at,
    assigned_at, delivered_at, approved_at, paid_at
"""

_INSERT_ORDER_SQL = text(f"""
    INSERT INTO orders (display_code, client_id, title, work_type,
        pages, slides, problems, total_amount, status)
    VALUES (:display_code, :client_id, :title, :work_type,
        :pages, :slides, :problems, :total_amount, :status)
    RETURNING {_SELECT_COLUMNS}
""")

_GET_ORDER_BY_ID_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM orders WHERE id = :id
""")

_GET_ORDER_FOR_UPDATE_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM orders WHERE id = :id
    FOR UPDATE
""")

# Optimistic guard: 0 rows means another transition got there first
_SAVE_TRANSITION_SQL = text("""
    UPDATE orders
    SET status = :status,
        writer_id = :writer_id,
        manager_id = :manager_id,
        writer_earnings = :writer_earnings,
        manager_assign_fee = :manager_assign_fee,
        manager_submit_fee = :manager_submit_fee,
        platform_margin = :platform_margin,
        pricing_review = :pricing_review,
        payment_confirmed = :payment_confirmed,
        payout_round = :payout_round,
        payment_reference = :payment_reference,
        assigned_at = :assigned_at,
        delivered_at = :delivered_at,
        approved_at = :approved_at,
        paid_at = :paid_at,
        version = version + 1,
        updated_at = NOW()
    WHERE id = :id AND status = :expected_status
""")

_INSERT_STATUS_LOG_SQL = text("""
    INSERT INTO order_status_logs
        (order_id, old_status, new_status, actor_id, actor_role, note)
    VALUES (:order_id, :old_status, :new_status, :actor_id, :actor_role, :note)
""")

_LIST_STATUS_LOGS_SQL = text("""
    SELECT order_id, old_status, new_status, actor_id, actor_role, note, created_at
    FROM order_status_logs
    WHERE order_id = :order_id
    ORDER BY id ASC
""")


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_order(row: Any) -> Order:
    """Convert a DB result row to an Order domain object."""
    return Order(
        id=row.id,
        display_code=row.display_code,
        client_id=row.client_id,
        title=row.title,
        work_type=row.work_type,
        total_amount=row.total_amount,
        pages=row.pages,
        slides=row.slides,
        problems=row.problems,
        status=row.status,
        writer=assignee_from_column(row.writer_id),
        manager=assignee_from_column(row.manager_id),
        writer_earnings=row.writer_earnings,
        manager_assign_fee=row.manager_assign_fee,
        manager_submit_fee=row.manager_submit_fee,
        platform_margin=row.platform_margin,
        pricing_review=row.pricing_review,
        payment_confirmed=row.payment_confirmed,
        payout_round=row.payout_round,
        payment_reference=row.payment_reference,
        version=row.version,
        created_at=row.created_at,
        updated_at=row.updated_at,
        assigned_at=row.assigned_at,
        delivered_at=row.delivered_at,
        approved_at=row.approved_at,
        paid_at=row.paid_at,
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class OrderRepository:
    """Concrete implementation of OrderRepositoryProtocol using raw SQL."""

    async def insert(self, order: Order, db: AsyncSession) -> Order:
        result = await db.execute(
            _INSERT_ORDER_SQL,
            {
                "display_code": order.display_code,
                "client_id": order.client_id,
                "title": order.title,
                "work_type": order.work_type,
                "pages": order.pages,
                "slides": order.slides,
                "problems": order.problems,
                "total_amount": order.total_amount,
                "status": order.status,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Order insert returned no rows — this should never happen")
        return _row_to_order(row)

    async def get_by_id(self, order_id: int, db: AsyncSession) -> Order | None:
        result = await db.execute(_GET_ORDER_BY_ID_SQL, {"id": order_id})
        row = result.fetchone()
        return _row_to_order(row) if row else None

    async def get_for_update(self, order_id: int, db: AsyncSession) -> Order | None:
        result = await db.execute(_GET_ORDER_FOR_UPDATE_SQL, {"id": order_id})
        row = result.fetchone()
        return _row_to_order(row) if row else None

    async def save_transition(
        self, order: Order, expected_status: str, db: AsyncSession
    ) -> bool:
        result = await db.execute(
            _SAVE_TRANSITION_SQL,
            {
                "id": order.id,
                "expected_status": expected_status,
                "status": order.status,
                "writer_id": assignee_to_column(order.writer),
                "manager_id": assignee_to_column(order.manager),
                "writer_earnings": order.writer_earnings,
                "manager_assign_fee": order.manager_assign_fee,
                "manager_submit_fee": order.manager_submit_fee,
                "platform_margin": order.platform_margin,
                "pricing_review": order.pricing_review,
                "payment_confirmed": order.payment_confirmed,
                "payout_round": order.payout_round,
                "payment_reference": order.payment_reference,
                "assigned_at": order.assigned_at,
                "delivered_at": order.delivered_at,
                "approved_at": order.approved_at,
                "paid_at": order.paid_at,
            },
        )
        return result.rowcount == 1  # type: ignore[attr-defined]

    async def append_status_log(self, entry: StatusLogEntry, db: AsyncSession) -> None:
        await db.execute(
            _INSERT_STATUS_LOG_SQL,
            {
                "order_id": entry.order_id,
                "old_status": entry.old_status,
                "new_status": entry.new_status,
                "actor_id": entry.actor_id,
                "actor_role": entry.actor_role,
                "note": entry.note,
            },
        )

    async def list_status_logs(self, order_id: int, db: AsyncSession) -> list[StatusLogEntry]:
        result = await db.execute(_LIST_STATUS_LOGS_SQL, {"order_id": order_id})
        return [
            StatusLogEntry(
                order_id=row.order_id,
                old_status=row.old_status,
                new_status=row.new_status,
                actor_id=row.actor_id,
                actor_role=row.actor_role,
                note=row.note,
                created_at=row.created_at,
            )
            for row in result.fetchall()
        ]
