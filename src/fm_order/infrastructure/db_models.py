"""SQLAlchemy ORM models for fm_order.

These map to tables created by Alembic migrations.
DO NOT add/remove columns here without a corresponding migration.
"""

from datetime import datetime

from sqlalchemy import BigInteger, Boolean, DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from src.fm_common.database import Base


class OrderORM(Base):
    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    display_code: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    client_id: Mapped[str] = mapped_column(String(64), nullable=False)
    writer_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    manager_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    work_type: Mapped[str] = mapped_column(String(20), nullable=False)
    pages: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    slides: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    problems: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    writer_earnings: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    manager_assign_fee: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    manager_submit_fee: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    platform_margin: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    pricing_review: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    payment_confirmed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    payout_round: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    payment_reference: Mapped[str | None] = mapped_column(String(128), nullable=True)
    status: Mapped[str] = mapped_column(String(30), nullable=False)
    version: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    assigned_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    delivered_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))


class OrderStatusLogORM(Base):
    __tablename__ = "order_status_logs"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    order_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    old_status: Mapped[str] = mapped_column(String(30), nullable=False)
    new_status: Mapped[str] = mapped_column(String(30), nullable=False)
    actor_id: Mapped[str] = mapped_column(String(64), nullable=False)
    actor_role: Mapped[str] = mapped_column(String(20), nullable=False)
    note: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    # NOTE: No updated_at, status history is append-only
