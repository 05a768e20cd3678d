# src/fm_order/domain/repository.py
"""OrderRepository Protocol — interface contract for persistence layer."""
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.fm_order.domain.models import Order, StatusLogEntry


class OrderRepositoryProtocol(Protocol):
    async def insert(self, order: Order, db: AsyncSession) -> Order: ...

    async def get_by_id(self, order_id: int, db: AsyncSession) -> Order | None: ...

    async def get_for_update(self, order_id: int, db: AsyncSession) -> Order | None: ...

    async def save_transition(
        self, order: Order, expected_status: str, db: AsyncSession
    ) -> bool: ...

    async def append_status_log(self, entry: StatusLogEntry, db: AsyncSession) -> None: ...

    async def list_status_logs(self, order_id: int, db: AsyncSession) -> list[StatusLogEntry]: ...
