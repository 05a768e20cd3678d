# src/fm_bid/domain/repository.py
"""BidRepository Protocol — interface contract for persistence layer."""
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.fm_bid.domain.models import Bid


class BidRepositoryProtocol(Protocol):
    async def insert(
        self, order_id: int, writer_id: str, amount: int, message: str, db: AsyncSession
    ) -> Bid | None:
        """Returns None when the writer already has a bid on the order."""
        ...

    async def get_by_id(self, bid_id: int, db: AsyncSession) -> Bid | None: ...

    async def get_by_order_and_writer(
        self, order_id: int, writer_id: str, db: AsyncSession
    ) -> Bid | None: ...

    async def list_by_order(self, order_id: int, db: AsyncSession) -> list[Bid]: ...

    async def mark_accepted(self, bid_id: int, db: AsyncSession) -> bool: ...

    async def reject_others(self, order_id: int, accepted_bid_id: int, db: AsyncSession) -> int: ...

    async def reject_pending(self, order_id: int, db: AsyncSession) -> int: ...
