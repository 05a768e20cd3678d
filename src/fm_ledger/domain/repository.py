"""Repository Protocol — dependency inversion for testability.

Unit tests inject a mock or in-memory double conforming to this Protocol;
infrastructure provides the PostgreSQL implementation.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.fm_ledger.domain.models import BalanceDrift, LedgerEntry, UserBalance


class LedgerRepositoryProtocol(Protocol):
    async def get_by_key(self, idempotency_key: str, db: AsyncSession) -> LedgerEntry | None: ...

    async def adjust_balance(self, user_id: str, amount: int, db: AsyncSession) -> int: ...

    async def insert_entry(
        self,
        user_id: str,
        order_id: int,
        amount: int,
        reason: str,
        balance_after: int,
        idempotency_key: str | None,
        db: AsyncSession,
    ) -> LedgerEntry: ...

    async def list_by_order(self, order_id: int, db: AsyncSession) -> list[LedgerEntry]: ...

    async def list_by_user(
        self, user_id: str, order_id: int | None, limit: int, db: AsyncSession
    ) -> list[LedgerEntry]: ...

    async def get_balance(self, user_id: str, db: AsyncSession) -> UserBalance | None: ...

    async def ledger_totals(self, user_id: str, db: AsyncSession) -> tuple[int, int]: ...

    async def overwrite_balance(
        self, user_id: str, balance: int, lifetime_earned: int, db: AsyncSession
    ) -> UserBalance: ...

    async def list_balance_drift(self, db: AsyncSession) -> list[BalanceDrift]: ...
