"""LedgerApplicationService — read side of the ledger plus projection rebuild.

Writes to the ledger only ever happen as side effects of order transitions
(see LedgerService). The one write here, rebuild_balance, re-derives the
projection from the ledger, which is authoritative.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.fm_ledger.application.schemas import (
    BalanceResponse,
    LedgerEntryItem,
    LedgerResponse,
    RebuildBalanceResponse,
)
from src.fm_ledger.domain.models import UserBalance
from src.fm_ledger.domain.repository import LedgerRepositoryProtocol
from src.fm_ledger.infrastructure.persistence import LedgerRepository

logger = logging.getLogger(__name__)


class LedgerApplicationService:
    def __init__(self, repo: LedgerRepositoryProtocol | None = None) -> None:
        self._repo: LedgerRepositoryProtocol = repo or LedgerRepository()

    async def get_balance(self, db: AsyncSession, user_id: str) -> BalanceResponse:
        balance = await self._repo.get_balance(user_id, db)
        if balance is None:
            # No entries yet: an empty projection, not an error
            balance = UserBalance(user_id=user_id, balance=0, lifetime_earned=0)
        return BalanceResponse.from_balance(balance)

    async def list_entries(
        self, db: AsyncSession, user_id: str, order_id: int | None, limit: int
    ) -> LedgerResponse:
        entries = await self._repo.list_by_user(user_id, order_id, limit, db)
        return LedgerResponse(items=[LedgerEntryItem.from_entry(e) for e in entries])

    async def rebuild_balance(self, db: AsyncSession, user_id: str) -> RebuildBalanceResponse:
        try:
            current = await self._repo.get_balance(user_id, db)
            ledger_balance, lifetime = await self._repo.ledger_totals(user_id, db)
            rebuilt = await self._repo.overwrite_balance(user_id, ledger_balance, lifetime, db)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        previous = current.balance if current else 0
        if previous != ledger_balance:
            logger.warning(
                "Balance projection drift corrected: user=%s projected=%d ledger=%d",
                user_id,
                previous,
                ledger_balance,
            )
        return RebuildBalanceResponse(
            user_id=user_id,
            previous_balance=previous,
            balance=rebuilt.balance,
            lifetime_earned=rebuilt.lifetime_earned,
            drift=previous - ledger_balance,
        )
