"""Revision claw-back — reverse a writer payout when paid work is reopened.

Only the writer's payout for the current payout round is reversed. Manager
assignment and submission fees stay where they are: that work happened and
is not redone by a revision.

Must run inside the transaction that moves the order out of paid/completed,
before the status write, so a failed debit leaves the order paid.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.fm_common.enums import LedgerReason
from src.fm_common.errors import OrderNotFoundError
from src.fm_ledger.domain.models import LedgerEntry
from src.fm_ledger.domain.service import LedgerService, entry_key
from src.fm_order.domain.repository import OrderRepositoryProtocol

logger = logging.getLogger(__name__)


class RevisionClawback:
    def __init__(self, order_repo: OrderRepositoryProtocol, ledger: LedgerService) -> None:
        self._order_repo = order_repo
        self._ledger = ledger

    async def clawback(self, order_id: int, db: AsyncSession) -> LedgerEntry | None:
        """Debit the writer the exact payout of the current round, or None if unpaid."""
        order = await self._order_repo.get_by_id(order_id, db)
        if order is None:
            raise OrderNotFoundError(order_id)
        if not order.payment_confirmed:
            return None

        payout = await self._ledger.find(
            entry_key(order_id, LedgerReason.WRITER_PAYOUT, order.payout_round), db
        )
        if payout is None:
            # Paid with a zero writer share: nothing was credited, nothing to reverse
            return None

        entry = await self._ledger.debit(
            payout.user_id,
            order_id,
            payout.amount,
            LedgerReason.REVISION_CLAWBACK,
            db,
            idempotency_key=entry_key(
                order_id, LedgerReason.REVISION_CLAWBACK, order.payout_round
            ),
        )
        logger.info(
            "Claw-back order=%d round=%d writer=%s amount=%d",
            order_id,
            order.payout_round,
            payout.user_id,
            payout.amount,
        )
        return entry
