# src/fm_admin/application/service.py
"""Admin application service — money invariants across the whole ledger."""
import logging

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.fm_ledger.application.schemas import RebuildBalanceResponse
from src.fm_ledger.application.service import LedgerApplicationService
from src.fm_ledger.domain.repository import LedgerRepositoryProtocol
from src.fm_ledger.infrastructure.persistence import LedgerRepository

logger = logging.getLogger(__name__)

# Stored quote must split the full client amount (review-flagged orders excepted)
_QUOTE_MISMATCH_SQL = text("""
    SELECT id, total_amount,
           writer_earnings + manager_assign_fee + manager_submit_fee + platform_margin
               AS allocated
    FROM orders
    WHERE payment_confirmed AND NOT pricing_review
      AND writer_earnings + manager_assign_fee + manager_submit_fee + platform_margin
          != total_amount
""")

# Ledger side: manager fees + margin + current-round writer payout == total
_DISTRIBUTION_MISMATCH_SQL = text("""
    SELECT o.id, o.total_amount, COALESCE(SUM(l.amount), 0) AS distributed
    FROM orders o
    LEFT JOIN ledger_entries l
      ON l.order_id = o.id
     AND (
          l.reason IN ('assignment-fee', 'submission-fee')
          OR l.idempotency_key IN (
              'order:' || o.id || ':writer-payout:r' || o.payout_round,
              'order:' || o.id || ':platform-margin'
          )
     )
    WHERE o.payment_confirmed AND NOT o.pricing_review
    GROUP BY o.id, o.total_amount
    HAVING COALESCE(SUM(l.amount), 0) != o.total_amount
""")


class AdminService:
    def __init__(self, ledger_repo: LedgerRepositoryProtocol | None = None) -> None:
        self._ledger_repo: LedgerRepositoryProtocol = ledger_repo or LedgerRepository()
        self._ledger = LedgerApplicationService(self._ledger_repo)

    async def verify_all_invariants(self, db: AsyncSession) -> dict[str, object]:
        """Conservation per confirmed order, then projection-vs-ledger per user."""
        violations: list[str] = []

        for row in (await db.execute(_QUOTE_MISMATCH_SQL)).fetchall():
            violations.append(
                f"order {row.id}: quote allocates {row.allocated} of total {row.total_amount}"
            )
        for row in (await db.execute(_DISTRIBUTION_MISMATCH_SQL)).fetchall():
            violations.append(
                f"order {row.id}: ledger distributed {row.distributed} of total {row.total_amount}"
            )
        for drift in await self._ledger_repo.list_balance_drift(db):
            violations.append(
                f"user {drift.user_id}: balance {drift.projected} != ledger {drift.ledger_sum} "
                f"(drift {drift.delta})"
            )

        for msg in violations:
            logger.error("Invariant violated: %s", msg)
        return {"ok": len(violations) == 0, "violations": violations}

    async def rebuild_balance(self, user_id: str, db: AsyncSession) -> RebuildBalanceResponse:
        return await self._ledger.rebuild_balance(db, user_id)
