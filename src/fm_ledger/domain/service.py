"""Ledger primitives — the only code allowed to change a balance.

Every credit/debit appends one ledger entry and moves the user_balances
projection inside the caller's transaction. Entries carrying an idempotency
key are written at most once; a repeated write returns the stored entry and
leaves the balance alone.

Key layout (order-scoped, never request-scoped):
    order:<id>:assignment-fee
    order:<id>:submission-fee
    order:<id>:platform-margin
    order:<id>:writer-payout:r<round>
    order:<id>:revision-clawback:r<round>
"""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.fm_common.enums import LedgerReason
from src.fm_common.errors import (
    InvalidAmountError,
    InvariantViolationError,
    LedgerWriteFailureError,
)
from src.fm_ledger.domain.models import LedgerEntry
from src.fm_ledger.domain.repository import LedgerRepositoryProtocol

logger = logging.getLogger(__name__)

_MANAGER_FEE_REASONS = (LedgerReason.ASSIGNMENT_FEE.value, LedgerReason.SUBMISSION_FEE.value)


def entry_key(order_id: int, reason: LedgerReason | str, payout_round: int | None = None) -> str:
    """Idempotency key for an order-scoped entry."""
    key = f"order:{order_id}:{LedgerReason(reason).value}"
    if payout_round is not None:
        key = f"{key}:r{payout_round}"
    return key


class LedgerService:
    def __init__(
        self,
        repo: LedgerRepositoryProtocol,
        platform_account_id: str | None = None,
    ) -> None:
        self._repo = repo
        self._platform_account_id = platform_account_id or settings.PLATFORM_ACCOUNT_ID

    @property
    def platform_account_id(self) -> str:
        return self._platform_account_id

    async def credit(
        self,
        user_id: str,
        order_id: int,
        amount: int,
        reason: LedgerReason | str,
        db: AsyncSession,
        idempotency_key: str | None = None,
    ) -> LedgerEntry:
        """Add a positive amount. Negative or zero amounts are rejected; use debit."""
        if amount <= 0:
            raise InvalidAmountError(amount)
        return await self._append(user_id, order_id, amount, reason, db, idempotency_key)

    async def debit(
        self,
        user_id: str,
        order_id: int,
        amount: int,
        reason: LedgerReason | str,
        db: AsyncSession,
        idempotency_key: str | None = None,
    ) -> LedgerEntry:
        """Subtract a positive amount. The balance is allowed to go negative."""
        if amount <= 0:
            raise InvalidAmountError(amount)
        return await self._append(user_id, order_id, -amount, reason, db, idempotency_key)

    async def apply_distribution(
        self,
        order_id: int,
        writer_id: str,
        manager_id: str,
        writer_amount: int,
        manager_amount: int,
        platform_amount: int,
        payout_round: int,
        db: AsyncSession,
    ) -> list[LedgerEntry]:
        """Commit the payment split for one payout round of an order.

        Writes the writer payout and the platform margin. The client pays
        once, so the margin is keyed per order while the payout is keyed per
        round: a re-confirmation after a claw-back pays the writer again and
        nothing else. The manager share was credited at assignment and
        delivery; it is checked against those entries, not credited again.
        Safe to call any number of times: keys already present are returned
        as-is.

        Returns every entry making up the distribution (manager fees, writer
        payout, platform margin), oldest first.
        """
        entries: list[LedgerEntry] = []
        manager_entries = [
            e
            for e in await self._repo.list_by_order(order_id, db)
            if e.reason in _MANAGER_FEE_REASONS and e.user_id == manager_id
        ]
        credited_to_manager = sum(e.amount for e in manager_entries)
        if credited_to_manager != manager_amount:
            raise InvariantViolationError(
                f"order {order_id} manager fees credited {credited_to_manager} "
                f"!= quoted {manager_amount}"
            )
        entries.extend(manager_entries)

        if writer_amount > 0:
            entries.append(
                await self.credit(
                    writer_id,
                    order_id,
                    writer_amount,
                    LedgerReason.WRITER_PAYOUT,
                    db,
                    idempotency_key=entry_key(
                        order_id, LedgerReason.WRITER_PAYOUT, payout_round
                    ),
                )
            )
        if platform_amount > 0:
            entries.append(
                await self.credit(
                    self._platform_account_id,
                    order_id,
                    platform_amount,
                    LedgerReason.PLATFORM_MARGIN,
                    db,
                    idempotency_key=entry_key(order_id, LedgerReason.PLATFORM_MARGIN),
                )
            )
        logger.info(
            "Distribution order=%d round=%d writer=%d manager=%d platform=%d",
            order_id,
            payout_round,
            writer_amount,
            manager_amount,
            platform_amount,
        )
        return entries

    async def find(self, idempotency_key: str, db: AsyncSession) -> LedgerEntry | None:
        return await self._repo.get_by_key(idempotency_key, db)

    async def _append(
        self,
        user_id: str,
        order_id: int,
        signed_amount: int,
        reason: LedgerReason | str,
        db: AsyncSession,
        idempotency_key: str | None,
    ) -> LedgerEntry:
        reason_value = LedgerReason(reason).value
        try:
            if idempotency_key is not None:
                existing = await self._repo.get_by_key(idempotency_key, db)
                if existing is not None:
                    logger.debug("Ledger key %s already written, skipping", idempotency_key)
                    return existing
            balance_after = await self._repo.adjust_balance(user_id, signed_amount, db)
            return await self._repo.insert_entry(
                user_id,
                order_id,
                signed_amount,
                reason_value,
                balance_after,
                idempotency_key,
                db,
            )
        except SQLAlchemyError as exc:
            logger.error(
                "Ledger write failed: user=%s order=%d reason=%s amount=%d",
                user_id,
                order_id,
                reason_value,
                signed_amount,
            )
            raise LedgerWriteFailureError(str(exc)) from exc
